"""
The signature engine turns a JWS signing input into an encoded signature
value, dispatching on the algorithm family.
"""

import logging
from typing import Optional, Union

from ..misc import b64url_encode
from .algorithms import AlgorithmFamily, JWSAlgorithm, get_algorithm
from .general import SigningError
from .primitives import PycaSigningPrimitive, SigningPrimitive

__all__ = ['SignatureEngine']

logger = logging.getLogger(__name__)


class SignatureEngine:
    """
    Produce base64url-encoded JWS signature values.

    :param primitive:
        The signing primitive to delegate to. Defaults to
        :class:`~pyjades.sign.primitives.PycaSigningPrimitive`.
    """

    def __init__(self, primitive: Optional[SigningPrimitive] = None):
        self.primitive = primitive or PycaSigningPrimitive()

    @staticmethod
    def _check_raw_signature(alg: JWSAlgorithm, raw: bytes) -> bytes:
        mechanism = alg.mechanism
        family = mechanism.family
        if family == AlgorithmFamily.ECDSA:
            if len(raw) != mechanism.signature_size:
                # most likely a DER-encoded signature
                raise SigningError(
                    f"{alg.value} signatures must be {mechanism.signature_size}"
                    f" bytes long (r || s), got {len(raw)} bytes."
                )
        elif family in (AlgorithmFamily.RSA, AlgorithmFamily.EDDSA):
            if not raw:
                raise SigningError("Signing primitive returned no signature.")
        else:  # pragma: nocover
            raise SigningError(f"Unknown algorithm family {family}")
        return raw

    async def async_sign(
        self, alg, signing_input: Union[bytes, str], private_key
    ) -> str:
        """
        Sign a JWS signing input.

        :param alg:
            JWS algorithm identifier.
        :param signing_input:
            The signing input; strings are encoded as UTF-8.
        :param private_key:
            Key handle, passed to the signing primitive as-is.
        :return:
            The base64url-encoded signature.
        :raises UnsupportedAlgorithmError:
            If ``alg`` is not supported.
        """
        jws_alg = get_algorithm(alg)
        if isinstance(signing_input, str):
            signing_input = signing_input.encode('utf8')
        raw = await self.primitive.async_sign_raw(
            jws_alg.mechanism, signing_input, private_key
        )
        return b64url_encode(self._check_raw_signature(jws_alg, raw))

    def sign(self, alg, signing_input: Union[bytes, str], private_key) -> str:
        """
        Synchronous version of :meth:`async_sign`, which does not go through
        the event loop.
        """
        jws_alg = get_algorithm(alg)
        if isinstance(signing_input, str):
            signing_input = signing_input.encode('utf8')
        raw = self.primitive.sign_raw(
            jws_alg.mechanism, signing_input, private_key
        )
        return b64url_encode(self._check_raw_signature(jws_alg, raw))
