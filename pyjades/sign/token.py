"""
This module contains :class:`JAdESToken`, the entry point for producing
JAdES signatures.

Typical usage::

    token = JAdESToken({'hello': 'world'})
    token.set_algorithm('ES256').set_x5c([signing_cert]).set_signed_at()
    token.sign(private_key, kid='signer-1')
    print(token.to_json())

For detached signatures, leave out the payload and describe the detached
data objects through :meth:`~.ProtectedHeaderBuilder.set_sigd`.
"""

import asyncio
import dataclasses
import logging
from typing import Any, Dict, Optional

from ..jws import GeneralJWS, JWSSignature
from ..sdjwt.api import DisclosureFrame
from .algorithms import get_algorithm
from .engine import SignatureEngine
from .general import AlgorithmNotSetError, InvalidHeaderError, NotSignedYetError
from .headers import ProtectedHeader, ProtectedHeaderBuilder, UnprotectedHeader
from .payload import PayloadEncoder

__all__ = ['JAdESToken']

logger = logging.getLogger(__name__)


class JAdESToken(ProtectedHeaderBuilder):
    """
    JAdES token under construction.

    The header parameters are configured through the setters inherited from
    :class:`.ProtectedHeaderBuilder`. Calling :meth:`sign` (or
    :meth:`async_sign`) produces the token; calling it again appends
    another signature over the same payload.

    :param payload:
        The JSON payload. If ``None``, the signature is detached.
    :param signature_engine:
        The :class:`.SignatureEngine` to use.
    :param payload_encoder:
        The :class:`.PayloadEncoder` to use.
    """

    def __init__(
        self,
        payload: Optional[Dict[str, Any]] = None,
        *,
        signature_engine: Optional[SignatureEngine] = None,
        payload_encoder: Optional[PayloadEncoder] = None,
    ):
        super().__init__()
        self.payload = payload
        self.signature_engine = signature_engine or SignatureEngine()
        self.payload_encoder = payload_encoder or PayloadEncoder()
        self._disclosure_frame: Optional[DisclosureFrame] = None
        self._unprotected_header: Optional[UnprotectedHeader] = None
        self._serialized: Optional[GeneralJWS] = None
        self._b64: Optional[bool] = None

    @property
    def detached(self) -> bool:
        return self.payload is None

    def set_disclosure_frame(self, frame: DisclosureFrame):
        """
        Set the SD-JWT disclosure frame for the payload.
        """
        self._disclosure_frame = frame
        return self

    def set_unprotected_header(self, header: UnprotectedHeader):
        """
        Set unprotected header values (e.g. ``etsiU``) for the signatures
        produced from now on.
        """
        self._unprotected_header = header
        return self

    def _header_for(self, kid: Optional[str]) -> ProtectedHeader:
        alg = self._protected_header.alg
        if alg is None:
            raise AlgorithmNotSetError()
        get_algorithm(alg)
        if kid is None:
            return self._protected_header
        return dataclasses.replace(self._protected_header, kid=kid)

    def _unprotected_dict(self) -> Dict[str, Any]:
        if self._unprotected_header is None:
            return {}
        return self._unprotected_header.as_dict()

    def _disclosure_hasher(self, data: bytes, alg: str) -> bytes:
        return self.signature_engine.primitive.hash(alg, data)

    async def _create_signature(self, header: ProtectedHeader, key):
        async def _signer(data: str) -> str:
            return await self.signature_engine.async_sign(
                header.alg, data, key
            )

        encoded = await self.payload_encoder.async_encode(
            header,
            self.payload,
            self._disclosure_frame,
            _signer,
            hasher=self._disclosure_hasher,
        )
        if encoded.signed:
            serialized = encoded.general_jws
        else:
            signature = await self.signature_engine.async_sign(
                header.alg, encoded.signing_input, key
            )
            serialized = GeneralJWS(
                payload='',
                signatures=[
                    JWSSignature(
                        protected=encoded.protected, signature=signature
                    )
                ],
            )
        unprotected = self._unprotected_dict()
        if unprotected:
            first = serialized.signatures[0]
            first.header = {**(first.header or {}), **unprotected}
        self._serialized = serialized
        self._b64 = header.b64 is not False

    async def _append_signature(self, header: ProtectedHeader, key):
        if (header.b64 is not False) != self._b64:
            raise InvalidHeaderError(
                'b64', "must agree with the existing signatures"
            )
        serialized = self._serialized
        protected, signing_input = self.payload_encoder.append_signing_input(
            header, serialized.payload
        )
        signature = await self.signature_engine.async_sign(
            header.alg, signing_input, key
        )
        serialized.signatures.append(
            JWSSignature(
                protected=protected,
                signature=signature,
                header=self._unprotected_dict() or None,
            )
        )

    async def async_sign(self, key, kid: Optional[str] = None):
        """
        Sign the token.

        If the token has already been signed, a new signature over the
        existing payload is appended instead; the payload is never
        re-derived.

        :param key:
            Key handle for the signing primitive (by default, a
            ``cryptography`` private key or an
            :class:`asn1crypto.keys.PrivateKeyInfo`).
        :param kid:
            Key identifier, added to the protected header.
        :return:
            This token.
        :raises AlgorithmNotSetError:
            If no algorithm was configured.
        :raises MissingDetachedDescriptorError:
            If the token has no payload and no ``sigD`` header parameter.
        """
        header = self._header_for(kid)
        if self._serialized is not None:
            await self._append_signature(header, key)
            logger.info(
                f"Appended {header.alg} signature, token now has "
                f"{len(self._serialized.signatures)} signatures"
            )
        else:
            await self._create_signature(header, key)
            logger.info(
                f"Produced {header.alg} JAdES signature "
                f"({'detached' if self.detached else 'attached'} payload)"
            )
        return self

    def sign(self, key, kid: Optional[str] = None):
        """
        Synchronous version of :meth:`async_sign`.

        .. note::
            This method runs its own event loop, and cannot be called from
            within a running one; use :meth:`async_sign` there.
        """
        return asyncio.run(self.async_sign(key, kid))

    @property
    def signed(self) -> bool:
        return self._serialized is not None

    @property
    def general_jws(self) -> GeneralJWS:
        """
        The signed token.

        :raises NotSignedYetError:
            If the token has not been signed yet.
        """
        if self._serialized is None:
            raise NotSignedYetError('general_jws')
        return self._serialized

    def to_dict(self) -> Dict[str, Any]:
        if self._serialized is None:
            raise NotSignedYetError('to_dict')
        return self._serialized.as_dict()

    def to_json(self, **kwargs) -> str:
        if self._serialized is None:
            raise NotSignedYetError('to_json')
        return self._serialized.to_json(**kwargs)
