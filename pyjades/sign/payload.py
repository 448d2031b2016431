"""
Payload encoding for JAdES tokens.

There are two ways to put a payload into a JAdES token:

* **Detached** (TS 119 182-1 § 5.2.8): the token carries no payload at all.
  The signing input is the encoded protected header followed by a dot, and
  the data objects are referenced through the ``sigD`` header parameter.
* **Attached**: the payload is issued as an SD-JWT by an
  :class:`~pyjades.sdjwt.IssuanceEngine`, which calls back into the signature
  engine to produce the signature values.

:class:`PayloadEncoder` exposes both paths through the same
:class:`EncodedPayload` result type.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from ..jws import GeneralJWS
from ..misc import b64url_encode, json_bytes
from ..sdjwt import GeneralJSONIssuer, IssuanceEngine, SignerSpec
from ..sdjwt.api import DisclosureFrame, Hasher, SignerCallback
from ..sdjwt.issuer import default_hasher, default_salt_generator
from .general import MissingDetachedDescriptorError
from .headers import ProtectedHeader

__all__ = [
    'EncodedPayload',
    'PayloadEncoder',
    'encode_protected_header',
    'SD_JWT_HASH_ALGORITHM',
]

logger = logging.getLogger(__name__)

SD_JWT_HASH_ALGORITHM = 'sha-256'
"""
Hash algorithm used for SD-JWT disclosure digests.
"""

IssuanceEngineFactory = Callable[[str, Hasher], IssuanceEngine]


def encode_protected_header(header: ProtectedHeader) -> str:
    """
    Encode a protected header as it appears in the JWS.
    """
    return b64url_encode(json_bytes(header.as_dict()))


def _default_issuance_engine(sign_alg: str, hasher: Hasher) -> IssuanceEngine:
    return GeneralJSONIssuer(
        hash_alg=SD_JWT_HASH_ALGORITHM,
        sign_alg=sign_alg,
        hasher=hasher,
        salt_generator=default_salt_generator,
    )


@dataclass(frozen=True)
class EncodedPayload:
    """
    Result of payload encoding. Exactly one of :attr:`signing_input` and
    :attr:`general_jws` is set.
    """

    protected: Optional[str] = None
    """
    The encoded protected header (only set together with
    :attr:`signing_input`).
    """

    signing_input: Optional[bytes] = None
    """
    Bytes that still have to be signed.
    """

    general_jws: Optional[GeneralJWS] = None
    """
    A completed token, signed through the injected signer callbacks.
    """

    @property
    def signed(self) -> bool:
        return self.general_jws is not None


class PayloadEncoder:
    """
    Decide between detached and attached payload encoding, and produce
    the corresponding :class:`EncodedPayload`.

    :param issuance_engine_factory:
        Callable taking the signature algorithm and the disclosure hasher,
        and returning the :class:`~pyjades.sdjwt.IssuanceEngine` to use for
        attached payloads.
        Defaults to :class:`~pyjades.sdjwt.GeneralJSONIssuer`.
    :param require_sigd:
        Refuse to produce detached signatures without a ``sigD`` header
        parameter. Default ``True``.
    """

    def __init__(
        self,
        issuance_engine_factory: Optional[IssuanceEngineFactory] = None,
        require_sigd: bool = True,
    ):
        self.issuance_engine_factory = (
            issuance_engine_factory or _default_issuance_engine
        )
        self.require_sigd = require_sigd

    def check_detached_descriptor(self, header: ProtectedHeader):
        """
        Ensure that a detached signature describes its data objects.

        :raises MissingDetachedDescriptorError:
            If ``sigD`` is absent and :attr:`require_sigd` is set.
        """
        if header.sig_d is None:
            if self.require_sigd:
                raise MissingDetachedDescriptorError()
            logger.warning(
                "Producing a detached JAdES signature without a sigD header; "
                "verifiers will not be able to locate the signed data."
            )

    def encode_detached(self, header: ProtectedHeader) -> EncodedPayload:
        """
        Compute the signing input for a detached payload.

        :raises MissingDetachedDescriptorError:
            If ``sigD`` is absent and :attr:`require_sigd` is set.
        """
        self.check_detached_descriptor(header)
        protected = encode_protected_header(header)
        return EncodedPayload(
            protected=protected,
            signing_input=f"{protected}.".encode('ascii'),
        )

    async def async_encode_attached(
        self,
        header: ProtectedHeader,
        payload: Dict[str, Any],
        disclosure_frame: Optional[DisclosureFrame],
        signer: SignerCallback,
        hasher: Optional[Hasher] = None,
    ) -> EncodedPayload:
        """
        Issue the payload as an SD-JWT, signing it through ``signer``.

        :param hasher:
            Hash function for the disclosure digests. Defaults to
            :func:`~pyjades.sdjwt.issuer.default_hasher`.
        """
        header_dict = header.as_dict()
        engine = self.issuance_engine_factory(
            header.alg, hasher or default_hasher
        )
        general_jws = await engine.async_issue(
            payload,
            disclosure_frame,
            [
                SignerSpec(
                    alg=header.alg,
                    kid=header.kid,
                    header=header_dict,
                    signer=signer,
                )
            ],
        )
        return EncodedPayload(general_jws=general_jws)

    async def async_encode(
        self,
        header: ProtectedHeader,
        payload: Optional[Dict[str, Any]],
        disclosure_frame: Optional[DisclosureFrame],
        signer: SignerCallback,
        hasher: Optional[Hasher] = None,
    ) -> EncodedPayload:
        if payload is None:
            return self.encode_detached(header)
        return await self.async_encode_attached(
            header, payload, disclosure_frame, signer, hasher
        )

    def append_signing_input(self, header: ProtectedHeader, payload: str):
        """
        Compute the signing input for an additional signature over an
        already-serialised payload. An empty payload means the signature
        is detached, in which case ``sigD`` is checked as in
        :meth:`encode_detached`.

        :return:
            A tuple of the encoded protected header and the signing input.
        """
        if not payload:
            self.check_detached_descriptor(header)
        protected = encode_protected_header(header)
        return protected, f"{protected}.{payload}".encode('utf8')
