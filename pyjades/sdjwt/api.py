"""
Interface between the JAdES token assembler and an SD-JWT issuance engine.

The engine is responsible for turning a JSON payload into an SD-JWT payload
(salting, hashing, disclosure generation) and for serialising the result in
the General JSON Serialization. It does not sign anything by itself: every
signature is produced by calling back into the signer supplied in a
:class:`SignerSpec`.
"""

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional

from ..jws import GeneralJWS

__all__ = [
    'DisclosureFrame',
    'Hasher',
    'SaltGenerator',
    'SignerCallback',
    'SignerSpec',
    'IssuanceEngine',
]

DisclosureFrame = Dict[str, Any]
"""
Description of the selectively disclosable parts of a payload.

At each level, the ``_sd`` key lists the disclosable property names (for
objects) or indices (for arrays). Other keys hold the frames for nested
values, e.g. ``{'_sd': ['email'], 'address': {'_sd': ['street']}}``.
"""

Hasher = Callable[[bytes, str], bytes]
"""
Hash function taking data and an algorithm name (e.g. ``sha-256``).
"""

SaltGenerator = Callable[[], str]

SignerCallback = Callable[[str], Awaitable[str]]
"""
Coroutine function that takes a JWS signing input and returns a
base64url-encoded signature.
"""


@dataclass(frozen=True)
class SignerSpec:
    """
    Describes one signature that the issuance engine must produce.
    """

    alg: str
    """
    JWS algorithm identifier.
    """

    header: Dict[str, Any]
    """
    Protected header parameters.
    """

    signer: SignerCallback
    """
    Callback producing the signature value.
    """

    kid: Optional[str] = None
    """
    Key identifier, added to the protected header if set.
    """


class IssuanceEngine:
    """
    Abstract SD-JWT issuance engine.

    :param hash_alg:
        Hash algorithm used for disclosure digests, as an IANA hash name.
    :param sign_alg:
        JWS signature algorithm.
    :param hasher:
        Hash function.
    :param salt_generator:
        Salt generator for disclosures.
    """

    def __init__(
        self,
        hash_alg: str,
        sign_alg: str,
        hasher: Hasher,
        salt_generator: SaltGenerator,
    ):
        self.hash_alg = hash_alg
        self.sign_alg = sign_alg
        self.hasher = hasher
        self.salt_generator = salt_generator

    async def async_issue(
        self,
        payload: Dict[str, Any],
        disclosure_frame: Optional[DisclosureFrame],
        sigs: List[SignerSpec],
    ) -> GeneralJWS:
        """
        Issue an SD-JWT in General JSON Serialization.

        :param payload:
            The claims to issue.
        :param disclosure_frame:
            The disclosure frame. If ``None``, the engine applies its
            default disclosure policy.
        :param sigs:
            The signatures to produce, in order.
        :return:
            The signed :class:`.GeneralJWS`.
        """
        raise NotImplementedError
