"""
Default SD-JWT issuance engine.

Disclosures are formatted as described in the IETF SD-JWT specification:
each one is the base64url encoding of the JSON array
``[salt, name, value]`` (object properties) or ``[salt, value]`` (array
elements), and the payload refers to it through the base64url-encoded digest
of that encoding, in an ``_sd`` array or in a ``{"...": digest}`` array
element.
"""

import hashlib
import json
import logging
import secrets
from typing import Any, Dict, List, Optional

from ..jws import GeneralJWS, JWSSignature
from ..misc import b64url_encode, json_bytes
from .api import DisclosureFrame, IssuanceEngine, SignerSpec

__all__ = [
    'SDJWTIssuanceError',
    'GeneralJSONIssuer',
    'default_hasher',
    'default_salt_generator',
    'SD_DIGESTS_KEY',
    'SD_ALG_KEY',
    'ARRAY_ELEMENT_KEY',
]

logger = logging.getLogger(__name__)

SD_DIGESTS_KEY = '_sd'
SD_ALG_KEY = '_sd_alg'
ARRAY_ELEMENT_KEY = '...'

_RESERVED_CLAIMS = frozenset([SD_DIGESTS_KEY, SD_ALG_KEY, ARRAY_ELEMENT_KEY])


class SDJWTIssuanceError(ValueError):
    """
    Error raised when a payload cannot be issued as an SD-JWT.
    """

    def __init__(self, msg: str, *args):
        self.msg = msg
        super().__init__(msg, *args)


def default_hasher(data: bytes, alg: str) -> bytes:
    return hashlib.new(alg.lower().replace('-', ''), data).digest()


def default_salt_generator() -> str:
    return b64url_encode(secrets.token_bytes(16))


class GeneralJSONIssuer(IssuanceEngine):
    """
    Issue SD-JWTs in General JSON Serialization.

    When no disclosure frame is given, every top-level property of the
    payload is made selectively disclosable.
    """

    def __init__(
        self,
        hash_alg: str = 'sha-256',
        sign_alg: Optional[str] = None,
        hasher=default_hasher,
        salt_generator=default_salt_generator,
    ):
        super().__init__(
            hash_alg=hash_alg,
            sign_alg=sign_alg,
            hasher=hasher,
            salt_generator=salt_generator,
        )

    def _digest(self, disclosure: str) -> str:
        return b64url_encode(
            self.hasher(disclosure.encode('ascii'), self.hash_alg)
        )

    def _disclose(self, content: list, disclosures: List[str]) -> str:
        disclosure = b64url_encode(
            json.dumps(content, ensure_ascii=False).encode('utf8')
        )
        disclosures.append(disclosure)
        return self._digest(disclosure)

    def _apply_frame(self, value, frame, disclosures: List[str]):
        if not isinstance(frame, dict):
            return value
        if isinstance(value, dict):
            return self._process_object(value, frame, disclosures)
        elif isinstance(value, list):
            return self._process_array(value, frame, disclosures)
        return value

    def _process_object(
        self, obj: Dict[str, Any], frame: dict, disclosures: List[str]
    ) -> Dict[str, Any]:
        sd_names = set(frame.get(SD_DIGESTS_KEY, ()))
        result: Dict[str, Any] = {}
        digests = []
        for name, value in obj.items():
            if name in _RESERVED_CLAIMS:
                raise SDJWTIssuanceError(
                    f"Claim name {name!r} is reserved by SD-JWT."
                )
            value = self._apply_frame(value, frame.get(name), disclosures)
            if name in sd_names:
                digests.append(
                    self._disclose(
                        [self.salt_generator(), name, value], disclosures
                    )
                )
            else:
                result[name] = value
        if digests:
            # sorted, so that the digest order reveals nothing about the
            # original claim order
            result[SD_DIGESTS_KEY] = sorted(digests)
        return result

    def _process_array(
        self, arr: list, frame: dict, disclosures: List[str]
    ) -> list:
        sd_indices = set(frame.get(SD_DIGESTS_KEY, ()))
        result = []
        for ix, value in enumerate(arr):
            sub_frame = frame.get(ix, frame.get(str(ix)))
            value = self._apply_frame(value, sub_frame, disclosures)
            if ix in sd_indices:
                digest = self._disclose(
                    [self.salt_generator(), value], disclosures
                )
                result.append({ARRAY_ELEMENT_KEY: digest})
            else:
                result.append(value)
        return result

    def build_payload(
        self,
        payload: Dict[str, Any],
        disclosure_frame: Optional[DisclosureFrame],
    ):
        """
        Compute the SD-JWT payload and the associated disclosures.

        :return:
            A tuple of the SD-JWT payload and the list of disclosures.
        """
        if not isinstance(payload, dict):
            raise SDJWTIssuanceError("SD-JWT payloads must be JSON objects.")
        if disclosure_frame is None:
            disclosure_frame = {SD_DIGESTS_KEY: list(payload.keys())}
        disclosures: List[str] = []
        sd_payload = self._process_object(
            payload, disclosure_frame, disclosures
        )
        if disclosures:
            sd_payload[SD_ALG_KEY] = self.hash_alg
        logger.debug(
            f"Issued SD-JWT payload with {len(disclosures)} disclosures"
        )
        return sd_payload, disclosures

    async def async_issue(
        self,
        payload: Dict[str, Any],
        disclosure_frame: Optional[DisclosureFrame],
        sigs: List[SignerSpec],
    ) -> GeneralJWS:
        if not sigs:
            raise SDJWTIssuanceError("At least one signer is required.")
        sd_payload, disclosures = self.build_payload(payload, disclosure_frame)
        payload_bytes = json_bytes(sd_payload)

        encoded_payload = None
        signatures = []
        for spec in sigs:
            protected = dict(spec.header)
            protected['alg'] = spec.alg
            if spec.kid is not None:
                protected['kid'] = spec.kid
            # all signatures must agree on the payload encoding (RFC 7797)
            if protected.get('b64', True) is False:
                this_payload = payload_bytes.decode('utf8')
            else:
                this_payload = b64url_encode(payload_bytes)
            if encoded_payload is None:
                encoded_payload = this_payload
            elif encoded_payload != this_payload:
                raise SDJWTIssuanceError(
                    "All signers must use the same 'b64' setting."
                )
            encoded_protected = b64url_encode(json_bytes(protected))
            signature = await spec.signer(
                f"{encoded_protected}.{encoded_payload}"
            )
            signatures.append(
                JWSSignature(protected=encoded_protected, signature=signature)
            )

        # disclosures are only attached to the first signature
        if disclosures:
            signatures[0].header = {'disclosures': disclosures}
        return GeneralJWS(payload=encoded_payload, signatures=signatures)
