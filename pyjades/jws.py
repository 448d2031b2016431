"""
Value types for the JWS General JSON Serialization (:rfc:`7515` § 7.2.1),
which is the output format of all JAdES tokens produced by pyJAdES.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

__all__ = ['JWSSignature', 'GeneralJWS']


@dataclass
class JWSSignature:
    """
    One entry in the ``signatures`` array.
    """

    protected: str
    """
    Base64url-encoded protected header.
    """

    signature: str
    """
    Base64url-encoded signature value.
    """

    header: Optional[Dict[str, Any]] = None
    """
    Unprotected header (``disclosures``, ``kid``, ``kb_jwt``, ``etsiU``).
    """

    def as_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            'protected': self.protected,
            'signature': self.signature,
        }
        if self.header:
            result['header'] = dict(self.header)
        return result

    @classmethod
    def from_dict(cls, value: dict) -> 'JWSSignature':
        return JWSSignature(
            protected=value['protected'],
            signature=value['signature'],
            header=value.get('header'),
        )


@dataclass
class GeneralJWS:
    """
    A JWS in General JSON Serialization.
    For detached payloads, :attr:`payload` is the empty string.
    """

    payload: str
    signatures: List[JWSSignature] = field(default_factory=list)

    def as_dict(self) -> Dict[str, Any]:
        return {
            'payload': self.payload,
            'signatures': [sig.as_dict() for sig in self.signatures],
        }

    def to_json(self, **kwargs) -> str:
        return json.dumps(self.as_dict(), **kwargs)

    @classmethod
    def from_dict(cls, value: dict) -> 'GeneralJWS':
        return GeneralJWS(
            payload=value['payload'],
            signatures=[
                JWSSignature.from_dict(sig) for sig in value['signatures']
            ],
        )
