"""
Selective Disclosure JWT (SD-JWT) issuance for JAdES payloads.
"""

from .api import (
    DisclosureFrame,
    IssuanceEngine,
    SignerCallback,
    SignerSpec,
)
from .issuer import GeneralJSONIssuer, SDJWTIssuanceError

__all__ = [
    'DisclosureFrame',
    'IssuanceEngine',
    'SignerCallback',
    'SignerSpec',
    'GeneralJSONIssuer',
    'SDJWTIssuanceError',
]
