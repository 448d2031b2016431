"""
General tools shared by the JAdES signing machinery: the error taxonomy
and a couple of small helpers to translate algorithm names into
`pyca/cryptography <https://cryptography.io>`_ objects.
"""

import logging
from typing import Optional

from cryptography.hazmat.primitives import hashes

__all__ = [
    'SigningError',
    'InvalidAlgorithmError',
    'UnsupportedAlgorithmError',
    'InsufficientCertificatesError',
    'NotSignedYetError',
    'AlgorithmNotSetError',
    'MissingDetachedDescriptorError',
    'InvalidHeaderError',
    'get_pyca_cryptography_hash',
    'normalise_hash_name',
]

logger = logging.getLogger(__name__)


class SigningError(ValueError):
    """
    Error encountered while producing a JAdES signature.
    """

    def __init__(self, msg: str, *args):
        self.msg = msg
        super().__init__(msg, *args)


class InvalidAlgorithmError(SigningError):
    """
    Raised when the signature algorithm is missing, or set to ``none``.
    """

    def __init__(self, alg: Optional[str]):
        self.alg = alg
        super().__init__(
            f"Header parameter 'alg' must be set and not 'none', "
            f"got {alg!r}."
        )


class UnsupportedAlgorithmError(SigningError):
    """
    Raised when the signature algorithm is not one this library knows
    how to produce.
    """

    def __init__(self, alg: str):
        self.alg = alg
        super().__init__(f"Unsupported algorithm: {alg!r}")


class InsufficientCertificatesError(SigningError):
    """
    Raised when a certificate chain reference is requested for
    fewer certificates than the header parameter requires.
    """

    def __init__(self, field: str, count: int, required: int = 2):
        self.field = field
        self.count = count
        self.required = required
        super().__init__(
            f"Header parameter {field!r} requires at least {required} "
            f"certificates, but {count} were provided; use 'x5t#o' to "
            f"reference a single certificate."
        )


class NotSignedYetError(SigningError):
    """
    Raised when the signed artifact is requested before signing.
    """

    def __init__(self, accessor: str):
        self.accessor = accessor
        super().__init__(f"Not signed yet, cannot access {accessor}.")


class AlgorithmNotSetError(SigningError):
    """
    Raised when :meth:`~pyjades.sign.token.JAdESToken.sign` is called
    without a configured signature algorithm.
    """

    def __init__(self):
        super().__init__("Header parameter 'alg' must be set when signing.")


class MissingDetachedDescriptorError(SigningError):
    """
    Raised when a token without payload is signed without a ``sigD``
    header parameter describing the detached data objects.
    """

    def __init__(self):
        super().__init__(
            "A detached JAdES signature requires the 'sigD' "
            "header parameter."
        )


class InvalidHeaderError(SigningError):
    """
    Raised when a header parameter value violates a structural constraint.
    """

    def __init__(self, field: str, constraint: str):
        self.field = field
        self.constraint = constraint
        super().__init__(f"Header parameter {field!r}: {constraint}")


def normalise_hash_name(algorithm: str) -> str:
    """
    Translate hash algorithm names as used in JOSE/JAdES headers
    (e.g. ``sha-256``) into the names used by ``cryptography``
    and ``asn1crypto`` (e.g. ``sha256``).
    """
    return algorithm.lower().replace('-', '')


def get_pyca_cryptography_hash(algorithm: str) -> hashes.HashAlgorithm:
    algorithm = normalise_hash_name(algorithm)
    if algorithm == 'shake256':
        # force the output length to 64 bytes = 512 bits
        return hashes.SHAKE256(digest_size=64)
    try:
        return getattr(hashes, algorithm.upper())()
    except AttributeError:
        raise SigningError(f"Unknown hash algorithm {algorithm!r}")
