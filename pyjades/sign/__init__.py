from .algorithms import JWSAlgorithm, get_algorithm
from .engine import SignatureEngine
from .general import (
    AlgorithmNotSetError,
    InsufficientCertificatesError,
    InvalidAlgorithmError,
    InvalidHeaderError,
    MissingDetachedDescriptorError,
    NotSignedYetError,
    SigningError,
    UnsupportedAlgorithmError,
)
from .headers import (
    HTTP_HEADERS_MECHANISM,
    CommitmentType,
    GenericCommitment,
    ProductionPlace,
    ProtectedHeader,
    SigD,
    SignaturePolicy,
    UnprotectedHeader,
)
from .payload import PayloadEncoder
from .primitives import PycaSigningPrimitive, SigningPrimitive
from .token import JAdESToken

__all__ = [
    'JAdESToken',
    'JWSAlgorithm',
    'get_algorithm',
    'SignatureEngine',
    'PayloadEncoder',
    'SigningPrimitive',
    'PycaSigningPrimitive',
    'ProtectedHeader',
    'UnprotectedHeader',
    'SigD',
    'HTTP_HEADERS_MECHANISM',
    'CommitmentType',
    'GenericCommitment',
    'SignaturePolicy',
    'ProductionPlace',
    'SigningError',
    'InvalidAlgorithmError',
    'UnsupportedAlgorithmError',
    'InsufficientCertificatesError',
    'NotSignedYetError',
    'AlgorithmNotSetError',
    'MissingDetachedDescriptorError',
    'InvalidHeaderError',
]
