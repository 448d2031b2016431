"""
Catalog of the JWS signature algorithms (:rfc:`7518`, :rfc:`8037`) that
can be used to produce JAdES signatures.

Every algorithm identifier maps to a :class:`SignatureMechanism` that
describes everything the signing primitive needs to know: the algorithm
family, the digest, the RSA padding scheme or the elliptic curve(s), and the
size of the raw signature where that size is fixed.
"""

import enum
from dataclasses import dataclass
from typing import Optional, Tuple

from .general import InvalidAlgorithmError, UnsupportedAlgorithmError

__all__ = [
    'AlgorithmFamily',
    'RSAPadding',
    'SignatureMechanism',
    'JWSAlgorithm',
    'get_algorithm',
    'SUPPORTED_ALGORITHMS',
]


@enum.unique
class AlgorithmFamily(enum.Enum):
    RSA = enum.auto()
    ECDSA = enum.auto()
    EDDSA = enum.auto()


@enum.unique
class RSAPadding(enum.Enum):
    PKCS1V15 = enum.auto()
    PSS = enum.auto()


@dataclass(frozen=True)
class SignatureMechanism:
    """
    Parameters for the signing primitive associated with a JWS algorithm.
    """

    family: AlgorithmFamily
    """
    Algorithm family, which determines the shape of the primitive call.
    """

    digest_algorithm: Optional[str] = None
    """
    Digest algorithm, in ``cryptography`` naming. ``None`` for EdDSA, where
    the curve determines the hashing.
    """

    padding: Optional[RSAPadding] = None
    """
    Padding scheme (RSA only).
    """

    curves: Tuple[str, ...] = ()
    """
    Admissible curve names (ECDSA, EdDSA only).
    """

    coordinate_size: Optional[int] = None
    """
    Size of one of the two integers ``r`` and ``s`` in an ECDSA signature,
    in bytes. The JWS signature is the fixed-length concatenation ``r || s``.
    """

    @property
    def signature_size(self) -> Optional[int]:
        """
        Size of the raw signature in bytes, if the algorithm fixes it.
        """
        if self.coordinate_size is not None:
            return 2 * self.coordinate_size
        return None


@enum.unique
class JWSAlgorithm(enum.Enum):
    """
    JWS algorithm identifiers supported by this library.
    """

    RS256 = 'RS256'
    RS384 = 'RS384'
    RS512 = 'RS512'
    PS256 = 'PS256'
    PS384 = 'PS384'
    PS512 = 'PS512'
    ES256 = 'ES256'
    ES384 = 'ES384'
    ES512 = 'ES512'
    EDDSA = 'EdDSA'

    @property
    def mechanism(self) -> SignatureMechanism:
        return _MECHANISMS[self]

    @property
    def family(self) -> AlgorithmFamily:
        return self.mechanism.family


def _rsa(md: str, pad: RSAPadding) -> SignatureMechanism:
    return SignatureMechanism(
        family=AlgorithmFamily.RSA, digest_algorithm=md, padding=pad
    )


def _ecdsa(md: str, curve: str, size: int) -> SignatureMechanism:
    return SignatureMechanism(
        family=AlgorithmFamily.ECDSA,
        digest_algorithm=md,
        curves=(curve,),
        coordinate_size=size,
    )


_MECHANISMS = {
    JWSAlgorithm.RS256: _rsa('sha256', RSAPadding.PKCS1V15),
    JWSAlgorithm.RS384: _rsa('sha384', RSAPadding.PKCS1V15),
    JWSAlgorithm.RS512: _rsa('sha512', RSAPadding.PKCS1V15),
    JWSAlgorithm.PS256: _rsa('sha256', RSAPadding.PSS),
    JWSAlgorithm.PS384: _rsa('sha384', RSAPadding.PSS),
    JWSAlgorithm.PS512: _rsa('sha512', RSAPadding.PSS),
    JWSAlgorithm.ES256: _ecdsa('sha256', 'secp256r1', 32),
    JWSAlgorithm.ES384: _ecdsa('sha384', 'secp384r1', 48),
    # P-521 coordinates are 521 bits, i.e. 66 bytes
    JWSAlgorithm.ES512: _ecdsa('sha512', 'secp521r1', 66),
    JWSAlgorithm.EDDSA: SignatureMechanism(
        family=AlgorithmFamily.EDDSA, curves=('ed25519', 'ed448')
    ),
}

SUPPORTED_ALGORITHMS = frozenset(alg.value for alg in JWSAlgorithm)
"""
The set of supported algorithm identifiers, as strings.
"""


def get_algorithm(alg) -> JWSAlgorithm:
    """
    Look up a JWS algorithm by identifier.

    :param alg:
        An algorithm identifier (e.g. ``'ES256'``), or a
        :class:`JWSAlgorithm` value.
    :return:
        The corresponding :class:`JWSAlgorithm`.
    :raises InvalidAlgorithmError:
        If ``alg`` is empty or ``none``.
    :raises UnsupportedAlgorithmError:
        If ``alg`` is not in the catalog.
    """
    if isinstance(alg, JWSAlgorithm):
        return alg
    if not alg or (isinstance(alg, str) and alg.lower() == 'none'):
        raise InvalidAlgorithmError(alg)
    try:
        return JWSAlgorithm(alg)
    except ValueError:
        raise UnsupportedAlgorithmError(str(alg))
