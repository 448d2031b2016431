"""
This module defines the interface through which the signature engine
talks to the actual cryptographic primitives, and a reference implementation
backed by ``cryptography``, for key material that is available in local
memory.

Remote signing services (HSMs, cloud KMS, qualified signature creation
devices) can be plugged in by subclassing :class:`SigningPrimitive`.
"""

import asyncio
import logging
from typing import Union

from asn1crypto import keys
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding
from cryptography.hazmat.primitives.asymmetric.ec import (
    ECDSA,
    EllipticCurvePrivateKey,
)
from cryptography.hazmat.primitives.asymmetric.ed448 import Ed448PrivateKey
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey
from cryptography.hazmat.primitives.asymmetric.utils import (
    decode_dss_signature,
)

from .algorithms import AlgorithmFamily, RSAPadding, SignatureMechanism
from .general import SigningError, get_pyca_cryptography_hash

__all__ = ['SigningPrimitive', 'PycaSigningPrimitive', 'load_signing_key']

logger = logging.getLogger(__name__)


def load_signing_key(private_key):
    """
    Turn a key handle into a ``cryptography`` private key object.

    :param private_key:
        Either a ``cryptography`` private key, or an
        :class:`asn1crypto.keys.PrivateKeyInfo` value (as produced by
        :func:`~pyjades.keys.load_private_key_from_pemder`).
    :return:
        A ``cryptography`` private key object.
    """
    if isinstance(private_key, keys.PrivateKeyInfo):
        return serialization.load_der_private_key(
            private_key.dump(), password=None
        )
    return private_key


class SigningPrimitive:
    """
    Abstract signing primitive that is agnostic as to where the cryptographic
    operations actually happen.

    Implementations must return signatures encoded the way JWS expects them.
    In particular, ECDSA signatures are the fixed-length concatenation
    ``r || s`` (not ASN.1 DER).
    """

    def sign_raw(
        self, mechanism: SignatureMechanism, data: bytes, private_key
    ) -> bytes:
        """
        Compute the raw signature of the data provided.

        :param mechanism:
            The signature mechanism to apply.
        :param data:
            Data to sign (the JWS signing input).
        :param private_key:
            Opaque key handle, owned by the caller.
        :return:
            Raw signature bytes.
        """
        raise NotImplementedError

    async def async_sign_raw(
        self, mechanism: SignatureMechanism, data: bytes, private_key
    ) -> bytes:
        """
        Async version of :meth:`sign_raw`.
        By default, this runs :meth:`sign_raw` in a worker thread.
        """
        return await asyncio.to_thread(
            self.sign_raw, mechanism, data, private_key
        )

    def hash(self, algorithm: str, data: bytes) -> bytes:
        """
        Hash the data provided.

        :param algorithm:
            Hash algorithm name, e.g. ``sha-256`` or ``sha256``.
        :param data:
            Data to hash.
        :return:
            The digest.
        """
        md = hashes.Hash(get_pyca_cryptography_hash(algorithm))
        md.update(data)
        return md.finalize()


def _key_mismatch(mechanism: SignatureMechanism, priv_key) -> SigningError:
    return SigningError(
        f"Key of type {type(priv_key).__name__} cannot be used to produce "
        f"{mechanism.family.name} signatures."
    )


class PycaSigningPrimitive(SigningPrimitive):
    """
    Signing primitive for key material held in local memory, using
    ``cryptography``.
    """

    def sign_raw(
        self,
        mechanism: SignatureMechanism,
        data: bytes,
        private_key: Union[keys.PrivateKeyInfo, object],
    ) -> bytes:
        priv_key = load_signing_key(private_key)
        family = mechanism.family

        if family == AlgorithmFamily.RSA:
            if not isinstance(priv_key, RSAPrivateKey):
                raise _key_mismatch(mechanism, priv_key)
            hash_algo = get_pyca_cryptography_hash(mechanism.digest_algorithm)
            if mechanism.padding == RSAPadding.PSS:
                # RFC 7518 § 3.5: MGF1 with the same digest, salt length
                # equal to the digest output size
                pad = padding.PSS(
                    mgf=padding.MGF1(hash_algo),
                    salt_length=hash_algo.digest_size,
                )
            else:
                pad = padding.PKCS1v15()
            return priv_key.sign(data, pad, hash_algo)
        elif family == AlgorithmFamily.ECDSA:
            if not isinstance(priv_key, EllipticCurvePrivateKey):
                raise _key_mismatch(mechanism, priv_key)
            curve_name = priv_key.curve.name
            if curve_name not in mechanism.curves:
                raise SigningError(
                    f"Curve {curve_name} does not match the signature "
                    f"algorithm, expected one of {', '.join(mechanism.curves)}."
                )
            hash_algo = get_pyca_cryptography_hash(mechanism.digest_algorithm)
            der_signature = priv_key.sign(data, ECDSA(hash_algo))
            r, s = decode_dss_signature(der_signature)
            size = mechanism.coordinate_size
            return r.to_bytes(size, byteorder='big') + s.to_bytes(
                size, byteorder='big'
            )
        elif family == AlgorithmFamily.EDDSA:
            if isinstance(priv_key, (Ed25519PrivateKey, Ed448PrivateKey)):
                return priv_key.sign(data)
            raise _key_mismatch(mechanism, priv_key)
        else:  # pragma: nocover
            raise SigningError(
                f"The signature mechanism {mechanism} "
                "is unsupported by this signing primitive."
            )
