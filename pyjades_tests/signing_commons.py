import json

from cryptography.hazmat.primitives.asymmetric import padding
from cryptography.hazmat.primitives.asymmetric.ec import ECDSA
from cryptography.hazmat.primitives.asymmetric.utils import (
    encode_dss_signature,
)

from pyjades.jws import GeneralJWS
from pyjades.misc import b64url_decode
from pyjades.sign.algorithms import AlgorithmFamily, RSAPadding, get_algorithm
from pyjades.sign.general import get_pyca_cryptography_hash


def verify_raw(alg, signing_input: bytes, signature: str, public_key):
    """
    Verify a JWS signature value; raises
    :class:`cryptography.exceptions.InvalidSignature` on failure.
    """
    mechanism = get_algorithm(alg).mechanism
    sig_bytes = b64url_decode(signature)
    if mechanism.family == AlgorithmFamily.RSA:
        hash_algo = get_pyca_cryptography_hash(mechanism.digest_algorithm)
        if mechanism.padding == RSAPadding.PSS:
            pad = padding.PSS(
                mgf=padding.MGF1(hash_algo),
                salt_length=hash_algo.digest_size,
            )
        else:
            pad = padding.PKCS1v15()
        public_key.verify(sig_bytes, signing_input, pad, hash_algo)
    elif mechanism.family == AlgorithmFamily.ECDSA:
        size = mechanism.coordinate_size
        assert len(sig_bytes) == 2 * size
        r = int.from_bytes(sig_bytes[:size], byteorder='big')
        s = int.from_bytes(sig_bytes[size:], byteorder='big')
        hash_algo = get_pyca_cryptography_hash(mechanism.digest_algorithm)
        public_key.verify(
            encode_dss_signature(r, s), signing_input, ECDSA(hash_algo)
        )
    else:
        public_key.verify(sig_bytes, signing_input)


def decode_protected(protected: str) -> dict:
    return json.loads(b64url_decode(protected))


def verify_jws(jws: GeneralJWS, public_key, index: int = 0) -> dict:
    """
    Verify one signature in a General JWS and return its protected header.
    """
    sig = jws.signatures[index]
    header = decode_protected(sig.protected)
    signing_input = f"{sig.protected}.{jws.payload}".encode('utf8')
    verify_raw(header['alg'], signing_input, sig.signature, public_key)
    return header
