import pytest

from pyjades.sign.algorithms import (
    SUPPORTED_ALGORITHMS,
    AlgorithmFamily,
    JWSAlgorithm,
    RSAPadding,
    get_algorithm,
)
from pyjades.sign.general import (
    InvalidAlgorithmError,
    SigningError,
    UnsupportedAlgorithmError,
    get_pyca_cryptography_hash,
)


@pytest.mark.parametrize(
    'alg, family',
    [
        ('RS256', AlgorithmFamily.RSA),
        ('PS512', AlgorithmFamily.RSA),
        ('ES384', AlgorithmFamily.ECDSA),
        ('EdDSA', AlgorithmFamily.EDDSA),
    ],
)
def test_lookup(alg, family):
    jws_alg = get_algorithm(alg)
    assert jws_alg.value == alg
    assert jws_alg.family == family
    assert alg in SUPPORTED_ALGORITHMS


def test_lookup_enum_passthrough():
    assert get_algorithm(JWSAlgorithm.ES256) is JWSAlgorithm.ES256


@pytest.mark.parametrize('alg', [None, '', 'none', 'NONE'])
def test_missing_or_none_algorithm(alg):
    with pytest.raises(InvalidAlgorithmError) as exc_info:
        get_algorithm(alg)
    assert exc_info.value.alg == alg


@pytest.mark.parametrize('alg', ['HS256', 'ES256K', 'es256', 'RSA-OAEP'])
def test_unsupported_algorithm(alg):
    with pytest.raises(UnsupportedAlgorithmError) as exc_info:
        get_algorithm(alg)
    assert exc_info.value.alg == alg
    # errors share a common base
    assert isinstance(exc_info.value, SigningError)


@pytest.mark.parametrize(
    'alg, curve, sig_size',
    [
        ('ES256', 'secp256r1', 64),
        ('ES384', 'secp384r1', 96),
        ('ES512', 'secp521r1', 132),
    ],
)
def test_ecdsa_mechanisms(alg, curve, sig_size):
    mechanism = get_algorithm(alg).mechanism
    assert mechanism.curves == (curve,)
    assert mechanism.signature_size == sig_size


def test_rsa_padding():
    assert get_algorithm('RS384').mechanism.padding == RSAPadding.PKCS1V15
    pss = get_algorithm('PS384').mechanism
    assert pss.padding == RSAPadding.PSS
    assert pss.digest_algorithm == 'sha384'


def test_eddsa_has_no_digest():
    mechanism = get_algorithm('EdDSA').mechanism
    assert mechanism.digest_algorithm is None
    assert mechanism.signature_size is None
    assert set(mechanism.curves) == {'ed25519', 'ed448'}


@pytest.mark.parametrize('name', ['sha-256', 'SHA256', 'sha512'])
def test_hash_name_normalisation(name):
    assert get_pyca_cryptography_hash(name).digest_size in (32, 64)


def test_unknown_hash():
    with pytest.raises(SigningError, match='Unknown hash'):
        get_pyca_cryptography_hash('md17')
