import pytest
from asn1crypto import keys, pem
from cryptography.hazmat.primitives import serialization

from pyjades.keys import (
    load_cert_from_pemder,
    load_certs_from_pemder,
    load_certs_from_pemder_data,
    load_private_key_from_pemder,
    load_private_key_from_pemder_data,
)
from pyjades.keys.internal import certificate_der
from pyjades.misc import b64url_decode, b64url_encode
from pyjades_tests.samples import (
    DUMMY_PASSPHRASE,
    ROOT_CERT,
    SIGNER_CERTS,
    SIGNER_KEYS,
    key_pem,
)

CHAIN_PEM = pem.armor('CERTIFICATE', SIGNER_CERTS['rsa'].dump()) + pem.armor(
    'CERTIFICATE', ROOT_CERT.dump()
)


def test_load_pem_bundle_preserves_order():
    certs = list(load_certs_from_pemder_data(CHAIN_PEM))
    assert [c.dump() for c in certs] == [
        SIGNER_CERTS['rsa'].dump(),
        ROOT_CERT.dump(),
    ]


def test_load_pem_text():
    certs = list(load_certs_from_pemder_data(CHAIN_PEM.decode('ascii')))
    assert len(certs) == 2


def test_load_der():
    (cert,) = load_certs_from_pemder_data(ROOT_CERT.dump())
    assert cert.subject == ROOT_CERT.subject


def test_load_single_cert_from_bundle_fails(tmp_path):
    bundle = tmp_path / 'chain.pem'
    bundle.write_bytes(CHAIN_PEM)
    assert len(list(load_certs_from_pemder([str(bundle)]))) == 2
    with pytest.raises(ValueError, match='exactly 1'):
        load_cert_from_pemder(str(bundle))


def test_load_encrypted_key(tmp_path):
    key_file = tmp_path / 'key.pem'
    key_file.write_bytes(key_pem('ed448', passphrase=DUMMY_PASSPHRASE))
    key_info = load_private_key_from_pemder(
        str(key_file), passphrase=DUMMY_PASSPHRASE
    )
    assert isinstance(key_info, keys.PrivateKeyInfo)
    assert key_info.algorithm == 'ed448'


def test_load_pkcs1_rsa_key():
    key_bytes = SIGNER_KEYS['rsa'].private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.TraditionalOpenSSL,
        serialization.NoEncryption(),
    )
    key_info = load_private_key_from_pemder_data(key_bytes, passphrase=None)
    assert key_info.algorithm == 'rsa'


def test_load_der_key():
    key_bytes = SIGNER_KEYS['p384'].private_bytes(
        serialization.Encoding.DER,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    )
    key_info = load_private_key_from_pemder_data(key_bytes, passphrase=None)
    assert key_info.algorithm == 'ec'


def test_certificate_der_rejects_other_types():
    with pytest.raises(TypeError):
        certificate_der('MIIB...')


@pytest.mark.parametrize(
    'data, encoded',
    [(b'', ''), (b'\xfb\xff', '-_8'), ('{"a":1}', 'eyJhIjoxfQ')],
)
def test_b64url(data, encoded):
    assert b64url_encode(data) == encoded
    if isinstance(data, str):
        data = data.encode('utf8')
    assert b64url_decode(encoded) == data
