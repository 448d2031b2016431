"""
Key material for the test suite, generated on import.

All certificates are issued by a single ECDSA root; the signer certificates
are returned as :class:`asn1crypto.x509.Certificate` objects.
"""

import datetime

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed448, ed25519, rsa
from cryptography.x509.oid import NameOID

from pyjades.keys.internal import translate_pyca_cryptography_cert_to_asn1

VALID_FROM = datetime.datetime(2020, 1, 1, tzinfo=datetime.timezone.utc)
VALID_UNTIL = datetime.datetime(2050, 1, 1, tzinfo=datetime.timezone.utc)
DUMMY_PASSPHRASE = b'secret'


def _name(common_name: str) -> x509.Name:
    return x509.Name(
        [
            x509.NameAttribute(NameOID.ORGANIZATION_NAME, 'pyJAdES Testing'),
            x509.NameAttribute(NameOID.COMMON_NAME, common_name),
        ]
    )


def _issue_cert(subject, public_key, issuer, issuer_key, *, ca=False):
    builder = (
        x509.CertificateBuilder()
        .subject_name(_name(subject))
        .issuer_name(_name(issuer))
        .public_key(public_key)
        .serial_number(x509.random_serial_number())
        .not_valid_before(VALID_FROM)
        .not_valid_after(VALID_UNTIL)
        .add_extension(
            x509.BasicConstraints(ca=ca, path_length=None), critical=True
        )
    )
    cert = builder.sign(issuer_key, hashes.SHA384())
    return translate_pyca_cryptography_cert_to_asn1(cert)


ROOT_KEY = ec.generate_private_key(ec.SECP384R1())
ROOT_CERT = _issue_cert(
    'Root CA', ROOT_KEY.public_key(), 'Root CA', ROOT_KEY, ca=True
)

SIGNER_KEYS = {
    'rsa': rsa.generate_private_key(public_exponent=65537, key_size=2048),
    'p256': ec.generate_private_key(ec.SECP256R1()),
    'p384': ec.generate_private_key(ec.SECP384R1()),
    'p521': ec.generate_private_key(ec.SECP521R1()),
    'ed25519': ed25519.Ed25519PrivateKey.generate(),
    'ed448': ed448.Ed448PrivateKey.generate(),
}

SIGNER_CERTS = {
    name: _issue_cert(f'Signer {name}', key.public_key(), 'Root CA', ROOT_KEY)
    for name, key in SIGNER_KEYS.items()
}

# (algorithm, key name) pairs covering every algorithm family
ALG_KEY_PAIRS = [
    ('RS256', 'rsa'),
    ('RS384', 'rsa'),
    ('RS512', 'rsa'),
    ('PS256', 'rsa'),
    ('PS384', 'rsa'),
    ('PS512', 'rsa'),
    ('ES256', 'p256'),
    ('ES384', 'p384'),
    ('ES512', 'p521'),
    ('EdDSA', 'ed25519'),
    ('EdDSA', 'ed448'),
]


def key_pem(name: str, passphrase=None) -> bytes:
    if passphrase is None:
        encryption = serialization.NoEncryption()
    else:
        encryption = serialization.BestAvailableEncryption(passphrase)
    return SIGNER_KEYS[name].private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        encryption,
    )
