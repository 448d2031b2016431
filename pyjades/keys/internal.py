from asn1crypto import keys, x509
from cryptography import x509 as pyca_x509
from cryptography.hazmat.primitives import serialization

__all__ = [
    'translate_pyca_cryptography_cert_to_asn1',
    'translate_pyca_cryptography_key_to_asn1',
    'certificate_der',
]


def translate_pyca_cryptography_key_to_asn1(
    private_key,
) -> keys.PrivateKeyInfo:
    # Store keys as generic ASN.1 structures for more "standardised"
    # introspection. The signing primitive converts them back when needed.
    return keys.PrivateKeyInfo.load(
        private_key.private_bytes(
            serialization.Encoding.DER,
            serialization.PrivateFormat.PKCS8,
            serialization.NoEncryption(),
        )
    )


def translate_pyca_cryptography_cert_to_asn1(cert) -> x509.Certificate:
    return x509.Certificate.load(cert.public_bytes(serialization.Encoding.DER))


def certificate_der(cert) -> bytes:
    """
    Return the DER encoding of a certificate, given either as an
    :class:`asn1crypto.x509.Certificate` or as a ``cryptography``
    certificate object.
    """
    if isinstance(cert, x509.Certificate):
        return cert.dump()
    elif isinstance(cert, pyca_x509.Certificate):
        return cert.public_bytes(serialization.Encoding.DER)
    raise TypeError(f"Expected a certificate, not {type(cert)}")
