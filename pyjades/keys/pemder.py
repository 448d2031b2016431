from typing import Iterator, List, Optional, Union

from asn1crypto import keys, pem, x509
from cryptography.hazmat.primitives import serialization

from .internal import translate_pyca_cryptography_key_to_asn1

__all__ = [
    'load_cert_from_pemder',
    'load_certs_from_pemder',
    'load_certs_from_pemder_data',
    'load_private_key_from_pemder',
    'load_private_key_from_pemder_data',
]


def load_certs_from_pemder(cert_files) -> Iterator[x509.Certificate]:
    """
    Load PEM/DER-encoded certificates from files, in the order in which
    they appear.

    :param cert_files:
        An iterable of file names.
    :return:
        A generator producing :class:`.asn1crypto.x509.Certificate` objects.
    """
    for cert_file in cert_files:
        with open(cert_file, 'rb') as f:
            cert_data_bytes = f.read()
        yield from load_certs_from_pemder_data(cert_data_bytes)


def load_certs_from_pemder_data(
    cert_data: Union[bytes, str]
) -> Iterator[x509.Certificate]:
    """
    Load PEM/DER-encoded certificates from in-memory data.
    A PEM bundle may contain several certificates (e.g. a chain, leaf first);
    their order is preserved, which matters for ``x5c`` and ``x5t#s``.

    :param cert_data:
        PEM text, or PEM/DER bytes.
    :return:
        A generator producing :class:`.asn1crypto.x509.Certificate` objects.
    """
    if isinstance(cert_data, str):
        cert_data = cert_data.encode('ascii')
    if pem.detect(cert_data):
        for type_name, _, der in pem.unarmor(cert_data, multiple=True):
            if type_name is None or type_name.lower() == 'certificate':
                yield x509.Certificate.load(der)
    else:
        yield x509.Certificate.load(cert_data)


def load_cert_from_pemder(cert_file) -> x509.Certificate:
    """
    Load a single PEM/DER-encoded certificate from a file.

    :param cert_file:
        A file name.
    :return:
        An :class:`.asn1crypto.x509.Certificate` object.
    """
    certs: List[x509.Certificate] = list(load_certs_from_pemder([cert_file]))
    if len(certs) != 1:
        raise ValueError(f"Number of certs in {cert_file} should be exactly 1")
    return certs[0]


def load_private_key_from_pemder(
    key_file, passphrase: Optional[bytes]
) -> keys.PrivateKeyInfo:
    """
    Load a PEM/DER-encoded private key from a file.

    :param key_file:
        File to read the key from.
    :param passphrase:
        Key passphrase.
    :return:
        A private key encoded as an unencrypted PKCS#8 PrivateKeyInfo object.
    """
    with open(key_file, 'rb') as f:
        key_bytes = f.read()
    return load_private_key_from_pemder_data(key_bytes, passphrase=passphrase)


def load_private_key_from_pemder_data(
    key_bytes: bytes, passphrase: Optional[bytes]
) -> keys.PrivateKeyInfo:
    """
    Load a PEM/DER-encoded private key from binary data.
    Both PKCS#1 (``RSA PRIVATE KEY``) and PKCS#8 PEM files are accepted.

    :param key_bytes:
        ``bytes`` object to read the key from.
    :param passphrase:
        Key passphrase.
    :return:
        A private key encoded as an unencrypted PKCS#8 PrivateKeyInfo object.
    """
    load_fun = (
        serialization.load_pem_private_key
        if pem.detect(key_bytes)
        else serialization.load_der_private_key
    )
    return translate_pyca_cryptography_key_to_asn1(
        load_fun(key_bytes, password=passphrase)
    )
