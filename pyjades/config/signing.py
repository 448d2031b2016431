"""
Configuration of JAdES signatures and of the key material used to
produce them.

Example (YAML)::

    signature:
        algorithm: ES256
        key-id: signer-1
        cert-references: [x5c, x5t#256]
        commitment-types: proof-of-origin
        sigd:
            m-id: http://uri.etsi.org/19182/HttpHeaders
            pars: ['(request-target)', 'digest']
    keys:
        key-file: signer.key.pem
        cert-file: signer.cert.pem
        other-certs: ca-chain.cert.pem
"""

import enum
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from asn1crypto import keys, x509

from ..keys import (
    load_cert_from_pemder,
    load_certs_from_pemder,
    load_private_key_from_pemder,
)
from ..sign.algorithms import get_algorithm
from ..sign.general import SigningError
from ..sign.headers import (
    CommitmentType,
    GenericCommitment,
    SigD,
    SignaturePolicy,
)
from ..sign.token import JAdESToken
from .api import ConfigurableMixin, ensure_strings
from .errors import ConfigurationError

__all__ = [
    'CertReference',
    'PemDerKeyConfig',
    'SigDConfig',
    'JAdESSignatureConfig',
    'JAdESSigningSetup',
]


@enum.unique
class CertReference(enum.Enum):
    """
    Ways to reference the signer's certificate from the protected header.
    """

    X5C = 'x5c'
    X5T_S256 = 'x5t#256'
    X5T_O = 'x5t#o'
    X5T_S = 'x5t#s'

    @classmethod
    def parse(cls, value: str) -> 'CertReference':
        try:
            return CertReference(value.lower())
        except ValueError:
            raise ConfigurationError(
                f"'{value}' is not a valid certificate reference; expected "
                f"one of {', '.join(ref.value for ref in cls)}."
            )


@dataclass(frozen=True)
class PemDerKeyConfig(ConfigurableMixin):
    """
    Key material in PEM or DER files.
    """

    key_file: str
    """Signer's private key."""

    cert_file: Optional[str] = None
    """Signer's certificate."""

    other_certs: Optional[List[x509.Certificate]] = None
    """Other certificates in the signer's chain, in chain order."""

    key_passphrase: Optional[bytes] = None
    """Signer's key passphrase (if relevant)."""

    @classmethod
    def process_entries(cls, config_dict):
        super().process_entries(config_dict)

        other_certs = config_dict.get('other_certs', ())
        other_certs = ensure_strings(other_certs, 'other-certs')
        try:
            config_dict['other_certs'] = list(
                load_certs_from_pemder(other_certs)
            )
        except (IOError, ValueError) as e:
            raise ConfigurationError(
                f"Could not load certificates: {e}"
            ) from e

        passphrase = config_dict.get('key_passphrase', None)
        if isinstance(passphrase, str):
            config_dict['key_passphrase'] = passphrase.encode('utf8')

    def load_key(self) -> keys.PrivateKeyInfo:
        try:
            return load_private_key_from_pemder(
                self.key_file, passphrase=self.key_passphrase
            )
        except (IOError, ValueError, TypeError) as e:
            raise ConfigurationError(
                f"Could not load private key from {self.key_file}: {e}"
            ) from e

    def load_certs(self) -> List[x509.Certificate]:
        """
        Load the signer's certificate chain, signer's certificate first.
        """
        certs = []
        if self.cert_file is not None:
            try:
                certs.append(load_cert_from_pemder(self.cert_file))
            except (IOError, ValueError) as e:
                raise ConfigurationError(
                    f"Could not load certificate from {self.cert_file}: {e}"
                ) from e
        certs.extend(self.other_certs or ())
        return certs


@dataclass(frozen=True)
class SigDConfig(ConfigurableMixin):
    """
    Settings for the ``sigD`` header parameter.
    """

    m_id: str
    pars: List[str]
    hash: str = 'sha-256'
    hash_v: Optional[List[str]] = None
    ctys: Optional[List[str]] = None

    @classmethod
    def process_entries(cls, config_dict):
        super().process_entries(config_dict)
        if 'pars' in config_dict:
            config_dict['pars'] = ensure_strings(config_dict['pars'], 'pars')
        for key in ('hash_v', 'ctys'):
            if key in config_dict:
                config_dict[key] = ensure_strings(
                    config_dict[key], key.replace('_', '-')
                )

    def to_sigd(self) -> SigD:
        return SigD(
            m_id=self.m_id,
            pars=tuple(self.pars),
            hash=self.hash,
            hash_v=self.hash_v,
            ctys=self.ctys,
        )


def _parse_commitment(value: str) -> CommitmentType:
    if '://' in value or value.startswith('urn:'):
        return CommitmentType(id=value)
    try:
        return GenericCommitment[value.upper().replace('-', '_')].commitment
    except KeyError:
        known = ', '.join(
            c.name.lower().replace('_', '-') for c in GenericCommitment
        )
        raise ConfigurationError(
            f"'{value}' is not a known commitment type; use a URI or one of "
            f"{known}."
        )


@dataclass(frozen=True)
class JAdESSignatureConfig(ConfigurableMixin):
    """
    Settings for a JAdES signature.
    """

    algorithm: str
    """JWS signature algorithm, e.g. ``ES256``."""

    key_id: Optional[str] = None
    """Key identifier (``kid``)."""

    cert_references: List[CertReference] = field(
        default_factory=lambda: [CertReference.X5C]
    )
    """How to reference the signer's certificate."""

    sigd: Optional[SigDConfig] = None
    """Detached data objects descriptor, for detached signatures."""

    content_type: Optional[str] = None
    """Payload content type (``cty``)."""

    token_type: Optional[str] = None
    """Token type (``typ``)."""

    x5u: Optional[str] = None
    """URL of the signer's certificate chain."""

    commitment_types: Optional[List[CommitmentType]] = None
    """Signer commitments (``srCms``)."""

    signature_policy: Optional[str] = None
    """Signature policy identifier (``sigPId``), taken at face value."""

    signed_at: bool = True
    """Add a ``signedAt`` header parameter with the signing time."""

    issued_at: bool = False
    """Add an ``iat`` header parameter with the signing time."""

    b64: bool = True
    """Base64url-encode the payload before signing."""

    disclosure_frame: Optional[Dict] = None
    """SD-JWT disclosure frame for attached payloads."""

    @classmethod
    def process_entries(cls, config_dict):
        super().process_entries(config_dict)

        if 'algorithm' in config_dict:
            try:
                config_dict['algorithm'] = get_algorithm(
                    config_dict['algorithm']
                ).value
            except SigningError as e:
                raise ConfigurationError(e.msg) from e

        if 'cert_references' in config_dict:
            refs = ensure_strings(
                config_dict['cert_references'], 'cert-references'
            )
            config_dict['cert_references'] = [
                CertReference.parse(ref) for ref in refs
            ]

        if 'commitment_types' in config_dict:
            commitments = ensure_strings(
                config_dict['commitment_types'], 'commitment-types'
            )
            config_dict['commitment_types'] = [
                _parse_commitment(c) for c in commitments
            ]

        frame = config_dict.get('disclosure_frame', None)
        if frame is not None and not isinstance(frame, dict):
            raise ConfigurationError("'disclosure-frame' must be a dictionary")

    def apply(
        self, token: JAdESToken, certs: List[x509.Certificate]
    ) -> JAdESToken:
        """
        Configure a token according to these settings.

        :param token:
            The token to configure.
        :param certs:
            The signer's certificate chain, signer's certificate first.
        :return:
            The token.
        """
        token.set_algorithm(self.algorithm).set_b64(self.b64)
        if certs:
            for ref in self.cert_references:
                if ref == CertReference.X5C:
                    token.set_x5c(certs)
                elif ref == CertReference.X5T_S256:
                    token.set_x5t_s256(certs[0])
                elif ref == CertReference.X5T_O:
                    token.set_x5t_o(certs[0])
                elif ref == CertReference.X5T_S:
                    token.set_x5ts(certs)
        if self.x5u is not None:
            token.set_x5u(self.x5u)
        if self.content_type is not None:
            token.set_cty(self.content_type)
        if self.token_type is not None:
            token.set_typ(self.token_type)
        if self.sigd is not None:
            token.set_sigd(self.sigd.to_sigd())
        if self.commitment_types:
            token.set_commitment_types(*self.commitment_types)
        if self.signature_policy is not None:
            token.set_signature_policy(SignaturePolicy(self.signature_policy))
        if self.signed_at:
            token.set_signed_at()
        if self.issued_at:
            token.set_issued_at()
        if self.disclosure_frame is not None:
            token.set_disclosure_frame(self.disclosure_frame)
        return token


@dataclass(frozen=True)
class JAdESSigningSetup(ConfigurableMixin):
    """
    Named signing setup: signature settings plus the key material to use.
    """

    signature: JAdESSignatureConfig
    keys: PemDerKeyConfig
