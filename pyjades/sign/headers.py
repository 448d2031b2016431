"""
JAdES header parameters.

This module contains the value types for the header parameters defined in
ETSI TS 119 182-1 and in the JWS specifications (:rfc:`7515`, :rfc:`7797`),
the :class:`ProtectedHeader` that bundles them, and the
:class:`ProtectedHeaderBuilder` that accumulates them while enforcing the
rules that apply to each individual parameter.

All certificates can be supplied either as
:class:`asn1crypto.x509.Certificate` objects or as ``cryptography``
certificates.
"""

import base64
import dataclasses
import enum
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from cryptography.hazmat.primitives import hashes

from ..keys.internal import certificate_der
from ..misc import b64url_encode
from .algorithms import get_algorithm
from .general import (
    InsufficientCertificatesError,
    InvalidHeaderError,
    get_pyca_cryptography_hash,
)

__all__ = [
    'HTTP_HEADERS_MECHANISM',
    'OBJECT_ID_BY_URI_MECHANISM',
    'OBJECT_ID_BY_URI_HASH_MECHANISM',
    'DEFAULT_CERT_DIGEST_ALGORITHM',
    'SigD',
    'CertDigest',
    'GenericCommitment',
    'CommitmentType',
    'SignaturePolicy',
    'ProductionPlace',
    'ProtectedHeader',
    'UnprotectedHeader',
    'ProtectedHeaderBuilder',
]

logger = logging.getLogger(__name__)

HTTP_HEADERS_MECHANISM = 'http://uri.etsi.org/19182/HttpHeaders'
"""
``sigD`` mechanism identifier for signatures over HTTP header fields.
Selecting this mechanism forces ``b64`` to ``false``.
"""

OBJECT_ID_BY_URI_MECHANISM = 'http://uri.etsi.org/19182/ObjectIdByURI'
OBJECT_ID_BY_URI_HASH_MECHANISM = 'http://uri.etsi.org/19182/ObjectIdByURIHash'

DEFAULT_CERT_DIGEST_ALGORITHM = 'sha-512'
"""
Digest algorithm used for ``x5t#o`` and ``x5t#s`` certificate references.
"""

CertificateLike = Any


def _digest_b64url(data: bytes, algorithm: str) -> str:
    md = hashes.Hash(get_pyca_cryptography_hash(algorithm))
    md.update(data)
    return b64url_encode(md.finalize())


@dataclass(frozen=True)
class SigD:
    """
    Detached data objects descriptor (``sigD``), see TS 119 182-1 § 5.2.8.
    """

    m_id: str
    """
    Mechanism identifier, e.g. :const:`HTTP_HEADERS_MECHANISM`.
    """

    pars: Sequence[str]
    """
    Mechanism parameters, e.g. the names of the signed HTTP header fields
    or the URIs of the detached data objects.
    """

    hash: str = 'sha-256'
    """
    Hash algorithm name.
    """

    hash_v: Optional[Sequence[str]] = None
    """
    Base64url-encoded digests of the detached objects
    (for :const:`OBJECT_ID_BY_URI_HASH_MECHANISM`).
    """

    ctys: Optional[Sequence[str]] = None
    """
    Content types of the detached objects.
    """

    def as_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            'mId': self.m_id,
            'pars': list(self.pars),
            'hash': self.hash,
        }
        if self.hash_v is not None:
            result['hashV'] = list(self.hash_v)
        if self.ctys is not None:
            result['ctys'] = list(self.ctys)
        return result

    @classmethod
    def from_dict(cls, value: dict) -> 'SigD':
        try:
            return SigD(
                m_id=value['mId'],
                pars=tuple(value['pars']),
                hash=value.get('hash', 'sha-256'),
                hash_v=value.get('hashV'),
                ctys=value.get('ctys'),
            )
        except (KeyError, TypeError) as e:
            raise InvalidHeaderError('sigD', f"malformed value: {e}") from e


@dataclass(frozen=True)
class CertDigest:
    """
    Certificate digest reference, as used by ``x5t#o`` and ``x5t#s``.
    """

    dig_alg: str
    dig_val: str

    @classmethod
    def from_certificate(
        cls, cert: CertificateLike, dig_alg=DEFAULT_CERT_DIGEST_ALGORITHM
    ) -> 'CertDigest':
        return CertDigest(
            dig_alg=dig_alg,
            dig_val=_digest_b64url(certificate_der(cert), dig_alg),
        )

    @classmethod
    def from_dict(cls, value: dict, field_name: str) -> 'CertDigest':
        try:
            return CertDigest(value['digAlg'], value['digVal'])
        except (KeyError, TypeError) as e:
            raise InvalidHeaderError(
                field_name, f"malformed certificate digest: {e}"
            ) from e

    def as_dict(self) -> Dict[str, str]:
        return {'digAlg': self.dig_alg, 'digVal': self.dig_val}


@enum.unique
class GenericCommitment(enum.Enum):
    """
    Commitment types defined in ETSI TS 119 172-1.
    """

    PROOF_OF_ORIGIN = 'ProofOfOrigin'
    PROOF_OF_RECEIPT = 'ProofOfReceipt'
    PROOF_OF_DELIVERY = 'ProofOfDelivery'
    PROOF_OF_SENDER = 'ProofOfSender'
    PROOF_OF_APPROVAL = 'ProofOfApproval'
    PROOF_OF_CREATION = 'ProofOfCreation'

    @property
    def uri(self) -> str:
        return f'http://uri.etsi.org/01903/v1.2.2#{self.value}'

    @property
    def commitment(self) -> 'CommitmentType':
        return CommitmentType(id=self.uri)


@dataclass(frozen=True)
class CommitmentType:
    """
    Signer commitment (``srCms`` entry).
    """

    id: str
    description: Optional[str] = None
    qualifiers: Optional[Sequence[Any]] = None

    def as_dict(self) -> Dict[str, Any]:
        comm_id: Dict[str, Any] = {'id': self.id}
        if self.description is not None:
            comm_id['desc'] = self.description
        result: Dict[str, Any] = {'commId': comm_id}
        if self.qualifiers:
            result['commQuals'] = list(self.qualifiers)
        return result


@dataclass(frozen=True)
class SignaturePolicy:
    """
    Signature policy identifier (``sigPId``).

    .. warning::
        The policy is embedded at face value. It is the caller's
        responsibility to make sure that its provisions are adhered to.
    """

    id: str
    """
    Policy identifier, typically an OID as a ``urn:oid:`` URN.
    """

    dig_alg: Optional[str] = None
    dig_val: Optional[str] = None
    qualifiers: Optional[Sequence[Any]] = None

    def as_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {'id': self.id}
        if self.dig_alg is not None:
            result['digAlg'] = self.dig_alg
        if self.dig_val is not None:
            result['digVal'] = self.dig_val
        if self.qualifiers:
            result['spQs'] = list(self.qualifiers)
        return result


@dataclass(frozen=True)
class ProductionPlace:
    """
    Signature production place (``sigPl``).
    """

    country: Optional[str] = None
    locality: Optional[str] = None
    region: Optional[str] = None
    postal_code: Optional[str] = None
    post_office_box_number: Optional[str] = None
    street_address: Optional[str] = None

    def as_dict(self) -> Dict[str, str]:
        names = {
            'country': 'addressCountry',
            'locality': 'addressLocality',
            'region': 'addressRegion',
            'postal_code': 'postalCode',
            'post_office_box_number': 'postOfficeBoxNumber',
            'street_address': 'streetAddress',
        }
        return {
            names[f.name]: getattr(self, f.name)
            for f in dataclasses.fields(self)
            if getattr(self, f.name) is not None
        }


# attribute name -> header parameter name, in serialisation order
_HEADER_PARAMS = {
    'alg': 'alg',
    'kid': 'kid',
    'typ': 'typ',
    'cty': 'cty',
    'b64': 'b64',
    'iat': 'iat',
    'signed_at': 'signedAt',
    'jti': 'jti',
    'x5u': 'x5u',
    'x5c': 'x5c',
    'x5t_s256': 'x5t#256',
    'x5t_o': 'x5t#o',
    'x5t_s': 'x5t#s',
    'sig_d': 'sigD',
    'sr_cms': 'srCms',
    'sig_pid': 'sigPId',
    'sig_pl': 'sigPl',
}

RESERVED_HEADER_PARAMS = frozenset(_HEADER_PARAMS.values()) | {'crit'}


def _serialise(value):
    if hasattr(value, 'as_dict'):
        return value.as_dict()
    elif isinstance(value, (list, tuple)):
        return [_serialise(v) for v in value]
    return value


@dataclass
class ProtectedHeader:
    """
    The JAdES protected header: a fixed set of known parameters, plus
    an ``extensions`` mapping for any other parameters.
    """

    alg: Optional[str] = None
    kid: Optional[str] = None
    typ: Optional[str] = None
    cty: Optional[str] = None
    b64: Optional[bool] = None
    """
    Only ``False`` is ever stored; ``None`` means the JWS default (``true``).
    """
    iat: Optional[int] = None
    signed_at: Optional[int] = None
    jti: Optional[str] = None
    x5u: Optional[str] = None
    x5c: Optional[List[str]] = None
    x5t_s256: Optional[str] = None
    x5t_o: Optional[CertDigest] = None
    x5t_s: Optional[List[CertDigest]] = None
    sig_d: Optional[SigD] = None
    sr_cms: Optional[List[CommitmentType]] = None
    sig_pid: Optional[SignaturePolicy] = None
    sig_pl: Optional[ProductionPlace] = None
    extensions: Dict[str, Any] = field(default_factory=dict)

    @property
    def crit(self) -> List[str]:
        """
        Header parameters that a verifier must understand.
        This is derived from the other parameters, and cannot be set directly.
        """
        result = []
        if self.b64 is False:
            result.append('b64')
        if self.sig_d is not None:
            result.append('sigD')
        return result

    def as_dict(self) -> Dict[str, Any]:
        """
        Render the header as a JSON-compatible dictionary.
        """
        result: Dict[str, Any] = {}
        for attr_name, param_name in _HEADER_PARAMS.items():
            value = getattr(self, attr_name)
            if value is not None:
                result[param_name] = _serialise(value)
        crit = self.crit
        if crit:
            result['crit'] = crit
        result.update(self.extensions)
        return result

    @classmethod
    def from_dict(cls, header: dict) -> 'ProtectedHeader':
        """
        Parse a header from a JSON-compatible dictionary.
        Unknown parameters end up in :attr:`extensions`; ``crit`` is ignored
        since it is always recomputed.
        """
        by_param = {v: k for k, v in _HEADER_PARAMS.items()}
        kwargs: Dict[str, Any] = {}
        extensions = {}
        for param_name, value in header.items():
            if param_name == 'crit':
                continue
            try:
                attr_name = by_param[param_name]
            except KeyError:
                extensions[param_name] = value
                continue
            if attr_name == 'sig_d' and isinstance(value, dict):
                value = SigD.from_dict(value)
            elif attr_name == 'x5t_o':
                value = CertDigest.from_dict(value, 'x5t#o')
            elif attr_name == 'x5t_s':
                if not isinstance(value, list):
                    raise InvalidHeaderError('x5t#s', "must be a list")
                value = [CertDigest.from_dict(v, 'x5t#s') for v in value]
            elif attr_name == 'b64' and value is True:
                value = None
            kwargs[attr_name] = value
        return ProtectedHeader(extensions=extensions, **kwargs)


@dataclass(frozen=True)
class UnprotectedHeader:
    """
    Unprotected header values attached to a signature entry.
    The ``etsiU`` value (e.g. signature timestamp tokens) is passed through
    verbatim.
    """

    etsi_u: Optional[List[Any]] = None
    kid: Optional[str] = None
    kb_jwt: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        if self.kid is not None:
            result['kid'] = self.kid
        if self.kb_jwt is not None:
            result['kb_jwt'] = self.kb_jwt
        if self.etsi_u is not None:
            result['etsiU'] = self.etsi_u
        return result


def _now() -> int:
    return int(time.time())


class ProtectedHeaderBuilder:
    """
    Fluent builder for :class:`ProtectedHeader` values.

    Every setter validates its own argument immediately, raises a
    :class:`~pyjades.sign.general.SigningError` subclass on violation, and
    returns the builder.
    """

    def __init__(self, header: Optional[ProtectedHeader] = None):
        self._protected_header = (
            header if header is not None else ProtectedHeader()
        )

    @property
    def protected_header(self) -> ProtectedHeader:
        return self._protected_header

    def set_protected_header(self, header: Union[ProtectedHeader, dict]):
        """
        Replace the protected header wholesale.

        :param header:
            A :class:`ProtectedHeader`, or a JSON-style dictionary.
        :raises InvalidAlgorithmError:
            If the header does not specify an algorithm, or specifies
            ``none``.
        :raises InsufficientCertificatesError:
            If ``x5t#s`` references fewer than two certificates.
        :raises InvalidHeaderError:
            If a certificate digest reference is malformed.
        """
        if isinstance(header, dict):
            header = ProtectedHeader.from_dict(header)
        else:
            header = dataclasses.replace(
                header, extensions=dict(header.extensions)
            )
        header.alg = get_algorithm(header.alg).value
        if header.x5t_s is not None and len(header.x5t_s) < 2:
            raise InsufficientCertificatesError('x5t#s', len(header.x5t_s))
        if header.sig_d is not None and header.sig_d.m_id == (
            HTTP_HEADERS_MECHANISM
        ):
            header.b64 = False
        self._protected_header = header
        return self

    def set_algorithm(self, alg):
        """
        Set the signature algorithm.

        :raises InvalidAlgorithmError:
            If ``alg`` is empty or ``none``.
        :raises UnsupportedAlgorithmError:
            If ``alg`` is not a supported JWS algorithm.
        """
        self._protected_header.alg = get_algorithm(alg).value
        return self

    def set_typ(self, typ: str):
        self._protected_header.typ = typ
        return self

    def set_cty(self, cty: str):
        self._protected_header.cty = cty
        return self

    def set_jti(self, jti: str):
        self._protected_header.jti = jti
        return self

    def set_b64(self, b64: bool):
        """
        Control base64url-encoding of the payload (:rfc:`7797`).
        ``True`` is the JWS default and is represented by omitting the
        parameter.

        :raises InvalidHeaderError:
            If ``b64`` is ``True`` while ``sigD`` uses
            :const:`HTTP_HEADERS_MECHANISM`.
        """
        sig_d = self._protected_header.sig_d
        if b64 and sig_d is not None and sig_d.m_id == HTTP_HEADERS_MECHANISM:
            raise InvalidHeaderError(
                'b64', "must be false with the HttpHeaders sigD mechanism"
            )
        self._protected_header.b64 = None if b64 else False
        return self

    def set_issued_at(self, sec: Optional[int] = None):
        """
        Set ``iat``. Defaults to the current time.
        """
        self._protected_header.iat = _now() if sec is None else int(sec)
        return self

    def set_signed_at(self, sec: Optional[int] = None):
        """
        Set ``signedAt``. Defaults to the current time.
        """
        self._protected_header.signed_at = _now() if sec is None else int(sec)
        return self

    def set_sigd(self, sigd: SigD):
        """
        Set the detached data objects descriptor.

        If the mechanism is :const:`HTTP_HEADERS_MECHANISM`, ``b64`` is set
        to ``false`` (TS 119 182-1 § 5.1.10).
        """
        self._protected_header.sig_d = sigd
        if sigd.m_id == HTTP_HEADERS_MECHANISM:
            logger.debug(
                "sigD uses the HttpHeaders mechanism, setting b64 to false"
            )
            self.set_b64(False)
        return self

    def set_x5u(self, uri: str):
        self._protected_header.x5u = uri
        return self

    def set_x5c(self, certs: Iterable[CertificateLike]):
        """
        Embed a certificate chain (signer's certificate first).
        """
        encoded = [
            base64.b64encode(certificate_der(cert)).decode('ascii')
            for cert in certs
        ]
        if not encoded:
            raise InvalidHeaderError('x5c', "at least one certificate needed")
        self._protected_header.x5c = encoded
        return self

    def set_x5t_s256(self, cert: CertificateLike):
        """
        Reference the signer's certificate by its SHA-256 thumbprint.
        """
        self._protected_header.x5t_s256 = _digest_b64url(
            certificate_der(cert), 'sha256'
        )
        return self

    def set_x5t_o(
        self, cert: CertificateLike, dig_alg=DEFAULT_CERT_DIGEST_ALGORITHM
    ):
        """
        Reference the signer's certificate by a digest (``x5t#o``).
        """
        self._protected_header.x5t_o = CertDigest.from_certificate(
            cert, dig_alg
        )
        return self

    def set_x5ts(
        self,
        certs: Sequence[CertificateLike],
        dig_alg=DEFAULT_CERT_DIGEST_ALGORITHM,
    ):
        """
        Reference a certificate chain by digests (``x5t#s``).

        :raises InsufficientCertificatesError:
            If fewer than two certificates are given; use :meth:`set_x5t_o`
            to reference a single certificate.
        """
        certs = list(certs)
        if len(certs) < 2:
            raise InsufficientCertificatesError('x5t#s', len(certs))
        self._protected_header.x5t_s = [
            CertDigest.from_certificate(cert, dig_alg) for cert in certs
        ]
        return self

    def set_commitment_types(
        self, *commitments: Union[CommitmentType, GenericCommitment]
    ):
        """
        Set the signer's commitments (``srCms``).
        """
        self._protected_header.sr_cms = [
            c.commitment if isinstance(c, GenericCommitment) else c
            for c in commitments
        ]
        return self

    def set_signature_policy(self, policy: SignaturePolicy):
        self._protected_header.sig_pid = policy
        return self

    def set_production_place(self, place: ProductionPlace):
        self._protected_header.sig_pl = place
        return self

    def set_extension(self, name: str, value):
        """
        Set a header parameter not covered by any of the other setters.

        :raises InvalidHeaderError:
            If ``name`` is managed by a dedicated setter.
        """
        if name in RESERVED_HEADER_PARAMS:
            raise InvalidHeaderError(
                name, "use the dedicated setter for this header parameter"
            )
        self._protected_header.extensions[name] = value
        return self
