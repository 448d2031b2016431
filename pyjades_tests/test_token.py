import hashlib
import json

import pytest
from freezegun import freeze_time

from pyjades.jws import GeneralJWS, JWSSignature
from pyjades.misc import b64url_decode, b64url_encode
from pyjades.sdjwt import IssuanceEngine
from pyjades.sign import (
    HTTP_HEADERS_MECHANISM,
    AlgorithmNotSetError,
    GenericCommitment,
    InvalidAlgorithmError,
    InvalidHeaderError,
    JAdESToken,
    MissingDetachedDescriptorError,
    NotSignedYetError,
    PayloadEncoder,
    PycaSigningPrimitive,
    SigD,
    SignatureEngine,
    UnprotectedHeader,
)
from pyjades.sign.payload import encode_protected_header
from pyjades_tests.samples import (
    ALG_KEY_PAIRS,
    ROOT_CERT,
    SIGNER_CERTS,
    SIGNER_KEYS,
)
from pyjades_tests.signing_commons import (
    decode_protected,
    verify_jws,
    verify_raw,
)

PAYLOAD = {'sub': '1234', 'name': 'Jane Doe', 'roles': ['admin']}
HTTP_SIGD = SigD(m_id=HTTP_HEADERS_MECHANISM, pars=('(created)', 'digest'))


def _detached_token(alg='ES256', key_name='p256'):
    token = JAdESToken()
    token.set_algorithm(alg).set_sigd(HTTP_SIGD)
    token.set_x5c([SIGNER_CERTS[key_name], ROOT_CERT])
    return token


@pytest.mark.parametrize('alg, key_name', ALG_KEY_PAIRS)
def test_detached_signature(alg, key_name):
    token = _detached_token(alg, key_name)
    token.sign(SIGNER_KEYS[key_name], kid='signer-1')

    jws = token.general_jws
    assert jws.payload == ''
    assert len(jws.signatures) == 1
    sig = jws.signatures[0]
    header = verify_jws(jws, SIGNER_KEYS[key_name].public_key())
    assert header['alg'] == alg
    assert header['kid'] == 'signer-1'
    assert header['b64'] is False
    assert header['crit'] == ['b64', 'sigD']
    assert header['sigD']['mId'] == HTTP_HEADERS_MECHANISM
    assert len(header['x5c']) == 2

    # the signing input is the encoded header followed by a single dot
    verify_raw(
        alg,
        f"{sig.protected}.".encode('ascii'),
        sig.signature,
        SIGNER_KEYS[key_name].public_key(),
    )


def test_detached_signing_input_matches_header():
    token = _detached_token()
    token.sign(SIGNER_KEYS['p256'], kid='abc')
    sig = token.general_jws.signatures[0]
    expected_header = token.protected_header.as_dict()
    expected_header['kid'] = 'abc'
    assert decode_protected(sig.protected) == expected_header


def test_detached_requires_sigd():
    token = JAdESToken().set_algorithm('ES256')
    with pytest.raises(MissingDetachedDescriptorError):
        token.sign(SIGNER_KEYS['p256'])
    assert not token.signed


def test_detached_without_sigd_opt_out():
    token = JAdESToken(payload_encoder=PayloadEncoder(require_sigd=False))
    token.set_algorithm('ES256')
    token.sign(SIGNER_KEYS['p256'])
    jws = token.general_jws
    assert jws.payload == ''
    header = verify_jws(jws, SIGNER_KEYS['p256'].public_key())
    assert 'crit' not in header


def test_algorithm_not_set():
    token = JAdESToken(PAYLOAD)
    with pytest.raises(AlgorithmNotSetError):
        token.sign(SIGNER_KEYS['p256'])


def test_algorithm_none_rejected_up_front():
    token = JAdESToken(PAYLOAD)
    with pytest.raises(InvalidAlgorithmError):
        token.set_algorithm('none')
    with pytest.raises(AlgorithmNotSetError):
        token.sign(SIGNER_KEYS['p256'])


@pytest.mark.parametrize('accessor', ['to_json', 'to_dict'])
def test_not_signed_yet(accessor):
    token = JAdESToken(PAYLOAD).set_algorithm('ES256')
    with pytest.raises(NotSignedYetError) as exc_info:
        getattr(token, accessor)()
    assert exc_info.value.accessor == accessor


def test_not_signed_yet_general_jws():
    token = JAdESToken(PAYLOAD)
    assert not token.signed
    with pytest.raises(NotSignedYetError):
        token.general_jws


@pytest.mark.parametrize('alg, key_name', ALG_KEY_PAIRS)
def test_attached_signature(alg, key_name):
    token = JAdESToken(PAYLOAD).set_algorithm(alg)
    token.set_x5t_s256(SIGNER_CERTS[key_name])
    token.sign(SIGNER_KEYS[key_name])

    jws = token.general_jws
    header = verify_jws(jws, SIGNER_KEYS[key_name].public_key())
    assert header['alg'] == alg
    assert 'x5t#256' in header
    sd_payload = json.loads(b64url_decode(jws.payload))
    # every top-level claim becomes selectively disclosable
    assert len(sd_payload['_sd']) == 3
    assert sd_payload['_sd_alg'] == 'sha-256'
    disclosures = jws.signatures[0].header['disclosures']
    claims = {
        json.loads(b64url_decode(d))[1]: json.loads(b64url_decode(d))[2]
        for d in disclosures
    }
    assert claims == PAYLOAD


def test_attached_with_frame():
    token = JAdESToken(PAYLOAD).set_algorithm('ES384')
    token.set_disclosure_frame({'_sd': ['name']})
    token.sign(SIGNER_KEYS['p384'])
    jws = token.general_jws
    verify_jws(jws, SIGNER_KEYS['p384'].public_key())
    sd_payload = json.loads(b64url_decode(jws.payload))
    assert sd_payload['sub'] == '1234'
    assert sd_payload['roles'] == ['admin']
    assert 'name' not in sd_payload
    assert len(jws.signatures[0].header['disclosures']) == 1


def test_attached_unencoded_payload():
    token = JAdESToken(PAYLOAD).set_algorithm('EdDSA').set_b64(False)
    token.set_disclosure_frame({})
    token.sign(SIGNER_KEYS['ed25519'])
    jws = token.general_jws
    assert json.loads(jws.payload) == PAYLOAD
    header = verify_jws(jws, SIGNER_KEYS['ed25519'].public_key())
    assert header['crit'] == ['b64']


def test_full_header():
    token = JAdESToken(PAYLOAD)
    (
        token.set_algorithm('PS256')
        .set_typ('jose+json')
        .set_cty('json')
        .set_x5c([SIGNER_CERTS['rsa']])
        .set_x5ts([SIGNER_CERTS['rsa'], ROOT_CERT])
        .set_commitment_types(GenericCommitment.PROOF_OF_APPROVAL)
    )
    with freeze_time('2020-08-01'):
        token.set_signed_at()
    token.sign(SIGNER_KEYS['rsa'], kid='rsa-1')
    header = verify_jws(token.general_jws, SIGNER_KEYS['rsa'].public_key())
    assert list(header) == [
        'alg',
        'kid',
        'typ',
        'cty',
        'signedAt',
        'x5c',
        'x5t#s',
        'srCms',
    ]
    assert header['signedAt'] == 1596240000


def test_etsi_u_passthrough():
    etsi_u = [{'sigTst': {'tstTokens': [{'val': 'MIIGTEST'}]}}]
    token = _detached_token()
    token.set_unprotected_header(UnprotectedHeader(etsi_u=etsi_u))
    token.sign(SIGNER_KEYS['p256'])
    output = json.loads(token.to_json())
    assert output['signatures'][0]['header'] == {'etsiU': etsi_u}


def test_etsi_u_next_to_disclosures():
    etsi_u = [{'x': 'y'}]
    token = JAdESToken(PAYLOAD).set_algorithm('ES256')
    token.set_unprotected_header(UnprotectedHeader(etsi_u=etsi_u))
    token.sign(SIGNER_KEYS['p256'])
    header = token.to_dict()['signatures'][0]['header']
    assert header['etsiU'] == etsi_u
    assert len(header['disclosures']) == 3


def test_output_format():
    token = _detached_token()
    token.sign(SIGNER_KEYS['p256'])
    output = token.to_dict()
    assert set(output) == {'payload', 'signatures'}
    assert json.loads(token.to_json()) == output
    assert GeneralJWS.from_dict(output) == token.general_jws
    assert set(output['signatures'][0]) == {'protected', 'signature'}


def test_append_signature():
    token = JAdESToken(PAYLOAD).set_algorithm('ES256')
    token.sign(SIGNER_KEYS['p256'], kid='first')
    payload_before = token.general_jws.payload
    disclosures = token.general_jws.signatures[0].header['disclosures']

    token.set_algorithm('EdDSA').sign(SIGNER_KEYS['ed448'], kid='second')
    jws = token.general_jws
    assert jws.payload == payload_before
    assert len(jws.signatures) == 2
    header1 = verify_jws(jws, SIGNER_KEYS['p256'].public_key(), index=0)
    header2 = verify_jws(jws, SIGNER_KEYS['ed448'].public_key(), index=1)
    assert (header1['alg'], header1['kid']) == ('ES256', 'first')
    assert (header2['alg'], header2['kid']) == ('EdDSA', 'second')
    assert jws.signatures[0].header['disclosures'] == disclosures
    assert jws.signatures[1].header is None


def test_append_detached_signature():
    token = _detached_token()
    token.sign(SIGNER_KEYS['p256'])
    token.set_algorithm('RS256').set_x5c([SIGNER_CERTS['rsa']])
    token.sign(SIGNER_KEYS['rsa'])
    jws = token.general_jws
    assert jws.payload == ''
    assert len(jws.signatures) == 2
    verify_jws(jws, SIGNER_KEYS['p256'].public_key(), index=0)
    verify_jws(jws, SIGNER_KEYS['rsa'].public_key(), index=1)


def test_append_b64_mismatch():
    token = JAdESToken(PAYLOAD).set_algorithm('ES256')
    token.sign(SIGNER_KEYS['p256'])
    token.set_b64(False)
    with pytest.raises(InvalidHeaderError) as exc_info:
        token.sign(SIGNER_KEYS['p256'])
    assert exc_info.value.field == 'b64'
    assert len(token.general_jws.signatures) == 1


def test_append_detached_requires_sigd():
    token = _detached_token()
    token.sign(SIGNER_KEYS['p256'])
    token.set_protected_header({'alg': 'ES256', 'b64': False})
    with pytest.raises(MissingDetachedDescriptorError):
        token.sign(SIGNER_KEYS['p256'])
    assert len(token.general_jws.signatures) == 1


def test_append_detached_without_sigd_opt_out():
    token = JAdESToken(payload_encoder=PayloadEncoder(require_sigd=False))
    token.set_algorithm('ES256')
    token.sign(SIGNER_KEYS['p256'])
    token.sign(SIGNER_KEYS['p256'], kid='second')
    assert len(token.general_jws.signatures) == 2
    verify_jws(token.general_jws, SIGNER_KEYS['p256'].public_key(), 1)


@pytest.mark.asyncio
async def test_async_sign():
    token = _detached_token('ES512', 'p521')
    result = await token.async_sign(SIGNER_KEYS['p521'], kid='async')
    assert result is token
    header = verify_jws(token.general_jws, SIGNER_KEYS['p521'].public_key())
    assert header['kid'] == 'async'
    assert len(b64url_decode(token.general_jws.signatures[0].signature)) == 132


class PlainIssuanceEngine(IssuanceEngine):
    """
    Issues the payload as-is, without any disclosures.
    """

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.frames = []

    async def async_issue(self, payload, disclosure_frame, sigs):
        self.frames.append(disclosure_frame)
        encoded_payload = b64url_encode(json.dumps(payload).encode('utf8'))
        signatures = []
        for spec in sigs:
            protected = b64url_encode(json.dumps(spec.header).encode('utf8'))
            signature = await spec.signer(f"{protected}.{encoded_payload}")
            signatures.append(
                JWSSignature(protected=protected, signature=signature)
            )
        return GeneralJWS(payload=encoded_payload, signatures=signatures)


def test_injected_issuance_engine():
    engines = []

    def _factory(sign_alg, hasher):
        engine = PlainIssuanceEngine(
            hash_alg='sha-256',
            sign_alg=sign_alg,
            hasher=hasher,
            salt_generator=None,
        )
        engines.append(engine)
        return engine

    frame = {'_sd': ['sub']}
    token = JAdESToken(
        PAYLOAD,
        payload_encoder=PayloadEncoder(issuance_engine_factory=_factory),
    )
    token.set_algorithm('RS256').set_disclosure_frame(frame)
    token.sign(SIGNER_KEYS['rsa'], kid='rsa')

    (engine,) = engines
    assert engine.sign_alg == 'RS256'
    assert engine.frames == [frame]
    jws = token.general_jws
    assert json.loads(b64url_decode(jws.payload)) == PAYLOAD
    header = verify_jws(jws, SIGNER_KEYS['rsa'].public_key())
    assert header['kid'] == 'rsa'


class RecordingPrimitive(PycaSigningPrimitive):
    def __init__(self):
        self.inputs = []

    def sign_raw(self, mechanism, data, private_key) -> bytes:
        self.inputs.append(data)
        return super().sign_raw(mechanism, data, private_key)


def test_injected_signing_primitive():
    primitive = RecordingPrimitive()
    token = JAdESToken(signature_engine=SignatureEngine(primitive=primitive))
    token.set_algorithm('ES256').set_sigd(HTTP_SIGD)
    token.sign(SIGNER_KEYS['p256'])
    protected = encode_protected_header(token.protected_header)
    assert primitive.inputs == [f"{protected}.".encode('ascii')]


class HashRecordingPrimitive(PycaSigningPrimitive):
    def __init__(self):
        self.hashed = []

    def hash(self, algorithm: str, data: bytes) -> bytes:
        self.hashed.append((algorithm, data))
        return super().hash(algorithm, data)


def test_disclosure_digests_use_signing_primitive():
    primitive = HashRecordingPrimitive()
    token = JAdESToken(
        {'sub': '1234', 'name': 'Jane Doe'},
        signature_engine=SignatureEngine(primitive=primitive),
    )
    token.set_algorithm('ES256').sign(SIGNER_KEYS['p256'])

    disclosures = token.general_jws.signatures[0].header['disclosures']
    assert len(disclosures) == 2
    assert [alg for alg, _ in primitive.hashed] == ['sha-256', 'sha-256']
    assert {data for _, data in primitive.hashed} == {
        d.encode('ascii') for d in disclosures
    }
    payload = json.loads(b64url_decode(token.general_jws.payload))
    assert payload['_sd_alg'] == 'sha-256'
    assert sorted(payload['_sd']) == sorted(
        b64url_encode(hashlib.sha256(d.encode('ascii')).digest())
        for d in disclosures
    )
