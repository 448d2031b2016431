import json

import pytest
import yaml
from asn1crypto import pem
from click.testing import CliRunner

from pyjades_tests.samples import (
    DUMMY_PASSPHRASE,
    ROOT_CERT,
    SIGNER_CERTS,
    key_pem,
)

PAYLOAD_PATH = 'payload.json'
SIGNED_OUTPUT_PATH = 'output.json'
PAYLOAD = {'iss': 'https://issuer.example.com', 'name': 'Jane Doe'}


# cli_runner is autouse to ensure it gets priority in the dependency graph
@pytest.fixture(scope="function", autouse=True)
def cli_runner():
    runner = CliRunner()
    with runner.isolated_filesystem():
        with open(PAYLOAD_PATH, 'w') as outf:
            json.dump(PAYLOAD, outf)
        yield runner


def _write_cert(cert, fname: str, use_pem: bool = True) -> str:
    with open(fname, 'wb') as outf:
        if use_pem:
            outf.write(pem.armor('CERTIFICATE', cert.dump()))
        else:
            outf.write(cert.dump())
    return fname


def _write_key(key_name: str, fname: str, passphrase=None) -> str:
    with open(fname, 'wb') as outf:
        outf.write(key_pem(key_name, passphrase=passphrase))
    return fname


def _write_config(config: dict, fname: str = 'pyjades.yml'):
    with open(fname, 'w') as outf:
        yaml.dump(config, outf)


def _read_output(fname: str = SIGNED_OUTPUT_PATH) -> dict:
    with open(fname, 'r') as inf:
        return json.load(inf)


@pytest.fixture
def root_cert():
    return _write_cert(ROOT_CERT, 'root.cert.pem')


@pytest.fixture
def user_cert():
    return _write_cert(SIGNER_CERTS['p256'], 'signer.crt', use_pem=False)


@pytest.fixture
def user_key():
    return _write_key('p256', 'signer.key.pem')


@pytest.fixture
def encrypted_user_key():
    return _write_key('p256', 'signer-enc.key.pem', passphrase=DUMMY_PASSPHRASE)
