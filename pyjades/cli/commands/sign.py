import getpass
import json
from typing import Optional

import click

from pyjades.cli._ctx import CLIContext
from pyjades.cli._root import cli_root
from pyjades.cli.runtime import pyjades_exception_manager
from pyjades.cli.utils import _warn_empty_passphrase, logger, readable_file
from pyjades.config.errors import ConfigurationError
from pyjades.config.signing import (
    CertReference,
    JAdESSignatureConfig,
    JAdESSigningSetup,
    PemDerKeyConfig,
)
from pyjades.keys import load_certs_from_pemder
from pyjades.sign import HTTP_HEADERS_MECHANISM, JAdESToken, SigD

__all__ = ['sign']


def _setup_from_config(ctx: CLIContext, setup_name) -> JAdESSigningSetup:
    cli_config = ctx.config
    if cli_config is None:
        raise click.ClickException(
            "The --setup option requires a configuration file"
        )
    try:
        return cli_config.get_signing_setup(setup_name)
    except ConfigurationError as e:
        msg = f"Error while reading signing setup {setup_name}"
        logger.error(msg, exc_info=e)
        raise click.ClickException(msg)


def _setup_from_options(
    key, cert, chain, alg, cert_ref, passfile, no_pass
) -> JAdESSigningSetup:
    if not (key and alg):
        raise click.ClickException(
            "Either both the --key and --alg options, or the --setup "
            "option must be provided."
        )
    if passfile is not None:
        passphrase = passfile.readline().strip().encode('utf-8')
        passfile.close()
    elif not no_pass:
        passphrase = getpass.getpass(prompt='Key passphrase: ').encode('utf-8')
        if not passphrase:
            _warn_empty_passphrase()
            passphrase = None
    else:
        passphrase = None

    return JAdESSigningSetup(
        signature=JAdESSignatureConfig(
            algorithm=alg,
            cert_references=[CertReference.parse(r) for r in cert_ref]
            or [CertReference.X5C],
        ),
        keys=PemDerKeyConfig(
            key_file=key,
            cert_file=cert,
            other_certs=list(load_certs_from_pemder(chain)),
            key_passphrase=passphrase,
        ),
    )


def _read_payload(payload) -> Optional[dict]:
    if payload is None:
        return None
    try:
        payload_value = json.load(payload)
    except ValueError as e:
        raise click.ClickException(f"Payload is not valid JSON: {e}")
    if not isinstance(payload_value, dict):
        raise click.ClickException("Payload must be a JSON object.")
    return payload_value


@cli_root.command(help='produce a JAdES signature', name='sign')
@click.option(
    '--setup',
    help='name of preconfigured signing setup (overrides all key options)',
    type=str,
    required=False,
)
@click.option(
    '--key',
    help='file containing the private key (PEM/DER)',
    type=readable_file,
    required=False,
)
@click.option(
    '--cert',
    help='file containing the signer\'s certificate (PEM/DER)',
    type=readable_file,
    required=False,
)
@click.option(
    '--chain',
    type=readable_file,
    multiple=True,
    help='file(s) containing the chain of trust for the signer\'s '
    'certificate (PEM/DER). May be passed multiple times.',
)
@click.option('--alg', help='JWS signature algorithm', required=False)
@click.option(
    '--cert-ref',
    type=click.Choice([ref.value for ref in CertReference]),
    multiple=True,
    help='how to reference the signer\'s certificate [default: x5c]',
)
@click.option('--kid', help='key identifier', required=False)
@click.option(
    '--payload',
    help='JSON payload file; leave out to produce a detached signature',
    type=click.File('r'),
    required=False,
)
@click.option(
    '--sigd-par',
    help='HTTP header covered by a detached signature; may be passed '
    'multiple times',
    multiple=True,
)
@click.option(
    '--passfile',
    help='file containing the passphrase for the private key',
    required=False,
    type=click.File('r'),
    show_default='stdin',
)
@click.option(
    '--no-pass',
    help='assume the private key file is unencrypted',
    type=bool,
    is_flag=True,
    default=False,
    show_default=True,
)
@click.argument('outfile', type=click.File('w'))
@click.pass_context
def sign(
    ctx: click.Context,
    setup,
    key,
    cert,
    chain,
    alg,
    cert_ref,
    kid,
    payload,
    sigd_par,
    passfile,
    no_pass,
    outfile,
):
    with pyjades_exception_manager():
        if setup:
            signing_setup = _setup_from_config(ctx.obj, setup)
        else:
            signing_setup = _setup_from_options(
                key, cert, chain, alg, cert_ref, passfile, no_pass
            )
        sig_config = signing_setup.signature
        private_key = signing_setup.keys.load_key()
        certs = signing_setup.keys.load_certs()

        token = JAdESToken(_read_payload(payload))
        sig_config.apply(token, certs)
        if sigd_par:
            token.set_sigd(SigD(m_id=HTTP_HEADERS_MECHANISM, pars=sigd_par))
        token.sign(private_key, kid=kid or sig_config.key_id)
        outfile.write(token.to_json())
        outfile.write('\n')
