from dataclasses import dataclass
from typing import Dict, Optional

import yaml

from pyjades.config.errors import ConfigurationError
from pyjades.config.logging import LogConfig, parse_logging_config
from pyjades.config.signing import JAdESSigningSetup


@dataclass
class CLIConfig:
    """
    CLI configuration settings.
    """

    signing_setups: Dict[str, dict]
    """
    Named signing setups. The values in this dictionary are themselves
    dictionaries with a ``signature`` key (see
    :class:`~pyjades.config.signing.JAdESSignatureConfig`) and a ``keys``
    key (see :class:`~pyjades.config.signing.PemDerKeyConfig`).

    Callers should not process this information directly, but rely on
    :meth:`get_signing_setup` instead.
    """

    default_signing_setup: str
    """
    The name of the default signing setup.
    The default value for this setting is ``default``.
    """

    raw_config: dict
    """
    The raw config data parsed into a Python dictionary.
    """

    def get_signing_setup(
        self, name: Optional[str] = None
    ) -> JAdESSigningSetup:
        """
        Retrieve a signing setup by name.

        :param name:
            The name of the setup. If not supplied, the value
            of :attr:`default_signing_setup` will be used.
        :return:
            A :class:`~pyjades.config.signing.JAdESSigningSetup` object.
        """
        name = name or self.default_signing_setup
        try:
            setup = self.signing_setups[name]
        except KeyError:
            raise ConfigurationError(
                f"There is no signing setup named '{name}'."
            )
        return JAdESSigningSetup.from_config(setup)


@dataclass(frozen=True)
class CLIRootConfig:
    """
    Config settings that are only relevant to the CLI root and are not exposed
    to subcommands.
    """

    config: CLIConfig
    """
    General CLI config.
    """

    log_config: Dict[Optional[str], LogConfig]
    """
    Per-module logging configuration. The keys in this dictionary are
    module names, the :class:`.LogConfig` values define the logging settings.

    The ``None`` key houses the configuration for the root logger, if any.
    """


DEFAULT_SIGNING_SETUP = 'default'


def parse_cli_config(yaml_str) -> CLIRootConfig:
    config_dict = yaml.safe_load(yaml_str) or {}
    if not isinstance(config_dict, dict):
        raise ConfigurationError("Configuration must be a YAML mapping.")
    log_config_spec = config_dict.get('logging', {})
    return CLIRootConfig(
        log_config=parse_logging_config(log_config_spec),
        config=CLIConfig(
            **process_config_dict(config_dict), raw_config=config_dict
        ),
    )


def process_config_dict(config_dict: dict) -> dict:
    setups = config_dict.get('signing-setups', {})
    if not isinstance(setups, dict):
        raise ConfigurationError("signing-setups should be a dictionary")
    default_setup = config_dict.get(
        'default-signing-setup', DEFAULT_SIGNING_SETUP
    )
    return dict(
        signing_setups=setups,
        default_signing_setup=default_setup,
    )
