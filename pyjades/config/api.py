"""
Populate frozen dataclasses from configuration dictionaries, as read from
a ``pyjades.yml`` file.

Keys are written with hyphens in YAML (``key-file``) and mapped onto the
dataclass fields with underscores (``key_file``).
"""

import dataclasses
from typing import Optional, Union, get_args, get_origin

from .errors import ConfigurationError

__all__ = ['ConfigurableMixin', 'ensure_strings']


def _configurable_type(annotation) -> Optional[type]:
    # accept both X and Optional[X]
    if get_origin(annotation) is Union:
        args = [a for a in get_args(annotation) if a is not type(None)]
        if len(args) != 1:
            return None
        annotation = args[0]
    if isinstance(annotation, type) and issubclass(
        annotation, ConfigurableMixin
    ):
        return annotation
    return None


def _required(f: dataclasses.Field) -> bool:
    return (
        f.default is dataclasses.MISSING
        and f.default_factory is dataclasses.MISSING
    )


def _yaml_names(keys):
    return {key.replace('_', '-') for key in keys}


def _plural(word, items):
    return word if len(items) == 1 else word + 's'


@dataclasses.dataclass(frozen=True)
class ConfigurableMixin:
    """
    Mixin for dataclasses that can be instantiated from a configuration
    dictionary through :meth:`from_config`.
    """

    @classmethod
    def process_entries(cls, config_dict):
        """
        Convert raw configuration values into the types the dataclass
        expects. Called after nested configurable fields have been
        instantiated, and before required keys are checked.

        Overrides should call ``super().process_entries()``.

        :param config_dict:
            The configuration dictionary, with underscored keys. Modified
            in place.
        :raises ConfigurationError:
            If a value cannot be processed.
        """

    @classmethod
    def from_config(cls, config_dict):
        """
        Instantiate the class from a configuration dictionary.

        :param config_dict:
            A dictionary of configuration values.
        :return:
            An instance of the class.
        :raises ConfigurationError:
            If the dictionary has unknown keys or lacks required ones, or if
            one of its values is invalid.
        """
        name = cls.__name__
        fields = dataclasses.fields(cls)
        if not isinstance(config_dict, dict):
            raise ConfigurationError(f"{name} requires a dictionary.")

        unexpected = _yaml_names(config_dict) - _yaml_names(
            f.name for f in fields
        )
        if unexpected:
            raise ConfigurationError(
                f"Unexpected {_plural('key', unexpected)} in configuration "
                f"for {name}: {', '.join(sorted(unexpected))}."
            )
        config_dict = {k.replace('-', '_'): v for k, v in config_dict.items()}

        for f in fields:
            sub_type = _configurable_type(f.type)
            if sub_type is None or f.name not in config_dict:
                continue
            try:
                config_dict[f.name] = sub_type.from_config(config_dict[f.name])
            except ConfigurationError as e:
                raise ConfigurationError(
                    f"Error in '{f.name.replace('_', '-')}': {e.msg}"
                ) from e

        cls.process_entries(config_dict)

        missing = _yaml_names(
            f.name for f in fields if _required(f)
        ) - _yaml_names(config_dict)
        if missing:
            raise ConfigurationError(
                f"Missing required {_plural('key', missing)} in "
                f"configuration for {name}: {', '.join(sorted(missing))}."
            )
        return cls(**config_dict)


def ensure_strings(strings, param_name):
    """
    Accept a single string or a list of strings, and return a list.
    """
    if isinstance(strings, str):
        return [strings]
    if not isinstance(strings, (list, tuple)) or not all(
        isinstance(s, str) for s in strings
    ):
        raise ConfigurationError(
            f"'{param_name}' must be a string or a list of strings."
        )
    return list(strings)
