from dataclasses import dataclass
from typing import Optional

from pyjades.cli.config import CLIConfig


@dataclass
class CLIContext:
    """
    Context object that cobbles together CLI settings gathered during the
    lifetime of a CLI invocation, either from configuration or from command
    line arguments.
    This object is passed around as a ``click`` context object.
    """

    config: Optional[CLIConfig] = None
    """
    Values for CLI configuration settings.
    """
