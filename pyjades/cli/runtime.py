import logging
import sys
from contextlib import contextmanager

import click

from pyjades.cli.utils import logger
from pyjades.config.errors import ConfigurationError
from pyjades.config.logging import LogConfig, StdLogOutput
from pyjades.sign.general import SigningError


class NoStackTraceFormatter(logging.Formatter):
    def formatException(self, ei) -> str:
        return ""  # pragma: nocover


LOG_FORMAT_STRING = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def logging_setup(log_configs, verbose: bool):
    log_config: LogConfig
    for module, log_config in log_configs.items():
        cur_logger = logging.getLogger(module)
        cur_logger.setLevel(log_config.level)
        handler: logging.StreamHandler
        if isinstance(log_config.output, StdLogOutput):
            if log_config.output == StdLogOutput.STDOUT:
                handler = logging.StreamHandler(sys.stdout)
            else:
                handler = logging.StreamHandler()
            # when logging to the console, don't output stack traces
            # unless in verbose mode
            if verbose:
                formatter = logging.Formatter(LOG_FORMAT_STRING)
            else:
                formatter = NoStackTraceFormatter(LOG_FORMAT_STRING)
        else:
            handler = logging.FileHandler(log_config.output)
            formatter = logging.Formatter(LOG_FORMAT_STRING)
        handler.setFormatter(formatter)
        cur_logger.addHandler(handler)


@contextmanager
def pyjades_exception_manager():
    msg = exception = None
    try:
        yield
    except click.ClickException:
        raise
    except ConfigurationError as e:
        exception = e
        msg = f"Configuration problem: {e.msg}"
    except SigningError as e:
        exception = e
        msg = f"Error raised while producing signature: {e.msg}"
    except Exception as e:
        exception = e
        msg = "Generic processing error."

    if exception is not None:
        logger.error(msg, exc_info=exception)
        raise click.ClickException(msg)


DEFAULT_CONFIG_FILE = 'pyjades.yml'
