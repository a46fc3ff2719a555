"""
Configuration of the statement analysis tool.

Settings come from a shell style ``KEY="value"`` file, by default
``~/.config/umsatz-giro.cfg``; environment variables of the same name
override the file.

    GIRODIR="$HOME/banking/giro"
    DEF_KONTO="99999999"
    FSEP=";"
    LIMIT="1000"
"""

import logging
import os
import pathlib
from dataclasses import dataclass
from typing import Optional

from dotenv import dotenv_values

from .aggregate import base_file_name
from .errors import ConfigurationError
from .records import FIELD_SEPARATOR

logger = logging.getLogger(__name__)

CONFIG_ENV = 'UMSATZ_GIRO_CONFIG'
DEFAULT_CONFIG_PATH = pathlib.Path('~/.config/umsatz-giro.cfg')
DEFAULT_LIMIT = 1000
CONFIG_KEYS = ('GIRODIR', 'DEF_KONTO', 'FSEP', 'LIMIT', 'G_UND_V')

OUTPUT_DIR_NAME = 'outdir'
WORK_DIR_NAME = 'workdir'
LOG_FILE_NAME = 'umsatz-giro.log'


@dataclass(frozen=True)
class Settings:
    """Resolved configuration of one invocation."""
    giro_dir: pathlib.Path
    default_account: Optional[str] = None
    separator: str = FIELD_SEPARATOR
    limit: int = DEFAULT_LIMIT
    g_und_v: Optional[str] = None

    @property
    def out_dir(self) -> pathlib.Path:
        return self.giro_dir / OUTPUT_DIR_NAME

    @property
    def work_dir(self) -> pathlib.Path:
        return self.giro_dir / WORK_DIR_NAME

    @property
    def log_file(self) -> pathlib.Path:
        return self.work_dir / LOG_FILE_NAME

    def base_file(self, account) -> pathlib.Path:
        return self.work_dir / base_file_name(account)

    def resolve_account(self, account=None) -> str:
        """Return the requested account or the configured default.

        Raises:
            ConfigurationError: If neither is set
        """
        account = account or self.default_account
        if not account:
            raise ConfigurationError("no account supplied (-k) and no DEF_KONTO configured")
        return str(account)


def config_path(path=None, environ=None):
    """Resolve the configuration file location."""
    environ = os.environ if environ is None else environ
    path = path or environ.get(CONFIG_ENV) or DEFAULT_CONFIG_PATH
    return pathlib.Path(path).expanduser()


def parse_limit(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"LIMIT must be an integer, got '{value}'")


def load_settings(path=None, environ=None):
    """Load settings from the configuration file and the environment.

    Args:
        path (str or Path, optional): Configuration file; defaults to
            ``$UMSATZ_GIRO_CONFIG`` or ``~/.config/umsatz-giro.cfg``
        environ (mapping, optional): Environment, defaults to ``os.environ``

    Returns:
        Settings: Resolved settings; a missing file yields the defaults

    Raises:
        ConfigurationError: If a value is invalid
    """
    environ = os.environ if environ is None else environ
    cfg_file = config_path(path, environ)

    values = {}
    if cfg_file.is_file():
        logger.debug(f"Reading configuration from {cfg_file}")
        values.update({k: v for k, v in dotenv_values(cfg_file).items() if v is not None})
    elif path is not None:
        raise ConfigurationError(f"configuration file not found: {cfg_file}")

    for key in CONFIG_KEYS:
        if environ.get(key):
            values[key] = environ[key]

    separator = values.get('FSEP') or FIELD_SEPARATOR
    if len(separator) != 1:
        raise ConfigurationError(f"FSEP must be a single character, got '{separator}'")

    return Settings(
        giro_dir=pathlib.Path(values.get('GIRODIR') or os.getcwd()).expanduser(),
        default_account=values.get('DEF_KONTO') or None,
        separator=separator,
        limit=parse_limit(values.get('LIMIT') or DEFAULT_LIMIT),
        g_und_v=values.get('G_UND_V') or None,
    )
