"""Persistent user configuration, stored as YAML in a `.fccli` dot-file.

Values are looked up, in order, from explicit overrides (e.g., command-line
flags), `FCCLI_*` environment variables, the config file, and the built-in
defaults. Only the config file layer is ever written back to disk.
"""
import logging
import os
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from fccli.client.auth import Credentials
from fccli.exceptions import ConfigError, ValidationError
from fccli.namespaces import DEFAULT_PREFIXES
from fccli.session import CWD_UPDATE
from fccli.utils import envsubst

logger = logging.getLogger(__name__)

CONFIG_FILENAME = '.fccli'
ENV_PREFIX = 'FCCLI_'

DEFAULTS = {
    'HOST': 'http://localhost:8080',
    'BASE_PATH': '/rest',
    'CWD': '/',
    'GLOBAL_PREFIX': DEFAULT_PREFIXES,
}

OVERRIDABLE_KEYS = ('HOST', 'BASE_PATH', 'USERNAME', 'PASSWORD')
"""Keys that may be overridden from the command line or the environment."""

SETTABLE_KEYS = ('HOST', 'BASE_PATH', 'USERNAME', 'PASSWORD', 'JWT', 'CWD', 'LOG_DIR', 'LOGGING_CONFIG')


def find_config_file(path: str | Path = None, cwd: str | Path = None, home: str | Path = None) -> Path:
    """Location of the config file: `path` if given, else `.fccli` in the
    current directory if there is one, else `.fccli` in the home directory."""
    if path is not None:
        return Path(path)
    local = Path(cwd or os.getcwd()) / CONFIG_FILENAME
    if local.exists():
        return local
    return Path(home or Path.home()) / CONFIG_FILENAME


def normalize_key(name: str) -> str:
    """
    ```pycon
    >>> normalize_key('base-path')
    'BASE_PATH'
    ```
    """
    return name.strip().replace('-', '_').upper()


class Config:
    def __init__(self, path: str | Path, overrides: Mapping[str, Any] = None, env: Mapping[str, str] = None):
        self.path = Path(path)
        self.overrides = {k: v for k, v in (overrides or {}).items() if v is not None}
        self.env = os.environ if env is None else env
        self.data: dict[str, Any] = {}

    @classmethod
    def load(cls, path: str | Path = None, overrides: Mapping[str, Any] = None, env: Mapping[str, str] = None) -> 'Config':
        """Find and read the config file. A missing file is created empty. Raises
        `ConfigError` if the file cannot be read or is not a YAML mapping."""
        config = cls(find_config_file(path), overrides=overrides, env=env)
        config.read()
        return config

    def read(self):
        try:
            if not self.path.exists():
                logger.debug(f'Creating empty config file {self.path}')
                self.path.touch()
            with self.path.open('r') as fh:
                data = yaml.safe_load(fh)
        except OSError as e:
            raise ConfigError(f'Unable to read config file {self.path}: {e}') from e
        except yaml.YAMLError as e:
            raise ConfigError(f'Config file {self.path} is corrupt: {e}') from e
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError(f'Config file {self.path} is corrupt: expected a mapping')
        self.data = data
        logger.debug(f'Loaded configuration from {self.path}')

    def save(self):
        try:
            with self.path.open('w') as fh:
                yaml.safe_dump(self.data, fh, default_flow_style=False)
        except OSError as e:
            raise ConfigError(f'Unable to write config file {self.path}: {e}') from e

    def get(self, key: str, default: Any = None) -> Any:
        key = normalize_key(key)
        if key in OVERRIDABLE_KEYS:
            if key in self.overrides:
                return self.overrides[key]
            if self.env.get(ENV_PREFIX + key):
                return self.env[ENV_PREFIX + key]
        if key in self.data:
            return envsubst(self.data[key], self.env)
        return DEFAULTS.get(key, default)

    def __getitem__(self, key: str) -> Any:
        value = self.get(key)
        if value is None:
            raise KeyError(key)
        return value

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def set(self, key: str, value: Any):
        """Store a value in the config file. Raises `ValidationError` for keys
        that cannot be set."""
        key = normalize_key(key)
        if key not in SETTABLE_KEYS:
            raise ValidationError(f'Unknown config attribute: {key}')
        self.data[key] = value
        self.save()

    def unset(self, *keys: str):
        for key in keys:
            self.data.pop(normalize_key(key), None)
        self.save()

    def as_dict(self) -> dict[str, Any]:
        """Effective configuration, with the password masked."""
        result = {key: self.get(key) for key in (*SETTABLE_KEYS, 'GLOBAL_PREFIX')}
        if result.get('PASSWORD'):
            result['PASSWORD'] = '********'
        return {k: v for k, v in result.items() if v is not None}

    @property
    def global_prefixes(self) -> dict[str, str]:
        return dict(self.get('GLOBAL_PREFIX') or {})

    def add_prefix(self, prefix: str, uri: str):
        self.data['GLOBAL_PREFIX'] = {**self.global_prefixes, prefix: uri}
        self.save()

    def remove_prefix(self, prefix: str):
        prefixes = self.global_prefixes
        if prefix not in prefixes:
            raise ValidationError(f'No global prefix named "{prefix}"')
        del prefixes[prefix]
        self.data['GLOBAL_PREFIX'] = prefixes
        self.save()

    @property
    def credentials(self) -> Optional[Credentials]:
        username = self.get('USERNAME')
        password = self.get('PASSWORD')
        if username and password:
            return Credentials(str(username), str(password))
        return None

    def on_session_event(self, event: str, value: Any):
        """Session listener that persists the working directory."""
        if event == CWD_UPDATE:
            self.data['CWD'] = value
            self.save()

    def on_login(self, jwt: str):
        self.data['JWT'] = jwt
        self.save()
