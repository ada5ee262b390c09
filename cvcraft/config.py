"""
Configuration management using Mapping interfaces.

Implement:
- ConfigStore: MutableMapping for configuration management
- Default configurations
- Loading from JSON/YAML files and from the environment
"""

import os
from typing import Any
from collections.abc import MutableMapping as ABCMutableMapping
from pathlib import Path

from dotenv import load_dotenv

from cvcraft.util import _merge_dicts, load_record_file

MAX_IMAGE_BYTES = 5 * 1024 * 1024
DEFAULT_DB_PATH = Path.home() / '.cvcraft' / 'resumes.db'

DEFAULTS = {
    'template': 'modern',
    'export_mode': 'raster',  # raster or vector
    'export_scale': 2.0,
    'output_dir': '.',
    'db_path': str(DEFAULT_DB_PATH),
    'max_image_bytes': MAX_IMAGE_BYTES,
    'supabase_url': None,
    'supabase_key': None,
    'access_token': None,
    'user_id': 'local',
    'user_email': None,
    'log_level': 'INFO',
}

# environment variable -> config key
ENV_VARS = {
    'CVCRAFT_TEMPLATE': 'template',
    'CVCRAFT_EXPORT_MODE': 'export_mode',
    'CVCRAFT_EXPORT_SCALE': 'export_scale',
    'CVCRAFT_OUTPUT_DIR': 'output_dir',
    'CVCRAFT_DB_PATH': 'db_path',
    'CVCRAFT_MAX_IMAGE_BYTES': 'max_image_bytes',
    'CVCRAFT_USER_ID': 'user_id',
    'CVCRAFT_USER_EMAIL': 'user_email',
    'CVCRAFT_LOG_LEVEL': 'log_level',
    'SUPABASE_URL': 'supabase_url',
    'SUPABASE_KEY': 'supabase_key',
    'SUPABASE_ACCESS_TOKEN': 'access_token',
}

_NUMERIC = {'export_scale': float, 'max_image_bytes': int}


class ConfigStore(ABCMutableMapping):
    """Configuration store with cascading defaults."""

    def __init__(self, base_config: dict | None = None, *, defaults: dict | None = None):
        self._defaults = DEFAULTS if defaults is None else defaults
        self._config = base_config or {}

    def __getitem__(self, key: str) -> Any:
        if key in self._config:
            return self._config[key]
        return self._defaults[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._config[key] = value

    def __delitem__(self, key: str) -> None:
        del self._config[key]

    def __iter__(self):
        return iter(_merge_dicts(self._defaults, self._config))

    def __len__(self) -> int:
        return len(_merge_dicts(self._defaults, self._config))

    def overridden(self) -> dict:
        """Only the keys set explicitly (not inherited from defaults)."""
        return dict(self._config)


def get_default_config() -> ConfigStore:
    return ConfigStore()


def load_config(path: str) -> ConfigStore:
    """Load a JSON or YAML config file on top of the defaults."""
    return ConfigStore(dict(load_record_file(path)))


def config_from_env(base: ConfigStore | None = None, *, dotenv: bool = True) -> ConfigStore:
    """Overlay ``CVCRAFT_*`` and ``SUPABASE_*`` environment variables on ``base``."""
    if dotenv:
        load_dotenv()
    config = base if base is not None else get_default_config()
    for var, key in ENV_VARS.items():
        value = os.environ.get(var)
        if value is None or value == '':
            continue
        if key in _NUMERIC:
            try:
                value = _NUMERIC[key](value)
            except ValueError:
                raise ValueError(f"{var} must be a number, got {value!r}") from None
        config[key] = value
    return config
