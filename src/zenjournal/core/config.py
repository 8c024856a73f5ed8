"""
Layered configuration for ZenJournal.

Sources, lowest to highest precedence:
    1. Built-in defaults (see ``DEFAULTS``)
    2. ``~/.zenjournal/config.yaml`` (or any YAML/JSON file passed in)
    3. ``ZENJOURNAL_SECTION__KEY`` environment variables

Env values are parsed as YAML scalars, so ``ZENJOURNAL_SYNC__ENABLED=false``
is a real boolean and ``ZENJOURNAL_AUTOSAVE__DELAY_SECONDS=0.5`` a float.

Usage:
    config = Config(config_file="~/.zenjournal/config.yaml")
    config.get("sync.url")
    config.validated().autosave.delay_seconds
"""

from __future__ import annotations

import copy
import json
import os
from typing import TYPE_CHECKING, Any

import yaml

if TYPE_CHECKING:
    from .config_schema import ZenJournalConfig

ENV_PREFIX = "ZENJOURNAL_"
DATA_DIR = os.path.join("~", ".zenjournal-data")

ENTRIES_KEY = "zenjournal_entries"
SETTINGS_KEY = "zenjournal_settings"

DEFAULTS: dict[str, Any] = {
    "storage": {"entries_key": ENTRIES_KEY, "settings_key": SETTINGS_KEY},
    "sync": {"enabled": True, "url": "", "table": "entries", "timeout": 20, "max_attempts": 1},
    "autosave": {"delay_seconds": 2.0},
    "logging": {"level": "WARNING", "file": ""},
}


def _merge(target: dict, source: dict) -> None:
    for key, value in source.items():
        if isinstance(target.get(key), dict) and isinstance(value, dict):
            _merge(target[key], value)
        else:
            target[key] = value


def _parse_env_value(raw: str) -> Any:
    try:
        value = yaml.safe_load(raw)
    except yaml.YAMLError:
        return raw
    # Only scalars; "[a]" or "{x: 1}" in an env var stays text.
    return value if isinstance(value, (str, int, float, bool)) else raw


class Config:
    """
    Merged view of defaults, the config file and the environment.

    Nesting in env var names uses a double underscore:
    ZENJOURNAL_SYNC__URL=https://x.supabase.co -> config["sync"]["url"]
    """

    def __init__(
        self,
        config_file: str | None = None,
        env_prefix: str = ENV_PREFIX,
        data_dir: str | None = None,
        defaults: dict[str, Any] | None = None,
    ):
        """
        Args:
            config_file: YAML or JSON file; a missing file is ignored.
            env_prefix: Prefix for environment overrides ("" disables them).
            data_dir: Where the entry and settings blobs live. Defaults to ~/.zenjournal-data.
            defaults: Extra defaults merged over the built-in ones.
        """
        self.config_file = os.path.expanduser(config_file) if config_file else None
        self.env_prefix = env_prefix or ""

        data_dir = os.path.expanduser(data_dir or DATA_DIR)
        self.config_data: dict[str, Any] = copy.deepcopy(DEFAULTS)
        self.config_data["paths"] = {"data_dir": data_dir, "log_dir": os.path.join(data_dir, "logs")}
        if defaults:
            _merge(self.config_data, defaults)
        if self.config_file and os.path.exists(self.config_file):
            _merge(self.config_data, self._read_file(self.config_file))
        self._apply_env()

    @staticmethod
    def _read_file(path: str) -> dict[str, Any]:
        with open(path) as f:
            if path.endswith(".json"):
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
        return data if isinstance(data, dict) else {}

    def _apply_env(self) -> None:
        if not self.env_prefix:
            return
        for env_key, env_value in os.environ.items():
            if env_key.startswith(self.env_prefix):
                path = env_key[len(self.env_prefix) :].lower().replace("__", ".")
                self.set(path, _parse_env_value(env_value))

    def get(self, key_path: str, default: Any = None) -> Any:
        """Value at a dot path such as ``"sync.table"``, or *default*."""
        current: Any = self.config_data
        for part in key_path.split("."):
            if not isinstance(current, dict) or part not in current:
                return default
            current = current[part]
        return current

    def set(self, key_path: str, value: Any) -> None:
        """Set a dot-path value, replacing non-dict intermediates."""
        *parents, leaf = key_path.split(".")
        current = self.config_data
        for part in parents:
            if not isinstance(current.get(part), dict):
                current[part] = {}
            current = current[part]
        current[leaf] = value

    def ensure_directories(self) -> None:
        """Create the data and log directories."""
        for path_value in self.config_data.get("paths", {}).values():
            if isinstance(path_value, str) and path_value:
                os.makedirs(os.path.expanduser(path_value), exist_ok=True)

    def log_file(self) -> str | None:
        """Absolute log file path; a bare file name is placed under ``paths.log_dir``."""
        name = self.get("logging.file") or ""
        if not name:
            return None
        name = os.path.expanduser(name)
        if os.path.isabs(name):
            return name
        return os.path.join(os.path.expanduser(self.get("paths.log_dir", "")), name)

    def validated(self) -> ZenJournalConfig:
        """Typed view of the config. Raises ConfigurationError if invalid."""
        from pydantic import ValidationError

        from .config_schema import ZenJournalConfig
        from .exceptions import ConfigurationError

        try:
            return ZenJournalConfig.model_validate(self.config_data)
        except ValidationError as e:
            raise ConfigurationError(str(e)) from e
