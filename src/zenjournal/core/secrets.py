"""
Credentials for the remote entry service.

The anon key and the signed-in user's access token never go in config.yaml.
They are looked up through an ordered list of providers (environment first,
then ``~/.zenjournal/secrets.yaml``); the first provider that knows a key
answers for it.

    secrets = SecretsManager([EnvProvider(), YamlFileProvider("~/.zenjournal/secrets.yaml")])
    creds = SyncCredentials.resolve(config, secrets)
    if creds.complete:
        ...
"""

from __future__ import annotations

import os
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import yaml
from loguru import logger

from .exceptions import SecretNotFoundError


@runtime_checkable
class SecretProvider(Protocol):
    def get(self, key_path: str) -> str | None:
        """Secret stored under a dot path such as ``"sync.api_key"``, or None."""
        ...


class EnvProvider:
    """``sync.access_token`` is read from ``ZENJOURNAL_SYNC__ACCESS_TOKEN``."""

    def __init__(self, prefix: str = "ZENJOURNAL_"):
        self.prefix = prefix

    def env_name(self, key_path: str) -> str:
        return f"{self.prefix}{key_path.replace('.', '__').upper()}"

    def get(self, key_path: str) -> str | None:
        return os.environ.get(self.env_name(key_path)) or None


class YamlFileProvider:
    """
    Nested YAML secrets file, read once on first lookup::

        sync:
          api_key: "sb_publishable_..."
          access_token: "eyJ..."

    An unreadable or malformed file behaves like an empty one. A file other
    users can read is still used, with a warning.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path).expanduser()
        self._tree: dict[str, Any] | None = None

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            if self.path.stat().st_mode & (stat.S_IRGRP | stat.S_IROTH):
                logger.warning(f"{self.path} is readable by other users; consider chmod 600")
            tree = yaml.safe_load(self.path.read_text())
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Ignoring secrets file {self.path}: {e}")
            return {}
        return tree if isinstance(tree, dict) else {}

    def get(self, key_path: str) -> str | None:
        if self._tree is None:
            self._tree = self._read()
        node: Any = self._tree
        for part in key_path.split("."):
            node = node.get(part) if isinstance(node, dict) else None
        if node is None or isinstance(node, dict):
            return None
        return str(node)


class SecretsManager:
    """Asks each provider in turn; an empty list means environment only."""

    def __init__(self, providers: list[SecretProvider] | None = None):
        self.providers: list[SecretProvider] = list(providers or [EnvProvider()])

    def get(self, key_path: str, default: str | None = None) -> str | None:
        for provider in self.providers:
            value = provider.get(key_path)
            if value is not None:
                return value
        return default

    def require(self, key_path: str) -> str:
        value = self.get(key_path)
        if value is None:
            names = ", ".join(type(p).__name__ for p in self.providers)
            raise SecretNotFoundError(f"No value for '{key_path}' (searched {names})")
        return value


@dataclass(frozen=True)
class SyncCredentials:
    url: str = ""
    api_key: str = ""
    access_token: str = ""

    @property
    def complete(self) -> bool:
        """True when all three are present, i.e. the user is signed in."""
        return bool(self.url and self.api_key and self.access_token)

    @classmethod
    def resolve(cls, config, secrets: SecretProvider) -> SyncCredentials:
        """Project URL from config (or secrets), key and token from secrets."""
        return cls(
            url=config.get("sync.url") or secrets.get("sync.url") or "",
            api_key=secrets.get("sync.api_key") or "",
            access_token=secrets.get("sync.access_token") or "",
        )
