"""Pydantic models for config validation.

Opt-in schema validation for ``Config.config_data``.  Call
``Config.validated()`` to obtain a typed, validated ``ZenJournalConfig``.
Dict-based access through ``Config.get`` keeps working unchanged.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator


class PathsConfig(BaseModel):
    """File-system paths used by the application."""

    data_dir: Path
    log_dir: Path | None = None

    @field_validator("data_dir", "log_dir", mode="before")
    @classmethod
    def _expand_user(cls, v: Any) -> Any:
        if isinstance(v, str):
            return Path(v).expanduser()
        if isinstance(v, Path):
            return v.expanduser()
        return v


class StorageConfig(BaseModel):
    """Names of the two persisted blobs."""

    entries_key: str = "zenjournal_entries"
    settings_key: str = "zenjournal_settings"


class SyncConfig(BaseModel):
    """Remote entry service settings. Credentials live in secrets, not here."""

    enabled: bool = True
    url: str = ""
    table: str = "entries"
    timeout: int = 20
    max_attempts: int = 1

    @field_validator("timeout", "max_attempts")
    @classmethod
    def _positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be >= 1")
        return v

    @field_validator("url")
    @classmethod
    def _strip_slash(cls, v: str) -> str:
        return v.strip().rstrip("/")


class AutosaveConfig(BaseModel):
    """Debounce window for the autosave coordinator."""

    delay_seconds: float = 2.0

    @field_validator("delay_seconds")
    @classmethod
    def _positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("delay_seconds must be positive")
        return v


class LoggingConfig(BaseModel):
    level: str = "WARNING"
    file: str = ""


class ZenJournalConfig(BaseModel):
    """Root configuration model.

    Uses ``extra="allow"`` so custom sections survive validation.
    """

    model_config = ConfigDict(extra="allow")

    paths: PathsConfig = PathsConfig(data_dir=Path("~/.zenjournal-data"))
    storage: StorageConfig = StorageConfig()
    sync: SyncConfig = SyncConfig()
    autosave: AutosaveConfig = AutosaveConfig()
    logging: LoggingConfig = LoggingConfig()
