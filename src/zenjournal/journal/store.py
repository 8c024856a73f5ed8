"""Entry store — the local cache of entries and settings.

Two named blobs live in a :class:`~zenjournal.core.storage.StorageBackend`:
the entry set (``{id: entry}``) and the settings object. Each is replaced
whole on every write. Every operation fails soft: unreadable data comes back
as an empty set or default settings, and a failed write is logged and
reported as ``False``, never raised.
"""

from __future__ import annotations

import json

from loguru import logger

from zenjournal.core.config import ENTRIES_KEY, SETTINGS_KEY
from zenjournal.core.exceptions import StorageError
from zenjournal.core.storage import StorageBackend, StorageKeyError

from .models import AppSettings, Entry, EntrySet, entries_to_json


class EntryStore:
    """Loads and saves the entry set and settings blobs.

    Args:
        backend: Where the blobs live.
        entries_key: Blob name for the entry set.
        settings_key: Blob name for the settings.
    """

    def __init__(
        self,
        backend: StorageBackend,
        *,
        entries_key: str = ENTRIES_KEY,
        settings_key: str = SETTINGS_KEY,
    ):
        self.backend = backend
        self.entries_key = entries_key
        self.settings_key = settings_key

    async def _read_json(self, key: str):
        try:
            raw = await self.backend.load(key)
        except StorageKeyError:
            return None
        return json.loads(raw.decode("utf-8"))

    async def load(self) -> EntrySet:
        """Return the stored entry set; empty when missing or corrupt.

        A corrupt individual entry is skipped; the rest still load.
        """
        try:
            data = await self._read_json(self.entries_key)
        except (StorageError, OSError, ValueError) as e:
            logger.error(f"Failed to load entries: {e}")
            return {}
        if data is None:
            return {}
        if not isinstance(data, dict):
            logger.error(f"Failed to load entries: expected an object, got {type(data).__name__}")
            return {}

        entries: EntrySet = {}
        for key, item in data.items():
            try:
                entry = Entry.from_dict(item)
            except ValueError as e:
                logger.warning(f"Skipping unreadable entry {key!r}: {e}")
                continue
            entries[entry.id] = entry
        return entries

    async def save(self, entries: EntrySet) -> bool:
        """Replace the stored entry set. Returns False (and logs) on failure."""
        try:
            await self.backend.save(self.entries_key, entries_to_json(entries).encode("utf-8"))
        except (StorageError, OSError) as e:
            logger.error(f"Failed to save entries: {e}")
            return False
        return True

    async def load_settings(self) -> AppSettings:
        """Stored settings merged over the defaults."""
        try:
            data = await self._read_json(self.settings_key)
        except (StorageError, OSError, ValueError) as e:
            logger.error(f"Failed to load settings: {e}")
            return AppSettings()
        return AppSettings.from_dict(data)

    async def save_settings(self, settings: AppSettings) -> bool:
        try:
            await self.backend.save(self.settings_key, json.dumps(settings.to_dict()).encode("utf-8"))
        except (StorageError, OSError) as e:
            logger.error(f"Failed to save settings: {e}")
            return False
        return True
