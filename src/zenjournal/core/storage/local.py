"""
Filesystem backend for the local cache.

One file per key under ``base_path``. Writes go to a temporary sibling and
are moved into place, so a crash mid-write leaves the previous blob intact.
"""

import errno
import os
from collections.abc import AsyncIterator
from pathlib import Path

import aiofiles
import aiofiles.os
from loguru import logger

from .base import StorageBackend, StorageKeyError, StoragePermissionError, StorageQuotaError

_QUOTA_ERRNOS = {errno.ENOSPC, errno.EDQUOT}


class LocalStorage(StorageBackend):
    """Blobs as ``<key>.json`` files in one directory."""

    def __init__(self, base_path: str = "~/.zenjournal-data", **options):
        super().__init__(**options)
        self.base_path = Path(base_path).expanduser().resolve()
        self.base_path.mkdir(parents=True, exist_ok=True)

    def _path_for(self, key: str) -> Path:
        """Resolve a storage key to a JSON file path under ``base_path``.

        Keys are flat names; separators, traversal and empty keys are rejected.
        """
        name = key.strip()
        if not name:
            raise StoragePermissionError("Storage key cannot be empty.")
        if name in (".", "..") or any(ch in name for ch in "/\\\x00"):
            raise StoragePermissionError(f"Unsafe storage key '{key}'.")
        return self.base_path / f"{name}.json"

    async def save(self, key: str, data: bytes) -> None:
        path = self._path_for(key)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            async with aiofiles.open(tmp_path, "wb") as f:
                await f.write(data)
            await aiofiles.os.replace(tmp_path, path)
        except OSError as e:
            await self._discard(tmp_path)
            if isinstance(e, PermissionError):
                raise StoragePermissionError(f"Cannot write to {path}: {e}") from e
            if e.errno in _QUOTA_ERRNOS:
                raise StorageQuotaError(f"No space left writing {path}: {e}") from e
            raise

    @staticmethod
    async def _discard(tmp_path: Path) -> None:
        try:
            await aiofiles.os.remove(tmp_path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove {tmp_path} after a failed save: {e}")

    async def load(self, key: str) -> bytes:
        path = self._path_for(key)
        if not path.exists():
            raise StorageKeyError(f"Key not found: {key}")
        try:
            async with aiofiles.open(path, "rb") as f:
                return await f.read()
        except PermissionError as e:
            raise StoragePermissionError(f"Cannot read {path}: {e}") from e

    async def exists(self, key: str) -> bool:
        return self._path_for(key).exists()

    async def delete(self, key: str) -> bool:
        path = self._path_for(key)
        if not path.exists():
            return False
        await aiofiles.os.remove(path)
        return True

    async def list_keys(self, prefix: str = "") -> AsyncIterator[str]:
        for name in sorted(os.listdir(self.base_path)):
            if not name.endswith(".json"):
                continue
            key = name[: -len(".json")]
            if prefix and not key.startswith(prefix):
                continue
            yield key
