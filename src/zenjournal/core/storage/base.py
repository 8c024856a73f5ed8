"""
Backend interface for the local cache.

A backend is a flat async key/value store of byte blobs. The journal keeps
exactly two blobs in it (entries and settings), each replaced whole on write.
"""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator

from zenjournal.core.exceptions import StorageError


class StorageBackend(ABC):
    def __init__(self, **options):
        self.options = options

    @abstractmethod
    async def save(self, key: str, data: bytes) -> None:
        """Replace the blob stored under *key*."""

    @abstractmethod
    async def load(self, key: str) -> bytes:
        """Blob under *key*; StorageKeyError when nothing was ever saved there."""

    @abstractmethod
    async def exists(self, key: str) -> bool: ...

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Remove *key*. False when it was already absent."""

    @abstractmethod
    def list_keys(self, prefix: str = "") -> AsyncIterator[str]:
        """Stored keys starting with *prefix*, in sorted order."""


class StorageKeyError(StorageError, KeyError):
    """No blob under the requested key."""


class StoragePermissionError(StorageError):
    """Unsafe key, or the OS refused access."""


class StorageQuotaError(StorageError):
    """Device full or over quota; the previous blob is left in place."""
