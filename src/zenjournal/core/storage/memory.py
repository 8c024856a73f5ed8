"""In-memory storage backend, for tests and throwaway sessions."""

from collections.abc import AsyncIterator

from .base import StorageBackend, StorageKeyError, StorageQuotaError


class MemoryStorage(StorageBackend):
    """Dict-backed storage. ``quota_bytes`` simulates a full device."""

    def __init__(self, quota_bytes: int | None = None, **options):
        super().__init__(**options)
        self.quota_bytes = quota_bytes
        self.blobs: dict[str, bytes] = {}
        self.writes = 0

    async def save(self, key: str, data: bytes) -> None:
        if self.quota_bytes is not None:
            used = sum(len(v) for k, v in self.blobs.items() if k != key)
            if used + len(data) > self.quota_bytes:
                raise StorageQuotaError(f"Quota of {self.quota_bytes} bytes exceeded writing {key}")
        self.blobs[key] = bytes(data)
        self.writes += 1

    async def load(self, key: str) -> bytes:
        try:
            return self.blobs[key]
        except KeyError:
            raise StorageKeyError(f"Key not found: {key}") from None

    async def exists(self, key: str) -> bool:
        return key in self.blobs

    async def delete(self, key: str) -> bool:
        return self.blobs.pop(key, None) is not None

    async def list_keys(self, prefix: str = "") -> AsyncIterator[str]:
        for key in sorted(self.blobs):
            if key.startswith(prefix):
                yield key
