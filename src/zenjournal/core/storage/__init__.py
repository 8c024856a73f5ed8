"""
Storage backends for zenjournal.

Async whole-blob key/value storage with a pluggable backend interface
(local filesystem by default, in-memory for tests).
"""

from zenjournal.core.exceptions import StorageError

from .base import (
    StorageBackend,
    StorageKeyError,
    StoragePermissionError,
    StorageQuotaError,
)
from .local import LocalStorage
from .memory import MemoryStorage

__all__ = [
    "LocalStorage",
    "MemoryStorage",
    "StorageBackend",
    "StorageError",
    "StorageKeyError",
    "StoragePermissionError",
    "StorageQuotaError",
]
