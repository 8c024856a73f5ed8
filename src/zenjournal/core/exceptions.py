"""
ZenJournal exception hierarchy.

All zenjournal exceptions inherit from ZenJournalError, making it easy for
callers to catch library-level errors while still distinguishing specific
failure modes. None of these are fatal to the process: each is handled at
the component boundary that raised it.
"""

from enum import StrEnum


class ZenJournalError(Exception):
    """Base exception class for all zenjournal errors."""


class ConfigurationError(ZenJournalError):
    """Raised for configuration errors (missing keys, invalid values)."""


class SecretNotFoundError(ZenJournalError):
    """Raised when a required secret cannot be found in any provider."""


class StorageError(ZenJournalError):
    """Raised when local persistence is unavailable or corrupt."""


class RemoteErrorKind(StrEnum):
    """Tag carried by every remote failure."""

    SCHEMA_MISSING = "schema_missing"
    UNREACHABLE = "unreachable"
    OTHER = "other"


class RemoteError(ZenJournalError):
    """Raised for remote entry service failures that fit no narrower tag."""

    kind = RemoteErrorKind.OTHER


class RemoteSchemaMissing(RemoteError):
    """The remote table/collection does not exist."""

    kind = RemoteErrorKind.SCHEMA_MISSING


class RemoteUnreachable(RemoteError):
    """Network or authentication failure talking to the remote service."""

    kind = RemoteErrorKind.UNREACHABLE


class SelectionOutOfDocument(ZenJournalError):
    """A selection resolves outside the live document."""
