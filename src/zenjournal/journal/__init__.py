"""Journal entries, their local and remote persistence, autosave and search.

Provides the entry/settings models, the local :class:`EntryStore`, the
last-writer-wins :class:`Reconciler` with its remote write queue, the
debounced :class:`AutosaveCoordinator`, and the :class:`JournalSession`
facade that ties them to one open document.
"""

from .autosave import AutosaveCoordinator, SaveState
from .config import SearchConfig
from .models import AppSettings, Entry, EntrySet, FontFamily, SearchFilters
from .reconcile import Reconciler, merge_entries
from .remote import PostgrestEntryService, RemoteEntryService, build_remote_service
from .session import JournalSession
from .store import EntryStore
from .sync_queue import RemoteOp, RemoteWriteQueue
from .sync_state import SyncState

__all__ = [
    "AppSettings",
    "AutosaveCoordinator",
    "Entry",
    "EntrySet",
    "EntryStore",
    "FontFamily",
    "JournalSession",
    "PostgrestEntryService",
    "Reconciler",
    "RemoteEntryService",
    "RemoteOp",
    "RemoteWriteQueue",
    "SaveState",
    "SearchConfig",
    "SearchFilters",
    "SyncState",
    "build_remote_service",
    "merge_entries",
]
