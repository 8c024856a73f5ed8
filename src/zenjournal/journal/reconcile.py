"""Local/remote reconciliation.

:func:`merge_entries` is the whole conflict policy: last writer wins per id,
judged by ``updated_at`` alone, ties keep the local copy. Remote deletions are
not propagated here; an id missing from the remote list is simply left alone
locally.

:class:`Reconciler` owns the in-memory entry set for a session and wires the
two stores together:

* **fetch-and-merge** at session start: one ``list_all`` call; schema
  missing trips the session breaker, any other failure leaves the local set
  as it is until the next session.
* **write-through** for every save/delete: commit to the local store, then
  hand the remote mirror to the :class:`RemoteWriteQueue`.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable

from loguru import logger

from zenjournal.core.events import (
    ENTRIES_MERGED,
    ENTRY_DELETED,
    ENTRY_SAVED,
    REMOTE_SYNC_DISABLED,
    Event,
    EventBus,
)
from zenjournal.core.exceptions import RemoteError, RemoteErrorKind

from .models import Entry, EntrySet
from .remote import RemoteEntryService
from .store import EntryStore
from .sync_queue import RemoteOp, RemoteWriteQueue
from .sync_state import SyncState


def merge_entries(local: EntrySet, remote: Iterable[Entry]) -> EntrySet:
    """Merge a remote listing into a copy of *local*.

    A remote entry replaces the local one only when its ``updated_at`` is
    strictly greater; ids only present remotely are added. *local* itself is
    not modified.
    """
    result = dict(local)
    for theirs in remote:
        ours = result.get(theirs.id)
        if ours is None or theirs.updated_at > ours.updated_at:
            result[theirs.id] = theirs
    return result


class Reconciler:
    """Keeps the local entry set and the remote table in step for one session.

    Args:
        store: Local entry store.
        remote: Remote service, or None when signed out.
        sync_enabled: Master switch from config.
        max_attempts: Tries per remote write (see :class:`RemoteWriteQueue`).
        event_bus: Optional bus for saved/deleted/merged notifications.
    """

    def __init__(
        self,
        store: EntryStore,
        remote: RemoteEntryService | None = None,
        *,
        sync_enabled: bool = True,
        max_attempts: int = 1,
        event_bus: EventBus | None = None,
    ):
        self.store = store
        self.sync_enabled = sync_enabled
        self.sync_state = SyncState()
        self.entries: EntrySet = {}
        self._max_attempts = max_attempts
        self._event_bus = event_bus
        self._remote: RemoteEntryService | None = None
        self._queue: RemoteWriteQueue | None = None
        if remote is not None:
            self.sign_in(remote)

    # ── Session ────────────────────────────────────────────────────

    @property
    def signed_in(self) -> bool:
        return self._remote is not None

    @property
    def remote_active(self) -> bool:
        return self.signed_in and self.sync_enabled and self.sync_state.allows_remote

    @property
    def write_queue(self) -> RemoteWriteQueue | None:
        return self._queue

    def sign_in(self, remote: RemoteEntryService) -> None:
        self._remote = remote
        self._queue = RemoteWriteQueue(
            remote,
            self.sync_state,
            max_attempts=self._max_attempts,
            event_bus=self._event_bus,
        )

    async def sign_out(self) -> None:
        """Finish in-flight remote writes and drop the remote.

        The entry set is reloaded from the local cache so later saves keep
        running local-only without overwriting other days.
        """
        await self.close()
        self._remote = None
        self._queue = None
        self.entries = await self.store.load()

    async def close(self) -> None:
        if self._queue is not None:
            await self._queue.stop()

    async def start(self) -> EntrySet:
        """Load the local cache, then reconcile it with the remote."""
        self.entries = await self.store.load()
        self.entries = await self.fetch_and_merge(self.entries)
        return self.entries

    # ── Fetch and merge ────────────────────────────────────────────

    async def fetch_and_merge(self, local: EntrySet) -> EntrySet:
        """Return *local* merged with the remote listing.

        Never raises: any remote failure returns *local* unchanged. The merged
        set is written to the local store only if it differs from *local*.
        """
        if not self.remote_active:
            return local

        try:
            remote_entries = await self._remote.list_all()
        except RemoteError as e:
            self.sync_state.record("list_all", success=False, kind=e.kind)
            if e.kind == RemoteErrorKind.SCHEMA_MISSING:
                await self._emit(REMOTE_SYNC_DISABLED, {"reason": self.sync_state.disabled_reason})
            else:
                logger.warning(f"Could not fetch remote entries, keeping local copy: {e}")
            return local
        self.sync_state.record("list_all", success=True)

        merged = merge_entries(local, remote_entries)
        if merged != local:
            changed = sorted(k for k in merged if merged[k] != local.get(k))
            logger.info(f"Merged {len(changed)} remote entr{'y' if len(changed) == 1 else 'ies'} into local cache")
            await self.store.save(merged)
            await self._emit(ENTRIES_MERGED, {"changed": changed})
        if local is self.entries:
            self.entries = merged
        return merged

    # ── Write-through ──────────────────────────────────────────────

    async def save_entry(self, entry: Entry) -> asyncio.Future | None:
        """Commit *entry* locally, then queue its remote upsert.

        Returns the remote write's future (resolves to True/False once
        attempted), or None when there is no remote step.
        """
        self.entries = {**self.entries, entry.id: entry}
        await self.store.save(self.entries)
        await self._emit(ENTRY_SAVED, {"id": entry.id, "updated_at": entry.updated_at})
        if not self.remote_active:
            return None
        return self._queue.submit(RemoteOp.UPSERT, entry.id, entry)

    async def delete_entry(self, entry_id: str) -> asyncio.Future | None:
        """Remove *entry_id* locally, then queue its remote delete."""
        self.entries = {k: v for k, v in self.entries.items() if k != entry_id}
        await self.store.save(self.entries)
        await self._emit(ENTRY_DELETED, {"id": entry_id})
        if not self.remote_active:
            return None
        return self._queue.submit(RemoteOp.DELETE, entry_id)

    async def _emit(self, name: str, payload: dict) -> None:
        if self._event_bus:
            await self._event_bus.emit(Event(name=name, payload=payload, source="reconciler"))
