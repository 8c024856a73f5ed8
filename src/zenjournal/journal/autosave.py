"""Autosave coordinator — debounced persistence of the open document.

States::

    IDLE --change--> PENDING_SAVE --(quiet for `delay`)--> SAVING --> IDLE
                      ^    |
                      +----+ change (timer restarts)

When the timer fires, the document is serialized and compared with the
snapshot last persisted for the open date; identical content is not written.
A manual :meth:`AutosaveCoordinator.save_now` cancels any pending timer and
always writes. SAVING ends once the local commit and the remote attempt have
both finished, whatever the remote outcome. A change that arrives while
saving restarts the timer, and the coordinator returns to PENDING_SAVE
rather than IDLE.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from enum import StrEnum

from loguru import logger

from zenjournal.core.events import SAVE_STATE_CHANGED, Event, EventBus
from zenjournal.editor.document import StyledDocument

from .models import Entry, now_ms
from .reconcile import Reconciler


class SaveState(StrEnum):
    IDLE = "idle"
    PENDING_SAVE = "pending_save"
    SAVING = "saving"


class AutosaveCoordinator:
    """Debounces document-changed events into write-through saves.

    Args:
        reconciler: Write path for entries.
        delay: Quiet period in seconds before an automatic save.
        clock: Epoch-millisecond clock used for ``updated_at``.
        event_bus: Optional bus receiving ``SAVE_STATE_CHANGED``.
    """

    def __init__(
        self,
        reconciler: Reconciler,
        *,
        delay: float = 2.0,
        clock: Callable[[], int] = now_ms,
        event_bus: EventBus | None = None,
    ):
        self._reconciler = reconciler
        self.delay = delay
        self._clock = clock
        self._event_bus = event_bus
        self._state = SaveState.IDLE
        self._timer: asyncio.Task | None = None
        self._queued_saves = 0
        self._lock = asyncio.Lock()
        self.date_key: str | None = None
        self.document: StyledDocument | None = None
        self._snapshot = ""
        self.writes = 0

    @property
    def state(self) -> SaveState:
        return self._state

    def _set_state(self, state: SaveState) -> None:
        if state == self._state:
            return
        self._state = state
        logger.debug(f"Autosave {state.value}")
        if self._event_bus:
            self._event_bus.emit_sync(
                Event(name=SAVE_STATE_CHANGED, payload={"state": state.value, "date": self.date_key}, source="autosave")
            )

    def _stored_snapshot(self, date_key: str) -> str:
        stored = self._reconciler.entries.get(date_key)
        return (stored.content if stored else StyledDocument()).to_json()

    async def open(self, date_key: str, document: StyledDocument) -> None:
        """Start tracking *document* for *date_key*.

        Pending changes to the previously open document are saved first.
        """
        await self.flush()
        self.date_key = date_key
        self.document = document
        self._snapshot = self._stored_snapshot(date_key)

    def document_changed(self) -> None:
        """Note an edit; (re)start the debounce timer."""
        if self.document is None:
            return
        self._cancel_timer()
        self._timer = asyncio.get_running_loop().create_task(self._deadline())
        if self._state == SaveState.IDLE:
            self._set_state(SaveState.PENDING_SAVE)

    async def save_now(self) -> bool:
        """Manual save: cancel the timer and write regardless of changes."""
        self._cancel_timer()
        return await self._save(force=True)

    async def flush(self) -> None:
        """Run a pending debounced save immediately."""
        if self._timer is not None:
            self._cancel_timer()
            await self._save(force=False)
        else:
            # Wait out a save already in flight.
            async with self._lock:
                pass

    def mark_persisted(self) -> None:
        """Treat the open document as already saved (e.g. after an external reload)."""
        self._cancel_timer()
        if self.date_key is not None:
            self._snapshot = self._stored_snapshot(self.date_key)
        self._set_state(SaveState.IDLE)

    async def close(self) -> None:
        await self.flush()

    # ── Internal ───────────────────────────────────────────────────

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    async def _deadline(self) -> None:
        await asyncio.sleep(self.delay)
        # Past this point the task is never cancelled: _timer no longer points at it.
        self._timer = None
        self._queued_saves += 1
        await self._save(force=False, queued=True)

    async def _save(self, *, force: bool, queued: bool = False) -> bool:
        async with self._lock:
            if queued:
                self._queued_saves -= 1
            if self.document is None or self.date_key is None:
                self._settle()
                return False

            serialized = self.document.to_json()
            if not force and serialized == self._snapshot:
                logger.debug(f"No changes for {self.date_key}; skipping save")
                self._settle()
                return False

            self._set_state(SaveState.SAVING)
            previous = self._reconciler.entries.get(self.date_key)
            updated_at = self._clock()
            if previous is not None and updated_at <= previous.updated_at:
                updated_at = previous.updated_at + 1
            entry = Entry.for_date(
                self.date_key,
                self.document.copy(),
                tags=previous.tags if previous else [],
                updated_at=updated_at,
            )
            try:
                remote_done = await self._reconciler.save_entry(entry)
                self._snapshot = serialized
                self.writes += 1
                if remote_done is not None:
                    await remote_done
            finally:
                self._settle()
            return True

    def _settle(self) -> None:
        pending = self._timer is not None or self._queued_saves > 0
        self._set_state(SaveState.PENDING_SAVE if pending else SaveState.IDLE)
