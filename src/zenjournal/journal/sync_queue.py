"""Remote write queue — the second phase of every save or delete.

The local store is committed first; the matching remote write is then
submitted here and carried out by a single background consumer, in
submission order. Each submission returns an ``asyncio.Future[bool]`` that
resolves once the write has been *attempted* (True on success, False on any
failure), so callers can observe the outcome without being blocked by it.
Nothing is rolled back locally when a remote write fails.

Retry policy lives here and nowhere else: ``max_attempts`` bounds retries of
transient failures, while a schema-missing failure trips the session's
:class:`SyncState` and every later write is skipped without a network call.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from enum import StrEnum

from loguru import logger

from zenjournal.core.events import REMOTE_SYNC_DISABLED, REMOTE_WRITE_FAILED, Event, EventBus
from zenjournal.core.exceptions import RemoteError, RemoteErrorKind

from .models import Entry
from .remote import RemoteEntryService
from .sync_state import SyncState

_SENTINEL = object()


class RemoteOp(StrEnum):
    UPSERT = "upsert"
    DELETE = "delete"


@dataclass
class RemoteWrite:
    """One pending remote mutation."""

    op: RemoteOp
    entry_id: str
    entry: Entry | None = None
    attempts: int = 0
    done: asyncio.Future | None = field(default=None, repr=False)

    def resolve(self, ok: bool) -> None:
        if self.done is not None and not self.done.done():
            self.done.set_result(ok)


class RemoteWriteQueue:
    """Serialized, observable remote writer backed by an asyncio queue.

    Args:
        remote: The remote entry service.
        sync_state: Session circuit breaker shared with the reconciler.
        max_attempts: Tries per write for transient (non schema) failures.
        event_bus: Optional bus notified of failures and of the breaker tripping.
        max_queue_size: When full, new writes are dropped (their future
            resolves False).
    """

    def __init__(
        self,
        remote: RemoteEntryService,
        sync_state: SyncState,
        *,
        max_attempts: int = 1,
        event_bus: EventBus | None = None,
        max_queue_size: int = 100,
    ):
        self._remote = remote
        self._state = sync_state
        self._max_attempts = max(1, max_attempts)
        self._event_bus = event_bus
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=max_queue_size)
        self._consumer_task: asyncio.Task | None = None
        self.dead_letters: list[tuple[RemoteWrite, str, float]] = []

    # ── Public API ─────────────────────────────────────────────────

    def submit(self, op: RemoteOp, entry_id: str, entry: Entry | None = None) -> asyncio.Future:
        """Queue a write and return a future that resolves when it was attempted.

        Must be called from a running event loop. Starts the consumer lazily.
        """
        loop = asyncio.get_running_loop()
        write = RemoteWrite(op=op, entry_id=entry_id, entry=entry, done=loop.create_future())
        self.start()
        try:
            self._queue.put_nowait(write)
            logger.debug(f"Queued remote {op.value} for {entry_id}")
        except asyncio.QueueFull:
            logger.warning(f"Remote write queue full; dropped {op.value} for {entry_id}")
            write.resolve(False)
        return write.done

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    @property
    def running(self) -> bool:
        return self._consumer_task is not None and not self._consumer_task.done()

    def start(self) -> None:
        """Create the background consumer task if it isn't running."""
        if self.running:
            return
        self._consumer_task = asyncio.create_task(self._consume_loop(), name="remote-write-consumer")

    async def drain(self) -> None:
        """Wait until every queued write has been attempted."""
        if self.running:
            await self._queue.join()

    async def stop(self) -> None:
        """Finish queued writes, then stop the consumer."""
        if not self.running:
            self._consumer_task = None
            return
        await self._queue.put(_SENTINEL)
        await self._consumer_task
        self._consumer_task = None

    # ── Internal ───────────────────────────────────────────────────

    async def _consume_loop(self) -> None:
        while True:
            item = await self._queue.get()
            if item is _SENTINEL:
                self._queue.task_done()
                break
            try:
                item.resolve(await self._process(item))
            except Exception:
                logger.exception(f"Unhandled error in remote {item.op.value} for {item.entry_id}")
                item.resolve(False)
            finally:
                self._queue.task_done()

    async def _process(self, write: RemoteWrite) -> bool:
        while True:
            if not self._state.allows_remote:
                logger.debug(f"Remote sync disabled; skipping {write.op.value} for {write.entry_id}")
                return False

            write.attempts += 1
            try:
                if write.op == RemoteOp.UPSERT:
                    await self._remote.upsert(write.entry)
                else:
                    await self._remote.delete(write.entry_id)
            except RemoteError as e:
                self._state.record(write.op.value, success=False, kind=e.kind)
                if e.kind == RemoteErrorKind.SCHEMA_MISSING:
                    await self._emit(REMOTE_SYNC_DISABLED, {"reason": self._state.disabled_reason})
                    return False
                if write.attempts < self._max_attempts:
                    logger.info(f"Retrying remote {write.op.value} for {write.entry_id}: {e}")
                    continue
                logger.warning(f"Remote {write.op.value} failed for {write.entry_id}: {e}")
                self.dead_letters.append((write, str(e), time.time()))
                await self._emit(
                    REMOTE_WRITE_FAILED,
                    {"op": write.op.value, "entry_id": write.entry_id, "error": str(e)},
                )
                return False

            self._state.record(write.op.value, success=True)
            logger.debug(f"Remote {write.op.value} done for {write.entry_id}")
            return True

    async def _emit(self, name: str, payload: dict) -> None:
        if self._event_bus:
            await self._event_bus.emit(Event(name=name, payload=payload, source="sync_queue"))
