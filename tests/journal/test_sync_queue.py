"""Tests for RemoteWriteQueue — serialized, observable remote writes."""

import asyncio

import pytest

from zenjournal.core.events import REMOTE_WRITE_FAILED, EventBus
from zenjournal.core.exceptions import RemoteSchemaMissing, RemoteUnreachable
from zenjournal.journal.sync_queue import RemoteOp, RemoteWriteQueue
from zenjournal.journal.sync_state import SyncState


class FlakyRemote:
    """Fails the first *failures* calls with *error*, then succeeds."""

    def __init__(self, failures: int = 0, error: Exception | None = None, delay: float = 0.0):
        self.failures = failures
        self.error = error or RemoteUnreachable("offline")
        self.delay = delay
        self.calls: list[tuple[str, str]] = []

    async def _call(self, op: str, entry_id: str) -> None:
        self.calls.append((op, entry_id))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.failures > 0:
            self.failures -= 1
            raise self.error

    async def list_all(self):
        return []

    async def upsert(self, entry):
        await self._call("upsert", entry.id)

    async def delete(self, entry_id):
        await self._call("delete", entry_id)


@pytest.mark.smoke
class TestRemoteWriteQueue:
    async def test_future_resolves_true(self, make_entry):
        remote = FlakyRemote()
        queue = RemoteWriteQueue(remote, SyncState())
        done = queue.submit(RemoteOp.UPSERT, "a", make_entry("a"))
        assert await asyncio.wait_for(done, timeout=5.0) is True
        assert remote.calls == [("upsert", "a")]
        await queue.stop()

    async def test_writes_run_in_submission_order(self, make_entry):
        remote = FlakyRemote(delay=0.01)
        queue = RemoteWriteQueue(remote, SyncState())
        futures = [
            queue.submit(RemoteOp.UPSERT, "a", make_entry("a")),
            queue.submit(RemoteOp.DELETE, "b"),
            queue.submit(RemoteOp.UPSERT, "c", make_entry("c")),
        ]
        assert await asyncio.gather(*futures) == [True, True, True]
        assert remote.calls == [("upsert", "a"), ("delete", "b"), ("upsert", "c")]
        await queue.stop()

    async def test_failure_resolves_false_and_dead_letters(self, make_entry):
        bus = EventBus()
        failed: list[dict] = []
        bus.on(REMOTE_WRITE_FAILED, lambda event: failed.append(event.payload))
        queue = RemoteWriteQueue(FlakyRemote(failures=5), SyncState(), event_bus=bus)

        assert await queue.submit(RemoteOp.UPSERT, "a", make_entry("a")) is False
        assert len(queue.dead_letters) == 1
        assert failed[0]["entry_id"] == "a"
        await queue.stop()

    async def test_retries_up_to_max_attempts(self, make_entry):
        remote = FlakyRemote(failures=2)
        queue = RemoteWriteQueue(remote, SyncState(), max_attempts=3)
        assert await queue.submit(RemoteOp.UPSERT, "a", make_entry("a")) is True
        assert len(remote.calls) == 3
        assert queue.dead_letters == []
        await queue.stop()

    async def test_single_attempt_by_default(self, make_entry):
        remote = FlakyRemote(failures=1)
        queue = RemoteWriteQueue(remote, SyncState())
        assert await queue.submit(RemoteOp.UPSERT, "a", make_entry("a")) is False
        assert len(remote.calls) == 1
        await queue.stop()

    async def test_schema_missing_skips_later_writes(self, make_entry):
        remote = FlakyRemote(failures=100, error=RemoteSchemaMissing("gone"))
        state = SyncState()
        queue = RemoteWriteQueue(remote, state, max_attempts=5)

        first = queue.submit(RemoteOp.UPSERT, "a", make_entry("a"))
        second = queue.submit(RemoteOp.DELETE, "b")
        assert await first is False
        assert await second is False
        assert state.remote_sync_disabled
        # no retry of the schema failure, no call for the second write
        assert remote.calls == [("upsert", "a")]
        await queue.stop()

    async def test_queue_full_drops(self, make_entry):
        queue = RemoteWriteQueue(FlakyRemote(delay=0.05), SyncState(), max_queue_size=1)
        first = queue.submit(RemoteOp.UPSERT, "a", make_entry("a"))
        second = queue.submit(RemoteOp.UPSERT, "b", make_entry("b"))
        assert await second is False
        assert await first is True
        await queue.stop()

    async def test_stop_drains_pending(self, make_entry):
        remote = FlakyRemote(delay=0.01)
        queue = RemoteWriteQueue(remote, SyncState())
        futures = [queue.submit(RemoteOp.DELETE, str(i)) for i in range(3)]
        await queue.stop()
        assert all(f.done() and f.result() for f in futures)
        assert not queue.running
