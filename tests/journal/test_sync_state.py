"""Tests for zenjournal.journal.sync_state."""

from zenjournal.core.exceptions import RemoteErrorKind
from zenjournal.journal.sync_state import SyncState


def test_initially_allows_remote():
    state = SyncState()
    assert state.allows_remote
    assert not state.remote_sync_disabled


def test_transient_failures_do_not_trip():
    state = SyncState()
    for _ in range(10):
        state.record("upsert", success=False, kind=RemoteErrorKind.UNREACHABLE)
    state.record("upsert", success=False, kind=RemoteErrorKind.OTHER)
    assert state.allows_remote


def test_schema_missing_trips():
    state = SyncState()
    state.record("list_all", success=False, kind=RemoteErrorKind.SCHEMA_MISSING)
    assert state.remote_sync_disabled
    assert "list_all" in state.disabled_reason


def test_monotonic():
    state = SyncState()
    assert state.disable("first") is True
    assert state.disable("second") is False
    state.record("list_all", success=True)
    assert state.remote_sync_disabled
    assert state.disabled_reason == "first"


def test_status_history_is_bounded():
    state = SyncState(history_size=3)
    state.record("upsert", success=True)
    for _ in range(3):
        state.record("upsert", success=False, kind=RemoteErrorKind.UNREACHABLE)
    status = state.get_status()
    assert status["total_calls"] == 3
    assert status["failures"] == 3
    assert status["last_error"] == "unreachable"
    assert status["remote_sync_disabled"] is False
