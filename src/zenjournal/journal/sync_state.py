"""Session-scoped remote sync circuit breaker.

Tracks the outcome of every remote call and permanently opens the circuit
(disables remote sync) the first time the remote reports that its schema is
missing. Unlike a time-based breaker it never closes again: the flag is
monotonic for the lifetime of the session, so readers never race a reset.
Transient failures are recorded but do not trip it.
"""

import time
from collections import deque
from dataclasses import dataclass

from loguru import logger

from zenjournal.core.exceptions import RemoteErrorKind


@dataclass(frozen=True)
class CallOutcome:
    at: float
    operation: str
    success: bool
    kind: RemoteErrorKind | None = None


class SyncState:
    """Owned by one Reconciler; a new session gets a fresh instance.

    Usage::

        state = SyncState()
        if state.allows_remote:
            try:
                rows = await remote.list_all()
                state.record("list_all", success=True)
            except RemoteError as e:
                state.record("list_all", success=False, kind=e.kind)
    """

    def __init__(self, history_size: int = 20):
        self._history: deque[CallOutcome] = deque(maxlen=history_size)
        self._disabled = False
        self.disabled_reason = ""

    @property
    def remote_sync_disabled(self) -> bool:
        return self._disabled

    @property
    def allows_remote(self) -> bool:
        return not self._disabled

    def record(self, operation: str, *, success: bool, kind: RemoteErrorKind | None = None) -> None:
        """Record a call outcome; a schema-missing failure trips the breaker."""
        self._history.append(CallOutcome(time.monotonic(), operation, success, kind))
        if kind == RemoteErrorKind.SCHEMA_MISSING:
            self.disable(f"remote schema missing (seen during {operation})")

    def disable(self, reason: str) -> bool:
        """Turn remote sync off for the rest of the session.

        Returns True only on the call that actually tripped it.
        """
        if self._disabled:
            return False
        self._disabled = True
        self.disabled_reason = reason
        logger.warning(f"Remote sync disabled for this session: {reason}")
        return True

    def get_status(self) -> dict:
        """Return debug info about recent remote calls."""
        recent = list(self._history)
        successes = sum(1 for o in recent if o.success)
        last_failure = next((o for o in reversed(recent) if not o.success), None)
        return {
            "total_calls": len(recent),
            "successes": successes,
            "failures": len(recent) - successes,
            "last_error": last_failure.kind.value if last_failure and last_failure.kind else None,
            "remote_sync_disabled": self._disabled,
            "reason": self.disabled_reason,
        }
