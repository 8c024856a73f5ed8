"""Status notifications from the persistence core.

The autosave coordinator, the reconciler and the remote write queue announce
what they are doing ("saving", "saved", sync disabled, entries merged) on an
:class:`EventBus`. A UI subscribes to the names it cares about, either exactly
or with a glob such as ``"remote.*"``, and can ask for the most recent event
of a name when it first draws its status bar.

Usage::

    bus = EventBus()
    unsubscribe = bus.on("autosave.*", lambda e: print(e.payload["state"]))
    await bus.emit(Event(SAVE_STATE_CHANGED, {"state": "saving"}, source="autosave"))
    bus.last(SAVE_STATE_CHANGED).payload   # {"state": "saving"}
    unsubscribe()
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from fnmatch import fnmatchcase
from time import time
from typing import Any

from loguru import logger

ENTRY_SAVED = "entry.saved"
ENTRY_DELETED = "entry.deleted"
ENTRIES_MERGED = "entries.merged"
SAVE_STATE_CHANGED = "autosave.state"
REMOTE_WRITE_FAILED = "remote.write.failed"
REMOTE_SYNC_DISABLED = "remote.sync.disabled"
SETTINGS_CHANGED = "settings.changed"

Listener = Callable[["Event"], None] | Callable[["Event"], Awaitable[None]]


@dataclass(frozen=True)
class Event:
    name: str
    payload: dict[str, Any] = field(default_factory=dict)
    source: str = ""
    timestamp: float = field(default_factory=time)


class EventBus:
    """Listeners may be plain functions or coroutine functions.

    A listener that raises is logged and skipped; the emitter never sees it.
    """

    def __init__(self) -> None:
        self._listeners: list[tuple[str, Listener]] = []
        self._latest: dict[str, Event] = {}
        self._pending: set[asyncio.Task] = set()

    def on(self, pattern: str, listener: Listener) -> Callable[[], None]:
        """Subscribe *listener* to names matching *pattern*; returns an unsubscribe function."""
        entry = (pattern, listener)
        self._listeners.append(entry)

        def unsubscribe() -> None:
            if entry in self._listeners:
                self._listeners.remove(entry)

        return unsubscribe

    def off(self, pattern: str, listener: Listener) -> None:
        if (pattern, listener) in self._listeners:
            self._listeners.remove((pattern, listener))

    def last(self, name: str) -> Event | None:
        """Most recent event emitted under exactly *name*."""
        return self._latest.get(name)

    def _listeners_for(self, event: Event) -> list[Listener]:
        self._latest[event.name] = event
        return [listener for pattern, listener in self._listeners if fnmatchcase(event.name, pattern)]

    @staticmethod
    def _report(event: Event, exc: Exception) -> None:
        logger.warning(f"Listener for {event.name} raised: {exc}")

    async def emit(self, event: Event) -> None:
        for listener in self._listeners_for(event):
            try:
                result = listener(event)
                if inspect.isawaitable(result):
                    await result
            except Exception as exc:
                self._report(event, exc)

    def emit_sync(self, event: Event) -> None:
        """Emit without awaiting.

        Coroutine listeners become tasks on the running loop; with no loop
        running they are dropped and only plain listeners are called.
        """
        try:
            loop: asyncio.AbstractEventLoop | None = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        for listener in self._listeners_for(event):
            if inspect.iscoroutinefunction(listener):
                if loop is None:
                    logger.debug(f"No running loop; dropped async listener for {event.name}")
                    continue
                task = loop.create_task(self._run_async(listener, event))
                self._pending.add(task)
                task.add_done_callback(self._pending.discard)
                continue
            try:
                listener(event)
            except Exception as exc:
                self._report(event, exc)

    async def _run_async(self, listener: Listener, event: Event) -> None:
        try:
            await listener(event)
        except Exception as exc:
            self._report(event, exc)
