"""Tests for zenjournal.core.events — EventBus and Event."""

from __future__ import annotations

import asyncio
from dataclasses import FrozenInstanceError

import pytest

from zenjournal.core.events import REMOTE_SYNC_DISABLED, REMOTE_WRITE_FAILED, SAVE_STATE_CHANGED, Event, EventBus

pytestmark = pytest.mark.smoke


async def test_subscribe_and_unsubscribe():
    bus = EventBus()
    received: list[Event] = []

    unsubscribe = bus.on("test.event", received.append)
    evt = Event(name="test.event", payload={"k": "v"}, source="test")
    await bus.emit(evt)
    assert received == [evt]

    unsubscribe()
    unsubscribe()
    await bus.emit(evt)
    assert len(received) == 1


async def test_off():
    bus = EventBus()
    received: list[str] = []

    def listener(event: Event) -> None:
        received.append(event.name)

    bus.on("x", listener)
    bus.off("x", listener)
    bus.off("x", listener)
    await bus.emit(Event(name="x"))
    assert received == []


async def test_glob_patterns():
    bus = EventBus()
    remote: list[str] = []
    everything: list[str] = []
    bus.on("remote.*", lambda event: remote.append(event.name))
    bus.on("*", lambda event: everything.append(event.name))

    await bus.emit(Event(name=REMOTE_WRITE_FAILED))
    await bus.emit(Event(name=SAVE_STATE_CHANGED))
    await bus.emit(Event(name=REMOTE_SYNC_DISABLED))

    assert remote == [REMOTE_WRITE_FAILED, REMOTE_SYNC_DISABLED]
    assert everything == [REMOTE_WRITE_FAILED, SAVE_STATE_CHANGED, REMOTE_SYNC_DISABLED]


async def test_last_remembers_latest_per_name():
    bus = EventBus()
    assert bus.last(SAVE_STATE_CHANGED) is None

    await bus.emit(Event(name=SAVE_STATE_CHANGED, payload={"state": "saving"}))
    bus.emit_sync(Event(name=SAVE_STATE_CHANGED, payload={"state": "idle"}))

    assert bus.last(SAVE_STATE_CHANGED).payload == {"state": "idle"}


async def test_async_listener_awaited():
    bus = EventBus()
    received: list[str] = []

    async def listener(event: Event) -> None:
        await asyncio.sleep(0)
        received.append(event.payload["state"])

    bus.on(SAVE_STATE_CHANGED, listener)
    await bus.emit(Event(name=SAVE_STATE_CHANGED, payload={"state": "saving"}))
    assert received == ["saving"]


async def test_failing_listener_does_not_stop_others():
    bus = EventBus()
    received: list[str] = []

    def bad(event: Event) -> None:
        raise RuntimeError("boom")

    bus.on("x", bad)
    bus.on("x", lambda event: received.append("ok"))
    await bus.emit(Event(name="x"))
    assert received == ["ok"]


def test_emit_sync_without_loop_runs_plain_listeners_only():
    bus = EventBus()
    received: list[str] = []

    async def async_listener(event: Event) -> None:
        received.append("async")

    bus.on("x", async_listener)
    bus.on("x", lambda event: received.append("sync"))
    bus.emit_sync(Event(name="x"))
    assert received == ["sync"]


async def test_emit_sync_schedules_async_listeners_in_loop():
    bus = EventBus()
    received: list[str] = []

    async def async_listener(event: Event) -> None:
        received.append("async")

    async def failing(event: Event) -> None:
        raise RuntimeError("boom")

    bus.on("x", failing)
    bus.on("x", async_listener)
    bus.emit_sync(Event(name="x"))
    await asyncio.sleep(0.01)
    assert received == ["async"]


def test_event_is_frozen():
    evt = Event(name="x")
    with pytest.raises(FrozenInstanceError):
        evt.name = "y"  # type: ignore[misc]
