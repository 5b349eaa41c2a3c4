"""Tests for the async event bus."""

from __future__ import annotations

import pytest

from swarmflow.events.bus import AsyncEventBus
from swarmflow.events.types import SwarmEvent


def _event(kind: str = "task.completed", **payload) -> SwarmEvent:
    return SwarmEvent(kind=kind, payload=payload)


class TestSwarmEvent:
    def test_to_dict(self) -> None:
        event = SwarmEvent(kind="agent.spawned", payload={"agent_id": "a1"}, timestamp=1.0)
        assert event.to_dict() == {
            "kind": "agent.spawned",
            "payload": {"agent_id": "a1"},
            "timestamp": 1.0,
        }


@pytest.mark.asyncio
async def test_subscribers_each_get_every_event():
    bus = AsyncEventBus()
    q1 = await bus.subscribe()
    q2 = await bus.subscribe()

    await bus.publish(_event(task_id="t1"))
    bus.publish_nowait(_event(task_id="t2"))
    await bus.close()

    for q in (q1, q2):
        ids = [e.payload["task_id"] async for e in bus.iter_events(q)]
        assert ids == ["t1", "t2"]


@pytest.mark.asyncio
async def test_late_subscriber_misses_earlier_events():
    bus = AsyncEventBus()
    bus.publish_nowait(_event(task_id="early"))
    q = await bus.subscribe()
    bus.publish_nowait(_event(task_id="late"))
    await bus.close()
    assert [e.payload["task_id"] async for e in bus.iter_events(q)] == ["late"]


@pytest.mark.asyncio
async def test_subscribe_after_close_ends_immediately():
    bus = AsyncEventBus()
    await bus.close()
    q = await bus.subscribe()
    assert [e async for e in bus.iter_events(q)] == []
    assert bus.closed


@pytest.mark.asyncio
async def test_publish_after_close_is_dropped():
    bus = AsyncEventBus()
    seen: list[SwarmEvent] = []
    bus.add_listener(seen.append)
    await bus.close()
    bus.publish_nowait(_event())
    assert seen == []


@pytest.mark.asyncio
async def test_listeners_are_scheduled_not_called_inline():
    bus = AsyncEventBus()
    seen: list[str] = []
    bus.add_listener(lambda e: seen.append(e.kind))

    bus.publish_nowait(_event("swarm.initialized"))
    assert seen == []

    await bus.close()
    assert seen == ["swarm.initialized"]


@pytest.mark.asyncio
async def test_failing_listener_does_not_break_others():
    bus = AsyncEventBus()
    seen: list[str] = []

    def broken(event: SwarmEvent) -> None:
        raise ValueError("listener bug")

    bus.add_listener(broken)
    bus.add_listener(lambda e: seen.append(e.kind))
    bus.publish_nowait(_event("task.cancelled"))
    await bus.close()

    assert seen == ["task.cancelled"]


@pytest.mark.asyncio
async def test_remove_listener():
    bus = AsyncEventBus()
    seen: list[SwarmEvent] = []
    bus.add_listener(seen.append)
    bus.remove_listener(seen.append)
    bus.remove_listener(seen.append)
    bus.publish_nowait(_event())
    await bus.close()
    assert seen == []


def test_publish_without_running_loop_calls_listener_directly():
    bus = AsyncEventBus()
    seen: list[str] = []
    bus.add_listener(lambda e: seen.append(e.kind))
    bus.publish_nowait(_event("agent.removed"))
    assert seen == ["agent.removed"]
