"""Shared fixtures: deterministic executors and planners for scheduling tests."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from typing import Any

import pytest

from swarmflow.config import CoordinatorConfig
from swarmflow.swarm.orchestrator import SwarmCoordinator
from swarmflow.swarm.registry import Registry
from swarmflow.swarm.types import Agent, Subtask


class ScriptedExecutor:
    """Executor whose outcomes are fixed per subtask id.

    Subtasks listed in *fail* raise; *delays* holds per-subtask sleeps in
    seconds. ``log`` records ``("start"|"end", subtask_id)`` in order and
    ``peak`` the highest number of concurrently running subtasks.
    """

    def __init__(
        self,
        fail: Sequence[str] = (),
        delays: dict[str, float] | None = None,
    ) -> None:
        self.fail = set(fail)
        self.delays = delays or {}
        self.log: list[tuple[str, str]] = []
        self.assignments: dict[str, str] = {}
        self.running = 0
        self.peak = 0
        self.gates: dict[str, asyncio.Event] = {}

    def gate(self, subtask_id: str) -> asyncio.Event:
        """Block *subtask_id* until the returned event is set."""
        event = asyncio.Event()
        self.gates[subtask_id] = event
        return event

    async def execute(self, agent: Agent, subtask: Subtask) -> Any:
        self.log.append(("start", subtask.id))
        self.assignments[subtask.id] = agent.id
        self.running += 1
        self.peak = max(self.peak, self.running)
        try:
            if subtask.id in self.gates:
                await self.gates[subtask.id].wait()
            await asyncio.sleep(self.delays.get(subtask.id, 0))
            if subtask.id in self.fail:
                raise RuntimeError(f"boom in {subtask.id}")
            return f"{subtask.id} done by {agent.name}"
        finally:
            self.running -= 1
            self.log.append(("end", subtask.id))


class FixedPlanner:
    """Planner that hands back a prepared list of ``(type, dependencies)``."""

    def __init__(self, specs: Sequence[tuple[str, Sequence[int]]]) -> None:
        self.specs = list(specs)

    def decompose(self, task_id: str, description: str, priority: str = "medium") -> list[Subtask]:
        return [
            Subtask(
                id=f"{task_id}-{i}",
                parent_id=task_id,
                description=f"{kind} step {i}",
                type=kind,
                priority=priority,
                dependencies=tuple(f"{task_id}-{d}" for d in deps),
                required_capabilities=(kind,),
                estimated_duration_ms=1000.0,
            )
            for i, (kind, deps) in enumerate(self.specs, start=1)
        ]


@pytest.fixture
def registry() -> Registry:
    return Registry()


@pytest.fixture
def executor() -> ScriptedExecutor:
    return ScriptedExecutor()


@pytest.fixture
def coordinator(executor: ScriptedExecutor) -> SwarmCoordinator:
    return SwarmCoordinator(config=CoordinatorConfig(time_scale=0.0), executor=executor)


@pytest.fixture
def scripted_executor_cls() -> type[ScriptedExecutor]:
    return ScriptedExecutor


@pytest.fixture
def fixed_planner_cls() -> type[FixedPlanner]:
    return FixedPlanner
