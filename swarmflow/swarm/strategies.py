"""Execution strategies for a task's subtasks.

Every strategy returns one :class:`ExecutionResult` per subtask, in subtask
order, whatever order the executions actually settle in. Work failures and
missing agents are recorded as results; they never abort the siblings.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass

from swarmflow.config import STRATEGIES
from swarmflow.errors import ConfigurationError, CyclicDependencyError, UnassignableSubtaskError
from swarmflow.swarm.matcher import find_best_agent
from swarmflow.swarm.registry import Registry
from swarmflow.swarm.types import Agent, ExecutionResult, Subtask, Task
from swarmflow.swarm.worker import Executor, run_subtask

logger = logging.getLogger(__name__)

CONCRETE_STRATEGIES = ("parallel", "sequential", "balanced")

PARALLELIZABLE_THRESHOLD = 0.7
DEPENDENCY_RATIO_THRESHOLD = 0.5
LOW_LOAD = 0.3
HIGH_LOAD = 0.7


@dataclass
class ExecutionContext:
    """What a strategy needs from the coordinator."""

    registry: Registry
    executor: Executor
    on_settled: Callable[[Task, ExecutionResult], None] | None = None


StrategyRunner = Callable[[ExecutionContext, Task], Awaitable[list[ExecutionResult]]]


# ── Dependency grouping ─────────────────────────────────────


def group_by_dependencies(subtasks: Sequence[Subtask]) -> list[list[Subtask]]:
    """Split subtasks into stages whose dependencies are met by earlier stages.

    Raises CyclicDependencyError when a round makes no progress, which covers
    both cycles and dependencies on ids outside *subtasks*.
    """
    groups: list[list[Subtask]] = []
    processed: set[str] = set()
    remaining = list(subtasks)

    while remaining:
        ready = [st for st in remaining if all(dep in processed for dep in st.dependencies)]
        if not ready:
            raise CyclicDependencyError([st.id for st in remaining])
        groups.append(ready)
        processed.update(st.id for st in ready)
        remaining = [st for st in remaining if st.id not in processed]

    return groups


# ── Strategy selection ──────────────────────────────────────


def choose_adaptive(subtasks: Sequence[Subtask]) -> str:
    """Pick a concrete strategy from the shape of the dependency graph."""
    count = len(subtasks)
    edges = sum(len(st.dependencies) for st in subtasks)
    parallelizability = 1.0 if count > 1 and edges == 0 else 0.5
    dependency_ratio = edges / max(1, count)

    if parallelizability > PARALLELIZABLE_THRESHOLD:
        return "parallel"
    if dependency_ratio > DEPENDENCY_RATIO_THRESHOLD:
        return "sequential"
    return "balanced"


def choose_auto(load: float) -> str:
    """Pick a concrete strategy from the current swarm load."""
    if load < LOW_LOAD:
        return "parallel"
    if load > HIGH_LOAD:
        return "sequential"
    return "balanced"


def resolve_strategy(strategy: str, subtasks: Sequence[Subtask], load: float) -> str:
    if strategy not in STRATEGIES:
        raise ConfigurationError(
            f"Unknown strategy: {strategy!r}. Valid options: {', '.join(STRATEGIES)}"
        )
    if strategy == "adaptive":
        return choose_adaptive(subtasks)
    if strategy == "auto":
        return choose_auto(load)
    return strategy


# ── Helpers ─────────────────────────────────────────────────


def _claim(ctx: ExecutionContext, task: Task, subtask: Subtask, candidates: list[Agent]) -> Agent | None:
    agent = find_best_agent(candidates, subtask)
    if agent is None:
        return None
    ctx.registry.assign(agent, subtask.id)
    task.assigned_agent_ids.add(agent.id)
    return agent


def _unassigned(ctx: ExecutionContext, task: Task, subtask: Subtask) -> ExecutionResult:
    signal = UnassignableSubtaskError(subtask.id, task.swarm_id)
    logger.warning("Task %s: %s", task.id, signal)
    result = ExecutionResult(
        subtask_id=subtask.id,
        outcome="unassigned",
        error=str(signal),
        exception=signal,
    )
    _settle(ctx, task, result)
    return result


def _settle(ctx: ExecutionContext, task: Task, result: ExecutionResult) -> None:
    if ctx.on_settled is not None:
        ctx.on_settled(task, result)


async def _run(ctx: ExecutionContext, task: Task, agent_id: str, subtask: Subtask) -> ExecutionResult:
    result = await run_subtask(ctx.registry, agent_id, subtask, ctx.executor)
    _settle(ctx, task, result)
    return result


async def _run_batch(ctx: ExecutionContext, task: Task, batch: Sequence[Subtask]) -> list[ExecutionResult]:
    """Assign a batch from one idle snapshot, then run it concurrently."""
    candidates = ctx.registry.idle_agents(task.swarm_id)
    slots: list[ExecutionResult | None] = [None] * len(batch)
    launched: list[tuple[int, str, Awaitable[ExecutionResult]]] = []

    for i, subtask in enumerate(batch):
        agent = _claim(ctx, task, subtask, candidates)
        if agent is None:
            slots[i] = _unassigned(ctx, task, subtask)
            continue
        candidates.remove(agent)
        launched.append((i, agent.id, _run(ctx, task, agent.id, subtask)))

    try:
        settled = await asyncio.gather(*(coro for _, _, coro in launched))
    except asyncio.CancelledError:
        # Children cancelled before their first step never reach run_subtask.
        for i, agent_id, _ in launched:
            agent = ctx.registry.get_agent(agent_id)
            if agent is not None and agent.current_subtask_id == batch[i].id:
                ctx.registry.release(agent_id)
        raise
    for (i, _, _), result in zip(launched, settled):
        slots[i] = result
    return [r for r in slots if r is not None]


# ── Strategies ──────────────────────────────────────────────


async def execute_parallel(ctx: ExecutionContext, task: Task) -> list[ExecutionResult]:
    return await _run_batch(ctx, task, task.subtasks)


async def execute_sequential(ctx: ExecutionContext, task: Task) -> list[ExecutionResult]:
    results: list[ExecutionResult] = []
    for subtask in task.subtasks:
        # Re-read idle agents each step so releases from the last step count.
        candidates = ctx.registry.idle_agents(task.swarm_id)
        agent = _claim(ctx, task, subtask, candidates)
        if agent is None:
            results.append(_unassigned(ctx, task, subtask))
            continue
        results.append(await _run(ctx, task, agent.id, subtask))
    return results


async def execute_balanced(ctx: ExecutionContext, task: Task) -> list[ExecutionResult]:
    groups = group_by_dependencies(task.subtasks)
    logger.info("Task %s: %d dependency groups", task.id, len(groups))

    by_id: dict[str, ExecutionResult] = {}
    for group in groups:
        for result in await _run_batch(ctx, task, group):
            by_id[result.subtask_id] = result
    return [by_id[st.id] for st in task.subtasks]


STRATEGY_RUNNERS: dict[str, StrategyRunner] = {
    "parallel": execute_parallel,
    "sequential": execute_sequential,
    "balanced": execute_balanced,
}
