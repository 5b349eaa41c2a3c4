"""Tests for strategy selection, dependency grouping and execution."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from swarmflow.errors import ConfigurationError, CyclicDependencyError, UnassignableSubtaskError
from swarmflow.swarm.registry import Registry
from swarmflow.swarm.strategies import (
    ExecutionContext,
    choose_adaptive,
    choose_auto,
    execute_balanced,
    execute_parallel,
    execute_sequential,
    group_by_dependencies,
    resolve_strategy,
)
from swarmflow.swarm.types import ExecutionResult, Subtask, Task


def _subtask(sid: str, deps: tuple[str, ...] = (), kind: str = "implementation") -> Subtask:
    return Subtask(
        id=sid,
        parent_id="t",
        description=sid,
        type=kind,
        dependencies=deps,
        required_capabilities=(kind,),
    )


def _setup(
    roles: list[str],
    subtasks: list[Subtask],
    executor: Any,
) -> tuple[ExecutionContext, Task, list[ExecutionResult]]:
    registry = Registry()
    swarm = registry.create_swarm("mesh", max(1, len(roles)))
    for role in roles:
        registry.spawn(swarm.id, role)
    task = Task(id="t", description="d", strategy="balanced", swarm_id=swarm.id)
    task.subtasks = subtasks
    settled: list[ExecutionResult] = []
    ctx = ExecutionContext(
        registry=registry,
        executor=executor,
        on_settled=lambda _task, result: settled.append(result),
    )
    return ctx, task, settled


# ── Dependency grouping ──────────────────────────────────────


class TestGroupByDependencies:
    def test_fan_out_scenario(self) -> None:
        a, b, c = _subtask("A"), _subtask("B", ("A",)), _subtask("C", ("A",))
        groups = group_by_dependencies([a, b, c])
        assert [[st.id for st in g] for g in groups] == [["A"], ["B", "C"]]

    def test_independent_subtasks_form_one_group(self) -> None:
        groups = group_by_dependencies([_subtask("A"), _subtask("B")])
        assert len(groups) == 1

    def test_chain_takes_one_round_per_subtask(self) -> None:
        chain = [_subtask("A"), _subtask("B", ("A",)), _subtask("C", ("B",))]
        assert len(group_by_dependencies(chain)) == 3

    def test_cycle_raises(self) -> None:
        with pytest.raises(CyclicDependencyError) as exc:
            group_by_dependencies([_subtask("A", ("B",)), _subtask("B", ("A",))])
        assert sorted(exc.value.unresolved) == ["A", "B"]

    def test_unknown_dependency_raises(self) -> None:
        with pytest.raises(CyclicDependencyError):
            group_by_dependencies([_subtask("A"), _subtask("B", ("Z",))])

    def test_empty(self) -> None:
        assert group_by_dependencies([]) == []


# ── Strategy selection ───────────────────────────────────────


class TestSelection:
    def test_adaptive_independent_subtasks_go_parallel(self) -> None:
        assert choose_adaptive([_subtask("A"), _subtask("B")]) == "parallel"

    def test_adaptive_single_subtask_is_balanced(self) -> None:
        assert choose_adaptive([_subtask("A")]) == "balanced"

    def test_adaptive_dense_dependencies_go_sequential(self) -> None:
        chain = [_subtask("A"), _subtask("B", ("A",)), _subtask("C", ("B",))]
        assert choose_adaptive(chain) == "sequential"

    def test_adaptive_sparse_dependencies_are_balanced(self) -> None:
        sparse = [_subtask("A"), _subtask("B"), _subtask("C", ("A",))]
        assert choose_adaptive(sparse) == "balanced"

    @pytest.mark.parametrize(
        ("load", "expected"),
        [
            (0.0, "parallel"),
            (0.29, "parallel"),
            (0.3, "balanced"),
            (0.7, "balanced"),
            (0.71, "sequential"),
            (1.0, "sequential"),
        ],
    )
    def test_auto_follows_load(self, load: float, expected: str) -> None:
        assert choose_auto(load) == expected

    def test_resolve_passes_concrete_strategies_through(self) -> None:
        for name in ("parallel", "sequential", "balanced"):
            assert resolve_strategy(name, [_subtask("A")], 0.9) == name

    def test_resolve_unknown_strategy(self) -> None:
        with pytest.raises(ConfigurationError):
            resolve_strategy("random", [], 0.0)


# ── Parallel ─────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_parallel_runs_everything_at_once(scripted_executor_cls):
    executor = scripted_executor_cls(delays={"A": 0.01, "B": 0.01, "C": 0.01})
    subtasks = [_subtask("A"), _subtask("B", kind="testing"), _subtask("C", kind="design")]
    ctx, task, settled = _setup(["coder", "tester", "architect"], subtasks, executor)

    results = await execute_parallel(ctx, task)

    assert [r.subtask_id for r in results] == ["A", "B", "C"]
    assert all(r.ok for r in results)
    assert executor.peak == 3
    assert len(settled) == 3


@pytest.mark.asyncio
async def test_parallel_never_double_books_an_agent(scripted_executor_cls):
    executor = scripted_executor_cls(delays={"A": 0.01, "B": 0.01, "C": 0.01})
    subtasks = [_subtask("A"), _subtask("B"), _subtask("C")]
    ctx, task, _ = _setup(["coder", "coder"], subtasks, executor)

    results = await execute_parallel(ctx, task)

    assert len(results) == len(subtasks)
    assert [r.subtask_id for r in results] == ["A", "B", "C"]
    assert [r.outcome for r in results] == ["fulfilled", "fulfilled", "unassigned"]
    assert results[0].agent_id != results[1].agent_id
    assert isinstance(results[2].exception, UnassignableSubtaskError)
    assert "C" not in executor.assignments


@pytest.mark.asyncio
async def test_parallel_prefers_matching_role(scripted_executor_cls):
    executor = scripted_executor_cls()
    subtasks = [_subtask("T", kind="testing"), _subtask("I", kind="implementation")]
    ctx, task, _ = _setup(["coder", "tester"], subtasks, executor)

    await execute_parallel(ctx, task)

    agents = ctx.registry.agents
    assert agents[executor.assignments["T"]].role == "tester"
    assert agents[executor.assignments["I"]].role == "coder"


@pytest.mark.asyncio
async def test_parallel_with_no_agents_records_unassigned(scripted_executor_cls):
    ctx, task, settled = _setup([], [_subtask("A"), _subtask("B")], scripted_executor_cls())

    results = await execute_parallel(ctx, task)

    assert [r.outcome for r in results] == ["unassigned", "unassigned"]
    assert [r.subtask_id for r in settled] == ["A", "B"]


@pytest.mark.asyncio
async def test_parallel_failure_does_not_abort_siblings(scripted_executor_cls):
    executor = scripted_executor_cls(fail=["A"])
    ctx, task, _ = _setup(["coder", "coder"], [_subtask("A"), _subtask("B")], executor)

    results = await execute_parallel(ctx, task)

    assert [r.outcome for r in results] == ["rejected", "fulfilled"]
    assert "boom in A" in results[0].error
    assert all(a.is_idle for a in ctx.registry.agents.values())


# ── Sequential ───────────────────────────────────────────────


@pytest.mark.asyncio
async def test_sequential_keeps_going_after_rejection(scripted_executor_cls):
    executor = scripted_executor_cls(fail=["A"])
    ctx, task, _ = _setup(["coder"], [_subtask("A"), _subtask("B")], executor)

    results = await execute_sequential(ctx, task)

    assert results[0].outcome == "rejected"
    assert results[1].outcome == "fulfilled"
    assert executor.log == [("start", "A"), ("end", "A"), ("start", "B"), ("end", "B")]


@pytest.mark.asyncio
async def test_sequential_reuses_released_agent(scripted_executor_cls):
    executor = scripted_executor_cls()
    ctx, task, _ = _setup(["coder"], [_subtask("A"), _subtask("B"), _subtask("C")], executor)

    results = await execute_sequential(ctx, task)

    assert all(r.ok for r in results)
    assert len(set(executor.assignments.values())) == 1
    assert executor.peak == 1


# ── Balanced ─────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_balanced_runs_root_alone_then_dependents_together(scripted_executor_cls):
    executor = scripted_executor_cls(delays={"B": 0.01, "C": 0.01})
    subtasks = [_subtask("A"), _subtask("B", ("A",)), _subtask("C", ("A",))]
    ctx, task, _ = _setup(["coder", "coder", "coder"], subtasks, executor)

    results = await execute_balanced(ctx, task)

    assert executor.log[:2] == [("start", "A"), ("end", "A")]
    assert set(executor.log[2:4]) == {("start", "B"), ("start", "C")}
    assert executor.peak == 2
    assert [r.subtask_id for r in results] == ["A", "B", "C"]


@pytest.mark.asyncio
async def test_balanced_results_follow_subtask_order(scripted_executor_cls):
    subtasks = [_subtask("A"), _subtask("B", ("C",)), _subtask("C")]
    ctx, task, _ = _setup(["coder", "coder"], subtasks, scripted_executor_cls())

    results = await execute_balanced(ctx, task)

    assert [r.subtask_id for r in results] == ["A", "B", "C"]
    assert all(r.ok for r in results)


@pytest.mark.asyncio
async def test_balanced_cycle_raises_before_running(scripted_executor_cls):
    executor = scripted_executor_cls()
    subtasks = [_subtask("A", ("B",)), _subtask("B", ("A",))]
    ctx, task, _ = _setup(["coder"], subtasks, executor)

    with pytest.raises(CyclicDependencyError):
        await execute_balanced(ctx, task)
    assert executor.log == []


@pytest.mark.asyncio
async def test_cancelled_batch_releases_every_claimed_agent(scripted_executor_cls):
    executor = scripted_executor_cls()
    executor.gate("A")
    executor.gate("B")
    ctx, task, settled = _setup(["coder", "coder"], [_subtask("A"), _subtask("B")], executor)

    running = asyncio.create_task(execute_parallel(ctx, task))
    # One step lets the batch claim both agents before any subtask starts.
    await asyncio.sleep(0)
    running.cancel()

    with pytest.raises(asyncio.CancelledError):
        await running
    assert all(a.is_idle for a in ctx.registry.agents.values())
    assert all(a.current_subtask_id is None for a in ctx.registry.agents.values())
    assert settled == []
