"""Swarm coordinator: decomposes tasks and schedules subtasks onto agents."""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from typing import Any

from swarmflow.config import STRATEGIES, CoordinatorConfig
from swarmflow.errors import ConfigurationError, CyclicDependencyError, NotFoundError
from swarmflow.events.bus import AsyncEventBus
from swarmflow.events.types import EventKind, SwarmEvent
from swarmflow.store import MemoryStore, Store, StoreJournal
from swarmflow.swarm.decomposer import KeywordPlanner, Planner
from swarmflow.swarm.metrics import CoordinatorMetrics
from swarmflow.swarm.registry import Registry
from swarmflow.swarm.strategies import (
    STRATEGY_RUNNERS,
    ExecutionContext,
    resolve_strategy,
)
from swarmflow.swarm.types import Agent, ExecutionResult, Swarm, Task
from swarmflow.swarm.worker import Executor, SimulatedExecutor

logger = logging.getLogger(__name__)


class SwarmCoordinator:
    """Owns the registry and drives every task through its lifecycle.

    All writes to swarms, agents and tasks go through this class (and the
    rebalancer it triggers via the registry). Each mutating call is followed
    by a journal write and an event; neither is ever awaited.

    Usage:
        coordinator = SwarmCoordinator()
        swarm = coordinator.create_swarm("mesh", capacity=4)
        coordinator.spawn_agent("coder", swarm_id=swarm.id)
        coordinator.spawn_agent("tester", swarm_id=swarm.id)
        task = await coordinator.orchestrate_task(
            "implement login and test login",
            strategy="parallel",
            swarm_id=swarm.id,
        )
    """

    def __init__(
        self,
        config: CoordinatorConfig | None = None,
        planner: Planner | None = None,
        executor: Executor | None = None,
        store: Store | None = None,
        event_bus: AsyncEventBus | None = None,
    ) -> None:
        self.config = config or CoordinatorConfig()
        self.planner: Planner = planner or KeywordPlanner()
        self.executor: Executor = executor or SimulatedExecutor(
            time_scale=self.config.time_scale,
            failure_rate=self.config.failure_rate,
            seed=self.config.seed,
        )
        self.store: Store = store if store is not None else MemoryStore()
        self.journal = StoreJournal(self.store)
        self.event_bus = event_bus or AsyncEventBus()
        self.metrics = CoordinatorMetrics()
        self.registry = Registry(
            on_agent_spawned=self._agent_spawned,
            on_agent_removed=self._agent_removed,
        )

    # ── Swarms ──────────────────────────────────────────────

    def create_swarm(
        self,
        topology: str | None = None,
        capacity: int | None = None,
        strategy: str | None = None,
        swarm_id: str | None = None,
    ) -> Swarm:
        strategy = strategy or self.config.default_strategy
        if strategy not in STRATEGIES:
            raise ConfigurationError(
                f"Unknown strategy: {strategy!r}. Valid options: {', '.join(STRATEGIES)}"
            )
        swarm = self.registry.create_swarm(
            topology or self.config.default_topology,
            capacity if capacity is not None else self.config.max_agents,
            strategy=strategy,
            swarm_id=swarm_id,
        )
        self.journal.record("swarms", swarm.id, swarm.to_dict())
        self._emit(
            "swarm.initialized",
            swarm_id=swarm.id,
            topology=swarm.topology,
            capacity=swarm.capacity,
        )
        return swarm

    def destroy_swarm(self, swarm_id: str) -> list[str]:
        """Destroy a swarm. In-flight subtasks are left to finish on their own."""
        swarm = self.registry.get_swarm(swarm_id)
        task_ids = sorted(swarm.task_ids) if swarm is not None else []
        removed = self.registry.destroy_swarm(swarm_id)

        for agent_id in removed:
            self.journal.forget("agents", agent_id)
        for task_id in task_ids:
            task = self.registry.get_task(task_id)
            if task is not None:
                self.journal.record("tasks", task.id, task.to_dict())
        self.journal.forget("swarms", swarm_id)
        self._emit("swarm.destroyed", swarm_id=swarm_id, agents_removed=len(removed))
        return removed

    # ── Agents ──────────────────────────────────────────────

    def spawn_agent(
        self,
        role: str = "specialist",
        swarm_id: str | None = None,
        capabilities: list[str] | None = None,
    ) -> Agent:
        swarm_id = swarm_id or self._active_swarm_id()
        agent = self.registry.spawn(swarm_id, role, capabilities)
        swarm = self.registry.get_swarm(swarm_id)
        if swarm is not None:
            self.journal.record("swarms", swarm.id, swarm.to_dict())
        return agent

    def _agent_spawned(self, agent: Agent) -> None:
        # Runs before any rebalance, so a newcomer evicted straight away is
        # announced and journaled before its removal.
        self.journal.record("agents", agent.id, agent.to_dict())
        self._emit(
            "agent.spawned",
            agent_id=agent.id,
            role=agent.role,
            name=agent.name,
            swarm_id=agent.swarm_id,
        )

    def _agent_removed(self, agent: Agent, reason: str) -> None:
        self.journal.forget("agents", agent.id)
        self._emit("agent.removed", agent_id=agent.id, swarm_id=agent.swarm_id, reason=reason)

    # ── Tasks ───────────────────────────────────────────────

    async def orchestrate_task(
        self,
        description: str,
        strategy: str | None = None,
        priority: str = "medium",
        swarm_id: str | None = None,
        task_id: str | None = None,
    ) -> Task:
        """Decompose *description* and run its subtasks to completion.

        The returned task is ``completed`` even if every subtask failed;
        inspect ``task.results`` for per-subtask outcomes. It is ``cancelled``
        if its swarm was destroyed while it ran, or if this coroutine is
        cancelled (in which case the cancellation propagates).
        """
        swarm = self.registry.require_swarm(swarm_id or self._active_swarm_id())
        strategy = strategy or swarm.strategy
        if strategy not in STRATEGIES:
            raise ConfigurationError(
                f"Unknown strategy: {strategy!r}. Valid options: {', '.join(STRATEGIES)}"
            )

        task = Task(
            id=task_id or str(uuid.uuid4()),
            description=description,
            strategy=strategy,
            swarm_id=swarm.id,
            priority=priority,
        )
        self.registry.add_task(task)
        task.subtasks = self.planner.decompose(task.id, description, priority)
        task.resolved_strategy = resolve_strategy(strategy, task.subtasks, swarm.metrics.load)
        logger.info(
            "Task %s: %d subtasks, strategy %s → %s",
            task.id,
            len(task.subtasks),
            strategy,
            task.resolved_strategy,
        )

        task.status = "in_progress"
        task.started_at = time.time()
        self.metrics.task_started()
        self.journal.record("tasks", task.id, task.to_dict())
        self._emit(
            "task.orchestrated",
            task_id=task.id,
            swarm_id=swarm.id,
            strategy=strategy,
            resolved_strategy=task.resolved_strategy,
            subtasks=len(task.subtasks),
        )

        ctx = ExecutionContext(
            registry=self.registry,
            executor=self.executor,
            on_settled=self._subtask_settled,
        )
        runner = STRATEGY_RUNNERS[task.resolved_strategy]
        try:
            results = await runner(ctx, task)
        except (CyclicDependencyError, asyncio.CancelledError):
            task.status = "cancelled"
            self._task_finished(task, [])
            raise

        self._task_finished(task, results)
        return task

    def _subtask_settled(self, task: Task, result: ExecutionResult) -> None:
        task.settled_subtasks += 1
        self.metrics.subtask_settled(result.outcome)
        swarm = self.registry.get_swarm(task.swarm_id)
        if swarm is not None:
            swarm.settled_subtasks += 1
            if result.ok:
                swarm.fulfilled_subtasks += 1
            swarm.metrics.efficiency = swarm.fulfilled_subtasks / swarm.settled_subtasks
        if result.agent_id is not None:
            agent = self.registry.get_agent(result.agent_id)
            if agent is not None:
                self.journal.record("agents", agent.id, agent.to_dict())
        self._emit(
            "subtask.completed",
            task_id=task.id,
            subtask_id=result.subtask_id,
            outcome=result.outcome,
            agent_id=result.agent_id,
        )

    def _task_finished(self, task: Task, results: list[ExecutionResult]) -> None:
        task.results = tuple(results)
        if task.status == "cancelled":
            self.metrics.task_cancelled()
            logger.info("Task %s cancelled after %d results", task.id, len(results))
            self.journal.record("tasks", task.id, task.to_dict())
            self._emit("task.cancelled", task_id=task.id, swarm_id=task.swarm_id)
            return

        task.status = "completed"
        task.completed_at = time.time()
        duration_ms = task.duration_ms or 0.0
        self.metrics.task_completed(duration_ms)
        swarm = self.registry.get_swarm(task.swarm_id)
        if swarm is not None:
            swarm.metrics.throughput += 1
            self.journal.record("swarms", swarm.id, swarm.to_dict())
        self.journal.record("tasks", task.id, task.to_dict())

        fulfilled = sum(1 for r in results if r.ok)
        logger.info(
            "Task %s completed in %.1fms: %d/%d subtasks fulfilled",
            task.id,
            duration_ms,
            fulfilled,
            len(results),
        )
        self._emit(
            "task.completed",
            task_id=task.id,
            swarm_id=task.swarm_id,
            fulfilled=fulfilled,
            total=len(results),
            duration_ms=duration_ms,
        )

    # ── Status ──────────────────────────────────────────────

    def task_status(self, task_id: str) -> dict[str, Any]:
        task = self.registry.require_task(task_id)
        outcomes = {"fulfilled": 0, "rejected": 0, "unassigned": 0}
        for r in task.results:
            outcomes[r.outcome] += 1
        return {
            "id": task.id,
            "description": task.description,
            "status": task.status,
            "strategy": task.strategy,
            "resolved_strategy": task.resolved_strategy,
            "progress": task.progress,
            "subtasks": len(task.subtasks),
            "outcomes": outcomes,
            "created_at": task.created_at,
            "started_at": task.started_at,
            "completed_at": task.completed_at,
        }

    def swarm_status(self, swarm_id: str | None = None) -> dict[str, Any]:
        swarm = self.registry.require_swarm(swarm_id or self._active_swarm_id())
        agents = [
            {
                "id": a.id,
                "name": a.name,
                "role": a.role,
                "status": a.status,
                "tasks_completed": a.tasks_completed,
                "success_rate": a.performance.success_rate,
            }
            for a in self.registry.members(swarm.id)
        ]
        tasks = []
        for task_id in sorted(swarm.task_ids):
            task = self.registry.get_task(task_id)
            if task is not None:
                tasks.append({"id": task.id, "status": task.status, "progress": task.progress})
        return {
            "id": swarm.id,
            "topology": swarm.topology,
            "capacity": swarm.capacity,
            "status": swarm.status,
            "agents": agents,
            "tasks": tasks,
            "structure": swarm.structure.to_dict(),
            "metrics": swarm.metrics.to_dict(),
        }

    def metrics_snapshot(self) -> dict[str, Any]:
        return self.metrics.to_dict()

    def performance_report(self) -> dict[str, Any]:
        """Coordinator metrics, a per-swarm summary and recommendations."""
        swarms = [s for s in self.registry.swarms.values() if s.status == "active"]
        summary = {
            "active_swarms": len(swarms),
            "total_agents": len(self.registry.agents),
            "busy_agents": sum(1 for a in self.registry.agents.values() if not a.is_idle),
            "swarms": {
                s.id: {
                    "topology": s.topology,
                    "agents": s.size,
                    "capacity": s.capacity,
                    **s.metrics.to_dict(),
                }
                for s in swarms
            },
        }
        return {
            "metrics": self.metrics.to_dict(),
            "summary": summary,
            "recommendations": self.metrics.recommendations(),
        }

    # ── Internals ───────────────────────────────────────────

    def _active_swarm_id(self) -> str:
        swarm_id = self.registry.active_swarm_id()
        if swarm_id is None:
            raise NotFoundError("swarm", "<active>")
        return swarm_id

    def _emit(self, kind: EventKind, **payload: Any) -> None:
        self.event_bus.publish_nowait(SwarmEvent(kind=kind, payload=payload))
