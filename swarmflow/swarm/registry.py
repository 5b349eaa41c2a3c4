"""Registry of swarms, agents and tasks.

The registry owns every record the coordinator works with. Lookups after a
suspension point must go through the ``get_*`` accessors, which return
``None`` instead of raising, because a swarm can be destroyed or an agent
evicted while one of its subtasks is still executing.
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Callable

from swarmflow.errors import ConfigurationError, NotFoundError
from swarmflow.swarm.metrics import incremental_mean
from swarmflow.swarm.rebalancer import rebalance
from swarmflow.swarm.roles import default_capabilities, resolve_role
from swarmflow.swarm.topology import build_topology
from swarmflow.swarm.types import Agent, AgentPerformance, Swarm, Task

logger = logging.getLogger(__name__)


class Registry:
    """In-memory, authoritative state for one coordinator."""

    def __init__(
        self,
        on_agent_spawned: Callable[[Agent], None] | None = None,
        on_agent_removed: Callable[[Agent, str], None] | None = None,
    ) -> None:
        self.swarms: dict[str, Swarm] = {}
        self.agents: dict[str, Agent] = {}
        self.tasks: dict[str, Task] = {}
        self._on_agent_spawned = on_agent_spawned
        self._on_agent_removed = on_agent_removed

    # ── Lookups ─────────────────────────────────────────────

    def get_swarm(self, swarm_id: str) -> Swarm | None:
        return self.swarms.get(swarm_id)

    def get_agent(self, agent_id: str) -> Agent | None:
        return self.agents.get(agent_id)

    def get_task(self, task_id: str) -> Task | None:
        return self.tasks.get(task_id)

    def require_swarm(self, swarm_id: str) -> Swarm:
        swarm = self.swarms.get(swarm_id)
        if swarm is None or swarm.status != "active":
            raise NotFoundError("swarm", swarm_id)
        return swarm

    def require_agent(self, agent_id: str) -> Agent:
        agent = self.agents.get(agent_id)
        if agent is None:
            raise NotFoundError("agent", agent_id)
        return agent

    def require_task(self, task_id: str) -> Task:
        task = self.tasks.get(task_id)
        if task is None:
            raise NotFoundError("task", task_id)
        return task

    def active_swarm_id(self) -> str | None:
        """Return the first active swarm, in creation order."""
        for swarm_id, swarm in self.swarms.items():
            if swarm.status == "active":
                return swarm_id
        return None

    def members(self, swarm_id: str) -> list[Agent]:
        """Agents of a swarm in spawn order."""
        swarm = self.swarms.get(swarm_id)
        if swarm is None:
            return []
        return [a for a in self.agents.values() if a.id in swarm.agent_ids]

    def idle_agents(self, swarm_id: str) -> list[Agent]:
        return [a for a in self.members(swarm_id) if a.is_idle]

    # ── Swarm lifecycle ─────────────────────────────────────

    def create_swarm(
        self,
        topology: str,
        capacity: int,
        strategy: str = "auto",
        swarm_id: str | None = None,
    ) -> Swarm:
        structure = build_topology(topology)
        if capacity < 1:
            raise ConfigurationError(f"Swarm capacity must be >= 1, got {capacity}")
        swarm = Swarm(
            id=swarm_id or str(uuid.uuid4()),
            topology=topology,
            capacity=capacity,
            structure=structure,
            strategy=strategy,
        )
        self.swarms[swarm.id] = swarm
        logger.info("Swarm %s created (%s, capacity %d)", swarm.id, topology, capacity)
        return swarm

    def destroy_swarm(self, swarm_id: str) -> list[str]:
        """Cancel the swarm's unfinished tasks, drop its agents and the swarm.

        Returns the ids of the agents that were removed.
        """
        swarm = self.swarms.get(swarm_id)
        if swarm is None:
            raise NotFoundError("swarm", swarm_id)

        for task_id in swarm.task_ids:
            task = self.tasks.get(task_id)
            if task is not None and task.status in ("pending", "in_progress"):
                task.status = "cancelled"
                logger.info("Task %s cancelled (swarm %s destroyed)", task_id, swarm_id)

        removed = sorted(swarm.agent_ids)
        for agent_id in removed:
            self.agents.pop(agent_id, None)

        swarm.agent_ids.clear()
        swarm.task_ids.clear()
        swarm.status = "destroyed"
        del self.swarms[swarm_id]
        logger.info("Swarm %s destroyed (%d agents removed)", swarm_id, len(removed))
        return removed

    # ── Agent lifecycle ─────────────────────────────────────

    def spawn(
        self,
        swarm_id: str,
        role: str,
        capabilities: list[str] | None = None,
        agent_id: str | None = None,
    ) -> Agent:
        swarm = self.require_swarm(swarm_id)
        new_id = agent_id or str(uuid.uuid4())
        agent = Agent(
            id=new_id,
            role=role,
            name=f"{role}-{new_id[:8]}",
            swarm_id=swarm_id,
            capabilities=(
                list(capabilities) if capabilities is not None else default_capabilities(role)
            ),
            performance=AgentPerformance(
                specialization=dict(resolve_role(role).specialization),
            ),
        )
        self.agents[agent.id] = agent
        swarm.agent_ids.add(agent.id)
        swarm.structure.add(agent.id)
        self.refresh_load(swarm_id)
        if self._on_agent_spawned is not None:
            self._on_agent_spawned(agent)

        if swarm.size > swarm.capacity:
            logger.info(
                "Swarm %s over capacity (%d/%d), rebalancing",
                swarm_id,
                swarm.size,
                swarm.capacity,
            )
            rebalance(self, swarm_id)
        return agent

    def remove_agent(self, agent_id: str, reason: str = "rebalance") -> Agent | None:
        agent = self.agents.pop(agent_id, None)
        if agent is None:
            return None
        swarm = self.swarms.get(agent.swarm_id)
        if swarm is not None:
            swarm.agent_ids.discard(agent_id)
            swarm.structure.remove(agent_id)
            self.refresh_load(swarm.id)
        if self._on_agent_removed is not None:
            self._on_agent_removed(agent, reason)
        return agent

    # ── Tasks ───────────────────────────────────────────────

    def add_task(self, task: Task) -> None:
        swarm = self.require_swarm(task.swarm_id)
        self.tasks[task.id] = task
        swarm.task_ids.add(task.id)

    # ── Assignment and outcomes ─────────────────────────────

    def assign(self, agent: Agent, subtask_id: str) -> None:
        agent.status = "busy"
        agent.current_subtask_id = subtask_id
        agent.last_active = time.time()
        self.refresh_load(agent.swarm_id)

    def release(self, agent_id: str) -> Agent | None:
        agent = self.agents.get(agent_id)
        if agent is None:
            return None
        agent.status = "idle"
        agent.current_subtask_id = None
        self.refresh_load(agent.swarm_id)
        return agent

    def record_outcome(self, agent_id: str, duration_ms: float, success: bool) -> Agent | None:
        """Fold one execution into the agent's performance history.

        The success rate only moves on failure; a success leaves it as is.
        """
        agent = self.agents.get(agent_id)
        if agent is None:
            return None
        perf = agent.performance
        n = agent.tasks_completed
        perf.mean_duration_ms = incremental_mean(perf.mean_duration_ms, n, duration_ms)
        if not success:
            perf.success_rate = perf.success_rate * n / (n + 1)
        agent.tasks_completed = n + 1
        agent.last_active = time.time()
        return agent

    def refresh_load(self, swarm_id: str) -> None:
        swarm = self.swarms.get(swarm_id)
        if swarm is None:
            return
        members = self.members(swarm_id)
        busy = sum(1 for a in members if not a.is_idle)
        swarm.metrics.load = busy / len(members) if members else 0.0
