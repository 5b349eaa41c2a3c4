"""Shared types for the swarm module."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Literal

from swarmflow.config import STRATEGIES, TOPOLOGIES, Strategy, Topology

__all__ = [
    "STRATEGIES",
    "TOPOLOGIES",
    "Agent",
    "AgentPerformance",
    "AgentStatus",
    "ExecutionResult",
    "Outcome",
    "Strategy",
    "Subtask",
    "Swarm",
    "SwarmMetrics",
    "SwarmStatus",
    "Task",
    "TaskStatus",
    "Topology",
]

SwarmStatus = Literal["active", "destroyed"]
AgentStatus = Literal["idle", "busy"]
TaskStatus = Literal["pending", "in_progress", "completed", "cancelled"]
Outcome = Literal["fulfilled", "rejected", "unassigned"]
Priority = Literal["low", "medium", "high"]


@dataclass
class SwarmMetrics:
    """Aggregates refreshed by the registry and the scheduler."""

    load: float = 0.0  # busy members / members
    throughput: int = 0  # tasks completed in this swarm
    efficiency: float = 1.0  # fulfilled / settled subtasks

    def to_dict(self) -> dict[str, Any]:
        return {
            "load": self.load,
            "throughput": self.throughput,
            "efficiency": self.efficiency,
        }


@dataclass
class Swarm:
    """A capacity-bounded group of agents sharing a topology."""

    id: str
    topology: str
    capacity: int
    structure: Any = None
    strategy: str = "auto"
    agent_ids: set[str] = field(default_factory=set)
    task_ids: set[str] = field(default_factory=set)
    status: SwarmStatus = "active"
    metrics: SwarmMetrics = field(default_factory=SwarmMetrics)
    created_at: float = field(default_factory=time.time)
    fulfilled_subtasks: int = 0
    settled_subtasks: int = 0

    @property
    def size(self) -> int:
        return len(self.agent_ids)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "topology": self.topology,
            "capacity": self.capacity,
            "strategy": self.strategy,
            "status": self.status,
            "agent_ids": sorted(self.agent_ids),
            "task_ids": sorted(self.task_ids),
            "structure": self.structure.to_dict() if self.structure is not None else None,
            "metrics": self.metrics.to_dict(),
            "created_at": self.created_at,
        }


@dataclass
class AgentPerformance:
    mean_duration_ms: float = 0.0
    success_rate: float = 1.0
    specialization: dict[str, float] = field(default_factory=dict)


@dataclass
class Agent:
    """A stateful worker record. Holds at most one subtask at a time."""

    id: str
    role: str
    name: str
    swarm_id: str
    capabilities: list[str] = field(default_factory=list)
    status: AgentStatus = "idle"
    current_subtask_id: str | None = None
    tasks_completed: int = 0
    performance: AgentPerformance = field(default_factory=AgentPerformance)
    created_at: float = field(default_factory=time.time)
    last_active: float = field(default_factory=time.time)

    @property
    def is_idle(self) -> bool:
        return self.status == "idle"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "role": self.role,
            "name": self.name,
            "swarm_id": self.swarm_id,
            "capabilities": list(self.capabilities),
            "status": self.status,
            "current_subtask_id": self.current_subtask_id,
            "tasks_completed": self.tasks_completed,
            "mean_duration_ms": self.performance.mean_duration_ms,
            "success_rate": self.performance.success_rate,
        }


@dataclass(frozen=True)
class Subtask:
    """Smallest schedulable unit of work. Immutable once decomposed."""

    id: str
    parent_id: str
    description: str
    type: str
    priority: str = "medium"
    dependencies: tuple[str, ...] = ()
    required_capabilities: tuple[str, ...] = ()
    estimated_duration_ms: float = 5000.0


@dataclass
class ExecutionResult:
    """Settled outcome of one subtask."""

    subtask_id: str
    outcome: Outcome
    value: Any = None
    error: str | None = None
    agent_id: str | None = None
    duration_ms: float = 0.0
    exception: Exception | None = field(default=None, repr=False, compare=False)

    @property
    def ok(self) -> bool:
        return self.outcome == "fulfilled"

    def to_dict(self) -> dict[str, Any]:
        return {
            "subtask_id": self.subtask_id,
            "outcome": self.outcome,
            "value": self.value,
            "error": self.error,
            "agent_id": self.agent_id,
            "duration_ms": self.duration_ms,
        }


@dataclass
class Task:
    """A submitted unit of work and its execution record."""

    id: str
    description: str
    strategy: str
    swarm_id: str
    priority: str = "medium"
    status: TaskStatus = "pending"
    subtasks: list[Subtask] = field(default_factory=list)
    assigned_agent_ids: set[str] = field(default_factory=set)
    results: list[ExecutionResult] | tuple[ExecutionResult, ...] = field(default_factory=list)
    resolved_strategy: str | None = None
    settled_subtasks: int = 0
    created_at: float = field(default_factory=time.time)
    started_at: float | None = None
    completed_at: float | None = None

    @property
    def progress(self) -> float:
        if not self.subtasks:
            return 0.0
        return self.settled_subtasks / len(self.subtasks)

    @property
    def duration_ms(self) -> float | None:
        if self.started_at is None or self.completed_at is None:
            return None
        return (self.completed_at - self.started_at) * 1000

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "description": self.description,
            "strategy": self.strategy,
            "resolved_strategy": self.resolved_strategy,
            "swarm_id": self.swarm_id,
            "priority": self.priority,
            "status": self.status,
            "subtasks": [
                {"id": st.id, "type": st.type, "dependencies": list(st.dependencies)}
                for st in self.subtasks
            ],
            "assigned_agent_ids": sorted(self.assigned_agent_ids),
            "results": [r.to_dict() for r in self.results],
            "started_at": self.started_at,
            "completed_at": self.completed_at,
        }
