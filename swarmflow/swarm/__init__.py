"""Swarm coordination: registry, decomposition, matching and scheduling."""

from __future__ import annotations

from swarmflow.swarm.decomposer import KeywordPlanner, Planner, decompose
from swarmflow.swarm.orchestrator import SwarmCoordinator
from swarmflow.swarm.registry import Registry
from swarmflow.swarm.types import Agent, ExecutionResult, Subtask, Swarm, Task
from swarmflow.swarm.worker import Executor, SimulatedExecutor

__all__ = [
    "Agent",
    "ExecutionResult",
    "Executor",
    "KeywordPlanner",
    "Planner",
    "Registry",
    "SimulatedExecutor",
    "Subtask",
    "Swarm",
    "SwarmCoordinator",
    "Task",
    "decompose",
]
