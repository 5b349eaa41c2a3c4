"""Agent/subtask matching."""

from __future__ import annotations

from collections.abc import Iterable

from swarmflow.swarm.types import Agent, Subtask

CAPABILITY_WEIGHT = 0.2
SUCCESS_WEIGHT = 0.3
SPEED_WEIGHT = 0.2
ROLE_BONUS = 0.3
SPEED_BASELINE_MS = 10_000.0


def score(agent: Agent, subtask: Subtask) -> float:
    """How well *agent* fits *subtask*; higher is better.

    The speed term goes negative for agents slower than the baseline.
    """
    held = set(agent.capabilities)
    total = CAPABILITY_WEIGHT * sum(1 for cap in subtask.required_capabilities if cap in held)
    total += agent.performance.success_rate * SUCCESS_WEIGHT
    total += (1 - agent.performance.mean_duration_ms / SPEED_BASELINE_MS) * SPEED_WEIGHT
    if subtask.type and agent.role == subtask.type:
        total += ROLE_BONUS
    return total


def find_best_agent(candidates: Iterable[Agent], subtask: Subtask) -> Agent | None:
    """Highest-scoring candidate, the earliest one on ties. None if there are none."""
    best: Agent | None = None
    best_score = float("-inf")
    for agent in candidates:
        s = score(agent, subtask)
        if s > best_score:
            best, best_score = agent, s
    return best
