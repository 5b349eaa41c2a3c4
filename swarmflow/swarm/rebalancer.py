"""Capacity rebalancing: evict idle, low-performing agents from a full swarm."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from swarmflow.swarm.registry import Registry
    from swarmflow.swarm.types import Agent

logger = logging.getLogger(__name__)


def eviction_score(agent: Agent) -> float:
    """Accumulated useful work: success rate weighted by tasks handled."""
    return agent.performance.success_rate * agent.tasks_completed


def rebalance(registry: Registry, swarm_id: str) -> list[str]:
    """Evict idle members until the swarm fits its capacity.

    Busy agents are never evicted. If no idle candidate is left the swarm
    stays over capacity. Every idle member is a candidate, including one that
    was just spawned.

    Returns the ids of the evicted agents, in eviction order.
    """
    swarm = registry.get_swarm(swarm_id)
    if swarm is None:
        return []

    evicted: list[str] = []
    while swarm.size > swarm.capacity:
        candidates = registry.idle_agents(swarm_id)
        if not candidates:
            logger.warning(
                "Swarm %s stays over capacity (%d/%d): no idle agent to evict",
                swarm_id,
                swarm.size,
                swarm.capacity,
            )
            break
        # min() keeps the first of equal keys, so spawn order breaks full ties.
        worst = min(
            candidates,
            key=lambda a: (eviction_score(a), a.performance.success_rate),
        )
        logger.warning(
            "Evicting agent %s from swarm %s (score %.2f)",
            worst.id,
            swarm_id,
            eviction_score(worst),
        )
        registry.remove_agent(worst.id, reason="rebalance")
        evicted.append(worst.id)
    return evicted
