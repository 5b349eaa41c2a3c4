"""Worker execution: runs one subtask on one agent and settles its outcome."""

from __future__ import annotations

import asyncio
import logging
import random
import time
from typing import Any, Protocol

from swarmflow.errors import SubtaskExecutionError
from swarmflow.swarm.registry import Registry
from swarmflow.swarm.types import Agent, ExecutionResult, Subtask

logger = logging.getLogger(__name__)


class Executor(Protocol):
    """Performs the actual work of a subtask.

    Returns a payload on success and raises on failure.
    """

    async def execute(self, agent: Agent, subtask: Subtask) -> Any: ...


class SimulatedExecutor:
    """Stand-in executor that sleeps for the subtask's estimated duration.

    The estimate is scaled by *time_scale* and jittered by ±20%. With a
    non-zero *failure_rate* a share of executions raise instead.
    """

    def __init__(
        self,
        time_scale: float = 0.01,
        failure_rate: float = 0.0,
        seed: int | None = None,
    ) -> None:
        self.time_scale = time_scale
        self.failure_rate = failure_rate
        self._rng = random.Random(seed)

    async def execute(self, agent: Agent, subtask: Subtask) -> Any:
        jitter = 0.8 + self._rng.random() * 0.4
        await asyncio.sleep(subtask.estimated_duration_ms * self.time_scale * jitter / 1000)
        if self.failure_rate and self._rng.random() < self.failure_rate:
            raise RuntimeError(f"simulated failure in {subtask.type} work")
        return f"Completed by {agent.name}"


async def run_subtask(
    registry: Registry,
    agent_id: str,
    subtask: Subtask,
    executor: Executor,
) -> ExecutionResult:
    """Execute *subtask* on an already-assigned agent.

    Never raises for work failures: they come back as a ``rejected`` result.
    After the await, the agent may have been evicted or its swarm destroyed;
    bookkeeping then quietly skips the missing record. Cancellation releases
    the agent and propagates.
    """
    agent = registry.get_agent(agent_id)
    if agent is None:
        return ExecutionResult(
            subtask_id=subtask.id,
            outcome="rejected",
            error=f"agent {agent_id} no longer exists",
            agent_id=agent_id,
        )

    started = time.perf_counter()
    try:
        value = await executor.execute(agent, subtask)
    except asyncio.CancelledError:
        logger.info("Subtask %s cancelled on agent %s", subtask.id, agent_id)
        registry.release(agent_id)
        raise
    except Exception as e:
        duration_ms = (time.perf_counter() - started) * 1000
        failure = SubtaskExecutionError(subtask.id, str(e) or type(e).__name__)
        failure.__cause__ = e
        logger.error(
            "Subtask %s failed on agent %s after %.1fms: %s",
            subtask.id,
            agent_id,
            duration_ms,
            failure.reason,
        )
        registry.record_outcome(agent_id, duration_ms, success=False)
        registry.release(agent_id)
        return ExecutionResult(
            subtask_id=subtask.id,
            outcome="rejected",
            error=failure.reason,
            agent_id=agent_id,
            duration_ms=duration_ms,
            exception=failure,
        )

    duration_ms = (time.perf_counter() - started) * 1000
    registry.record_outcome(agent_id, duration_ms, success=True)
    registry.release(agent_id)
    return ExecutionResult(
        subtask_id=subtask.id,
        outcome="fulfilled",
        value=value,
        agent_id=agent_id,
        duration_ms=duration_ms,
    )
