"""Exception hierarchy for swarm coordination."""

from __future__ import annotations


class SwarmError(Exception):
    """Base exception for swarmflow operations."""


class ConfigurationError(SwarmError):
    """Raised for an unknown topology or strategy, or an invalid setting."""


class NotFoundError(SwarmError):
    """Raised when a swarm, agent or task id is unknown."""

    def __init__(self, kind: str, ident: str) -> None:
        self.kind = kind
        self.ident = ident
        super().__init__(f"{kind} {ident!r} not found")


class CyclicDependencyError(SwarmError):
    """Raised when subtask dependencies cannot be grouped into stages."""

    def __init__(self, unresolved: list[str]) -> None:
        self.unresolved = unresolved
        super().__init__(
            "Cannot resolve subtask dependencies (cycle or missing id): "
            + ", ".join(unresolved)
        )


class UnassignableSubtaskError(SwarmError):
    """No idle agent is currently available for a subtask.

    This is a scheduling signal, not a fault: strategies record it as an
    ``unassigned`` result and move on.
    """

    def __init__(self, subtask_id: str, swarm_id: str | None = None) -> None:
        self.subtask_id = subtask_id
        self.swarm_id = swarm_id
        super().__init__(f"No idle agent available for subtask {subtask_id!r}")


class SubtaskExecutionError(SwarmError):
    """Wraps whatever the executor raised while running a subtask."""

    def __init__(self, subtask_id: str, reason: str) -> None:
        self.subtask_id = subtask_id
        self.reason = reason
        super().__init__(f"Subtask {subtask_id!r} failed: {reason}")
