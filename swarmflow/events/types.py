"""Event types emitted by the coordinator."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Literal

EventKind = Literal[
    "swarm.initialized",
    "swarm.destroyed",
    "agent.spawned",
    "agent.removed",
    "task.orchestrated",
    "task.completed",
    "task.cancelled",
    "subtask.completed",
]


@dataclass
class SwarmEvent:
    """A named lifecycle event carrying the relevant ids and key fields."""

    kind: EventKind
    payload: dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "payload": self.payload, "timestamp": self.timestamp}
