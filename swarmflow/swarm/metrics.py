"""Running aggregates fed by the scheduler."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

# Mean task duration above which a faster strategy is suggested.
SLOW_TASK_MS = 10_000.0
# Failed subtasks per fulfilled one above which reliability is flagged.
FAILURE_RATIO = 0.2


def incremental_mean(mean: float, n: int, value: float) -> float:
    """Fold *value* into a mean that currently covers *n* samples."""
    return (mean * n + value) / (n + 1)


@dataclass
class CoordinatorMetrics:
    """Coordinator-wide counters."""

    tasks_completed: int = 0
    tasks_in_progress: int = 0
    tasks_cancelled: int = 0
    avg_completion_ms: float = 0.0
    subtasks_fulfilled: int = 0
    subtasks_rejected: int = 0
    subtasks_unassigned: int = 0

    def task_started(self) -> None:
        self.tasks_in_progress += 1

    def task_completed(self, duration_ms: float) -> None:
        self.tasks_in_progress = max(0, self.tasks_in_progress - 1)
        self.avg_completion_ms = incremental_mean(
            self.avg_completion_ms, self.tasks_completed, duration_ms
        )
        self.tasks_completed += 1

    def task_cancelled(self) -> None:
        self.tasks_in_progress = max(0, self.tasks_in_progress - 1)
        self.tasks_cancelled += 1

    def subtask_settled(self, outcome: str) -> None:
        if outcome == "fulfilled":
            self.subtasks_fulfilled += 1
        elif outcome == "rejected":
            self.subtasks_rejected += 1
        else:
            self.subtasks_unassigned += 1

    @property
    def subtasks_failed(self) -> int:
        return self.subtasks_rejected + self.subtasks_unassigned

    def recommendations(self) -> list[dict[str, str]]:
        """Advice derived from the counters; empty when nothing stands out."""
        advice: list[dict[str, str]] = []
        if self.avg_completion_ms > SLOW_TASK_MS:
            advice.append(
                {
                    "type": "performance",
                    "message": (
                        "Consider using parallel execution strategy for faster task completion"
                    ),
                }
            )
        if self.subtasks_failed > self.subtasks_fulfilled * FAILURE_RATIO:
            advice.append(
                {
                    "type": "reliability",
                    "message": (
                        "High failure rate detected. Review task complexity and agent capabilities"
                    ),
                }
            )
        return advice

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
