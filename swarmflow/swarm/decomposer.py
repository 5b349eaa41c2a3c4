"""Keyword-driven task decomposition.

The planner scans a task description for ``<verb> <object>`` phrases and turns
each into a subtask. It is deterministic: the same description and task id
always give the same subtasks. Anything implementing :class:`Planner` can be
handed to the coordinator instead.
"""

from __future__ import annotations

import logging
import re
from typing import Protocol

from swarmflow.swarm.types import Subtask

logger = logging.getLogger(__name__)

COMPLEX_KEYWORDS = ("complex", "advanced", "sophisticated", "comprehensive")
SIMPLE_KEYWORDS = ("simple", "basic", "straightforward", "easy")

# Scanned in this order; all matches of one category come before the next.
COMPONENT_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"\bimplement\s+(\w+)", re.IGNORECASE), "implementation"),
    (re.compile(r"\btest\s+(\w+)", re.IGNORECASE), "testing"),
    (re.compile(r"\bdesign\s+(\w+)", re.IGNORECASE), "design"),
    (re.compile(r"\banalyze\s+(\w+)", re.IGNORECASE), "analysis"),
    (re.compile(r"\boptimize\s+(\w+)", re.IGNORECASE), "optimization"),
)

GENERAL_TYPE = "general"
GENERAL_CAPABILITY = "domain-specific"


class Planner(Protocol):
    """Turns a task description into an ordered list of subtasks."""

    def decompose(
        self, task_id: str, description: str, priority: str = "medium"
    ) -> list[Subtask]: ...


def analyze_complexity(description: str) -> int:
    """Score a description from 1 (trivial) to 10 (hard)."""
    text = description.lower()
    complexity = 5
    complexity += 2 * sum(1 for kw in COMPLEX_KEYWORDS if kw in text)
    complexity -= 2 * sum(1 for kw in SIMPLE_KEYWORDS if kw in text)
    return max(1, min(10, complexity))


def extract_components(description: str) -> list[tuple[str, str]]:
    """Return ``(matched_text, type)`` pairs for every verb/object phrase."""
    components: list[tuple[str, str]] = []
    for pattern, kind in COMPONENT_PATTERNS:
        for match in pattern.finditer(description):
            components.append((match.group(0), kind))
    return components


def decompose(task_id: str, description: str, priority: str = "medium") -> list[Subtask]:
    """Break a task description into subtasks. Never returns an empty list."""
    complexity = analyze_complexity(description)
    estimated = complexity * 1000.0

    components = extract_components(description)
    if not components:
        subtasks = [
            Subtask(
                id=f"{task_id}-1",
                parent_id=task_id,
                description=description,
                type=GENERAL_TYPE,
                priority=priority,
                required_capabilities=(GENERAL_CAPABILITY,),
                estimated_duration_ms=estimated,
            )
        ]
    else:
        subtasks = [
            Subtask(
                id=f"{task_id}-{i}",
                parent_id=task_id,
                description=text,
                type=kind,
                priority=priority,
                required_capabilities=(kind,),
                estimated_duration_ms=estimated,
            )
            for i, (text, kind) in enumerate(components, start=1)
        ]

    logger.info(
        "Decomposed task %s into %d subtasks (complexity %d)",
        task_id,
        len(subtasks),
        complexity,
    )
    return subtasks


class KeywordPlanner:
    """Default :class:`Planner` backed by :func:`decompose`."""

    def decompose(self, task_id: str, description: str, priority: str = "medium") -> list[Subtask]:
        return decompose(task_id, description, priority)
