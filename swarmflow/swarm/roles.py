"""Agent roles and their default capability sets."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

FALLBACK_ROLE = "specialist"


@dataclass
class AgentRole:
    """A specialized role an agent can be spawned with."""

    name: str
    description: str
    capabilities: list[str]
    specialization: dict[str, float] = field(default_factory=dict)


# Pre-defined roles
AGENT_ROLES: dict[str, AgentRole] = {
    "coordinator": AgentRole(
        name="coordinator",
        description="Plans work and keeps other agents on track",
        capabilities=["planning", "orchestration", "monitoring"],
        specialization={"leadership": 0.9, "technical": 0.5},
    ),
    "researcher": AgentRole(
        name="researcher",
        description="Searches, explores and summarises sources",
        capabilities=["search", "analysis", "documentation"],
        specialization={"analysis": 0.9, "exploration": 0.8},
    ),
    "coder": AgentRole(
        name="coder",
        description="Writes, debugs and refactors code",
        capabilities=["implementation", "debugging", "refactoring"],
        specialization={"implementation": 0.9, "problem_solving": 0.8},
    ),
    "analyst": AgentRole(
        name="analyst",
        description="Processes data and reports on it",
        capabilities=["data-analysis", "optimization", "reporting"],
        specialization={"data_processing": 0.9, "insights": 0.8},
    ),
    "architect": AgentRole(
        name="architect",
        description="Designs structure and chooses patterns",
        capabilities=["design", "patterns", "structure"],
        specialization={"design": 0.9, "abstraction": 0.9},
    ),
    "tester": AgentRole(
        name="tester",
        description="Validates behaviour and hunts edge cases",
        capabilities=["testing", "validation", "quality"],
        specialization={"validation": 0.9, "edge_cases": 0.8},
    ),
    "reviewer": AgentRole(
        name="reviewer",
        description="Critiques work against standards",
        capabilities=["review", "feedback", "approval"],
        specialization={"critique": 0.8, "standards": 0.9},
    ),
    "optimizer": AgentRole(
        name="optimizer",
        description="Improves performance and efficiency",
        capabilities=["performance", "efficiency", "scaling"],
        specialization={"efficiency": 0.9, "performance": 0.9},
    ),
    "documenter": AgentRole(
        name="documenter",
        description="Writes guides, examples and reference docs",
        capabilities=["documentation", "examples", "guides"],
        specialization={"clarity": 0.9, "completeness": 0.8},
    ),
    "monitor": AgentRole(
        name="monitor",
        description="Watches metrics and raises alerts",
        capabilities=["monitoring", "alerting", "metrics"],
        specialization={"observability": 0.9, "alerting": 0.8},
    ),
    "specialist": AgentRole(
        name="specialist",
        description="General-purpose agent for domain-specific work",
        capabilities=["domain-specific", "custom", "flexible"],
        specialization={"adaptability": 0.8, "learning": 0.7},
    ),
}


def get_role(name: str) -> AgentRole | None:
    """Get a role by name."""
    return AGENT_ROLES.get(name.lower())


def resolve_role(name: str) -> AgentRole:
    """Get a role by name, falling back to the specialist role."""
    return get_role(name) or AGENT_ROLES[FALLBACK_ROLE]


def list_roles() -> list[str]:
    """List available role names."""
    return list(AGENT_ROLES.keys())


def default_capabilities(name: str) -> list[str]:
    """Capabilities an agent of *name* gets when none are given."""
    return list(resolve_role(name).capabilities)


def get_all_roles_info() -> list[dict[str, Any]]:
    """Get info about all roles for display purposes."""
    return [
        {
            "name": role.name,
            "description": role.description,
            "capabilities": role.capabilities,
        }
        for role in AGENT_ROLES.values()
    ]
