"""Coordinator configuration dataclass."""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Literal

from swarmflow.errors import ConfigurationError

Topology = Literal["hierarchical", "mesh", "ring", "star"]
Strategy = Literal["parallel", "sequential", "balanced", "adaptive", "auto"]

TOPOLOGIES: tuple[str, ...] = ("hierarchical", "mesh", "ring", "star")
STRATEGIES: tuple[str, ...] = ("parallel", "sequential", "balanced", "adaptive", "auto")

CONFIG_FILENAME = ".swarmflow.yml"


@dataclass
class CoordinatorConfig:
    """Defaults applied by the coordinator when a caller leaves them out."""

    default_topology: str = "hierarchical"
    max_agents: int = 8
    default_strategy: str = "adaptive"
    time_scale: float = 0.01  # 1.0 = simulated work takes its full estimate
    failure_rate: float = 0.0
    seed: int | None = None

    def __post_init__(self) -> None:
        if self.default_topology not in TOPOLOGIES:
            raise ConfigurationError(
                f"Invalid default_topology: {self.default_topology}. "
                f"Valid options: {', '.join(TOPOLOGIES)}"
            )
        if self.default_strategy not in STRATEGIES:
            raise ConfigurationError(
                f"Invalid default_strategy: {self.default_strategy}. "
                f"Valid options: {', '.join(STRATEGIES)}"
            )
        if self.max_agents < 1:
            raise ConfigurationError(f"max_agents must be >= 1, got {self.max_agents}")
        if self.time_scale < 0:
            raise ConfigurationError(f"time_scale must be >= 0, got {self.time_scale}")
        if not (0.0 <= self.failure_rate <= 1.0):
            raise ConfigurationError(
                f"Invalid failure_rate: {self.failure_rate}. Must be between 0.0 and 1.0"
            )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CoordinatorConfig:
        """Build a config from a mapping, ignoring keys it does not know."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    def to_dict(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def load_config(cwd: str) -> dict[str, Any] | None:
    """Load config from .swarmflow.yml if it exists, else return None."""
    import yaml

    config_path = Path(cwd) / CONFIG_FILENAME
    if not config_path.exists():
        return None
    with config_path.open() as f:
        data = yaml.safe_load(f)
    return data if isinstance(data, dict) else None


def resolve_config(cwd: str) -> CoordinatorConfig:
    """Return the project's config, or defaults when no file is present."""
    data = load_config(cwd)
    return CoordinatorConfig.from_dict(data) if data else CoordinatorConfig()
