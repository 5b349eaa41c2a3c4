"""Topology bookkeeping for swarms.

A topology records how members of a swarm are arranged. It never constrains
scheduling; the registry keeps it in step with swarm membership so status
reports can show the shape of the swarm.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from swarmflow.config import TOPOLOGIES
from swarmflow.errors import ConfigurationError


class TopologyStructure:
    """Base class: subclasses track members as they join and leave."""

    kind: str = ""

    def add(self, agent_id: str) -> None:
        raise NotImplementedError

    def remove(self, agent_id: str) -> None:
        raise NotImplementedError

    def to_dict(self) -> dict[str, Any]:
        raise NotImplementedError


@dataclass
class HierarchicalStructure(TopologyStructure):
    """A root with up to *branches_per_root* branch heads. The first member becomes the root."""

    kind = "hierarchical"
    branches_per_root: int = 3
    root: str | None = None
    branches: dict[str, list[str]] = field(default_factory=dict)

    def add(self, agent_id: str) -> None:
        if self.root is None:
            self.root = agent_id
            return
        # Fill the root's direct branches first, then the shallowest branch.
        if len(self.branches) < self.branches_per_root:
            self.branches[agent_id] = []
            return
        head = min(self.branches, key=lambda k: len(self.branches[k]))
        self.branches[head].append(agent_id)

    def remove(self, agent_id: str) -> None:
        if self.root == agent_id:
            self.root = None
            orphans = [a for head, kids in self.branches.items() for a in (head, *kids)]
            self.branches = {}
            for orphan in orphans:
                self.add(orphan)
            return
        if agent_id in self.branches:
            orphans = self.branches.pop(agent_id)
            for orphan in orphans:
                self.add(orphan)
            return
        for kids in self.branches.values():
            if agent_id in kids:
                kids.remove(agent_id)
                return

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.kind,
            "branches_per_root": self.branches_per_root,
            "root": self.root,
            "branches": {k: list(v) for k, v in self.branches.items()},
        }


@dataclass
class MeshStructure(TopologyStructure):
    """Every member is connected to every other member."""

    kind = "mesh"
    min_connections: int = 3
    connections: dict[str, set[str]] = field(default_factory=dict)

    def add(self, agent_id: str) -> None:
        peers = set(self.connections)
        for peer in peers:
            self.connections[peer].add(agent_id)
        self.connections[agent_id] = peers

    def remove(self, agent_id: str) -> None:
        self.connections.pop(agent_id, None)
        for peers in self.connections.values():
            peers.discard(agent_id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.kind,
            "min_connections": self.min_connections,
            "connections": {k: sorted(v) for k, v in self.connections.items()},
        }


@dataclass
class RingStructure(TopologyStructure):
    kind = "ring"
    order: list[str] = field(default_factory=list)
    bidirectional: bool = True

    def add(self, agent_id: str) -> None:
        self.order.append(agent_id)

    def remove(self, agent_id: str) -> None:
        if agent_id in self.order:
            self.order.remove(agent_id)

    def neighbours(self, agent_id: str) -> list[str]:
        if agent_id not in self.order or len(self.order) < 2:
            return []
        i = self.order.index(agent_id)
        nxt = self.order[(i + 1) % len(self.order)]
        if not self.bidirectional:
            return [nxt]
        prev = self.order[i - 1]
        return [nxt] if prev == nxt else [prev, nxt]

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.kind, "order": list(self.order), "bidirectional": self.bidirectional}


@dataclass
class StarStructure(TopologyStructure):
    """One center; everyone else is a spoke. A spoke is promoted if the center leaves."""

    kind = "star"
    center: str | None = None
    spokes: list[str] = field(default_factory=list)

    def add(self, agent_id: str) -> None:
        if self.center is None:
            self.center = agent_id
        else:
            self.spokes.append(agent_id)

    def remove(self, agent_id: str) -> None:
        if self.center == agent_id:
            self.center = self.spokes.pop(0) if self.spokes else None
        elif agent_id in self.spokes:
            self.spokes.remove(agent_id)

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.kind, "center": self.center, "spokes": list(self.spokes)}


_STRUCTURES: dict[str, type[TopologyStructure]] = {
    "hierarchical": HierarchicalStructure,
    "mesh": MeshStructure,
    "ring": RingStructure,
    "star": StarStructure,
}


def build_topology(topology: str) -> TopologyStructure:
    """Create an empty structure for *topology*."""
    cls = _STRUCTURES.get(topology)
    if cls is None:
        raise ConfigurationError(
            f"Unknown topology: {topology!r}. Valid options: {', '.join(TOPOLOGIES)}"
        )
    return cls()
