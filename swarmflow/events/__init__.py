"""Lifecycle events and the bus that carries them."""

from __future__ import annotations

from swarmflow.events.bus import AsyncEventBus
from swarmflow.events.types import EventKind, SwarmEvent

__all__ = ["AsyncEventBus", "EventKind", "SwarmEvent"]
