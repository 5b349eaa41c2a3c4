"""Write-through journal of coordinator state.

The coordinator's in-memory registry is authoritative. After every mutating
call it writes a snapshot of the touched record to a :class:`Store`; nothing
in scheduling ever reads those snapshots back.
"""

from __future__ import annotations

import fnmatch
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Protocol

logger = logging.getLogger(__name__)

NAMESPACES = ("swarms", "agents", "tasks")


class Store(Protocol):
    """Key/value persistence collaborator."""

    def put(self, key: str, value: Any, ttl: float | None = None) -> None: ...

    def get(self, key: str) -> Any | None: ...

    def list(self, pattern: str = "*") -> list[str]: ...

    def delete(self, key: str) -> bool: ...


@dataclass
class StoreEntry:
    """A stored value and when it stops being visible."""

    value: Any
    created_at: float = field(default_factory=time.time)
    expires_at: float | None = None

    def expired(self, now: float | None = None) -> bool:
        if self.expires_at is None:
            return False
        return (now if now is not None else time.time()) >= self.expires_at


class MemoryStore:
    """Process-local :class:`Store` with optional per-key TTL (seconds).

    Usage:
        store = MemoryStore()
        store.put("tasks:abc", {"status": "completed"}, ttl=3600)
        store.list("tasks:*")
    """

    def __init__(self) -> None:
        self._entries: dict[str, StoreEntry] = {}

    def put(self, key: str, value: Any, ttl: float | None = None) -> None:
        expires_at = time.time() + ttl if ttl else None
        self._entries[key] = StoreEntry(value=value, expires_at=expires_at)

    def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expired():
            del self._entries[key]
            return None
        return entry.value

    def list(self, pattern: str = "*") -> list[str]:
        self.purge_expired()
        return sorted(k for k in self._entries if fnmatch.fnmatchcase(k, pattern))

    def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    def purge_expired(self) -> int:
        """Drop expired entries and return how many were removed."""
        now = time.time()
        stale = [k for k, e in self._entries.items() if e.expired(now)]
        for k in stale:
            del self._entries[k]
        return len(stale)

    def __len__(self) -> int:
        return len(self.list())


def journal_key(namespace: str, ident: str) -> str:
    return f"{namespace}:{ident}"


class StoreJournal:
    """Writes namespaced snapshots to a store, logging instead of raising."""

    def __init__(self, store: Store, ttl: float | None = None) -> None:
        self.store = store
        self.ttl = ttl

    def record(self, namespace: str, ident: str, snapshot: dict[str, Any]) -> None:
        key = journal_key(namespace, ident)
        try:
            self.store.put(key, snapshot, ttl=self.ttl)
        except Exception as e:
            logger.warning("Journal write failed for %s: %s", key, e)

    def forget(self, namespace: str, ident: str) -> None:
        key = journal_key(namespace, ident)
        try:
            self.store.delete(key)
        except Exception as e:
            logger.warning("Journal delete failed for %s: %s", key, e)
