"""Asynchronous fan-out event bus.

Publishing never waits on consumers: subscriber queues are unbounded and
listener callbacks are scheduled on the running loop rather than awaited.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable

from swarmflow.events.types import SwarmEvent

logger = logging.getLogger(__name__)

Listener = Callable[[SwarmEvent], None]

_CLOSED = None


class AsyncEventBus:
    def __init__(self) -> None:
        self._queues: list[asyncio.Queue[SwarmEvent | None]] = []
        self._listeners: list[Listener] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def subscribe(self) -> asyncio.Queue[SwarmEvent | None]:
        """Return a queue that receives every event published from now on."""
        q: asyncio.Queue[SwarmEvent | None] = asyncio.Queue()
        if self._closed:
            q.put_nowait(_CLOSED)
        else:
            self._queues.append(q)
        return q

    def publish_nowait(self, event: SwarmEvent) -> None:
        if self._closed:
            logger.debug("Dropping %s: bus closed", event.kind)
            return
        for q in self._queues:
            q.put_nowait(event)
        for listener in list(self._listeners):
            self._dispatch(listener, event)

    async def publish(self, event: SwarmEvent) -> None:
        self.publish_nowait(event)

    async def iter_events(
        self, q: asyncio.Queue[SwarmEvent | None]
    ) -> AsyncIterator[SwarmEvent]:
        """Yield events from *q* until the bus is closed."""
        while True:
            event = await q.get()
            if event is _CLOSED:
                return
            yield event

    async def close(self) -> None:
        """Stop accepting events and let already scheduled listeners run."""
        if self._closed:
            return
        self._closed = True
        await asyncio.sleep(0)
        for q in self._queues:
            q.put_nowait(_CLOSED)
        self._queues.clear()

    def _dispatch(self, listener: Listener, event: SwarmEvent) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            _call_listener(listener, event)
            return
        loop.call_soon(_call_listener, listener, event)


def _call_listener(listener: Listener, event: SwarmEvent) -> None:
    try:
        listener(event)
    except Exception:
        logger.exception("Event listener failed on %s", event.kind)
