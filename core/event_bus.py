from __future__ import annotations

import asyncio

from models.event import PowerEvent


class EventBus:
    """Async event channel backed by ``asyncio.Queue``.

    The scheduler calls ``put()`` with deduplicated PDB events. Every
    consumer gets its own queue, so a slow store write never holds up
    console output or the mailbox pollers.
    """

    def __init__(self, maxsize: int = 0) -> None:
        self._subscribers: list[asyncio.Queue[PowerEvent]] = []
        self._maxsize = maxsize

    def subscribe(self) -> asyncio.Queue[PowerEvent]:
        """Create and return a new subscriber queue."""
        q: asyncio.Queue[PowerEvent] = asyncio.Queue(maxsize=self._maxsize)
        self._subscribers.append(q)
        return q

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def put(self, event: PowerEvent) -> None:
        """Publish an event to every subscriber queue."""
        for q in self._subscribers:
            await q.put(event)

    async def join(self) -> None:
        """Wait until every subscriber has processed everything published so far."""
        await asyncio.gather(*(q.join() for q in self._subscribers))
