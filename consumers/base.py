from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod

from models.event import PowerEvent

log = logging.getLogger(__name__)


class EventConsumer(ABC):
    """Reactive event consumer that runs as an independent asyncio task.

    Each consumer owns one ``EventBus`` subscriber queue and blocks on
    ``queue.get()``, handling PDB events as they arrive. The scheduler
    never calls consumers directly.

    Consumers that batch work override ``on_drained()``; it runs after
    the last queued event has been processed and before that event is
    marked done, so ``EventBus.join()`` also waits for it.
    """

    def __init__(self, queue: asyncio.Queue[PowerEvent]) -> None:
        self._queue = queue

    @abstractmethod
    async def process(self, event: PowerEvent) -> None:
        """Handle a single event."""

    async def on_drained(self) -> None:
        """Called whenever the queue runs empty. No-op by default."""

    async def run(self) -> None:
        """Consume events until cancelled.

        A failure in ``process()`` or ``on_drained()`` is logged and the
        loop carries on with the next event.
        """
        log.info("%s started, awaiting events", type(self).__name__)
        while True:
            event = await self._queue.get()
            try:
                await self.process(event)
            except Exception:
                log.exception(
                    "%s failed processing event %s",
                    type(self).__name__,
                    event.source_id,
                )
            try:
                if self._queue.empty():
                    await self.on_drained()
            except Exception:
                log.exception("%s failed after draining its queue", type(self).__name__)
            finally:
                self._queue.task_done()
