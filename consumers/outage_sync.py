from __future__ import annotations

import asyncio
import logging
from datetime import timezone, tzinfo

from consumers.base import EventConsumer
from core.reducer import reduce_events
from models.event import PowerEvent
from storage.sqlite_store import OutageStore

log = logging.getLogger(__name__)


class OutageSyncConsumer(EventConsumer):
    """Persists events and keeps the stored outage set in step with them.

    Every event is written to the store as it arrives. Once the queue is
    drained, and if anything new was stored since the last rebuild, the
    outages are recomputed from the full stored history and swapped in,
    so a burst of events (e.g. the first sync of a mailbox)
    costs one rebuild rather than one per event. Already-stored events
    (a restart re-reads the whole label) never leave the set stale.
    """

    def __init__(
        self,
        queue: asyncio.Queue[PowerEvent],
        store: OutageStore,
        tz: tzinfo = timezone.utc,
    ) -> None:
        super().__init__(queue)
        self._store = store
        self._tz = tz
        self._lock = asyncio.Lock()
        self._dirty = False
        self.rebuilds = 0

    async def process(self, event: PowerEvent) -> None:
        if await asyncio.to_thread(self._store.record_event, event):
            self._dirty = True
        else:
            log.debug("Event %s already stored", event.source_id)

    async def on_drained(self) -> None:
        if self._dirty:
            await self.rebuild()

    async def rebuild(self) -> int:
        """Recompute all outages from stored events and replace the stored set.

        Returns the number of outages now stored.
        """
        async with self._lock:
            events = await asyncio.to_thread(self._store.load_events)
            self._dirty = False
            outages = reduce_events(events, tz=self._tz)
            count = await asyncio.to_thread(self._store.replace_outages, outages)
            self.rebuilds += 1
        open_count = sum(1 for o in outages if o.is_open)
        log.info(
            "Rebuilt outages from %d event(s): %d outage(s), %d open",
            len(events),
            count,
            open_count,
        )
        return count
