from __future__ import annotations

import asyncio
import logging
from datetime import tzinfo

from consumers.base import EventConsumer
from models.event import PowerEvent

log = logging.getLogger(__name__)


class ConsoleConsumer(EventConsumer):
    """Logs every new PDB event in the local timezone."""

    def __init__(self, queue: asyncio.Queue[PowerEvent], tz: tzinfo | None = None) -> None:
        super().__init__(queue)
        self._tz = tz

    async def process(self, event: PowerEvent) -> None:
        ts = event.timestamp.astimezone(self._tz).strftime("%Y-%m-%d %H:%M:%S %Z")
        log.info("[%s] PDB %s (%s)", ts, event.kind.value.upper(), event.source_id)
