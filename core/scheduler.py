from __future__ import annotations

import asyncio
import logging

from core.dedup import DeduplicationStore
from core.event_bus import EventBus
from core.registry import ProviderRegistry
from providers.base import MailboxProvider

log = logging.getLogger(__name__)

DEFAULT_CONCURRENCY_LIMIT = 20


class Scheduler:
    """Producer coordinator that polls every registered mailbox provider.

    In long-running mode each provider gets its own worker task on its own
    cadence (``provider.poll_interval_seconds``). A shared
    ``asyncio.Semaphore`` is acquired around each fetch, bounding the
    number of providers talking to the network at once.

    The scheduler only produces: new events go onto the ``EventBus`` and
    it never calls consumers directly.
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        dedup: DeduplicationStore,
        bus: EventBus,
        concurrency_limit: int = DEFAULT_CONCURRENCY_LIMIT,
    ) -> None:
        self._registry = registry
        self._dedup = dedup
        self._bus = bus
        self._concurrency_limit = concurrency_limit
        self._semaphore = asyncio.Semaphore(concurrency_limit)

    async def _poll_provider(self, provider: MailboxProvider) -> int:
        """Fetch one batch from ``provider`` and publish the unseen events.

        Returns the number of events published.
        """
        async with self._semaphore:
            try:
                events = await provider.fetch_events()
            except Exception:
                log.exception("Worker %s fetch failed", provider.name)
                events = []

        new_count = 0
        for event in events:
            if self._dedup.is_new(event):
                await self._bus.put(event)
                new_count += 1

        if new_count:
            log.info(
                "Worker %s: %d new event(s), %d total tracked",
                provider.name,
                new_count,
                self._dedup.size,
            )
        return new_count

    async def _provider_worker(self, provider: MailboxProvider) -> None:
        log.info(
            "Worker started for %s (interval=%ds)",
            provider.name,
            provider.poll_interval_seconds,
        )
        while True:
            await self._poll_provider(provider)
            await asyncio.sleep(provider.poll_interval_seconds)

    async def poll_once(self) -> int:
        """Run a single fetch cycle across all providers.

        Returns the total number of new events published.
        """
        providers = self._registry.providers
        if not providers:
            log.warning("No providers registered")
            return 0
        counts = await asyncio.gather(*(self._poll_provider(p) for p in providers))
        return sum(counts)

    async def run(self) -> None:
        """Spawn one worker task per provider and await them all.

        If no providers are registered the method returns immediately.
        """
        providers = self._registry.providers
        if not providers:
            log.warning("No providers registered")
            return

        log.info(
            "Scheduler starting %d provider worker(s), concurrency limit=%d",
            len(providers),
            self._concurrency_limit,
        )

        tasks = [
            asyncio.create_task(
                self._provider_worker(p),
                name=f"worker-{p.name}",
            )
            for p in providers
        ]

        await asyncio.gather(*tasks)
