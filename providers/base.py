from __future__ import annotations

from abc import ABC, abstractmethod

import httpx

from models.event import PowerEvent

DEFAULT_POLL_INTERVAL = 300


class MailboxProvider(ABC):
    """Abstract base for mailbox adapters that yield PDB events.

    Each concrete provider talks to its own mail backend and turns the
    PDB notification messages it finds into PowerEvent objects.

    A shared ``httpx.AsyncClient`` is injected at construction time so
    that all providers reuse one connection pool.
    """

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable provider name (e.g. 'Gmail')."""

    @property
    def poll_interval_seconds(self) -> int:
        """Seconds between fetch cycles for this provider."""
        return DEFAULT_POLL_INTERVAL

    @abstractmethod
    async def fetch_events(self) -> list[PowerEvent]:
        """Fetch notification messages and return them as events.

        Implementations should handle HTTP errors gracefully and return an
        empty list when the mailbox can't be read. Returning messages that
        were already returned by an earlier call is fine; the scheduler
        dedups by ``source_id``.
        """
