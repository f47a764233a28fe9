from __future__ import annotations

from models.event import PowerEvent


class DeduplicationStore:
    """In-memory set of message ids already pushed onto the bus.

    Mailbox providers return every message in the label on each poll, so
    without this the consumers would see the whole history again and
    again. The persistent store dedups as well; this only keeps the bus
    quiet within one process.
    """

    def __init__(self, seen: set[str] | None = None) -> None:
        self._seen: set[str] = set(seen or ())

    def is_new(self, event: PowerEvent) -> bool:
        """Return True the first time a given message id is seen, False after."""
        if event.source_id in self._seen:
            return False
        self._seen.add(event.source_id)
        return True

    @property
    def size(self) -> int:
        return len(self._seen)
