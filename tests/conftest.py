from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from models.event import EventKind, PowerEvent
from storage.sqlite_store import OutageStore

T0 = datetime(2025, 1, 1, tzinfo=timezone.utc)


def make_event(kind: str, at: datetime | float, source_id: str) -> PowerEvent:
    """Build an event; ``at`` is either a datetime or seconds after T0."""
    if not isinstance(at, datetime):
        at = T0 + timedelta(seconds=at)
    return PowerEvent(kind=EventKind(kind), timestamp=at, source_id=source_id)


def down(at: datetime | float, source_id: str) -> PowerEvent:
    return make_event("down", at, source_id)


def up(at: datetime | float, source_id: str) -> PowerEvent:
    return make_event("up", at, source_id)


@pytest.fixture
def store():
    with OutageStore(":memory:") as s:
        yield s
