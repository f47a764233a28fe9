"""Fold a history of PDB up/down events into outage intervals.

The reducer is a pure function: it is handed the full event history on
every sync and returns a fresh list of outages. It never touches the
store and keeps no state between calls, so callers can run it as often
as they like.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime, timedelta, timezone, tzinfo

from models.event import EventKind, PowerEvent
from models.outage import Outage

log = logging.getLogger(__name__)

_ONE_MS = timedelta(milliseconds=1)
_MS_PER_MINUTE = 60_000


def duration_minutes(start: datetime, end: datetime) -> int:
    """Whole minutes between ``start`` and ``end``.

    Anything under a second counts as 0, anything from one second up to
    a minute counts as 1, and longer spans round half-up to the nearest
    minute.
    """
    ms = (end - start) // _ONE_MS
    if ms < 1000:
        return 0
    if ms < _MS_PER_MINUTE:
        return 1
    return (ms + _MS_PER_MINUTE // 2) // _MS_PER_MINUTE


def _sort_key(event: PowerEvent) -> tuple[datetime, str]:
    # Equal timestamps fall back to the message id so input order never matters.
    return event.timestamp, event.source_id


def _open_outage(event: PowerEvent, tz: tzinfo) -> Outage:
    local = event.timestamp.astimezone(tz)
    return Outage(
        start=event.timestamp,
        calendar_year=local.year,
        calendar_month=local.month,
        calendar_day=local.day,
        events=[event],
    )


def reduce_events(
    events: Iterable[PowerEvent],
    *,
    tz: tzinfo = timezone.utc,
) -> list[Outage]:
    """Turn up/down events into outages, ordered by start time.

    A DOWN opens an outage, further DOWNs are folded into the open one,
    and the next UP closes it. An UP with nothing open is ignored. If the
    history ends while an outage is open it is returned without an end.

    ``tz`` only decides which calendar day an outage is filed under.
    """
    outages: list[Outage] = []
    current: Outage | None = None

    for event in sorted(events, key=_sort_key):
        if event.kind is EventKind.DOWN:
            if current is None:
                current = _open_outage(event, tz)
            else:
                current.events.append(event)
        elif current is not None:
            current.events.append(event)
            current.end = event.timestamp
            current.duration_minutes = duration_minutes(current.start, event.timestamp)
            outages.append(current)
            current = None
        else:
            log.debug("Ignoring UP event %s with no open outage", event.source_id)

    if current is not None:
        outages.append(current)

    return outages
