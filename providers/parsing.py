from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import timedelta, timezone
from email.utils import parsedate_to_datetime

from models.event import EventKind, PowerEvent

log = logging.getLogger(__name__)


def parse_pdb_subject(subject: str | None) -> EventKind | None:
    """Map a notification subject line to an event kind.

    Matching is a case-insensitive substring test; "pdb down" wins when
    a subject somehow mentions both.
    """
    if not subject:
        return None
    s = subject.lower()
    if "pdb down" in s:
        return EventKind.DOWN
    if "pdb up" in s:
        return EventKind.UP
    return None


def header_value(headers: Mapping[str, str], name: str) -> str | None:
    """Case-insensitive header lookup; empty values count as missing."""
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted and value:
            return value
    return None


def event_from_headers(
    headers: Mapping[str, str],
    fallback_id: str | None = None,
    delay_seconds: int = 0,
) -> PowerEvent | None:
    """Build a PowerEvent from message headers, or None if it isn't one.

    The message's declared send time is shifted back by ``delay_seconds``
    to approximate when the power actually changed.
    """
    kind = parse_pdb_subject(header_value(headers, "Subject"))
    if kind is None:
        return None

    source_id = header_value(headers, "Message-Id") or fallback_id
    raw_date = header_value(headers, "Date")
    if not source_id or not raw_date:
        log.debug("Dropping %s message without id or date", kind.value)
        return None

    try:
        sent_at = parsedate_to_datetime(raw_date)
    except (TypeError, ValueError):
        log.debug("Dropping message %s with unparseable date %r", source_id, raw_date)
        return None
    if sent_at.tzinfo is None:
        sent_at = sent_at.replace(tzinfo=timezone.utc)

    return PowerEvent(
        kind=kind,
        timestamp=(sent_at - timedelta(seconds=delay_seconds)).astimezone(timezone.utc),
        source_id=source_id,
    )
