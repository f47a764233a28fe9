"""Aggregate stored outages into scoped reports.

Reports are plain dicts ready for ``json.dumps``; outage entries use the
same keys as ``Outage.to_dict()``.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime, timedelta, timezone, tzinfo
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from models.outage import Outage
from reports.scopes import Scope, report_window
from storage.sqlite_store import OutageStore

log = logging.getLogger(__name__)


def total_minutes(outages: Iterable[Outage]) -> int:
    """Sum of durations; open outages count as zero."""
    return sum(o.duration_minutes or 0 for o in outages)


def total_hours(minutes: int) -> float:
    """Minutes as hours, rounded half-up to two decimals."""
    hours = (Decimal(minutes) / Decimal(60)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return float(hours)


_WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


def daily_breakdown(
    outages: Iterable[Outage],
    week_start: datetime,
    tz: tzinfo = timezone.utc,
) -> list[dict[str, Any]]:
    """Per-day totals for the seven days starting at ``week_start``.

    Each outage counts toward the local day its start falls on, even
    when it runs past midnight.
    """
    first = week_start.astimezone(tz).date()
    buckets: list[list[Outage]] = [[] for _ in _WEEKDAYS]
    for outage in outages:
        index = (outage.start.astimezone(tz).date() - first).days
        if 0 <= index < len(buckets):
            buckets[index].append(outage)

    breakdown = []
    for index, (name, bucket) in enumerate(zip(_WEEKDAYS, buckets)):
        minutes = total_minutes(bucket)
        breakdown.append(
            {
                "date": (first + timedelta(days=index)).isoformat(),
                "weekday": name,
                "minutes": minutes,
                "hours": total_hours(minutes),
                "count": len(bucket),
            }
        )
    return breakdown


def build_report(
    store: OutageStore,
    scope: Scope | str,
    year: int,
    month: int | None = None,
    day: int | None = None,
    tz: tzinfo = timezone.utc,
) -> dict[str, Any]:
    """Collect the outages that started inside the scope's window.

    Raises ``ValueError`` for an unknown scope or an impossible date.
    """
    scope = Scope(scope)
    start, end = report_window(scope, year, month, day, tz)
    outages = store.outages_between(start, end)
    minutes = total_minutes(outages)
    log.debug("%s report %s..%s: %d outage(s)", scope.value, start, end, len(outages))

    report: dict[str, Any] = {
        "scope": scope.value,
        "timezone": str(tz),
        "year": year,
    }
    if scope is not Scope.YEARLY:
        report["month"] = month
    if scope in (Scope.DAILY, Scope.WEEKLY):
        report["day"] = day
    report.update(
        windowStart=start.isoformat(),
        windowEnd=end.isoformat(),
        totalMinutes=minutes,
        totalHours=total_hours(minutes),
        outageCount=len(outages),
        outages=[o.to_dict() for o in outages],
    )
    if scope is Scope.WEEKLY:
        report["dailyBreakdown"] = daily_breakdown(outages, start, tz)
    return report
