from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone, tzinfo
from enum import Enum


class Scope(str, Enum):
    """Aggregation window for an outage report."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


def _midnight(day: date, tz: tzinfo) -> datetime:
    return datetime.combine(day, time(), tzinfo=tz).astimezone(timezone.utc)


def report_window(
    scope: Scope,
    year: int,
    month: int | None = None,
    day: int | None = None,
    tz: tzinfo = timezone.utc,
) -> tuple[datetime, datetime]:
    """Half-open ``[start, end)`` window for ``scope``, as UTC datetimes.

    Boundaries are local midnights in ``tz``. Weeks start on Monday and
    are the week containing the selected day.
    """
    if scope is Scope.YEARLY:
        first = date(year, 1, 1)
        last = date(year + 1, 1, 1)
    elif month is None:
        raise ValueError(f"{scope.value} report needs a month")
    elif scope is Scope.MONTHLY:
        first = date(year, month, 1)
        last = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
    elif day is None:
        raise ValueError(f"{scope.value} report needs a day")
    elif scope is Scope.DAILY:
        first = date(year, month, day)
        last = first + timedelta(days=1)
    else:
        selected = date(year, month, day)
        first = selected - timedelta(days=selected.weekday())
        last = first + timedelta(days=7)
    return _midnight(first, tz), _midnight(last, tz)


def resolve_selector(
    tz: tzinfo,
    year: int | None = None,
    month: int | None = None,
    day: int | None = None,
    *,
    previous_day: bool = False,
    now: datetime | None = None,
) -> tuple[int, int, int]:
    """Fill in a year/month/day selector, defaulting to today in ``tz``.

    With ``previous_day`` the resolved date is moved back by one day.
    """
    today = (now or datetime.now(timezone.utc)).astimezone(tz).date()
    selected = date(
        year if year is not None else today.year,
        month if month is not None else today.month,
        day if day is not None else today.day,
    )
    if previous_day:
        selected -= timedelta(days=1)
    return selected.year, selected.month, selected.day
