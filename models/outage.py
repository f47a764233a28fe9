from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from models.event import PowerEvent


@dataclass
class Outage:
    """A power outage derived from a run of PDB events.

    ``start`` is the first DOWN event of the run. ``end`` and
    ``duration_minutes`` are both None while the outage is still open.
    The calendar fields are fixed when the outage is created and are
    what the store indexes for day/month/year lookups.
    """

    start: datetime
    calendar_year: int
    calendar_month: int
    calendar_day: int
    events: list[PowerEvent] = field(default_factory=list)
    end: datetime | None = None
    duration_minutes: int | None = None

    @property
    def is_open(self) -> bool:
        return self.end is None

    def to_dict(self) -> dict[str, Any]:
        return {
            "start": self.start.isoformat(),
            "end": self.end.isoformat() if self.end is not None else None,
            "durationMinutes": self.duration_minutes,
            "events": [e.to_dict() for e in self.events],
            "calendarYear": self.calendar_year,
            "calendarMonth": self.calendar_month,
            "calendarDay": self.calendar_day,
        }

