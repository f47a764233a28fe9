"""Persistence for PDB events and derived outages, backed by SQLite."""
from __future__ import annotations

import json
import logging
import sqlite3
from collections.abc import Iterable, Sequence
from datetime import datetime, timezone

from models.event import EventKind, PowerEvent
from models.outage import Outage

log = logging.getLogger(__name__)

SCHEMA_STATEMENTS: Sequence[str] = (
    """
    CREATE TABLE IF NOT EXISTS events (
        source_id TEXT PRIMARY KEY,
        kind TEXT NOT NULL,
        timestamp TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_events_ts_kind ON events (timestamp, kind)",
    """
    CREATE TABLE IF NOT EXISTS outages (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        start TEXT NOT NULL,
        "end" TEXT NULL,
        duration_minutes INTEGER NULL,
        calendar_year INTEGER NOT NULL,
        calendar_month INTEGER NOT NULL,
        calendar_day INTEGER NOT NULL,
        events_json TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_outages_start ON outages (start)",
    """
    CREATE INDEX IF NOT EXISTS idx_outages_calendar
        ON outages (calendar_year, calendar_month, calendar_day)
    """,
)

_OUTAGE_COLUMNS = (
    'start, "end", duration_minutes, calendar_year, calendar_month, calendar_day, events_json'
)


def _ts(value: datetime) -> str:
    # Fixed-width UTC strings so that text comparison matches time order.
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _outage_row(outage: Outage) -> tuple:
    return (
        _ts(outage.start),
        _ts(outage.end) if outage.end is not None else None,
        outage.duration_minutes,
        outage.calendar_year,
        outage.calendar_month,
        outage.calendar_day,
        json.dumps([e.to_dict() for e in outage.events]),
    )


def _outage_from_row(row: sqlite3.Row) -> Outage:
    return Outage(
        start=datetime.fromisoformat(row["start"]),
        end=datetime.fromisoformat(row["end"]) if row["end"] else None,
        duration_minutes=row["duration_minutes"],
        calendar_year=row["calendar_year"],
        calendar_month=row["calendar_month"],
        calendar_day=row["calendar_day"],
        events=[PowerEvent.from_dict(e) for e in json.loads(row["events_json"])],
    )


class OutageStore:
    """Stores raw PDB events and the outage set derived from them.

    Events are append-only and keyed by message id. Outages are never
    updated in place: each sync replaces the whole set in a single
    transaction, so readers see either the old set or the new one.
    """

    def __init__(self, path: str = ":memory:") -> None:
        self._conn = sqlite3.connect(path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        with self._conn:
            for statement in SCHEMA_STATEMENTS:
                self._conn.execute(statement)

    def __enter__(self) -> OutageStore:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._conn.close()

    def record_event(self, event: PowerEvent) -> bool:
        """Insert ``event`` unless its message id is already stored.

        Returns True if the event was new.
        """
        with self._conn:
            cur = self._conn.execute(
                "INSERT OR IGNORE INTO events (source_id, kind, timestamp) VALUES (?, ?, ?)",
                (event.source_id, event.kind.value, _ts(event.timestamp)),
            )
        return cur.rowcount == 1

    def load_events(self) -> list[PowerEvent]:
        rows = self._conn.execute(
            "SELECT source_id, kind, timestamp FROM events ORDER BY timestamp, source_id"
        ).fetchall()
        return [
            PowerEvent(
                kind=EventKind(row["kind"]),
                timestamp=datetime.fromisoformat(row["timestamp"]),
                source_id=row["source_id"],
            )
            for row in rows
        ]

    def source_ids(self) -> set[str]:
        """Message ids of every stored event."""
        return {row[0] for row in self._conn.execute("SELECT source_id FROM events")}

    def event_count(self) -> int:
        return self._conn.execute("SELECT COUNT(*) FROM events").fetchone()[0]

    def replace_outages(self, outages: Iterable[Outage]) -> int:
        """Swap the stored outage set for ``outages``. Returns the new count."""
        rows = [_outage_row(o) for o in outages]
        with self._conn:
            self._conn.execute("DELETE FROM outages")
            self._conn.executemany(
                f"INSERT INTO outages ({_OUTAGE_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?)",
                rows,
            )
        log.debug("Replaced stored outages with %d row(s)", len(rows))
        return len(rows)

    def outages_between(self, start: datetime, end: datetime) -> list[Outage]:
        """Outages whose start falls in the half-open window [start, end)."""
        rows = self._conn.execute(
            f"SELECT {_OUTAGE_COLUMNS} FROM outages WHERE start >= ? AND start < ? ORDER BY start",
            (_ts(start), _ts(end)),
        ).fetchall()
        return [_outage_from_row(r) for r in rows]

    def all_outages(self) -> list[Outage]:
        rows = self._conn.execute(f"SELECT {_OUTAGE_COLUMNS} FROM outages ORDER BY start").fetchall()
        return [_outage_from_row(r) for r in rows]
