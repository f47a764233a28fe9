from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class EventKind(str, Enum):
    """The two states a PDB notification can report."""

    UP = "up"
    DOWN = "down"


@dataclass(frozen=True)
class PowerEvent:
    """Canonical event produced from one notification message.

    Fields:
        kind:      Whether the message reported power going down or back up.
        timestamp: Best estimate of when the change happened (UTC).
        source_id: Message identifier, used by the ingest side for dedup.
    """

    kind: EventKind
    timestamp: datetime
    source_id: str

    def to_dict(self) -> dict[str, str]:
        return {
            "kind": self.kind.value,
            "timestamp": self.timestamp.isoformat(),
            "sourceId": self.source_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, str]) -> PowerEvent:
        return cls(
            kind=EventKind(data["kind"]),
            timestamp=datetime.fromisoformat(data["timestamp"]),
            source_id=data["sourceId"],
        )
