from core.dedup import DeduplicationStore
from core.event_bus import EventBus
from core.reducer import duration_minutes, reduce_events
from core.registry import ProviderRegistry
from core.scheduler import Scheduler

__all__ = [
    "DeduplicationStore",
    "EventBus",
    "ProviderRegistry",
    "Scheduler",
    "duration_minutes",
    "reduce_events",
]
