from models.event import EventKind, PowerEvent
from models.outage import Outage

__all__ = ["EventKind", "PowerEvent", "Outage"]
