from consumers.base import EventConsumer
from consumers.console import ConsoleConsumer
from consumers.outage_sync import OutageSyncConsumer

__all__ = ["EventConsumer", "ConsoleConsumer", "OutageSyncConsumer"]
