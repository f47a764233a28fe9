from storage.sqlite_store import OutageStore

__all__ = ["OutageStore"]
