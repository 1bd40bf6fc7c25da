from .cache import CachedRecordStore
from .database import Database
from .sqlite_store import SqliteRecordStore
from .store import RecordStore, StoreError, StoreUnavailable

__all__ = [
    "CachedRecordStore",
    "Database",
    "RecordStore",
    "SqliteRecordStore",
    "StoreError",
    "StoreUnavailable",
]
