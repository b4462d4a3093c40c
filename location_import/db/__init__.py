"""Record store access (PostgreSQL and in-memory)."""

from .errors import BatchInsertError, StoreError
from .memory_store import InMemoryLocationStore
from .store import RECORD_COLUMNS, LocationStore, PostgresLocationStore

__all__ = [
    "BatchInsertError",
    "StoreError",
    "InMemoryLocationStore",
    "LocationStore",
    "PostgresLocationStore",
    "RECORD_COLUMNS",
]
