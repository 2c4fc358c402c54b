from __future__ import annotations

from functools import lru_cache

from ..config import settings
from .base import RecordStore, RowAddress, StoredRow, Table, TABLE_COLUMNS
from .memory import MemoryRecordStore


def build_store(backend: str) -> RecordStore:
    """
    Construct the configured backend. Imports are local so the memory backend
    never needs Google client libraries at runtime.
    """
    if backend == "memory":
        return MemoryRecordStore()
    if backend == "sheets":
        from .sheets import SheetsRecordStore

        return SheetsRecordStore()
    from .sql import SqlRecordStore

    return SqlRecordStore()


@lru_cache(maxsize=1)
def get_store() -> RecordStore:
    """
    Process-wide store handle (FastAPI dependency). Holds connections only,
    never rows or row addresses.
    """
    return build_store(settings.store_backend)


__all__ = [
    "RecordStore",
    "RowAddress",
    "StoredRow",
    "Table",
    "TABLE_COLUMNS",
    "MemoryRecordStore",
    "build_store",
    "get_store",
]
