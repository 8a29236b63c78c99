from __future__ import annotations

from functools import lru_cache

from app.config import Settings, get_settings
from .base import INFO_MARKER, StoreError, Table, TabularStore, Transposed
from .memory import MemoryStore
from .workbook import WorkbookStore


def build_store(settings: Settings) -> TabularStore:
    backend = settings.STORE_BACKEND
    if backend == "memory":
        return MemoryStore(infer_dates=True)
    if backend == "workbook":
        return WorkbookStore(settings.WORKBOOK_PATH)
    # Lazy import: the SQL engine is created (and SQLite tables with it) when
    # app.db.session is imported, so it must load before the models.
    from app.db.session import get_sessionmaker  # pylint: disable=import-outside-toplevel
    from .sql import SqlStore  # pylint: disable=import-outside-toplevel

    return SqlStore(get_sessionmaker())


@lru_cache
def get_store() -> TabularStore:
    return build_store(get_settings())


__all__ = [
    "INFO_MARKER",
    "MemoryStore",
    "StoreError",
    "Table",
    "TabularStore",
    "Transposed",
    "WorkbookStore",
    "build_store",
    "get_store",
]
