"""
Persistence adapters.

Each module implements the ``Store`` contract from ``base`` over a different
backend (in-memory dict, SQLAlchemy, JSON documents). Routers and services
depend on the interface; ``build_store`` picks the backend from settings.
"""

from __future__ import annotations

from whisky_store.core.config import STORE_BACKENDS, Settings

from .base import (
    BackendUnavailable,
    Conflict,
    DataIntegrityError,
    NotFound,
    Store,
    StoreError,
)
from .json_storage import JSONDocumentRepository
from .memory_repository import MemoryRepository
from .sql_repository import SQLRepository


def build_store(settings: Settings) -> Store:
    backend = settings.store_backend
    if backend == "memory":
        return MemoryRepository()
    if backend == "sql":
        return SQLRepository(
            settings.database_url,
            pool_size=settings.sql_pool_size,
            pool_timeout=settings.acquire_timeout,
        )
    if backend == "document":
        return JSONDocumentRepository(settings.document_path)
    raise ValueError(f"Unknown store backend '{backend}'. Available: {', '.join(STORE_BACKENDS)}")


__all__ = [
    "BackendUnavailable",
    "Conflict",
    "DataIntegrityError",
    "JSONDocumentRepository",
    "MemoryRepository",
    "NotFound",
    "SQLRepository",
    "Store",
    "StoreError",
    "build_store",
]
