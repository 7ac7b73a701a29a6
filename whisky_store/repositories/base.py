"""
Store interface shared by every persistence backend.

The gateway and the bootstrap pipeline are written once against ``Store``;
each backend implements the same contract with its own mechanism and raises
the errors below instead of driver-specific exceptions.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Mapping, Optional

from whisky_store.domain.whisky import Whisky


class StoreError(Exception):
    """Base exception for store operations."""


class NotFound(StoreError):
    """Raised when no record with the requested id exists."""

    def __init__(self, whisky_id: int) -> None:
        super().__init__(f"not found whisky with id: {whisky_id}")
        self.whisky_id = whisky_id


class Conflict(StoreError):
    """Raised when an insert collides with an existing id."""


class BackendUnavailable(StoreError):
    """Raised when the backend cannot be reached or refuses the handshake."""


class DataIntegrityError(StoreError):
    """Raised when stored data violates an invariant (e.g. duplicated ids)."""


class Store(ABC):
    """Async CRUD contract over a single collection of whisky records."""

    #: identity assigned to the first record inserted into an empty store
    base_id: int = 0

    async def open(self) -> None:
        """Acquire the backend resource (pool, file handle, client)."""

    async def ensure_schema(self) -> None:
        """Idempotently create the storage target."""

    async def close(self) -> None:
        """Release the backend resource; safe to call more than once."""

    @abstractmethod
    async def insert(self, candidate: Whisky) -> Whisky:
        ...

    @abstractmethod
    async def get(self, whisky_id: int) -> Whisky:
        ...

    @abstractmethod
    async def update(self, whisky_id: int, patch: Mapping[str, Optional[str]]) -> Whisky:
        ...

    @abstractmethod
    async def delete(self, whisky_id: int) -> None:
        ...

    @abstractmethod
    async def list_all(self) -> list[Whisky]:
        ...

    async def count(self) -> int:
        return len(await self.list_all())

    @property
    def name(self) -> str:
        return type(self).__name__
