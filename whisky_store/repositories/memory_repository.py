"""In-process store backed by an ordered dict."""
from __future__ import annotations

import threading
from typing import Mapping, Optional

from whisky_store.domain.whisky import Whisky
from whisky_store.repositories.base import NotFound, Store


class MemoryRepository(Store):
    """Keeps records in insertion order; ids come from a never-reused counter."""

    base_id = 0

    def __init__(self) -> None:
        self._items: dict[int, Whisky] = {}
        self._next_id = self.base_id
        self._lock = threading.Lock()

    async def insert(self, candidate: Whisky) -> Whisky:
        with self._lock:
            entity = candidate.with_id(self._next_id)
            self._next_id += 1
            self._items[entity.id] = entity
            return entity

    async def get(self, whisky_id: int) -> Whisky:
        with self._lock:
            entity = self._items.get(whisky_id)
        if entity is None:
            raise NotFound(whisky_id)
        return entity

    async def update(self, whisky_id: int, patch: Mapping[str, Optional[str]]) -> Whisky:
        with self._lock:
            current = self._items.get(whisky_id)
            if current is None:
                raise NotFound(whisky_id)
            entity = current.patched(patch)
            self._items[whisky_id] = entity
            return entity

    async def delete(self, whisky_id: int) -> None:
        with self._lock:
            if self._items.pop(whisky_id, None) is None:
                raise NotFound(whisky_id)

    async def list_all(self) -> list[Whisky]:
        with self._lock:
            return list(self._items.values())

    async def count(self) -> int:
        with self._lock:
            return len(self._items)
