"""
JSON document store.

The whole database is one JSON file holding the ``whiskies`` collection (a
list of documents keyed by ``_id``) and the ``whiskies_seq`` sequence
document used to emulate integer identity. Mutations are applied to a copy,
written to disk, and only then become visible, so an acknowledged operation
is always on disk before the caller gets its answer.

Known limitation: the lock guarding the sequence is per process. Two
processes pointing at the same file can hand out the same id.
"""

from __future__ import annotations

import copy
import json
import os
import threading
from pathlib import Path
from typing import Mapping, Optional

from starlette.concurrency import run_in_threadpool

from whisky_store.domain.whisky import Whisky
from whisky_store.repositories.base import (
    BackendUnavailable,
    DataIntegrityError,
    NotFound,
    Store,
)

COLLECTION = "whiskies"
COLLECTION_SEQ = "whiskies_seq"


def load(path: Path) -> dict:
    if path.exists():
        with path.open("r", encoding="utf-8") as f:
            return db_defaults(json.load(f))
    return db_defaults({})


def save(path: Path, db: dict) -> None:
    tmp = path.with_name(path.name + ".tmp")
    tmp.write_text(json.dumps(db, ensure_ascii=False, indent=2), encoding="utf-8")
    os.replace(tmp, path)


def db_defaults(db: dict) -> dict:
    if not isinstance(db, dict):
        raise ValueError("document database root must be an object")
    db.setdefault(COLLECTION, [])
    db.setdefault(COLLECTION_SEQ, {})
    return db


class JSONDocumentRepository(Store):
    """Document backend; ids come from an atomic find-and-increment on ``whiskies_seq``."""

    base_id = 0

    def __init__(self, path: str | os.PathLike) -> None:
        self.path = Path(path)
        self._db: Optional[dict] = None
        self._lock = threading.Lock()

    # -------------------------- lifecycle --------------------------
    async def open(self) -> None:
        await run_in_threadpool(self._open)

    async def close(self) -> None:
        with self._lock:
            self._db = None

    def _open(self) -> None:
        with self._lock:
            if self._db is not None:
                return
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                self._db = load(self.path)
            except OSError as exc:
                raise BackendUnavailable(f"document store unavailable: {exc}") from exc
            except ValueError as exc:
                raise DataIntegrityError(f"document store {self.path} is corrupt: {exc}") from exc

    def _require_db(self) -> dict:
        if self._db is None:
            raise BackendUnavailable("document store is not open")
        return self._db

    def _commit(self, db: dict) -> None:
        try:
            save(self.path, db)
        except OSError as exc:
            raise BackendUnavailable(f"document store write failed: {exc}") from exc
        self._db = db

    # -------------------------- primitives --------------------------
    @staticmethod
    def _find_and_increment(db: dict) -> int:
        """Return the current sequence number and bump it (upsert on first use)."""
        seq = db[COLLECTION_SEQ]
        current = int(seq.get("number") or 0)
        seq["number"] = current + 1
        return current

    @staticmethod
    def _matching(db: dict, whisky_id: int) -> list[int]:
        return [i for i, doc in enumerate(db[COLLECTION]) if doc.get("_id") == whisky_id]

    @classmethod
    def _replace_one(cls, db: dict, whisky_id: int, patch: dict) -> int:
        """Patch the first document with ``_id``; returns the matched count."""
        found = cls._matching(db, whisky_id)
        if found:
            current = Whisky.from_json(db[COLLECTION][found[0]])
            db[COLLECTION][found[0]] = current.patched(patch).to_document()
        return min(len(found), 1)

    @classmethod
    def _remove_one(cls, db: dict, whisky_id: int) -> int:
        """Remove the first document with ``_id``; returns the removed count."""
        found = cls._matching(db, whisky_id)
        if found:
            del db[COLLECTION][found[0]]
        return min(len(found), 1)

    # -------------------------- operations --------------------------
    async def insert(self, candidate: Whisky) -> Whisky:
        return await run_in_threadpool(self._insert, candidate)

    async def get(self, whisky_id: int) -> Whisky:
        return await run_in_threadpool(self._get, whisky_id)

    async def update(self, whisky_id: int, patch: Mapping[str, Optional[str]]) -> Whisky:
        return await run_in_threadpool(self._update, whisky_id, dict(patch))

    async def delete(self, whisky_id: int) -> None:
        await run_in_threadpool(self._delete, whisky_id)

    async def list_all(self) -> list[Whisky]:
        return await run_in_threadpool(self._list_all)

    async def count(self) -> int:
        return await run_in_threadpool(self._count)

    def _insert(self, candidate: Whisky) -> Whisky:
        with self._lock:
            db = copy.deepcopy(self._require_db())
            entity = candidate.with_id(self._find_and_increment(db))
            if self._matching(db, entity.id):
                raise DataIntegrityError(f"sequence handed out existing id: {entity.id}")
            db[COLLECTION].append(entity.to_document())
            self._commit(db)
            return entity

    def _get(self, whisky_id: int) -> Whisky:
        with self._lock:
            db = self._require_db()
            found = self._matching(db, whisky_id)
            if not found:
                raise NotFound(whisky_id)
            if len(found) > 1:
                raise DataIntegrityError(f"several whiskies with id: {whisky_id}")
            return Whisky.from_json(db[COLLECTION][found[0]])

    def _update(self, whisky_id: int, patch: dict) -> Whisky:
        with self._lock:
            db = copy.deepcopy(self._require_db())
            if self._replace_one(db, whisky_id, patch) == 0:
                raise NotFound(whisky_id)
            self._commit(db)
            return Whisky.from_json(db[COLLECTION][self._matching(db, whisky_id)[0]])

    def _delete(self, whisky_id: int) -> None:
        with self._lock:
            db = copy.deepcopy(self._require_db())
            if self._remove_one(db, whisky_id) == 0:
                raise NotFound(whisky_id)
            self._commit(db)

    def _list_all(self) -> list[Whisky]:
        with self._lock:
            return [Whisky.from_json(doc) for doc in self._require_db()[COLLECTION]]

    def _count(self) -> int:
        with self._lock:
            return len(self._require_db()[COLLECTION])
