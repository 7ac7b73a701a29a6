"""Relational store backed by a pooled SQLAlchemy engine."""
from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Mapping, Optional

from sqlalchemy import delete, func, select, text, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import sessionmaker
from starlette.concurrency import run_in_threadpool

from whisky_store.db.create_tables import create_all
from whisky_store.db.models import WhiskyRow
from whisky_store.db.session import build_engine, build_sessionmaker, session_scope
from whisky_store.domain.whisky import Whisky
from whisky_store.repositories.base import (
    BackendUnavailable,
    Conflict,
    DataIntegrityError,
    NotFound,
    Store,
)


# largest value a signed 64-bit INTEGER column can hold
MAX_ROW_ID = 2**63 - 1


@contextmanager
def _translate_errors() -> Iterator[None]:
    try:
        yield
    except IntegrityError as exc:
        raise Conflict(str(exc.orig)) from exc
    except (OperationalError, InterfaceError, PoolTimeoutError) as exc:
        raise BackendUnavailable(f"relational backend unavailable: {exc}") from exc


def _to_entity(row: WhiskyRow) -> Whisky:
    return Whisky(id=int(row.id), name=row.name, origin=row.origin)


def _check_row_id(whisky_id: int) -> None:
    # the driver overflows before the query runs, and no stored row can match
    if not 0 <= whisky_id <= MAX_ROW_ID:
        raise NotFound(whisky_id)


class SQLRepository(Store):
    """CRUD over the ``whisky`` table; blocking driver calls run in the threadpool."""

    base_id = 1

    def __init__(
        self,
        database_url: str,
        *,
        pool_size: int = 10,
        pool_timeout: float = 5.0,
        max_overflow: int = 10,
    ) -> None:
        self.database_url = database_url
        self.pool_size = pool_size
        self.max_overflow = max_overflow
        self.pool_timeout = pool_timeout
        self._engine: Optional[Engine] = None
        self._sessions: Optional[sessionmaker] = None

    # -------------------------- lifecycle --------------------------
    async def open(self) -> None:
        if self._engine is not None:
            return
        try:
            engine = build_engine(
                self.database_url,
                pool_size=self.pool_size,
                pool_timeout=self.pool_timeout,
                max_overflow=self.max_overflow,
            )
        except OSError as exc:
            raise BackendUnavailable(f"relational backend unavailable: {exc}") from exc
        try:
            await run_in_threadpool(self._handshake, engine)
        except BaseException:
            engine.dispose()
            raise
        self._engine = engine
        self._sessions = build_sessionmaker(engine)

    async def ensure_schema(self) -> None:
        engine = self._require_engine()
        await run_in_threadpool(self._create_schema, engine)

    async def close(self) -> None:
        engine, self._engine, self._sessions = self._engine, None, None
        if engine is not None:
            await run_in_threadpool(engine.dispose)

    @staticmethod
    def _handshake(engine: Engine) -> None:
        with _translate_errors():
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))

    @staticmethod
    def _create_schema(engine: Engine) -> None:
        with _translate_errors():
            create_all(engine)

    def _require_engine(self) -> Engine:
        if self._engine is None:
            raise BackendUnavailable("relational store is not open")
        return self._engine

    def _require_sessions(self) -> sessionmaker:
        self._require_engine()
        return self._sessions

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
        row = WhiskyRow(name=candidate.name, origin=candidate.origin)
        with _translate_errors(), session_scope(self._require_sessions()) as session:
            session.add(row)
            # the generated key comes back with the INSERT itself
            session.flush()
            new_id = int(row.id)
            session.commit()
        return candidate.with_id(new_id)

    def _get(self, whisky_id: int) -> Whisky:
        _check_row_id(whisky_id)
        with _translate_errors(), session_scope(self._require_sessions()) as session:
            rows = session.execute(select(WhiskyRow).where(WhiskyRow.id == whisky_id)).scalars().all()
            if not rows:
                raise NotFound(whisky_id)
            if len(rows) > 1:
                raise DataIntegrityError(f"several whiskies with id: {whisky_id}")
            return _to_entity(rows[0])

    def _update(self, whisky_id: int, patch: dict) -> Whisky:
        _check_row_id(whisky_id)
        values = {key: patch[key] for key in ("name", "origin") if key in patch}
        if not values:
            return self._get(whisky_id)
        with _translate_errors(), session_scope(self._require_sessions()) as session:
            stmt = update(WhiskyRow).where(WhiskyRow.id == whisky_id).values(**values)
            result = session.execute(stmt)
            if result.rowcount == 0:
                raise NotFound(whisky_id)
            row = session.execute(select(WhiskyRow).where(WhiskyRow.id == whisky_id)).scalar_one()
            entity = _to_entity(row)
            session.commit()
            return entity

    def _delete(self, whisky_id: int) -> None:
        _check_row_id(whisky_id)
        with _translate_errors(), session_scope(self._require_sessions()) as session:
            result = session.execute(delete(WhiskyRow).where(WhiskyRow.id == whisky_id))
            if result.rowcount == 0:
                raise NotFound(whisky_id)
            session.commit()

    def _list_all(self) -> list[Whisky]:
        with _translate_errors(), session_scope(self._require_sessions()) as session:
            rows = session.execute(select(WhiskyRow).order_by(WhiskyRow.id)).scalars().all()
            return [_to_entity(row) for row in rows]

    def _count(self) -> int:
        with _translate_errors(), session_scope(self._require_sessions()) as session:
            return int(session.scalar(select(func.count()).select_from(WhiskyRow)) or 0)
