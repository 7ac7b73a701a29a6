"""Engine/session helpers for the SQL backend."""
from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

Base = declarative_base()


def build_engine(
    url: str,
    *,
    pool_size: int = 10,
    pool_timeout: float = 5.0,
    max_overflow: int = 10,
) -> Engine:
    """Create a pooled engine; in-memory SQLite gets one shared connection."""
    url = (url or "").strip()
    if not url:
        raise RuntimeError("DATABASE_URL must be configured to use the SQL backend.")
    parsed = make_url(url)
    if parsed.get_backend_name() == "sqlite":
        # sessions run on threadpool workers, not the thread that opened them
        connect_args = {"check_same_thread": False}
        if parsed.database in (None, "", ":memory:"):
            return create_engine(url, future=True, connect_args=connect_args, poolclass=StaticPool)
        Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)
        return create_engine(
            url,
            future=True,
            connect_args=connect_args,
            pool_size=pool_size,
            pool_timeout=pool_timeout,
            max_overflow=max_overflow,
        )
    return create_engine(
        url,
        future=True,
        pool_pre_ping=True,
        pool_size=pool_size,
        pool_timeout=pool_timeout,
        max_overflow=max_overflow,
    )


def build_sessionmaker(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False, future=True)


@contextmanager
def session_scope(factory: sessionmaker) -> Iterator[Session]:
    session: Session = factory()
    try:
        yield session
    finally:
        session.close()
