"""Create the whisky table (no-op when it already exists)."""
from __future__ import annotations

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from whisky_store.core.config import get_settings

from .session import Base, build_engine
from . import models  # noqa: F401  # ensure models are imported for metadata


def create_all(engine: Engine) -> None:
    Base.metadata.create_all(bind=engine)


if __name__ == "__main__":
    settings = get_settings()
    engine = build_engine(settings.database_url, pool_size=1)
    try:
        create_all(engine)
        print("Database tables created successfully.")
    except SQLAlchemyError as exc:
        raise SystemExit(f"Failed to create tables: {exc}") from exc
    finally:
        engine.dispose()
