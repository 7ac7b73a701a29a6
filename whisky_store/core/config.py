"""
Configuration helpers for the Whisky Store backend.

Settings are read from environment variables once and cached, so routers,
repositories and the bootstrap pipeline never fetch os.environ directly.
"""

from dataclasses import dataclass, replace
from functools import lru_cache
import os

STORE_BACKENDS = ("memory", "sql", "document")


@dataclass(frozen=True)
class Settings:
    """Typed view of environment variables."""

    app_env: str
    http_host: str
    http_port: int
    store_backend: str
    database_url: str
    document_path: str
    sql_pool_size: int
    acquire_timeout: float
    assets_dir: str
    log_level: str

    def with_overrides(self, **changes) -> "Settings":
        """Return a copy with the non-None values of ``changes`` applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


@lru_cache
def get_settings() -> Settings:
    """Read the current environment and build a Settings instance."""
    def _int(value: str, default: int = 0) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    def _float(value: str, default: float = 0.0) -> float:
        try:
            return float(value)
        except (TypeError, ValueError):
            return default

    return Settings(
        app_env=(os.getenv("APP_ENV") or "dev").lower(),
        http_host=os.getenv("HTTP_HOST", "0.0.0.0"),
        http_port=_int(os.getenv("HTTP_PORT", "8080"), 8080),
        store_backend=(os.getenv("STORE_BACKEND") or "memory").strip().lower(),
        database_url=os.getenv("DATABASE_URL", "sqlite:///db/whisky_store.db"),
        document_path=os.getenv("DOCUMENT_PATH", os.path.join("db", "whisky_store.json")),
        sql_pool_size=_int(os.getenv("SQL_POOL_SIZE", "10"), 10),
        acquire_timeout=_float(os.getenv("BACKEND_ACQUIRE_TIMEOUT", "5"), 5.0),
        assets_dir=os.getenv("ASSETS_DIR", "assets"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )
