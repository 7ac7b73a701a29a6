"""
Process entry point.

Builds the configured store and the gateway, runs the bootstrap pipeline and
then serves until uvicorn is asked to stop. A failed bootstrap aborts the
process with exit status 1.

Usage:
    python -m whisky_store [--host 0.0.0.0] [--port 8080] [--backend memory|sql|document]
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Optional, Sequence

from whisky_store.app import create_app
from whisky_store.core.config import STORE_BACKENDS, Settings, get_settings
from whisky_store.core.logging_config import setup_logging
from whisky_store.repositories import build_store
from whisky_store.services.bootstrap import BootstrapError, BootstrapPipeline
from whisky_store.services.listener import UvicornListener

logger = logging.getLogger(__name__)


async def serve(settings: Settings) -> None:
    store = build_store(settings)
    app = create_app(store, settings)
    listener = UvicornListener(
        app,
        settings.http_host,
        settings.http_port,
        log_level=settings.log_level,
    )
    pipeline = BootstrapPipeline(store, listener, acquire_timeout=settings.acquire_timeout)
    await pipeline.run()
    logger.info(
        "Whisky Store ready on port %s (backend=%s)", listener.bound_port, settings.store_backend
    )
    try:
        await listener.wait_closed()
    finally:
        await listener.close()
        await store.close()


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Whisky Store HTTP service")
    ap.add_argument("--host", help="Interface to bind (default: HTTP_HOST or 0.0.0.0)")
    ap.add_argument("--port", type=int, help="Port to bind (default: HTTP_PORT or 8080)")
    ap.add_argument("--backend", choices=STORE_BACKENDS, help="Store backend (default: STORE_BACKEND or memory)")
    return ap.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)
    settings = get_settings().with_overrides(
        http_host=args.host,
        http_port=args.port,
        store_backend=args.backend,
    )
    setup_logging(settings.log_level)
    if settings.store_backend not in STORE_BACKENDS:
        raise SystemExit(f"Unknown STORE_BACKEND '{settings.store_backend}'")
    try:
        asyncio.run(serve(settings))
    except BootstrapError as exc:
        logger.error("Startup aborted: %s", exc)
        raise SystemExit(1) from exc
    except KeyboardInterrupt:
        sys.stderr.write("Interrupted.\n")
        raise SystemExit(130)


if __name__ == "__main__":
    main()
