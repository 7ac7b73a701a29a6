"""
Gateway assembly: builds the FastAPI app around an already-bootstrapped store.

Store errors raised by handlers are mapped to HTTP statuses here, once, by
exception handlers; routers never translate them themselves.
"""
from __future__ import annotations

import logging
import os
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import PlainTextResponse, Response
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from whisky_store import __version__
from whisky_store.core.config import Settings, get_settings
from whisky_store.repositories.base import (
    BackendUnavailable,
    Conflict,
    DataIntegrityError,
    NotFound,
    Store,
    StoreError,
)
from whisky_store.routers import pages as pages_router
from whisky_store.routers import whiskies as whiskies_router

logger = logging.getLogger(__name__)

STATUS_BY_ERROR: tuple[tuple[type[StoreError], int], ...] = (
    (NotFound, 404),
    (Conflict, 409),
    (BackendUnavailable, 503),
    (DataIntegrityError, 500),
)


def status_for(exc: StoreError) -> int:
    for error_type, status_code in STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return 500


class CachedStaticFiles(StaticFiles):
    def set_headers(self, scope, resp, path, stat_result):
        resp.headers["Cache-Control"] = "public, max-age=3600"


async def _store_error_handler(request: Request, exc: StoreError) -> Response:
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc, exc_info=exc)
    else:
        logger.info("%s %s -> %d: %s", request.method, request.url.path, status_code, exc)
    return Response(status_code=status_code)


async def _validation_error_handler(request: Request, exc: whiskies_router.ValidationError) -> Response:
    logger.info("%s %s rejected: %s", request.method, request.url.path, exc)
    return Response(status_code=400)


async def _http_error_handler(request: Request, exc: StarletteHTTPException) -> Response:
    if exc.status_code == 404:
        return PlainTextResponse("Resource not found", status_code=404)
    return await http_exception_handler(request, exc)


def create_app(store: Store, settings: Optional[Settings] = None) -> FastAPI:
    """Build the gateway for ``store``; static assets are mounted when present."""
    settings = settings or get_settings()
    app = FastAPI(title="Whisky Store API", version=__version__)
    app.state.store = store
    app.state.settings = settings

    assets_dir = settings.assets_dir
    if assets_dir and os.path.isdir(assets_dir):
        app.mount("/assets", CachedStaticFiles(directory=assets_dir), name="assets")
    else:
        logger.info("Assets directory %r not found, /assets is disabled", assets_dir)

    app.include_router(pages_router.router)
    app.include_router(whiskies_router.router)

    app.add_exception_handler(StoreError, _store_error_handler)
    app.add_exception_handler(whiskies_router.ValidationError, _validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    return app
