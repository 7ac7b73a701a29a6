"""
CRUD endpoints for the whisky catalog.

Handlers validate the path id and body before touching the store, then await
exactly one store call. Store errors are not handled here: they propagate to
the exception handlers registered in ``whisky_store.app``.
"""
from __future__ import annotations

import json
import re

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, Response
from pydantic import ValidationError as PydanticValidationError

from whisky_store.repositories.base import Store
from whisky_store.schemas.whisky import WhiskyPayload

router = APIRouter(prefix="/api/whiskies", tags=["whiskies"])

ID_PATTERN = re.compile(r"[0-9]+")


class ValidationError(Exception):
    """Raised when the path id or the request body is malformed."""


class WhiskyJSONResponse(JSONResponse):
    media_type = "application/json; charset=utf-8"


def _get_store(request: Request) -> Store:
    store = getattr(getattr(request.app, "state", None), "store", None)
    if store is None:
        raise RuntimeError("Store not configured on app.state")
    return store


def parse_id(raw: str | None) -> int:
    value = (raw or "").strip()
    if not ID_PATTERN.fullmatch(value):
        raise ValidationError(f"invalid whisky id: {raw!r}")
    return int(value)


async def read_payload(request: Request) -> WhiskyPayload:
    body = await request.body()
    if not body:
        raise ValidationError("request body is required")
    try:
        data = json.loads(body)
    except ValueError as exc:
        raise ValidationError("request body is not valid JSON") from exc
    if not isinstance(data, dict):
        raise ValidationError("request body must be a JSON object")
    try:
        return WhiskyPayload.model_validate(data)
    except PydanticValidationError as exc:
        raise ValidationError(str(exc)) from exc


@router.get("")
@router.get("/", include_in_schema=False)
async def list_whiskies(request: Request):
    items = await _get_store(request).list_all()
    return WhiskyJSONResponse([item.to_json() for item in items])


@router.post("")
@router.post("/", include_in_schema=False)
async def add_whisky(request: Request):
    payload = await read_payload(request)
    entity = await _get_store(request).insert(payload.to_candidate())
    return WhiskyJSONResponse(entity.to_json(), status_code=201)


@router.get("/{whisky_id}")
async def get_whisky(whisky_id: str, request: Request):
    entity = await _get_store(request).get(parse_id(whisky_id))
    return WhiskyJSONResponse(entity.to_json())


@router.put("/{whisky_id}")
async def update_whisky(whisky_id: str, request: Request):
    target = parse_id(whisky_id)
    payload = await read_payload(request)
    entity = await _get_store(request).update(target, payload.to_patch())
    return WhiskyJSONResponse(entity.to_json())


@router.delete("/{whisky_id}")
async def delete_whisky(whisky_id: str, request: Request):
    await _get_store(request).delete(parse_id(whisky_id))
    return Response(status_code=204)
