#!/usr/bin/env python3
"""
Add a whisky directly to the configured backend (STORE_BACKEND, DATABASE_URL, DOCUMENT_PATH).

Usage:
  python scripts/add_whisky.py --name "Lagavulin 16" [--origin "Scotland, Islay"] [--backend sql]
"""
from __future__ import annotations

import argparse
import asyncio
import sys

from whisky_store.core.config import STORE_BACKENDS, get_settings
from whisky_store.domain.whisky import Whisky
from whisky_store.repositories import build_store


async def add(backend: str | None, name: str, origin: str | None) -> Whisky:
    settings = get_settings().with_overrides(store_backend=backend)
    if settings.store_backend == "memory":
        raise SystemExit("The memory backend does not outlive this script; use sql or document")
    store = build_store(settings)
    await store.open()
    try:
        await store.ensure_schema()
        return await store.insert(Whisky(name=name, origin=origin))
    finally:
        await store.close()


def main() -> None:
    ap = argparse.ArgumentParser(description="Add a whisky to the store")
    ap.add_argument("--name", required=True, help="Whisky name (ex.: Lagavulin 16)")
    ap.add_argument("--origin", help="Origin (ex.: Scotland, Islay)")
    ap.add_argument("--backend", choices=STORE_BACKENDS, help="Override STORE_BACKEND")
    args = ap.parse_args()

    name = (args.name or "").strip()
    if not name:
        raise SystemExit("Name must not be empty")
    origin = (args.origin or "").strip() or None

    entity = asyncio.run(add(args.backend, name, origin))
    print("OK: whisky added")
    print(f"  ID: {entity.id}")
    print(f"  Name: {entity.name}")
    if entity.origin:
        print(f"  Origin: {entity.origin}")


if __name__ == "__main__":
    try:
        main()
    except Exception as exc:  # pragma: no cover - CLI usage
        sys.stderr.write(f"Error: {exc}\n")
        raise SystemExit(1)
