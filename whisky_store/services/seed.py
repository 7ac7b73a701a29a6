"""Default catalog inserted into an empty store."""

from __future__ import annotations

import logging
from typing import Sequence

from whisky_store.domain.whisky import Whisky
from whisky_store.repositories.base import Store

logger = logging.getLogger(__name__)

DEFAULT_WHISKIES: tuple[Whisky, ...] = (
    Whisky(name="Bowmore 15 Years Laimrig", origin="Scotland, Islay"),
    Whisky(name="Talisker 57° North", origin="Scotland, Island"),
)


async def seed_defaults(store: Store, defaults: Sequence[Whisky] = DEFAULT_WHISKIES) -> list[Whisky]:
    """Insert ``defaults`` in order when the store is empty; otherwise do nothing.

    Inserts are awaited one after another so ids are assigned in list order.
    """
    existing = await store.count()
    if existing != 0:
        logger.info("Store already holds %d whiskies, skipping seed", existing)
        return []
    inserted = []
    for candidate in defaults:
        entity = await store.insert(candidate)
        logger.info("Seeded whisky %s", entity)
        inserted.append(entity)
    return inserted
