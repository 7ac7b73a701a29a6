"""
Startup sequence from cold start to ready-to-serve.

The pipeline walks a fixed chain of states::

    CREATED -> RESOURCE_ACQUIRED -> SCHEMA_READY -> SEEDED -> LISTENING -> READY

Each step awaits the previous one. Any failure moves the pipeline to
``FAILED``, releases what was acquired (listener socket, store resource) and
raises ``BootstrapError``; there is no partial-service mode. A pipeline runs
once and cannot be restarted.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Optional, Protocol, Sequence

from whisky_store.domain.whisky import Whisky
from whisky_store.repositories.base import BackendUnavailable, Store
from whisky_store.services.seed import DEFAULT_WHISKIES, seed_defaults

logger = logging.getLogger(__name__)


class BootstrapState(str, Enum):
    CREATED = "created"
    RESOURCE_ACQUIRED = "resource_acquired"
    SCHEMA_READY = "schema_ready"
    SEEDED = "seeded"
    LISTENING = "listening"
    READY = "ready"
    FAILED = "failed"


class BootstrapError(Exception):
    """Startup aborted; ``state`` is where it failed, ``cause`` why."""

    def __init__(self, state: BootstrapState, cause: BaseException) -> None:
        super().__init__(f"bootstrap failed in state '{state.value}': {cause}")
        self.state = state
        self.cause = cause


class Listener(Protocol):
    async def bind(self) -> None: ...

    async def start(self) -> None: ...

    async def close(self) -> None: ...


class BootstrapPipeline:
    """Brings a store and an HTTP listener up, strictly in order."""

    def __init__(
        self,
        store: Store,
        listener: Listener,
        *,
        acquire_timeout: Optional[float] = 5.0,
        defaults: Sequence[Whisky] = DEFAULT_WHISKIES,
    ) -> None:
        self.store = store
        self.listener = listener
        self.acquire_timeout = acquire_timeout
        self.defaults = defaults
        self.state = BootstrapState.CREATED
        self.history: list[BootstrapState] = [BootstrapState.CREATED]
        self.failure: Optional[BaseException] = None
        self.seeded: list[Whisky] = []
        self.ready = asyncio.Event()
        self._ran = False

    async def run(self) -> None:
        if self._ran:
            raise RuntimeError("bootstrap pipeline runs once per process")
        self._ran = True

        steps: tuple[tuple[BootstrapState, Callable[[], Awaitable[None]]], ...] = (
            (BootstrapState.RESOURCE_ACQUIRED, self._acquire_resource),
            (BootstrapState.SCHEMA_READY, self.store.ensure_schema),
            (BootstrapState.SEEDED, self._seed),
            (BootstrapState.LISTENING, self.listener.bind),
            (BootstrapState.READY, self.listener.start),
        )
        for target, step in steps:
            try:
                await step()
            except Exception as exc:
                failed_in = self.state
                await self._fail(exc)
                raise BootstrapError(failed_in, exc) from exc
            self._advance(target)
        self.ready.set()

    async def _acquire_resource(self) -> None:
        try:
            if self.acquire_timeout:
                await asyncio.wait_for(self.store.open(), timeout=self.acquire_timeout)
            else:
                await self.store.open()
        except BackendUnavailable:
            raise
        except asyncio.TimeoutError as exc:
            raise BackendUnavailable(
                f"{self.store.name} not acquired within {self.acquire_timeout}s"
            ) from exc
        except Exception as exc:
            raise BackendUnavailable(f"{self.store.name} could not be opened: {exc}") from exc

    async def _seed(self) -> None:
        self.seeded = await seed_defaults(self.store, self.defaults)

    def _advance(self, target: BootstrapState) -> None:
        logger.info("Bootstrap %s -> %s", self.state.value, target.value)
        self.state = target
        self.history.append(target)

    async def _fail(self, exc: BaseException) -> None:
        logger.error("Bootstrap failed in state %s: %s", self.state.value, exc)
        self.failure = exc
        self.state = BootstrapState.FAILED
        self.history.append(BootstrapState.FAILED)
        try:
            await self.listener.close()
        except Exception:
            logger.warning("Listener close failed during bootstrap abort", exc_info=True)
        try:
            await self.store.close()
        except Exception:
            logger.warning("Store close failed during bootstrap abort", exc_info=True)
