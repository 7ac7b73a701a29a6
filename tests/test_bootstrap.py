"""
Bootstrap pipeline tests, isolated from HTTP through a recording listener.
"""
from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import pytest

# Keep the package importable when tests run from a plain checkout
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from whisky_store.domain.whisky import Whisky  # noqa: E402
from whisky_store.repositories import (  # noqa: E402
    BackendUnavailable,
    JSONDocumentRepository,
    MemoryRepository,
    SQLRepository,
)
from whisky_store.services.bootstrap import (  # noqa: E402
    BootstrapError,
    BootstrapPipeline,
    BootstrapState,
)

run = asyncio.run

SEED_NAMES = ["Bowmore 15 Years Laimrig", "Talisker 57° North"]


class RecordingListener:
    def __init__(self, fail_on: str | None = None) -> None:
        self.calls: list[str] = []
        self.fail_on = fail_on

    async def _step(self, name: str) -> None:
        self.calls.append(name)
        if self.fail_on == name:
            raise OSError(f"{name} failed")

    async def bind(self) -> None:
        await self._step("bind")

    async def start(self) -> None:
        await self._step("start")

    async def close(self) -> None:
        self.calls.append("close")


class CountingStore(MemoryRepository):
    def __init__(self) -> None:
        super().__init__()
        self.inserts = 0
        self.closed = 0

    async def insert(self, candidate: Whisky) -> Whisky:
        self.inserts += 1
        return await super().insert(candidate)

    async def close(self) -> None:
        self.closed += 1


class UnreachableStore(CountingStore):
    async def open(self) -> None:
        raise ConnectionRefusedError("connection refused")


class SlowStore(CountingStore):
    async def open(self) -> None:
        await asyncio.sleep(5)


class BrokenSchemaStore(CountingStore):
    async def ensure_schema(self) -> None:
        raise RuntimeError("permission denied for schema")


def test_pipeline_walks_every_state_and_seeds_empty_store():
    store = CountingStore()
    listener = RecordingListener()
    pipeline = BootstrapPipeline(store, listener)

    run(pipeline.run())

    assert pipeline.state is BootstrapState.READY
    assert pipeline.history == [
        BootstrapState.CREATED,
        BootstrapState.RESOURCE_ACQUIRED,
        BootstrapState.SCHEMA_READY,
        BootstrapState.SEEDED,
        BootstrapState.LISTENING,
        BootstrapState.READY,
    ]
    assert pipeline.ready.is_set()
    assert listener.calls == ["bind", "start"]
    items = run(store.list_all())
    assert [w.name for w in items] == SEED_NAMES
    assert [w.origin for w in items] == ["Scotland, Islay", "Scotland, Island"]
    assert [w.id for w in items] == [0, 1]
    assert pipeline.seeded == items


def test_pipeline_skips_seed_when_store_has_records():
    store = CountingStore()
    run(store.insert(Whisky(name="Jameson", origin="Ireland")))
    store.inserts = 0

    pipeline = BootstrapPipeline(store, RecordingListener())
    run(pipeline.run())

    assert store.inserts == 0
    assert pipeline.seeded == []
    assert [w.name for w in run(store.list_all())] == ["Jameson"]


@pytest.mark.parametrize(
    "factory, base_id",
    [
        (lambda tmp: SQLRepository(f"sqlite:///{tmp / 'boot.db'}"), 1),
        (lambda tmp: JSONDocumentRepository(tmp / "boot.json"), 0),
    ],
    ids=["sql", "document"],
)
def test_pipeline_seeds_persistent_backends_once(tmp_path, factory, base_id):
    store = factory(tmp_path)
    run(BootstrapPipeline(store, RecordingListener()).run())
    items = run(store.list_all())
    run(store.close())

    assert [w.name for w in items] == SEED_NAMES
    assert [w.id for w in items] == [base_id, base_id + 1]

    again = factory(tmp_path)
    pipeline = BootstrapPipeline(again, RecordingListener())
    run(pipeline.run())
    assert pipeline.seeded == []
    assert run(again.count()) == 2
    run(again.close())


def test_unreachable_backend_fails_in_created_state():
    store = UnreachableStore()
    listener = RecordingListener()
    pipeline = BootstrapPipeline(store, listener)

    with pytest.raises(BootstrapError) as excinfo:
        run(pipeline.run())

    assert excinfo.value.state is BootstrapState.CREATED
    assert isinstance(excinfo.value.cause, BackendUnavailable)
    assert pipeline.state is BootstrapState.FAILED
    assert pipeline.history == [BootstrapState.CREATED, BootstrapState.FAILED]
    assert store.closed == 1
    assert listener.calls == ["close"]
    assert not pipeline.ready.is_set()


def test_acquire_timeout_is_backend_unavailable():
    store = SlowStore()
    pipeline = BootstrapPipeline(store, RecordingListener(), acquire_timeout=0.05)

    with pytest.raises(BootstrapError) as excinfo:
        run(pipeline.run())

    assert isinstance(excinfo.value.cause, BackendUnavailable)
    assert store.closed == 1


def test_schema_failure_releases_store():
    store = BrokenSchemaStore()
    pipeline = BootstrapPipeline(store, RecordingListener())

    with pytest.raises(BootstrapError) as excinfo:
        run(pipeline.run())

    assert excinfo.value.state is BootstrapState.RESOURCE_ACQUIRED
    assert store.closed == 1
    assert store.inserts == 0


def test_bind_failure_happens_after_seed_and_releases_everything():
    store = CountingStore()
    listener = RecordingListener(fail_on="bind")
    pipeline = BootstrapPipeline(store, listener)

    with pytest.raises(BootstrapError) as excinfo:
        run(pipeline.run())

    assert excinfo.value.state is BootstrapState.SEEDED
    assert isinstance(excinfo.value.cause, OSError)
    assert pipeline.history[-2:] == [BootstrapState.SEEDED, BootstrapState.FAILED]
    assert listener.calls == ["bind", "close"]
    assert store.closed == 1


def test_pipeline_is_not_restartable():
    pipeline = BootstrapPipeline(CountingStore(), RecordingListener())
    run(pipeline.run())

    with pytest.raises(RuntimeError):
        run(pipeline.run())
