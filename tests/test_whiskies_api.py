"""
HTTP contract of the gateway over a seeded in-memory store.
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

from starlette.testclient import TestClient  # noqa: E402

from whisky_store.app import create_app  # noqa: E402
from whisky_store.core.config import get_settings  # noqa: E402
from whisky_store.repositories import (  # noqa: E402
    BackendUnavailable,
    DataIntegrityError,
    MemoryRepository,
    SQLRepository,
)
from whisky_store.services.seed import seed_defaults  # noqa: E402


@pytest.fixture()
def settings():
    return get_settings().with_overrides(assets_dir=str(ROOT / "assets"))


@pytest.fixture()
def store():
    repo = MemoryRepository()
    asyncio.run(seed_defaults(repo))
    return repo


@pytest.fixture()
def client(store, settings):
    return TestClient(create_app(store, settings))


class FailingStore(MemoryRepository):
    def __init__(self, error: Exception) -> None:
        super().__init__()
        self.error = error

    async def list_all(self):
        raise self.error

    async def get(self, whisky_id):
        raise self.error


def test_list_returns_seeded_whiskies(client):
    resp = client.get("/api/whiskies")
    assert resp.status_code == 200
    assert resp.headers["content-type"] == "application/json; charset=utf-8"
    assert resp.json() == [
        {"id": 0, "name": "Bowmore 15 Years Laimrig", "origin": "Scotland, Islay"},
        {"id": 1, "name": "Talisker 57° North", "origin": "Scotland, Island"},
    ]


def test_list_accepts_trailing_slash(client):
    resp = client.get("/api/whiskies/")
    assert resp.status_code == 200
    assert len(resp.json()) == 2


def test_list_empty_store_is_empty_array(settings):
    client = TestClient(create_app(MemoryRepository(), settings))
    resp = client.get("/api/whiskies")
    assert resp.status_code == 200
    assert resp.json() == []


def test_post_assigns_next_id(client):
    resp = client.post("/api/whiskies", json={"name": "Jameson", "origin": "Ireland"})
    assert resp.status_code == 201
    assert resp.headers["content-type"].startswith("application/json")
    assert resp.json() == {"id": 2, "name": "Jameson", "origin": "Ireland"}
    assert client.get("/api/whiskies/2").json() == {"id": 2, "name": "Jameson", "origin": "Ireland"}


def test_post_ignores_client_id_and_omits_absent_fields(client):
    resp = client.post("/api/whiskies/", json={"id": 40, "name": "Mystery dram"})
    assert resp.status_code == 201
    assert resp.json() == {"id": 2, "name": "Mystery dram"}


def test_get_one(client):
    resp = client.get("/api/whiskies/1")
    assert resp.status_code == 200
    assert resp.json()["name"] == "Talisker 57° North"


def test_get_missing_is_404_with_empty_body(client):
    resp = client.get("/api/whiskies/99")
    assert resp.status_code == 404
    assert resp.content == b""


@pytest.mark.parametrize("bad_id", ["abc", "-1", "1.5", "0x10"])
def test_malformed_id_is_400_before_store(client, store, bad_id):
    before = asyncio.run(store.list_all())
    for method in ("get", "delete"):
        resp = getattr(client, method)(f"/api/whiskies/{bad_id}")
        assert resp.status_code == 400
        assert resp.content == b""
    resp = client.put(f"/api/whiskies/{bad_id}", json={"name": "X"})
    assert resp.status_code == 400
    assert asyncio.run(store.list_all()) == before


def test_put_is_partial_update(client):
    resp = client.put("/api/whiskies/0", json={"name": "X"})
    assert resp.status_code == 200
    assert resp.json() == {"id": 0, "name": "X", "origin": "Scotland, Islay"}

    fetched = client.get("/api/whiskies/0").json()
    assert fetched["name"] == "X"
    assert fetched["origin"] == "Scotland, Islay"


def test_put_missing_is_404_and_creates_nothing(client):
    resp = client.put("/api/whiskies/7", json={"name": "Ghost"})
    assert resp.status_code == 404
    assert len(client.get("/api/whiskies").json()) == 2


@pytest.mark.parametrize(
    "body",
    [b"", b"{not json", b"[1, 2]", b'"Jameson"', b'{"name": 12}'],
    ids=["empty", "invalid-json", "array", "string", "wrong-type"],
)
def test_malformed_body_is_400(client, body):
    headers = {"content-type": "application/json"}
    assert client.post("/api/whiskies", content=body, headers=headers).status_code == 400
    assert client.put("/api/whiskies/0", content=body, headers=headers).status_code == 400
    assert len(client.get("/api/whiskies").json()) == 2


def test_delete_then_delete_again(client):
    first = client.delete("/api/whiskies/1")
    assert first.status_code == 204
    assert first.content == b""

    second = client.delete("/api/whiskies/1")
    assert second.status_code == 404
    assert [w["id"] for w in client.get("/api/whiskies").json()] == [0]


def test_unknown_path_is_resource_not_found(client):
    resp = client.get("/unavailablepage.html")
    assert resp.status_code == 404
    assert "Resource not found" in resp.text


def test_assets_index_is_served(client):
    resp = client.get("/assets/index.html")
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/html")
    assert "<title>My Whisky Collection</title>" in resp.text


def test_missing_asset_is_404(client):
    resp = client.get("/assets/../../etc/passwd")
    assert resp.status_code == 404
    assert client.get("/assets/nope.css").status_code == 404


def test_root_welcome_page(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/html")
    assert "Whisky Store" in resp.text


def test_assets_disabled_when_directory_missing(store, tmp_path):
    settings = get_settings().with_overrides(assets_dir=str(tmp_path / "missing"))
    client = TestClient(create_app(store, settings))
    assert client.get("/assets/index.html").status_code == 404
    assert client.get("/api/whiskies").status_code == 200


@pytest.mark.parametrize(
    "error, status_code",
    [(BackendUnavailable("pool exhausted"), 503), (DataIntegrityError("several whiskies with id: 0"), 500)],
)
def test_store_errors_map_to_status_without_crashing(settings, error, status_code):
    client = TestClient(create_app(FailingStore(error), settings))
    assert client.get("/api/whiskies").status_code == status_code
    assert client.get("/api/whiskies/0").status_code == status_code
    # the app keeps serving after the failure
    assert client.get("/").status_code == 200


def test_huge_id_is_404_on_sql_backend(settings, tmp_path):
    repo = SQLRepository(f"sqlite:///{tmp_path / 'gateway.db'}")
    asyncio.run(repo.open())
    asyncio.run(repo.ensure_schema())
    asyncio.run(seed_defaults(repo))
    client = TestClient(create_app(repo, settings))
    huge = "9" * 25
    try:
        assert client.get(f"/api/whiskies/{huge}").status_code == 404
        assert client.put(f"/api/whiskies/{huge}", json={"name": "X"}).status_code == 404
        assert client.delete(f"/api/whiskies/{huge}").status_code == 404
        assert len(client.get("/api/whiskies").json()) == 2
    finally:
        asyncio.run(repo.close())
