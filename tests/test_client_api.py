"""Tests for the client API endpoints."""

from __future__ import annotations

from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient

from shiptivity.config import Settings
from shiptivity.lanes.engine import LaneEngine
from shiptivity.lanes.store import ClientStore
from shiptivity.server.api import create_app


@pytest.fixture
def store(tmp_path: Path):
    s = ClientStore(tmp_path / "clients.db")
    s.ensure_schema()
    LaneEngine(s).seed([
        {"name": "Stark, White and Abbott", "status": "backlog"},
        {"name": "Wiza LLC", "status": "backlog"},
        {"name": "Nolan LLC", "status": "backlog"},
        {"name": "Thompson PLC", "status": "in-progress"},
        {"name": "Walker-Williamson", "status": "in-progress"},
        {"name": "Boehm and Sons", "status": "complete"},
    ])
    yield s
    s.close()


@pytest.fixture
def app(store: ClientStore):
    return create_app(store=store, enable_cors=False)


@pytest.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


def _by_id(rows: list[dict]) -> dict[int, tuple[str, int]]:
    return {r["id"]: (r["status"], r["priority"]) for r in rows}


@pytest.mark.anyio
class TestReadEndpoints:
    async def test_root(self, client: AsyncClient) -> None:
        resp = await client.get("/")
        assert resp.status_code == 200
        assert resp.json() == {"message": "SHIPTIVITY API. Read documentation to see API docs"}

    async def test_list_all(self, client: AsyncClient) -> None:
        resp = await client.get("/api/v1/clients")
        assert resp.status_code == 200
        rows = resp.json()
        assert len(rows) == 6
        assert set(rows[0]) == {"id", "name", "description", "status", "priority"}

    async def test_list_filtered(self, client: AsyncClient) -> None:
        resp = await client.get("/api/v1/clients", params={"status": "in-progress"})
        assert resp.status_code == 200
        assert [r["name"] for r in resp.json()] == ["Thompson PLC", "Walker-Williamson"]

    async def test_list_invalid_status(self, client: AsyncClient) -> None:
        resp = await client.get("/api/v1/clients", params={"status": "done"})
        assert resp.status_code == 400
        assert resp.json() == {
            "message": "Invalid status provided.",
            "long_message": "Status can only be one of the following: [backlog | in-progress | complete].",
        }

    async def test_get_one(self, client: AsyncClient) -> None:
        resp = await client.get("/api/v1/clients/2")
        assert resp.status_code == 200
        assert resp.json()["name"] == "Wiza LLC"
        assert resp.json()["priority"] == 2

    async def test_get_non_integer_id(self, client: AsyncClient) -> None:
        resp = await client.get("/api/v1/clients/abc")
        assert resp.status_code == 400
        assert resp.json() == {"message": "Invalid id provided.", "long_message": "Id can only be integer."}

    async def test_get_unknown_id(self, client: AsyncClient) -> None:
        resp = await client.get("/api/v1/clients/999")
        assert resp.status_code == 400
        assert resp.json()["long_message"] == "Cannot find client with that id."

    async def test_get_id_too_large_for_sqlite(self, client: AsyncClient) -> None:
        resp = await client.get("/api/v1/clients/" + "9" * 30)
        assert resp.status_code == 400
        assert resp.json() == {"message": "Invalid id provided.", "long_message": "Cannot find client with that id."}

    async def test_get_underscored_id(self, client: AsyncClient) -> None:
        resp = await client.get("/api/v1/clients/1_0")
        assert resp.status_code == 400
        assert resp.json()["long_message"] == "Id can only be integer."


@pytest.mark.anyio
class TestUpdateEndpoint:
    async def test_reorder_within_lane(self, client: AsyncClient) -> None:
        resp = await client.put("/api/v1/clients/2", json={"priority": 1})
        assert resp.status_code == 200
        positions = _by_id(resp.json())
        assert positions[1] == ("backlog", 2)
        assert positions[2] == ("backlog", 1)
        assert positions[3] == ("backlog", 3)

    async def test_move_lane_appends(self, client: AsyncClient) -> None:
        resp = await client.put("/api/v1/clients/1", json={"status": "in-progress"})
        assert resp.status_code == 200
        positions = _by_id(resp.json())
        assert positions[1] == ("in-progress", 3)
        assert positions[2] == ("backlog", 1)
        assert positions[3] == ("backlog", 2)

    async def test_move_lane_with_priority(self, client: AsyncClient) -> None:
        resp = await client.put("/api/v1/clients/6", json={"status": "backlog", "priority": "2"})
        assert resp.status_code == 200
        positions = _by_id(resp.json())
        assert positions[1] == ("backlog", 1)
        assert positions[6] == ("backlog", 2)
        assert positions[2] == ("backlog", 3)
        assert positions[3] == ("backlog", 4)

    async def test_empty_body_is_noop(self, client: AsyncClient) -> None:
        before = _by_id((await client.get("/api/v1/clients")).json())
        resp = await client.put("/api/v1/clients/4", json={})
        assert resp.status_code == 200
        assert _by_id(resp.json()) == before

    @pytest.mark.parametrize(
        "path, body, message",
        [
            ("/api/v1/clients/abc", {"priority": 1}, "Invalid id provided."),
            ("/api/v1/clients/999", {"priority": 1}, "Invalid id provided."),
            ("/api/v1/clients/1", {"status": "archived"}, "Invalid status provided."),
            ("/api/v1/clients/1", {"priority": 0}, "Invalid priority provided."),
            ("/api/v1/clients/1", {"priority": "high"}, "Invalid priority provided."),
            ("/api/v1/clients/1", {"priority": 10**30}, "Invalid priority provided."),
            ("/api/v1/clients/1", {"priority": "1_000"}, "Invalid priority provided."),
            ("/api/v1/clients/" + "9" * 30, {"priority": 1}, "Invalid id provided."),
            ("/api/v1/clients/1", {"status": "complete", "priority": -1}, "Invalid priority provided."),
        ],
    )
    async def test_rejections_are_side_effect_free(
        self, client: AsyncClient, path: str, body: dict, message: str
    ) -> None:
        before = _by_id((await client.get("/api/v1/clients")).json())
        resp = await client.put(path, json=body)
        assert resp.status_code == 400
        assert resp.json()["message"] == message
        assert _by_id((await client.get("/api/v1/clients")).json()) == before


@pytest.mark.anyio
async def test_lifespan_opens_and_closes_store(tmp_path: Path) -> None:
    app = create_app(settings=Settings(db_path=tmp_path / "life.db"), enable_cors=False)
    assert app.state.engine is None

    async with app.router.lifespan_context(app):
        store = app.state.store
        assert store is not None and not store.closed
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as c:
            resp = await c.get("/api/v1/clients")
            assert resp.status_code == 200
            assert resp.json() == []

    assert store.closed
    assert app.state.engine is None
