"""Integration tests for the Hamlet REST API."""

import pytest
from fastapi.testclient import TestClient

from hamlet.api.app import create_app

SMALL_VILLAGE = {"random_seed": 1, "grid_size": 5, "initial_decorations": {}}


@pytest.fixture
def client():
    app = create_app()
    return TestClient(app)


def _create(client, **config) -> str:
    resp = client.post("/api/villages/sessions", json={
        "config": {**SMALL_VILLAGE, **config},
    })
    assert resp.status_code == 200
    return resp.json()["id"]


def _place(client, sid, kind, item_id, x, y):
    return client.post(f"/api/placement/{sid}/place", json={
        "kind": kind, "id": item_id, "tile_x": x, "tile_y": y,
    })


class TestHealthCheck:
    def test_health(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}


class TestSessionLifecycle:
    def test_create_session_defaults(self, client):
        resp = client.post("/api/villages/sessions", json={})
        assert resp.status_code == 200
        data = resp.json()
        assert "id" in data
        assert data["budget"] == 10000.0
        assert data["population"] == 0
        assert data["config"]["grid_size"] == 50
        assert data["time_cycle"]["is_day"] is True

    def test_create_session_with_config(self, client):
        resp = client.post("/api/villages/sessions", json={
            "config": SMALL_VILLAGE, "name": "Riverside",
        })
        assert resp.status_code == 200
        data = resp.json()
        assert data["name"] == "Riverside"
        assert data["item_count"] == 0
        assert data["config"]["grid_size"] == 5

    def test_invalid_config_key(self, client):
        resp = client.post("/api/villages/sessions", json={
            "config": {"no_such_setting": 1},
        })
        assert resp.status_code == 400

    def test_list_sessions(self, client):
        _create(client)
        _create(client)
        resp = client.get("/api/villages/sessions")
        assert resp.status_code == 200
        assert len(resp.json()) >= 2

    def test_get_session(self, client):
        sid = _create(client)
        resp = client.get(f"/api/villages/sessions/{sid}")
        assert resp.status_code == 200
        assert resp.json()["id"] == sid

    def test_get_nonexistent_session(self, client):
        resp = client.get("/api/villages/sessions/nonexistent")
        assert resp.status_code == 404

    def test_delete_session(self, client):
        sid = _create(client)
        resp = client.delete(f"/api/villages/sessions/{sid}")
        assert resp.status_code == 200
        assert resp.json() == {"deleted": True}
        assert client.get(f"/api/villages/sessions/{sid}").status_code == 404
        assert client.delete(f"/api/villages/sessions/{sid}").status_code == 404

    def test_initial_items(self, client):
        sid = _create(client, initial_decorations={"rocks": 3})
        resp = client.get(f"/api/villages/sessions/{sid}/items")
        assert resp.status_code == 200
        items = resp.json()
        assert len(items) == 3
        assert all(item["kind"] == "decoration" and item["id"] == "rocks" for item in items)


class TestPlacement:
    def test_place_road_charges_budget(self, client):
        sid = _create(client)
        resp = _place(client, sid, "road", "dirt", 0, 0)
        assert resp.status_code == 200
        data = resp.json()
        assert data["success"] is True
        assert data["budget"] == 9990.0
        assert data["item"] == {
            "kind": "road", "id": "dirt", "tile_x": 0, "tile_y": 0, "flipped": False,
            "world": [0.0, 0.0],
        }

    def test_house_next_to_road(self, client):
        sid = _create(client)
        _place(client, sid, "road", "dirt", 0, 0)
        data = _place(client, sid, "building", "house1", 1, 0).json()
        assert data["success"] is True
        assert data["population"] == 2
        assert data["unemployed_workers"] == 2
        assert data["budget"] == 9690.0

    def test_house_without_road_fails(self, client):
        sid = _create(client)
        data = _place(client, sid, "building", "house1", 3, 3).json()
        assert data["success"] is False
        assert data["item"] is None
        assert data["budget"] == 10000.0

    def test_occupied_tile_fails(self, client):
        sid = _create(client)
        _place(client, sid, "road", "dirt", 0, 0)
        data = _place(client, sid, "road", "stone", 0, 0).json()
        assert data["success"] is False

    def test_unknown_item(self, client):
        sid = _create(client)
        resp = _place(client, sid, "building", "castle", 0, 0)
        assert resp.status_code == 400

    def test_place_unknown_session(self, client):
        resp = _place(client, "nonexistent", "road", "dirt", 0, 0)
        assert resp.status_code == 404

    def test_remove(self, client):
        sid = _create(client)
        _place(client, sid, "road", "dirt", 0, 0)
        resp = client.post(f"/api/placement/{sid}/remove", json={"tile_x": 0, "tile_y": 0})
        assert resp.status_code == 200
        data = resp.json()
        assert data["success"] is True
        assert data["item"]["id"] == "dirt"
        # Removing a dirt road costs floor(10 * 0.5)
        assert data["budget"] == 9985.0

    def test_remove_empty_tile(self, client):
        sid = _create(client)
        resp = client.post(f"/api/placement/{sid}/remove", json={"tile_x": 2, "tile_y": 2})
        assert resp.status_code == 200
        assert resp.json()["success"] is False

    def test_requirements_unmet(self, client):
        sid = _create(client)
        resp = client.get(
            f"/api/placement/{sid}/requirements",
            params={"kind": "building", "id": "stonecutter"},
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["met"] is False
        missing = data["missing"]["unemployed_workers"]
        assert missing["current"] == 0
        assert missing["required"] == 2

    def test_requirements_met(self, client):
        sid = _create(client)
        resp = client.get(
            f"/api/placement/{sid}/requirements",
            params={"kind": "road", "id": "dirt"},
        )
        assert resp.json() == {"met": True, "missing": {}}

    def test_requirements_unknown_item(self, client):
        sid = _create(client)
        resp = client.get(
            f"/api/placement/{sid}/requirements",
            params={"kind": "building", "id": "castle"},
        )
        assert resp.status_code == 400

    def test_items_carry_world_position(self, client):
        sid = _create(client)
        _place(client, sid, "road", "dirt", 1, 0)
        items = client.get(f"/api/villages/sessions/{sid}/items").json()
        assert items[0]["world"] == [32.0, 16.0]

    def test_tile_at_resolves_screen_point(self, client):
        sid = _create(client)
        _place(client, sid, "road", "dirt", 1, 0)
        resp = client.get(f"/api/placement/{sid}/tile-at", params={"sx": 32, "sy": 32})
        assert resp.status_code == 200
        data = resp.json()
        assert (data["tile_x"], data["tile_y"]) == (1, 0)
        assert data["in_bounds"] is True
        assert data["item"]["id"] == "dirt"

    def test_tile_at_with_camera_and_zoom(self, client):
        sid = _create(client)
        # Canvas centre shows the camera point, world (64, 32) is the top of tile (2, 0)
        resp = client.get(f"/api/placement/{sid}/tile-at", params={
            "sx": 400, "sy": 310, "camera_x": 64, "camera_y": 32, "zoom": 2,
            "canvas_width": 800, "canvas_height": 600,
        })
        data = resp.json()
        assert (data["tile_x"], data["tile_y"]) == (2, 0)
        assert data["item"] is None

    def test_tile_at_out_of_bounds(self, client):
        sid = _create(client)
        resp = client.get(f"/api/placement/{sid}/tile-at", params={"sx": 0, "sy": 1000})
        assert resp.json()["in_bounds"] is False

    def test_tile_at_rejects_zero_zoom(self, client):
        sid = _create(client)
        resp = client.get(f"/api/placement/{sid}/tile-at", params={"sx": 0, "sy": 0, "zoom": 0})
        assert resp.status_code == 422

    def test_costs(self, client):
        sid = _create(client)
        resp = client.get(
            f"/api/placement/{sid}/costs",
            params={"kind": "building", "id": "house1"},
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["purchase_cost"] == 300
        assert data["demolition_cost"] == 150
        assert data["can_afford"] is True


class TestTicking:
    def test_tick_runs_intervals(self, client):
        sid = _create(client)
        resp = client.post(f"/api/villages/sessions/{sid}/tick", json={"delta_ms": 10000})
        assert resp.status_code == 200
        data = resp.json()
        assert data["intervals"] == 2
        assert data["budget"] == 10000.0
        session = client.get(f"/api/villages/sessions/{sid}").json()
        assert session["time_cycle"]["tick"] == 2

    def test_tick_short_delta(self, client):
        sid = _create(client)
        data = client.post(
            f"/api/villages/sessions/{sid}/tick", json={"delta_ms": 100},
        ).json()
        assert data["intervals"] == 0

    def test_negative_delta_rejected(self, client):
        sid = _create(client)
        resp = client.post(f"/api/villages/sessions/{sid}/tick", json={"delta_ms": -5})
        assert resp.status_code == 422

    def test_tick_unknown_session(self, client):
        resp = client.post("/api/villages/sessions/nonexistent/tick", json={"delta_ms": 10})
        assert resp.status_code == 404

    def test_summary(self, client):
        sid = _create(client)
        _place(client, sid, "road", "dirt", 0, 0)
        resp = client.get(f"/api/villages/sessions/{sid}/summary")
        assert resp.status_code == 200
        data = resp.json()
        assert data["item_count"] == 1
        assert data["budget"] == 9990.0
        assert "time_cycle" in data

    def test_reset(self, client):
        sid = _create(client)
        _place(client, sid, "road", "dirt", 0, 0)
        resp = client.post(f"/api/villages/sessions/{sid}/reset")
        assert resp.status_code == 200
        data = resp.json()
        assert data["item_count"] == 0
        assert data["budget"] == 10000.0

    def test_reset_unknown_session(self, client):
        resp = client.post("/api/villages/sessions/nonexistent/reset")
        assert resp.status_code == 404


class TestVillagers:
    def test_no_villagers_without_roads(self, client):
        sid = _create(client)
        client.post(f"/api/villages/sessions/{sid}/tick", json={"delta_ms": 10000})
        resp = client.get(f"/api/villagers/{sid}")
        assert resp.status_code == 200
        assert resp.json() == []

    def test_villagers_walk_roads(self, client):
        sid = _create(client)
        _place(client, sid, "road", "dirt", 0, 0)
        _place(client, sid, "building", "house1", 1, 0)
        client.post(f"/api/villages/sessions/{sid}/tick", json={"delta_ms": 3000})
        villagers = client.get(f"/api/villagers/{sid}").json()
        assert 1 <= len(villagers) <= 2
        for villager in villagers:
            assert villager["current_tile"] == [0, 0]
            assert villager["world"] == [0.0, 0.0]
            assert villager["state"] in ("idle", "moving")

    def test_unknown_session(self, client):
        resp = client.get("/api/villagers/nonexistent")
        assert resp.status_code == 404
