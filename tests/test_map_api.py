"""Endpoint tests for the map API."""
import pytest
from fastapi.testclient import TestClient

from api.app import create_app
from api.map_api import get_panel
from core.map_panel import MapRoutingPanel
from routing.route_planner import RoutePlanner
from fakes import SAMPLE_EVENTS, SAMPLE_LOCATIONS, FakePortalClient


@pytest.fixture
def portal():
    return FakePortalClient(SAMPLE_LOCATIONS, events=SAMPLE_EVENTS)


@pytest.fixture
def panel(portal):
    panel = MapRoutingPanel(client=portal, planner=RoutePlanner(providers=[]))
    panel.mount()
    yield panel
    panel.close()


@pytest.fixture
def client(panel):
    app = create_app(mount=False)
    app.dependency_overrides[get_panel] = lambda: panel
    app.state.panel = panel
    return TestClient(app)


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["locations"] == 3


def test_list_locations(client):
    data = client.get("/api/map/locations").json()
    assert data["count"] == 3
    school = next(m for m in data["data"] if m["id"] == "1")
    assert school["hasEvents"] is True
    assert school["icon"] == "school"
    assert school["draggable"] is False


def test_create_validation_error(client, portal):
    response = client.post("/api/map/locations", json={"name": "Ab", "type": "SCHOOL",
                                                       "latitude": 12.87, "longitude": 124.0})
    assert response.status_code == 400
    assert response.json()["detail"]["errors"] == ["Location name must be at least 3 characters long"]
    assert portal.calls_to("create_location") == []


def test_create_success(client, portal):
    response = client.post("/api/map/locations", json={"name": "Barangay Hall", "type": "GOVERNMENT",
                                                       "latitude": 12.87, "longitude": 124.0})
    assert response.status_code == 201
    assert response.json()["count"] == 4
    assert len(portal.calls_to("create_location")) == 1


def test_create_backend_failure(client, portal):
    portal.fail.add("create_location")
    response = client.post("/api/map/locations", json={"name": "Barangay Hall", "type": "GOVERNMENT",
                                                       "latitude": 12.87, "longitude": 124.0})
    assert response.status_code == 502


def test_drag_requires_edit_mode(client):
    response = client.post("/api/map/locations/1/drag", json={"latitude": 12.88, "longitude": 124.01})
    assert response.status_code == 409


def test_drag_moves_in_edit_mode(client, panel):
    assert client.post("/api/map/edit-mode", json={"enabled": True}).json()["editMode"] is True
    response = client.post("/api/map/locations/1/drag", json={"latitude": 12.8729, "longitude": 124.0093})
    assert response.status_code == 200
    assert response.json()["outcome"] == "moved"
    assert panel.store.get("1").position == (12.8729, 124.0093)


def test_delete_then_confirm(client, panel, portal):
    response = client.delete("/api/map/locations/2")
    assert response.status_code == 202
    assert response.json()["confirmation"] == 'Delete "Casiguran Barangay Hall"?'
    assert portal.calls_to("delete_location") == []

    response = client.post("/api/map/confirm")
    assert response.status_code == 200
    assert panel.store.get("2") is None


def test_confirm_with_nothing_pending(client):
    assert client.post("/api/map/confirm").status_code == 409


def test_delete_unknown(client):
    assert client.delete("/api/map/locations/missing").status_code == 404


def test_route_flow(client):
    assert client.get("/api/map/route/1").status_code == 409

    client.post("/api/map/user-location", json={"latitude": 12.8700, "longitude": 124.0050})
    response = client.get("/api/map/route/1")
    assert response.status_code == 200
    route = response.json()["data"]
    assert route["approximate"] is True
    assert route["walkingMinutes"] == route["drivingMinutes"] * 3
    assert route["distance"].endswith(" km")


def test_route_unknown_location(client):
    assert client.get("/api/map/route/missing").status_code == 404


def test_locate_without_provider(client):
    response = client.post("/api/map/user-location/locate")
    assert response.status_code == 502
    assert response.json()["detail"] == "Geolocation is not supported on this device."


def test_location_events(client):
    data = client.get("/api/map/locations/3/events").json()
    assert [e["id"] for e in data["data"]] == ["e2"]


def test_rendered_map(client):
    response = client.get("/map")
    assert response.status_code == 200
    assert "leaflet" in response.text.lower()
