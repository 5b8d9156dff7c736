"""
Integration tests for the route segment endpoints.

Fixtures (db, client, save_payload) provided by tests/conftest.py.
"""
from unittest.mock import patch

from api.cache import segment_key
from src.errors import PersistenceError

GET_URL = "/api/segments/get?originPortId=miami&destinationPortId=nassau"


# ============================================================================
# Save
# ============================================================================

def test_save_first_version(client, save_payload):
    response = client.post("/api/segments/save", json=save_payload)
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["segmentId"] == "miami-nassau"
    assert data["version"] == 1
    assert data["createdAt"].endswith("Z")
    assert data["message"] == "Route segment saved successfully"


def test_save_again_keeps_created_at(client, save_payload):
    first = client.post("/api/segments/save", json=save_payload).json()
    save_payload["routeType"] = "edited"
    second = client.post("/api/segments/save", json=save_payload).json()

    assert second["version"] == 2
    assert second["createdAt"] == first["createdAt"]


def test_save_missing_destination(client, save_payload):
    del save_payload["destinationPortId"]
    response = client.post("/api/segments/save", json=save_payload)
    assert response.status_code == 400
    assert response.json()["field"] == "destinationPortId"


def test_save_identical_ports_writes_nothing(client, save_payload):
    save_payload["destinationPortId"] = "miami"
    response = client.post("/api/segments/save", json=save_payload)
    assert response.status_code == 400
    assert response.json() == {
        "error": "Origin and destination ports cannot be the same",
        "field": "destinationPortId",
    }
    assert client.get("/api/segments/miami-miami/history").status_code == 404


def test_save_too_few_coordinates(client, save_payload):
    save_payload["routeCoordinates"] = [[25.7617, -80.1918]]
    response = client.post("/api/segments/save", json=save_payload)
    assert response.status_code == 400
    assert response.json()["field"] == "routeCoordinates"


def test_save_unknown_route_type(client, save_payload):
    save_payload["routeType"] = "imported"
    response = client.post("/api/segments/save", json=save_payload)
    assert response.status_code == 400
    assert response.json()["field"] == "routeType"


def test_save_storage_failure(client, save_payload):
    with patch(
        "api.routers.segments.SegmentVersionStore.save",
        side_effect=PersistenceError("disk full"),
    ):
        response = client.post("/api/segments/save", json=save_payload)

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to save route segment", "details": "disk full"}


# ============================================================================
# Get
# ============================================================================

def test_get_not_found(client):
    response = client.get(GET_URL)
    assert response.status_code == 200
    assert response.json() == {"found": False}


def test_get_active_version(client, save_payload):
    client.post("/api/segments/save", json=save_payload)
    client.post("/api/segments/save", json=save_payload)

    data = client.get(GET_URL).json()
    assert data["found"] is True
    segment = data["segment"]
    assert segment["version"] == 2
    assert segment["isActive"] is True
    assert segment["routeCoordinatesCount"] == 3
    assert segment["originPort"]["name"] == "Miami"


def test_get_requires_both_ids(client):
    response = client.get("/api/segments/get?originPortId=miami")
    assert response.status_code == 400
    assert response.json()["field"] == "destinationPortId"


def test_get_is_cached(client, save_payload, fresh_route_cache):
    client.post("/api/segments/save", json=save_payload)
    client.get(GET_URL)

    cached = fresh_route_cache.get_json(segment_key("miami-nassau"))
    assert cached["found"] is True

    with patch("api.routers.segments.SegmentVersionStore.get_by_ports") as get_by_ports:
        data = client.get(GET_URL).json()
    get_by_ports.assert_not_called()
    assert data["segment"]["version"] == 1


def test_save_invalidates_cached_miss(client, save_payload):
    assert client.get(GET_URL).json() == {"found": False}
    client.post("/api/segments/save", json=save_payload)
    assert client.get(GET_URL).json()["found"] is True


# ============================================================================
# History
# ============================================================================

def test_history(client, save_payload):
    client.post("/api/segments/save", json=save_payload)
    client.post("/api/segments/save", json=save_payload)

    response = client.get("/api/segments/miami-nassau/history")
    assert response.status_code == 200
    data = response.json()
    assert data["segmentId"] == "miami-nassau"
    assert data["count"] == 2
    assert [v["version"] for v in data["versions"]] == [2, 1]
    assert [v["isActive"] for v in data["versions"]] == [True, False]


def test_history_unknown_segment(client):
    assert client.get("/api/segments/nowhere-else/history").status_code == 404
