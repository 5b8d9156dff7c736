"""
Integration tests for the port catalog and sea-route generation endpoints.

The searoute backend is patched; no network graph computation runs here.
"""
from unittest.mock import patch

from api.cache import ports_key

FEATURE = {
    "type": "Feature",
    "geometry": {
        "type": "LineString",
        "coordinates": [[-80.1918, 25.7617], [-79.0, 25.5], [-77.3554, 25.0343]],
    },
    "properties": {"length": 296.4, "units": "km"},
}

ROUTE_BODY = {
    "origin": {"lat": 25.7617, "lng": -80.1918},
    "dest": {"lat": 25.0343, "lng": -77.3554},
}


# ============================================================================
# Catalog
# ============================================================================

def test_list_ports(client, sample_ports):
    response = client.get("/api/ports")
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 4
    assert [p["port_name"] for p in data["ports"]] == ["Manila", "Marseille", "Miami", "Nassau"]
    assert data["hasMore"] is False


def test_search_by_prefix(client, sample_ports):
    data = client.get("/api/ports?search=MA").json()
    assert data["search"] == "ma"
    assert [p["port_id"] for p in data["ports"]] == ["MAN", "MAR"]


def test_pagination(client, sample_ports):
    data = client.get("/api/ports?offset=1&limit=2").json()
    assert [p["port_name"] for p in data["ports"]] == ["Marseille", "Miami"]
    assert data["total"] == 4
    assert data["hasMore"] is True


def test_first_page_cached(client, sample_ports, fresh_route_cache):
    client.get("/api/ports?limit=2")
    assert fresh_route_cache.get_json(ports_key("", 0, 2))["total"] == 4


def test_uncommon_search_not_cached(client, sample_ports, fresh_route_cache):
    client.get("/api/ports?search=zz")
    assert fresh_route_cache.get_json(ports_key("zz", 0, 100)) is None


# ============================================================================
# Sea route generation
# ============================================================================

def test_route(client):
    with patch("api.routing_backend.sr.searoute", return_value=FEATURE) as searoute:
        response = client.post("/api/ports/route", json=ROUTE_BODY)

    assert response.status_code == 200
    assert response.json()["coordinates"] == FEATURE["geometry"]["coordinates"]
    args, kwargs = searoute.call_args
    assert args[0] == [-80.1918, 25.7617]
    assert args[1] == [-77.3554, 25.0343]
    assert kwargs["units"] == "km"


def test_route_destination_alias(client):
    body = {"origin": ROUTE_BODY["origin"], "destination": ROUTE_BODY["dest"], "units": "nauticalMiles"}
    with patch("api.routing_backend.sr.searoute", return_value=FEATURE) as searoute:
        response = client.post("/api/ports/route", json=body)

    assert response.status_code == 200
    assert searoute.call_args.kwargs["units"] == "naut"


def test_route_missing_destination(client):
    response = client.post("/api/ports/route", json={"origin": ROUTE_BODY["origin"]})
    assert response.status_code == 400
    assert response.json()["field"] == "dest"


def test_route_unknown_units(client):
    body = dict(ROUTE_BODY, units="furlongs")
    response = client.post("/api/ports/route", json=body)
    assert response.status_code == 400
    assert response.json()["field"] == "units"


def test_route_backend_failure(client):
    with patch("api.routing_backend.sr.searoute", side_effect=RuntimeError("graph error")):
        response = client.post("/api/ports/route", json=ROUTE_BODY)

    assert response.status_code == 502
    assert response.json() == {"error": "No sea route found"}


def test_route_empty_result(client):
    empty = {"type": "Feature", "geometry": {"type": "LineString", "coordinates": []}, "properties": {}}
    with patch("api.routing_backend.sr.searoute", return_value=empty):
        response = client.post("/api/ports/route", json=ROUTE_BODY)

    assert response.status_code == 502
    assert response.json() == {"error": "No sea route found"}


def test_route_invalid_origin(client):
    body = dict(ROUTE_BODY, origin={"lat": 95.0, "lng": 0.0})
    response = client.post("/api/ports/route", json=body)
    assert response.status_code == 400
    assert response.json()["field"] == "origin"
