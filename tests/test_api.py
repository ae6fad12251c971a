"""
Integration tests for the REST API endpoints.

Runs the real app against the per-test SQLite store from ``conftest``; the
Redis catalog cache is left out so no server is needed.
"""

import pytest
import pytest_asyncio

SUPER_ADMIN = {"X-Caller-Role": "SUPER_ADMIN"}

TRIP_BODY = {
    "route_code": "R-1",
    "start_time": "2026-03-01T09:00:00Z",
    "end_time": "2026-03-01T10:00:00Z",
    "status": "Planned",
    "sub_status": "Scheduled",
}


@pytest_asyncio.fixture
async def north(client):
    """Region North / venue Main Hall / location Lobby A, created over HTTP."""
    region = await client.post(
        "/api/v1/hierarchy/regions", json={"name": "North"}, headers=SUPER_ADMIN
    )
    region_id = region.json()["id"]
    venue = await client.post(
        "/api/v1/hierarchy/venues",
        json={"name": "Main Hall", "region_id": region_id},
        headers=SUPER_ADMIN,
    )
    venue_id = venue.json()["id"]
    location = await client.post(
        "/api/v1/hierarchy/locations",
        json={"name": "Lobby A", "region_id": region_id, "venue_id": venue_id},
        headers=SUPER_ADMIN,
    )
    return {
        "region": region_id,
        "venue": venue_id,
        "location": location.json()["id"],
    }


async def _create_trip(client, **overrides) -> int:
    resp = await client.post(
        "/api/v1/trips", json={**TRIP_BODY, **overrides}, headers=SUPER_ADMIN
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["id"]


# ── Health ────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/api/v1/admin/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


# ── Trips ─────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_create_and_get_trip(client, north):
    trip_id = await _create_trip(
        client, destination_id=north["location"], region_id=north["region"]
    )

    resp = await client.get(f"/api/v1/trips/{trip_id}")

    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "Planned"
    assert data["destination_name"] == "Lobby A"
    assert data["destination_venue_name"] == "Main Hall"


@pytest.mark.asyncio
async def test_get_missing_trip(client):
    resp = await client.get("/api/v1/trips/9999")
    assert resp.status_code == 404
    assert resp.json() == {"success": False, "error": "Trip not found"}


@pytest.mark.asyncio
async def test_status_change_and_history(client):
    trip_id = await _create_trip(client)

    resp = await client.patch(
        f"/api/v1/trips/{trip_id}/status",
        json={"status": "Active", "sub_status": "Enroute"},
        headers=SUPER_ADMIN,
    )
    assert resp.status_code == 200
    assert resp.json()["history_written"] is True

    again = await client.patch(
        f"/api/v1/trips/{trip_id}/status",
        json={"status": "Active", "sub_status": "Enroute"},
        headers=SUPER_ADMIN,
    )
    assert again.json()["history_written"] is False

    history = (await client.get(f"/api/v1/trips/{trip_id}/history")).json()
    assert [(h["status"], h["sub_status"]) for h in history] == [
        ("Planned", "Scheduled"),
        ("Active", "Enroute"),
    ]


@pytest.mark.asyncio
async def test_unknown_status_is_422(client):
    trip_id = await _create_trip(client)

    resp = await client.patch(
        f"/api/v1/trips/{trip_id}/status", json={"status": "Teleported"}, headers=SUPER_ADMIN
    )

    assert resp.status_code == 422
    assert resp.json() == {"success": False, "error": "Unknown trip status 'Teleported'"}


@pytest.mark.asyncio
async def test_details_update(client):
    trip_id = await _create_trip(client)

    resp = await client.patch(
        f"/api/v1/trips/{trip_id}/details",
        json={"vehicle_registration": "KA05XY0001", "passengers_boarded": 18},
        headers=SUPER_ADMIN,
    )

    assert resp.status_code == 200
    trip = (await client.get(f"/api/v1/trips/{trip_id}")).json()
    assert trip["vehicle_registration"] == "KA05XY0001"
    assert trip["passengers_boarded"] == 18


@pytest.mark.asyncio
async def test_list_and_count(client):
    await _create_trip(client, route_code="N-101")
    await _create_trip(client, route_code="S-201")

    listing = (await client.get("/api/v1/trips", params={"search": "n-101"})).json()
    count = (await client.get("/api/v1/trips/count")).json()

    assert listing["total"] == 1
    assert [t["route_code"] for t in listing["trips"]] == ["N-101"]
    assert count == 2


@pytest.mark.asyncio
async def test_dashboard_listing(client):
    await _create_trip(client, route_code="LIVE", status="Active", sub_status="Enroute")
    # TRIP_BODY starts well outside the dashboard window
    await _create_trip(client, route_code="STALE")

    listing = (await client.get("/api/v1/trips", params={"dashboard": "true"})).json()
    count = (await client.get("/api/v1/trips/count", params={"dashboard": "true"})).json()

    assert [t["route_code"] for t in listing["trips"]] == ["LIVE"]
    assert listing["total"] == 1
    assert count == 1


@pytest.mark.asyncio
async def test_region_scoped_caller(client, north):
    await _create_trip(client, route_code="N-101", region_id=north["region"])
    await _create_trip(client, route_code="X-999")

    resp = await client.get(
        "/api/v1/trips",
        headers={"X-Caller-Role": "REGION_ADMIN", "X-Caller-Region-Id": str(north["region"])},
    )

    assert [t["route_code"] for t in resp.json()["trips"]] == ["N-101"]


@pytest.mark.asyncio
async def test_delete_trip(client):
    trip_id = await _create_trip(client)

    resp = await client.delete(f"/api/v1/trips/{trip_id}", headers=SUPER_ADMIN)

    assert resp.status_code == 200
    assert (await client.get(f"/api/v1/trips/{trip_id}")).status_code == 404
    assert (await client.get(f"/api/v1/trips/{trip_id}/history")).json() == []


# ── Authorisation ─────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_create_without_role_is_403(client):
    resp = await client.post("/api/v1/trips", json=TRIP_BODY)

    assert resp.status_code == 403
    assert resp.json()["success"] is False


@pytest.mark.asyncio
async def test_role_permissions_grant_edit(client):
    role = await client.post(
        "/api/v1/admin/roles", json={"name": "Dispatcher"}, headers=SUPER_ADMIN
    )
    role_id = role.json()["id"]
    dispatcher = {"X-Caller-Role": "DISPATCHER", "X-Caller-Role-Id": str(role_id)}

    denied = await client.post("/api/v1/trips", json=TRIP_BODY, headers=dispatcher)
    assert denied.status_code == 403

    await client.put(
        f"/api/v1/admin/roles/{role_id}/permissions",
        json=[{"module_code": "trips", "can_view": True, "can_edit": True}],
        headers=SUPER_ADMIN,
    )
    allowed = await client.post("/api/v1/trips", json=TRIP_BODY, headers=dispatcher)
    assert allowed.status_code == 201

    matrix = (await client.get(f"/api/v1/admin/roles/{role_id}/permissions")).json()
    trips = next(p for p in matrix if p["module_code"] == "trips")
    assert trips == {"module_code": "trips", "can_view": True, "can_edit": True}

    # Trips permission does not extend to the status catalog
    settings = await client.post(
        "/api/v1/statuses", json={"name": "Delayed"}, headers=dispatcher
    )
    assert settings.status_code == 403


# ── Hierarchy ─────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_delete_region_with_trips_is_409(client, north):
    await _create_trip(client, destination_id=north["location"])

    resp = await client.delete(
        f"/api/v1/hierarchy/regions/{north['region']}", headers=SUPER_ADMIN
    )

    assert resp.status_code == 409
    assert resp.json() == {
        "success": False,
        "error": "Cannot delete Region. It has 1 active Trips attached.",
    }
    tree = (await client.get("/api/v1/hierarchy")).json()
    assert tree[0]["venues"][0]["locations"][0]["name"] == "Lobby A"


@pytest.mark.asyncio
async def test_places_include_events(client, north):
    event = await client.post(
        "/api/v1/hierarchy/events",
        json={"name": "Opening Ceremony", "region_id": north["region"]},
        headers=SUPER_ADMIN,
    )
    event_id = event.json()["id"]

    places = (await client.get("/api/v1/hierarchy/places")).json()

    assert [p["display_name"] for p in places] == ["Lobby A", "Opening Ceremony (Event)"]
    assert places[1]["kind"] == "event"
    assert places[1]["legacy_id"] == -event_id


@pytest.mark.asyncio
async def test_rename_venue(client, north):
    resp = await client.patch(
        f"/api/v1/hierarchy/venues/{north['venue']}",
        json={"name": "Grand Hall"},
        headers=SUPER_ADMIN,
    )

    assert resp.status_code == 200
    tree = (await client.get("/api/v1/hierarchy")).json()
    assert tree[0]["venues"][0]["name"] == "Grand Hall"


# ── Status catalog ────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_status_rename_over_http(client):
    trip_id = await _create_trip(client, status="Active", sub_status="Enroute")
    catalog = (await client.get("/api/v1/statuses")).json()
    active = next(s for s in catalog["statuses"] if s["name"] == "Active")

    resp = await client.put(
        f"/api/v1/statuses/{active['id']}",
        json={"name": "Rolling", "sort_order": active["sort_order"]},
        headers=SUPER_ADMIN,
    )

    assert resp.status_code == 200
    assert (await client.get(f"/api/v1/trips/{trip_id}")).json()["status"] == "Rolling"


@pytest.mark.asyncio
async def test_duplicate_sub_status_is_409(client):
    resp = await client.post(
        "/api/v1/statuses/sub-statuses",
        json={"name": "Enroute", "linked_status": "Active"},
        headers=SUPER_ADMIN,
    )

    assert resp.status_code == 409
    assert resp.json()["error"] == "Sub-status name already exists"
