"""
Tests for the saved location list.
"""

import pytest
from datetime import datetime, timezone, timedelta
from httpx import AsyncClient

from conftest import VENUE_LAT, VENUE_LNG


async def create_event_at(client: AsyncClient, headers: dict, address: str, lat: float, lng: float):
    start = datetime.now(timezone.utc) + timedelta(days=3)
    response = await client.post("/api/v1/events/", json={
        "title": "Book Club",
        "start_time": start.isoformat(),
        "end_time": (start + timedelta(hours=1)).isoformat(),
        "location_address": address,
        "location_lat": lat,
        "location_lng": lng,
    }, headers=headers)
    assert response.status_code == 201


@pytest.mark.asyncio
async def test_locations_are_remembered(client: AsyncClient, auth_headers):
    await create_event_at(client, auth_headers, "City Hall", VENUE_LAT, VENUE_LNG)
    await create_event_at(client, auth_headers, "Library", 40.7532, -73.9822)

    response = await client.get("/api/v1/locations/", headers=auth_headers)
    assert response.status_code == 200
    assert {loc["address"] for loc in response.json()} == {"City Hall", "Library"}


@pytest.mark.asyncio
async def test_reused_location_counts_uses(client: AsyncClient, auth_headers):
    await create_event_at(client, auth_headers, "City Hall", VENUE_LAT, VENUE_LNG)
    await create_event_at(client, auth_headers, "City Hall, Room 2", VENUE_LAT, VENUE_LNG)

    response = await client.get("/api/v1/locations/", headers=auth_headers)
    locations = response.json()
    assert len(locations) == 1
    assert locations[0]["use_count"] == 2
    assert locations[0]["address"] == "City Hall"


@pytest.mark.asyncio
async def test_locations_are_scoped_to_organization(client: AsyncClient, auth_headers, other_auth_headers):
    await create_event_at(client, auth_headers, "City Hall", VENUE_LAT, VENUE_LNG)

    response = await client.get("/api/v1/locations/", headers=other_auth_headers)
    assert response.json() == []


@pytest.mark.asyncio
async def test_delete_location(client: AsyncClient, auth_headers, other_auth_headers):
    await create_event_at(client, auth_headers, "City Hall", VENUE_LAT, VENUE_LNG)
    location_id = (await client.get("/api/v1/locations/", headers=auth_headers)).json()[0]["id"]

    response = await client.delete(f"/api/v1/locations/{location_id}", headers=other_auth_headers)
    assert response.status_code == 404

    response = await client.delete(f"/api/v1/locations/{location_id}", headers=auth_headers)
    assert response.status_code == 204

    response = await client.get("/api/v1/locations/", headers=auth_headers)
    assert response.json() == []


@pytest.mark.asyncio
async def test_locations_require_auth(client: AsyncClient):
    response = await client.get("/api/v1/locations/")
    assert response.status_code == 401
