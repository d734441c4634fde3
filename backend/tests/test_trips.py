"""
Tests for the public trip catalog and the agent trip workspace.
"""

from datetime import date, timedelta
from decimal import Decimal

import pytest
from httpx import AsyncClient

from app.core.security import create_access_token, hash_password
from app.models.user import User


def _trip_payload(**overrides) -> dict:
    start = date.today() + timedelta(days=60)
    payload = {
        "title": "Kyoto in Autumn",
        "description": "Temples, gardens and food",
        "price": "1200.00",
        "max_seats": 12,
        "location": "Kyoto, Japan",
        "start_date": start.isoformat(),
        "end_date": (start + timedelta(days=6)).isoformat(),
    }
    payload.update(overrides)
    return payload


@pytest.mark.asyncio
async def test_agent_creates_trip(client: AsyncClient, agent_headers, agent_user):
    response = await client.post("/api/v1/agent/trips", json=_trip_payload(), headers=agent_headers)
    assert response.status_code == 201
    trip = response.json()["data"]
    assert trip["agent_id"] == agent_user.id
    assert trip["available_seats"] == 12
    assert trip["status"] == "active"
    assert trip["price"] == "1200.00"


@pytest.mark.asyncio
async def test_clients_cannot_create_trips(client: AsyncClient, auth_headers):
    response = await client.post("/api/v1/agent/trips", json=_trip_payload(), headers=auth_headers)
    assert response.status_code == 403
    assert response.json()["error"] == "not_authorized"


@pytest.mark.asyncio
async def test_trip_dates_validated(client: AsyncClient, agent_headers):
    start = date.today() + timedelta(days=10)
    response = await client.post(
        "/api/v1/agent/trips",
        json=_trip_payload(start_date=start.isoformat(), end_date=(start - timedelta(days=1)).isoformat()),
        headers=agent_headers,
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_catalog_filters_and_pagination(client: AsyncClient, agent_headers):
    for title, location, price in (
        ("Kyoto in Autumn", "Kyoto, Japan", "1200.00"),
        ("Osaka Food Tour", "Osaka, Japan", "600.00"),
        ("Lisbon Weekend", "Lisbon, Portugal", "450.00"),
    ):
        await client.post(
            "/api/v1/agent/trips",
            json=_trip_payload(title=title, location=location, price=price),
            headers=agent_headers,
        )

    everything = (await client.get("/api/v1/trips")).json()["data"]
    assert everything["total"] == 3
    assert everything["trips"][0]["title"] == "Lisbon Weekend"

    japan = (await client.get("/api/v1/trips", params={"location": "japan"})).json()["data"]
    assert {t["title"] for t in japan["trips"]} == {"Kyoto in Autumn", "Osaka Food Tour"}

    cheap = (await client.get("/api/v1/trips", params={"max_price": "700"})).json()["data"]
    assert {t["title"] for t in cheap["trips"]} == {"Osaka Food Tour", "Lisbon Weekend"}

    page = (await client.get("/api/v1/trips", params={"page": 2, "page_size": 2})).json()["data"]
    assert page["total"] == 3
    assert page["total_pages"] == 2
    assert len(page["trips"]) == 1


@pytest.mark.asyncio
async def test_trip_detail_includes_agent(client: AsyncClient, test_trip):
    response = await client.get(f"/api/v1/trips/{test_trip.id}")
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["agent_name"] == "Test Agent"
    assert data["reviews"] == []


@pytest.mark.asyncio
async def test_unknown_trip(client: AsyncClient):
    response = await client.get("/api/v1/trips/424242")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_trending_orders_by_rating(client: AsyncClient, db_session, test_trip, small_trip):
    small_trip.average_rating = Decimal("4.50")
    small_trip.total_reviews = 2
    await db_session.commit()

    response = await client.get("/api/v1/trips/trending")
    assert [t["id"] for t in response.json()["data"]] == [small_trip.id, test_trip.id]


@pytest.mark.asyncio
async def test_agent_updates_unbooked_trip(client: AsyncClient, agent_headers, test_trip):
    response = await client.put(
        f"/api/v1/agent/trips/{test_trip.id}",
        json={"price": "150.00", "max_seats": 20},
        headers=agent_headers,
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["price"] == "150.00"
    assert data["max_seats"] == 20
    assert data["available_seats"] == 20


@pytest.mark.asyncio
async def test_booked_trip_is_frozen(client: AsyncClient, agent_headers, auth_headers, test_trip):
    await client.post(f"/api/v1/trips/{test_trip.id}/book", json={"seats_booked": 1}, headers=auth_headers)

    update = await client.put(f"/api/v1/agent/trips/{test_trip.id}", json={"price": "1.00"}, headers=agent_headers)
    assert update.status_code == 400
    assert update.json()["error"] == "has_bookings"

    delete = await client.delete(f"/api/v1/agent/trips/{test_trip.id}", headers=agent_headers)
    assert delete.status_code == 400
    assert delete.json()["error"] == "has_bookings"


@pytest.mark.asyncio
async def test_agent_deletes_unbooked_trip(client: AsyncClient, agent_headers, test_trip):
    response = await client.delete(f"/api/v1/agent/trips/{test_trip.id}", headers=agent_headers)
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "deleted"

    public = await client.get(f"/api/v1/trips/{test_trip.id}")
    assert public.status_code == 404

    mine = await client.get("/api/v1/agent/trips", headers=agent_headers)
    assert mine.json()["data"] == []


@pytest.mark.asyncio
async def test_agent_sees_bookings_on_own_trips(client: AsyncClient, agent_headers, auth_headers, test_trip):
    await client.post(f"/api/v1/trips/{test_trip.id}/book", json={"seats_booked": 2}, headers=auth_headers)

    trips = (await client.get("/api/v1/agent/trips", headers=agent_headers)).json()["data"]
    assert trips[0]["bookings_count"] == 1

    detail = (await client.get(f"/api/v1/agent/trips/{test_trip.id}", headers=agent_headers)).json()["data"]
    assert detail["bookings"][0]["client_name"] == "Test Client"
    assert detail["bookings"][0]["seats_booked"] == 2

    bookings = (await client.get("/api/v1/agent/bookings", headers=agent_headers)).json()["data"]
    assert bookings[0]["trip_title"] == "Alpine Escape"


@pytest.mark.asyncio
async def test_agent_cannot_touch_other_agents_trip(client: AsyncClient, db_session, test_trip):
    rival = User(name="Rival Agent", email="rival@example.com", role="agent", hashed_password=hash_password("x" * 8))
    db_session.add(rival)
    await db_session.commit()
    await db_session.refresh(rival)
    headers = {"Authorization": f"Bearer {create_access_token(data={'sub': str(rival.id)})}"}

    response = await client.put(f"/api/v1/agent/trips/{test_trip.id}", json={"price": "1.00"}, headers=headers)
    assert response.status_code == 404
