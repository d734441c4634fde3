"""
Tests for trip reviews and the rating aggregate.
"""

import pytest
from httpx import AsyncClient


async def _completed_booking(client: AsyncClient, trip_id: int, headers: dict, admin_headers: dict) -> int:
    booking = await client.post(f"/api/v1/trips/{trip_id}/book", json={"seats_booked": 1}, headers=headers)
    booking_id = booking.json()["data"]["id"]
    response = await client.patch(
        f"/api/v1/admin/bookings/{booking_id}/status",
        json={"status": "completed", "payment_status": "paid"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    return booking_id


@pytest.mark.asyncio
async def test_rating_is_mean_of_reviews(
    client: AsyncClient, test_trip, auth_headers, other_headers, third_headers, admin_headers
):
    for headers, rating in ((auth_headers, 5), (other_headers, 3), (third_headers, 4)):
        booking_id = await _completed_booking(client, test_trip.id, headers, admin_headers)
        response = await client.post(
            f"/api/v1/trips/{test_trip.id}/review",
            json={"booking_id": booking_id, "rating": rating, "comment": "Lovely"},
            headers=headers,
        )
        assert response.status_code == 201

    trip = (await client.get(f"/api/v1/trips/{test_trip.id}")).json()["data"]
    assert trip["average_rating"] == "4.00"
    assert trip["total_reviews"] == 3
    assert sorted(r["rating"] for r in trip["reviews"]) == [3, 4, 5]
    assert {r["client_name"] for r in trip["reviews"]} == {"Test Client", "Other Client", "Third Client"}


@pytest.mark.asyncio
async def test_rating_rounds_half_up(client: AsyncClient, test_trip, auth_headers, other_headers, third_headers, admin_headers):
    for headers, rating in ((auth_headers, 5), (other_headers, 4), (third_headers, 4)):
        booking_id = await _completed_booking(client, test_trip.id, headers, admin_headers)
        await client.post(
            f"/api/v1/trips/{test_trip.id}/review",
            json={"booking_id": booking_id, "rating": rating},
            headers=headers,
        )

    trip = (await client.get(f"/api/v1/trips/{test_trip.id}")).json()["data"]
    assert trip["average_rating"] == "4.33"


@pytest.mark.asyncio
async def test_review_requires_completed_booking(client: AsyncClient, test_trip, auth_headers):
    booking = await client.post(f"/api/v1/trips/{test_trip.id}/book", json={"seats_booked": 1}, headers=auth_headers)

    response = await client.post(
        f"/api/v1/trips/{test_trip.id}/review",
        json={"booking_id": booking.json()["data"]["id"], "rating": 5},
        headers=auth_headers,
    )
    assert response.status_code == 404
    assert response.json()["error"] == "booking_not_found"


@pytest.mark.asyncio
async def test_one_review_per_booking(client: AsyncClient, test_trip, auth_headers, admin_headers):
    booking_id = await _completed_booking(client, test_trip.id, auth_headers, admin_headers)
    review = {"booking_id": booking_id, "rating": 4}

    first = await client.post(f"/api/v1/trips/{test_trip.id}/review", json=review, headers=auth_headers)
    assert first.status_code == 201

    second = await client.post(f"/api/v1/trips/{test_trip.id}/review", json=review, headers=auth_headers)
    assert second.status_code == 400
    assert second.json()["error"] == "duplicate_review"

    trip = (await client.get(f"/api/v1/trips/{test_trip.id}")).json()["data"]
    assert trip["total_reviews"] == 1


@pytest.mark.asyncio
async def test_cannot_review_with_someone_elses_booking(
    client: AsyncClient, test_trip, auth_headers, other_headers, admin_headers
):
    booking_id = await _completed_booking(client, test_trip.id, auth_headers, admin_headers)

    response = await client.post(
        f"/api/v1/trips/{test_trip.id}/review",
        json={"booking_id": booking_id, "rating": 1},
        headers=other_headers,
    )
    assert response.status_code == 404


@pytest.mark.asyncio
@pytest.mark.parametrize("rating", [0, 6])
async def test_rating_out_of_range(client: AsyncClient, test_trip, auth_headers, rating):
    response = await client.post(
        f"/api/v1/trips/{test_trip.id}/review",
        json={"booking_id": 1, "rating": rating},
        headers=auth_headers,
    )
    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "rating"
