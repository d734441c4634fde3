"""
Tests for the job marketplace: posting with tokens, applications and
the accept / reject state machine.
"""

import pytest
from httpx import AsyncClient
from sqlalchemy import select, func

from app.models.job import Job

JOB = {
    "title": "Plan a honeymoon in Bali",
    "description": "Ten days, mix of beaches and culture, mid-range budget.",
    "token_cost": 50,
    "category": "planning",
    "location": "Bali",
}


async def _balance(client: AsyncClient, headers: dict) -> int:
    response = await client.get("/api/v1/tokens/balance", headers=headers)
    return response.json()["data"]["balance"]


async def _post_job(client: AsyncClient, headers: dict, **overrides) -> dict:
    response = await client.post("/api/v1/jobs", json={**JOB, **overrides}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


@pytest.mark.asyncio
async def test_job_lifecycle(
    client: AsyncClient,
    grant,
    test_user,
    auth_headers,
    other_user,
    other_headers,
    agent_headers,
    third_headers,
):
    """Post (balance 100 -> 50), two applications, accept one, later applicants are turned away."""
    await grant(test_user, 100)

    job = await _post_job(client, auth_headers)
    assert job["status"] == "open"
    assert await _balance(client, auth_headers) == 50

    for headers in (other_headers, agent_headers):
        response = await client.post(
            f"/api/v1/jobs/{job['id']}/apply",
            json={"cover_letter": "I know Bali very well"},
            headers=headers,
        )
        assert response.status_code == 201
        assert response.json()["data"]["status"] == "pending"

    detail = await client.get(f"/api/v1/jobs/{job['id']}", headers=auth_headers)
    assert detail.json()["data"]["status"] == "open"

    accept = await client.post(
        f"/api/v1/jobs/{job['id']}/applicants/{other_user.id}/accept",
        json={"feedback": "Welcome aboard"},
        headers=auth_headers,
    )
    assert accept.status_code == 200
    assert accept.json()["data"]["status"] == "accepted"

    applicants = await client.get(f"/api/v1/jobs/{job['id']}/applicants", headers=auth_headers)
    statuses = {a["applicant_id"]: (a["status"], a["feedback"]) for a in applicants.json()["data"]}
    assert statuses[other_user.id] == ("accepted", "Welcome aboard")
    rejected = [s for s in statuses.values() if s[0] == "rejected"]
    assert rejected == [("rejected", "Position has been filled")]

    detail = await client.get(f"/api/v1/jobs/{job['id']}", headers=auth_headers)
    assert detail.json()["data"]["status"] == "filled"

    late = await client.post(f"/api/v1/jobs/{job['id']}/apply", json={}, headers=third_headers)
    assert late.status_code == 404
    assert late.json()["error"] == "job_not_found"


@pytest.mark.asyncio
async def test_overspend_rejected_without_creating_job(client: AsyncClient, db_session, grant, test_user, auth_headers):
    await grant(test_user, 20)

    response = await client.post("/api/v1/jobs", json=JOB, headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["error"] == "insufficient_tokens"
    assert await _balance(client, auth_headers) == 20

    count = await db_session.execute(select(func.count(Job.id)).where(Job.client_id == test_user.id))
    assert count.scalar() == 0


@pytest.mark.asyncio
async def test_duplicate_application(client: AsyncClient, grant, test_user, auth_headers, other_headers):
    await grant(test_user, 100)
    job = await _post_job(client, auth_headers)

    first = await client.post(f"/api/v1/jobs/{job['id']}/apply", json={}, headers=other_headers)
    assert first.status_code == 201

    second = await client.post(f"/api/v1/jobs/{job['id']}/apply", json={}, headers=other_headers)
    assert second.status_code == 400
    assert second.json()["error"] == "duplicate_application"


@pytest.mark.asyncio
async def test_accept_rejects_all_siblings(
    client: AsyncClient,
    grant,
    test_user,
    auth_headers,
    other_user,
    other_headers,
    third_headers,
    agent_headers,
):
    await grant(test_user, 100)
    job = await _post_job(client, auth_headers)
    for headers in (other_headers, third_headers, agent_headers):
        await client.post(f"/api/v1/jobs/{job['id']}/apply", json={}, headers=headers)

    await client.post(f"/api/v1/jobs/{job['id']}/applicants/{other_user.id}/accept", headers=auth_headers)

    applicants = (await client.get(f"/api/v1/jobs/{job['id']}/applicants", headers=auth_headers)).json()["data"]
    statuses = sorted(a["status"] for a in applicants)
    assert statuses == ["accepted", "rejected", "rejected"]


@pytest.mark.asyncio
async def test_reject_single_applicant_keeps_job_open(
    client: AsyncClient, grant, test_user, auth_headers, other_user, other_headers
):
    await grant(test_user, 100)
    job = await _post_job(client, auth_headers)
    await client.post(f"/api/v1/jobs/{job['id']}/apply", json={}, headers=other_headers)

    response = await client.post(
        f"/api/v1/jobs/{job['id']}/applicants/{other_user.id}/reject",
        json={"feedback": "Looking for someone local"},
        headers=auth_headers,
    )
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "rejected"

    detail = await client.get(f"/api/v1/jobs/{job['id']}", headers=auth_headers)
    assert detail.json()["data"]["status"] == "open"

    mine = await client.get("/api/v1/jobs/my-applications", headers=other_headers)
    assert mine.json()["data"][0]["feedback"] == "Looking for someone local"
    assert mine.json()["data"][0]["job_title"] == JOB["title"]


@pytest.mark.asyncio
async def test_only_owner_manages_applicants(
    client: AsyncClient, grant, test_user, auth_headers, other_user, other_headers
):
    await grant(test_user, 100)
    job = await _post_job(client, auth_headers)
    await client.post(f"/api/v1/jobs/{job['id']}/apply", json={}, headers=other_headers)

    response = await client.post(
        f"/api/v1/jobs/{job['id']}/applicants/{other_user.id}/accept",
        headers=other_headers,
    )
    assert response.status_code == 403

    listing = await client.get(f"/api/v1/jobs/{job['id']}/applicants", headers=other_headers)
    assert listing.status_code == 403


@pytest.mark.asyncio
async def test_accept_unknown_applicant(client: AsyncClient, grant, test_user, auth_headers, other_user):
    await grant(test_user, 100)
    job = await _post_job(client, auth_headers)

    response = await client.post(
        f"/api/v1/jobs/{job['id']}/applicants/{other_user.id}/accept",
        headers=auth_headers,
    )
    assert response.status_code == 404
    assert response.json()["error"] == "application_not_found"


@pytest.mark.asyncio
async def test_delete_without_applications_refunds(client: AsyncClient, db_session, grant, test_user, auth_headers):
    await grant(test_user, 100)
    job = await _post_job(client, auth_headers, token_cost=30)
    assert await _balance(client, auth_headers) == 70

    response = await client.delete(f"/api/v1/jobs/{job['id']}", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["data"]["deleted_at"] is not None
    assert await _balance(client, auth_headers) == 100

    history = (await client.get("/api/v1/tokens/history", headers=auth_headers)).json()["data"]
    assert history[0]["kind"] == "refund"
    assert history[0]["amount"] == 30
    assert history[0]["reference_type"] == "job_post_refund"

    gone = await client.get(f"/api/v1/jobs/{job['id']}", headers=auth_headers)
    assert gone.status_code == 404


@pytest.mark.asyncio
async def test_delete_with_applications_fails(client: AsyncClient, grant, test_user, auth_headers, other_headers):
    await grant(test_user, 100)
    job = await _post_job(client, auth_headers)
    await client.post(f"/api/v1/jobs/{job['id']}/apply", json={}, headers=other_headers)

    response = await client.delete(f"/api/v1/jobs/{job['id']}", headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["error"] == "has_applications"
    assert await _balance(client, auth_headers) == 50


@pytest.mark.asyncio
async def test_update_open_job(client: AsyncClient, grant, test_user, auth_headers):
    await grant(test_user, 100)
    job = await _post_job(client, auth_headers)

    response = await client.put(
        f"/api/v1/jobs/{job['id']}",
        json={"title": "Plan a honeymoon in Lombok", "status": "closed"},
        headers=auth_headers,
    )
    assert response.status_code == 200
    assert response.json()["data"]["title"] == "Plan a honeymoon in Lombok"
    assert response.json()["data"]["status"] == "closed"

    again = await client.put(f"/api/v1/jobs/{job['id']}", json={"title": "Too late"}, headers=auth_headers)
    assert again.status_code == 400
    assert again.json()["error"] == "job_not_open"


@pytest.mark.asyncio
async def test_available_jobs_listing(client: AsyncClient, grant, test_user, auth_headers, other_headers):
    await grant(test_user, 200)
    first = await _post_job(client, auth_headers, title="First")
    second = await _post_job(client, auth_headers, title="Second")
    closed = await _post_job(client, auth_headers, title="Closed")
    await client.put(f"/api/v1/jobs/{closed['id']}", json={"status": "closed"}, headers=auth_headers)
    await client.post(f"/api/v1/jobs/{first['id']}/apply", json={}, headers=other_headers)

    response = await client.get("/api/v1/jobs/available")
    assert response.status_code == 200
    rows = response.json()["data"]
    assert [r["id"] for r in rows] == [second["id"], first["id"]]
    assert rows[1]["applications_count"] == 1
    assert rows[0]["client_name"] == "Test Client"

    own = await client.get("/api/v1/jobs", headers=auth_headers)
    assert len(own.json()["data"]) == 3


@pytest.mark.asyncio
async def test_application_notifies_job_owner(client: AsyncClient, grant, test_user, auth_headers, other_headers):
    await grant(test_user, 100)
    job = await _post_job(client, auth_headers)
    await client.post(f"/api/v1/jobs/{job['id']}/apply", json={}, headers=other_headers)

    response = await client.get("/api/v1/notifications", headers=auth_headers)
    data = response.json()["data"]
    assert data["unread_count"] == 1
    assert data["notifications"][0]["type"] == "job_update"
    assert data["notifications"][0]["metadata"]["job_id"] == job["id"]


@pytest.mark.asyncio
async def test_job_post_validation(client: AsyncClient, auth_headers):
    response = await client.post(
        "/api/v1/jobs",
        json={**JOB, "description": "too short"},
        headers=auth_headers,
    )
    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "description"


async def _job_with_applicants(client: AsyncClient, owner_headers: dict, *applicant_headers: dict) -> dict:
    job = await _post_job(client, owner_headers)
    for headers in applicant_headers:
        response = await client.post(f"/api/v1/jobs/{job['id']}/apply", json={}, headers=headers)
        assert response.status_code == 201
    return job


async def _applicant_statuses(client: AsyncClient, job_id: int, headers: dict) -> dict:
    response = await client.get(f"/api/v1/jobs/{job_id}/applicants", headers=headers)
    return {a["applicant_id"]: (a["status"], a["feedback"]) for a in response.json()["data"]}


@pytest.mark.asyncio
async def test_second_accept_on_filled_job_refused(
    client: AsyncClient, grant, test_user, auth_headers, other_user, other_headers, third_user, third_headers
):
    await grant(test_user, 100)
    job = await _job_with_applicants(client, auth_headers, other_headers, third_headers)

    first = await client.post(f"/api/v1/jobs/{job['id']}/applicants/{other_user.id}/accept", headers=auth_headers)
    assert first.status_code == 200

    second = await client.post(f"/api/v1/jobs/{job['id']}/applicants/{third_user.id}/accept", headers=auth_headers)
    assert second.status_code == 400
    assert second.json()["error"] == "job_not_open"

    statuses = await _applicant_statuses(client, job["id"], auth_headers)
    assert statuses[other_user.id] == ("accepted", None)
    assert statuses[third_user.id] == ("rejected", "Position has been filled")


@pytest.mark.asyncio
async def test_accepted_applicant_cannot_be_rejected(
    client: AsyncClient, grant, test_user, auth_headers, other_user, other_headers
):
    await grant(test_user, 100)
    job = await _job_with_applicants(client, auth_headers, other_headers)
    await client.post(f"/api/v1/jobs/{job['id']}/applicants/{other_user.id}/accept", headers=auth_headers)

    response = await client.post(
        f"/api/v1/jobs/{job['id']}/applicants/{other_user.id}/reject",
        json={"feedback": "Changed my mind"},
        headers=auth_headers,
    )
    assert response.status_code == 400
    assert response.json()["error"] == "job_not_open"

    statuses = await _applicant_statuses(client, job["id"], auth_headers)
    assert statuses[other_user.id] == ("accepted", None)


@pytest.mark.asyncio
async def test_rejected_application_is_final(
    client: AsyncClient, grant, test_user, auth_headers, other_user, other_headers
):
    await grant(test_user, 100)
    job = await _job_with_applicants(client, auth_headers, other_headers)
    await client.post(f"/api/v1/jobs/{job['id']}/applicants/{other_user.id}/reject", headers=auth_headers)

    for action in ("accept", "reject"):
        response = await client.post(
            f"/api/v1/jobs/{job['id']}/applicants/{other_user.id}/{action}",
            headers=auth_headers,
        )
        assert response.status_code == 400
        assert response.json()["error"] == "invalid_status_transition"

    detail = await client.get(f"/api/v1/jobs/{job['id']}", headers=auth_headers)
    assert detail.json()["data"]["status"] == "open"


@pytest.mark.asyncio
async def test_closed_job_cannot_be_filled(
    client: AsyncClient, grant, test_user, auth_headers, other_user, other_headers
):
    await grant(test_user, 100)
    job = await _job_with_applicants(client, auth_headers, other_headers)
    closed = await client.put(f"/api/v1/jobs/{job['id']}", json={"status": "closed"}, headers=auth_headers)
    assert closed.status_code == 200

    response = await client.post(f"/api/v1/jobs/{job['id']}/applicants/{other_user.id}/accept", headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["error"] == "job_not_open"

    detail = await client.get(f"/api/v1/jobs/{job['id']}", headers=auth_headers)
    assert detail.json()["data"]["status"] == "closed"
    statuses = await _applicant_statuses(client, job["id"], auth_headers)
    assert statuses[other_user.id] == ("pending", None)


@pytest.mark.asyncio
async def test_listing_cache_dropped_after_commit(
    client: AsyncClient, session_factory, monkeypatch, grant, test_user, auth_headers
):
    """When the cache is invalidated, a fresh session already sees the new job."""
    await grant(test_user, 100)
    visible_counts = []

    async def record_visible_jobs():
        async with session_factory() as session:
            count = await session.execute(select(func.count(Job.id)).where(Job.client_id == test_user.id))
            visible_counts.append(count.scalar())

    monkeypatch.setattr("app.api.routes.jobs.invalidate_job_cache", record_visible_jobs)

    await _post_job(client, auth_headers)
    assert visible_counts == [1]
