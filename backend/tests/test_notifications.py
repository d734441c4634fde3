"""
Tests for the notification inbox.
"""

from datetime import timedelta

import pytest
from httpx import AsyncClient

from app.db.base import utcnow
from app.services import notification_service


async def _seed(db_session, user, count: int = 3):
    for i in range(count):
        await notification_service.notify_system(db_session, user.id, f"Notice {i}", f"Message {i}")
    await db_session.commit()


@pytest.mark.asyncio
async def test_list_newest_first_with_unread_count(client: AsyncClient, db_session, test_user, auth_headers):
    await _seed(db_session, test_user)

    data = (await client.get("/api/v1/notifications", headers=auth_headers)).json()["data"]
    assert [n["title"] for n in data["notifications"]] == ["Notice 2", "Notice 1", "Notice 0"]
    assert data["unread_count"] == 3


@pytest.mark.asyncio
async def test_mark_one_and_all_read(client: AsyncClient, db_session, test_user, auth_headers):
    await _seed(db_session, test_user)
    notifications = (await client.get("/api/v1/notifications", headers=auth_headers)).json()["data"]["notifications"]

    read = await client.post(f"/api/v1/notifications/{notifications[0]['id']}/read", headers=auth_headers)
    assert read.status_code == 200
    assert read.json()["data"]["is_read"] is True
    assert read.json()["data"]["read_at"] is not None

    count = (await client.get("/api/v1/notifications/unread-count", headers=auth_headers)).json()["data"]
    assert count["count"] == 2

    unread = (await client.get("/api/v1/notifications?unread_only=true", headers=auth_headers)).json()["data"]
    assert len(unread["notifications"]) == 2

    marked = (await client.post("/api/v1/notifications/read-all", headers=auth_headers)).json()["data"]
    assert marked["count"] == 2

    count = (await client.get("/api/v1/notifications/unread-count", headers=auth_headers)).json()["data"]
    assert count["count"] == 0


@pytest.mark.asyncio
async def test_cannot_touch_other_users_notifications(client: AsyncClient, db_session, test_user, other_headers):
    await _seed(db_session, test_user, count=1)
    notification = (await notification_service.get_user_notifications(db_session, test_user.id))[0]

    read = await client.post(f"/api/v1/notifications/{notification.id}/read", headers=other_headers)
    assert read.status_code == 404

    delete = await client.delete(f"/api/v1/notifications/{notification.id}", headers=other_headers)
    assert delete.status_code == 404
    assert delete.json()["error"] == "notification_not_found"


@pytest.mark.asyncio
async def test_delete_notification(client: AsyncClient, db_session, test_user, auth_headers):
    await _seed(db_session, test_user, count=1)
    notification = (await notification_service.get_user_notifications(db_session, test_user.id))[0]

    response = await client.delete(f"/api/v1/notifications/{notification.id}", headers=auth_headers)
    assert response.status_code == 200

    data = (await client.get("/api/v1/notifications", headers=auth_headers)).json()["data"]
    assert data["notifications"] == []


@pytest.mark.asyncio
async def test_cleanup_removes_only_old_read_notifications(db_session, test_user):
    await _seed(db_session, test_user, count=3)
    old, recent, unread = await notification_service.get_user_notifications(db_session, test_user.id)
    old.is_read, old.read_at = True, utcnow() - timedelta(days=45)
    recent.is_read, recent.read_at = True, utcnow() - timedelta(days=2)
    await db_session.commit()

    deleted = await notification_service.cleanup_old_notifications(db_session, days_old=30)
    await db_session.commit()
    assert deleted == 1

    remaining = await notification_service.get_user_notifications(db_session, test_user.id)
    assert {n.id for n in remaining} == {recent.id, unread.id}


@pytest.mark.asyncio
async def test_admin_broadcast_to_role(client: AsyncClient, admin_headers, agent_headers, auth_headers):
    response = await client.post(
        "/api/v1/admin/notifications/broadcast",
        json={"role": "agent", "title": "Policy update", "message": "New commission rates"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["data"]["count"] == 1

    agent_inbox = (await client.get("/api/v1/notifications", headers=agent_headers)).json()["data"]
    assert agent_inbox["notifications"][0]["title"] == "Policy update"

    client_inbox = (await client.get("/api/v1/notifications", headers=auth_headers)).json()["data"]
    assert client_inbox["notifications"] == []
