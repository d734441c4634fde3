"""
Tests for the token ledger: balance, purchase, spending rules and history.
"""

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from app.core.exceptions import InsufficientBalance, ValidationFailed
from app.models.token import TokenTransaction
from app.services import token_service


@pytest.mark.asyncio
async def test_packages_are_public(client: AsyncClient):
    response = await client.get("/api/v1/tokens/packages")
    assert response.status_code == 200
    packages = {p["id"]: p for p in response.json()["data"]}
    assert set(packages) == {"basic", "standard", "premium", "enterprise"}
    assert packages["standard"]["tokens"] == 500
    assert packages["standard"]["bonus"] == 50


@pytest.mark.asyncio
async def test_balance_starts_at_zero(client: AsyncClient, auth_headers, test_user):
    response = await client.get("/api/v1/tokens/balance", headers=auth_headers)
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["user_id"] == test_user.id
    assert data["balance"] == 0


@pytest.mark.asyncio
async def test_purchase_credits_tokens_plus_bonus(client: AsyncClient, auth_headers):
    response = await client.post(
        "/api/v1/tokens/purchase",
        json={"package_id": "standard", "payment_reference": "pay_123"},
        headers=auth_headers,
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["balance"]["balance"] == 550
    assert data["transaction"]["kind"] == "purchase"
    assert data["transaction"]["amount"] == 550
    assert data["transaction"]["payment_reference"] == "pay_123"
    assert data["transaction"]["cost"] == "39.99"


@pytest.mark.asyncio
async def test_purchase_unknown_package(client: AsyncClient, auth_headers):
    response = await client.post(
        "/api/v1/tokens/purchase",
        json={"package_id": "platinum", "payment_reference": "pay_123"},
        headers=auth_headers,
    )
    assert response.status_code == 400
    assert response.json()["error"] == "invalid_package"

    balance = await client.get("/api/v1/tokens/balance", headers=auth_headers)
    assert balance.json()["data"]["balance"] == 0


@pytest.mark.asyncio
async def test_tokens_require_authentication(client: AsyncClient):
    response = await client.get("/api/v1/tokens/balance")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_history_newest_first(client: AsyncClient, auth_headers):
    for package_id in ("basic", "premium"):
        await client.post(
            "/api/v1/tokens/purchase",
            json={"package_id": package_id, "payment_reference": f"pay_{package_id}"},
            headers=auth_headers,
        )

    response = await client.get("/api/v1/tokens/history", headers=auth_headers)
    assert response.status_code == 200
    history = response.json()["data"]
    assert [t["payment_reference"] for t in history] == ["pay_premium", "pay_basic"]

    limited = await client.get("/api/v1/tokens/history?limit=1", headers=auth_headers)
    assert len(limited.json()["data"]) == 1


@pytest.mark.asyncio
async def test_spend_debits_and_logs_negative_usage(db_session, test_user, grant):
    await grant(test_user, 100)

    tokens = await token_service.spend_tokens(
        db_session, test_user.id, 30, reference_id="7", reference_type="job_post", description="Job"
    )
    await db_session.commit()
    assert tokens.balance == 70

    history = await token_service.get_history(db_session, test_user.id)
    assert history[0].kind == "usage"
    assert history[0].amount == -30
    assert history[0].reference_id == "7"


@pytest.mark.asyncio
async def test_overspend_leaves_balance_untouched(db_session, test_user, grant):
    await grant(test_user, 10)

    with pytest.raises(InsufficientBalance):
        await token_service.spend_tokens(db_session, test_user.id, 11)
    await db_session.rollback()

    tokens = await token_service.get_balance(db_session, test_user.id)
    await db_session.refresh(tokens)
    assert tokens.balance == 10

    usage = await db_session.execute(
        select(TokenTransaction).where(TokenTransaction.user_id == test_user.id, TokenTransaction.kind == "usage")
    )
    assert usage.scalars().all() == []


@pytest.mark.asyncio
async def test_spend_exact_balance_reaches_zero(db_session, test_user, grant):
    await grant(test_user, 25)
    tokens = await token_service.spend_tokens(db_session, test_user.id, 25)
    await db_session.commit()
    assert tokens.balance == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("amount", [0, -5])
async def test_non_positive_amounts_rejected(db_session, test_user, amount):
    with pytest.raises(ValidationFailed):
        await token_service.spend_tokens(db_session, test_user.id, amount)
    with pytest.raises(ValidationFailed):
        await token_service.refund_tokens(db_session, test_user.id, amount)
    with pytest.raises(ValidationFailed):
        await token_service.grant_tokens(db_session, test_user.id, amount)


@pytest.mark.asyncio
async def test_refund_credits_balance(db_session, test_user, grant):
    await grant(test_user, 50)
    await token_service.spend_tokens(db_session, test_user.id, 20)
    tokens = await token_service.refund_tokens(
        db_session, test_user.id, 20, reference_id="1", reference_type="job_post_refund"
    )
    await db_session.commit()
    assert tokens.balance == 50

    kinds = [t.kind for t in await token_service.get_history(db_session, test_user.id)]
    assert kinds == ["refund", "usage", "admin_grant"]


@pytest.mark.asyncio
async def test_admin_grant_and_statistics(client: AsyncClient, admin_headers, auth_headers, test_user):
    response = await client.post(
        "/api/v1/admin/tokens/grant",
        json={"user_id": test_user.id, "amount": 75, "description": "Welcome bonus"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["data"]["balance"] == 75

    await client.post(
        "/api/v1/tokens/purchase",
        json={"package_id": "basic", "payment_reference": "pay_basic"},
        headers=auth_headers,
    )

    stats = await client.get("/api/v1/admin/tokens/stats", headers=admin_headers)
    assert stats.status_code == 200
    data = stats.json()["data"]
    assert data["total_tokens_in_circulation"] == 175
    assert data["total_tokens_purchased"] == 100
    assert data["total_tokens_used"] == 0
    assert data["total_revenue"] == "9.99"
    assert data["top_users"][0]["user_id"] == test_user.id


@pytest.mark.asyncio
async def test_grant_requires_admin(client: AsyncClient, auth_headers, test_user):
    response = await client.post(
        "/api/v1/admin/tokens/grant",
        json={"user_id": test_user.id, "amount": 1000},
        headers=auth_headers,
    )
    assert response.status_code == 403
