"""
Token ledger: per-user integer balances plus an append-only transaction log.

LEDGER STRATEGY
===============

Balance rows are mutated with single conditional statements instead of
read-modify-write:

  debit:  UPDATE tokens SET balance = balance - :amt
          WHERE user_id = :id AND balance >= :amt
  credit: UPDATE tokens SET balance = balance + :amt WHERE user_id = :id

A debit that affects zero rows lost to a concurrent spend (or never had the
funds) and is rejected with InsufficientBalance. The CHECK (balance >= 0)
constraint is the final safety net.

The transaction-log row is written in the same session as the balance
update, so both land in the request's single commit (see app.db.session).

Sign convention: usage rows store a negative amount, purchase / refund /
admin_grant rows a positive one.
"""

from decimal import Decimal
from typing import Optional

from sqlalchemy import select, update, func, case
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.base import utcnow
from app.models.token import TokenBalance, TokenTransaction
from app.models.user import User
from app.schemas.token import TokenPackage
from app.core.config import get_settings
from app.core.exceptions import InsufficientBalance, InvalidPackage, ValidationFailed
from app.core.logging import get_logger
from app.core.metrics import record_ledger_operation, record_ledger_rejection

logger = get_logger(__name__)
settings = get_settings()

TOKEN_PACKAGES: list[TokenPackage] = [
    TokenPackage(
        id="basic",
        name="Basic Package",
        tokens=100,
        price=Decimal("9.99"),
        description="Perfect for occasional use",
    ),
    TokenPackage(
        id="standard",
        name="Standard Package",
        tokens=500,
        price=Decimal("39.99"),
        bonus=50,
        description="Most popular choice",
    ),
    TokenPackage(
        id="premium",
        name="Premium Package",
        tokens=1000,
        price=Decimal("69.99"),
        bonus=150,
        description="Best value for heavy users",
    ),
    TokenPackage(
        id="enterprise",
        name="Enterprise Package",
        tokens=2500,
        price=Decimal("149.99"),
        bonus=500,
        description="For business users",
    ),
]

_PACKAGES_BY_ID = {package.id: package for package in TOKEN_PACKAGES}


def list_packages() -> list[TokenPackage]:
    return TOKEN_PACKAGES


def get_package(package_id: str) -> TokenPackage:
    package = _PACKAGES_BY_ID.get(package_id)
    if package is None:
        record_ledger_rejection("invalid_package")
        raise InvalidPackage(f"Invalid token package: {package_id}")
    return package


def _require_positive(amount: int) -> None:
    if amount <= 0:
        raise ValidationFailed("Token amount must be a positive integer")


async def get_balance(db: AsyncSession, user_id: int) -> TokenBalance:
    """Return the user's balance row, creating it with balance 0 on first access."""
    result = await db.execute(select(TokenBalance).where(TokenBalance.user_id == user_id))
    tokens = result.scalar_one_or_none()

    if tokens is None:
        tokens = TokenBalance(user_id=user_id, balance=0)
        db.add(tokens)
        await db.flush()
        await db.refresh(tokens)
        logger.info("token_balance_created", user_id=user_id)

    return tokens


async def _credit(db: AsyncSession, user_id: int, amount: int) -> TokenBalance:
    tokens = await get_balance(db, user_id)
    await db.execute(
        update(TokenBalance)
        .where(TokenBalance.user_id == user_id)
        .values(balance=TokenBalance.balance + amount, updated_at=utcnow())
    )
    await db.refresh(tokens)
    return tokens


async def _log_transaction(db: AsyncSession, **values) -> TokenTransaction:
    transaction = TokenTransaction(**values)
    db.add(transaction)
    await db.flush()
    await db.refresh(transaction)
    record_ledger_operation(transaction.kind, transaction.amount)
    return transaction


async def purchase_tokens(
    db: AsyncSession,
    user_id: int,
    package_id: str,
    payment_reference: str,
) -> tuple[TokenBalance, TokenTransaction]:
    """Credit a catalog package (tokens + bonus) and log the purchase."""
    package = get_package(package_id)
    total_tokens = package.total_tokens

    tokens = await _credit(db, user_id, total_tokens)

    description = f"Purchased {package.name} - {package.tokens} tokens"
    if package.bonus:
        description += f" + {package.bonus} bonus"

    transaction = await _log_transaction(
        db,
        user_id=user_id,
        kind="purchase",
        amount=total_tokens,
        cost=package.price,
        payment_reference=payment_reference,
        description=description,
    )

    logger.info(
        "tokens_purchased",
        user_id=user_id,
        package_id=package_id,
        tokens=total_tokens,
        balance=tokens.balance,
    )
    return tokens, transaction


async def spend_tokens(
    db: AsyncSession,
    user_id: int,
    amount: int,
    reference_id: Optional[str] = None,
    reference_type: Optional[str] = None,
    description: Optional[str] = None,
) -> TokenBalance:
    """Debit `amount` tokens. Fails with InsufficientBalance, leaving the balance untouched."""
    _require_positive(amount)
    tokens = await get_balance(db, user_id)

    update_result = await db.execute(
        update(TokenBalance)
        .where(
            TokenBalance.user_id == user_id,
            TokenBalance.balance >= amount,
        )
        .values(balance=TokenBalance.balance - amount, updated_at=utcnow())
    )

    if update_result.rowcount == 0:
        await db.refresh(tokens)
        record_ledger_rejection("insufficient_balance")
        logger.warning(
            "token_spend_rejected",
            user_id=user_id,
            requested=amount,
            balance=tokens.balance,
        )
        raise InsufficientBalance(
            f"Insufficient token balance. Requested: {amount}, Available: {tokens.balance}"
        )

    await db.refresh(tokens)
    await _log_transaction(
        db,
        user_id=user_id,
        kind="usage",
        amount=-amount,
        reference_id=reference_id,
        reference_type=reference_type,
        description=description or "Token usage",
    )

    logger.info(
        "tokens_spent",
        user_id=user_id,
        amount=amount,
        reference_type=reference_type,
        reference_id=reference_id,
        balance=tokens.balance,
    )
    return tokens


async def refund_tokens(
    db: AsyncSession,
    user_id: int,
    amount: int,
    reference_id: Optional[str] = None,
    reference_type: Optional[str] = None,
    description: Optional[str] = None,
) -> TokenBalance:
    _require_positive(amount)
    tokens = await _credit(db, user_id, amount)
    await _log_transaction(
        db,
        user_id=user_id,
        kind="refund",
        amount=amount,
        reference_id=reference_id,
        reference_type=reference_type,
        description=description or "Token refund",
    )

    logger.info("tokens_refunded", user_id=user_id, amount=amount, reference_id=reference_id)
    return tokens


async def grant_tokens(
    db: AsyncSession,
    user_id: int,
    amount: int,
    description: Optional[str] = None,
) -> TokenBalance:
    _require_positive(amount)
    tokens = await _credit(db, user_id, amount)
    await _log_transaction(
        db,
        user_id=user_id,
        kind="admin_grant",
        amount=amount,
        description=description or "Admin granted tokens",
    )

    logger.info("tokens_granted", user_id=user_id, amount=amount)
    return tokens


async def get_history(db: AsyncSession, user_id: int, limit: Optional[int] = None) -> list[TokenTransaction]:
    """Transactions for a user, newest first."""
    result = await db.execute(
        select(TokenTransaction)
        .where(TokenTransaction.user_id == user_id)
        .order_by(TokenTransaction.created_at.desc(), TokenTransaction.id.desc())
        .limit(limit or settings.TOKEN_HISTORY_LIMIT)
    )
    return list(result.scalars().all())


async def get_statistics(db: AsyncSession) -> dict:
    """Ledger-wide totals and the ten largest balances."""
    balances = (
        await db.execute(
            select(
                func.count(TokenBalance.id),
                func.coalesce(func.sum(TokenBalance.balance), 0),
            )
        )
    ).one()

    totals = (
        await db.execute(
            select(
                func.coalesce(
                    func.sum(case((TokenTransaction.kind == "purchase", TokenTransaction.amount), else_=0)), 0
                ),
                func.coalesce(
                    func.sum(case((TokenTransaction.kind == "usage", func.abs(TokenTransaction.amount)), else_=0)), 0
                ),
                func.coalesce(
                    func.sum(case((TokenTransaction.kind == "purchase", TokenTransaction.cost), else_=0)), 0
                ),
            )
        )
    ).one()

    top_rows = await db.execute(
        select(TokenBalance.user_id, TokenBalance.balance, User.name, User.email)
        .outerjoin(User, User.id == TokenBalance.user_id)
        .order_by(TokenBalance.balance.desc(), TokenBalance.user_id.asc())
        .limit(10)
    )

    return {
        "total_users": int(balances[0]),
        "total_tokens_in_circulation": int(balances[1]),
        "total_tokens_purchased": int(totals[0]),
        "total_tokens_used": int(totals[1]),
        "total_revenue": Decimal(str(totals[2])).quantize(Decimal("0.01")),
        "top_users": [
            {"user_id": row.user_id, "balance": row.balance, "user_name": row.name, "user_email": row.email}
            for row in top_rows
        ],
    }
