"""
Administrative views: user moderation, platform-wide listings and stats.
"""

from decimal import Decimal
from typing import Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.base import utcnow
from app.models.booking import Booking
from app.models.custom_trip import CustomTripRequest
from app.models.job import Job
from app.models.trip import Trip
from app.models.user import User
from app.services import notification_service
from app.core.exceptions import NotAuthorized, UserNotFound, ValidationFailed
from app.core.logging import get_logger

logger = get_logger(__name__)


async def list_users(
    db: AsyncSession,
    role: Optional[str] = None,
    status: Optional[str] = None,
) -> list[User]:
    query = select(User)
    if role:
        query = query.where(User.role == role)
    if status:
        query = query.where(User.status == status)
    result = await db.execute(query.order_by(User.created_at.desc(), User.id.desc()))
    return list(result.scalars().all())


async def get_user(db: AsyncSession, user_id: int) -> User:
    user = await db.get(User, user_id)
    if user is None:
        raise UserNotFound()
    return user


async def suspend_user(db: AsyncSession, user_id: int, admin_id: int, reason: Optional[str] = None) -> User:
    if user_id == admin_id:
        raise NotAuthorized("Admins cannot suspend themselves")

    user = await get_user(db, user_id)
    if user.status == "deleted":
        raise ValidationFailed("Cannot suspend a deleted account")

    user.status = "suspended"
    await db.flush()
    await db.refresh(user)

    await notification_service.notify_system(
        db,
        user.id,
        "Account suspended",
        f"Your account has been suspended{': ' + reason if reason else ''}",
    )

    logger.warning("user_suspended", user_id=user.id, admin_id=admin_id, reason=reason)
    return user


async def reactivate_user(db: AsyncSession, user_id: int, admin_id: int) -> User:
    user = await get_user(db, user_id)
    if user.status != "suspended":
        raise ValidationFailed(f"Cannot reactivate a {user.status} account")

    user.status = "active"
    await db.flush()
    await db.refresh(user)

    await notification_service.notify_system(db, user.id, "Account reactivated", "Your account is active again")

    logger.info("user_reactivated", user_id=user.id, admin_id=admin_id)
    return user


async def delete_user(db: AsyncSession, user_id: int, admin_id: int) -> User:
    """Accounts are closed, never removed: bookings and ledger rows keep pointing at them."""
    if user_id == admin_id:
        raise NotAuthorized("Admins cannot delete themselves")

    user = await get_user(db, user_id)
    user.status = "deleted"
    user.deleted_at = utcnow()
    await db.flush()
    await db.refresh(user)

    logger.warning("user_deleted", user_id=user.id, admin_id=admin_id)
    return user


async def list_trips(db: AsyncSession, status: Optional[str] = None) -> list[Trip]:
    query = select(Trip)
    if status:
        query = query.where(Trip.status == status)
    result = await db.execute(query.order_by(Trip.created_at.desc(), Trip.id.desc()))
    return list(result.scalars().all())


async def list_bookings(db: AsyncSession, status: Optional[str] = None) -> list[Booking]:
    query = select(Booking)
    if status:
        query = query.where(Booking.status == status)
    result = await db.execute(query.order_by(Booking.booking_date.desc(), Booking.id.desc()))
    return list(result.scalars().all())


async def get_system_stats(db: AsyncSession) -> dict:
    users_by_role = dict((await db.execute(select(User.role, func.count(User.id)).group_by(User.role))).all())
    users_by_status = dict((await db.execute(select(User.status, func.count(User.id)).group_by(User.status))).all())
    bookings_by_status = dict(
        (await db.execute(select(Booking.status, func.count(Booking.id)).group_by(Booking.status))).all()
    )

    # Revenue counts confirmed and completed bookings only
    revenue = (
        await db.execute(
            select(func.coalesce(func.sum(Booking.total_price), 0)).where(
                Booking.status.in_(("confirmed", "completed"))
            )
        )
    ).scalar()

    active_trips = (await db.execute(select(func.count(Trip.id)).where(Trip.status == "active"))).scalar()
    open_jobs = (
        await db.execute(select(func.count(Job.id)).where(Job.status == "open", Job.deleted_at.is_(None)))
    ).scalar()
    pending_custom_trips = (
        await db.execute(select(func.count(CustomTripRequest.id)).where(CustomTripRequest.status == "pending"))
    ).scalar()

    return {
        "users_by_role": {role: int(count) for role, count in users_by_role.items()},
        "active_users": int(users_by_status.get("active", 0)),
        "suspended_users": int(users_by_status.get("suspended", 0)),
        "active_trips": int(active_trips or 0),
        "total_bookings": int(sum(bookings_by_status.values())),
        "bookings_by_status": {status: int(count) for status, count in bookings_by_status.items()},
        "revenue": Decimal(str(revenue or 0)).quantize(Decimal("0.01")),
        "open_jobs": int(open_jobs or 0),
        "pending_custom_trips": int(pending_custom_trips or 0),
    }
