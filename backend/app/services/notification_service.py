"""
In-app notifications.

Notifications are a side channel: business flows write them into the
current session and never read them back.
"""

from datetime import timedelta
from typing import Any, Optional

from sqlalchemy import select, update, delete, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.base import utcnow
from app.models.notification import Notification
from app.models.user import User
from app.core.config import get_settings
from app.core.logging import get_logger

logger = get_logger(__name__)
settings = get_settings()

NOTIFICATION_TYPES = ("booking", "cancellation", "job_update", "system")


async def create_notification(
    db: AsyncSession,
    user_id: int,
    title: str,
    message: str,
    type: str,
    metadata: Optional[dict[str, Any]] = None,
) -> Notification:
    notification = Notification(user_id=user_id, title=title, message=message, type=type, extra=metadata)
    db.add(notification)
    await db.flush()
    await db.refresh(notification)
    logger.debug("notification_created", user_id=user_id, type=type, notification_id=notification.id)
    return notification


async def notify_booking(db: AsyncSession, user_id: int, title: str, message: str, metadata=None):
    return await create_notification(db, user_id, title, message, "booking", metadata)


async def notify_cancellation(db: AsyncSession, user_id: int, title: str, message: str, metadata=None):
    return await create_notification(db, user_id, title, message, "cancellation", metadata)


async def notify_job_update(db: AsyncSession, user_id: int, title: str, message: str, metadata=None):
    return await create_notification(db, user_id, title, message, "job_update", metadata)


async def notify_system(db: AsyncSession, user_id: int, title: str, message: str, metadata=None):
    return await create_notification(db, user_id, title, message, "system", metadata)


async def get_user_notifications(
    db: AsyncSession,
    user_id: int,
    limit: int = 50,
    unread_only: bool = False,
) -> list[Notification]:
    query = select(Notification).where(Notification.user_id == user_id)
    if unread_only:
        query = query.where(Notification.is_read.is_(False))

    result = await db.execute(
        query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit)
    )
    return list(result.scalars().all())


async def mark_as_read(db: AsyncSession, notification_id: int, user_id: int) -> Optional[Notification]:
    result = await db.execute(
        select(Notification).where(Notification.id == notification_id, Notification.user_id == user_id)
    )
    notification = result.scalar_one_or_none()
    if notification is None:
        return None

    if not notification.is_read:
        notification.is_read = True
        notification.read_at = utcnow()
        await db.flush()
        await db.refresh(notification)
    return notification


async def mark_all_as_read(db: AsyncSession, user_id: int) -> int:
    result = await db.execute(
        update(Notification)
        .where(Notification.user_id == user_id, Notification.is_read.is_(False))
        .values(is_read=True, read_at=utcnow())
    )
    return result.rowcount


async def get_unread_count(db: AsyncSession, user_id: int) -> int:
    result = await db.execute(
        select(func.count(Notification.id)).where(
            Notification.user_id == user_id,
            Notification.is_read.is_(False),
        )
    )
    return result.scalar() or 0


async def delete_notification(db: AsyncSession, notification_id: int, user_id: int) -> bool:
    result = await db.execute(
        delete(Notification).where(Notification.id == notification_id, Notification.user_id == user_id)
    )
    return result.rowcount > 0


async def broadcast(
    db: AsyncSession,
    user_ids: list[int],
    title: str,
    message: str,
    type: str,
    metadata: Optional[dict[str, Any]] = None,
) -> list[Notification]:
    notifications = [
        Notification(user_id=user_id, title=title, message=message, type=type, extra=metadata)
        for user_id in user_ids
    ]
    db.add_all(notifications)
    await db.flush()
    logger.info("notifications_broadcast", recipients=len(notifications), type=type)
    return notifications


async def notify_users_by_role(
    db: AsyncSession,
    role: str,
    title: str,
    message: str,
    type: str,
    metadata: Optional[dict[str, Any]] = None,
) -> list[Notification]:
    """Send a notification to every active user holding `role`."""
    result = await db.execute(select(User.id).where(User.role == role, User.status == "active"))
    user_ids = list(result.scalars().all())
    if not user_ids:
        return []
    return await broadcast(db, user_ids, title, message, type, metadata)


async def cleanup_old_notifications(db: AsyncSession, days_old: Optional[int] = None) -> int:
    """Delete read notifications older than the retention window."""
    days = days_old if days_old is not None else settings.NOTIFICATION_RETENTION_DAYS
    cutoff = utcnow() - timedelta(days=days)
    result = await db.execute(
        delete(Notification).where(Notification.is_read.is_(True), Notification.read_at < cutoff)
    )
    logger.info("notifications_cleaned_up", deleted=result.rowcount, days_old=days)
    return result.rowcount
