"""
Public contact form messages and their admin triage.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.contact import ContactMessage
from app.schemas.contact import ContactMessageCreate
from app.core.exceptions import ContactMessageNotFound
from app.core.logging import get_logger

logger = get_logger(__name__)


async def submit_message(
    db: AsyncSession,
    data: ContactMessageCreate,
    user_id: Optional[int] = None,
) -> ContactMessage:
    message = ContactMessage(user_id=user_id, status="new", **data.model_dump())
    db.add(message)
    await db.flush()
    await db.refresh(message)

    logger.info("contact_message_received", message_id=message.id, user_id=user_id)
    return message


async def list_messages(db: AsyncSession, status: Optional[str] = None) -> list[ContactMessage]:
    query = select(ContactMessage)
    if status:
        query = query.where(ContactMessage.status == status)
    result = await db.execute(query.order_by(ContactMessage.created_at.desc(), ContactMessage.id.desc()))
    return list(result.scalars().all())


async def update_status(db: AsyncSession, message_id: int, status: str, admin_id: int) -> ContactMessage:
    message = await db.get(ContactMessage, message_id)
    if message is None:
        raise ContactMessageNotFound()

    message.status = status
    if message.assigned_admin_id is None:
        message.assigned_admin_id = admin_id
    await db.flush()
    await db.refresh(message)

    logger.info("contact_message_updated", message_id=message.id, status=status, admin_id=admin_id)
    return message
