"""
Custom trip requests.

Lifecycle: pending -> assigned (admin picks an agent) -> responded (agent
quotes) -> completed | cancelled. A client may cancel their own request
at any point before it is completed.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.custom_trip import CustomTripRequest
from app.models.user import User
from app.schemas.custom_trip import CustomTripCreate, CustomTripStatusUpdate
from app.services import notification_service
from app.core.exceptions import CustomTripNotFound, NotAuthorized, UserNotFound, ValidationFailed
from app.core.logging import get_logger

logger = get_logger(__name__)

# Allowed status moves for the assigned agent / an admin
STATUS_TRANSITIONS = {
    "pending": {"cancelled"},
    "assigned": {"responded", "cancelled"},
    "responded": {"responded", "completed", "cancelled"},
    "completed": set(),
    "cancelled": set(),
}


async def create_request(db: AsyncSession, client_id: int, data: CustomTripCreate) -> CustomTripRequest:
    request = CustomTripRequest(client_id=client_id, status="pending", **data.model_dump())
    db.add(request)
    await db.flush()
    await db.refresh(request)

    logger.info("custom_trip_requested", request_id=request.id, client_id=client_id)
    return request


async def get_client_requests(db: AsyncSession, client_id: int) -> list[CustomTripRequest]:
    result = await db.execute(
        select(CustomTripRequest)
        .where(CustomTripRequest.client_id == client_id)
        .order_by(CustomTripRequest.created_at.desc(), CustomTripRequest.id.desc())
    )
    return list(result.scalars().all())


async def get_request(db: AsyncSession, request_id: int, user: User) -> CustomTripRequest:
    """Visible to the requesting client, the assigned agent and admins."""
    request = await db.get(CustomTripRequest, request_id)
    if request is None:
        raise CustomTripNotFound()

    if user.role != "admin" and user.id not in (request.client_id, request.assigned_agent_id):
        raise CustomTripNotFound()
    return request


async def get_all_requests(db: AsyncSession, status: Optional[str] = None) -> list[CustomTripRequest]:
    query = select(CustomTripRequest)
    if status:
        query = query.where(CustomTripRequest.status == status)
    result = await db.execute(query.order_by(CustomTripRequest.created_at.desc(), CustomTripRequest.id.desc()))
    return list(result.scalars().all())


async def assign_agent(db: AsyncSession, request_id: int, agent_id: int) -> CustomTripRequest:
    agent = (
        await db.execute(
            select(User).where(User.id == agent_id, User.role == "agent", User.status == "active")
        )
    ).scalar_one_or_none()
    if agent is None:
        raise UserNotFound("Agent not found or inactive")

    request = await db.get(CustomTripRequest, request_id)
    if request is None:
        raise CustomTripNotFound()
    if request.status not in ("pending", "assigned"):
        raise ValidationFailed(f"Cannot assign an agent to a {request.status} request")

    request.assigned_agent_id = agent.id
    request.status = "assigned"
    await db.flush()
    await db.refresh(request)

    await notification_service.notify_system(
        db,
        agent.id,
        "New custom trip request",
        f"You have been assigned a custom trip request to {request.destination}",
        {"custom_trip_id": request.id},
    )

    logger.info("custom_trip_assigned", request_id=request.id, agent_id=agent.id)
    return request


async def update_status(
    db: AsyncSession,
    request_id: int,
    user: User,
    update: CustomTripStatusUpdate,
) -> CustomTripRequest:
    request = await db.get(CustomTripRequest, request_id)
    if request is None:
        raise CustomTripNotFound()

    is_owner = request.client_id == user.id
    is_handler = user.role == "admin" or request.assigned_agent_id == user.id
    if not is_handler and not (is_owner and update.status == "cancelled"):
        raise NotAuthorized("Only the assigned agent or an admin can update this request")

    if update.status not in STATUS_TRANSITIONS[request.status]:
        raise ValidationFailed(f"Cannot move custom trip request from {request.status} to {update.status}")

    previous = request.status
    request.status = update.status
    if update.agent_response:
        request.agent_response = update.agent_response
    if update.quoted_price is not None:
        request.quoted_price = update.quoted_price
    await db.flush()
    await db.refresh(request)

    if user.id != request.client_id:
        await notification_service.notify_system(
            db,
            request.client_id,
            "Custom trip request updated",
            f"Your custom trip request to {request.destination} is now {request.status}",
            {"custom_trip_id": request.id},
        )

    logger.info("custom_trip_status_updated", request_id=request.id, previous=previous, status=request.status)
    return request
