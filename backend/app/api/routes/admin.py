"""
Admin endpoints: moderation, ledger operations, reporting and the
external booking status trigger.
"""

from typing import Literal, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.models.user import User
from app.schemas.admin import UserSuspend, SystemStats
from app.schemas.booking import BookingResponse, BookingStatusUpdate
from app.schemas.common import ApiResponse
from app.schemas.contact import ContactMessageResponse, ContactStatusUpdate
from app.schemas.custom_trip import CustomTripAssign, CustomTripResponse
from app.schemas.notification import NotificationBroadcast, CountResponse
from app.schemas.token import TokenGrant, TokenBalanceResponse, TokenStatistics
from app.schemas.trip import TripResponse
from app.schemas.user import UserResponse
from app.services import (
    admin_service,
    booking_service,
    contact_service,
    custom_trip_service,
    notification_service,
    token_service,
)
from app.core.security import require_admin

router = APIRouter(prefix="/admin", tags=["Admin"], dependencies=[Depends(require_admin)])


# Users

@router.get("/users", response_model=ApiResponse[list[UserResponse]])
async def list_users(
    role: Optional[Literal["client", "agent", "admin"]] = None,
    status: Optional[Literal["active", "suspended", "deleted"]] = None,
    db: AsyncSession = Depends(get_db),
):
    users = await admin_service.list_users(db, role, status)
    return ApiResponse(message="Users retrieved successfully", data=[UserResponse.model_validate(u) for u in users])


@router.get("/users/{user_id}", response_model=ApiResponse[UserResponse])
async def get_user(user_id: int, db: AsyncSession = Depends(get_db)):
    user = await admin_service.get_user(db, user_id)
    return ApiResponse(message="User retrieved successfully", data=UserResponse.model_validate(user))


@router.post("/users/{user_id}/suspend", response_model=ApiResponse[UserResponse])
async def suspend_user(
    user_id: int,
    body: Optional[UserSuspend] = None,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    user = await admin_service.suspend_user(db, user_id, admin.id, reason=body.reason if body else None)
    return ApiResponse(message="User suspended", data=UserResponse.model_validate(user))


@router.post("/users/{user_id}/reactivate", response_model=ApiResponse[UserResponse])
async def reactivate_user(
    user_id: int,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    user = await admin_service.reactivate_user(db, user_id, admin.id)
    return ApiResponse(message="User reactivated", data=UserResponse.model_validate(user))


@router.delete("/users/{user_id}", response_model=ApiResponse[UserResponse])
async def delete_user(
    user_id: int,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    user = await admin_service.delete_user(db, user_id, admin.id)
    return ApiResponse(message="User deleted", data=UserResponse.model_validate(user))


# Tokens

@router.post("/tokens/grant", response_model=ApiResponse[TokenBalanceResponse])
async def grant_tokens(grant: TokenGrant, db: AsyncSession = Depends(get_db)):
    await admin_service.get_user(db, grant.user_id)
    tokens = await token_service.grant_tokens(db, grant.user_id, grant.amount, grant.description)
    return ApiResponse(message="Tokens granted successfully", data=TokenBalanceResponse.model_validate(tokens))


@router.get("/tokens/stats", response_model=ApiResponse[TokenStatistics])
async def token_statistics(db: AsyncSession = Depends(get_db)):
    stats = await token_service.get_statistics(db)
    return ApiResponse(message="Token statistics retrieved successfully", data=TokenStatistics(**stats))


# Reporting

@router.get("/stats", response_model=ApiResponse[SystemStats])
async def system_stats(db: AsyncSession = Depends(get_db)):
    stats = await admin_service.get_system_stats(db)
    return ApiResponse(message="System statistics retrieved successfully", data=SystemStats(**stats))


@router.get("/trips", response_model=ApiResponse[list[TripResponse]])
async def list_trips(
    status: Optional[Literal["active", "inactive", "deleted"]] = None,
    db: AsyncSession = Depends(get_db),
):
    trips = await admin_service.list_trips(db, status)
    return ApiResponse(message="Trips retrieved successfully", data=[TripResponse.model_validate(t) for t in trips])


@router.get("/bookings", response_model=ApiResponse[list[BookingResponse]])
async def list_bookings(
    status: Optional[Literal["pending", "confirmed", "cancelled", "completed"]] = None,
    db: AsyncSession = Depends(get_db),
):
    bookings = await admin_service.list_bookings(db, status)
    return ApiResponse(
        message="Bookings retrieved successfully",
        data=[BookingResponse.model_validate(b) for b in bookings],
    )


@router.patch("/bookings/{booking_id}/status", response_model=ApiResponse[BookingResponse])
async def update_booking_status(
    booking_id: int,
    update: BookingStatusUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Record payment confirmation or trip completion for a booking."""
    booking = await booking_service.update_booking_status(
        db, booking_id, update.status, update.payment_status, update.payment_reference
    )
    return ApiResponse(message="Booking status updated", data=BookingResponse.model_validate(booking))


# Custom trips

@router.get("/custom-trips", response_model=ApiResponse[list[CustomTripResponse]])
async def list_custom_trips(
    status: Optional[Literal["pending", "assigned", "responded", "completed", "cancelled"]] = None,
    db: AsyncSession = Depends(get_db),
):
    requests = await custom_trip_service.get_all_requests(db, status)
    return ApiResponse(
        message="Custom trip requests retrieved successfully",
        data=[CustomTripResponse.model_validate(r) for r in requests],
    )


@router.post("/custom-trips/{request_id}/assign", response_model=ApiResponse[CustomTripResponse])
async def assign_custom_trip(
    request_id: int,
    assign: CustomTripAssign,
    db: AsyncSession = Depends(get_db),
):
    request = await custom_trip_service.assign_agent(db, request_id, assign.agent_id)
    return ApiResponse(message="Agent assigned successfully", data=CustomTripResponse.model_validate(request))


# Contact messages

@router.get("/contact-messages", response_model=ApiResponse[list[ContactMessageResponse]])
async def list_contact_messages(
    status: Optional[Literal["new", "in_progress", "resolved", "closed"]] = None,
    db: AsyncSession = Depends(get_db),
):
    messages = await contact_service.list_messages(db, status)
    return ApiResponse(
        message="Contact messages retrieved successfully",
        data=[ContactMessageResponse.model_validate(m) for m in messages],
    )


@router.put("/contact-messages/{message_id}/status", response_model=ApiResponse[ContactMessageResponse])
async def update_contact_message(
    message_id: int,
    update: ContactStatusUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    message = await contact_service.update_status(db, message_id, update.status, admin.id)
    return ApiResponse(message="Contact message updated", data=ContactMessageResponse.model_validate(message))


# Notifications

@router.post("/notifications/broadcast", response_model=ApiResponse[CountResponse])
async def broadcast_notification(broadcast: NotificationBroadcast, db: AsyncSession = Depends(get_db)):
    notifications = await notification_service.notify_users_by_role(
        db, broadcast.role, broadcast.title, broadcast.message, "system"
    )
    return ApiResponse(message="Notification broadcast sent", data=CountResponse(count=len(notifications)))


@router.post("/notifications/cleanup", response_model=ApiResponse[CountResponse])
async def cleanup_notifications(db: AsyncSession = Depends(get_db)):
    """Delete read notifications older than the configured retention window."""
    deleted = await notification_service.cleanup_old_notifications(db)
    return ApiResponse(message="Old notifications removed", data=CountResponse(count=deleted))
