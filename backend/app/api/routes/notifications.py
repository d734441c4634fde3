"""
In-app notification inbox of the authenticated user.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.schemas.common import ApiResponse
from app.schemas.notification import NotificationResponse, NotificationList, CountResponse
from app.services import notification_service
from app.core.exceptions import NotificationNotFound
from app.core.security import get_active_user_id

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("", response_model=ApiResponse[NotificationList])
async def list_notifications(
    limit: int = Query(50, ge=1, le=200),
    unread_only: bool = False,
    user_id: int = Depends(get_active_user_id),
    db: AsyncSession = Depends(get_db),
):
    notifications = await notification_service.get_user_notifications(db, user_id, limit, unread_only)
    unread = await notification_service.get_unread_count(db, user_id)
    return ApiResponse(
        message="Notifications retrieved successfully",
        data=NotificationList(
            notifications=[NotificationResponse.model_validate(n) for n in notifications],
            unread_count=unread,
        ),
    )


@router.get("/unread-count", response_model=ApiResponse[CountResponse])
async def unread_count(
    user_id: int = Depends(get_active_user_id),
    db: AsyncSession = Depends(get_db),
):
    count = await notification_service.get_unread_count(db, user_id)
    return ApiResponse(message="Unread count retrieved successfully", data=CountResponse(count=count))


@router.post("/read-all", response_model=ApiResponse[CountResponse])
async def mark_all_read(
    user_id: int = Depends(get_active_user_id),
    db: AsyncSession = Depends(get_db),
):
    count = await notification_service.mark_all_as_read(db, user_id)
    return ApiResponse(message="All notifications marked as read", data=CountResponse(count=count))


@router.post("/{notification_id}/read", response_model=ApiResponse[NotificationResponse])
async def mark_read(
    notification_id: int,
    user_id: int = Depends(get_active_user_id),
    db: AsyncSession = Depends(get_db),
):
    notification = await notification_service.mark_as_read(db, notification_id, user_id)
    if notification is None:
        raise NotificationNotFound()
    return ApiResponse(message="Notification marked as read", data=NotificationResponse.model_validate(notification))


@router.delete("/{notification_id}", response_model=ApiResponse[None])
async def delete_notification(
    notification_id: int,
    user_id: int = Depends(get_active_user_id),
    db: AsyncSession = Depends(get_db),
):
    if not await notification_service.delete_notification(db, notification_id, user_id):
        raise NotificationNotFound()
    return ApiResponse(message="Notification deleted successfully", data=None)
