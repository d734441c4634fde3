"""
Custom trip requests from the client side and their handling by agents.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.models.user import User
from app.schemas.common import ApiResponse
from app.schemas.custom_trip import CustomTripCreate, CustomTripResponse, CustomTripStatusUpdate
from app.services import custom_trip_service
from app.core.security import get_current_user

router = APIRouter(prefix="/custom-trips", tags=["Custom Trips"])


@router.post("", response_model=ApiResponse[CustomTripResponse], status_code=status.HTTP_201_CREATED)
async def create_request(
    data: CustomTripCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    request = await custom_trip_service.create_request(db, user.id, data)
    return ApiResponse(
        message="Custom trip request submitted successfully",
        data=CustomTripResponse.model_validate(request),
    )


@router.get("", response_model=ApiResponse[list[CustomTripResponse]])
async def list_my_requests(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    requests = await custom_trip_service.get_client_requests(db, user.id)
    return ApiResponse(
        message="Custom trip requests retrieved successfully",
        data=[CustomTripResponse.model_validate(r) for r in requests],
    )


@router.get("/{request_id}", response_model=ApiResponse[CustomTripResponse])
async def get_request(
    request_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    request = await custom_trip_service.get_request(db, request_id, user)
    return ApiResponse(message="Custom trip request retrieved successfully", data=CustomTripResponse.model_validate(request))


@router.patch("/{request_id}/status", response_model=ApiResponse[CustomTripResponse])
async def update_status(
    request_id: int,
    update: CustomTripStatusUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Quote, complete or cancel a request. The client may only cancel."""
    request = await custom_trip_service.update_status(db, request_id, user, update)
    return ApiResponse(message="Custom trip request updated successfully", data=CustomTripResponse.model_validate(request))
