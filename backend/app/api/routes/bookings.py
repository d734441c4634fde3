"""
Client booking endpoints. Seats are reserved through POST /trips/{id}/book.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.schemas.booking import BookingCancel, BookingResponse, BookingWithTrip
from app.schemas.common import ApiResponse
from app.services.booking_service import cancel_booking, get_user_bookings
from app.core.security import get_active_user_id

router = APIRouter(prefix="/bookings", tags=["Bookings"])


@router.get("", response_model=ApiResponse[list[BookingWithTrip]])
async def list_user_bookings(
    user_id: int = Depends(get_active_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Get all bookings for the authenticated user."""
    rows = await get_user_bookings(db, user_id)
    return ApiResponse(message="Bookings retrieved successfully", data=[BookingWithTrip(**row) for row in rows])


@router.post("/{booking_id}/cancel", response_model=ApiResponse[BookingResponse])
async def cancel_booking_endpoint(
    booking_id: int,
    cancel: Optional[BookingCancel] = None,
    user_id: int = Depends(get_active_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Cancel a booking and release seats back to the trip."""
    booking = await cancel_booking(db, booking_id, user_id, reason=cancel.reason if cancel else None)
    return ApiResponse(message="Booking cancelled successfully", data=BookingResponse.model_validate(booking))
