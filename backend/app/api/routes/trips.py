"""
Public trip catalog plus the client actions taken on a trip: booking and review.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.schemas.booking import BookingCreate, BookingResponse
from app.schemas.common import ApiResponse
from app.schemas.trip import (
    TripResponse,
    TripDetailResponse,
    TripListResponse,
    TripReview,
    ReviewCreate,
    ReviewResponse,
)
from app.services import trip_service, booking_service
from app.core.security import get_active_user_id

router = APIRouter(prefix="/trips", tags=["Trips"])


@router.get("", response_model=ApiResponse[TripListResponse])
async def list_trips(
    location: Optional[str] = Query(None, max_length=255),
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    min_price: Optional[Decimal] = Query(None, ge=0),
    max_price: Optional[Decimal] = Query(None, ge=0),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    """Active trips, newest first, optionally filtered by location, dates and price."""
    result = await trip_service.list_trips(
        db,
        location=location,
        start_date=start_date,
        end_date=end_date,
        min_price=min_price,
        max_price=max_price,
        page=page,
        page_size=page_size,
    )
    result["trips"] = [TripResponse.model_validate(trip) for trip in result["trips"]]
    return ApiResponse(message="Trips retrieved successfully", data=TripListResponse(**result))


@router.get("/trending", response_model=ApiResponse[list[TripResponse]])
async def list_trending_trips(
    limit: int = Query(10, ge=1, le=50),
    db: AsyncSession = Depends(get_db),
):
    trips = await trip_service.get_trending_trips(db, limit)
    return ApiResponse(
        message="Trending trips retrieved successfully",
        data=[TripResponse.model_validate(trip) for trip in trips],
    )


@router.get("/{trip_id}", response_model=ApiResponse[TripDetailResponse])
async def get_trip(trip_id: int, db: AsyncSession = Depends(get_db)):
    detail = await trip_service.get_trip(db, trip_id)
    data = TripDetailResponse(
        **TripResponse.model_validate(detail["trip"]).model_dump(),
        agent_name=detail["agent_name"],
        reviews=[TripReview(**review) for review in detail["reviews"]],
    )
    return ApiResponse(message="Trip retrieved successfully", data=data)


@router.post("/{trip_id}/book", response_model=ApiResponse[BookingResponse], status_code=status.HTTP_201_CREATED)
async def book_trip(
    trip_id: int,
    booking_data: BookingCreate,
    user_id: int = Depends(get_active_user_id),
    db: AsyncSession = Depends(get_db),
):
    """
    Reserve seats on a trip.

    The seat decrement is a conditional update, so concurrent bookings can
    never oversell; the loser gets a 400 insufficient_seats error.
    """
    booking = await booking_service.book_trip(db, trip_id, user_id, booking_data.seats_booked)
    return ApiResponse(message="Trip booked successfully", data=BookingResponse.model_validate(booking))


@router.post(
    "/{trip_id}/review",
    response_model=ApiResponse[ReviewResponse],
    status_code=status.HTTP_201_CREATED,
)
async def review_trip(
    trip_id: int,
    review_data: ReviewCreate,
    user_id: int = Depends(get_active_user_id),
    db: AsyncSession = Depends(get_db),
):
    review = await booking_service.submit_review(
        db,
        user_id,
        trip_id,
        review_data.booking_id,
        review_data.rating,
        review_data.comment,
    )
    return ApiResponse(message="Review submitted successfully", data=ReviewResponse.model_validate(review))
