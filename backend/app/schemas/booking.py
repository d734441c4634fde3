"""
Pydantic schemas for booking-related request/response validation.
"""

from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional
from pydantic import BaseModel, Field


class BookingCreate(BaseModel):
    seats_booked: int = Field(default=1, gt=0, le=50)


class BookingCancel(BaseModel):
    reason: Optional[str] = Field(None, max_length=1000)


class BookingStatusUpdate(BaseModel):
    status: Literal["confirmed", "completed"]
    payment_status: Optional[Literal["pending", "paid", "failed", "refunded"]] = None
    payment_reference: Optional[str] = Field(None, max_length=255)


class BookingResponse(BaseModel):
    id: int
    client_id: int
    trip_id: int
    seats_booked: int
    total_price: Decimal
    status: str
    payment_status: str
    payment_reference: Optional[str]
    booking_date: datetime
    cancellation_date: Optional[datetime]
    cancellation_reason: Optional[str]

    model_config = {"from_attributes": True}


class BookingWithTrip(BookingResponse):
    trip_title: Optional[str] = None
    trip_location: Optional[str] = None


class TripBooking(BookingResponse):
    client_name: Optional[str] = None
    client_email: Optional[str] = None
