"""
Pydantic schemas for trips and reviews.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field, model_validator

from app.schemas.booking import TripBooking


class TripCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=5000)
    itinerary: Optional[str] = Field(None, max_length=10000)
    price: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    max_seats: int = Field(..., gt=0, le=1000)
    location: str = Field(..., min_length=1, max_length=255)
    start_date: date
    end_date: date
    images: Optional[list[str]] = Field(None, max_length=20)

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class TripUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=5000)
    itinerary: Optional[str] = Field(None, max_length=10000)
    price: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    max_seats: Optional[int] = Field(None, gt=0, le=1000)
    location: Optional[str] = Field(None, min_length=1, max_length=255)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: Optional[str] = Field(None, pattern=r"^(active|inactive)$")
    images: Optional[list[str]] = Field(None, max_length=20)


class TripResponse(BaseModel):
    id: int
    agent_id: int
    title: str
    description: Optional[str]
    itinerary: Optional[str]
    price: Decimal
    max_seats: int
    available_seats: int
    location: str
    start_date: date
    end_date: date
    status: str
    average_rating: Decimal
    total_reviews: int
    images: Optional[list[str]]
    created_at: datetime

    model_config = {"from_attributes": True}


class AgentTripResponse(TripResponse):
    bookings_count: int = 0


class ReviewCreate(BaseModel):
    booking_id: int
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=2000)


class ReviewResponse(BaseModel):
    id: int
    client_id: int
    trip_id: int
    booking_id: int
    rating: int
    comment: Optional[str]
    status: str
    created_at: datetime

    model_config = {"from_attributes": True}


class TripReview(BaseModel):
    id: int
    rating: int
    comment: Optional[str]
    created_at: datetime
    client_name: Optional[str]


class TripDetailResponse(TripResponse):
    agent_name: Optional[str] = None
    reviews: list[TripReview] = []


class TripListResponse(BaseModel):
    trips: list[TripResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class AgentTripDetail(TripResponse):
    bookings: list[TripBooking] = []
