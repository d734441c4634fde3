"""
Pydantic schemas for custom trip requests.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Literal, Optional
from pydantic import BaseModel, Field, model_validator


class CustomTripCreate(BaseModel):
    destination: str = Field(..., min_length=1, max_length=255)
    budget: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    interests: Optional[str] = Field(None, max_length=2000)
    preferred_start_date: Optional[date] = None
    preferred_end_date: Optional[date] = None
    group_size: int = Field(default=1, ge=1, le=100)
    client_notes: Optional[str] = Field(None, max_length=2000)

    @model_validator(mode="after")
    def check_dates(self):
        if (
            self.preferred_start_date
            and self.preferred_end_date
            and self.preferred_end_date < self.preferred_start_date
        ):
            raise ValueError("preferred_end_date must not be before preferred_start_date")
        return self


class CustomTripAssign(BaseModel):
    agent_id: int


class CustomTripStatusUpdate(BaseModel):
    status: Literal["responded", "completed", "cancelled"]
    agent_response: Optional[str] = Field(None, max_length=5000)
    quoted_price: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)


class CustomTripResponse(BaseModel):
    id: int
    client_id: int
    assigned_agent_id: Optional[int]
    destination: str
    budget: Decimal
    interests: Optional[str]
    preferred_start_date: Optional[date]
    preferred_end_date: Optional[date]
    group_size: int
    status: str
    client_notes: Optional[str]
    agent_response: Optional[str]
    quoted_price: Optional[Decimal]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
