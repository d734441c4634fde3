"""
Pydantic schemas for admin reporting endpoints.
"""

from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field


class UserSuspend(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


class SystemStats(BaseModel):
    users_by_role: dict[str, int]
    active_users: int
    suspended_users: int
    active_trips: int
    total_bookings: int
    bookings_by_status: dict[str, int]
    revenue: Decimal
    open_jobs: int
    pending_custom_trips: int
