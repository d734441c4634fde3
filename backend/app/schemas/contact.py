"""
Pydantic schemas for contact messages.
"""

from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, EmailStr, Field


class ContactMessageCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    subject: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=10, max_length=5000)


class ContactStatusUpdate(BaseModel):
    status: Literal["new", "in_progress", "resolved", "closed"]


class ContactMessageResponse(BaseModel):
    id: int
    user_id: Optional[int]
    name: str
    email: str
    subject: str
    message: str
    status: str
    assigned_admin_id: Optional[int]
    created_at: datetime

    model_config = {"from_attributes": True}
