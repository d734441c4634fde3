"""
Pydantic schemas for notifications.
"""

from datetime import datetime
from typing import Any, Literal, Optional
from pydantic import AliasChoices, BaseModel, Field


class NotificationResponse(BaseModel):
    id: int
    title: str
    message: str
    type: str
    is_read: bool
    metadata: Optional[dict[str, Any]] = Field(None, validation_alias=AliasChoices("extra", "metadata"))
    created_at: datetime
    read_at: Optional[datetime]

    model_config = {"from_attributes": True}


class NotificationList(BaseModel):
    notifications: list[NotificationResponse]
    unread_count: int


class CountResponse(BaseModel):
    count: int


class NotificationBroadcast(BaseModel):
    role: Literal["client", "agent", "admin"]
    title: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1, max_length=2000)
