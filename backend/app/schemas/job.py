"""
Pydantic schemas for jobs and job applications.
"""

from datetime import date, datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field, HttpUrl

from app.schemas.custom_trip import CustomTripResponse


class JobCreate(BaseModel):
    custom_trip_id: Optional[int] = None
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=10, max_length=2000)
    token_cost: int = Field(..., ge=1, le=1000)
    category: Optional[str] = Field(None, max_length=100)
    location: Optional[str] = Field(None, max_length=255)
    application_deadline: Optional[date] = None


class JobUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, min_length=10, max_length=2000)
    token_cost: Optional[int] = Field(None, ge=1, le=1000)
    category: Optional[str] = Field(None, max_length=100)
    location: Optional[str] = Field(None, max_length=255)
    application_deadline: Optional[date] = None
    status: Optional[Literal["open", "closed"]] = None


class JobApplicationCreate(BaseModel):
    cover_letter: Optional[str] = Field(None, max_length=1000)
    portfolio_links: Optional[list[HttpUrl]] = Field(None, max_length=5)


class ApplicantAction(BaseModel):
    feedback: Optional[str] = Field(None, max_length=500)


class JobResponse(BaseModel):
    id: int
    client_id: int
    custom_trip_id: Optional[int]
    title: str
    description: str
    token_cost: int
    category: Optional[str]
    location: Optional[str]
    status: str
    application_deadline: Optional[date]
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class JobDetailResponse(JobResponse):
    client_name: Optional[str] = None
    custom_trip: Optional[CustomTripResponse] = None


class JobSummary(BaseModel):
    """Listing row with the applicant count computed at query time."""
    id: int
    client_id: int
    title: str
    description: str
    token_cost: int
    category: Optional[str]
    location: Optional[str]
    status: str
    application_deadline: Optional[date]
    created_at: datetime
    client_name: Optional[str] = None
    applications_count: int


class JobApplicationResponse(BaseModel):
    id: int
    job_id: int
    applicant_id: int
    status: str
    cover_letter: Optional[str]
    portfolio_links: Optional[list[str]]
    feedback: Optional[str]
    applied_at: datetime
    status_updated_at: datetime

    model_config = {"from_attributes": True}


class ApplicantResponse(JobApplicationResponse):
    applicant_name: Optional[str] = None
    applicant_email: Optional[str] = None


class MyApplicationResponse(JobApplicationResponse):
    job_title: Optional[str] = None
    job_status: Optional[str] = None
    job_token_cost: Optional[int] = None
    client_name: Optional[str] = None
