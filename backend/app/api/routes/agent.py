"""
Agent workspace: manage own trips and see the bookings made on them.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.models.user import User
from app.schemas.booking import BookingWithTrip, TripBooking
from app.schemas.common import ApiResponse
from app.schemas.trip import TripCreate, TripUpdate, TripResponse, AgentTripResponse, AgentTripDetail
from app.services import agent_service
from app.core.security import require_agent

router = APIRouter(prefix="/agent", tags=["Agent"])


@router.post("/trips", response_model=ApiResponse[TripResponse], status_code=status.HTTP_201_CREATED)
async def create_trip(
    trip_data: TripCreate,
    agent: User = Depends(require_agent),
    db: AsyncSession = Depends(get_db),
):
    trip = await agent_service.create_trip(db, agent.id, trip_data)
    return ApiResponse(message="Trip created successfully", data=TripResponse.model_validate(trip))


@router.get("/trips", response_model=ApiResponse[list[AgentTripResponse]])
async def list_trips(
    agent: User = Depends(require_agent),
    db: AsyncSession = Depends(get_db),
):
    rows = await agent_service.get_agent_trips(db, agent.id)
    data = [
        AgentTripResponse(**TripResponse.model_validate(row["trip"]).model_dump(), bookings_count=row["bookings_count"])
        for row in rows
    ]
    return ApiResponse(message="Trips retrieved successfully", data=data)


@router.get("/trips/{trip_id}", response_model=ApiResponse[AgentTripDetail])
async def get_trip(
    trip_id: int,
    agent: User = Depends(require_agent),
    db: AsyncSession = Depends(get_db),
):
    detail = await agent_service.get_agent_trip(db, trip_id, agent.id)
    data = AgentTripDetail(
        **TripResponse.model_validate(detail["trip"]).model_dump(),
        bookings=[TripBooking(**booking) for booking in detail["bookings"]],
    )
    return ApiResponse(message="Trip retrieved successfully", data=data)


@router.put("/trips/{trip_id}", response_model=ApiResponse[TripResponse])
async def update_trip(
    trip_id: int,
    patch: TripUpdate,
    agent: User = Depends(require_agent),
    db: AsyncSession = Depends(get_db),
):
    """Edit a trip. Refused once the trip has any booking."""
    trip = await agent_service.update_trip(db, trip_id, agent.id, patch)
    return ApiResponse(message="Trip updated successfully", data=TripResponse.model_validate(trip))


@router.delete("/trips/{trip_id}", response_model=ApiResponse[TripResponse])
async def delete_trip(
    trip_id: int,
    agent: User = Depends(require_agent),
    db: AsyncSession = Depends(get_db),
):
    trip = await agent_service.delete_trip(db, trip_id, agent.id)
    return ApiResponse(message="Trip deleted successfully", data=TripResponse.model_validate(trip))


@router.get("/bookings", response_model=ApiResponse[list[BookingWithTrip]])
async def list_bookings(
    agent: User = Depends(require_agent),
    db: AsyncSession = Depends(get_db),
):
    rows = await agent_service.get_agent_bookings(db, agent.id)
    return ApiResponse(message="Bookings retrieved successfully", data=[BookingWithTrip(**row) for row in rows])
