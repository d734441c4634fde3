"""
Agent-side trip management. Trips with bookings are frozen: they can be
neither edited nor deleted.
"""

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.base import utcnow
from app.models.booking import Booking
from app.models.trip import Trip
from app.models.user import User
from app.schemas.trip import TripCreate, TripUpdate
from app.services.booking_service import booking_to_dict
from app.core.exceptions import HasBookings, TripNotFound, ValidationFailed
from app.core.logging import get_logger

logger = get_logger(__name__)


async def create_trip(db: AsyncSession, agent_id: int, trip_data: TripCreate) -> Trip:
    trip = Trip(
        agent_id=agent_id,
        available_seats=trip_data.max_seats,  # All seats available initially
        status="active",
        **trip_data.model_dump(),
    )
    db.add(trip)
    await db.flush()
    await db.refresh(trip)

    logger.info("trip_created", trip_id=trip.id, agent_id=agent_id, seats=trip.max_seats)
    return trip


async def get_agent_trips(db: AsyncSession, agent_id: int) -> list[dict]:
    result = await db.execute(
        select(Trip, func.count(Booking.id).label("bookings_count"))
        .outerjoin(Booking, Booking.trip_id == Trip.id)
        .where(Trip.agent_id == agent_id, Trip.status != "deleted")
        .group_by(Trip.id)
        .order_by(Trip.created_at.desc(), Trip.id.desc())
    )
    return [{"trip": trip, "bookings_count": int(count or 0)} for trip, count in result.all()]


async def _get_agent_trip(db: AsyncSession, trip_id: int, agent_id: int) -> Trip:
    result = await db.execute(
        select(Trip).where(Trip.id == trip_id, Trip.agent_id == agent_id, Trip.status != "deleted")
    )
    trip = result.scalar_one_or_none()
    if not trip:
        raise TripNotFound("Trip not found or unauthorized")
    return trip


async def _count_bookings(db: AsyncSession, trip_id: int) -> int:
    result = await db.execute(select(func.count(Booking.id)).where(Booking.trip_id == trip_id))
    return result.scalar() or 0


async def get_agent_trip(db: AsyncSession, trip_id: int, agent_id: int) -> dict:
    """One of the agent's trips with every booking made on it."""
    trip = await _get_agent_trip(db, trip_id, agent_id)
    result = await db.execute(
        select(Booking, User.name, User.email)
        .outerjoin(User, User.id == Booking.client_id)
        .where(Booking.trip_id == trip_id)
        .order_by(Booking.booking_date.desc(), Booking.id.desc())
    )
    bookings = [
        {**booking_to_dict(booking), "client_name": name, "client_email": email}
        for booking, name, email in result.all()
    ]
    return {"trip": trip, "bookings": bookings}


async def update_trip(db: AsyncSession, trip_id: int, agent_id: int, patch: TripUpdate) -> Trip:
    trip = await _get_agent_trip(db, trip_id, agent_id)

    if await _count_bookings(db, trip_id) > 0:
        raise HasBookings("Cannot update trip with existing bookings")

    changes = patch.model_dump(exclude_unset=True)
    start = changes.get("start_date", trip.start_date)
    end = changes.get("end_date", trip.end_date)
    if end < start:
        raise ValidationFailed("end_date must not be before start_date")

    for field, value in changes.items():
        setattr(trip, field, value)
    # No bookings exist, so the whole new capacity is free
    if "max_seats" in changes:
        trip.available_seats = trip.max_seats

    await db.flush()
    await db.refresh(trip)

    logger.info("trip_updated", trip_id=trip.id, fields=sorted(changes))
    return trip


async def delete_trip(db: AsyncSession, trip_id: int, agent_id: int) -> Trip:
    """Soft delete. Only trips that never received a booking can be removed."""
    trip = await _get_agent_trip(db, trip_id, agent_id)

    if await _count_bookings(db, trip_id) > 0:
        raise HasBookings("Cannot delete trip with existing bookings")

    trip.status = "deleted"
    trip.deleted_at = utcnow()
    await db.flush()
    await db.refresh(trip)

    logger.info("trip_deleted", trip_id=trip.id, agent_id=agent_id)
    return trip


async def get_agent_bookings(db: AsyncSession, agent_id: int) -> list[dict]:
    """Bookings across all of the agent's trips."""
    result = await db.execute(
        select(Booking, Trip.title, Trip.location)
        .join(Trip, Trip.id == Booking.trip_id)
        .where(Trip.agent_id == agent_id)
        .order_by(Booking.booking_date.desc(), Booking.id.desc())
    )
    return [
        {**booking_to_dict(booking), "trip_title": title, "trip_location": location}
        for booking, title, location in result.all()
    ]
