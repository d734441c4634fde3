"""
Trip booking flow: seat reservation, cancellation and reviews.

SEAT ACCOUNTING
===============

Problem:
  Two clients read available_seats=1 at the same time, both book, the trip
  is oversold.

Solution:
  The decrement is a single conditional statement:

    UPDATE trips SET available_seats = available_seats - :n
    WHERE id = :trip_id AND status = 'active' AND available_seats >= :n

  Zero rows affected means another booking took the seats first and the
  request fails with InsufficientSeats. The CHECK constraints
  (0 <= available_seats <= max_seats) are the final safety net.

  Cancellation restores seats with `available_seats + :n`, which needs no
  guard. The booking insert and the seat update share the request
  transaction, so they commit together.

Rating aggregate:
  After each review the trip's average_rating / total_reviews are
  overwritten with a fresh AVG / COUNT over its active reviews. This is a
  full recompute (O(reviews)) and therefore self-correcting.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.base import utcnow
from app.models.booking import Booking
from app.models.review import Review
from app.models.trip import Trip
from app.services import notification_service
from app.core.exceptions import (
    AlreadyCancelled,
    BookingNotFound,
    DuplicateReview,
    InsufficientSeats,
    InvalidStatusTransition,
    TripNotFound,
    ValidationFailed,
)
from app.core.logging import get_logger
from app.core.metrics import booking_cancellations, record_booking_attempt

logger = get_logger(__name__)

EXTERNAL_BOOKING_STATUSES = ("confirmed", "completed")

# Repeating the current status is allowed so payment details can be amended.
BOOKING_TRANSITIONS = {
    "pending": {"confirmed", "completed"},
    "confirmed": {"confirmed", "completed"},
    "completed": {"completed"},
}


async def book_trip(
    db: AsyncSession,
    trip_id: int,
    client_id: int,
    seats_booked: int,
) -> Booking:
    """Reserve seats on an active trip. The price is captured now and never recomputed."""
    if seats_booked <= 0:
        raise ValidationFailed("seats_booked must be positive")

    result = await db.execute(select(Trip).where(Trip.id == trip_id, Trip.status == "active"))
    trip = result.scalar_one_or_none()

    if not trip:
        record_booking_attempt("not_found")
        raise TripNotFound(f"Trip {trip_id} not found")

    if trip.available_seats < seats_booked:
        record_booking_attempt("no_seats")
        logger.warning(
            "booking_failed_no_seats",
            trip_id=trip_id,
            requested=seats_booked,
            available=trip.available_seats,
        )
        raise InsufficientSeats(
            f"Not enough seats available. Requested: {seats_booked}, Available: {trip.available_seats}"
        )

    update_result = await db.execute(
        update(Trip)
        .where(
            Trip.id == trip_id,
            Trip.status == "active",
            Trip.available_seats >= seats_booked,
        )
        .values(available_seats=Trip.available_seats - seats_booked, updated_at=utcnow())
    )
    if update_result.rowcount == 0:
        record_booking_attempt("no_seats")
        logger.info("booking_lost_race", trip_id=trip_id, requested=seats_booked)
        raise InsufficientSeats("Not enough seats available")

    booking = Booking(
        client_id=client_id,
        trip_id=trip_id,
        seats_booked=seats_booked,
        total_price=Decimal(trip.price) * seats_booked,
        status="pending",
        payment_status="pending",
    )
    db.add(booking)
    await db.flush()
    await db.refresh(booking)
    await db.refresh(trip)

    await notification_service.notify_booking(
        db,
        client_id,
        "Booking received",
        f"Your booking for '{trip.title}' ({seats_booked} seat(s)) is pending confirmation",
        {"booking_id": booking.id, "trip_id": trip_id},
    )

    record_booking_attempt("success")
    logger.info(
        "booking_created",
        booking_id=booking.id,
        client_id=client_id,
        trip_id=trip_id,
        seats=seats_booked,
        seats_left=trip.available_seats,
    )
    return booking


async def cancel_booking(
    db: AsyncSession,
    booking_id: int,
    client_id: int,
    reason: Optional[str] = None,
) -> Booking:
    """Cancel a client's booking and release its seats back to the trip."""
    result = await db.execute(
        select(Booking).where(Booking.id == booking_id, Booking.client_id == client_id)
    )
    booking = result.scalar_one_or_none()

    if not booking:
        raise BookingNotFound()

    if booking.status == "cancelled":
        raise AlreadyCancelled()

    booking.status = "cancelled"
    booking.cancellation_date = utcnow()
    booking.cancellation_reason = reason
    await db.flush()

    await db.execute(
        update(Trip)
        .where(Trip.id == booking.trip_id)
        .values(available_seats=Trip.available_seats + booking.seats_booked, updated_at=utcnow())
    )
    await db.refresh(booking)

    await notification_service.notify_cancellation(
        db,
        client_id,
        "Booking cancelled",
        f"Your booking #{booking.id} has been cancelled",
        {"booking_id": booking.id, "trip_id": booking.trip_id},
    )

    booking_cancellations.inc()
    logger.info(
        "booking_cancelled",
        booking_id=booking.id,
        client_id=client_id,
        trip_id=booking.trip_id,
        seats_restored=booking.seats_booked,
    )
    return booking


async def get_user_bookings(db: AsyncSession, client_id: int) -> list[dict]:
    """All bookings of a client, newest first, with trip title and location."""
    result = await db.execute(
        select(Booking, Trip.title, Trip.location)
        .outerjoin(Trip, Trip.id == Booking.trip_id)
        .where(Booking.client_id == client_id)
        .order_by(Booking.booking_date.desc(), Booking.id.desc())
    )
    return [
        {**booking_to_dict(booking), "trip_title": title, "trip_location": location}
        for booking, title, location in result.all()
    ]


async def update_booking_status(
    db: AsyncSession,
    booking_id: int,
    status: str,
    payment_status: Optional[str] = None,
    payment_reference: Optional[str] = None,
) -> Booking:
    """
    Externally driven transition (payment confirmation, trip completion).

    Cancelled bookings no longer hold seats and cannot be revived; a
    completed booking cannot go back to confirmed.
    """
    if status not in EXTERNAL_BOOKING_STATUSES:
        raise ValidationFailed(f"Unsupported booking status: {status}")

    booking = await db.get(Booking, booking_id)
    if not booking:
        raise BookingNotFound()

    if booking.status == "cancelled":
        raise AlreadyCancelled()
    if status not in BOOKING_TRANSITIONS[booking.status]:
        raise InvalidStatusTransition(f"Cannot move booking from {booking.status} to {status}")

    previous = booking.status
    booking.status = status
    if payment_status is not None:
        booking.payment_status = payment_status
    if payment_reference is not None:
        booking.payment_reference = payment_reference
    await db.flush()
    await db.refresh(booking)

    logger.info("booking_status_updated", booking_id=booking.id, previous=previous, status=status)
    return booking


async def submit_review(
    db: AsyncSession,
    client_id: int,
    trip_id: int,
    booking_id: int,
    rating: int,
    comment: Optional[str] = None,
) -> Review:
    """Review a completed booking and recompute the trip's rating aggregate."""
    if not 1 <= rating <= 5:
        raise ValidationFailed("Rating must be between 1 and 5")

    result = await db.execute(
        select(Booking).where(
            Booking.id == booking_id,
            Booking.client_id == client_id,
            Booking.trip_id == trip_id,
            Booking.status == "completed",
        )
    )
    if result.scalar_one_or_none() is None:
        raise BookingNotFound("Booking not found or not completed")

    existing = await db.execute(
        select(Review.id).where(Review.booking_id == booking_id, Review.client_id == client_id)
    )
    if existing.scalar_one_or_none() is not None:
        raise DuplicateReview()

    review = Review(
        client_id=client_id,
        trip_id=trip_id,
        booking_id=booking_id,
        rating=rating,
        comment=comment,
    )
    db.add(review)
    await db.flush()
    await db.refresh(review)

    average, count = await recompute_trip_rating(db, trip_id)

    logger.info(
        "review_submitted",
        review_id=review.id,
        trip_id=trip_id,
        rating=rating,
        average_rating=str(average),
        total_reviews=count,
    )
    return review


async def recompute_trip_rating(db: AsyncSession, trip_id: int) -> tuple[Decimal, int]:
    """Overwrite the trip's rating aggregate from its active reviews."""
    avg_rating, review_count = (
        await db.execute(
            select(func.avg(Review.rating), func.count(Review.id)).where(
                Review.trip_id == trip_id,
                Review.status == "active",
            )
        )
    ).one()

    average = Decimal(str(avg_rating or 0)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    await db.execute(
        update(Trip)
        .where(Trip.id == trip_id)
        .values(average_rating=average, total_reviews=review_count, updated_at=utcnow())
    )
    return average, review_count


def booking_to_dict(booking: Booking) -> dict:
    return {
        "id": booking.id,
        "client_id": booking.client_id,
        "trip_id": booking.trip_id,
        "seats_booked": booking.seats_booked,
        "total_price": booking.total_price,
        "status": booking.status,
        "payment_status": booking.payment_status,
        "payment_reference": booking.payment_reference,
        "booking_date": booking.booking_date,
        "cancellation_date": booking.cancellation_date,
        "cancellation_reason": booking.cancellation_reason,
    }
