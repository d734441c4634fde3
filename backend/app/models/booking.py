"""
Booking model representing a client's reservation on a trip.

- `total_price` is captured at booking time and never recomputed
- Status field allows cancellation without deleting records
- pending -> confirmed/completed transitions are driven externally (admin)
"""

from sqlalchemy import Column, Integer, String, Text, Numeric, DateTime, ForeignKey, CheckConstraint, Index

from app.db.base import Base, TimestampMixin, utcnow


class Booking(Base, TimestampMixin):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    trip_id = Column(Integer, ForeignKey("trips.id"), nullable=False, index=True)
    seats_booked = Column(Integer, nullable=False)
    total_price = Column(Numeric(10, 2), nullable=False)
    status = Column(String(20), nullable=False, default="pending")  # pending, confirmed, cancelled, completed
    payment_status = Column(String(20), nullable=False, default="pending")  # pending, paid, failed, refunded
    payment_reference = Column(String(255), nullable=True)
    booking_date = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    cancellation_date = Column(DateTime(timezone=True), nullable=True)
    cancellation_reason = Column(Text, nullable=True)

    __table_args__ = (
        CheckConstraint("seats_booked > 0", name="check_booking_seats_positive"),
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'cancelled', 'completed')",
            name="check_booking_status",
        ),
        CheckConstraint(
            "payment_status IN ('pending', 'paid', 'failed', 'refunded')",
            name="check_booking_payment_status",
        ),
        Index("ix_bookings_status", "status"),
    )

    def __repr__(self) -> str:
        return f"<Booking(id={self.id}, client={self.client_id}, trip={self.trip_id}, status={self.status})>"
