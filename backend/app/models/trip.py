"""
Trip model with seat inventory and a denormalized rating aggregate.

Key design decisions:
- `available_seats` is denormalized remaining capacity (no COUNT over bookings)
- CHECK constraints keep 0 <= available_seats <= max_seats at the DB level
- `average_rating` / `total_reviews` are recomputed in full on each review
"""

from sqlalchemy import (
    Column, Integer, String, Text, Numeric, Date, DateTime, JSON, ForeignKey, CheckConstraint, Index,
)

from app.db.base import Base, TimestampMixin


class Trip(Base, TimestampMixin):
    __tablename__ = "trips"

    id = Column(Integer, primary_key=True, index=True)
    agent_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    itinerary = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    max_seats = Column(Integer, nullable=False)
    available_seats = Column(Integer, nullable=False)
    location = Column(String(255), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    status = Column(String(20), nullable=False, default="active")  # active, inactive, deleted
    average_rating = Column(Numeric(3, 2), nullable=False, default=0)
    total_reviews = Column(Integer, nullable=False, default=0)
    images = Column(JSON, nullable=True)
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint("available_seats >= 0", name="check_trip_available_seats_non_negative"),
        CheckConstraint("max_seats > 0", name="check_trip_max_seats_positive"),
        CheckConstraint("available_seats <= max_seats", name="check_trip_available_lte_max"),
        CheckConstraint("status IN ('active', 'inactive', 'deleted')", name="check_trip_status"),
        Index("ix_trips_status_created", "status", "created_at"),
        Index("ix_trips_location", "location"),
        Index("ix_trips_start_date", "start_date"),
    )

    def __repr__(self) -> str:
        return f"<Trip(id={self.id}, title={self.title}, available={self.available_seats}/{self.max_seats})>"
