"""
Review of a completed booking. One review per booking.
"""

from sqlalchemy import Column, Integer, String, Text, ForeignKey, CheckConstraint, UniqueConstraint

from app.db.base import Base, TimestampMixin


class Review(Base, TimestampMixin):
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    trip_id = Column(Integer, ForeignKey("trips.id"), nullable=False, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=False)
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default="active")  # active, hidden, flagged

    __table_args__ = (
        UniqueConstraint("booking_id", name="uq_review_booking"),
        CheckConstraint("rating BETWEEN 1 AND 5", name="check_review_rating_range"),
        CheckConstraint("status IN ('active', 'hidden', 'flagged')", name="check_review_status"),
    )

    def __repr__(self) -> str:
        return f"<Review(id={self.id}, trip={self.trip_id}, rating={self.rating})>"
