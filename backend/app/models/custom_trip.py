"""
Custom trip request submitted by a client and optionally handled by an agent.
"""

from sqlalchemy import Column, Integer, String, Text, Numeric, Date, ForeignKey, CheckConstraint, Index

from app.db.base import Base, TimestampMixin


class CustomTripRequest(Base, TimestampMixin):
    __tablename__ = "custom_trip_requests"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    assigned_agent_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    destination = Column(String(255), nullable=False)
    budget = Column(Numeric(10, 2), nullable=False)
    interests = Column(Text, nullable=True)
    preferred_start_date = Column(Date, nullable=True)
    preferred_end_date = Column(Date, nullable=True)
    group_size = Column(Integer, nullable=False, default=1)
    status = Column(String(20), nullable=False, default="pending")
    client_notes = Column(Text, nullable=True)
    agent_response = Column(Text, nullable=True)
    quoted_price = Column(Numeric(10, 2), nullable=True)

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'assigned', 'responded', 'completed', 'cancelled')",
            name="check_custom_trip_status",
        ),
        Index("ix_custom_trip_requests_status", "status"),
    )

    def __repr__(self) -> str:
        return f"<CustomTripRequest(id={self.id}, destination={self.destination}, status={self.status})>"
