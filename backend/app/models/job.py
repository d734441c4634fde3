"""
Short-term jobs posted by clients and the applications made to them.

- Posting a job costs `token_cost` tokens, paid upfront
- Jobs are soft-deleted via `deleted_at`
- One application per (job, applicant), also enforced by a unique constraint
"""

from sqlalchemy import (
    Column, Integer, String, Text, Date, DateTime, JSON, ForeignKey,
    CheckConstraint, UniqueConstraint, Index,
)

from app.db.base import Base, TimestampMixin, utcnow


class Job(Base, TimestampMixin):
    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    custom_trip_id = Column(Integer, ForeignKey("custom_trip_requests.id"), nullable=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    token_cost = Column(Integer, nullable=False)
    category = Column(String(100), nullable=True)
    location = Column(String(255), nullable=True)
    status = Column(String(20), nullable=False, default="open")  # open, closed, filled
    application_deadline = Column(Date, nullable=True)
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint("token_cost > 0", name="check_job_token_cost_positive"),
        CheckConstraint("status IN ('open', 'closed', 'filled')", name="check_job_status"),
        Index("ix_jobs_status_created", "status", "created_at"),
        Index("ix_jobs_category", "category"),
    )

    def __repr__(self) -> str:
        return f"<Job(id={self.id}, title={self.title}, status={self.status})>"


class JobApplication(Base):
    __tablename__ = "job_applications"

    id = Column(Integer, primary_key=True, index=True)
    job_id = Column(Integer, ForeignKey("jobs.id"), nullable=False, index=True)
    applicant_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default="pending")  # pending, accepted, rejected
    cover_letter = Column(Text, nullable=True)
    portfolio_links = Column(JSON, nullable=True)
    feedback = Column(Text, nullable=True)
    applied_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    status_updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        UniqueConstraint("job_id", "applicant_id", name="uq_job_applicant"),
        CheckConstraint("status IN ('pending', 'accepted', 'rejected')", name="check_application_status"),
    )

    def __repr__(self) -> str:
        return f"<JobApplication(id={self.id}, job={self.job_id}, applicant={self.applicant_id}, status={self.status})>"
