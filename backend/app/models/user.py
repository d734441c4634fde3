"""
User model. Accounts are never hard-deleted; `status` carries the lifecycle.
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, CheckConstraint, Index

from app.db.base import Base, TimestampMixin


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    phone = Column(String(20), nullable=True)
    hashed_password = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default="client")  # client, agent, admin
    status = Column(String(20), nullable=False, default="active")  # active, suspended, deleted
    profile_image = Column(String(500), nullable=True)
    email_verified = Column(Boolean, nullable=False, default=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint("role IN ('client', 'agent', 'admin')", name="check_user_role"),
        CheckConstraint("status IN ('active', 'suspended', 'deleted')", name="check_user_status"),
        Index("ix_users_role", "role"),
        Index("ix_users_status", "status"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
