"""
Messages submitted through the public contact form.
"""

from sqlalchemy import Column, Integer, String, Text, ForeignKey, CheckConstraint

from app.db.base import Base, TimestampMixin


class ContactMessage(Base, TimestampMixin):
    __tablename__ = "contact_messages"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    subject = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    status = Column(String(20), nullable=False, default="new")  # new, in_progress, resolved, closed
    assigned_admin_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    __table_args__ = (
        CheckConstraint(
            "status IN ('new', 'in_progress', 'resolved', 'closed')",
            name="check_contact_message_status",
        ),
    )
