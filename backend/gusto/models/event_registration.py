"""
EventRegistration model linking a participant to one catalog event.

Event ids are catalog keys, not foreign keys: the catalog is static data
shipped with the application, not a table.
"""

import uuid

from sqlalchemy import CheckConstraint, Column, ForeignKey, String, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from gusto.db.base import Base, TimestampMixin


class EventRegistration(Base, TimestampMixin):
    __tablename__ = "event_registrations"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    event_id = Column(String(50), nullable=False, index=True)
    fallback_event_id = Column(String(50), nullable=True)
    status = Column(String(30), nullable=False, default="CONFIRMED")
    attendance_status = Column(String(20), nullable=False, default="PENDING")

    participant = relationship("Participant", back_populates="registrations")

    __table_args__ = (
        UniqueConstraint("user_id", "event_id", name="uq_user_event_registration"),
        CheckConstraint(
            "status IN ('CONFIRMED', 'APPROVED', 'REJECTED')",
            name="check_event_registration_status",
        ),
        CheckConstraint(
            "attendance_status IN ('PENDING', 'NOT_REQUIRED', 'PRESENT', 'ABSENT')",
            name="check_event_registration_attendance",
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<EventRegistration(user={self.user_id}, event={self.event_id}, "
            f"fallback={self.fallback_event_id}, status={self.status})>"
        )
