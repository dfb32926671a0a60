"""
Participant model (table `users`), the aggregate root of a registration.

Key design decisions:
- UNIQUE on email and on mobile: the registration service pre-checks both,
  but these constraints are what make concurrent duplicate submissions safe
- unique_code is the human-facing identifier; id is the opaque one
- checked_in / check_in_time are owned by event-day tooling, never written here
"""

import uuid

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, String, Uuid
from sqlalchemy.orm import relationship

from gusto.db.base import Base, TimestampMixin


class Participant(Base, TimestampMixin):
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    mobile = Column(String(15), unique=True, index=True, nullable=False)
    college = Column(String(255), nullable=False)
    year = Column(String(20), nullable=False)
    unique_code = Column(String(20), unique=True, index=True, nullable=False)
    food_preference = Column(String(20), nullable=False, default="VEG")
    checked_in = Column(Boolean, nullable=False, default=False)
    check_in_time = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    registrations = relationship("EventRegistration", back_populates="participant")
    payments = relationship("Payment", back_populates="participant")

    __table_args__ = (
        CheckConstraint("food_preference IN ('VEG', 'NON_VEG')", name="check_users_food_preference"),
    )

    def __repr__(self) -> str:
        return f"<Participant(id={self.id}, code={self.unique_code}, email={self.email})>"
