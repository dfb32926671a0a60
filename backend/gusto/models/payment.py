"""
Payment model: one row per successful registration, written in the same
transaction as the participant.
"""

import uuid

from sqlalchemy import CheckConstraint, Column, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import relationship

from gusto.db.base import Base, TimestampMixin


class Payment(Base, TimestampMixin):
    __tablename__ = "payments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(Integer, nullable=False, default=250)
    screenshot_url = Column(Text, nullable=False)
    transaction_id = Column(String(100), nullable=False)
    status = Column(String(20), nullable=False, default="PENDING")  # verified by organizers later

    participant = relationship("Participant", back_populates="payments")

    __table_args__ = (
        CheckConstraint("amount >= 0", name="check_payment_amount_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<Payment(user={self.user_id}, amount={self.amount}, txn={self.transaction_id})>"
