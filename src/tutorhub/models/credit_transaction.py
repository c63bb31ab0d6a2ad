"""Credit transaction model tracking a booking's path to credited."""

import enum

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from ..core.database import Base
from ..utils.datetime import utcnow


class CreditStatus(str, enum.Enum):
    """Review state; rejected and credited are terminal."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CREDITED = "credited"


class CreditTransaction(Base):
    """One credit claim per completed, credit-eligible booking."""

    __tablename__ = "credit_transactions"
    __table_args__ = (
        UniqueConstraint("booking_id", name="credit_transactions_booking_unique"),
        CheckConstraint("credits_earned >= 0", name="credit_transactions_credits_positive"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False)
    institution_id = Column(Integer, ForeignKey("institutions.id", ondelete="RESTRICT"), nullable=False)
    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="RESTRICT"), nullable=False)
    credits_earned = Column(Numeric(5, 2), nullable=False)
    academic_year = Column(String(20), nullable=False)
    status = Column(
        SAEnum(CreditStatus, name="credit_status", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=CreditStatus.PENDING,
    )
    submitted_at = Column(DateTime, default=utcnow, nullable=False)
    reviewed_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    reviewed_at = Column(DateTime)
    review_notes = Column(Text)
    credited_at = Column(DateTime)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    user = relationship("User", foreign_keys=[user_id], back_populates="credit_transactions")
    reviewer = relationship("User", foreign_keys=[reviewed_by])
    institution = relationship("Institution")
    booking = relationship("Booking", back_populates="credit_transaction")
