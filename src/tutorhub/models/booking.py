"""Booking model representing a scheduled tutoring session."""

import enum

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Enum as SAEnum, ForeignKey, Integer, Numeric, Text
from sqlalchemy.orm import relationship

from ..core.database import Base
from ..utils.datetime import utcnow


class BookingStatus(str, enum.Enum):
    """Lifecycle of a session booking."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Booking(Base):
    """Session between a student and a tutor, optionally worth credits."""

    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint("duration > 0", name="bookings_duration_positive"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    student_id = Column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False)
    tutor_id = Column(Integer, nullable=False)
    scheduled_at = Column(DateTime, nullable=False)
    duration = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    status = Column(
        SAEnum(BookingStatus, name="booking_status", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=BookingStatus.PENDING,
    )
    notes = Column(Text)
    is_credit_eligible = Column(Boolean, nullable=False, default=False)
    credit_value = Column(Numeric(5, 2), default=0)
    completed_at = Column(DateTime)
    completion_notes = Column(Text)
    institution_approved = Column(Boolean, nullable=False, default=False)
    approved_at = Column(DateTime)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False)

    student = relationship("User", back_populates="bookings")
    credit_transaction = relationship("CreditTransaction", back_populates="booking", uselist=False)
