"""Domain logic for session bookings."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..core.config import get_settings
from ..models import Booking, BookingStatus, Institution, User
from ..utils.datetime import utcnow

logger = logging.getLogger(__name__)


class BookingRuleViolation(Exception):
    """Raised when booking rules are violated."""

    def __init__(self, detail: str, status_code: int = 400) -> None:
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code


def _naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def get_booking(session: Session, booking_id: int) -> Booking:
    """Return a booking or raise a 404 violation."""

    booking = session.get(Booking, booking_id)
    if booking is None:
        raise BookingRuleViolation("Booking not found", status_code=404)
    return booking


def create_booking(
    session: Session,
    *,
    student_id: int,
    tutor_id: int,
    scheduled_at: datetime,
    duration: int,
    price: Decimal,
    notes: Optional[str] = None,
) -> Booking:
    """Schedule a pending session for an existing student."""

    if session.get(User, student_id) is None:
        raise BookingRuleViolation(f"Student {student_id} not found", status_code=404)

    booking = Booking(
        student_id=student_id,
        tutor_id=tutor_id,
        scheduled_at=_naive_utc(scheduled_at),
        duration=duration,
        price=price,
        status=BookingStatus.PENDING,
        notes=notes,
    )
    session.add(booking)
    session.flush()
    session.refresh(booking)
    return booking


def update_booking(
    session: Session,
    booking_id: int,
    *,
    scheduled_at: Optional[datetime] = None,
    duration: Optional[int] = None,
    status: Optional[BookingStatus] = None,
    notes: Optional[str] = None,
) -> Booking:
    """Apply a partial update; completion goes through :func:`complete_booking`."""

    booking = get_booking(session, booking_id)

    if status is not None and status != booking.status:
        if booking.status == BookingStatus.COMPLETED:
            raise BookingRuleViolation("Completed bookings cannot change status", status_code=409)
        if status == BookingStatus.COMPLETED:
            raise BookingRuleViolation("Use the complete endpoint to finish a session")
        booking.status = status

    if scheduled_at is not None:
        booking.scheduled_at = _naive_utc(scheduled_at)
    if duration is not None:
        booking.duration = duration
    if notes is not None:
        booking.notes = notes
    booking.updated_at = utcnow()

    session.flush()
    return booking


def _session_credit_value(session: Session, student_id: int) -> Decimal:
    student = session.get(User, student_id)
    if student is None or student.institution_id is None:
        return Decimal("0")

    institution = session.get(Institution, student.institution_id)
    if institution is None:
        return Decimal("0")

    if institution.credit_value_per_session is not None:
        return institution.credit_value_per_session
    return get_settings().default_credit_value


def complete_booking(
    session: Session,
    booking_id: int,
    *,
    completion_notes: Optional[str] = None,
    is_credit_eligible: bool = False,
) -> Booking:
    """Mark a session completed and fix its credit value.

    The credit value is taken from the student's institution when the session
    is credit eligible and stays zero otherwise.
    """

    booking = get_booking(session, booking_id)

    if booking.status == BookingStatus.COMPLETED:
        raise BookingRuleViolation("Booking is already completed", status_code=409)

    if booking.status == BookingStatus.CANCELLED:
        raise BookingRuleViolation("Cannot complete a cancelled booking")

    credit_value = Decimal("0")
    if is_credit_eligible:
        credit_value = _session_credit_value(session, booking.student_id)

    now = utcnow()
    booking.status = BookingStatus.COMPLETED
    booking.completed_at = now
    booking.completion_notes = completion_notes
    booking.is_credit_eligible = is_credit_eligible
    booking.credit_value = credit_value
    booking.updated_at = now
    session.flush()

    logger.info("booking %s completed (credit value %s)", booking.id, credit_value)
    return booking


def list_bookings(
    session: Session,
    *,
    status: Optional[str] = None,
    student_id: Optional[int] = None,
    tutor_id: Optional[int] = None,
    limit: int = 50,
    offset: int = 0,
) -> Sequence[Booking]:
    """Retrieve bookings, latest scheduled first. ``status="all"`` disables the filter."""

    stmt = select(Booking).order_by(Booking.scheduled_at.desc()).offset(offset).limit(limit)

    if status and status != "all":
        try:
            status_value = BookingStatus(status)
        except ValueError as exc:
            raise BookingRuleViolation(f"Unknown booking status '{status}'") from exc
        stmt = stmt.where(Booking.status == status_value)
    if student_id is not None:
        stmt = stmt.where(Booking.student_id == student_id)
    if tutor_id is not None:
        stmt = stmt.where(Booking.tutor_id == tutor_id)

    return session.execute(stmt).scalars().all()
