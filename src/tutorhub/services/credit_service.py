"""Domain logic for the credit transaction lifecycle.

A completed, credit-eligible booking is submitted as a ``pending`` transaction,
reviewed into ``approved`` or ``rejected``, and an approved transaction is
finally ``credited`` to the student's balance. Status changes are applied with
conditional updates so two concurrent requests cannot both win a transition.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional, Sequence

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from ..core.config import get_settings
from ..models import (
    CREDIT_REVIEWER_ROLES,
    Booking,
    BookingStatus,
    CreditStatus,
    CreditTransaction,
    User,
)
from ..utils.datetime import current_academic_year, utcnow

logger = logging.getLogger(__name__)


class CreditRuleViolation(Exception):
    """Raised when a credit workflow rule is not met."""

    def __init__(self, detail: str, status_code: int = 400) -> None:
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code


def _ensure_transaction(session: Session, transaction_id: int) -> CreditTransaction:
    stmt = (
        select(CreditTransaction)
        .options(joinedload(CreditTransaction.user))
        .where(CreditTransaction.id == transaction_id)
    )
    transaction = session.execute(stmt).scalar_one_or_none()
    if transaction is None:
        raise CreditRuleViolation("Transaction not found", status_code=404)
    return transaction


def _ensure_reviewer(session: Session, reviewer_id: int, action: str) -> User:
    reviewer = session.get(User, reviewer_id)
    if reviewer is None or reviewer.role not in CREDIT_REVIEWER_ROLES:
        raise CreditRuleViolation(
            f"Only faculty coordinators or admins can {action} credits",
            status_code=403,
        )
    return reviewer


def get_transaction(session: Session, transaction_id: int) -> CreditTransaction:
    """Return a single transaction or raise a 404 violation."""

    return _ensure_transaction(session, transaction_id)


def submit_for_credit(session: Session, *, booking_id: int, user_id: int) -> CreditTransaction:
    """Create a pending transaction for a completed, credit-eligible booking."""

    booking = session.get(Booking, booking_id)
    if booking is None:
        raise CreditRuleViolation("Booking not found", status_code=404)

    if booking.status != BookingStatus.COMPLETED:
        raise CreditRuleViolation("Booking must be completed before submitting for credit")

    if not booking.is_credit_eligible:
        raise CreditRuleViolation("This booking is not eligible for credits")

    user = session.get(User, user_id)
    if user is None:
        raise CreditRuleViolation("User not found", status_code=404)

    if user.institution_id is None:
        raise CreditRuleViolation("User is not enrolled in an institution")

    existing_stmt = select(CreditTransaction.id).where(CreditTransaction.booking_id == booking_id).limit(1)
    if session.execute(existing_stmt).scalar_one_or_none() is not None:
        raise CreditRuleViolation("Credit transaction already exists for this booking", status_code=409)

    credits_earned = booking.credit_value
    if credits_earned is None:
        credits_earned = get_settings().default_credit_value

    transaction = CreditTransaction(
        user_id=user.id,
        institution_id=user.institution_id,
        booking_id=booking.id,
        credits_earned=credits_earned,
        academic_year=user.academic_year or current_academic_year(),
        status=CreditStatus.PENDING,
    )
    session.add(transaction)
    try:
        session.flush()
    except IntegrityError as exc:
        # Concurrent submission won the unique booking_id constraint
        raise CreditRuleViolation(
            "Credit transaction already exists for this booking",
            status_code=409,
        ) from exc

    logger.info("credit transaction %s submitted for booking %s", transaction.id, booking.id)
    return transaction


def _review(
    session: Session,
    *,
    transaction_id: int,
    reviewed_by: int,
    review_notes: Optional[str],
    target: CreditStatus,
    action: str,
) -> CreditTransaction:
    transaction = _ensure_transaction(session, transaction_id)
    if transaction.status != CreditStatus.PENDING:
        raise CreditRuleViolation(f"Transaction is already {transaction.status.value}")

    _ensure_reviewer(session, reviewed_by, action)

    result = session.execute(
        update(CreditTransaction)
        .where(
            CreditTransaction.id == transaction_id,
            CreditTransaction.status == CreditStatus.PENDING,
        )
        .values(
            status=target,
            reviewed_by=reviewed_by,
            reviewed_at=utcnow(),
            review_notes=review_notes,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        session.refresh(transaction)
        raise CreditRuleViolation(f"Transaction is already {transaction.status.value}")

    session.refresh(transaction)
    logger.info("credit transaction %s %s by user %s", transaction_id, target.value, reviewed_by)
    return transaction


def approve(
    session: Session,
    *,
    transaction_id: int,
    reviewed_by: int,
    review_notes: Optional[str] = None,
) -> CreditTransaction:
    """Move a pending transaction to approved."""

    return _review(
        session,
        transaction_id=transaction_id,
        reviewed_by=reviewed_by,
        review_notes=review_notes,
        target=CreditStatus.APPROVED,
        action="approve",
    )


def reject(
    session: Session,
    *,
    transaction_id: int,
    reviewed_by: int,
    review_notes: Optional[str],
) -> CreditTransaction:
    """Move a pending transaction to rejected; review notes are mandatory."""

    if not review_notes or not review_notes.strip():
        raise CreditRuleViolation("reviewedBy and reviewNotes are required for rejection")

    return _review(
        session,
        transaction_id=transaction_id,
        reviewed_by=reviewed_by,
        review_notes=review_notes,
        target=CreditStatus.REJECTED,
        action="reject",
    )


def apply_credits(session: Session, *, transaction_id: int) -> tuple[CreditTransaction, User]:
    """Credit an approved transaction to the student's balance.

    The balance increment, the status flip and the booking approval are
    flushed in the caller's database transaction, so they commit or roll back
    together. The status flip is conditional on ``approved`` with no
    ``credited_at`` and runs first, which makes a second concurrent call a
    409 instead of a double credit.
    """

    transaction = _ensure_transaction(session, transaction_id)
    if transaction.status == CreditStatus.CREDITED or transaction.credited_at is not None:
        raise CreditRuleViolation(
            "Credits have already been applied for this transaction",
            status_code=409,
        )

    if transaction.status != CreditStatus.APPROVED:
        raise CreditRuleViolation("Transaction must be approved before crediting")

    now = utcnow()
    claimed = session.execute(
        update(CreditTransaction)
        .where(
            CreditTransaction.id == transaction_id,
            CreditTransaction.status == CreditStatus.APPROVED,
            CreditTransaction.credited_at.is_(None),
        )
        .values(status=CreditStatus.CREDITED, credited_at=now)
        .execution_options(synchronize_session=False)
    )
    if claimed.rowcount == 0:
        raise CreditRuleViolation(
            "Credits have already been applied for this transaction",
            status_code=409,
        )

    amount: Decimal = transaction.credits_earned
    session.execute(
        update(User)
        .where(User.id == transaction.user_id)
        .values(credit_balance=User.credit_balance + amount, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    session.execute(
        update(Booking)
        .where(Booking.id == transaction.booking_id)
        .values(institution_approved=True, approved_at=now, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    session.flush()

    session.refresh(transaction)
    user = session.get(User, transaction.user_id)
    session.refresh(user)

    logger.info(
        "credited %s to user %s for transaction %s",
        amount,
        transaction.user_id,
        transaction_id,
    )
    return transaction, user


def list_pending_credit_ids(session: Session) -> Sequence[int]:
    """Return ids of approved transactions whose credits are not yet applied."""

    stmt = (
        select(CreditTransaction.id)
        .where(
            CreditTransaction.status == CreditStatus.APPROVED,
            CreditTransaction.credited_at.is_(None),
        )
        .order_by(CreditTransaction.reviewed_at.asc(), CreditTransaction.id.asc())
    )
    return session.execute(stmt).scalars().all()


def list_transactions(
    session: Session,
    *,
    user_id: Optional[int] = None,
    institution_id: Optional[int] = None,
    status: Optional[CreditStatus] = None,
    academic_year: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
) -> Sequence[CreditTransaction]:
    """Retrieve transactions with optional filters, newest submission first."""

    stmt = (
        select(CreditTransaction)
        .options(joinedload(CreditTransaction.user))
        .order_by(CreditTransaction.submitted_at.desc(), CreditTransaction.id.desc())
        .offset(offset)
        .limit(limit)
    )

    if user_id is not None:
        stmt = stmt.where(CreditTransaction.user_id == user_id)
    if institution_id is not None:
        stmt = stmt.where(CreditTransaction.institution_id == institution_id)
    if status is not None:
        stmt = stmt.where(CreditTransaction.status == status)
    if academic_year:
        stmt = stmt.where(CreditTransaction.academic_year == academic_year)

    results = session.execute(stmt).scalars().all()
    return results
