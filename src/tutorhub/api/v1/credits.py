"""Endpoints for the credit transaction workflow."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...models import CreditStatus
from ...schemas import (
    CreditApplyResult,
    CreditReview,
    CreditReviewResult,
    CreditSubmit,
    CreditTransactionRead,
    CreditedUser,
    ErrorResponse,
)
from ...services import credit_service
from ...services.credit_service import CreditRuleViolation

router = APIRouter(prefix="/credits", tags=["credits"])

_TRANSACTION_EXAMPLE = {
    "id": 3,
    "userId": 7,
    "institutionId": 1,
    "bookingId": 42,
    "creditsEarned": "0.50",
    "academicYear": "2024-2025",
    "status": "pending",
    "submittedAt": "2025-03-02T09:15:00",
    "reviewedBy": None,
    "reviewedAt": None,
    "reviewNotes": None,
    "creditedAt": None,
    "createdAt": "2025-03-02T09:15:00",
    "user": {"id": 7, "firstName": "Dara", "lastName": "Sok", "email": "dara.sok@example.edu"},
}


@router.post(
    "",
    response_model=CreditTransactionRead,
    status_code=status.HTTP_201_CREATED,
    summary="Submit a completed booking for credit",
    responses={
        201: {
            "description": "Credit transaction created",
            "content": {"application/json": {"example": _TRANSACTION_EXAMPLE}},
        },
        400: {"model": ErrorResponse, "description": "Booking not completed or not credit eligible"},
        404: {"model": ErrorResponse, "description": "Booking or user not found"},
        409: {"model": ErrorResponse, "description": "Booking already submitted"},
    },
)
def submit_credit(
    payload: CreditSubmit,
    db: Session = Depends(get_db),
) -> CreditTransactionRead:
    """Create a pending credit transaction.

    Example request body::

        {
            "bookingId": 42,
            "userId": 7
        }
    """

    try:
        transaction = credit_service.submit_for_credit(
            db,
            booking_id=payload.booking_id,
            user_id=payload.user_id,
        )
        db.commit()
        db.refresh(transaction)
        return transaction
    except CreditRuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc


@router.get(
    "",
    response_model=List[CreditTransactionRead],
    summary="List credit transactions",
    responses={
        200: {
            "description": "Paged transaction list",
            "content": {"application/json": {"example": [_TRANSACTION_EXAMPLE]}},
        }
    },
)
def list_credits(
    *,
    user_id: Optional[int] = Query(None, alias="userId", description="Filter by student"),
    institution_id: Optional[int] = Query(None, alias="institutionId", description="Filter by institution"),
    status_filter: Optional[CreditStatus] = Query(None, alias="status", description="Filter by status"),
    academic_year: Optional[str] = Query(None, alias="academicYear", description="Filter by academic year"),
    limit: int = Query(50, ge=1, le=100, description="Maximum items to return"),
    offset: int = Query(0, ge=0, description="Items to skip for pagination"),
    db: Session = Depends(get_db),
) -> List[CreditTransactionRead]:
    """Fetch transactions, newest submission first."""

    transactions = credit_service.list_transactions(
        db,
        user_id=user_id,
        institution_id=institution_id,
        status=status_filter,
        academic_year=academic_year,
        limit=limit,
        offset=offset,
    )
    return list(transactions)


@router.get(
    "/{transaction_id}",
    response_model=CreditTransactionRead,
    summary="Get a credit transaction",
    responses={404: {"model": ErrorResponse, "description": "Transaction not found"}},
)
def get_credit(
    transaction_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
) -> CreditTransactionRead:
    try:
        return credit_service.get_transaction(db, transaction_id)
    except CreditRuleViolation as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc


@router.post(
    "/{transaction_id}/approve",
    response_model=CreditReviewResult,
    summary="Approve a pending credit transaction",
    responses={
        400: {"model": ErrorResponse, "description": "Transaction already reviewed"},
        403: {"model": ErrorResponse, "description": "Reviewer lacks an authorized role"},
        404: {"model": ErrorResponse, "description": "Transaction not found"},
    },
)
def approve_credit(
    payload: CreditReview,
    transaction_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
) -> CreditReviewResult:
    """Approve a transaction on behalf of a faculty coordinator or admin.

    Example request body::

        {
            "reviewedBy": 2,
            "reviewNotes": "Session log verified"
        }
    """

    try:
        transaction = credit_service.approve(
            db,
            transaction_id=transaction_id,
            reviewed_by=payload.reviewed_by,
            review_notes=payload.review_notes,
        )
        db.commit()
        db.refresh(transaction)
        return CreditReviewResult(
            message="Credit transaction approved successfully",
            transaction=CreditTransactionRead.model_validate(transaction),
        )
    except CreditRuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc


@router.post(
    "/{transaction_id}/reject",
    response_model=CreditReviewResult,
    summary="Reject a pending credit transaction",
    responses={
        400: {"model": ErrorResponse, "description": "Missing review notes or already reviewed"},
        403: {"model": ErrorResponse, "description": "Reviewer lacks an authorized role"},
        404: {"model": ErrorResponse, "description": "Transaction not found"},
    },
)
def reject_credit(
    payload: CreditReview,
    transaction_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
) -> CreditReviewResult:
    """Reject a transaction; ``reviewNotes`` must explain why."""

    try:
        transaction = credit_service.reject(
            db,
            transaction_id=transaction_id,
            reviewed_by=payload.reviewed_by,
            review_notes=payload.review_notes,
        )
        db.commit()
        db.refresh(transaction)
        return CreditReviewResult(
            message="Credit transaction rejected",
            transaction=CreditTransactionRead.model_validate(transaction),
        )
    except CreditRuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc


@router.post(
    "/{transaction_id}/credit",
    response_model=CreditApplyResult,
    summary="Apply approved credits to the student's balance",
    responses={
        200: {
            "description": "Credits applied",
            "content": {
                "application/json": {
                    "example": {
                        "message": "Credits applied successfully",
                        "transaction": {**_TRANSACTION_EXAMPLE, "status": "credited"},
                        "user": {"id": 7, "firstName": "Dara", "lastName": "Sok", "creditBalance": "1.50"},
                    }
                }
            },
        },
        400: {"model": ErrorResponse, "description": "Transaction not approved"},
        404: {"model": ErrorResponse, "description": "Transaction not found"},
        409: {"model": ErrorResponse, "description": "Credits already applied"},
    },
)
def apply_credit(
    transaction_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
) -> CreditApplyResult:
    """Credit the balance, mark the transaction credited and the booking approved, atomically."""

    try:
        transaction, user = credit_service.apply_credits(db, transaction_id=transaction_id)
        db.commit()
        db.refresh(transaction)
        db.refresh(user)
        return CreditApplyResult(
            message="Credits applied successfully",
            transaction=CreditTransactionRead.model_validate(transaction),
            user=CreditedUser.model_validate(user),
        )
    except CreditRuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
