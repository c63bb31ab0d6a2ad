"""Booking endpoints."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...schemas import (
    BookingComplete,
    BookingCompletionResult,
    BookingCreate,
    BookingRead,
    BookingUpdate,
    ErrorResponse,
)
from ...services import booking_service
from ...services.booking_service import BookingRuleViolation

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.post(
    "",
    response_model=BookingRead,
    status_code=status.HTTP_201_CREATED,
    summary="Schedule a session",
    responses={404: {"model": ErrorResponse, "description": "Student not found"}},
)
def create_booking(
    payload: BookingCreate,
    db: Session = Depends(get_db),
) -> BookingRead:
    """Create a pending booking.

    Example request body::

        {
            "studentId": 7,
            "tutorId": 12,
            "scheduledAt": "2025-03-01T14:00:00Z",
            "duration": 60,
            "price": "15.00"
        }
    """

    try:
        booking = booking_service.create_booking(db, **payload.model_dump())
        db.commit()
        db.refresh(booking)
        return booking
    except BookingRuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc


@router.get("", response_model=List[BookingRead], summary="List bookings")
def list_bookings(
    *,
    status_filter: Optional[str] = Query(None, alias="status", description="Status or 'all'"),
    student_id: Optional[int] = Query(None, alias="studentId", description="Filter by student"),
    tutor_id: Optional[int] = Query(None, alias="tutorId", description="Filter by tutor"),
    limit: int = Query(50, ge=1, le=100, description="Maximum items to return"),
    offset: int = Query(0, ge=0, description="Items to skip for pagination"),
    db: Session = Depends(get_db),
) -> List[BookingRead]:
    try:
        bookings = booking_service.list_bookings(
            db,
            status=status_filter,
            student_id=student_id,
            tutor_id=tutor_id,
            limit=limit,
            offset=offset,
        )
    except BookingRuleViolation as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
    return list(bookings)


@router.get(
    "/{booking_id}",
    response_model=BookingRead,
    summary="Get a booking",
    responses={404: {"model": ErrorResponse, "description": "Booking not found"}},
)
def get_booking(
    booking_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
) -> BookingRead:
    try:
        return booking_service.get_booking(db, booking_id)
    except BookingRuleViolation as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc


@router.patch(
    "/{booking_id}",
    response_model=BookingRead,
    summary="Update a booking",
    responses={
        400: {"model": ErrorResponse, "description": "Completion requested through update"},
        404: {"model": ErrorResponse, "description": "Booking not found"},
        409: {"model": ErrorResponse, "description": "Booking already completed"},
    },
)
def update_booking(
    payload: BookingUpdate,
    booking_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
) -> BookingRead:
    try:
        booking = booking_service.update_booking(db, booking_id, **payload.model_dump(exclude_unset=True))
        db.commit()
        db.refresh(booking)
        return booking
    except BookingRuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc


@router.post(
    "/{booking_id}/complete",
    response_model=BookingCompletionResult,
    summary="Mark a session completed",
    responses={
        400: {"model": ErrorResponse, "description": "Booking was cancelled"},
        404: {"model": ErrorResponse, "description": "Booking not found"},
        409: {"model": ErrorResponse, "description": "Booking already completed"},
    },
)
def complete_booking(
    payload: Optional[BookingComplete] = None,
    booking_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
) -> BookingCompletionResult:
    """Complete a session; credit eligible sessions take the institution's credit value."""

    payload = payload or BookingComplete()
    try:
        booking = booking_service.complete_booking(
            db,
            booking_id,
            completion_notes=payload.completion_notes,
            is_credit_eligible=payload.is_credit_eligible,
        )
        db.commit()
        db.refresh(booking)
        return BookingCompletionResult(message="Session completed successfully", booking=BookingRead.model_validate(booking))
    except BookingRuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
