"""Pydantic schemas for booking endpoints."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import Field

from ..models import BookingStatus
from .common import APIModel


class BookingCreate(APIModel):
    """Request body for scheduling a session."""

    student_id: int
    tutor_id: int
    scheduled_at: datetime
    duration: int = Field(..., gt=0, description="Session length in minutes.")
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    notes: Optional[str] = None


class BookingUpdate(APIModel):
    """Partial update of a booking."""

    scheduled_at: Optional[datetime] = None
    duration: Optional[int] = Field(None, gt=0)
    status: Optional[BookingStatus] = None
    notes: Optional[str] = None


class BookingComplete(APIModel):
    """Request body for marking a session completed."""

    completion_notes: Optional[str] = None
    is_credit_eligible: bool = False


class BookingRead(APIModel):
    """Booking response payload."""

    id: int
    student_id: int
    tutor_id: int
    scheduled_at: datetime
    duration: int
    price: Decimal
    status: BookingStatus
    notes: Optional[str]
    is_credit_eligible: bool
    credit_value: Optional[Decimal]
    completed_at: Optional[datetime]
    completion_notes: Optional[str]
    institution_approved: bool
    approved_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime


class BookingCompletionResult(APIModel):
    """Response returned after completing a session."""

    message: str
    booking: BookingRead
