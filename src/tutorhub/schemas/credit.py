"""Pydantic schemas for the credit transaction workflow."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import Field

from ..models import CreditStatus
from .common import APIModel
from .user import CreditedUser, UserSummary


class CreditSubmit(APIModel):
    """Request body for submitting a completed booking for credit."""

    booking_id: int
    user_id: int


class CreditReview(APIModel):
    """Reviewer decision payload for approve and reject."""

    reviewed_by: int = Field(..., gt=0, description="Id of the reviewing faculty or admin user.")
    review_notes: Optional[str] = Field(None, max_length=2000)


class CreditTransactionRead(APIModel):
    """Credit transaction response payload."""

    id: int
    user_id: int
    institution_id: int
    booking_id: int
    credits_earned: Decimal
    academic_year: str
    status: CreditStatus
    submitted_at: datetime
    reviewed_by: Optional[int]
    reviewed_at: Optional[datetime]
    review_notes: Optional[str]
    credited_at: Optional[datetime]
    created_at: datetime
    user: Optional[UserSummary] = None


class CreditReviewResult(APIModel):
    """Response returned after an approve or reject decision."""

    message: str
    transaction: CreditTransactionRead


class CreditApplyResult(APIModel):
    """Response returned after credits are applied to a balance."""

    message: str
    transaction: CreditTransactionRead
    user: CreditedUser
