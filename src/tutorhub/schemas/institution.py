"""Pydantic schemas for institutions and enrollment."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import Field

from ..models import InstitutionType
from .common import APIModel
from .user import UserRead


class InstitutionCreate(APIModel):
    """Request body for registering an institution."""

    name: str = Field(..., min_length=1, max_length=200)
    slug: str = Field(..., min_length=1, max_length=200, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    type: InstitutionType
    description: Optional[str] = None
    city: Optional[str] = Field(None, max_length=100)
    contact_email: Optional[str] = Field(None, max_length=255)
    credit_requirement_min: int = Field(3, ge=0)
    credit_requirement_max: int = Field(6, ge=0)
    credit_value_per_session: Decimal = Field(Decimal("0.5"), ge=0, max_digits=5, decimal_places=2)
    allow_cross_institution: bool = True
    require_approval: bool = True
    is_active: bool = True
    create_partnership: bool = Field(True, description="Create the default free partnership.")


class InstitutionRead(APIModel):
    """Institution response payload."""

    id: int
    name: str
    slug: str
    type: InstitutionType
    description: Optional[str]
    city: Optional[str]
    contact_email: Optional[str]
    credit_requirement_min: Optional[int]
    credit_requirement_max: Optional[int]
    credit_value_per_session: Optional[Decimal]
    allow_cross_institution: bool
    require_approval: bool
    is_active: bool
    created_at: datetime
    updated_at: datetime


class EnrollmentCreate(APIModel):
    """Request body for enrolling a user."""

    user_id: int
    student_number: Optional[str] = Field(None, max_length=100)
    academic_year: Optional[str] = Field(None, max_length=20)


class EnrollmentResult(APIModel):
    """Response returned after enrolling or unenrolling a user."""

    message: str
    user: UserRead
