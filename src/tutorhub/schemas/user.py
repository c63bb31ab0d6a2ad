"""Pydantic schemas for user endpoints."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import Field

from ..models import UserRole
from .common import APIModel


class UserSummary(APIModel):
    """Lightweight projection of user details."""

    id: int
    first_name: str
    last_name: str
    email: str


class UserCreate(APIModel):
    """Request body for creating a user."""

    email: str = Field(..., min_length=3, max_length=255)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    role: UserRole = UserRole.STUDENT
    institution_id: Optional[int] = None
    student_number: Optional[str] = Field(None, max_length=100)
    academic_year: Optional[str] = Field(None, max_length=20)


class UserRead(APIModel):
    """User response payload."""

    id: int
    email: str
    first_name: str
    last_name: str
    role: UserRole
    institution_id: Optional[int]
    student_number: Optional[str]
    credit_balance: Decimal
    academic_year: Optional[str]
    is_active: bool
    created_at: datetime
    updated_at: datetime


class CreditedUser(APIModel):
    """Balance view returned after credits are applied."""

    id: int
    first_name: str
    last_name: str
    credit_balance: Decimal
