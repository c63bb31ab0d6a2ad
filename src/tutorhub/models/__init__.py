"""SQLAlchemy models for TutorHub."""

from .booking import Booking, BookingStatus
from .credit_transaction import CreditStatus, CreditTransaction
from .institution import Institution, InstitutionType, Partnership, PartnershipTier
from .user import CREDIT_REVIEWER_ROLES, User, UserRole

__all__ = [
    "Booking",
    "BookingStatus",
    "CREDIT_REVIEWER_ROLES",
    "CreditStatus",
    "CreditTransaction",
    "Institution",
    "InstitutionType",
    "Partnership",
    "PartnershipTier",
    "User",
    "UserRole",
]
