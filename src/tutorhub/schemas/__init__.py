"""Public schema exports."""

from .booking import BookingComplete, BookingCompletionResult, BookingCreate, BookingRead, BookingUpdate
from .common import APIModel, ErrorResponse
from .credit import CreditApplyResult, CreditReview, CreditReviewResult, CreditSubmit, CreditTransactionRead
from .institution import EnrollmentCreate, EnrollmentResult, InstitutionCreate, InstitutionRead
from .user import CreditedUser, UserCreate, UserRead, UserSummary

__all__ = [
	"APIModel",
	"BookingComplete",
	"BookingCompletionResult",
	"BookingCreate",
	"BookingRead",
	"BookingUpdate",
	"CreditApplyResult",
	"CreditReview",
	"CreditReviewResult",
	"CreditSubmit",
	"CreditTransactionRead",
	"CreditedUser",
	"EnrollmentCreate",
	"EnrollmentResult",
	"ErrorResponse",
	"InstitutionCreate",
	"InstitutionRead",
	"UserCreate",
	"UserRead",
	"UserSummary",
]
