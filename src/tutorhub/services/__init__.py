"""Service layer exports."""

from . import (
	booking_service,
	credit_service,
	credit_sweep_service,
	institution_service,
	user_service,
)

__all__ = [
	"booking_service",
	"credit_service",
	"credit_sweep_service",
	"institution_service",
	"user_service",
]
