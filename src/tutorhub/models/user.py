"""User domain model."""

import enum

from sqlalchemy import Boolean, Column, DateTime, Enum as SAEnum, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship

from ..core.database import Base
from ..utils.datetime import utcnow


class UserRole(str, enum.Enum):
    """Roles a marketplace account can hold."""

    STUDENT = "student"
    TUTOR = "tutor"
    ADMIN = "admin"
    INSTITUTION_ADMIN = "institution_admin"
    FACULTY_COORDINATOR = "faculty_coordinator"
    STUDENT_COORDINATOR = "student_coordinator"
    VERIFIED_TUTOR = "verified_tutor"
    MENTEE = "mentee"
    INSTITUTION_VIEWER = "institution_viewer"
    SUPER_ADMIN = "super_admin"
    PARTNER_MANAGER = "partner_manager"


CREDIT_REVIEWER_ROLES = frozenset(
    {UserRole.FACULTY_COORDINATOR, UserRole.INSTITUTION_ADMIN, UserRole.ADMIN}
)


class User(Base):
    """Student, tutor or staff account, optionally enrolled in an institution."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    role = Column(
        SAEnum(UserRole, name="user_role", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    institution_id = Column(Integer, ForeignKey("institutions.id", ondelete="SET NULL"))
    student_number = Column(String(100))
    credit_balance = Column(Numeric(10, 2), nullable=False, default=0)
    academic_year = Column(String(20))
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False)

    institution = relationship("Institution", back_populates="members")
    bookings = relationship("Booking", back_populates="student")
    credit_transactions = relationship(
        "CreditTransaction",
        foreign_keys="CreditTransaction.user_id",
        back_populates="user",
    )
