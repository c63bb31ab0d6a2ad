"""Institution and partnership models."""

import enum
from decimal import Decimal

from sqlalchemy import Boolean, Column, DateTime, Enum as SAEnum, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from ..core.database import Base
from ..utils.datetime import utcnow


class InstitutionType(str, enum.Enum):
    """Kinds of partner institutions."""

    UNIVERSITY = "university"
    COLLEGE = "college"
    HIGH_SCHOOL = "high_school"
    TRAINING_CENTER = "training_center"
    OTHER = "other"


class PartnershipTier(str, enum.Enum):
    """Billing tiers that cap enrollment."""

    FREE = "free"
    BASIC = "basic"
    PREMIUM = "premium"
    ENTERPRISE = "enterprise"


class Institution(Base):
    """School or university that reviews and grants credit to its students."""

    __tablename__ = "institutions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False, unique=True)
    slug = Column(String(200), nullable=False, unique=True)
    type = Column(
        SAEnum(InstitutionType, name="institution_type", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    description = Column(Text)
    city = Column(String(100))
    contact_email = Column(String(255))
    credit_requirement_min = Column(Integer, default=3)
    credit_requirement_max = Column(Integer, default=6)
    credit_value_per_session = Column(Numeric(5, 2), default=Decimal("0.5"))
    allow_cross_institution = Column(Boolean, nullable=False, default=True)
    require_approval = Column(Boolean, nullable=False, default=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False)

    members = relationship("User", back_populates="institution")
    partnerships = relationship("Partnership", back_populates="institution")


class Partnership(Base):
    """Tier agreement bounding how many students an institution may enroll."""

    __tablename__ = "partnerships"

    id = Column(Integer, primary_key=True, autoincrement=True)
    institution_id = Column(Integer, ForeignKey("institutions.id", ondelete="CASCADE"), nullable=False)
    tier = Column(
        SAEnum(PartnershipTier, name="partnership_tier", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=PartnershipTier.FREE,
    )
    students_limit = Column(Integer, default=50)
    start_date = Column(DateTime, nullable=False, default=utcnow)
    end_date = Column(DateTime)
    annual_fee = Column(Numeric(10, 2), default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    institution = relationship("Institution", back_populates="partnerships")
