"""Domain logic for institutions, partnerships and enrollment."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..models import Institution, InstitutionType, Partnership, PartnershipTier, User, UserRole
from ..utils.datetime import utcnow

logger = logging.getLogger(__name__)

DEFAULT_STUDENTS_LIMIT = 50


class InstitutionRuleViolation(Exception):
    """Raised when institution or enrollment rules are violated."""

    def __init__(self, detail: str, status_code: int = 400) -> None:
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code


def get_institution(session: Session, institution_id: int) -> Institution:
    institution = session.get(Institution, institution_id)
    if institution is None:
        raise InstitutionRuleViolation("Institution not found", status_code=404)
    return institution


def create_institution(
    session: Session,
    *,
    name: str,
    slug: str,
    type: InstitutionType,
    create_partnership: bool = True,
    **attributes,
) -> Institution:
    """Register an institution, by default with a free-tier partnership."""

    existing = session.execute(
        select(Institution.id).where((Institution.slug == slug) | (Institution.name == name))
    ).first()
    if existing is not None:
        raise InstitutionRuleViolation("Institution with this slug already exists", status_code=409)

    institution = Institution(name=name, slug=slug, type=type, **attributes)
    session.add(institution)
    session.flush()

    if create_partnership:
        session.add(
            Partnership(
                institution_id=institution.id,
                tier=PartnershipTier.FREE,
                students_limit=DEFAULT_STUDENTS_LIMIT,
                start_date=utcnow(),
                annual_fee=Decimal("0"),
                is_active=True,
            )
        )
        session.flush()

    session.refresh(institution)
    logger.info("institution %s registered (slug=%s)", institution.id, slug)
    return institution


def list_institutions(
    session: Session,
    *,
    search: Optional[str] = None,
    type: Optional[InstitutionType] = None,
    active: Optional[bool] = None,
    limit: int = 50,
    offset: int = 0,
) -> Sequence[Institution]:
    stmt = (
        select(Institution)
        .order_by(Institution.created_at.desc(), Institution.id.desc())
        .offset(offset)
        .limit(limit)
    )
    if search:
        stmt = stmt.where(func.lower(Institution.name).contains(search.lower()))
    if type is not None:
        stmt = stmt.where(Institution.type == type)
    if active is not None:
        stmt = stmt.where(Institution.is_active.is_(active))
    return session.execute(stmt).scalars().all()


def _active_partnership(session: Session, institution_id: int) -> Optional[Partnership]:
    stmt = (
        select(Partnership)
        .where(Partnership.institution_id == institution_id, Partnership.is_active.is_(True))
        .order_by(Partnership.start_date.asc())
        .limit(1)
    )
    return session.execute(stmt).scalar_one_or_none()


def enroll(
    session: Session,
    institution_id: int,
    *,
    user_id: int,
    student_number: Optional[str] = None,
    academic_year: Optional[str] = None,
) -> User:
    """Attach a user to an active institution within its partnership limit."""

    institution = session.get(Institution, institution_id)
    if institution is None or not institution.is_active:
        raise InstitutionRuleViolation("Institution not found or inactive", status_code=404)

    user = session.get(User, user_id)
    if user is None:
        raise InstitutionRuleViolation("User not found", status_code=404)

    if user.institution_id == institution_id:
        raise InstitutionRuleViolation("User is already enrolled in this institution", status_code=409)

    partnership = _active_partnership(session, institution_id)
    if partnership is not None and partnership.students_limit:
        enrolled_count = session.execute(
            select(func.count(User.id)).where(User.institution_id == institution_id)
        ).scalar_one()
        if enrolled_count >= partnership.students_limit:
            raise InstitutionRuleViolation(
                "Institution has reached maximum student limit for current partnership tier "
                f"({enrolled_count}/{partnership.students_limit})",
                status_code=403,
            )

    user.institution_id = institution_id
    user.student_number = student_number
    user.academic_year = academic_year
    user.updated_at = utcnow()
    session.flush()

    logger.info("user %s enrolled in institution %s", user_id, institution_id)
    return user


def unenroll(session: Session, institution_id: int, *, user_id: int) -> User:
    """Detach a user from the institution and clear enrollment fields."""

    stmt = select(User).where(User.id == user_id, User.institution_id == institution_id)
    user = session.execute(stmt).scalar_one_or_none()
    if user is None:
        raise InstitutionRuleViolation(
            "User not found or not enrolled in this institution",
            status_code=404,
        )

    user.institution_id = None
    user.student_number = None
    user.academic_year = None
    user.updated_at = utcnow()
    session.flush()

    logger.info("user %s unenrolled from institution %s", user_id, institution_id)
    return user


def list_enrolled(
    session: Session,
    institution_id: int,
    *,
    role: Optional[UserRole] = None,
    limit: int = 100,
    offset: int = 0,
) -> Sequence[User]:
    stmt = (
        select(User)
        .where(User.institution_id == institution_id)
        .order_by(User.id.asc())
        .offset(offset)
        .limit(limit)
    )
    if role is not None:
        stmt = stmt.where(User.role == role)
    return session.execute(stmt).scalars().all()
