"""Domain logic for user accounts."""

from __future__ import annotations

from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..models import Institution, User, UserRole


class UserRuleViolation(Exception):
    """Raised when user rules are violated."""

    def __init__(self, detail: str, status_code: int = 400) -> None:
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code


def get_user(session: Session, user_id: int) -> User:
    user = session.get(User, user_id)
    if user is None:
        raise UserRuleViolation("User not found", status_code=404)
    return user


def create_user(
    session: Session,
    *,
    email: str,
    first_name: str,
    last_name: str,
    role: UserRole = UserRole.STUDENT,
    institution_id: Optional[int] = None,
    student_number: Optional[str] = None,
    academic_year: Optional[str] = None,
) -> User:
    """Insert a user with a zero credit balance."""

    normalized_email = email.strip().lower()
    existing = session.execute(select(User.id).where(User.email == normalized_email)).scalar_one_or_none()
    if existing is not None:
        raise UserRuleViolation("User with this email already exists", status_code=409)

    if institution_id is not None and session.get(Institution, institution_id) is None:
        raise UserRuleViolation(f"Institution {institution_id} not found", status_code=404)

    user = User(
        email=normalized_email,
        first_name=first_name,
        last_name=last_name,
        role=role,
        institution_id=institution_id,
        student_number=student_number,
        academic_year=academic_year,
    )
    session.add(user)
    session.flush()
    session.refresh(user)
    return user


def list_users(
    session: Session,
    *,
    role: Optional[UserRole] = None,
    institution_id: Optional[int] = None,
    limit: int = 50,
    offset: int = 0,
) -> Sequence[User]:
    stmt = select(User).order_by(User.created_at.desc(), User.id.desc()).offset(offset).limit(limit)
    if role is not None:
        stmt = stmt.where(User.role == role)
    if institution_id is not None:
        stmt = stmt.where(User.institution_id == institution_id)
    return session.execute(stmt).scalars().all()
