"""User endpoints."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...models import UserRole
from ...schemas import ErrorResponse, UserCreate, UserRead
from ...services import user_service
from ...services.user_service import UserRuleViolation

router = APIRouter(prefix="/users", tags=["users"])


@router.post(
    "",
    response_model=UserRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create a user",
    responses={
        404: {"model": ErrorResponse, "description": "Institution not found"},
        409: {"model": ErrorResponse, "description": "Email already registered"},
    },
)
def create_user(
    payload: UserCreate,
    db: Session = Depends(get_db),
) -> UserRead:
    try:
        user = user_service.create_user(db, **payload.model_dump())
        db.commit()
        db.refresh(user)
        return user
    except UserRuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc


@router.get("", response_model=List[UserRead], summary="List users")
def list_users(
    *,
    role: Optional[UserRole] = Query(None, description="Filter by role"),
    institution_id: Optional[int] = Query(None, alias="institutionId", description="Filter by institution"),
    limit: int = Query(50, ge=1, le=100, description="Maximum items to return"),
    offset: int = Query(0, ge=0, description="Items to skip for pagination"),
    db: Session = Depends(get_db),
) -> List[UserRead]:
    users = user_service.list_users(
        db,
        role=role,
        institution_id=institution_id,
        limit=limit,
        offset=offset,
    )
    return list(users)


@router.get(
    "/{user_id}",
    response_model=UserRead,
    summary="Get a user",
    responses={404: {"model": ErrorResponse, "description": "User not found"}},
)
def get_user(
    user_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
) -> UserRead:
    """Return a user including the current credit balance."""

    try:
        return user_service.get_user(db, user_id)
    except UserRuleViolation as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
