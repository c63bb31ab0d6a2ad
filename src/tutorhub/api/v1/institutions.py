"""Institution and enrollment endpoints."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...models import InstitutionType, UserRole
from ...schemas import EnrollmentCreate, EnrollmentResult, ErrorResponse, InstitutionCreate, InstitutionRead, UserRead
from ...services import institution_service
from ...services.institution_service import InstitutionRuleViolation

router = APIRouter(prefix="/institutions", tags=["institutions"])


@router.post(
    "",
    response_model=InstitutionRead,
    status_code=status.HTTP_201_CREATED,
    summary="Register an institution",
    responses={
        201: {
            "description": "Institution created",
            "content": {
                "application/json": {
                    "example": {
                        "id": 1,
                        "name": "Royal University of Phnom Penh",
                        "slug": "rupp",
                        "type": "university",
                        "description": None,
                        "city": "Phnom Penh",
                        "contactEmail": "credits@rupp.example.edu",
                        "creditRequirementMin": 3,
                        "creditRequirementMax": 6,
                        "creditValuePerSession": "0.50",
                        "allowCrossInstitution": True,
                        "requireApproval": True,
                        "isActive": True,
                        "createdAt": "2025-01-10T08:00:00",
                        "updatedAt": "2025-01-10T08:00:00",
                    }
                }
            },
        },
        409: {"model": ErrorResponse, "description": "Slug or name already taken"},
    },
)
def create_institution(
    payload: InstitutionCreate,
    db: Session = Depends(get_db),
) -> InstitutionRead:
    """Create an institution and, unless ``createPartnership`` is false, a free partnership."""

    try:
        institution = institution_service.create_institution(db, **payload.model_dump())
        db.commit()
        db.refresh(institution)
        return institution
    except InstitutionRuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc


@router.get("", response_model=List[InstitutionRead], summary="List institutions")
def list_institutions(
    *,
    search: Optional[str] = Query(None, description="Case-insensitive name match"),
    type: Optional[InstitutionType] = Query(None, description="Filter by institution type"),
    active: Optional[bool] = Query(None, description="Filter by active flag"),
    limit: int = Query(50, ge=1, le=100, description="Maximum items to return"),
    offset: int = Query(0, ge=0, description="Items to skip for pagination"),
    db: Session = Depends(get_db),
) -> List[InstitutionRead]:
    institutions = institution_service.list_institutions(
        db,
        search=search,
        type=type,
        active=active,
        limit=limit,
        offset=offset,
    )
    return list(institutions)


@router.get(
    "/{institution_id}",
    response_model=InstitutionRead,
    summary="Get an institution",
    responses={404: {"model": ErrorResponse, "description": "Institution not found"}},
)
def get_institution(
    institution_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
) -> InstitutionRead:
    try:
        return institution_service.get_institution(db, institution_id)
    except InstitutionRuleViolation as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc


@router.post(
    "/{institution_id}/enroll",
    response_model=EnrollmentResult,
    summary="Enroll a user in an institution",
    responses={
        403: {"model": ErrorResponse, "description": "Partnership student limit reached"},
        404: {"model": ErrorResponse, "description": "Institution or user not found"},
        409: {"model": ErrorResponse, "description": "Already enrolled"},
    },
)
def enroll_user(
    payload: EnrollmentCreate,
    institution_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
) -> EnrollmentResult:
    """Enroll a user.

    Example request body::

        {
            "userId": 7,
            "studentNumber": "e20231234",
            "academicYear": "2024-2025"
        }
    """

    try:
        user = institution_service.enroll(
            db,
            institution_id,
            user_id=payload.user_id,
            student_number=payload.student_number,
            academic_year=payload.academic_year,
        )
        db.commit()
        db.refresh(user)
        return EnrollmentResult(message="Student enrolled successfully", user=UserRead.model_validate(user))
    except InstitutionRuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc


@router.get(
    "/{institution_id}/enroll",
    response_model=List[UserRead],
    summary="List enrolled users",
)
def list_enrolled(
    *,
    institution_id: int = Path(..., ge=1),
    role: Optional[UserRole] = Query(None, description="Filter by role"),
    limit: int = Query(100, ge=1, le=500, description="Maximum items to return"),
    offset: int = Query(0, ge=0, description="Items to skip for pagination"),
    db: Session = Depends(get_db),
) -> List[UserRead]:
    users = institution_service.list_enrolled(
        db,
        institution_id,
        role=role,
        limit=limit,
        offset=offset,
    )
    return list(users)


@router.delete(
    "/{institution_id}/enroll/{user_id}",
    response_model=EnrollmentResult,
    summary="Unenroll a user",
    responses={404: {"model": ErrorResponse, "description": "User not enrolled here"}},
)
def unenroll_user(
    institution_id: int = Path(..., ge=1),
    user_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
) -> EnrollmentResult:
    try:
        user = institution_service.unenroll(db, institution_id, user_id=user_id)
        db.commit()
        db.refresh(user)
        return EnrollmentResult(message="Student unenrolled successfully", user=UserRead.model_validate(user))
    except InstitutionRuleViolation as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc
