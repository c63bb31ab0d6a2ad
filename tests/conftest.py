"""
Test fixtures for the TutorHub API.

Runs the FastAPI app against an in-memory SQLite database that replaces the
request-scoped session dependency.
"""

import os
from datetime import datetime, timedelta
from decimal import Decimal

os.environ.setdefault("TUTORHUB_DATABASE_URL", "sqlite://")
os.environ.setdefault("TUTORHUB_CREDIT_SWEEP_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from tutorhub import models  # noqa: F401
from tutorhub.core.database import Base, get_db
from tutorhub.main import app
from tutorhub.models import Booking, BookingStatus, Institution, InstitutionType, User, UserRole


@pytest.fixture
def engine():
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    """Provide a TestClient whose requests use the test database"""

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# ====================
# Data builders
# ====================


@pytest.fixture
def institution(db_session):
    record = Institution(
        name="Royal University of Phnom Penh",
        slug="rupp",
        type=InstitutionType.UNIVERSITY,
        credit_value_per_session=Decimal("0.5"),
    )
    db_session.add(record)
    db_session.commit()
    return record


@pytest.fixture
def make_user(db_session):
    counter = {"n": 0}

    def _make_user(role=UserRole.STUDENT, institution_id=None, academic_year=None, **extra):
        counter["n"] += 1
        user = User(
            email=f"user{counter['n']}@example.edu",
            first_name="Test",
            last_name=f"User{counter['n']}",
            role=role,
            institution_id=institution_id,
            academic_year=academic_year,
            **extra,
        )
        db_session.add(user)
        db_session.commit()
        return user

    return _make_user


@pytest.fixture
def student(make_user, institution):
    return make_user(institution_id=institution.id, academic_year="2024-2025")


@pytest.fixture
def coordinator(make_user, institution):
    return make_user(role=UserRole.FACULTY_COORDINATOR, institution_id=institution.id)


@pytest.fixture
def make_booking(db_session):
    def _make_booking(
        student_id,
        status=BookingStatus.COMPLETED,
        is_credit_eligible=True,
        credit_value=Decimal("0.5"),
        **extra,
    ):
        booking = Booking(
            student_id=student_id,
            tutor_id=1,
            scheduled_at=datetime(2025, 3, 1, 14, 0) - timedelta(days=1),
            duration=60,
            price=Decimal("15.00"),
            status=status,
            is_credit_eligible=is_credit_eligible,
            credit_value=credit_value,
            **extra,
        )
        db_session.add(booking)
        db_session.commit()
        return booking

    return _make_booking


@pytest.fixture
def completed_booking(make_booking, student):
    return make_booking(student.id)
