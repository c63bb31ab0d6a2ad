"""
API tests for the credit transaction lifecycle.

Covers submission, review (approve/reject), crediting and listing.
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest
from sqlalchemy import update

from tutorhub.models import Booking, BookingStatus, CreditStatus, CreditTransaction, User, UserRole
from tutorhub.services.credit_sweep_service import run_credit_sweep


def _submit(client, booking_id, user_id):
    return client.post("/api/v1/credits", json={"bookingId": booking_id, "userId": user_id})


class TestSubmitCredit:
    """Tests for POST /api/v1/credits"""

    def test_submit_creates_pending_transaction(self, client, completed_booking, student, institution):
        response = _submit(client, completed_booking.id, student.id)

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "pending"
        assert Decimal(data["creditsEarned"]) == Decimal("0.5")
        assert data["bookingId"] == completed_booking.id
        assert data["userId"] == student.id
        assert data["institutionId"] == institution.id
        assert data["academicYear"] == "2024-2025"
        assert data["creditedAt"] is None

    def test_submit_twice_returns_conflict(self, client, completed_booking, student, db_session):
        assert _submit(client, completed_booking.id, student.id).status_code == 201

        response = _submit(client, completed_booking.id, student.id)

        assert response.status_code == 409
        assert response.json()["error"] == "conflict"
        count = db_session.query(CreditTransaction).filter_by(booking_id=completed_booking.id).count()
        assert count == 1

    def test_submit_unknown_booking(self, client, student):
        response = _submit(client, 9999, student.id)

        assert response.status_code == 404
        assert response.json() == {"error": "not_found", "message": "Booking not found"}

    @pytest.mark.parametrize("status", [BookingStatus.PENDING, BookingStatus.CONFIRMED, BookingStatus.CANCELLED])
    def test_submit_requires_completed_booking(self, client, make_booking, student, status):
        booking = make_booking(student.id, status=status)

        response = _submit(client, booking.id, student.id)

        assert response.status_code == 400
        assert "completed" in response.json()["message"]

    def test_submit_requires_credit_eligible_booking(self, client, make_booking, student):
        booking = make_booking(student.id, is_credit_eligible=False)

        response = _submit(client, booking.id, student.id)

        assert response.status_code == 400
        assert response.json()["message"] == "This booking is not eligible for credits"

    def test_submit_requires_enrolled_user(self, client, make_user, make_booking):
        loner = make_user()
        booking = make_booking(loner.id)

        response = _submit(client, booking.id, loner.id)

        assert response.status_code == 400
        assert response.json() == {"error": "bad_request", "message": "User is not enrolled in an institution"}

    def test_submit_unknown_user(self, client, completed_booking):
        response = _submit(client, completed_booking.id, 9999)

        assert response.status_code == 404
        assert response.json()["message"] == "User not found"

    def test_submit_defaults_missing_credit_value(self, client, make_booking, student, db_session):
        booking = make_booking(student.id)
        db_session.execute(update(Booking).where(Booking.id == booking.id).values(credit_value=None))
        db_session.commit()

        response = _submit(client, booking.id, student.id)

        assert response.status_code == 201
        assert Decimal(response.json()["creditsEarned"]) == Decimal("0.5")

    def test_submit_without_academic_year_uses_current_year(self, client, make_user, institution, make_booking):
        user = make_user(institution_id=institution.id)
        booking = make_booking(user.id)

        response = _submit(client, booking.id, user.id)

        assert response.status_code == 201
        assert response.json()["academicYear"] == str(datetime.now(timezone.utc).year)

    def test_submit_missing_fields_is_validation_error(self, client):
        response = client.post("/api/v1/credits", json={"bookingId": 1})

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"
        assert "userId" in response.json()["message"]


class TestReviewCredit:
    """Tests for approve and reject endpoints"""

    @pytest.fixture
    def pending(self, client, completed_booking, student):
        return _submit(client, completed_booking.id, student.id).json()

    @pytest.mark.parametrize(
        "role",
        [UserRole.FACULTY_COORDINATOR, UserRole.INSTITUTION_ADMIN, UserRole.ADMIN],
    )
    def test_authorized_roles_can_approve(self, client, pending, make_user, role):
        reviewer = make_user(role=role)

        response = client.post(
            f"/api/v1/credits/{pending['id']}/approve",
            json={"reviewedBy": reviewer.id, "reviewNotes": "Verified"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Credit transaction approved successfully"
        assert data["transaction"]["status"] == "approved"
        assert data["transaction"]["reviewedBy"] == reviewer.id
        assert data["transaction"]["reviewNotes"] == "Verified"
        assert data["transaction"]["reviewedAt"] is not None

    @pytest.mark.parametrize("role", [UserRole.STUDENT, UserRole.TUTOR, UserRole.SUPER_ADMIN])
    def test_unauthorized_role_is_forbidden(self, client, pending, make_user, role):
        outsider = make_user(role=role)

        response = client.post(
            f"/api/v1/credits/{pending['id']}/approve",
            json={"reviewedBy": outsider.id},
        )

        assert response.status_code == 403
        assert response.json()["error"] == "forbidden"

    def test_unknown_reviewer_is_forbidden(self, client, pending):
        response = client.post(f"/api/v1/credits/{pending['id']}/approve", json={"reviewedBy": 9999})

        assert response.status_code == 403

    def test_approve_unknown_transaction(self, client, coordinator):
        response = client.post("/api/v1/credits/9999/approve", json={"reviewedBy": coordinator.id})

        assert response.status_code == 404

    @pytest.mark.parametrize("role", [UserRole.ADMIN, UserRole.STUDENT])
    def test_approve_non_pending_fails_regardless_of_role(self, client, pending, coordinator, make_user, role):
        client.post(f"/api/v1/credits/{pending['id']}/approve", json={"reviewedBy": coordinator.id})
        caller = make_user(role=role)

        response = client.post(f"/api/v1/credits/{pending['id']}/approve", json={"reviewedBy": caller.id})

        assert response.status_code == 400
        assert response.json()["message"] == "Transaction is already approved"

    def test_reviewer_id_must_be_positive(self, client, pending):
        response = client.post(
            f"/api/v1/credits/{pending['id']}/reject",
            json={"reviewedBy": 0, "reviewNotes": "No session log"},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"
        assert "reviewedBy" in response.json()["message"]

    def test_reject_requires_review_notes(self, client, pending, coordinator):
        for body in ({"reviewedBy": coordinator.id}, {"reviewedBy": coordinator.id, "reviewNotes": "   "}):
            response = client.post(f"/api/v1/credits/{pending['id']}/reject", json=body)
            assert response.status_code == 400

    def test_reject_is_terminal(self, client, pending, coordinator):
        response = client.post(
            f"/api/v1/credits/{pending['id']}/reject",
            json={"reviewedBy": coordinator.id, "reviewNotes": "No session log"},
        )
        assert response.status_code == 200
        assert response.json()["transaction"]["status"] == "rejected"

        approve = client.post(f"/api/v1/credits/{pending['id']}/approve", json={"reviewedBy": coordinator.id})
        credit = client.post(f"/api/v1/credits/{pending['id']}/credit")

        assert approve.status_code == 400
        assert approve.json()["message"] == "Transaction is already rejected"
        assert credit.status_code == 400


class TestApplyCredit:
    """Tests for POST /api/v1/credits/{id}/credit"""

    @pytest.fixture
    def approved(self, client, completed_booking, student, coordinator):
        transaction = _submit(client, completed_booking.id, student.id).json()
        client.post(f"/api/v1/credits/{transaction['id']}/approve", json={"reviewedBy": coordinator.id})
        return transaction

    def test_credit_updates_balance_transaction_and_booking(self, client, approved, student, completed_booking, db_session):
        response = client.post(f"/api/v1/credits/{approved['id']}/credit")

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Credits applied successfully"
        assert data["transaction"]["status"] == "credited"
        assert data["transaction"]["creditedAt"] is not None
        assert data["user"]["id"] == student.id
        assert Decimal(data["user"]["creditBalance"]) == Decimal("0.5")

        db_session.expire_all()
        booking = db_session.get(Booking, completed_booking.id)
        assert booking.institution_approved is True
        assert booking.approved_at is not None

    def test_credit_adds_to_existing_balance(self, client, db_session, student, make_booking, coordinator):
        db_session.get(User, student.id).credit_balance = Decimal("1.25")
        db_session.commit()
        booking = make_booking(student.id, credit_value=Decimal("0.75"))
        transaction = _submit(client, booking.id, student.id).json()
        client.post(f"/api/v1/credits/{transaction['id']}/approve", json={"reviewedBy": coordinator.id})

        response = client.post(f"/api/v1/credits/{transaction['id']}/credit")

        assert Decimal(response.json()["user"]["creditBalance"]) == Decimal("2.00")

    def test_second_credit_is_rejected(self, client, approved, student, db_session):
        assert client.post(f"/api/v1/credits/{approved['id']}/credit").status_code == 200

        response = client.post(f"/api/v1/credits/{approved['id']}/credit")

        assert response.status_code == 409
        assert response.json()["message"] == "Credits have already been applied for this transaction"
        db_session.expire_all()
        assert db_session.get(User, student.id).credit_balance == Decimal("0.5")

    def test_credit_requires_approval(self, client, completed_booking, student):
        transaction = _submit(client, completed_booking.id, student.id).json()

        response = client.post(f"/api/v1/credits/{transaction['id']}/credit")

        assert response.status_code == 400
        assert response.json()["message"] == "Transaction must be approved before crediting"
        assert response.json()["error"] == "bad_request"

    def test_credit_unknown_transaction(self, client):
        assert client.post("/api/v1/credits/9999/credit").status_code == 404

    def test_credit_after_sweep_conflicts(self, client, approved, session_factory, student, db_session):
        sweep_session = session_factory()
        try:
            assert run_credit_sweep(sweep_session)["transactions_credited"] == 1
        finally:
            sweep_session.close()

        response = client.post(f"/api/v1/credits/{approved['id']}/credit")

        assert response.status_code == 409
        assert response.json()["error"] == "conflict"
        db_session.expire_all()
        assert db_session.get(User, student.id).credit_balance == Decimal("0.5")

    def test_credited_at_guard_returns_conflict(self, client, approved, db_session):
        stale = db_session.get(CreditTransaction, approved["id"])
        stale.credited_at = datetime(2025, 1, 1)
        db_session.commit()

        response = client.post(f"/api/v1/credits/{approved['id']}/credit")

        assert response.status_code == 409
        assert response.json()["error"] == "conflict"


class TestListCredits:
    """Tests for GET /api/v1/credits"""

    def test_filters(self, client, make_booking, student, make_user, institution, coordinator):
        other = make_user(institution_id=institution.id, academic_year="2023-2024")
        first = _submit(client, make_booking(student.id).id, student.id).json()
        _submit(client, make_booking(other.id).id, other.id)
        client.post(f"/api/v1/credits/{first['id']}/approve", json={"reviewedBy": coordinator.id})

        by_user = client.get("/api/v1/credits", params={"userId": student.id}).json()
        by_status = client.get("/api/v1/credits", params={"status": "approved"}).json()
        by_year = client.get("/api/v1/credits", params={"academicYear": "2023-2024"}).json()
        by_institution = client.get("/api/v1/credits", params={"institutionId": institution.id}).json()

        assert [t["userId"] for t in by_user] == [student.id]
        assert [t["id"] for t in by_status] == [first["id"]]
        assert [t["userId"] for t in by_year] == [other.id]
        assert len(by_institution) == 2
        assert by_user[0]["user"]["email"] == student.email

    def test_pagination(self, client, make_booking, student):
        for _ in range(3):
            _submit(client, make_booking(student.id).id, student.id)

        page = client.get("/api/v1/credits", params={"limit": 2, "offset": 2}).json()

        assert len(page) == 1

    def test_invalid_status_filter(self, client):
        response = client.get("/api/v1/credits", params={"status": "bogus"})

        assert response.status_code == 400

    def test_get_single(self, client, completed_booking, student):
        created = _submit(client, completed_booking.id, student.id).json()

        assert client.get(f"/api/v1/credits/{created['id']}").json()["id"] == created["id"]
        assert client.get("/api/v1/credits/9999").status_code == 404


class TestCreditScenario:
    """End-to-end: booking 42 for user 7 goes from submission to credited"""

    def test_booking_42_lifecycle(self, client, db_session, institution, make_user):
        db_session.add(
            User(
                id=7,
                email="dara.sok@example.edu",
                first_name="Dara",
                last_name="Sok",
                role=UserRole.STUDENT,
                institution_id=institution.id,
                academic_year="2024-2025",
            )
        )
        db_session.add(
            Booking(
                id=42,
                student_id=7,
                tutor_id=3,
                scheduled_at=datetime(2025, 3, 1, 14, 0),
                duration=60,
                price=Decimal("15.00"),
                status=BookingStatus.COMPLETED,
                is_credit_eligible=True,
                credit_value=Decimal("0.5"),
            )
        )
        db_session.commit()
        admin = make_user(role=UserRole.ADMIN)

        submitted = client.post("/api/v1/credits", json={"bookingId": 42, "userId": 7})
        assert submitted.status_code == 201
        assert submitted.json()["status"] == CreditStatus.PENDING.value
        assert Decimal(submitted.json()["creditsEarned"]) == Decimal("0.5")
        transaction_id = submitted.json()["id"]

        approved = client.post(f"/api/v1/credits/{transaction_id}/approve", json={"reviewedBy": admin.id})
        assert approved.json()["transaction"]["status"] == "approved"

        credited = client.post(f"/api/v1/credits/{transaction_id}/credit")
        assert credited.status_code == 200
        assert credited.json()["transaction"]["status"] == "credited"
        assert credited.json()["transaction"]["creditedAt"] is not None
        assert Decimal(credited.json()["user"]["creditBalance"]) == Decimal("0.5")

        db_session.expire_all()
        assert db_session.get(Booking, 42).institution_approved is True
