from datetime import date

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from feedesk.core.audit.models import AuditLog
from feedesk.core.audit.service import AuditAction, AuditService
from feedesk.core.exceptions import ConflictError, NotFoundError, ValidationError
from feedesk.modules.courses.schemas import CourseCreate
from feedesk.modules.courses.service import CourseService
from feedesk.modules.students.models import FeeStatus, derive_fee_status
from feedesk.modules.students.schemas import StudentFilters, StudentResponse, StudentUpdate
from feedesk.modules.students.service import StudentService
from feedesk.modules.transactions.service import TransactionService


class TestFeeStatus:
    """Tests for status derivation."""

    def test_unpaid(self):
        assert derive_fee_status(0, 5000) == FeeStatus.UNPAID

    def test_partial(self):
        assert derive_fee_status(2000, 3000) == FeeStatus.PARTIAL

    def test_paid(self):
        assert derive_fee_status(5000, 0) == FeeStatus.PAID

    def test_zero_fee_is_paid(self):
        assert derive_fee_status(0, 0) == FeeStatus.PAID

    def test_overpaid_is_paid(self):
        assert derive_fee_status(5000, -1000) == FeeStatus.PAID


class TestStudentService:
    """Tests for StudentService."""

    async def test_admit_with_standard_fee(self, student, course):
        """Opening balance is the course's standard fee."""
        assert student.id is not None
        assert student.course_id == course.id
        assert student.course.name == "Tally Prime"
        assert student.total_fee_committed == 5000
        assert student.total_paid == 0
        assert student.pending_amount == 5000
        assert student.status == FeeStatus.UNPAID.value
        assert student.full_name == "Asha Verma"

    async def test_admit_with_discounted_fee(self, admit):
        student = await admit(total_fee_committed=4000)

        assert student.total_fee_committed == 4000
        assert student.pending_amount == 4000

    async def test_admit_with_zero_fee_is_paid(self, admit):
        student = await admit(total_fee_committed=0)

        assert student.pending_amount == 0
        assert student.status == FeeStatus.PAID.value

    async def test_admission_date_defaults_to_today(self, student):
        assert student.admission_date == date.today()

    async def test_admit_duplicate_enrollment(self, admit, student):
        with pytest.raises(ConflictError):
            await admit()

    async def test_same_mobile_other_course(
        self, db_session: AsyncSession, admin_user, admit, student
    ):
        """One person may enroll in two courses."""
        other = await CourseService(db_session).create_course(
            CourseCreate(name="Advanced Excel", duration="2 Months", standard_fee=3000),
            created_by_id=admin_user.id,
        )

        second = await admit(course_id=other.id)

        assert second.student_mobile == student.student_mobile
        assert second.pending_amount == 3000

    async def test_readmit_after_delete(self, db_session: AsyncSession, admin_user, admit, student):
        await StudentService(db_session).delete_student(student.id, admin_user.id)

        again = await admit()

        assert again.id != student.id
        assert again.is_deleted is False

    async def test_admit_into_deleted_course(self, db_session: AsyncSession, admin_user, admit, course):
        await CourseService(db_session).delete_course(course.id, admin_user.id)

        with pytest.raises(ValidationError):
            await admit()

    async def test_admit_into_missing_course(self, admit):
        with pytest.raises(NotFoundError):
            await admit(course_id=9999)

    async def test_admission_is_audited(self, db_session: AsyncSession, admin_user, student):
        await StudentService(db_session).revise_fee(student.id, 4500, admin_user.id)

        history = await AuditService(db_session).list_for_entity("Student", student.id)

        assert [log.action for log in history] == [AuditAction.REVISE_FEE, AuditAction.CREATE]
        assert history[1].new_values["total_fee_committed"] == 5000

    async def test_get_deleted_student(self, db_session: AsyncSession, admin_user, student):
        service = StudentService(db_session)
        await service.delete_student(student.id, admin_user.id)

        with pytest.raises(NotFoundError):
            await service.get_student_by_id(student.id)
        found = await service.get_student_by_id(student.id, include_deleted=True)
        assert found.is_deleted is True

    async def test_list_students_search(self, db_session: AsyncSession, admit, student):
        await admit(first_name="Ravi", last_name="Kumar", student_mobile="9000000002")
        service = StudentService(db_session)

        by_name, total = await service.list_students(StudentFilters(search="asha verma"))
        assert total == 1
        assert by_name[0].id == student.id

        by_mobile, total = await service.list_students(StudentFilters(search="9000000002"))
        assert total == 1
        assert by_mobile[0].first_name == "Ravi"

        everyone, total = await service.list_students(StudentFilters())
        assert total == 2

    async def test_list_students_by_status(self, db_session: AsyncSession, admin_user, admit, student):
        await admit(student_mobile="9000000002")
        await TransactionService(db_session).record_payment(student.id, 1000, "Cash", admin_user.id)

        partial, total = await StudentService(db_session).list_students(
            StudentFilters(status=FeeStatus.PARTIAL)
        )

        assert total == 1
        assert partial[0].id == student.id

    async def test_update_profile(self, db_session: AsyncSession, admin_user, student):
        updated = await StudentService(db_session).update_student(
            student.id,
            StudentUpdate(batch="Weekend", address="  21 Park Street  "),
            admin_user.id,
        )

        assert updated.batch == "Weekend"
        assert updated.address == "21 Park Street"
        assert updated.pending_amount == 5000

    async def test_update_mobile_conflict(self, db_session: AsyncSession, admin_user, admit, student):
        other = await admit(student_mobile="9000000002")

        with pytest.raises(ConflictError):
            await StudentService(db_session).update_student(
                other.id, StudentUpdate(student_mobile=student.student_mobile), admin_user.id
            )

    async def test_update_fee_goes_through_revision(self, db_session: AsyncSession, admin_user, student):
        updated = await StudentService(db_session).update_student(
            student.id, StudentUpdate(total_fee_committed=6000), admin_user.id
        )

        assert updated.total_fee_committed == 6000
        assert updated.pending_amount == 6000

    async def test_revise_fee_after_payment(self, db_session: AsyncSession, admin_user, student):
        await TransactionService(db_session).record_payment(student.id, 2000, "Cash", admin_user.id)

        revised = await StudentService(db_session).revise_fee(student.id, 4000, admin_user.id)

        assert revised.total_fee_committed == 4000
        assert revised.total_paid == 2000
        assert revised.pending_amount == 2000
        assert revised.status == FeeStatus.PARTIAL.value

    async def test_revise_fee_down_to_paid(self, db_session: AsyncSession, admin_user, student):
        await TransactionService(db_session).record_payment(student.id, 3000, "Cash", admin_user.id)

        revised = await StudentService(db_session).revise_fee(student.id, 3000, admin_user.id)

        assert revised.pending_amount == 0
        assert revised.status == FeeStatus.PAID.value

    async def test_revise_fee_below_paid_leaves_refund_due(
        self, db_session: AsyncSession, admin_user, student
    ):
        await TransactionService(db_session).record_payment(student.id, 4000, "Cash", admin_user.id)

        revised = await StudentService(db_session).revise_fee(student.id, 3000, admin_user.id)

        assert revised.total_paid == 4000
        assert revised.pending_amount == -1000
        assert revised.status == FeeStatus.PAID.value
        assert revised.is_overpaid is True
        assert revised.refund_due == 1000

    async def test_revise_fee_unchanged_is_noop(self, db_session: AsyncSession, admin_user, student):
        await StudentService(db_session).revise_fee(student.id, 5000, admin_user.id)

        result = await db_session.execute(
            select(AuditLog).where(AuditLog.action == AuditAction.REVISE_FEE)
        )
        assert result.scalars().all() == []

    async def test_revise_fee_is_audited(self, db_session: AsyncSession, admin_user, student):
        await StudentService(db_session).revise_fee(student.id, 4500, admin_user.id)

        result = await db_session.execute(
            select(AuditLog).where(AuditLog.action == AuditAction.REVISE_FEE)
        )
        log = result.scalar_one()
        assert log.old_values == {"total_fee_committed": 5000}
        assert log.new_values["pending_amount"] == 4500

    async def test_revise_fee_negative(self, db_session: AsyncSession, admin_user, student):
        with pytest.raises(ValidationError):
            await StudentService(db_session).revise_fee(student.id, -1, admin_user.id)

    async def test_delete_returns_serializable_student(
        self, db_session: AsyncSession, admin_user, student
    ):
        deleted = await StudentService(db_session).delete_student(student.id, admin_user.id)

        response = StudentResponse.model_validate(deleted)
        assert response.is_deleted is True
        assert response.updated_at is not None
        assert response.course.name == "Tally Prime"

    async def test_delete_keeps_transactions(self, db_session: AsyncSession, admin_user, student):
        student_id = student.id
        await TransactionService(db_session).record_payment(student_id, 1000, "Cash", admin_user.id)

        await StudentService(db_session).delete_student(student_id, admin_user.id)

        history = await TransactionService(db_session).list_for_student(student_id)
        assert [t.amount for t in history] == [1000]


class TestStudentsAPI:
    """Tests for students endpoints."""

    async def test_admit(self, client: AsyncClient, staff_headers: dict, student_json: dict):
        response = await client.post("/api/v1/students", json=student_json, headers=staff_headers)

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["student_mobile"] == "9876501234"
        assert data["pending_amount"] == 5000
        assert data["status"] == "Unpaid"
        assert data["course"]["name"] == "Tally Prime"

    async def test_admit_invalid_mobile(self, client: AsyncClient, staff_headers: dict, student_json: dict):
        student_json["student_mobile"] = "12345"

        response = await client.post("/api/v1/students", json=student_json, headers=staff_headers)

        assert response.status_code == 422
        assert response.json()["errors"][0]["field"] == "student_mobile"

    async def test_admit_duplicate(self, client: AsyncClient, staff_headers: dict, student_json: dict):
        await client.post("/api/v1/students", json=student_json, headers=staff_headers)

        response = await client.post("/api/v1/students", json=student_json, headers=staff_headers)

        assert response.status_code == 409

    async def test_requires_auth(self, client: AsyncClient, student_json: dict):
        response = await client.post("/api/v1/students", json=student_json)

        assert response.status_code == 401

    async def test_list(self, client: AsyncClient, staff_headers: dict, student):
        response = await client.get(
            "/api/v1/students", params={"status": "Unpaid"}, headers=staff_headers
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["total"] == 1
        assert data["items"][0]["full_name"] == "Asha Verma"

    async def test_get_missing(self, client: AsyncClient, staff_headers: dict):
        response = await client.get("/api/v1/students/999", headers=staff_headers)

        assert response.status_code == 404

    async def test_staff_cannot_change_fee(self, client: AsyncClient, staff_headers: dict, student):
        response = await client.patch(
            f"/api/v1/students/{student.id}",
            json={"total_fee_committed": 1000},
            headers=staff_headers,
        )

        assert response.status_code == 403

    async def test_staff_can_edit_profile(self, client: AsyncClient, staff_headers: dict, student):
        response = await client.patch(
            f"/api/v1/students/{student.id}",
            json={"batch": "Weekend"},
            headers=staff_headers,
        )

        assert response.status_code == 200
        assert response.json()["data"]["batch"] == "Weekend"

    async def test_revise_fee(self, client: AsyncClient, admin_headers: dict, student):
        response = await client.post(
            f"/api/v1/students/{student.id}/revise-fee",
            json={"total_fee_committed": 4500},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["data"]["pending_amount"] == 4500

    async def test_staff_cannot_revise_fee(self, client: AsyncClient, staff_headers: dict, student):
        response = await client.post(
            f"/api/v1/students/{student.id}/revise-fee",
            json={"total_fee_committed": 4500},
            headers=staff_headers,
        )

        assert response.status_code == 403

    async def test_delete(self, client: AsyncClient, admin_headers: dict, student):
        response = await client.delete(f"/api/v1/students/{student.id}", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["data"]["is_deleted"] is True

        missing = await client.get(f"/api/v1/students/{student.id}", headers=admin_headers)
        assert missing.status_code == 404

    async def test_staff_cannot_delete(self, client: AsyncClient, staff_headers: dict, student):
        response = await client.delete(f"/api/v1/students/{student.id}", headers=staff_headers)

        assert response.status_code == 403

    async def test_upload_photo(self, client: AsyncClient, staff_headers: dict, student, tmp_path, monkeypatch):
        from feedesk.core.config import settings

        monkeypatch.setattr(settings, "uploads_path", str(tmp_path))

        response = await client.post(
            f"/api/v1/students/{student.id}/photo",
            files={"photo": ("face.png", b"\x89PNG fake image", "image/png")},
            headers=staff_headers,
        )

        assert response.status_code == 200
        photo_url = response.json()["data"]["photo_url"]
        assert photo_url.startswith(f"/uploads/{student.id}_")
        assert (tmp_path / photo_url.rsplit("/", 1)[-1]).read_bytes() == b"\x89PNG fake image"

    async def test_upload_photo_wrong_type(self, client: AsyncClient, staff_headers: dict, student):
        response = await client.post(
            f"/api/v1/students/{student.id}/photo",
            files={"photo": ("notes.txt", b"hello", "text/plain")},
            headers=staff_headers,
        )

        assert response.status_code == 400

    async def test_transactions_of_student(self, client: AsyncClient, staff_headers: dict, student):
        await client.post(
            "/api/v1/transactions",
            json={"student_id": student.id, "amount": 1500, "mode": "Cash"},
            headers=staff_headers,
        )

        response = await client.get(
            f"/api/v1/students/{student.id}/transactions", headers=staff_headers
        )

        assert response.status_code == 200
        history = response.json()["data"]
        assert len(history) == 1
        assert history[0]["remark"] == "Installment 1"
