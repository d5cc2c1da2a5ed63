"""Service for Students module."""

import logging
import uuid
from pathlib import Path

from fastapi import UploadFile
from sqlalchemy import case, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from feedesk.core.audit.service import AuditAction, AuditService
from feedesk.core.config import settings
from feedesk.core.exceptions import ConflictError, NotFoundError, ValidationError
from feedesk.modules.courses.service import CourseService
from feedesk.modules.students.models import FeeStatus, Student, derive_fee_status
from feedesk.modules.students.schemas import StudentCreate, StudentFilters, StudentUpdate
from feedesk.shared.utils.dates import local_now

logger = logging.getLogger(__name__)

ALLOWED_PHOTO_TYPES = {"image/jpeg", "image/png", "image/webp"}
MAX_PHOTO_SIZE = 5 * 1024 * 1024  # 5 MB

_PROFILE_FIELDS = (
    "first_name",
    "last_name",
    "dob",
    "gender",
    "address",
    "student_mobile",
    "parent_mobile",
    "batch",
    "admission_date",
)


def fee_status_expression(total_fee):
    """SQL CASE equivalent of derive_fee_status for a new committed fee."""
    return case(
        (total_fee - Student.total_paid <= 0, FeeStatus.PAID.value),
        (Student.total_paid == 0, FeeStatus.UNPAID.value),
        else_=FeeStatus.PARTIAL.value,
    )


class StudentService:
    """Service for admissions, student records and fee revisions."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.audit = AuditService(db)

    async def _ensure_unique_enrollment(
        self, student_mobile: str, course_id: int, exclude_id: int | None = None
    ) -> None:
        """One active enrollment per (mobile, course)."""
        query = select(Student.id).where(
            Student.student_mobile == student_mobile,
            Student.course_id == course_id,
            Student.is_deleted.is_(False),
        )
        if exclude_id is not None:
            query = query.where(Student.id != exclude_id)
        existing = await self.db.execute(query)
        if existing.first() is not None:
            raise ConflictError("Student enrollment", "student_mobile", student_mobile)

    async def _reload(self, student_id: int) -> Student:
        """Fresh copy from the database with the course loaded."""
        result = await self.db.execute(
            select(Student)
            .options(selectinload(Student.course))
            .where(Student.id == student_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()

    async def admit_student(self, data: StudentCreate, created_by_id: int) -> Student:
        """Admit a student into a course with an opening balance equal to the fee."""
        course = await CourseService(self.db).validate_active(data.course_id)
        await self._ensure_unique_enrollment(data.student_mobile, data.course_id)

        total_fee = (
            data.total_fee_committed
            if data.total_fee_committed is not None
            else course.standard_fee
        )

        student = Student(
            first_name=data.first_name,
            last_name=data.last_name,
            dob=data.dob,
            gender=data.gender.value,
            address=data.address.strip(),
            student_mobile=data.student_mobile,
            parent_mobile=data.parent_mobile,
            course_id=course.id,
            batch=data.batch,
            admission_date=data.admission_date or local_now().date(),
            total_fee_committed=total_fee,
            total_paid=0,
            pending_amount=total_fee,
            status=derive_fee_status(0, total_fee).value,
        )
        self.db.add(student)
        try:
            await self.db.flush()
        except IntegrityError:
            # Concurrent admission slipped past the pre-check; the partial index caught it
            await self.db.rollback()
            raise ConflictError("Student enrollment", "student_mobile", data.student_mobile)

        await self.audit.log(
            action=AuditAction.CREATE,
            entity_type="Student",
            entity_id=student.id,
            entity_identifier=student.full_name,
            user_id=created_by_id,
            new_values={
                "name": student.full_name,
                "course_id": course.id,
                "total_fee_committed": total_fee,
            },
        )

        await self.db.commit()
        return await self._reload(student.id)

    async def get_student_by_id(
        self, student_id: int, include_deleted: bool = False
    ) -> Student:
        """Get student by ID with the course loaded."""
        query = (
            select(Student)
            .options(selectinload(Student.course))
            .where(Student.id == student_id)
        )
        if not include_deleted:
            query = query.where(Student.is_deleted.is_(False))
        result = await self.db.execute(query)
        student = result.scalar_one_or_none()
        if not student:
            raise NotFoundError("Student", student_id)
        return student

    async def list_students(self, filters: StudentFilters) -> tuple[list[Student], int]:
        """List non-deleted students, newest admissions first."""
        query = (
            select(Student)
            .options(selectinload(Student.course))
            .where(Student.is_deleted.is_(False))
            .order_by(Student.created_at.desc(), Student.id.desc())
        )

        if filters.course_id is not None:
            query = query.where(Student.course_id == filters.course_id)
        if filters.status is not None:
            query = query.where(Student.status == filters.status.value)
        if filters.search:
            search_term = f"%{filters.search.strip()}%"
            query = query.where(
                or_(
                    Student.first_name.ilike(search_term),
                    Student.last_name.ilike(search_term),
                    (Student.first_name + " " + Student.last_name).ilike(search_term),
                    Student.student_mobile.ilike(search_term),
                    Student.parent_mobile.ilike(search_term),
                    Student.batch.ilike(search_term),
                )
            )

        # Count total
        count_query = select(func.count()).select_from(query.subquery())
        total_result = await self.db.execute(count_query)
        total = total_result.scalar() or 0

        # Apply pagination
        offset = (filters.page - 1) * filters.limit
        query = query.offset(offset).limit(filters.limit)

        result = await self.db.execute(query)
        students = list(result.scalars().all())

        return students, total

    async def update_student(
        self, student_id: int, data: StudentUpdate, updated_by_id: int
    ) -> Student:
        """Update profile fields; a changed total fee goes through fee revision."""
        student = await self.get_student_by_id(student_id)
        old_values = {}
        new_values = {}

        if data.student_mobile is not None and data.student_mobile != student.student_mobile:
            await self._ensure_unique_enrollment(
                data.student_mobile, student.course_id, exclude_id=student.id
            )

        for field in _PROFILE_FIELDS:
            value = getattr(data, field)
            if value is None:
                continue
            if hasattr(value, "value"):
                value = value.value
            if isinstance(value, str) and field != "gender":
                value = value.strip()
            current = getattr(student, field)
            if value != current:
                old_values[field] = str(current) if current is not None else None
                setattr(student, field, value)
                new_values[field] = str(value)

        if new_values:
            await self.audit.log(
                action=AuditAction.UPDATE,
                entity_type="Student",
                entity_id=student_id,
                entity_identifier=student.full_name,
                user_id=updated_by_id,
                old_values=old_values,
                new_values=new_values,
            )
            await self.db.flush()

        if data.total_fee_committed is not None:
            await self._apply_fee_revision(student, data.total_fee_committed, updated_by_id)

        await self.db.commit()
        return await self._reload(student_id)

    async def revise_fee(
        self, student_id: int, new_total_fee: int, revised_by_id: int
    ) -> Student:
        """
        Change the committed fee of a student.

        Pending amount and status are recomputed from the stored total paid
        in the same statement. Payments are never touched. A fee lowered
        below what was already paid leaves a negative pending amount, which
        is kept and reported as a refund due.
        """
        student = await self.get_student_by_id(student_id)
        changed = await self._apply_fee_revision(student, new_total_fee, revised_by_id)
        if not changed:
            return student
        await self.db.commit()
        return await self._reload(student_id)

    async def _apply_fee_revision(
        self, student: Student, new_total_fee: int, revised_by_id: int
    ) -> bool:
        """Run the revision in the caller's transaction. False when nothing changed."""
        if new_total_fee < 0:
            raise ValidationError("Total fee cannot be negative", field="total_fee_committed")
        if new_total_fee == student.total_fee_committed:
            return False

        old_fee = student.total_fee_committed
        result = await self.db.execute(
            update(Student)
            .where(Student.id == student.id, Student.is_deleted.is_(False))
            .values(
                total_fee_committed=new_total_fee,
                pending_amount=new_total_fee - Student.total_paid,
                status=fee_status_expression(new_total_fee),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise NotFoundError("Student", student.id)

        revised = await self._reload(student.id)
        if revised.pending_amount < 0:
            logger.warning(
                "Fee revision left student %s overpaid: fee %s, paid %s, refund due %s",
                revised.id,
                new_total_fee,
                revised.total_paid,
                revised.refund_due,
            )
        else:
            logger.info(
                "Fee revised for student %s: %s -> %s", revised.id, old_fee, new_total_fee
            )

        await self.audit.log(
            action=AuditAction.REVISE_FEE,
            entity_type="Student",
            entity_id=revised.id,
            entity_identifier=revised.full_name,
            user_id=revised_by_id,
            old_values={"total_fee_committed": old_fee},
            new_values={
                "total_fee_committed": new_total_fee,
                "pending_amount": revised.pending_amount,
                "status": revised.status,
            },
        )
        return True

    async def delete_student(self, student_id: int, deleted_by_id: int) -> Student:
        """Soft-delete a student. Transactions are kept for the books."""
        student = await self.get_student_by_id(student_id)
        student.is_deleted = True
        student.deleted_at = local_now()

        await self.audit.log(
            action=AuditAction.DELETE,
            entity_type="Student",
            entity_id=student_id,
            entity_identifier=student.full_name,
            user_id=deleted_by_id,
            old_values={"pending_amount": student.pending_amount},
        )

        await self.db.commit()
        return await self._reload(student_id)

    async def save_photo(
        self, student_id: int, file: UploadFile, uploaded_by_id: int
    ) -> Student:
        """Store a profile photo under uploads_path and point the student at it."""
        student = await self.get_student_by_id(student_id)

        content_type = file.content_type or ""
        if content_type not in ALLOWED_PHOTO_TYPES:
            raise ValidationError(
                f"Allowed types: JPEG, PNG, WebP. Got: {content_type}", field="photo"
            )
        content = await file.read()
        if not content:
            raise ValidationError("Photo file is empty", field="photo")
        if len(content) > MAX_PHOTO_SIZE:
            raise ValidationError(
                f"Photo must not exceed {MAX_PHOTO_SIZE // (1024 * 1024)} MB", field="photo"
            )

        ext = Path(file.filename or "").suffix.lower()[:10] or ".jpg"
        file_name = f"{student_id}_{uuid.uuid4().hex[:12]}{ext}"
        storage_dir = Path(settings.uploads_path)
        storage_dir.mkdir(parents=True, exist_ok=True)
        (storage_dir / file_name).write_bytes(content)

        old_url = student.photo_url
        student.photo_url = f"/uploads/{file_name}"

        await self.audit.log(
            action=AuditAction.UPDATE,
            entity_type="Student",
            entity_id=student_id,
            entity_identifier=student.full_name,
            user_id=uploaded_by_id,
            old_values={"photo_url": old_url},
            new_values={"photo_url": student.photo_url},
        )

        await self.db.commit()
        return await self._reload(student_id)
