"""Service for Courses module."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from feedesk.core.audit.service import AuditAction, AuditService
from feedesk.core.exceptions import NotFoundError, ValidationError
from feedesk.modules.courses.models import Course
from feedesk.modules.courses.schemas import CourseCreate, CourseUpdate
from feedesk.shared.utils.dates import local_now


class CourseService:
    """Service for managing the course catalogue."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.audit = AuditService(db)

    async def create_course(self, data: CourseCreate, created_by_id: int) -> Course:
        """Create a new course."""
        course = Course(
            name=data.name.strip(),
            duration=data.duration.strip(),
            standard_fee=data.standard_fee,
        )
        self.db.add(course)
        await self.db.flush()

        await self.audit.log(
            action=AuditAction.CREATE,
            entity_type="Course",
            entity_id=course.id,
            entity_identifier=course.name,
            user_id=created_by_id,
            new_values={"name": course.name, "standard_fee": course.standard_fee},
        )

        await self.db.commit()
        await self.db.refresh(course)
        return course

    async def get_course_by_id(self, course_id: int, include_deleted: bool = False) -> Course:
        """Get course by ID."""
        query = select(Course).where(Course.id == course_id)
        if not include_deleted:
            query = query.where(Course.is_deleted.is_(False))
        result = await self.db.execute(query)
        course = result.scalar_one_or_none()
        if not course:
            raise NotFoundError("Course", course_id)
        return course

    async def list_courses(self, include_deleted: bool = False) -> list[Course]:
        """List courses ordered by name."""
        query = select(Course).order_by(Course.name, Course.id)
        if not include_deleted:
            query = query.where(Course.is_deleted.is_(False))
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def update_course(
        self, course_id: int, data: CourseUpdate, updated_by_id: int
    ) -> Course:
        """Update a course. Existing enrollments keep their committed fee."""
        course = await self.get_course_by_id(course_id)
        old_values = {}
        new_values = {}

        for field in ("name", "duration", "standard_fee"):
            value = getattr(data, field)
            if value is not None and value != getattr(course, field):
                old_values[field] = getattr(course, field)
                setattr(course, field, value)
                new_values[field] = value

        if new_values:
            await self.audit.log(
                action=AuditAction.UPDATE,
                entity_type="Course",
                entity_id=course_id,
                entity_identifier=course.name,
                user_id=updated_by_id,
                old_values=old_values,
                new_values=new_values,
            )

        await self.db.commit()
        await self.db.refresh(course)
        return course

    async def delete_course(self, course_id: int, deleted_by_id: int) -> Course:
        """Soft-delete a course. Students already enrolled keep pointing at it."""
        course = await self.get_course_by_id(course_id)
        course.is_deleted = True
        course.deleted_at = local_now()

        await self.audit.log(
            action=AuditAction.DELETE,
            entity_type="Course",
            entity_id=course_id,
            entity_identifier=course.name,
            user_id=deleted_by_id,
        )

        await self.db.commit()
        return course

    async def validate_active(self, course_id: int) -> Course:
        """Course must exist and not be deleted to admit students into it."""
        try:
            return await self.get_course_by_id(course_id)
        except NotFoundError:
            deleted = await self.db.execute(
                select(Course.id).where(Course.id == course_id, Course.is_deleted.is_(True))
            )
            if deleted.scalar_one_or_none() is not None:
                raise ValidationError(f"Course {course_id} has been deleted", field="course_id")
            raise
