import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from feedesk.core.exceptions import NotFoundError
from feedesk.modules.courses.schemas import CourseCreate, CourseUpdate
from feedesk.modules.courses.service import CourseService


class TestCourseService:
    """Tests for CourseService."""

    async def test_create_course(self, db_session: AsyncSession, admin_user):
        course = await CourseService(db_session).create_course(
            CourseCreate(name="  Basic Computer  ", duration="6 Months", standard_fee=8000),
            created_by_id=admin_user.id,
        )

        assert course.id is not None
        assert course.name == "Basic Computer"
        assert course.standard_fee == 8000
        assert course.is_deleted is False

    async def test_list_courses_sorted_by_name(self, db_session: AsyncSession, admin_user, course):
        service = CourseService(db_session)
        await service.create_course(
            CourseCreate(name="Advanced Excel", duration="2 Months", standard_fee=3000),
            created_by_id=admin_user.id,
        )

        courses = await service.list_courses()

        assert [c.name for c in courses] == ["Advanced Excel", "Tally Prime"]

    async def test_update_fee_keeps_enrolled_students(
        self, db_session: AsyncSession, admin_user, course, student
    ):
        """Students keep the fee committed at admission."""
        updated = await CourseService(db_session).update_course(
            course.id, CourseUpdate(standard_fee=6000), admin_user.id
        )

        assert updated.standard_fee == 6000
        assert student.total_fee_committed == 5000

    async def test_delete_course(self, db_session: AsyncSession, admin_user, course):
        service = CourseService(db_session)
        await service.delete_course(course.id, admin_user.id)

        assert await service.list_courses() == []
        assert len(await service.list_courses(include_deleted=True)) == 1
        with pytest.raises(NotFoundError):
            await service.get_course_by_id(course.id)

    async def test_get_missing_course(self, db_session: AsyncSession):
        with pytest.raises(NotFoundError):
            await CourseService(db_session).get_course_by_id(999)


class TestCoursesAPI:
    """Tests for courses endpoints."""

    async def test_create_course(self, client: AsyncClient, admin_headers: dict):
        response = await client.post(
            "/api/v1/courses",
            json={"name": "DTP", "duration": "3 Months", "standard_fee": 4500},
            headers=admin_headers,
        )

        assert response.status_code == 201
        assert response.json()["data"]["name"] == "DTP"

    async def test_staff_cannot_create(self, client: AsyncClient, staff_headers: dict):
        response = await client.post(
            "/api/v1/courses",
            json={"name": "DTP", "duration": "3 Months", "standard_fee": 4500},
            headers=staff_headers,
        )

        assert response.status_code == 403

    async def test_negative_fee_rejected(self, client: AsyncClient, admin_headers: dict):
        response = await client.post(
            "/api/v1/courses",
            json={"name": "DTP", "duration": "3 Months", "standard_fee": -1},
            headers=admin_headers,
        )

        assert response.status_code == 422

    async def test_staff_can_list(self, client: AsyncClient, staff_headers: dict, course):
        response = await client.get("/api/v1/courses", headers=staff_headers)

        assert response.status_code == 200
        assert [c["name"] for c in response.json()["data"]] == ["Tally Prime"]

    async def test_update_and_delete(self, client: AsyncClient, admin_headers: dict, course):
        updated = await client.patch(
            f"/api/v1/courses/{course.id}",
            json={"duration": "4 Months"},
            headers=admin_headers,
        )
        assert updated.status_code == 200
        assert updated.json()["data"]["duration"] == "4 Months"

        deleted = await client.delete(f"/api/v1/courses/{course.id}", headers=admin_headers)
        assert deleted.status_code == 200
        assert deleted.json()["data"]["is_deleted"] is True

        missing = await client.get(f"/api/v1/courses/{course.id}", headers=admin_headers)
        assert missing.status_code == 404
