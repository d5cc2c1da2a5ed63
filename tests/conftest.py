from collections.abc import AsyncGenerator
from datetime import date

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from feedesk.core.auth.models import User, UserRole
from feedesk.core.auth.service import AuthService
from feedesk.core.database.base import Base
from feedesk.core.database import get_db
from feedesk.main import app
from feedesk.modules.courses.models import Course
from feedesk.modules.courses.schemas import CourseCreate
from feedesk.modules.courses.service import CourseService
from feedesk.modules.students.models import Gender, Student
from feedesk.modules.students.schemas import StudentCreate
from feedesk.modules.students.service import StudentService

# Test database URL (in-memory SQLite for speed)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

test_engine = create_async_engine(TEST_DATABASE_URL, echo=False)
test_async_session = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

ADMIN_PASSWORD = "AdminPass123"
STAFF_PASSWORD = "StaffPass123"


@pytest.fixture(autouse=True)
async def setup_database():
    """Create tables before each test and drop after."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get test database session."""
    async with test_async_session() as session:
        yield session


@pytest.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Get test HTTP client with overridden database dependency."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
async def admin_user(db_session: AsyncSession) -> User:
    user = await AuthService(db_session).create_user(
        username="admin",
        password=ADMIN_PASSWORD,
        role=UserRole.ADMIN,
        full_name="Institute Admin",
    )
    await db_session.commit()
    return user


@pytest.fixture
async def staff_user(db_session: AsyncSession) -> User:
    user = await AuthService(db_session).create_user(
        username="desk",
        password=STAFF_PASSWORD,
        role=UserRole.STAFF,
        full_name="Front Desk",
    )
    await db_session.commit()
    return user


@pytest.fixture
async def admin_headers(db_session: AsyncSession, admin_user: User) -> dict[str, str]:
    _, access_token, _ = await AuthService(db_session).authenticate("admin", ADMIN_PASSWORD)
    await db_session.commit()
    return {"Authorization": f"Bearer {access_token}"}


@pytest.fixture
async def staff_headers(db_session: AsyncSession, staff_user: User) -> dict[str, str]:
    _, access_token, _ = await AuthService(db_session).authenticate("desk", STAFF_PASSWORD)
    await db_session.commit()
    return {"Authorization": f"Bearer {access_token}"}


@pytest.fixture
async def course(db_session: AsyncSession, admin_user: User) -> Course:
    return await CourseService(db_session).create_course(
        CourseCreate(name="Tally Prime", duration="3 Months", standard_fee=5000),
        created_by_id=admin_user.id,
    )


def student_payload(course_id: int, **overrides) -> StudentCreate:
    """Admission form with sensible defaults."""
    data = {
        "first_name": "Asha",
        "last_name": "Verma",
        "dob": date(2004, 5, 17),
        "gender": Gender.FEMALE,
        "address": "12 MG Road, Indore",
        "student_mobile": "9876543210",
        "parent_mobile": "9123456780",
        "course_id": course_id,
        "batch": "Morning 8-10",
    }
    data.update(overrides)
    return StudentCreate(**data)


@pytest.fixture
async def student(db_session: AsyncSession, admin_user: User, course: Course) -> Student:
    """A student owing the course's standard fee of 5000."""
    return await StudentService(db_session).admit_student(
        student_payload(course.id), created_by_id=admin_user.id
    )


@pytest.fixture
def admit(db_session: AsyncSession, admin_user: User, course: Course):
    """Factory: admit another student into the course, e.g. `await admit(student_mobile=...)`."""

    async def _admit(**overrides) -> Student:
        return await StudentService(db_session).admit_student(
            student_payload(overrides.pop("course_id", course.id), **overrides),
            created_by_id=admin_user.id,
        )

    return _admit


@pytest.fixture
def student_json(course: Course) -> dict:
    """Admission form as the API receives it."""
    return {
        "first_name": "Ravi",
        "last_name": "Kumar",
        "dob": "2003-01-09",
        "gender": "Male",
        "address": "4 Station Road, Bhopal",
        "student_mobile": "98765 01234",
        "parent_mobile": "9000000001",
        "course_id": course.id,
        "batch": "Evening 6-8",
    }


@pytest.fixture
async def file_sessions(tmp_path) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """
    Session factory over a file-backed SQLite database.

    Every session gets its own connection, so concurrent callers contend
    for the database the way separate requests do.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'feedesk.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
async def shared_student_id(file_sessions: async_sessionmaker[AsyncSession]) -> int:
    """Id of a student owing 5000, committed to the file-backed database."""
    async with file_sessions() as session:
        course = await CourseService(session).create_course(
            CourseCreate(name="Tally Prime", duration="3 Months", standard_fee=5000),
            created_by_id=None,
        )
        student = await StudentService(session).admit_student(
            student_payload(course.id), created_by_id=None
        )
        return student.id
