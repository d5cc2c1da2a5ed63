"""API endpoints for Courses module."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from feedesk.core.auth.dependencies import AdminUser, StaffUser
from feedesk.core.database.session import get_db
from feedesk.modules.courses.schemas import CourseCreate, CourseResponse, CourseUpdate
from feedesk.modules.courses.service import CourseService
from feedesk.shared.schemas.base import ApiResponse

router = APIRouter(prefix="/courses", tags=["Courses"])


@router.post(
    "",
    response_model=ApiResponse[CourseResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_course(
    data: CourseCreate,
    current_user: AdminUser,
    db: AsyncSession = Depends(get_db),
):
    """Create a new course. Requires ADMIN role."""
    service = CourseService(db)
    course = await service.create_course(data, current_user.id)
    return ApiResponse(
        message="Course created successfully",
        data=CourseResponse.model_validate(course),
    )


@router.get("", response_model=ApiResponse[list[CourseResponse]])
async def list_courses(
    current_user: StaffUser,
    include_deleted: bool = Query(False),
    db: AsyncSession = Depends(get_db),
):
    """List courses."""
    service = CourseService(db)
    courses = await service.list_courses(include_deleted=include_deleted)
    return ApiResponse(data=[CourseResponse.model_validate(c) for c in courses])


@router.get("/{course_id}", response_model=ApiResponse[CourseResponse])
async def get_course(
    course_id: int,
    current_user: StaffUser,
    db: AsyncSession = Depends(get_db),
):
    """Get course by ID."""
    service = CourseService(db)
    course = await service.get_course_by_id(course_id)
    return ApiResponse(data=CourseResponse.model_validate(course))


@router.patch("/{course_id}", response_model=ApiResponse[CourseResponse])
async def update_course(
    course_id: int,
    data: CourseUpdate,
    current_user: AdminUser,
    db: AsyncSession = Depends(get_db),
):
    """Update a course. Requires ADMIN role."""
    service = CourseService(db)
    course = await service.update_course(course_id, data, current_user.id)
    return ApiResponse(
        message="Course updated successfully",
        data=CourseResponse.model_validate(course),
    )


@router.delete("/{course_id}", response_model=ApiResponse[CourseResponse])
async def delete_course(
    course_id: int,
    current_user: AdminUser,
    db: AsyncSession = Depends(get_db),
):
    """Remove a course from the catalogue (soft delete). Requires ADMIN role."""
    service = CourseService(db)
    course = await service.delete_course(course_id, current_user.id)
    return ApiResponse(
        message="Course removed",
        data=CourseResponse.model_validate(course),
    )
