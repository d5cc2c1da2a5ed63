"""API endpoints for Students module."""

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from feedesk.core.auth.dependencies import AdminUser, StaffUser
from feedesk.core.database.session import get_db
from feedesk.core.exceptions import AuthorizationError
from feedesk.modules.students.models import FeeStatus
from feedesk.modules.students.schemas import (
    FeeRevisionRequest,
    StudentCreate,
    StudentFilters,
    StudentResponse,
    StudentUpdate,
)
from feedesk.modules.students.service import StudentService
from feedesk.modules.transactions.schemas import TransactionResponse
from feedesk.modules.transactions.service import TransactionService
from feedesk.shared.schemas.base import ApiResponse, PaginatedResponse

router = APIRouter(prefix="/students", tags=["Students"])


@router.post(
    "",
    response_model=ApiResponse[StudentResponse],
    status_code=status.HTTP_201_CREATED,
)
async def admit_student(
    data: StudentCreate,
    current_user: StaffUser,
    db: AsyncSession = Depends(get_db),
):
    """Admit a student into a course."""
    service = StudentService(db)
    student = await service.admit_student(data, current_user.id)
    return ApiResponse(
        message="Student admitted successfully",
        data=StudentResponse.model_validate(student),
    )


@router.get("", response_model=ApiResponse[PaginatedResponse[StudentResponse]])
async def list_students(
    current_user: StaffUser,
    search: str | None = Query(None, description="Name, mobile or batch"),
    course_id: int | None = Query(None),
    fee_status: FeeStatus | None = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    """List students with search, filters and pagination."""
    service = StudentService(db)
    filters = StudentFilters(
        search=search, course_id=course_id, status=fee_status, page=page, limit=limit
    )
    students, total = await service.list_students(filters)
    return ApiResponse(
        data=PaginatedResponse.create(
            items=[StudentResponse.model_validate(s) for s in students],
            total=total,
            page=page,
            limit=limit,
        )
    )


@router.get("/{student_id}", response_model=ApiResponse[StudentResponse])
async def get_student(
    student_id: int,
    current_user: StaffUser,
    db: AsyncSession = Depends(get_db),
):
    """Get student by ID."""
    service = StudentService(db)
    student = await service.get_student_by_id(student_id)
    return ApiResponse(data=StudentResponse.model_validate(student))


@router.patch("/{student_id}", response_model=ApiResponse[StudentResponse])
async def update_student(
    student_id: int,
    data: StudentUpdate,
    current_user: StaffUser,
    db: AsyncSession = Depends(get_db),
):
    """Update a student. Changing the total fee requires ADMIN role."""
    if data.total_fee_committed is not None and not current_user.is_admin:
        raise AuthorizationError("Only admins can revise the fee")
    service = StudentService(db)
    student = await service.update_student(student_id, data, current_user.id)
    return ApiResponse(
        message="Student updated successfully",
        data=StudentResponse.model_validate(student),
    )


@router.delete("/{student_id}", response_model=ApiResponse[StudentResponse])
async def delete_student(
    student_id: int,
    current_user: AdminUser,
    db: AsyncSession = Depends(get_db),
):
    """Remove a student (soft delete). Requires ADMIN role."""
    service = StudentService(db)
    student = await service.delete_student(student_id, current_user.id)
    return ApiResponse(
        message="Student removed",
        data=StudentResponse.model_validate(student),
    )


@router.post("/{student_id}/revise-fee", response_model=ApiResponse[StudentResponse])
async def revise_fee(
    student_id: int,
    data: FeeRevisionRequest,
    current_user: AdminUser,
    db: AsyncSession = Depends(get_db),
):
    """Change the committed fee of a student. Requires ADMIN role."""
    service = StudentService(db)
    student = await service.revise_fee(student_id, data.total_fee_committed, current_user.id)
    return ApiResponse(
        message="Fee revised",
        data=StudentResponse.model_validate(student),
    )


@router.post("/{student_id}/photo", response_model=ApiResponse[StudentResponse])
async def upload_photo(
    student_id: int,
    current_user: StaffUser,
    photo: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
):
    """Upload a profile photo (JPEG, PNG or WebP)."""
    service = StudentService(db)
    student = await service.save_photo(student_id, photo, current_user.id)
    return ApiResponse(
        message="Photo uploaded",
        data=StudentResponse.model_validate(student),
    )


@router.get(
    "/{student_id}/transactions",
    response_model=ApiResponse[list[TransactionResponse]],
)
async def get_student_transactions(
    student_id: int,
    current_user: StaffUser,
    db: AsyncSession = Depends(get_db),
):
    """Payment history of a student, oldest first."""
    await StudentService(db).get_student_by_id(student_id, include_deleted=True)
    transactions = await TransactionService(db).list_for_student(student_id)
    return ApiResponse(data=[TransactionResponse.model_validate(t) for t in transactions])
