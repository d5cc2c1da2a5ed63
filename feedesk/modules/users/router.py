from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from feedesk.core.auth.dependencies import AdminUser
from feedesk.core.auth.models import UserRole
from feedesk.core.database import get_db
from feedesk.modules.users.schemas import (
    SetPassword,
    UserCreate,
    UserListFilters,
    UserResponse,
    UserUpdate,
)
from feedesk.modules.users.service import UserService
from feedesk.shared.schemas import MessageResponse, PaginatedResponse, SuccessResponse
from feedesk.shared.schemas.base import ApiResponse

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("", response_model=ApiResponse[PaginatedResponse[UserResponse]])
async def list_users(
    current_user: AdminUser,
    role: UserRole | None = Query(None),
    is_active: bool | None = Query(None),
    search: str | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    """List users. Admin only."""
    service = UserService(db)

    filters = UserListFilters(
        role=role,
        is_active=is_active,
        search=search,
        page=page,
        limit=limit,
    )

    users, total = await service.list_users(filters)

    return ApiResponse(
        data=PaginatedResponse.create(
            items=[UserResponse.model_validate(u) for u in users],
            total=total,
            page=page,
            limit=limit,
        ),
    )


@router.post(
    "",
    response_model=SuccessResponse[UserResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_user(
    data: UserCreate,
    current_user: AdminUser,
    db: AsyncSession = Depends(get_db),
):
    """Create a new user. Admin only."""
    service = UserService(db)
    user = await service.create(data, created_by_id=current_user.id)
    return SuccessResponse(
        data=UserResponse.model_validate(user),
        message="User created successfully",
    )


@router.get("/{user_id}", response_model=SuccessResponse[UserResponse])
async def get_user(
    user_id: int,
    current_user: AdminUser,
    db: AsyncSession = Depends(get_db),
):
    """Get user by ID. Admin only."""
    user = await UserService(db).get_by_id(user_id)
    return SuccessResponse(data=UserResponse.model_validate(user))


@router.patch("/{user_id}", response_model=SuccessResponse[UserResponse])
async def update_user(
    user_id: int,
    data: UserUpdate,
    current_user: AdminUser,
    db: AsyncSession = Depends(get_db),
):
    """Update a user's name, role or active flag. Admin only."""
    user = await UserService(db).update(user_id, data, updated_by_id=current_user.id)
    return SuccessResponse(
        data=UserResponse.model_validate(user),
        message="User updated successfully",
    )


@router.post("/{user_id}/set-password", response_model=SuccessResponse[MessageResponse])
async def set_user_password(
    user_id: int,
    data: SetPassword,
    current_user: AdminUser,
    db: AsyncSession = Depends(get_db),
):
    """Reset a user's password. Admin only."""
    await UserService(db).set_password(user_id, data.password, set_by_id=current_user.id)
    return SuccessResponse(
        data=MessageResponse(detail="Password updated"),
        message="Password updated",
    )


@router.delete("/{user_id}", response_model=SuccessResponse[MessageResponse])
async def delete_user(
    user_id: int,
    current_user: AdminUser,
    db: AsyncSession = Depends(get_db),
):
    """Delete a user. Admins cannot delete themselves."""
    await UserService(db).delete(user_id, deleted_by_id=current_user.id)
    return SuccessResponse(
        data=MessageResponse(detail="User removed"),
        message="User removed",
    )
