from pydantic import Field, field_validator

from feedesk.core.auth.models import UserRole
from feedesk.core.auth.password import PASSWORD_RULE, is_strong_password
from feedesk.core.auth.schemas import UserResponse
from feedesk.shared.schemas import BaseSchema

USERNAME_PATTERN = r"^[A-Za-z0-9_.-]+$"


class UserCreate(BaseSchema):
    """Schema for creating a new user."""

    username: str = Field(..., min_length=3, max_length=100, pattern=USERNAME_PATTERN)
    password: str = Field(..., max_length=72)
    full_name: str | None = Field(None, max_length=200)
    role: UserRole = UserRole.STAFF

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        if not is_strong_password(v):
            raise ValueError(PASSWORD_RULE)
        return v

    @field_validator("full_name")
    @classmethod
    def validate_full_name(cls, v: str | None) -> str | None:
        if v is not None:
            v = v.strip() or None
        return v


class UserUpdate(BaseSchema):
    """Schema for updating a user."""

    full_name: str | None = Field(None, max_length=200)
    role: UserRole | None = None
    is_active: bool | None = None


class SetPassword(BaseSchema):
    """Admin resets another user's password."""

    password: str = Field(..., max_length=72)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        if not is_strong_password(v):
            raise ValueError(PASSWORD_RULE)
        return v


class UserListFilters(BaseSchema):
    """Filters for listing users."""

    role: UserRole | None = None
    is_active: bool | None = None
    search: str | None = None
    page: int = 1
    limit: int = 20


__all__ = ["UserCreate", "UserUpdate", "SetPassword", "UserListFilters", "UserResponse"]
