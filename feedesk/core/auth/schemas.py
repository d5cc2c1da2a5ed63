from datetime import datetime

from pydantic import Field, field_validator

from feedesk.core.auth.password import PASSWORD_RULE, is_strong_password
from feedesk.shared.schemas import BaseSchema


class LoginRequest(BaseSchema):
    """Login request schema."""

    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1, max_length=72)


class TokenResponse(BaseSchema):
    """Token response schema."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class RefreshRequest(BaseSchema):
    """Refresh token request schema."""

    refresh_token: str


class ChangePasswordRequest(BaseSchema):
    """Current user changes their own password."""

    current_password: str = Field(..., min_length=1, max_length=72)
    new_password: str = Field(..., max_length=72)

    @field_validator("new_password")
    @classmethod
    def validate_new_password(cls, v: str) -> str:
        if not is_strong_password(v):
            raise ValueError(PASSWORD_RULE)
        return v


class UserResponse(BaseSchema):
    """User response schema."""

    id: int
    username: str
    full_name: str | None
    role: str
    is_active: bool
    last_login_at: datetime | None
    created_at: datetime


class LoginResponse(BaseSchema):
    """Login response with user and tokens."""

    user: UserResponse
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
