from datetime import datetime
from enum import StrEnum

from sqlalchemy import Boolean, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from feedesk.core.database.base import BaseModel


class UserRole(StrEnum):
    """User roles in the system."""

    ADMIN = "admin"
    STAFF = "staff"


class User(BaseModel):
    """
    Institute staff member with dashboard access.

    Admins manage users, courses, deletions and backups. Staff handle
    admissions and fee collection.
    """

    __tablename__ = "users"

    username: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    full_name: Mapped[str | None] = mapped_column(String(200), nullable=True)

    role: Mapped[str] = mapped_column(
        String(20), nullable=False, default=UserRole.STAFF.value, index=True
    )

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    def has_role(self, *roles: UserRole) -> bool:
        """Check if user has any of the specified roles."""
        return self.role in [r.value for r in roles]

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value
