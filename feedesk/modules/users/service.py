from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from feedesk.core.audit import AuditAction, create_audit_log
from feedesk.core.auth.models import User, UserRole
from feedesk.core.auth.password import hash_password, verify_password
from feedesk.core.auth.service import AuthService
from feedesk.core.exceptions import AuthenticationError, NotFoundError, ValidationError
from feedesk.modules.users.schemas import UserCreate, UserListFilters, UserUpdate


class UserService:
    """Service for user management operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, user_id: int) -> User:
        """Get user by ID."""
        stmt = select(User).where(User.id == user_id)
        result = await self.session.execute(stmt)
        user = result.scalar_one_or_none()
        if not user:
            raise NotFoundError("User", user_id)
        return user

    async def list_users(self, filters: UserListFilters) -> tuple[list[User], int]:
        """
        List users with filters and pagination.

        Returns:
            Tuple of (users list, total count)
        """
        stmt = select(User)
        count_stmt = select(func.count(User.id))

        if filters.role:
            stmt = stmt.where(User.role == filters.role.value)
            count_stmt = count_stmt.where(User.role == filters.role.value)

        if filters.is_active is not None:
            stmt = stmt.where(User.is_active == filters.is_active)
            count_stmt = count_stmt.where(User.is_active == filters.is_active)

        if filters.search:
            search_term = f"%{filters.search}%"
            search_filter = or_(
                User.username.ilike(search_term),
                User.full_name.ilike(search_term),
            )
            stmt = stmt.where(search_filter)
            count_stmt = count_stmt.where(search_filter)

        total = (await self.session.execute(count_stmt)).scalar_one()

        offset = (filters.page - 1) * filters.limit
        stmt = stmt.order_by(User.username).offset(offset).limit(filters.limit)

        result = await self.session.execute(stmt)
        return list(result.scalars().all()), total

    async def create(self, data: UserCreate, created_by_id: int) -> User:
        """Create a new login for a staff member or admin."""
        return await AuthService(self.session).create_user(
            username=data.username,
            password=data.password,
            role=data.role,
            full_name=data.full_name,
            created_by_id=created_by_id,
        )

    async def update(self, user_id: int, data: UserUpdate, updated_by_id: int) -> User:
        """Update name, role or active flag."""
        user = await self.get_by_id(user_id)

        if user_id == updated_by_id and (
            (data.role is not None and data.role != UserRole.ADMIN)
            or data.is_active is False
        ):
            raise ValidationError("You cannot demote or deactivate your own account")

        old_values = {"full_name": user.full_name, "role": user.role, "is_active": user.is_active}

        if data.full_name is not None:
            user.full_name = data.full_name.strip() or None
        if data.role is not None:
            user.role = data.role.value
        if data.is_active is not None:
            user.is_active = data.is_active

        await self.session.flush()

        await create_audit_log(
            session=self.session,
            action=AuditAction.UPDATE,
            entity_type="User",
            entity_id=user.id,
            user_id=updated_by_id,
            entity_identifier=user.username,
            old_values=old_values,
            new_values={"full_name": user.full_name, "role": user.role, "is_active": user.is_active},
        )

        return user

    async def delete(self, user_id: int, deleted_by_id: int) -> None:
        """Delete a user. Admins cannot delete themselves."""
        if user_id == deleted_by_id:
            raise ValidationError("You cannot delete your own account")

        user = await self.get_by_id(user_id)

        await create_audit_log(
            session=self.session,
            action=AuditAction.DELETE,
            entity_type="User",
            entity_id=user.id,
            user_id=deleted_by_id,
            entity_identifier=user.username,
            old_values={"username": user.username, "role": user.role},
        )

        await self.session.delete(user)
        await self.session.flush()

    async def set_password(self, user_id: int, new_password: str, set_by_id: int) -> User:
        """Reset a user's password (by admin)."""
        user = await self.get_by_id(user_id)
        user.password_hash = hash_password(new_password)
        await self.session.flush()

        await create_audit_log(
            session=self.session,
            action=AuditAction.UPDATE,
            entity_type="User",
            entity_id=user.id,
            user_id=set_by_id,
            entity_identifier=user.username,
            comment="Password reset",
        )

        return user

    async def change_own_password(
        self, user_id: int, current_password: str, new_password: str
    ) -> User:
        """Change own password after checking the current one."""
        user = await self.get_by_id(user_id)

        if not verify_password(current_password, user.password_hash):
            raise AuthenticationError("Current password is incorrect")

        user.password_hash = hash_password(new_password)
        await self.session.flush()

        await create_audit_log(
            session=self.session,
            action=AuditAction.UPDATE,
            entity_type="User",
            entity_id=user.id,
            user_id=user.id,
            entity_identifier=user.username,
            comment="Password changed",
        )

        return user
