from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from feedesk.core.auth.jwt import create_access_token, create_refresh_token, decode_token
from feedesk.core.auth.models import User, UserRole
from feedesk.core.auth.password import hash_password, verify_password
from feedesk.core.audit import AuditAction, create_audit_log
from feedesk.core.exceptions import AuthenticationError, ConflictError


class AuthService:
    """Service for authentication operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_user_by_username(self, username: str) -> User | None:
        """Get user by username."""
        stmt = select(User).where(User.username == username)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_user_by_id(self, user_id: int) -> User | None:
        """Get user by ID."""
        stmt = select(User).where(User.id == user_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create_user(
        self,
        username: str,
        password: str,
        role: UserRole = UserRole.STAFF,
        full_name: str | None = None,
        created_by_id: int | None = None,
    ) -> User:
        """Create a new user."""
        existing = await self.get_user_by_username(username)
        if existing:
            raise ConflictError("User", "username", username)

        user = User(
            username=username,
            password_hash=hash_password(password),
            full_name=full_name,
            role=role.value,
            is_active=True,
        )

        self.session.add(user)
        await self.session.flush()

        await create_audit_log(
            session=self.session,
            action=AuditAction.CREATE,
            entity_type="User",
            entity_id=user.id,
            user_id=created_by_id,
            entity_identifier=user.username,
            new_values={"username": user.username, "role": user.role},
        )

        return user

    async def authenticate(
        self, username: str, password: str, ip_address: str | None = None
    ) -> tuple[User, str, str]:
        """
        Authenticate user and return tokens.

        Returns:
            Tuple of (user, access_token, refresh_token)

        Raises:
            AuthenticationError: If credentials are invalid
        """
        user = await self.get_user_by_username(username)

        if not user or not verify_password(password, user.password_hash):
            raise AuthenticationError("Invalid username or password")

        if not user.is_active:
            raise AuthenticationError("User account is deactivated")

        user.last_login_at = datetime.now(timezone.utc)
        await self.session.flush()

        access_token = create_access_token(user.id, user.role)
        refresh_token = create_refresh_token(user.id)

        await create_audit_log(
            session=self.session,
            action=AuditAction.LOGIN,
            entity_type="User",
            entity_id=user.id,
            user_id=user.id,
            entity_identifier=user.username,
            ip_address=ip_address,
        )

        return user, access_token, refresh_token

    async def refresh_tokens(self, refresh_token: str) -> tuple[str, str]:
        """
        Refresh access token using refresh token.

        Returns:
            Tuple of (new_access_token, new_refresh_token)
        """
        payload = decode_token(refresh_token, token_type="refresh")

        user = await self.get_user_by_id(int(payload["sub"]))

        if not user:
            raise AuthenticationError("User not found")

        if not user.is_active:
            raise AuthenticationError("User account is deactivated")

        return create_access_token(user.id, user.role), create_refresh_token(user.id)
