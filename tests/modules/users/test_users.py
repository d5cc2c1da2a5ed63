import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from feedesk.core.auth.models import UserRole
from feedesk.core.exceptions import AuthenticationError, NotFoundError, ValidationError
from feedesk.modules.users.schemas import UserCreate, UserListFilters, UserUpdate
from feedesk.modules.users.service import UserService


class TestUserService:
    """Tests for UserService."""

    async def test_create_and_list(self, db_session: AsyncSession, admin_user):
        service = UserService(db_session)
        await service.create(
            UserCreate(username="reception", password="Reception1", full_name="  Neha  "),
            created_by_id=admin_user.id,
        )

        staff, total = await service.list_users(UserListFilters(role=UserRole.STAFF))

        assert total == 1
        assert staff[0].username == "reception"
        assert staff[0].full_name == "Neha"

    async def test_search(self, db_session: AsyncSession, admin_user, staff_user):
        users, total = await UserService(db_session).list_users(UserListFilters(search="front"))

        assert total == 1
        assert users[0].username == "desk"

    async def test_cannot_demote_self(self, db_session: AsyncSession, admin_user):
        with pytest.raises(ValidationError):
            await UserService(db_session).update(
                admin_user.id, UserUpdate(role=UserRole.STAFF), admin_user.id
            )

    async def test_cannot_deactivate_self(self, db_session: AsyncSession, admin_user):
        with pytest.raises(ValidationError):
            await UserService(db_session).update(
                admin_user.id, UserUpdate(is_active=False), admin_user.id
            )

    async def test_promote_other(self, db_session: AsyncSession, admin_user, staff_user):
        user = await UserService(db_session).update(
            staff_user.id, UserUpdate(role=UserRole.ADMIN), admin_user.id
        )

        assert user.role == UserRole.ADMIN.value
        assert user.is_admin is True

    async def test_cannot_delete_self(self, db_session: AsyncSession, admin_user):
        with pytest.raises(ValidationError):
            await UserService(db_session).delete(admin_user.id, admin_user.id)

    async def test_delete_other(self, db_session: AsyncSession, admin_user, staff_user):
        service = UserService(db_session)
        staff_id = staff_user.id

        await service.delete(staff_id, admin_user.id)

        with pytest.raises(NotFoundError):
            await service.get_by_id(staff_id)

    async def test_change_own_password_wrong_current(self, db_session: AsyncSession, staff_user):
        with pytest.raises(AuthenticationError):
            await UserService(db_session).change_own_password(
                staff_user.id, current_password="Nope12345", new_password="Another123"
            )


class TestUsersAPI:
    """Tests for users endpoints."""

    async def test_staff_cannot_manage_users(self, client: AsyncClient, staff_headers: dict):
        response = await client.get("/api/v1/users", headers=staff_headers)

        assert response.status_code == 403

    async def test_create_user(self, client: AsyncClient, admin_headers: dict):
        response = await client.post(
            "/api/v1/users",
            json={"username": "counter2", "password": "Counter123", "role": "staff"},
            headers=admin_headers,
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["username"] == "counter2"
        assert data["role"] == "staff"

    async def test_create_user_weak_password(self, client: AsyncClient, admin_headers: dict):
        response = await client.post(
            "/api/v1/users",
            json={"username": "counter2", "password": "weak"},
            headers=admin_headers,
        )

        assert response.status_code == 422

    async def test_create_duplicate_username(self, client: AsyncClient, admin_headers: dict, staff_user):
        response = await client.post(
            "/api/v1/users",
            json={"username": "desk", "password": "Counter123"},
            headers=admin_headers,
        )

        assert response.status_code == 409

    async def test_set_password(self, client: AsyncClient, admin_headers: dict, staff_user):
        response = await client.post(
            f"/api/v1/users/{staff_user.id}/set-password",
            json={"password": "Fresh12345"},
            headers=admin_headers,
        )
        assert response.status_code == 200

        login = await client.post(
            "/api/v1/auth/login", json={"username": "desk", "password": "Fresh12345"}
        )
        assert login.status_code == 200

    async def test_deactivated_user_cannot_login(
        self, client: AsyncClient, admin_headers: dict, staff_user
    ):
        response = await client.patch(
            f"/api/v1/users/{staff_user.id}",
            json={"is_active": False},
            headers=admin_headers,
        )
        assert response.status_code == 200

        login = await client.post(
            "/api/v1/auth/login", json={"username": "desk", "password": "StaffPass123"}
        )
        assert login.status_code == 401
