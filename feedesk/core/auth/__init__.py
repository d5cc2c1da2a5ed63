from feedesk.core.auth.models import User, UserRole
from feedesk.core.auth.service import AuthService
from feedesk.core.auth.jwt import create_access_token, create_refresh_token, decode_token
from feedesk.core.auth.dependencies import get_current_user, require_roles

__all__ = [
    "User",
    "UserRole",
    "AuthService",
    "create_access_token",
    "create_refresh_token",
    "decode_token",
    "get_current_user",
    "require_roles",
]
