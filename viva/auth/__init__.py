"""Bearer token authentication."""

__all__ = [
    "AuthContext",
    "JWTManager",
    "TokenData",
    "get_current_user",
    "require_admin",
    "require_role",
    "require_staff",
]

from .jwt import JWTManager, TokenData
from .middleware import AuthContext, get_current_user, require_admin, require_role, require_staff
