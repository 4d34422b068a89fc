"""FastAPI dependencies that turn a bearer token into an `AuthContext`."""

from __future__ import annotations

import typing as t

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from viva.core import di
from viva.model import User, UserRole
from viva.storage import user as user_storage

from . import jwt as jwt_auth
from .jwt import TokenData

bearer_scheme = HTTPBearer(auto_error=False)
StaffRoles = frozenset({UserRole.Admin, UserRole.Staff})


class AuthContext(t.NamedTuple):
    user: User
    role: UserRole
    token_data: TokenData

    @property
    def is_staff(self) -> bool:
        return self.role in StaffRoles


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status.HTTP_401_UNAUTHORIZED, detail=detail, headers={"WWW-Authenticate": "Bearer"})


@di.inject
def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> AuthContext:
    """Answers 401 unless the token verifies and its user still exists.

    The role comes from the stored user rather than the token, so a demotion
    applies to tokens already issued.
    """
    if credentials is None:
        raise _unauthorized("Not authenticated")
    token_data = jwt_auth.decode_token(credentials.credentials)
    if token_data is None:
        raise _unauthorized("Invalid or expired token")

    with session.begin():
        user = user_storage.get(token_data.user_id, session=session)
    if user is None:
        raise _unauthorized("User not found")
    return AuthContext(user=user, role=user.role, token_data=token_data)


def require_role(*allowed_roles: UserRole) -> t.Callable[..., AuthContext]:
    """`Depends(require_role(UserRole.Admin))` answers 403 for any other role"""
    allowed = frozenset(allowed_roles)

    def check_role(auth: AuthContext = Depends(get_current_user)) -> AuthContext:
        if auth.role not in allowed:
            raise HTTPException(status.HTTP_403_FORBIDDEN, detail=f"role {auth.role.value!r} may not do this")
        return auth

    return check_role


require_admin = require_role(UserRole.Admin)
require_staff = require_role(*StaffRoles)
