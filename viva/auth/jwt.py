"""Bearer tokens.

Tokens are HMAC-signed JWTs carrying the user key in `sub`, the role in
`role`, and `exp`/`iat` as unix timestamps. A token that fails verification
for any reason decodes to `None`; callers only ever answer 401.
"""

from __future__ import annotations

import datetime
import typing as t

import annotated_types as ant
import jwt
import pydantic as p

from viva.core import di
from viva.model import BaseModel, UserID, UserRole

Algorithm = t.Literal["HS256", "HS384", "HS512"]


class TokenData(BaseModel):
    model_config = p.ConfigDict(frozen=True, populate_by_name=True)

    user_id: UserID = p.Field(alias="sub")
    role: UserRole
    expires_at: p.AwareDatetime = p.Field(alias="exp")
    issued_at: p.AwareDatetime = p.Field(alias="iat")


class JWTManager(object):
    def __init__(
        self,
        secret_key: p.Secret[str],
        algorithm: Algorithm = "HS256",
        access_token_expire_minutes: t.Annotated[int, ant.Gt(1)] = 30,
    ) -> None:
        self._secret_key = secret_key
        self._algorithm: Algorithm = algorithm
        self.lifetime = datetime.timedelta(minutes=access_token_expire_minutes)

    @property
    def secret_key(self) -> str:
        return self._secret_key.get_secret_value()

    @property
    def algorithm(self) -> str:
        return self._algorithm

    def create_access_token(
        self, user_id: UserID, role: UserRole, expires_delta: datetime.timedelta | None = None
    ) -> str:
        """Sign a token for `user_id`, valid for `expires_delta` or the configured lifetime"""
        issued = int(datetime.datetime.now(datetime.UTC).timestamp())
        lifetime = self.lifetime if expires_delta is None else expires_delta
        claims = {
            "sub": str(user_id),
            "role": role.value,
            "iat": issued,
            "exp": issued + int(lifetime.total_seconds()),
        }
        return jwt.encode(claims, self.secret_key, algorithm=self._algorithm)

    def decode_token(self, token: str) -> TokenData | None:
        try:
            claims = jwt.decode(
                token, self.secret_key, algorithms=[self._algorithm], options={"require": ["exp", "sub", "role"]}
            )
        except jwt.InvalidTokenError:
            return None
        claims.setdefault("iat", claims["exp"])
        try:
            return TokenData.model_validate(claims)
        except p.ValidationError:
            return None


def decode_token(token: str, manager: JWTManager = di.Provide["auth.jwt_manager"]) -> TokenData | None:
    return manager.decode_token(token)
