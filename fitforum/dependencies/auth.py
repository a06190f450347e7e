import logging
from datetime import datetime, timedelta, timezone

import jwt
from fastapi import Header
from pydantic import BaseModel, ConfigDict, ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from fitforum.config.config import settings
from fitforum.errors import AuthenticationError
from fitforum.models.user import User, UserRole

logger = logging.getLogger(__name__)


class Permissions(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    can_manage_users: bool = False
    can_manage_boards: bool = False
    can_manage_posts: bool = False
    can_ban_users: bool = False


class AuthUser(BaseModel):
    """토큰 claim에서 복원한 요청자 정보. 각 작업에 명시적으로 전달합니다."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    user_id: int
    user_name: str
    email: str
    role: UserRole
    permissions: Permissions = Permissions()

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.admin


def create_access_token(user: User) -> str:
    """JWT 액세스 토큰을 생성합니다."""
    now = datetime.now(timezone.utc)
    claims = AuthUser(
        user_id=user.id,
        user_name=user.username,
        email=user.email,
        role=user.role,
        permissions=Permissions(
            can_manage_users=user.can_manage_users,
            can_manage_boards=user.can_manage_boards,
            can_manage_posts=user.can_manage_posts,
            can_ban_users=user.can_ban_users,
        ),
    )
    payload = {
        **claims.model_dump(mode="json", by_alias=True),
        "sub": str(user.id),
        "iat": now,
        "exp": now + timedelta(minutes=settings.jwt.expire_minutes),
    }
    return jwt.encode(
        payload, settings.jwt.secret_key, algorithm=settings.jwt.algorithm
    )


def decode_access_token(token: str) -> AuthUser:
    try:
        payload = jwt.decode(
            token,
            settings.jwt.secret_key,
            algorithms=[settings.jwt.algorithm],
        )
    except jwt.ExpiredSignatureError as e:
        raise AuthenticationError("Token has expired") from e
    except jwt.InvalidTokenError as e:
        raise AuthenticationError("Invalid token") from e

    try:
        return AuthUser.model_validate(payload)
    except PydanticValidationError as e:
        raise AuthenticationError("Invalid token payload") from e


async def get_current_user(
    authorization: str | None = Header(default=None),
) -> AuthUser:
    """Authorization 헤더에서 JWT 토큰을 추출하여 현재 사용자를 반환합니다."""
    if authorization is None:
        raise AuthenticationError("Authentication token required")
    try:
        scheme, token = authorization.split(" ", 1)
    except ValueError as e:
        raise AuthenticationError("Invalid authorization header format") from e
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationError("Invalid authentication scheme")

    return decode_access_token(token.strip())
