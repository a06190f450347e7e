import logging
import re
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import Field
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fitforum.dependencies.auth import AuthUser, create_access_token, get_current_user
from fitforum.dependencies.mysql import get_session, transaction
from fitforum.errors import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from fitforum.models.user import User, UserRole, Visibility
from fitforum.schemas import CamelModel

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

router = APIRouter(prefix="/api", tags=["Users"])


class RegisterRequest(CamelModel):
    user_name: str = Field(min_length=1, max_length=50)
    first_name: str = Field(min_length=1, max_length=50)
    last_name: str = Field(min_length=1, max_length=50)
    email: str = Field(min_length=1, max_length=100)
    phone: Optional[str] = None
    user_pw: str = Field(min_length=1)


class LoginRequest(CamelModel):
    email: str = Field(min_length=1)
    user_pw: str = Field(min_length=1)


class AuthUserSummary(CamelModel):
    user_id: int
    user_name: str
    first_name: str
    email: str
    role: UserRole
    visibility: Visibility


class AuthResponse(CamelModel):
    message: str
    token: str
    user: AuthUserSummary


class ProfileResponse(CamelModel):
    user_id: int
    user_name: str
    first_name: str
    last_name: str
    email: str
    phone: Optional[str]
    role: UserRole
    visibility: Visibility
    avatar_url: Optional[str] = None
    background_url: Optional[str] = None
    bio: Optional[str]
    location: Optional[str]
    followers_count: int
    following_count: int
    posts_count: int
    created_at: datetime


class ProfileEnvelope(CamelModel):
    user: ProfileResponse


class UpdateProfileRequest(CamelModel):
    first_name: Optional[str] = Field(default=None, max_length=50)
    last_name: Optional[str] = Field(default=None, max_length=50)
    email: Optional[str] = Field(default=None, max_length=100)
    phone: Optional[str] = None
    visibility: Optional[Visibility] = None
    bio: Optional[str] = None
    location: Optional[str] = Field(default=None, max_length=100)


class UpdateProfileResponse(CamelModel):
    message: str
    user: ProfileResponse


class UpdatePasswordRequest(CamelModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=1)
    confirm_password: str = Field(min_length=1)


class SuccessResponse(CamelModel):
    success: bool
    message: str


class DetailedProfile(ProfileResponse):
    can_manage_users: bool
    can_manage_boards: bool
    can_manage_posts: bool
    can_ban_users: bool
    is_active: bool


class DetailedProfileResponse(CamelModel):
    success: bool
    data: DetailedProfile


def _profile_values(user: User) -> dict:
    return {
        "user_id": user.id,
        "user_name": user.username,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "email": user.email,
        "phone": user.phone,
        "role": user.role,
        "visibility": user.visibility,
        "avatar_url": user.avatar_url,
        "background_url": user.background_url,
        "bio": user.bio,
        "location": user.location,
        "followers_count": user.followers_count,
        "following_count": user.following_count,
        "posts_count": user.posts_count,
        "created_at": user.created_at,
    }


def _auth_response(message: str, user: User) -> AuthResponse:
    return AuthResponse(
        message=message,
        token=create_access_token(user),
        user=AuthUserSummary(
            user_id=user.id,
            user_name=user.username,
            first_name=user.first_name,
            email=user.email,
            role=user.role,
            visibility=user.visibility,
        ),
    )


async def _get_active_user(session: AsyncSession, user_id: int) -> User:
    user = await session.scalar(
        select(User).where(User.id == user_id, User.is_active == True)  # noqa: E712
    )
    if user is None:
        raise NotFoundError("User not found.")
    return user


@router.post("/auth/register", response_model=AuthResponse, status_code=201)
async def register(
    body: RegisterRequest,
    session: AsyncSession = Depends(get_session),
) -> AuthResponse:
    if not EMAIL_PATTERN.match(body.email):
        raise ValidationError("Invalid email format.")

    async with transaction(session):
        existing = (
            await session.scalars(
                select(User).where(
                    or_(User.email == body.email, User.username == body.user_name)
                )
            )
        ).all()
        if any(user.email == body.email for user in existing):
            raise ConflictError("Email already registered.")
        if existing:
            raise ConflictError("Username already taken.")

        user = User(
            username=body.user_name,
            first_name=body.first_name,
            last_name=body.last_name,
            email=body.email,
            phone=body.phone,
            role=UserRole.user,
            can_manage_users=False,
            can_manage_boards=False,
            can_manage_posts=False,
            can_ban_users=False,
            visibility=Visibility.public,
            followers_count=0,
            following_count=0,
            posts_count=0,
            is_active=True,
        )
        user.set_password(body.user_pw)
        session.add(user)
        try:
            await session.flush()
        except IntegrityError as e:
            # 동시에 같은 이메일/사용자명으로 가입한 경우
            raise ConflictError("Email or username already registered.") from e

    logger.info("User registered: user_id=%d", user.id)
    return _auth_response("Registration successful", user)


@router.post("/auth/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    session: AsyncSession = Depends(get_session),
) -> AuthResponse:
    async with transaction(session):
        user = await session.scalar(
            select(User).where(User.email == body.email, User.is_active == True)  # noqa: E712
        )
        if user is None or not user.verify_password(body.user_pw):
            raise AuthenticationError("Invalid credentials.")

        user.last_login_at = func.now()
        user.updated_at = func.now()

    return _auth_response("Login successful", user)


@router.get("/users/profile", response_model=ProfileEnvelope)
async def get_profile(
    current_user: AuthUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> ProfileEnvelope:
    user = await _get_active_user(session, current_user.user_id)
    return ProfileEnvelope(user=ProfileResponse(**_profile_values(user)))


@router.put("/users/profile", response_model=UpdateProfileResponse)
async def update_profile(
    body: UpdateProfileRequest,
    current_user: AuthUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> UpdateProfileResponse:
    if body.email is not None and not EMAIL_PATTERN.match(body.email):
        raise ValidationError("Invalid email format.")

    async with transaction(session):
        if body.email is not None:
            taken = await session.scalar(
                select(User.id).where(
                    User.email == body.email, User.id != current_user.user_id
                )
            )
            if taken is not None:
                raise ConflictError("Email already in use.")

        user = await _get_active_user(session, current_user.user_id)
        # 전달되지 않은(null) 항목은 기존 값을 유지합니다.
        for field, value in body.model_dump(exclude_none=True).items():
            setattr(user, field, value)
        user.updated_at = func.now()
        try:
            await session.flush()
        except IntegrityError as e:
            raise ConflictError("Email already in use.") from e
        await session.refresh(user)

    return UpdateProfileResponse(
        message="Profile updated successfully",
        user=ProfileResponse(**_profile_values(user)),
    )


@router.post("/user/update-password", response_model=SuccessResponse)
async def update_password(
    body: UpdatePasswordRequest,
    current_user: AuthUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> SuccessResponse:
    if body.new_password != body.confirm_password:
        raise ValidationError("New passwords do not match.")

    async with transaction(session):
        user = await _get_active_user(session, current_user.user_id)
        if not user.verify_password(body.current_password):
            raise AuthenticationError("Current password is incorrect.")

        user.set_password(body.new_password)
        user.updated_at = func.now()

    logger.info("Password updated: user_id=%d", current_user.user_id)
    return SuccessResponse(success=True, message="Password updated successfully")


@router.get("/user/profile", response_model=DetailedProfileResponse)
async def get_detailed_profile(
    current_user: AuthUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> DetailedProfileResponse:
    user = await _get_active_user(session, current_user.user_id)
    return DetailedProfileResponse(
        success=True,
        data=DetailedProfile(
            **_profile_values(user),
            can_manage_users=user.can_manage_users,
            can_manage_boards=user.can_manage_boards,
            can_manage_posts=user.can_manage_posts,
            can_ban_users=user.can_ban_users,
            is_active=user.is_active,
        ),
    )
