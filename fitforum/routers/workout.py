import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import Field
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fitforum.dependencies.auth import AuthUser, get_current_user
from fitforum.dependencies.mysql import get_session, transaction
from fitforum.errors import ConflictError, NotFoundError, ValidationError
from fitforum.models.workout import Plan, PlanVideo, UserPlan, Video, VideoLike
from fitforum.schemas import CamelModel, MessageResponse

logger = logging.getLogger(__name__)

_PLAN_VIDEO_LIMIT = 100
_USER_PLAN_LIMIT = 100

router = APIRouter(prefix="/api", tags=["Workout"])


class CreatePlanRequest(CamelModel):
    name: str = Field(min_length=1, max_length=100)
    type: str = Field(min_length=1)
    level: str = Field(min_length=1)


class CreatePlanResponse(MessageResponse):
    plan_id: int


class PlanIdRequest(CamelModel):
    plan_id: Optional[int] = None


class UserPlanResponse(CamelModel):
    plan_id: int
    plan_name: str


class VideoResponse(CamelModel):
    id: int
    title: str
    type: str
    duration: Optional[int]
    description: Optional[str]
    url: str
    thumbnail: Optional[str]
    level: str


class VideoLikeRequest(CamelModel):
    video_id: int


def _require_plan_id(body: PlanIdRequest) -> int:
    if body.plan_id is None or body.plan_id <= 0:
        raise ValidationError("Valid Plan ID is required.")
    return body.plan_id


async def _ensure_plan_exists(session: AsyncSession, plan_id: int) -> None:
    if await session.scalar(select(Plan.id).where(Plan.id == plan_id)) is None:
        raise NotFoundError("Plan not found.")


@router.post("/createPlan", response_model=CreatePlanResponse, status_code=201)
async def create_plan(
    body: CreatePlanRequest,
    current_user: AuthUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> CreatePlanResponse:
    """type, level이 일치하는 영상(대소문자 무시, 최대 100개)으로 계획을 만들고 요청자에게 배정합니다."""
    async with transaction(session):
        video_ids = (
            await session.scalars(
                select(Video.id)
                .where(
                    func.lower(Video.type) == body.type.lower(),
                    func.lower(Video.level) == body.level.lower(),
                )
                .order_by(Video.id)
                .limit(_PLAN_VIDEO_LIMIT)
            )
        ).all()
        if not video_ids:
            logger.warning(
                "No videos for type=%s level=%s; plan not created", body.type, body.level
            )
            raise NotFoundError("No videos found for the selected type and level.")

        plan = Plan(name=body.name)
        session.add(plan)
        await session.flush()

        session.add_all(PlanVideo(plan_id=plan.id, video_id=video_id) for video_id in video_ids)
        session.add(UserPlan(user_id=current_user.user_id, plan_id=plan.id))

    logger.info(
        "Plan created: plan_id=%d videos=%d user_id=%d",
        plan.id,
        len(video_ids),
        current_user.user_id,
    )
    return CreatePlanResponse(
        message="Plan created and assigned successfully!", plan_id=plan.id
    )


@router.post("/assignPlan", response_model=MessageResponse, status_code=201)
async def assign_plan(
    body: PlanIdRequest,
    current_user: AuthUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> MessageResponse:
    plan_id = _require_plan_id(body)

    async with transaction(session):
        await _ensure_plan_exists(session, plan_id)

        session.add(UserPlan(user_id=current_user.user_id, plan_id=plan_id))
        try:
            await session.flush()
        except IntegrityError as e:
            logger.warning(
                "Plan already assigned: user_id=%d plan_id=%d",
                current_user.user_id,
                plan_id,
            )
            raise ConflictError("This plan is already assigned to the user.") from e

    return MessageResponse(message="Plan assigned to user successfully!")


@router.post("/user/plans", response_model=list[UserPlanResponse])
async def get_user_plans(
    current_user: AuthUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> list[UserPlanResponse]:
    rows = await session.execute(
        select(Plan.id.label("plan_id"), Plan.name.label("plan_name"))
        .join(UserPlan, UserPlan.plan_id == Plan.id)
        .where(UserPlan.user_id == current_user.user_id)
        .order_by(Plan.id)
        .limit(_USER_PLAN_LIMIT)
    )
    plans = [UserPlanResponse.model_validate(dict(row._mapping)) for row in rows]
    if not plans:
        raise NotFoundError("No plans found for this user.")
    return plans


@router.post("/plan/videos", response_model=list[VideoResponse])
async def get_plan_videos(
    body: PlanIdRequest,
    session: AsyncSession = Depends(get_session),
) -> list[Video]:
    plan_id = _require_plan_id(body)
    await _ensure_plan_exists(session, plan_id)

    videos = (
        await session.scalars(
            select(Video)
            .join(PlanVideo, PlanVideo.video_id == Video.id)
            .where(PlanVideo.plan_id == plan_id)
            .order_by(PlanVideo.id)
        )
    ).all()
    if not videos:
        raise NotFoundError("No videos found for this plan.")
    return list(videos)


@router.get("/videos", response_model=list[VideoResponse])
async def get_videos(
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    type: Optional[str] = Query(default=None),
    session: AsyncSession = Depends(get_session),
) -> list[Video]:
    stmt = select(Video)
    if type:
        stmt = stmt.where(Video.type == type)
    videos = (
        await session.scalars(stmt.order_by(Video.id).limit(limit).offset(offset))
    ).all()
    if not videos:
        raise NotFoundError("No videos found.")
    return list(videos)


@router.get("/videos/liked", response_model=list[VideoResponse])
async def get_liked_videos(
    current_user: AuthUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> list[Video]:
    result = await session.scalars(
        select(Video)
        .join(VideoLike, VideoLike.video_id == Video.id)
        .where(VideoLike.user_id == current_user.user_id)
        .order_by(VideoLike.id)
    )
    return list(result.all())


@router.post("/videos/like", response_model=MessageResponse, status_code=201)
async def like_video(
    body: VideoLikeRequest,
    current_user: AuthUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> MessageResponse:
    async with transaction(session):
        if await session.scalar(select(Video.id).where(Video.id == body.video_id)) is None:
            raise NotFoundError("Video not found.")

        session.add(VideoLike(user_id=current_user.user_id, video_id=body.video_id))
        try:
            await session.flush()
        except IntegrityError as e:
            raise ConflictError("Video already liked.") from e

    return MessageResponse(message="Video liked successfully.")


@router.post("/videos/unlike", response_model=MessageResponse)
async def unlike_video(
    body: VideoLikeRequest,
    current_user: AuthUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> MessageResponse:
    async with transaction(session):
        like = await session.scalar(
            select(VideoLike).where(
                VideoLike.user_id == current_user.user_id,
                VideoLike.video_id == body.video_id,
            )
        )
        if like is None:
            raise NotFoundError("No like record found to delete.")
        await session.delete(like)

    return MessageResponse(message="Video unliked successfully.")
