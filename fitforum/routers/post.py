import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from fitforum.dependencies.auth import AuthUser, get_current_user
from fitforum.dependencies.mysql import get_session
from fitforum.schemas import (
    CreatePostRequest,
    CreatePostResponse,
    EditPostRequest,
    MessageResponse,
    PostDetail,
    PostListResponse,
    ToggleFollowResponse,
    ToggleLikeResponse,
)
from fitforum.services import post as post_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/posts", tags=["Posts"])


@router.post("", response_model=CreatePostResponse, status_code=201)
async def create_post(
    body: CreatePostRequest,
    current_user: AuthUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> CreatePostResponse:
    post = await post_service.create_post(session, current_user, body)
    return CreatePostResponse(message="Post created successfully.", post=post)


@router.get("", response_model=PostListResponse)
async def get_posts(
    board_id: Optional[int] = Query(default=None, alias="boardId"),
    user_id: Optional[int] = Query(default=None, alias="userId"),
    q: Optional[str] = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    session: AsyncSession = Depends(get_session),
) -> PostListResponse:
    return await post_service.list_posts(session, board_id, user_id, q, page, limit)


# 검색 라우트는 /{post_id} 보다 먼저 등록해야 합니다.
@router.get("/search", response_model=PostListResponse)
async def search_posts(
    q: Optional[str] = Query(default=None, description="검색어(제목+내용)"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    session: AsyncSession = Depends(get_session),
) -> PostListResponse:
    return await post_service.search_posts(session, q, page, limit)


@router.get("/{post_id}", response_model=PostDetail)
async def get_post(
    post_id: int,
    session: AsyncSession = Depends(get_session),
) -> PostDetail:
    return await post_service.get_post_detail(session, post_id)


@router.put("/{post_id}", response_model=MessageResponse)
async def edit_post(
    post_id: int,
    body: EditPostRequest,
    current_user: AuthUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> MessageResponse:
    await post_service.edit_post(session, current_user, post_id, body)
    return MessageResponse(message="Post updated successfully.")


@router.delete("/{post_id}", response_model=MessageResponse)
async def delete_post(
    post_id: int,
    current_user: AuthUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> MessageResponse:
    await post_service.delete_post(session, current_user, post_id)
    return MessageResponse(message="Post deleted successfully.")


@router.post("/{post_id}/toggle-like", response_model=ToggleLikeResponse)
async def toggle_like(
    post_id: int,
    current_user: AuthUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> ToggleLikeResponse:
    liked = await post_service.toggle_like(session, current_user, post_id)
    return ToggleLikeResponse(
        message="Post liked." if liked else "Post unliked.", liked=liked
    )


@router.post("/{post_id}/toggle-follow", response_model=ToggleFollowResponse)
async def toggle_follow(
    post_id: int,
    current_user: AuthUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> ToggleFollowResponse:
    followed = await post_service.toggle_follow(session, current_user, post_id)
    return ToggleFollowResponse(
        message="Post followed." if followed else "Post unfollowed.",
        followed=followed,
    )
