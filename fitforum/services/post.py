"""
게시글 작성/수정/삭제, 좋아요/팔로우 토글, 목록/검색.

여러 문장에 걸친 쓰기 작업은 모두 `transaction()` 하나로 묶습니다.
user.posts_count, board.posts_count, post.like_count 같은 캐시 카운터는
원본 행을 바꾸는 같은 트랜잭션 안에서 `col = col + n` 형태의 원자적 UPDATE로 갱신합니다.
"""

import logging
import math
from typing import Optional

from sqlalchemy import Select, delete, func, or_, select, update
from sqlalchemy.dialects.mysql import match
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fitforum.dependencies.auth import AuthUser
from fitforum.dependencies.mysql import transaction
from fitforum.errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from fitforum.models.board import Board, BoardModerator
from fitforum.models.notification import Notification, NotificationType
from fitforum.models.post import Post, PostFollow, PostImage, PostLike, PostStatus
from fitforum.models.user import User
from fitforum.schemas import (
    CreatedPost,
    CreatePostRequest,
    EditPostRequest,
    Pagination,
    PostDetail,
    PostListResponse,
    PostSummary,
)

logger = logging.getLogger(__name__)

_SUMMARY_COLUMNS = (
    Post.id.label("post_id"),
    Post.title,
    Post.content,
    Post.type,
    Post.visibility,
    Post.view_count,
    Post.like_count,
    Post.comment_count,
    Post.created_at,
    User.id.label("author_id"),
    User.username.label("author_name"),
    User.avatar_url.label("author_avatar"),
    Board.id.label("board_id"),
    Board.name.label("board_name"),
)


def _visible_posts(stmt: Select, *conditions) -> Select:
    return (
        stmt.join(User, User.id == Post.user_id)
        .join(Board, Board.id == Post.board_id)
        .where(Post.is_deleted == False, *conditions)  # noqa: E712
    )


def _fulltext_condition(session: AsyncSession, q: str):
    """MySQL은 FULLTEXT 인덱스의 boolean mode 검색, 그 외 DB(테스트용 SQLite)는 부분 문자열 검색"""
    if session.bind.dialect.name == "mysql":
        return match(Post.title, Post.content, against=q).in_boolean_mode()
    return or_(
        Post.title.contains(q, autoescape=True),
        Post.content.contains(q, autoescape=True),
    )


async def _paginate(
    session: AsyncSession, conditions: list, page: int, limit: int
) -> PostListResponse:
    # 목록과 전체 건수에 같은 조건을 적용합니다.
    rows = await session.execute(
        _visible_posts(select(*_SUMMARY_COLUMNS), *conditions)
        .order_by(Post.created_at.desc(), Post.id.desc())
        .limit(limit)
        .offset((page - 1) * limit)
    )
    total_posts = await session.scalar(
        select(func.count()).select_from(
            _visible_posts(select(Post.id), *conditions).subquery()
        )
    )
    return PostListResponse(
        posts=[PostSummary.model_validate(dict(row._mapping)) for row in rows],
        pagination=Pagination(
            current=page,
            page_size=limit,
            total=math.ceil(total_posts / limit),
            total_posts=total_posts,
        ),
    )


async def _adjust_post_counts(
    session: AsyncSession, board_id: int, user_id: int, delta: int
) -> None:
    await session.execute(
        update(Board)
        .where(Board.id == board_id)
        .values(posts_count=Board.posts_count + delta)
        .execution_options(synchronize_session=False)
    )
    await session.execute(
        update(User)
        .where(User.id == user_id)
        .values(posts_count=User.posts_count + delta)
        .execution_options(synchronize_session=False)
    )


async def _get_post_for_update(session: AsyncSession, post_id: int) -> Post:
    post = await session.scalar(
        select(Post)
        .where(Post.id == post_id, Post.is_deleted == False)  # noqa: E712
        .with_for_update()
    )
    if post is None:
        raise NotFoundError("Post not found.")
    return post


def _ensure_owner_or_admin(post: Post, identity: AuthUser, action: str) -> None:
    if post.user_id != identity.user_id and not identity.is_admin:
        raise AuthorizationError(f"No permission to {action} this post.")


def _add_images(session: AsyncSession, post_id: int, images: list[str]) -> None:
    session.add_all(
        PostImage(post_id=post_id, image_url=url, sort_order=index)
        for index, url in enumerate(images)
    )


async def create_post(
    session: AsyncSession, identity: AuthUser, body: CreatePostRequest
) -> CreatedPost:
    async with transaction(session):
        board = await session.scalar(
            select(Board).where(Board.id == body.board_id, Board.is_active == True)  # noqa: E712
        )
        if board is None:
            raise NotFoundError("Board not found.")

        if board.is_private:
            moderator_id = await session.scalar(
                select(BoardModerator.id).where(
                    BoardModerator.board_id == board.id,
                    BoardModerator.user_id == identity.user_id,
                )
            )
            if moderator_id is None:
                raise AuthorizationError("No permission to post in this board.")

        post = Post(
            board_id=board.id,
            user_id=identity.user_id,
            title=body.title,
            content=body.content,
            type=body.type,
            visibility=body.visibility,
            status=PostStatus.published.value,
        )
        session.add(post)
        await session.flush()

        _add_images(session, post.id, body.images)
        await _adjust_post_counts(session, board.id, identity.user_id, 1)
        await session.refresh(post)

    logger.info("Post created: post_id=%d board_id=%d", post.id, board.id)
    return CreatedPost(
        post_id=post.id,
        title=post.title,
        content=post.content,
        type=post.type,
        visibility=post.visibility,
        created_at=post.created_at,
        images=list(body.images),
    )


async def list_posts(
    session: AsyncSession,
    board_id: Optional[int],
    user_id: Optional[int],
    q: Optional[str],
    page: int,
    limit: int,
) -> PostListResponse:
    conditions = []
    if board_id is not None:
        conditions.append(Post.board_id == board_id)
    if user_id is not None:
        conditions.append(Post.user_id == user_id)
    if q and q.strip():
        conditions.append(_fulltext_condition(session, q.strip()))
    return await _paginate(session, conditions, page, limit)


async def search_posts(
    session: AsyncSession, q: Optional[str], page: int, limit: int
) -> PostListResponse:
    if q is None or not q.strip():
        raise ValidationError("Search query is required.")
    return await _paginate(
        session, [_fulltext_condition(session, q.strip())], page, limit
    )


async def get_post_detail(session: AsyncSession, post_id: int) -> PostDetail:
    async with transaction(session):
        # 먼저 증가시키고 같은 트랜잭션에서 읽으므로 응답의 조회수는 저장된 값과 같습니다.
        result = await session.execute(
            update(Post)
            .where(Post.id == post_id, Post.is_deleted == False)  # noqa: E712
            .values(view_count=Post.view_count + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise NotFoundError("Post not found.")

        row = (
            await session.execute(
                _visible_posts(
                    select(*_SUMMARY_COLUMNS, Post.updated_at), Post.id == post_id
                )
            )
        ).one_or_none()
        if row is None:
            raise NotFoundError("Post not found.")

        image_urls = await session.scalars(
            select(PostImage.image_url)
            .where(PostImage.post_id == post_id)
            .order_by(PostImage.sort_order, PostImage.id)
        )
        return PostDetail(**dict(row._mapping), image_urls=list(image_urls))


async def edit_post(
    session: AsyncSession, identity: AuthUser, post_id: int, body: EditPostRequest
) -> None:
    async with transaction(session):
        post = await _get_post_for_update(session, post_id)
        _ensure_owner_or_admin(post, identity, "edit")

        values = body.model_dump(
            include={"title", "content", "visibility"}, exclude_none=True
        )
        await session.execute(
            update(Post)
            .where(Post.id == post.id)
            .values(**values, updated_at=func.now())
            .execution_options(synchronize_session=False)
        )

        if body.images is not None:
            await session.execute(
                delete(PostImage).where(PostImage.post_id == post.id)
            )
            _add_images(session, post.id, body.images)

    logger.info("Post edited: post_id=%d by user_id=%d", post_id, identity.user_id)


async def delete_post(session: AsyncSession, identity: AuthUser, post_id: int) -> None:
    async with transaction(session):
        post = await _get_post_for_update(session, post_id)
        _ensure_owner_or_admin(post, identity, "delete")

        # is_deleted 조건으로 동시에 들어온 두 번째 삭제는 0건이 되어 카운터가 두 번 줄지 않습니다.
        result = await session.execute(
            update(Post)
            .where(Post.id == post.id, Post.is_deleted == False)  # noqa: E712
            .values(is_deleted=True, updated_at=func.now())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise NotFoundError("Post not found.")

        await _adjust_post_counts(session, post.board_id, post.user_id, -1)

    logger.info("Post deleted: post_id=%d by user_id=%d", post_id, identity.user_id)


async def toggle_like(session: AsyncSession, identity: AuthUser, post_id: int) -> bool:
    """좋아요 상태를 뒤집고, 토글 후 좋아요 상태이면 True를 반환합니다."""
    async with transaction(session):
        post = await _get_post_for_update(session, post_id)

        result = await session.execute(
            delete(PostLike).where(
                PostLike.post_id == post.id, PostLike.user_id == identity.user_id
            )
        )
        if result.rowcount > 0:
            delta = -1
        else:
            session.add(PostLike(post_id=post.id, user_id=identity.user_id))
            try:
                await session.flush()
            except IntegrityError as e:
                logger.warning(
                    "Concurrent like on post_id=%d by user_id=%d",
                    post.id,
                    identity.user_id,
                )
                raise ConflictError("Like is already being processed.") from e
            delta = 1

            if post.user_id != identity.user_id:
                session.add(
                    Notification(
                        user_id=post.user_id,
                        type=NotificationType.like_post.value,
                        actor_id=identity.user_id,
                        target_id=post.id,
                        content=f"{identity.user_name} liked your post",
                    )
                )

        await session.execute(
            update(Post)
            .where(Post.id == post.id)
            .values(like_count=Post.like_count + delta)
            .execution_options(synchronize_session=False)
        )

    liked = delta > 0
    logger.info(
        "Post %s: post_id=%d by user_id=%d",
        "liked" if liked else "unliked",
        post_id,
        identity.user_id,
    )
    return liked


async def toggle_follow(
    session: AsyncSession, identity: AuthUser, post_id: int
) -> bool:
    """팔로우 상태를 뒤집습니다. 좋아요와 달리 카운터와 알림은 없습니다."""
    async with transaction(session):
        post = await _get_post_for_update(session, post_id)

        result = await session.execute(
            delete(PostFollow).where(
                PostFollow.post_id == post.id, PostFollow.user_id == identity.user_id
            )
        )
        if result.rowcount > 0:
            followed = False
        else:
            session.add(PostFollow(post_id=post.id, user_id=identity.user_id))
            try:
                await session.flush()
            except IntegrityError as e:
                logger.warning(
                    "Concurrent follow on post_id=%d by user_id=%d",
                    post.id,
                    identity.user_id,
                )
                raise ConflictError("Follow is already being processed.") from e
            followed = True

    logger.info(
        "Post %s: post_id=%d by user_id=%d",
        "followed" if followed else "unfollowed",
        post_id,
        identity.user_id,
    )
    return followed
