from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """JSON 필드는 camelCase(postId, boardId...)로 주고받습니다."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )


class MessageResponse(CamelModel):
    message: str


class CreatePostRequest(CamelModel):
    board_id: int = Field(gt=0)
    title: str = Field(min_length=1, max_length=200)
    content: str = Field(min_length=1)
    type: str = "text"
    visibility: str = "public"
    images: list[str] = []


class EditPostRequest(CamelModel):
    # None(또는 미전달)이면 기존 값 유지. 빈 문자열은 그대로 저장됩니다.
    title: Optional[str] = Field(default=None, max_length=200)
    content: Optional[str] = None
    visibility: Optional[str] = None
    # None이면 기존 이미지 유지, 빈 배열이면 전체 삭제
    images: Optional[list[str]] = None


class CreatedPost(CamelModel):
    post_id: int
    title: str
    content: str
    type: str
    visibility: str
    created_at: datetime
    images: list[str]


class CreatePostResponse(MessageResponse):
    post: CreatedPost


class PostSummary(CamelModel):
    post_id: int
    title: str
    content: str
    type: str
    visibility: str
    view_count: int
    like_count: int
    comment_count: int
    created_at: datetime
    author_id: int
    author_name: str
    author_avatar: Optional[str]
    board_id: int
    board_name: str


class PostDetail(PostSummary):
    updated_at: datetime
    image_urls: list[str]


class Pagination(CamelModel):
    current: int
    page_size: int
    total: int
    total_posts: int


class PostListResponse(CamelModel):
    posts: list[PostSummary]
    pagination: Pagination


class ToggleLikeResponse(MessageResponse):
    liked: bool


class ToggleFollowResponse(MessageResponse):
    followed: bool


class BoardResponse(CamelModel):
    board_id: int
    board_name: str
