from enum import StrEnum, auto

from sqlalchemy import Boolean, Column, Index, Integer, String, Text, UniqueConstraint

from fitforum.dependencies.mysql import Base
from fitforum.models.mixin import BaseMixin


class PostStatus(StrEnum):
    draft = auto()
    published = auto()


class Post(Base, BaseMixin):
    __tablename__ = "post"
    __table_args__ = (
        # MySQL에서는 FULLTEXT 인덱스로 생성되어 MATCH ... AGAINST 검색에 사용됩니다.
        Index("ft_post_title_content", "title", "content", mysql_prefix="FULLTEXT"),
    )

    board_id = Column(Integer, nullable=False, comment="게시판 ID. 생성 후 변경 불가", index=True)
    user_id = Column(Integer, nullable=False, comment="작성자 ID", index=True)
    title = Column(String(200), nullable=False, comment="게시글 제목")
    content = Column(Text, nullable=False, comment="게시글 내용")
    type = Column(String(20), nullable=False, default="text", comment="게시글 종류")
    visibility = Column(String(20), nullable=False, default="public", comment="공개 범위")
    status = Column(String(20), nullable=False, default=PostStatus.published.value)
    is_deleted = Column(
        Boolean,
        nullable=False,
        default=False,
        comment="삭제 여부(0/false: 미삭제, 1/true: 삭제)",
    )
    view_count = Column(Integer, nullable=False, default=0, comment="조회 수")
    like_count = Column(Integer, nullable=False, default=0, comment="좋아요 수")
    comment_count = Column(Integer, nullable=False, default=0, comment="댓글 수")


class PostImage(Base, BaseMixin):
    __tablename__ = "post_image"

    post_id = Column(Integer, nullable=False, comment="게시글 ID", index=True)
    image_url = Column(String(500), nullable=False, comment="이미지 URL")
    sort_order = Column(Integer, nullable=False, default=0, comment="표시 순서")


class PostLike(Base, BaseMixin):
    """행이 존재하면 '좋아요' 상태"""

    __tablename__ = "post_like"
    __table_args__ = (UniqueConstraint("post_id", "user_id"),)

    post_id = Column(Integer, nullable=False, comment="게시글 ID", index=True)
    user_id = Column(Integer, nullable=False, comment="사용자 ID", index=True)


class PostFollow(Base, BaseMixin):
    """행이 존재하면 '팔로우' 상태"""

    __tablename__ = "post_follow"
    __table_args__ = (UniqueConstraint("post_id", "user_id"),)

    post_id = Column(Integer, nullable=False, comment="게시글 ID", index=True)
    user_id = Column(Integer, nullable=False, comment="사용자 ID", index=True)
