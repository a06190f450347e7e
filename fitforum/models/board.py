from sqlalchemy import Boolean, Column, Integer, String, UniqueConstraint

from fitforum.dependencies.mysql import Base
from fitforum.models.mixin import BaseMixin


class Board(Base, BaseMixin):
    __tablename__ = "board"

    name = Column(String(100), nullable=False, comment="게시판 이름")
    description = Column(String(500), nullable=True, comment="게시판 설명")
    is_private = Column(
        Boolean,
        nullable=False,
        default=False,
        comment="비공개 게시판 여부. 비공개 게시판은 moderator만 글을 쓸 수 있음",
    )
    is_active = Column(Boolean, nullable=False, default=True, comment="활성 게시판 여부")
    posts_count = Column(Integer, nullable=False, default=0, comment="삭제되지 않은 게시글 수")


class BoardModerator(Base, BaseMixin):
    __tablename__ = "board_moderator"
    __table_args__ = (UniqueConstraint("board_id", "user_id"),)

    board_id = Column(Integer, nullable=False, comment="게시판 ID", index=True)
    user_id = Column(Integer, nullable=False, comment="사용자 ID", index=True)
