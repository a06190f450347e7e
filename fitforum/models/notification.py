from enum import StrEnum

from sqlalchemy import Boolean, Column, Integer, String

from fitforum.dependencies.mysql import Base
from fitforum.models.mixin import BaseMixin


class NotificationType(StrEnum):
    like_post = "like_post"


class Notification(Base, BaseMixin):
    __tablename__ = "notification"

    user_id = Column(Integer, nullable=False, comment="알림 수신자 ID", index=True)
    type = Column(String(30), nullable=False, comment="알림 종류")
    actor_id = Column(Integer, nullable=False, comment="알림을 발생시킨 사용자 ID")
    target_id = Column(Integer, nullable=False, comment="대상 ID(게시글 등)")
    content = Column(String(255), nullable=False, comment="알림 문구")
    is_read = Column(Boolean, nullable=False, default=False, comment="읽음 여부")
