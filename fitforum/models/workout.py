from sqlalchemy import Column, Integer, String, Text, UniqueConstraint

from fitforum.dependencies.mysql import Base
from fitforum.models.mixin import BaseMixin


class Plan(Base, BaseMixin):
    __tablename__ = "plan"

    name = Column(String(100), nullable=False, comment="운동 계획 이름")


class Video(Base, BaseMixin):
    __tablename__ = "video"

    title = Column(String(200), nullable=False, comment="영상 제목")
    type = Column(String(50), nullable=False, comment="운동 종류", index=True)
    duration = Column(Integer, nullable=True, comment="재생 시간(초)")
    description = Column(Text, nullable=True)
    url = Column(String(500), nullable=False)
    thumbnail = Column(String(500), nullable=True)
    level = Column(String(50), nullable=False, comment="난이도")


class PlanVideo(Base, BaseMixin):
    __tablename__ = "plan_video"
    __table_args__ = (UniqueConstraint("plan_id", "video_id"),)

    plan_id = Column(Integer, nullable=False, index=True)
    video_id = Column(Integer, nullable=False, index=True)


class UserPlan(Base, BaseMixin):
    __tablename__ = "user_plan"
    __table_args__ = (UniqueConstraint("user_id", "plan_id"),)

    user_id = Column(Integer, nullable=False, index=True)
    plan_id = Column(Integer, nullable=False, index=True)


class VideoLike(Base, BaseMixin):
    __tablename__ = "video_like"
    __table_args__ = (UniqueConstraint("user_id", "video_id"),)

    user_id = Column(Integer, nullable=False, index=True)
    video_id = Column(Integer, nullable=False, index=True)
