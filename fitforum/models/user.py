from enum import StrEnum, auto

from passlib.context import CryptContext
from sqlalchemy import Boolean, Column, DateTime, Enum, Integer, String, Text

from fitforum.dependencies.mysql import Base
from fitforum.models.mixin import BaseMixin

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=10)


class UserRole(StrEnum):
    admin = auto()
    user = auto()


class Visibility(StrEnum):
    public = auto()
    private = auto()


class User(Base, BaseMixin):
    __tablename__ = "user"

    username = Column(String(50), unique=True, nullable=False, comment="사용자명")
    first_name = Column(String(50), nullable=False, comment="이름")
    last_name = Column(String(50), nullable=False, comment="성")
    email = Column(String(100), unique=True, nullable=False, comment="이메일")
    phone = Column(String(30), nullable=True, comment="전화번호")
    hashed_password = Column(String(100), nullable=False, comment="암호화된 비밀번호")
    role = Column(Enum(UserRole), nullable=False, default=UserRole.user, comment="권한")

    can_manage_users = Column(Boolean, nullable=False, default=False)
    can_manage_boards = Column(Boolean, nullable=False, default=False)
    can_manage_posts = Column(Boolean, nullable=False, default=False)
    can_ban_users = Column(Boolean, nullable=False, default=False)

    visibility = Column(
        Enum(Visibility), nullable=False, default=Visibility.public, comment="프로필 공개 여부"
    )
    avatar_url = Column(String(500), nullable=True)
    background_url = Column(String(500), nullable=True)
    bio = Column(Text, nullable=True)
    location = Column(String(100), nullable=True)

    # post 테이블 등의 건수를 캐싱한 값. 관련 행을 바꾸는 트랜잭션 안에서 함께 증감합니다.
    followers_count = Column(Integer, nullable=False, default=0)
    following_count = Column(Integer, nullable=False, default=0)
    posts_count = Column(Integer, nullable=False, default=0, comment="삭제되지 않은 게시글 수")

    is_active = Column(Boolean, nullable=False, default=True, comment="활성 계정 여부")
    last_login_at = Column(DateTime, nullable=True, comment="마지막 로그인 시각")

    def set_password(self, plain_password):
        self.hashed_password = pwd_context.hash(plain_password)

    def verify_password(self, plain_password):
        # 입력된 비밀번호가 저장된 해시와 일치하는지 확인
        return pwd_context.verify(plain_password, self.hashed_password)
