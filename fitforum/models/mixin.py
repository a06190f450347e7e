from sqlalchemy import Column, Integer, DateTime, func


class BaseMixin:
    """
    모든 모델(테이블)의 공통 컬럼을 정의
    updated_at은 자동 갱신하지 않습니다. 카운터 변경(조회수, 좋아요 수)이 수정 시각을 바꾸면 안 되므로
    수정 시각이 의미 있는 작업에서만 명시적으로 `updated_at=func.now()`를 지정합니다.
    """

    id = Column(Integer, primary_key=True, autoincrement=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False, index=True)
    updated_at = Column(DateTime, server_default=func.now(), nullable=False)
