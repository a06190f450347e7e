import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

from fastapi import Request
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base

from fitforum.config.config import MySQLConfig

logger = logging.getLogger(__name__)

Base = declarative_base()


class SchemaMismatchError(RuntimeError):
    pass


def mysql_url(config: MySQLConfig) -> str:
    return "mysql+asyncmy://{user}:{passwd}@{host}:{port}/{db}?charset=utf8mb4".format(
        user=config.user,
        passwd=config.passwd,
        host=config.host,
        port=config.port,
        db=config.db,
    )


class Database:
    """
    커넥션 풀(engine)과 세션 팩토리를 묶은 핸들.
    lifespan에서 생성해 `app.state.database`에 보관하고, 요청마다 `session()`으로 커넥션을 할당 받습니다.
    """

    def __init__(self, url: str, **engine_kwargs: Any):
        self.engine = create_async_engine(url, **engine_kwargs)
        self._async_session = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autocommit=False,
            autoflush=False,
        )

    @classmethod
    def from_config(cls, config: MySQLConfig) -> "Database":
        return cls(
            mysql_url(config),
            pool_size=config.pool_size,
            max_overflow=0,
            echo=config.echo,
            pool_pre_ping=True,
            pool_timeout=config.pool_timeout,
        )

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """풀에서 커넥션 하나를 할당 받고, 어떤 경로로 빠져나가든 반납합니다."""
        async with self._async_session() as session:
            yield session

    async def startup(self) -> None:
        """서버 시작 시 스키마 검증 및 테이블 초기화를 수행합니다."""
        async with self.engine.begin() as conn:
            errors = await conn.run_sync(_validate_schema)
            if errors:
                logger.error("DB 스키마와 모델 정의가 일치하지 않습니다:")
                for error in errors:
                    logger.error("  - %s", error)
                raise SchemaMismatchError(
                    f"{len(errors)} schema mismatch(es) between models and database"
                )

            # 존재하지 않는 테이블만 생성
            await conn.run_sync(Base.metadata.create_all)
            logger.info("DB 테이블 초기화 완료")

    async def dispose(self) -> None:
        """서버 종료 시 커넥션 풀을 반환합니다."""
        await self.engine.dispose()


async def get_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    `session: AsyncSession = Depends(get_session)`로 사용
    생성된 connection pool 중 하나를 할당 받아 사용
    """
    database: Database = request.app.state.database
    async with database.session() as session:
        yield session


@asynccontextmanager
async def transaction(session: AsyncSession) -> AsyncGenerator[AsyncSession, None]:
    """
    하나의 작업 단위를 묶습니다. 정상 종료 시 commit, 예외 발생 시 전체 rollback 후 예외를 다시 던집니다.
    """
    try:
        yield session
        await session.commit()
    except Exception:
        await session.rollback()
        raise


def _validate_schema(sync_conn) -> list[str]:
    """
    모델 메타데이터와 실제 DB 스키마를 비교하여 불일치 항목을 반환합니다.
    """
    errors = []
    inspector = sa_inspect(sync_conn)
    existing_tables = inspector.get_table_names()

    for table_name, table in Base.metadata.tables.items():
        if table_name not in existing_tables:
            continue

        db_columns = {col["name"]: col for col in inspector.get_columns(table_name)}
        model_columns = {col.name: col for col in table.columns}

        missing = [name for name in model_columns if name not in db_columns]
        extra = [name for name in db_columns if name not in model_columns]
        errors.extend(f"[{table_name}] column '{name}' missing in DB" for name in missing)
        errors.extend(f"[{table_name}] column '{name}' missing in model" for name in extra)

        for col_name, model_col in model_columns.items():
            if col_name in missing or model_col.primary_key:
                continue
            db_nullable = db_columns[col_name]["nullable"]
            if model_col.nullable != db_nullable:
                errors.append(
                    f"[{table_name}.{col_name}] nullable mismatch: "
                    f"model={model_col.nullable}, DB={db_nullable}"
                )

    return errors
