import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from fitforum.config.config import settings
from fitforum.dependencies.mysql import Database
from fitforum.exception_handler import register_exception_handlers

# 모든 모델을 import하여 Base.metadata에 등록
import fitforum.models.board  # noqa: F401
import fitforum.models.notification  # noqa: F401
import fitforum.models.post  # noqa: F401
import fitforum.models.user  # noqa: F401
import fitforum.models.workout  # noqa: F401

from fitforum.routers import board as board_router
from fitforum.routers import post as post_router
from fitforum.routers import user as user_router
from fitforum.routers import workout as workout_router

# logger 전역 설정
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler()],
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    database = Database.from_config(settings.mysql)
    await database.startup()
    app.state.database = database
    logger.info("MySQL 연결 완료: %s:%d/%s", settings.mysql.host, settings.mysql.port, settings.mysql.db)

    yield

    await database.dispose()


app = FastAPI(title="fitforum", lifespan=lifespan)
register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(user_router.router)
app.include_router(post_router.router)
app.include_router(board_router.router)
app.include_router(workout_router.router)


@app.get(
    "/health",
    tags=["Health Check"],
    summary="Health Check용 API",
)
async def health_check() -> str:
    return "ok"


def run() -> None:
    uvicorn.run(app, host=settings.server.host, port=settings.server.port)
