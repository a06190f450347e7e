import os
from datetime import datetime
from typing import AsyncGenerator

import httpx
import pytest
from sqlalchemy import update

# settings가 import 시점에 만들어지므로 app import 전에 테스트용 값을 지정합니다.
os.environ.setdefault("MYSQL__HOST", "localhost")
os.environ.setdefault("MYSQL__USER", "test")
os.environ.setdefault("MYSQL__PASSWD", "test")
os.environ.setdefault("MYSQL__DB", "fitforum_test")
os.environ.setdefault("JWT__SECRET_KEY", "test-signing-key-for-fitforum-tests")


@pytest.fixture
async def database(tmp_path):
    """
    테스트마다 새 SQLite 파일 DB를 만듭니다. 실제 MySQL 없이 실행됩니다.
    """
    from fitforum.dependencies.mysql import Base, Database
    from fitforum.main import app  # noqa: F401  모든 모델을 Base.metadata에 등록

    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with db.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield db
    await db.dispose()


@pytest.fixture
async def api_client(database) -> AsyncGenerator[httpx.AsyncClient, None]:
    from fitforum.main import app

    app.state.database = database
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client


@pytest.fixture
async def error_client(database) -> AsyncGenerator[httpx.AsyncClient, None]:
    """처리되지 않은 예외도 500 응답으로 받아보기 위한 클라이언트"""
    from fitforum.main import app

    app.state.database = database
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app, raise_app_exceptions=False),
        base_url="http://test",
    ) as client:
        yield client


async def register(
    client: httpx.AsyncClient, user_name: str, password: str = "password123"
) -> dict:
    response = await client.post(
        "/api/auth/register",
        json={
            "userName": user_name,
            "firstName": "Test",
            "lastName": "User",
            "email": f"{user_name}@test.com",
            "userPw": password,
        },
    )
    assert response.status_code == 201, response.text
    data = response.json()
    return {
        "id": data["user"]["userId"],
        "headers": {"Authorization": f"Bearer {data['token']}"},
    }


@pytest.fixture
async def member(api_client: httpx.AsyncClient) -> dict:
    """
    일반 회원을 생성하고 {id, headers} 를 반환합니다.
    """
    return await register(api_client, "testmember")


@pytest.fixture
async def member_headers(member: dict) -> dict:
    return member["headers"]


@pytest.fixture
async def other_member(api_client: httpx.AsyncClient) -> dict:
    return await register(api_client, "othermember")


@pytest.fixture
async def admin(api_client: httpx.AsyncClient, database) -> dict:
    """회원가입 후 DB에서 admin으로 승격하고, 다시 로그인해 admin 토큰을 받습니다."""
    from fitforum.models.user import User, UserRole

    created = await register(api_client, "testadmin")
    async with database.session() as session:
        await session.execute(
            update(User).where(User.id == created["id"]).values(role=UserRole.admin)
        )
        await session.commit()

    login = await api_client.post(
        "/api/auth/login",
        json={"email": "testadmin@test.com", "userPw": "password123"},
    )
    assert login.status_code == 200
    return {
        "id": created["id"],
        "headers": {"Authorization": f"Bearer {login.json()['token']}"},
    }


@pytest.fixture
async def admin_headers(admin: dict) -> dict:
    return admin["headers"]


async def create_board(database, name: str, **kwargs) -> int:
    from fitforum.models.board import Board

    async with database.session() as session:
        board = Board(name=name, **kwargs)
        session.add(board)
        await session.commit()
        return board.id


@pytest.fixture
async def board_id(database) -> int:
    """테스트용 게시판을 DB에 직접 생성합니다."""
    return await create_board(database, "General")


@pytest.fixture
async def private_board_id(database) -> int:
    return await create_board(database, "Staff Only", is_private=True)


@pytest.fixture
async def post_id(
    api_client: httpx.AsyncClient, database, board_id: int, member_headers: dict
) -> int:
    """
    API로 게시글을 생성합니다. 수정 시각 비교를 위해 updated_at을 과거로 백데이트합니다.
    """
    from fitforum.models.post import Post

    response = await api_client.post(
        "/api/posts",
        json={
            "boardId": board_id,
            "title": "Morning run",
            "content": "Five kilometres before breakfast",
            "images": ["https://img.test/1.png", "https://img.test/2.png"],
        },
        headers=member_headers,
    )
    assert response.status_code == 201, response.text
    post_id = response.json()["post"]["postId"]

    async with database.session() as session:
        await session.execute(
            update(Post)
            .where(Post.id == post_id)
            .values(updated_at=datetime(2020, 1, 1))
        )
        await session.commit()
    return post_id


async def fetch_row(database, model, row_id: int):
    async with database.session() as session:
        return await session.get(model, row_id)
