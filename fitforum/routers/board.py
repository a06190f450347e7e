from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fitforum.dependencies.mysql import get_session
from fitforum.models.board import Board
from fitforum.schemas import BoardResponse

router = APIRouter(prefix="/api/boards", tags=["Boards"])


@router.get("", response_model=list[BoardResponse])
async def get_boards(
    session: AsyncSession = Depends(get_session),
) -> list[BoardResponse]:
    rows = await session.execute(
        select(Board.id.label("board_id"), Board.name.label("board_name"))
        .where(Board.is_active == True)  # noqa: E712
        .order_by(Board.id)
    )
    return [BoardResponse.model_validate(dict(row._mapping)) for row in rows]
