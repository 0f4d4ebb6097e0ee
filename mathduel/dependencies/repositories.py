from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from mathduel.db.session import get_session
from mathduel.repositories.player_repository import PlayerRepository
from mathduel.repositories.room_repository import RoomRepository
from mathduel.util.validators import validate_room_code


def get_room_repository(session: AsyncSession = Depends(get_session)) -> RoomRepository:
    return RoomRepository(session)


def get_player_repository(
    session: AsyncSession = Depends(get_session),
) -> PlayerRepository:
    return PlayerRepository(session)


def get_room_code(code: str) -> str:
    return validate_room_code(code)
