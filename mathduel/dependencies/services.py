from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from mathduel.db.session import get_session
from mathduel.dependencies.repositories import (
    get_player_repository,
    get_room_repository,
)
from mathduel.repositories.player_repository import PlayerRepository
from mathduel.repositories.room_repository import RoomRepository
from mathduel.services.room_service import RoomService


def get_room_service(
    session: AsyncSession = Depends(get_session),
    room_repository: RoomRepository = Depends(get_room_repository),
    player_repository: PlayerRepository = Depends(get_player_repository),
) -> RoomService:
    return RoomService(
        session=session,
        room_repository=room_repository,
        player_repository=player_repository,
    )
