from typing import cast

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from mathduel.core.error import DomainErrorCode, MathDuelDomainError
from mathduel.models.room import Room
from mathduel.repositories.base_repository import BaseRepository


class RoomRepository(BaseRepository[Room]):
    def __init__(self, session: AsyncSession):
        super().__init__(session, Room, DomainErrorCode.ROOM_NOT_FOUND)

    async def get_for_update(self, code: str) -> Room | None:
        result = await self.session.execute(
            select(Room)
            .where(Room.code == code)  # type: ignore[arg-type]
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return cast(Room | None, result.scalar_one_or_none())

    async def exists(self, code: str) -> bool:
        return await self.count(code=code) > 0

    async def get(self, code: str) -> Room | None:
        result = await self.session.execute(
            select(Room)
            .where(Room.code == code)  # type: ignore[arg-type]
            .execution_options(populate_existing=True)
        )
        return cast(Room | None, result.scalar_one_or_none())

    async def get_or_raise(self, code: str) -> Room:
        room = await self.get(code)
        if room is None:
            raise MathDuelDomainError(
                code=self.not_found_error_code,
                message=f"Room {code} not found",
                details={"model": "Room", "room_code": code},
            )
        return room
