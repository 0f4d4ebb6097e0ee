from typing import cast

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from mathduel.core.error import DomainErrorCode
from mathduel.models.player import Player
from mathduel.repositories.base_repository import BaseRepository


class PlayerRepository(BaseRepository[Player]):
    def __init__(self, session: AsyncSession):
        super().__init__(session, Player, DomainErrorCode.PLAYER_NOT_FOUND)

    async def get_roster(self, room_code: str) -> list[Player]:
        result = await self.session.execute(
            select(Player)
            .where(Player.room_code == room_code)  # type: ignore[arg-type]
            .order_by(Player.joined_at, Player.uid)  # type: ignore[arg-type]
            .execution_options(populate_existing=True)
        )
        return cast(list[Player], list(result.scalars().all()))

    async def get_member(self, room_code: str, uid: str) -> Player | None:
        result = await self.session.execute(
            select(Player)
            .where(Player.room_code == room_code, Player.uid == uid)  # type: ignore[arg-type]
            .execution_options(populate_existing=True)
        )
        return cast(Player | None, result.scalar_one_or_none())

    async def count_members(self, room_code: str) -> int:
        return await self.count(room_code=room_code)

    async def delete_roster(self, room_code: str) -> None:
        await self.session.execute(
            delete(Player).where(Player.room_code == room_code)  # type: ignore[arg-type]
        )
        await self.session.flush()
