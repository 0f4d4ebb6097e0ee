from datetime import datetime
from enum import Enum

from sqlalchemy import Column, DateTime
from sqlmodel import Field, SQLModel

from mathduel.models.time_stamp_mixin import TimeStampMixin


class RoomStatus(str, Enum):
    LOBBY = "lobby"
    IN_PROGRESS = "in_progress"
    ENDED = "ended"


class EndedReason(str, Enum):
    ALL_FINISHED = "all_finished"
    HOST_LEFT = "host_left"


class Room(TimeStampMixin, SQLModel, table=True):  # type: ignore[call-arg]
    code: str = Field(primary_key=True, max_length=6)
    host_uid: str = Field(index=True, max_length=128)
    status: RoomStatus = Field(default=RoomStatus.LOBBY)
    locked: bool = Field(default=False)
    max_players: int = Field(default=8)
    duration_sec: int = Field(default=60)

    seed: int | None = Field(default=None)
    started_at: datetime | None = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), nullable=True),
    )
    player_count: int | None = Field(default=None)
    finished_count: int = Field(default=0)

    ended_reason: EndedReason | None = Field(default=None)
    ended_at: datetime | None = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), nullable=True),
    )

    def is_hosted_by(self, uid: str) -> bool:
        return self.host_uid == uid
