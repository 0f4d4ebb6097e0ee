from datetime import datetime, timedelta
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator, model_validator

from mathduel.game.ranking import RankedPlayer
from mathduel.models.room import EndedReason, RoomStatus
from mathduel.models.time_stamp_mixin import as_utc, utc_now


class RoomSnapshot(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    code: str
    host_uid: str
    status: RoomStatus
    locked: bool
    max_players: int
    duration_sec: int
    seed: int | None = None
    started_at: datetime | None = None
    player_count: int | None = None
    finished_count: int = 0
    ended_reason: EndedReason | None = None
    ended_at: datetime | None = None

    @field_validator("started_at", "ended_at")
    @classmethod
    def ensure_utc(cls, v: datetime | None) -> datetime | None:
        return as_utc(v) if v is not None else None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def ends_at(self) -> datetime | None:
        if self.started_at is None:
            return None
        return self.started_at + timedelta(seconds=self.duration_sec)


class PlayerSnapshot(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    uid: str
    display_name: str
    is_host: bool = False
    joined_at: datetime | None = None
    score: int = 0
    attempts: int = 0
    correct: int = 0
    accuracy: int = 0
    finished_at: datetime | None = None

    @field_validator("joined_at", "finished_at")
    @classmethod
    def ensure_utc(cls, v: datetime | None) -> datetime | None:
        return as_utc(v) if v is not None else None


class RoomFeed(BaseModel):
    code: str
    room: RoomSnapshot | None = None
    players: list[PlayerSnapshot] = Field(default_factory=list)
    server_time: datetime = Field(default_factory=utc_now)

    @property
    def is_available(self) -> bool:
        return self.room is not None


class CreateRoomResponse(BaseModel):
    code: str
    room: RoomSnapshot


class SetDurationRequest(BaseModel):
    duration_sec: int


class ReportAnswerRequest(BaseModel):
    is_correct: bool


class FinishReason(str, Enum):
    TIMEOUT = "timeout"
    EXIT = "exit"


class ScoreSnapshot(BaseModel):
    score: int = Field(ge=0)
    attempts: int = Field(ge=0)
    correct: int = Field(ge=0)

    @model_validator(mode="after")
    def check_correct_within_attempts(self) -> "ScoreSnapshot":
        if self.correct > self.attempts:
            raise ValueError("correct cannot exceed attempts")
        return self


class FinishMatchRequest(BaseModel):
    reason: FinishReason = FinishReason.TIMEOUT
    snapshot: ScoreSnapshot | None = None


class FinishMatchResponse(BaseModel):
    room: RoomSnapshot | None = None
    player: PlayerSnapshot | None = None
    counted: bool = False
    ended_match: bool = False


class MatchResultsResponse(BaseModel):
    code: str
    status: RoomStatus
    ended_reason: EndedReason | None = None
    ranked: list[RankedPlayer]
    winner: RankedPlayer | None = None
    top_accuracy: list[str] = Field(default_factory=list)
