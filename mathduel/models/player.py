from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import Column, DateTime, UniqueConstraint
from sqlmodel import Field, SQLModel

from mathduel.models.time_stamp_mixin import TimeStampMixin, utc_now


def accuracy_percent(correct: int, attempts: int) -> int:
    if attempts <= 0:
        return 0
    return (correct * 200 + attempts) // (attempts * 2)


class Player(TimeStampMixin, SQLModel, table=True):  # type: ignore[call-arg]
    id: UUID = Field(
        default_factory=uuid4,
        primary_key=True,
    )
    room_code: str = Field(foreign_key="room.code", index=True, max_length=6)
    uid: str = Field(max_length=128)
    display_name: str = Field(max_length=32)
    is_host: bool = Field(default=False)
    joined_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )

    score: int = Field(default=0)
    attempts: int = Field(default=0)
    correct: int = Field(default=0)
    accuracy: int = Field(default=0)
    finished_at: datetime | None = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), nullable=True),
    )

    __table_args__ = (UniqueConstraint("room_code", "uid"),)

    @property
    def is_finished(self) -> bool:
        return self.finished_at is not None

    def apply_tally(self, score: int, attempts: int, correct: int) -> None:
        self.score = score
        self.attempts = attempts
        self.correct = correct
        self.accuracy = accuracy_percent(correct, attempts)
