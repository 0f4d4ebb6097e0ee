import logging
from collections.abc import Callable
from datetime import datetime

from pydantic import BaseModel

from mathduel.game.clock import MatchClock
from mathduel.models.room import EndedReason, RoomStatus
from mathduel.models.time_stamp_mixin import utc_now
from mathduel.schemas.room import PlayerSnapshot, RoomFeed

logger = logging.getLogger(__name__)


class RoomEvent(BaseModel):
    pass


class LobbyRosterChanged(RoomEvent):
    players: list[PlayerSnapshot]


class DurationChanged(RoomEvent):
    duration_sec: int


class MatchStarted(RoomEvent):
    seed: int
    duration_sec: int
    started_at: datetime | None
    ends_at: datetime | None


class ClockResynced(RoomEvent):
    ends_at: datetime | None


class MatchEnded(RoomEvent):
    reason: EndedReason | None


class RoomUnavailable(RoomEvent):
    pass


class RoomReactor:
    """Turns a stream of room snapshots into lifecycle events.

    Deliveries may repeat or skip intermediate states; each transition is
    reported once.
    """

    def __init__(self, uid: str, now: Callable[[], datetime] = utc_now):
        self.uid = uid
        self.clock = MatchClock(now=now)
        self.status: RoomStatus | None = None
        self.seed: int | None = None
        self.duration_sec: int | None = None
        self.roster: list[PlayerSnapshot] | None = None
        self.started = False
        self.ended = False
        self.unavailable = False

    @property
    def is_host(self) -> bool:
        return any(p.uid == self.uid and p.is_host for p in self.roster or [])

    def handle(self, feed: RoomFeed) -> list[RoomEvent]:
        if self.unavailable or self.ended:
            return []

        room = feed.room
        if room is None:
            self.unavailable = True
            logger.info("Room %s is no longer available", feed.code)
            return [RoomUnavailable()]

        events: list[RoomEvent] = []
        self.status = room.status

        if room.status is RoomStatus.LOBBY:
            if feed.players != self.roster:
                self.roster = list(feed.players)
                events.append(LobbyRosterChanged(players=self.roster))
            if room.duration_sec != self.duration_sec:
                if self.duration_sec is not None:
                    events.append(DurationChanged(duration_sec=room.duration_sec))
                self.duration_sec = room.duration_sec
            return events

        self.roster = list(feed.players)

        if room.status is RoomStatus.IN_PROGRESS and room.seed is not None:
            changed = self.clock.observe(
                room.started_at, room.duration_sec, server_time=feed.server_time
            )
            if not self.started:
                self.started = True
                self.seed = room.seed
                self.duration_sec = room.duration_sec
                events.append(
                    MatchStarted(
                        seed=room.seed,
                        duration_sec=room.duration_sec,
                        started_at=room.started_at,
                        ends_at=self.clock.end_at,
                    )
                )
            elif changed:
                events.append(ClockResynced(ends_at=self.clock.end_at))

        if room.status is RoomStatus.ENDED:
            self.ended = True
            events.append(MatchEnded(reason=room.ended_reason))

        return events
