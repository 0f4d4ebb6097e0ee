import logging
import secrets
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from datetime import datetime
from typing import NamedTuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from mathduel.core.config import settings
from mathduel.core.error import DomainErrorCode, MathDuelDomainError
from mathduel.core.room_channel import RoomChannelManager, room_channel
from mathduel.core.room_locks import RoomLockRegistry, room_locks
from mathduel.game.ranking import summarize_results
from mathduel.models.player import Player
from mathduel.models.room import EndedReason, Room, RoomStatus
from mathduel.models.time_stamp_mixin import utc_now
from mathduel.repositories.player_repository import PlayerRepository
from mathduel.repositories.room_repository import RoomRepository
from mathduel.schemas.identity import Identity
from mathduel.schemas.room import (
    FinishReason,
    MatchResultsResponse,
    PlayerSnapshot,
    RoomFeed,
    RoomSnapshot,
    ScoreSnapshot,
)
from mathduel.util.validators import (
    ROOM_CODE_ALPHABET,
    ROOM_CODE_LENGTH,
    validate_display_name,
    validate_duration,
    validate_room_code,
)

logger = logging.getLogger(__name__)

SEED_MAX = 2_000_000_000


class FinishOutcome(NamedTuple):
    room: Room | None
    player: Player | None
    counted: bool
    ended_match: bool


class RoomWrite:
    def __init__(self, code: str):
        self.code = code
        self.touched = False

    def changed(self) -> None:
        self.touched = True


class RoomService:
    def __init__(
        self,
        session: AsyncSession,
        room_repository: RoomRepository | None = None,
        player_repository: PlayerRepository | None = None,
        channel: RoomChannelManager | None = None,
        locks: RoomLockRegistry | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.session = session
        self.room_repository = room_repository or RoomRepository(session)
        self.player_repository = player_repository or PlayerRepository(session)
        self.channel = channel or room_channel
        self.locks = locks or room_locks
        self.clock = clock
        self._random = secrets.SystemRandom()

    def _generate_room_code(self) -> str:
        return "".join(
            self._random.choice(ROOM_CODE_ALPHABET) for _ in range(ROOM_CODE_LENGTH)
        )

    def _generate_seed(self) -> int:
        return self._random.randint(1, SEED_MAX)

    @asynccontextmanager
    async def _transaction(self, code: str) -> AsyncIterator[RoomWrite]:
        write = RoomWrite(code)
        async with self.locks.hold(code):
            try:
                yield write
                feed = await self._build_feed(code) if write.touched else None
                await self.session.commit()
            except SQLAlchemyError as e:
                await self.session.rollback()
                logger.warning("Store error on room %s: %s", code, e)
                raise MathDuelDomainError(
                    code=DomainErrorCode.TRANSIENT_STORE_ERROR,
                    message="The room store is temporarily unavailable",
                    details={"room_code": code},
                ) from e
            except BaseException:
                await self.session.rollback()
                raise

            if feed is not None:
                self.channel.publish(feed)

    async def _build_feed(self, code: str) -> RoomFeed:
        room = await self.room_repository.get(code)
        if room is None:
            return RoomFeed(code=code, room=None, server_time=self.clock())
        players = await self.player_repository.get_roster(code)
        return RoomFeed(
            code=code,
            room=RoomSnapshot.model_validate(room),
            players=[PlayerSnapshot.model_validate(p) for p in players],
            server_time=self.clock(),
        )

    async def _get_room_for_update(self, code: str) -> Room:
        room = await self.room_repository.get_for_update(code)
        if room is None:
            raise MathDuelDomainError(
                code=DomainErrorCode.ROOM_NOT_FOUND,
                message=f"Room {code} not found",
                details={"room_code": code},
            )
        return room

    @staticmethod
    def _ensure_host(room: Room, uid: str) -> None:
        if not room.is_hosted_by(uid):
            raise MathDuelDomainError(
                code=DomainErrorCode.NOT_AUTHORIZED,
                message=f"Only the host can do this in room {room.code}",
                details={"room_code": room.code, "uid": uid},
            )

    async def _delete_room(self, room: Room) -> None:
        await self.player_repository.delete_roster(room.code)
        await self.room_repository.remove(room)

    def _mark_abandoned(self, room: Room) -> None:
        room.status = RoomStatus.ENDED
        room.ended_reason = EndedReason.HOST_LEFT
        room.ended_at = self.clock()
        room.locked = True

    async def create_room(self, identity: Identity) -> Room:
        display_name = validate_display_name(identity.display_name)

        for attempt in range(1, settings.ROOM_CODE_ATTEMPTS + 1):
            code = self._generate_room_code()
            try:
                async with self._transaction(code) as write:
                    if await self.room_repository.exists(code):
                        logger.debug(
                            "Room code %s already in use (attempt %d)", code, attempt
                        )
                        continue

                    room = await self.room_repository.create(
                        Room(
                            code=code,
                            host_uid=identity.uid,
                            status=RoomStatus.LOBBY,
                            locked=False,
                            max_players=settings.ROOM_MAX_PLAYERS,
                            duration_sec=settings.ROOM_DEFAULT_DURATION_SEC,
                        )
                    )
                    await self.player_repository.create(
                        Player(
                            room_code=code,
                            uid=identity.uid,
                            display_name=display_name,
                            is_host=True,
                            joined_at=self.clock(),
                        )
                    )
                    write.changed()
            except MathDuelDomainError as e:
                if isinstance(e.__cause__, IntegrityError):
                    logger.debug("Room code %s taken concurrently", code)
                    continue
                raise

            logger.info("Room %s created by %s", code, identity.uid)
            return room

        raise MathDuelDomainError(
            code=DomainErrorCode.ROOM_CREATION_EXHAUSTED,
            message="Could not allocate a room code, please retry",
            details={"attempts": settings.ROOM_CODE_ATTEMPTS},
        )

    async def join_room(self, code: str, identity: Identity) -> Player:
        code = validate_room_code(code)
        display_name = validate_display_name(identity.display_name)

        async with self._transaction(code) as write:
            room = await self._get_room_for_update(code)

            existing = await self.player_repository.get_member(code, identity.uid)
            if existing is not None:
                if (
                    room.status is RoomStatus.LOBBY
                    and existing.display_name != display_name
                ):
                    existing.display_name = display_name
                    await self.player_repository.update(existing)
                    write.changed()
                logger.debug("Player %s re-joined room %s", identity.uid, code)
                return existing

            if room.status is not RoomStatus.LOBBY or room.locked:
                raise MathDuelDomainError(
                    code=DomainErrorCode.ROOM_LOCKED,
                    message=f"Room {code} has already started",
                    details={"room_code": code, "status": room.status.value},
                )

            roster_size = await self.player_repository.count_members(code)
            if roster_size >= room.max_players:
                raise MathDuelDomainError(
                    code=DomainErrorCode.ROOM_FULL,
                    message=f"Room {code} is full",
                    details={"room_code": code, "max_players": room.max_players},
                )

            player = await self.player_repository.create(
                Player(
                    room_code=code,
                    uid=identity.uid,
                    display_name=display_name,
                    is_host=False,
                    joined_at=self.clock(),
                )
            )
            write.changed()

        logger.info("Player %s joined room %s", identity.uid, code)
        return player

    async def leave_room(self, code: str, identity: Identity) -> None:
        code = validate_room_code(code)

        async with self._transaction(code) as write:
            room = await self.room_repository.get_for_update(code)
            if room is None:
                logger.debug("Leave ignored: room %s does not exist", code)
                return

            if room.status is RoomStatus.LOBBY:
                if room.is_hosted_by(identity.uid):
                    await self._delete_room(room)
                    write.changed()
                    logger.info("Host %s closed lobby %s", identity.uid, code)
                    return

                player = await self.player_repository.get_member(code, identity.uid)
                if player is not None:
                    await self.player_repository.remove(player)
                    write.changed()
                    logger.info("Player %s left room %s", identity.uid, code)
                return

            if room.status is RoomStatus.IN_PROGRESS and room.is_hosted_by(
                identity.uid
            ):
                self._mark_abandoned(room)
                await self.room_repository.update(room)
                write.changed()
                logger.info("Host %s left room %s mid-match", identity.uid, code)

    async def set_duration(self, code: str, identity: Identity, seconds: int) -> Room:
        code = validate_room_code(code)
        seconds = validate_duration(seconds)

        async with self._transaction(code) as write:
            room = await self._get_room_for_update(code)
            self._ensure_host(room, identity.uid)

            if room.status is not RoomStatus.LOBBY or room.locked:
                raise MathDuelDomainError(
                    code=DomainErrorCode.ROOM_LOCKED,
                    message=f"Room {code} can no longer be configured",
                    details={"room_code": code, "status": room.status.value},
                )

            if room.duration_sec != seconds:
                room.duration_sec = seconds
                room = await self.room_repository.update(room)
                write.changed()

        return room

    async def start_match(self, code: str, identity: Identity) -> Room:
        code = validate_room_code(code)

        async with self._transaction(code) as write:
            room = await self._get_room_for_update(code)
            self._ensure_host(room, identity.uid)

            if room.status is RoomStatus.IN_PROGRESS:
                logger.debug("Room %s already started", code)
                return room

            if room.status is not RoomStatus.LOBBY or room.locked:
                raise MathDuelDomainError(
                    code=DomainErrorCode.ROOM_LOCKED,
                    message=f"Room {code} cannot be started",
                    details={"room_code": code, "status": room.status.value},
                )

            roster_size = await self.player_repository.count_members(code)
            if roster_size < settings.ROOM_MIN_PLAYERS:
                raise MathDuelDomainError(
                    code=DomainErrorCode.INSUFFICIENT_PLAYERS,
                    message=f"Room {code} needs at least {settings.ROOM_MIN_PLAYERS} players",
                    details={
                        "room_code": code,
                        "current_players": roster_size,
                        "min_players": settings.ROOM_MIN_PLAYERS,
                    },
                )

            room.status = RoomStatus.IN_PROGRESS
            room.locked = True
            room.seed = self._generate_seed()
            room.player_count = roster_size
            room.finished_count = 0
            room.ended_reason = None
            room.ended_at = None
            room.started_at = self.clock()
            room = await self.room_repository.update(room)
            write.changed()

        logger.info(
            "Room %s started with %d players (%ds)",
            code,
            room.player_count,
            room.duration_sec,
        )
        return room

    async def report_answer(
        self, code: str, identity: Identity, is_correct: bool
    ) -> Player:
        code = validate_room_code(code)

        async with self._transaction(code) as write:
            room = await self._get_room_for_update(code)
            player = await self.player_repository.get_member(code, identity.uid)
            if player is None:
                raise MathDuelDomainError(
                    code=DomainErrorCode.PLAYER_NOT_FOUND,
                    message=f"Player {identity.uid} is not in room {code}",
                    details={"room_code": code, "uid": identity.uid},
                )

            if room.status is RoomStatus.LOBBY:
                raise MathDuelDomainError(
                    code=DomainErrorCode.MATCH_NOT_IN_PROGRESS,
                    message=f"Room {code} has not started yet",
                    details={"room_code": code},
                )

            if room.status is RoomStatus.ENDED or player.is_finished:
                return player

            player.apply_tally(
                score=player.score + (settings.POINTS_PER_CORRECT if is_correct else 0),
                attempts=player.attempts + 1,
                correct=player.correct + (1 if is_correct else 0),
            )
            player = await self.player_repository.update(player)
            write.changed()

        return player

    async def finish_match(
        self,
        code: str,
        identity: Identity,
        snapshot: ScoreSnapshot | None = None,
        reason: FinishReason = FinishReason.TIMEOUT,
    ) -> FinishOutcome:
        code = validate_room_code(code)

        async with self._transaction(code) as write:
            room = await self.room_repository.get_for_update(code)
            player = (
                await self.player_repository.get_member(code, identity.uid)
                if room is not None
                else None
            )

            if room is not None and player is None:
                raise MathDuelDomainError(
                    code=DomainErrorCode.PLAYER_NOT_FOUND,
                    message=f"Player {identity.uid} is not in room {code}",
                    details={"room_code": code, "uid": identity.uid},
                )

            if room is not None and room.status is RoomStatus.LOBBY:
                raise MathDuelDomainError(
                    code=DomainErrorCode.MATCH_NOT_IN_PROGRESS,
                    message=f"Room {code} has not started yet",
                    details={"room_code": code},
                )

            if room is None or player is None or player.is_finished:
                if player is not None and snapshot is not None:
                    player.apply_tally(snapshot.score, snapshot.attempts, snapshot.correct)
                    player = await self.player_repository.update(player)
                    write.changed()
                logger.debug("Repeated finish from %s in room %s", identity.uid, code)
                return FinishOutcome(room, player, counted=False, ended_match=False)

            if snapshot is not None:
                player.apply_tally(snapshot.score, snapshot.attempts, snapshot.correct)

            if (
                reason is FinishReason.EXIT
                and room.is_hosted_by(identity.uid)
                and room.status is RoomStatus.IN_PROGRESS
            ):
                player = await self.player_repository.update(player)
                self._mark_abandoned(room)
                room = await self.room_repository.update(room)
                write.changed()
                logger.info("Host %s exited room %s mid-match", identity.uid, code)
                return FinishOutcome(room, player, counted=False, ended_match=True)

            now = self.clock()
            player.finished_at = now
            player = await self.player_repository.update(player)
            write.changed()

            if room.status is not RoomStatus.IN_PROGRESS or room.ended_reason is not None:
                return FinishOutcome(room, player, counted=False, ended_match=False)

            if not room.player_count:
                logger.warning("Room %s has no frozen player count", code)
                return FinishOutcome(room, player, counted=False, ended_match=False)

            room.finished_count += 1
            ended_match = room.finished_count >= room.player_count
            if ended_match:
                room.status = RoomStatus.ENDED
                room.ended_reason = EndedReason.ALL_FINISHED
                room.ended_at = now
            room = await self.room_repository.update(room)

        logger.info(
            "Player %s finished room %s (%d/%d, %s)",
            identity.uid,
            code,
            room.finished_count,
            room.player_count,
            reason.value,
        )
        if ended_match:
            logger.info("Room %s ended: all players finished", code)
        return FinishOutcome(room, player, counted=True, ended_match=ended_match)

    async def abandon_match(self, code: str, identity: Identity) -> Room | None:
        code = validate_room_code(code)

        async with self._transaction(code) as write:
            room = await self._get_room_for_update(code)
            self._ensure_host(room, identity.uid)

            if room.status is RoomStatus.LOBBY:
                await self._delete_room(room)
                write.changed()
                logger.info("Host %s closed lobby %s", identity.uid, code)
                return None

            self._mark_abandoned(room)
            room = await self.room_repository.update(room)
            write.changed()

        logger.info("Room %s ended: host left", code)
        return room

    async def get_feed(self, code: str) -> RoomFeed:
        code = validate_room_code(code)
        async with self._transaction(code):
            feed = await self._build_feed(code)
        return feed

    async def get_room(self, code: str) -> Room:
        code = validate_room_code(code)
        async with self._transaction(code):
            room = await self.room_repository.get_or_raise(code)
        return room

    async def get_roster(self, code: str) -> list[Player]:
        code = validate_room_code(code)
        async with self._transaction(code):
            await self.room_repository.get_or_raise(code)
            players = await self.player_repository.get_roster(code)
        return players

    async def get_results(
        self, code: str, my_uid: str | None = None
    ) -> MatchResultsResponse:
        code = validate_room_code(code)
        async with self._transaction(code):
            room = await self.room_repository.get_or_raise(code)
            players = await self.player_repository.get_roster(code)

        results = summarize_results(players, my_uid)
        return MatchResultsResponse(
            code=code,
            status=room.status,
            ended_reason=room.ended_reason,
            ranked=results.ranked,
            winner=results.winner,
            top_accuracy=results.top_accuracy,
        )

    async def validate_room_connection(self, code: str, uid: str) -> Room:
        code = validate_room_code(code)
        async with self._transaction(code):
            room = await self.room_repository.get_or_raise(code)
            await self.player_repository.filter_one_or_raise(room_code=code, uid=uid)
        return room
