from datetime import timedelta

import pytest

from mathduel.game.reactor import (
    ClockResynced,
    DurationChanged,
    LobbyRosterChanged,
    MatchEnded,
    MatchStarted,
    RoomReactor,
    RoomUnavailable,
)
from mathduel.models.room import EndedReason, RoomStatus
from mathduel.schemas.room import PlayerSnapshot, RoomFeed, RoomSnapshot

CODE = "ABCDEF"


@pytest.fixture
def players():
    return [
        PlayerSnapshot(uid="host", display_name="Host", is_host=True),
        PlayerSnapshot(uid="guest", display_name="Guest"),
    ]


@pytest.fixture
def make_feed(start_time, players):
    def factory(status=RoomStatus.LOBBY, roster=None, **room_fields):
        room = RoomSnapshot(
            code=CODE,
            host_uid="host",
            status=status,
            locked=status is not RoomStatus.LOBBY,
            max_players=8,
            duration_sec=room_fields.pop("duration_sec", 60),
            **room_fields,
        )
        return RoomFeed(
            code=CODE,
            room=room,
            players=players if roster is None else roster,
            server_time=start_time,
        )

    return factory


def test_first_lobby_feed_reports_roster(fake_now, make_feed, players):
    reactor = RoomReactor("guest", now=fake_now)

    events = reactor.handle(make_feed())

    assert events == [LobbyRosterChanged(players=players)]
    assert reactor.duration_sec == 60
    assert reactor.is_host is False


def test_duplicate_feed_is_silent(fake_now, make_feed):
    reactor = RoomReactor("guest", now=fake_now)
    reactor.handle(make_feed())

    assert reactor.handle(make_feed()) == []


def test_duration_change(fake_now, make_feed):
    reactor = RoomReactor("host", now=fake_now)
    reactor.handle(make_feed())

    events = reactor.handle(make_feed(duration_sec=90))

    assert events == [DurationChanged(duration_sec=90)]
    assert reactor.is_host is True


def test_roster_change(fake_now, make_feed, players):
    reactor = RoomReactor("guest", now=fake_now)
    reactor.handle(make_feed())
    bigger = [*players, PlayerSnapshot(uid="third", display_name="Third")]

    events = reactor.handle(make_feed(roster=bigger))

    assert events == [LobbyRosterChanged(players=bigger)]


def test_match_start_reported_once(fake_now, start_time, make_feed):
    reactor = RoomReactor("guest", now=fake_now)
    reactor.handle(make_feed())
    running = make_feed(
        status=RoomStatus.IN_PROGRESS, seed=42, started_at=start_time, player_count=2
    )

    events = reactor.handle(running)

    assert events == [
        MatchStarted(
            seed=42,
            duration_sec=60,
            started_at=start_time,
            ends_at=start_time + timedelta(seconds=60),
        )
    ]
    assert reactor.handle(running) == []
    assert reactor.clock.remaining_seconds() == 60


def test_start_without_lobby_feed(fake_now, start_time, make_feed):
    reactor = RoomReactor("guest", now=fake_now)

    events = reactor.handle(
        make_feed(status=RoomStatus.IN_PROGRESS, seed=42, started_at=start_time)
    )

    assert len(events) == 1
    assert isinstance(events[0], MatchStarted)


def test_clock_resync(fake_now, start_time, make_feed):
    reactor = RoomReactor("guest", now=fake_now)
    reactor.handle(
        make_feed(status=RoomStatus.IN_PROGRESS, seed=42, started_at=start_time)
    )

    events = reactor.handle(
        make_feed(
            status=RoomStatus.IN_PROGRESS,
            seed=42,
            started_at=start_time + timedelta(seconds=3),
        )
    )

    assert events == [ClockResynced(ends_at=start_time + timedelta(seconds=63))]


def test_match_end_then_ignored(fake_now, start_time, make_feed):
    reactor = RoomReactor("guest", now=fake_now)
    reactor.handle(
        make_feed(status=RoomStatus.IN_PROGRESS, seed=42, started_at=start_time)
    )
    ended = make_feed(
        status=RoomStatus.ENDED,
        seed=42,
        started_at=start_time,
        ended_reason=EndedReason.ALL_FINISHED,
    )

    assert reactor.handle(ended) == [MatchEnded(reason=EndedReason.ALL_FINISHED)]
    assert reactor.handle(ended) == []
    assert reactor.handle(RoomFeed(code=CODE, room=None)) == []


def test_skipped_start_reports_end(fake_now, start_time, make_feed):
    reactor = RoomReactor("guest", now=fake_now)
    reactor.handle(make_feed())

    events = reactor.handle(
        make_feed(
            status=RoomStatus.ENDED,
            seed=42,
            started_at=start_time,
            ended_reason=EndedReason.HOST_LEFT,
        )
    )

    assert events == [MatchEnded(reason=EndedReason.HOST_LEFT)]


def test_room_unavailable_once(fake_now, make_feed):
    reactor = RoomReactor("guest", now=fake_now)
    reactor.handle(make_feed())

    assert reactor.handle(RoomFeed(code=CODE, room=None)) == [RoomUnavailable()]
    assert reactor.handle(make_feed()) == []
