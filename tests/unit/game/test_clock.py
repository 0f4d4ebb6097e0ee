from datetime import timedelta

from mathduel.game.clock import MatchClock


def test_remaining_from_start(fake_now, start_time):
    clock = MatchClock(now=fake_now)

    assert clock.observe(start_time, 60) is True
    assert clock.end_at == start_time + timedelta(seconds=60)
    assert clock.remaining_seconds() == 60
    assert clock.display() == "1:00"

    fake_now.advance(15.2)
    assert clock.remaining_seconds() == 45
    assert clock.display() == "0:45"
    assert not clock.expired


def test_expired_clamps_at_zero(fake_now, start_time):
    clock = MatchClock(now=fake_now)
    clock.observe(start_time, 30)

    fake_now.advance(31)

    assert clock.remaining() == 0.0
    assert clock.expired
    assert clock.progress() == 1.0


def test_small_drift_keeps_end(fake_now, start_time):
    clock = MatchClock(now=fake_now)
    clock.observe(start_time, 60)

    changed = clock.observe(start_time + timedelta(milliseconds=200), 60)

    assert changed is False
    assert clock.end_at == start_time + timedelta(seconds=60)


def test_large_drift_resyncs(fake_now, start_time):
    clock = MatchClock(now=fake_now)
    clock.observe(start_time, 60)

    changed = clock.observe(start_time + timedelta(seconds=2), 60)

    assert changed is True
    assert clock.end_at == start_time + timedelta(seconds=62)


def test_missing_start_falls_back_to_now(fake_now, start_time):
    clock = MatchClock(now=fake_now)
    fake_now.advance(5)

    assert clock.observe(None, 60) is True
    assert clock.end_at == start_time + timedelta(seconds=65)
    assert clock.observe(None, 60) is False

    # the authoritative start replaces the fallback
    assert clock.observe(start_time, 60) is True
    assert clock.end_at == start_time + timedelta(seconds=60)


def test_calibrate_uses_server_offset(fake_now, start_time):
    clock = MatchClock(now=fake_now)

    clock.observe(start_time, 60, server_time=start_time + timedelta(seconds=10))

    assert clock.server_now() == start_time + timedelta(seconds=10)
    assert clock.remaining_seconds() == 50


def test_naive_start_is_treated_as_utc(fake_now, start_time):
    clock = MatchClock(now=fake_now)

    clock.observe(start_time.replace(tzinfo=None), 60)

    assert clock.remaining_seconds() == 60


def test_unobserved_clock(fake_now):
    clock = MatchClock(now=fake_now)

    assert clock.remaining() == 0.0
    assert clock.progress() == 0.0
    assert not clock.expired
