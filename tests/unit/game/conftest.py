from datetime import UTC, datetime, timedelta

import pytest


class FakeNow:
    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)


@pytest.fixture
def start_time():
    return datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def fake_now(start_time):
    return FakeNow(start_time)
