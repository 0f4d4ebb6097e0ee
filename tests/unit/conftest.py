from datetime import UTC, datetime, timedelta

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool
from sqlmodel import SQLModel

from mathduel.core.room_channel import RoomChannelManager
from mathduel.core.room_locks import RoomLockRegistry
from mathduel.models.player import Player  # noqa: F401
from mathduel.models.room import Room  # noqa: F401
from mathduel.schemas.identity import Identity
from mathduel.services.room_service import RoomService


class TickingClock:
    def __init__(self, start: datetime, step: timedelta = timedelta(milliseconds=10)):
        self.current = start
        self.step = step

    def __call__(self) -> datetime:
        self.current += self.step
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)


@pytest_asyncio.fixture
async def test_engine(tmp_path):
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'mathduel_test.db'}",
        echo=False,
        future=True,
        poolclass=NullPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def test_db_session(session_factory):
    async with session_factory() as session:
        try:
            yield session
        finally:
            await session.rollback()
            await session.close()


@pytest.fixture
def clock():
    return TickingClock(datetime(2026, 1, 1, 12, 0, tzinfo=UTC))


@pytest.fixture
def channel():
    return RoomChannelManager()


@pytest.fixture
def locks():
    return RoomLockRegistry()


@pytest_asyncio.fixture
async def make_service(session_factory, channel, locks, clock):
    """Builds one RoomService per client, each on its own session."""
    sessions: list[AsyncSession] = []

    def factory() -> RoomService:
        session = session_factory()
        sessions.append(session)
        return RoomService(session=session, channel=channel, locks=locks, clock=clock)

    yield factory

    for session in sessions:
        await session.close()


@pytest.fixture
def host():
    return Identity(uid="host-uid", display_name="Hosty")


@pytest.fixture
def guest():
    return Identity(uid="guest-uid", display_name="Guesty")


@pytest.fixture
def third():
    return Identity(uid="third-uid", display_name="Thirdy")
