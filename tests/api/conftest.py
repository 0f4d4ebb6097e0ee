import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from mathduel.db.session import get_session
from mathduel.dependencies.auth import get_current_identity
from mathduel.dependencies.repositories import (
    get_player_repository,
    get_room_repository,
)
from mathduel.dependencies.services import get_room_service
from mathduel.main import app
from mathduel.models.player import Player
from mathduel.models.room import Room
from mathduel.schemas.identity import Identity


@pytest_asyncio.fixture
async def client(mocker):
    mock_session = mocker.AsyncMock()

    mock_room_repository = mocker.AsyncMock()
    mock_player_repository = mocker.AsyncMock()

    mock_room_service = mocker.AsyncMock()

    app.dependency_overrides[get_session] = lambda: mock_session

    app.dependency_overrides[get_room_repository] = lambda: mock_room_repository
    app.dependency_overrides[get_player_repository] = lambda: mock_player_repository

    app.dependency_overrides[get_room_service] = lambda: mock_room_service

    mocks = {
        "session": mock_session,
        "repositories": {
            "room": mock_room_repository,
            "player": mock_player_repository,
        },
        "services": {
            "room_service": mock_room_service,
        },
    }

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client_instance:
        yield client_instance, mocks

    app.dependency_overrides.clear()


@pytest.fixture
def mock_identity():
    return Identity(uid="host-uid", display_name="Hosty")


@pytest_asyncio.fixture
async def login_client(client, mock_identity):
    client_instance, mocks = client

    app.dependency_overrides[get_current_identity] = lambda: mock_identity

    auth_client = AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={"Authorization": "Bearer test_token"},
    )

    try:
        yield auth_client, mocks
    finally:
        await auth_client.aclose()


@pytest.fixture
def lobby_room(mock_identity):
    return Room(
        code="ABCDEF",
        host_uid=mock_identity.uid,
        max_players=8,
        duration_sec=60,
    )


@pytest.fixture
def host_player(mock_identity):
    return Player(
        room_code="ABCDEF",
        uid=mock_identity.uid,
        display_name=mock_identity.display_name,
        is_host=True,
    )
