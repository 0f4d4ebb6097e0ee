import asyncio

import pytest
import pytest_asyncio
from fastapi import WebSocketDisconnect
from fastapi.websockets import WebSocketState

from mathduel.core.jwt import create_access_token
from mathduel.core.room_channel import RoomChannelManager
from mathduel.models.room import Room


@pytest.fixture
def channel():
    return RoomChannelManager()


@pytest.fixture
def guest_token():
    return create_access_token("guest-uid", "Guesty")


@pytest.fixture
def test_room():
    return Room(code="ABCDEF", host_uid="host-uid", max_players=8, duration_sec=60)


@pytest.fixture
def mock_room_service(mocker, test_room):
    service = mocker.AsyncMock()
    service.validate_room_connection.return_value = test_room
    return service


@pytest_asyncio.fixture
async def mock_websocket_client(mocker, guest_token):
    """Fake socket fed from a queue; a None item simulates the client leaving."""
    mock_websocket = mocker.AsyncMock()
    mock_websocket.query_params = {"authorization": guest_token}
    mock_websocket.client_state = WebSocketState.CONNECTED

    receive_queue: asyncio.Queue = asyncio.Queue()

    async def mock_receive_json():
        message = await receive_queue.get()
        if message is None:
            raise WebSocketDisconnect(code=1000)
        return message

    mock_websocket.receive_json.side_effect = mock_receive_json

    async def simulate_message(message):
        await receive_queue.put(message)

    mock_websocket.simulate_message = simulate_message
    return mock_websocket
