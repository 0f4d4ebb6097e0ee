import asyncio
import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status
from fastapi.encoders import jsonable_encoder
from fastapi.websockets import WebSocketState
from pydantic import ValidationError

from mathduel.core.error import MathDuelDomainError
from mathduel.core.jwt import get_identity_from_token
from mathduel.core.room_channel import RoomChannelManager, RoomSubscription, room_channel
from mathduel.dependencies.services import get_room_service
from mathduel.schemas.identity import Identity
from mathduel.schemas.room import RoomFeed
from mathduel.schemas.ws import WebSocketMessage, WebSocketResponse, WSActionType
from mathduel.services.room_service import RoomService

logger = logging.getLogger(__name__)

router = APIRouter()


class RoomWebSocketHandler:
    def __init__(
        self,
        websocket: WebSocket,
        code: str,
        room_service: RoomService,
        channel: RoomChannelManager | None = None,
    ):
        self.websocket = websocket
        self.code = code
        self.room_service = room_service
        self.channel = channel or room_channel
        self.identity: Identity | None = None
        self.subscription: RoomSubscription | None = None

    async def handle_connection(self) -> bool:
        result = True
        try:
            token = self.websocket.query_params.get("authorization")
            identity = get_identity_from_token(token) if token else None
            if identity is None:
                await self.websocket.close(code=status.WS_1008_POLICY_VIOLATION)
                return False

            room = await self.room_service.validate_room_connection(
                self.code, identity.uid
            )
            self.identity = identity
            self.code = room.code

            await self.websocket.accept()
            self.subscription = self.channel.subscribe(self.code)

            feed = await self.room_service.get_feed(self.code)
            if await self.send_feed(feed):
                await self.run()
        except MathDuelDomainError as e:
            await self.websocket.close(
                code=status.WS_1008_POLICY_VIOLATION, reason=e.message
            )
            result = False
        except WebSocketDisconnect:
            result = False
        finally:
            if self.subscription is not None:
                self.subscription.close()

        return result

    async def run(self) -> None:
        forward = asyncio.create_task(self.forward_updates())
        receive = asyncio.create_task(self.handle_messages())
        done, pending = await asyncio.wait(
            {forward, receive}, return_when=asyncio.FIRST_COMPLETED
        )
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)

        for task in done:
            exc = task.exception()
            if exc is not None and not isinstance(exc, WebSocketDisconnect):
                raise exc

    async def forward_updates(self) -> None:
        if self.subscription is None:
            return
        async for feed in self.subscription:
            if not await self.send_feed(feed):
                return

    async def send_feed(self, feed: RoomFeed) -> bool:
        if feed.room is None:
            await self.send(
                WebSocketResponse(
                    status="success",
                    action=WSActionType.ROOM_CLOSED,
                    data={"code": feed.code},
                )
            )
            if self.websocket.client_state == WebSocketState.CONNECTED:
                await self.websocket.close(code=status.WS_1000_NORMAL_CLOSURE)
            return False

        await self.send(
            WebSocketResponse(
                status="success",
                action=WSActionType.ROOM_SNAPSHOT,
                data=feed.model_dump(mode="json"),
            )
        )
        return True

    async def send(self, response: WebSocketResponse) -> None:
        await self.websocket.send_json(jsonable_encoder(response))

    async def handle_messages(self) -> None:
        while True:
            data = await self.websocket.receive_json()
            try:
                message = WebSocketMessage(
                    action=data.get("action", ""), data=data.get("data")
                )
            except (ValidationError, AttributeError) as e:
                await self.send(
                    WebSocketResponse(
                        status="error",
                        action=WSActionType.ERROR,
                        error=f"Invalid message format: {e!s}",
                    )
                )
                continue

            if message.action == WSActionType.PING:
                await self.handle_ping(message)
            else:
                await self.send(
                    WebSocketResponse(
                        status="error",
                        action=WSActionType.ERROR,
                        error=f"Unknown action: {message.action}",
                    )
                )

    async def handle_ping(self, _message: WebSocketMessage) -> None:
        await self.send(
            WebSocketResponse(
                status="success",
                action=WSActionType.PONG,
            )
        )


@router.websocket("/{code}")
async def room_websocket(
    websocket: WebSocket,
    code: str,
    room_service: RoomService = Depends(get_room_service),
) -> None:
    handler = RoomWebSocketHandler(websocket, code, room_service)
    connected = await handler.handle_connection()
    logger.debug("Room socket %s closed (clean=%s)", code, connected)
