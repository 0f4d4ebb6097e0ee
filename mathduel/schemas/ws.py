from datetime import UTC, datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field


class WSActionType(str, Enum):
    PING = "ping"
    PONG = "pong"
    ROOM_SNAPSHOT = "room_snapshot"
    ROOM_CLOSED = "room_closed"
    ERROR = "error"


class WebSocketMessage(BaseModel):
    action: str
    data: dict[str, Any] | None = None


class WebSocketResponse(BaseModel):
    status: Literal["success", "error"]
    action: str
    data: dict[str, Any] | None = None
    error: str | None = None
    timestamp: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
