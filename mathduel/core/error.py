from enum import Enum
from typing import Any


class DomainErrorCode(str, Enum):
    ROOM_NOT_FOUND = "ROOM_NOT_FOUND"
    PLAYER_NOT_FOUND = "PLAYER_NOT_FOUND"
    ROOM_LOCKED = "ROOM_LOCKED"
    ROOM_FULL = "ROOM_FULL"
    MATCH_NOT_IN_PROGRESS = "MATCH_NOT_IN_PROGRESS"
    INSUFFICIENT_PLAYERS = "INSUFFICIENT_PLAYERS"
    NOT_AUTHORIZED = "NOT_AUTHORIZED"
    INVALID_ROOM_CODE = "INVALID_ROOM_CODE"
    INVALID_DURATION = "INVALID_DURATION"
    INVALID_DISPLAY_NAME = "INVALID_DISPLAY_NAME"
    ROOM_CREATION_EXHAUSTED = "ROOM_CREATION_EXHAUSTED"
    TRANSIENT_STORE_ERROR = "TRANSIENT_STORE_ERROR"


class MathDuelDomainError(Exception):
    def __init__(
        self,
        code: DomainErrorCode,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.code = code
        self.message = message or code.name
        self.details = details or {}
        super().__init__(self.message)

    @property
    def is_transient(self) -> bool:
        return self.code in (
            DomainErrorCode.TRANSIENT_STORE_ERROR,
            DomainErrorCode.ROOM_CREATION_EXHAUSTED,
        )
