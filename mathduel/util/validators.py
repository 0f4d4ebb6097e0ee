import re

from mathduel.core.config import settings
from mathduel.core.error import DomainErrorCode, MathDuelDomainError

ROOM_CODE_ALPHABET = "ABCDEFGHJKMNPQRSTUVWXYZ23456789"
ROOM_CODE_LENGTH = 6
DEFAULT_DISPLAY_NAME = "Math Wizard"
MAX_DISPLAY_NAME_LENGTH = 32

_ROOM_CODE_PATTERN = re.compile(rf"^[{ROOM_CODE_ALPHABET}]{{{ROOM_CODE_LENGTH}}}$")


def normalize_room_code(value: str) -> str:
    return re.sub(r"[^a-zA-Z0-9]", "", value).upper()[:ROOM_CODE_LENGTH]


def validate_room_code(value: str) -> str:
    code = normalize_room_code(value)
    if not _ROOM_CODE_PATTERN.match(code):
        raise MathDuelDomainError(
            code=DomainErrorCode.INVALID_ROOM_CODE,
            message=f"Room code must be {ROOM_CODE_LENGTH} characters",
            details={
                "room_code": value,
            },
        )
    return code


def validate_duration(seconds: int) -> int:
    if not settings.ROOM_MIN_DURATION_SEC <= seconds <= settings.ROOM_MAX_DURATION_SEC:
        raise MathDuelDomainError(
            code=DomainErrorCode.INVALID_DURATION,
            message=(
                f"Duration must be between {settings.ROOM_MIN_DURATION_SEC} "
                f"and {settings.ROOM_MAX_DURATION_SEC} seconds"
            ),
            details={
                "duration_sec": seconds,
            },
        )
    return seconds


def validate_display_name(display_name: str | None) -> str:
    if display_name is None or display_name.strip() == "":
        return DEFAULT_DISPLAY_NAME

    name = display_name.strip()
    if len(name) > MAX_DISPLAY_NAME_LENGTH:
        raise MathDuelDomainError(
            code=DomainErrorCode.INVALID_DISPLAY_NAME,
            message=(
                f"Display name must be {MAX_DISPLAY_NAME_LENGTH} characters or less"
            ),
            details={
                "display_name": display_name,
                "length": len(name),
            },
        )

    return name
