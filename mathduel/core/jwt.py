from datetime import UTC, datetime, timedelta

from jose import jwt
from jose.exceptions import JWTError
from pydantic import ValidationError

from mathduel.core.config import settings
from mathduel.schemas.identity import Identity, JwtTokenPayload


def create_access_token(uid: str, display_name: str) -> str:
    expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    payload = JwtTokenPayload(
        sub=uid,
        name=display_name,
        typ="access",
        exp=int((datetime.now(UTC) + expires_delta).timestamp()),
    )

    encoded_token = jwt.encode(
        payload.model_dump(),
        settings.JWT_SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM,
    )
    return str(encoded_token)


def decode_token(token: str) -> JwtTokenPayload | None:
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
        )
        jwt_token_payload = JwtTokenPayload.model_validate(payload)
    except (JWTError, ValidationError):
        return None
    return jwt_token_payload


def get_identity_from_token(token: str) -> Identity | None:
    if token.lower().startswith("bearer "):
        token = token[7:]
    payload = decode_token(token)
    if payload is None or payload.typ != "access":
        return None
    return Identity(uid=payload.sub, display_name=payload.name)
