from datetime import UTC, datetime, timedelta

from jose import jwt

from mathduel.core.config import settings
from mathduel.core.jwt import create_access_token, decode_token, get_identity_from_token


def test_access_token_round_trip():
    token = create_access_token("uid-1", "Alice")

    payload = decode_token(token)

    assert payload is not None
    assert payload.sub == "uid-1"
    assert payload.name == "Alice"
    assert payload.typ == "access"


def test_identity_accepts_bearer_prefix():
    token = create_access_token("uid-1", "Alice")

    identity = get_identity_from_token(f"Bearer {token}")

    assert identity is not None
    assert identity.uid == "uid-1"
    assert identity.display_name == "Alice"


def test_invalid_token():
    assert decode_token("not-a-token") is None
    assert get_identity_from_token("not-a-token") is None


def test_expired_token():
    token = jwt.encode(
        {
            "sub": "uid-1",
            "typ": "access",
            "exp": int((datetime.now(UTC) - timedelta(minutes=1)).timestamp()),
        },
        settings.JWT_SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM,
    )

    assert get_identity_from_token(token) is None


def test_refresh_token_rejected():
    token = jwt.encode(
        {
            "sub": "uid-1",
            "typ": "refresh",
            "exp": int((datetime.now(UTC) + timedelta(minutes=5)).timestamp()),
        },
        settings.JWT_SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM,
    )

    assert decode_token(token) is not None
    assert get_identity_from_token(token) is None


def test_wrong_secret_rejected():
    token = jwt.encode(
        {
            "sub": "uid-1",
            "typ": "access",
            "exp": int((datetime.now(UTC) + timedelta(minutes=5)).timestamp()),
        },
        "another-secret",
        algorithm=settings.JWT_ALGORITHM,
    )

    assert get_identity_from_token(token) is None
