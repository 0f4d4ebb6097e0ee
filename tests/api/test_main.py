import pytest
from fastapi import status

from mathduel.core.error import DomainErrorCode, MathDuelDomainError


async def test_health_check(client):
    client_instance, _ = client
    response = await client_instance.get("/health")
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["message"] == "healthy"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "code, expected_status",
    [
        (DomainErrorCode.ROOM_NOT_FOUND, status.HTTP_404_NOT_FOUND),
        (DomainErrorCode.PLAYER_NOT_FOUND, status.HTTP_404_NOT_FOUND),
        (DomainErrorCode.ROOM_LOCKED, status.HTTP_409_CONFLICT),
        (DomainErrorCode.ROOM_FULL, status.HTTP_409_CONFLICT),
        (DomainErrorCode.MATCH_NOT_IN_PROGRESS, status.HTTP_409_CONFLICT),
        (DomainErrorCode.INSUFFICIENT_PLAYERS, status.HTTP_400_BAD_REQUEST),
        (DomainErrorCode.NOT_AUTHORIZED, status.HTTP_403_FORBIDDEN),
        (DomainErrorCode.INVALID_DURATION, status.HTTP_422_UNPROCESSABLE_ENTITY),
        (DomainErrorCode.INVALID_DISPLAY_NAME, status.HTTP_422_UNPROCESSABLE_ENTITY),
        (DomainErrorCode.ROOM_CREATION_EXHAUSTED, status.HTTP_503_SERVICE_UNAVAILABLE),
        (DomainErrorCode.TRANSIENT_STORE_ERROR, status.HTTP_503_SERVICE_UNAVAILABLE),
    ],
)
async def test_domain_error_status(login_client, code, expected_status):
    client, mocks = login_client
    mocks["services"]["room_service"].start_match.side_effect = MathDuelDomainError(
        code=code,
        message="failed",
        details={"room_code": "ABCDEF"},
    )

    response = await client.post("/api/v1/room/ABCDEF/start")

    assert response.status_code == expected_status
    data = response.json()
    assert data["code"] == code.value
    assert data["detail"] == "failed"
    assert data["error_details"] == {"room_code": "ABCDEF"}
