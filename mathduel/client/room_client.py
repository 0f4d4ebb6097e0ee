import asyncio
import logging
from typing import Any

import httpx

from mathduel.core.config import settings
from mathduel.core.error import DomainErrorCode, MathDuelDomainError
from mathduel.schemas.room import (
    CreateRoomResponse,
    FinishMatchRequest,
    FinishMatchResponse,
    FinishReason,
    MatchResultsResponse,
    PlayerSnapshot,
    RoomFeed,
    RoomSnapshot,
    ScoreSnapshot,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0
DEFAULT_RETRIES = 2
RETRY_DELAY = 0.25


class RoomApiClient:
    """HTTP client for the room endpoints.

    Error responses are raised as ``MathDuelDomainError`` with the server's
    code. Network failures surface as ``TRANSIENT_STORE_ERROR``. Only join and
    finish are retried since repeating them is harmless.
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        timeout: float = DEFAULT_TIMEOUT,
        retries: int = DEFAULT_RETRIES,
        retry_delay: float = RETRY_DELAY,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.retries = retries
        self.retry_delay = retry_delay
        self._client = httpx.AsyncClient(
            base_url=f"{base_url.rstrip('/')}{settings.API_V1_STR}",
            headers={"Authorization": f"Bearer {token}"},
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "RoomApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        json: Any = None,
        retry: bool = False,
    ) -> Any:
        attempts = 1 + (self.retries if retry else 0)
        for attempt in range(1, attempts + 1):
            try:
                response = await self._client.request(method, path, json=json)
            except httpx.TransportError as e:
                if attempt < attempts:
                    logger.debug(
                        "%s %s failed (%s), retrying %d/%d",
                        method,
                        path,
                        e,
                        attempt,
                        attempts - 1,
                    )
                    await asyncio.sleep(self.retry_delay)
                    continue
                raise MathDuelDomainError(
                    code=DomainErrorCode.TRANSIENT_STORE_ERROR,
                    message="Could not reach the room server",
                    details={"path": path},
                ) from e

            if response.is_success:
                return response.json()

            error = self._to_domain_error(response)
            if retry and error.is_transient and attempt < attempts:
                await asyncio.sleep(self.retry_delay)
                continue
            raise error

        raise AssertionError("unreachable")

    @staticmethod
    def _to_domain_error(response: httpx.Response) -> MathDuelDomainError:
        try:
            body = response.json()
        except ValueError:
            body = {}

        raw_code = body.get("code") if isinstance(body, dict) else None
        try:
            code = DomainErrorCode(raw_code)
        except ValueError:
            code = (
                DomainErrorCode.NOT_AUTHORIZED
                if response.status_code in (401, 403)
                else DomainErrorCode.TRANSIENT_STORE_ERROR
            )

        detail = body.get("detail") if isinstance(body, dict) else None
        details = body.get("error_details") if isinstance(body, dict) else None
        logger.debug("Room API error %s: %s", response.status_code, detail)
        return MathDuelDomainError(
            code=code,
            message=detail if isinstance(detail, str) else None,
            details={"status_code": response.status_code, **(details or {})},
        )

    async def create_room(self) -> CreateRoomResponse:
        data = await self._request("POST", "/room")
        return CreateRoomResponse.model_validate(data)

    async def join_room(self, code: str) -> PlayerSnapshot:
        data = await self._request("POST", f"/room/{code}/join", retry=True)
        return PlayerSnapshot.model_validate(data)

    async def leave_room(self, code: str) -> None:
        await self._request("POST", f"/room/{code}/leave")

    async def set_duration(self, code: str, seconds: int) -> RoomSnapshot:
        data = await self._request(
            "PUT", f"/room/{code}/duration", json={"duration_sec": seconds}
        )
        return RoomSnapshot.model_validate(data)

    async def start_match(self, code: str) -> RoomSnapshot:
        data = await self._request("POST", f"/room/{code}/start")
        return RoomSnapshot.model_validate(data)

    async def report_answer(self, code: str, is_correct: bool) -> PlayerSnapshot:
        data = await self._request(
            "POST", f"/room/{code}/answer", json={"is_correct": is_correct}
        )
        return PlayerSnapshot.model_validate(data)

    async def finish_match(
        self,
        code: str,
        snapshot: ScoreSnapshot | None = None,
        reason: FinishReason = FinishReason.TIMEOUT,
    ) -> FinishMatchResponse:
        request = FinishMatchRequest(reason=reason, snapshot=snapshot)
        data = await self._request(
            "POST",
            f"/room/{code}/finish",
            json=request.model_dump(mode="json"),
            retry=True,
        )
        return FinishMatchResponse.model_validate(data)

    async def abandon_match(self, code: str) -> RoomSnapshot | None:
        data = await self._request("POST", f"/room/{code}/abandon")
        payload = data.get("data")
        return RoomSnapshot.model_validate(payload) if payload else None

    async def get_feed(self, code: str) -> RoomFeed:
        data = await self._request("GET", f"/room/{code}")
        return RoomFeed.model_validate(data)

    async def get_results(self, code: str) -> MatchResultsResponse:
        data = await self._request("GET", f"/room/{code}/results")
        return MatchResultsResponse.model_validate(data)
