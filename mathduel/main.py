import logging

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from mathduel.api.v1.endpoints import api_router
from mathduel.core.config import settings
from mathduel.core.error import DomainErrorCode, MathDuelDomainError
from mathduel.core.logging import configure_logging
from mathduel.schemas.common import BaseResponse, ErrorResponse

logger = logging.getLogger(__name__)

app = FastAPI(
    title="MathDuel",
    description="Room sync and match lifecycle backend for multiplayer math duels",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix=settings.API_V1_STR)


@app.on_event("startup")
async def on_startup() -> None:
    configure_logging()
    logger.info("%s started", settings.PROJECT_NAME)


@app.get("/health", status_code=status.HTTP_200_OK)
async def health_check() -> BaseResponse:
    return BaseResponse(message="healthy")


DOMAIN_ERROR_STATUS = {
    DomainErrorCode.ROOM_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    DomainErrorCode.PLAYER_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    DomainErrorCode.ROOM_LOCKED: status.HTTP_409_CONFLICT,
    DomainErrorCode.ROOM_FULL: status.HTTP_409_CONFLICT,
    DomainErrorCode.MATCH_NOT_IN_PROGRESS: status.HTTP_409_CONFLICT,
    DomainErrorCode.INSUFFICIENT_PLAYERS: status.HTTP_400_BAD_REQUEST,
    DomainErrorCode.NOT_AUTHORIZED: status.HTTP_403_FORBIDDEN,
    DomainErrorCode.INVALID_ROOM_CODE: status.HTTP_422_UNPROCESSABLE_ENTITY,
    DomainErrorCode.INVALID_DURATION: status.HTTP_422_UNPROCESSABLE_ENTITY,
    DomainErrorCode.INVALID_DISPLAY_NAME: status.HTTP_422_UNPROCESSABLE_ENTITY,
    DomainErrorCode.ROOM_CREATION_EXHAUSTED: status.HTTP_503_SERVICE_UNAVAILABLE,
    DomainErrorCode.TRANSIENT_STORE_ERROR: status.HTTP_503_SERVICE_UNAVAILABLE,
}


@app.exception_handler(MathDuelDomainError)
async def math_duel_domain_error_handler(
    _request: Request,
    exc: MathDuelDomainError,
) -> JSONResponse:
    status_code = DOMAIN_ERROR_STATUS.get(
        exc.code,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )

    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(
            ErrorResponse(
                detail=exc.message,
                code=exc.code,
                error_details=exc.details,
            )
        ),
    )
