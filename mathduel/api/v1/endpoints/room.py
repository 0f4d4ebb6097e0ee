from fastapi import APIRouter, Depends, status

from mathduel.dependencies.auth import get_current_identity
from mathduel.dependencies.repositories import get_room_code
from mathduel.dependencies.services import get_room_service
from mathduel.schemas.common import BaseResponse
from mathduel.schemas.identity import Identity
from mathduel.schemas.room import (
    CreateRoomResponse,
    FinishMatchRequest,
    FinishMatchResponse,
    MatchResultsResponse,
    PlayerSnapshot,
    ReportAnswerRequest,
    RoomFeed,
    RoomSnapshot,
    SetDurationRequest,
)
from mathduel.services.room_service import RoomService

router = APIRouter()


@router.post(
    "",
    response_model=CreateRoomResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_room(
    identity: Identity = Depends(get_current_identity),
    room_service: RoomService = Depends(get_room_service),
):
    room = await room_service.create_room(identity)

    return CreateRoomResponse(
        code=room.code,
        room=RoomSnapshot.model_validate(room),
    )


@router.post(
    "/{code}/join",
    response_model=PlayerSnapshot,
    status_code=status.HTTP_200_OK,
)
async def join_room(
    code: str = Depends(get_room_code),
    identity: Identity = Depends(get_current_identity),
    room_service: RoomService = Depends(get_room_service),
):
    player = await room_service.join_room(code, identity)
    return PlayerSnapshot.model_validate(player)


@router.post(
    "/{code}/leave",
    response_model=BaseResponse,
    status_code=status.HTTP_200_OK,
)
async def leave_room(
    code: str = Depends(get_room_code),
    identity: Identity = Depends(get_current_identity),
    room_service: RoomService = Depends(get_room_service),
):
    await room_service.leave_room(code, identity)
    return BaseResponse(message="Left room successfully")


@router.put(
    "/{code}/duration",
    response_model=RoomSnapshot,
    status_code=status.HTTP_200_OK,
)
async def set_duration(
    request: SetDurationRequest,
    code: str = Depends(get_room_code),
    identity: Identity = Depends(get_current_identity),
    room_service: RoomService = Depends(get_room_service),
):
    room = await room_service.set_duration(code, identity, request.duration_sec)
    return RoomSnapshot.model_validate(room)


@router.post(
    "/{code}/start",
    response_model=RoomSnapshot,
    status_code=status.HTTP_200_OK,
)
async def start_match(
    code: str = Depends(get_room_code),
    identity: Identity = Depends(get_current_identity),
    room_service: RoomService = Depends(get_room_service),
):
    room = await room_service.start_match(code, identity)
    return RoomSnapshot.model_validate(room)


@router.post(
    "/{code}/answer",
    response_model=PlayerSnapshot,
    status_code=status.HTTP_200_OK,
)
async def report_answer(
    request: ReportAnswerRequest,
    code: str = Depends(get_room_code),
    identity: Identity = Depends(get_current_identity),
    room_service: RoomService = Depends(get_room_service),
):
    player = await room_service.report_answer(code, identity, request.is_correct)
    return PlayerSnapshot.model_validate(player)


@router.post(
    "/{code}/finish",
    response_model=FinishMatchResponse,
    status_code=status.HTTP_200_OK,
)
async def finish_match(
    request: FinishMatchRequest,
    code: str = Depends(get_room_code),
    identity: Identity = Depends(get_current_identity),
    room_service: RoomService = Depends(get_room_service),
):
    outcome = await room_service.finish_match(
        code, identity, snapshot=request.snapshot, reason=request.reason
    )
    return FinishMatchResponse(
        room=RoomSnapshot.model_validate(outcome.room) if outcome.room else None,
        player=PlayerSnapshot.model_validate(outcome.player)
        if outcome.player
        else None,
        counted=outcome.counted,
        ended_match=outcome.ended_match,
    )


@router.post(
    "/{code}/abandon",
    response_model=BaseResponse,
    status_code=status.HTTP_200_OK,
)
async def abandon_match(
    code: str = Depends(get_room_code),
    identity: Identity = Depends(get_current_identity),
    room_service: RoomService = Depends(get_room_service),
):
    room = await room_service.abandon_match(code, identity)
    if room is None:
        return BaseResponse(message="Room closed")
    return BaseResponse(
        message="Match ended",
        data=RoomSnapshot.model_validate(room).model_dump(mode="json"),
    )


@router.get(
    "/{code}",
    response_model=RoomFeed,
    status_code=status.HTTP_200_OK,
)
async def read_room(
    code: str = Depends(get_room_code),
    identity: Identity = Depends(get_current_identity),  # noqa: ARG001
    room_service: RoomService = Depends(get_room_service),
):
    return await room_service.get_feed(code)


@router.get(
    "/{code}/players",
    response_model=list[PlayerSnapshot],
    status_code=status.HTTP_200_OK,
)
async def read_players(
    code: str = Depends(get_room_code),
    identity: Identity = Depends(get_current_identity),  # noqa: ARG001
    room_service: RoomService = Depends(get_room_service),
):
    players = await room_service.get_roster(code)
    return [PlayerSnapshot.model_validate(p) for p in players]


@router.get(
    "/{code}/results",
    response_model=MatchResultsResponse,
    status_code=status.HTTP_200_OK,
)
async def read_results(
    code: str = Depends(get_room_code),
    identity: Identity = Depends(get_current_identity),
    room_service: RoomService = Depends(get_room_service),
):
    return await room_service.get_results(code, my_uid=identity.uid)
