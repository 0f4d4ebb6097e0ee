from fastapi import APIRouter

from mathduel.api.v1.endpoints import room, ws_room

api_router = APIRouter()

api_router.include_router(ws_room.router, prefix="/ws/room", tags=["ws"])

api_router.include_router(room.router, prefix="/room", tags=["rooms"])
