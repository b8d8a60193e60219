from fastapi import APIRouter, Depends

from app.domains.auth.dependencies import get_current_user

from .schemas import MissionResponseRequest, MissionSkipRequest, MissionVoteRequest
from .service import mission_service

router = APIRouter()


@router.get("/{connection_id}/missions")
async def get_missions(connection_id: str, user=Depends(get_current_user)):
    """Current round, opening a new one when none is running"""
    return await mission_service.get_current(connection_id, user.id)


@router.post("/{connection_id}/missions/vote")
async def vote(connection_id: str, request: MissionVoteRequest, user=Depends(get_current_user)):
    return await mission_service.vote(connection_id, user.id, request.round_id, request.mission_template_id)


@router.post("/{connection_id}/missions/respond")
async def respond(connection_id: str, request: MissionResponseRequest, user=Depends(get_current_user)):
    return await mission_service.respond(connection_id, user.id, request.round_id, request.response)


@router.post("/{connection_id}/missions/skip")
async def skip(connection_id: str, request: MissionSkipRequest, user=Depends(get_current_user)):
    return await mission_service.skip(connection_id, user.id, request.round_id)
