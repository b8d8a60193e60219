from fastapi import APIRouter, Depends

from app.domains.auth.dependencies import get_current_user
from app.domains.auth.schemas import UserOut

from .schemas import LocationUpdate, PlaceVoteRequest, SuggestPlaceRequest
from .service import places_service

router = APIRouter()


@router.put("/location", response_model=UserOut, response_model_by_alias=True)
async def update_location(update: LocationUpdate, user=Depends(get_current_user)):
    return await places_service.update_location(user.id, update)


@router.get("/{connection_id}")
async def get_places(connection_id: str, user=Depends(get_current_user)):
    return await places_service.get_places(connection_id, user.id)


@router.post("/{connection_id}/suggest", status_code=201)
async def suggest_place(connection_id: str, request: SuggestPlaceRequest, user=Depends(get_current_user)):
    return await places_service.suggest(connection_id, user.id, request)


@router.post("/suggestions/{suggestion_id}/vote")
async def vote(suggestion_id: str, request: PlaceVoteRequest, user=Depends(get_current_user)):
    """LOVE, LIKE, NEUTRAL or DISLIKE; votes can be changed"""
    return await places_service.vote(suggestion_id, user.id, request.vote)
