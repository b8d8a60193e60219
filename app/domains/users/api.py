from typing import List

from fastapi import APIRouter, Depends, Query

from app.domains.auth.dependencies import get_current_user
from app.domains.auth.schemas import UserOut

from . import service
from .schemas import ProfileUpdate, PublicProfile

router = APIRouter()


@router.get("/discover", response_model=List[PublicProfile], response_model_by_alias=True)
async def discover(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user=Depends(get_current_user),
):
    return await service.discover(user, limit, offset)


@router.put("/profile", response_model=UserOut, response_model_by_alias=True)
async def update_profile(update: ProfileUpdate, user=Depends(get_current_user)):
    return await service.update_profile(user, update)


@router.get("/{user_id}", response_model=PublicProfile, response_model_by_alias=True)
async def get_profile(user_id: str, user=Depends(get_current_user)):
    return await service.get_profile(user, user_id)
