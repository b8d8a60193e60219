from fastapi import APIRouter, Depends

from .dependencies import get_current_user
from .schemas import LoginRequest, RegisterRequest, TokenResponse, UserOut
from . import service

router = APIRouter()


@router.post("/register", response_model=TokenResponse, response_model_by_alias=True, status_code=201)
async def register(request: RegisterRequest):
    return await service.register(request)


@router.post("/login", response_model=TokenResponse, response_model_by_alias=True)
async def login(request: LoginRequest):
    return await service.login(request)


@router.get("/me", response_model=UserOut, response_model_by_alias=True)
async def me(user=Depends(get_current_user)):
    return UserOut.model_validate(user)
