from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from app.domains.auth.dependencies import get_current_user

from .schemas import MessageOut, SendMessageRequest, UnreadCount
from .service import chat_service

router = APIRouter()


@router.get("/unread", response_model=UnreadCount, response_model_by_alias=True)
async def unread(user=Depends(get_current_user)):
    return UnreadCount(count=await chat_service.unread_count(user.id))


@router.get("/{connection_id}", response_model=List[MessageOut], response_model_by_alias=True)
async def get_messages(
    connection_id: str,
    limit: int = Query(50, ge=1, le=200),
    before: Optional[datetime] = Query(None),
    user=Depends(get_current_user),
):
    return await chat_service.get_messages(connection_id, user.id, limit, before)


@router.post("/{connection_id}", response_model=MessageOut, response_model_by_alias=True, status_code=201)
async def send_message(connection_id: str, request: SendMessageRequest, user=Depends(get_current_user)):
    return await chat_service.send_message(connection_id, user.id, request.content, request.type)
