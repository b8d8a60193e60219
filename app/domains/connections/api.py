# app/domains/connections/api.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from app.domains.auth.dependencies import get_current_user

from .schemas import ConnectionCreate, ConnectionOut, DeclineRequest, DissolveRequest, PendingCounts, Transparency
from .service import connection_service

router = APIRouter()


@router.post("", response_model=ConnectionOut, response_model_by_alias=True, status_code=201)
async def create_connection(request: ConnectionCreate, user=Depends(get_current_user)):
    """Send a connection request to another user"""
    return await connection_service.initiate(user.id, request.target_user_id)


@router.get("", response_model=List[ConnectionOut], response_model_by_alias=True)
async def list_connections(
    status: Optional[str] = Query(None),
    sort_by: Optional[str] = Query(None, alias="sortBy", pattern="^(compatibility|newest|oldest)$"),
    filter_name: Optional[str] = Query(None, alias="filter"),
    user=Depends(get_current_user),
):
    return await connection_service.list_connections(user.id, status, sort_by, filter_name)


@router.get("/pending-count", response_model=PendingCounts, response_model_by_alias=True)
async def pending_count(user=Depends(get_current_user)):
    return await connection_service.pending_counts(user.id)


@router.get("/transparency", response_model=Transparency, response_model_by_alias=True)
async def transparency(user=Depends(get_current_user)):
    return await connection_service.transparency(user.id)


@router.get("/{connection_id}", response_model=ConnectionOut, response_model_by_alias=True)
async def get_connection(connection_id: str, user=Depends(get_current_user)):
    return await connection_service.get_connection(connection_id, user.id)


@router.post("/{connection_id}/accept", response_model=ConnectionOut, response_model_by_alias=True)
async def accept(connection_id: str, user=Depends(get_current_user)):
    return await connection_service.accept(connection_id, user.id)


@router.post("/{connection_id}/decline", response_model=ConnectionOut, response_model_by_alias=True)
async def decline(connection_id: str, request: Optional[DeclineRequest] = None, user=Depends(get_current_user)):
    reason = request.decline_reason if request else None
    return await connection_service.decline(connection_id, user.id, reason)


@router.post("/{connection_id}/later", response_model=ConnectionOut, response_model_by_alias=True)
async def later(connection_id: str, user=Depends(get_current_user)):
    return await connection_service.postpone(connection_id, user.id)


@router.post("/{connection_id}/dissolve", response_model=ConnectionOut, response_model_by_alias=True)
async def dissolve(connection_id: str, request: DissolveRequest, user=Depends(get_current_user)):
    """End an active nucleus. The reason is shown to the other participant."""
    return await connection_service.dissolve(connection_id, user.id, request.reason)
