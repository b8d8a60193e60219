# app/domains/presence/events.py
from app.core import event_bus
from app.core.errors import DomainError
from app.core.websocket_manager import websocket_manager
from app.domains.connections.service import connection_service
from app.shared.schemas.events import UserTyping
from app.shared.utils.logger import get_logger

from .notifier import presence_notifier

logger = get_logger(__name__)


def _connection_id(data: dict):
    payload = data.get("data")
    if isinstance(payload, dict):
        return payload.get("connectionId") or payload.get("connection_id")
    if isinstance(payload, str):
        return payload
    return None


async def _on_join(data: dict):
    connection_id = _connection_id(data)
    user_id = data.get("user_id")
    websocket = data.get("websocket")
    if not connection_id or not user_id or websocket is None:
        return
    try:
        await connection_service.get_for_participant(connection_id, user_id)
    except DomainError as e:
        await websocket_manager.send_error(websocket, e.message, code=e.code, connectionId=connection_id)
        return
    await presence_notifier.join(connection_id, user_id, websocket)


async def _on_leave(data: dict):
    connection_id = _connection_id(data)
    user_id = data.get("user_id")
    websocket = data.get("websocket")
    if not connection_id or not user_id or websocket is None:
        return
    await presence_notifier.leave(connection_id, user_id, websocket)


async def _on_typing(data: dict):
    connection_id = _connection_id(data)
    user_id = data.get("user_id")
    if not connection_id or not user_id:
        return
    # only viewers of the nucleus may type into it
    if not presence_notifier.is_viewing(connection_id, user_id):
        return
    payload = data.get("data") if isinstance(data.get("data"), dict) else {}
    await presence_notifier.emit_to_connection(
        connection_id,
        UserTyping(connection_id=connection_id, user_id=user_id, is_typing=bool(payload.get("isTyping", True))),
        exclude={user_id},
    )


async def _on_disconnected(data: dict):
    user_id = data.get("user_id")
    if not user_id:
        return
    await presence_notifier.drop_user(user_id, data.get("rooms") or [])


def register_event_handlers():
    event_bus.event_bus.subscribe("websocket:join-connection", _on_join)
    event_bus.event_bus.subscribe("websocket:leave-connection", _on_leave)
    event_bus.event_bus.subscribe("websocket:typing", _on_typing)
    event_bus.event_bus.subscribe("websocket:disconnected", _on_disconnected)
