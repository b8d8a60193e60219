# app/domains/presence/notifier.py
"""
Presence and delivery of server events.

Room membership lives in the websocket manager (one room per connection id);
the viewers of a nucleus are the users owning a socket in its room. Nothing
here is persisted: a restart forgets who is looking at what.
"""
from typing import Iterable, Optional, Set

from fastapi import WebSocket

from app.core.websocket_manager import WebSocketManager, websocket_manager
from app.shared.schemas.events import PresenceJoined, PresenceLeft, SocketEvent
from app.shared.utils.logger import get_logger

logger = get_logger(__name__)


def room_for(connection_id: str) -> str:
    return f"connection:{connection_id}"


class PresenceNotifier:
    def __init__(self, manager: WebSocketManager):
        self.manager = manager

    def viewers(self, connection_id: str) -> Set[str]:
        users = set()
        for websocket in self.manager.rooms.get(room_for(connection_id), []):
            info = self.manager.client_info.get(websocket)
            if info:
                users.add(info.user_id)
        return users

    def is_viewing(self, connection_id: str, user_id: str) -> bool:
        return user_id in self.viewers(connection_id)

    async def join(self, connection_id: str, user_id: str, websocket: WebSocket):
        """Caller has verified that user_id participates in the connection"""
        already = self.is_viewing(connection_id, user_id)
        self.manager.join_room(websocket, room_for(connection_id))
        if not already:
            await self.emit_to_connection(
                connection_id, PresenceJoined(connection_id=connection_id, user_id=user_id),
                exclude={user_id},
            )

    async def leave(self, connection_id: str, user_id: str, websocket: WebSocket):
        self.manager.leave_room(websocket, room_for(connection_id))
        if not self.is_viewing(connection_id, user_id):
            await self.emit_to_connection(
                connection_id, PresenceLeft(connection_id=connection_id, user_id=user_id),
                exclude={user_id},
            )

    async def drop_user(self, user_id: str, rooms: Iterable[str]):
        """Announce departure from every room a closed socket was in"""
        prefix = room_for("")
        for room in rooms:
            if not room.startswith(prefix):
                continue
            connection_id = room[len(prefix):]
            if not self.is_viewing(connection_id, user_id):
                await self.emit_to_connection(
                    connection_id, PresenceLeft(connection_id=connection_id, user_id=user_id),
                    exclude={user_id},
                )

    async def emit_to_connection(self, connection_id: str, event: SocketEvent, exclude: Optional[Set[str]] = None):
        await self.manager.broadcast(room_for(connection_id), event.frame(), exclude=exclude)

    async def emit_to_user(self, user_id: str, event: SocketEvent):
        await self.manager.send_to_user(user_id, event.frame())

    async def emit_to_users(self, user_ids: Iterable[str], event: SocketEvent):
        for user_id in set(user_ids):
            await self.emit_to_user(user_id, event)


presence_notifier = PresenceNotifier(websocket_manager)
