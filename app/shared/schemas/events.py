from datetime import datetime
from typing import Literal, Optional

from app.shared.schemas.base import CamelModel


class SocketEvent(CamelModel):
    event: str

    def frame(self) -> dict:
        """Wire frame sent to websocket clients: {"event": ..., "data": {...}}"""
        return {
            "event": self.event,
            "data": self.model_dump(mode="json", by_alias=True, exclude={"event"}),
        }


class ConnectionRequest(SocketEvent):
    event: Literal["connection-request"] = "connection-request"
    connection_id: str
    from_user_id: str


class ConnectionAccepted(SocketEvent):
    event: Literal["connection-accepted"] = "connection-accepted"
    connection_id: str
    by_user_id: str


class NucleusUpdated(SocketEvent):
    event: Literal["nucleus:updated"] = "nucleus:updated"
    connection_id: str
    category: str
    key: str
    user_id: str
    both_completed: bool = False


class NucleusDissolved(SocketEvent):
    event: Literal["nucleus:dissolved"] = "nucleus:dissolved"
    connection_id: str
    by_user_id: str
    reason: str


class ProgressUpdate(SocketEvent):
    event: Literal["progress-update"] = "progress-update"
    connection_id: str
    progress: int
    chat_level: str
    status: str


class ChatUnlocked(SocketEvent):
    event: Literal["chat-unlocked"] = "chat-unlocked"
    connection_id: str
    chat_level: str


class PresenceJoined(SocketEvent):
    event: Literal["presence:joined"] = "presence:joined"
    connection_id: str
    user_id: str


class PresenceLeft(SocketEvent):
    event: Literal["presence:left"] = "presence:left"
    connection_id: str
    user_id: str


class UserTyping(SocketEvent):
    event: Literal["user-typing"] = "user-typing"
    connection_id: str
    user_id: str
    is_typing: bool


class NewMessage(SocketEvent):
    event: Literal["new-message"] = "new-message"
    connection_id: str
    id: str
    sender_id: str
    type: str
    content: str
    created_at: datetime


class MissionVote(SocketEvent):
    event: Literal["mission:vote"] = "mission:vote"
    connection_id: str
    round_id: str
    user_id: str


class MissionSelected(SocketEvent):
    event: Literal["mission:selected"] = "mission:selected"
    connection_id: str
    round_id: str
    mission_id: str


class MissionCompleted(SocketEvent):
    event: Literal["mission:completed"] = "mission:completed"
    connection_id: str
    round_id: str


class PlaceVoted(SocketEvent):
    event: Literal["place:voted"] = "place:voted"
    connection_id: str
    suggestion_id: str
    user_id: str
    vote: str
    agreed: bool = False
    agreed_place_id: Optional[str] = None
