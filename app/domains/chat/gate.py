# app/domains/chat/gate.py
"""
Chat gate: the chat level is a pure function of nucleus progress.

    progress < 70        NONE       no messages
    70 <= progress < 100 LIMITED    short text only
    progress >= 100      UNLIMITED  text, images and voice notes
"""
from enum import Enum

from app.core.config import settings
from app.core.errors import ChatLocked, ValidationError
from app.domains.connections.entities import ChatLevel, ConnectionStatus


class MessageType(str, Enum):
    TEXT = "TEXT"
    IMAGE = "IMAGE"
    VOICE = "VOICE"


CHAT_STATUSES = frozenset({
    ConnectionStatus.ACTIVE.value,
    ConnectionStatus.COMPLETED.value,
    ConnectionStatus.COOLED.value,
})

ALLOWED_TYPES = {
    ChatLevel.NONE: frozenset(),
    ChatLevel.LIMITED: frozenset({MessageType.TEXT}),
    ChatLevel.UNLIMITED: frozenset({MessageType.TEXT, MessageType.IMAGE, MessageType.VOICE}),
}


def chat_level_for(progress: int) -> ChatLevel:
    if progress < settings.CHAT_LIMITED_THRESHOLD:
        return ChatLevel.NONE
    if progress < settings.CHAT_UNLIMITED_THRESHOLD:
        return ChatLevel.LIMITED
    return ChatLevel.UNLIMITED


def max_length_for(level: ChatLevel) -> int:
    if level == ChatLevel.LIMITED:
        return settings.CHAT_LIMITED_MAX_LENGTH
    if level == ChatLevel.UNLIMITED:
        return settings.CHAT_MAX_LENGTH
    return 0


def can_send_message(connection) -> bool:
    return (
        chat_level_for(connection.progress) != ChatLevel.NONE
        and connection.status in CHAT_STATUSES
    )


def check_message(connection, message_type, content: str) -> MessageType:
    """Raise unless the connection's chat level admits this message"""
    level = chat_level_for(connection.progress)
    if level == ChatLevel.NONE or connection.status not in CHAT_STATUSES:
        raise ChatLocked(
            f"Chat unlocks at {settings.CHAT_LIMITED_THRESHOLD}% progress"
            if connection.status in CHAT_STATUSES else "Chat is closed for this connection"
        )

    try:
        message_type = MessageType(message_type)
    except ValueError:
        raise ValidationError(f"Unknown message type: {message_type}")
    if message_type not in ALLOWED_TYPES[level]:
        raise ChatLocked(f"{message_type.value} messages unlock at {settings.CHAT_UNLIMITED_THRESHOLD}% progress")

    content = (content or "").strip()
    if not content:
        raise ValidationError("Message cannot be empty")
    limit = max_length_for(level)
    if len(content) > limit:
        raise ValidationError(f"Message is longer than {limit} characters")
    return message_type
