from datetime import datetime
from typing import Optional

from pydantic import Field

from app.shared.schemas.base import CamelModel

from .gate import MessageType


class SendMessageRequest(CamelModel):
    content: str = Field(max_length=8000)
    type: MessageType = MessageType.TEXT


class MessageOut(CamelModel):
    id: str
    connection_id: str
    sender_id: str
    type: str
    content: str
    created_at: datetime
    read_at: Optional[datetime] = None
    is_mine: bool = False


class UnreadCount(CamelModel):
    count: int
