# app/domains/chat/service.py
from datetime import datetime
from typing import List, Optional

from app.core.database import get_db
from app.core.event_bus import event_bus
from app.core.redis import messages_limiter
from app.domains.connections import repository as connections_repository
from app.domains.connections.service import check_participant
from app.shared.utils.logger import get_logger

from . import repository
from .gate import chat_level_for, check_message
from .schemas import MessageOut

logger = get_logger(__name__)


def to_view(message, viewer_id: str) -> MessageOut:
    view = MessageOut.model_validate(message)
    view.is_mine = message.sender_id == viewer_id
    return view


class ChatService:
    async def send_message(self, connection_id: str, user_id: str, content: str, message_type="TEXT") -> MessageOut:
        """Gate, store and announce a message. The gate runs server-side on
        the locked connection row, whatever the client believes."""
        await messages_limiter.hit(user_id)

        async with get_db() as db:
            connection = check_participant(
                await connections_repository.get_connection(db, connection_id, for_update=True), user_id,
            )
            message_type = check_message(connection, message_type, content)
            message = await repository.create_message(
                db, connection_id, user_id, message_type.value, content.strip(),
            )
            await connections_repository.touch(db, connection_id, message.created_at)

        logger.info(f"Message {message.id} in {connection_id} from {user_id} ({chat_level_for(connection.progress).value})")
        await event_bus.publish("chat:message", {
            "message": message,
            "other_user_id": connection.other_user_id(user_id),
        })
        return to_view(message, user_id)

    async def get_messages(
        self, connection_id: str, user_id: str, limit: int = 50, before: Optional[datetime] = None
    ) -> List[MessageOut]:
        async with get_db() as db:
            check_participant(await connections_repository.get_connection(db, connection_id), user_id)
            messages = await repository.list_messages(db, connection_id, limit, before)
            await repository.mark_read(db, connection_id, user_id, datetime.utcnow())
        return [to_view(m, user_id) for m in messages]

    async def unread_count(self, user_id: str) -> int:
        async with get_db() as db:
            return await repository.unread_count(db, user_id)


chat_service = ChatService()
