import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.domains.connections.models import Connection

from .models import Message


async def create_message(db: AsyncSession, connection_id: str, sender_id: str, message_type: str, content: str) -> Message:
    message = Message(
        id=str(uuid.uuid4()),
        connection_id=connection_id,
        sender_id=sender_id,
        type=message_type,
        content=content,
        created_at=datetime.utcnow(),
    )
    db.add(message)
    await db.flush()
    return message


async def list_messages(
    db: AsyncSession, connection_id: str, limit: int = 50, before: Optional[datetime] = None
) -> List[Message]:
    """Newest page first from the database, returned oldest to newest"""
    query = select(Message).filter(Message.connection_id == connection_id)
    if before is not None:
        query = query.filter(Message.created_at < before)
    result = await db.execute(query.order_by(Message.created_at.desc()).limit(limit))
    return list(reversed(result.scalars().all()))


async def mark_read(db: AsyncSession, connection_id: str, reader_id: str, now: datetime) -> int:
    result = await db.execute(
        update(Message)
        .where(
            Message.connection_id == connection_id,
            Message.sender_id != reader_id,
            Message.read_at.is_(None),
        )
        .values(read_at=now)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount


async def unread_count(db: AsyncSession, user_id: str) -> int:
    result = await db.execute(
        select(func.count(Message.id))
        .join(Connection, Connection.id == Message.connection_id)
        .filter(
            or_(Connection.initiator_id == user_id, Connection.receiver_id == user_id),
            and_(Message.sender_id != user_id, Message.read_at.is_(None)),
        )
    )
    return result.scalar_one()
