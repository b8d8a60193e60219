# app/domains/connections/repository.py
"""
Connection persistence. Functions take the caller's session so a service can
compose several of them into one transaction. Every status change goes
through transition(), a conditional UPDATE that only matches rows whose
current status allows the action.
"""
import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import and_, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .entities import TRANSITIONS, ConnectionAction, ConnectionStatus, pair_key
from .models import Connection


def _allowed_clause(action: ConnectionAction):
    allowed, cooled_ok, _ = TRANSITIONS[action]
    clauses = []
    if allowed:
        clauses.append(Connection.status.in_([s.value for s in allowed]))
    if cooled_ok is not None:
        clauses.append(and_(
            Connection.status == ConnectionStatus.COOLED.value,
            Connection.cooled_from == cooled_ok.value,
        ))
    return or_(*clauses)


async def create_connection(
    db: AsyncSession, initiator_id: str, receiver_id: str, compatibility_score: int
) -> Connection:
    key = pair_key(initiator_id, receiver_id)
    now = datetime.utcnow()
    connection = Connection(
        id=str(uuid.uuid4()),
        initiator_id=initiator_id,
        receiver_id=receiver_id,
        pair_key=key,
        open_pair_key=key,
        status=ConnectionStatus.PENDING.value,
        progress=0,
        compatibility_score=compatibility_score,
        seen_by_receiver=False,
        last_activity=now,
    )
    db.add(connection)
    await db.flush()
    return connection


async def get_connection(db: AsyncSession, connection_id: str, for_update: bool = False) -> Optional[Connection]:
    query = select(Connection).filter(Connection.id == connection_id)
    if for_update:
        query = query.with_for_update()
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def get_open_connection_for_pair(db: AsyncSession, user_a: str, user_b: str) -> Optional[Connection]:
    result = await db.execute(
        select(Connection).filter(Connection.open_pair_key == pair_key(user_a, user_b))
    )
    return result.scalar_one_or_none()


async def transition(db: AsyncSession, connection_id: str, action: ConnectionAction, **values) -> bool:
    """Check-and-set status change; False when the current status forbids it"""
    target = TRANSITIONS[action][2]
    values.setdefault("status", target.value)
    if target != ConnectionStatus.COOLED:
        values.setdefault("cooled_from", None)
    if target == ConnectionStatus.ENDED:
        values["open_pair_key"] = None
        values.setdefault("ended_at", datetime.utcnow())

    result = await db.execute(
        update(Connection)
        .where(Connection.id == connection_id, _allowed_clause(action))
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def touch(db: AsyncSession, connection_id: str, now: Optional[datetime] = None) -> bool:
    """Record activity; a connection cooled from ACTIVE becomes ACTIVE again.
    Returns True when it was reactivated."""
    now = now or datetime.utcnow()
    await db.execute(
        update(Connection)
        .where(Connection.id == connection_id)
        .values(last_activity=now)
        .execution_options(synchronize_session=False)
    )
    return await transition(db, connection_id, ConnectionAction.REACTIVATE)


async def set_progress(db: AsyncSession, connection_id: str, progress: int, chat_level: str):
    # never lowers progress, even against a concurrent writer
    await db.execute(
        update(Connection)
        .where(Connection.id == connection_id, Connection.progress <= progress)
        .values(progress=progress, chat_level=chat_level)
        .execution_options(synchronize_session=False)
    )


async def mark_seen(db: AsyncSession, connection_id: str):
    await db.execute(
        update(Connection)
        .where(Connection.id == connection_id, Connection.seen_by_receiver.is_(False))
        .values(seen_by_receiver=True)
        .execution_options(synchronize_session=False)
    )


async def cool_idle(db: AsyncSession, cutoff: datetime) -> int:
    cooled = 0
    for status in (ConnectionStatus.ACTIVE, ConnectionStatus.LATER):
        result = await db.execute(
            update(Connection)
            .where(Connection.status == status.value, Connection.last_activity < cutoff)
            .values(status=ConnectionStatus.COOLED.value, cooled_from=status.value)
            .execution_options(synchronize_session=False)
        )
        cooled += result.rowcount
    return cooled


async def expire_cooled(db: AsyncSession, cutoff: datetime, now: datetime) -> int:
    result = await db.execute(
        update(Connection)
        .where(Connection.status == ConnectionStatus.COOLED.value, Connection.last_activity < cutoff)
        .values(status=ConnectionStatus.ENDED.value, open_pair_key=None, ended_at=now)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount


async def list_for_user(db: AsyncSession, user_id: str) -> List[Connection]:
    result = await db.execute(
        select(Connection).filter(
            or_(Connection.initiator_id == user_id, Connection.receiver_id == user_id)
        )
    )
    return list(result.scalars().all())


async def open_partner_ids(db: AsyncSession, user_id: str) -> List[str]:
    """Users the given user has a non-ENDED connection with"""
    result = await db.execute(
        select(Connection.initiator_id, Connection.receiver_id).filter(
            or_(Connection.initiator_id == user_id, Connection.receiver_id == user_id),
            Connection.open_pair_key.isnot(None),
        )
    )
    return [b if a == user_id else a for a, b in result.all()]
