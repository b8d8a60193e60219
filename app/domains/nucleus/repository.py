# app/domains/nucleus/repository.py
import uuid
from typing import Dict, List, Optional

from sqlalchemy import distinct, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import ActivityRecord, MiniGame


async def get_record(
    db: AsyncSession, connection_id: str, category: str, key: str, user_id: str
) -> Optional[ActivityRecord]:
    result = await db.execute(
        select(ActivityRecord).filter(
            ActivityRecord.connection_id == connection_id,
            ActivityRecord.category == category,
            ActivityRecord.key == key,
            ActivityRecord.user_id == user_id,
        )
    )
    return result.scalar_one_or_none()


async def get_counterpart(
    db: AsyncSession, connection_id: str, category: str, key: str, user_id: str
) -> Optional[ActivityRecord]:
    result = await db.execute(
        select(ActivityRecord).filter(
            ActivityRecord.connection_id == connection_id,
            ActivityRecord.category == category,
            ActivityRecord.key == key,
            ActivityRecord.user_id != user_id,
        )
    )
    return result.scalars().first()


async def insert_record(
    db: AsyncSession, connection_id: str, category: str, key: str, user_id: str, payload: dict
) -> ActivityRecord:
    record = ActivityRecord(
        id=str(uuid.uuid4()),
        connection_id=connection_id,
        category=category,
        key=key,
        user_id=user_id,
        payload=payload or {},
        both_completed=False,
    )
    db.add(record)
    await db.flush()
    return record


async def mark_both_completed(db: AsyncSession, connection_id: str, category: str, key: str):
    await db.execute(
        update(ActivityRecord)
        .where(
            ActivityRecord.connection_id == connection_id,
            ActivityRecord.category == category,
            ActivityRecord.key == key,
        )
        .values(both_completed=True)
        .execution_options(synchronize_session=False)
    )


async def completed_unit_counts(db: AsyncSession, connection_id: str) -> Dict[str, int]:
    """Distinct keys per category that both users completed"""
    result = await db.execute(
        select(ActivityRecord.category, func.count(distinct(ActivityRecord.key)))
        .filter(ActivityRecord.connection_id == connection_id, ActivityRecord.both_completed.is_(True))
        .group_by(ActivityRecord.category)
    )
    return {category: count for category, count in result.all()}


async def list_records(db: AsyncSession, connection_id: str, category: Optional[str] = None) -> List[ActivityRecord]:
    query = select(ActivityRecord).filter(ActivityRecord.connection_id == connection_id)
    if category:
        query = query.filter(ActivityRecord.category == category)
    result = await db.execute(query.order_by(ActivityRecord.created_at))
    return list(result.scalars().all())


# Mini-games

async def get_game(db: AsyncSession, game_id: str, for_update: bool = False) -> Optional[MiniGame]:
    query = select(MiniGame).filter(MiniGame.id == game_id)
    if for_update:
        query = query.with_for_update()
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def get_game_by_type(db: AsyncSession, connection_id: str, game_type: str) -> Optional[MiniGame]:
    result = await db.execute(
        select(MiniGame).filter(MiniGame.connection_id == connection_id, MiniGame.type == game_type)
    )
    return result.scalar_one_or_none()


async def list_games(db: AsyncSession, connection_id: str) -> List[MiniGame]:
    result = await db.execute(select(MiniGame).filter(MiniGame.connection_id == connection_id))
    return list(result.scalars().all())


async def create_game(db: AsyncSession, connection_id: str, game_type: str, started_by: str, status: str) -> MiniGame:
    game = MiniGame(
        id=str(uuid.uuid4()),
        connection_id=connection_id,
        type=game_type,
        status=status,
        started_by=started_by,
        state={},
    )
    db.add(game)
    await db.flush()
    return game
