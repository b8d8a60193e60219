import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .entities import OPEN_STATUSES, RoundStatus
from .models import MissionRound


async def get_open_round(db: AsyncSession, connection_id: str, for_update: bool = False) -> Optional[MissionRound]:
    query = select(MissionRound).filter(
        MissionRound.connection_id == connection_id,
        MissionRound.status.in_([s.value for s in OPEN_STATUSES]),
    ).order_by(MissionRound.number.desc())
    if for_update:
        query = query.with_for_update()
    result = await db.execute(query)
    return result.scalars().first()


async def get_round(db: AsyncSession, round_id: str, for_update: bool = False) -> Optional[MissionRound]:
    query = select(MissionRound).filter(MissionRound.id == round_id)
    if for_update:
        query = query.with_for_update()
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def last_round_number(db: AsyncSession, connection_id: str) -> int:
    result = await db.execute(
        select(func.max(MissionRound.number)).filter(MissionRound.connection_id == connection_id)
    )
    return result.scalar() or 0


async def list_rounds(db: AsyncSession, connection_id: str) -> List[MissionRound]:
    result = await db.execute(
        select(MissionRound).filter(MissionRound.connection_id == connection_id).order_by(MissionRound.number)
    )
    return list(result.scalars().all())


async def create_round(
    db: AsyncSession, connection_id: str, number: int, option_ids: List[str], voting_ends_at: datetime
) -> MissionRound:
    mission_round = MissionRound(
        id=str(uuid.uuid4()),
        connection_id=connection_id,
        number=number,
        status=RoundStatus.VOTING.value,
        option_ids=option_ids,
        votes={},
        responses={},
        voting_ends_at=voting_ends_at,
    )
    db.add(mission_round)
    await db.flush()
    return mission_round


async def expire_rounds(db: AsyncSession, now: datetime) -> int:
    result = await db.execute(
        update(MissionRound)
        .where(or_(
            and_(MissionRound.status == RoundStatus.VOTING.value, MissionRound.voting_ends_at < now),
            and_(MissionRound.status == RoundStatus.ACTIVE.value, MissionRound.mission_ends_at < now),
        ))
        .values(status=RoundStatus.EXPIRED.value)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount
