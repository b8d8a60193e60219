import uuid
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import PlaceSuggestion, PlaceVote


async def list_suggestions(db: AsyncSession, connection_id: str) -> List[PlaceSuggestion]:
    result = await db.execute(
        select(PlaceSuggestion)
        .filter(PlaceSuggestion.connection_id == connection_id)
        .order_by(PlaceSuggestion.created_at, PlaceSuggestion.id)
    )
    return list(result.scalars().all())


async def get_suggestion(db: AsyncSession, suggestion_id: str) -> Optional[PlaceSuggestion]:
    return await db.get(PlaceSuggestion, suggestion_id)


async def find_suggestion(db: AsyncSession, connection_id: str, place_id: str) -> Optional[PlaceSuggestion]:
    result = await db.execute(
        select(PlaceSuggestion).filter(
            PlaceSuggestion.connection_id == connection_id, PlaceSuggestion.place_id == place_id,
        )
    )
    return result.scalar_one_or_none()


async def create_suggestion(db: AsyncSession, connection_id: str, user_id: str, data: dict) -> PlaceSuggestion:
    suggestion_id = str(uuid.uuid4())
    suggestion = PlaceSuggestion(
        id=suggestion_id,
        connection_id=connection_id,
        suggested_by=user_id,
        place_id=data.pop("place_id", None) or suggestion_id,
        **data,
    )
    db.add(suggestion)
    await db.flush()
    return suggestion


async def votes_for(db: AsyncSession, suggestion_ids: List[str]) -> Dict[str, Dict[str, str]]:
    """suggestion id -> {user_id: vote}"""
    if not suggestion_ids:
        return {}
    result = await db.execute(select(PlaceVote).filter(PlaceVote.suggestion_id.in_(suggestion_ids)))
    votes: Dict[str, Dict[str, str]] = {}
    for v in result.scalars().all():
        votes.setdefault(v.suggestion_id, {})[v.user_id] = v.vote
    return votes


async def upsert_vote(db: AsyncSession, suggestion_id: str, user_id: str, vote: str) -> PlaceVote:
    result = await db.execute(
        select(PlaceVote).filter(PlaceVote.suggestion_id == suggestion_id, PlaceVote.user_id == user_id)
    )
    existing = result.scalar_one_or_none()
    if existing:
        existing.vote = vote
        return existing
    place_vote = PlaceVote(id=str(uuid.uuid4()), suggestion_id=suggestion_id, user_id=user_id, vote=vote)
    db.add(place_vote)
    await db.flush()
    return place_vote
