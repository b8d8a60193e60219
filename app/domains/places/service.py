# app/domains/places/service.py
"""
Date places for a nucleus. Unlocked once progress reaches
PLACES_UNLOCK_PROGRESS. The first suggestion both users LOVE is the agreed
place; reaching that agreement credits PLACE to the ledger for both users,
keyed by the suggestion id.
"""
from typing import Dict, List, Optional

from app.core.config import settings
from app.core.database import get_db
from app.core.errors import DuplicateSubmission, InvalidTransition, NotFound
from app.core.event_bus import event_bus
from app.domains.auth import repository as users_repository
from app.domains.auth.schemas import UserOut
from app.domains.connections import repository as connections_repository
from app.domains.connections.entities import nucleus_open
from app.domains.connections.service import check_participant
from app.domains.nucleus import ledger
from app.domains.nucleus import repository as nucleus_repository
from app.domains.nucleus.entities import ActivityCategory
from app.shared.utils.logger import get_logger

from . import repository
from .schemas import LocationUpdate, PlaceVoteValue, SuggestPlaceRequest

logger = get_logger(__name__)


def places_enabled(connection) -> bool:
    return (
        nucleus_open(connection.status, connection.cooled_from)
        and connection.progress >= settings.PLACES_UNLOCK_PROGRESS
    )


def agreed_suggestion(suggestions, votes: Dict[str, Dict[str, str]], participants: List[str]):
    for s in suggestions:
        cast = votes.get(s.id, {})
        if all(cast.get(uid) == PlaceVoteValue.LOVE.value for uid in participants):
            return s
    return None


class PlacesService:
    async def update_location(self, user_id: str, update: LocationUpdate) -> UserOut:
        user = await users_repository.update_user(user_id, update.model_dump(exclude_none=True))
        if user is None:
            raise NotFound("User not found")
        return UserOut.model_validate(user)

    async def get_places(self, connection_id: str, user_id: str) -> Dict:
        async with get_db() as db:
            connection = check_participant(await connections_repository.get_connection(db, connection_id), user_id)
            suggestions = await repository.list_suggestions(db, connection_id)
            votes = await repository.votes_for(db, [s.id for s in suggestions])

        other_id = connection.other_user_id(user_id)
        users = await users_repository.get_users_by_ids([user_id, other_id])
        me, other = users.get(user_id), users.get(other_id)
        both_located = all(u is not None and u.latitude is not None and u.longitude is not None for u in (me, other))
        same_city = bool(
            me and other and me.city and other.city and me.city.strip().lower() == other.city.strip().lower()
        )
        agreed = agreed_suggestion(suggestions, votes, [user_id, other_id])

        return {
            "enabled": places_enabled(connection),
            "bothHaveLocation": both_located,
            "inSameCity": same_city,
            "suggestions": [self._view(s, votes.get(s.id, {}), user_id, other_id, users) for s in suggestions],
            "agreedPlace": (
                {"id": agreed.id, "name": agreed.name, "address": agreed.address} if agreed else None
            ),
            "progress": connection.progress,
        }

    async def suggest(self, connection_id: str, user_id: str, request: SuggestPlaceRequest) -> Dict:
        async with get_db() as db:
            connection = await ledger.lock_connection(db, connection_id, user_id)
            if not places_enabled(connection):
                raise InvalidTransition(f"Places unlock at {settings.PLACES_UNLOCK_PROGRESS}% progress")
            if request.place_id and await repository.find_suggestion(db, connection_id, request.place_id):
                raise DuplicateSubmission("This place was already suggested")
            suggestion = await repository.create_suggestion(
                db, connection_id, user_id, request.model_dump(exclude_none=True),
            )
        logger.info(f"Place {suggestion.id} suggested in {connection_id} by {user_id}")
        users = await users_repository.get_users_by_ids([user_id])
        return self._view(suggestion, {}, user_id, connection.other_user_id(user_id), users)

    async def vote(self, suggestion_id: str, user_id: str, vote: PlaceVoteValue) -> Dict:
        submission = None
        async with get_db() as db:
            suggestion = await repository.get_suggestion(db, suggestion_id)
            if suggestion is None:
                raise NotFound("Suggestion not found")
            connection = await ledger.lock_connection(db, suggestion.connection_id, user_id)
            if not places_enabled(connection):
                raise InvalidTransition(f"Places unlock at {settings.PLACES_UNLOCK_PROGRESS}% progress")

            await repository.upsert_vote(db, suggestion_id, user_id, vote.value)
            suggestions = await repository.list_suggestions(db, connection.id)
            votes = await repository.votes_for(db, [s.id for s in suggestions])

            participants = [connection.initiator_id, connection.receiver_id]
            cast = votes.get(suggestion_id, {})
            if all(cast.get(uid) == PlaceVoteValue.LOVE.value for uid in participants):
                place_key = ActivityCategory.PLACE.value
                # voter last so the returned submission carries the completed unit
                for uid in sorted(participants, key=lambda u: u == user_id):
                    if not await nucleus_repository.get_record(db, connection.id, place_key, suggestion_id, uid):
                        submission = await ledger.submit(
                            db, connection, uid, place_key, suggestion_id, {"vote": PlaceVoteValue.LOVE.value},
                        )

        agreed = agreed_suggestion(suggestions, votes, participants)
        if submission is not None:
            await ledger.publish(submission)
        await event_bus.publish("places:voted", {
            "connection_id": connection.id,
            "suggestion_id": suggestion_id,
            "user_id": user_id,
            "vote": vote.value,
            "agreed": agreed is not None and agreed.id == suggestion_id,
            "agreed_place_id": agreed.id if agreed else None,
            "participants": participants,
        })
        return {
            "success": True,
            "vote": vote.value,
            "agreed": agreed is not None and agreed.id == suggestion_id,
            "agreedPlaceId": agreed.id if agreed else None,
            "progress": submission.progress if submission else connection.progress,
        }

    @staticmethod
    def _view(suggestion, votes: Dict[str, str], user_id: str, other_id: str, users: Dict) -> Dict:
        author = users.get(suggestion.suggested_by)
        return {
            "id": suggestion.id,
            "placeId": suggestion.place_id,
            "name": suggestion.name,
            "address": suggestion.address,
            "category": suggestion.category,
            "latitude": suggestion.latitude,
            "longitude": suggestion.longitude,
            "photoUrl": suggestion.photo_url,
            "rating": suggestion.rating,
            "priceLevel": suggestion.price_level,
            "suggestedBy": {"id": suggestion.suggested_by, "name": author.name if author else None},
            "userVote": votes.get(user_id),
            "otherVote": votes.get(other_id),
        }


places_service = PlacesService()
