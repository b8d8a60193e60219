import pytest
from sqlalchemy import select, update

from app.core.database import get_db
from app.core.errors import DuplicateSubmission, InvalidTransition
from app.domains.connections.models import Connection
from app.domains.nucleus.models import ActivityRecord
from app.domains.places.schemas import LocationUpdate, PlaceVoteValue, SuggestPlaceRequest
from app.domains.places.service import places_service


async def unlock(connection_id, progress=70):
    async with get_db() as db:
        await db.execute(update(Connection).where(Connection.id == connection_id).values(progress=progress))


async def place_records(connection_id):
    async with get_db() as db:
        result = await db.execute(
            select(ActivityRecord).filter(ActivityRecord.connection_id == connection_id, ActivityRecord.category == "PLACE")
        )
        return list(result.scalars().all())


async def test_places_locked_below_threshold(active_connection):
    connection_id, ana, _ = await active_connection()
    with pytest.raises(InvalidTransition):
        await places_service.suggest(connection_id, ana.id, SuggestPlaceRequest(name="Café"))
    assert (await places_service.get_places(connection_id, ana.id))["enabled"] is False


async def test_suggest_and_duplicate_place(active_connection):
    connection_id, ana, bruno = await active_connection()
    await unlock(connection_id)
    suggestion = await places_service.suggest(
        connection_id, ana.id, SuggestPlaceRequest(name="Café Central", place_id="g-123", rating=4.5),
    )
    assert suggestion["placeId"] == "g-123"
    assert suggestion["suggestedBy"]["name"] == "Ana"
    with pytest.raises(DuplicateSubmission):
        await places_service.suggest(connection_id, bruno.id, SuggestPlaceRequest(name="Otro", place_id="g-123"))


async def test_agreement_credits_place_once(active_connection):
    connection_id, ana, bruno = await active_connection()
    await unlock(connection_id)
    suggestion = await places_service.suggest(connection_id, ana.id, SuggestPlaceRequest(name="Parque"))

    result = await places_service.vote(suggestion["id"], ana.id, PlaceVoteValue.LOVE)
    assert result["agreed"] is False
    # one side loving a place is not an agreement yet
    assert await place_records(connection_id) == []

    result = await places_service.vote(suggestion["id"], bruno.id, PlaceVoteValue.LOVE)
    assert result["agreed"] is True
    records = await place_records(connection_id)
    assert len(records) == 2
    assert all(r.both_completed for r in records)

    # voting again on an agreed place does not add records
    await places_service.vote(suggestion["id"], bruno.id, PlaceVoteValue.LIKE)
    await places_service.vote(suggestion["id"], bruno.id, PlaceVoteValue.LOVE)
    assert len(await place_records(connection_id)) == 2

    places = await places_service.get_places(connection_id, bruno.id)
    assert places["agreedPlace"]["id"] == suggestion["id"]
    assert places["suggestions"][0]["userVote"] == "LOVE"
    assert places["suggestions"][0]["otherVote"] == "LOVE"


async def test_retracted_love_is_not_credited(active_connection):
    connection_id, ana, bruno = await active_connection()
    await unlock(connection_id)
    suggestion = await places_service.suggest(connection_id, ana.id, SuggestPlaceRequest(name="Mirador"))

    await places_service.vote(suggestion["id"], ana.id, PlaceVoteValue.LOVE)
    await places_service.vote(suggestion["id"], ana.id, PlaceVoteValue.DISLIKE)
    result = await places_service.vote(suggestion["id"], bruno.id, PlaceVoteValue.LOVE)

    assert result["agreed"] is False
    assert result["agreedPlaceId"] is None
    assert await place_records(connection_id) == []
    places = await places_service.get_places(connection_id, ana.id)
    assert places["agreedPlace"] is None
    assert places["progress"] == 70



async def test_non_love_vote_is_not_credited(active_connection):
    connection_id, ana, _ = await active_connection()
    await unlock(connection_id)
    suggestion = await places_service.suggest(connection_id, ana.id, SuggestPlaceRequest(name="Museo"))
    result = await places_service.vote(suggestion["id"], ana.id, PlaceVoteValue.DISLIKE)
    assert result["progress"] == 70
    assert await place_records(connection_id) == []


async def test_location_and_same_city(active_connection):
    connection_id, ana, bruno = await active_connection()
    await places_service.update_location(ana.id, LocationUpdate(latitude=40.4, longitude=-3.7, city="Madrid"))
    places = await places_service.get_places(connection_id, ana.id)
    assert places["bothHaveLocation"] is False
    await places_service.update_location(bruno.id, LocationUpdate(latitude=40.5, longitude=-3.6, city="madrid "))
    places = await places_service.get_places(connection_id, ana.id)
    assert places["bothHaveLocation"] is True
    assert places["inSameCity"] is True
