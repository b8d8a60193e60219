import asyncio
from datetime import datetime, timedelta

import pytest
from sqlalchemy import update

from app.core.database import get_db
from app.core.errors import (
    DuplicateConnection,
    InvalidTransition,
    NotFound,
    RateLimited,
    Unauthorized,
    ValidationError,
)
from app.domains.connections.entities import ConnectionAction, ConnectionStatus, can_transition, nucleus_open, pair_key
from app.domains.connections.models import Connection
from app.domains.connections.service import connection_service

S = ConnectionStatus

REASON = " ".join(["palabra"] * 20)


async def set_fields(connection_id, **values):
    async with get_db() as db:
        await db.execute(update(Connection).where(Connection.id == connection_id).values(**values))


def test_transition_table():
    assert can_transition(S.PENDING, ConnectionAction.ACCEPT)
    assert can_transition(S.LATER, ConnectionAction.ACCEPT)
    assert not can_transition(S.ACTIVE, ConnectionAction.ACCEPT)
    assert not can_transition(S.LATER, ConnectionAction.POSTPONE)
    assert can_transition(S.COOLED, ConnectionAction.DISSOLVE, cooled_from=S.ACTIVE)
    assert not can_transition(S.COOLED, ConnectionAction.DISSOLVE, cooled_from=S.LATER)
    assert can_transition(S.COOLED, ConnectionAction.ACCEPT, cooled_from=S.LATER)
    assert not can_transition(S.ENDED, ConnectionAction.DISSOLVE)


def test_nucleus_open_statuses():
    assert nucleus_open(S.ACTIVE)
    assert nucleus_open(S.COMPLETED)
    assert nucleus_open(S.COOLED, S.ACTIVE)
    assert not nucleus_open(S.COOLED, S.LATER)
    assert not nucleus_open(S.PENDING)


def test_pair_key_is_unordered():
    assert pair_key("a", "b") == pair_key("b", "a")


async def test_initiate_creates_pending(make_user):
    ana = await make_user("Ana")
    bruno = await make_user("Bruno")
    view = await connection_service.initiate(ana.id, bruno.id)
    assert view.status == S.PENDING.value
    assert view.progress == 0
    assert view.chat_level == "NONE"
    assert view.compatibility_score == 100
    assert view.is_initiator
    assert view.other_user.id == bruno.id


async def test_cannot_connect_with_self_or_unknown(make_user):
    ana = await make_user("Ana")
    with pytest.raises(ValidationError):
        await connection_service.initiate(ana.id, ana.id)
    with pytest.raises(NotFound):
        await connection_service.initiate(ana.id, "missing")


async def test_duplicate_connection_in_either_direction(make_user):
    ana = await make_user("Ana")
    bruno = await make_user("Bruno")
    await connection_service.initiate(ana.id, bruno.id)
    with pytest.raises(DuplicateConnection):
        await connection_service.initiate(ana.id, bruno.id)
    with pytest.raises(DuplicateConnection):
        await connection_service.initiate(bruno.id, ana.id)


async def test_reinitiate_after_ended(make_user):
    ana = await make_user("Ana")
    bruno = await make_user("Bruno")
    first = await connection_service.initiate(ana.id, bruno.id)
    await connection_service.decline(first.id, bruno.id, "no gracias")
    second = await connection_service.initiate(bruno.id, ana.id)
    assert second.id != first.id
    assert second.status == S.PENDING.value


async def test_only_receiver_decides(make_user):
    ana = await make_user("Ana")
    bruno = await make_user("Bruno")
    carla = await make_user("Carla")
    view = await connection_service.initiate(ana.id, bruno.id)
    with pytest.raises(Unauthorized):
        await connection_service.accept(view.id, ana.id)
    with pytest.raises(Unauthorized):
        await connection_service.accept(view.id, carla.id)


async def test_postpone_then_accept(make_user):
    ana = await make_user("Ana")
    bruno = await make_user("Bruno")
    view = await connection_service.initiate(ana.id, bruno.id)
    later = await connection_service.postpone(view.id, bruno.id)
    assert later.status == S.LATER.value
    with pytest.raises(InvalidTransition):
        await connection_service.postpone(view.id, bruno.id)
    accepted = await connection_service.accept(view.id, bruno.id)
    assert accepted.status == S.ACTIVE.value
    assert accepted.accepted_at is not None


async def test_decline_stores_reason(make_user):
    ana = await make_user("Ana")
    bruno = await make_user("Bruno")
    view = await connection_service.initiate(ana.id, bruno.id)
    declined = await connection_service.decline(view.id, bruno.id, "  no es el momento ")
    assert declined.status == S.ENDED.value
    assert declined.decline_reason == "no es el momento"
    assert declined.ended_by == bruno.id
    with pytest.raises(InvalidTransition):
        await connection_service.accept(view.id, bruno.id)
    assert (await connection_service.get_connection(view.id, ana.id)).status == S.ENDED.value


async def test_dissolve_requires_reason_words(active_connection):
    connection_id, ana, _ = await active_connection()
    with pytest.raises(ValidationError):
        await connection_service.dissolve(connection_id, ana.id, "too short")
    view = await connection_service.dissolve(connection_id, ana.id, REASON)
    assert view.status == S.ENDED.value
    assert view.dissolve_reason == REASON
    with pytest.raises(InvalidTransition):
        await connection_service.dissolve(connection_id, ana.id, REASON)


async def test_dissolve_word_boundary(active_connection):
    connection_id, ana, _ = await active_connection()
    with pytest.raises(ValidationError):
        await connection_service.dissolve(connection_id, ana.id, " ".join(["palabra"] * 19))
    assert (await connection_service.get_connection(connection_id, ana.id)).status == S.ACTIVE.value

    view = await connection_service.dissolve(connection_id, ana.id, " ".join(["palabra"] * 20))
    assert view.status == S.ENDED.value


async def test_concurrent_accept_and_decline_only_one_wins(make_user):
    ana = await make_user("Ana")
    bruno = await make_user("Bruno")
    view = await connection_service.initiate(ana.id, bruno.id)

    results = await asyncio.gather(
        connection_service.accept(view.id, bruno.id),
        connection_service.decline(view.id, bruno.id, "no"),
        return_exceptions=True,
    )
    failures = [r for r in results if isinstance(r, Exception)]
    winners = [r for r in results if not isinstance(r, Exception)]
    assert len(winners) == 1
    assert len(failures) == 1 and isinstance(failures[0], InvalidTransition)
    final = await connection_service.get_connection(view.id, ana.id)
    assert final.status == winners[0].status
    assert final.status in (S.ACTIVE.value, S.ENDED.value)


async def test_cannot_dissolve_pending(make_user):
    ana = await make_user("Ana")
    bruno = await make_user("Bruno")
    view = await connection_service.initiate(ana.id, bruno.id)
    with pytest.raises(InvalidTransition):
        await connection_service.dissolve(view.id, ana.id, REASON)
    assert (await connection_service.get_connection(view.id, ana.id)).status == S.PENDING.value


async def test_get_connection_marks_seen_for_receiver(make_user):
    ana = await make_user("Ana")
    bruno = await make_user("Bruno")
    view = await connection_service.initiate(ana.id, bruno.id)
    assert (await connection_service.pending_counts(bruno.id)).unseen == 1
    await connection_service.get_connection(view.id, ana.id)
    assert (await connection_service.pending_counts(bruno.id)).unseen == 1
    seen = await connection_service.get_connection(view.id, bruno.id)
    assert seen.seen_by_receiver
    counts = await connection_service.pending_counts(bruno.id)
    assert counts.pending == 1 and counts.unseen == 0 and counts.total == 1


async def test_list_filters(make_user):
    ana = await make_user("Ana")
    bruno = await make_user("Bruno")
    carla = await make_user("Carla")
    to_bruno = await connection_service.initiate(ana.id, bruno.id)
    from_carla = await connection_service.initiate(carla.id, ana.id)
    await connection_service.postpone(from_carla.id, ana.id)

    outgoing = await connection_service.list_connections(ana.id, status="outgoing")
    assert [c.id for c in outgoing] == [to_bruno.id]
    later = await connection_service.list_connections(ana.id, filter_name="later")
    assert [c.id for c in later] == [from_carla.id]
    assert await connection_service.list_connections(ana.id, status="incoming") == []
    with pytest.raises(ValidationError):
        await connection_service.list_connections(ana.id, status="bogus")


async def test_transparency_groups(make_user):
    ana = await make_user("Ana")
    bruno = await make_user("Bruno")
    carla = await make_user("Carla")
    rejected = await connection_service.initiate(ana.id, bruno.id)
    await connection_service.decline(rejected.id, bruno.id)
    await connection_service.initiate(carla.id, ana.id)

    report = await connection_service.transparency(ana.id)
    assert [c.id for c in report.rejections] == [rejected.id]
    assert len(report.who_liked_you) == 1
    assert report.stats["rejections"] == 1
    assert report.stats["whoLikedYou"] == 1
    assert report.stats["total"] == 2


async def test_cooling_and_reactivation(active_connection):
    connection_id, ana, _ = await active_connection()
    await set_fields(connection_id, last_activity=datetime.utcnow() - timedelta(days=15))

    assert await connection_service.cool_inactive() == 1
    cooled = await connection_service.get_connection(connection_id, ana.id)
    assert cooled.status == S.COOLED.value
    assert cooled.temperature == "COLD"

    assert await connection_service.touch(connection_id) is True
    active = await connection_service.get_connection(connection_id, ana.id)
    assert active.status == S.ACTIVE.value
    assert active.temperature == "HOT"


async def test_cooled_later_is_not_reactivated_by_touch(make_user):
    ana = await make_user("Ana")
    bruno = await make_user("Bruno")
    view = await connection_service.initiate(ana.id, bruno.id)
    await connection_service.postpone(view.id, bruno.id)
    await set_fields(view.id, last_activity=datetime.utcnow() - timedelta(days=15))
    await connection_service.cool_inactive()

    assert await connection_service.touch(view.id) is False
    # the receiver can still answer a cooled request
    accepted = await connection_service.accept(view.id, bruno.id)
    assert accepted.status == S.ACTIVE.value


async def test_expire_cooled_ends_and_frees_pair(active_connection):
    connection_id, ana, bruno = await active_connection()
    await set_fields(connection_id, last_activity=datetime.utcnow() - timedelta(days=31))
    await connection_service.cool_inactive()
    assert await connection_service.expire_cooled() == 1

    ended = await connection_service.get_connection(connection_id, ana.id)
    assert ended.status == S.ENDED.value
    assert ended.ended_at is not None
    again = await connection_service.initiate(ana.id, bruno.id)
    assert again.status == S.PENDING.value


async def test_mark_completed_requires_full_progress(active_connection):
    connection_id, ana, _ = await active_connection()
    assert await connection_service.mark_completed(connection_id) is False
    await set_fields(connection_id, progress=100)
    assert await connection_service.mark_completed(connection_id) is True
    assert (await connection_service.get_connection(connection_id, ana.id)).status == S.COMPLETED.value
    # already completed: no second transition
    assert await connection_service.mark_completed(connection_id) is False


async def test_connection_requests_are_rate_limited(make_user, fake_redis, monkeypatch):
    from app.core.redis import connection_requests_limiter

    monkeypatch.setattr(connection_requests_limiter, "limit", 1)
    ana = await make_user("Ana")
    bruno = await make_user("Bruno")
    carla = await make_user("Carla")
    await connection_service.initiate(ana.id, bruno.id)
    with pytest.raises(RateLimited):
        await connection_service.initiate(ana.id, carla.id)
    assert fake_redis.ttl[f"ratelimit:connection-requests:{ana.id}"] == 86400
