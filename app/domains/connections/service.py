# app/domains/connections/service.py
"""
Connection lifecycle: initiation, receiver decisions, dissolution, automatic
completion and cooling. Each operation is one transaction; events go out on
the bus only after it commits.
"""
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from pydantic.alias_generators import to_camel
from sqlalchemy.exc import IntegrityError

from app.core.config import settings
from app.core.database import get_db
from app.core.errors import DuplicateConnection, InvalidTransition, NotFound, Unauthorized, ValidationError
from app.core.event_bus import event_bus
from app.core.redis import connection_requests_limiter
from app.domains.auth import repository as users_repository
from app.domains.compatibility import compute_score
from app.shared.utils.logger import get_logger

from . import repository
from .entities import ConnectionAction, ConnectionStatus, temperature_for
from .models import Connection
from .schemas import ConnectionOut, OtherUser, PendingCounts, Transparency

logger = get_logger(__name__)

S = ConnectionStatus

SORTERS = {
    "compatibility": (lambda c: (c.compatibility_score, c.created_at), True),
    "newest": (lambda c: c.created_at, True),
    "oldest": (lambda c: c.created_at, False),
}


def check_participant(connection: Optional[Connection], user_id: str) -> Connection:
    if connection is None:
        raise NotFound("Connection not found")
    if not connection.is_participant(user_id):
        raise Unauthorized()
    return connection


def to_view(connection: Connection, viewer_id: str, other=None) -> ConnectionOut:
    return ConnectionOut(
        id=connection.id,
        status=connection.status,
        progress=connection.progress,
        chat_level=connection.chat_level,
        temperature=temperature_for(connection.last_activity).value,
        compatibility_score=connection.compatibility_score,
        is_initiator=connection.initiator_id == viewer_id,
        seen_by_receiver=connection.seen_by_receiver,
        initiator_id=connection.initiator_id,
        receiver_id=connection.receiver_id,
        other_user=OtherUser.model_validate(other) if other is not None else None,
        last_activity=connection.last_activity,
        created_at=connection.created_at,
        accepted_at=connection.accepted_at,
        completed_at=connection.completed_at,
        ended_at=connection.ended_at,
        ended_by=connection.ended_by,
        decline_reason=connection.decline_reason,
        dissolve_reason=connection.dissolve_reason,
    )


class ConnectionService:
    async def initiate(self, initiator_id: str, target_id: str) -> ConnectionOut:
        """Send a connection request; the pair may hold one open connection"""
        if not target_id or target_id == initiator_id:
            raise ValidationError("You cannot connect with yourself")

        users = await users_repository.get_users_by_ids([initiator_id, target_id])
        if target_id not in users:
            raise NotFound("User not found")

        await connection_requests_limiter.hit(initiator_id)
        score = compute_score(users[initiator_id], users[target_id])

        try:
            async with get_db() as db:
                if await repository.get_open_connection_for_pair(db, initiator_id, target_id):
                    raise DuplicateConnection()
                connection = await repository.create_connection(db, initiator_id, target_id, score)
        except IntegrityError:
            # lost the race on the unique open_pair_key
            raise DuplicateConnection()

        logger.info(f"Connection {connection.id} requested: {initiator_id} -> {target_id} (score {score})")
        await event_bus.publish("connections:requested", {
            "connection_id": connection.id,
            "initiator_id": initiator_id,
            "receiver_id": target_id,
        })
        return to_view(connection, initiator_id, users[target_id])

    async def accept(self, connection_id: str, user_id: str) -> ConnectionOut:
        connection = await self._receiver_transition(
            connection_id, user_id, ConnectionAction.ACCEPT, accepted_at=datetime.utcnow(),
            last_activity=datetime.utcnow(),
        )
        await event_bus.publish("connections:accepted", {
            "connection_id": connection.id,
            "initiator_id": connection.initiator_id,
            "receiver_id": connection.receiver_id,
        })
        return await self._view_with_other(connection, user_id)

    async def decline(self, connection_id: str, user_id: str, reason: Optional[str] = None) -> ConnectionOut:
        connection = await self._receiver_transition(
            connection_id, user_id, ConnectionAction.DECLINE,
            decline_reason=(reason or "").strip() or None, ended_by=user_id,
        )
        return await self._view_with_other(connection, user_id)

    async def postpone(self, connection_id: str, user_id: str) -> ConnectionOut:
        connection = await self._receiver_transition(connection_id, user_id, ConnectionAction.POSTPONE)
        return await self._view_with_other(connection, user_id)

    async def dissolve(self, connection_id: str, user_id: str, reason: str) -> ConnectionOut:
        """End an active nucleus; the other participant gets the reason"""
        reason = (reason or "").strip()
        words = len(reason.split())
        if words < settings.DISSOLVE_MIN_WORDS:
            raise ValidationError(
                f"Please explain in at least {settings.DISSOLVE_MIN_WORDS} words ({words} given)"
            )

        async with get_db() as db:
            connection = check_participant(await repository.get_connection(db, connection_id), user_id)
            ok = await repository.transition(
                db, connection_id, ConnectionAction.DISSOLVE, dissolve_reason=reason, ended_by=user_id,
            )
            if not ok:
                raise InvalidTransition(f"Cannot dissolve a {connection.status} connection")
            await db.refresh(connection)

        logger.info(f"Connection {connection_id} dissolved by {user_id}")
        await event_bus.publish("connections:dissolved", {
            "connection_id": connection_id,
            "by_user_id": user_id,
            "other_user_id": connection.other_user_id(user_id),
            "reason": reason,
        })
        return await self._view_with_other(connection, user_id)

    async def mark_completed(self, connection_id: str) -> bool:
        """ACTIVE (or cooled from ACTIVE) -> COMPLETED once progress hits 100"""
        async with get_db() as db:
            connection = await repository.get_connection(db, connection_id, for_update=True)
            if connection is None:
                raise NotFound("Connection not found")
            if connection.progress < 100:
                return False
            done = await repository.transition(
                db, connection_id, ConnectionAction.COMPLETE, completed_at=datetime.utcnow(),
            )
        if done:
            logger.info(f"Connection {connection_id} completed")
        return done

    async def touch(self, connection_id: str) -> bool:
        async with get_db() as db:
            reactivated = await repository.touch(db, connection_id)
        if reactivated:
            logger.info(f"Connection {connection_id} reactivated")
        return reactivated

    async def cool_inactive(self, now: Optional[datetime] = None) -> int:
        now = now or datetime.utcnow()
        async with get_db() as db:
            cooled = await repository.cool_idle(db, now - timedelta(days=settings.COOL_AFTER_DAYS))
        if cooled:
            logger.info(f"Cooled {cooled} idle connections")
        return cooled

    async def expire_cooled(self, now: Optional[datetime] = None) -> int:
        now = now or datetime.utcnow()
        async with get_db() as db:
            expired = await repository.expire_cooled(
                db, now - timedelta(days=settings.COOLED_EXPIRE_DAYS), now,
            )
        if expired:
            logger.info(f"Expired {expired} cooled connections")
        return expired

    # Queries

    async def get_for_participant(self, connection_id: str, user_id: str) -> Connection:
        async with get_db() as db:
            return check_participant(await repository.get_connection(db, connection_id), user_id)

    async def get_connection(self, connection_id: str, user_id: str) -> ConnectionOut:
        async with get_db() as db:
            connection = check_participant(await repository.get_connection(db, connection_id), user_id)
            if user_id == connection.receiver_id and not connection.seen_by_receiver:
                await repository.mark_seen(db, connection_id)
                connection.seen_by_receiver = True
        return await self._view_with_other(connection, user_id)

    async def list_connections(
        self,
        user_id: str,
        status: Optional[str] = None,
        sort_by: Optional[str] = None,
        filter_name: Optional[str] = None,
    ) -> List[ConnectionOut]:
        async with get_db() as db:
            connections = await repository.list_for_user(db, user_id)

        def incoming(c):
            return c.receiver_id == user_id

        if filter_name == "later":
            selected = [c for c in connections if incoming(c) and c.status == S.LATER.value]
        elif status == "incoming":
            selected = [c for c in connections if incoming(c) and c.status == S.PENDING.value]
        elif status == "outgoing":
            selected = [
                c for c in connections
                if not incoming(c) and c.status in (S.PENDING.value, S.LATER.value)
            ]
        elif status:
            wanted = status.upper()
            if wanted not in S.__members__:
                raise ValidationError(f"Unknown status filter: {status}")
            selected = [c for c in connections if c.status == wanted]
        else:
            selected = [c for c in connections if c.status != S.ENDED.value]

        key, reverse = SORTERS.get(sort_by or "newest", SORTERS["newest"])
        selected.sort(key=key, reverse=reverse)
        return await self._views(selected, user_id)

    async def pending_counts(self, user_id: str) -> PendingCounts:
        async with get_db() as db:
            connections = await repository.list_for_user(db, user_id)

        incoming = [c for c in connections if c.receiver_id == user_id]
        pending = sum(1 for c in incoming if c.status == S.PENDING.value)
        later = sum(1 for c in incoming if c.status == S.LATER.value)
        unseen = sum(1 for c in incoming if c.status == S.PENDING.value and not c.seen_by_receiver)
        rejected = sum(
            1 for c in connections
            if c.initiator_id == user_id and c.status == S.ENDED.value and c.accepted_at is None
        )
        return PendingCounts(pending=pending, later=later, unseen=unseen, rejected=rejected, total=pending + later)

    async def transparency(self, user_id: str) -> Transparency:
        """Everything that happened between the viewer and other users, grouped"""
        async with get_db() as db:
            connections = await repository.list_for_user(db, user_id)
        connections.sort(key=lambda c: c.last_activity, reverse=True)
        views = {v.id: v for v in await self._views(connections, user_id)}

        groups: Dict[str, list] = {
            "who_liked_you": [], "who_you_liked": [], "active_matches": [], "rejections": [],
            "postponed": [], "cooled": [], "dissolved": [],
        }
        for c in connections:
            incoming = c.receiver_id == user_id
            if c.status == S.PENDING.value:
                groups["who_liked_you" if incoming else "who_you_liked"].append(views[c.id])
            elif c.status == S.LATER.value:
                groups["postponed" if incoming else "who_you_liked"].append(views[c.id])
            elif c.status in (S.ACTIVE.value, S.COMPLETED.value):
                groups["active_matches"].append(views[c.id])
            elif c.status == S.COOLED.value:
                groups["cooled"].append(views[c.id])
            elif c.accepted_at is None:
                groups["rejections"].append(views[c.id])
            else:
                groups["dissolved"].append(views[c.id])

        stats = {to_camel(name): len(items) for name, items in groups.items()}
        stats["total"] = len(connections)
        stats["completed"] = sum(1 for c in connections if c.status == S.COMPLETED.value)
        return Transparency(**groups, stats=stats)

    async def _receiver_transition(self, connection_id: str, user_id: str, action: ConnectionAction, **values):
        async with get_db() as db:
            connection = check_participant(await repository.get_connection(db, connection_id), user_id)
            if user_id != connection.receiver_id:
                raise Unauthorized(f"Only the receiver can {action.value} this connection")
            if not await repository.transition(db, connection_id, action, **values):
                raise InvalidTransition(f"Cannot {action.value} a {connection.status} connection")
            await db.refresh(connection)
        logger.info(f"Connection {connection_id}: {action.value} by {user_id} -> {connection.status}")
        return connection

    async def _view_with_other(self, connection: Connection, viewer_id: str) -> ConnectionOut:
        other = await users_repository.get_user_by_id(connection.other_user_id(viewer_id))
        return to_view(connection, viewer_id, other)

    async def _views(self, connections: List[Connection], viewer_id: str) -> List[ConnectionOut]:
        users = await users_repository.get_users_by_ids([c.other_user_id(viewer_id) for c in connections])
        return [to_view(c, viewer_id, users.get(c.other_user_id(viewer_id))) for c in connections]


connection_service = ConnectionService()
