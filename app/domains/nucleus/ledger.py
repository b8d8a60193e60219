# app/domains/nucleus/ledger.py
"""
Activity ledger.

Progress is never incremented: every submission recomputes it from the full
set of units both users completed, so replays and concurrent counterpart
submissions converge on the same value. The connection row is locked for the
whole submission so the both-completed flip, the recompute and the completion
transition commit together with the insert.
"""
import math
from datetime import datetime
from fractions import Fraction
from typing import Dict, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import CategoryWeight, settings
from app.core.database import get_db
from app.core.errors import DuplicateSubmission, InvalidTransition, NotFound, ValidationError
from app.core.event_bus import event_bus
from app.domains.chat.gate import chat_level_for
from app.domains.connections import repository as connections_repository
from app.domains.connections.entities import ConnectionAction, nucleus_open
from app.domains.connections.models import Connection
from app.domains.connections.service import check_participant
from app.shared.utils.logger import get_logger

from . import repository
from .entities import Submission

logger = get_logger(__name__)


def compute_progress(counts: Dict[str, int], weights: Optional[Dict[str, CategoryWeight]] = None) -> int:
    """floor(sum(min(count, max) / max * weight)), clamped to [0, 100]"""
    weights = weights if weights is not None else settings.PROGRESS_WEIGHTS
    total = Fraction(0)
    for category, w in weights.items():
        count = max(0, int(counts.get(category, 0)))
        total += Fraction(min(count, w.max), w.max) * w.weight
    return max(0, min(100, math.floor(total)))


async def lock_connection(db: AsyncSession, connection_id: str, user_id: str) -> Connection:
    """Lock the connection row and check the user may add activity to it"""
    connection = check_participant(
        await connections_repository.get_connection(db, connection_id, for_update=True), user_id,
    )
    if not nucleus_open(connection.status, connection.cooled_from):
        raise InvalidTransition(f"Nucleus is not open for a {connection.status} connection")
    return connection


async def _apply_progress(db: AsyncSession, connection: Connection, now: datetime) -> bool:
    """Recompute and store progress on a locked connection; True if it just completed"""
    counts = await repository.completed_unit_counts(db, connection.id)
    progress = max(connection.progress, compute_progress(counts))
    await connections_repository.set_progress(db, connection.id, progress, chat_level_for(progress).value)

    completed_now = False
    if progress >= 100:
        completed_now = await connections_repository.transition(
            db, connection.id, ConnectionAction.COMPLETE, completed_at=now,
        )
    await db.refresh(connection)
    return completed_now


async def submit(
    db: AsyncSession, connection: Connection, user_id: str, category: str, key: str, payload: Optional[dict] = None
) -> Submission:
    """Record one unit inside the caller's transaction (connection already locked)"""
    if category not in settings.PROGRESS_WEIGHTS:
        raise ValidationError(f"Unknown activity category: {category}")

    if await repository.get_record(db, connection.id, category, key, user_id):
        raise DuplicateSubmission(f"{category} {key} already submitted")
    try:
        record = await repository.insert_record(db, connection.id, category, key, user_id, payload)
    except IntegrityError:
        raise DuplicateSubmission(f"{category} {key} already submitted")

    both = await repository.get_counterpart(db, connection.id, category, key, user_id) is not None
    if both:
        await repository.mark_both_completed(db, connection.id, category, key)

    previous_progress = connection.progress
    previous_level = connection.chat_level
    now = datetime.utcnow()
    await connections_repository.touch(db, connection.id, now)
    completed_now = await _apply_progress(db, connection, now)

    return Submission(
        connection_id=connection.id,
        user_id=user_id,
        category=category,
        key=key,
        both_completed=both,
        previous_progress=previous_progress,
        progress=connection.progress,
        previous_chat_level=previous_level,
        chat_level=connection.chat_level,
        status=connection.status,
        participants=[connection.initiator_id, connection.receiver_id],
        completed_now=completed_now,
        record_id=record.id,
    )


async def publish(submission: Submission):
    if submission.completed_now:
        logger.info(f"Connection {submission.connection_id} completed its nucleus")
    await event_bus.publish("nucleus:updated", submission)


async def record_submission(
    connection_id: str, user_id: str, category: str, key: str, payload: Optional[dict] = None
) -> Submission:
    async with get_db() as db:
        connection = await lock_connection(db, connection_id, user_id)
        submission = await submit(db, connection, user_id, category, key, payload)

    logger.info(
        f"Ledger {connection_id}: {category}/{key} by {user_id} "
        f"(both={submission.both_completed}, progress {submission.previous_progress}->{submission.progress})"
    )
    await publish(submission)
    return submission


async def recompute(connection_id: str) -> int:
    """Rebuild progress from history; running it twice changes nothing"""
    async with get_db() as db:
        connection = await connections_repository.get_connection(db, connection_id, for_update=True)
        if connection is None:
            raise NotFound("Connection not found")
        await _apply_progress(db, connection, datetime.utcnow())
        return connection.progress
