# app/domains/nucleus/events.py
from app.core import event_bus
from app.domains.connections.entities import ChatLevel
from app.domains.presence.notifier import presence_notifier
from app.shared.schemas.events import ChatUnlocked, NucleusUpdated, ProgressUpdate

from .entities import Submission


async def _on_nucleus_updated(submission: Submission):
    await presence_notifier.emit_to_users(submission.participants, NucleusUpdated(
        connection_id=submission.connection_id,
        category=submission.category,
        key=submission.key,
        user_id=submission.user_id,
        both_completed=submission.both_completed,
    ))

    if submission.progress_changed:
        await presence_notifier.emit_to_users(submission.participants, ProgressUpdate(
            connection_id=submission.connection_id,
            progress=submission.progress,
            chat_level=submission.chat_level,
            status=submission.status,
        ))

    if submission.chat_level != submission.previous_chat_level and submission.chat_level != ChatLevel.NONE.value:
        await presence_notifier.emit_to_users(submission.participants, ChatUnlocked(
            connection_id=submission.connection_id,
            chat_level=submission.chat_level,
        ))


def register_event_handlers():
    event_bus.event_bus.subscribe("nucleus:updated", _on_nucleus_updated)
