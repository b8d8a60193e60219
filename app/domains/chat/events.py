# app/domains/chat/events.py
from app.core import event_bus
from app.domains.presence.notifier import presence_notifier
from app.shared.schemas.events import NewMessage


async def _on_message(data: dict):
    message = data["message"]
    event = NewMessage(
        connection_id=message.connection_id,
        id=message.id,
        sender_id=message.sender_id,
        type=message.type,
        content=message.content,
        created_at=message.created_at,
    )
    await presence_notifier.emit_to_connection(message.connection_id, event, exclude={message.sender_id})

    other_id = data["other_user_id"]
    if not presence_notifier.is_viewing(message.connection_id, other_id):
        await presence_notifier.emit_to_user(other_id, event)


def register_event_handlers():
    event_bus.event_bus.subscribe("chat:message", _on_message)
