# app/domains/connections/events.py
from app.core import event_bus
from app.domains.presence.notifier import presence_notifier
from app.shared.schemas.events import ConnectionAccepted, ConnectionRequest, NucleusDissolved


async def _on_requested(data: dict):
    await presence_notifier.emit_to_user(data["receiver_id"], ConnectionRequest(
        connection_id=data["connection_id"],
        from_user_id=data["initiator_id"],
    ))


async def _on_accepted(data: dict):
    await presence_notifier.emit_to_user(data["initiator_id"], ConnectionAccepted(
        connection_id=data["connection_id"],
        by_user_id=data["receiver_id"],
    ))


async def _on_dissolved(data: dict):
    event = NucleusDissolved(
        connection_id=data["connection_id"],
        by_user_id=data["by_user_id"],
        reason=data["reason"],
    )
    await presence_notifier.emit_to_user(data["other_user_id"], event)


def register_event_handlers():
    event_bus.event_bus.subscribe("connections:requested", _on_requested)
    event_bus.event_bus.subscribe("connections:accepted", _on_accepted)
    event_bus.event_bus.subscribe("connections:dissolved", _on_dissolved)
