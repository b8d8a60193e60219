# app/domains/places/events.py
from app.core import event_bus
from app.domains.presence.notifier import presence_notifier
from app.shared.schemas.events import PlaceVoted


async def _on_voted(data: dict):
    await presence_notifier.emit_to_users(data["participants"], PlaceVoted(
        connection_id=data["connection_id"],
        suggestion_id=data["suggestion_id"],
        user_id=data["user_id"],
        vote=data["vote"],
        agreed=data["agreed"],
        agreed_place_id=data["agreed_place_id"],
    ))


def register_event_handlers():
    event_bus.event_bus.subscribe("places:voted", _on_voted)
