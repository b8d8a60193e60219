# app/domains/missions/events.py
from app.core import event_bus
from app.domains.presence.notifier import presence_notifier
from app.shared.schemas.events import MissionCompleted, MissionSelected, MissionVote


async def _on_vote(data: dict):
    participants = data["participants"]
    others = [uid for uid in participants if uid != data["user_id"]]
    await presence_notifier.emit_to_users(others, MissionVote(
        connection_id=data["connection_id"],
        round_id=data["round_id"],
        user_id=data["user_id"],
    ))
    if data.get("selected_id"):
        await presence_notifier.emit_to_users(participants, MissionSelected(
            connection_id=data["connection_id"],
            round_id=data["round_id"],
            mission_id=data["selected_id"],
        ))


async def _on_completed(data: dict):
    await presence_notifier.emit_to_users(data["participants"], MissionCompleted(
        connection_id=data["connection_id"],
        round_id=data["round_id"],
    ))


def register_event_handlers():
    event_bus.event_bus.subscribe("missions:vote", _on_vote)
    event_bus.event_bus.subscribe("missions:completed", _on_completed)
