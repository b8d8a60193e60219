from datetime import datetime, timedelta

import pytest
from sqlalchemy import update

from app.core.database import get_db
from app.core.errors import DuplicateSubmission, InvalidTransition, ValidationError
from app.domains.connections.service import connection_service
from app.domains.missions.entities import MISSIONS_BY_ID
from app.domains.missions.models import MissionRound
from app.domains.missions.service import mission_service, pick_options, select_mission


def test_select_mission_rules():
    options = ["m-general-gratitud", "m-viajes-maleta", "m-general-suenos"]
    assert select_mission(options, {"a": "m-general-gratitud", "b": "m-general-gratitud"}) == "m-general-gratitud"
    # different votes: more points wins
    assert select_mission(options, {"a": "m-general-gratitud", "b": "m-viajes-maleta"}) == "m-viajes-maleta"
    # equal points: earlier option wins
    assert select_mission(
        ["m-cine-maraton", "m-general-suenos"], {"a": "m-general-suenos", "b": "m-cine-maraton"}
    ) == "m-cine-maraton"


def test_pick_options_deterministic_and_prefers_shared():
    first = pick_options("c1", 1, ["viajes", "general"], set())
    assert first == pick_options("c1", 1, ["viajes", "general"], set())
    assert len(first) == 3
    assert all(MISSIONS_BY_ID[m].category in ("viajes", "general") for m in first)


def test_pick_options_skips_used():
    used = {"m-general-suenos", "m-general-plan"}
    options = pick_options("c1", 2, ["general"], used)
    assert not used & set(options)


async def open_round(connection_id, user):
    view = await mission_service.get_current(connection_id, user.id)
    return view["currentRound"]


async def test_round_vote_respond_complete(active_connection):
    connection_id, ana, bruno = await active_connection()
    current = await open_round(connection_id, ana)
    assert current["number"] == 1
    assert current["status"] == "VOTING"
    assert len(current["options"]) == 3
    # the same round is returned while it is open
    assert (await open_round(connection_id, bruno))["roundId"] == current["roundId"]

    option_ids = [o["id"] for o in current["options"]]
    with pytest.raises(ValidationError):
        await mission_service.vote(connection_id, ana.id, current["roundId"], "m-unknown")
    view = await mission_service.vote(connection_id, ana.id, current["roundId"], option_ids[0])
    assert view["currentRound"]["userVoted"] is True
    assert view["selectedMission"] is None
    with pytest.raises(DuplicateSubmission):
        await mission_service.vote(connection_id, ana.id, current["roundId"], option_ids[1])

    view = await mission_service.vote(connection_id, bruno.id, current["roundId"], option_ids[0])
    assert view["currentRound"]["status"] == "ACTIVE"
    assert view["selectedMission"]["id"] == option_ids[0]

    view = await mission_service.respond(connection_id, ana.id, current["roundId"], "Mi respuesta")
    assert view["otherResponse"] is None
    view = await mission_service.respond(connection_id, bruno.id, current["roundId"], "La mía")
    assert view["bothResponded"] is True
    assert view["otherResponse"]["response"] == "Mi respuesta"

    summary = await mission_service.get_current(connection_id, ana.id)
    assert summary["completedRounds"] == 1
    assert summary["pointsEarned"] == MISSIONS_BY_ID[option_ids[0]].points
    assert summary["currentRound"]["number"] == 2


async def test_respond_requires_active_round(active_connection):
    connection_id, ana, _ = await active_connection()
    current = await open_round(connection_id, ana)
    with pytest.raises(InvalidTransition):
        await mission_service.respond(connection_id, ana.id, current["roundId"], "demasiado pronto")
    with pytest.raises(ValidationError):
        await mission_service.respond(connection_id, ana.id, current["roundId"], "")


async def test_skip_opens_next_round(active_connection):
    connection_id, ana, _ = await active_connection()
    current = await open_round(connection_id, ana)
    skipped = await mission_service.skip(connection_id, ana.id, current["roundId"])
    assert skipped["currentRound"]["status"] == "SKIPPED"
    assert (await open_round(connection_id, ana))["number"] == 2


async def test_overdue_round_expires(active_connection):
    connection_id, ana, bruno = await active_connection()
    current = await open_round(connection_id, ana)
    async with get_db() as db:
        await db.execute(
            update(MissionRound)
            .where(MissionRound.id == current["roundId"])
            .values(voting_ends_at=datetime.utcnow() - timedelta(minutes=1))
        )
    with pytest.raises(InvalidTransition):
        await mission_service.vote(connection_id, bruno.id, current["roundId"], current["options"][0]["id"])
    async with get_db() as db:
        stored = await db.get(MissionRound, current["roundId"])
    assert stored.status == "EXPIRED"
    with pytest.raises(InvalidTransition):
        await mission_service.skip(connection_id, ana.id, current["roundId"])
    assert (await open_round(connection_id, ana))["number"] == 2


async def test_expire_rounds_job(active_connection):
    connection_id, ana, _ = await active_connection()
    await open_round(connection_id, ana)
    assert await mission_service.expire_rounds(datetime.utcnow() + timedelta(days=2)) == 1
    assert await mission_service.expire_rounds(datetime.utcnow() + timedelta(days=2)) == 0


async def test_no_new_round_once_ended(active_connection):
    connection_id, ana, _ = await active_connection()
    await connection_service.dissolve(connection_id, ana.id, " ".join(["motivo"] * 20))
    view = await mission_service.get_current(connection_id, ana.id)
    assert view["currentRound"] is None


async def test_missions_do_not_change_progress(active_connection):
    connection_id, ana, bruno = await active_connection()
    current = await open_round(connection_id, ana)
    option = current["options"][0]["id"]
    await mission_service.vote(connection_id, ana.id, current["roundId"], option)
    await mission_service.vote(connection_id, bruno.id, current["roundId"], option)
    await mission_service.respond(connection_id, ana.id, current["roundId"], "a")
    await mission_service.respond(connection_id, bruno.id, current["roundId"], "b")
    assert (await connection_service.get_connection(connection_id, ana.id)).progress == 0
