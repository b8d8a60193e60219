# app/domains/missions/service.py
"""
Mission rounds: both users vote on one of three mission options, then both
respond to the selected mission. Rounds are independent of nucleus progress.
"""
import copy
import random
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from app.core.config import settings
from app.core.database import get_db
from app.core.errors import DuplicateSubmission, InvalidTransition, NotFound, ValidationError
from app.core.event_bus import event_bus
from app.domains.auth import repository as users_repository
from app.domains.compatibility import shared_interests
from app.domains.connections import repository as connections_repository
from app.domains.connections.entities import nucleus_open
from app.domains.connections.service import check_participant
from app.domains.nucleus.catalog import shared_categories
from app.domains.presence.notifier import presence_notifier
from app.shared.utils.logger import get_logger

from . import repository
from .entities import MISSIONS, MISSIONS_BY_ID, OPTIONS_PER_ROUND, RoundStatus
from .models import MissionRound

logger = get_logger(__name__)


def pick_options(connection_id: str, number: int, categories: List[str], used: set) -> List[str]:
    """Deterministic options for a round, shared categories first"""
    rng = random.Random(f"{connection_id}:{number}")
    fresh = [m for m in MISSIONS if m.id not in used]
    if len(fresh) < OPTIONS_PER_ROUND:
        fresh = list(MISSIONS)
    preferred = [m.id for m in fresh if m.category in categories]
    others = [m.id for m in fresh if m.category not in categories]
    rng.shuffle(preferred)
    rng.shuffle(others)
    return (preferred + others)[:OPTIONS_PER_ROUND]


def select_mission(option_ids: List[str], votes: Dict[str, str]) -> str:
    """Same vote wins; otherwise the higher-points option, then option order"""
    chosen = list(votes.values())
    if len(set(chosen)) == 1:
        return chosen[0]
    return min(chosen, key=lambda mid: (-MISSIONS_BY_ID[mid].points, option_ids.index(mid)))


class MissionService:
    async def get_current(self, connection_id: str, user_id: str) -> Dict:
        async with get_db() as db:
            connection = check_participant(await connections_repository.get_connection(db, connection_id), user_id)
        other_id = connection.other_user_id(user_id)
        users = await users_repository.get_users_by_ids([user_id, other_id])
        me, other = users.get(user_id), users.get(other_id)

        now = datetime.utcnow()
        async with get_db() as db:
            # row lock serialises round creation for the pair
            connection = await connections_repository.get_connection(db, connection_id, for_update=True)

            mission_round = await repository.get_open_round(db, connection_id)
            if mission_round is not None and self._past_deadline(mission_round, now):
                mission_round.status = RoundStatus.EXPIRED.value
                mission_round = None

            rounds = await repository.list_rounds(db, connection_id)
            if mission_round is None and nucleus_open(connection.status, connection.cooled_from):
                number = await repository.last_round_number(db, connection_id) + 1
                categories = shared_categories(me.interests if me else [], other.interests if other else [])
                options = pick_options(
                    connection_id, number, categories, {r.selected_id for r in rounds if r.selected_id},
                )
                mission_round = await repository.create_round(
                    db, connection_id, number, options, now + timedelta(hours=settings.MISSION_VOTING_HOURS),
                )
                logger.info(f"Mission round {number} opened for {connection_id}")

        completed = [r for r in rounds if r.status == RoundStatus.COMPLETED.value]
        view = self.round_view(mission_round, user_id, other_id)
        view.update({
            "sharedInterests": shared_interests(me, other) if me and other else [],
            "otherUserPresent": presence_notifier.is_viewing(connection_id, other_id),
            "completedRounds": len(completed),
            "pointsEarned": sum(MISSIONS_BY_ID[r.selected_id].points for r in completed if r.selected_id in MISSIONS_BY_ID),
        })
        return view

    async def vote(self, connection_id: str, user_id: str, round_id: str, template_id: str) -> Dict:
        await self._expire_if_due(connection_id, user_id, round_id)
        async with get_db() as db:
            connection, mission_round = await self._locked_round(db, connection_id, user_id, round_id)
            if mission_round.status != RoundStatus.VOTING.value:
                raise InvalidTransition(f"Voting is closed ({mission_round.status})")
            if template_id not in mission_round.option_ids:
                raise ValidationError("Vote for one of this round's options")
            if user_id in (mission_round.votes or {}):
                raise DuplicateSubmission("You already voted in this round")

            votes = copy.deepcopy(mission_round.votes or {})
            votes[user_id] = template_id
            mission_round.votes = votes
            other_id = connection.other_user_id(user_id)
            if other_id in votes:
                mission_round.selected_id = select_mission(mission_round.option_ids, votes)
                mission_round.status = RoundStatus.ACTIVE.value
                mission_round.mission_ends_at = datetime.utcnow() + timedelta(hours=settings.MISSION_ACTIVE_HOURS)

        await event_bus.publish("missions:vote", {
            "connection_id": connection_id,
            "round_id": round_id,
            "user_id": user_id,
            "participants": [connection.initiator_id, connection.receiver_id],
            "selected_id": mission_round.selected_id,
        })
        if mission_round.selected_id:
            logger.info(f"Mission {mission_round.selected_id} selected for {connection_id}")
        return self.round_view(mission_round, user_id, other_id)

    async def respond(self, connection_id: str, user_id: str, round_id: str, response: Any) -> Dict:
        if response is None or response == "" or response == {} or response == []:
            raise ValidationError("Response cannot be empty")

        await self._expire_if_due(connection_id, user_id, round_id)
        async with get_db() as db:
            connection, mission_round = await self._locked_round(db, connection_id, user_id, round_id)
            if mission_round.status != RoundStatus.ACTIVE.value:
                raise InvalidTransition(f"Round is {mission_round.status}")
            if user_id in (mission_round.responses or {}):
                raise DuplicateSubmission("You already responded")

            responses = copy.deepcopy(mission_round.responses or {})
            responses[user_id] = {"response": response, "submittedAt": datetime.utcnow().isoformat()}
            mission_round.responses = responses
            other_id = connection.other_user_id(user_id)
            if other_id in responses:
                mission_round.status = RoundStatus.COMPLETED.value
                mission_round.completed_at = datetime.utcnow()
            await connections_repository.touch(db, connection_id)

        if mission_round.status == RoundStatus.COMPLETED.value:
            logger.info(f"Mission round {mission_round.number} completed for {connection_id}")
            await event_bus.publish("missions:completed", {
                "connection_id": connection_id,
                "round_id": round_id,
                "participants": [connection.initiator_id, connection.receiver_id],
            })
        return self.round_view(mission_round, user_id, other_id)

    async def skip(self, connection_id: str, user_id: str, round_id: str) -> Dict:
        await self._expire_if_due(connection_id, user_id, round_id)
        async with get_db() as db:
            connection, mission_round = await self._locked_round(db, connection_id, user_id, round_id)
            if mission_round.status not in (RoundStatus.VOTING.value, RoundStatus.ACTIVE.value):
                raise InvalidTransition(f"Cannot skip a {mission_round.status} round")
            mission_round.status = RoundStatus.SKIPPED.value
        logger.info(f"Mission round {mission_round.number} skipped by {user_id}")
        return self.round_view(mission_round, user_id, connection.other_user_id(user_id))

    async def expire_rounds(self, now: Optional[datetime] = None) -> int:
        async with get_db() as db:
            expired = await repository.expire_rounds(db, now or datetime.utcnow())
        if expired:
            logger.info(f"Expired {expired} mission rounds")
        return expired

    def round_view(self, mission_round: Optional[MissionRound], user_id: str, other_id: str) -> Dict:
        if mission_round is None:
            return {"currentRound": None, "selectedMission": None, "userResponse": None,
                    "otherResponse": None, "bothResponded": False}

        votes = mission_round.votes or {}
        responses = mission_round.responses or {}
        both = user_id in responses and other_id in responses
        selected = MISSIONS_BY_ID.get(mission_round.selected_id) if mission_round.selected_id else None
        mine = responses.get(user_id)
        theirs = responses.get(other_id)
        return {
            "currentRound": {
                "roundId": mission_round.id,
                "number": mission_round.number,
                "status": mission_round.status,
                "options": [MISSIONS_BY_ID[mid].to_dict() for mid in mission_round.option_ids if mid in MISSIONS_BY_ID],
                "votingOpen": mission_round.status == RoundStatus.VOTING.value,
                "votingEndsAt": mission_round.voting_ends_at.isoformat(),
                "missionEndsAt": mission_round.mission_ends_at.isoformat() if mission_round.mission_ends_at else None,
                "userVoted": user_id in votes,
                "userVoteId": votes.get(user_id),
                "otherVoted": other_id in votes,
                "selectedMission": selected.to_dict() if selected else None,
            },
            "selectedMission": selected.to_dict() if selected else None,
            "userResponse": {"userId": user_id, **mine} if mine else None,
            # the other's response is revealed once both responded
            "otherResponse": {"userId": other_id, **theirs} if theirs and both else None,
            "otherResponded": theirs is not None,
            "bothResponded": both,
        }

    async def _expire_if_due(self, connection_id: str, user_id: str, round_id: str):
        """Persist an overdue round as EXPIRED in its own unit of work, then refuse the action"""
        async with get_db() as db:
            _, mission_round = await self._find_round(db, connection_id, user_id, round_id)
            expired = self._past_deadline(mission_round, datetime.utcnow())
            if expired:
                mission_round.status = RoundStatus.EXPIRED.value
        if expired:
            logger.info(f"Mission round {mission_round.number} expired for {connection_id}")
            raise InvalidTransition("This round has expired")

    async def _locked_round(self, db, connection_id: str, user_id: str, round_id: str):
        connection, mission_round = await self._find_round(db, connection_id, user_id, round_id)
        if self._past_deadline(mission_round, datetime.utcnow()):
            # deadline passed after _expire_if_due; the beat task records it
            raise InvalidTransition("This round has expired")
        return connection, mission_round

    async def _find_round(self, db, connection_id: str, user_id: str, round_id: str):
        connection = check_participant(await connections_repository.get_connection(db, connection_id), user_id)
        mission_round = await repository.get_round(db, round_id, for_update=True)
        if mission_round is None or mission_round.connection_id != connection_id:
            raise NotFound("Mission round not found")
        return connection, mission_round

    @staticmethod
    def _past_deadline(mission_round: MissionRound, now: datetime) -> bool:
        if mission_round.status == RoundStatus.VOTING.value:
            return mission_round.voting_ends_at < now
        if mission_round.status == RoundStatus.ACTIVE.value:
            return mission_round.mission_ends_at is not None and mission_round.mission_ends_at < now
        return False


mission_service = MissionService()
