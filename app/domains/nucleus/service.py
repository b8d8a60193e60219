# app/domains/nucleus/service.py
"""
Nucleus read models and the question/photo/voice submissions.
"""
from typing import Any, Dict, List, Optional

from app.core.config import settings
from app.core.database import get_db
from app.core.errors import NotFound, ValidationError
from app.domains.auth import repository as users_repository
from app.domains.compatibility import shared_interests
from app.domains.connections import repository as connections_repository
from app.domains.connections.entities import temperature_for
from app.domains.connections.service import check_participant
from app.shared.utils.logger import get_logger

from . import ledger, repository
from .answers import validate_answer
from .catalog import CATEGORIES, PHOTO_PROMPT, QUESTIONS_BY_ID, VOICE_PROMPT, questions_for, shared_categories
from .entities import ActivityCategory, GameStatus, GameType, Submission

logger = get_logger(__name__)

C = ActivityCategory


def submission_view(submission: Submission) -> Dict:
    return {
        "success": True,
        "bothCompleted": submission.both_completed,
        "progress": submission.progress,
        "progressChanged": submission.progress_changed,
        "chatLevel": submission.chat_level,
        "status": submission.status,
    }


def _is_url(value: str) -> bool:
    return value.startswith("https://") or value.startswith("http://")


class NucleusService:
    async def _load(self, connection_id: str, user_id: str):
        async with get_db() as db:
            connection = check_participant(await connections_repository.get_connection(db, connection_id), user_id)
            records = await repository.list_records(db, connection_id)
            games = await repository.list_games(db, connection_id)
        other_id = connection.other_user_id(user_id)
        users = await users_repository.get_users_by_ids([user_id, other_id])
        return connection, records, games, users.get(user_id), users.get(other_id)

    @staticmethod
    def _index(records) -> Dict[tuple, Dict[str, Any]]:
        """(category, key) -> {user_id: record}"""
        index: Dict[tuple, Dict[str, Any]] = {}
        for r in records:
            index.setdefault((r.category, r.key), {})[r.user_id] = r
        return index

    async def get_overview(self, connection_id: str, user_id: str) -> Dict:
        connection, records, games, me, other = await self._load(connection_id, user_id)
        other_id = connection.other_user_id(user_id)
        index = self._index(records)
        weights = settings.PROGRESS_WEIGHTS

        def both(category: str, key: str) -> bool:
            return len(index.get((category, key), {})) >= 2

        def done_by(category: str, key: str, uid: str) -> bool:
            return uid in index.get((category, key), {})

        categories = []
        for category in shared_categories(me.interests if me else [], other.interests if other else []):
            questions = questions_for(category)
            completed = sum(1 for q in questions if both(C.QUESTION.value, q.id))
            info = CATEGORIES[category]
            categories.append({
                "category": category,
                "name": info.name,
                "emoji": info.emoji,
                "answered": sum(1 for q in questions if done_by(C.QUESTION.value, q.id, user_id)),
                "bothAnswered": completed,
                "total": len(questions),
                "isCompleted": completed == len(questions),
            })

        question_units = len({k for (c, k) in index if c == C.QUESTION.value and both(c, k)})
        games_by_type = {g.type: g for g in games}
        place_units = len({k for (c, k) in index if c == C.PLACE.value and both(c, k)})

        def prompt_section(category: str, prompt: Dict) -> Dict:
            return {
                "prompt": prompt["prompt"],
                "completed": both(category, prompt["key"]),
                "myDone": done_by(category, prompt["key"], user_id),
                "otherDone": done_by(category, prompt["key"], other_id),
                "progress": 1 if both(category, prompt["key"]) else 0,
                "maxProgress": weights[category].max,
            }

        return {
            "connection": {
                "id": connection.id,
                "progress": connection.progress,
                "chatLevel": connection.chat_level,
                "status": connection.status,
                "temperature": temperature_for(connection.last_activity).value,
            },
            "otherUser": {
                "id": other_id,
                "name": other.name if other else None,
                "photos": list(other.photos or []) if other else [],
            },
            "sharedInterests": shared_interests(me, other) if me and other else [],
            "sections": {
                "questions": {
                    "categories": categories,
                    "progress": min(question_units, weights[C.QUESTION.value].max),
                    "maxProgress": weights[C.QUESTION.value].max,
                },
                "photos": prompt_section(C.PHOTO.value, PHOTO_PROMPT),
                "voice": prompt_section(C.VOICE.value, VOICE_PROMPT),
                "games": {
                    "games": [
                        {
                            "type": t.value,
                            "gameId": games_by_type[t.value].id if t.value in games_by_type else None,
                            "status": (
                                games_by_type[t.value].status if t.value in games_by_type
                                else GameStatus.PENDING.value
                            ),
                            "myDone": done_by(C.GAME.value, t.value, user_id),
                        }
                        for t in GameType
                    ],
                    "progress": min(
                        len({k for (c, k) in index if c == C.GAME.value and both(c, k)}),
                        weights[C.GAME.value].max,
                    ),
                    "maxProgress": weights[C.GAME.value].max,
                },
                "places": {
                    "enabled": connection.progress >= settings.PLACES_UNLOCK_PROGRESS,
                    "progress": min(place_units, weights[C.PLACE.value].max),
                    "maxProgress": weights[C.PLACE.value].max,
                },
            },
        }

    async def get_category_questions(self, connection_id: str, user_id: str, category: str) -> Dict:
        connection, records, _, me, other = await self._load(connection_id, user_id)
        category = category.lower()
        if category not in shared_categories(me.interests if me else [], other.interests if other else []):
            raise NotFound("Category not available for this connection")

        other_id = connection.other_user_id(user_id)
        index = self._index(r for r in records if r.category == C.QUESTION.value)
        questions = []
        for q in questions_for(category):
            answers = index.get((C.QUESTION.value, q.id), {})
            mine = answers.get(user_id)
            theirs = answers.get(other_id)
            questions.append({
                **q.to_dict(),
                "userResponse": mine.payload.get("response") if mine else None,
                # the other's answer is revealed once both answered
                "otherResponse": theirs.payload.get("response") if theirs and mine else None,
                "otherAnswered": theirs is not None,
                "bothAnswered": mine is not None and theirs is not None,
            })

        info = CATEGORIES[category]
        return {"category": category, "name": info.name, "emoji": info.emoji, "questions": questions}

    async def answer_question(self, connection_id: str, user_id: str, question_id: str, response: Any) -> Dict:
        question = QUESTIONS_BY_ID.get(question_id)
        if question is None:
            raise NotFound("Question not found")

        _, _, _, me, other = await self._load(connection_id, user_id)
        if question.category not in shared_categories(me.interests if me else [], other.interests if other else []):
            raise ValidationError("This question is not part of your shared categories")

        value = validate_answer(question, response)
        submission = await ledger.record_submission(
            connection_id, user_id, C.QUESTION.value, question.id, {"response": value},
        )
        return submission_view(submission)

    async def get_history(self, connection_id: str, user_id: str) -> List[Dict]:
        connection, records, _, _, _ = await self._load(connection_id, user_id)
        other_id = connection.other_user_id(user_id)
        index = self._index(r for r in records if r.category == C.QUESTION.value)

        grouped: Dict[str, List[Dict]] = {}
        for (_, key), answers in index.items():
            if user_id not in answers or other_id not in answers:
                continue
            question = QUESTIONS_BY_ID.get(key)
            if question is None:
                continue
            grouped.setdefault(question.category, []).append({
                "id": question.id,
                "text": question.text,
                "type": question.type.value,
                "userResponse": answers[user_id].payload.get("response"),
                "otherResponse": answers[other_id].payload.get("response"),
                "answeredAt": max(answers[user_id].created_at, answers[other_id].created_at).isoformat(),
            })

        history = []
        for category, questions in grouped.items():
            info = CATEGORIES.get(category)
            history.append({
                "category": category,
                "name": info.name if info else category,
                "emoji": info.emoji if info else None,
                "questions": questions,
            })
        return history

    async def get_prompt(self, connection_id: str, user_id: str, category: ActivityCategory) -> Dict:
        connection, records, _, _, _ = await self._load(connection_id, user_id)
        prompt = PHOTO_PROMPT if category == C.PHOTO else VOICE_PROMPT
        other_id = connection.other_user_id(user_id)
        answers = self._index(r for r in records if r.category == category.value).get((category.value, prompt["key"]), {})
        mine = answers.get(user_id)
        theirs = answers.get(other_id)
        return {
            "key": prompt["key"],
            "prompt": prompt["prompt"],
            "mine": mine.payload if mine else None,
            "theirs": theirs.payload if theirs and mine else None,
            "otherDone": theirs is not None,
            "completed": mine is not None and theirs is not None,
        }

    async def submit_photo(self, connection_id: str, user_id: str, photo_url: str, prompt: Optional[str] = None) -> Dict:
        photo_url = (photo_url or "").strip()
        if not _is_url(photo_url):
            raise ValidationError("photoUrl must be an http(s) URL")
        submission = await ledger.record_submission(
            connection_id, user_id, C.PHOTO.value, PHOTO_PROMPT["key"],
            {"photoUrl": photo_url, "prompt": prompt or PHOTO_PROMPT["prompt"]},
        )
        return submission_view(submission)

    async def submit_voice(
        self, connection_id: str, user_id: str, audio_url: str, duration: Optional[float] = None,
        prompt: Optional[str] = None,
    ) -> Dict:
        audio_url = (audio_url or "").strip()
        if not _is_url(audio_url):
            raise ValidationError("audioUrl must be an http(s) URL")
        if duration is not None and duration <= 0:
            raise ValidationError("duration must be positive")
        submission = await ledger.record_submission(
            connection_id, user_id, C.VOICE.value, VOICE_PROMPT["key"],
            {"audioUrl": audio_url, "duration": duration, "prompt": prompt or VOICE_PROMPT["prompt"]},
        )
        return submission_view(submission)


nucleus_service = NucleusService()
