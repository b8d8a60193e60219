# app/domains/nucleus/games.py
"""
Two-player mini-games played inside a nucleus.

Each game keeps one JSON state per player. A player's part is finished when
they make their final move (the lie guess, the answer guesses, the phrase
votes); at that point the game is credited to the ledger under GAME with the
game type as key, so the unit counts once both players are done.
"""
import copy
import random
from typing import Any, Dict, List, Optional

from app.core.database import get_db
from app.core.errors import DuplicateSubmission, InvalidTransition, NotFound, ValidationError
from app.domains.auth import repository as users_repository
from app.domains.connections import repository as connections_repository
from app.domains.connections.service import check_participant
from app.shared.utils.logger import get_logger

from . import ledger, repository
from .catalog import DEFAULT_LIE_INDEX, GUESS_ANSWER_QUESTIONS, PHRASES, TRUTH_OR_LIE_STATEMENTS
from .entities import ActivityCategory, GameStatus, GameType
from .models import MiniGame

logger = get_logger(__name__)


def _parse_type(game_type: str) -> GameType:
    try:
        return GameType(str(game_type).upper())
    except ValueError:
        raise ValidationError(f"Unknown game type: {game_type}")


def shuffled_statements(game_id: str, author_id: str, player_state: Dict) -> List[str]:
    """The author's statements in a stable order that does not reveal the lie"""
    statements = list(player_state["truths"]) + [player_state["lie"]]
    random.Random(f"{game_id}:{author_id}").shuffle(statements)
    return statements


class GameService:
    async def list_games(self, connection_id: str, user_id: str) -> List[Dict]:
        async with get_db() as db:
            connection = await self._participant_connection(db, connection_id, user_id)
            games = {g.type: g for g in await repository.list_games(db, connection_id)}

        other_id = connection.other_user_id(user_id)
        result = []
        for game_type in GameType:
            game = games.get(game_type.value)
            if game is None:
                result.append({"gameId": None, "type": game_type.value, "status": GameStatus.PENDING.value})
            else:
                result.append(self.game_view(game, user_id, other_id))
        return result

    async def start(self, connection_id: str, user_id: str, game_type: str) -> Dict:
        game_type = _parse_type(game_type)
        async with get_db() as db:
            connection = await ledger.lock_connection(db, connection_id, user_id)
            game = await repository.get_game_by_type(db, connection_id, game_type.value)
            if game is None:
                game = await repository.create_game(
                    db, connection_id, game_type.value, user_id, GameStatus.IN_PROGRESS.value,
                )
                logger.info(f"Game {game.id} ({game_type.value}) started in {connection_id} by {user_id}")
            elif game.status == GameStatus.PENDING.value:
                game.status = GameStatus.IN_PROGRESS.value
        return self.game_view(game, user_id, connection.other_user_id(user_id))

    # TRUTH_OR_LIE

    async def submit_truth_or_lie(
        self, connection_id: str, game_id: str, user_id: str, statements: List[str], lie_index: Optional[int] = None
    ) -> Dict:
        cleaned = [str(s).strip() for s in statements or []]
        if len(cleaned) != TRUTH_OR_LIE_STATEMENTS or not all(cleaned):
            raise ValidationError(f"Write exactly {TRUTH_OR_LIE_STATEMENTS} statements")
        if len(set(cleaned)) != len(cleaned):
            raise ValidationError("Statements must be different")
        lie_index = DEFAULT_LIE_INDEX if lie_index is None else lie_index
        if not 0 <= lie_index < TRUTH_OR_LIE_STATEMENTS:
            raise ValidationError("lieIndex is out of range")

        def step(game: MiniGame, state: Dict, me: Dict, other: Dict):
            if "lie" in me:
                raise DuplicateSubmission("Statements already submitted")
            me["lie"] = cleaned[lie_index]
            me["truths"] = [s for i, s in enumerate(cleaned) if i != lie_index]
            return {"submitted": True, "otherUserReady": "lie" in other}

        return await self._play(connection_id, game_id, user_id, GameType.TRUTH_OR_LIE, step)

    async def guess_lie(
        self, connection_id: str, game_id: str, user_id: str, guess_index: Optional[int] = None,
        guess: Optional[str] = None,
    ) -> Dict:
        def step(game: MiniGame, state: Dict, me: Dict, other: Dict):
            if "lie" not in me:
                raise InvalidTransition("Submit your own statements first")
            if "lie" not in other:
                raise InvalidTransition("The other player has not written their statements yet")
            if "guess" in me:
                raise DuplicateSubmission("You already guessed")

            shown = shuffled_statements(game.id, self._other_id(state, user_id), other)
            if guess is not None:
                guessed = str(guess).strip()
                if guessed not in shown:
                    raise ValidationError("Guess must be one of the statements")
            elif guess_index is not None and 0 <= guess_index < len(shown):
                guessed = shown[guess_index]
            else:
                raise ValidationError("Provide guessIndex or guess")

            correct = guessed == other["lie"]
            me["guess"] = {"guessed": guessed, "correct": correct}
            return {"correct": correct, "correctStatement": other["lie"], "truths": list(other["truths"])}

        return await self._play(connection_id, game_id, user_id, GameType.TRUTH_OR_LIE, step, finishes=True)

    # GUESS_ANSWER

    async def fill_answers(self, connection_id: str, game_id: str, user_id: str, answers: Dict[str, str]) -> Dict:
        answers = self._check_question_answers(answers)

        def step(game: MiniGame, state: Dict, me: Dict, other: Dict):
            if "answers" in me:
                raise DuplicateSubmission("Answers already submitted")
            me["answers"] = answers
            return {"submitted": True, "otherUserReady": "answers" in other}

        return await self._play(connection_id, game_id, user_id, GameType.GUESS_ANSWER, step)

    async def guess_answers(self, connection_id: str, game_id: str, user_id: str, answers: Dict[str, str]) -> Dict:
        guesses = self._check_question_answers(answers)

        def step(game: MiniGame, state: Dict, me: Dict, other: Dict):
            if "answers" not in me:
                raise InvalidTransition("Answer the questions about yourself first")
            if "answers" not in other:
                raise InvalidTransition("The other player has not answered yet")
            if "guesses" in me:
                raise DuplicateSubmission("You already guessed")

            detail = []
            for q in GUESS_ANSWER_QUESTIONS:
                chosen = guesses[q["questionId"]]
                actual = other["answers"][q["questionId"]]
                detail.append({
                    "questionText": q["text"], "chosen": chosen, "correct": actual, "isCorrect": chosen == actual,
                })
            me["guesses"] = guesses
            me["score"] = sum(1 for d in detail if d["isCorrect"])
            return {"score": me["score"], "total": len(detail), "questionsDetail": detail}

        return await self._play(connection_id, game_id, user_id, GameType.GUESS_ANSWER, step, finishes=True)

    # COMPLETE_PHRASE

    async def complete_phrases(self, connection_id: str, game_id: str, user_id: str, answers: List[str]) -> Dict:
        answers = [str(a).strip() for a in answers or []]
        if len(answers) != len(PHRASES):
            raise ValidationError(f"Complete all {len(PHRASES)} phrases")
        for phrase, answer in zip(PHRASES, answers):
            if answer not in phrase["options"]:
                raise ValidationError(f"Invalid option for: {phrase['phrase']}")

        def step(game: MiniGame, state: Dict, me: Dict, other: Dict):
            if "answers" in me:
                raise DuplicateSubmission("Phrases already completed")
            me["answers"] = answers
            return {"submitted": True, "otherUserReady": "answers" in other}

        return await self._play(connection_id, game_id, user_id, GameType.COMPLETE_PHRASE, step)

    async def vote_phrases(self, connection_id: str, game_id: str, user_id: str, votes: List[bool]) -> Dict:
        votes = list(votes or [])
        if len(votes) != len(PHRASES) or any(not isinstance(v, bool) for v in votes):
            raise ValidationError(f"Vote true or false on all {len(PHRASES)} phrases")

        def step(game: MiniGame, state: Dict, me: Dict, other: Dict):
            if "answers" not in me:
                raise InvalidTransition("Complete your phrases first")
            if "answers" not in other:
                raise InvalidTransition("The other player has not completed their phrases yet")
            if "votes" in me:
                raise DuplicateSubmission("You already voted")
            me["votes"] = votes
            return {"voted": True, "otherScore": sum(1 for v in votes if v)}

        return await self._play(connection_id, game_id, user_id, GameType.COMPLETE_PHRASE, step, finishes=True)

    async def results(self, connection_id: str, user_id: str, game_type: str) -> Dict:
        game_type = _parse_type(game_type)
        async with get_db() as db:
            connection = await self._participant_connection(db, connection_id, user_id)
            game = await repository.get_game_by_type(db, connection_id, game_type.value)
        if game is None:
            raise NotFound("Game not started")

        other_id = connection.other_user_id(user_id)
        users = await users_repository.get_users_by_ids([user_id, other_id])
        me = game.state.get(user_id, {})
        other = game.state.get(other_id, {})
        result = {
            "gameId": game.id,
            "type": game.type,
            "status": game.status,
            "myName": users[user_id].name if user_id in users else None,
            "otherName": users[other_id].name if other_id in users else None,
        }

        if game_type == GameType.TRUTH_OR_LIE:
            result.update({
                "myStatements": {"truths": me["truths"], "lie": me["lie"]} if "lie" in me else None,
                # the other's lie stays hidden until the viewer has guessed
                "otherStatements": (
                    {"truths": other["truths"], "lie": other["lie"]} if "lie" in other and "guess" in me else None
                ),
                "myGuess": me.get("guess"),
                "otherGuess": other.get("guess"),
            })
        elif game_type == GameType.GUESS_ANSWER:
            result.update({
                "myScore": me.get("score"),
                "otherScore": other.get("score"),
                "total": len(GUESS_ANSWER_QUESTIONS),
                "myGuessDetail": self._guess_detail(me.get("guesses"), other.get("answers")),
                "otherGuessDetail": self._guess_detail(other.get("guesses"), me.get("answers")),
            })
        else:
            result.update({
                "myGuesses": self._phrase_detail(me.get("answers"), other.get("votes"), "myAnswer"),
                "otherGuesses": self._phrase_detail(other.get("answers"), me.get("votes"), "theirAnswer"),
                "myScore": sum(1 for v in other.get("votes") or [] if v),
                "otherScore": sum(1 for v in me.get("votes") or [] if v),
            })
        return result

    def game_view(self, game: MiniGame, user_id: str, other_id: str) -> Dict:
        """What one player sees of a game: content and whose move it is"""
        me = game.state.get(user_id, {})
        other = game.state.get(other_id, {})
        view: Dict[str, Any] = {"gameId": game.id, "type": game.type, "status": game.status}

        if game.type == GameType.TRUTH_OR_LIE.value:
            view.update({
                "needsInput": "lie" not in me,
                "otherUserReady": "lie" in other,
                "needsGuess": "lie" in me and "lie" in other and "guess" not in me,
                "statements": shuffled_statements(game.id, other_id, other) if "lie" in other else None,
            })
        elif game.type == GameType.GUESS_ANSWER.value:
            view.update({
                "questions": copy.deepcopy(GUESS_ANSWER_QUESTIONS),
                "needsFill": "answers" not in me,
                "waitingFill": "answers" in me and "answers" not in other,
                "needsGuess": "answers" in me and "answers" in other and "guesses" not in me,
                "waitingGuess": "guesses" in me and "guesses" not in other,
                "myScore": me.get("score"),
                "myTotal": len(GUESS_ANSWER_QUESTIONS),
            })
        else:
            view.update({
                "phrases": copy.deepcopy(PHRASES),
                "needsInput": "answers" not in me,
                "needsVote": "answers" in me and "answers" in other and "votes" not in me,
                "otherPhrases": (
                    [{"phrase": p["phrase"], "chosenAnswer": a} for p, a in zip(PHRASES, other["answers"])]
                    if "answers" in other else None
                ),
            })
        return view

    async def _play(self, connection_id: str, game_id: str, user_id: str, game_type: GameType, step, finishes=False):
        submission = None
        async with get_db() as db:
            connection = await ledger.lock_connection(db, connection_id, user_id)
            game = await repository.get_game(db, game_id, for_update=True)
            if game is None or game.connection_id != connection_id:
                raise NotFound("Game not found")
            if game.type != game_type.value:
                raise ValidationError(f"This is not a {game_type.value} game")
            if game.status != GameStatus.IN_PROGRESS.value:
                raise InvalidTransition(f"Game is {game.status}")

            other_id = connection.other_user_id(user_id)
            state = copy.deepcopy(game.state or {})
            me = state.setdefault(user_id, {})
            other = state.setdefault(other_id, {})
            result = step(game, state, me, other)

            if finishes:
                me["finished"] = True
                if other.get("finished"):
                    game.status = GameStatus.COMPLETED.value
                submission = await ledger.submit(
                    db, connection, user_id, ActivityCategory.GAME.value, game_type.value, {"gameId": game.id},
                )
            # reassign so the JSON column is flagged dirty
            game.state = state

        if submission is not None:
            await ledger.publish(submission)
        result["gameCompleted"] = game.status == GameStatus.COMPLETED.value
        result["game"] = self.game_view(game, user_id, other_id)
        return result

    async def _participant_connection(self, db, connection_id: str, user_id: str):
        return check_participant(await connections_repository.get_connection(db, connection_id), user_id)

    @staticmethod
    def _other_id(state: Dict, user_id: str) -> str:
        return next(uid for uid in state if uid != user_id)

    @staticmethod
    def _check_question_answers(answers: Dict[str, str]) -> Dict[str, str]:
        answers = dict(answers or {})
        checked = {}
        for q in GUESS_ANSWER_QUESTIONS:
            value = answers.get(q["questionId"])
            if value not in q["options"]:
                raise ValidationError(f"Answer every question with one of its options ({q['questionId']})")
            checked[q["questionId"]] = value
        return checked

    @staticmethod
    def _guess_detail(guesses: Optional[Dict], actual: Optional[Dict]) -> Optional[List[Dict]]:
        if not guesses:
            return None
        return [
            {
                "questionText": q["text"],
                "myGuess": guesses.get(q["questionId"]),
                "otherActual": (actual or {}).get(q["questionId"]),
                "isCorrect": guesses.get(q["questionId"]) == (actual or {}).get(q["questionId"]),
            }
            for q in GUESS_ANSWER_QUESTIONS
        ]

    @staticmethod
    def _phrase_detail(answers: Optional[List], votes: Optional[List], answer_key: str) -> Optional[List[Dict]]:
        if not answers:
            return None
        return [
            {"phrase": p["phrase"], answer_key: a, "correct": votes[i] if votes else None}
            for i, (p, a) in enumerate(zip(PHRASES, answers))
        ]


game_service = GameService()
