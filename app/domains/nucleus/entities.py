from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class ActivityCategory(str, Enum):
    QUESTION = "QUESTION"
    PHOTO = "PHOTO"
    VOICE = "VOICE"
    GAME = "GAME"
    PLACE = "PLACE"


class QuestionType(str, Enum):
    TEXT = "TEXT"
    CHOICE = "CHOICE"
    MULTIPLE = "MULTIPLE"
    THIS_OR_THAT = "THIS_OR_THAT"
    RANKING = "RANKING"


class GameType(str, Enum):
    GUESS_ANSWER = "GUESS_ANSWER"
    COMPLETE_PHRASE = "COMPLETE_PHRASE"
    TRUTH_OR_LIE = "TRUTH_OR_LIE"


class GameStatus(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


@dataclass(frozen=True)
class Question:
    id: str
    category: str
    type: QuestionType
    text: str
    options: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "category": self.category,
            "type": self.type.value,
            "text": self.text,
            "options": list(self.options),
        }


@dataclass(frozen=True)
class CategoryInfo:
    key: str
    name: str
    emoji: str


@dataclass
class Submission:
    """Outcome of one ledger submission, used to emit events after commit"""
    connection_id: str
    user_id: str
    category: str
    key: str
    both_completed: bool
    previous_progress: int
    progress: int
    previous_chat_level: str
    chat_level: str
    status: str
    participants: List[str] = field(default_factory=list)
    completed_now: bool = False
    record_id: Optional[str] = None

    @property
    def progress_changed(self) -> bool:
        return self.progress != self.previous_progress
