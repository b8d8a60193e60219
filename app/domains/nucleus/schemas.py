from typing import Any, Dict, List, Optional

from pydantic import Field

from app.shared.schemas.base import CamelModel


class AnswerRequest(CamelModel):
    response: Any


class PhotoSubmission(CamelModel):
    photo_url: str
    prompt: Optional[str] = None


class VoiceSubmission(CamelModel):
    audio_url: str
    duration: Optional[float] = None
    prompt: Optional[str] = None


class TruthOrLieRequest(CamelModel):
    statements: List[str]
    lie_index: Optional[int] = None


class GuessLieRequest(CamelModel):
    guess_index: Optional[int] = None
    guess: Optional[str] = None


class QuestionAnswersRequest(CamelModel):
    answers: Dict[str, str] = Field(default_factory=dict)


class PhraseAnswersRequest(CamelModel):
    answers: List[str] = Field(default_factory=list)


class PhraseVotesRequest(CamelModel):
    votes: List[bool] = Field(default_factory=list)
