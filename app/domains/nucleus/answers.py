# app/domains/nucleus/answers.py
"""
Question answers are validated as a union tagged by the question type; the
option checks against the question template run afterwards.
"""
from typing import Annotated, Any, List, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from app.core.errors import ValidationError

from .entities import Question, QuestionType

TEXT_MAX_LENGTH = 500


class _Answer(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")


class TextAnswer(_Answer):
    type: Literal["TEXT"]
    response: str = Field(min_length=1, max_length=TEXT_MAX_LENGTH)


class ChoiceAnswer(_Answer):
    type: Literal["CHOICE"]
    response: str = Field(min_length=1)


class MultipleAnswer(_Answer):
    type: Literal["MULTIPLE"]
    response: List[str] = Field(min_length=1)


class ThisOrThatAnswer(_Answer):
    type: Literal["THIS_OR_THAT"]
    response: str = Field(min_length=1)


class RankingAnswer(_Answer):
    type: Literal["RANKING"]
    response: List[str] = Field(min_length=1)


Answer = Annotated[
    Union[TextAnswer, ChoiceAnswer, MultipleAnswer, ThisOrThatAnswer, RankingAnswer],
    Field(discriminator="type"),
]

_adapter = TypeAdapter(Answer)


def _first_error(exc: PydanticValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid answer"
    return errors[0].get("msg", "Invalid answer")


def validate_answer(question: Question, response: Any) -> Any:
    """Return the normalised response or raise ValidationError"""
    try:
        answer = _adapter.validate_python({"type": question.type.value, "response": response})
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid {question.type.value} answer: {_first_error(e)}")

    options = list(question.options)
    value = answer.response

    if question.type in (QuestionType.CHOICE, QuestionType.THIS_OR_THAT):
        if question.type == QuestionType.THIS_OR_THAT and len(options) != 2:
            raise ValidationError("This question is misconfigured")
        if value not in options:
            raise ValidationError("Answer must be one of the options")

    elif question.type == QuestionType.MULTIPLE:
        if len(set(value)) != len(value):
            raise ValidationError("Options cannot repeat")
        if any(v not in options for v in value):
            raise ValidationError("Answer must be a subset of the options")
        # keep catalogue order so both answers compare equal
        value = [o for o in options if o in value]

    elif question.type == QuestionType.RANKING:
        if sorted(value) != sorted(options):
            raise ValidationError("Ranking must order every option exactly once")

    return value
