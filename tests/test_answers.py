import pytest

from app.core.errors import ValidationError
from app.domains.nucleus.answers import validate_answer
from app.domains.nucleus.catalog import QUESTIONS, QUESTIONS_BY_ID, shared_categories


def q(question_id):
    return QUESTIONS_BY_ID[question_id]


def test_text_answer_trimmed_and_bounded():
    assert validate_answer(q("general-1"), "  la honestidad ") == "la honestidad"
    with pytest.raises(ValidationError):
        validate_answer(q("general-1"), "   ")
    with pytest.raises(ValidationError):
        validate_answer(q("general-1"), "x" * 501)


def test_choice_must_be_an_option():
    assert validate_answer(q("general-3"), "Regalos") == "Regalos"
    with pytest.raises(ValidationError):
        validate_answer(q("general-3"), "Dinero")
    with pytest.raises(ValidationError):
        validate_answer(q("general-3"), ["Regalos"])


def test_this_or_that():
    assert validate_answer(q("general-2"), "Madrugar") == "Madrugar"
    with pytest.raises(ValidationError):
        validate_answer(q("general-2"), "Ambos")


def test_multiple_is_normalised_subset():
    question = q("general-6")
    assert validate_answer(question, ["Paseo", "Cena"]) == ["Cena", "Paseo"]
    with pytest.raises(ValidationError):
        validate_answer(question, ["Cena", "Cena"])
    with pytest.raises(ValidationError):
        validate_answer(question, ["Cena", "Karaoke"])
    with pytest.raises(ValidationError):
        validate_answer(question, [])


def test_ranking_is_a_permutation():
    question = q("general-4")
    ranking = ["Humor", "Confianza", "Comunicación", "Pasión"]
    assert validate_answer(question, ranking) == ranking
    with pytest.raises(ValidationError):
        validate_answer(question, ranking[:3])
    with pytest.raises(ValidationError):
        validate_answer(question, ranking[:3] + ["Humor"])


def test_catalogue_is_consistent():
    assert len(QUESTIONS_BY_ID) == len(QUESTIONS)
    for question in QUESTIONS:
        if question.type.value == "THIS_OR_THAT":
            assert len(question.options) == 2
    # five general questions are always available
    assert len([x for x in QUESTIONS if x.category == "general"]) >= 5


def test_shared_categories_always_include_general():
    assert shared_categories(["rock", "cine"], ["jazz"]) == ["musica", "general"]
    assert shared_categories([], ["jazz"]) == ["general"]
