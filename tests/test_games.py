import pytest

from app.core.errors import DuplicateSubmission, InvalidTransition, NotFound, ValidationError
from app.domains.nucleus.games import game_service, shuffled_statements

STATEMENTS = ["Hablo tres idiomas", "Tengo un gato", "He saltado en paracaídas"]


async def start(connection_id, user, game_type):
    return await game_service.start(connection_id, user.id, game_type)


async def test_start_is_idempotent_per_type(active_connection):
    connection_id, ana, bruno = await active_connection()
    first = await start(connection_id, ana, "truth_or_lie")
    second = await start(connection_id, bruno, "TRUTH_OR_LIE")
    assert first["gameId"] == second["gameId"]
    assert second["status"] == "IN_PROGRESS"
    with pytest.raises(ValidationError):
        await start(connection_id, ana, "CHESS")


async def test_truth_or_lie_flow(active_connection):
    connection_id, ana, bruno = await active_connection()
    game_id = (await start(connection_id, ana, "TRUTH_OR_LIE"))["gameId"]

    with pytest.raises(ValidationError):
        await game_service.submit_truth_or_lie(connection_id, game_id, ana.id, STATEMENTS[:2])
    with pytest.raises(ValidationError):
        await game_service.submit_truth_or_lie(connection_id, game_id, ana.id, STATEMENTS, lie_index=3)

    result = await game_service.submit_truth_or_lie(connection_id, game_id, ana.id, STATEMENTS, lie_index=0)
    assert result == {**result, "submitted": True, "otherUserReady": False}
    with pytest.raises(DuplicateSubmission):
        await game_service.submit_truth_or_lie(connection_id, game_id, ana.id, STATEMENTS)
    with pytest.raises(InvalidTransition):
        await game_service.guess_lie(connection_id, game_id, ana.id, guess_index=0)

    await game_service.submit_truth_or_lie(connection_id, game_id, bruno.id, ["Uno", "Dos", "Tres"])
    view = (await game_service.list_games(connection_id, bruno.id))[2]
    assert view["needsGuess"] is True
    shown = view["statements"]
    assert sorted(shown) == sorted(STATEMENTS)

    guess = await game_service.guess_lie(connection_id, game_id, bruno.id, guess_index=shown.index(STATEMENTS[0]))
    assert guess["correct"] is True
    assert guess["gameCompleted"] is False
    with pytest.raises(DuplicateSubmission):
        await game_service.guess_lie(connection_id, game_id, bruno.id, guess_index=0)

    # bruno's lie defaults to the last statement
    guess = await game_service.guess_lie(connection_id, game_id, ana.id, guess="Uno")
    assert guess["correct"] is False
    assert guess["correctStatement"] == "Tres"
    assert guess["gameCompleted"] is True

    results = await game_service.results(connection_id, ana.id, "TRUTH_OR_LIE")
    assert results["otherStatements"]["lie"] == "Tres"
    assert results["myGuess"]["correct"] is False


def test_statement_order_is_stable_and_hides_position():
    state = {"truths": ["a", "b"], "lie": "c"}
    assert shuffled_statements("g1", "u1", state) == shuffled_statements("g1", "u1", state)
    assert sorted(shuffled_statements("g1", "u1", state)) == ["a", "b", "c"]


async def test_other_lie_hidden_until_guess(active_connection):
    connection_id, ana, bruno = await active_connection()
    game_id = (await start(connection_id, ana, "TRUTH_OR_LIE"))["gameId"]
    await game_service.submit_truth_or_lie(connection_id, game_id, ana.id, STATEMENTS)
    await game_service.submit_truth_or_lie(connection_id, game_id, bruno.id, ["Uno", "Dos", "Tres"])
    results = await game_service.results(connection_id, ana.id, "TRUTH_OR_LIE")
    assert results["otherStatements"] is None
    assert results["myStatements"]["lie"] == STATEMENTS[2]


async def test_guess_answer_validation_and_score(active_connection):
    connection_id, ana, bruno = await active_connection()
    game_id = (await start(connection_id, ana, "GUESS_ANSWER"))["gameId"]
    with pytest.raises(ValidationError):
        await game_service.fill_answers(connection_id, game_id, ana.id, {"ga-1": "Hacer deporte"})

    mine = {"ga-1": "Hacer deporte", "ga-2": "Ciudad europea", "ga-3": "El ruido"}
    theirs = {"ga-1": "Dormir hasta tarde", "ga-2": "Ciudad europea", "ga-3": "Tener hambre"}
    await game_service.fill_answers(connection_id, game_id, ana.id, mine)
    await game_service.fill_answers(connection_id, game_id, bruno.id, theirs)

    result = await game_service.guess_answers(connection_id, game_id, ana.id, mine)
    assert result["score"] == 1
    assert result["total"] == 3
    assert [d["isCorrect"] for d in result["questionsDetail"]] == [False, True, False]


async def test_game_from_other_connection_not_found(active_connection):
    connection_id, ana, _ = await active_connection()
    other_id, carla, _ = await active_connection()
    game_id = (await start(other_id, carla, "COMPLETE_PHRASE"))["gameId"]
    with pytest.raises(NotFound):
        await game_service.complete_phrases(connection_id, game_id, ana.id, ["escuchar", "un brunch", "un café"])


async def test_wrong_game_type_rejected(active_connection):
    connection_id, ana, _ = await active_connection()
    game_id = (await start(connection_id, ana, "COMPLETE_PHRASE"))["gameId"]
    with pytest.raises(ValidationError):
        await game_service.fill_answers(
            connection_id, game_id, ana.id, {"ga-1": "Hacer deporte", "ga-2": "Ciudad europea", "ga-3": "El ruido"},
        )


async def test_completed_game_credits_one_unit(active_connection):
    connection_id, ana, bruno = await active_connection()
    game_id = (await start(connection_id, ana, "COMPLETE_PHRASE"))["gameId"]
    answers = ["hacer reír", "un brunch", "mirar el móvil"]
    with pytest.raises(ValidationError):
        await game_service.complete_phrases(connection_id, game_id, ana.id, ["volar", "un brunch", "un café"])
    await game_service.complete_phrases(connection_id, game_id, ana.id, answers)
    await game_service.complete_phrases(connection_id, game_id, bruno.id, answers)
    await game_service.vote_phrases(connection_id, game_id, ana.id, [True, True, False])
    result = await game_service.vote_phrases(connection_id, game_id, bruno.id, [True, False, False])
    assert result["gameCompleted"] is True

    results = await game_service.results(connection_id, ana.id, "COMPLETE_PHRASE")
    assert results["myScore"] == 1
    assert results["otherScore"] == 2
    with pytest.raises(InvalidTransition):
        await game_service.vote_phrases(connection_id, game_id, ana.id, [True, True, True])
