# app/domains/nucleus/api.py
from fastapi import APIRouter, Depends

from app.domains.auth.dependencies import get_current_user

from .entities import ActivityCategory
from .games import game_service
from .schemas import (
    AnswerRequest,
    GuessLieRequest,
    PhotoSubmission,
    PhraseAnswersRequest,
    PhraseVotesRequest,
    QuestionAnswersRequest,
    TruthOrLieRequest,
    VoiceSubmission,
)
from .service import nucleus_service

router = APIRouter()


@router.get("/{connection_id}")
async def get_overview(connection_id: str, user=Depends(get_current_user)):
    """Progress, shared categories and the state of every section"""
    return await nucleus_service.get_overview(connection_id, user.id)


@router.get("/{connection_id}/questions/{category}")
async def get_category_questions(connection_id: str, category: str, user=Depends(get_current_user)):
    return await nucleus_service.get_category_questions(connection_id, user.id, category)


@router.post("/{connection_id}/questions/{question_id}/answer")
async def answer_question(
    connection_id: str, question_id: str, request: AnswerRequest, user=Depends(get_current_user)
):
    return await nucleus_service.answer_question(connection_id, user.id, question_id, request.response)


@router.get("/{connection_id}/history")
async def get_history(connection_id: str, user=Depends(get_current_user)):
    return await nucleus_service.get_history(connection_id, user.id)


@router.get("/{connection_id}/photos")
async def get_photos(connection_id: str, user=Depends(get_current_user)):
    return await nucleus_service.get_prompt(connection_id, user.id, ActivityCategory.PHOTO)


@router.post("/{connection_id}/photos")
async def submit_photo(connection_id: str, request: PhotoSubmission, user=Depends(get_current_user)):
    return await nucleus_service.submit_photo(connection_id, user.id, request.photo_url, request.prompt)


@router.get("/{connection_id}/voice")
async def get_voice(connection_id: str, user=Depends(get_current_user)):
    return await nucleus_service.get_prompt(connection_id, user.id, ActivityCategory.VOICE)


@router.post("/{connection_id}/voice")
async def submit_voice(connection_id: str, request: VoiceSubmission, user=Depends(get_current_user)):
    return await nucleus_service.submit_voice(
        connection_id, user.id, request.audio_url, request.duration, request.prompt,
    )


# Mini-games

@router.get("/{connection_id}/games")
async def list_games(connection_id: str, user=Depends(get_current_user)):
    return await game_service.list_games(connection_id, user.id)


@router.post("/{connection_id}/games/{game_type}/start")
async def start_game(connection_id: str, game_type: str, user=Depends(get_current_user)):
    return await game_service.start(connection_id, user.id, game_type)


@router.get("/{connection_id}/games/{game_type}/results")
async def game_results(connection_id: str, game_type: str, user=Depends(get_current_user)):
    return await game_service.results(connection_id, user.id, game_type)


@router.post("/{connection_id}/games/{game_id}/truth-or-lie")
async def submit_truth_or_lie(
    connection_id: str, game_id: str, request: TruthOrLieRequest, user=Depends(get_current_user)
):
    return await game_service.submit_truth_or_lie(
        connection_id, game_id, user.id, request.statements, request.lie_index,
    )


@router.post("/{connection_id}/games/{game_id}/guess-lie")
async def guess_lie(connection_id: str, game_id: str, request: GuessLieRequest, user=Depends(get_current_user)):
    return await game_service.guess_lie(connection_id, game_id, user.id, request.guess_index, request.guess)


@router.post("/{connection_id}/games/{game_id}/ga-fill")
async def fill_answers(
    connection_id: str, game_id: str, request: QuestionAnswersRequest, user=Depends(get_current_user)
):
    return await game_service.fill_answers(connection_id, game_id, user.id, request.answers)


@router.post("/{connection_id}/games/{game_id}/guess-answer")
async def guess_answers(
    connection_id: str, game_id: str, request: QuestionAnswersRequest, user=Depends(get_current_user)
):
    return await game_service.guess_answers(connection_id, game_id, user.id, request.answers)


@router.post("/{connection_id}/games/{game_id}/complete-phrase")
async def complete_phrases(
    connection_id: str, game_id: str, request: PhraseAnswersRequest, user=Depends(get_current_user)
):
    return await game_service.complete_phrases(connection_id, game_id, user.id, request.answers)


@router.post("/{connection_id}/games/{game_id}/vote-phrases")
async def vote_phrases(
    connection_id: str, game_id: str, request: PhraseVotesRequest, user=Depends(get_current_user)
):
    return await game_service.vote_phrases(connection_id, game_id, user.id, request.votes)
