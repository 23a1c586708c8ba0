from typing import Callable

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import get_db, get_session_factory
from app.core.security import get_current_admin
from app.core.websocket import manager
from app.schemas.game.game_base import (
    BotsVisibilityRequest,
    GameStateOut,
    QuizIdRequest,
    RemindRequest,
    RemindTarget,
    SetSlideRequest,
)
from app.services import game_service
from app.services.test_agents import answer_as_bots

game_router = APIRouter(prefix="/api/game", tags=["Game"])
admin_only = [Depends(get_current_admin)]


def _state_response(db: Session, quiz_id: int) -> GameStateOut:
    return GameStateOut.model_validate(game_service.get_state_view(db, quiz_id))


@game_router.post("/start", response_model=GameStateOut, dependencies=admin_only)
def start_game(payload: QuizIdRequest, background_tasks: BackgroundTasks, db: Session = Depends(get_db)):
    state = game_service.start_game(db, payload.quiz_id)
    background_tasks.add_task(manager.broadcast, "game_lobby", {
        "quizId": payload.quiz_id,
        "joinCode": state.quiz.join_code,
    })
    return _state_response(db, payload.quiz_id)


@game_router.post("/open-registration", response_model=GameStateOut, dependencies=admin_only)
def open_registration(payload: QuizIdRequest, background_tasks: BackgroundTasks, db: Session = Depends(get_db)):
    state = game_service.open_registration(db, payload.quiz_id)
    background_tasks.add_task(manager.broadcast, "registration_opened", {
        "quizId": payload.quiz_id,
        "joinCode": state.quiz.join_code,
    })
    return _state_response(db, payload.quiz_id)


@game_router.post("/begin", response_model=GameStateOut, dependencies=admin_only)
def begin_game(payload: QuizIdRequest, background_tasks: BackgroundTasks, db: Session = Depends(get_db)):
    state = game_service.begin_game(db, payload.quiz_id)
    background_tasks.add_task(manager.broadcast, "slide_changed", game_service.slide_event(state))
    return _state_response(db, payload.quiz_id)


@game_router.post("/next-question", dependencies=admin_only)
def next_question(payload: QuizIdRequest, background_tasks: BackgroundTasks, db: Session = Depends(get_db)):
    state = game_service.next_question(db, payload.quiz_id)
    if state is None:
        return {"done": True, "message": "No more questions"}
    background_tasks.add_task(manager.broadcast, "slide_changed", game_service.slide_event(state))
    return _state_response(db, payload.quiz_id)


@game_router.post("/set-slide", response_model=GameStateOut, dependencies=admin_only)
def set_slide(
    payload: SetSlideRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    session_factory: Callable = Depends(get_session_factory),
):
    state = game_service.set_slide(db, payload.quiz_id, slide_id=payload.slide_id, slide_type=payload.slide)
    background_tasks.add_task(manager.broadcast, "slide_changed", game_service.slide_event(state))
    if state.current_slide == "timer" and state.current_question_id is not None:
        background_tasks.add_task(
            answer_as_bots,
            session_factory,
            payload.quiz_id,
            state.current_question_id,
            settings.TEST_BOT_ANSWER_DELAY_SEC,
        )
    return _state_response(db, payload.quiz_id)


@game_router.post("/reset-to-first", response_model=GameStateOut, dependencies=admin_only)
def reset_to_first(payload: QuizIdRequest, background_tasks: BackgroundTasks, db: Session = Depends(get_db)):
    state = game_service.reset_to_first_question(db, payload.quiz_id)
    background_tasks.add_task(manager.broadcast, "slide_changed", game_service.slide_event(state))
    return _state_response(db, payload.quiz_id)


@game_router.post("/remind", dependencies=admin_only)
def remind(payload: RemindRequest, background_tasks: BackgroundTasks, db: Session = Depends(get_db)):
    teams = [RemindTarget.model_validate(
        {"team_id": t.id, "name": t.name, "telegram_chat_id": t.telegram_chat_id}
    ) for t in game_service.remind(db, payload.quiz_id, payload.team_id)]
    state = game_service.get_game_state(db, payload.quiz_id)
    data = {
        "quizId": payload.quiz_id,
        "questionId": state.current_question_id,
        "teams": [t.model_dump(by_alias=True) for t in teams],
    }
    if teams:
        background_tasks.add_task(manager.broadcast, "remind", data)
    return {"ok": True, **data}


@game_router.post("/finish", dependencies=admin_only)
def finish_game(payload: QuizIdRequest, background_tasks: BackgroundTasks, db: Session = Depends(get_db)):
    results = game_service.finish_game(db, payload.quiz_id)
    data = {"quizId": payload.quiz_id, "results": results, "resultsRevealCount": 0}
    background_tasks.add_task(manager.broadcast, "quiz_finished", data)
    return {"ok": True, **data}


@game_router.post("/reveal-next-result", dependencies=admin_only)
def reveal_next_result(payload: QuizIdRequest, background_tasks: BackgroundTasks, db: Session = Depends(get_db)):
    state = game_service.reveal_next_result(db, payload.quiz_id)
    data = {
        "quizId": payload.quiz_id,
        "resultsRevealCount": state.results_reveal_count,
        "results": game_service.compute_leaderboard(db, payload.quiz_id),
    }
    background_tasks.add_task(manager.broadcast, "results_revealed", data)
    return {"ok": True, **data}


@game_router.post("/archive", dependencies=admin_only)
def archive_quiz(payload: QuizIdRequest, background_tasks: BackgroundTasks, db: Session = Depends(get_db)):
    game_service.archive_quiz(db, payload.quiz_id)
    background_tasks.add_task(manager.broadcast, "quiz_archived", {"quizId": payload.quiz_id})
    return {"ok": True}


@game_router.post("/restart", dependencies=admin_only)
def restart_quiz(payload: QuizIdRequest, background_tasks: BackgroundTasks, db: Session = Depends(get_db)):
    game_service.restart_quiz(db, payload.quiz_id)
    background_tasks.add_task(manager.broadcast, "quiz_restarted", {"quizId": payload.quiz_id})
    return {"success": True}


@game_router.post("/{quiz_id}/toggle-bots-visibility", dependencies=admin_only)
def toggle_bots_visibility(
    quiz_id: int,
    payload: BotsVisibilityRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
):
    state = game_service.set_bots_visibility(db, quiz_id, payload.show_bots_on_tv)
    data = {"quizId": quiz_id, "showBotsOnTv": state.show_bots_on_tv}
    background_tasks.add_task(manager.broadcast, "bots_visibility_changed", data)
    return {"ok": True, **data}


@game_router.get("/state/{quiz_id}", response_model=GameStateOut)
def get_state(quiz_id: int, db: Session = Depends(get_db)):
    return _state_response(db, quiz_id)


@game_router.get("/results/{quiz_id}")
def get_results(quiz_id: int, db: Session = Depends(get_db)):
    return game_service.compute_leaderboard(db, quiz_id)


@game_router.get("/results/{quiz_id}/{team_id}")
def get_team_results(quiz_id: int, team_id: int, db: Session = Depends(get_db)):
    return game_service.team_details(db, quiz_id, team_id)
