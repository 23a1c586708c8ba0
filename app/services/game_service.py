"""
Game progression engine.

A quiz night moves through lobby -> playing -> finished. While playing, the
cursor (current question + current slide) walks the questions in order_num
order, and each question walks its slides (video_warning, question, timer,
answer, ...). Every function here commits its own transition and returns the
resulting state; broadcasting the change is left to the caller.
"""

import logging
import math
from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.exceptions import GameNotStartedError, GameStateError, NotFoundError
from app.models.answer_db.answer_crud import delete_answers_for_quiz
from app.models.answer_db.answer_db import Answer
from app.models.game_db.game_state_db import GameState
from app.models.quiz_db.join_code import generate_unique_join_code
from app.models.quiz_db.question_crud import first_question, next_question_after
from app.models.quiz_db.question_db import Question
from app.models.quiz_db.quiz_crud import get_quiz
from app.models.quiz_db.quiz_db import Quiz
from app.models.quiz_db.slide_db import Slide
from app.models.team_db.team_db import Team

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def get_game_state(db: Session, quiz_id: int) -> GameState:
    get_quiz(db, quiz_id)
    state = db.query(GameState).filter(GameState.quiz_id == quiz_id).first()
    if not state:
        raise GameNotStartedError(quiz_id)
    return state


def _require_status(state: GameState, *statuses: str) -> None:
    if state.status not in statuses:
        raise GameStateError(
            f"Game is {state.status}, expected {' or '.join(statuses)}",
            error_code="INVALID_GAME_STATUS",
        )


def _find_slide(question: Question, slide_type: str) -> Optional[Slide]:
    for slide in question.slides:
        if slide.type == slide_type:
            return slide
    return None


def _move_to_question(state: GameState, question: Question) -> None:
    """Place the cursor on the entry slide of a question."""
    entry = _find_slide(question, "video_warning") or _find_slide(question, "question")
    state.current_question_id = question.id
    state.current_slide = entry.type if entry else "question"
    state.current_slide_id = entry.id if entry else None
    state.timer_started_at = None


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------

def start_game(db: Session, quiz_id: int) -> GameState:
    quiz = get_quiz(db, quiz_id)
    if not quiz.join_code:
        quiz.join_code = generate_unique_join_code(db)
    quiz.status = "active"

    state = db.query(GameState).filter(GameState.quiz_id == quiz_id).first()
    if not state:
        state = GameState(quiz_id=quiz_id)
        db.add(state)
    state.status = "lobby"
    state.current_question_id = None
    state.current_slide = "question"
    state.current_slide_id = None
    state.timer_started_at = None
    state.registration_open = False
    state.results_reveal_count = 0

    db.commit()
    db.refresh(state)
    logger.info("Quiz %s opened lobby with code %s", quiz_id, quiz.join_code)
    return state


def open_registration(db: Session, quiz_id: int) -> GameState:
    state = get_game_state(db, quiz_id)
    state.registration_open = True
    db.commit()
    db.refresh(state)
    return state


def begin_game(db: Session, quiz_id: int) -> GameState:
    state = get_game_state(db, quiz_id)
    _require_status(state, "lobby")

    question = first_question(db, quiz_id)
    if not question:
        raise GameStateError("Quiz has no questions", error_code="NO_QUESTIONS")

    state.status = "playing"
    _move_to_question(state, question)
    db.commit()
    db.refresh(state)
    logger.info("Quiz %s started at question %s", quiz_id, question.id)
    return state


def next_question(db: Session, quiz_id: int) -> Optional[GameState]:
    """Advance the cursor. Returns None when the last question was already reached."""
    state = get_game_state(db, quiz_id)
    _require_status(state, "playing")

    if state.current_question is None:
        upcoming = first_question(db, quiz_id)
    else:
        upcoming = next_question_after(db, state.current_question)
    if not upcoming:
        return None

    _move_to_question(state, upcoming)
    db.commit()
    db.refresh(state)
    return state


def set_slide(db: Session, quiz_id: int, slide_id: Optional[int] = None, slide_type: Optional[str] = None) -> GameState:
    state = get_game_state(db, quiz_id)
    _require_status(state, "playing")

    if slide_id is not None:
        slide = db.query(Slide).filter(Slide.id == slide_id).first()
        if not slide or slide.question.quiz_id != quiz_id:
            raise NotFoundError("Slide", slide_id)
        state.current_question_id = slide.question_id
        state.current_slide = slide.type
        state.current_slide_id = slide.id
    elif slide_type is not None:
        slide = _find_slide(state.current_question, slide_type) if state.current_question else None
        state.current_slide = slide_type
        state.current_slide_id = slide.id if slide else None
    else:
        raise GameStateError("Either slideId or slide is required", error_code="SLIDE_REQUIRED")

    state.timer_started_at = _utcnow() if state.current_slide == "timer" else None
    db.commit()
    db.refresh(state)
    return state


def reset_to_first_question(db: Session, quiz_id: int) -> GameState:
    state = get_game_state(db, quiz_id)
    _require_status(state, "playing")

    question = first_question(db, quiz_id)
    if not question:
        raise GameStateError("Quiz has no questions", error_code="NO_QUESTIONS")

    deleted = delete_answers_for_quiz(db, quiz_id)
    _move_to_question(state, question)
    db.commit()
    db.refresh(state)
    logger.info("Quiz %s rewound to first question, %d answers cleared", quiz_id, deleted)
    return state


def remind(db: Session, quiz_id: int, team_id: Optional[int] = None) -> List[Team]:
    """Active teams that still owe an answer to the current question."""
    state = get_game_state(db, quiz_id)
    if state.current_question_id is None:
        return []

    answered = select(Answer.team_id).where(Answer.question_id == state.current_question_id)
    query = (
        db.query(Team)
        .filter(Team.quiz_id == quiz_id, Team.is_kicked.is_(False))
        .filter(Team.id.not_in(answered))
    )
    if team_id is not None:
        query = query.filter(Team.id == team_id)
    return query.order_by(Team.id).all()


def finish_game(db: Session, quiz_id: int) -> List[Dict]:
    """Close the game and return the final leaderboard.

    Test-bot teams take part in that leaderboard and are removed right after it is computed.
    """
    state = get_game_state(db, quiz_id)
    quiz = state.quiz
    quiz.status = "finished"
    quiz.join_code = None
    state.status = "finished"
    state.timer_started_at = None
    state.results_reveal_count = 0
    db.flush()
    results = compute_leaderboard(db, quiz_id)

    bots = db.query(Team).filter(Team.quiz_id == quiz_id, Team.is_bot.is_(True)).all()
    for bot in bots:
        db.delete(bot)
    db.commit()
    logger.info("Quiz %s finished, %d bot team(s) removed", quiz_id, len(bots))
    return results


def reveal_next_result(db: Session, quiz_id: int) -> GameState:
    state = get_game_state(db, quiz_id)
    _require_status(state, "finished")
    team_count = db.query(Team).filter(Team.quiz_id == quiz_id, Team.is_kicked.is_(False)).count()
    state.results_reveal_count = min(state.results_reveal_count + 1, team_count)
    db.commit()
    db.refresh(state)
    return state


def archive_quiz(db: Session, quiz_id: int) -> Quiz:
    quiz = get_quiz(db, quiz_id)
    quiz.status = "archived"
    quiz.displayed_on_tv = False
    db.commit()
    db.refresh(quiz)
    return quiz


def restart_quiz(db: Session, quiz_id: int) -> Quiz:
    """Back to a clean draft: teams, their answers and the game state are dropped."""
    quiz = get_quiz(db, quiz_id)
    if quiz.status == "draft":
        raise GameStateError("Quiz is already a draft", error_code="ALREADY_DRAFT")

    if quiz.game_state is not None:
        db.delete(quiz.game_state)
    for team in list(quiz.teams):
        db.delete(team)
    quiz.status = "draft"
    quiz.join_code = None
    db.commit()
    db.refresh(quiz)
    logger.info("Quiz %s restarted", quiz_id)
    return quiz


def set_bots_visibility(db: Session, quiz_id: int, show: bool) -> GameState:
    state = get_game_state(db, quiz_id)
    state.show_bots_on_tv = show
    db.commit()
    db.refresh(state)
    return state


# ---------------------------------------------------------------------------
# Read models
# ---------------------------------------------------------------------------

def timer_remaining(state: GameState, now: Optional[datetime] = None) -> Optional[int]:
    if state.current_slide != "timer" or state.timer_started_at is None or state.current_question is None:
        return None
    started = state.timer_started_at
    if started.tzinfo is None:
        started = started.replace(tzinfo=timezone.utc)
    elapsed = ((now or _utcnow()) - started).total_seconds()
    return max(0, math.ceil(state.current_question.time_limit_sec - elapsed))


def get_state_view(db: Session, quiz_id: int) -> Dict:
    get_quiz(db, quiz_id)
    state = db.query(GameState).filter(GameState.quiz_id == quiz_id).first()
    if not state:
        raise NotFoundError("Game state", quiz_id)
    return {
        "id": state.id,
        "quiz_id": state.quiz_id,
        "status": state.status,
        "current_question_id": state.current_question_id,
        "current_slide": state.current_slide,
        "current_slide_id": state.current_slide_id,
        "timer_started_at": state.timer_started_at,
        "timer_remaining_sec": timer_remaining(state),
        "registration_open": state.registration_open,
        "results_reveal_count": state.results_reveal_count,
        "show_bots_on_tv": state.show_bots_on_tv,
        "join_code": state.quiz.join_code,
        "question": state.current_question,
    }


def slide_event(state: GameState) -> Dict:
    return {
        "quizId": state.quiz_id,
        "questionId": state.current_question_id,
        "slide": state.current_slide,
        "slideId": state.current_slide_id,
    }


def is_choice_correct(question: Question, answer_text: Optional[str]) -> bool:
    if not answer_text:
        return False
    return answer_text.strip().upper() == question.correct_answer.strip().upper()


def answer_points(question: Question, answer: Answer) -> float:
    """An admin override or LLM score wins; otherwise choice answers earn the weight."""
    if answer.awarded_score is not None:
        return answer.awarded_score
    if question.question_type == "choice" and is_choice_correct(question, answer.answer_text):
        return question.weight
    return 0.0


def compute_leaderboard(db: Session, quiz_id: int) -> List[Dict]:
    get_quiz(db, quiz_id)
    teams = db.query(Team).filter(Team.quiz_id == quiz_id, Team.is_kicked.is_(False)).order_by(Team.id).all()
    rows = (
        db.query(Answer, Question)
        .join(Question, Question.id == Answer.question_id)
        .filter(Question.quiz_id == quiz_id)
        .all()
    )

    points: Dict[int, float] = {team.id: 0.0 for team in teams}
    totals: Dict[int, int] = {team.id: 0 for team in teams}
    for answer, question in rows:
        if answer.team_id not in points:
            continue
        points[answer.team_id] += answer_points(question, answer)
        totals[answer.team_id] += 1

    results = [
        {
            "teamId": team.id,
            "name": team.name,
            "isBot": team.is_bot,
            "correct": round(points[team.id], 1),
            "total": totals[team.id],
        }
        for team in teams
    ]
    results.sort(key=lambda r: (-r["correct"], -r["total"]))
    return results


def team_details(db: Session, quiz_id: int, team_id: int) -> Dict:
    get_quiz(db, quiz_id)
    team = db.query(Team).filter(Team.id == team_id, Team.quiz_id == quiz_id).first()
    if not team:
        raise NotFoundError("Team", team_id)

    questions = db.query(Question).filter(Question.quiz_id == quiz_id).order_by(Question.order_num, Question.id).all()
    answers = {a.question_id: a for a in db.query(Answer).filter(Answer.team_id == team_id).all()}

    details = []
    total = 0.0
    for question in questions:
        answer = answers.get(question.id)
        points = answer_points(question, answer) if answer else 0.0
        total += points
        if question.question_type == "choice":
            is_correct = bool(answer) and is_choice_correct(question, answer.answer_text)
            index = ord(question.correct_answer.strip().upper()[:1] or "A") - ord("A")
            options = question.options or []
            correct_text = options[index] if 0 <= index < len(options) else question.correct_answer
        else:
            is_correct = points > 0
            correct_text = question.correct_answer
        details.append({
            "questionId": question.id,
            "orderNum": question.order_num,
            "questionText": question.text,
            "questionType": question.question_type,
            "weight": question.weight,
            "teamAnswer": answer.answer_text if answer else None,
            "correctAnswer": question.correct_answer,
            "correctAnswerText": correct_text,
            "awardedScore": answer.awarded_score if answer else None,
            "isCorrect": is_correct,
            "points": round(points, 1),
        })

    return {
        "teamId": team.id,
        "teamName": team.name,
        "totalCorrect": round(total, 1),
        "details": details,
    }
