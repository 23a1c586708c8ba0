from datetime import datetime, timezone
from typing import List, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import AnswerValidationError, NotFoundError
from app.models.answer_db.answer_db import Answer
from app.models.quiz_db.question_crud import get_question
from app.models.quiz_db.question_db import Question
from app.models.team_db.team_crud import get_team
from app.models.team_db.team_db import Team


def normalize_answer(question: Question, answer_text: str) -> str:
    """Clean a raw submission; raises AnswerValidationError when it cannot be accepted."""
    text = (answer_text or "").strip()
    if not text:
        raise AnswerValidationError("Answer must not be empty")

    if question.question_type == "choice":
        letter = text.upper()
        allowed = question.option_letters()
        if letter not in allowed:
            raise AnswerValidationError(f"Answer must be one of {', '.join(allowed)}")
        return letter

    # text answers are capped at as many items as the canonical answer lists
    expected = len(question.canonical_answers())
    items = [part.strip() for part in text.split(",") if part.strip()]
    if expected and len(items) > expected:
        return ", ".join(items[:expected])
    return text


def get_answer(db: Session, answer_id: int) -> Answer:
    answer = db.query(Answer).filter(Answer.id == answer_id).first()
    if not answer:
        raise NotFoundError("Answer", answer_id)
    return answer


def _find_answer(db: Session, question_id: int, team_id: int):
    return db.query(Answer).filter(Answer.question_id == question_id, Answer.team_id == team_id).first()


def _overwrite(answer: Answer, text: str) -> None:
    answer.answer_text = text
    answer.awarded_score = None
    answer.submitted_at = datetime.now(timezone.utc)


def submit_answer(db: Session, question_id: int, team_id: int, answer_text: str) -> Tuple[Answer, Question, Team]:
    question = get_question(db, question_id)
    team = get_team(db, team_id)
    if team.quiz_id != question.quiz_id:
        raise AnswerValidationError("Team and question belong to different quizzes")
    if team.is_kicked:
        raise AnswerValidationError("Team has been removed from the game")

    text = normalize_answer(question, answer_text)

    # one answer per (question, team): resubmitting overwrites
    answer = _find_answer(db, question_id, team_id)
    if answer:
        _overwrite(answer, text)
    else:
        answer = Answer(question_id=question_id, team_id=team_id, answer_text=text)
        db.add(answer)

    try:
        db.commit()
    except IntegrityError:
        # a concurrent first submission inserted the row after our lookup
        db.rollback()
        answer = _find_answer(db, question_id, team_id)
        if answer is None:
            raise
        _overwrite(answer, text)
        db.commit()
    db.refresh(answer)
    return answer, question, team


def list_answers_for_question(db: Session, question_id: int) -> List[dict]:
    get_question(db, question_id)
    rows = (
        db.query(Answer, Team.name)
        .join(Team, Team.id == Answer.team_id)
        .filter(Answer.question_id == question_id)
        .order_by(Answer.submitted_at, Answer.id)
        .all()
    )
    return [
        {
            "id": answer.id,
            "question_id": answer.question_id,
            "team_id": answer.team_id,
            "team_name": team_name,
            "answer_text": answer.answer_text,
            "awarded_score": answer.awarded_score,
            "submitted_at": answer.submitted_at,
        }
        for answer, team_name in rows
    ]


def set_score(db: Session, answer_id: int, score: float) -> Answer:
    answer = get_answer(db, answer_id)
    answer.awarded_score = round(score, 1)
    db.commit()
    db.refresh(answer)
    return answer


def delete_answers_for_quiz(db: Session, quiz_id: int) -> int:
    question_ids = select(Question.id).where(Question.quiz_id == quiz_id)
    return (
        db.query(Answer)
        .filter(Answer.question_id.in_(question_ids))
        .delete(synchronize_session=False)
    )
