from typing import List, Optional

from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError
from app.models.quiz_db.join_code import generate_unique_join_code
from app.models.quiz_db.quiz_db import Quiz
from app.schemas.quiz.quiz_base import QuizCreate, QuizUpdate


def get_quiz(db: Session, quiz_id: int) -> Quiz:
    quiz = db.query(Quiz).filter(Quiz.id == quiz_id).first()
    if not quiz:
        raise NotFoundError("Quiz", quiz_id)
    return quiz


def list_quizzes(db: Session) -> List[Quiz]:
    return db.query(Quiz).order_by(Quiz.id).all()


def list_active_quizzes(db: Session) -> List[Quiz]:
    return db.query(Quiz).filter(Quiz.status == "active").order_by(Quiz.id).all()


def get_quiz_by_code(db: Session, code: str) -> Quiz:
    quiz = db.query(Quiz).filter(Quiz.join_code == code.strip().upper()).first()
    if not quiz:
        raise NotFoundError("Quiz")
    return quiz


def get_displayed_quiz(db: Session) -> Optional[Quiz]:
    return db.query(Quiz).filter(Quiz.displayed_on_tv.is_(True)).first()


def _ensure_join_code(db: Session, quiz: Quiz) -> None:
    # teams can only find an active quiz by its code
    if quiz.status == "active" and not quiz.join_code:
        quiz.join_code = generate_unique_join_code(db)


def create_quiz(db: Session, quiz_in: QuizCreate) -> Quiz:
    quiz = Quiz(**quiz_in.model_dump())
    _ensure_join_code(db, quiz)
    db.add(quiz)
    db.commit()
    db.refresh(quiz)
    return quiz


def update_quiz(db: Session, quiz_id: int, updates: QuizUpdate) -> Quiz:
    quiz = get_quiz(db, quiz_id)
    for field, value in updates.model_dump(exclude_unset=True).items():
        setattr(quiz, field, value)
    _ensure_join_code(db, quiz)
    db.commit()
    db.refresh(quiz)
    return quiz


def delete_quiz(db: Session, quiz_id: int) -> None:
    quiz = get_quiz(db, quiz_id)
    db.delete(quiz)
    db.commit()


def display_on_tv(db: Session, quiz_id: int) -> Quiz:
    """Only one quiz is shown on the TV at a time."""
    quiz = get_quiz(db, quiz_id)
    db.query(Quiz).filter(Quiz.id != quiz_id).update({Quiz.displayed_on_tv: False}, synchronize_session=False)
    quiz.displayed_on_tv = True
    db.commit()
    db.refresh(quiz)
    return quiz
