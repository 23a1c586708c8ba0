from typing import List

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from app.core.exceptions import NotFoundError, QuizAppError
from app.models.quiz_db.question_db import Question
from app.models.quiz_db.quiz_crud import get_quiz
from app.models.quiz_db.slide_db import Slide, BASE_SLIDE_TYPES
from app.schemas.question.question_base import QuestionCreate, QuestionUpdate
from app.schemas.quiz_import.import_base import ImportPreview


def get_question(db: Session, question_id: int) -> Question:
    question = db.query(Question).filter(Question.id == question_id).first()
    if not question:
        raise NotFoundError("Question", question_id)
    return question


def list_questions(db: Session, quiz_id: int) -> List[Question]:
    get_quiz(db, quiz_id)
    return (
        db.query(Question)
        .options(selectinload(Question.slides))
        .filter(Question.quiz_id == quiz_id)
        .order_by(Question.order_num, Question.id)
        .all()
    )


def first_question(db: Session, quiz_id: int):
    return (
        db.query(Question)
        .filter(Question.quiz_id == quiz_id)
        .order_by(Question.order_num, Question.id)
        .first()
    )


def next_question_after(db: Session, question: Question):
    return (
        db.query(Question)
        .filter(Question.quiz_id == question.quiz_id)
        .filter(
            (Question.order_num > question.order_num)
            | ((Question.order_num == question.order_num) & (Question.id > question.id))
        )
        .order_by(Question.order_num, Question.id)
        .first()
    )


def _normalize_correct_answer(question_type: str, correct_answer: str) -> str:
    correct_answer = correct_answer.strip()
    return correct_answer.upper() if question_type == "choice" else correct_answer


def create_question(db: Session, quiz_id: int, question_in: QuestionCreate) -> Question:
    get_quiz(db, quiz_id)

    order_num = question_in.order_num
    if order_num is None:
        last = db.query(func.max(Question.order_num)).filter(Question.quiz_id == quiz_id).scalar()
        order_num = (last or 0) + 1

    data = question_in.model_dump(exclude={"order_num"})
    data["correct_answer"] = _normalize_correct_answer(data["question_type"], data["correct_answer"])
    question = Question(quiz_id=quiz_id, order_num=order_num, **data)
    question.slides = [Slide(type=slide_type, sort_order=i) for i, slide_type in enumerate(BASE_SLIDE_TYPES)]

    db.add(question)
    db.commit()
    db.refresh(question)
    return question


def update_question(db: Session, question_id: int, updates: QuestionUpdate) -> Question:
    question = get_question(db, question_id)
    data = updates.model_dump(exclude_unset=True, exclude={"slides"})
    for field, value in data.items():
        setattr(question, field, value)
    if "correct_answer" in data or "question_type" in data:
        question.correct_answer = _normalize_correct_answer(question.question_type, question.correct_answer)

    for slide_in in updates.slides or []:
        slide_data = slide_in.model_dump(exclude_unset=True, exclude={"id"})
        if slide_in.id is not None:
            slide = db.query(Slide).filter(Slide.id == slide_in.id, Slide.question_id == question.id).first()
            if not slide:
                raise NotFoundError("Slide", slide_in.id)
            for field, value in slide_data.items():
                setattr(slide, field, value)
        else:
            if slide_in.type is None:
                raise QuizAppError("New slides need a type")
            slide_data.setdefault("sort_order", len(question.slides))
            question.slides.append(Slide(**slide_data))

    db.commit()
    db.refresh(question)
    return question


def delete_question(db: Session, question_id: int) -> None:
    question = get_question(db, question_id)
    db.delete(question)
    db.commit()


def save_imported_questions(db: Session, quiz_id: int, preview: ImportPreview) -> int:
    """Append previewed questions after the existing ones; returns how many were created."""
    quiz = get_quiz(db, quiz_id)
    last = db.query(func.max(Question.order_num)).filter(Question.quiz_id == quiz_id).scalar()
    order_num = last or 0

    for item in preview.questions:
        order_num += 1
        question = Question(
            quiz_id=quiz_id,
            order_num=order_num,
            text=item.text,
            options=item.options,
            correct_answer=_normalize_correct_answer(item.question_type, item.correct_answer),
            explanation=item.explanation,
            time_limit_sec=item.time_limit_sec,
            timer_position=item.timer_position,
            question_type=item.question_type,
        )
        slides = item.slides
        # video slides only when the deck has them; base slides always
        ordered = [(t, getattr(slides, t)) for t in ("video_warning", "video_intro") if getattr(slides, t)]
        ordered += [(t, getattr(slides, t)) for t in BASE_SLIDE_TYPES]
        ordered += [("extra", url) for url in slides.extra]
        question.slides = [Slide(type=t, image_url=url, sort_order=i) for i, (t, url) in enumerate(ordered)]
        db.add(question)

    for field in ("demo_image_url", "rules_image_url", "thanks_image_url", "final_image_url"):
        if getattr(preview, field):
            setattr(quiz, field, getattr(preview, field))

    db.commit()
    return len(preview.questions)
