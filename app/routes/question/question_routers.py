from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.security import get_current_admin
from app.models.quiz_db import question_crud
from app.schemas.question.question_base import QuestionCreate, QuestionOut, QuestionUpdate

question_router = APIRouter(prefix="/api", tags=["Question"])


@question_router.get("/quizzes/{quiz_id}/questions", response_model=List[QuestionOut])
def list_questions(quiz_id: int, db: Session = Depends(get_db)):
    return question_crud.list_questions(db, quiz_id)


@question_router.post(
    "/quizzes/{quiz_id}/questions",
    response_model=QuestionOut,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(get_current_admin)],
)
def create_question(quiz_id: int, question_in: QuestionCreate, db: Session = Depends(get_db)):
    return question_crud.create_question(db, quiz_id, question_in)


@question_router.patch("/questions/{question_id}", response_model=QuestionOut, dependencies=[Depends(get_current_admin)])
def update_question(question_id: int, question_in: QuestionUpdate, db: Session = Depends(get_db)):
    return question_crud.update_question(db, question_id, question_in)


@question_router.delete("/questions/{question_id}", dependencies=[Depends(get_current_admin)])
def delete_question(question_id: int, db: Session = Depends(get_db)):
    question_crud.delete_question(db, question_id)
    return {"ok": True}
