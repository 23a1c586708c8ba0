from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.security import get_current_admin
from app.core.websocket import manager
from app.models.quiz_db import quiz_crud
from app.schemas.quiz.quiz_base import QuizCreate, QuizOut, QuizUpdate

quiz_router = APIRouter(prefix="/api/quizzes", tags=["Quiz"])


@quiz_router.get("", response_model=List[QuizOut])
def list_quizzes(db: Session = Depends(get_db)):
    return quiz_crud.list_quizzes(db)


@quiz_router.post("", response_model=QuizOut, status_code=status.HTTP_201_CREATED, dependencies=[Depends(get_current_admin)])
def create_quiz(quiz_in: QuizCreate, db: Session = Depends(get_db)):
    return quiz_crud.create_quiz(db, quiz_in)


@quiz_router.get("/active", response_model=List[QuizOut])
def list_active_quizzes(db: Session = Depends(get_db)):
    return quiz_crud.list_active_quizzes(db)


@quiz_router.get("/displayed", response_model=QuizOut)
def get_displayed_quiz(db: Session = Depends(get_db)):
    quiz = quiz_crud.get_displayed_quiz(db)
    if not quiz:
        raise HTTPException(status_code=404, detail="No quiz is displayed on the TV")
    return quiz


@quiz_router.get("/by-code/{code}", response_model=QuizOut)
def get_quiz_by_code(code: str, db: Session = Depends(get_db)):
    return quiz_crud.get_quiz_by_code(db, code)


@quiz_router.get("/{quiz_id}", response_model=QuizOut)
def get_quiz(quiz_id: int, db: Session = Depends(get_db)):
    return quiz_crud.get_quiz(db, quiz_id)


@quiz_router.patch("/{quiz_id}", response_model=QuizOut, dependencies=[Depends(get_current_admin)])
def update_quiz(quiz_id: int, quiz_in: QuizUpdate, db: Session = Depends(get_db)):
    return quiz_crud.update_quiz(db, quiz_id, quiz_in)


@quiz_router.delete("/{quiz_id}", dependencies=[Depends(get_current_admin)])
def delete_quiz(quiz_id: int, db: Session = Depends(get_db)):
    quiz_crud.delete_quiz(db, quiz_id)
    return {"ok": True}


@quiz_router.post("/{quiz_id}/display-on-tv", dependencies=[Depends(get_current_admin)])
def display_on_tv(quiz_id: int, background_tasks: BackgroundTasks, db: Session = Depends(get_db)):
    quiz = quiz_crud.display_on_tv(db, quiz_id)
    background_tasks.add_task(manager.broadcast, "tv_quiz_changed", {"quizId": quiz.id})
    return {"ok": True, "quiz": QuizOut.model_validate(quiz)}
