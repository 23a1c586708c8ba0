from typing import Callable, List

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.orm import Session

from app.core.database import get_db, get_session_factory
from app.core.security import get_current_admin
from app.core.websocket import manager
from app.models.answer_db import answer_crud
from app.schemas.answer.answer_base import AnswerCreate, AnswerOut, AnswerWithTeam, ScoreUpdate
from app.services.grading import grade_text_answer

answer_router = APIRouter(prefix="/api", tags=["Answer"])


@answer_router.get("/questions/{question_id}/answers", response_model=List[AnswerWithTeam])
def list_answers(question_id: int, db: Session = Depends(get_db)):
    return answer_crud.list_answers_for_question(db, question_id)


@answer_router.post("/answers", response_model=AnswerOut, status_code=status.HTTP_201_CREATED)
def submit_answer(
    answer_in: AnswerCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    session_factory: Callable = Depends(get_session_factory),
):
    answer, question, team = answer_crud.submit_answer(db, answer_in.question_id, answer_in.team_id, answer_in.answer_text)

    background_tasks.add_task(manager.broadcast, "answer_submitted", {
        "quizId": question.quiz_id,
        "questionId": question.id,
        "teamId": team.id,
        "teamName": team.name,
        "answerId": answer.id,
    })
    if question.question_type == "text":
        background_tasks.add_task(grade_text_answer, session_factory, answer.id)
    return answer


@answer_router.patch("/answers/{answer_id}/score", response_model=AnswerOut, dependencies=[Depends(get_current_admin)])
def set_score(answer_id: int, payload: ScoreUpdate, background_tasks: BackgroundTasks, db: Session = Depends(get_db)):
    answer = answer_crud.set_score(db, answer_id, payload.score)
    background_tasks.add_task(manager.broadcast, "answer_scored", {
        "quizId": answer.question.quiz_id,
        "questionId": answer.question_id,
        "teamId": answer.team_id,
        "answerId": answer.id,
        "awardedScore": answer.awarded_score,
    })
    return answer
