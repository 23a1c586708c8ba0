from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.security import get_current_admin
from app.core.websocket import manager
from app.models.team_db import team_crud
from app.schemas.team.team_base import TeamCreate, TeamOut, TestBotsCreate

team_router = APIRouter(prefix="/api", tags=["Team"])


@team_router.get("/quizzes/{quiz_id}/teams", response_model=List[TeamOut])
def list_teams(quiz_id: int, all: bool = False, db: Session = Depends(get_db)):
    return team_crud.list_teams(db, quiz_id, include_kicked=all)


@team_router.post("/quizzes/{quiz_id}/teams", response_model=TeamOut, status_code=status.HTTP_201_CREATED)
def register_team(quiz_id: int, team_in: TeamCreate, background_tasks: BackgroundTasks, db: Session = Depends(get_db)):
    team = team_crud.register_team(db, quiz_id, team_in)
    background_tasks.add_task(manager.broadcast, "team_registered", {
        "teamId": team.id,
        "name": team.name,
        "quizId": quiz_id,
    })
    return team


@team_router.delete("/teams/{team_id}", dependencies=[Depends(get_current_admin)])
def kick_team(team_id: int, background_tasks: BackgroundTasks, db: Session = Depends(get_db)):
    team = team_crud.kick_team(db, team_id)
    background_tasks.add_task(manager.broadcast, "team_kicked", {
        "teamId": team.id,
        "name": team.name,
        "quizId": team.quiz_id,
        "telegramChatId": team.telegram_chat_id,
    })
    return {"ok": True}


@team_router.post(
    "/quizzes/{quiz_id}/test-bots",
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(get_current_admin)],
)
def create_test_bots(quiz_id: int, payload: TestBotsCreate, background_tasks: BackgroundTasks, db: Session = Depends(get_db)):
    bots = team_crud.create_bot_teams(db, quiz_id, payload.count)
    for bot in bots:
        background_tasks.add_task(manager.broadcast, "team_registered", {
            "teamId": bot.id,
            "name": bot.name,
            "quizId": quiz_id,
            "isBot": True,
        })
    return {"ok": True, "count": len(bots), "bots": [TeamOut.model_validate(bot) for bot in bots]}


@team_router.delete("/quizzes/{quiz_id}/test-bots", dependencies=[Depends(get_current_admin)])
def delete_test_bots(quiz_id: int, background_tasks: BackgroundTasks, db: Session = Depends(get_db)):
    removed = team_crud.delete_bot_teams(db, quiz_id)
    background_tasks.add_task(manager.broadcast, "test_bots_removed", {"quizId": quiz_id, "count": removed})
    return {"ok": True, "removed": removed}
