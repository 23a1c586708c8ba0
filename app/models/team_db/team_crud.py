from typing import List

from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError, QuizAppError
from app.models.quiz_db.quiz_crud import get_quiz
from app.models.team_db.team_db import Team
from app.schemas.team.team_base import TeamCreate


def get_team(db: Session, team_id: int) -> Team:
    team = db.query(Team).filter(Team.id == team_id).first()
    if not team:
        raise NotFoundError("Team", team_id)
    return team


def list_teams(db: Session, quiz_id: int, include_kicked: bool = False) -> List[Team]:
    get_quiz(db, quiz_id)
    query = db.query(Team).filter(Team.quiz_id == quiz_id)
    if not include_kicked:
        query = query.filter(Team.is_kicked.is_(False))
    return query.order_by(Team.registered_at, Team.id).all()


def register_team(db: Session, quiz_id: int, team_in: TeamCreate) -> Team:
    quiz = get_quiz(db, quiz_id)
    if quiz.status != "active":
        raise QuizAppError("Registration is closed for this quiz")

    # duplicate names are allowed, teams are told apart by id
    team = Team(quiz_id=quiz_id, name=team_in.name, telegram_chat_id=team_in.telegram_chat_id)
    db.add(team)
    db.commit()
    db.refresh(team)
    return team


def kick_team(db: Session, team_id: int) -> Team:
    team = get_team(db, team_id)
    team.is_kicked = True
    db.commit()
    db.refresh(team)
    return team


def list_bot_teams(db: Session, quiz_id: int) -> List[Team]:
    return (
        db.query(Team)
        .filter(Team.quiz_id == quiz_id, Team.is_bot.is_(True), Team.is_kicked.is_(False))
        .order_by(Team.id)
        .all()
    )


def create_bot_teams(db: Session, quiz_id: int, count: int) -> List[Team]:
    get_quiz(db, quiz_id)
    existing = db.query(Team).filter(Team.quiz_id == quiz_id, Team.is_bot.is_(True)).count()
    bots = [Team(quiz_id=quiz_id, name=f"Bot {existing + i}", is_bot=True) for i in range(1, count + 1)]
    db.add_all(bots)
    db.commit()
    for bot in bots:
        db.refresh(bot)
    return bots


def delete_bot_teams(db: Session, quiz_id: int) -> int:
    get_quiz(db, quiz_id)
    bots = db.query(Team).filter(Team.quiz_id == quiz_id, Team.is_bot.is_(True)).all()
    for bot in bots:
        db.delete(bot)
    db.commit()
    return len(bots)
