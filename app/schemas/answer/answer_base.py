from datetime import datetime
from typing import Optional

from pydantic import Field

from app.schemas.common.camel_base import CamelModel


class AnswerCreate(CamelModel):
    question_id: int
    team_id: int
    answer_text: str


class AnswerOut(CamelModel):
    id: int
    question_id: int
    team_id: int
    answer_text: str
    awarded_score: Optional[float] = None
    submitted_at: Optional[datetime] = None


class AnswerWithTeam(AnswerOut):
    team_name: str


class ScoreUpdate(CamelModel):
    score: float = Field(ge=0)
