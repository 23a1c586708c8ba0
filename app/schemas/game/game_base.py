from datetime import datetime
from typing import List, Optional

from app.schemas.common.camel_base import CamelModel
from app.schemas.question.question_base import QuestionOut, SlideType


class QuizIdRequest(CamelModel):
    quiz_id: int


class SetSlideRequest(QuizIdRequest):
    slide_id: Optional[int] = None
    slide: Optional[SlideType] = None


class RemindRequest(QuizIdRequest):
    team_id: Optional[int] = None


class BotsVisibilityRequest(CamelModel):
    show_bots_on_tv: bool


class GameStateOut(CamelModel):
    id: int
    quiz_id: int
    status: str
    current_question_id: Optional[int] = None
    current_slide: str
    current_slide_id: Optional[int] = None
    timer_started_at: Optional[datetime] = None
    timer_remaining_sec: Optional[int] = None
    registration_open: bool
    results_reveal_count: int
    show_bots_on_tv: bool
    join_code: Optional[str] = None
    question: Optional[QuestionOut] = None


class LeaderboardEntry(CamelModel):
    team_id: int
    name: str
    is_bot: bool = False
    correct: float
    total: int


class TeamAnswerDetail(CamelModel):
    question_id: int
    order_num: int
    question_text: str
    question_type: str
    weight: float
    team_answer: Optional[str] = None
    correct_answer: str
    correct_answer_text: str
    awarded_score: Optional[float] = None
    is_correct: bool
    points: float


class TeamResults(CamelModel):
    team_id: int
    team_name: str
    total_correct: float
    details: List[TeamAnswerDetail]


class RemindTarget(CamelModel):
    team_id: int
    name: str
    telegram_chat_id: Optional[int] = None
