from typing import List, Literal, Optional

from pydantic import Field

from app.schemas.common.camel_base import CamelModel

QuestionType = Literal["choice", "text"]
SlideType = Literal[
    "video_warning", "video_intro", "question", "timer", "answer",
    "extra", "results", "thanks", "final",
]
TimerPosition = Literal[
    "center", "top", "bottom", "left", "right",
    "top-left", "top-right", "bottom-left", "bottom-right",
]


class VideoLayout(CamelModel):
    top: float = 0
    left: float = 0
    width: float = 100
    height: float = 100


class SlideOut(CamelModel):
    id: int
    question_id: int
    type: str
    image_url: Optional[str] = None
    video_url: Optional[str] = None
    video_layout: Optional[VideoLayout] = None
    sort_order: int = 0


class SlideUpsert(CamelModel):
    """With an id: update that slide. Without: insert a new one (type required)."""
    id: Optional[int] = None
    type: Optional[SlideType] = None
    image_url: Optional[str] = None
    video_url: Optional[str] = None
    video_layout: Optional[VideoLayout] = None
    sort_order: Optional[int] = None


class QuestionCreate(CamelModel):
    text: str = Field(min_length=1)
    options: List[str] = []
    correct_answer: str = Field(min_length=1)
    explanation: Optional[str] = None
    time_limit_sec: int = Field(default=30, gt=0)
    timer_position: TimerPosition = "center"
    question_type: QuestionType = "choice"
    weight: float = Field(default=1, ge=0)
    order_num: Optional[int] = None


class QuestionUpdate(CamelModel):
    text: Optional[str] = Field(default=None, min_length=1)
    options: Optional[List[str]] = None
    correct_answer: Optional[str] = Field(default=None, min_length=1)
    explanation: Optional[str] = None
    time_limit_sec: Optional[int] = Field(default=None, gt=0)
    timer_position: Optional[TimerPosition] = None
    question_type: Optional[QuestionType] = None
    weight: Optional[float] = Field(default=None, ge=0)
    order_num: Optional[int] = None
    slides: Optional[List[SlideUpsert]] = None


class QuestionOut(CamelModel):
    id: int
    quiz_id: int
    order_num: int
    text: str
    options: List[str] = []
    correct_answer: str
    explanation: Optional[str] = None
    time_limit_sec: int
    timer_position: str
    question_type: str
    weight: float
    slides: List[SlideOut] = []
