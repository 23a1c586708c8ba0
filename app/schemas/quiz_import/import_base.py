from typing import List, Optional

from pydantic import Field

from app.schemas.common.camel_base import CamelModel
from app.schemas.question.question_base import QuestionType, TimerPosition
from app.schemas.quiz.quiz_base import QuizImages


class ImportSlides(CamelModel):
    """Media urls per slide type; `extra` keeps decorative slides in order."""
    video_warning: Optional[str] = None
    video_intro: Optional[str] = None
    question: Optional[str] = None
    timer: Optional[str] = None
    answer: Optional[str] = None
    extra: List[str] = []


class ImportPreviewItem(CamelModel):
    order_num: int
    text: str = ""
    question_type: QuestionType = "choice"
    options: List[str] = []
    correct_answer: str = "A"
    explanation: Optional[str] = None
    time_limit_sec: int = Field(default=30, gt=0)
    timer_position: TimerPosition = "center"
    slides: ImportSlides = ImportSlides()


class ImportPreview(QuizImages):
    questions: List[ImportPreviewItem] = []


class ImportSaveResult(CamelModel):
    created: int
