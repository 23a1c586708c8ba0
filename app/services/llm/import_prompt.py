"""Prompt and reply model for turning exported presentation slides into quiz questions."""

from typing import List, Literal, Optional

from pydantic import BaseModel, ValidationError, field_validator

from app.core.exceptions import LLMResponseError
from app.models.quiz_db.question_db import TIMER_POSITIONS
from app.services.llm.eval_prompt import decode_json_reply


class PlannedSlides(BaseModel):
    video_warning: Optional[int] = None
    video_intro: Optional[int] = None
    question: Optional[int] = None
    timer: Optional[int] = None
    answer: Optional[int] = None


class PlannedQuestion(BaseModel):
    question: str = ""
    question_type: Literal["choice", "text"] = "choice"
    options: List[str] = []
    correct: str = "A"
    explanation: Optional[str] = None
    time_limit_sec: int = 30
    timer_position: str = "center"
    slides: PlannedSlides = PlannedSlides()
    extra_slides: List[int] = []

    @field_validator("options", mode="before")
    @classmethod
    def options_from_letters(cls, value):
        # {"A": "...", "B": "..."} is a common reply shape
        if isinstance(value, dict):
            return [str(value[key] or "") for key in sorted(value)]
        return value or []

    @field_validator("question", "correct", "slides", "extra_slides", mode="before")
    @classmethod
    def null_as_default(cls, value, info):
        if value is None:
            return {"question": "", "correct": "A", "slides": {}, "extra_slides": []}[info.field_name]
        return value

    @field_validator("timer_position", mode="before")
    @classmethod
    def known_position(cls, value):
        return value if value in TIMER_POSITIONS else "center"

    @field_validator("time_limit_sec", mode="before")
    @classmethod
    def positive_limit(cls, value):
        return value if isinstance(value, int) and value > 0 else 30


class ImportPlan(BaseModel):
    questions: List[PlannedQuestion]
    demo_slide: Optional[int] = None
    rules_slide: Optional[int] = None
    thanks_slide: Optional[int] = None
    final_slide: Optional[int] = None


def build_import_prompt(names: List[str], docx_text: Optional[str] = None) -> str:
    files = ", ".join(f"[{i}] {name}" for i, name in enumerate(names))
    positions = ", ".join(f'"{p}"' for p in TIMER_POSITIONS)
    document = ""
    if docx_text:
        document = f"""
The host also supplied the question document. Take question texts, options, correct answers
and explanations from it and use the slides only to match them:
\"\"\"
{docx_text}
\"\"\"
"""

    return f"""
You are looking at {len(names)} slides of a pub quiz presentation exported as images.
File names in order, starting at 0: {files}.
{document}
Slide kinds:
- "question": the question text, options A, B, C, D or a picture.
- "answer": the same question with ONE option highlighted as correct, or only the answer shown.
- "video_warning": a "video question, get ready" notice without question text. Comes before the question.
- "video_intro": the video slide itself, between video_warning and the question.
- timer or countdown slides, alarm clocks, jokes and decorations between questions are extra slides.
- the title slide is demo_slide, the rules slide is rules_slide, a "thank you" slide is thanks_slide,
  and a closing or celebration slide at the end is final_slide. Use null when there is none.

Slides of one question follow each other. Every question needs its question slide.
A question is "text" when its answer is written inline instead of being picked from a list.
Choose timer_position where the question slide has the least content.

Reply with JSON only (no markdown, no explanations):
{{
  "demo_slide": 0,
  "rules_slide": 1,
  "thanks_slide": null,
  "final_slide": null,
  "questions": [
    {{
      "question": "Capital of France?",
      "question_type": "choice",
      "options": ["Rome", "Paris", "Berlin", "Madrid"],
      "correct": "B",
      "explanation": null,
      "time_limit_sec": 30,
      "timer_position": "left",
      "slides": {{"video_warning": null, "video_intro": null, "question": 2, "timer": null, "answer": 3}},
      "extra_slides": [4]
    }}
  ]
}}

Rules:
- "correct" is the option letter for "choice" questions and the answer text for "text" questions.
- "timer_position" is one of: {positions}.
- Use every slide index at most once.
""".strip()


def parse_import_response(raw: str) -> ImportPlan:
    parsed = decode_json_reply(raw)
    try:
        plan = ImportPlan.model_validate(parsed)
    except ValidationError as e:
        raise LLMResponseError(f"Provider returned an unexpected shape: {e.error_count()} error(s)")
    if not plan.questions:
        raise LLMResponseError("Provider found no questions on the slides")
    return plan
