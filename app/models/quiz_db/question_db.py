from sqlalchemy import Column, Integer, String, Text, Float, ForeignKey, JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship
from app.core.database import Base

QUESTION_TYPES = ("choice", "text")
TIMER_POSITIONS = (
    "center", "top", "bottom", "left", "right",
    "top-left", "top-right", "bottom-left", "bottom-right",
)


class Question(Base):
    __tablename__ = "questions"

    id = Column(Integer, primary_key=True, index=True)
    quiz_id = Column(Integer, ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, index=True)
    order_num = Column(Integer, nullable=False)
    text = Column(Text, nullable=False)
    options = Column(JSON().with_variant(JSONB, "postgresql"), nullable=False, default=list)  # ["Paris", "Rome", ...]
    correct_answer = Column(String, nullable=False)  # "B" or "Red, Blue"
    explanation = Column(Text, nullable=True)
    time_limit_sec = Column(Integer, nullable=False, default=30)
    timer_position = Column(String, nullable=False, default="center")
    question_type = Column(String, nullable=False, default="choice")
    weight = Column(Float, nullable=False, default=1)

    quiz = relationship("Quiz", back_populates="questions")
    slides = relationship(
        "Slide",
        back_populates="question",
        cascade="all, delete-orphan",
        order_by="Slide.sort_order",
    )
    answers = relationship("Answer", back_populates="question", cascade="all, delete-orphan")

    def canonical_answers(self):
        """Comma separated canonical answers of a text question."""
        return [part.strip() for part in (self.correct_answer or "").split(",") if part.strip()]

    def option_letters(self):
        count = len(self.options or []) or 4
        return [chr(ord("A") + i) for i in range(count)]
