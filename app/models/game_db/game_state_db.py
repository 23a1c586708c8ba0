from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from app.core.database import Base

GAME_STATUSES = ("lobby", "playing", "finished")


class GameState(Base):
    __tablename__ = "game_state"

    id = Column(Integer, primary_key=True, index=True)
    quiz_id = Column(Integer, ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, unique=True)
    current_question_id = Column(Integer, ForeignKey("questions.id", ondelete="SET NULL"), nullable=True)
    current_slide = Column(String, nullable=False, default="question")
    current_slide_id = Column(Integer, ForeignKey("slides.id", ondelete="SET NULL"), nullable=True)
    timer_started_at = Column(DateTime(timezone=True), nullable=True)
    status = Column(String, nullable=False, default="lobby")  # lobby | playing | finished
    registration_open = Column(Boolean, nullable=False, default=False)
    results_reveal_count = Column(Integer, nullable=False, default=0)
    show_bots_on_tv = Column(Boolean, nullable=False, default=True)
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    quiz = relationship("Quiz", back_populates="game_state")
    current_question = relationship("Question", foreign_keys=[current_question_id])
