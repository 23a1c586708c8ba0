from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.orm import relationship
from app.core.database import Base

QUIZ_STATUSES = ("draft", "active", "finished", "archived")


class Quiz(Base):
    __tablename__ = "quizzes"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    status = Column(String, nullable=False, default="draft")  # draft | active | finished | archived
    join_code = Column(String(6), unique=True, nullable=True, index=True)
    displayed_on_tv = Column(Boolean, nullable=False, default=False)

    # full-screen images shown on the TV between rounds
    demo_image_url = Column(String, nullable=True)
    rules_image_url = Column(String, nullable=True)
    thanks_image_url = Column(String, nullable=True)
    final_image_url = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    questions = relationship(
        "Question",
        back_populates="quiz",
        cascade="all, delete-orphan",
        order_by="Question.order_num",
    )
    teams = relationship("Team", back_populates="quiz", cascade="all, delete-orphan")
    game_state = relationship("GameState", back_populates="quiz", uselist=False, cascade="all, delete-orphan")
