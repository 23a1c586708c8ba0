from sqlalchemy import Column, Integer, String, ForeignKey, JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship
from app.core.database import Base

SLIDE_TYPES = (
    "video_warning", "video_intro", "question", "timer", "answer",
    "extra", "results", "thanks", "final",
)
BASE_SLIDE_TYPES = ("question", "timer", "answer")


class Slide(Base):
    __tablename__ = "slides"

    id = Column(Integer, primary_key=True, index=True)
    question_id = Column(Integer, ForeignKey("questions.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String, nullable=False)
    image_url = Column(String, nullable=True)
    video_url = Column(String, nullable=True)
    video_layout = Column(JSON().with_variant(JSONB, "postgresql"), nullable=True)  # { top, left, width, height } in %
    sort_order = Column(Integer, nullable=False, default=0)

    question = relationship("Question", back_populates="slides")
