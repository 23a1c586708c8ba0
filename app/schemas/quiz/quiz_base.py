from datetime import datetime
from typing import Literal, Optional

from pydantic import field_validator

from app.schemas.common.camel_base import CamelModel

QuizStatus = Literal["draft", "active", "finished", "archived"]


class QuizImages(CamelModel):
    demo_image_url: Optional[str] = None
    rules_image_url: Optional[str] = None
    thanks_image_url: Optional[str] = None
    final_image_url: Optional[str] = None


class QuizCreate(QuizImages):
    title: str
    status: QuizStatus = "draft"

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("title must not be blank")
        return value


class QuizUpdate(QuizImages):
    title: Optional[str] = None
    status: Optional[QuizStatus] = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: Optional[str]) -> Optional[str]:
        if value is not None:
            value = value.strip()
            if not value:
                raise ValueError("title must not be blank")
        return value


class QuizOut(QuizImages):
    id: int
    title: str
    status: str
    join_code: Optional[str] = None
    displayed_on_tv: bool = False
    created_at: Optional[datetime] = None
