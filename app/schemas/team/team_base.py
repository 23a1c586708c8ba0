from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from app.schemas.common.camel_base import CamelModel


class TeamCreate(CamelModel):
    name: str
    telegram_chat_id: Optional[int] = None

    @field_validator("name")
    @classmethod
    def check_name(cls, value: str) -> str:
        value = value.strip()
        if not 1 <= len(value) <= 50:
            raise ValueError("name must be 1-50 characters")
        return value


class TeamOut(CamelModel):
    id: int
    quiz_id: int
    name: str
    telegram_chat_id: Optional[int] = None
    is_kicked: bool = False
    is_bot: bool = False
    registered_at: Optional[datetime] = None


class TestBotsCreate(CamelModel):
    count: int = Field(default=5, ge=1, le=20)
