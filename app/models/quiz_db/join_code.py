import secrets

from sqlalchemy.orm import Session

from app.core.exceptions import JoinCodeExhaustedError
from app.models.quiz_db.quiz_db import Quiz

JOIN_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
JOIN_CODE_LENGTH = 6
JOIN_CODE_ATTEMPTS = 20


def generate_join_code(length: int = JOIN_CODE_LENGTH) -> str:
    """Random code without the look-alikes I, O, 0 and 1."""
    return "".join(secrets.choice(JOIN_CODE_ALPHABET) for _ in range(length))


def generate_unique_join_code(db: Session) -> str:
    for _ in range(JOIN_CODE_ATTEMPTS):
        code = generate_join_code()
        if not db.query(Quiz.id).filter(Quiz.join_code == code).first():
            return code
    raise JoinCodeExhaustedError("Could not generate a unique join code")
