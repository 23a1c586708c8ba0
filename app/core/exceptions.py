"""Exception hierarchy for the quiz API. Each error knows its HTTP status."""

from typing import Any, Dict, Optional


class QuizAppError(Exception):
    """Base exception for all quiz errors."""

    status_code = 400

    def __init__(self, message: str, error_code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        body: Dict[str, Any] = {"error": self.message, "code": self.error_code}
        if self.details:
            body["details"] = self.details
        return body


class NotFoundError(QuizAppError):
    status_code = 404

    def __init__(self, entity: str, entity_id: Any = None):
        super().__init__(
            message=f"{entity} not found",
            error_code="NOT_FOUND",
            details={"id": entity_id} if entity_id is not None else None,
        )


class GameStateError(QuizAppError):
    """An operation was called in a game status that does not allow it."""
    pass


class GameNotStartedError(GameStateError):

    def __init__(self, quiz_id: int):
        super().__init__(
            message="Game not started",
            error_code="GAME_NOT_STARTED",
            details={"quiz_id": quiz_id},
        )


class AnswerValidationError(QuizAppError):
    """Rejected answer submission."""
    pass


class ImportFileError(QuizAppError):
    """Upload that cannot be read as slides or as a question document."""
    pass


class JoinCodeExhaustedError(QuizAppError):
    status_code = 500


class LLMResponseError(QuizAppError):
    """A provider answered with something that is not the expected JSON."""
    status_code = 502


class LLMUnavailableError(QuizAppError):
    """Every configured provider failed or none is configured."""
    status_code = 502
