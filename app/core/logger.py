"""
Quiz Night logging
==================
Rotating file logs plus a console handler. Files are written to LOG_DIR:

  - quiz.log             General backend log (all levels)
  - llm.log              LLM provider calls (prompts sizes, provider, timing, failures)
  - game_events.jsonl    One JSON object per game event, for replaying a quiz night
  - llm_usage.jsonl      Token usage reported by each provider call
"""

from __future__ import annotations

import json
import logging
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

from app.core.config import settings

# ---------------------------------------------------------------------------
# Request / correlation id
# ---------------------------------------------------------------------------

_request_id: ContextVar[str] = ContextVar("request_id", default="-")


def set_request_id(rid: str | None = None) -> str:
    """Set a correlation ID for the current request context. Returns the ID."""
    rid = rid or uuid.uuid4().hex[:12]
    _request_id.set(rid)
    return rid


def get_request_id() -> str:
    return _request_id.get("-")


# ---------------------------------------------------------------------------
# Formatters
# ---------------------------------------------------------------------------

_VERBOSE_FMT = logging.Formatter(
    fmt="%(asctime)s | %(levelname)-8s | %(name)-20s | [%(request_id)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    defaults={"request_id": "-"},
)

_CONSOLE_FMT = logging.Formatter(
    fmt="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    datefmt="%H:%M:%S",
)


def _rotating_handler(
    log_dir: Path,
    filename: str,
    max_bytes: int = 5 * 1024 * 1024,
    backup_count: int = 5,
    level: int = logging.DEBUG,
) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        log_dir / filename,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(_VERBOSE_FMT)
    return handler


class _RequestIdFilter(logging.Filter):
    """Inject the current request_id context var into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id()  # type: ignore[attr-defined]
        return True


_CONFIGURED = False


def setup_logging(log_dir: str | None = None, console_level: str | None = None) -> None:
    """Initialise all loggers. Safe to call more than once."""
    global _CONFIGURED
    if _CONFIGURED:
        return
    _CONFIGURED = True

    directory = Path(log_dir or settings.LOG_DIR)
    directory.mkdir(parents=True, exist_ok=True)
    rid_filter = _RequestIdFilter()

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    console = logging.StreamHandler()
    console.setLevel(console_level or settings.LOG_LEVEL)
    console.setFormatter(_CONSOLE_FMT)
    root.addHandler(console)

    general = _rotating_handler(directory, "quiz.log")
    general.addFilter(rid_filter)
    root.addHandler(general)

    llm_handler = _rotating_handler(directory, "llm.log")
    llm_handler.addFilter(rid_filter)
    logging.getLogger("llm").addHandler(llm_handler)

    game_logger = logging.getLogger("game.events")
    game_logger.setLevel(logging.DEBUG)
    game_handler = _rotating_handler(
        directory,
        "game_events.jsonl",
        max_bytes=10 * 1024 * 1024,
        backup_count=10,
    )
    # raw JSON lines, no prefix
    game_handler.setFormatter(logging.Formatter("%(message)s"))
    game_logger.addHandler(game_handler)
    game_logger.propagate = False

    usage_logger = logging.getLogger("llm.usage")
    usage_logger.setLevel(logging.DEBUG)
    usage_handler = _rotating_handler(directory, "llm_usage.jsonl")
    usage_handler.setFormatter(logging.Formatter("%(message)s"))
    usage_logger.addHandler(usage_handler)
    usage_logger.propagate = False

    # SQL echo is controlled by DATABASE_ECHO
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    logging.getLogger("quiznight").info("Logging initialised, log directory: %s", directory.resolve())


def get_logger(name: str = "quiznight") -> logging.Logger:
    return logging.getLogger(name)


def get_llm_logger() -> logging.Logger:
    return logging.getLogger("llm")


def get_game_event_logger() -> logging.Logger:
    return logging.getLogger("game.events")


def log_game_event(
    event_type: str,
    *,
    quiz_id: int | None = None,
    team_id: int | None = None,
    data: dict[str, Any] | None = None,
) -> None:
    """Write a structured JSON line to game_events.jsonl."""
    record = {
        "ts": datetime.now(timezone.utc).isoformat(),
        "event": event_type,
        "request_id": get_request_id(),
    }
    if quiz_id is not None:
        record["quiz_id"] = quiz_id
    if team_id is not None:
        record["team_id"] = team_id
    if data:
        record["data"] = data
    get_game_event_logger().info(json.dumps(record, default=str, ensure_ascii=False))


def log_llm_usage(
    provider: str,
    model: str,
    *,
    prompt_tokens: int | None = None,
    completion_tokens: int | None = None,
    total_tokens: int | None = None,
    images: int = 0,
) -> None:
    """Write one JSON line per provider call to llm_usage.jsonl."""
    record = {
        "ts": datetime.now(timezone.utc).isoformat(),
        "provider": provider,
        "model": model,
        "prompt_tokens": prompt_tokens,
        "completion_tokens": completion_tokens,
        "total_tokens": total_tokens,
        "request_id": get_request_id(),
    }
    if images:
        record["images"] = images
    logging.getLogger("llm.usage").info(json.dumps(record, ensure_ascii=False))
