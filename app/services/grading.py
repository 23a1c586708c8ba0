import logging
from typing import Callable, Optional

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from app.core import websocket
from app.core.exceptions import QuizAppError
from app.models.answer_db.answer_db import Answer
from app.services.llm.eval_prompt import TeamAnswer
from app.services.llm.evaluate_text_answer import evaluate_text_answers

logger = logging.getLogger(__name__)


def _load_submission(session_factory: Callable[[], Session], answer_id: int) -> Optional[dict]:
    with session_factory() as db:
        answer = db.query(Answer).filter(Answer.id == answer_id).first()
        if not answer or answer.question.question_type != "text":
            return None
        question = answer.question
        return {
            "quiz_id": question.quiz_id,
            "question_id": question.id,
            "team_id": answer.team_id,
            "answer_text": answer.answer_text,
            "correct_answers": question.canonical_answers(),
            "weight": question.weight,
        }


def _store_score(session_factory: Callable[[], Session], answer_id: int, graded_text: str, score: float) -> bool:
    with session_factory() as db:
        answer = db.query(Answer).filter(Answer.id == answer_id).first()
        # resubmitted while the provider was thinking: the newer text gets its own grading
        if not answer or answer.answer_text != graded_text:
            return False
        answer.awarded_score = score
        db.commit()
        return True


async def grade_text_answer(session_factory: Callable[[], Session], answer_id: int) -> None:
    """Background task: score one text answer with the LLM and announce it.

    When grading fails the answer stays unscored; an admin can still set a score by hand.
    """
    submission = await run_in_threadpool(_load_submission, session_factory, answer_id)
    if submission is None:
        return

    try:
        results = await evaluate_text_answers(
            submission["correct_answers"],
            [TeamAnswer(team_id=submission["team_id"], answer_text=submission["answer_text"])],
            submission["weight"],
        )
    except QuizAppError as e:
        logger.error("Grading answer %s failed, left unscored: %s", answer_id, e.message)
        return

    score = next((r.score for r in results if r.team_id == submission["team_id"]), None)
    if score is None:
        logger.error("Grading answer %s: provider skipped team %s", answer_id, submission["team_id"])
        return

    stored = await run_in_threadpool(_store_score, session_factory, answer_id, submission["answer_text"], score)
    if not stored:
        return

    await websocket.manager.broadcast("answer_scored", {
        "quizId": submission["quiz_id"],
        "questionId": submission["question_id"],
        "teamId": submission["team_id"],
        "answerId": answer_id,
        "awardedScore": score,
    })
