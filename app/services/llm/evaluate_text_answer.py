import logging
from typing import List, Optional

from app.services.llm.eval_prompt import (
    EvaluationResult,
    TeamAnswer,
    build_eval_prompt,
    parse_eval_response,
    to_results,
)
from app.services.llm.fallback import ask_with_fallback
from app.services.llm.providers import Provider, get_providers

logger = logging.getLogger("llm")


async def evaluate_text_answers(
    correct_answers: List[str],
    team_answers: List[TeamAnswer],
    weight: float,
    providers: Optional[List[Provider]] = None,
) -> List[EvaluationResult]:
    """Grade free-text answers with the first provider that answers sensibly.

    Providers are tried in order and skipped when they have no API key.
    Raises LLMUnavailableError when none of them produced a usable result.
    """
    if not team_answers:
        return []

    results = await ask_with_fallback(
        build_eval_prompt(correct_answers, team_answers, weight),
        lambda raw: to_results(parse_eval_response(raw), weight),
        providers=providers if providers is not None else get_providers(),
    )
    logger.info("Graded %d answer(s)", len(results))
    return results
