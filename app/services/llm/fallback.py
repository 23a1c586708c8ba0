import logging
from typing import Callable, List, Optional, TypeVar

from app.core.exceptions import LLMUnavailableError, QuizAppError
from app.services.llm.providers import LLMCallTracker, LLMImage, Provider

logger = logging.getLogger("llm")

T = TypeVar("T")


async def ask_with_fallback(
    prompt: str,
    parse: Callable[[str], T],
    *,
    providers: List[Provider],
    images: Optional[List[LLMImage]] = None,
    model: Optional[str] = None,
) -> T:
    """Return parse(reply) of the first provider whose reply parses.

    Providers without an API key are skipped. With `model` set only the provider of
    that name is asked, and its failure is not retried elsewhere.
    """
    if model:
        chosen = [p for p in providers if p.name == model]
        if not chosen:
            raise QuizAppError(f"Unknown model: {model}", error_code="UNKNOWN_MODEL")
        if not chosen[0].api_key:
            raise LLMUnavailableError(f"{model}: API key not configured")
        providers = chosen

    errors = []
    for provider in providers:
        if not provider.api_key:
            logger.debug("%s: no key, skip", provider.name)
            continue
        try:
            with LLMCallTracker(provider.name, len(prompt), images=len(images or [])):
                if images:
                    raw = await provider.call(prompt, images)
                else:
                    raw = await provider.call(prompt)
                result = parse(raw)
        except Exception as e:
            errors.append(f"{provider.name}: {str(e)[:200]}")
            continue
        logger.info("LLM success via %s", provider.name)
        return result

    raise LLMUnavailableError(
        "All LLM providers failed" if errors else "No LLM provider is configured",
        details={"errors": errors},
    )
