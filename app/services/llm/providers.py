"""LLM providers. Each takes a prompt (plus optional slide images) and returns the raw model text."""

import base64
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional

import httpx
from google import genai
from google.genai import types

from app.core.config import settings
from app.core.logger import get_llm_logger, log_llm_usage

logger = get_llm_logger()


@dataclass
class LLMImage:
    data: bytes
    mime_type: str
    name: str


@dataclass
class Provider:
    name: str
    api_key: Optional[str]
    call: Callable[..., Awaitable[str]]


async def ask_gemini(prompt: str, images: Optional[List[LLMImage]] = None) -> str:
    client = genai.Client(api_key=settings.GEMINI_API_KEY)
    contents = [prompt]
    for image in images or []:
        contents.append(types.Part.from_bytes(data=image.data, mime_type=image.mime_type))
    response = await client.aio.models.generate_content(model=settings.GEMINI_MODEL, contents=contents)

    usage = response.usage_metadata
    if usage is not None:
        log_llm_usage(
            "Gemini",
            settings.GEMINI_MODEL,
            prompt_tokens=usage.prompt_token_count,
            completion_tokens=usage.candidates_token_count,
            total_tokens=usage.total_token_count,
            images=len(images or []),
        )
    if not response.text:
        raise RuntimeError("Gemini response did not contain usable text")
    return response.text


def _message_content(prompt: str, images: Optional[List[LLMImage]]):
    if not images:
        return prompt
    content = [{"type": "text", "text": prompt}]
    for image in images:
        encoded = base64.b64encode(image.data).decode("ascii")
        content.append({"type": "image_url", "image_url": {"url": f"data:{image.mime_type};base64,{encoded}"}})
    content.append({"type": "text", "text": "Return JSON only, no markdown and no comments."})
    return content


async def _chat_completion(
    provider: str,
    url: str,
    api_key: str,
    model: str,
    prompt: str,
    images: Optional[List[LLMImage]] = None,
    temperature: Optional[float] = None,
) -> str:
    payload = {"model": model, "messages": [{"role": "user", "content": _message_content(prompt, images)}]}
    if temperature is not None:
        payload["temperature"] = temperature

    async with httpx.AsyncClient(timeout=settings.LLM_TIMEOUT_SEC) as client:
        response = await client.post(url, json=payload, headers={"Authorization": f"Bearer {api_key}"})
        if response.status_code >= 400:
            raise RuntimeError(f"{model} API error: {response.status_code} {response.text[:200]}")
        data = response.json()

    usage = data.get("usage") or {}
    if usage:
        log_llm_usage(
            provider,
            model,
            prompt_tokens=usage.get("prompt_tokens"),
            completion_tokens=usage.get("completion_tokens"),
            total_tokens=usage.get("total_tokens"),
            images=len(images or []),
        )

    choices = data.get("choices") or [{}]
    return (choices[0].get("message") or {}).get("content") or "{}"


async def ask_groq(prompt: str, images: Optional[List[LLMImage]] = None) -> str:
    # the text model cannot look at slides
    model = settings.GROQ_VISION_MODEL if images else settings.GROQ_MODEL
    return await _chat_completion("Groq", settings.GROQ_URL, settings.GROQ_API_KEY, model, prompt, images, temperature=0.1)


async def ask_openrouter(prompt: str, images: Optional[List[LLMImage]] = None) -> str:
    return await _chat_completion(
        "OpenRouter", settings.OPENROUTER_URL, settings.OPENROUTER_API_KEY, settings.OPENROUTER_MODEL, prompt, images,
    )


async def ask_pixtral(prompt: str, images: Optional[List[LLMImage]] = None) -> str:
    return await _chat_completion(
        "Pixtral", settings.OPENROUTER_URL, settings.OPENROUTER_API_KEY, settings.PIXTRAL_MODEL, prompt, images,
        temperature=0,
    )


async def ask_gpt4o_mini(prompt: str, images: Optional[List[LLMImage]] = None) -> str:
    return await _chat_completion(
        "GPT-4o-mini", settings.OPENROUTER_URL, settings.OPENROUTER_API_KEY, settings.GPT4O_MINI_MODEL, prompt, images,
        temperature=0,
    )


def get_providers() -> List[Provider]:
    return [
        Provider("Gemini", settings.GEMINI_API_KEY, ask_gemini),
        Provider("Groq", settings.GROQ_API_KEY, ask_groq),
        Provider("OpenRouter", settings.OPENROUTER_API_KEY, ask_openrouter),
    ]


def get_vision_providers() -> List[Provider]:
    """Providers able to read slide images, in fallback order. Names double as the model picker values."""
    return [
        *get_providers(),
        Provider("Pixtral", settings.OPENROUTER_API_KEY, ask_pixtral),
        Provider("GPT-4o-mini", settings.OPENROUTER_API_KEY, ask_gpt4o_mini),
    ]


class LLMCallTracker:
    """Times one provider call and logs its outcome to llm.log."""

    def __init__(self, provider: str, prompt_chars: int, images: int = 0):
        self.provider = provider
        self.prompt_chars = prompt_chars
        self.images = images
        self._start = 0.0

    def __enter__(self) -> "LLMCallTracker":
        self._start = time.perf_counter()
        logger.info(
            "LLM call START provider=%s prompt_chars=%d images=%d", self.provider, self.prompt_chars, self.images,
        )
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        elapsed_ms = int((time.perf_counter() - self._start) * 1000)
        if exc is None:
            logger.info("LLM call END provider=%s elapsed_ms=%d", self.provider, elapsed_ms)
        else:
            logger.warning("LLM call FAILED provider=%s elapsed_ms=%d error=%s", self.provider, elapsed_ms, str(exc)[:200])
        return False
