"""AI text generation with provider fallback.

Order: cache, OpenAI (several models), Gemini (several models), then a short
offline reply so callers always get text back. Provider SDK errors are logged
and never raised from generate_ai_response().
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List, Literal, Optional, Sequence

from google import genai
from google.genai import types as genai_types
from openai import OpenAI

from src.core.config import Settings, get_settings
from src.services.response_cache import response_cache

logger = logging.getLogger(__name__)

Role = Literal["system", "user", "assistant"]
Provider = Literal["openai", "gemini", "fallback"]

OPENAI_BACKUP_MODELS = ("gpt-3.5-turbo", "gpt-4o-mini")
GEMINI_MODELS = (
    "models/gemini-2.0-flash",
    "models/gemini-1.5-flash",
    "models/gemini-1.5-pro",
    "models/gemini-pro-latest",
)
FALLBACK_MODEL = "offline-fallback"
MAX_OPENAI_TOKENS = 2000
# Replies this short are treated as empty
MIN_CONTENT_LENGTH = 10
_UNCACHEABLE_WORDS = ("current", "today", "now")


@dataclass(frozen=True)
class AIMessage:
    role: Role
    content: str


@dataclass(frozen=True)
class AIResponse:
    content: str
    provider: Provider
    model: str


def error_status(exc: BaseException) -> Optional[int]:
    """HTTP status carried by a provider SDK error, if any."""
    code = getattr(exc, "status_code", None)
    if code is None:
        code = getattr(exc, "code", None)
    return code if isinstance(code, int) else None


def is_quota_error(exc: BaseException) -> bool:
    return error_status(exc) == 429 or getattr(exc, "code", None) == "insufficient_quota"


def openai_client(settings: Settings, timeout: float) -> OpenAI:
    return OpenAI(api_key=settings.openai_api_key, timeout=timeout, max_retries=0)


def gemini_client(settings: Settings) -> Any:
    return genai.Client(api_key=settings.gemini_api_key)


def _first(messages: Sequence[AIMessage], role: Role) -> str:
    for m in messages:
        if m.role == role:
            return m.content
    return ""


def messages_to_prompt(messages: Sequence[AIMessage]) -> str:
    """Flatten chat messages into a single Gemini prompt."""
    return f"{_first(messages, 'system')}\n\nUser: {_first(messages, 'user')}\n\nAssistant:"


def _usable(content: Optional[str]) -> bool:
    return bool(content) and len(content.strip()) > MIN_CONTENT_LENGTH


def _try_openai(settings: Settings, messages: Sequence[AIMessage], model: str, max_tokens: int, temperature: float) -> Optional[AIResponse]:
    client = openai_client(settings, settings.ai_request_timeout_seconds)
    candidates: List[str] = []
    for name in (model, *OPENAI_BACKUP_MODELS):
        if name not in candidates:
            candidates.append(name)

    for name in candidates:
        try:
            completion = client.chat.completions.create(
                model=name,
                messages=[{"role": m.role, "content": m.content} for m in messages],
                max_tokens=min(max_tokens, MAX_OPENAI_TOKENS),
                temperature=temperature,
            )
        except Exception as exc:
            logger.warning("OpenAI %s failed: %s", name, exc)
            if is_quota_error(exc):
                logger.info("OpenAI quota or rate limit reached, skipping remaining OpenAI models")
                break
            continue
        content = completion.choices[0].message.content if completion.choices else None
        if _usable(content):
            return AIResponse(content=content.strip(), provider="openai", model=name)
    return None


def _try_gemini(settings: Settings, messages: Sequence[AIMessage], max_tokens: int, temperature: float) -> Optional[AIResponse]:
    client = gemini_client(settings)
    prompt = messages_to_prompt(messages)
    config = genai_types.GenerateContentConfig(max_output_tokens=max_tokens, temperature=temperature)
    for name in GEMINI_MODELS:
        try:
            result = client.models.generate_content(model=name, contents=prompt, config=config)
        except Exception as exc:
            logger.warning("Gemini %s failed: %s", name, exc)
            continue
        content = getattr(result, "text", None)
        if _usable(content):
            return AIResponse(content=content.strip(), provider="gemini", model=name)
    return None


def fallback_reply(user_message: str) -> str:
    """Offline reply used when no provider answers."""
    lower = user_message.lower()
    if "wifi" in lower or "password" in lower:
        topic = "The WiFi details are listed in your property guide."
    elif "check" in lower and ("in" in lower or "out" in lower):
        topic = "Check-in and check-out steps are in your property guide."
    else:
        topic = "Your property guide has the details for most questions about your stay."
    return (
        "I'm having trouble reaching my AI services right now. "
        f"{topic} If something is urgent, please contact your host directly."
    )


# PUBLIC_INTERFACE
def generate_ai_response(
    messages: Sequence[AIMessage],
    max_tokens: int = 1000,
    temperature: float = 0.7,
    model: Optional[str] = None,
) -> AIResponse:
    """Generate a reply, falling back across providers.

    Args:
        messages: Chat messages; the first system and user messages are used
            for caching and for the Gemini prompt.
        max_tokens: Output token budget.
        temperature: Sampling temperature.
        model: Preferred OpenAI model; defaults to OPENAI_MODEL.

    Returns:
        AIResponse whose provider is "fallback" when no provider answered.
    """
    settings = get_settings()
    user_message = _first(messages, "user")
    system_prompt = _first(messages, "system")

    cacheable = not any(word in user_message.lower() for word in _UNCACHEABLE_WORDS)
    if cacheable:
        cached = response_cache.get(user_message, system_prompt)
        if cached:
            return AIResponse(content=cached.response, provider=cached.provider, model=cached.model)  # type: ignore[arg-type]

    response: Optional[AIResponse] = None
    if settings.openai_api_key:
        response = _try_openai(settings, messages, model or settings.openai_model, max_tokens, temperature)
    if response is None and settings.gemini_api_key:
        response = _try_gemini(settings, messages, max_tokens, temperature)
    if response is None:
        logger.warning("No AI provider answered, using offline fallback")
        response = AIResponse(content=fallback_reply(user_message), provider="fallback", model=FALLBACK_MODEL)

    response_cache.set(user_message, system_prompt, response.content, response.provider, response.model)
    return response
