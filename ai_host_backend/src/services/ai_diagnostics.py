"""AI provider health checks.

Each probe sends one tiny generation request and classifies the outcome.
Both providers are probed concurrently; a probe never raises.
"""
from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone

from src.core.config import Settings, get_settings
from src.models.diagnostics import AIHealthCheck, AIServiceStatus
from src.services import ai_providers

logger = logging.getLogger(__name__)

PROBE_MESSAGE = "Test message"
OPENAI_PROBE_MODEL = "gpt-3.5-turbo"
GEMINI_PROBE_MODELS = (
    "models/gemini-2.0-flash",
    "models/gemini-1.5-flash",
    "models/gemini-pro-latest",
)


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


def probe_openai(settings: Settings) -> AIServiceStatus:
    """Probe OpenAI with a single short completion."""
    if not settings.openai_api_key:
        return AIServiceStatus(service="openai", status="invalid_key", error="No API key configured")

    started = time.monotonic()
    try:
        client = ai_providers.openai_client(settings, settings.ai_probe_timeout_seconds)
        completion = client.chat.completions.create(
            model=OPENAI_PROBE_MODEL,
            messages=[{"role": "user", "content": PROBE_MESSAGE}],
            max_tokens=10,
        )
    except Exception as exc:
        elapsed = _elapsed_ms(started)
        code = ai_providers.error_status(exc)
        if ai_providers.is_quota_error(exc):
            return AIServiceStatus(service="openai", status="quota_exceeded", error="API quota exceeded", response_time=elapsed)
        if code == 401:
            return AIServiceStatus(service="openai", status="invalid_key", error="Invalid API key", response_time=elapsed)
        if code == 404:
            return AIServiceStatus(service="openai", status="model_not_found", error="Model not found", response_time=elapsed)
        return AIServiceStatus(service="openai", status="network_error", error=str(exc), response_time=elapsed)

    content = completion.choices[0].message.content if completion.choices else None
    if content:
        return AIServiceStatus(service="openai", status="working", model=OPENAI_PROBE_MODEL, response_time=_elapsed_ms(started))
    return AIServiceStatus(service="openai", status="unknown_error", error="No response content")


def probe_gemini(settings: Settings) -> AIServiceStatus:
    """Probe Gemini, trying each model until one answers."""
    if not settings.gemini_api_key:
        return AIServiceStatus(service="gemini", status="invalid_key", error="No API key configured")

    started = time.monotonic()
    client = ai_providers.gemini_client(settings)
    for name in GEMINI_PROBE_MODELS:
        try:
            result = client.models.generate_content(model=name, contents=PROBE_MESSAGE)
        except Exception as exc:
            logger.info("Gemini model %s failed: %s", name, exc)
            continue
        text = getattr(result, "text", None)
        if text and text.strip():
            return AIServiceStatus(service="gemini", status="working", model=name, response_time=_elapsed_ms(started))

    return AIServiceStatus(
        service="gemini",
        status="model_not_found",
        error="All models failed or not found",
        response_time=_elapsed_ms(started),
    )


def _safe(probe, service: str, settings: Settings) -> AIServiceStatus:
    try:
        return probe(settings)
    except Exception as exc:
        # e.g. the SDK client could not be constructed
        logger.warning("%s probe crashed: %s", service, exc)
        return AIServiceStatus(service=service, status="unknown_error", error=str(exc))


# PUBLIC_INTERFACE
def run_ai_health_check() -> AIHealthCheck:
    """Probe all providers and pick the one guest chat should use."""
    settings = get_settings()
    logger.info("Running AI services health check")

    with ThreadPoolExecutor(max_workers=2, thread_name_prefix="ai-probe") as pool:
        openai_future = pool.submit(_safe, probe_openai, "openai", settings)
        gemini_future = pool.submit(_safe, probe_gemini, "gemini", settings)
        openai_status = openai_future.result()
        gemini_status = gemini_future.result()

    if openai_status.status == "working":
        recommended = "openai"
    elif gemini_status.status == "working":
        recommended = "gemini"
    else:
        recommended = "fallback"

    logger.info(
        "Health check results: openai=%s (%sms) gemini=%s (%sms) recommended=%s",
        openai_status.status,
        openai_status.response_time,
        gemini_status.status,
        gemini_status.response_time,
        recommended,
    )
    return AIHealthCheck(
        timestamp=datetime.now(timezone.utc).isoformat(),
        openai=openai_status,
        gemini=gemini_status,
        recommended_service=recommended,
    )


# PUBLIC_INTERFACE
def get_service_summary(health_check: AIHealthCheck) -> str:
    """Render a human-readable status summary."""
    openai_status = health_check.openai
    gemini_status = health_check.gemini
    recommended = health_check.recommended_service

    lines = ["🤖 **AI Services Status**", ""]

    if openai_status.status == "working":
        lines.append(f"✅ **OpenAI**: Working ({openai_status.model}, {openai_status.response_time}ms)")
    elif openai_status.status == "quota_exceeded":
        lines.append("⚠️ **OpenAI**: Quota exceeded - upgrade plan or wait for reset")
    elif openai_status.status == "invalid_key":
        lines.append("❌ **OpenAI**: Invalid API key")
    else:
        lines.append(f"❌ **OpenAI**: {openai_status.error}")

    if gemini_status.status == "working":
        lines.append(f"✅ **Gemini**: Working ({gemini_status.model}, {gemini_status.response_time}ms)")
    elif gemini_status.status == "model_not_found":
        lines.append("⚠️ **Gemini**: Models not accessible - check API key permissions")
    elif gemini_status.status == "invalid_key":
        lines.append("❌ **Gemini**: Invalid API key")
    else:
        lines.append(f"❌ **Gemini**: {gemini_status.error}")

    using = "intelligent fallback responses" if recommended == "fallback" else recommended.upper()
    lines.extend(["", f"🎯 **Recommended**: Using {using}"])

    if recommended == "fallback":
        lines.extend([
            "",
            "💡 **Note**: All AI services are currently unavailable, but the host will still "
            "answer guests using built-in fallback responses.",
        ])
    return "\n".join(lines) + "\n"
