from datetime import datetime

import pytest

from src.core.config import get_settings, reset_settings_cache
from src.models.diagnostics import AIHealthCheck, AIServiceStatus
from src.services import ai_diagnostics, ai_providers

from conftest import FakeGemini, FakeOpenAI, ProviderError


def _health(openai_status, gemini_status, recommended):
    return AIHealthCheck(
        timestamp="2026-01-01T00:00:00+00:00",
        openai=openai_status,
        gemini=gemini_status,
        recommended_service=recommended,
    )


@pytest.fixture
def keys(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("GEMINI_API_KEY", "gm-test")
    reset_settings_cache()
    return get_settings()


def _use_openai(monkeypatch, fake):
    monkeypatch.setattr(ai_providers, "openai_client", lambda settings, timeout: fake)


def _use_gemini(monkeypatch, fake):
    monkeypatch.setattr(ai_providers, "gemini_client", lambda settings: fake)


# --- endpoint envelope ---

@pytest.mark.parametrize("method", ["get", "post"])
def test_endpoint_success_envelope(client, method):
    r = getattr(client, method)("/api/ai-diagnostics")
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert set(body) == {"success", "healthCheck", "summary", "timestamp"}
    datetime.fromisoformat(body["timestamp"])
    check = body["healthCheck"]
    assert check["recommendedService"] == "fallback"
    assert check["openai"] == {"service": "openai", "status": "invalid_key", "error": "No API key configured"}


def test_endpoint_failure_envelope(client, monkeypatch):
    def boom():
        raise RuntimeError("probe pool exploded")

    monkeypatch.setattr(ai_diagnostics, "run_ai_health_check", boom)
    r = client.post("/api/ai-diagnostics")
    assert r.status_code == 500
    body = r.json()
    assert body["success"] is False
    assert body["error"] == "probe pool exploded"
    assert "timestamp" in body
    assert "healthCheck" not in body and "summary" not in body


# --- probes ---

def test_no_keys_recommends_fallback():
    check = ai_diagnostics.run_ai_health_check()
    assert check.openai.status == "invalid_key"
    assert check.gemini.status == "invalid_key"
    assert check.recommended_service == "fallback"


def test_openai_working(monkeypatch, keys):
    fake = FakeOpenAI({}, default="Hi")
    _use_openai(monkeypatch, fake)
    status = ai_diagnostics.probe_openai(keys)
    assert status.status == "working"
    assert status.model == "gpt-3.5-turbo"
    assert status.response_time is not None
    assert fake.calls[0]["max_tokens"] == 10


def test_openai_empty_content_is_unknown_error(monkeypatch, keys):
    _use_openai(monkeypatch, FakeOpenAI({}, default=""))
    status = ai_diagnostics.probe_openai(keys)
    assert (status.status, status.error) == ("unknown_error", "No response content")


@pytest.mark.parametrize(
    "error, expected",
    [
        (ProviderError("rate limited", status_code=429), "quota_exceeded"),
        (ProviderError("no credit", status_code=400, code="insufficient_quota"), "quota_exceeded"),
        (ProviderError("bad key", status_code=401), "invalid_key"),
        (ProviderError("no such model", status_code=404), "model_not_found"),
        (ProviderError("dns failure"), "network_error"),
    ],
)
def test_openai_error_classification(monkeypatch, keys, error, expected):
    _use_openai(monkeypatch, FakeOpenAI({}, default=error))
    status = ai_diagnostics.probe_openai(keys)
    assert status.status == expected
    assert status.response_time is not None


def test_openai_network_error_keeps_message(monkeypatch, keys):
    _use_openai(monkeypatch, FakeOpenAI({}, default=ProviderError("dns failure")))
    assert ai_diagnostics.probe_openai(keys).error == "dns failure"


def test_gemini_tries_models_in_order(monkeypatch, keys):
    fake = FakeGemini({"models/gemini-2.0-flash": ProviderError("404 not found", code=404)}, default="Hello there")
    _use_gemini(monkeypatch, fake)
    status = ai_diagnostics.probe_gemini(keys)
    assert status.status == "working"
    assert status.model == "models/gemini-1.5-flash"
    assert [c["model"] for c in fake.calls] == ["models/gemini-2.0-flash", "models/gemini-1.5-flash"]


def test_gemini_all_models_failing(monkeypatch, keys):
    fake = FakeGemini({}, default=ProviderError("nope"))
    _use_gemini(monkeypatch, fake)
    status = ai_diagnostics.probe_gemini(keys)
    assert status.status == "model_not_found"
    assert status.error == "All models failed or not found"
    assert len(fake.calls) == len(ai_diagnostics.GEMINI_PROBE_MODELS)


def test_recommendation_prefers_openai_then_gemini(monkeypatch, keys):
    _use_openai(monkeypatch, FakeOpenAI({}, default="ok"))
    _use_gemini(monkeypatch, FakeGemini({}, default="ok"))
    assert ai_diagnostics.run_ai_health_check().recommended_service == "openai"

    _use_openai(monkeypatch, FakeOpenAI({}, default=ProviderError("quota", status_code=429)))
    assert ai_diagnostics.run_ai_health_check().recommended_service == "gemini"


def test_crashing_client_factory_is_reported_not_raised(monkeypatch, keys):
    def broken(settings):
        raise RuntimeError("sdk import-time config error")

    monkeypatch.setattr(ai_providers, "gemini_client", broken)
    _use_openai(monkeypatch, FakeOpenAI({}, default="ok"))
    check = ai_diagnostics.run_ai_health_check()
    assert check.gemini.status == "unknown_error"
    assert check.recommended_service == "openai"


# --- summary ---

def test_summary_for_working_services():
    text = ai_diagnostics.get_service_summary(
        _health(
            AIServiceStatus(service="openai", status="working", model="gpt-3.5-turbo", response_time=120),
            AIServiceStatus(service="gemini", status="model_not_found", error="All models failed or not found"),
            "openai",
        )
    )
    assert "✅ **OpenAI**: Working (gpt-3.5-turbo, 120ms)" in text
    assert "⚠️ **Gemini**: Models not accessible" in text
    assert "🎯 **Recommended**: Using OPENAI" in text
    assert "Note" not in text


def test_summary_for_fallback():
    text = ai_diagnostics.get_service_summary(
        _health(
            AIServiceStatus(service="openai", status="quota_exceeded", error="API quota exceeded"),
            AIServiceStatus(service="gemini", status="network_error", error="timeout"),
            "fallback",
        )
    )
    assert "⚠️ **OpenAI**: Quota exceeded" in text
    assert "❌ **Gemini**: timeout" in text
    assert "Using intelligent fallback responses" in text
    assert "💡 **Note**" in text
