from src.core.config import get_settings, reset_settings_cache


def test_defaults(monkeypatch):
    for name in ("SESSION_COOKIE_SECURE", "PROCESSOR_TIMEOUT_SECONDS", "CORS_ORIGINS", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    reset_settings_cache()
    s = get_settings()
    assert s.session_cookie_name == "ai_host_session"
    assert s.session_cookie_secure is False
    assert s.site_url == "http://localhost:8000"
    assert s.processor_timeout_seconds == 120.0
    assert s.cors_origins == ["http://localhost:3000"]
    assert s.openai_api_key == ""


def test_invalid_values_fall_back(monkeypatch):
    monkeypatch.setenv("ACCESS_TOKEN_EXPIRE_MINUTES", "soon")
    monkeypatch.setenv("AI_PROBE_TIMEOUT_SECONDS", "-3")
    monkeypatch.setenv("SESSION_COOKIE_SECURE", "maybe")
    monkeypatch.setenv("LOG_LEVEL", "chatty")
    reset_settings_cache()
    s = get_settings()
    assert s.access_token_expire_minutes == 60
    assert s.ai_probe_timeout_seconds == 5.0
    assert s.session_cookie_secure is False
    assert s.log_level == "INFO"


def test_overrides(monkeypatch):
    monkeypatch.setenv("SITE_URL", "https://host.example.com/")
    monkeypatch.setenv("SESSION_COOKIE_SECURE", "true")
    monkeypatch.setenv("CORS_ORIGINS", "https://a.example.com, https://b.example.com")
    reset_settings_cache()
    s = get_settings()
    assert s.site_url == "https://host.example.com"
    assert s.session_cookie_secure is True
    assert s.cors_origins == ["https://a.example.com", "https://b.example.com"]


def test_settings_are_cached_until_reset(monkeypatch):
    reset_settings_cache()
    first = get_settings()
    monkeypatch.setenv("OPENAI_MODEL", "gpt-4o-mini")
    assert get_settings() is first
    reset_settings_cache()
    assert get_settings().openai_model == "gpt-4o-mini"


def test_liveness(client):
    r = client.get("/")
    assert r.status_code == 200
    assert r.json() == {"status": "ok", "service": "ai-host-backend"}
