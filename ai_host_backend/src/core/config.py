"""Application configuration utilities.

This module centralizes environment configuration for the backend, including
JWT secrets, the session cookie, the SQLite database path, AI provider keys,
and the base URL used to reach sibling endpoints.

PySecure-4-Minimal controls:
- Do not log secrets.
- Validate numeric and boolean env values.
- Avoid crashing on missing env; provide safe defaults for dev.

Environment variables (to be provided via .env by orchestrator):
- JWT_SECRET: Secret key for JWT; defaults to a dev value only for local use
- JWT_ALGORITHM: Defaults to HS256
- ACCESS_TOKEN_EXPIRE_MINUTES: Defaults to 60
- DB_PATH: Optional absolute/relative path to sqlite database. If not provided,
  a local ai_host.db next to the backend sources is used.
- SESSION_COOKIE_NAME / SESSION_COOKIE_SECURE: session cookie settings
- SITE_URL: Base URL of this service, used by the guidebook reprocess forward
- OPENAI_API_KEY / OPENAI_MODEL / GEMINI_API_KEY: AI providers (empty disables)
- AI_PROBE_TIMEOUT_SECONDS, AI_REQUEST_TIMEOUT_SECONDS, PROCESSOR_TIMEOUT_SECONDS
- LOG_LEVEL: Defaults to INFO

Note: Do not write .env here. Provide a .env.example elsewhere if needed.
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Optional
from pydantic import BaseModel, Field


class Settings(BaseModel):
    """Configuration settings loaded from environment with secure defaults."""
    jwt_secret: str = Field(
        default="dev-secret-change-me", description="JWT secret key (dev default)."
    )
    jwt_algorithm: str = Field(default="HS256", description="JWT signing algorithm.")
    access_token_expire_minutes: int = Field(
        default=60, description="Access token TTL in minutes."
    )
    db_path: Optional[str] = Field(default=None, description="SQLite DB path.")
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000"],
        description="Allowed CORS origins.",
    )
    session_cookie_name: str = Field(
        default="ai_host_session", description="Cookie carrying the session token."
    )
    session_cookie_secure: bool = Field(
        default=False, description="Set the Secure flag on the session cookie."
    )
    site_url: str = Field(
        default="http://localhost:8000",
        description="Base URL used to reach sibling endpoints of this service.",
    )
    openai_api_key: str = Field(default="", description="OpenAI API key (empty disables).")
    openai_model: str = Field(default="gpt-4o", description="Preferred OpenAI chat model.")
    gemini_api_key: str = Field(default="", description="Gemini API key (empty disables).")
    ai_probe_timeout_seconds: float = Field(
        default=5.0, description="Timeout for diagnostics probes."
    )
    ai_request_timeout_seconds: float = Field(
        default=15.0, description="Timeout for generation requests."
    )
    processor_timeout_seconds: float = Field(
        default=120.0, description="Timeout for the guidebook reprocess forward call."
    )
    log_level: str = Field(default="INFO", description="Root log level.")


def _default_db_path() -> str:
    """Resolve the default SQLite file path under the backend workspace."""
    return str(Path(__file__).resolve().parents[2] / "ai_host.db")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if raw in {"1", "true", "yes", "on"}:
        return True
    if raw in {"0", "false", "no", "off"}:
        return False
    return default


def load_settings() -> Settings:
    """Load settings from environment with robust defaults and validation.

    Returns:
        Settings: Validated settings object.

    Raises:
        ValidationError: If environment values are invalid.
    """
    cors_origins_raw = os.getenv("CORS_ORIGINS", "http://localhost:3000")
    cors_origins = [o.strip() for o in cors_origins_raw.split(",") if o.strip()]

    db_path_env = os.getenv("DB_PATH")
    db_path = db_path_env if db_path_env else _default_db_path()

    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    if log_level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        log_level = "INFO"

    return Settings(
        jwt_secret=os.getenv("JWT_SECRET", "dev-secret-change-me"),
        jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
        access_token_expire_minutes=_env_int("ACCESS_TOKEN_EXPIRE_MINUTES", 60),
        db_path=db_path,
        cors_origins=cors_origins,
        session_cookie_name=os.getenv("SESSION_COOKIE_NAME", "ai_host_session").strip() or "ai_host_session",
        session_cookie_secure=_env_bool("SESSION_COOKIE_SECURE", False),
        site_url=os.getenv("SITE_URL", "http://localhost:8000").strip().rstrip("/"),
        openai_api_key=os.getenv("OPENAI_API_KEY", "").strip(),
        openai_model=os.getenv("OPENAI_MODEL", "gpt-4o").strip() or "gpt-4o",
        gemini_api_key=os.getenv("GEMINI_API_KEY", "").strip(),
        ai_probe_timeout_seconds=_env_float("AI_PROBE_TIMEOUT_SECONDS", 5.0),
        ai_request_timeout_seconds=_env_float("AI_REQUEST_TIMEOUT_SECONDS", 15.0),
        processor_timeout_seconds=_env_float("PROCESSOR_TIMEOUT_SECONDS", 120.0),
        log_level=log_level,
    )


# Singleton-style accessor
_settings: Optional[Settings] = None

# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Get cached application settings."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings

# PUBLIC_INTERFACE
def reset_settings_cache() -> None:
    """Reset the cached settings.

    This is primarily intended for tests to ensure that changes to environment
    variables (e.g., DB_PATH, OPENAI_API_KEY) take effect on subsequent calls
    to get_settings().
    """
    global _settings
    _settings = None
