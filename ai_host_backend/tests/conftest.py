"""
Pytest configuration and shared fixtures.

Adjusts sys.path so `from src.api.main import app` works when tests run from
the repository root without an installed package, and gives every test its
own SQLite file with AI provider keys cleared.
"""
import sys
from pathlib import Path
from types import SimpleNamespace

import pytest

# Compute the backend root that contains the 'src' directory
BACKEND_ROOT = Path(__file__).resolve().parents[1]

# Prepend backend root to sys.path if not already present
backend_root_str = str(BACKEND_ROOT)
if backend_root_str not in sys.path:
    sys.path.insert(0, backend_root_str)

from fastapi.testclient import TestClient  # noqa: E402

from src.api.main import app  # noqa: E402
from src.core.config import reset_settings_cache  # noqa: E402
from src.services import ai_providers  # noqa: E402
from src.services import guidebook as guidebook_service  # noqa: E402
from src.services.ai_providers import AIResponse  # noqa: E402
from src.services.response_cache import response_cache  # noqa: E402

PASSWORD = "StrongPassw0rd!"

_ENV_TO_CLEAR = (
    "OPENAI_API_KEY",
    "GEMINI_API_KEY",
    "OPENAI_MODEL",
    "SITE_URL",
    "SESSION_COOKIE_NAME",
    "ACCESS_TOKEN_EXPIRE_MINUTES",
)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Fresh database, no AI keys, empty response cache."""
    monkeypatch.setenv("DB_PATH", str(tmp_path / "test.db"))
    for name in _ENV_TO_CLEAR:
        monkeypatch.delenv(name, raising=False)
    reset_settings_cache()
    response_cache.clear()
    yield
    app.dependency_overrides.clear()
    reset_settings_cache()
    response_cache.clear()


@pytest.fixture
def client():
    return TestClient(app)


def register_and_login(client: TestClient, email: str, full_name: str = "Owner") -> dict:
    """Register an owner and log in; the client keeps the session cookie."""
    r = client.post("/auth/register", json={"email": email, "full_name": full_name, "password": PASSWORD})
    assert r.status_code == 201, r.text
    user = r.json()
    r = client.post("/auth/login", json={"email": email, "password": PASSWORD})
    assert r.status_code == 200, r.text
    return {"user": user, "token": r.json()["access_token"]}


@pytest.fixture
def owner(client):
    """A logged-in owner using the shared client."""
    return register_and_login(client, "owner@example.com", "Olive Owner")


@pytest.fixture
def create_property(client):
    def _create(name: str = "Seaside Cottage", **fields) -> str:
        r = client.post("/api/properties", json={"name": name, **fields})
        assert r.status_code == 201, r.text
        return r.json()["propertyId"]

    return _create


@pytest.fixture
def fake_ai(monkeypatch):
    """Answer summaries and extractions deterministically; skip "Local recommendations"."""
    calls = []

    def fake_generate(messages, max_tokens=1000, temperature=0.7, model=None):
        system = messages[0].content
        calls.append({"system": system, "max_tokens": max_tokens, "temperature": temperature})
        if "Local recommendations" in system:
            return AIResponse("No specific information provided in guidebook.", "openai", "gpt-4o")
        for question, _ in guidebook_service.CATEGORIES:
            if f'"{question}"' in system:
                return AIResponse(f"{question}: details from the guide", "openai", "gpt-4o")
        return AIResponse("Beach house with lockbox check-in and no pets.", "openai", "gpt-4o")

    monkeypatch.setattr(ai_providers, "generate_ai_response", fake_generate)
    return calls


class ProviderError(Exception):
    """Stand-in for an SDK error carrying an HTTP status."""

    def __init__(self, message: str, status_code=None, code=None):
        super().__init__(message)
        self.status_code = status_code
        self.code = code


class FakeOpenAI:
    """Mimics OpenAI().chat.completions.create; outcomes map model -> text or exception."""

    def __init__(self, outcomes: dict, default=None):
        self.calls = []
        self._outcomes = outcomes
        self._default = default
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    def _create(self, **kwargs):
        self.calls.append(kwargs)
        outcome = self._outcomes.get(kwargs["model"], self._default)
        if isinstance(outcome, BaseException):
            raise outcome
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=outcome))])


class FakeGemini:
    """Mimics genai.Client().models.generate_content."""

    def __init__(self, outcomes: dict, default=None):
        self.calls = []
        self._outcomes = outcomes
        self._default = default
        self.models = SimpleNamespace(generate_content=self._generate)

    def _generate(self, model, contents, config=None):
        self.calls.append({"model": model, "contents": contents, "config": config})
        outcome = self._outcomes.get(model, self._default)
        if isinstance(outcome, BaseException):
            raise outcome
        return SimpleNamespace(text=outcome)
