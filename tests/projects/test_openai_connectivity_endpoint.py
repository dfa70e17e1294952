from __future__ import annotations

import asyncio

import pytest
from fastapi.testclient import TestClient

from climate_parser import main as main_module
from climate_parser.core.llm.deps import get_openai_client
from climate_parser.core.settings import get_settings
from climate_parser.main import create_app, run_startup_check
from tests.projects._helpers import FailingOpenAIClient, FakeOpenAIClient


def _client_with(llm_client) -> TestClient:
    app = create_app()
    app.dependency_overrides[get_openai_client] = lambda: llm_client
    return TestClient(app)


def test_connectivity_success(auth_headers: dict[str, str]) -> None:
    llm = FakeOpenAIClient(content=" 2025\n")

    with _client_with(llm) as client:
        res = client.get("/api/test-openai", headers=auth_headers)

    assert res.status_code == 200, res.text
    assert res.json() == {
        "status": "success",
        "message": "OpenAI connection working",
        "response": "2025",
        "model": "o3-mini-2025-01-31",
        "tokens_used": 42,
    }
    # Same chat-completions call shape as /api/parse, with the small connectivity budget.
    assert llm.calls[0]["messages"] == [
        {"role": "user", "content": "Return the current year as a number only."}
    ]
    assert llm.calls[0]["max_completion_tokens"] == 256


def test_connectivity_requires_api_key() -> None:
    llm = FakeOpenAIClient(content="2025")

    with _client_with(llm) as client:
        res = client.get("/api/test-openai")

    assert res.status_code == 401
    assert llm.calls == []


def test_connectivity_upstream_failure_returns_500(auth_headers: dict[str, str]) -> None:
    with _client_with(FailingOpenAIClient("401 Incorrect API key provided", status=401)) as client:
        res = client.get("/api/test-openai", headers=auth_headers)

    assert res.status_code == 500
    assert res.json() == {
        "status": "error",
        "message": "OpenAI connection failed",
        "error": "401 Incorrect API key provided",
    }


def test_connectivity_upstream_failure_in_development_includes_details(
    monkeypatch: pytest.MonkeyPatch, auth_headers: dict[str, str]
) -> None:
    monkeypatch.setenv("APP_ENV", "development")
    get_settings.cache_clear()

    with _client_with(FailingOpenAIClient()) as client:
        res = client.get("/api/test-openai", headers=auth_headers)

    assert res.status_code == 500
    assert "Traceback" in res.json()["details"]


def test_connectivity_without_openai_key_returns_500(
    monkeypatch: pytest.MonkeyPatch, auth_headers: dict[str, str]
) -> None:
    monkeypatch.delenv("OPENAI_API_KEY")
    get_settings.cache_clear()

    with TestClient(create_app()) as client:
        res = client.get("/api/test-openai", headers=auth_headers)

    assert res.status_code == 500
    assert res.json() == {"error": "OpenAI API key is not configured"}


def test_startup_check_reports_success_and_failure(monkeypatch: pytest.MonkeyPatch) -> None:
    settings = get_settings()

    monkeypatch.setattr(main_module, "build_openai_client", lambda _s: FakeOpenAIClient("2025"))
    assert asyncio.run(run_startup_check(settings)) is True

    monkeypatch.setattr(main_module, "build_openai_client", lambda _s: FailingOpenAIClient())
    assert asyncio.run(run_startup_check(settings)) is False

    monkeypatch.setattr(main_module, "build_openai_client", lambda _s: None)
    assert asyncio.run(run_startup_check(settings)) is False


def test_startup_check_runs_in_lifespan_when_enabled(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STARTUP_CHECK", "true")
    get_settings.cache_clear()
    llm = FakeOpenAIClient("2025")
    monkeypatch.setattr(main_module, "build_openai_client", lambda _s: llm)

    with TestClient(create_app()) as client:
        assert client.get("/api/health").status_code == 200

    assert len(llm.calls) == 1
