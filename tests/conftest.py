from __future__ import annotations

import pytest

TEST_API_KEY = "test-secret-key"

_MANAGED_ENV = (
    "APP_ENV",
    "NODE_ENV",
    "API_SECRET_KEY",
    "OPENAI_API_KEY",
    "STARTUP_CHECK",
    "MAX_TEXT_CHARS",
    "MAX_BODY_BYTES",
    "PROMPT_INCLUDE_EXAMPLE",
)


@pytest.fixture(autouse=True)
def _test_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _MANAGED_ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("APP_ENV", "production")
    monkeypatch.setenv("API_SECRET_KEY", TEST_API_KEY)
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    # Settings are cached via @lru_cache; clear so each test sees its own environment.
    from climate_parser.core.settings import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"X-API-Key": TEST_API_KEY}


@pytest.fixture
def client():
    from fastapi.testclient import TestClient

    from climate_parser.main import create_app

    app = create_app()
    with TestClient(app) as c:
        yield c
