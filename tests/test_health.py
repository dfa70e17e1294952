from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from climate_parser import __version__
from climate_parser.core.settings import get_settings
from climate_parser.main import create_app


def test_health_ok(client) -> None:
    res = client.get("/api/health")
    assert res.status_code == 200
    payload = res.json()
    assert payload["status"] == "OK"
    assert payload["message"] == "Climate Project Parser API is running"
    assert payload["version"] == __version__
    assert payload["timestamp"]


def test_health_does_not_depend_on_configuration(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("API_SECRET_KEY")
    monkeypatch.delenv("OPENAI_API_KEY")
    get_settings.cache_clear()

    with TestClient(create_app()) as client:
        res = client.get("/api/health")

    assert res.status_code == 200
    assert res.json()["status"] == "OK"


def test_root_serves_documentation_page(client) -> None:
    res = client.get("/")
    assert res.status_code == 200
    assert res.headers["content-type"].startswith("text/html")
    assert "Climate Project Parser API" in res.text
    assert "/api/parse" in res.text
    assert "X-API-Key" in res.text


def test_unknown_route_returns_standard_404(client) -> None:
    res = client.get("/api/does-not-exist")
    assert res.status_code == 404
    assert res.json() == {
        "error": "Not Found",
        "message": "The requested endpoint does not exist",
    }


def test_swagger_docs_hidden_in_production(client) -> None:
    assert client.get("/swagger").status_code == 404
    assert client.get("/openapi.json").status_code == 404


def test_swagger_docs_served_in_development(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APP_ENV", "development")
    get_settings.cache_clear()

    with TestClient(create_app()) as client:
        assert client.get("/swagger").status_code == 200
        schema = client.get("/openapi.json").json()

    assert "/api/parse" in schema["paths"]
