from __future__ import annotations

import asyncio
import json

import pytest

from climate_parser.domain.exceptions import InvalidUpstreamResponse
from climate_parser.projects.prompt import (
    PROMPT_VERSION,
    USER_PROMPT_PREFIX,
    build_project_prompts,
)
from climate_parser.projects.schemas import ProjectData, decode_project_data
from climate_parser.projects.service import ProjectParserService, parse_result_json
from tests.projects._helpers import VERDE_RESULT, FakeOpenAIClient


def test_prompts_declare_schema_and_wrap_text() -> None:
    system, user = build_project_prompts(text="Mangrove restoration in Indonesia.")

    assert user == USER_PROMPT_PREFIX + "Mangrove restoration in Indonesia."
    for field in (
        "title",
        "feasibility_score",
        "annual_credit_potential",
        "certifications",
        "potential_buyers",
        "price_potential",
    ):
        assert f"{field}?" in system
    assert PROMPT_VERSION in system


def test_worked_example_is_optional_and_valid_json() -> None:
    with_example, _ = build_project_prompts(text="x", include_example=True)
    without_example, _ = build_project_prompts(text="x", include_example=False)

    assert "Verde" in with_example
    assert "Verde" not in without_example
    assert len(with_example) > len(without_example)

    example_json = with_example.split("JSON response:\n\n", 1)[1].rsplit("\n\nPrompt version", 1)[0]
    example = json.loads(example_json)
    assert example["title"] == "Verde Initiative"
    assert set(example["price_potential"]) == {"2025", "2026", "2027", "2028", "2029"}


def test_parse_result_json_strips_whitespace() -> None:
    assert parse_result_json('\n  {"title": "A"}  \n') == {"title": "A"}


@pytest.mark.parametrize("content", ["", "not json", "```json\n{}\n```", "[1, 2]", '"text"'])
def test_parse_result_json_rejects_non_objects(content: str) -> None:
    with pytest.raises(InvalidUpstreamResponse) as excinfo:
        parse_result_json(content)

    assert excinfo.value.message == "Failed to parse upstream response as JSON"
    assert excinfo.value.parse_error


@pytest.mark.parametrize(
    "content", ['{"score": NaN}', '{"score": Infinity}', '{"score": -Infinity}']
)
def test_parse_result_json_rejects_non_standard_constants(content: str) -> None:
    with pytest.raises(InvalidUpstreamResponse) as excinfo:
        parse_result_json(content)

    assert "Invalid JSON constant" in excinfo.value.parse_error


def test_decode_keeps_unknown_fields_and_tolerates_missing_ones() -> None:
    decoded = decode_project_data(VERDE_RESULT)

    assert decoded.title == "Verde Initiative"
    assert decoded.feasibility_score == 8
    assert decoded.risk_score is None
    assert decoded.model_extra == {"unexpected_field": {"kept": True}}


def test_decode_drops_mistyped_known_fields() -> None:
    decoded = decode_project_data(
        {"title": "Verde", "risk_score": "low", "sdgs": [{"id": 13}], "extra": 1}
    )

    assert decoded.title == "Verde"
    assert decoded.risk_score is None
    assert decoded.sdgs is None
    assert isinstance(decoded, ProjectData)


def test_service_passes_result_through_unchanged() -> None:
    llm = FakeOpenAIClient(content=json.dumps({"title": "Verde", "risk_score": "low"}))
    service = ProjectParserService(llm_client=llm, max_completion_tokens=1234)

    result = asyncio.run(service.extract_project_info(text="Verde", request_number=7))

    # Mistyped fields are only dropped from the typed view, never from the response.
    assert result == {"title": "Verde", "risk_score": "low"}
    assert llm.calls[0]["max_completion_tokens"] == 1234


def test_service_logs_raw_prefix_but_raises_generic_error(
    caplog: pytest.LogCaptureFixture,
) -> None:
    caplog.set_level("INFO", logger="climate_parser.projects")
    service = ProjectParserService(
        llm_client=FakeOpenAIClient(content="I cannot help with that." + "x" * 500),
        max_completion_tokens=10,
    )

    with pytest.raises(InvalidUpstreamResponse) as excinfo:
        asyncio.run(service.extract_project_info(text="Verde", request_number=3))

    assert "I cannot help" not in excinfo.value.message
    errors = [r for r in caplog.records if r.levelname == "ERROR"]
    assert len(errors) == 1
    assert errors[0].__dict__["request_number"] == 3
    assert "I cannot help with that." in errors[0].getMessage()
    # Only a bounded prefix of the raw output reaches the logs.
    assert "x" * 300 not in errors[0].getMessage()
