from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictStr
from pydantic import ValidationError as PydanticValidationError

logger = logging.getLogger("climate_parser.projects")


class ParseIn(BaseModel):
    """Request body for `POST /api/parse`."""

    text: StrictStr = Field(
        min_length=1,
        description="Free-text description of a climate or carbon project.",
        examples=["The Blue Forest Mangrove Project spans 85,500 hectares in Indonesia..."],
    )


class ProjectData(BaseModel):
    """
    Best-effort typed view of an extraction result.

    The model's output shape is only suggested by the prompt, so every field is optional,
    unknown fields are kept, and nothing here is enforced on the HTTP response.
    """

    model_config = ConfigDict(extra="allow")

    title: str | None = None
    location: str | None = None
    area: str | None = None
    status: str | None = None
    feasibility_score: float | None = None
    difficulty_score: float | None = None
    risk_score: float | None = None
    methodology: str | None = None
    start_date: str | None = None
    environmental_asset_id: str | None = None
    annual_credit_potential: float | None = None
    buffer_allocation: float | None = None
    saleable_credits: float | None = None
    sdgs: list[str] | None = None
    certifications: list[str] | None = None
    analysis: str | None = None
    core_data: dict[str, Any] | None = None
    potential_buyers: dict[str, Any] | None = None
    price_potential: dict[str, Any] | None = None
    commentary: dict[str, Any] | None = None


KNOWN_FIELDS = frozenset(ProjectData.model_fields)


def decode_project_data(result: dict[str, Any]) -> ProjectData:
    """Decode a raw result, dropping known fields whose values have an unexpected type."""

    data = dict(result)
    while True:
        try:
            return ProjectData.model_validate(data)
        except PydanticValidationError as exc:
            bad = {err["loc"][0] for err in exc.errors() if err["loc"]} & data.keys()
            if not bad:
                raise
            logger.debug("Dropping mistyped result fields", extra={"field_count": len(bad)})
            for key in bad:
                data.pop(key)


class HealthOut(BaseModel):
    """Health check response."""

    status: str = Field(description="Always `OK` while the process is up.", examples=["OK"])
    message: str
    version: str
    timestamp: str


class ConnectivityOut(BaseModel):
    """Result of the OpenAI connectivity check."""

    status: str = Field(examples=["success"])
    message: str
    response: str
    model: str | None = None
    tokens_used: int | None = None


class ErrorOut(BaseModel):
    error: str
    details: str | None = None
