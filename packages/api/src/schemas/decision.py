# This project was developed with assistance from AI tools.
"""Schemas for decision endpoints."""

from datetime import datetime

from db.enums import Decision
from pydantic import BaseModel, Field


class DecisionCreateRequest(BaseModel):
    """Board decision request.

    ``reason_codes`` are validated against the closed vocabulary by the
    workflow guard, not here, so unknown codes come back as a typed
    precondition failure.
    """

    decision: Decision
    reason_codes: list[str] = Field(default_factory=list)
    uses_consumer_report: bool = False
    adverse_action_notice: str | None = None
    notes: str | None = None
    conditions: str | None = None
    expected_version: int | None = None


class DecisionItem(BaseModel):
    """Single board decision."""

    id: int
    application_id: int
    decision: str
    reason_codes: list[str] = []
    notes: str | None = None
    conditions: str | None = None
    uses_consumer_report: bool = False
    adverse_action_required: bool = False
    adverse_action_notice: str | None = None
    decided_by: str | None = None
    decided_at: datetime | None = None


class DecisionResponse(BaseModel):
    """Response for a single decision."""

    data: DecisionItem
