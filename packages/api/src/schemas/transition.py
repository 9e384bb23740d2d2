# This project was developed with assistance from AI tools.
"""Schemas for workflow transition requests and results."""

from datetime import datetime

from db.enums import ApplicationStatus, TransitionKind
from pydantic import BaseModel, ConfigDict

from .decision import DecisionCreateRequest
from .rfi import RFICreateRequest


class ApplicationState(BaseModel):
    """The executor-owned fields of an application after a transition."""

    model_config = ConfigDict(frozen=True)

    status: ApplicationStatus
    is_locked: bool
    submitted_at: datetime | None = None
    last_activity_at: datetime


class TransitionRequest(BaseModel):
    """Generic transition request.

    ``rfi`` is required for ``raise_rfi`` and ``decision`` for ``decide``.
    ``expected_version`` lets a client reject its own stale snapshot.
    """

    kind: TransitionKind
    expected_version: int | None = None
    rfi: RFICreateRequest | None = None
    decision: DecisionCreateRequest | None = None


class VersionedRequest(BaseModel):
    """Body for payload-free transitions (submit, begin review)."""

    expected_version: int | None = None
