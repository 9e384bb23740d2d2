# This project was developed with assistance from AI tools.
"""Schemas for activity log endpoints."""

from datetime import datetime
from typing import Any

from db.enums import ActivityAction
from pydantic import BaseModel, ConfigDict


class ActivityEntrySpec(BaseModel):
    """An activity entry to append as part of a transition.

    ``entity`` is an ORM object whose primary key becomes ``entity_id`` once
    the transition's records are flushed.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    action: ActivityAction
    description: str
    entity_type: str = "application"
    entity: Any = None
    event_data: dict | None = None


class ActivityItem(BaseModel):
    id: int
    timestamp: datetime | None = None
    application_id: int | None = None
    user_id: str | None = None
    user_name: str | None = None
    user_role: str | None = None
    action: str
    entity_type: str | None = None
    entity_id: int | None = None
    description: str | None = None
    event_data: dict | None = None


class ActivityListResponse(BaseModel):
    application_id: int
    count: int
    events: list[ActivityItem]


class ChainVerificationResponse(BaseModel):
    status: str
    events_checked: int
    first_break_id: int | None = None
