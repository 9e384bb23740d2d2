# This project was developed with assistance from AI tools.
"""Schemas for the application status summary."""

from pydantic import BaseModel


class StatusInfo(BaseModel):
    """Presentation info for a status. Derived from, never authoritative over, the enum."""

    label: str
    description: str
    next_step: str
    badge_color: str


class ApplicationStatusResponse(BaseModel):
    application_id: int
    status: str
    status_info: StatusInfo
    version: int
    is_locked: bool
    completion_percentage: int
    open_rfi_count: int
    allowed_transitions: list[str]
