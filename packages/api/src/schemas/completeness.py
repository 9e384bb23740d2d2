# This project was developed with assistance from AI tools.
"""Schemas for submission readiness."""

from typing import Literal

from pydantic import BaseModel

RequirementStatus = Literal["complete", "incomplete", "warning"]


class ReadinessItem(BaseModel):
    """One submission requirement. ``warning`` items never block submission."""

    section: str
    requirement: str
    status: RequirementStatus
    message: str


class ReadinessReport(BaseModel):
    application_id: int
    completion_percentage: int
    can_submit: bool
    items: list[ReadinessItem]

    @property
    def blockers(self) -> list[ReadinessItem]:
        return [i for i in self.items if i.status == "incomplete"]

    @property
    def warnings(self) -> list[ReadinessItem]:
        return [i for i in self.items if i.status == "warning"]
