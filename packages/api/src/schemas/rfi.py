# This project was developed with assistance from AI tools.
"""Schemas for RFI endpoints.

Create/reply bodies carry plain strings; vocabulary and length checks belong
to the workflow guard so they surface as typed precondition failures.
"""

from datetime import datetime

from pydantic import BaseModel

from . import Pagination


class RFICreateRequest(BaseModel):
    section_key: str
    assignee_role: str
    message: str
    expected_version: int | None = None


class RFIReplyRequest(BaseModel):
    message: str


class RFIMessageItem(BaseModel):
    id: int
    author_id: str
    author_name: str | None = None
    author_role: str
    message: str
    created_at: datetime | None = None


class RFIItem(BaseModel):
    id: int
    application_id: int
    section_key: str
    status: str
    assignee_role: str
    created_by: str
    resolved_by: str | None = None
    created_at: datetime | None = None
    resolved_at: datetime | None = None
    messages: list[RFIMessageItem] = []


class RFIResponse(BaseModel):
    data: RFIItem


class RFIListResponse(BaseModel):
    data: list[RFIItem]
    pagination: Pagination
