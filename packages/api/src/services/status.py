# This project was developed with assistance from AI tools.
"""Application status summary service.

Presentation details for each status (label, description, badge color) and
the transitions currently reachable. Everything here is derived from
``ApplicationStatus`` and the workflow transition table; nothing in it is
consulted when deciding whether a transition is allowed.
"""

import logging

from db.enums import ApplicationStatus
from sqlalchemy.ext.asyncio import AsyncSession

from ..schemas.auth import UserContext
from ..schemas.status import ApplicationStatusResponse, StatusInfo
from .application import load_application_snapshot
from .workflow import allowed_transitions

logger = logging.getLogger(__name__)

_BADGE_COLORS: dict[ApplicationStatus, str] = {
    ApplicationStatus.IN_PROGRESS: "gray",
    ApplicationStatus.SUBMITTED: "blue",
    ApplicationStatus.IN_REVIEW: "indigo",
    ApplicationStatus.RFI: "amber",
    ApplicationStatus.APPROVED: "green",
    ApplicationStatus.CONDITIONAL: "yellow",
    ApplicationStatus.DENIED: "red",
}

STATUS_INFO: dict[ApplicationStatus, StatusInfo] = {
    ApplicationStatus.IN_PROGRESS: StatusInfo(
        label="In Progress",
        description="The application is being prepared and can still be edited.",
        next_step="Complete every required section, then submit.",
        badge_color=_BADGE_COLORS[ApplicationStatus.IN_PROGRESS],
    ),
    ApplicationStatus.SUBMITTED: StatusInfo(
        label="Submitted",
        description="The application has been submitted and is locked.",
        next_step="A transaction agent will begin review.",
        badge_color=_BADGE_COLORS[ApplicationStatus.SUBMITTED],
    ),
    ApplicationStatus.IN_REVIEW: StatusInfo(
        label="In Review",
        description="A reviewer is checking the package.",
        next_step="The reviewer may request more information or record a decision.",
        badge_color=_BADGE_COLORS[ApplicationStatus.IN_REVIEW],
    ),
    ApplicationStatus.RFI: StatusInfo(
        label="Information Requested",
        description="The reviewer has open requests for information.",
        next_step="Reply to each open RFI so the reviewer can resolve it.",
        badge_color=_BADGE_COLORS[ApplicationStatus.RFI],
    ),
    ApplicationStatus.APPROVED: StatusInfo(
        label="Approved",
        description="The board approved the application.",
        next_step="No further action in this workflow.",
        badge_color=_BADGE_COLORS[ApplicationStatus.APPROVED],
    ),
    ApplicationStatus.CONDITIONAL: StatusInfo(
        label="Conditionally Approved",
        description="The board approved the application subject to conditions.",
        next_step="Satisfy the conditions listed with the decision.",
        badge_color=_BADGE_COLORS[ApplicationStatus.CONDITIONAL],
    ),
    ApplicationStatus.DENIED: StatusInfo(
        label="Denied",
        description="The board denied the application.",
        next_step="Review the decision and any adverse action notice.",
        badge_color=_BADGE_COLORS[ApplicationStatus.DENIED],
    ),
}


def status_label(status: ApplicationStatus) -> str:
    return STATUS_INFO[status].label


async def get_application_status(
    session: AsyncSession,
    user: UserContext,
    application_id: int,
) -> ApplicationStatusResponse | None:
    """Build the status summary for an application.

    Returns None if the application is not found or out of scope.
    """
    snapshot = await load_application_snapshot(session, user, application_id)
    if snapshot is None:
        return None

    return ApplicationStatusResponse(
        application_id=snapshot.id,
        status=snapshot.status.value,
        status_info=STATUS_INFO[snapshot.status],
        version=snapshot.version,
        is_locked=snapshot.is_locked,
        completion_percentage=snapshot.completion_percentage,
        open_rfi_count=snapshot.open_rfi_count,
        allowed_transitions=[k.value for k in allowed_transitions(snapshot.status)],
    )
