# This project was developed with assistance from AI tools.
"""Decision REST endpoints."""

from db import get_db
from db.enums import UserRole
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..middleware.auth import CurrentUser, require_roles
from ..schemas.decision import DecisionCreateRequest, DecisionItem, DecisionResponse
from ..services.decision import get_decision, record_decision

router = APIRouter()


@router.get(
    "/{application_id}/decision",
    response_model=DecisionResponse,
    dependencies=[Depends(require_roles(*UserRole))],
)
async def read_decision(
    application_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> DecisionResponse:
    """Get the recorded decision for an application."""
    result = await get_decision(session, user, application_id)
    if result is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Application not found",
        )
    if result.get("no_decision"):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No decision has been recorded for this application",
        )
    return DecisionResponse(data=DecisionItem(**result))


@router.post(
    "/{application_id}/decision",
    response_model=DecisionResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_roles(*UserRole.decision_roles()))],
)
async def create_decision(
    application_id: int,
    body: DecisionCreateRequest,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> DecisionResponse:
    """Record the board decision. The application must be in review."""
    result = await record_decision(
        session,
        user,
        application_id,
        body.decision,
        body.reason_codes,
        body.uses_consumer_report,
        adverse_action_notice=body.adverse_action_notice,
        notes=body.notes,
        conditions=body.conditions,
        expected_version=body.expected_version,
    )
    if result is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Application not found",
        )
    return DecisionResponse(data=DecisionItem(**result))
