# This project was developed with assistance from AI tools.
"""Admin endpoints for activity log integrity."""

from db import get_db
from db.enums import UserRole
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..middleware.auth import require_roles
from ..schemas.activity import ChainVerificationResponse
from ..services.activity import verify_activity_chain

router = APIRouter()


@router.get(
    "/activity/verify",
    response_model=ChainVerificationResponse,
    dependencies=[Depends(require_roles(UserRole.ADMIN))],
)
async def verify_activity(
    session: AsyncSession = Depends(get_db),
) -> ChainVerificationResponse:
    """Walk the activity hash chain and report the first break, if any."""
    result = await verify_activity_chain(session)
    return ChainVerificationResponse(**result)
