# This project was developed with assistance from AI tools.
"""RFI thread endpoints addressed by RFI id."""

from db import get_db
from db.enums import UserRole
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..middleware.auth import CurrentUser, require_roles
from ..schemas.rfi import RFIItem, RFIReplyRequest, RFIResponse
from ..services.rfi import get_rfi, reply_to_rfi, resolve_rfi

router = APIRouter()


def _not_found() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail="RFI not found",
    )


@router.get(
    "/{rfi_id}",
    response_model=RFIResponse,
    dependencies=[Depends(require_roles(*UserRole))],
)
async def read_rfi(
    rfi_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> RFIResponse:
    result = await get_rfi(session, user, rfi_id)
    if result is None:
        raise _not_found()
    return RFIResponse(data=RFIItem(**result))


@router.post(
    "/{rfi_id}/messages",
    response_model=RFIResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_roles(*UserRole))],
)
async def post_message(
    rfi_id: int,
    body: RFIReplyRequest,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> RFIResponse:
    """Reply on an open RFI thread."""
    result = await reply_to_rfi(session, user, rfi_id, body.message)
    if result is None:
        raise _not_found()
    return RFIResponse(data=RFIItem(**result))


@router.patch(
    "/{rfi_id}/resolve",
    response_model=RFIResponse,
    dependencies=[Depends(require_roles(*UserRole.reviewer_roles()))],
)
async def resolve(
    rfi_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> RFIResponse:
    """Resolve an RFI. Resolving the last open RFI returns the application to review."""
    result = await resolve_rfi(session, user, rfi_id)
    if result is None:
        raise _not_found()
    return RFIResponse(data=RFIItem(**result))
