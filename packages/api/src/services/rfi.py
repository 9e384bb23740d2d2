# This project was developed with assistance from AI tools.
"""RFI service for the request-for-information sub-workflow.

Reviewers raise RFIs against a section of an application under review; the
assigned party (applicant or broker) replies on the RFI's message thread;
a reviewer resolves it. The parent application sits in RFI status exactly
while at least one RFI is open. Every mutation goes through the transition
executor so the parent's version is bumped and the activity entry commits
with the change.
"""

import logging
from datetime import UTC, datetime

from db import RFI, RFIMessage
from db.enums import (
    ActivityAction,
    ApplicationStatus,
    RFIStatus,
    SectionKey,
    TransitionKind,
    UserRole,
)
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..schemas.activity import ActivityEntrySpec
from ..schemas.auth import UserContext
from ..schemas.rfi import RFICreateRequest
from .application import ensure_expected_version, load_application_snapshot
from .errors import InvalidStateTransition, PreconditionFailed, Unauthorized
from .scope import apply_data_scope
from .transition import (
    apply_transition,
    commit_transition,
    raise_if_denied,
    status_change_entry,
    touch_state,
)
from .workflow import message_failures

logger = logging.getLogger(__name__)


def _rfi_to_dict(rfi: RFI) -> dict:
    return {
        "id": rfi.id,
        "application_id": rfi.application_id,
        "section_key": rfi.section_key.value,
        "status": rfi.status.value,
        "assignee_role": rfi.assignee_role.value,
        "created_by": rfi.created_by,
        "resolved_by": rfi.resolved_by,
        "created_at": rfi.created_at,
        "resolved_at": rfi.resolved_at,
        "messages": [
            {
                "id": m.id,
                "author_id": m.author_id,
                "author_name": m.author_name,
                "author_role": m.author_role,
                "message": m.message,
                "created_at": m.created_at,
            }
            for m in rfi.messages
        ],
    }


async def _fetch_rfi(session: AsyncSession, user: UserContext, rfi_id: int) -> RFI | None:
    """Load an RFI with its thread, filtered by the caller's data scope."""
    stmt = (
        select(RFI)
        .options(selectinload(RFI.messages))
        .where(RFI.id == rfi_id)
        .execution_options(populate_existing=True)
    )
    stmt = apply_data_scope(stmt, user.data_scope, user, join_to_application=RFI.application)
    result = await session.execute(stmt)
    return result.unique().scalar_one_or_none()


async def get_rfi(session: AsyncSession, user: UserContext, rfi_id: int) -> dict | None:
    rfi = await _fetch_rfi(session, user, rfi_id)
    if rfi is None:
        return None
    return _rfi_to_dict(rfi)


async def list_rfis(
    session: AsyncSession,
    user: UserContext,
    application_id: int,
    *,
    open_only: bool = False,
) -> list[dict] | None:
    """Return RFIs for an application, oldest first.

    Returns None if the application is not found or out of scope.
    """
    snapshot = await load_application_snapshot(session, user, application_id)
    if snapshot is None:
        return None

    stmt = (
        select(RFI)
        .options(selectinload(RFI.messages))
        .where(RFI.application_id == application_id)
        .order_by(RFI.id.asc())
        .execution_options(populate_existing=True)
    )
    if open_only:
        stmt = stmt.where(RFI.status == RFIStatus.OPEN)
    result = await session.execute(stmt)
    return [_rfi_to_dict(r) for r in result.unique().scalars().all()]


async def create_rfi(
    session: AsyncSession,
    user: UserContext,
    application_id: int,
    section_key: str,
    assignee_role: str,
    message: str,
    expected_version: int | None = None,
) -> dict | None:
    """Raise an RFI with its initial message and move the application to RFI.

    Returns None if the application is not found or out of scope.
    """
    snapshot = await load_application_snapshot(session, user, application_id)
    if snapshot is None:
        return None
    ensure_expected_version(snapshot, expected_version)

    payload = RFICreateRequest(
        section_key=getattr(section_key, "value", section_key),
        assignee_role=getattr(assignee_role, "value", assignee_role),
        message=message,
    )
    raise_if_denied(snapshot, TransitionKind.RAISE_RFI, user, payload)

    now = datetime.now(UTC)
    new_state = apply_transition(snapshot, TransitionKind.RAISE_RFI, now=now)
    rfi = RFI(
        application_id=snapshot.id,
        section_key=SectionKey(payload.section_key),
        status=RFIStatus.OPEN,
        assignee_role=UserRole(payload.assignee_role),
        created_by=user.user_id,
        created_at=now,
        messages=[
            RFIMessage(
                author_id=user.user_id,
                author_name=user.name,
                author_role=user.role.value,
                message=payload.message.strip(),
                created_at=now,
            )
        ],
    )

    activity = [
        ActivityEntrySpec(
            action=ActivityAction.RFI_CREATED,
            description=f"RFI raised on '{payload.section_key}' for {payload.assignee_role}",
            entity_type="rfi",
            entity=rfi,
            event_data={"section_key": payload.section_key, "assignee_role": payload.assignee_role},
        )
    ]
    if snapshot.status != new_state.status:
        activity.append(status_change_entry(snapshot.status, new_state.status))

    await commit_transition(
        session,
        snapshot.id,
        snapshot.version,
        new_state,
        actor=user,
        records=[rfi],
        activity=activity,
    )
    return await get_rfi(session, user, rfi.id)


def _may_reply(rfi: RFI, user: UserContext) -> bool:
    """Only the RFI's creator or its assignee may reply.

    An applicant-assigned RFI may be answered by any party on the file.
    """
    if user.user_id == rfi.created_by:
        return True
    if rfi.assignee_role == UserRole.APPLICANT:
        return user.role in UserRole.party_roles()
    return user.role == rfi.assignee_role


async def reply_to_rfi(
    session: AsyncSession,
    user: UserContext,
    rfi_id: int,
    message: str,
) -> dict | None:
    """Append a message to an open RFI thread. Never changes any status.

    Returns None if the RFI is not found or out of scope.
    """
    rfi = await _fetch_rfi(session, user, rfi_id)
    if rfi is None:
        return None
    snapshot = await load_application_snapshot(session, user, rfi.application_id)
    if snapshot is None:
        return None

    if not _may_reply(rfi, user):
        raise Unauthorized(
            "Only the assignee or the reviewer who raised this RFI may reply",
            details={"role": user.role.value, "assignee_role": rfi.assignee_role.value},
        )
    if rfi.status != RFIStatus.OPEN:
        raise InvalidStateTransition(
            "This RFI has been resolved; raise a new RFI to continue",
            details={"rfi_id": rfi.id, "status": rfi.status.value},
        )
    failures = message_failures(message)
    if failures:
        raise PreconditionFailed("Invalid reply", reason="message", failures=failures)

    now = datetime.now(UTC)
    reply = RFIMessage(
        rfi_id=rfi.id,
        author_id=user.user_id,
        author_name=user.name,
        author_role=user.role.value,
        message=message.strip(),
        created_at=now,
    )
    await commit_transition(
        session,
        snapshot.id,
        snapshot.version,
        touch_state(snapshot, now=now),
        actor=user,
        records=[reply],
        activity=[
            ActivityEntrySpec(
                action=ActivityAction.RFI_MESSAGE_SENT,
                description=f"Reply on RFI #{rfi.id}",
                entity_type="rfi",
                entity=rfi,
                event_data={"rfi_id": rfi.id},
            )
        ],
    )
    return await get_rfi(session, user, rfi_id)


async def resolve_rfi(
    session: AsyncSession,
    user: UserContext,
    rfi_id: int,
) -> dict | None:
    """Resolve an open RFI.

    Closing the last open RFI moves the application back to IN_REVIEW.
    Resolved RFIs cannot be reopened.

    Returns None if the RFI is not found or out of scope.
    """
    rfi = await _fetch_rfi(session, user, rfi_id)
    if rfi is None:
        return None
    snapshot = await load_application_snapshot(session, user, rfi.application_id)
    if snapshot is None:
        return None

    if user.role not in UserRole.reviewer_roles() or user.role == rfi.assignee_role:
        raise Unauthorized("Only reviewers may resolve RFIs", details={"role": user.role.value})
    if rfi.status != RFIStatus.OPEN:
        raise InvalidStateTransition(
            "RFI is already resolved",
            details={"rfi_id": rfi.id, "status": rfi.status.value},
        )

    # Counted from the freshly loaded snapshot so a concurrently raised RFI
    # either shows up here or fails the version check.
    remaining = [r for r in snapshot.rfis if r.status == RFIStatus.OPEN and r.id != rfi.id]

    now = datetime.now(UTC)
    if remaining:
        new_state = touch_state(snapshot, now=now)
    else:
        raise_if_denied(snapshot, TransitionKind.RESOLVE_LAST_OPEN_RFI, user)
        new_state = apply_transition(snapshot, TransitionKind.RESOLVE_LAST_OPEN_RFI, now=now)

    rfi.status = RFIStatus.RESOLVED
    rfi.resolved_at = now
    rfi.resolved_by = user.user_id

    activity = [
        ActivityEntrySpec(
            action=ActivityAction.RFI_RESOLVED,
            description=f"RFI #{rfi.id} on '{rfi.section_key.value}' resolved",
            entity_type="rfi",
            entity=rfi,
            event_data={"rfi_id": rfi.id, "remaining_open": len(remaining)},
        )
    ]
    if new_state.status != snapshot.status:
        activity.append(status_change_entry(snapshot.status, new_state.status))

    await commit_transition(
        session,
        snapshot.id,
        snapshot.version,
        new_state,
        actor=user,
        records=[rfi],
        activity=activity,
    )
    if new_state.status == ApplicationStatus.IN_REVIEW and snapshot.status == ApplicationStatus.RFI:
        logger.info("Last open RFI resolved on application %s", snapshot.id)
    return await get_rfi(session, user, rfi_id)
