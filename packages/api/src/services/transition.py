# This project was developed with assistance from AI tools.
"""Transition executor.

``commit_transition`` is the only code path that writes an application's
``status``, ``submitted_at`` and ``is_locked``. It applies the new state with
a compare-and-swap on ``version`` and writes side-effect records and activity
entries in the same database transaction, so a transition is either fully
applied or not applied at all.
"""

import logging
from collections.abc import Iterable
from datetime import UTC, datetime

from db.enums import ActivityAction, ApplicationStatus, Decision, TransitionKind
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..schemas.activity import ActivityEntrySpec
from ..schemas.application import ApplicationSnapshot
from ..schemas.auth import UserContext
from ..schemas.transition import ApplicationState
from .activity import write_activity_entry
from .application import compare_and_swap, ensure_expected_version, load_application_snapshot
from .errors import InvalidStateTransition, PersistenceFailure, PreconditionFailed
from .workflow import evaluate_transition, target_status

logger = logging.getLogger(__name__)


def apply_transition(
    snapshot: ApplicationSnapshot,
    kind: TransitionKind,
    *,
    now: datetime,
    decision: Decision | None = None,
) -> ApplicationState:
    """Compute the executor-owned fields after ``kind``.

    ``submitted_at`` is only ever set once; every status other than
    IN_PROGRESS is locked.
    """
    target = target_status(snapshot.status, kind, decision)
    if target is None:
        raise InvalidStateTransition(
            f"No transition '{kind.value}' from status '{snapshot.status.value}'",
            details={"status": snapshot.status.value},
        )

    submitted_at = snapshot.submitted_at
    if submitted_at is None and kind == TransitionKind.SUBMIT:
        submitted_at = now

    return ApplicationState(
        status=target,
        is_locked=target != ApplicationStatus.IN_PROGRESS,
        submitted_at=submitted_at,
        last_activity_at=now,
    )


def touch_state(snapshot: ApplicationSnapshot, *, now: datetime) -> ApplicationState:
    """Same status, fresh activity time. Used for mutations that do not move the status."""
    return ApplicationState(
        status=snapshot.status,
        is_locked=snapshot.is_locked,
        submitted_at=snapshot.submitted_at,
        last_activity_at=now,
    )


def raise_if_denied(snapshot: ApplicationSnapshot, kind: TransitionKind, actor: UserContext, payload=None) -> None:
    """Evaluate the guard and raise its error, logging the denial."""
    error = evaluate_transition(snapshot, kind, actor, payload)
    if error is not None:
        logger.warning(
            "Transition %s denied on application %s for user=%s role=%s: %s (%s)",
            kind.value,
            snapshot.id,
            actor.user_id,
            actor.role.value,
            error.code,
            error.message,
        )
        raise error


async def commit_transition(
    session: AsyncSession,
    application_id: int,
    expected_version: int,
    new_state: ApplicationState,
    *,
    actor: UserContext,
    records: Iterable = (),
    activity: Iterable[ActivityEntrySpec] = (),
) -> int:
    """Persist ``new_state`` and its side effects atomically.

    Args:
        session: Database session; committed on success, rolled back on failure.
        application_id: Application being transitioned.
        expected_version: Version the caller's snapshot was taken at.
        new_state: Output of ``apply_transition`` or ``touch_state``.
        actor: User performing the transition, recorded on every activity entry.
        records: New or modified ORM objects (RFIs, messages, decisions).
        activity: Activity entries to append once records have ids.

    Returns:
        The application's new version.

    Raises:
        ConcurrencyConflict: the stored version no longer matches.
        PersistenceFailure: the store rejected the write; nothing was applied.
    """
    try:
        new_version = await compare_and_swap(
            session,
            application_id,
            expected_version,
            {
                "status": new_state.status,
                "is_locked": new_state.is_locked,
                "submitted_at": new_state.submitted_at,
                "last_activity_at": new_state.last_activity_at,
            },
        )
        for record in records:
            session.add(record)
        await session.flush()

        for entry in activity:
            await write_activity_entry(
                session,
                actor=actor,
                action=entry.action,
                application_id=application_id,
                description=entry.description,
                entity_type=entry.entity_type,
                entity_id=entry.entity.id if entry.entity is not None else application_id,
                event_data=entry.event_data,
            )
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.error("Failed to commit transition on application %s: %s", application_id, exc)
        raise PersistenceFailure("Could not save the transition; nothing was applied") from exc

    logger.info(
        "Application %s -> %s (version %s) by %s",
        application_id,
        new_state.status.value,
        new_version,
        actor.user_id,
    )
    return new_version


def status_change_entry(before: ApplicationStatus, after: ApplicationStatus) -> ActivityEntrySpec:
    return ActivityEntrySpec(
        action=ActivityAction.STATUS_CHANGED,
        description=f"Status changed from {before.value} to {after.value}",
        event_data={"from": before.value, "to": after.value},
    )


_SIMPLE_ACTIVITY = {
    TransitionKind.SUBMIT: (ActivityAction.APPLICATION_SUBMITTED, "Application submitted for review"),
    TransitionKind.BEGIN_REVIEW: (ActivityAction.REVIEW_STARTED, "Review started"),
}


async def _run_simple_transition(
    session: AsyncSession,
    actor: UserContext,
    application_id: int,
    kind: TransitionKind,
    expected_version: int | None,
) -> ApplicationSnapshot | None:
    snapshot = await load_application_snapshot(session, actor, application_id)
    if snapshot is None:
        return None
    ensure_expected_version(snapshot, expected_version)
    raise_if_denied(snapshot, kind, actor)

    new_state = apply_transition(snapshot, kind, now=datetime.now(UTC))
    action, description = _SIMPLE_ACTIVITY[kind]
    await commit_transition(
        session,
        snapshot.id,
        snapshot.version,
        new_state,
        actor=actor,
        activity=[
            ActivityEntrySpec(
                action=action,
                description=description,
                event_data={"from": snapshot.status.value, "to": new_state.status.value},
            )
        ],
    )
    return await load_application_snapshot(session, actor, application_id)


async def request_transition(
    session: AsyncSession,
    actor: UserContext,
    application_id: int,
    kind: TransitionKind,
    payload=None,
    expected_version: int | None = None,
) -> ApplicationSnapshot | None:
    """Single entry point for a client-requested transition.

    Returns the fresh snapshot, or None when the application is not found or
    not visible to ``actor``. Rejections raise a ``TransitionError``.
    """
    kind = TransitionKind(kind)

    if kind == TransitionKind.RESOLVE_LAST_OPEN_RFI:
        raise InvalidStateTransition(
            "RFIs are closed by resolving them individually",
            details={"kind": kind.value},
        )

    # Imported here: the RFI and decision services build on this module.
    from .decision import record_decision
    from .rfi import create_rfi

    if payload is None and kind in (TransitionKind.RAISE_RFI, TransitionKind.DECIDE):
        snapshot = await load_application_snapshot(session, actor, application_id)
        if snapshot is None:
            return None
        # The guard reports role and status problems before the missing payload.
        raise evaluate_transition(snapshot, kind, actor) or PreconditionFailed(
            "Transition details are required", reason="payload",
        )

    if kind == TransitionKind.RAISE_RFI:
        rfi = await create_rfi(
            session,
            actor,
            application_id,
            payload.section_key,
            payload.assignee_role,
            payload.message,
            expected_version=expected_version,
        )
        if rfi is None:
            return None
        return await load_application_snapshot(session, actor, application_id)

    if kind == TransitionKind.DECIDE:
        record = await record_decision(
            session,
            actor,
            application_id,
            payload.decision,
            payload.reason_codes,
            payload.uses_consumer_report,
            adverse_action_notice=payload.adverse_action_notice,
            notes=payload.notes,
            conditions=payload.conditions,
            expected_version=expected_version,
        )
        if record is None:
            return None
        return await load_application_snapshot(session, actor, application_id)

    return await _run_simple_transition(session, actor, application_id, kind, expected_version)


async def submit_application(
    session: AsyncSession,
    actor: UserContext,
    application_id: int,
    expected_version: int | None = None,
) -> ApplicationSnapshot | None:
    return await _run_simple_transition(
        session, actor, application_id, TransitionKind.SUBMIT, expected_version,
    )


async def begin_review(
    session: AsyncSession,
    actor: UserContext,
    application_id: int,
    expected_version: int | None = None,
) -> ApplicationSnapshot | None:
    return await _run_simple_transition(
        session, actor, application_id, TransitionKind.BEGIN_REVIEW, expected_version,
    )
