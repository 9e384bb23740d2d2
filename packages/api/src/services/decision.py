# This project was developed with assistance from AI tools.
"""Decision service for recording the board's terminal decision.

A decision moves an application under review to APPROVED, CONDITIONAL or
DENIED and is recorded exactly once. When a consumer report contributed to
an unfavorable outcome, an adverse action notice is mandatory; the rule is
checked by the DECIDE guard and again immediately before the record is
written.
"""

import logging
from datetime import UTC, datetime

from db import DecisionRecord
from db.enums import ActivityAction, Decision, ReasonCode, TransitionKind
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..schemas.activity import ActivityEntrySpec
from ..schemas.auth import UserContext
from ..schemas.decision import DecisionCreateRequest
from .application import ensure_expected_version, load_application_snapshot
from .transition import apply_transition, commit_transition, raise_if_denied, status_change_entry
from .workflow import adverse_action_required, validate_adverse_action

logger = logging.getLogger(__name__)

__all__ = [
    "adverse_action_required",
    "get_decision",
    "record_decision",
    "validate_adverse_action",
]


def _decision_to_dict(d: DecisionRecord) -> dict:
    """Convert a DecisionRecord ORM object to a dict."""
    return {
        "id": d.id,
        "application_id": d.application_id,
        "decision": d.decision.value,
        "reason_codes": list(d.reason_codes or []),
        "notes": d.notes,
        "conditions": d.conditions,
        "uses_consumer_report": d.uses_consumer_report,
        "adverse_action_required": d.adverse_action_required,
        "adverse_action_notice": d.adverse_action_notice,
        "decided_by": d.decided_by,
        "decided_at": d.decided_at,
    }


async def record_decision(
    session: AsyncSession,
    user: UserContext,
    application_id: int,
    decision: Decision,
    reason_codes: list[str],
    uses_consumer_report: bool,
    adverse_action_notice: str | None = None,
    notes: str | None = None,
    conditions: str | None = None,
    expected_version: int | None = None,
) -> dict | None:
    """Record the decision and move the application to its terminal status.

    Returns None if the application is not found or out of scope.

    Raises:
        Unauthorized: role may not decide.
        InvalidStateTransition: not under review, or already decided.
        PreconditionFailed: missing reason codes or adverse action notice.
    """
    snapshot = await load_application_snapshot(session, user, application_id)
    if snapshot is None:
        return None
    ensure_expected_version(snapshot, expected_version)

    decision = Decision(decision)
    codes = [getattr(c, "value", c) for c in reason_codes or []]
    payload = DecisionCreateRequest(
        decision=decision,
        reason_codes=codes,
        uses_consumer_report=uses_consumer_report,
        adverse_action_notice=adverse_action_notice,
        notes=notes,
        conditions=conditions,
    )
    raise_if_denied(snapshot, TransitionKind.DECIDE, user, payload)

    # Re-checked at the write boundary so no code path can persist an
    # unfavorable consumer-report decision without its notice.
    error = validate_adverse_action(decision, uses_consumer_report, adverse_action_notice)
    if error is not None:
        raise error

    now = datetime.now(UTC)
    new_state = apply_transition(snapshot, TransitionKind.DECIDE, now=now, decision=decision)
    notice_required = adverse_action_required(decision, uses_consumer_report)
    record = DecisionRecord(
        application_id=snapshot.id,
        decision=decision,
        reason_codes=[ReasonCode(c).value for c in codes],
        notes=notes,
        conditions=conditions,
        uses_consumer_report=uses_consumer_report,
        adverse_action_required=notice_required,
        adverse_action_notice=adverse_action_notice.strip() if adverse_action_notice else None,
        decided_by=user.user_id,
        decided_at=now,
    )

    await commit_transition(
        session,
        snapshot.id,
        snapshot.version,
        new_state,
        actor=user,
        records=[record],
        activity=[
            ActivityEntrySpec(
                action=ActivityAction.DECISION_CREATED,
                description=f"Decision recorded: {decision.value}",
                entity_type="decision",
                entity=record,
                event_data={
                    "decision": decision.value,
                    "reason_codes": codes,
                    "adverse_action_required": notice_required,
                },
            ),
            status_change_entry(snapshot.status, new_state.status),
        ],
    )
    logger.info(
        "Decision %s recorded on application %s by %s",
        decision.value,
        snapshot.id,
        user.user_id,
    )
    return _decision_to_dict(record)


async def get_decision(
    session: AsyncSession,
    user: UserContext,
    application_id: int,
) -> dict | None:
    """Get the decision for an application.

    Returns None if application not found / out of scope.
    Returns {"no_decision": True} if the application has not been decided.
    """
    snapshot = await load_application_snapshot(session, user, application_id)
    if snapshot is None:
        return None

    stmt = select(DecisionRecord).where(DecisionRecord.application_id == application_id)
    result = await session.execute(stmt)
    record = result.scalar_one_or_none()

    if record is None:
        return {"no_decision": True}

    return _decision_to_dict(record)
