# This project was developed with assistance from AI tools.
"""Application workflow state machine and transition guards.

``TRANSITIONS`` is the single authoritative transition table. Every other
view of the lifecycle (status summaries, allowed-action lists) is derived
from it.

``evaluate_transition`` is pure: it inspects an ``ApplicationSnapshot`` and
the acting user and returns ``None`` when the transition is allowed, or the
``TransitionError`` describing why it is not. It never raises for a business
rejection, never mutates the snapshot and never touches the database.
"""

from collections.abc import Callable

from db.enums import (
    ApplicationStatus,
    Decision,
    DocumentCategory,
    DocumentStatus,
    ReasonCode,
    SectionKey,
    TransitionKind,
    UserRole,
)

from ..core.config import settings
from ..schemas.application import ApplicationSnapshot
from ..schemas.auth import UserContext
from .errors import InvalidStateTransition, PreconditionFailed, TransitionError, Unauthorized

_S = ApplicationStatus
_K = TransitionKind

# (current status, transition) -> target status. DECIDE targets are chosen by
# the decision itself, see DECISION_STATUS.
TRANSITIONS: dict[tuple[ApplicationStatus, TransitionKind], ApplicationStatus | None] = {
    (_S.IN_PROGRESS, _K.SUBMIT): _S.SUBMITTED,
    (_S.SUBMITTED, _K.BEGIN_REVIEW): _S.IN_REVIEW,
    (_S.IN_REVIEW, _K.RAISE_RFI): _S.RFI,
    (_S.RFI, _K.RAISE_RFI): _S.RFI,
    (_S.RFI, _K.RESOLVE_LAST_OPEN_RFI): _S.IN_REVIEW,
    (_S.IN_REVIEW, _K.DECIDE): None,
}

DECISION_STATUS: dict[Decision, ApplicationStatus] = {
    Decision.APPROVED: _S.APPROVED,
    Decision.CONDITIONAL: _S.CONDITIONAL,
    Decision.DENIED: _S.DENIED,
}

RFI_ASSIGNEE_ROLES = frozenset({UserRole.APPLICANT, UserRole.BROKER})


def target_status(
    current: ApplicationStatus,
    kind: TransitionKind,
    decision: Decision | None = None,
) -> ApplicationStatus | None:
    """Return the status ``kind`` leads to from ``current``, or None if unreachable."""
    if (current, kind) not in TRANSITIONS:
        return None
    if kind == _K.DECIDE:
        return DECISION_STATUS.get(decision) if decision is not None else None
    return TRANSITIONS[(current, kind)]


def allowed_transitions(status: ApplicationStatus) -> list[TransitionKind]:
    """Transitions reachable from ``status``, in declaration order."""
    return [kind for (current, kind) in TRANSITIONS if current == status]


# ---------------------------------------------------------------------------
# Shared predicates (also used by the readiness report)
# ---------------------------------------------------------------------------


def unacknowledged_disclosures(snapshot: ApplicationSnapshot) -> list[str]:
    """Disclosure types still awaiting acknowledgement.

    Only lease and sublet transactions carry the disclosure requirement.
    """
    if not snapshot.transaction_type.requires_disclosures:
        return []
    return [d.disclosure_type.value for d in snapshot.disclosures if not d.acknowledged]


def has_government_id(snapshot: ApplicationSnapshot) -> bool:
    return any(
        d.category == DocumentCategory.GOVERNMENT_ID and d.status != DocumentStatus.REJECTED
        for d in snapshot.documents
    )


def can_submit_as(snapshot: ApplicationSnapshot, actor: UserContext) -> bool:
    """Owning applicant, or the broker authorized on the application."""
    if actor.role == UserRole.APPLICANT:
        return actor.user_id == snapshot.created_by
    if actor.role == UserRole.BROKER:
        if actor.user_id == snapshot.created_by:
            return True
        return snapshot.broker_id is not None and snapshot.broker_id in (
            actor.user_id, actor.data_scope.broker_id,
        )
    return False


def message_failures(message: str | None, field: str = "message") -> list[str]:
    text = (message or "").strip()
    if len(text) < settings.RFI_MIN_MESSAGE_LENGTH:
        return [f"{field} must be at least {settings.RFI_MIN_MESSAGE_LENGTH} character(s)"]
    return []


def adverse_action_required(decision: Decision, uses_consumer_report: bool) -> bool:
    """An adverse-action notice is owed when a consumer report informed an unfavorable outcome."""
    return bool(uses_consumer_report) and Decision(decision).is_unfavorable


def validate_adverse_action(
    decision: Decision,
    uses_consumer_report: bool,
    adverse_action_notice: str | None,
) -> PreconditionFailed | None:
    if not adverse_action_required(decision, uses_consumer_report):
        return None
    notice = (adverse_action_notice or "").strip()
    if len(notice) < settings.ADVERSE_ACTION_NOTICE_MIN_LENGTH:
        return PreconditionFailed(
            "An adverse action notice is required when a consumer report "
            "contributed to a conditional or denied decision",
            reason="adverse_action_notice",
            failures=["adverse_action_notice is required"],
        )
    return None


# ---------------------------------------------------------------------------
# Guards
# ---------------------------------------------------------------------------


def _wrong_status(snapshot: ApplicationSnapshot, kind: TransitionKind) -> InvalidStateTransition:
    allowed = [k.value for k in allowed_transitions(snapshot.status)]
    return InvalidStateTransition(
        f"Cannot {kind.value.replace('_', ' ')} an application in status '{snapshot.status.value}'",
        details={"status": snapshot.status.value, "allowed": allowed},
    )


def _check_submit(snapshot, actor, payload):
    if snapshot.status != _S.IN_PROGRESS:
        return InvalidStateTransition(
            "Application has already been submitted",
            already_submitted=True,
            details={"status": snapshot.status.value},
        )

    if snapshot.completion_percentage != 100:
        return PreconditionFailed(
            "Application is not complete",
            reason="completion",
            failures=[f"completion is {snapshot.completion_percentage}%, 100% required"],
            details={"completion_percentage": snapshot.completion_percentage},
        )

    if not can_submit_as(snapshot, actor):
        return Unauthorized(
            "Only the owning applicant or the authorized broker may submit this application",
            details={"role": actor.role.value},
        )

    pending = unacknowledged_disclosures(snapshot)
    if pending:
        return PreconditionFailed(
            "All disclosures must be acknowledged before submitting a lease or sublet",
            reason="disclosures",
            failures=pending,
        )

    if not has_government_id(snapshot):
        return PreconditionFailed(
            "A government-issued ID must be uploaded before submitting",
            reason="government_id",
            failures=[DocumentCategory.GOVERNMENT_ID.value],
        )

    return None


def _check_begin_review(snapshot, actor, payload):
    if actor.role not in UserRole.reviewer_roles():
        return Unauthorized("Only reviewers may begin review", details={"role": actor.role.value})
    if snapshot.status != _S.SUBMITTED:
        return _wrong_status(snapshot, _K.BEGIN_REVIEW)
    return None


def rfi_payload_failures(section_key, assignee_role, message) -> list[str]:
    failures = []
    if section_key not in {k.value for k in SectionKey}:
        failures.append(f"unknown section_key '{section_key}'")
    if assignee_role not in {r.value for r in RFI_ASSIGNEE_ROLES}:
        failures.append(f"assignee_role must be one of {sorted(r.value for r in RFI_ASSIGNEE_ROLES)}")
    failures.extend(message_failures(message))
    return failures


def _check_raise_rfi(snapshot, actor, payload):
    if actor.role not in UserRole.reviewer_roles():
        return Unauthorized("Only reviewers may raise RFIs", details={"role": actor.role.value})
    if snapshot.status not in ApplicationStatus.reviewable_statuses():
        return _wrong_status(snapshot, _K.RAISE_RFI)
    if payload is None:
        return PreconditionFailed("RFI details are required", reason="rfi", failures=["rfi payload missing"])

    section_key = getattr(payload.section_key, "value", payload.section_key)
    assignee_role = getattr(payload.assignee_role, "value", payload.assignee_role)
    failures = rfi_payload_failures(section_key, assignee_role, payload.message)
    if failures:
        return PreconditionFailed("Invalid RFI request", reason="rfi", failures=failures)
    return None


def _check_resolve_last_open_rfi(snapshot, actor, payload):
    if actor.role not in UserRole.reviewer_roles():
        return Unauthorized("Only reviewers may resolve RFIs", details={"role": actor.role.value})
    if snapshot.status != _S.RFI:
        return _wrong_status(snapshot, _K.RESOLVE_LAST_OPEN_RFI)
    return None


def _check_decide(snapshot, actor, payload):
    if actor.role not in UserRole.decision_roles():
        return Unauthorized("Only reviewers or the board may record a decision", details={"role": actor.role.value})

    if snapshot.status in ApplicationStatus.terminal_statuses() or snapshot.has_decision:
        return InvalidStateTransition(
            "A decision has already been recorded for this application",
            details={"status": snapshot.status.value},
        )
    if snapshot.status != _S.IN_REVIEW:
        return _wrong_status(snapshot, _K.DECIDE)

    if payload is None:
        return PreconditionFailed(
            "Decision details are required", reason="decision", failures=["decision payload missing"],
        )

    known = {c.value for c in ReasonCode}
    codes = [getattr(c, "value", c) for c in payload.reason_codes]
    unknown = [c for c in codes if c not in known]
    if unknown:
        return PreconditionFailed("Unknown reason codes", reason="reason_codes", failures=unknown)
    if payload.decision != Decision.APPROVED and not codes:
        return PreconditionFailed(
            "At least one reason code is required for a conditional or denied decision",
            reason="reason_codes",
            failures=["reason_codes is empty"],
        )

    return validate_adverse_action(
        payload.decision, payload.uses_consumer_report, payload.adverse_action_notice,
    )


_GUARDS: dict[TransitionKind, Callable] = {
    _K.SUBMIT: _check_submit,
    _K.BEGIN_REVIEW: _check_begin_review,
    _K.RAISE_RFI: _check_raise_rfi,
    _K.RESOLVE_LAST_OPEN_RFI: _check_resolve_last_open_rfi,
    _K.DECIDE: _check_decide,
}


def evaluate_transition(
    snapshot: ApplicationSnapshot,
    kind: TransitionKind,
    actor: UserContext,
    payload=None,
) -> TransitionError | None:
    """Decide whether ``actor`` may apply ``kind`` to ``snapshot``.

    Args:
        snapshot: The application as currently stored.
        kind: Requested transition.
        actor: The acting user.
        payload: ``RFICreateRequest`` for RAISE_RFI, ``DecisionCreateRequest``
            for DECIDE, ignored otherwise.

    Returns:
        None if allowed, otherwise the error to report.
    """
    return _GUARDS[TransitionKind(kind)](snapshot, actor, payload)
