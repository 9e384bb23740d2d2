# This project was developed with assistance from AI tools.
"""Tests for the transition executor: state computation, compare-and-swap and atomic commit."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from db.enums import ActivityAction, ApplicationStatus, Decision, TransitionKind, UserRole
from sqlalchemy.exc import OperationalError

from src.schemas.activity import ActivityEntrySpec
from src.services.errors import (
    ConcurrencyConflict,
    InvalidStateTransition,
    PersistenceFailure,
    PreconditionFailed,
    Unauthorized,
)
from src.services.transition import (
    apply_transition,
    commit_transition,
    request_transition,
    submit_application,
    touch_state,
)

from .factories import SUBMITTED_AT, make_snapshot, make_user

NOW = datetime(2026, 10, 18, 9, 30, tzinfo=UTC)


def _cas_session(rowcount=1):
    """Mock session whose UPDATE reports ``rowcount`` matched rows."""
    session = AsyncMock()
    result = MagicMock()
    result.rowcount = rowcount
    session.execute = AsyncMock(return_value=result)
    session.add = MagicMock()
    return session


# ---------------------------------------------------------------------------
# apply_transition / touch_state
# ---------------------------------------------------------------------------


def test_submit_sets_submitted_at_and_locks():
    state = apply_transition(make_snapshot(), TransitionKind.SUBMIT, now=NOW)
    assert state.status == ApplicationStatus.SUBMITTED
    assert state.is_locked is True
    assert state.submitted_at == NOW
    assert state.last_activity_at == NOW


def test_later_transitions_keep_original_submitted_at():
    snapshot = make_snapshot(status=ApplicationStatus.IN_REVIEW)
    state = apply_transition(snapshot, TransitionKind.RAISE_RFI, now=NOW)
    assert state.status == ApplicationStatus.RFI
    assert state.submitted_at == SUBMITTED_AT

    back = apply_transition(
        snapshot.model_copy(update={"status": ApplicationStatus.RFI}),
        TransitionKind.RESOLVE_LAST_OPEN_RFI,
        now=NOW,
    )
    assert back.status == ApplicationStatus.IN_REVIEW
    assert back.submitted_at == SUBMITTED_AT
    assert back.is_locked is True


@pytest.mark.parametrize(
    "decision,expected",
    [
        (Decision.APPROVED, ApplicationStatus.APPROVED),
        (Decision.CONDITIONAL, ApplicationStatus.CONDITIONAL),
        (Decision.DENIED, ApplicationStatus.DENIED),
    ],
)
def test_decide_moves_to_decision_status(decision, expected):
    snapshot = make_snapshot(status=ApplicationStatus.IN_REVIEW)
    state = apply_transition(snapshot, TransitionKind.DECIDE, now=NOW, decision=decision)
    assert state.status == expected
    assert state.is_locked is True


def test_apply_unreachable_transition_raises():
    with pytest.raises(InvalidStateTransition):
        apply_transition(make_snapshot(status=ApplicationStatus.SUBMITTED), TransitionKind.SUBMIT, now=NOW)


def test_touch_state_keeps_status():
    snapshot = make_snapshot(status=ApplicationStatus.RFI)
    state = touch_state(snapshot, now=NOW)
    assert state.status == ApplicationStatus.RFI
    assert state.submitted_at == SUBMITTED_AT
    assert state.last_activity_at == NOW


# ---------------------------------------------------------------------------
# commit_transition
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_commit_transition_writes_records_and_activity():
    session = _cas_session(rowcount=1)
    record = MagicMock()
    record.id = 55
    new_state = apply_transition(make_snapshot(), TransitionKind.SUBMIT, now=NOW)

    with patch("src.services.transition.write_activity_entry", new_callable=AsyncMock) as mock_write:
        version = await commit_transition(
            session,
            100,
            3,
            new_state,
            actor=make_user(),
            records=[record],
            activity=[
                ActivityEntrySpec(action=ActivityAction.APPLICATION_SUBMITTED, description="Submitted"),
                ActivityEntrySpec(
                    action=ActivityAction.RFI_CREATED, description="RFI", entity_type="rfi", entity=record,
                ),
            ],
        )

    assert version == 4
    session.add.assert_called_once_with(record)
    session.flush.assert_awaited_once()
    session.commit.assert_awaited_once()
    session.rollback.assert_not_awaited()

    assert mock_write.await_count == 2
    first, second = (c.kwargs for c in mock_write.await_args_list)
    assert first["entity_id"] == 100
    assert first["action"] == ActivityAction.APPLICATION_SUBMITTED
    assert second["entity_id"] == 55
    assert second["entity_type"] == "rfi"


@pytest.mark.asyncio
async def test_commit_transition_version_mismatch_rolls_back():
    session = _cas_session(rowcount=0)
    new_state = apply_transition(make_snapshot(), TransitionKind.SUBMIT, now=NOW)

    with patch("src.services.transition.write_activity_entry", new_callable=AsyncMock) as mock_write:
        with pytest.raises(ConcurrencyConflict) as exc_info:
            await commit_transition(session, 100, 3, new_state, actor=make_user(), records=[MagicMock()])

    assert exc_info.value.details["expected_version"] == 3
    session.rollback.assert_awaited_once()
    session.add.assert_not_called()
    session.commit.assert_not_awaited()
    mock_write.assert_not_awaited()


@pytest.mark.asyncio
async def test_commit_transition_store_failure_is_persistence_failure():
    session = _cas_session(rowcount=1)
    session.commit = AsyncMock(side_effect=OperationalError("COMMIT", {}, Exception("connection lost")))
    new_state = apply_transition(make_snapshot(), TransitionKind.SUBMIT, now=NOW)

    with patch("src.services.transition.write_activity_entry", new_callable=AsyncMock):
        with pytest.raises(PersistenceFailure) as exc_info:
            await commit_transition(session, 100, 3, new_state, actor=make_user())

    assert exc_info.value.http_status == 503
    session.rollback.assert_awaited_once()


@pytest.mark.asyncio
async def test_commit_transition_activity_failure_rolls_back():
    """An activity write failure leaves nothing applied."""
    session = _cas_session(rowcount=1)
    new_state = apply_transition(make_snapshot(), TransitionKind.SUBMIT, now=NOW)

    with patch(
        "src.services.transition.write_activity_entry",
        new_callable=AsyncMock,
        side_effect=OperationalError("INSERT", {}, Exception("disk full")),
    ):
        with pytest.raises(PersistenceFailure):
            await commit_transition(
                session,
                100,
                3,
                new_state,
                actor=make_user(),
                activity=[ActivityEntrySpec(action=ActivityAction.APPLICATION_SUBMITTED, description="x")],
            )

    session.commit.assert_not_awaited()
    session.rollback.assert_awaited_once()


# ---------------------------------------------------------------------------
# submit / request_transition
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_submit_application_commits_submitted_state():
    snapshot = make_snapshot()
    session = AsyncMock()

    with (
        patch("src.services.transition.load_application_snapshot", new_callable=AsyncMock) as mock_load,
        patch("src.services.transition.commit_transition", new_callable=AsyncMock) as mock_commit,
    ):
        mock_load.return_value = snapshot
        await submit_application(session, make_user(), 100)

    args = mock_commit.await_args
    assert args.args[1] == 100
    assert args.args[2] == snapshot.version
    new_state = args.args[3]
    assert new_state.status == ApplicationStatus.SUBMITTED
    assert new_state.submitted_at is not None
    activity = args.kwargs["activity"]
    assert activity[0].action == ActivityAction.APPLICATION_SUBMITTED
    assert activity[0].event_data == {"from": "IN_PROGRESS", "to": "SUBMITTED"}


@pytest.mark.asyncio
async def test_submit_application_not_found_returns_none():
    with patch("src.services.transition.load_application_snapshot", new_callable=AsyncMock) as mock_load:
        mock_load.return_value = None
        result = await submit_application(AsyncMock(), make_user(), 999)
    assert result is None


@pytest.mark.asyncio
async def test_submit_application_denied_does_not_commit():
    with (
        patch("src.services.transition.load_application_snapshot", new_callable=AsyncMock) as mock_load,
        patch("src.services.transition.commit_transition", new_callable=AsyncMock) as mock_commit,
    ):
        mock_load.return_value = make_snapshot(completion=60)
        with pytest.raises(PreconditionFailed):
            await submit_application(AsyncMock(), make_user(), 100)

    mock_commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_stale_expected_version_is_conflict():
    with (
        patch("src.services.transition.load_application_snapshot", new_callable=AsyncMock) as mock_load,
        patch("src.services.transition.commit_transition", new_callable=AsyncMock) as mock_commit,
    ):
        mock_load.return_value = make_snapshot(version=5)
        with pytest.raises(ConcurrencyConflict):
            await submit_application(AsyncMock(), make_user(), 100, expected_version=4)

    mock_commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_two_submits_from_same_snapshot_one_wins():
    """Both requests pass the guard on the same snapshot; the second loses the version race."""
    snapshot = make_snapshot()
    winner = _cas_session(rowcount=1)
    loser = _cas_session(rowcount=0)

    with (
        patch("src.services.transition.load_application_snapshot", new_callable=AsyncMock) as mock_load,
        patch("src.services.transition.write_activity_entry", new_callable=AsyncMock),
    ):
        mock_load.return_value = snapshot
        await submit_application(winner, make_user(), 100)
        with pytest.raises(ConcurrencyConflict):
            await submit_application(loser, make_user(UserRole.BROKER), 100)

    winner.commit.assert_awaited_once()
    loser.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_resolve_last_open_rfi_cannot_be_requested_directly():
    with pytest.raises(InvalidStateTransition):
        await request_transition(
            AsyncMock(), make_user(UserRole.TRANSACTION_AGENT), 100, TransitionKind.RESOLVE_LAST_OPEN_RFI,
        )


@pytest.mark.asyncio
async def test_decide_without_payload_reports_guard_error_first():
    with patch("src.services.transition.load_application_snapshot", new_callable=AsyncMock) as mock_load:
        mock_load.return_value = make_snapshot(status=ApplicationStatus.IN_REVIEW)
        with pytest.raises(Unauthorized):
            await request_transition(AsyncMock(), make_user(), 100, TransitionKind.DECIDE)


@pytest.mark.asyncio
async def test_decide_without_payload_is_precondition_failure():
    with patch("src.services.transition.load_application_snapshot", new_callable=AsyncMock) as mock_load:
        mock_load.return_value = make_snapshot(status=ApplicationStatus.IN_REVIEW)
        with pytest.raises(PreconditionFailed) as exc_info:
            await request_transition(AsyncMock(), make_user(UserRole.BOARD), 100, "decide")

    assert exc_info.value.reason == "decision"


@pytest.mark.asyncio
async def test_request_transition_dispatches_raise_rfi():
    payload = MagicMock(section_key="income", assignee_role="APPLICANT", message="Need paystubs")
    fresh = make_snapshot(status=ApplicationStatus.RFI)

    with (
        patch("src.services.rfi.create_rfi", new_callable=AsyncMock) as mock_create,
        patch("src.services.transition.load_application_snapshot", new_callable=AsyncMock) as mock_load,
    ):
        mock_create.return_value = {"id": 1}
        mock_load.return_value = fresh
        result = await request_transition(
            AsyncMock(),
            make_user(UserRole.TRANSACTION_AGENT),
            100,
            TransitionKind.RAISE_RFI,
            payload=payload,
            expected_version=3,
        )

    assert result is fresh
    assert mock_create.await_args.kwargs["expected_version"] == 3
    assert mock_create.await_args.args[3:6] == ("income", "APPLICANT", "Need paystubs")
