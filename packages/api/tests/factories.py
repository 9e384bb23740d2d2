# This project was developed with assistance from AI tools.
"""Shared test factory functions for creating snapshots, users and mock ORM objects.

Snapshot factories feed the pure workflow guards directly; the mock ORM
factories feed service-layer tests that go through ``build_snapshot``.
"""

from datetime import UTC, datetime
from unittest.mock import MagicMock

from db.enums import (
    ApplicationStatus,
    DocumentCategory,
    DocumentStatus,
    RFIStatus,
    SectionKey,
    TransactionType,
    UserRole,
)

from src.core.auth import build_data_scope
from src.schemas.application import (
    ApplicationSnapshot,
    DisclosureState,
    DocumentState,
    RFIState,
    SectionState,
)
from src.schemas.auth import UserContext
from src.services.completeness import required_disclosures, section_plan

APPLICANT_ID = "applicant-1"
CO_APPLICANT_ID = "co-applicant-1"
BROKER_ID = "broker-1"
AGENT_ID = "agent-1"
ADMIN_ID = "admin-1"
BOARD_ID = "board-1"

SUBMITTED_AT = datetime(2026, 10, 1, 12, 0, tzinfo=UTC)

_DEFAULT_IDS = {
    UserRole.APPLICANT: APPLICANT_ID,
    UserRole.CO_APPLICANT: CO_APPLICANT_ID,
    UserRole.BROKER: BROKER_ID,
    UserRole.TRANSACTION_AGENT: AGENT_ID,
    UserRole.ADMIN: ADMIN_ID,
    UserRole.BOARD: BOARD_ID,
}


def make_user(role: UserRole = UserRole.APPLICANT, user_id: str | None = None) -> UserContext:
    """Create a UserContext with the data scope the auth middleware would build."""
    user_id = user_id or _DEFAULT_IDS.get(role, f"{role.value.lower()}-1")
    return UserContext(
        user_id=user_id,
        role=role,
        email=f"{user_id}@example.com",
        name=user_id.replace("-", " ").title(),
        data_scope=build_data_scope(role, user_id),
    )


def make_rfi_state(
    id=1,
    status=RFIStatus.OPEN,
    section_key=SectionKey.INCOME,
    assignee_role=UserRole.APPLICANT,
    created_by=AGENT_ID,
) -> RFIState:
    return RFIState(
        id=id,
        section_key=section_key,
        status=status,
        assignee_role=assignee_role,
        created_by=created_by,
    )


def make_snapshot(
    status: ApplicationStatus = ApplicationStatus.IN_PROGRESS,
    transaction_type: TransactionType = TransactionType.COOP_PURCHASE,
    completion: int = 100,
    acknowledged: bool = True,
    gov_id: bool = True,
    rfis=(),
    **overrides,
) -> ApplicationSnapshot:
    """Create an ApplicationSnapshot that passes every submit check by default.

    Args:
        status: Current application status. Anything past IN_PROGRESS is
            locked and carries a submitted_at.
        transaction_type: Drives the section plan and disclosure list.
        completion: completion_percentage; sections are marked to match.
        acknowledged: Whether every seeded disclosure is acknowledged.
        gov_id: Whether a government ID document is present.
        rfis: RFIState entries.
        **overrides: Any other ApplicationSnapshot field.
    """
    sections = [
        SectionState(section_key=key, is_required=required, is_complete=completion == 100 or not required)
        for key, required in section_plan(transaction_type)
    ]
    disclosures = [
        DisclosureState(disclosure_type=dtype, acknowledged=acknowledged)
        for dtype in required_disclosures(transaction_type)
    ]
    documents = (
        [DocumentState(id=1, category=DocumentCategory.GOVERNMENT_ID, filename="passport.pdf")]
        if gov_id
        else []
    )
    in_progress = status == ApplicationStatus.IN_PROGRESS
    fields = {
        "id": 100,
        "version": 3,
        "status": status,
        "transaction_type": transaction_type,
        "completion_percentage": completion,
        "is_locked": not in_progress,
        "submitted_at": None if in_progress else SUBMITTED_AT,
        "last_activity_at": SUBMITTED_AT,
        "created_by": APPLICANT_ID,
        "broker_id": BROKER_ID,
        "sections": sections,
        "disclosures": disclosures,
        "documents": documents,
        "rfis": list(rfis),
        "financial_entry_count": 2,
        "person_user_ids": [APPLICANT_ID],
    }
    fields.update(overrides)
    return ApplicationSnapshot(**fields)


# ---------------------------------------------------------------------------
# Mock ORM objects
# ---------------------------------------------------------------------------


def make_mock_rfi(
    id=10,
    application_id=100,
    status=RFIStatus.OPEN,
    section_key=SectionKey.INCOME,
    assignee_role=UserRole.APPLICANT,
    created_by=AGENT_ID,
    messages=None,
):
    """Create a mock RFI ORM object with a one-message thread."""
    rfi = MagicMock()
    rfi.id = id
    rfi.application_id = application_id
    rfi.status = status
    rfi.section_key = section_key
    rfi.assignee_role = assignee_role
    rfi.created_by = created_by
    rfi.resolved_by = None
    rfi.resolved_at = None
    rfi.created_at = SUBMITTED_AT
    if messages is None:
        messages = [make_mock_rfi_message(author_id=created_by)]
    rfi.messages = messages
    return rfi


def make_mock_rfi_message(
    id=1,
    author_id=AGENT_ID,
    author_role="TRANSACTION_AGENT",
    message="Please upload a recent paystub",
):
    m = MagicMock()
    m.id = id
    m.author_id = author_id
    m.author_name = "Agent One"
    m.author_role = author_role
    m.message = message
    m.created_at = SUBMITTED_AT
    return m


def make_mock_application(
    status: ApplicationStatus = ApplicationStatus.IN_PROGRESS,
    transaction_type: TransactionType = TransactionType.COOP_PURCHASE,
    id=100,
    version=3,
    complete=True,
    acknowledged=True,
    gov_id=True,
    rfis=None,
    decision=None,
    created_by=APPLICANT_ID,
    broker_id=BROKER_ID,
):
    """Create a mock Application ORM object with eagerly loaded collections.

    Defaults describe an application that is ready to submit.
    """
    app = MagicMock()
    app.id = id
    app.version = version
    app.status = status
    app.transaction_type = transaction_type
    app.is_locked = status != ApplicationStatus.IN_PROGRESS
    app.submitted_at = None if status == ApplicationStatus.IN_PROGRESS else SUBMITTED_AT
    app.last_activity_at = SUBMITTED_AT
    app.created_at = SUBMITTED_AT
    app.created_by = created_by
    app.broker_id = broker_id
    app.building_name = "The Dakota"
    app.unit = "4B"

    app.sections = []
    for key, required in section_plan(transaction_type):
        s = MagicMock()
        s.section_key = key
        s.is_required = required
        s.is_complete = complete or not required
        app.sections.append(s)
    app.completion_percentage = 100 if complete else 0

    app.disclosures = []
    for dtype in required_disclosures(transaction_type):
        d = MagicMock()
        d.disclosure_type = dtype
        d.acknowledged = acknowledged
        d.acknowledged_at = SUBMITTED_AT if acknowledged else None
        app.disclosures.append(d)

    app.documents = []
    if gov_id:
        doc = MagicMock()
        doc.id = 1
        doc.category = DocumentCategory.GOVERNMENT_ID
        doc.filename = "passport.pdf"
        doc.status = DocumentStatus.UPLOADED
        app.documents.append(doc)

    app.rfis = rfis or []
    person = MagicMock()
    person.user_id = created_by
    app.people = [person]
    app.financial_entries = [MagicMock(), MagicMock()]
    app.employment_records = []
    app.participants = []
    app.decision = decision
    return app


def make_mock_decision_record(id=1, application_id=100, decision="APPROVED", reason_codes=None):
    from db.enums import Decision

    d = MagicMock()
    d.id = id
    d.application_id = application_id
    d.decision = Decision(decision)
    d.reason_codes = reason_codes or []
    d.notes = None
    d.conditions = None
    d.uses_consumer_report = False
    d.adverse_action_required = False
    d.adverse_action_notice = None
    d.decided_by = BOARD_ID
    d.decided_at = SUBMITTED_AT
    return d
