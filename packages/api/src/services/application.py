# This project was developed with assistance from AI tools.
"""Application service with role-based data scope filtering.

Every query is filtered through the caller's DataScope so that applicants
see only applications they created or are listed on, brokers see the ones
they broker, and reviewers and the board see all.

Applicant-side edits live here too. They never touch ``status``,
``submitted_at`` or ``is_locked`` (those belong to the transition executor)
and are refused once the application is locked.
"""

import logging
from datetime import UTC, datetime

from db import (
    Application,
    ApplicationSection,
    Disclosure,
    Document,
    EmploymentRecord,
    FinancialEntry,
    Participant,
    Person,
)
from db.enums import (
    ActivityAction,
    ApplicationStatus,
    DisclosureType,
    DocumentCategory,
    DocumentStatus,
    EmploymentStatus,
    FinancialEntryType,
    ParticipantRole,
    PayCadence,
    SectionKey,
    TransactionType,
    UserRole,
)
from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..schemas.application import (
    ApplicationSnapshot,
    DisclosureState,
    DocumentState,
    EmploymentState,
    ParticipantState,
    RFIState,
    SectionState,
)
from ..schemas.auth import UserContext
from .activity import write_activity_entry
from .completeness import compute_completion_percentage, required_disclosures, section_plan
from .errors import ConcurrencyConflict, PersistenceFailure, PreconditionFailed, Unauthorized
from .scope import apply_data_scope

logger = logging.getLogger(__name__)

_EDITOR_ROLES = UserRole.party_roles() | {UserRole.BROKER, UserRole.ADMIN}

_SNAPSHOT_LOADS = (
    selectinload(Application.sections),
    selectinload(Application.disclosures),
    selectinload(Application.documents),
    selectinload(Application.rfis),
    selectinload(Application.people),
    selectinload(Application.financial_entries),
    selectinload(Application.employment_records),
    selectinload(Application.participants),
    selectinload(Application.decision),
)


def build_snapshot(app: Application) -> ApplicationSnapshot:
    """Freeze an eagerly loaded Application into an ApplicationSnapshot."""
    return ApplicationSnapshot(
        id=app.id,
        version=app.version,
        status=app.status,
        transaction_type=app.transaction_type,
        completion_percentage=app.completion_percentage or 0,
        is_locked=bool(app.is_locked),
        submitted_at=app.submitted_at,
        last_activity_at=app.last_activity_at,
        created_by=app.created_by,
        broker_id=app.broker_id,
        building_name=app.building_name,
        unit=app.unit,
        created_at=app.created_at,
        sections=[SectionState.model_validate(s) for s in app.sections],
        disclosures=[DisclosureState.model_validate(d) for d in app.disclosures],
        documents=[DocumentState.model_validate(d) for d in app.documents],
        employment_records=[EmploymentState.model_validate(e) for e in app.employment_records],
        participants=[ParticipantState.model_validate(p) for p in app.participants],
        rfis=[RFIState.model_validate(r) for r in app.rfis],
        financial_entry_count=len(app.financial_entries),
        person_user_ids=[p.user_id for p in app.people if p.user_id],
        has_decision=app.decision is not None,
    )


async def get_application(
    session: AsyncSession,
    user: UserContext,
    application_id: int,
) -> Application | None:
    """Return a single application if visible to the current user.

    Returns None (which the route maps to 404) for out-of-scope applications
    rather than 403, to avoid leaking existence of resources.
    """
    stmt = (
        select(Application)
        .options(*_SNAPSHOT_LOADS)
        .where(Application.id == application_id)
        # Executor updates bypass the identity map; always refresh from the row.
        .execution_options(populate_existing=True)
    )
    stmt = apply_data_scope(stmt, user.data_scope, user)
    result = await session.execute(stmt)
    return result.unique().scalar_one_or_none()


async def load_application_snapshot(
    session: AsyncSession,
    user: UserContext,
    application_id: int,
) -> ApplicationSnapshot | None:
    app = await get_application(session, user, application_id)
    if app is None:
        return None
    return build_snapshot(app)


async def list_applications(
    session: AsyncSession,
    user: UserContext,
    *,
    offset: int = 0,
    limit: int = 20,
    filter_status: ApplicationStatus | None = None,
) -> tuple[list[ApplicationSnapshot], int]:
    """Return applications visible to the current user, most recently active first."""
    count_stmt = select(func.count(Application.id))
    count_stmt = apply_data_scope(count_stmt, user.data_scope, user)
    if filter_status is not None:
        count_stmt = count_stmt.where(Application.status == filter_status)
    total = (await session.execute(count_stmt)).scalar() or 0

    stmt = (
        select(Application)
        .options(*_SNAPSHOT_LOADS)
        .order_by(Application.last_activity_at.desc(), Application.id.desc())
        .offset(offset)
        .limit(limit)
        .execution_options(populate_existing=True)
    )
    stmt = apply_data_scope(stmt, user.data_scope, user)
    if filter_status is not None:
        stmt = stmt.where(Application.status == filter_status)
    result = await session.execute(stmt)
    applications = result.unique().scalars().all()

    return [build_snapshot(app) for app in applications], total


async def create_application(
    session: AsyncSession,
    user: UserContext,
    transaction_type: TransactionType,
    building_name: str | None = None,
    unit: str | None = None,
    broker_id: str | None = None,
) -> ApplicationSnapshot:
    """Create a new application with its required sections and disclosures.

    A broker creating an application is recorded as its broker.
    """
    if user.role not in _EDITOR_ROLES:
        raise Unauthorized(
            "Only applicants or brokers may start an application",
            details={"role": user.role.value},
        )
    if user.role == UserRole.BROKER:
        broker_id = user.data_scope.broker_id or user.user_id

    application = Application(
        transaction_type=transaction_type,
        building_name=building_name,
        unit=unit,
        status=ApplicationStatus.IN_PROGRESS,
        is_locked=False,
        created_by=user.user_id,
        broker_id=broker_id,
        version=1,
    )
    sections = section_plan(transaction_type)
    application.sections = [
        ApplicationSection(section_key=key, is_required=required, is_complete=False)
        for key, required in sections
    ]
    application.disclosures = [
        Disclosure(disclosure_type=dtype, acknowledged=False)
        for dtype in required_disclosures(transaction_type)
    ]
    if user.role in UserRole.party_roles():
        application.people = [
            Person(user_id=user.user_id, role=user.role, full_name=user.name or user.email, email=user.email)
        ]
    application.completion_percentage = compute_completion_percentage(application.sections)

    try:
        session.add(application)
        await session.flush()
        app_id = application.id  # capture before commit
        await write_activity_entry(
            session,
            actor=user,
            action=ActivityAction.APPLICATION_CREATED,
            application_id=app_id,
            description=f"Application created ({transaction_type.value})",
            entity_type="application",
            entity_id=app_id,
            event_data={"transaction_type": transaction_type.value},
        )
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.error("Failed to create application for user %s: %s", user.user_id, exc)
        raise PersistenceFailure("Could not create the application") from exc

    logger.info("Application %s created by %s", app_id, user.user_id)
    return await load_application_snapshot(session, user, app_id)


# ---------------------------------------------------------------------------
# Compare-and-swap primitives
# ---------------------------------------------------------------------------


def ensure_expected_version(snapshot: ApplicationSnapshot, expected_version: int | None) -> None:
    """Reject a request made against a version the client no longer holds."""
    if expected_version is not None and expected_version != snapshot.version:
        raise ConcurrencyConflict(
            "Application was modified since it was loaded; reload and retry",
            details={"expected_version": expected_version, "current_version": snapshot.version},
        )


async def compare_and_swap(
    session: AsyncSession,
    application_id: int,
    expected_version: int,
    values: dict,
    *,
    require_unlocked: bool = False,
) -> int:
    """Write ``values`` to the application only if it is still at ``expected_version``.

    Bumps ``version`` in the same statement. On a miss the transaction is
    rolled back and ConcurrencyConflict raised. Returns the new version.
    """
    stmt = update(Application).where(
        Application.id == application_id,
        Application.version == expected_version,
    )
    if require_unlocked:
        stmt = stmt.where(Application.is_locked.is_(False))
    stmt = stmt.values(version=expected_version + 1, **values).execution_options(
        synchronize_session=False,
    )

    result = await session.execute(stmt)
    if result.rowcount == 0:
        await session.rollback()
        logger.warning(
            "Version conflict on application %s (expected version %s)",
            application_id,
            expected_version,
        )
        raise ConcurrencyConflict(
            "Application was modified concurrently; reload and retry",
            details={"expected_version": expected_version},
        )
    return expected_version + 1


# ---------------------------------------------------------------------------
# Applicant-side edits
# ---------------------------------------------------------------------------


async def _load_editable(session, user, application_id) -> ApplicationSnapshot | None:
    snapshot = await load_application_snapshot(session, user, application_id)
    if snapshot is None:
        return None
    if user.role not in _EDITOR_ROLES:
        raise Unauthorized("Your role may not edit applications", details={"role": user.role.value})
    if snapshot.is_locked:
        raise PreconditionFailed(
            "Application is locked and can no longer be edited",
            reason="locked",
            details={"status": snapshot.status.value},
        )
    return snapshot


async def _commit_edit(
    session: AsyncSession,
    user: UserContext,
    snapshot: ApplicationSnapshot,
    *,
    description: str,
    app_values: dict | None = None,
    statements=(),
    records=(),
    event_data: dict | None = None,
) -> None:
    now = datetime.now(UTC)
    try:
        await compare_and_swap(
            session,
            snapshot.id,
            snapshot.version,
            {"last_activity_at": now, **(app_values or {})},
            require_unlocked=True,
        )
        for stmt in statements:
            await session.execute(stmt)
        for record in records:
            session.add(record)
        await session.flush()
        await write_activity_entry(
            session,
            actor=user,
            action=ActivityAction.APPLICATION_UPDATED,
            application_id=snapshot.id,
            description=description,
            entity_type="application",
            entity_id=snapshot.id,
            event_data=event_data,
        )
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.error("Failed to update application %s: %s", snapshot.id, exc)
        raise PersistenceFailure("Could not save the change") from exc


async def update_section(
    session: AsyncSession,
    user: UserContext,
    application_id: int,
    section_key: SectionKey,
    is_complete: bool,
) -> ApplicationSnapshot | None:
    """Mark a section complete or incomplete and recompute completion."""
    snapshot = await _load_editable(session, user, application_id)
    if snapshot is None:
        return None

    if not any(s.section_key == section_key for s in snapshot.sections):
        raise PreconditionFailed(
            f"Section '{section_key.value}' does not apply to this application",
            reason="unknown_section",
            failures=[section_key.value],
        )

    updated = [
        s.model_copy(update={"is_complete": is_complete}) if s.section_key == section_key else s
        for s in snapshot.sections
    ]
    completion = compute_completion_percentage(updated)

    await _commit_edit(
        session,
        user,
        snapshot,
        description=f"Section '{section_key.value}' marked {'complete' if is_complete else 'incomplete'}",
        app_values={"completion_percentage": completion},
        statements=[
            update(ApplicationSection)
            .where(
                ApplicationSection.application_id == snapshot.id,
                ApplicationSection.section_key == section_key,
            )
            .values(is_complete=is_complete)
            .execution_options(synchronize_session=False)
        ],
        event_data={"section_key": section_key.value, "is_complete": is_complete, "completion": completion},
    )
    return await load_application_snapshot(session, user, application_id)


async def acknowledge_disclosure(
    session: AsyncSession,
    user: UserContext,
    application_id: int,
    disclosure_type: DisclosureType,
) -> ApplicationSnapshot | None:
    """Acknowledge a disclosure. Acknowledging twice is a no-op."""
    snapshot = await _load_editable(session, user, application_id)
    if snapshot is None:
        return None

    current = next((d for d in snapshot.disclosures if d.disclosure_type == disclosure_type), None)
    if current is None:
        raise PreconditionFailed(
            f"Disclosure '{disclosure_type.value}' is not required for this application",
            reason="unknown_disclosure",
            failures=[disclosure_type.value],
        )
    if current.acknowledged:
        return snapshot

    await _commit_edit(
        session,
        user,
        snapshot,
        description=f"Disclosure '{disclosure_type.value}' acknowledged",
        statements=[
            update(Disclosure)
            .where(
                Disclosure.application_id == snapshot.id,
                Disclosure.disclosure_type == disclosure_type,
            )
            .values(acknowledged=True, acknowledged_at=datetime.now(UTC), acknowledged_by=user.user_id)
            .execution_options(synchronize_session=False)
        ],
        event_data={"disclosure_type": disclosure_type.value},
    )
    return await load_application_snapshot(session, user, application_id)


async def add_document(
    session: AsyncSession,
    user: UserContext,
    application_id: int,
    category: DocumentCategory,
    filename: str,
) -> ApplicationSnapshot | None:
    """Register document metadata. File bytes are stored elsewhere."""
    snapshot = await _load_editable(session, user, application_id)
    if snapshot is None:
        return None

    document = Document(
        application_id=snapshot.id,
        category=category,
        filename=filename,
        status=DocumentStatus.UPLOADED,
        uploaded_by=user.user_id,
    )
    await _commit_edit(
        session,
        user,
        snapshot,
        description=f"Document uploaded: {filename}",
        records=[document],
        event_data={"category": category.value, "filename": filename},
    )
    return await load_application_snapshot(session, user, application_id)


async def add_financial_entry(
    session: AsyncSession,
    user: UserContext,
    application_id: int,
    entry_type: FinancialEntryType,
    amount,
    category: str | None = None,
    institution: str | None = None,
    description: str | None = None,
) -> ApplicationSnapshot | None:
    snapshot = await _load_editable(session, user, application_id)
    if snapshot is None:
        return None

    entry = FinancialEntry(
        application_id=snapshot.id,
        entry_type=entry_type,
        amount=amount,
        category=category,
        institution=institution,
        description=description,
    )
    await _commit_edit(
        session,
        user,
        snapshot,
        description=f"Financial entry added ({entry_type.value})",
        records=[entry],
        event_data={"entry_type": entry_type.value, "amount": str(amount)},
    )
    return await load_application_snapshot(session, user, application_id)


async def add_employment_record(
    session: AsyncSession,
    user: UserContext,
    application_id: int,
    employer: str,
    employment_status: EmploymentStatus,
    start_date,
    annual_income=0,
    pay_cadence: PayCadence = PayCadence.ANNUAL,
    title: str | None = None,
    end_date=None,
    is_current: bool = True,
    is_self_employed: bool = False,
) -> ApplicationSnapshot | None:
    """Add a job to the application's employment history."""
    snapshot = await _load_editable(session, user, application_id)
    if snapshot is None:
        return None

    record = EmploymentRecord(
        application_id=snapshot.id,
        employer=employer,
        title=title,
        employment_status=employment_status,
        pay_cadence=pay_cadence,
        annual_income=annual_income,
        start_date=start_date,
        end_date=end_date,
        is_current=is_current,
        is_self_employed=is_self_employed,
    )
    await _commit_edit(
        session,
        user,
        snapshot,
        description=f"Employment added: {employer}",
        records=[record],
        event_data={"employer": employer, "employment_status": employment_status.value},
    )
    return await load_application_snapshot(session, user, application_id)


async def add_participant(
    session: AsyncSession,
    user: UserContext,
    application_id: int,
    role: ParticipantRole,
    name: str,
    email: str,
    phone: str | None = None,
) -> ApplicationSnapshot | None:
    """Record a deal party. Participants are contacts only and never log in."""
    snapshot = await _load_editable(session, user, application_id)
    if snapshot is None:
        return None

    participant = Participant(
        application_id=snapshot.id,
        role=role,
        name=name,
        email=email,
        phone=phone,
    )
    await _commit_edit(
        session,
        user,
        snapshot,
        description=f"{role.value.replace('_', ' ').title()} added: {name}",
        records=[participant],
        event_data={"role": role.value, "name": name},
    )
    return await load_application_snapshot(session, user, application_id)
