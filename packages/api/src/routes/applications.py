# This project was developed with assistance from AI tools.
"""Application routes: CRUD, applicant-side edits and workflow transitions."""

from db import get_db
from db.enums import ApplicationStatus, DisclosureType, SectionKey, TransitionKind, UserRole
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..middleware.auth import CurrentUser, require_roles
from ..schemas import Pagination
from ..schemas.activity import ActivityItem, ActivityListResponse
from ..schemas.application import (
    ApplicationCreate,
    ApplicationListResponse,
    ApplicationSnapshot,
    DocumentCreate,
    EmploymentRecordCreate,
    FinancialEntryCreate,
    ParticipantCreate,
    SectionUpdateRequest,
)
from ..schemas.completeness import ReadinessReport
from ..schemas.rfi import RFICreateRequest, RFIItem, RFIListResponse, RFIResponse
from ..schemas.status import ApplicationStatusResponse
from ..schemas.transition import TransitionRequest, VersionedRequest
from ..services import application as app_service
from ..services import transition as transition_service
from ..services.activity import get_application_activity
from ..services.completeness import check_submission_readiness
from ..services.rfi import create_rfi, list_rfis
from ..services.status import get_application_status

router = APIRouter()

_ALL_ROLES = tuple(UserRole)
_EDITOR_ROLES = (*UserRole.party_roles(), UserRole.BROKER, UserRole.ADMIN)
_REVIEWER_ROLES = tuple(UserRole.reviewer_roles())


def _not_found() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail="Application not found",
    )


@router.get(
    "/",
    response_model=ApplicationListResponse,
    dependencies=[Depends(require_roles(*_ALL_ROLES))],
)
async def list_applications(
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=20, ge=1, le=100),
    filter_status: ApplicationStatus | None = None,
) -> ApplicationListResponse:
    """List applications visible to the current user's role and data scope."""
    applications, total = await app_service.list_applications(
        session,
        user,
        offset=offset,
        limit=limit,
        filter_status=filter_status,
    )
    return ApplicationListResponse(
        data=applications,
        pagination=Pagination(
            total=total,
            offset=offset,
            limit=limit,
            has_more=(offset + limit < total),
        ),
    )


@router.post(
    "/",
    response_model=ApplicationSnapshot,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_roles(*_EDITOR_ROLES))],
)
async def create_application(
    body: ApplicationCreate,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> ApplicationSnapshot:
    """Start a new application. Applicants, brokers and admins only."""
    return await app_service.create_application(
        session,
        user,
        body.transaction_type,
        building_name=body.building_name,
        unit=body.unit,
        broker_id=body.broker_id,
    )


@router.get(
    "/{application_id}",
    response_model=ApplicationSnapshot,
    dependencies=[Depends(require_roles(*_ALL_ROLES))],
)
async def get_application(
    application_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> ApplicationSnapshot:
    """Get a single application. Returns 404 for out-of-scope resources."""
    snapshot = await app_service.load_application_snapshot(session, user, application_id)
    if snapshot is None:
        raise _not_found()
    return snapshot


@router.get(
    "/{application_id}/status",
    response_model=ApplicationStatusResponse,
    dependencies=[Depends(require_roles(*_ALL_ROLES))],
)
async def get_status(
    application_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> ApplicationStatusResponse:
    """Get the status summary for an application."""
    result = await get_application_status(session, user, application_id)
    if result is None:
        raise _not_found()
    return result


@router.get(
    "/{application_id}/readiness",
    response_model=ReadinessReport,
    dependencies=[Depends(require_roles(*_ALL_ROLES))],
)
async def get_readiness(
    application_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> ReadinessReport:
    """Submission checklist: blockers and advisory warnings."""
    snapshot = await app_service.load_application_snapshot(session, user, application_id)
    if snapshot is None:
        raise _not_found()
    return check_submission_readiness(snapshot)


# ---------------------------------------------------------------------------
# Applicant-side edits
# ---------------------------------------------------------------------------


@router.patch(
    "/{application_id}/sections/{section_key}",
    response_model=ApplicationSnapshot,
    dependencies=[Depends(require_roles(*_EDITOR_ROLES))],
)
async def update_section(
    application_id: int,
    section_key: SectionKey,
    body: SectionUpdateRequest,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> ApplicationSnapshot:
    snapshot = await app_service.update_section(
        session, user, application_id, section_key, body.is_complete,
    )
    if snapshot is None:
        raise _not_found()
    return snapshot


@router.post(
    "/{application_id}/disclosures/{disclosure_type}/acknowledge",
    response_model=ApplicationSnapshot,
    dependencies=[Depends(require_roles(*_EDITOR_ROLES))],
)
async def acknowledge_disclosure(
    application_id: int,
    disclosure_type: DisclosureType,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> ApplicationSnapshot:
    snapshot = await app_service.acknowledge_disclosure(session, user, application_id, disclosure_type)
    if snapshot is None:
        raise _not_found()
    return snapshot


@router.post(
    "/{application_id}/documents",
    response_model=ApplicationSnapshot,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_roles(*_EDITOR_ROLES))],
)
async def add_document(
    application_id: int,
    body: DocumentCreate,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> ApplicationSnapshot:
    """Register document metadata against an application."""
    snapshot = await app_service.add_document(
        session, user, application_id, body.category, body.filename,
    )
    if snapshot is None:
        raise _not_found()
    return snapshot


@router.post(
    "/{application_id}/financial-entries",
    response_model=ApplicationSnapshot,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_roles(*_EDITOR_ROLES))],
)
async def add_financial_entry(
    application_id: int,
    body: FinancialEntryCreate,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> ApplicationSnapshot:
    snapshot = await app_service.add_financial_entry(
        session,
        user,
        application_id,
        body.entry_type,
        body.amount,
        category=body.category,
        institution=body.institution,
        description=body.description,
    )
    if snapshot is None:
        raise _not_found()
    return snapshot


@router.post(
    "/{application_id}/employment",
    response_model=ApplicationSnapshot,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_roles(*_EDITOR_ROLES))],
)
async def add_employment_record(
    application_id: int,
    body: EmploymentRecordCreate,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> ApplicationSnapshot:
    snapshot = await app_service.add_employment_record(
        session,
        user,
        application_id,
        body.employer,
        body.employment_status,
        body.start_date,
        annual_income=body.annual_income,
        pay_cadence=body.pay_cadence,
        title=body.title,
        end_date=body.end_date,
        is_current=body.is_current,
        is_self_employed=body.is_self_employed,
    )
    if snapshot is None:
        raise _not_found()
    return snapshot


@router.post(
    "/{application_id}/participants",
    response_model=ApplicationSnapshot,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_roles(*_EDITOR_ROLES))],
)
async def add_participant(
    application_id: int,
    body: ParticipantCreate,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> ApplicationSnapshot:
    snapshot = await app_service.add_participant(
        session, user, application_id, body.role, body.name, body.email, phone=body.phone,
    )
    if snapshot is None:
        raise _not_found()
    return snapshot


# ---------------------------------------------------------------------------
# Workflow transitions
# ---------------------------------------------------------------------------


@router.post(
    "/{application_id}/transitions",
    response_model=ApplicationSnapshot,
    dependencies=[Depends(require_roles(*_ALL_ROLES))],
)
async def request_transition(
    application_id: int,
    body: TransitionRequest,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> ApplicationSnapshot:
    """Generic transition endpoint. Role checks happen in the workflow guard."""
    payload = None
    if body.kind == TransitionKind.RAISE_RFI:
        payload = body.rfi
    elif body.kind == TransitionKind.DECIDE:
        payload = body.decision

    snapshot = await transition_service.request_transition(
        session,
        user,
        application_id,
        body.kind,
        payload=payload,
        expected_version=body.expected_version,
    )
    if snapshot is None:
        raise _not_found()
    return snapshot


@router.post(
    "/{application_id}/submit",
    response_model=ApplicationSnapshot,
    dependencies=[Depends(require_roles(*_ALL_ROLES))],
)
async def submit_application(
    application_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
    body: VersionedRequest | None = None,
) -> ApplicationSnapshot:
    """Submit for review. Completion, role, disclosure and ID checks run in the guard."""
    snapshot = await transition_service.submit_application(
        session, user, application_id, expected_version=body.expected_version if body else None,
    )
    if snapshot is None:
        raise _not_found()
    return snapshot


@router.post(
    "/{application_id}/begin-review",
    response_model=ApplicationSnapshot,
    dependencies=[Depends(require_roles(*_REVIEWER_ROLES))],
)
async def begin_review(
    application_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
    body: VersionedRequest | None = None,
) -> ApplicationSnapshot:
    snapshot = await transition_service.begin_review(
        session, user, application_id, expected_version=body.expected_version if body else None,
    )
    if snapshot is None:
        raise _not_found()
    return snapshot


# ---------------------------------------------------------------------------
# RFIs and activity
# ---------------------------------------------------------------------------


@router.get(
    "/{application_id}/rfis",
    response_model=RFIListResponse,
    dependencies=[Depends(require_roles(*_ALL_ROLES))],
)
async def get_rfis(
    application_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
    open_only: bool = Query(default=False),
) -> RFIListResponse:
    """List RFIs for an application."""
    result = await list_rfis(session, user, application_id, open_only=open_only)
    if result is None:
        raise _not_found()
    return RFIListResponse(
        data=[RFIItem(**r) for r in result],
        pagination=Pagination(
            total=len(result),
            offset=0,
            limit=len(result),
            has_more=False,
        ),
    )


@router.post(
    "/{application_id}/rfis",
    response_model=RFIResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_roles(*_REVIEWER_ROLES))],
)
async def raise_rfi(
    application_id: int,
    body: RFICreateRequest,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> RFIResponse:
    """Raise an RFI with its initial message. Moves the application to RFI."""
    result = await create_rfi(
        session,
        user,
        application_id,
        body.section_key,
        body.assignee_role,
        body.message,
        expected_version=body.expected_version,
    )
    if result is None:
        raise _not_found()
    return RFIResponse(data=RFIItem(**result))


@router.get(
    "/{application_id}/activity",
    response_model=ActivityListResponse,
    dependencies=[Depends(require_roles(*_ALL_ROLES))],
)
async def get_activity(
    application_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
    limit: int = Query(default=200, ge=1, le=1000),
) -> ActivityListResponse:
    """Activity feed for an application, oldest first."""
    snapshot = await app_service.load_application_snapshot(session, user, application_id)
    if snapshot is None:
        raise _not_found()
    entries = await get_application_activity(session, application_id, limit=limit)
    return ActivityListResponse(
        application_id=application_id,
        count=len(entries),
        events=[
            ActivityItem(
                id=e.id,
                timestamp=e.timestamp,
                application_id=e.application_id,
                user_id=e.user_id,
                user_name=e.user_name,
                user_role=e.user_role,
                action=getattr(e.action, "value", e.action),
                entity_type=e.entity_type,
                entity_id=e.entity_id,
                description=e.description,
                event_data=e.event_data,
            )
            for e in entries
        ],
    )
