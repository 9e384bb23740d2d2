# This project was developed with assistance from AI tools.
"""
SQLAdmin configuration for database administration UI

Access the admin panel at: http://localhost:8000/admin

Every view is read-only: application status only changes through the
workflow executor, and the activity log is append-only.

When AUTH_DISABLED=false, requires admin credentials via login form.
When AUTH_DISABLED=true, admin panel is open (dev mode).
"""

from db import (
    RFI,
    ActivityLogEntry,
    Application,
    DecisionRecord,
    Disclosure,
    Document,
    EmploymentRecord,
    Participant,
)
from sqladmin import Admin, ModelView
from sqladmin.authentication import AuthenticationBackend
from sqlalchemy import create_engine
from starlette.requests import Request
from starlette.responses import Response

from .core.config import settings

# SQLAdmin requires a sync engine; derive from the async DATABASE_URL
_sync_url = settings.DATABASE_URL.replace("+asyncpg", "")
engine = create_engine(_sync_url, echo=False)


class AdminAuth(AuthenticationBackend):
    """Session-based auth gate for SQLAdmin.

    When AUTH_DISABLED=true, authenticate() always returns True (dev mode).
    Otherwise, requires login with credentials from SQLADMIN_USER / SQLADMIN_PASSWORD env vars.
    """

    async def login(self, request: Request) -> bool:
        form = await request.form()
        username = form.get("username")
        password = form.get("password")
        if username == settings.SQLADMIN_USER and password == settings.SQLADMIN_PASSWORD:
            request.session.update({"admin_authenticated": True})
            return True
        return False

    async def logout(self, request: Request) -> bool:
        request.session.clear()
        return True

    async def authenticate(self, request: Request) -> Response | bool:
        if settings.AUTH_DISABLED:
            return True
        return request.session.get("admin_authenticated", False)


class _ReadOnlyView(ModelView):
    can_create = False
    can_edit = False
    can_delete = False


class ApplicationAdmin(_ReadOnlyView, model=Application):
    column_list = [
        Application.id,
        Application.transaction_type,
        Application.building_name,
        Application.unit,
        Application.status,
        Application.completion_percentage,
        Application.version,
        Application.submitted_at,
        Application.created_at,
    ]
    column_searchable_list = [Application.building_name, Application.created_by]
    column_sortable_list = [Application.id, Application.status, Application.created_at]
    column_default_sort = [(Application.created_at, True)]
    name = "Application"
    name_plural = "Applications"
    icon = "fa-solid fa-file-alt"


class RFIAdmin(_ReadOnlyView, model=RFI):
    column_list = [
        RFI.id,
        RFI.application_id,
        RFI.section_key,
        RFI.status,
        RFI.assignee_role,
        RFI.created_by,
        RFI.created_at,
        RFI.resolved_at,
    ]
    column_sortable_list = [RFI.id, RFI.status, RFI.created_at]
    column_default_sort = [(RFI.created_at, True)]
    name = "RFI"
    name_plural = "RFIs"
    icon = "fa-solid fa-question-circle"


class DecisionAdmin(_ReadOnlyView, model=DecisionRecord):
    column_list = [
        DecisionRecord.id,
        DecisionRecord.application_id,
        DecisionRecord.decision,
        DecisionRecord.adverse_action_required,
        DecisionRecord.decided_by,
        DecisionRecord.decided_at,
    ]
    column_default_sort = [(DecisionRecord.decided_at, True)]
    name = "Decision"
    name_plural = "Decisions"
    icon = "fa-solid fa-gavel"


class DocumentAdmin(_ReadOnlyView, model=Document):
    column_list = [
        Document.id,
        Document.application_id,
        Document.category,
        Document.status,
        Document.filename,
        Document.uploaded_by,
        Document.created_at,
    ]
    column_sortable_list = [Document.id, Document.category, Document.status]
    column_default_sort = [(Document.created_at, True)]
    name = "Document"
    name_plural = "Documents"
    icon = "fa-solid fa-file-upload"


class DisclosureAdmin(_ReadOnlyView, model=Disclosure):
    column_list = [
        Disclosure.id,
        Disclosure.application_id,
        Disclosure.disclosure_type,
        Disclosure.acknowledged,
        Disclosure.acknowledged_at,
    ]
    name = "Disclosure"
    name_plural = "Disclosures"
    icon = "fa-solid fa-clipboard-check"


class EmploymentAdmin(_ReadOnlyView, model=EmploymentRecord):
    column_list = [
        EmploymentRecord.id,
        EmploymentRecord.application_id,
        EmploymentRecord.employer,
        EmploymentRecord.employment_status,
        EmploymentRecord.annual_income,
        EmploymentRecord.is_current,
    ]
    name = "Employment"
    name_plural = "Employment"
    icon = "fa-solid fa-briefcase"


class ParticipantAdmin(_ReadOnlyView, model=Participant):
    column_list = [
        Participant.id,
        Participant.application_id,
        Participant.role,
        Participant.name,
        Participant.email,
    ]
    name = "Participant"
    name_plural = "Participants"
    icon = "fa-solid fa-handshake"


class ActivityLogAdmin(_ReadOnlyView, model=ActivityLogEntry):
    column_list = [
        ActivityLogEntry.id,
        ActivityLogEntry.timestamp,
        ActivityLogEntry.action,
        ActivityLogEntry.application_id,
        ActivityLogEntry.user_id,
        ActivityLogEntry.user_role,
        ActivityLogEntry.description,
    ]
    column_sortable_list = [ActivityLogEntry.id, ActivityLogEntry.timestamp, ActivityLogEntry.action]
    column_default_sort = [(ActivityLogEntry.timestamp, True)]
    name = "Activity"
    name_plural = "Activity Log"
    icon = "fa-solid fa-shield-alt"


def setup_admin(app):
    """Set up SQLAdmin and mount it to the FastAPI app."""
    auth_backend = AdminAuth(
        secret_key=settings.SQLADMIN_SECRET_KEY,
    )
    admin = Admin(app, engine, title="Board Review Admin", authentication_backend=auth_backend)

    admin.add_view(ApplicationAdmin)
    admin.add_view(RFIAdmin)
    admin.add_view(DecisionAdmin)
    admin.add_view(DocumentAdmin)
    admin.add_view(DisclosureAdmin)
    admin.add_view(EmploymentAdmin)
    admin.add_view(ParticipantAdmin)
    admin.add_view(ActivityLogAdmin)

    return admin
