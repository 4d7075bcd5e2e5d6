# This project was developed with assistance from AI tools.
"""
SQLAdmin configuration for database administration UI

Access the admin panel at: http://localhost:8000/admin

When AUTH_DISABLED=false, requires admin credentials via login form.
When AUTH_DISABLED=true, admin panel is open (dev mode).
"""

from db import (
    Applicant,
    Application,
    ApplicationComment,
    AuditEvent,
    Dispatch,
    District,
    Document,
    Notification,
    Province,
)
from sqladmin import Admin, ModelView
from sqladmin.authentication import AuthenticationBackend
from sqlalchemy import create_engine
from starlette.requests import Request
from starlette.responses import Response

from .core.config import settings

# SQLAdmin requires a sync engine; derive from the async DATABASE_URL
_sync_url = settings.DATABASE_URL.replace("+asyncpg", "+psycopg")
engine = create_engine(_sync_url, echo=False)


class AdminAuth(AuthenticationBackend):
    """Session-based auth gate for SQLAdmin.

    When AUTH_DISABLED=true, authenticate() always returns True (dev mode).
    Otherwise, requires login with SQLADMIN_USER / SQLADMIN_PASSWORD.
    """

    async def login(self, request: Request) -> bool:
        form = await request.form()
        if (
            form.get("username") == settings.SQLADMIN_USER
            and form.get("password") == settings.SQLADMIN_PASSWORD
        ):
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


class ProvinceAdmin(ModelView, model=Province):
    column_list = [Province.id, Province.name]
    column_searchable_list = [Province.name]
    name = "Province"
    name_plural = "Provinces"
    icon = "fa-solid fa-map"


class DistrictAdmin(ModelView, model=District):
    column_list = [District.id, District.name, District.province_id]
    column_searchable_list = [District.name]
    column_sortable_list = [District.id, District.name]
    name = "District"
    name_plural = "Districts"
    icon = "fa-solid fa-map-marker-alt"


class ApplicantAdmin(ModelView, model=Applicant):
    column_list = [
        Applicant.id,
        Applicant.first_name,
        Applicant.last_name,
        Applicant.email,
        Applicant.phone,
        Applicant.created_at,
    ]
    column_searchable_list = [Applicant.first_name, Applicant.last_name, Applicant.email]
    column_sortable_list = [Applicant.id, Applicant.last_name, Applicant.created_at]
    column_default_sort = [(Applicant.created_at, True)]
    name = "Applicant"
    name_plural = "Applicants"
    icon = "fa-solid fa-user"


class ApplicationAdmin(ModelView, model=Application):
    column_list = [
        Application.id,
        Application.organization_name,
        Application.status,
        Application.risk_score,
        Application.certificate_number,
        Application.submitted_at,
        Application.last_modified,
    ]
    column_searchable_list = [
        Application.organization_name,
        Application.acronym,
        Application.certificate_number,
    ]
    column_sortable_list = [
        Application.id,
        Application.status,
        Application.risk_score,
        Application.last_modified,
    ]
    column_default_sort = [(Application.last_modified, True)]
    # Workflow-owned columns
    form_excluded_columns = [Application.status, Application.certificate_number]
    can_delete = False
    name = "Application"
    name_plural = "Applications"
    icon = "fa-solid fa-church"


class DocumentAdmin(ModelView, model=Document):
    column_list = [
        Document.id,
        Document.application_id,
        Document.document_type,
        Document.is_valid,
        Document.uploaded_by,
        Document.created_at,
    ]
    column_searchable_list = [Document.uploaded_by, Document.original_filename]
    column_sortable_list = [Document.id, Document.document_type, Document.created_at]
    column_default_sort = [(Document.created_at, True)]
    name = "Document"
    name_plural = "Documents"
    icon = "fa-solid fa-file-upload"


class CommentAdmin(ModelView, model=ApplicationComment):
    column_list = [
        ApplicationComment.id,
        ApplicationComment.application_id,
        ApplicationComment.author_name,
        ApplicationComment.author_role,
        ApplicationComment.from_status,
        ApplicationComment.to_status,
        ApplicationComment.created_at,
    ]
    column_default_sort = [(ApplicationComment.created_at, True)]
    can_create = False
    can_edit = False
    can_delete = False
    name = "Comment"
    name_plural = "Comments"
    icon = "fa-solid fa-comments"


class NotificationAdmin(ModelView, model=Notification):
    column_list = [
        Notification.id,
        Notification.application_id,
        Notification.recipient_id,
        Notification.recipient_role,
        Notification.notification_type,
        Notification.created_at,
    ]
    column_default_sort = [(Notification.created_at, True)]
    can_create = False
    name = "Notification"
    name_plural = "Notifications"
    icon = "fa-solid fa-bell"


class DispatchAdmin(ModelView, model=Dispatch):
    column_list = [
        Dispatch.id,
        Dispatch.kind,
        Dispatch.application_id,
        Dispatch.status,
        Dispatch.attempts,
        Dispatch.last_error,
        Dispatch.updated_at,
    ]
    column_sortable_list = [Dispatch.id, Dispatch.status, Dispatch.updated_at]
    column_default_sort = [(Dispatch.created_at, False)]
    can_create = False
    name = "Dispatch"
    name_plural = "Dispatches"
    icon = "fa-solid fa-paper-plane"


class AuditEventAdmin(ModelView, model=AuditEvent):
    column_list = [
        AuditEvent.id,
        AuditEvent.timestamp,
        AuditEvent.event_type,
        AuditEvent.user_id,
        AuditEvent.user_role,
        AuditEvent.application_id,
    ]
    column_sortable_list = [AuditEvent.id, AuditEvent.timestamp, AuditEvent.event_type]
    column_default_sort = [(AuditEvent.timestamp, True)]
    can_create = False
    can_edit = False
    can_delete = False
    name = "Audit Event"
    name_plural = "Audit Events"
    icon = "fa-solid fa-shield-alt"


def setup_admin(app):
    """Set up SQLAdmin and mount it to the FastAPI app."""
    auth_backend = AdminAuth(secret_key=settings.SQLADMIN_SECRET_KEY)
    admin = Admin(app, engine, title="FBO Portal Admin", authentication_backend=auth_backend)

    for view in (
        ProvinceAdmin,
        DistrictAdmin,
        ApplicantAdmin,
        ApplicationAdmin,
        DocumentAdmin,
        CommentAdmin,
        NotificationAdmin,
        DispatchAdmin,
        AuditEventAdmin,
    ):
        admin.add_view(view)

    return admin
