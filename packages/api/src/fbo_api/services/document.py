# This project was developed with assistance from AI tools.
"""Document upload, replacement and reviewer validation.

Applicants upload one document per type while their application is PENDING
or PASTOR_DOCUMENT; uploading a type again replaces the stored document and
resets its validation. Reviewers holding authority over the application's
current status record validity verdicts. Both recompute the risk score.
"""

import logging
from datetime import UTC, datetime

from db import Application, Document
from db.enums import ApplicationStatus, DocumentType, UserRole
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..schemas.auth import UserContext
from .audit import write_audit_event
from .errors import ForbiddenTransition
from .risk import refresh_risk_score
from .scope import apply_data_scope
from .storage import get_storage_service
from .transitions import allowed_transitions

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = {
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "image/jpeg",
    "image/png",
}


class DocumentUploadError(Exception):
    """Raised when a document upload fails validation."""


class DocumentTooLarge(DocumentUploadError):
    """The file is over ``UPLOAD_MAX_SIZE_MB``."""


async def list_documents(
    session: AsyncSession,
    user: UserContext,
    application_id: int,
) -> list[Document]:
    """Return documents for an application visible to the current user."""
    stmt = (
        select(Document)
        .where(Document.application_id == application_id)
        .order_by(Document.document_type.asc())
    )
    stmt = apply_data_scope(stmt, user.data_scope, user, join_to_application=Document.application)
    result = await session.execute(stmt)
    return list(result.unique().scalars().all())


async def get_document(
    session: AsyncSession,
    user: UserContext,
    document_id: int,
) -> Document | None:
    """Return a single document if visible to the current user."""
    stmt = select(Document).where(Document.id == document_id)
    stmt = apply_data_scope(stmt, user.data_scope, user, join_to_application=Document.application)
    result = await session.execute(stmt)
    return result.unique().scalar_one_or_none()


def check_upload(content_type: str, size: int) -> None:
    """Reject unsupported or oversized files before anything is stored."""
    if content_type not in ALLOWED_CONTENT_TYPES:
        raise DocumentUploadError(
            f"Unsupported content type: {content_type}. "
            f"Allowed: {', '.join(sorted(ALLOWED_CONTENT_TYPES))}"
        )
    max_bytes = settings.UPLOAD_MAX_SIZE_MB * 1024 * 1024
    if size > max_bytes:
        raise DocumentTooLarge(
            f"File size {size} exceeds maximum of {settings.UPLOAD_MAX_SIZE_MB}MB"
        )
    if size == 0:
        raise DocumentUploadError("File is empty")


async def upload_document(
    session: AsyncSession,
    user: UserContext,
    application_id: int,
    document_type: DocumentType,
    filename: str,
    content_type: str,
    file_data: bytes,
) -> Document | None:
    """Store a document for an application, replacing any earlier one of the same type.

    Returns None if the application is not found or not accessible.

    Raises:
        DocumentUploadError: unsupported type or size.
        ForbiddenTransition: the application is not open for applicant edits.
    """
    check_upload(content_type, len(file_data))

    app_stmt = select(Application).where(Application.id == application_id)
    app_stmt = apply_data_scope(app_stmt, user.data_scope, user)
    result = await session.execute(app_stmt)
    application = result.unique().scalar_one_or_none()
    if application is None:
        return None

    if user.role != UserRole.APPLICANT or application.status not in ApplicationStatus.applicant_editable():
        raise ForbiddenTransition("Documents can only be uploaded while the application is editable")

    existing_result = await session.execute(
        select(Document).where(
            Document.application_id == application_id,
            Document.document_type == document_type,
        )
    )
    doc = existing_result.scalar_one_or_none()
    superseded_key = doc.file_path if doc is not None else None

    storage = get_storage_service()
    object_key = storage.build_object_key(application_id, document_type.value, filename)
    await storage.upload_file(file_data, object_key, content_type)

    if doc is None:
        doc = Document(application_id=application_id, document_type=document_type)
        session.add(doc)
    doc.file_path = object_key
    doc.original_filename = filename
    doc.content_type = content_type
    doc.file_size = len(file_data)
    doc.uploaded_by = user.user_id
    doc.is_valid = None
    doc.validation_comments = None
    doc.validated_by = None
    doc.validated_at = None
    await session.flush()

    application.last_modified = datetime.now(UTC)
    await refresh_risk_score(session, application)
    await write_audit_event(
        session,
        event_type="document_replaced" if superseded_key else "document_uploaded",
        user_id=user.user_id,
        user_role=user.role.value,
        application_id=application_id,
        event_data={"document_id": doc.id, "document_type": document_type.value},
    )
    await session.commit()
    await session.refresh(doc)

    if superseded_key:
        await storage.delete_file(superseded_key)
    return doc


async def validate_document(
    session: AsyncSession,
    user: UserContext,
    document_id: int,
    *,
    is_valid: bool,
    comments: str | None = None,
) -> Document | None:
    """Record a reviewer's validity verdict on a document.

    Only a reviewer with authority over the application's current status may
    validate. Returns None if the document is not found or not accessible.
    """
    doc = await get_document(session, user, document_id)
    if doc is None:
        return None

    app = await session.get(Application, doc.application_id)
    if not allowed_transitions(user.role, app.status):
        raise ForbiddenTransition("No authority to validate documents in the current status")

    now = datetime.now(UTC)
    doc.is_valid = is_valid
    doc.validation_comments = comments
    doc.validated_by = user.user_id
    doc.validated_at = now
    app.last_modified = now
    await session.flush()

    await refresh_risk_score(session, app)
    await write_audit_event(
        session,
        event_type="document_validated",
        user_id=user.user_id,
        user_role=user.role.value,
        application_id=app.id,
        event_data={
            "document_id": doc.id,
            "document_type": doc.document_type.value,
            "is_valid": is_valid,
        },
    )
    await session.commit()
    await session.refresh(doc)
    return doc


async def download_document(
    session: AsyncSession,
    user: UserContext,
    document_id: int,
) -> tuple[Document, bytes] | None:
    """Fetch document bytes from storage if the caller can see the document."""
    doc = await get_document(session, user, document_id)
    if doc is None or not doc.file_path:
        return None
    data = await get_storage_service().download_file(doc.file_path)
    return doc, data
