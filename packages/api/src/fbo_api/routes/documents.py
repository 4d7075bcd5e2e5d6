# This project was developed with assistance from AI tools.
"""Document routes: upload, requirements checklist, reviewer validation and download."""

import logging

from db import get_db
from db.enums import DocumentType, UserRole
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..middleware.auth import CurrentUser, require_roles
from ..schemas.completeness import CompletenessResponse
from ..schemas.document import DocumentListResponse, DocumentResponse, DocumentValidationRequest
from ..services import document as doc_service
from ..services.completeness import check_completeness
from ..services.document import DocumentTooLarge, DocumentUploadError

logger = logging.getLogger(__name__)

router = APIRouter()

_ALL_AUTHENTICATED = tuple(UserRole)


@router.post(
    "/applications/{application_id}/documents",
    response_model=DocumentResponse,
    status_code=201,
    dependencies=[Depends(require_roles(UserRole.APPLICANT))],
)
async def upload_document(
    application_id: int,
    user: CurrentUser,
    file: UploadFile = File(...),
    document_type: DocumentType = Form(...),
    session: AsyncSession = Depends(get_db),
) -> DocumentResponse:
    """Upload a document. A second upload of the same type replaces the first."""
    content_type = file.content_type or ""
    if content_type not in doc_service.ALLOWED_CONTENT_TYPES:
        raise HTTPException(
            status_code=422,
            detail=f"Unsupported file type: {content_type}. "
            f"Allowed: {', '.join(sorted(doc_service.ALLOWED_CONTENT_TYPES))}",
        )

    file_data = await file.read()

    try:
        doc = await doc_service.upload_document(
            session,
            user,
            application_id,
            document_type=document_type,
            filename=file.filename or "document",
            content_type=content_type,
            file_data=file_data,
        )
    except DocumentTooLarge as exc:
        raise HTTPException(status_code=413, detail=str(exc)) from exc
    except DocumentUploadError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    if doc is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Application not found",
        )
    return DocumentResponse.model_validate(doc)


@router.get(
    "/applications/{application_id}/documents",
    response_model=DocumentListResponse,
    dependencies=[Depends(require_roles(*_ALL_AUTHENTICATED))],
)
async def list_documents(
    application_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> DocumentListResponse:
    """List document metadata for an application."""
    documents = await doc_service.list_documents(session, user, application_id)
    items = [DocumentResponse.model_validate(doc) for doc in documents]
    return DocumentListResponse(data=items, count=len(items))


@router.get(
    "/applications/{application_id}/documents/requirements",
    response_model=CompletenessResponse,
    dependencies=[Depends(require_roles(*_ALL_AUTHENTICATED))],
)
async def document_requirements(
    application_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> CompletenessResponse:
    """Checklist of required and optional documents with upload and validation state."""
    result = await check_completeness(
        session, user, application_id, block_on_invalid=settings.BLOCK_ON_INVALID_DOCUMENTS,
    )
    if result is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Application not found",
        )
    return result


@router.post(
    "/documents/{document_id}/validate",
    response_model=DocumentResponse,
    dependencies=[Depends(require_roles(*UserRole.reviewers()))],
)
async def validate_document(
    document_id: int,
    body: DocumentValidationRequest,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> DocumentResponse:
    """Record a reviewer's validity verdict on a document."""
    doc = await doc_service.validate_document(
        session, user, document_id, is_valid=body.is_valid, comments=body.comments,
    )
    if doc is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Document not found",
        )
    return DocumentResponse.model_validate(doc)


@router.get(
    "/documents/{document_id}/content",
    dependencies=[Depends(require_roles(*_ALL_AUTHENTICATED))],
)
async def download_document(
    document_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> Response:
    """Stream the stored file back to the caller."""
    found = await doc_service.download_document(session, user, document_id)
    if found is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Document not found",
        )
    doc, data = found
    filename = doc.original_filename or f"{doc.document_type.value.lower()}"
    return Response(
        content=data,
        media_type=doc.content_type or "application/octet-stream",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
