# This project was developed with assistance from AI tools.
"""Application routes: submission, review queue, transitions, comments, progress and risk.

Workflow errors raised by the services propagate to the RFC 7807 handler in
``main.py``; routes only translate "not found or out of scope" into 404.
"""

import logging
from typing import Literal

from db import Application, get_db
from db.enums import ApplicationStatus, UserRole
from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..middleware.auth import CurrentUser, require_roles
from ..schemas import Pagination
from ..schemas.application import (
    ApplicantSummary,
    ApplicationCreate,
    ApplicationListResponse,
    ApplicationResponse,
    ApplicationStatsResponse,
    ApplicationUpdate,
    DistrictSummary,
    StatusUpdateRequest,
    StatusUpdateResponse,
)
from ..schemas.comment import CommentCreate, CommentListResponse, CommentResponse
from ..schemas.risk import RiskAssessment, RiskLevel
from ..schemas.status import ApplicationProgressResponse, PendingAction
from ..schemas.auth import UserContext
from ..services import application as app_service
from ..services.certificate import certificate_payload, render_certificate
from ..services.comment import add_comment, list_audit_entries
from ..services.completeness import document_label, evaluate_documents
from ..services.dispatch import dispatch_submission_effects, dispatch_transition_effects
from ..services.errors import DownstreamDispatchFailed
from ..services.risk import get_risk_score, risk_level
from ..services.status import build_progress, is_rejected, status_info, step_index_of
from ..services.transitions import allowed_transitions, can_edit

logger = logging.getLogger(__name__)

router = APIRouter()

_ALL_AUTHENTICATED = tuple(UserRole)

_CERTIFICATE_STATUSES = {ApplicationStatus.APPROVED, ApplicationStatus.CERTIFICATE_ISSUED}


def _build_app_response(app: Application, user: UserContext) -> ApplicationResponse:
    """Build ApplicationResponse from ORM object plus the caller's workflow view."""
    applicant = app.applicant
    district = app.district
    return ApplicationResponse(
        id=app.id,
        organization_name=app.organization_name,
        acronym=app.acronym,
        organization_email=app.organization_email,
        organization_phone=app.organization_phone,
        address=app.address,
        cluster_of_intervention=app.cluster_of_intervention,
        source_of_fund=app.source_of_fund,
        description=app.description,
        status=app.status,
        step_index=step_index_of(app.status),
        risk_score=app.risk_score or 0.0,
        risk_level=risk_level(app.risk_score or 0.0),
        certificate_number=app.certificate_number,
        certificate_issued_at=app.certificate_issued_at,
        submitted_at=app.submitted_at,
        last_modified=app.last_modified,
        can_edit=can_edit(user.role, app.status),
        allowed_transitions=sorted(allowed_transitions(user.role, app.status), key=step_index_of),
        applicant=ApplicantSummary.model_validate(applicant) if applicant else None,
        district=DistrictSummary(
            id=district.id,
            name=district.name,
            province_name=district.province.name if district.province else None,
        ) if district else None,
    )


def _not_found() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail="Application not found",
    )


# ---------------------------------------------------------------------------
# Collection
# ---------------------------------------------------------------------------


@router.get(
    "/",
    response_model=ApplicationListResponse,
    dependencies=[Depends(require_roles(*_ALL_AUTHENTICATED))],
)
async def list_applications(
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=20, ge=1, le=100),
    sort_by: Literal["submitted_at", "last_modified", "risk_score"] | None = None,
    status_filter: ApplicationStatus | None = Query(default=None, alias="status"),
    risk: RiskLevel | None = Query(default=None, alias="risk_level"),
    search: str | None = Query(default=None, max_length=200),
    actionable: bool = Query(default=False, description="Only applications awaiting my action"),
) -> ApplicationListResponse:
    """List applications visible to the current user's role and data scope."""
    applications, total = await app_service.list_applications(
        session,
        user,
        offset=offset,
        limit=limit,
        filter_status=status_filter,
        filter_risk=risk,
        search=search,
        actionable=actionable,
        sort_by=sort_by,
    )
    return ApplicationListResponse(
        data=[_build_app_response(app, user) for app in applications],
        pagination=Pagination(
            total=total,
            offset=offset,
            limit=limit,
            has_more=(offset + limit < total),
        ),
    )


@router.post(
    "/",
    response_model=ApplicationResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_roles(UserRole.APPLICANT))],
)
async def submit_application(
    body: ApplicationCreate,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> ApplicationResponse:
    """Submit a new application. It starts in PENDING with no documents."""
    app = await app_service.create_application(session, user, **body.model_dump())
    await dispatch_submission_effects(session, app)
    return _build_app_response(app, user)


@router.get(
    "/stats",
    response_model=ApplicationStatsResponse,
    dependencies=[Depends(require_roles(*_ALL_AUTHENTICATED))],
)
async def application_stats(
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> ApplicationStatsResponse:
    """Per-status counters over the caller's visible applications."""
    return ApplicationStatsResponse(**await app_service.get_stats(session, user))


# ---------------------------------------------------------------------------
# Single application
# ---------------------------------------------------------------------------


@router.get(
    "/{application_id}",
    response_model=ApplicationResponse,
    dependencies=[Depends(require_roles(*_ALL_AUTHENTICATED))],
)
async def get_application(
    application_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> ApplicationResponse:
    """Get a single application. Returns 404 for out-of-scope resources."""
    app = await app_service.get_application(session, user, application_id)
    if app is None:
        raise _not_found()
    return _build_app_response(app, user)


@router.patch(
    "/{application_id}",
    response_model=ApplicationResponse,
    dependencies=[Depends(require_roles(UserRole.APPLICANT))],
)
async def update_application(
    application_id: int,
    body: ApplicationUpdate,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> ApplicationResponse:
    """Edit the form while the application is PENDING or PASTOR_DOCUMENT."""
    app = await app_service.update_application(
        session, user, application_id, **body.model_dump(exclude_unset=True),
    )
    if app is None:
        raise _not_found()
    return _build_app_response(app, user)


@router.put(
    "/{application_id}/status",
    response_model=StatusUpdateResponse,
    dependencies=[Depends(require_roles(*UserRole.reviewers()))],
)
async def update_status(
    application_id: int,
    body: StatusUpdateRequest,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> StatusUpdateResponse:
    """Move an application along the approval chain.

    ``expected_status`` must match the stored status. Notification and
    certificate hand-offs that fail are queued and listed in
    ``dispatch_failures``; they never undo the transition.
    """
    app = await app_service.update_status(
        session,
        user,
        application_id,
        expected_status=body.expected_status,
        target_status=body.status,
        comment=body.comment,
    )
    if app is None:
        raise _not_found()

    applicant_user_id = app.applicant.keycloak_user_id if app.applicant else None
    failures = await dispatch_transition_effects(
        session, app, applicant_user_id, body.status, body.comment,
    )

    refreshed = await app_service.get_application(session, user, application_id)
    response = _build_app_response(refreshed or app, user)
    return StatusUpdateResponse(**response.model_dump(), dispatch_failures=failures)


@router.get(
    "/{application_id}/progress",
    response_model=ApplicationProgressResponse,
    dependencies=[Depends(require_roles(*_ALL_AUTHENTICATED))],
)
async def get_progress(
    application_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> ApplicationProgressResponse:
    """Progress steps, document state and pending actions for an application."""
    app = await app_service.get_application(session, user, application_id)
    if app is None:
        raise _not_found()

    documents = evaluate_documents(
        app.id, app.documents, block_on_invalid=settings.BLOCK_ON_INVALID_DOCUMENTS,
    )
    actions: list[PendingAction] = []
    if can_edit(user.role, app.status):
        if user.role == UserRole.APPLICANT:
            for doc_type in documents.missing_required:
                actions.append(
                    PendingAction(
                        action_type="upload_document",
                        description=f"Upload {document_label(doc_type)}",
                    )
                )
            for doc_type in documents.invalid_documents:
                actions.append(
                    PendingAction(
                        action_type="replace_document",
                        description=f"Replace {document_label(doc_type)}",
                    )
                )
        else:
            for target in sorted(allowed_transitions(user.role, app.status), key=step_index_of):
                actions.append(
                    PendingAction(
                        action_type="transition",
                        description=f"Move to {status_info(target).label}",
                    )
                )

    return ApplicationProgressResponse(
        application_id=app.id,
        status=app.status,
        status_info=status_info(app.status),
        step_index=step_index_of(app.status),
        is_rejected=is_rejected(app.status),
        steps=build_progress(app.status),
        documents=documents,
        pending_actions=actions,
    )


@router.get(
    "/{application_id}/risk",
    response_model=RiskAssessment,
    dependencies=[Depends(require_roles(*UserRole.reviewers(), UserRole.ADMIN))],
)
async def get_risk(
    application_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> RiskAssessment:
    """Current risk score with its contributing factors."""
    assessment = await get_risk_score(session, user, application_id)
    if assessment is None:
        raise _not_found()
    return assessment


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------


@router.get(
    "/{application_id}/comments",
    response_model=CommentListResponse,
    dependencies=[Depends(require_roles(*_ALL_AUTHENTICATED))],
)
async def list_comments(
    application_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> CommentListResponse:
    """Comment history in creation order, including every status transition."""
    comments = await list_audit_entries(session, user, application_id)
    if comments is None:
        raise _not_found()
    return CommentListResponse(
        application_id=application_id,
        count=len(comments),
        data=[CommentResponse.model_validate(c) for c in comments],
    )


@router.post(
    "/{application_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_roles(*_ALL_AUTHENTICATED))],
)
async def create_comment(
    application_id: int,
    body: CommentCreate,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> CommentResponse:
    """Append a comment. Comments are never edited or deleted."""
    comment = await add_comment(session, user, application_id, body.content)
    if comment is None:
        raise _not_found()
    return CommentResponse.model_validate(comment)


# ---------------------------------------------------------------------------
# Certificate
# ---------------------------------------------------------------------------


@router.get(
    "/{application_id}/certificate",
    dependencies=[Depends(require_roles(*_ALL_AUTHENTICATED))],
)
async def generate_certificate(
    application_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> Response:
    """Download the certificate PDF from the rendering service."""
    app = await app_service.get_application(session, user, application_id)
    if app is None:
        raise _not_found()
    if app.status not in _CERTIFICATE_STATUSES:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Certificate is only available for approved applications",
        )
    if not app.certificate_number:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Certificate issuance is still pending",
        )

    payload = certificate_payload(app, app.certificate_number, app.certificate_issued_at)
    try:
        pdf = await render_certificate(payload)
    except DownstreamDispatchFailed as exc:
        logger.warning("Certificate render failed for application %s: %s", application_id, exc.reason)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Certificate service unavailable",
        ) from exc

    filename = f"{app.certificate_number}.pdf"
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
