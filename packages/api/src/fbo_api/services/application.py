# This project was developed with assistance from AI tools.
"""Application service: submission, scoped queries, edits and the transition executor.

Every query is filtered through the caller's DataScope so that applicants see
only their own applications, reviewers see the part of the chain from their
own stage onward, and admins see all.
"""

import logging
from datetime import UTC, datetime

from db import Applicant, Application, ApplicationComment, District
from db.enums import ApplicationStatus, UserRole
from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..core.config import settings
from ..schemas.auth import UserContext
from ..schemas.risk import RiskLevel
from .audit import write_audit_event
from .completeness import evaluate_documents
from .errors import (
    DocumentsIncomplete,
    ForbiddenTransition,
    StaleState,
    ValidationFailed,
)
from .risk import assess, count_prior_rejections, refresh_overdue_scores, risk_level_clause
from .scope import apply_data_scope
from .transitions import (
    COMMENT_REQUIRED,
    actionable_statuses,
    allowed_transitions,
    autogenerated_comment,
    is_forward,
)

logger = logging.getLogger(__name__)

_SORT_COLUMNS = {
    "submitted_at": Application.submitted_at.desc(),
    "last_modified": Application.last_modified.desc(),
    "risk_score": Application.risk_score.desc(),
}


def _with_relations(stmt):
    return stmt.options(
        selectinload(Application.applicant),
        selectinload(Application.district).selectinload(District.province),
        selectinload(Application.documents),
    )


async def list_applications(
    session: AsyncSession,
    user: UserContext,
    *,
    offset: int = 0,
    limit: int = 20,
    filter_status: ApplicationStatus | None = None,
    filter_risk: RiskLevel | None = None,
    search: str | None = None,
    actionable: bool = False,
    sort_by: str | None = None,
) -> tuple[list[Application], int]:
    """Return applications visible to the current user.

    Args:
        filter_status: Only return applications in this status.
        filter_risk: Only return applications whose score falls in this bucket.
        search: Case-insensitive match on organization name or acronym.
        actionable: Only return applications the caller can act on right now.
        sort_by: "submitted_at", "last_modified" (default) or "risk_score".
    """
    await refresh_overdue_scores(session, user)
    filters = _build_filters(user, filter_status, filter_risk, search, actionable)

    count_stmt = select(func.count(Application.id)).select_from(Application)
    count_stmt = apply_data_scope(count_stmt, user.data_scope, user)
    total = (await session.execute(count_stmt.where(*filters))).scalar() or 0

    order = _SORT_COLUMNS.get(sort_by, Application.last_modified.desc())
    stmt = _with_relations(select(Application)).order_by(order, Application.id.desc())
    stmt = apply_data_scope(stmt, user.data_scope, user)
    stmt = stmt.where(*filters).offset(offset).limit(limit)
    result = await session.execute(stmt)
    applications = result.unique().scalars().all()

    return applications, total


def _build_filters(user, filter_status, filter_risk, search, actionable) -> list:
    filters = []
    if filter_status is not None:
        filters.append(Application.status == filter_status)
    if filter_risk is not None:
        filters.append(risk_level_clause(filter_risk))
    if search:
        pattern = f"%{search.strip()}%"
        filters.append(
            or_(
                Application.organization_name.ilike(pattern),
                Application.acronym.ilike(pattern),
            )
        )
    if actionable:
        if user.role == UserRole.APPLICANT:
            statuses = ApplicationStatus.applicant_editable()
        else:
            statuses = actionable_statuses(user.role)
        filters.append(Application.status.in_([s.value for s in statuses]))
    return filters


async def get_application(
    session: AsyncSession,
    user: UserContext,
    application_id: int,
) -> Application | None:
    """Return a single application if visible to the current user.

    Returns None (which the route maps to 404) for out-of-scope applications
    rather than 403, to avoid leaking existence of resources.
    """
    stmt = _with_relations(select(Application)).where(Application.id == application_id)
    stmt = apply_data_scope(stmt, user.data_scope, user)
    result = await session.execute(stmt)
    return result.unique().scalar_one_or_none()


async def _get_or_create_applicant(
    session: AsyncSession,
    user: UserContext,
    phone: str | None,
) -> Applicant:
    result = await session.execute(
        select(Applicant).where(Applicant.keycloak_user_id == user.user_id)
    )
    applicant = result.scalar_one_or_none()
    if applicant is None:
        parts = user.name.split() if user.name else []
        applicant = Applicant(
            keycloak_user_id=user.user_id,
            first_name=parts[0] if parts else "Unknown",
            last_name=" ".join(parts[1:]),
            email=user.email,
            phone=phone,
        )
        session.add(applicant)
        await session.flush()
    elif phone and not applicant.phone:
        applicant.phone = phone
    return applicant


async def _require_district(session: AsyncSession, district_id: int) -> None:
    district = await session.get(District, district_id)
    if district is None:
        raise ValidationFailed(f"Unknown district: {district_id}")


async def create_application(
    session: AsyncSession,
    user: UserContext,
    **fields,
) -> Application:
    """Submit a new application for the current applicant in status PENDING."""
    if user.role != UserRole.APPLICANT:
        raise ForbiddenTransition("Only applicants can submit applications")

    applicant_phone = fields.pop("applicant_phone", None)
    await _require_district(session, fields["district_id"])
    applicant = await _get_or_create_applicant(session, user, applicant_phone)

    now = datetime.now(UTC)
    application = Application(
        applicant_id=applicant.id,
        status=ApplicationStatus.PENDING,
        submitted_at=now,
        last_modified=now,
        status_changed_at=now,
        **{k: v for k, v in fields.items() if k in _UPDATABLE_FIELDS},
    )
    session.add(application)
    await session.flush()

    prior = await count_prior_rejections(session, application)
    application.risk_score = assess(application, [], prior, now=now).score

    app_id = application.id
    await write_audit_event(
        session,
        event_type="application_submitted",
        user_id=user.user_id,
        user_role=user.role.value,
        application_id=app_id,
        event_data={"organization_name": application.organization_name},
    )
    await session.commit()
    logger.info("Application %s submitted by %s", app_id, user.user_id)
    # Re-query with eager loading to avoid lazy-load in async context
    return await get_application(session, user, app_id)


_UPDATABLE_FIELDS = {
    "organization_name",
    "acronym",
    "organization_email",
    "organization_phone",
    "address",
    "district_id",
    "cluster_of_intervention",
    "source_of_fund",
    "description",
}


async def update_application(
    session: AsyncSession,
    user: UserContext,
    application_id: int,
    **updates,
) -> Application | None:
    """Applicant edit of the form while it is PENDING or PASTOR_DOCUMENT.

    Status changes must use ``update_status()``; unknown fields are ignored.
    """
    app = await get_application(session, user, application_id)
    if app is None:
        return None
    if user.role != UserRole.APPLICANT or app.status not in ApplicationStatus.applicant_editable():
        raise ForbiddenTransition("Application cannot be edited in its current status")

    if updates.get("district_id") is not None:
        await _require_district(session, updates["district_id"])

    changed = {}
    for field, value in updates.items():
        if field not in _UPDATABLE_FIELDS or value is None:
            continue
        setattr(app, field, value)
        changed[field] = value
    if changed:
        app.last_modified = datetime.now(UTC)
        await write_audit_event(
            session,
            event_type="application_updated",
            user_id=user.user_id,
            user_role=user.role.value,
            application_id=application_id,
            event_data={"fields": sorted(changed)},
        )

    await session.commit()
    return await get_application(session, user, application_id)


# ---------------------------------------------------------------------------
# Transition executor
# ---------------------------------------------------------------------------


def _validate_request(target, comment: str | None) -> ApplicationStatus:
    try:
        target = ApplicationStatus(target)
    except ValueError as exc:
        raise ValidationFailed(f"Unknown status: {target}") from exc
    if target in COMMENT_REQUIRED and not (comment and comment.strip()):
        raise ValidationFailed(f"A comment is required when moving to {target.value}")
    return target


async def update_status(
    session: AsyncSession,
    user: UserContext,
    application_id: int,
    expected_status: ApplicationStatus,
    target_status: ApplicationStatus,
    comment: str | None = None,
) -> Application | None:
    """Move an application to ``target_status`` on behalf of ``user``.

    Checks, in order, before anything is written: request shape, visibility,
    the expected status, the caller's authority, and (for forward moves) the
    document gate. The write itself is conditional on the expected status, so
    two reviewers racing on the same application cannot both succeed.

    Post-commit effects (notifications, certificate issuance) are the
    caller's to run; see ``dispatch.dispatch_transition_effects``.

    Returns None if the application is not found or not accessible.

    Raises:
        ValidationFailed, StaleState, ForbiddenTransition, DocumentsIncomplete
    """
    target = _validate_request(target_status, comment)

    app = await get_application(session, user, application_id)
    if app is None:
        return None

    source = app.status
    if source != expected_status:
        raise StaleState(expected_status, source)

    if target not in allowed_transitions(user.role, source):
        logger.warning(
            "Forbidden transition: user=%s role=%s app=%s %s -> %s",
            user.user_id, user.role.value, application_id, source.value, target.value,
        )
        raise ForbiddenTransition()

    if is_forward(source, target):
        gate = evaluate_documents(
            app.id, app.documents, block_on_invalid=settings.BLOCK_ON_INVALID_DOCUMENTS,
        )
        if not gate.is_complete:
            raise DocumentsIncomplete(gate.missing_required)

    now = datetime.now(UTC)
    result = await session.execute(
        update(Application)
        .where(Application.id == application_id, Application.status == source)
        .values(status=target, last_modified=now, status_changed_at=now)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        await session.rollback()
        raise StaleState(expected_status)

    app.status = target
    app.last_modified = now
    app.status_changed_at = now

    content = comment.strip() if comment and comment.strip() else autogenerated_comment(source, target)
    session.add(
        ApplicationComment(
            application_id=app.id,
            author_id=user.user_id,
            author_name=user.name,
            author_role=user.role.value,
            content=content,
            from_status=source,
            to_status=target,
        )
    )

    prior = await count_prior_rejections(session, app)
    app.risk_score = assess(app, app.documents, prior, now=now).score

    await write_audit_event(
        session,
        event_type="status_change",
        user_id=user.user_id,
        user_role=user.role.value,
        application_id=app.id,
        event_data={"from": source.value, "to": target.value, "comment": content},
    )
    await session.commit()
    logger.info(
        "Application %s moved %s -> %s by %s", app.id, source.value, target.value, user.user_id,
    )
    return app


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------


async def get_stats(session: AsyncSession, user: UserContext) -> dict:
    """Per-status counts over the caller's visible applications."""
    stmt = select(Application.status, func.count(Application.id)).select_from(Application)
    stmt = apply_data_scope(stmt, user.data_scope, user).group_by(Application.status)
    result = await session.execute(stmt)
    by_status = {}
    for status, count in result.all():
        key = status.value if isinstance(status, ApplicationStatus) else str(status)
        by_status[key] = count

    if user.role == UserRole.APPLICANT:
        mine = ApplicationStatus.applicant_editable()
    else:
        mine = actionable_statuses(user.role)

    return {
        "total_applications": sum(by_status.values()),
        "by_status": by_status,
        "pending_my_action": sum(by_status.get(s.value, 0) for s in mine),
        "approved": by_status.get(ApplicationStatus.APPROVED.value, 0),
        "certificate_issued": by_status.get(ApplicationStatus.CERTIFICATE_ISSUED.value, 0),
        "rejected": by_status.get(ApplicationStatus.REJECTED.value, 0),
    }
