# This project was developed with assistance from AI tools.
"""Risk scoring for the review queue.

A 0-100 score built from four capped contributions:

* document completeness: up to 40 points, proportional to missing required documents
* validation failures: 10 per document marked invalid, capped at 20
* applicant history: 10 per previously rejected application, capped at 20
* stage timing: 2 per day past the expected time in the current status, capped at 20

The score is persisted on the application whenever documents or status change,
so queue sorting and filtering run in SQL. Stage timing is the one contribution
that grows without a write; :func:`refresh_overdue_scores` re-scores the
applications past their expected stage time before the queue is read.
"""

import logging
from datetime import UTC, datetime, timedelta

from db import Application, Document
from db.enums import ApplicationStatus
from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..schemas.auth import UserContext
from ..schemas.risk import RiskAssessment, RiskLevel
from .completeness import evaluate_documents
from .scope import apply_data_scope

logger = logging.getLogger(__name__)

HIGH_THRESHOLD = 70.0
MEDIUM_THRESHOLD = 40.0

# Expected days an application should sit in each status. Terminal statuses
# never go overdue.
EXPECTED_STATUS_DAYS: dict[ApplicationStatus, int] = {
    ApplicationStatus.PENDING: 3,
    ApplicationStatus.FBO_REVIEW: 7,
    ApplicationStatus.PASTOR_DOCUMENT: 14,
    ApplicationStatus.TRANSFER_TO_DM: 2,
    ApplicationStatus.DM_REVIEW: 7,
    ApplicationStatus.TRANSFER_TO_HOD: 2,
    ApplicationStatus.HOD_REVIEW: 7,
    ApplicationStatus.TRANSFER_TO_SG: 2,
    ApplicationStatus.SG_REVIEW: 7,
    ApplicationStatus.TRANSFER_TO_CEO: 2,
    ApplicationStatus.CEO_REVIEW: 7,
    ApplicationStatus.APPROVED: 3,
}


def risk_level(score: float) -> RiskLevel:
    """Bucket a score: above 70 is high, 40 through 70 is medium."""
    if score > HIGH_THRESHOLD:
        return RiskLevel.HIGH
    if score >= MEDIUM_THRESHOLD:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def risk_level_clause(level: RiskLevel):
    """SQL filter matching :func:`risk_level` on the stored score."""
    if level == RiskLevel.HIGH:
        return Application.risk_score > HIGH_THRESHOLD
    if level == RiskLevel.MEDIUM:
        return and_(
            Application.risk_score >= MEDIUM_THRESHOLD,
            Application.risk_score <= HIGH_THRESHOLD,
        )
    return Application.risk_score < MEDIUM_THRESHOLD


def _ensure_tz(dt: datetime) -> datetime:
    """Ensure a datetime is timezone-aware (UTC)."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


def score_risk(
    *,
    missing_required: int,
    required_count: int,
    invalid_count: int,
    prior_rejections: int,
    days_overdue: int,
) -> tuple[float, list[str]]:
    """Combine the four contributions into a score and its explanation."""
    factors: list[str] = []
    score = 0.0

    if required_count and missing_required:
        score += 40.0 * missing_required / required_count
        factors.append(f"{missing_required} of {required_count} required documents missing")

    if invalid_count:
        score += min(invalid_count * 10, 20)
        factors.append(f"{invalid_count} document(s) failed validation")

    if prior_rejections:
        score += min(prior_rejections * 10, 20)
        factors.append(f"Applicant has {prior_rejections} previously rejected application(s)")

    if days_overdue > 0:
        score += min(days_overdue * 2, 20)
        factors.append(f"Overdue in current stage by {days_overdue} day(s)")

    return round(min(max(score, 0.0), 100.0), 1), factors


def assess(
    app: Application,
    documents,
    prior_rejections: int,
    *,
    now: datetime | None = None,
) -> RiskAssessment:
    """Build a full assessment from already-loaded data."""
    if now is None:
        now = datetime.now(UTC)

    completeness = evaluate_documents(app.id, documents)
    status = app.status or ApplicationStatus.PENDING
    entered = _ensure_tz(app.status_changed_at or app.submitted_at or now)
    days_in_stage = max((now - entered).days, 0)
    expected = EXPECTED_STATUS_DAYS.get(status, 0)
    days_overdue = days_in_stage - expected if expected else 0

    score, factors = score_risk(
        missing_required=len(completeness.missing_required),
        required_count=completeness.required_count,
        invalid_count=len(completeness.invalid_documents),
        prior_rejections=prior_rejections,
        days_overdue=days_overdue,
    )
    return RiskAssessment(
        application_id=app.id,
        score=score,
        level=risk_level(score),
        factors=factors,
        missing_required_count=len(completeness.missing_required),
        invalid_document_count=len(completeness.invalid_documents),
        prior_rejection_count=prior_rejections,
        days_in_stage=days_in_stage,
        expected_stage_days=expected,
    )


async def count_prior_rejections(session: AsyncSession, app: Application) -> int:
    result = await session.execute(
        select(func.count())
        .select_from(Application)
        .where(
            Application.applicant_id == app.applicant_id,
            Application.id != app.id,
            Application.status == ApplicationStatus.REJECTED,
        )
    )
    return result.scalar() or 0


async def compute_risk(
    session: AsyncSession,
    app: Application,
    *,
    now: datetime | None = None,
) -> RiskAssessment:
    """Assess one application, querying its documents and applicant history."""
    doc_result = await session.execute(
        select(Document).where(Document.application_id == app.id)
    )
    documents = doc_result.scalars().all()
    prior = await count_prior_rejections(session, app)
    return assess(app, documents, prior, now=now)


async def refresh_risk_score(session: AsyncSession, app: Application) -> float:
    """Recompute and store the score on ``app``. The caller commits."""
    assessment = await compute_risk(session, app)
    app.risk_score = assessment.score
    return assessment.score


def _overdue_clause(now: datetime):
    """Applications whose stage-timing contribution is above zero at ``now``."""
    return or_(
        *(
            and_(
                Application.status == status,
                Application.status_changed_at <= now - timedelta(days=days + 1),
            )
            for status, days in EXPECTED_STATUS_DAYS.items()
        )
    )


async def _rejections_by_applicant(session: AsyncSession, applicant_ids) -> dict[int, int]:
    result = await session.execute(
        select(Application.applicant_id, func.count())
        .where(
            Application.applicant_id.in_(applicant_ids),
            Application.status == ApplicationStatus.REJECTED,
        )
        .group_by(Application.applicant_id)
    )
    return dict(result.all())


async def refresh_overdue_scores(
    session: AsyncSession,
    user: UserContext | None = None,
    *,
    now: datetime | None = None,
) -> int:
    """Re-score overdue applications and commit. Returns how many scores changed.

    Limited to the caller's visible applications when ``user`` is given.
    """
    if now is None:
        now = datetime.now(UTC)

    stmt = (
        select(Application)
        .options(selectinload(Application.documents))
        .where(_overdue_clause(now))
    )
    if user is not None:
        stmt = apply_data_scope(stmt, user.data_scope, user)
    apps = (await session.execute(stmt)).unique().scalars().all()
    if not apps:
        return 0

    rejections = await _rejections_by_applicant(session, sorted({a.applicant_id for a in apps}))
    changed = 0
    for app in apps:
        score = assess(app, app.documents, rejections.get(app.applicant_id, 0), now=now).score
        if score != app.risk_score:
            app.risk_score = score
            changed += 1
    if changed:
        await session.commit()
        logger.info("Refreshed risk score for %d overdue application(s)", changed)
    return changed


async def get_risk_score(
    session: AsyncSession,
    user: UserContext,
    application_id: int,
) -> RiskAssessment | None:
    """Current risk assessment for an application.

    Returns None if the application is not found or not accessible.
    """
    stmt = select(Application).where(Application.id == application_id)
    stmt = apply_data_scope(stmt, user.data_scope, user)
    result = await session.execute(stmt)
    app = result.unique().scalar_one_or_none()
    if app is None:
        return None
    return await compute_risk(session, app)
