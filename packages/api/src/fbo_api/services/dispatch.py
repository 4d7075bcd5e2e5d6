# This project was developed with assistance from AI tools.
"""Downstream effects of committed transitions, with an outbox for retries.

Effects run after the transition has committed. A failed effect is written to
the ``dispatches`` table and reported back to the caller; it never undoes the
transition. ``retry_pending_dispatches`` replays the outbox and is safe to run
repeatedly: certificate issuance is idempotent per application and
notifications are keyed by their stored payload.
"""

import logging

from db import Application, Dispatch
from db.enums import ApplicationStatus, DispatchKind, DispatchStatus
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from .certificate import issue_certificate, load_for_certificate
from .errors import DownstreamDispatchFailed
from .notification import (
    build_certificate_notifications,
    build_submission_notification,
    build_transition_notifications,
    deliver,
    notification_payload,
)

logger = logging.getLogger(__name__)


async def queue_dispatch(
    session: AsyncSession,
    *,
    kind: DispatchKind,
    application_id: int,
    payload: dict | None,
    error: str,
) -> Dispatch:
    """Record a failed effect for retry. The caller commits.

    Certificate dispatches are one per application: an existing pending row
    is reused instead of adding a second.
    """
    if kind == DispatchKind.CERTIFICATE:
        result = await session.execute(
            select(Dispatch).where(
                Dispatch.kind == DispatchKind.CERTIFICATE,
                Dispatch.application_id == application_id,
                Dispatch.status == DispatchStatus.PENDING,
            )
        )
        existing = result.scalar_one_or_none()
        if existing is not None:
            existing.last_error = error
            return existing

    row = Dispatch(
        kind=kind,
        application_id=application_id,
        payload=payload,
        status=DispatchStatus.PENDING,
        attempts=1,
        last_error=error,
    )
    session.add(row)
    return row


async def _send_notifications(session: AsyncSession, rows) -> list[str]:
    """Store notifications in-app, push them out, and queue the ones that fail."""
    failures: list[str] = []
    for row in rows:
        session.add(row)
    await session.commit()

    for row in rows:
        payload = notification_payload(row)
        try:
            await deliver(payload)
        except DownstreamDispatchFailed as exc:
            logger.warning("Notification for application %s queued: %s", row.application_id, exc.reason)
            await queue_dispatch(
                session,
                kind=DispatchKind.NOTIFICATION,
                application_id=row.application_id,
                payload=payload,
                error=exc.reason,
            )
            failures.append(str(exc))
    if failures:
        await session.commit()
    return failures


async def dispatch_transition_effects(
    session: AsyncSession,
    app: Application,
    applicant_user_id: str | None,
    target: ApplicationStatus,
    comment: str | None = None,
) -> list[str]:
    """Run the post-commit effects of a transition.

    Returns human-readable descriptions of every effect that had to be queued.
    """
    rows = build_transition_notifications(app, applicant_user_id, target, comment)
    failures = await _send_notifications(session, rows)

    if target == ApplicationStatus.APPROVED:
        failures.extend(await _issue_or_queue(session, app.id))
    return failures


async def dispatch_submission_effects(session: AsyncSession, app: Application) -> list[str]:
    return await _send_notifications(session, [build_submission_notification(app)])


async def _issue_or_queue(session: AsyncSession, application_id: int) -> list[str]:
    app = await load_for_certificate(session, application_id)
    if app is None:
        return []
    try:
        return await _issue_and_announce(session, app)
    except DownstreamDispatchFailed as exc:
        logger.warning("Certificate for application %s queued: %s", application_id, exc.reason)
        await queue_dispatch(
            session,
            kind=DispatchKind.CERTIFICATE,
            application_id=application_id,
            payload=None,
            error=exc.reason,
        )
        await session.commit()
        return [str(exc)]


async def _issue_and_announce(session: AsyncSession, app: Application) -> list[str]:
    """Issue the certificate and tell the applicant, unless another worker got there first."""
    was_approved = app.status == ApplicationStatus.APPROVED
    await issue_certificate(session, app)
    if not was_approved or app.status != ApplicationStatus.CERTIFICATE_ISSUED:
        return []
    return await _send_notifications(session, build_certificate_notifications(app))


# ---------------------------------------------------------------------------
# Outbox
# ---------------------------------------------------------------------------


async def list_dispatches(
    session: AsyncSession,
    *,
    status: DispatchStatus | None = None,
    limit: int = 100,
) -> list[Dispatch]:
    stmt = select(Dispatch)
    if status is not None:
        stmt = stmt.where(Dispatch.status == status)
    stmt = stmt.order_by(Dispatch.created_at.asc()).limit(limit)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def _replay(session: AsyncSession, row: Dispatch) -> None:
    """Attempt one queued effect. Raises DownstreamDispatchFailed on failure."""
    if row.kind == DispatchKind.NOTIFICATION:
        await deliver(row.payload or {})
        return

    app = await load_for_certificate(session, row.application_id)
    if app is None or app.status == ApplicationStatus.CERTIFICATE_ISSUED:
        return
    await _issue_and_announce(session, app)


async def retry_pending_dispatches(session: AsyncSession, *, limit: int = 100) -> dict:
    """Replay pending outbox rows once each.

    Rows that exhaust ``DISPATCH_MAX_ATTEMPTS`` are marked failed and left for
    an operator.
    """
    pending = await list_dispatches(session, status=DispatchStatus.PENDING, limit=limit)
    summary = {"attempted": 0, "delivered": 0, "still_pending": 0, "failed": 0}
    ids = [row.id for row in pending]

    for dispatch_id in ids:
        row = await session.get(Dispatch, dispatch_id)
        if row is None or row.status != DispatchStatus.PENDING:
            continue
        summary["attempted"] += 1
        try:
            await _replay(session, row)
        except DownstreamDispatchFailed as exc:
            row.attempts += 1
            row.last_error = exc.reason
            if row.attempts >= settings.DISPATCH_MAX_ATTEMPTS:
                row.status = DispatchStatus.FAILED
                summary["failed"] += 1
                logger.error("Dispatch %s failed permanently: %s", row.id, exc.reason)
            else:
                summary["still_pending"] += 1
            await session.commit()
            continue

        row.status = DispatchStatus.DELIVERED
        row.last_error = None
        await session.commit()
        summary["delivered"] += 1

    return summary
