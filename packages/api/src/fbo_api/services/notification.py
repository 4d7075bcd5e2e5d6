# This project was developed with assistance from AI tools.
"""Notifications for applicants and reviewers.

Every notification is stored in-app. When ``NOTIFICATION_SERVICE_URL`` is set
it is also posted to the delivery service (email/SMS); delivery failures are
raised as :class:`~.errors.DownstreamDispatchFailed` so the caller can queue
a retry. Read state is kept per user in ``notification_reads``, so a role
notification stays unread for each holder of the role until they open it.
"""

import logging

import httpx
from db import Application, Notification, NotificationRead
from db.enums import ApplicationStatus, NotificationType, UserRole
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..schemas.auth import UserContext
from .errors import DownstreamDispatchFailed
from .transitions import NEXT_REVIEWER

logger = logging.getLogger(__name__)


def notification_type_for(target: ApplicationStatus) -> NotificationType:
    if target == ApplicationStatus.PASTOR_DOCUMENT:
        return NotificationType.DOCUMENT_REQUEST
    if target == ApplicationStatus.APPROVED:
        return NotificationType.APPROVAL
    if target == ApplicationStatus.REJECTED:
        return NotificationType.REJECTION
    if target == ApplicationStatus.CERTIFICATE_ISSUED:
        return NotificationType.CERTIFICATE_READY
    return NotificationType.STATUS_CHANGE


def build_transition_notifications(
    app: Application,
    applicant_user_id: str | None,
    target: ApplicationStatus,
    comment: str | None = None,
) -> list[Notification]:
    """Notifications for a committed transition: the applicant, plus the next reviewer role."""
    ntype = notification_type_for(target)
    label = target.value.replace("_", " ").title()
    message = f"Your application for {app.organization_name} is now {label}."
    if comment:
        message = f"{message} Comment: {comment}"

    rows = []
    if applicant_user_id:
        rows.append(
            Notification(
                recipient_id=applicant_user_id,
                application_id=app.id,
                notification_type=ntype,
                title=f"Application {label}",
                message=message,
            )
        )
    next_role = NEXT_REVIEWER.get(target)
    if next_role is not None:
        rows.append(
            Notification(
                recipient_role=next_role.value,
                application_id=app.id,
                notification_type=NotificationType.STATUS_CHANGE,
                title="Application awaiting your review",
                message=f"{app.organization_name} has been transferred for your review.",
            )
        )
    return rows


def build_certificate_notifications(app: Application) -> list[Notification]:
    """Tell the applicant their certificate is ready. Empty when no applicant is loaded."""
    applicant = app.applicant
    if applicant is None:
        return []
    return [
        Notification(
            recipient_id=applicant.keycloak_user_id,
            application_id=app.id,
            notification_type=notification_type_for(ApplicationStatus.CERTIFICATE_ISSUED),
            title="Certificate issued",
            message=(
                f"The authorization certificate for {app.organization_name} has been issued: "
                f"{app.certificate_number}."
            ),
        )
    ]


def build_submission_notification(app: Application) -> Notification:
    return Notification(
        recipient_role=UserRole.FBO_OFFICER.value,
        application_id=app.id,
        notification_type=NotificationType.STATUS_CHANGE,
        title="New application submitted",
        message=f"{app.organization_name} has submitted a new application.",
    )


def notification_payload(row: Notification) -> dict:
    return {
        "recipient_id": row.recipient_id,
        "recipient_role": row.recipient_role,
        "application_id": row.application_id,
        "type": row.notification_type.value,
        "title": row.title,
        "message": row.message,
    }


async def deliver(payload: dict) -> None:
    """Post one notification to the delivery service, if one is configured."""
    if not settings.NOTIFICATION_SERVICE_URL:
        return
    try:
        async with httpx.AsyncClient(timeout=settings.DISPATCH_TIMEOUT_SECONDS) as client:
            response = await client.post(
                f"{settings.NOTIFICATION_SERVICE_URL.rstrip('/')}/notifications",
                json=payload,
            )
            response.raise_for_status()
    except httpx.HTTPError as exc:
        raise DownstreamDispatchFailed("notification", str(exc)) from exc


# ---------------------------------------------------------------------------
# In-app inbox
# ---------------------------------------------------------------------------


def _inbox_clause(user: UserContext):
    return or_(
        Notification.recipient_id == user.user_id,
        Notification.recipient_role == user.role.value,
    )


def _read_by(user: UserContext):
    return (
        select(NotificationRead.id)
        .where(
            NotificationRead.notification_id == Notification.id,
            NotificationRead.user_id == user.user_id,
        )
        .exists()
    )


async def list_notifications(
    session: AsyncSession,
    user: UserContext,
    *,
    unread_only: bool = False,
    limit: int = 50,
) -> list[tuple[Notification, bool]]:
    """The caller's inbox, newest first, each row paired with whether the caller has read it."""
    read = _read_by(user)
    stmt = select(Notification, read.label("is_read")).where(_inbox_clause(user))
    if unread_only:
        stmt = stmt.where(~read)
    stmt = stmt.order_by(Notification.created_at.desc()).limit(limit)
    result = await session.execute(stmt)
    return [(row, bool(is_read)) for row, is_read in result.all()]


async def mark_read(session: AsyncSession, user: UserContext, notification_id: int) -> bool:
    """Record that the caller read one of their notifications. False if it isn't theirs."""
    found = await session.execute(
        select(Notification.id).where(Notification.id == notification_id, _inbox_clause(user))
    )
    if found.scalar_one_or_none() is None:
        return False

    already = await session.execute(
        select(NotificationRead.id).where(
            NotificationRead.notification_id == notification_id,
            NotificationRead.user_id == user.user_id,
        )
    )
    if already.scalar_one_or_none() is None:
        session.add(NotificationRead(notification_id=notification_id, user_id=user.user_id))
        await session.commit()
    return True
