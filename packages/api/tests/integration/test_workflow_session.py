# This project was developed with assistance from AI tools.
"""Workflow paths on a real AsyncSession: approval, certificate outbox, inbox and risk."""

from unittest.mock import AsyncMock, patch

import pytest
from db import ApplicationComment, Dispatch, Notification
from db.enums import ApplicationStatus, DispatchKind, DispatchStatus, DocumentType, NotificationType, UserRole
from sqlalchemy import func, select

from fbo_api.core.auth import build_data_scope
from fbo_api.schemas.auth import UserContext
from fbo_api.schemas.risk import RiskLevel
from fbo_api.services import application as app_service
from fbo_api.services.completeness import REQUIRED_DOCUMENT_TYPES
from fbo_api.services.dispatch import dispatch_transition_effects, retry_pending_dispatches
from fbo_api.services.errors import DocumentsIncomplete, DownstreamDispatchFailed
from fbo_api.services.notification import list_notifications, mark_read
from fbo_api.services.risk import get_risk_score

from ..factories import APPLICANT_USER_ID
from ..functional.personas import ceo, division_manager

pytestmark = pytest.mark.integration

S = ApplicationStatus


def _renderer_down():
    return patch(
        "fbo_api.services.certificate.register_certificate",
        new_callable=AsyncMock,
        side_effect=DownstreamDispatchFailed("certificate", "renderer down"),
    )


def _renderer_up():
    return patch("fbo_api.services.certificate.register_certificate", new_callable=AsyncMock)


async def _notification_types(session) -> list[NotificationType]:
    result = await session.execute(select(Notification.notification_type).order_by(Notification.id))
    return list(result.scalars().all())


async def _approve(session, app_id):
    app = await app_service.update_status(
        session, ceo(), app_id, expected_status=S.CEO_REVIEW, target_status=S.APPROVED,
    )
    failures = await dispatch_transition_effects(session, app, APPLICANT_USER_ID, S.APPROVED)
    return app, failures


# ---------------------------------------------------------------------------
# Approval and certificate
# ---------------------------------------------------------------------------


async def test_approval_survives_certificate_failure(db_session, make_app):
    app_id = await make_app(S.CEO_REVIEW)

    with _renderer_down():
        app, failures = await _approve(db_session, app_id)

    assert failures == ["certificate dispatch failed: renderer down"]
    assert app.organization_name == "Living Hope Fellowship"
    assert app.status == S.APPROVED

    refreshed = await app_service.get_application(db_session, ceo(), app_id)
    assert refreshed.status == S.APPROVED
    assert refreshed.certificate_number is None

    assert await _notification_types(db_session) == [NotificationType.APPROVAL]
    queued = (await db_session.execute(select(Dispatch))).scalar_one()
    assert queued.kind == DispatchKind.CERTIFICATE
    assert queued.status == DispatchStatus.PENDING
    assert queued.last_error == "renderer down"


async def test_approval_issues_certificate_and_tells_applicant(db_session, make_app):
    app_id = await make_app(S.CEO_REVIEW)

    with _renderer_up():
        app, failures = await _approve(db_session, app_id)

    assert failures == []
    assert app.status == S.CERTIFICATE_ISSUED
    assert app.certificate_number.endswith(f"-{app_id:06d}")
    assert await _notification_types(db_session) == [
        NotificationType.APPROVAL,
        NotificationType.CERTIFICATE_READY,
    ]
    ready = (
        await db_session.execute(
            select(Notification).where(
                Notification.notification_type == NotificationType.CERTIFICATE_READY
            )
        )
    ).scalar_one()
    assert ready.recipient_id == APPLICANT_USER_ID
    assert app.certificate_number in ready.message


async def test_retry_issues_queued_certificate_and_tells_applicant(db_session, make_app):
    app_id = await make_app(S.CEO_REVIEW)
    with _renderer_down():
        await _approve(db_session, app_id)

    with _renderer_up():
        summary = await retry_pending_dispatches(db_session)

    assert summary == {"attempted": 1, "delivered": 1, "still_pending": 0, "failed": 0}
    app = await app_service.get_application(db_session, ceo(), app_id)
    assert app.status == S.CERTIFICATE_ISSUED
    assert await _notification_types(db_session) == [
        NotificationType.APPROVAL,
        NotificationType.CERTIFICATE_READY,
    ]
    row = (await db_session.execute(select(Dispatch))).scalar_one()
    assert row.status == DispatchStatus.DELIVERED


async def test_refused_transition_writes_nothing(db_session, make_app):
    missing = DocumentType.LAND_UPI_PHOTOS
    app_id = await make_app(
        S.DM_REVIEW, documents=[d for d in REQUIRED_DOCUMENT_TYPES if d != missing],
    )
    before = await app_service.get_application(db_session, division_manager(), app_id)
    last_modified = before.last_modified

    with pytest.raises(DocumentsIncomplete):
        await app_service.update_status(
            db_session, division_manager(), app_id,
            expected_status=S.DM_REVIEW, target_status=S.TRANSFER_TO_HOD,
        )

    after = await app_service.get_application(db_session, division_manager(), app_id)
    assert after.status == S.DM_REVIEW
    assert after.last_modified == last_modified
    comments = await db_session.execute(
        select(func.count()).select_from(ApplicationComment).where(
            ApplicationComment.application_id == app_id
        )
    )
    assert comments.scalar() == 0


# ---------------------------------------------------------------------------
# Inbox
# ---------------------------------------------------------------------------


async def test_role_notification_read_state_is_per_user(db_session, make_app):
    app_id = await make_app(S.TRANSFER_TO_DM)
    row = Notification(
        recipient_role=UserRole.DIVISION_MANAGER.value,
        application_id=app_id,
        notification_type=NotificationType.STATUS_CHANGE,
        title="Application awaiting your review",
        message="Living Hope Fellowship has been transferred for your review.",
    )
    db_session.add(row)
    await db_session.commit()

    first = division_manager()
    second = UserContext(
        user_id="eugene-dm-2",
        role=UserRole.DIVISION_MANAGER,
        email="eugene@rgb.rw",
        name="Eugene Nshimiyimana",
        data_scope=build_data_scope(UserRole.DIVISION_MANAGER, "eugene-dm-2"),
    )

    assert await mark_read(db_session, first, row.id) is True
    assert await mark_read(db_session, first, row.id) is True

    assert await list_notifications(db_session, first, unread_only=True) == []
    unread = await list_notifications(db_session, second, unread_only=True)
    assert [(n.id, is_read) for n, is_read in unread] == [(row.id, False)]
    inbox = await list_notifications(db_session, first)
    assert [(n.id, is_read) for n, is_read in inbox] == [(row.id, True)]


# ---------------------------------------------------------------------------
# Risk
# ---------------------------------------------------------------------------


async def test_review_queue_sees_overdue_risk(db_session, make_app):
    await make_app(S.REJECTED, documents=[])
    # 3 of 7 required documents missing and one prior rejection: 27.1 when it
    # entered DM_REVIEW. Thirty days in a seven-day stage adds the 20-point cap.
    uploaded = REQUIRED_DOCUMENT_TYPES[:4]
    app_id = await make_app(S.DM_REVIEW, documents=uploaded, risk_score=27.1, days_in_stage=30)

    apps, total = await app_service.list_applications(
        db_session, division_manager(), filter_risk=RiskLevel.MEDIUM,
    )

    assert total == 1
    assert [a.id for a in apps] == [app_id]
    assert apps[0].risk_score == 47.1
    live = await get_risk_score(db_session, division_manager(), app_id)
    assert live.score == 47.1
    assert live.level == RiskLevel.MEDIUM
