# This project was developed with assistance from AI tools.
"""Functional tests: public endpoints, health, comments, inbox, audit and admin."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from db import (
    AuditEvent,
    Dispatch,
    District,
    Notification,
    NotificationRead,
    Province,
    get_db_service,
)
from db.enums import ApplicationStatus, DispatchKind, DispatchStatus, NotificationType

from ..factories import APPLICANT_USER_ID, NOW, make_application, make_comment
from .mock_db import added, make_mock_session
from .personas import admin, applicant_grace, ceo, fbo_officer, hod

pytestmark = pytest.mark.functional

S = ApplicationStatus


class TestPublic:
    def test_workflow_description(self, make_client):
        client = make_client(None, make_mock_session())

        resp = client.get("/api/public/workflow")

        assert resp.status_code == 200
        data = resp.json()
        assert len(data["statuses"]) == len(ApplicationStatus)
        terminal = {s["status"] for s in data["statuses"] if s["terminal"]}
        assert terminal == {"CERTIFICATE_ISSUED", "REJECTED"}
        ceo_review = [
            t for t in data["transitions"] if t["role"] == "ceo" and t["from_status"] == "CEO_REVIEW"
        ]
        assert ceo_review[0]["to_statuses"] == ["REJECTED", "APPROVED"]

    def test_provinces_with_districts(self, make_client):
        province = Province(id=1, name="Kigali City")
        province.districts = [District(id=3, name="Gasabo", province_id=1)]
        client = make_client(None, make_mock_session(items=[province]))

        resp = client.get("/api/public/provinces")

        assert resp.status_code == 200
        assert resp.json() == [
            {"id": 1, "name": "Kigali City", "districts": [{"id": 3, "name": "Gasabo"}]}
        ]

    def test_verify_issued_certificate(self, make_client):
        app = make_application(
            S.CERTIFICATE_ISSUED, certificate_number="RGB-2026-000100", certificate_issued_at=NOW,
        )
        client = make_client(None, make_mock_session(lookup=app))

        resp = client.get("/api/public/certificates/RGB-2026-000100")

        assert resp.status_code == 200
        data = resp.json()
        assert data["valid"] is True
        assert data["organization_name"] == "Living Hope Fellowship"
        assert data["district"] == "Gasabo"

    def test_unknown_certificate_is_404(self, make_client):
        client = make_client(None, make_mock_session(lookup=None))
        resp = client.get("/api/public/certificates/RGB-1999-000001")
        assert resp.status_code == 404
        assert resp.json()["title"] == "Not Found"


class TestHealth:
    def test_health_reports_database(self, app, make_client):
        db_service = MagicMock()
        db_service.health_check = AsyncMock(
            return_value={"status": "healthy", "message": "Connected to PostgreSQL 16.2"}
        )
        app.dependency_overrides[get_db_service] = lambda: db_service
        client = make_client(None, make_mock_session())

        resp = client.get("/health/")

        assert resp.status_code == 200
        items = {item["name"]: item for item in resp.json()}
        assert items["API"]["status"] == "healthy"
        assert items["Database"]["message"] == "Connected to PostgreSQL 16.2"


class TestComments:
    def test_list_comments_in_order(self, make_client):
        comments = [
            make_comment(id=1, content="Submitted"),
            make_comment(
                id=2,
                content="Status changed from PENDING to FBO_REVIEW",
                from_status=S.PENDING,
                to_status=S.FBO_REVIEW,
            ),
        ]
        client = make_client(applicant_grace(), make_mock_session(items=comments, lookup=100))

        resp = client.get("/api/applications/100/comments")

        assert resp.status_code == 200
        data = resp.json()
        assert data["count"] == 2
        assert data["data"][1]["to_status"] == "FBO_REVIEW"

    def test_comments_on_invisible_application_are_404(self, make_client):
        client = make_client(applicant_grace(), make_mock_session(lookup=None))
        resp = client.get("/api/applications/999/comments")
        assert resp.status_code == 404

    def test_add_comment(self, make_client):
        session = make_mock_session()
        visible = MagicMock()
        visible.scalar_one_or_none.return_value = 100
        chain_head = MagicMock()
        chain_head.scalar_one_or_none.return_value = None
        session.execute = AsyncMock(side_effect=[visible, MagicMock(), chain_head])
        client = make_client(hod(), session)

        resp = client.post("/api/applications/100/comments", json={"content": "  Checked land UPI  "})

        assert resp.status_code == 201
        data = resp.json()
        assert data["content"] == "Checked land UPI"
        assert data["author_role"] == "hod"
        assert data["from_status"] is None

    def test_empty_comment_rejected(self, make_client):
        client = make_client(hod(), make_mock_session())
        resp = client.post("/api/applications/100/comments", json={"content": ""})
        assert resp.status_code == 422


class TestInbox:
    def test_list_notifications(self, make_client):
        row = Notification(
            id=7,
            recipient_role="fbo_officer",
            application_id=100,
            notification_type=NotificationType.STATUS_CHANGE,
            title="New application submitted",
            message="Living Hope Fellowship has submitted a new application.",
            created_at=NOW,
        )
        session = make_mock_session()
        session.execute.return_value.all.return_value = [(row, False)]
        client = make_client(fbo_officer(), session)

        resp = client.get("/api/notifications/?unread_only=true")

        assert resp.status_code == 200
        item = resp.json()["data"][0]
        assert item["title"] == "New application submitted"
        assert item["is_read"] is False

    def test_mark_read_records_reader(self, make_client):
        found, unread = MagicMock(), MagicMock()
        found.scalar_one_or_none.return_value = 7
        unread.scalar_one_or_none.return_value = None
        session = make_mock_session()
        session.execute = AsyncMock(side_effect=[found, unread])
        client = make_client(applicant_grace(), session)

        assert client.post("/api/notifications/7/read").status_code == 204
        reads = added(session, NotificationRead)
        assert [(r.notification_id, r.user_id) for r in reads] == [(7, APPLICANT_USER_ID)]

    def test_mark_read_twice_adds_nothing(self, make_client):
        session = make_mock_session(lookup=7)
        client = make_client(applicant_grace(), session)

        assert client.post("/api/notifications/7/read").status_code == 204
        assert added(session, NotificationRead) == []

    def test_mark_read_other_users_notification(self, make_client):
        client = make_client(applicant_grace(), make_mock_session(lookup=None))
        assert client.post("/api/notifications/7/read").status_code == 404


class TestAudit:
    def test_ceo_reads_application_trail(self, make_client):
        events = [
            AuditEvent(
                id=1,
                timestamp=NOW,
                event_type="application_submitted",
                user_id="grace-uwase-001",
                user_role="applicant",
                application_id=100,
                event_data={"organization_name": "Living Hope Fellowship"},
                prev_hash="genesis",
            )
        ]
        client = make_client(ceo(), make_mock_session(items=events))

        resp = client.get("/api/audit/application/100")

        assert resp.status_code == 200
        assert resp.json()["events"][0]["event_type"] == "application_submitted"

    def test_reviewer_cannot_read_audit(self, make_client):
        client = make_client(fbo_officer(), make_mock_session())
        assert client.get("/api/audit/application/100").status_code == 403

    def test_verify_empty_chain(self, make_client):
        client = make_client(admin(), make_mock_session(items=[]))
        resp = client.get("/api/audit/verify")
        assert resp.json() == {"status": "OK", "events_checked": 0, "first_break_id": None}

    def test_ceo_cannot_verify_chain(self, make_client):
        client = make_client(ceo(), make_mock_session())
        assert client.get("/api/audit/verify").status_code == 403


class TestAdmin:
    def test_list_dispatches(self, make_client):
        row = Dispatch(
            id=3,
            kind=DispatchKind.CERTIFICATE,
            application_id=100,
            status=DispatchStatus.PENDING,
            attempts=2,
            last_error="renderer unavailable",
            created_at=NOW,
            updated_at=NOW,
        )
        client = make_client(admin(), make_mock_session(items=[row]))

        resp = client.get("/api/admin/dispatches?status=pending")

        assert resp.status_code == 200
        item = resp.json()["data"][0]
        assert item["kind"] == "certificate"
        assert item["attempts"] == 2

    def test_retry_dispatches(self, make_client):
        client = make_client(admin(), make_mock_session())
        summary = {"attempted": 2, "delivered": 1, "still_pending": 1, "failed": 0}
        with patch(
            "fbo_api.routes.admin.retry_pending_dispatches",
            new_callable=AsyncMock,
            return_value=summary,
        ):
            resp = client.post("/api/admin/dispatches/retry")
        assert resp.status_code == 200
        assert resp.json() == summary

    def test_seed_reference_data(self, make_client):
        client = make_client(admin(), make_mock_session())
        with patch(
            "fbo_api.routes.admin.seed_reference_data",
            new_callable=AsyncMock,
            return_value={"provinces_created": 5, "districts_created": 30},
        ):
            resp = client.post("/api/admin/seed")
        assert resp.status_code == 200

    def test_non_admin_blocked(self, make_client):
        client = make_client(ceo(), make_mock_session())
        assert client.post("/api/admin/dispatches/retry").status_code == 403
