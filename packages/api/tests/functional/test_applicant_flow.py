# This project was developed with assistance from AI tools.
"""Functional tests: applicant submission, edits, uploads and progress."""

from unittest.mock import patch

import pytest
from db import Applicant, Application, Document, Notification
from db.enums import ApplicationStatus, DocumentType

from fbo_api.core.config import settings

from ..factories import APPLICANT_USER_ID, make_application, required_documents
from .mock_db import added, make_mock_session
from .personas import applicant_grace, fbo_officer

pytestmark = pytest.mark.functional

S = ApplicationStatus

SUBMISSION = {
    "organization_name": "Living Hope Fellowship",
    "acronym": "LHF",
    "organization_email": "office@livinghope.org",
    "organization_phone": "+250788123456",
    "address": "KG 11 Ave, Kigali",
    "district_id": 3,
    "cluster_of_intervention": "Education",
    "source_of_fund": "Member contributions",
    "description": "Community church and school",
}


class TestSubmission:
    def test_applicant_submits_pending_application(self, make_client):
        created = make_application(S.PENDING)
        session = make_mock_session(single=created)
        client = make_client(applicant_grace(), session)

        resp = client.post("/api/applications/", json=SUBMISSION)

        assert resp.status_code == 201
        data = resp.json()
        assert data["status"] == "PENDING"
        assert data["step_index"] == 1
        assert data["can_edit"] is True
        assert data["allowed_transitions"] == []

        stored = added(session, Application)
        assert len(stored) == 1
        assert stored[0].status == S.PENDING
        applicants = added(session, Applicant)
        assert applicants[0].keycloak_user_id == APPLICANT_USER_ID
        notices = added(session, Notification)
        assert [n.recipient_role for n in notices] == ["fbo_officer"]

    def test_reviewer_cannot_submit(self, make_client):
        client = make_client(fbo_officer(), make_mock_session())
        resp = client.post("/api/applications/", json=SUBMISSION)
        assert resp.status_code == 403

    def test_invalid_email_is_rejected(self, make_client):
        client = make_client(applicant_grace(), make_mock_session())
        resp = client.post(
            "/api/applications/", json={**SUBMISSION, "organization_email": "not-an-email"}
        )
        assert resp.status_code == 422
        assert resp.json()["title"] == "Unprocessable Entity"


class TestEdits:
    def test_edit_allowed_while_revision_requested(self, make_client):
        app = make_application(S.PASTOR_DOCUMENT)
        client = make_client(applicant_grace(), make_mock_session(single=app))

        resp = client.patch("/api/applications/100", json={"organization_name": "Living Hope Church"})

        assert resp.status_code == 200
        assert resp.json()["organization_name"] == "Living Hope Church"

    def test_edit_refused_under_review(self, make_client):
        app = make_application(S.FBO_REVIEW)
        session = make_mock_session(single=app)
        client = make_client(applicant_grace(), session)

        resp = client.patch("/api/applications/100", json={"organization_name": "Renamed"})

        assert resp.status_code == 403
        assert resp.json()["title"] == "Forbidden"
        assert app.organization_name == "Living Hope Fellowship"
        session.commit.assert_not_awaited()

    def test_edit_of_invisible_application_is_404(self, make_client):
        client = make_client(applicant_grace(), make_mock_session(single=None))
        resp = client.patch("/api/applications/999", json={"acronym": "X"})
        assert resp.status_code == 404

    def test_applicant_cannot_change_status(self, make_client):
        app = make_application(S.PENDING)
        client = make_client(applicant_grace(), make_mock_session(single=app))
        resp = client.put(
            "/api/applications/100/status",
            json={"expected_status": "PENDING", "status": "FBO_REVIEW"},
        )
        assert resp.status_code == 403


class TestUploads:
    def test_upload_document(self, make_client, mock_storage):
        app = make_application(S.PENDING)
        session = make_mock_session(single=app)
        client = make_client(applicant_grace(), session)

        resp = client.post(
            "/api/applications/100/documents",
            files={"file": ("district-cert.pdf", b"%PDF-1.4 content", "application/pdf")},
            data={"document_type": "DISTRICT_CERTIFICATE"},
        )

        assert resp.status_code == 201
        data = resp.json()
        assert data["document_type"] == "DISTRICT_CERTIFICATE"
        assert data["is_valid"] is None
        assert data["uploaded_by"] == APPLICANT_USER_ID
        mock_storage.upload_file.assert_awaited_once()
        assert added(session, Document)[0].file_path == "100/DISTRICT_CERTIFICATE/abc-cert.pdf"

    def test_upload_rejects_unsupported_type(self, make_client, mock_storage):
        client = make_client(applicant_grace(), make_mock_session(single=make_application()))
        resp = client.post(
            "/api/applications/100/documents",
            files={"file": ("script.sh", b"#!/bin/sh", "text/x-shellscript")},
            data={"document_type": "DISTRICT_CERTIFICATE"},
        )
        assert resp.status_code == 422
        mock_storage.upload_file.assert_not_awaited()

    def test_empty_file_is_unprocessable(self, make_client, mock_storage):
        client = make_client(applicant_grace(), make_mock_session(single=make_application()))
        resp = client.post(
            "/api/applications/100/documents",
            files={"file": ("cert.pdf", b"", "application/pdf")},
            data={"document_type": "DISTRICT_CERTIFICATE"},
        )
        assert resp.status_code == 422
        assert "empty" in resp.json()["detail"]
        mock_storage.upload_file.assert_not_awaited()

    def test_oversized_file_is_too_large(self, make_client, mock_storage):
        client = make_client(applicant_grace(), make_mock_session(single=make_application()))
        with patch.object(settings, "UPLOAD_MAX_SIZE_MB", 0):
            resp = client.post(
                "/api/applications/100/documents",
                files={"file": ("cert.pdf", b"%PDF-1.4 content", "application/pdf")},
                data={"document_type": "DISTRICT_CERTIFICATE"},
            )
        assert resp.status_code == 413
        mock_storage.upload_file.assert_not_awaited()

    def test_upload_refused_under_review(self, make_client, mock_storage):
        client = make_client(applicant_grace(), make_mock_session(single=make_application(S.HOD_REVIEW)))
        resp = client.post(
            "/api/applications/100/documents",
            files={"file": ("cert.pdf", b"%PDF", "application/pdf")},
            data={"document_type": "DISTRICT_CERTIFICATE"},
        )
        assert resp.status_code == 403

    def test_reviewer_cannot_upload(self, make_client, mock_storage):
        client = make_client(fbo_officer(), make_mock_session(single=make_application()))
        resp = client.post(
            "/api/applications/100/documents",
            files={"file": ("cert.pdf", b"%PDF", "application/pdf")},
            data={"document_type": "DISTRICT_CERTIFICATE"},
        )
        assert resp.status_code == 403

    def test_download_document(self, make_client, mock_storage):
        doc = required_documents()[0]
        client = make_client(applicant_grace(), make_mock_session(single=doc))

        resp = client.get(f"/api/documents/{doc.id}/content")

        assert resp.status_code == 200
        assert resp.content == b"%PDF-1.4 stored"
        assert resp.headers["content-type"] == "application/pdf"


class TestProgress:
    def test_pending_application_lists_missing_uploads(self, make_client):
        docs = [d for d in required_documents() if d.document_type != DocumentType.PROOF_OF_PAYMENT]
        app = make_application(S.PENDING, documents=docs)
        client = make_client(applicant_grace(), make_mock_session(single=app))

        resp = client.get("/api/applications/100/progress")

        assert resp.status_code == 200
        data = resp.json()
        assert data["step_index"] == 1
        assert data["is_rejected"] is False
        assert data["documents"]["is_complete"] is False
        assert data["pending_actions"] == [
            {"action_type": "upload_document", "description": "Upload Proof of Payment"}
        ]

    def test_reviewer_sees_transition_actions(self, make_client):
        app = make_application(S.FBO_REVIEW, documents=required_documents())
        client = make_client(fbo_officer(), make_mock_session(single=app))

        resp = client.get("/api/applications/100/progress")

        actions = resp.json()["pending_actions"]
        assert {a["action_type"] for a in actions} == {"transition"}
        assert len(actions) == 2
