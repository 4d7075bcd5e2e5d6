# This project was developed with assistance from AI tools.
"""
Domain enums for the FBO authorization workflow.

Shared domain types used by both SQLAlchemy models (db package)
and Pydantic schemas (api package).
"""

import enum


class ApplicationStatus(str, enum.Enum):
    PENDING = "PENDING"
    FBO_REVIEW = "FBO_REVIEW"
    PASTOR_DOCUMENT = "PASTOR_DOCUMENT"
    TRANSFER_TO_DM = "TRANSFER_TO_DM"
    DM_REVIEW = "DM_REVIEW"
    TRANSFER_TO_HOD = "TRANSFER_TO_HOD"
    HOD_REVIEW = "HOD_REVIEW"
    TRANSFER_TO_SG = "TRANSFER_TO_SG"
    SG_REVIEW = "SG_REVIEW"
    TRANSFER_TO_CEO = "TRANSFER_TO_CEO"
    CEO_REVIEW = "CEO_REVIEW"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CERTIFICATE_ISSUED = "CERTIFICATE_ISSUED"

    @classmethod
    def terminal_statuses(cls) -> frozenset["ApplicationStatus"]:
        """Statuses where no reviewer can move the application any further."""
        return frozenset({cls.REJECTED, cls.CERTIFICATE_ISSUED})

    @classmethod
    def applicant_editable(cls) -> frozenset["ApplicationStatus"]:
        """Statuses where the applicant may edit the form and re-upload documents."""
        return frozenset({cls.PENDING, cls.PASTOR_DOCUMENT})

    @classmethod
    def step_indices(cls) -> dict["ApplicationStatus", int]:
        """Progress step for each status. REJECTED sits outside the linear order."""
        return {
            cls.PENDING: 1,
            cls.FBO_REVIEW: 1,
            cls.PASTOR_DOCUMENT: 1,
            cls.TRANSFER_TO_DM: 2,
            cls.DM_REVIEW: 2,
            cls.TRANSFER_TO_HOD: 3,
            cls.HOD_REVIEW: 3,
            cls.TRANSFER_TO_SG: 4,
            cls.SG_REVIEW: 4,
            cls.TRANSFER_TO_CEO: 5,
            cls.CEO_REVIEW: 5,
            cls.APPROVED: 6,
            cls.CERTIFICATE_ISSUED: 7,
            cls.REJECTED: 0,
        }


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    APPLICANT = "applicant"
    FBO_OFFICER = "fbo_officer"
    DIVISION_MANAGER = "division_manager"
    HOD = "hod"
    SECRETARY_GENERAL = "secretary_general"
    CEO = "ceo"

    @classmethod
    def reviewers(cls) -> frozenset["UserRole"]:
        """Roles that hold authority somewhere along the approval chain."""
        return frozenset(
            {cls.FBO_OFFICER, cls.DIVISION_MANAGER, cls.HOD, cls.SECRETARY_GENERAL, cls.CEO}
        )


class DocumentType(str, enum.Enum):
    ORGANIZATION_COMMITTEE_NAMES_CVS = "ORGANIZATION_COMMITTEE_NAMES_CVS"
    DISTRICT_CERTIFICATE = "DISTRICT_CERTIFICATE"
    LAND_UPI_PHOTOS = "LAND_UPI_PHOTOS"
    ORGANIZATIONAL_DOCTRINE = "ORGANIZATIONAL_DOCTRINE"
    ANNUAL_ACTION_PLAN = "ANNUAL_ACTION_PLAN"
    PROOF_OF_PAYMENT = "PROOF_OF_PAYMENT"
    PARTNERSHIP_DOCUMENT = "PARTNERSHIP_DOCUMENT"
    PASTOR_DOCUMENT = "PASTOR_DOCUMENT"


class NotificationType(str, enum.Enum):
    STATUS_CHANGE = "STATUS_CHANGE"
    DOCUMENT_REQUEST = "DOCUMENT_REQUEST"
    APPROVAL = "APPROVAL"
    REJECTION = "REJECTION"
    CERTIFICATE_READY = "CERTIFICATE_READY"


class DispatchKind(str, enum.Enum):
    NOTIFICATION = "notification"
    CERTIFICATE = "certificate"


class DispatchStatus(str, enum.Enum):
    PENDING = "pending"
    DELIVERED = "delivered"
    FAILED = "failed"
