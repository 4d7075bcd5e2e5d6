# This project was developed with assistance from AI tools.
"""Application request/response schemas."""

from datetime import datetime

from db.enums import ApplicationStatus
from pydantic import BaseModel, ConfigDict, EmailStr, Field

from . import Pagination
from .risk import RiskLevel


class ApplicationCreate(BaseModel):
    """Submit a new FBO authorization application."""

    organization_name: str = Field(min_length=1, max_length=200)
    acronym: str | None = Field(default=None, max_length=20)
    organization_email: EmailStr
    organization_phone: str = Field(min_length=1, max_length=20)
    address: str = Field(min_length=1)
    district_id: int
    cluster_of_intervention: str = Field(min_length=1, max_length=200)
    source_of_fund: str = Field(min_length=1, max_length=200)
    description: str | None = None
    applicant_phone: str | None = Field(default=None, max_length=20)


class ApplicationUpdate(BaseModel):
    """Partial update by the applicant while the form is editable."""

    organization_name: str | None = Field(default=None, min_length=1, max_length=200)
    acronym: str | None = Field(default=None, max_length=20)
    organization_email: EmailStr | None = None
    organization_phone: str | None = Field(default=None, min_length=1, max_length=20)
    address: str | None = Field(default=None, min_length=1)
    district_id: int | None = None
    cluster_of_intervention: str | None = Field(default=None, min_length=1, max_length=200)
    source_of_fund: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None


class StatusUpdateRequest(BaseModel):
    """Move an application along the approval chain.

    ``expected_status`` is the status the caller last saw; the update is
    refused when the stored status has moved on since.
    """

    expected_status: ApplicationStatus
    status: ApplicationStatus
    comment: str | None = Field(default=None, max_length=5000)


class ApplicantSummary(BaseModel):
    """Applicant info nested inside application responses."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    first_name: str
    last_name: str
    email: str
    phone: str | None = None


class DistrictSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    province_name: str | None = None


class ApplicationResponse(BaseModel):
    """Single application response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    organization_name: str
    acronym: str | None = None
    organization_email: str
    organization_phone: str
    address: str
    cluster_of_intervention: str
    source_of_fund: str
    description: str | None = None
    status: ApplicationStatus
    step_index: int
    risk_score: float
    risk_level: RiskLevel
    certificate_number: str | None = None
    certificate_issued_at: datetime | None = None
    submitted_at: datetime
    last_modified: datetime
    can_edit: bool = False
    allowed_transitions: list[ApplicationStatus] = []
    applicant: ApplicantSummary | None = None
    district: DistrictSummary | None = None


class StatusUpdateResponse(ApplicationResponse):
    """Application after a transition, plus any downstream effects that were queued."""

    dispatch_failures: list[str] = []


class ApplicationListResponse(BaseModel):
    """Paginated list of applications."""

    data: list[ApplicationResponse]
    pagination: Pagination


class ApplicationStatsResponse(BaseModel):
    """Dashboard counters for the caller's visible applications."""

    total_applications: int
    by_status: dict[str, int]
    pending_my_action: int
    approved: int
    certificate_issued: int
    rejected: int
