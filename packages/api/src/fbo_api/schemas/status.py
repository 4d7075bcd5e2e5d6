# This project was developed with assistance from AI tools.
"""Workflow status and progress schemas."""

from db.enums import ApplicationStatus, UserRole
from pydantic import BaseModel

from .completeness import CompletenessResponse


class StatusInfo(BaseModel):
    """Human-readable info about a workflow status."""

    label: str
    description: str
    next_step: str


class ProgressStep(BaseModel):
    """One step of the approval chain as rendered to the applicant."""

    step: int
    title: str
    state: str  # completed | current | pending | rejected


class PendingAction(BaseModel):
    """A single action the applicant or reviewer needs to take."""

    action_type: str
    description: str


class ApplicationProgressResponse(BaseModel):
    """Progress view for an application."""

    application_id: int
    status: ApplicationStatus
    status_info: StatusInfo
    step_index: int
    is_rejected: bool
    steps: list[ProgressStep]
    documents: CompletenessResponse
    pending_actions: list[PendingAction]


class WorkflowStatusEntry(BaseModel):
    status: ApplicationStatus
    step_index: int
    label: str
    terminal: bool


class WorkflowTransitionEntry(BaseModel):
    role: UserRole
    from_status: ApplicationStatus
    to_statuses: list[ApplicationStatus]


class WorkflowResponse(BaseModel):
    """Static description of the approval chain."""

    statuses: list[WorkflowStatusEntry]
    transitions: list[WorkflowTransitionEntry]
