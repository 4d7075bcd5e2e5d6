# This project was developed with assistance from AI tools.
"""Workflow errors raised by the service layer.

Routes map these to RFC 7807 responses; see ``main.py``.
"""

from db.enums import ApplicationStatus, DocumentType


class WorkflowError(Exception):
    """Base class for workflow rule violations."""

    status_code = 400
    title = "Bad Request"


class ValidationFailed(WorkflowError, ValueError):
    """Request is malformed for the workflow (bad target, missing comment, unknown district)."""

    status_code = 422
    title = "Unprocessable Entity"


class ForbiddenTransition(WorkflowError):
    """The caller's role has no authority for this action in the current status."""

    status_code = 403
    title = "Forbidden"

    def __init__(self, message: str = "Action not permitted"):
        super().__init__(message)


class DocumentsIncomplete(WorkflowError):
    """A forward transition was attempted while required documents are missing."""

    status_code = 409
    title = "Conflict"

    def __init__(self, missing: list[DocumentType]):
        self.missing = list(missing)
        names = ", ".join(dt.value for dt in self.missing)
        super().__init__(f"Required documents missing: {names}")


class StaleState(WorkflowError):
    """The stored status no longer matches what the caller expected."""

    status_code = 409
    title = "Conflict"

    def __init__(self, expected: ApplicationStatus, actual: ApplicationStatus | None = None):
        self.expected = expected
        self.actual = actual
        if actual is None:
            message = f"Application is no longer in status {expected.value}; refetch and retry"
        else:
            message = (
                f"Application is in status {actual.value}, not {expected.value}; "
                "refetch and retry"
            )
        super().__init__(message)


class DownstreamDispatchFailed(Exception):
    """A downstream handoff (notification, certificate) could not be delivered.

    Never surfaces as an HTTP error; the effect is queued for retry.
    """

    def __init__(self, kind: str, reason: str):
        self.kind = kind
        self.reason = reason
        super().__init__(f"{kind} dispatch failed: {reason}")
