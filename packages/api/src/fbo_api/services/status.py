# This project was developed with assistance from AI tools.
"""Status registry: step indices, display info and progress rendering.

Pure functions over ``ApplicationStatus``; no database access.
"""

from db.enums import ApplicationStatus

from ..schemas.status import ProgressStep, StatusInfo

_STEP_INDICES = ApplicationStatus.step_indices()

# Titles of the linear progress steps, indexed by step number.
PROGRESS_STEPS: dict[int, str] = {
    1: "Application Submitted",
    2: "FBO Officer Review",
    3: "Division Manager Review",
    4: "HOD Review",
    5: "Secretary General Review",
    6: "CEO Approval",
    7: "Certificate Issued",
}

STATUS_INFO: dict[str, StatusInfo] = {
    ApplicationStatus.PENDING.value: StatusInfo(
        label="Pending",
        description="Your application has been received and is waiting for an FBO officer.",
        next_step="An FBO officer will pick up the application for review.",
    ),
    ApplicationStatus.FBO_REVIEW.value: StatusInfo(
        label="FBO Review",
        description="An FBO officer is reviewing the application and its documents.",
        next_step="The officer will forward it to the Division Manager or request changes.",
    ),
    ApplicationStatus.PASTOR_DOCUMENT.value: StatusInfo(
        label="Revision Requested",
        description="A reviewer has asked for corrected or additional documents.",
        next_step="Update the application or re-upload the requested documents.",
    ),
    ApplicationStatus.TRANSFER_TO_DM.value: StatusInfo(
        label="Transferred to Division Manager",
        description="The application has been forwarded to the Division Manager.",
        next_step="The Division Manager will begin review.",
    ),
    ApplicationStatus.DM_REVIEW.value: StatusInfo(
        label="Division Manager Review",
        description="The Division Manager is reviewing the application.",
        next_step="It will be forwarded to the Head of Department or returned for changes.",
    ),
    ApplicationStatus.TRANSFER_TO_HOD.value: StatusInfo(
        label="Transferred to HOD",
        description="The application has been forwarded to the Head of Department.",
        next_step="The Head of Department will begin review.",
    ),
    ApplicationStatus.HOD_REVIEW.value: StatusInfo(
        label="HOD Review",
        description="The Head of Department is reviewing the application.",
        next_step="It will be forwarded to the Secretary General or returned for changes.",
    ),
    ApplicationStatus.TRANSFER_TO_SG.value: StatusInfo(
        label="Transferred to Secretary General",
        description="The application has been forwarded to the Secretary General.",
        next_step="The Secretary General will begin review.",
    ),
    ApplicationStatus.SG_REVIEW.value: StatusInfo(
        label="Secretary General Review",
        description="The Secretary General is reviewing the application.",
        next_step="It will be forwarded to the CEO, returned for changes, or rejected.",
    ),
    ApplicationStatus.TRANSFER_TO_CEO.value: StatusInfo(
        label="Transferred to CEO",
        description="The application has been forwarded to the CEO for a final decision.",
        next_step="The CEO will begin review.",
    ),
    ApplicationStatus.CEO_REVIEW.value: StatusInfo(
        label="CEO Review",
        description="The CEO is making the final decision on the application.",
        next_step="The application will be approved or rejected.",
    ),
    ApplicationStatus.APPROVED.value: StatusInfo(
        label="Approved",
        description="The application has been approved.",
        next_step="The authorization certificate is being issued.",
    ),
    ApplicationStatus.REJECTED.value: StatusInfo(
        label="Rejected",
        description="The application was not approved.",
        next_step="Review the comments for the reasons. You may submit a new application.",
    ),
    ApplicationStatus.CERTIFICATE_ISSUED.value: StatusInfo(
        label="Certificate Issued",
        description="The authorization certificate has been issued.",
        next_step="Download the certificate. No further action required.",
    ),
}


def step_index_of(status) -> int:
    """Progress step (0-7) for a status. Unknown values map to 0."""
    try:
        return _STEP_INDICES[ApplicationStatus(status)]
    except (ValueError, TypeError):
        return 0


def is_rejected(status) -> bool:
    return status == ApplicationStatus.REJECTED


def status_info(status: ApplicationStatus) -> StatusInfo:
    return STATUS_INFO.get(
        status.value,
        StatusInfo(
            label=status.value.replace("_", " ").title(),
            description="Your application is being processed.",
            next_step="Contact the FBO office for details.",
        ),
    )


def build_progress(status: ApplicationStatus) -> list[ProgressStep]:
    """Render the seven-step chain for a status.

    Steps before the current one are completed. A rejected application shows
    only the submission step completed, plus an extra ``Application Rejected`` step.
    The submission step is always completed once an application exists, so
    PENDING shows step 2 as current and APPROVED shows step 7.
    """
    if is_rejected(status):
        steps = [
            ProgressStep(step=n, title=title, state="completed" if n == 1 else "pending")
            for n, title in PROGRESS_STEPS.items()
        ]
        steps.append(ProgressStep(step=0, title="Application Rejected", state="rejected"))
        return steps

    # The step being worked on is one past the last completed step.
    current = step_index_of(status) + 1
    steps = []
    for n, title in PROGRESS_STEPS.items():
        if n < current:
            state = "completed"
        elif n == current:
            state = "current"
        else:
            state = "pending"
        steps.append(ProgressStep(step=n, title=title, state=state))
    return steps
