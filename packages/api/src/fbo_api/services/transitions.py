# This project was developed with assistance from AI tools.
"""Role-transition matrix for the approval chain.

Authority is data: ``TRANSITION_MATRIX[role][status]`` lists the statuses a
role may move an application to. Roles and statuses not listed have no
authority.
"""

from db.enums import ApplicationStatus, UserRole

from .status import step_index_of

_S = ApplicationStatus

TRANSITION_MATRIX: dict[UserRole, dict[ApplicationStatus, frozenset[ApplicationStatus]]] = {
    UserRole.FBO_OFFICER: {
        _S.PENDING: frozenset({_S.FBO_REVIEW, _S.TRANSFER_TO_DM, _S.PASTOR_DOCUMENT}),
        _S.FBO_REVIEW: frozenset({_S.TRANSFER_TO_DM, _S.PASTOR_DOCUMENT}),
        _S.PASTOR_DOCUMENT: frozenset({_S.FBO_REVIEW}),
    },
    UserRole.DIVISION_MANAGER: {
        _S.TRANSFER_TO_DM: frozenset({_S.DM_REVIEW}),
        _S.DM_REVIEW: frozenset({_S.TRANSFER_TO_HOD, _S.PASTOR_DOCUMENT}),
    },
    UserRole.HOD: {
        _S.TRANSFER_TO_HOD: frozenset({_S.HOD_REVIEW}),
        _S.HOD_REVIEW: frozenset({_S.TRANSFER_TO_SG, _S.PASTOR_DOCUMENT}),
    },
    UserRole.SECRETARY_GENERAL: {
        _S.TRANSFER_TO_SG: frozenset({_S.SG_REVIEW}),
        _S.SG_REVIEW: frozenset({_S.TRANSFER_TO_CEO, _S.PASTOR_DOCUMENT, _S.REJECTED}),
    },
    UserRole.CEO: {
        _S.TRANSFER_TO_CEO: frozenset({_S.CEO_REVIEW}),
        _S.CEO_REVIEW: frozenset({_S.APPROVED, _S.REJECTED}),
    },
}

# Reviewer who picks the application up after a hand-off.
NEXT_REVIEWER: dict[ApplicationStatus, UserRole] = {
    _S.TRANSFER_TO_DM: UserRole.DIVISION_MANAGER,
    _S.TRANSFER_TO_HOD: UserRole.HOD,
    _S.TRANSFER_TO_SG: UserRole.SECRETARY_GENERAL,
    _S.TRANSFER_TO_CEO: UserRole.CEO,
}

# Transitions that must explain themselves to the applicant.
COMMENT_REQUIRED: frozenset[ApplicationStatus] = frozenset({_S.PASTOR_DOCUMENT, _S.REJECTED})


def allowed_transitions(role, status) -> frozenset[ApplicationStatus]:
    """Statuses ``role`` may move an application in ``status`` to.

    Returns an empty set for any pair without authority, including values
    that are not valid roles or statuses.
    """
    try:
        role = UserRole(role)
        status = ApplicationStatus(status)
    except (ValueError, TypeError):
        return frozenset()
    return TRANSITION_MATRIX.get(role, {}).get(status, frozenset())


def is_forward(source: ApplicationStatus, target: ApplicationStatus) -> bool:
    """True when ``target`` advances the application along the linear chain."""
    if target == ApplicationStatus.REJECTED:
        return False
    return step_index_of(target) > step_index_of(source)


def can_edit(role: UserRole, status: ApplicationStatus) -> bool:
    """Whether a caller in ``role`` has anything to do with an application in ``status``."""
    if role == UserRole.APPLICANT:
        return status in ApplicationStatus.applicant_editable()
    return bool(allowed_transitions(role, status))


def actionable_statuses(role: UserRole) -> frozenset[ApplicationStatus]:
    """Statuses where ``role`` holds some authority (its review queue)."""
    return frozenset(TRANSITION_MATRIX.get(role, {}).keys())


def autogenerated_comment(source: ApplicationStatus, target: ApplicationStatus) -> str:
    return f"Status changed from {source.value} to {target.value}"
