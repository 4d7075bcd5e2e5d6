# This project was developed with assistance from AI tools.
"""Tests for the status registry: step indices, display info and progress steps."""

import pytest
from db.enums import ApplicationStatus

from fbo_api.services.status import (
    PROGRESS_STEPS,
    STATUS_INFO,
    build_progress,
    is_rejected,
    status_info,
    step_index_of,
)

# ---------------------------------------------------------------------------
# step_index_of
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "status,expected",
    [
        (ApplicationStatus.PENDING, 1),
        (ApplicationStatus.FBO_REVIEW, 1),
        (ApplicationStatus.PASTOR_DOCUMENT, 1),
        (ApplicationStatus.TRANSFER_TO_DM, 2),
        (ApplicationStatus.DM_REVIEW, 2),
        (ApplicationStatus.TRANSFER_TO_HOD, 3),
        (ApplicationStatus.HOD_REVIEW, 3),
        (ApplicationStatus.TRANSFER_TO_SG, 4),
        (ApplicationStatus.SG_REVIEW, 4),
        (ApplicationStatus.TRANSFER_TO_CEO, 5),
        (ApplicationStatus.CEO_REVIEW, 5),
        (ApplicationStatus.APPROVED, 6),
        (ApplicationStatus.CERTIFICATE_ISSUED, 7),
        (ApplicationStatus.REJECTED, 0),
    ],
)
def test_step_index_of(status, expected):
    assert step_index_of(status) == expected


def test_step_index_accepts_raw_strings():
    """Stored string values map the same as enum members."""
    assert step_index_of("HOD_REVIEW") == 3


@pytest.mark.parametrize("bogus", ["NOT_A_STATUS", "", None, 42])
def test_step_index_unknown_is_zero(bogus):
    """Unknown or malformed statuses map to 0 rather than raising."""
    assert step_index_of(bogus) == 0


def test_step_indices_never_decrease_along_chain():
    """The happy path is monotonically non-decreasing."""
    chain = [
        ApplicationStatus.PENDING,
        ApplicationStatus.FBO_REVIEW,
        ApplicationStatus.TRANSFER_TO_DM,
        ApplicationStatus.DM_REVIEW,
        ApplicationStatus.TRANSFER_TO_HOD,
        ApplicationStatus.HOD_REVIEW,
        ApplicationStatus.TRANSFER_TO_SG,
        ApplicationStatus.SG_REVIEW,
        ApplicationStatus.TRANSFER_TO_CEO,
        ApplicationStatus.CEO_REVIEW,
        ApplicationStatus.APPROVED,
        ApplicationStatus.CERTIFICATE_ISSUED,
    ]
    indices = [step_index_of(s) for s in chain]
    assert indices == sorted(indices)


# ---------------------------------------------------------------------------
# Display info
# ---------------------------------------------------------------------------


def test_every_status_has_info():
    for status in ApplicationStatus:
        assert status.value in STATUS_INFO, f"Missing STATUS_INFO for {status.value}"


def test_status_info_returns_entry():
    info = status_info(ApplicationStatus.PASTOR_DOCUMENT)
    assert info.label == "Revision Requested"
    assert info.next_step


def test_is_rejected():
    assert is_rejected(ApplicationStatus.REJECTED) is True
    assert is_rejected(ApplicationStatus.APPROVED) is False


# ---------------------------------------------------------------------------
# build_progress
# ---------------------------------------------------------------------------


def _states(steps):
    return {s.step: s.state for s in steps}


def test_progress_pending_marks_first_step_current():
    states = _states(build_progress(ApplicationStatus.PENDING))
    assert states[1] == "completed"
    assert states[2] == "current"
    assert all(states[i] == "pending" for i in range(3, 8))


def test_progress_hod_review():
    states = _states(build_progress(ApplicationStatus.HOD_REVIEW))
    assert [states[i] for i in (1, 2, 3)] == ["completed", "completed", "completed"]
    assert states[4] == "current"
    assert states[7] == "pending"


def test_progress_certificate_issued_all_completed():
    steps = build_progress(ApplicationStatus.CERTIFICATE_ISSUED)
    assert len(steps) == len(PROGRESS_STEPS)
    assert all(s.state == "completed" for s in steps)


def test_progress_rejected_adds_rejected_step():
    steps = build_progress(ApplicationStatus.REJECTED)
    states = _states(steps)
    assert states[0] == "rejected"
    assert states[1] == "completed"
    assert all(states[i] == "pending" for i in range(2, 8))
    assert any(s.title == "Application Rejected" for s in steps)
