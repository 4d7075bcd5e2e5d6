# This project was developed with assistance from AI tools.
"""Tests for risk scoring, buckets and the stored-score SQL filter."""

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from db.enums import ApplicationStatus, UserRole
from sqlalchemy.dialects import postgresql

from fbo_api.schemas.auth import DataScope, UserContext
from fbo_api.schemas.risk import RiskLevel
from fbo_api.services.risk import (
    EXPECTED_STATUS_DAYS,
    assess,
    get_risk_score,
    refresh_overdue_scores,
    refresh_risk_score,
    risk_level,
    risk_level_clause,
    score_risk,
)
from tests.factories import NOW, make_application, required_documents

# ---------------------------------------------------------------------------
# Buckets
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "score,level",
    [
        (0.0, RiskLevel.LOW),
        (39.9, RiskLevel.LOW),
        (40.0, RiskLevel.MEDIUM),
        (70.0, RiskLevel.MEDIUM),
        (70.1, RiskLevel.HIGH),
        (100.0, RiskLevel.HIGH),
    ],
)
def test_risk_level_boundaries(score, level):
    assert risk_level(score) == level


def test_risk_level_clause_compiles():
    sql = str(
        risk_level_clause(RiskLevel.MEDIUM).compile(
            dialect=postgresql.dialect(), compile_kwargs={"literal_binds": True}
        )
    )
    assert "risk_score >= 40.0" in sql
    assert "risk_score <= 70.0" in sql


# ---------------------------------------------------------------------------
# score_risk
# ---------------------------------------------------------------------------


def test_clean_application_scores_zero():
    score, factors = score_risk(
        missing_required=0, required_count=7, invalid_count=0, prior_rejections=0, days_overdue=0,
    )
    assert score == 0.0
    assert factors == []


def test_all_documents_missing_is_forty():
    score, factors = score_risk(
        missing_required=7, required_count=7, invalid_count=0, prior_rejections=0, days_overdue=0,
    )
    assert score == 40.0
    assert "7 of 7 required documents missing" in factors


def test_each_contribution_is_capped():
    score, factors = score_risk(
        missing_required=7, required_count=7, invalid_count=5, prior_rejections=9, days_overdue=60,
    )
    # 40 + 20 + 20 + 20
    assert score == 100.0
    assert len(factors) == 4


def test_partial_contributions_round_to_one_decimal():
    score, _ = score_risk(
        missing_required=1, required_count=7, invalid_count=1, prior_rejections=0, days_overdue=3,
    )
    # 40/7 + 10 + 6
    assert score == 21.7


def test_negative_overdue_ignored():
    score, factors = score_risk(
        missing_required=0, required_count=7, invalid_count=0, prior_rejections=0, days_overdue=-4,
    )
    assert score == 0.0
    assert factors == []


# ---------------------------------------------------------------------------
# assess
# ---------------------------------------------------------------------------


def test_assess_new_application_without_documents():
    app = make_application(ApplicationStatus.PENDING)
    result = assess(app, [], 0, now=NOW)
    assert result.score == 40.0
    assert result.level == RiskLevel.MEDIUM
    assert result.missing_required_count == 7
    assert result.days_in_stage == 0


def test_assess_overdue_in_stage():
    app = make_application(
        ApplicationStatus.DM_REVIEW,
        status_changed_at=NOW - timedelta(days=EXPECTED_STATUS_DAYS[ApplicationStatus.DM_REVIEW] + 5),
    )
    result = assess(app, required_documents(), 0, now=NOW)
    assert result.score == 10.0
    assert result.expected_stage_days == 7
    assert any("Overdue" in f for f in result.factors)


def test_assess_terminal_status_never_overdue():
    app = make_application(
        ApplicationStatus.REJECTED, status_changed_at=NOW - timedelta(days=400),
    )
    result = assess(app, required_documents(), 0, now=NOW)
    assert result.expected_stage_days == 0
    assert result.score == 0.0


def test_assess_naive_timestamps_treated_as_utc():
    app = make_application(
        ApplicationStatus.FBO_REVIEW,
        status_changed_at=(NOW - timedelta(days=10)).replace(tzinfo=None),
    )
    result = assess(app, required_documents(), 0, now=NOW)
    assert result.days_in_stage == 10


def test_assess_prior_rejections_and_invalid_docs():
    docs = required_documents()
    docs[0].is_valid = False
    app = make_application(ApplicationStatus.FBO_REVIEW, documents=docs)
    result = assess(app, docs, 2, now=NOW)
    assert result.prior_rejection_count == 2
    assert result.invalid_document_count == 1
    assert result.score == 30.0


# ---------------------------------------------------------------------------
# DB-backed helpers
# ---------------------------------------------------------------------------


def _reviewer() -> UserContext:
    return UserContext(
        user_id="hod-1",
        role=UserRole.HOD,
        email="hod@rgb.rw",
        name="HOD",
        data_scope=DataScope(min_step=3),
    )


async def test_refresh_risk_score_stores_on_application():
    app = make_application(ApplicationStatus.FBO_REVIEW)
    session = AsyncMock()
    docs_result = MagicMock()
    docs_result.scalars.return_value.all.return_value = []
    prior_result = MagicMock()
    prior_result.scalar.return_value = 1
    session.execute = AsyncMock(side_effect=[docs_result, prior_result])

    score = await refresh_risk_score(session, app)
    assert app.risk_score == score
    assert score >= 50.0


async def test_get_risk_score_out_of_scope_returns_none():
    session = AsyncMock()
    result = MagicMock()
    result.unique.return_value.scalar_one_or_none.return_value = None
    session.execute = AsyncMock(return_value=result)

    assert await get_risk_score(session, _reviewer(), 100) is None


def _overdue_session(apps, rejections):
    session = AsyncMock()
    apps_result = MagicMock()
    apps_result.unique.return_value.scalars.return_value.all.return_value = apps
    rejections_result = MagicMock()
    rejections_result.all.return_value = rejections
    session.execute = AsyncMock(side_effect=[apps_result, rejections_result])
    return session


async def test_refresh_overdue_scores_updates_stale_score():
    # Scored 10.0 on entering DM_REVIEW; 30 days in a 7-day stage adds the 20-point cap.
    app = make_application(
        ApplicationStatus.DM_REVIEW,
        documents=required_documents(),
        risk_score=10.0,
        status_changed_at=NOW - timedelta(days=30),
    )
    session = _overdue_session([app], [(app.applicant_id, 1)])

    changed = await refresh_overdue_scores(session, _reviewer(), now=NOW)

    assert changed == 1
    assert app.risk_score == 30.0
    session.commit.assert_awaited_once()


async def test_refresh_overdue_scores_leaves_current_scores_alone():
    app = make_application(
        ApplicationStatus.DM_REVIEW,
        documents=required_documents(),
        risk_score=20.0,
        status_changed_at=NOW - timedelta(days=30),
    )
    session = _overdue_session([app], [])

    assert await refresh_overdue_scores(session, now=NOW) == 0
    assert app.risk_score == 20.0
    session.commit.assert_not_awaited()


async def test_refresh_overdue_scores_nothing_overdue():
    session = AsyncMock()
    result = MagicMock()
    result.unique.return_value.scalars.return_value.all.return_value = []
    session.execute = AsyncMock(return_value=result)

    assert await refresh_overdue_scores(session, _reviewer(), now=NOW) == 0
    session.execute.assert_awaited_once()
    session.commit.assert_not_awaited()
