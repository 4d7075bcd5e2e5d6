# This project was developed with assistance from AI tools.
"""Risk score schemas for review queue prioritization."""

import enum

from pydantic import BaseModel


class RiskLevel(str, enum.Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class RiskAssessment(BaseModel):
    """Risk assessment for a single application."""

    application_id: int
    score: float
    level: RiskLevel
    factors: list[str]
    missing_required_count: int
    invalid_document_count: int
    prior_rejection_count: int
    days_in_stage: int
    expected_stage_days: int
