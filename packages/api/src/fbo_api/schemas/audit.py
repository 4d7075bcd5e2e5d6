# This project was developed with assistance from AI tools.
"""Audit trail response schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class AuditEventItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    timestamp: datetime
    event_type: str
    user_id: str | None = None
    user_role: str | None = None
    application_id: int | None = None
    event_data: dict | None = None
    prev_hash: str | None = None


class AuditByApplicationResponse(BaseModel):
    application_id: int
    count: int
    events: list[AuditEventItem]


class AuditSearchResponse(BaseModel):
    count: int
    events: list[AuditEventItem]


class AuditChainVerifyResponse(BaseModel):
    """``status`` is OK or TAMPERED; ``first_break_id`` names the first bad link."""

    status: str
    events_checked: int
    first_break_id: int | None = None
