# This project was developed with assistance from AI tools.
"""Downstream dispatch (outbox) schemas."""

from datetime import datetime

from db.enums import DispatchKind, DispatchStatus
from pydantic import BaseModel, ConfigDict


class DispatchItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    kind: DispatchKind
    application_id: int
    status: DispatchStatus
    attempts: int
    last_error: str | None = None
    created_at: datetime
    updated_at: datetime


class DispatchListResponse(BaseModel):
    count: int
    data: list[DispatchItem]


class DispatchRetryResponse(BaseModel):
    """Outcome of one retry sweep over pending dispatches."""

    attempted: int
    delivered: int
    still_pending: int
    failed: int
