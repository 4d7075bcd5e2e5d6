# This project was developed with assistance from AI tools.
"""Review comment schemas."""

from datetime import datetime

from db.enums import ApplicationStatus
from pydantic import BaseModel, ConfigDict, Field


class CommentCreate(BaseModel):
    content: str = Field(min_length=1, max_length=5000)


class CommentResponse(BaseModel):
    """Single immutable comment. Transition comments carry from/to status."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    application_id: int
    author_id: str
    author_name: str
    author_role: str
    content: str
    from_status: ApplicationStatus | None = None
    to_status: ApplicationStatus | None = None
    created_at: datetime


class CommentListResponse(BaseModel):
    application_id: int
    count: int
    data: list[CommentResponse]
