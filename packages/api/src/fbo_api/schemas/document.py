# This project was developed with assistance from AI tools.
"""Document request/response schemas."""

from datetime import datetime

from db.enums import DocumentType
from pydantic import BaseModel, ConfigDict, Field


class DocumentResponse(BaseModel):
    """Document metadata response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    application_id: int
    document_type: DocumentType
    original_filename: str | None = None
    content_type: str | None = None
    file_size: int | None = None
    is_valid: bool | None = None
    validation_comments: str | None = None
    validated_by: str | None = None
    validated_at: datetime | None = None
    uploaded_by: str | None = None
    created_at: datetime
    updated_at: datetime


class DocumentListResponse(BaseModel):
    """All documents attached to an application."""

    data: list[DocumentResponse]
    count: int


class DocumentValidationRequest(BaseModel):
    """Reviewer verdict on a single document."""

    is_valid: bool
    comments: str | None = Field(default=None, max_length=2000)
