# This project was developed with assistance from AI tools.
"""Document requirement schemas."""

from db.enums import DocumentType
from pydantic import BaseModel


class DocumentRequirement(BaseModel):
    """A single document slot with its fulfillment and validation state."""

    document_type: DocumentType
    name: str
    required: bool
    uploaded: bool = False
    document_id: int | None = None
    is_valid: bool | None = None
    validation_comments: str | None = None


class CompletenessResponse(BaseModel):
    """Document requirement summary for an application."""

    application_id: int
    is_complete: bool
    requirements: list[DocumentRequirement]
    uploaded_count: int
    required_count: int
    missing_required: list[DocumentType]
    invalid_documents: list[DocumentType]
