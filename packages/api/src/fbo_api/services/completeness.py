# This project was developed with assistance from AI tools.
"""Document gate.

Lists the document slots every FBO application carries, compares them against
uploaded documents, and reports which required slots are still missing. The
transition executor consults :func:`evaluate_documents` before any forward
move.
"""

import logging

from db import Application, Document
from db.enums import DocumentType
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..schemas.auth import UserContext
from ..schemas.completeness import CompletenessResponse, DocumentRequirement
from .scope import apply_data_scope

logger = logging.getLogger(__name__)

# (display name, required) per document slot, in display order.
DOCUMENT_REQUIREMENTS: dict[DocumentType, tuple[str, bool]] = {
    DocumentType.ORGANIZATION_COMMITTEE_NAMES_CVS: ("Names and CVs of Organization Committee", True),
    DocumentType.DISTRICT_CERTIFICATE: ("District Certificate", True),
    DocumentType.LAND_UPI_PHOTOS: ("Land UPI and Photos of the Church", True),
    DocumentType.ORGANIZATIONAL_DOCTRINE: ("Organizational Doctrine", True),
    DocumentType.ANNUAL_ACTION_PLAN: ("Annual Action Plan", True),
    DocumentType.PROOF_OF_PAYMENT: ("Proof of Payment", True),
    DocumentType.PARTNERSHIP_DOCUMENT: ("Partnership Document", False),
    DocumentType.PASTOR_DOCUMENT: ("Pastor Document (CV, Ordination Letter, etc.)", True),
}

REQUIRED_DOCUMENT_TYPES: list[DocumentType] = [
    dt for dt, (_, required) in DOCUMENT_REQUIREMENTS.items() if required
]


def document_label(doc_type: DocumentType) -> str:
    return DOCUMENT_REQUIREMENTS.get(doc_type, (doc_type.value, False))[0]


def evaluate_documents(
    application_id: int,
    documents,
    *,
    block_on_invalid: bool = False,
) -> CompletenessResponse:
    """Evaluate uploaded documents against the requirement list.

    A slot is satisfied once a document of that type is uploaded. Validity is
    reported but only counts against completeness when ``block_on_invalid``
    is set, in which case a document marked invalid is treated as missing.
    """
    # One document per type (re-uploads replace in place)
    by_type: dict[DocumentType, Document] = {doc.document_type: doc for doc in documents}

    requirements: list[DocumentRequirement] = []
    missing: list[DocumentType] = []
    invalid: list[DocumentType] = []
    uploaded_count = 0
    for doc_type, (name, required) in DOCUMENT_REQUIREMENTS.items():
        doc = by_type.get(doc_type)
        if doc is None:
            requirements.append(
                DocumentRequirement(document_type=doc_type, name=name, required=required)
            )
            if required:
                missing.append(doc_type)
            continue

        uploaded_count += 1
        requirements.append(
            DocumentRequirement(
                document_type=doc_type,
                name=name,
                required=required,
                uploaded=True,
                document_id=doc.id,
                is_valid=doc.is_valid,
                validation_comments=doc.validation_comments,
            )
        )
        if doc.is_valid is False:
            invalid.append(doc_type)
            if required and block_on_invalid:
                missing.append(doc_type)

    return CompletenessResponse(
        application_id=application_id,
        is_complete=not missing,
        requirements=requirements,
        uploaded_count=uploaded_count,
        required_count=len(REQUIRED_DOCUMENT_TYPES),
        missing_required=missing,
        invalid_documents=invalid,
    )


async def check_completeness(
    session: AsyncSession,
    user: UserContext,
    application_id: int,
    *,
    block_on_invalid: bool = False,
) -> CompletenessResponse | None:
    """Evaluate document requirements for an application.

    Returns None if the application is not found or not accessible.
    """
    app_stmt = select(Application.id).where(Application.id == application_id)
    app_stmt = apply_data_scope(app_stmt, user.data_scope, user)
    result = await session.execute(app_stmt)
    if result.scalar_one_or_none() is None:
        return None

    doc_result = await session.execute(
        select(Document).where(Document.application_id == application_id)
    )
    documents = doc_result.scalars().all()
    return evaluate_documents(application_id, documents, block_on_invalid=block_on_invalid)
