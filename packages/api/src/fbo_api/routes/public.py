# This project was developed with assistance from AI tools.
"""Public API routes -- no authentication required."""

from db import get_db
from db.enums import ApplicationStatus
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..schemas.public import CertificateVerification, ProvinceItem
from ..schemas.status import WorkflowResponse, WorkflowStatusEntry, WorkflowTransitionEntry
from ..services.certificate import verify_certificate
from ..services.reference import list_provinces
from ..services.status import status_info, step_index_of
from ..services.transitions import TRANSITION_MATRIX

router = APIRouter()


@router.get("/provinces", response_model=list[ProvinceItem])
async def provinces(session: AsyncSession = Depends(get_db)) -> list[ProvinceItem]:
    """Provinces with their districts, for the application form."""
    rows = await list_provinces(session)
    return [ProvinceItem.model_validate(p) for p in rows]


@router.get("/workflow", response_model=WorkflowResponse)
async def workflow() -> WorkflowResponse:
    """Describe the approval chain: statuses in order and who may move them where."""
    terminal = ApplicationStatus.terminal_statuses()
    statuses = [
        WorkflowStatusEntry(
            status=s,
            step_index=step_index_of(s),
            label=status_info(s).label,
            terminal=s in terminal,
        )
        for s in ApplicationStatus
    ]
    transitions = [
        WorkflowTransitionEntry(
            role=role,
            from_status=source,
            to_statuses=sorted(targets, key=step_index_of),
        )
        for role, by_status in TRANSITION_MATRIX.items()
        for source, targets in by_status.items()
    ]
    return WorkflowResponse(statuses=statuses, transitions=transitions)


@router.get("/certificates/{certificate_number}", response_model=CertificateVerification)
async def verify(
    certificate_number: str,
    session: AsyncSession = Depends(get_db),
) -> CertificateVerification:
    """Verify a certificate number printed on an issued certificate."""
    record = await verify_certificate(session, certificate_number.strip())
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Certificate not found",
        )
    return record
