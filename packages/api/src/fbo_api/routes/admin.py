# This project was developed with assistance from AI tools.
"""Admin endpoints for reference data seeding and the dispatch outbox."""

from db import get_db
from db.enums import DispatchStatus, UserRole
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..middleware.auth import require_roles
from ..schemas.dispatch import DispatchItem, DispatchListResponse, DispatchRetryResponse
from ..services.dispatch import list_dispatches, retry_pending_dispatches
from ..services.reference import seed_reference_data

router = APIRouter()


@router.post(
    "/seed",
    dependencies=[Depends(require_roles(UserRole.ADMIN))],
)
async def seed_reference(session: AsyncSession = Depends(get_db)) -> dict:
    """Insert any missing provinces and districts."""
    return await seed_reference_data(session)


@router.get(
    "/dispatches",
    response_model=DispatchListResponse,
    dependencies=[Depends(require_roles(UserRole.ADMIN))],
)
async def get_dispatches(
    status: DispatchStatus | None = Query(default=None),
    limit: int = Query(default=100, ge=1, le=1000),
    session: AsyncSession = Depends(get_db),
) -> DispatchListResponse:
    """Queued downstream effects, oldest first."""
    rows = await list_dispatches(session, status=status, limit=limit)
    return DispatchListResponse(
        count=len(rows),
        data=[DispatchItem.model_validate(r) for r in rows],
    )


@router.post(
    "/dispatches/retry",
    response_model=DispatchRetryResponse,
    dependencies=[Depends(require_roles(UserRole.ADMIN))],
)
async def retry_dispatches(
    limit: int = Query(default=100, ge=1, le=1000),
    session: AsyncSession = Depends(get_db),
) -> DispatchRetryResponse:
    """Replay pending notification and certificate dispatches once each."""
    summary = await retry_pending_dispatches(session, limit=limit)
    return DispatchRetryResponse(**summary)
