# This project was developed with assistance from AI tools.
"""Read-only audit trail endpoints for the CEO and administrators."""

from db import get_db
from db.enums import UserRole
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..middleware.auth import require_roles
from ..schemas.audit import (
    AuditByApplicationResponse,
    AuditChainVerifyResponse,
    AuditEventItem,
    AuditSearchResponse,
)
from ..services.audit import get_events_by_application, search_events, verify_audit_chain

router = APIRouter()

_LEADERSHIP = (UserRole.ADMIN, UserRole.CEO)


@router.get(
    "/application/{application_id}",
    response_model=AuditByApplicationResponse,
    dependencies=[Depends(require_roles(*_LEADERSHIP))],
)
async def audit_by_application(
    application_id: int,
    session: AsyncSession = Depends(get_db),
) -> AuditByApplicationResponse:
    """Everything that happened to one application, oldest first."""
    events = [AuditEventItem.model_validate(e) for e in await get_events_by_application(session, application_id)]
    return AuditByApplicationResponse(application_id=application_id, count=len(events), events=events)


@router.get(
    "/search",
    response_model=AuditSearchResponse,
    dependencies=[Depends(require_roles(*_LEADERSHIP))],
)
async def audit_search(
    days: int | None = Query(default=None, ge=1, le=3650),
    event_type: str | None = Query(default=None, max_length=100),
    user_id: str | None = Query(default=None, max_length=255),
    limit: int = Query(default=500, ge=1, le=5000),
    session: AsyncSession = Depends(get_db),
) -> AuditSearchResponse:
    rows = await search_events(
        session, days=days, event_type=event_type, user_id=user_id, limit=limit,
    )
    events = [AuditEventItem.model_validate(e) for e in rows]
    return AuditSearchResponse(count=len(events), events=events)


@router.get(
    "/verify",
    response_model=AuditChainVerifyResponse,
    dependencies=[Depends(require_roles(UserRole.ADMIN))],
)
async def audit_verify(session: AsyncSession = Depends(get_db)) -> AuditChainVerifyResponse:
    """Recompute the hash chain and report the first broken link, if any."""
    return AuditChainVerifyResponse(**await verify_audit_chain(session))
