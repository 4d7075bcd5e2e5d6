# This project was developed with assistance from AI tools.
"""In-app notification inbox for the current user."""

from db import get_db
from db.enums import UserRole
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..middleware.auth import CurrentUser, require_roles
from ..schemas.notification import NotificationItem, NotificationListResponse
from ..services.notification import list_notifications, mark_read

router = APIRouter()


def _item(row, is_read: bool) -> NotificationItem:
    return NotificationItem(
        id=row.id,
        application_id=row.application_id,
        notification_type=row.notification_type,
        title=row.title,
        message=row.message,
        is_read=is_read,
        created_at=row.created_at,
    )


@router.get(
    "/",
    response_model=NotificationListResponse,
    dependencies=[Depends(require_roles(*UserRole))],
)
async def inbox(
    user: CurrentUser,
    unread_only: bool = Query(default=False),
    limit: int = Query(default=50, ge=1, le=200),
    session: AsyncSession = Depends(get_db),
) -> NotificationListResponse:
    """Notifications addressed to the caller or to the caller's role, newest first."""
    rows = await list_notifications(session, user, unread_only=unread_only, limit=limit)
    return NotificationListResponse(
        count=len(rows),
        data=[_item(row, is_read) for row, is_read in rows],
    )


@router.post(
    "/{notification_id}/read",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_roles(*UserRole))],
)
async def read(
    notification_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> None:
    if not await mark_read(session, user, notification_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Notification not found",
        )
