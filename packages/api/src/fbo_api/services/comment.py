# This project was developed with assistance from AI tools.
"""Append-only review comments.

Comments double as the application's human-readable audit trail: status
transitions add a comment carrying the from/to status, and free-form review
notes add one without. Nothing here updates or deletes a comment.
"""

import logging

from db import Application, ApplicationComment
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..schemas.auth import UserContext
from .audit import write_audit_event
from .scope import apply_data_scope

logger = logging.getLogger(__name__)


async def _visible(session: AsyncSession, user: UserContext, application_id: int) -> bool:
    stmt = select(Application.id).where(Application.id == application_id)
    stmt = apply_data_scope(stmt, user.data_scope, user)
    result = await session.execute(stmt)
    return result.scalar_one_or_none() is not None


async def list_audit_entries(
    session: AsyncSession,
    user: UserContext,
    application_id: int,
) -> list[ApplicationComment] | None:
    """Comments for an application in creation order.

    Returns None if the application is not found or not accessible.
    """
    if not await _visible(session, user, application_id):
        return None
    stmt = (
        select(ApplicationComment)
        .where(ApplicationComment.application_id == application_id)
        .order_by(ApplicationComment.created_at.asc(), ApplicationComment.id.asc())
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def add_comment(
    session: AsyncSession,
    user: UserContext,
    application_id: int,
    content: str,
) -> ApplicationComment | None:
    """Append a free-form comment. Any caller who can see the application may comment.

    Returns None if the application is not found or not accessible.
    """
    if not await _visible(session, user, application_id):
        return None

    comment = ApplicationComment(
        application_id=application_id,
        author_id=user.user_id,
        author_name=user.name,
        author_role=user.role.value,
        content=content.strip(),
    )
    session.add(comment)
    await session.flush()
    await write_audit_event(
        session,
        event_type="comment_added",
        user_id=user.user_id,
        user_role=user.role.value,
        application_id=application_id,
        event_data={"comment_id": comment.id},
    )
    await session.commit()
    await session.refresh(comment)
    return comment
