# This project was developed with assistance from AI tools.
"""Append-only, hash-chained audit trail.

Every workflow action (submission, edits, uploads, validations, transitions,
certificate issuance) writes one ``AuditEvent``. Each row stores the digest of
its predecessor in ``prev_hash``; the first row stores ``"genesis"``. Inserts
are serialized with a transaction-scoped advisory lock so the chain never
forks, and database triggers refuse UPDATE and DELETE on the table.
"""

import hashlib
import json
import logging
from datetime import UTC, datetime, timedelta

from db import AuditEvent
from sqlalchemy import select, text
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

GENESIS = "genesis"
AUDIT_LOCK_KEY = 910_001


def event_digest(event: AuditEvent) -> str:
    """SHA-256 over the fields a tamperer would want to change."""
    record = {
        "id": event.id,
        "timestamp": str(event.timestamp),
        "event_type": event.event_type,
        "application_id": event.application_id,
        "user_id": event.user_id,
        "event_data": event.event_data,
    }
    canonical = json.dumps(record, sort_keys=True, default=str, separators=(",", ":"))
    return hashlib.sha256(canonical.encode()).hexdigest()


async def write_audit_event(
    session: AsyncSession,
    *,
    event_type: str,
    user_id: str | None = None,
    user_role: str | None = None,
    application_id: int | None = None,
    event_data: dict | None = None,
) -> AuditEvent:
    """Append one event linked to the current chain head. The caller commits."""
    await session.execute(text(f"SELECT pg_advisory_xact_lock({AUDIT_LOCK_KEY})"))

    head = (
        await session.execute(select(AuditEvent).order_by(AuditEvent.id.desc()).limit(1))
    ).scalar_one_or_none()

    event = AuditEvent(
        event_type=event_type,
        user_id=user_id,
        user_role=user_role,
        application_id=application_id,
        event_data=event_data,
        prev_hash=event_digest(head) if head is not None else GENESIS,
    )
    session.add(event)
    await session.flush()
    return event


async def verify_audit_chain(session: AsyncSession) -> dict:
    """Walk the chain oldest first and report the first row whose link is wrong."""
    result = await session.execute(select(AuditEvent).order_by(AuditEvent.id.asc()))
    events = list(result.scalars().all())

    expected = GENESIS
    for checked, event in enumerate(events, start=1):
        if event.prev_hash != expected:
            logger.error("Audit chain broken at event %s", event.id)
            return {"status": "TAMPERED", "first_break_id": event.id, "events_checked": checked}
        expected = event_digest(event)

    return {"status": "OK", "events_checked": len(events)}


async def get_events_by_application(session: AsyncSession, application_id: int) -> list[AuditEvent]:
    stmt = (
        select(AuditEvent)
        .where(AuditEvent.application_id == application_id)
        .order_by(AuditEvent.timestamp.asc(), AuditEvent.id.asc())
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def search_events(
    session: AsyncSession,
    *,
    days: int | None = None,
    event_type: str | None = None,
    user_id: str | None = None,
    limit: int = 500,
) -> list[AuditEvent]:
    """Newest first, optionally limited to the last ``days`` days, one event type or one actor."""
    stmt = select(AuditEvent)
    if days is not None:
        stmt = stmt.where(AuditEvent.timestamp >= datetime.now(UTC) - timedelta(days=days))
    if event_type:
        stmt = stmt.where(AuditEvent.event_type == event_type)
    if user_id:
        stmt = stmt.where(AuditEvent.user_id == user_id)
    stmt = stmt.order_by(AuditEvent.timestamp.desc(), AuditEvent.id.desc()).limit(limit)
    result = await session.execute(stmt)
    return list(result.scalars().all())
