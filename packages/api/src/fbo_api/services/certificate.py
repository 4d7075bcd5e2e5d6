# This project was developed with assistance from AI tools.
"""Certificate issuance and rendering.

Issuance assigns the certificate number and registers it with the rendering
service. The number is derived from the application id and the approval
year, so repeating an issuance yields the same number.
"""

import logging
from datetime import UTC, datetime

import httpx
from db import Application, ApplicationComment, District
from db.enums import ApplicationStatus
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..core.config import settings
from ..schemas.public import CertificateVerification
from .audit import write_audit_event
from .errors import DownstreamDispatchFailed

logger = logging.getLogger(__name__)

SYSTEM_AUTHOR_ID = "system"
SYSTEM_AUTHOR_NAME = "FBO Portal"


def certificate_number_for(application_id: int, year: int) -> str:
    """``{prefix}-{year}-{id:06d}``, e.g. ``RGB-2026-000042``."""
    return f"{settings.CERTIFICATE_PREFIX}-{year}-{application_id:06d}"


def certificate_payload(app: Application, certificate_number: str, issued_at: datetime) -> dict:
    """Fields printed on the certificate and returned by public verification."""
    district = app.district
    province = district.province if district is not None else None
    return {
        "certificate_number": certificate_number,
        "organization_name": app.organization_name,
        "applicant_name": app.applicant.full_name if app.applicant else "",
        "issued_date": issued_at.isoformat(),
        "address": app.address,
        "district": district.name if district is not None else None,
        "province": province.name if province is not None else None,
    }


def _renderer_url(path: str) -> str:
    return f"{settings.CERTIFICATE_SERVICE_URL.rstrip('/')}{path}"


async def register_certificate(payload: dict) -> None:
    """Register a certificate with the rendering service, if one is configured."""
    if not settings.CERTIFICATE_SERVICE_URL:
        return
    try:
        async with httpx.AsyncClient(timeout=settings.DISPATCH_TIMEOUT_SECONDS) as client:
            response = await client.post(_renderer_url("/certificates"), json=payload)
            response.raise_for_status()
    except httpx.HTTPError as exc:
        raise DownstreamDispatchFailed("certificate", str(exc)) from exc


async def render_certificate(payload: dict) -> bytes:
    """Fetch the PDF for an issued certificate from the rendering service."""
    if not settings.CERTIFICATE_SERVICE_URL:
        raise DownstreamDispatchFailed("certificate", "certificate service not configured")
    try:
        async with httpx.AsyncClient(timeout=settings.DISPATCH_TIMEOUT_SECONDS) as client:
            response = await client.post(_renderer_url("/certificates/render"), json=payload)
            response.raise_for_status()
            return response.content
    except httpx.HTTPError as exc:
        raise DownstreamDispatchFailed("certificate", str(exc)) from exc


async def load_for_certificate(session: AsyncSession, application_id: int) -> Application | None:
    """Unscoped load with the relationships the certificate needs."""
    stmt = (
        select(Application)
        .options(
            selectinload(Application.applicant),
            selectinload(Application.district).selectinload(District.province),
        )
        .where(Application.id == application_id)
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def issue_certificate(
    session: AsyncSession,
    app: Application,
    *,
    now: datetime | None = None,
) -> str:
    """Issue the certificate for an APPROVED application and commit.

    Moves the application to CERTIFICATE_ISSUED. Already-issued applications
    return their existing number untouched.

    Raises:
        DownstreamDispatchFailed: the rendering service rejected the
            registration. Nothing is written in that case.
    """
    if app.status == ApplicationStatus.CERTIFICATE_ISSUED and app.certificate_number:
        return app.certificate_number
    if app.status != ApplicationStatus.APPROVED:
        raise DownstreamDispatchFailed(
            "certificate", f"application {app.id} is {app.status.value}, not APPROVED"
        )

    if now is None:
        now = datetime.now(UTC)
    number = certificate_number_for(app.id, now.year)
    await register_certificate(certificate_payload(app, number, now))

    result = await session.execute(
        update(Application)
        .where(Application.id == app.id, Application.status == ApplicationStatus.APPROVED)
        .values(
            status=ApplicationStatus.CERTIFICATE_ISSUED,
            certificate_number=number,
            certificate_issued_at=now,
            last_modified=now,
            status_changed_at=now,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        # Another worker issued it first
        return number

    app.status = ApplicationStatus.CERTIFICATE_ISSUED
    app.certificate_number = number
    app.certificate_issued_at = now
    app.last_modified = now
    app.status_changed_at = now
    session.add(
        ApplicationComment(
            application_id=app.id,
            author_id=SYSTEM_AUTHOR_ID,
            author_name=SYSTEM_AUTHOR_NAME,
            author_role=SYSTEM_AUTHOR_ID,
            content=f"Certificate {number} issued",
            from_status=ApplicationStatus.APPROVED,
            to_status=ApplicationStatus.CERTIFICATE_ISSUED,
        )
    )
    await write_audit_event(
        session,
        event_type="certificate_issued",
        user_id=SYSTEM_AUTHOR_ID,
        application_id=app.id,
        event_data={"certificate_number": number},
    )
    await session.commit()
    logger.info("Issued certificate %s for application %s", number, app.id)
    return number


async def verify_certificate(
    session: AsyncSession,
    certificate_number: str,
) -> CertificateVerification | None:
    """Public lookup. None when no issued certificate carries this number."""
    stmt = (
        select(Application)
        .options(
            selectinload(Application.applicant),
            selectinload(Application.district).selectinload(District.province),
        )
        .where(
            Application.certificate_number == certificate_number,
            Application.status == ApplicationStatus.CERTIFICATE_ISSUED,
        )
    )
    result = await session.execute(stmt)
    app = result.scalar_one_or_none()
    if app is None:
        return None
    district = app.district
    return CertificateVerification(
        certificate_number=app.certificate_number,
        organization_name=app.organization_name,
        applicant_name=app.applicant.full_name if app.applicant else "",
        issued_date=app.certificate_issued_at,
        address=app.address,
        district=district.name if district else None,
        province=district.province.name if district and district.province else None,
    )
