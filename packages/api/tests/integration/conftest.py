# This project was developed with assistance from AI tools.
"""Integration test fixtures -- a real AsyncSession on in-memory SQLite.

Each test gets a fresh schema built from the ORM metadata and a session
configured like the application's own (``expire_on_commit=False``), so ORM
lifecycle effects of commits and rollbacks are exercised for real. Postgres
specifics (the audit advisory lock, append-only triggers) are out of reach
here, so audit writes are patched out.
"""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio
from db import Applicant, Application, Base, District, Document, Province
from db.enums import ApplicationStatus
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from fbo_api.services.completeness import REQUIRED_DOCUMENT_TYPES

from ..factories import APPLICANT_USER_ID


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(engine):
    factory = async_sessionmaker(
        bind=engine, class_=AsyncSession, autoflush=False, expire_on_commit=False,
    )
    async with factory() as session:
        yield session


@pytest.fixture(autouse=True)
def _no_audit_writes():
    with (
        patch("fbo_api.services.application.write_audit_event", new_callable=AsyncMock),
        patch("fbo_api.services.certificate.write_audit_event", new_callable=AsyncMock),
    ):
        yield


@pytest.fixture(autouse=True)
def _no_delivery():
    with patch("fbo_api.services.dispatch.deliver", new_callable=AsyncMock) as deliver:
        yield deliver


@pytest_asyncio.fixture
async def applicant(db_session) -> Applicant:
    province = Province(name="Kigali City")
    district = District(name="Gasabo", province=province)
    applicant = Applicant(
        keycloak_user_id=APPLICANT_USER_ID,
        first_name="Grace",
        last_name="Uwase",
        email="grace@example.org",
    )
    db_session.add_all([province, district, applicant])
    await db_session.commit()
    return applicant


@pytest_asyncio.fixture
async def make_app(db_session, applicant):
    """Insert an application for ``applicant`` and return its id."""

    async def _make(
        status: ApplicationStatus,
        *,
        documents=REQUIRED_DOCUMENT_TYPES,
        risk_score: float = 0.0,
        days_in_stage: int = 0,
    ) -> int:
        district = (await db_session.execute(select(District))).scalar_one()
        changed = datetime.now(UTC) - timedelta(days=days_in_stage)
        app = Application(
            applicant_id=applicant.id,
            district_id=district.id,
            organization_name="Living Hope Fellowship",
            acronym="LHF",
            organization_email="office@livinghope.org",
            organization_phone="+250788123456",
            address="KG 11 Ave, Kigali",
            cluster_of_intervention="Education",
            source_of_fund="Member contributions",
            status=status,
            risk_score=risk_score,
            submitted_at=changed,
            last_modified=changed,
            status_changed_at=changed,
        )
        app.documents = [
            Document(
                document_type=doc_type,
                file_path=f"docs/{doc_type.value}.pdf",
                original_filename=f"{doc_type.value}.pdf",
                content_type="application/pdf",
                file_size=1024,
                uploaded_by=APPLICANT_USER_ID,
            )
            for doc_type in documents
        ]
        db_session.add(app)
        await db_session.commit()
        return app.id

    return _make
