# This project was developed with assistance from AI tools.
"""Fixtures for functional tests.

The real app from ``fbo_api.main`` is a module singleton. ``_clean_overrides``
ensures dependency_overrides are cleared after every test so persona
configuration from one test never leaks into the next.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from fbo_api.main import app as real_app
from fbo_api.schemas.auth import UserContext

from .mock_db import configure_app_for_persona


@pytest.fixture(autouse=True)
def _clean_overrides():
    """Clear app dependency overrides after each test."""
    yield
    real_app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def _no_outbound_delivery():
    """Notification delivery never leaves the process in functional tests."""
    with patch("fbo_api.services.dispatch.deliver", new_callable=AsyncMock) as deliver:
        yield deliver


@pytest.fixture
def app():
    """Return the real FastAPI app with all routers mounted."""
    return real_app


@pytest.fixture
def make_client(app):
    """Factory fixture: configure persona + mock DB, return TestClient."""

    def _make(user: UserContext | None, session: AsyncMock) -> TestClient:
        configure_app_for_persona(app, user, session)
        return TestClient(app)

    return _make


@pytest.fixture
def mock_storage():
    """Patch the document service's storage singleton."""
    storage = MagicMock()
    storage.build_object_key.return_value = "100/DISTRICT_CERTIFICATE/abc-cert.pdf"
    storage.upload_file = AsyncMock(return_value="100/DISTRICT_CERTIFICATE/abc-cert.pdf")
    storage.download_file = AsyncMock(return_value=b"%PDF-1.4 stored")
    storage.delete_file = AsyncMock()
    with patch("fbo_api.services.document.get_storage_service", return_value=storage):
        yield storage
