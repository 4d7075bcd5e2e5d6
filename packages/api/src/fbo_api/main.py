# This project was developed with assistance from AI tools.
"""FastAPI application entry point."""

import logging
import uuid
from http import HTTPStatus
from contextlib import asynccontextmanager

from db.database import db_service
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .admin import setup_admin
from .core.config import settings
from .routes import admin, applications, audit, documents, health, notifications, public
from .schemas.error import ErrorResponse
from .services.errors import DocumentsIncomplete, WorkflowError

logger = logging.getLogger(__name__)


def log_downstream_status() -> None:
    """Warn at startup about downstream services that are not configured."""
    if not settings.CERTIFICATE_SERVICE_URL:
        logger.warning(
            "CERTIFICATE_SERVICE_URL not set: certificates are numbered locally "
            "and PDF download is unavailable"
        )
    if not settings.NOTIFICATION_SERVICE_URL:
        logger.warning("NOTIFICATION_SERVICE_URL not set: notifications are in-app only")
    if settings.AUTH_DISABLED:
        logger.warning("AUTH_DISABLED=true: every request runs as an admin")


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Application startup/shutdown lifecycle."""
    from .services.storage import init_storage_service

    log_downstream_status()
    init_storage_service(settings)
    yield
    await db_service.close()


app = FastAPI(
    title="FBO Portal API",
    description="Authorization workflow for faith-based organizations",
    version=__version__,
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_HOSTS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)

# ---------------------------------------------------------------------------
# RFC 7807 problem responses
# ---------------------------------------------------------------------------


_TITLES: dict[int, str] = {
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    409: "Conflict",
    413: "Payload Too Large",
    422: "Unprocessable Entity",
    503: "Service Unavailable",
}


def _problem(request: Request, status_code: int, detail: str, **extra) -> JSONResponse:
    if status_code in _TITLES:
        title = _TITLES[status_code]
    else:
        try:
            title = HTTPStatus(status_code).phrase
        except ValueError:
            title = "Error"
    body = ErrorResponse(
        title=title,
        status=status_code,
        detail=detail,
        request_id=request.headers.get("x-request-id") or str(uuid.uuid4()),
        **extra,
    )
    return JSONResponse(status_code=status_code, content=body.model_dump())


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    response = _problem(request, exc.status_code, str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


@app.exception_handler(WorkflowError)
async def workflow_exception_handler(request: Request, exc: WorkflowError):
    """Workflow rule violations: 403 authority, 409 stale or incomplete, 422 malformed."""
    if isinstance(exc, DocumentsIncomplete):
        return _problem(
            request, exc.status_code, str(exc), missing_documents=[dt.value for dt in exc.missing],
        )
    return _problem(request, exc.status_code, str(exc))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return _problem(request, 422, str(exc.errors()))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _problem(request, 500, "An unexpected error occurred.")


_ROUTERS = (
    (health.router, "/health", "health"),
    (public.router, "/api/public", "public"),
    (applications.router, "/api/applications", "applications"),
    (documents.router, "/api", "documents"),
    (notifications.router, "/api/notifications", "notifications"),
    (audit.router, "/api/audit", "audit"),
    (admin.router, "/api/admin", "admin"),
)
for router, prefix, tag in _ROUTERS:
    app.include_router(router, prefix=prefix, tags=[tag])

# SQLAdmin dashboard at /admin
setup_admin(app)


@app.get("/")
async def root() -> dict[str, str]:
    return {"message": "Welcome to the FBO Portal API", "version": __version__}
