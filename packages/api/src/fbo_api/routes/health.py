# This project was developed with assistance from AI tools.
"""Liveness and database connectivity checks."""

from db import DatabaseService, get_db_service
from fastapi import APIRouter, Depends
from pydantic import BaseModel

from .. import __version__

router = APIRouter()


class HealthItem(BaseModel):
    name: str
    status: str
    message: str
    version: str | None = None


@router.get("/", response_model=list[HealthItem])
async def health(db_service: DatabaseService = Depends(get_db_service)) -> list[HealthItem]:
    """Report API and database health. Always 200; check each item's status."""
    db_health = await db_service.health_check()
    return [
        HealthItem(name="API", status="healthy", message="FBO Portal API is running", version=__version__),
        HealthItem(name="Database", status=db_health["status"], message=db_health["message"]),
    ]
