# This project was developed with assistance from AI tools.
"""Async engine, session factory and FastAPI session dependency."""

import logging
from collections.abc import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from .config import db_settings

logger = logging.getLogger(__name__)

Base = declarative_base()

engine = create_async_engine(
    db_settings.DATABASE_URL,
    echo=db_settings.SQL_ECHO,
    pool_size=db_settings.POOL_SIZE,
    max_overflow=db_settings.MAX_OVERFLOW,
    pool_pre_ping=True,
)

SessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    autoflush=False,
    expire_on_commit=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield a session for the duration of one request."""
    async with SessionLocal() as session:
        yield session


class DatabaseService:
    """Connection-level operations that don't belong to a request session."""

    def __init__(self, engine: AsyncEngine):
        self._engine = engine

    async def health_check(self) -> dict:
        """Run ``SELECT version()`` and report the server banner."""
        try:
            async with self._engine.connect() as conn:
                result = await conn.execute(text("SELECT version()"))
                version = result.scalar() or ""
        except Exception as exc:
            logger.warning("Database health check failed: %s", exc)
            return {"status": "unhealthy", "message": str(exc)}
        banner = version.split(" on ")[0] if version else "PostgreSQL"
        return {"status": "healthy", "message": f"Connected to {banner}"}

    async def close(self) -> None:
        await self._engine.dispose()


db_service = DatabaseService(engine=engine)


async def get_db_service() -> DatabaseService:
    return db_service
