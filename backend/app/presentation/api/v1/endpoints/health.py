"""Health check endpoint — no service dependencies, always available."""

import logging

from fastapi import APIRouter
from sqlalchemy import text

from app.config import get_settings
from app.infrastructure.database.session import engine

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check() -> dict:
    """Returns the current application health status and database reachability."""
    settings = get_settings()
    database = "ok"
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as exc:
        logger.warning("Health check could not reach the database: %s", exc)
        database = "unavailable"
    return {
        "status": "healthy",
        "version": settings.app_version,
        "environment": settings.app_env,
        "database": database,
    }
