"""Health check endpoint."""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from splity.api.dependencies import get_async_session
from splity.models.base import Base
from splity.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])

EXISTING_TABLES_QUERY = text(
    "SELECT table_name FROM information_schema.tables WHERE table_schema = current_schema()",
)


@router.get("/health", response_model=HealthResponse)
async def health_check(
    db: AsyncSession = Depends(get_async_session),
) -> HealthResponse:
    """Report whether the database answers and holds the Splity schema."""
    try:
        existing = set((await db.scalars(EXISTING_TABLES_QUERY)).all())
    except SQLAlchemyError:
        logger.exception("Database health check failed")
        await db.rollback()
        return HealthResponse(status="unavailable", database="unreachable")

    missing = sorted(set(Base.metadata.tables) - existing)
    if missing:
        logger.warning("Database schema incomplete, missing tables: %s", ", ".join(missing))
        return HealthResponse(status="degraded", database="connected", missing_tables=missing)
    return HealthResponse(status="ok", database="connected")
