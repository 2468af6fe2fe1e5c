"""Response schemas shared by several routers."""
from datetime import UTC, datetime
from uuid import UUID

from pydantic import Field

from splity.schemas.base import ApiModel


class DeleteResponse(ApiModel):
    """Result of deleting a single resource."""

    success: bool
    message: str
    id: UUID
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))


class HealthResponse(ApiModel):
    """
    Service health.

    ``status`` is "ok" only when the database answers and every Splity table
    exists; "degraded" lists the tables a migration has not created yet.
    """

    status: str
    database: str
    missing_tables: list[str] = Field(default_factory=list)
