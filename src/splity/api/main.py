"""FastAPI application factory."""
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from splity.api.cors import CORSHeadersMiddleware
from splity.api.errors import register_exception_handlers, unhandled_exception_handler
from splity.api.routers import expenses, health, parties, receipts, users
from splity.core.config import Settings, get_settings
from splity.core.jwks import JWKSCache
from splity.core.token_validator import TokenValidator
from splity.db.session import create_engine, create_session_factory
from splity.services.receipts import ReceiptAnalyzer
from splity.services.storage import ObjectStorage

logger = logging.getLogger(__name__)

HTTP_TIMEOUT_SECONDS = 10.0


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Build process-wide resources on startup and release them on shutdown."""
    settings: Settings = app.state.settings

    engine = create_engine(settings)
    http_client = httpx.AsyncClient(timeout=HTTP_TIMEOUT_SECONDS)

    app.state.session_factory = create_session_factory(engine)
    app.state.token_validator = TokenValidator(
        JWKSCache(http_client, ttl_seconds=settings.jwks_cache_ttl_seconds),
        issuer=settings.jwt_issuer,
        client_id=settings.cognito_client_id,
        leeway=settings.jwt_leeway_seconds,
    )
    app.state.object_storage = ObjectStorage(
        settings.aws_bucket_name, settings.aws_bucket_region,
    )
    app.state.receipt_analyzer = ReceiptAnalyzer(
        http_client,
        endpoint=settings.document_intelligence_endpoint,
        api_key=settings.document_intelligence_api_key,
    )
    logger.info("Splity API started (issuer %s)", settings.jwt_issuer)

    yield

    await http_client.aclose()
    await engine.dispose()


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Create the application.

    Run with ``uvicorn splity.api.main:create_app --factory``.
    """
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title="Splity API",
        description="Split bills between the members of a party.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings

    register_exception_handlers(app)
    app.add_middleware(
        CORSHeadersMiddleware,
        error_handler=unhandled_exception_handler,
        allowed_origins=settings.allowed_origins,
    )

    app.include_router(health.router)
    app.include_router(users.router)
    app.include_router(parties.router)
    app.include_router(receipts.router)
    app.include_router(expenses.router)
    return app
