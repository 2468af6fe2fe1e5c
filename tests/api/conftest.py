"""Shared fixtures for API tests."""
from collections.abc import AsyncGenerator, Callable
from unittest.mock import create_autospec

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from splity.api.dependencies import (
    get_async_session,
    get_object_storage,
    get_receipt_analyzer,
    get_token_validator,
)
from splity.api.main import create_app
from splity.core.config import Settings
from splity.core.token_validator import TokenValidator
from splity.services.receipts import ReceiptAnalyzer
from splity.services.storage import ObjectStorage


@pytest.fixture
def settings(database_url: str) -> Settings:
    """Settings for the test issuer and database."""
    return Settings(
        database_url=database_url,
        jwt_issuer_override="https://cognito-idp.eu-west-2.amazonaws.com/eu-west-2_SplityTest",
        cognito_client_id="splity-test-client",
        aws_bucket_name="splity-test-bucket",
        aws_bucket_region="eu-west-2",
    )


@pytest.fixture
def app(settings: Settings) -> FastAPI:
    return create_app(settings)


@pytest.fixture
def object_storage() -> ObjectStorage:
    """Storage double; uploads return a fixed URL."""
    storage = create_autospec(ObjectStorage, instance=True)
    storage.upload.return_value = (
        "https://splity-test-bucket.s3.eu-west-2.amazonaws.com/splity_1_receipt.jpg"
    )
    return storage


@pytest.fixture
def receipt_analyzer() -> ReceiptAnalyzer:
    """OCR double; configure ``analyze`` per test."""
    return create_autospec(ReceiptAnalyzer, instance=True)


@pytest.fixture
async def client(
    app: FastAPI,
    db_session: AsyncSession,
    token_validator: TokenValidator,
    object_storage: ObjectStorage,
    receipt_analyzer: ReceiptAnalyzer,
) -> AsyncGenerator[AsyncClient]:
    """Create a test client with database, auth and external service overrides."""

    async def override_get_async_session() -> AsyncGenerator[AsyncSession]:
        yield db_session

    app.dependency_overrides[get_async_session] = override_get_async_session
    app.dependency_overrides[get_token_validator] = lambda: token_validator
    app.dependency_overrides[get_object_storage] = lambda: object_storage
    app.dependency_overrides[get_receipt_analyzer] = lambda: receipt_analyzer

    # Unhandled errors must come back as 500 responses instead of being re-raised
    async with AsyncClient(
        transport=ASGITransport(app=app, raise_app_exceptions=False),
        base_url="http://test",
    ) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(make_token: Callable[..., str]) -> dict[str, str]:
    """Bearer headers for Ada, provisioned on first use."""
    return {"Authorization": f"Bearer {make_token()}"}


@pytest.fixture
def other_auth_headers(make_token: Callable[..., str]) -> dict[str, str]:
    """Bearer headers for a second identity."""
    token = make_token(sub="9b7e-sub-ben", email="ben@example.com", name="Ben Bitdiddle")
    return {"Authorization": f"Bearer {token}"}
