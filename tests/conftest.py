"""Pytest fixtures for testing."""
import json
import os
from collections.abc import AsyncGenerator, Callable, Generator
from datetime import UTC, datetime, timedelta
from typing import Any

import httpx
import jwt
import pytest
import respx
from cryptography.hazmat.primitives.asymmetric import rsa
from jwt.algorithms import RSAAlgorithm
from sqlalchemy.ext.asyncio import (
    AsyncConnection,
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from testcontainers.postgres import PostgresContainer

from splity.core.jwks import JWKSCache
from splity.core.token_validator import TokenValidator
from splity.models.base import Base
from splity.models.user import User

ISSUER = "https://cognito-idp.eu-west-2.amazonaws.com/eu-west-2_SplityTest"
CLIENT_ID = "splity-test-client"
KEY_ID = "splity-test-key"


@pytest.fixture(scope="session")
def postgres_container() -> Generator[PostgresContainer]:
    """Start a PostgreSQL container for the test session."""
    with PostgresContainer("postgres:16", driver="asyncpg") as postgres:
        yield postgres


@pytest.fixture(scope="session")
def database_url(postgres_container: PostgresContainer) -> str:
    """Get the database URL from the container and set it in environment."""
    url = postgres_container.get_connection_url()
    os.environ["DATABASE_URL"] = url
    return url


@pytest.fixture
async def async_engine(database_url: str) -> AsyncGenerator[AsyncEngine]:
    """Create an async engine for testing."""
    engine = create_async_engine(database_url, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
async def db_connection(async_engine: AsyncEngine) -> AsyncGenerator[AsyncConnection]:
    """
    Create a connection with a transaction that will be rolled back after the test.

    Each test runs in its own transaction, so tests don't affect each other.
    """
    async with async_engine.connect() as connection:
        transaction = await connection.begin()
        try:
            yield connection
        finally:
            await transaction.rollback()


@pytest.fixture
async def db_session(db_connection: AsyncConnection) -> AsyncGenerator[AsyncSession]:
    """
    Create an async session bound to the test transaction.

    Uses savepoints so the session's flush/commit work inside the outer test
    transaction.
    """
    session_factory = async_sessionmaker(
        bind=db_connection,
        class_=AsyncSession,
        expire_on_commit=False,
        join_transaction_mode="create_savepoint",
    )

    async with session_factory() as session:
        yield session


@pytest.fixture
def create_user(db_session: AsyncSession) -> Callable[..., Any]:
    """Factory that inserts a user row and returns it."""

    async def _create(name: str = "Grace Hopper", email: str = "grace@example.com") -> User:
        user = User(name=name, email=email)
        db_session.add(user)
        await db_session.flush()
        await db_session.refresh(user)
        return user

    return _create


# --- Tokens ---


@pytest.fixture(scope="session")
def signing_key() -> rsa.RSAPrivateKey:
    """RSA key the test identity provider signs tokens with."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def other_signing_key() -> rsa.RSAPrivateKey:
    """RSA key unknown to the identity provider's JWKS."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


def public_jwk(private_key: rsa.RSAPrivateKey, kid: str | None) -> dict[str, Any]:
    """JWK for the public half of ``private_key``."""
    jwk = json.loads(RSAAlgorithm.to_jwk(private_key.public_key()))
    jwk.update(alg="RS256", use="sig")
    if kid:
        jwk["kid"] = kid
    return jwk


@pytest.fixture(scope="session")
def jwks_document(signing_key: rsa.RSAPrivateKey) -> dict[str, Any]:
    """The identity provider's published key set."""
    return {"keys": [public_jwk(signing_key, KEY_ID)]}


@pytest.fixture
def make_token(signing_key: rsa.RSAPrivateKey) -> Callable[..., str]:
    """
    Factory for signed ID tokens.

    Keyword arguments override claims; ``omit`` drops claims; ``expires_in``
    sets ``exp`` relative to now (negative for expired tokens).
    """

    def _make(
        *,
        kid: str | None = KEY_ID,
        key: rsa.RSAPrivateKey | None = None,
        expires_in: timedelta = timedelta(hours=1),
        omit: tuple[str, ...] = (),
        **claims: Any,
    ) -> str:
        now = datetime.now(UTC)
        payload: dict[str, Any] = {
            "sub": "0f6c3e52-sub-ada",
            "iss": ISSUER,
            "aud": CLIENT_ID,
            "email": "ada@example.com",
            "name": "Ada Lovelace",
            "token_use": "id",
            "iat": now,
            "exp": now + expires_in,
        }
        payload.update(claims)
        for claim in omit:
            payload.pop(claim, None)
        headers = {"kid": kid} if kid else {}
        return jwt.encode(payload, key or signing_key, algorithm="RS256", headers=headers)

    return _make


@pytest.fixture
def jwks_route(jwks_document: dict[str, Any]) -> Generator[respx.Route]:
    """Serve the JWKS document from the issuer's well-known URL."""
    with respx.mock(assert_all_called=False) as mock:
        yield mock.get(f"{ISSUER}/.well-known/jwks.json").mock(
            return_value=httpx.Response(200, json=jwks_document),
        )


@pytest.fixture
async def token_validator(
    jwks_route: respx.Route,  # noqa: ARG001
) -> AsyncGenerator[TokenValidator]:
    """Token validator for the test issuer, backed by the mocked JWKS endpoint."""
    async with httpx.AsyncClient() as http_client:
        yield TokenValidator(JWKSCache(http_client), issuer=ISSUER, client_id=CLIENT_ID)
