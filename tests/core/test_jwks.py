"""Tests for the per-issuer signing-key cache."""
import asyncio
import json
from collections.abc import AsyncGenerator
from typing import Any

import httpx
import pytest
import respx
from cryptography.hazmat.primitives.asymmetric import rsa
from jwt.algorithms import RSAAlgorithm

from splity.core.jwks import JWKSCache

ISSUER = "https://issuer.example.com/pool"
JWKS_URL = f"{ISSUER}/.well-known/jwks.json"


class FakeClock:
    """Monotonic clock the tests can move forward."""

    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def _jwk(kid: str | None) -> dict[str, Any]:
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    jwk = json.loads(RSAAlgorithm.to_jwk(key.public_key()))
    jwk["alg"] = "RS256"
    if kid:
        jwk["kid"] = kid
    return jwk


@pytest.fixture(scope="module")
def key_a() -> dict[str, Any]:
    return _jwk("key-a")


@pytest.fixture(scope="module")
def key_b() -> dict[str, Any]:
    return _jwk("key-b")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
async def http_client() -> AsyncGenerator[httpx.AsyncClient]:
    async with httpx.AsyncClient() as client:
        yield client


def test__jwks_url__appends_well_known_path() -> None:
    assert JWKSCache.jwks_url("https://issuer.example.com/pool/") == JWKS_URL


class TestCaching:
    """Keys are fetched once per TTL window."""

    async def test__get_signing_keys__fetches_once_within_ttl(
        self, http_client: httpx.AsyncClient, clock: FakeClock, key_a: dict[str, Any],
    ) -> None:
        cache = JWKSCache(http_client, ttl_seconds=3600, clock=clock)
        with respx.mock:
            route = respx.get(JWKS_URL).mock(
                return_value=httpx.Response(200, json={"keys": [key_a]}),
            )
            await cache.get_signing_keys(ISSUER, "key-a")
            clock.now += 3599
            keys = await cache.get_signing_keys(ISSUER, "key-a")

        assert route.call_count == 1
        assert [k.key_id for k in keys] == ["key-a"]

    async def test__get_signing_keys__refetches_after_ttl(
        self, http_client: httpx.AsyncClient, clock: FakeClock, key_a: dict[str, Any],
    ) -> None:
        cache = JWKSCache(http_client, ttl_seconds=3600, clock=clock)
        with respx.mock:
            route = respx.get(JWKS_URL).mock(
                return_value=httpx.Response(200, json={"keys": [key_a]}),
            )
            await cache.get_signing_keys(ISSUER, "key-a")
            clock.now += 3600
            await cache.get_signing_keys(ISSUER, "key-a")

        assert route.call_count == 2

    async def test__get_signing_keys__concurrent_cold_lookups_fetch_once(
        self, http_client: httpx.AsyncClient, key_a: dict[str, Any],
    ) -> None:
        cache = JWKSCache(http_client)
        with respx.mock:
            route = respx.get(JWKS_URL).mock(
                return_value=httpx.Response(200, json={"keys": [key_a]}),
            )
            results = await asyncio.gather(
                *(cache.get_signing_keys(ISSUER, "key-a") for _ in range(5)),
            )

        assert route.call_count == 1
        assert all([k.key_id for k in keys] == ["key-a"] for keys in results)

    async def test__get_signing_keys__unknown_kid_triggers_refresh(
        self,
        http_client: httpx.AsyncClient,
        clock: FakeClock,
        key_a: dict[str, Any],
        key_b: dict[str, Any],
    ) -> None:
        """A rotated key is picked up before the TTL expires."""
        cache = JWKSCache(http_client, ttl_seconds=3600, clock=clock)
        with respx.mock:
            route = respx.get(JWKS_URL).mock(
                side_effect=[
                    httpx.Response(200, json={"keys": [key_a]}),
                    httpx.Response(200, json={"keys": [key_a, key_b]}),
                ],
            )
            await cache.get_signing_keys(ISSUER, "key-a")
            keys = await cache.get_signing_keys(ISSUER, "key-b")

        assert route.call_count == 2
        assert [k.key_id for k in keys] == ["key-b"]

    async def test__get_signing_keys__no_kid_returns_all_keys(
        self,
        http_client: httpx.AsyncClient,
        key_a: dict[str, Any],
        key_b: dict[str, Any],
    ) -> None:
        cache = JWKSCache(http_client)
        with respx.mock:
            respx.get(JWKS_URL).mock(
                return_value=httpx.Response(200, json={"keys": [key_a, key_b]}),
            )
            keys = await cache.get_signing_keys(ISSUER, None)

        assert sorted(k.key_id for k in keys) == ["key-a", "key-b"]

    async def test__get_signing_keys__caches_per_issuer(
        self, http_client: httpx.AsyncClient, key_a: dict[str, Any],
    ) -> None:
        other_issuer = "https://other.example.com"
        cache = JWKSCache(http_client)
        with respx.mock:
            first = respx.get(JWKS_URL).mock(
                return_value=httpx.Response(200, json={"keys": [key_a]}),
            )
            second = respx.get(f"{other_issuer}/.well-known/jwks.json").mock(
                return_value=httpx.Response(200, json={"keys": [key_a]}),
            )
            await cache.get_signing_keys(ISSUER, "key-a")
            await cache.get_signing_keys(other_issuer, "key-a")
            await cache.get_signing_keys(ISSUER, "key-a")

        assert first.call_count == 1
        assert second.call_count == 1

    async def test__invalidate__forces_refetch(
        self, http_client: httpx.AsyncClient, key_a: dict[str, Any],
    ) -> None:
        cache = JWKSCache(http_client)
        with respx.mock:
            route = respx.get(JWKS_URL).mock(
                return_value=httpx.Response(200, json={"keys": [key_a]}),
            )
            await cache.get_signing_keys(ISSUER, "key-a")
            cache.invalidate(ISSUER)
            await cache.get_signing_keys(ISSUER, "key-a")

        assert route.call_count == 2


class TestFailClosed:
    """Fetch failures are never papered over with stale keys."""

    async def test__get_signing_keys__http_error_propagates(
        self, http_client: httpx.AsyncClient,
    ) -> None:
        cache = JWKSCache(http_client)
        with respx.mock:
            respx.get(JWKS_URL).mock(return_value=httpx.Response(503))
            with pytest.raises(httpx.HTTPStatusError):
                await cache.get_signing_keys(ISSUER, "key-a")

    async def test__get_signing_keys__expired_entry_not_used_when_refresh_fails(
        self, http_client: httpx.AsyncClient, clock: FakeClock, key_a: dict[str, Any],
    ) -> None:
        cache = JWKSCache(http_client, ttl_seconds=60, clock=clock)
        with respx.mock:
            respx.get(JWKS_URL).mock(
                side_effect=[
                    httpx.Response(200, json={"keys": [key_a]}),
                    httpx.ConnectError("connection refused"),
                ],
            )
            await cache.get_signing_keys(ISSUER, "key-a")
            clock.now += 61
            with pytest.raises(httpx.ConnectError):
                await cache.get_signing_keys(ISSUER, "key-a")

    async def test__get_signing_keys__document_without_keys_raises(
        self, http_client: httpx.AsyncClient,
    ) -> None:
        cache = JWKSCache(http_client)
        with respx.mock:
            respx.get(JWKS_URL).mock(return_value=httpx.Response(200, json={"nope": []}))
            with pytest.raises(ValueError, match="keys"):
                await cache.get_signing_keys(ISSUER, "key-a")

    async def test__get_signing_keys__skips_unusable_keys(
        self, http_client: httpx.AsyncClient, key_a: dict[str, Any],
    ) -> None:
        broken = {"kty": "RSA", "kid": "broken"}
        cache = JWKSCache(http_client)
        with respx.mock:
            respx.get(JWKS_URL).mock(
                return_value=httpx.Response(200, json={"keys": [broken, key_a]}),
            )
            keys = await cache.get_signing_keys(ISSUER, None)

        assert [k.key_id for k in keys] == ["key-a"]
