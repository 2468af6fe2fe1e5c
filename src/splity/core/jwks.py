"""JWKS (JSON Web Key Set) fetching and caching for JWT verification."""
import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field

import httpx
import jwt

logger = logging.getLogger(__name__)


@dataclass
class _CachedKeySet:
    keys: dict[str, jwt.PyJWK]
    unnamed: list[jwt.PyJWK] = field(default_factory=list)
    fetched_at: float = 0.0

    def all_keys(self) -> list[jwt.PyJWK]:
        return [*self.keys.values(), *self.unnamed]


class JWKSCache:
    """
    Time-boxed cache of signing-key sets, keyed by issuer.

    Keys for an issuer are fetched from ``{issuer}/.well-known/jwks.json`` on
    first use and kept for ``ttl_seconds``. A token whose ``kid`` is not in a
    fresh cache triggers one refresh (key rotation). Fetch failures propagate:
    an expired entry is never used as a fallback, so a failed refresh means
    the token cannot be verified.

    Example:
        >>> cache = JWKSCache(httpx.AsyncClient(), ttl_seconds=3600)
        >>> keys = await cache.get_signing_keys("https://issuer.example", "kid-1")
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        ttl_seconds: int = 3600,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._http_client = http_client
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, _CachedKeySet] = {}
        self._fetch_counts: dict[str, int] = {}
        self._lock = asyncio.Lock()

    @staticmethod
    def jwks_url(issuer: str) -> str:
        """Get the well-known JWKS URL for an issuer."""
        return f"{issuer.rstrip('/')}/.well-known/jwks.json"

    async def get_signing_keys(self, issuer: str, kid: str | None) -> list[jwt.PyJWK]:
        """
        Return the candidate verification keys for a token.

        Returns the single key matching ``kid`` when there is one, otherwise
        every key in the issuer's set.

        Raises:
            httpx.HTTPError: If the JWKS endpoint cannot be fetched.
            ValueError: If the JWKS document is malformed.
        """
        entry = self._entries.get(issuer)
        if entry is None or self._is_stale(entry):
            entry = await self.refresh(issuer)
        elif kid and kid not in entry.keys:
            logger.info("Key id %s not cached for %s, refreshing JWKS", kid, issuer)
            entry = await self.refresh(issuer)

        if kid and kid in entry.keys:
            return [entry.keys[kid]]
        return entry.all_keys()

    async def refresh(self, issuer: str) -> _CachedKeySet:
        """
        Fetch the issuer's JWKS and replace its cache entry.

        Callers that queued behind an in-flight fetch for the same issuer reuse
        its result instead of fetching again.
        """
        fetches_seen = self._fetch_counts.get(issuer, 0)
        async with self._lock:
            entry = self._entries.get(issuer)
            if entry is not None and self._fetch_counts.get(issuer, 0) != fetches_seen:
                return entry

            url = self.jwks_url(issuer)
            response = await self._http_client.get(url)
            response.raise_for_status()
            entry = self._parse(response.json())
            entry.fetched_at = self._clock()
            self._entries[issuer] = entry
            self._fetch_counts[issuer] = self._fetch_counts.get(issuer, 0) + 1

        logger.info(
            "JWKS refreshed for %s (%d keys)", issuer, len(entry.keys) + len(entry.unnamed),
        )
        return entry

    def invalidate(self, issuer: str | None = None) -> None:
        """Drop cached keys for one issuer, or for all issuers."""
        if issuer is None:
            self._entries.clear()
        else:
            self._entries.pop(issuer, None)

    def _is_stale(self, entry: _CachedKeySet) -> bool:
        return self._clock() - entry.fetched_at >= self.ttl_seconds

    @staticmethod
    def _parse(document: object) -> _CachedKeySet:
        if not isinstance(document, dict) or not isinstance(document.get("keys"), list):
            raise ValueError("JWKS document has no 'keys' array")

        entry = _CachedKeySet(keys={})
        for key_data in document["keys"]:
            try:
                key = jwt.PyJWK(key_data)
            except (jwt.PyJWTError, AttributeError, KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping unusable JWKS key: %s", e)
                continue
            if key.key_id:
                entry.keys[key.key_id] = key
            else:
                entry.unnamed.append(key)

        if not entry.keys and not entry.unnamed:
            logger.warning("JWKS document contains no usable keys")
        return entry
