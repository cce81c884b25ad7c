"""JWKS key store — fetches and caches the issuer's RSA signing keys.

Features:
- TTL-based cache (configurable, default 15 minutes)
- Refresh on unknown or stale kid (key rotation)
- Stale fallback: a failed refresh keeps serving keys from the last good fetch
- Concurrent refreshes share a single in-flight fetch
"""

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import httpx
from jwt import PyJWK
from jwt.exceptions import InvalidKeyError, PyJWKError

from cinetag_auth.config import DEFAULT_HTTP_TIMEOUT, DEFAULT_JWKS_CACHE_TTL, JWT_ALGORITHM
from cinetag_auth.errors import JWKSFetchError, KeyNotFoundError, MisconfiguredError

logger = logging.getLogger("cinetag_auth.jwks")


@dataclass(frozen=True, slots=True)
class CachedJWKS:
    """Snapshot of the key set. Replaced as a whole, never mutated."""

    keys: dict[str, PyJWK] = field(default_factory=dict)
    fetched_at: float | None = None


def _non_blank(value: Any) -> bool:
    return isinstance(value, str) and value.strip() != ""


def parse_jwks(document: Any) -> dict[str, PyJWK]:
    """Extract usable RSA public keys from a JWKS document.

    Entries that are not RSA, lack kid/n/e, or don't parse are skipped.

    Raises:
        JWKSFetchError: If the document itself doesn't have the JWKS shape.
    """
    if not isinstance(document, dict):
        raise JWKSFetchError("JWKS document is not a JSON object")
    entries = document.get("keys")
    if not isinstance(entries, list):
        raise JWKSFetchError("JWKS document has no keys list")

    keys: dict[str, PyJWK] = {}
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        kid = entry.get("kid")
        if (
            entry.get("kty") != "RSA"
            or not _non_blank(kid)
            or not _non_blank(entry.get("n"))
            or not _non_blank(entry.get("e"))
        ):
            logger.debug("Skipping unusable JWK kid=%r kty=%r", kid, entry.get("kty"))
            continue
        # Only the public components are passed on.
        public_jwk = {"kty": "RSA", "kid": kid, "n": entry["n"], "e": entry["e"]}
        try:
            keys[kid] = PyJWK(public_jwk, algorithm=JWT_ALGORITHM)
        except (PyJWKError, InvalidKeyError, ValueError, TypeError):
            logger.debug("Failed to parse JWK with kid=%s", kid)
    return keys


class JWKSKeyStore:
    """Resolves key IDs to RSA public keys from a remote JWKS endpoint.

    Args:
        jwks_url: URL of the JWKS endpoint (required).
        cache_ttl: How long a fetched key set counts as fresh, in seconds (default 900).
        http_timeout: Deadline for a whole JWKS download in seconds (default 5).

    Raises:
        MisconfiguredError: If ``jwks_url`` is empty.
    """

    def __init__(
        self,
        jwks_url: str | None,
        *,
        cache_ttl: float = DEFAULT_JWKS_CACHE_TTL,
        http_timeout: float = DEFAULT_HTTP_TIMEOUT,
        _transport: httpx.AsyncBaseTransport | None = None,
        _clock: Callable[[], float] = time.monotonic,
    ) -> None:
        jwks_url = (jwks_url or "").strip()
        if not jwks_url:
            raise MisconfiguredError("JWKS URL is required")
        self._jwks_url = jwks_url
        self._cache_ttl = cache_ttl
        self._http_timeout = http_timeout
        self._transport = _transport
        self._clock = _clock
        self._cache = CachedJWKS()
        self._inflight: asyncio.Task[CachedJWKS] | None = None

    @property
    def jwks_url(self) -> str:
        return self._jwks_url

    @property
    def cache(self) -> CachedJWKS:
        """The current key set snapshot."""
        return self._cache

    async def get_key(self, kid: str) -> PyJWK:
        """Get a public key by kid, refreshing the key set when needed.

        Cancelling the caller raises ``CancelledError`` here only; a shared
        refresh keeps running for other waiters until ``http_timeout`` ends it.

        Raises:
            KeyNotFoundError: If a fresh key set doesn't contain ``kid``.
            JWKSFetchError: If the refresh failed and no earlier key set has ``kid``.
        """
        snapshot = self._cache
        key = snapshot.keys.get(kid)
        if key is not None and self._is_fresh(snapshot):
            return key

        try:
            refreshed = await self._refresh()
        except JWKSFetchError:
            stale = self._cache.keys.get(kid)
            if stale is not None:
                logger.warning("JWKS refresh failed, using cached key kid=%s", kid)
                return stale
            raise

        key = refreshed.keys.get(kid)
        if key is None:
            raise KeyNotFoundError(f"kid {kid!r} not found in JWKS")
        return key

    def invalidate(self) -> None:
        """Forget all cached keys. The next lookup fetches the key set again."""
        self._cache = CachedJWKS()

    def _is_fresh(self, snapshot: CachedJWKS) -> bool:
        if snapshot.fetched_at is None:
            return False
        return (self._clock() - snapshot.fetched_at) < self._cache_ttl

    async def _refresh(self) -> CachedJWKS:
        """Join the in-flight fetch, or start one.

        The shared task is shielded: a cancelled caller stops waiting, the
        fetch carries on for everyone else.
        """
        task = self._inflight
        if task is None or task.done():
            task = asyncio.ensure_future(self._fetch())
            self._inflight = task
            task.add_done_callback(self._on_fetch_done)
        return await asyncio.shield(task)

    def _on_fetch_done(self, task: "asyncio.Task[CachedJWKS]") -> None:
        if self._inflight is task:
            self._inflight = None
        if not task.cancelled():
            # Retrieve the exception so an unawaited failure isn't reported as lost.
            task.exception()

    async def _fetch(self) -> CachedJWKS:
        """Fetch JWKS from the issuer and swap in the new key set."""
        try:
            keys = await self._download()
        except JWKSFetchError as e:
            logger.error("Failed to fetch JWKS from %s: %s", self._jwks_url, e.message)
            raise

        self._cache = CachedJWKS(keys=keys, fetched_at=self._clock())
        logger.debug("JWKS refreshed: %d keys loaded", len(keys))
        return self._cache

    async def _download(self) -> dict[str, PyJWK]:
        kwargs: dict = {"timeout": self._http_timeout}
        if self._transport is not None:
            kwargs["transport"] = self._transport
        try:
            # httpx times each phase separately; this caps the whole download.
            async with asyncio.timeout(self._http_timeout):
                async with httpx.AsyncClient(**kwargs) as client:
                    response = await client.get(self._jwks_url)
                    response.raise_for_status()
                    document = response.json()
        except TimeoutError as e:
            raise JWKSFetchError(f"JWKS request timed out after {self._http_timeout}s") from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise JWKSFetchError(f"JWKS request failed: {e}") from e
        except ValueError as e:
            raise JWKSFetchError("JWKS response is not valid JSON") from e

        keys = parse_jwks(document)
        if not keys:
            raise JWKSFetchError("JWKS contains no usable keys")
        return keys
