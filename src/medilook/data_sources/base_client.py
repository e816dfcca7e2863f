"""
HTTP plumbing shared by the openFDA clients.

A client subclasses BaseClient, names itself through ``_source_name`` and
calls ``_rest_get``. Each GET first consults the optional disk cache, then
waits for the token-bucket limiter, then makes up to ``max_retries + 1``
attempts. Only non-retryable HTTP errors are raised; anything that survives
every attempt comes back as an incomplete PartialResult.
"""

import asyncio
import hashlib
import json
import logging
import time
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Any

import aiohttp
from pydantic import BaseModel

from medilook.constants import (
    DEFAULT_LABEL_CACHE_DIR,
    DEFAULT_MAX_RETRIES,
    DEFAULT_TIMEOUT,
    LABEL_CACHE_TTL,
)

logger = logging.getLogger("medilook.data_sources")


# --- Settings ---------------------------------------------------------------


class RetryConfig(BaseModel):
    max_retries: int = DEFAULT_MAX_RETRIES
    base_delay: float = 0.5  # seconds
    max_delay: float = 8.0  # seconds
    backoff_factor: float = 2.0
    retryable_status_codes: set[int] = {429, 500, 502, 503, 504}

    def delay_for(self, attempt: int) -> float:
        """Exponential backoff for the given zero-based attempt, capped."""
        return min(self.base_delay * self.backoff_factor**attempt, self.max_delay)


class RateLimitConfig(BaseModel):
    """openFDA allows 240 requests per minute per key."""

    requests_per_second: float = 4.0
    burst: int = 8


class CacheConfig(BaseModel):
    enabled: bool = False
    directory: Path = DEFAULT_LABEL_CACHE_DIR
    ttl_seconds: int = LABEL_CACHE_TTL


class ClientConfig(BaseModel):
    retry: RetryConfig = RetryConfig()
    rate_limit: RateLimitConfig = RateLimitConfig()
    cache: CacheConfig = CacheConfig()
    timeout_seconds: float = DEFAULT_TIMEOUT


# --- Rate limiting ----------------------------------------------------------


class TokenBucketRateLimiter:
    """Lets ``burst`` requests through at once, then one per 1/rate seconds."""

    def __init__(self, config: RateLimitConfig):
        self.rate = config.requests_per_second
        self.capacity = config.burst
        self.tokens = float(config.burst)
        self.updated_at = time.monotonic()
        self._lock = asyncio.Lock()

    def _refill(self) -> None:
        now = time.monotonic()
        refilled = self.tokens + (now - self.updated_at) * self.rate
        self.tokens = min(self.capacity, refilled)
        self.updated_at = now

    async def acquire(self) -> None:
        async with self._lock:
            self._refill()
            if self.tokens >= 1.0:
                self.tokens -= 1.0
                return
            wait = (1.0 - self.tokens) / self.rate
            logger.debug("Rate limiter: waiting %.2fs", wait)
            await asyncio.sleep(wait)
            self.tokens = 0.0
            self.updated_at = time.monotonic()


# --- Response cache ---------------------------------------------------------


class DiskCache:
    """
    One JSON file per (namespace, query parameters) pair.

    A file holds ``{"data": ..., "cached_at": ..., "ttl": ...}``. Reading an
    expired or unreadable file deletes it and reports a miss. A disabled
    cache never touches the disk.
    """

    def __init__(self, config: CacheConfig):
        self.enabled = config.enabled
        self.directory = config.directory
        self.ttl = config.ttl_seconds
        if self.enabled:
            self.directory.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def _make_key(namespace: str, params: dict[str, Any]) -> str:
        raw = json.dumps({"ns": namespace, **params}, sort_keys=True, default=str)
        return hashlib.sha256(raw.encode()).hexdigest()

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    async def get(self, namespace: str, params: dict[str, Any]) -> Any | None:
        if not self.enabled:
            return None
        path = self._path(self._make_key(namespace, params))
        if not path.exists():
            return None
        try:
            entry = json.loads(path.read_text())
            cached_at = datetime.fromisoformat(entry["cached_at"])
            age = (datetime.now() - cached_at).total_seconds()
            if age > entry.get("ttl", self.ttl):
                logger.debug("Cache entry for %s expired after %.0fs", namespace, age)
                path.unlink(missing_ok=True)
                return None
            logger.debug("Cache hit for %s", namespace)
            return entry["data"]
        except (json.JSONDecodeError, KeyError, ValueError):
            path.unlink(missing_ok=True)
            return None

    async def set(
        self,
        namespace: str,
        params: dict[str, Any],
        data: Any,
        ttl: int | None = None,
    ) -> None:
        if not self.enabled:
            return
        path = self._path(self._make_key(namespace, params))
        entry = {
            "data": data,
            "cached_at": datetime.now().isoformat(),
            "ttl": ttl or self.ttl,
        }
        try:
            path.write_text(json.dumps(entry, default=str))
        except OSError as e:
            logger.warning("Could not write cache entry %s: %s", path, e)


# --- Errors and results -----------------------------------------------------


class RequestContext(BaseModel):
    """Which client and strategy issued a request; used only in log lines."""

    source: str
    method: str
    params: dict[str, Any] = {}


class DataSourceError(Exception):
    """A request to ``source`` failed.

    For HTTP errors ``status_code`` is set and ``body`` keeps the raw
    response text, which may hold an API error envelope.
    """

    def __init__(
        self,
        source: str,
        message: str,
        status_code: int | None = None,
        body: str | None = None,
    ):
        self.source = source
        self.status_code = status_code
        self.body = body
        super().__init__(f"[{source}] {message}")


class RateLimitError(DataSourceError):
    """HTTP 429 from the remote API."""


class _RetryableFailure(Exception):
    """An attempt failed in a way a later attempt might not."""

    def __init__(self, error: DataSourceError, retry_after: float | None = None):
        super().__init__(str(error))
        self.error = error
        self.retry_after = retry_after


class PartialResult(BaseModel):
    """Response payload plus how much of it can be trusted.

    ``is_complete`` is False and ``data`` is None when every attempt failed;
    ``errors`` then says why.
    """

    data: Any
    is_complete: bool = True
    errors: list[str] = []
    cached: bool = False
    elapsed_seconds: float = 0.0


def _retry_after_seconds(value: str | None) -> float | None:
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        return None


# --- Client -----------------------------------------------------------------


class BaseClient(ABC):
    """Session owner and GET helper for one remote data source."""

    def __init__(self, config: ClientConfig | None = None):
        self.config = config or ClientConfig()
        self.rate_limiter = TokenBucketRateLimiter(self.config.rate_limit)
        self.cache = DiskCache(self.config.cache)
        self._session: aiohttp.ClientSession | None = None

    @property
    @abstractmethod
    def _source_name(self) -> str:
        """Short identifier used in errors and logs, e.g. 'openfda_label'."""
        ...

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.config.timeout_seconds)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.close()

    async def _rest_get(
        self,
        url: str,
        params: dict[str, Any],
        *,
        cache_namespace: str | None = None,
        cache_ttl: int | None = None,
        context: RequestContext | None = None,
    ) -> PartialResult:
        """GET ``url`` and decode the JSON body.

        With ``cache_namespace`` set, a fresh cached body for the same
        ``params`` is returned without a request, and a successful response
        is stored.

        Raises
        ------
        DataSourceError
            For a 4xx status that is not retryable.
        """
        ctx = context or RequestContext(source=self._source_name, method="get")

        if cache_namespace:
            cached = await self.cache.get(cache_namespace, params)
            if cached is not None:
                return PartialResult(data=cached, cached=True)

        retry = self.config.retry
        start = time.monotonic()
        failure: _RetryableFailure | None = None

        for attempt in range(retry.max_retries + 1):
            if failure is not None:
                await asyncio.sleep(failure.retry_after or retry.delay_for(attempt - 1))

            await self.rate_limiter.acquire()
            logger.info(
                "Request [%s.%s] attempt=%d url=%s",
                ctx.source,
                ctx.method,
                attempt + 1,
                url,
            )
            try:
                data = await self._fetch_once(url, params, ctx)
            except _RetryableFailure as e:
                logger.warning(
                    "Attempt %d failed [%s.%s]: %s",
                    attempt + 1,
                    ctx.source,
                    ctx.method,
                    e.error,
                )
                failure = e
                continue

            elapsed = time.monotonic() - start
            logger.info(
                "Success [%s.%s] elapsed=%.2fs", ctx.source, ctx.method, elapsed
            )
            if cache_namespace:
                await self.cache.set(cache_namespace, params, data, ttl=cache_ttl)
            return PartialResult(data=data, elapsed_seconds=elapsed)

        elapsed = time.monotonic() - start
        logger.error(
            "Giving up [%s.%s] after %.1fs: %s",
            ctx.source,
            ctx.method,
            elapsed,
            failure.error,
        )
        return PartialResult(
            data=None,
            is_complete=False,
            errors=[str(failure.error)],
            elapsed_seconds=elapsed,
        )

    async def _fetch_once(
        self, url: str, params: dict[str, Any], ctx: RequestContext
    ) -> Any:
        """One GET. Retryable problems raise _RetryableFailure."""
        session = await self._get_session()
        try:
            resp = await session.get(url, params=params)
        except asyncio.TimeoutError as e:
            error = DataSourceError(
                ctx.source, f"Timeout after {self.config.timeout_seconds:.1f}s"
            )
            raise _RetryableFailure(error) from e
        except aiohttp.ClientError as e:
            raise _RetryableFailure(
                DataSourceError(ctx.source, f"Connection error: {e}")
            ) from e

        if resp.status < 400:
            return await resp.json()

        body = await resp.text()
        if resp.status not in self.config.retry.retryable_status_codes:
            raise DataSourceError(
                ctx.source,
                f"HTTP {resp.status}: {body[:500]}",
                status_code=resp.status,
                body=body,
            )

        error_cls = RateLimitError if resp.status == 429 else DataSourceError
        error = error_cls(
            ctx.source,
            f"HTTP {resp.status}: {body[:200]}",
            status_code=resp.status,
            body=body,
        )
        retry_after = None
        if resp.status == 429:
            retry_after = _retry_after_seconds(resp.headers.get("Retry-After"))
        raise _RetryableFailure(error, retry_after)
