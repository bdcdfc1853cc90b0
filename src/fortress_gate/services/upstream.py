"""HTTP client for relaying operator requests to the Fortress API.

This module provides the UpstreamClient class used by the proxy endpoint. It:

- keeps one pooled `httpx.AsyncClient` bound to the Fortress base URL
- attaches the shared secret header the browser never sees
- forwards method, query string and body without interpreting them
- maps transport failures to `UpstreamUnavailableError`
- counts replies by status and failures by reason for the status endpoint
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

import httpx

from fortress_gate.core.errors import UpstreamUnavailableError
from fortress_gate.core.settings import settings

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/json"
BODYLESS_METHODS = frozenset({"GET", "HEAD"})


@dataclass
class ProxyMetrics:
    """Counters for calls relayed to the Fortress API.

    A call the backend answered is ``forwarded`` whatever its status; only
    transport failures count as ``unreachable``.
    """

    forwarded: int = 0
    unreachable: int = 0
    latency_ms_total: float = 0.0
    slowest_ms: float = 0.0
    by_status: Counter[int] = field(default_factory=Counter)
    by_failure: Counter[str] = field(default_factory=Counter)

    def _observe(self, elapsed: float) -> None:
        elapsed_ms = elapsed * 1000
        self.latency_ms_total += elapsed_ms
        self.slowest_ms = max(self.slowest_ms, elapsed_ms)

    def record_reply(self, status_code: int, elapsed: float) -> None:
        self.forwarded += 1
        self.by_status[status_code] += 1
        self._observe(elapsed)

    def record_failure(self, reason: str, elapsed: float) -> None:
        self.unreachable += 1
        self.by_failure[reason] += 1
        self._observe(elapsed)

    def snapshot(self) -> dict[str, Any]:
        """Return the counters as a JSON-ready mapping."""
        calls = self.forwarded + self.unreachable
        return {
            "forwarded": self.forwarded,
            "unreachable": self.unreachable,
            "mean_latency_ms": round(self.latency_ms_total / calls, 3) if calls else 0.0,
            "slowest_ms": round(self.slowest_ms, 3),
            "by_status": {str(code): count for code, count in sorted(self.by_status.items())},
            "by_failure": dict(self.by_failure),
        }


@dataclass(frozen=True)
class UpstreamConfig:
    """Immutable configuration for the Fortress API upstream."""

    base_url: str
    path_prefix: str
    shared_secret: str
    secret_header: str
    timeout_seconds: float


@dataclass(frozen=True)
class ProxyExchange:
    """Inbound side of one proxied call."""

    method: str
    path: str
    params: Sequence[tuple[str, str]] = ()
    body: bytes | None = None


@dataclass(frozen=True)
class UpstreamReply:
    """What the Fortress API answered, relayed to the caller unchanged."""

    status_code: int
    content_type: str
    body: bytes


def load_upstream_config() -> UpstreamConfig:
    """Build configuration object from global settings."""

    return UpstreamConfig(
        base_url=settings.fortress_api_url,
        path_prefix=settings.fortress_api_prefix,
        shared_secret=settings.fortress_api_key,
        secret_header=settings.fortress_api_key_header,
        timeout_seconds=float(settings.fortress_api_timeout_seconds),
    )


class UpstreamClient:
    """HTTP client wrapper for Fortress API calls."""

    def __init__(
        self,
        config: UpstreamConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or load_upstream_config()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._client_lock = asyncio.Lock()
        self._metrics = ProxyMetrics()

    async def _ensure_client(self) -> httpx.AsyncClient:
        async with self._client_lock:
            if self._client is None:
                self._client = httpx.AsyncClient(
                    base_url=self.config.base_url,
                    timeout=httpx.Timeout(self.config.timeout_seconds),
                    transport=self._transport,
                )

        return self._client

    def build_path(self, rest: str) -> str:
        """Return the upstream path for the part of the URL after the proxy prefix."""
        prefix = self.config.path_prefix.rstrip("/")
        return f"{prefix}/{rest.lstrip('/')}"

    def _build_headers(self) -> dict[str, str]:
        return {
            self.config.secret_header: self.config.shared_secret,
            "Content-Type": DEFAULT_CONTENT_TYPE,
        }

    async def forward(self, exchange: ProxyExchange) -> UpstreamReply:
        """Send `exchange` to the Fortress API and return its reply verbatim.

        Raises:
            UpstreamUnavailableError: If the API could not be reached.
        """
        client = await self._ensure_client()
        method = exchange.method.upper()
        content = exchange.body if exchange.body and method not in BODYLESS_METHODS else None

        started = time.perf_counter()
        try:
            response = await client.request(
                method,
                self.build_path(exchange.path),
                params=list(exchange.params),
                content=content,
                headers=self._build_headers(),
            )
        except httpx.HTTPError as exc:
            self._metrics.record_failure(type(exc).__name__, time.perf_counter() - started)
            logger.warning(
                "Fortress API unreachable for %s %s: %s",
                method,
                exchange.path,
                exc,
            )
            raise UpstreamUnavailableError(str(exc) or type(exc).__name__) from exc

        self._metrics.record_reply(response.status_code, time.perf_counter() - started)
        return UpstreamReply(
            status_code=response.status_code,
            content_type=response.headers.get("content-type") or DEFAULT_CONTENT_TYPE,
            body=response.content,
        )

    def get_metrics(self) -> dict[str, Any]:
        """Return proxy counters for the status endpoint."""
        return self._metrics.snapshot()

    async def close(self) -> None:
        """Clean up underlying HTTP client resources."""

        async with self._client_lock:
            if self._client is not None:
                await self._client.aclose()
                self._client = None


class _UpstreamClientSingleton:
    """Singleton wrapper for UpstreamClient."""

    _instance: UpstreamClient | None = None

    @classmethod
    def get_instance(cls) -> UpstreamClient:
        """Get or create the singleton UpstreamClient instance."""
        if cls._instance is None:
            cls._instance = UpstreamClient()
        return cls._instance


def get_upstream_client() -> UpstreamClient:
    """Return a singleton upstream client instance."""
    return _UpstreamClientSingleton.get_instance()
