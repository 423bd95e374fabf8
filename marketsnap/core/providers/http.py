"""
Upstream HTTP access shared by every provider client.

Wraps one ``httpx.AsyncClient`` with an explicit per-call deadline, converts
status and transport faults into typed :class:`ProviderError` subclasses and
records latency in the metrics collector.
"""

from __future__ import annotations

import asyncio
import json
import time
from typing import Any

import httpx
from loguru import logger

from marketsnap.core.config import ProviderSettings
from marketsnap.core.exceptions import FetchError, ParseError, UpstreamTimeoutError
from marketsnap.core.monitoring import MetricsCollector, get_metrics_collector


def create_http_client(settings: ProviderSettings, **kwargs: Any) -> httpx.AsyncClient:
    """Build the shared async client used for all upstream calls."""

    headers = {
        "User-Agent": settings.user_agent,
        "Accept": "application/json, text/csv, text/plain, */*",
    }
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.timeout),
        follow_redirects=True,
        headers=headers,
        **kwargs,
    )


class UpstreamClient:
    """Issues GET requests to upstream providers with a bounded deadline."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        settings: ProviderSettings,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self.client = client
        self.settings = settings
        self.metrics = metrics or get_metrics_collector()

    @property
    def timeout(self) -> float:
        return self.settings.timeout

    async def get(
        self,
        provider: str,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Fetch ``url`` and return the response, raising typed errors on failure."""

        log = logger.bind(provider=provider)
        started = time.perf_counter()
        success = False
        try:
            response = await asyncio.wait_for(
                self.client.get(url, params=params, headers=headers, timeout=self.timeout),
                timeout=self.timeout,
            )
            if not response.is_success:
                raise FetchError(
                    f"{provider} returned HTTP {response.status_code}",
                    provider,
                    status_code=response.status_code,
                    details={"url": str(response.url)},
                )
            success = True
            return response
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            raise UpstreamTimeoutError(
                f"{provider} timed out after {self.timeout:g}s", provider, timeout=self.timeout
            ) from e
        except httpx.HTTPError as e:
            raise FetchError(f"{provider} request failed: {type(e).__name__}: {e}", provider) from e
        finally:
            elapsed = time.perf_counter() - started
            self.metrics.observe_upstream(provider, elapsed, success=success)
            log.debug(f"GET {url} finished in {elapsed:.3f}s (success={success})")

    async def get_text(self, provider: str, url: str, params: dict[str, Any] | None = None) -> str:
        response = await self.get(provider, url, params=params)
        return response.text

    async def get_json(self, provider: str, url: str, params: dict[str, Any] | None = None) -> Any:
        response = await self.get(provider, url, params=params, headers={"Accept": "application/json"})
        try:
            return response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ParseError(f"{provider} returned a non-JSON body", provider) from e
