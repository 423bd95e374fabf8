"""Upstream provider clients."""

from dataclasses import dataclass

import httpx

from marketsnap.core.config import ProviderSettings
from marketsnap.core.monitoring import MetricsCollector

from .fred import FredCsvClient
from .http import UpstreamClient, create_http_client
from .nav import NavListingClient
from .stooq import StooqCsvClient
from .yahoo import YahooChartClient


@dataclass
class ProviderClients:
    """The set of clients one aggregator draws from."""

    yahoo: YahooChartClient
    stooq: StooqCsvClient
    fred: FredCsvClient
    nav: NavListingClient

    @classmethod
    def create(
        cls,
        http_client: httpx.AsyncClient,
        settings: ProviderSettings,
        metrics: MetricsCollector | None = None,
    ) -> "ProviderClients":
        upstream = UpstreamClient(http_client, settings, metrics)
        return cls(
            yahoo=YahooChartClient(upstream, settings.yahoo_base_url),
            stooq=StooqCsvClient(upstream, settings.stooq_base_url),
            fred=FredCsvClient(upstream, settings.fred_base_url),
            nav=NavListingClient(upstream, settings.nav_listing_url),
        )


__all__ = [
    "FredCsvClient",
    "NavListingClient",
    "ProviderClients",
    "StooqCsvClient",
    "UpstreamClient",
    "YahooChartClient",
    "create_http_client",
]
