"""Pytest configuration and shared fixtures for the marketsnap test suite."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Any

import httpx
import pytest
import pytest_asyncio

from marketsnap.core.config import ProviderSettings
from marketsnap.core.monitoring import MetricsCollector, configure_metrics_collector
from marketsnap.core.providers import ProviderClients


def pytest_addoption(parser: pytest.Parser) -> None:
    """Register command-line options for controlling integration tests."""

    parser.addoption(
        "--marketsnap-run-integration",
        action="store_true",
        default=False,
        help="Run marketsnap integration tests that hit real upstream providers.",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Skip integration tests unless explicitly requested."""

    if config.getoption("--marketsnap-run-integration"):
        return

    skip_integration = pytest.mark.skip(reason="integration tests require --marketsnap-run-integration")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


@pytest.fixture(autouse=True)
def metrics() -> Iterator[MetricsCollector]:
    """Give every test its own metrics registry."""

    collector = MetricsCollector()
    configure_metrics_collector(collector)
    yield collector
    configure_metrics_collector(None)


Route = Callable[[httpx.Request], httpx.Response]


class UpstreamStub:
    """Routes fake upstream requests by provider host and symbol."""

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], Route] = {}
        self.calls: list[httpx.Request] = []

    def on(self, host: str, key: str, route: Route) -> None:
        self.routes[(host, key)] = route

    def json(self, host: str, key: str, payload: Any, status_code: int = 200) -> None:
        self.on(host, key, lambda request: httpx.Response(status_code, json=payload))

    def text(self, host: str, key: str, body: str, status_code: int = 200) -> None:
        self.on(host, key, lambda request: httpx.Response(status_code, text=body))

    def _key(self, request: httpx.Request) -> str:
        if "yahoo" in request.url.host:
            return request.url.path.rsplit("/", 1)[-1]
        params = request.url.params
        return params.get("s") or params.get("id") or "listing"

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        route = self.routes.get((request.url.host, self._key(request)))
        if route is None:
            return httpx.Response(404, text="not found")
        return route(request)

    def called(self, host: str, key: str) -> bool:
        return any(request.url.host == host and self._key(request) == key for request in self.calls)


class Fakes:
    """Builders for upstream payloads."""

    YAHOO = "query1.finance.yahoo.com"
    STOOQ = "stooq.com"
    FRED = "fred.stlouisfed.org"
    NAV = "www.nseindia.com"

    RSI_CLOSES = [100, 102, 101, 103, 106, 105, 107, 110, 108, 111, 113, 112, 115, 117, 116, 118, 120]

    @staticmethod
    def yahoo_chart(
        closes: list[Any],
        *,
        price: Any = None,
        previous_close: Any = None,
        start: int = 1_700_000_000,
    ) -> dict[str, Any]:
        meta: dict[str, Any] = {"symbol": "TEST", "regularMarketTime": start + 86_400 * len(closes)}
        if price is not None:
            meta["regularMarketPrice"] = price
        if previous_close is not None:
            meta["chartPreviousClose"] = previous_close
        return {
            "chart": {
                "result": [
                    {
                        "meta": meta,
                        "timestamp": [start + 86_400 * i for i in range(len(closes))],
                        "indicators": {"quote": [{"close": closes}]},
                    }
                ],
                "error": None,
            }
        }

    @staticmethod
    def daily_csv(closes: list[Any], *, newest_first: bool = False) -> str:
        rows = [f"2024-01-{i + 1:02d},{c},{c},{c},{c},1000" for i, c in enumerate(closes)]
        if newest_first:
            rows.reverse()
        return "Date,Open,High,Low,Close,Volume\n" + "\n".join(rows) + "\n"

    @staticmethod
    def fred_csv(values: list[str]) -> str:
        rows = [f"2024-02-{i + 1:02d},{v}" for i, v in enumerate(values)]
        return "observation_date,DFII10\n" + "\n".join(rows) + "\n"

    @classmethod
    def healthy(cls, stub: UpstreamStub) -> UpstreamStub:
        """Register a successful primary response for every field."""

        closes = [float(c) for c in cls.RSI_CLOSES] + [121.0, 119.5, 122.0, 123.5]
        stub.json(cls.YAHOO, "DX-Y.NYB", cls.yahoo_chart([104.0, 104.2], price=104.3))
        stub.json(cls.YAHOO, "INR=X", cls.yahoo_chart([80.0, 81.0, 82.5, 84.0], price=84.1))
        stub.json(cls.YAHOO, "SETFGOLD.NS", cls.yahoo_chart(closes, price=123.45))
        stub.text(cls.FRED, "DFII10", cls.fred_csv(["1.90", "1.95", "."]))
        stub.json(
            cls.NAV,
            "listing",
            {"data": [{"symbol": "GOLDBEES", "nav": "60.1"}, {"symbol": "SETFGOLD", "iNavValue": "71.25"}]},
        )
        return stub


@pytest.fixture
def fakes() -> type[Fakes]:
    return Fakes


@pytest.fixture
def settings() -> ProviderSettings:
    return ProviderSettings(timeout=2.0, total_budget=5.0)


@pytest.fixture
def upstream() -> UpstreamStub:
    return UpstreamStub()


@pytest_asyncio.fixture
async def http_client(upstream: UpstreamStub):
    async with httpx.AsyncClient(transport=httpx.MockTransport(upstream)) as client:
        yield client


@pytest.fixture
def clients(http_client: httpx.AsyncClient, settings: ProviderSettings, metrics: MetricsCollector) -> ProviderClients:
    return ProviderClients.create(http_client, settings, metrics)
