"""HTTP tests for the market snapshot endpoint."""

from __future__ import annotations

import json
from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from prometheus_client import CONTENT_TYPE_LATEST

from marketsnap.core.aggregator import RequestOptions
from marketsnap.core.cache import InMemoryResponseCache
from marketsnap.core.config import MarketSnapConfig
from marketsnap.core.models import AggregateResponse, Trend
from marketsnap.web import create_app


class StubAggregator:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.calls: list[RequestOptions] = []

    async def collect(self, options: RequestOptions | None = None) -> AggregateResponse:
        self.calls.append(options)
        if self.error is not None:
            raise self.error
        manual = {name.value: value for name, value in options.overrides.items()}
        return AggregateResponse(
            dxy=104.3,
            usd_inr=84.1,
            usd_inr_change_pct30d=5.0,
            usd_inr_trend=Trend.WEAKENING,
            real_yield=None,
            setf_gold_price=manual.get("setfGoldPrice", 123.45),
            inav=None if not options.inav_enabled else 71.25,
            manual=manual,
            errors=["realYield: fred returned HTTP 500"] + options.notes,
        )


@pytest.fixture
def config() -> MarketSnapConfig:
    config = MarketSnapConfig()
    config.logging.serialize = False
    config.logging.level = "WARNING"
    return config


@pytest.fixture
def aggregator() -> StubAggregator:
    return StubAggregator()


@pytest.fixture
def cache() -> InMemoryResponseCache:
    return InMemoryResponseCache()


@pytest.fixture
def client(config, aggregator, cache):
    with TestClient(create_app(config, aggregator=aggregator, cache=cache)) as test_client:
        yield test_client


def test_snapshot_body_and_headers(client):
    response = client.get("/api/market")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/json")
    assert "charset=utf-8" in response.headers["content-type"]
    assert response.headers["cache-control"] == "no-store"
    assert response.headers["access-control-allow-origin"] == "*"
    assert response.headers["x-cache"] == "MISS"

    body = response.json()
    assert body["dxy"] == 104.3
    assert body["usdInrTrend"] == "weakening"
    assert body["realYield"] is None
    assert body["errors"] == ["realYield: fred returned HTTP 500"]
    datetime.fromisoformat(body["asOf"])


def test_second_request_served_from_cache(client, aggregator, metrics):
    first = client.get("/api/market")
    second = client.get("/api/market")

    assert second.headers["x-cache"] == "HIT"
    assert second.headers["cache-control"] == "no-store"
    assert second.content == first.content
    assert len(aggregator.calls) == 1
    assert metrics.cache_lookups_total.labels(outcome="hit")._value.get() == 1


def test_query_order_shares_cache_entry(client, aggregator):
    client.get("/api/market?inav=off&x=1")
    response = client.get("/api/market?x=1&inav=off")

    assert response.headers["x-cache"] == "HIT"
    assert len(aggregator.calls) == 1


def test_inav_toggle_is_forwarded(client, aggregator):
    body = client.get("/api/market", params={"inav": "off"}).json()

    assert body["inav"] is None
    assert aggregator.calls[0].inav_enabled is False


def test_manual_override_bypasses_cache(client, aggregator, cache):
    first = client.get("/api/market", params={"priceManual": "150"})
    second = client.get("/api/market", params={"priceManual": "150"})

    assert first.headers["x-cache"] == "BYPASS"
    assert second.headers["x-cache"] == "BYPASS"
    assert second.json()["setfGoldPrice"] == 150.0
    assert second.json()["manual"] == {"setfGoldPrice": 150.0}
    assert len(aggregator.calls) == 2
    assert len(cache) == 0


def test_invalid_override_still_bypasses_and_is_reported(client, cache):
    response = client.get("/api/market", params={"inavManual": "abc"})

    assert response.headers["x-cache"] == "BYPASS"
    assert "inavManual: ignored non-numeric value 'abc'" in response.json()["errors"]
    assert len(cache) == 0


def test_cache_disabled(config, aggregator):
    with TestClient(create_app(config, aggregator=aggregator, cache=None)) as client:
        client.get("/api/market")
        response = client.get("/api/market")

    assert response.headers["x-cache"] == "BYPASS"
    assert len(aggregator.calls) == 2


def test_unexpected_fault_returns_error_envelope(config, cache):
    aggregator = StubAggregator(error=RuntimeError("resolver bug"))
    with TestClient(create_app(config, aggregator=aggregator, cache=cache)) as client:
        response = client.get("/api/market")

    assert response.status_code == 500
    assert response.headers["cache-control"] == "no-store"
    body = json.loads(response.content)
    assert set(body) == {"error", "message", "asOf"}
    assert body["error"] == "INTERNAL_ERROR"
    assert body["message"] == "resolver bug"
    datetime.fromisoformat(body["asOf"])
    assert len(cache) == 0


def test_health(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["cacheEnabled"] is True
    assert body["uptimeSeconds"] >= 0


def test_metrics_exposes_cache_lookups(client):
    client.get("/api/market")
    response = client.get("/metrics")

    assert response.status_code == 200
    assert response.headers["content-type"] == CONTENT_TYPE_LATEST
    assert "marketsnap_cache_lookups_total" in response.text
