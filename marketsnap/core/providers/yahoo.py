"""Yahoo Finance chart API client."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from marketsnap.core.exceptions import ParseError
from marketsnap.core.models import Quote, RawSeries, to_finite

from .http import UpstreamClient

PROVIDER = "yahoo"


def _timestamp(value: Any) -> datetime | None:
    seconds = to_finite(value)
    if seconds is None:
        return None
    try:
        return datetime.fromtimestamp(seconds, tz=UTC)
    except (OverflowError, OSError, ValueError):
        return None


def parse_chart_result(payload: Any, symbol: str) -> dict[str, Any]:
    """Return ``chart.result[0]`` or raise :class:`ParseError`."""

    chart = payload.get("chart") if isinstance(payload, dict) else None
    results = chart.get("result") if isinstance(chart, dict) else None
    if not isinstance(results, list) or not results or not isinstance(results[0], dict):
        detail = chart.get("error") if isinstance(chart, dict) else None
        raise ParseError(f"yahoo chart for {symbol} has no result", PROVIDER, details={"error": detail})
    return results[0]


def _section(result: dict[str, Any], key: str, kind: type, symbol: str) -> Any:
    """Return ``result[key]`` when it has the expected JSON type, an empty one when absent."""

    value = result.get(key)
    if value is None:
        return kind()
    if not isinstance(value, kind):
        raise ParseError(
            f"yahoo chart for {symbol} has malformed {key}",
            PROVIDER,
            details={"expected": kind.__name__, "actual": type(value).__name__},
        )
    return value


def _last_timestamp(result: dict[str, Any], symbol: str) -> datetime | None:
    timestamps = _section(result, "timestamp", list, symbol)
    return _timestamp(timestamps[-1]) if timestamps else None


def parse_quote(payload: Any, symbol: str) -> Quote:
    """Extract the latest price, preferring the live quote over the previous close."""

    result = parse_chart_result(payload, symbol)
    meta = _section(result, "meta", dict, symbol)
    price = None
    for key in ("regularMarketPrice", "chartPreviousClose", "previousClose"):
        price = to_finite(meta.get(key))
        if price is not None:
            break
    if price is None:
        raise ParseError(f"yahoo chart for {symbol} has no usable price", PROVIDER)
    as_of = _timestamp(meta.get("regularMarketTime"))
    if as_of is None:
        as_of = _last_timestamp(result, symbol)
    return Quote(price=price, as_of=as_of)


def parse_closes(payload: Any, symbol: str) -> RawSeries:
    """Extract the close array (oldest-first), dropping non-numeric entries."""

    result = parse_chart_result(payload, symbol)
    indicators = _section(result, "indicators", dict, symbol)
    quotes = _section(indicators, "quote", list, symbol)
    if quotes and not isinstance(quotes[0], dict):
        raise ParseError(f"yahoo chart for {symbol} has malformed quote", PROVIDER)
    closes = quotes[0].get("close") if quotes else None
    if not isinstance(closes, list):
        raise ParseError(f"yahoo chart for {symbol} has no close series", PROVIDER)
    return RawSeries.from_oldest_first(closes, as_of=_last_timestamp(result, symbol))


class YahooChartClient:
    """Fetches chart payloads for one symbol over a range/interval."""

    provider = PROVIDER

    def __init__(self, upstream: UpstreamClient, base_url: str) -> None:
        self.upstream = upstream
        self.base_url = base_url.rstrip("/")

    async def _chart(self, symbol: str, range_: str, interval: str) -> Any:
        return await self.upstream.get_json(
            PROVIDER,
            f"{self.base_url}/{symbol}",
            params={"range": range_, "interval": interval},
        )

    async def quote(self, symbol: str, range_: str = "1mo", interval: str = "1d") -> Quote:
        return parse_quote(await self._chart(symbol, range_, interval), symbol)

    async def closes(self, symbol: str, range_: str = "1mo", interval: str = "1d") -> RawSeries:
        return parse_closes(await self._chart(symbol, range_, interval), symbol)

    async def quote_with_closes(self, symbol: str, range_: str = "1mo", interval: str = "1d") -> tuple[Quote, RawSeries]:
        """One request yielding both the spot quote and the close window."""

        payload = await self._chart(symbol, range_, interval)
        return parse_quote(payload, symbol), parse_closes(payload, symbol)
