"""Fund NAV listing client with fuzzy name matching."""

from __future__ import annotations

from datetime import datetime
from typing import Any

import pandas as pd

from marketsnap.core.exceptions import ParseError
from marketsnap.core.models import NavEntry, to_finite

from .http import UpstreamClient

PROVIDER = "nav_listing"

NAME_KEYS = ("symbol", "assets", "schemeName", "scheme_name", "name", "fundName")
VALUE_KEYS = ("iNavValue", "inav", "iNav", "nav", "NAV", "netAssetValue")
DATE_KEYS = ("date", "navDate", "timestamp", "lastUpdateTime")


def _rows(payload: Any) -> list[dict[str, Any]]:
    if isinstance(payload, dict):
        for key in ("data", "rows", "results"):
            if isinstance(payload.get(key), list):
                payload = payload[key]
                break
    if not isinstance(payload, list):
        raise ParseError("nav listing is not a list of rows", PROVIDER)
    return [row for row in payload if isinstance(row, dict)]


def _number(value: Any) -> float | None:
    if isinstance(value, str):
        value = value.replace(",", "")
    return to_finite(value)


def _tokens(text: str) -> list[str]:
    return [token for token in text.lower().split() if token]


def _row_name(row: dict[str, Any]) -> str:
    return " ".join(str(row[key]) for key in NAME_KEYS if row.get(key) is not None)


def _row_date(row: dict[str, Any]) -> datetime | None:
    """First scalar date-like value in ``row``; nested or unparseable values are skipped."""

    for key in DATE_KEYS:
        raw = row.get(key)
        if isinstance(raw, bool) or not isinstance(raw, (str, int, float)) or not raw:
            continue
        stamp = pd.to_datetime(raw, errors="coerce", utc=True)
        if not pd.isna(stamp):
            return stamp.to_pydatetime()
    return None


def match_nav(payload: Any, query: str) -> NavEntry:
    """Return the first row whose name contains every token of ``query``."""

    tokens = _tokens(query)
    if not tokens:
        raise ParseError("nav query is empty", PROVIDER)

    for row in _rows(payload):
        name = _row_name(row)
        haystack = name.lower()
        if not all(token in haystack for token in tokens):
            continue
        value = next((v for v in (_number(row.get(key)) for key in VALUE_KEYS) if v is not None), None)
        if value is None or value <= 0:
            continue
        return NavEntry(value=value, name=name, as_of=_row_date(row))

    raise ParseError(f"no nav row matches '{query}'", PROVIDER)


class NavListingClient:
    """Fetches a JSON fund listing and picks the matching fund's NAV."""

    provider = PROVIDER

    def __init__(self, upstream: UpstreamClient, url: str) -> None:
        self.upstream = upstream
        self.url = url

    async def latest(self, query: str) -> NavEntry:
        payload = await self.upstream.get_json(PROVIDER, self.url)
        return match_nav(payload, query)
