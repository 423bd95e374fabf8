"""Stooq daily-bar CSV client."""

from __future__ import annotations

import io

import numpy as np
import pandas as pd

from marketsnap.core.exceptions import InsufficientDataError, ParseError
from marketsnap.core.models import RawSeries

from .http import UpstreamClient

PROVIDER = "stooq"
_CLOSE_COLUMN_INDEX = 4


def read_csv_frame(text: str, provider: str) -> pd.DataFrame:
    """Parse CSV text into a frame, mapping pandas failures to :class:`ParseError`."""

    try:
        return pd.read_csv(io.StringIO(text), skipinitialspace=True)
    except (pd.errors.EmptyDataError, pd.errors.ParserError) as e:
        raise ParseError(f"{provider} returned unreadable CSV: {e}", provider) from e


def parse_daily_closes(text: str, symbol: str, limit: int | None = None) -> RawSeries:
    """Extract closes from a daily-bar CSV, ordered oldest-first by date.

    The close column is located by header name and falls back to the fifth
    column (Date, Open, High, Low, Close). Rows with a missing or non-numeric
    close are dropped.
    """
    frame = read_csv_frame(text, PROVIDER)
    columns = {str(c).strip().lower(): c for c in frame.columns}
    close_column = columns.get("close")
    if close_column is None and len(frame.columns) > _CLOSE_COLUMN_INDEX:
        close_column = frame.columns[_CLOSE_COLUMN_INDEX]
    if close_column is None:
        raise ParseError(f"stooq CSV for {symbol} has no close column", PROVIDER)

    closes = pd.to_numeric(frame[close_column], errors="coerce").astype(float)
    closes = closes.where(np.isfinite(closes))
    date_column = columns.get("date", frame.columns[0])
    dates = pd.to_datetime(frame[date_column], errors="coerce", utc=True)
    rows = pd.DataFrame({"date": dates, "close": closes}).dropna(subset=["close"])

    # normalise to oldest-first whatever order the provider used
    dated = rows.dropna(subset=["date"])
    if len(dated) >= 2:
        rows = dated.sort_values("date", kind="stable")

    if len(rows) < 2:
        raise InsufficientDataError(
            f"stooq CSV for {symbol} has {len(rows)} usable rows", PROVIDER, required=2, actual=len(rows)
        )

    if limit is not None:
        rows = rows.tail(limit)

    last_date = rows["date"].iloc[-1]
    as_of = None if pd.isna(last_date) else last_date.to_pydatetime()
    return RawSeries.from_oldest_first(rows["close"].tolist(), as_of=as_of)


class StooqCsvClient:
    """Fetches daily OHLC bars for one symbol as CSV."""

    provider = PROVIDER

    def __init__(self, upstream: UpstreamClient, base_url: str) -> None:
        self.upstream = upstream
        self.base_url = base_url

    async def closes(self, symbol: str, limit: int | None = None) -> RawSeries:
        text = await self.upstream.get_text(PROVIDER, self.base_url, params={"s": symbol, "i": "d"})
        return parse_daily_closes(text, symbol, limit=limit)
