"""FRED economic series CSV client."""

from __future__ import annotations

from datetime import datetime

import pandas as pd

from marketsnap.core.exceptions import ParseError
from marketsnap.core.models import to_finite

from .http import UpstreamClient
from .stooq import read_csv_frame

PROVIDER = "fred"


def parse_last_value(text: str, series_id: str) -> tuple[float, datetime | None]:
    """Scan from the last row backwards for the first numeric value.

    FRED marks missing observations with ``.``; those rows are skipped.
    """
    frame = read_csv_frame(text, PROVIDER)
    if len(frame.columns) < 2:
        raise ParseError(f"fred CSV for {series_id} has no value column", PROVIDER)

    dates = frame.iloc[:, 0]
    values = frame.iloc[:, 1]
    for index in range(len(frame) - 1, -1, -1):
        value = to_finite(values.iloc[index])
        if value is None:
            continue
        stamp = pd.to_datetime(dates.iloc[index], errors="coerce", utc=True)
        return value, None if pd.isna(stamp) else stamp.to_pydatetime()

    raise ParseError(f"fred CSV for {series_id} has no numeric observation", PROVIDER)


class FredCsvClient:
    """Fetches a single economic series as CSV."""

    provider = PROVIDER

    def __init__(self, upstream: UpstreamClient, base_url: str) -> None:
        self.upstream = upstream
        self.base_url = base_url

    async def latest(self, series_id: str) -> tuple[float, datetime | None]:
        text = await self.upstream.get_text(PROVIDER, self.base_url, params={"id": series_id})
        return parse_last_value(text, series_id)
