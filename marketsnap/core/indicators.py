"""Pure numeric helpers: Wilder RSI, percentage change and trend buckets."""

from __future__ import annotations

import math
from collections.abc import Sequence

from marketsnap.core.models import Trend

RSI_PERIOD = 14
TREND_THRESHOLD_PCT = 0.5


def round_half_up(value: float, digits: int = 1) -> float:
    """Round ``value`` half-up at ``digits`` decimals (``floor(x * 10**d + 0.5) / 10**d``)."""

    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


def rsi_wilder(closes: Sequence[float], period: int = RSI_PERIOD) -> float | None:
    """Compute the Wilder-smoothed relative strength index.

    Args:
        closes: Closing prices ordered oldest-first.
        period: Smoothing period, 14 by default.

    Returns:
        The oscillator rounded to one decimal in ``[0, 100]``, or ``None``
        when fewer than ``period + 1`` closes are supplied.
    """
    if period < 1 or len(closes) < period + 1:
        return None

    gains = 0.0
    losses = 0.0
    for i in range(1, period + 1):
        change = closes[i] - closes[i - 1]
        if change >= 0:
            gains += change
        else:
            losses -= change

    avg_gain = gains / period
    avg_loss = losses / period

    for i in range(period + 1, len(closes)):
        change = closes[i] - closes[i - 1]
        gain = max(change, 0.0)
        loss = max(-change, 0.0)
        avg_gain = (avg_gain * (period - 1) + gain) / period
        avg_loss = (avg_loss * (period - 1) + loss) / period

    if avg_loss == 0:
        return 100.0

    rs = avg_gain / avg_loss
    return round_half_up(100 - 100 / (1 + rs), 1)


def pct_change(earliest: float | None, latest: float | None) -> float | None:
    """``(latest - earliest) / earliest * 100``; ``None`` when undefined."""

    if earliest is None or latest is None or earliest == 0:
        return None
    result = (latest - earliest) / earliest * 100
    return result if math.isfinite(result) else None


def classify_trend(change_pct: float | None) -> Trend | None:
    """Bucket a USD/INR percentage change.

    A rising rate means the rupee is weakening against the dollar.
    """
    if change_pct is None:
        return None
    if change_pct > TREND_THRESHOLD_PCT:
        return Trend.WEAKENING
    if change_pct < -TREND_THRESHOLD_PCT:
        return Trend.STRENGTHENING
    return Trend.STABLE
