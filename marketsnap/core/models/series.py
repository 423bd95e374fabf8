"""Intermediate shapes produced by provider clients."""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import Any


def to_finite(value: Any) -> float | None:
    """Coerce ``value`` to a finite float, returning ``None`` for anything else."""

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


@dataclass(frozen=True)
class RawSeries:
    """Closing prices ordered oldest-first plus the time of the newest observation."""

    closes: tuple[float, ...]
    as_of: datetime | None = None

    @classmethod
    def from_oldest_first(cls, values: Iterable[Any], as_of: datetime | None = None) -> "RawSeries":
        closes = tuple(number for number in (to_finite(v) for v in values) if number is not None)
        return cls(closes=closes, as_of=as_of)

    def __len__(self) -> int:
        return len(self.closes)

    @property
    def earliest(self) -> float | None:
        return self.closes[0] if self.closes else None

    @property
    def latest(self) -> float | None:
        return self.closes[-1] if self.closes else None


@dataclass(frozen=True)
class Quote:
    """A single spot observation."""

    price: float
    as_of: datetime | None = None


@dataclass(frozen=True)
class NavEntry:
    """A fund NAV row matched from a listing."""

    value: float
    name: str
    as_of: datetime | None = None
