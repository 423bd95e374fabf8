"""Data models."""

from .response import (
    SCHEMA_VERSION,
    AggregateResponse,
    ErrorEnvelope,
    FieldName,
    FieldResult,
    ProviderTag,
    Trend,
    utc_now,
)
from .series import NavEntry, Quote, RawSeries, to_finite

__all__ = [
    "SCHEMA_VERSION",
    "AggregateResponse",
    "ErrorEnvelope",
    "FieldName",
    "FieldResult",
    "NavEntry",
    "ProviderTag",
    "Quote",
    "RawSeries",
    "Trend",
    "to_finite",
    "utc_now",
]
