"""Standard error codes shared across marketsnap."""

from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    """Error codes attached to every :class:`MarketSnapError`."""

    GENERAL_ERROR = "GENERAL_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    PROVIDER_ERROR = "PROVIDER_ERROR"
    UPSTREAM_FETCH_FAILED = "UPSTREAM_FETCH_FAILED"
    UPSTREAM_TIMEOUT = "UPSTREAM_TIMEOUT"
    UPSTREAM_PARSE_FAILED = "UPSTREAM_PARSE_FAILED"
    INSUFFICIENT_DATA = "INSUFFICIENT_DATA"
    INTERNAL_ERROR = "INTERNAL_ERROR"
