"""Exception handling module."""

from marketsnap.core.exceptions.base import (
    ConfigurationError,
    FetchError,
    InsufficientDataError,
    MarketSnapError,
    ParseError,
    ProviderError,
    UpstreamTimeoutError,
)
from marketsnap.core.exceptions.codes import ErrorCode

__all__ = [
    "MarketSnapError",
    "ConfigurationError",
    "ProviderError",
    "FetchError",
    "UpstreamTimeoutError",
    "ParseError",
    "InsufficientDataError",
    "ErrorCode",
]
