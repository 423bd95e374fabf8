"""Explicit provider outcomes threaded through fallback chains.

Provider clients raise typed :class:`ProviderError` subclasses at their own
boundary. :func:`attempt` converts those into :class:`Failure` values so that
resolvers branch on data instead of catching exceptions. Any other exception
is a programming fault and propagates.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

import httpx

from marketsnap.core.exceptions import (
    InsufficientDataError,
    ParseError,
    ProviderError,
    UpstreamTimeoutError,
)
from marketsnap.core.models import ProviderTag

T = TypeVar("T")


class FailureKind(str, Enum):
    FETCH = "fetch"
    TIMEOUT = "timeout"
    PARSE = "parse"
    INSUFFICIENT_DATA = "insufficient_data"


@dataclass(frozen=True)
class Success(Generic[T]):
    value: T
    tag: ProviderTag


@dataclass(frozen=True)
class Failure:
    reason: str
    kind: FailureKind
    tag: ProviderTag


Outcome = Success[T] | Failure


def classify_error(error: ProviderError) -> FailureKind:
    if isinstance(error, UpstreamTimeoutError):
        return FailureKind.TIMEOUT
    if isinstance(error, InsufficientDataError):
        return FailureKind.INSUFFICIENT_DATA
    if isinstance(error, ParseError):
        return FailureKind.PARSE
    return FailureKind.FETCH


async def attempt(call: Awaitable[T], tag: ProviderTag) -> Outcome[T]:
    """Await one provider call and wrap its result or typed failure."""

    try:
        value = await call
    except ProviderError as e:
        return Failure(reason=e.message, kind=classify_error(e), tag=tag)
    except (asyncio.TimeoutError, httpx.TimeoutException) as e:
        return Failure(reason=f"timeout: {str(e) or 'deadline exceeded'}", kind=FailureKind.TIMEOUT, tag=tag)
    except httpx.HTTPError as e:
        return Failure(reason=f"{type(e).__name__}: {e}", kind=FailureKind.FETCH, tag=tag)
    return Success(value=value, tag=tag)
