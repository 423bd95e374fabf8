"""Response cache."""

from .base import ResponseCache
from .key import normalize_cache_key
from .memory import InMemoryResponseCache

__all__ = ["InMemoryResponseCache", "ResponseCache", "normalize_cache_key"]
