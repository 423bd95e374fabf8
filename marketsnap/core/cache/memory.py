"""线程安全的内存响应缓存实现."""

import time
from collections import OrderedDict
from threading import Lock

from .base import ResponseCache


class InMemoryResponseCache(ResponseCache):
    """线程安全的LRU内存缓存, 条目按TTL过期."""

    def __init__(self, max_size: int = 256):
        """初始化内存缓存."""
        self.max_size = max_size
        self._cache: OrderedDict[str, tuple[bytes, float]] = OrderedDict()
        self._lock = Lock()

    async def get(self, key: str) -> bytes | None:
        with self._lock:
            if key not in self._cache:
                return None

            value, expiry = self._cache[key]

            if time.monotonic() > expiry:
                del self._cache[key]
                return None

            self._cache.move_to_end(key)
            return value

    async def set(self, key: str, value: bytes, ttl: float) -> None:
        expiry = time.monotonic() + ttl

        with self._lock:
            if key in self._cache:
                del self._cache[key]

            # 缓存已满时淘汰最久未使用的条目
            while len(self._cache) >= self.max_size and self._cache:
                self._cache.popitem(last=False)

            self._cache[key] = (value, expiry)

    async def delete(self, key: str) -> bool:
        with self._lock:
            return self._cache.pop(key, None) is not None

    async def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)
