"""响应缓存接口定义."""

from abc import ABC, abstractmethod


class ResponseCache(ABC):
    """响应缓存抽象基类. 值为完整的、自包含的响应体."""

    @abstractmethod
    async def get(self, key: str) -> bytes | None:
        """从缓存获取响应体."""

    @abstractmethod
    async def set(self, key: str, value: bytes, ttl: float) -> None:
        """写入响应体."""

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """删除缓存数据."""

    @abstractmethod
    async def clear(self) -> None:
        """清空缓存."""
