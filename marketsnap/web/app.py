"""
FastAPI 应用工厂和配置
"""

import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import httpx
from fastapi import FastAPI
from loguru import logger

from marketsnap import __version__
from marketsnap.core.aggregator import Aggregator
from marketsnap.core.cache import InMemoryResponseCache, ResponseCache
from marketsnap.core.config import ConfigManager, MarketSnapConfig
from marketsnap.core.logging import configure_logging
from marketsnap.core.providers import ProviderClients, create_http_client
from marketsnap.web.routes import health_router, market_router, metrics_router

_DEFAULT_CACHE = object()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """应用生命周期管理: 持有共享的 httpx 客户端"""
    config: MarketSnapConfig = app.state.config
    configure_logging(
        level=config.logging.level,
        serialize=config.logging.serialize,
        file_output=bool(config.logging.file),
        file_path=config.logging.file,
    )
    app.state.started_at = time.monotonic()

    http_client: httpx.AsyncClient | None = None
    if app.state.aggregator is None:
        http_client = create_http_client(config.providers)
        clients = ProviderClients.create(http_client, config.providers)
        app.state.aggregator = Aggregator.from_settings(config.providers, clients)
        logger.info("marketsnap aggregator initialised")

    try:
        yield
    finally:
        if http_client is not None:
            await http_client.aclose()
            app.state.aggregator = None


def create_app(
    config: MarketSnapConfig | None = None,
    aggregator: Aggregator | None = None,
    cache: ResponseCache | None | object = _DEFAULT_CACHE,
) -> FastAPI:
    """创建 FastAPI 应用实例

    Args:
        config: 服务配置, 默认从 TOML 文件和环境变量加载
        aggregator: 预先构建的聚合器 (测试注入), 默认在启动时创建
        cache: 响应缓存; 传入 None 关闭缓存
    """
    config = config or ConfigManager().get_config()
    app = FastAPI(
        title="marketsnap - 市场数据快照",
        description="聚合多个上游行情/经济数据源为单个 JSON 快照",
        version=__version__,
        lifespan=lifespan,
    )

    if cache is _DEFAULT_CACHE:
        cache = InMemoryResponseCache(max_size=config.cache.max_entries) if config.cache.enabled else None

    app.state.config = config
    app.state.aggregator = aggregator
    app.state.response_cache = cache

    _setup_routes(app)
    return app


def _setup_routes(app: FastAPI) -> None:
    """注册路由"""
    app.include_router(market_router, prefix="/api", tags=["market"])
    app.include_router(health_router, prefix="/api", tags=["health"])
    app.include_router(metrics_router)
