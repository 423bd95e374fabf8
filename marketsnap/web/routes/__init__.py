"""
Web API 路由模块
"""

from marketsnap.web.metrics import router as metrics_router
from marketsnap.web.routes.health_routes import router as health_router
from marketsnap.web.routes.market_routes import router as market_router

__all__ = ["health_router", "market_router", "metrics_router"]
