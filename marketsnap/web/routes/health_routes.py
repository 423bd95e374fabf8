"""
健康检查路由
"""

import time

from fastapi import APIRouter, Request

from marketsnap import __version__
from marketsnap.core.models import utc_now

router = APIRouter()


@router.get("/health")
async def health_check(request: Request) -> dict:
    """基础健康检查, 不访问任何上游数据源"""
    started = getattr(request.app.state, "started_at", None)
    return {
        "status": "ok",
        "version": __version__,
        "asOf": utc_now().isoformat(),
        "uptimeSeconds": round(time.monotonic() - started, 3) if started is not None else None,
        "cacheEnabled": request.app.state.response_cache is not None,
    }
