"""
市场快照 API 路由
"""

import json

from fastapi import APIRouter, BackgroundTasks, Request, Response
from loguru import logger

from marketsnap.core.aggregator import Aggregator, RequestOptions
from marketsnap.core.cache import ResponseCache, normalize_cache_key
from marketsnap.core.exceptions import ErrorCode, MarketSnapError
from marketsnap.core.logging import log_context
from marketsnap.core.models import ErrorEnvelope
from marketsnap.core.monitoring import get_metrics_collector
from marketsnap.web.utils import get_request_id

router = APIRouter()

JSON_CONTENT_TYPE = "application/json; charset=utf-8"


def _render(payload: dict) -> bytes:
    return json.dumps(payload, allow_nan=False, separators=(",", ":")).encode("utf-8")


def _json_response(
    request: Request,
    body: bytes,
    *,
    status_code: int = 200,
    cache_status: str | None = None,
    background: BackgroundTasks | None = None,
) -> Response:
    headers = {
        "Cache-Control": "no-store",
        "Access-Control-Allow-Origin": request.app.state.config.web.allow_origin,
    }
    if cache_status:
        headers["X-Cache"] = cache_status
    return Response(
        content=body,
        status_code=status_code,
        media_type=JSON_CONTENT_TYPE,
        headers=headers,
        background=background,
    )


@router.get("/market")
async def get_market(request: Request, background_tasks: BackgroundTasks) -> Response:
    """
    聚合市场快照

    - **inav**: off / 0 / false 跳过净值查询
    - **inavManual** / **priceManual** / **realYieldManual**: 手动数值覆盖，带覆盖参数的请求不读写缓存
    """
    aggregator: Aggregator = request.app.state.aggregator
    cache: ResponseCache | None = request.app.state.response_cache
    metrics = get_metrics_collector()

    options = RequestOptions.from_query(request.query_params)
    use_cache = cache is not None and not options.has_overrides
    key = normalize_cache_key(str(request.url))

    with log_context(trace_id=get_request_id(request), endpoint="/api/market"):
        if use_cache:
            cached = await cache.get(key)
            if cached is not None:
                metrics.record_cache_lookup("hit")
                logger.debug(f"cache hit for {key}")
                return _json_response(request, cached, cache_status="HIT")
            metrics.record_cache_lookup("miss")
        else:
            metrics.record_cache_lookup("bypass")

        try:
            snapshot = await aggregator.collect(options)
            body = _render(snapshot.to_wire())
        except Exception as e:
            logger.exception(f"aggregation failed: {e}")
            error_code = e.error_code if isinstance(e, MarketSnapError) else ErrorCode.INTERNAL_ERROR.value
            envelope = ErrorEnvelope(error=error_code, message=str(e) or type(e).__name__)
            return _json_response(request, _render(envelope.to_wire()), status_code=500)

        if use_cache:
            # written after the response has been sent
            background_tasks.add_task(cache.set, key, body, request.app.state.config.cache.ttl)
            return _json_response(request, body, cache_status="MISS", background=background_tasks)
        return _json_response(request, body, cache_status="BYPASS")
