"""marketsnap - 市场数据快照聚合服务

并发查询多个上游数据源 (Yahoo 图表、Stooq CSV、FRED 经济序列、基金净值列表)，
按字段执行回退链，计算 RSI(14)，合并成一个 JSON 快照。
单个数据源失败不会导致整个请求失败。
"""

from marketsnap.core.aggregator import Aggregator, RequestOptions
from marketsnap.core.config import MarketSnapConfig
from marketsnap.core.indicators import classify_trend, pct_change, rsi_wilder
from marketsnap.core.models import AggregateResponse, FieldName, FieldResult, ProviderTag, Trend

__version__ = "0.1.0"

__all__ = [
    "AggregateResponse",
    "Aggregator",
    "FieldName",
    "FieldResult",
    "MarketSnapConfig",
    "ProviderTag",
    "RequestOptions",
    "Trend",
    "classify_trend",
    "pct_change",
    "rsi_wilder",
]
