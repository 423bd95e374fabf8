"""配置管理模块 - 处理marketsnap服务的配置"""

import os
import tomllib
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from loguru import logger

from marketsnap.core.exceptions import ConfigurationError


@dataclass
class ProviderSettings:
    """上游数据源配置"""

    timeout: float = 8.0
    total_budget: float = 20.0
    user_agent: str = "Mozilla/5.0 (compatible; marketsnap/0.1)"
    yahoo_base_url: str = "https://query1.finance.yahoo.com/v8/finance/chart"
    stooq_base_url: str = "https://stooq.com/q/d/l/"
    fred_base_url: str = "https://fred.stlouisfed.org/graph/fredgraph.csv"
    nav_listing_url: str = "https://www.nseindia.com/api/etf"

    dxy_symbol: str = "DX-Y.NYB"
    dxy_csv_symbol: str | None = "dx.f"
    usdinr_symbol: str = "INR=X"
    usdinr_csv_symbol: str | None = "usdinr"
    fx_range: str = "1mo"
    fx_interval: str = "1d"
    fx_window_points: int = 22
    real_yield_series: list[str] = field(default_factory=lambda: ["DFII10", "WFII10"])
    price_symbol: str = "SETFGOLD.NS"
    price_csv_symbol: str | None = None
    price_range: str = "1mo"
    rsi_range: str = "3mo"
    rsi_interval: str = "1d"
    rsi_period: int = 14
    rsi_min_points: int = 20
    nav_query: str = "SETFGOLD"

    def __post_init__(self) -> None:
        if self.timeout <= 0:
            raise ConfigurationError("timeout must be positive", key="providers.timeout")
        if self.total_budget < self.timeout:
            raise ConfigurationError("total_budget must not be shorter than timeout", key="providers.total_budget")
        if self.rsi_min_points <= self.rsi_period:
            raise ConfigurationError("rsi_min_points must exceed rsi_period", key="providers.rsi_min_points")


@dataclass
class CacheSettings:
    """响应缓存配置"""

    enabled: bool = True
    ttl: int = 180
    max_entries: int = 256


@dataclass
class LoggingSettings:
    """日志配置"""

    level: str = "INFO"
    serialize: bool = True
    file: str | None = None


@dataclass
class WebSettings:
    """Web服务配置"""

    host: str = "0.0.0.0"
    port: int = 8000
    allow_origin: str = "*"


@dataclass
class MarketSnapConfig:
    """marketsnap主配置"""

    providers: ProviderSettings = field(default_factory=ProviderSettings)
    cache: CacheSettings = field(default_factory=CacheSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)
    web: WebSettings = field(default_factory=WebSettings)

    @classmethod
    def from_dict(cls, config_dict: dict[str, Any]) -> "MarketSnapConfig":
        """从字典创建配置"""
        try:
            return cls(
                providers=ProviderSettings(**config_dict.get("providers", {})),
                cache=CacheSettings(**config_dict.get("cache", {})),
                logging=LoggingSettings(**config_dict.get("logging", {})),
                web=WebSettings(**config_dict.get("web", {})),
            )
        except TypeError as e:
            raise ConfigurationError(f"Unknown configuration key: {e}") from e

    def to_dict(self) -> dict[str, Any]:
        """转换为字典"""
        return {
            "providers": asdict(self.providers),
            "cache": asdict(self.cache),
            "logging": asdict(self.logging),
            "web": asdict(self.web),
        }


def _deep_update(d: dict[str, Any], u: dict[str, Any]) -> dict[str, Any]:
    """深度更新字典"""
    for k, v in u.items():
        if isinstance(v, dict):
            d[k] = _deep_update(d.get(k, {}), v)
        else:
            d[k] = v
    return d


class ConfigManager:
    """配置管理器: TOML文件 + 环境变量覆盖"""

    def __init__(self, config_path: Path | None = None):
        """初始化配置管理器

        Args:
            config_path: 配置文件路径，如果为None则读取 MARKETSNAP_CONFIG 或默认路径
        """
        env_path = os.getenv("MARKETSNAP_CONFIG")
        self.config_path = config_path or (Path(env_path) if env_path else Path.home() / ".marketsnap" / "config.toml")
        self.config = self._load_config()

    def _load_config(self) -> MarketSnapConfig:
        """加载配置"""
        config_dict: dict[str, Any] = {}
        if self.config_path.exists():
            try:
                with open(self.config_path, "rb") as f:
                    config_dict = tomllib.load(f)
            except (OSError, tomllib.TOMLDecodeError) as e:
                # 配置文件有问题时使用默认配置
                logger.warning(f"Failed to load config from {self.config_path}: {e}")
                config_dict = {}

        _deep_update(config_dict, load_config_from_env())
        return MarketSnapConfig.from_dict(config_dict)

    def get_config(self) -> MarketSnapConfig:
        """获取当前配置"""
        return self.config

    def update_config(self, **updates: Any) -> None:
        """更新配置"""
        config_dict = _deep_update(self.config.to_dict(), updates)
        self.config = MarketSnapConfig.from_dict(config_dict)


def _env_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


def load_config_from_env() -> dict[str, Any]:
    """从环境变量加载配置"""
    config: dict[str, Any] = {}

    provider_config: dict[str, Any] = {}
    provider_timeout = os.getenv("MARKETSNAP_PROVIDER_TIMEOUT")
    if provider_timeout is not None:
        provider_config["timeout"] = float(provider_timeout)
    provider_budget = os.getenv("MARKETSNAP_PROVIDER_TOTAL_BUDGET")
    if provider_budget is not None:
        provider_config["total_budget"] = float(provider_budget)
    nav_url = os.getenv("MARKETSNAP_NAV_LISTING_URL")
    if nav_url:
        provider_config["nav_listing_url"] = nav_url
    price_symbol = os.getenv("MARKETSNAP_PRICE_SYMBOL")
    if price_symbol:
        provider_config["price_symbol"] = price_symbol
    if provider_config:
        config["providers"] = provider_config

    cache_config: dict[str, Any] = {}
    cache_enabled = os.getenv("MARKETSNAP_CACHE_ENABLED")
    if cache_enabled is not None:
        cache_config["enabled"] = _env_bool(cache_enabled)
    cache_ttl = os.getenv("MARKETSNAP_CACHE_TTL")
    if cache_ttl is not None:
        cache_config["ttl"] = int(cache_ttl)
    if cache_config:
        config["cache"] = cache_config

    logging_config: dict[str, Any] = {}
    logging_level = os.getenv("MARKETSNAP_LOGGING_LEVEL")
    if logging_level is not None:
        logging_config["level"] = logging_level
    logging_file = os.getenv("MARKETSNAP_LOGGING_FILE")
    if logging_file is not None:
        logging_config["file"] = logging_file
    if logging_config:
        config["logging"] = logging_config

    web_config: dict[str, Any] = {}
    if os.getenv("MARKETSNAP_HOST"):
        web_config["host"] = os.getenv("MARKETSNAP_HOST")
    web_port = os.getenv("MARKETSNAP_PORT")
    if web_port is not None:
        web_config["port"] = int(web_port)
    if web_config:
        config["web"] = web_config

    return config
