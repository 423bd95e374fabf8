"""marketsnap核心异常类."""

from typing import Any

from marketsnap.core.exceptions.codes import ErrorCode


class MarketSnapError(Exception):
    """marketsnap基础异常类."""

    def __init__(
        self,
        message: str,
        error_code: str = ErrorCode.GENERAL_ERROR.value,
        details: dict[str, Any] | None = None,
    ):
        """初始化异常.

        Args:
            message: 错误消息
            error_code: 错误代码
            details: 额外详情
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}


class ConfigurationError(MarketSnapError):
    """配置异常."""

    def __init__(self, message: str, key: str | None = None):
        details = {"key": key} if key else {}
        super().__init__(message, ErrorCode.CONFIGURATION_ERROR.value, details)
        self.key = key


class ProviderError(MarketSnapError):
    """上游数据源相关异常."""

    def __init__(
        self,
        message: str,
        provider_name: str,
        error_code: str = ErrorCode.PROVIDER_ERROR.value,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, error_code, details)
        self.provider_name = provider_name


class FetchError(ProviderError):
    """上游请求失败 (非2xx状态码或网络故障)."""

    def __init__(
        self,
        message: str,
        provider_name: str,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        super_details = details or {}
        if status_code is not None:
            super_details["status_code"] = status_code
        super().__init__(message, provider_name, ErrorCode.UPSTREAM_FETCH_FAILED.value, super_details)
        self.status_code = status_code


class UpstreamTimeoutError(ProviderError):
    """上游请求超时."""

    def __init__(self, message: str, provider_name: str, timeout: float | None = None):
        details = {"timeout": timeout} if timeout is not None else {}
        super().__init__(message, provider_name, ErrorCode.UPSTREAM_TIMEOUT.value, details)
        self.timeout = timeout


class ParseError(ProviderError):
    """上游响应结构不符合预期."""

    def __init__(self, message: str, provider_name: str, details: dict[str, Any] | None = None):
        super().__init__(message, provider_name, ErrorCode.UPSTREAM_PARSE_FAILED.value, details)


class InsufficientDataError(ProviderError):
    """数据点不足."""

    def __init__(self, message: str, provider_name: str, required: int, actual: int):
        super().__init__(
            message,
            provider_name,
            ErrorCode.INSUFFICIENT_DATA.value,
            {"required": required, "actual": actual},
        )
        self.required = required
        self.actual = actual
