"""Prometheus metrics helpers for marketsnap services."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import DefaultDict

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, generate_latest


@dataclass
class _ProviderStats:
    """Internal container tracking provider level success and failure counts."""

    total: int = 0
    failures: int = 0


class MetricsCollector:
    """Collects and exposes core Prometheus metrics for upstream calls and the response cache."""

    def __init__(self, *, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry or CollectorRegistry()
        self.upstream_latency_seconds = Histogram(
            "marketsnap_upstream_latency_seconds",
            "Latency distribution for upstream provider calls.",
            ("provider",),
            buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, float("inf")),
            registry=self.registry,
        )
        self.upstream_requests_total = Counter(
            "marketsnap_upstream_requests_total",
            "Total count of upstream provider calls.",
            ("provider",),
            registry=self.registry,
        )
        self.upstream_failures_total = Counter(
            "marketsnap_upstream_failures_total",
            "Total count of failed upstream provider calls.",
            ("provider",),
            registry=self.registry,
        )
        self.provider_error_rate = Gauge(
            "marketsnap_provider_error_rate",
            "Error rate for upstream providers since process start (0-1 range).",
            ("provider",),
            registry=self.registry,
        )
        self.field_unavailable_total = Counter(
            "marketsnap_field_unavailable_total",
            "Fields whose whole fallback chain was exhausted.",
            ("field",),
            registry=self.registry,
        )
        self.cache_lookups_total = Counter(
            "marketsnap_cache_lookups_total",
            "Response cache lookups grouped by outcome.",
            ("outcome",),
            registry=self.registry,
        )
        self._provider_stats: DefaultDict[str, _ProviderStats] = defaultdict(_ProviderStats)

    def observe_upstream(self, provider: str, latency_seconds: float, *, success: bool = True) -> None:
        """Record an upstream call execution."""

        self.upstream_latency_seconds.labels(provider=provider).observe(latency_seconds)
        self._record_outcome(provider=provider, success=success)

    def record_field_unavailable(self, field: str) -> None:
        self.field_unavailable_total.labels(field=field).inc()

    def record_cache_lookup(self, outcome: str) -> None:
        """Track response cache activity with constrained outcome labels."""

        label = outcome if outcome in _ALLOWED_CACHE_OUTCOMES else "__other__"
        self.cache_lookups_total.labels(outcome=label).inc()

    def render(self) -> bytes:
        """Render metrics in Prometheus exposition format."""

        return generate_latest(self.registry)

    def _record_outcome(self, *, provider: str, success: bool) -> None:
        stats = self._provider_stats[provider]
        stats.total += 1
        self.upstream_requests_total.labels(provider=provider).inc()
        if not success:
            stats.failures += 1
            self.upstream_failures_total.labels(provider=provider).inc()
        error_rate = stats.failures / stats.total if stats.total else 0.0
        self.provider_error_rate.labels(provider=provider).set(error_rate)


_DEFAULT_COLLECTOR: MetricsCollector | None = None


def get_metrics_collector() -> MetricsCollector:
    """Return the global metrics collector instance."""

    global _DEFAULT_COLLECTOR
    if _DEFAULT_COLLECTOR is None:
        _DEFAULT_COLLECTOR = MetricsCollector()
    return _DEFAULT_COLLECTOR


def configure_metrics_collector(collector: MetricsCollector | None) -> None:
    """Override the global metrics collector for application wiring or tests."""

    global _DEFAULT_COLLECTOR
    _DEFAULT_COLLECTOR = collector


_ALLOWED_CACHE_OUTCOMES = {"hit", "miss", "bypass"}
