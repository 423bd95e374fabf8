"""
Per-field fallback chains.

Each output field owns a :class:`FieldResolver` holding an ordered list of
provider steps. ``resolve()`` tries them strictly in order and the first step
yielding a finite value wins. When every step fails the resolver returns an
unavailable :class:`FieldResult` plus one error string; provider failures
never propagate past this boundary.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from loguru import logger
from pydantic import ValidationError

from marketsnap.core.config import ProviderSettings
from marketsnap.core.exceptions import InsufficientDataError, ParseError
from marketsnap.core.indicators import classify_trend, pct_change, rsi_wilder
from marketsnap.core.models import FieldName, FieldResult, ProviderTag, RawSeries
from marketsnap.core.monitoring import MetricsCollector, get_metrics_collector
from marketsnap.core.outcome import Failure, FailureKind, Success, attempt
from marketsnap.core.providers import ProviderClients

Fetch = Callable[[], Awaitable[FieldResult]]

# raised when a payload drifts from the shape a parser expects
SHAPE_ERRORS = (ValidationError, KeyError, IndexError, TypeError, AttributeError)


def _first_line(error: BaseException) -> str:
    text = str(error).strip()
    return text.splitlines()[0] if text else ""


@dataclass
class ProviderStep:
    """One provider in a fallback chain."""

    tag: ProviderTag
    fetch: Fetch

    async def run(self) -> FieldResult:
        """Run ``fetch``, reporting payload shape faults as :class:`ParseError`."""

        try:
            return await self.fetch()
        except SHAPE_ERRORS as e:
            raise ParseError(
                f"{self.tag.provider} payload has unexpected shape: {type(e).__name__}: {_first_line(e)}",
                self.tag.provider,
            ) from e


@dataclass
class Resolution:
    """Outcome of walking one fallback chain."""

    field: FieldName
    result: FieldResult
    error: str | None = None
    failures: list[Failure] = field(default_factory=list)

    @property
    def resolved(self) -> bool:
        return self.error is None


class FieldResolver:
    """TryPrimary -> TryFallback(s) -> Resolved | Unavailable."""

    def __init__(
        self,
        field_name: FieldName,
        steps: list[ProviderStep],
        metrics: MetricsCollector | None = None,
    ) -> None:
        self.field = field_name
        self.steps = steps
        self.metrics = metrics or get_metrics_collector()

    async def resolve(self) -> Resolution:
        failures: list[Failure] = []
        for step in self.steps:
            log = logger.bind(field=self.field.value, provider=step.tag.provider)
            outcome = await attempt(step.run(), step.tag)
            if isinstance(outcome, Success):
                candidate: FieldResult = outcome.value
                if candidate.value is not None:
                    log.debug(f"{self.field.value} resolved from {step.tag.provider}")
                    return Resolution(
                        field=self.field,
                        result=candidate.model_copy(update={"source": step.tag}),
                        failures=failures,
                    )
                outcome = Failure(reason="no finite value", kind=FailureKind.PARSE, tag=step.tag)
            log.warning(f"{self.field.value} provider {step.tag.provider} failed: {outcome.reason}")
            failures.append(outcome)

        return self.unavailable(failures)

    def unavailable(self, failures: list[Failure]) -> Resolution:
        """Build the result for an exhausted chain."""

        if failures:
            last = failures[-1]
            reason = last.reason
            source = last.tag.with_note(reason)
        else:
            reason = "no providers configured"
            source = None
        self.metrics.record_field_unavailable(self.field.value)
        logger.bind(field=self.field.value).error(f"{self.field.value} unavailable: {reason}")
        return Resolution(
            field=self.field,
            result=FieldResult(value=None, source=source),
            error=f"{self.field.value}: {reason}",
            failures=failures,
        )


def _latest_close(series: RawSeries) -> FieldResult:
    return FieldResult(value=series.latest, as_of=series.as_of)


def _fx_result(spot: float | None, series: RawSeries, as_of=None) -> FieldResult:
    change = pct_change(series.earliest, series.latest)
    return FieldResult(
        value=spot,
        as_of=as_of or series.as_of,
        pct30d=change,
        trend=classify_trend(change),
    )


def _rsi_result(series: RawSeries, settings: ProviderSettings, provider: str) -> FieldResult:
    if len(series) < settings.rsi_min_points:
        raise InsufficientDataError(
            f"need {settings.rsi_min_points} closes for RSI, got {len(series)}",
            provider,
            required=settings.rsi_min_points,
            actual=len(series),
        )
    value = rsi_wilder(series.closes, settings.rsi_period)
    if value is None:
        raise InsufficientDataError(
            "RSI unavailable for series", provider, required=settings.rsi_period + 1, actual=len(series)
        )
    return FieldResult(value=value, as_of=series.as_of)


def _dxy_steps(s: ProviderSettings, c: ProviderClients) -> list[ProviderStep]:
    async def yahoo() -> FieldResult:
        quote = await c.yahoo.quote(s.dxy_symbol, "5d", "1d")
        return FieldResult(value=quote.price, as_of=quote.as_of)

    async def stooq() -> FieldResult:
        return _latest_close(await c.stooq.closes(s.dxy_csv_symbol, limit=5))

    steps = [ProviderStep(ProviderTag(provider="yahoo", symbol=s.dxy_symbol, window="5d", interval="1d"), yahoo)]
    if s.dxy_csv_symbol:
        steps.append(ProviderStep(ProviderTag(provider="stooq", symbol=s.dxy_csv_symbol, interval="1d"), stooq))
    return steps


def _usd_inr_steps(s: ProviderSettings, c: ProviderClients) -> list[ProviderStep]:
    async def yahoo() -> FieldResult:
        quote, series = await c.yahoo.quote_with_closes(s.usdinr_symbol, s.fx_range, s.fx_interval)
        return _fx_result(quote.price, series, as_of=quote.as_of)

    async def stooq() -> FieldResult:
        series = await c.stooq.closes(s.usdinr_csv_symbol, limit=s.fx_window_points)
        return _fx_result(series.latest, series)

    steps = [
        ProviderStep(
            ProviderTag(provider="yahoo", symbol=s.usdinr_symbol, window=s.fx_range, interval=s.fx_interval),
            yahoo,
        )
    ]
    if s.usdinr_csv_symbol:
        steps.append(
            ProviderStep(
                ProviderTag(
                    provider="stooq",
                    symbol=s.usdinr_csv_symbol,
                    window=f"{s.fx_window_points}d",
                    interval="1d",
                ),
                stooq,
            )
        )
    return steps


def _real_yield_steps(s: ProviderSettings, c: ProviderClients) -> list[ProviderStep]:
    def make(series_id: str) -> Fetch:
        async def fred() -> FieldResult:
            value, as_of = await c.fred.latest(series_id)
            return FieldResult(value=value, as_of=as_of)

        return fred

    return [ProviderStep(ProviderTag(provider="fred", series=series_id), make(series_id)) for series_id in s.real_yield_series]


def _price_steps(s: ProviderSettings, c: ProviderClients) -> list[ProviderStep]:
    async def yahoo() -> FieldResult:
        quote = await c.yahoo.quote(s.price_symbol, s.price_range, "1d")
        return FieldResult(value=quote.price, as_of=quote.as_of)

    async def stooq() -> FieldResult:
        return _latest_close(await c.stooq.closes(s.price_csv_symbol, limit=5))

    steps = [ProviderStep(ProviderTag(provider="yahoo", symbol=s.price_symbol, window=s.price_range, interval="1d"), yahoo)]
    if s.price_csv_symbol:
        steps.append(ProviderStep(ProviderTag(provider="stooq", symbol=s.price_csv_symbol, interval="1d"), stooq))
    return steps


def _rsi_steps(s: ProviderSettings, c: ProviderClients) -> list[ProviderStep]:
    async def yahoo() -> FieldResult:
        series = await c.yahoo.closes(s.price_symbol, s.rsi_range, s.rsi_interval)
        return _rsi_result(series, s, "yahoo")

    async def stooq() -> FieldResult:
        series = await c.stooq.closes(s.price_csv_symbol, limit=100)
        return _rsi_result(series, s, "stooq")

    steps = [
        ProviderStep(
            ProviderTag(provider="yahoo", symbol=s.price_symbol, window=s.rsi_range, interval=s.rsi_interval),
            yahoo,
        )
    ]
    if s.price_csv_symbol:
        steps.append(ProviderStep(ProviderTag(provider="stooq", symbol=s.price_csv_symbol, window="100d", interval="1d"), stooq))
    return steps


def _nav_steps(s: ProviderSettings, c: ProviderClients) -> list[ProviderStep]:
    async def listing() -> FieldResult:
        entry = await c.nav.latest(s.nav_query)
        return FieldResult(value=entry.value, as_of=entry.as_of)

    return [ProviderStep(ProviderTag(provider="nav_listing", symbol=s.nav_query), listing)]


_STEP_BUILDERS: dict[FieldName, Callable[[ProviderSettings, ProviderClients], list[ProviderStep]]] = {
    FieldName.DXY: _dxy_steps,
    FieldName.USD_INR: _usd_inr_steps,
    FieldName.REAL_YIELD: _real_yield_steps,
    FieldName.PRICE: _price_steps,
    FieldName.RSI: _rsi_steps,
    FieldName.INAV: _nav_steps,
}


def build_resolvers(
    settings: ProviderSettings,
    clients: ProviderClients,
    metrics: MetricsCollector | None = None,
) -> dict[FieldName, FieldResolver]:
    """Create one resolver per output field from configuration."""

    return {name: FieldResolver(name, builder(settings, clients), metrics) for name, builder in _STEP_BUILDERS.items()}
