"""Fan-out/fan-in aggregation of all field resolvers for one request."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime

from loguru import logger

from marketsnap.core.config import ProviderSettings
from marketsnap.core.models import AggregateResponse, FieldName, FieldResult, ProviderTag, to_finite, utc_now
from marketsnap.core.monitoring import MetricsCollector
from marketsnap.core.outcome import Failure, FailureKind
from marketsnap.core.providers import ProviderClients
from marketsnap.core.resolvers import FieldResolver, Resolution, build_resolvers

# query parameter -> field it replaces
OVERRIDE_PARAMS: dict[str, FieldName] = {
    "inavManual": FieldName.INAV,
    "priceManual": FieldName.PRICE,
    "realYieldManual": FieldName.REAL_YIELD,
}

INAV_OFF_TAG = ProviderTag(provider="none", note="inav_off")


@dataclass
class RequestOptions:
    """Request-scoped switches parsed from the query string."""

    inav_enabled: bool = True
    overrides: dict[FieldName, float] = field(default_factory=dict)
    notes: list[str] = field(default_factory=list)
    manual_requested: bool = False

    @property
    def has_overrides(self) -> bool:
        """True when the caller sent any manual parameter, valid or not."""

        return bool(self.overrides) or self.manual_requested

    @classmethod
    def from_query(cls, params: Mapping[str, str]) -> "RequestOptions":
        """Parse the toggle and manual override parameters.

        ``inav`` disables the NAV lookup for ``off``, ``0`` or ``false``
        (case-insensitive). Override values that are not finite numbers are
        ignored and reported in ``notes``.
        """
        inav_param = (params.get("inav") or "").strip().lower()
        options = cls(inav_enabled=inav_param not in {"off", "0", "false"})
        for param, name in OVERRIDE_PARAMS.items():
            raw = params.get(param)
            if raw is None or not raw.strip():
                continue
            options.manual_requested = True
            value = to_finite(raw)
            if value is None:
                options.notes.append(f"{param}: ignored non-numeric value {raw!r}")
                continue
            options.overrides[name] = value
        return options


class Aggregator:
    """Runs every applicable resolver concurrently and merges the results."""

    def __init__(
        self,
        resolvers: Mapping[FieldName, FieldResolver],
        total_budget: float = 20.0,
    ) -> None:
        self.resolvers = dict(resolvers)
        self.total_budget = total_budget

    @classmethod
    def from_settings(
        cls,
        settings: ProviderSettings,
        clients: ProviderClients,
        metrics: MetricsCollector | None = None,
    ) -> "Aggregator":
        return cls(build_resolvers(settings, clients, metrics), total_budget=settings.total_budget)

    async def _resolve_bounded(self, resolver: FieldResolver) -> Resolution:
        try:
            return await asyncio.wait_for(resolver.resolve(), timeout=self.total_budget)
        except asyncio.TimeoutError:
            tag = resolver.steps[0].tag if resolver.steps else ProviderTag(provider="none")
            failure = Failure(
                reason=f"exceeded {self.total_budget:g}s aggregate budget",
                kind=FailureKind.TIMEOUT,
                tag=tag,
            )
            return resolver.unavailable([failure])

    async def resolve_all(self, options: RequestOptions) -> dict[FieldName, Resolution]:
        """Resolve every enabled field; waits until all have settled."""

        names = [name for name in self.resolvers if name is not FieldName.INAV or options.inav_enabled]
        settled = await asyncio.gather(
            *(self._resolve_bounded(self.resolvers[name]) for name in names),
            return_exceptions=True,
        )
        faults = [item for item in settled if isinstance(item, BaseException)]
        if faults:
            # resolvers absorb provider failures; anything here is a bug
            raise faults[0]
        return dict(zip(names, settled, strict=True))

    async def collect(self, options: RequestOptions | None = None) -> AggregateResponse:
        options = options or RequestOptions()
        as_of = utc_now()
        resolutions = await self.resolve_all(options)
        response = merge(resolutions, options, as_of)
        logger.info(
            f"aggregated {len(resolutions)} fields with {len(response.errors)} errors",
            errors=len(response.errors),
            overrides=sorted(name.value for name in options.overrides),
        )
        return response


def _value(results: Mapping[FieldName, FieldResult], name: FieldName) -> FieldResult:
    return results.get(name) or FieldResult()


def merge(
    resolutions: Mapping[FieldName, Resolution],
    options: RequestOptions,
    as_of: datetime,
) -> AggregateResponse:
    """Assemble the response: values, provenance, auto values and errors."""

    auto = {name: resolution.result for name, resolution in resolutions.items()}
    merged = dict(auto)
    for name, manual_value in options.overrides.items():
        merged[name] = _value(auto, name).model_copy(update={"value": manual_value, "as_of": as_of})

    freshness: dict[str, ProviderTag | None] = {name.value: None for name in FieldName}
    for name, result in auto.items():
        freshness[name.value] = result.source
    if not options.inav_enabled:
        freshness[FieldName.INAV.value] = INAV_OFF_TAG

    errors = [resolutions[name].error for name in FieldName if name in resolutions and resolutions[name].error]
    errors.extend(options.notes)

    fx = _value(merged, FieldName.USD_INR)
    price = _value(merged, FieldName.PRICE)
    rsi = _value(merged, FieldName.RSI)
    inav = _value(merged, FieldName.INAV)

    return AggregateResponse(
        dxy=_value(merged, FieldName.DXY).value,
        usd_inr=fx.value,
        usd_inr_change_pct30d=fx.pct30d,
        usd_inr_trend=fx.trend,
        real_yield=_value(merged, FieldName.REAL_YIELD).value,
        setf_gold_price=price.value,
        setf_gold_price_as_of=price.as_of or as_of,
        rsi14_setfgold=rsi.value,
        rsi14_setfgold_as_of=rsi.as_of,
        inav=inav.value,
        inav_as_of=inav.as_of,
        as_of=as_of,
        freshness=freshness,
        auto={name.value: result for name, result in auto.items()},
        manual={name.value: value for name, value in options.overrides.items()},
        errors=errors,
    )
