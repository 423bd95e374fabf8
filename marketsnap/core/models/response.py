"""Response schema served by the market endpoint."""

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .series import to_finite

SCHEMA_VERSION = "1"


class FieldName(str, Enum):
    """Keys used for provenance, auto values and errors."""

    DXY = "dxy"
    USD_INR = "usdInr"
    REAL_YIELD = "realYield"
    PRICE = "setfGoldPrice"
    RSI = "rsi"
    INAV = "inav"


class Trend(str, Enum):
    """Direction of the exchange rate over the trailing window."""

    WEAKENING = "weakening"
    STRENGTHENING = "strengthening"
    STABLE = "stable"


def utc_now() -> datetime:
    return datetime.now(UTC)


class ProviderTag(BaseModel):
    """Provenance of a value: which provider and parameters produced it."""

    provider: str
    symbol: str | None = None
    series: str | None = None
    window: str | None = None
    interval: str | None = None
    note: str | None = None

    def with_note(self, note: str) -> "ProviderTag":
        return self.model_copy(update={"note": note})


class FieldResult(BaseModel):
    """Resolved value of one output field."""

    model_config = ConfigDict(populate_by_name=True)

    value: float | None = None
    as_of: datetime | None = Field(default=None, alias="asOf")
    source: ProviderTag | None = None
    pct30d: float | None = None
    trend: Trend | None = None

    @field_validator("value", "pct30d", mode="before")
    @classmethod
    def _finite(cls, value: Any) -> float | None:
        return to_finite(value)

    @property
    def available(self) -> bool:
        return self.value is not None


class AggregateResponse(BaseModel):
    """The canonical payload returned by ``GET /api/market``.

    Scalar fields are always present and ``null`` when unavailable, so the
    dashboard never receives ``NaN`` or missing keys.
    """

    model_config = ConfigDict(populate_by_name=True)

    schema_version: str = Field(default=SCHEMA_VERSION, alias="schemaVersion")

    dxy: float | None = None

    usd_inr: float | None = Field(default=None, alias="usdInr")
    usd_inr_change_pct30d: float | None = Field(default=None, alias="usdInrChangePct30d")
    usd_inr_trend: Trend | None = Field(default=None, alias="usdInrTrend")

    real_yield: float | None = Field(default=None, alias="realYield")

    setf_gold_price: float | None = Field(default=None, alias="setfGoldPrice")
    setf_gold_price_as_of: datetime | None = Field(default=None, alias="setfGoldPriceAsOf")

    rsi14_setfgold: float | None = Field(default=None, alias="rsi14Setfgold")
    rsi14_setfgold_as_of: datetime | None = Field(default=None, alias="rsi14SetfgoldAsOf")

    inav: float | None = None
    inav_as_of: datetime | None = Field(default=None, alias="inavAsOf")

    as_of: datetime = Field(default_factory=utc_now, alias="asOf")

    freshness: dict[str, ProviderTag | None] = Field(default_factory=dict)
    auto: dict[str, FieldResult] = Field(default_factory=dict)
    manual: dict[str, float] = Field(default_factory=dict)
    errors: list[str] = Field(default_factory=list)

    @field_validator(
        "dxy",
        "usd_inr",
        "usd_inr_change_pct30d",
        "real_yield",
        "setf_gold_price",
        "rsi14_setfgold",
        "inav",
        mode="before",
    )
    @classmethod
    def _finite(cls, value: Any) -> float | None:
        return to_finite(value)

    def to_wire(self) -> dict[str, Any]:
        """Serialize with the camelCase keys the dashboard reads."""

        return self.model_dump(mode="json", by_alias=True)


class ErrorEnvelope(BaseModel):
    """Minimal body returned with HTTP 500."""

    model_config = ConfigDict(populate_by_name=True)

    error: str
    message: str
    as_of: datetime = Field(default_factory=utc_now, alias="asOf")

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)
