"""Market snapshot consumed by every pricer."""

from __future__ import annotations

from dataclasses import dataclass, replace
import datetime as dt
import math

from .enums import DayCountConvention
from .exceptions import ConfigurationError, ValidationError
from .utils import time_to_maturity

_NUMERIC_FIELDS = (
    "spot",
    "volatility",
    "domestic_rate",
    "foreign_rate",
    "storage_cost",
    "convenience_yield",
)


@dataclass(frozen=True, slots=True)
class MarketSnapshot:
    """Spot, volatility, rates and dates for a single underlying.

    Rates, yields and volatility are quoted in percent (5.0 means 5%).
    Decimal views are exposed through ``sigma``, ``r``, ``q`` and ``b``.

    Cost of carry is ``b = r - q + storage_cost - convenience_yield``. For
    FX legs ``q`` is the foreign rate and the commodity terms stay at zero;
    for commodities the storage cost and convenience yield are given
    directly and ``foreign_rate`` is left at zero.

    Attributes
    ==========
    spot:
        Current spot price (> 0).
    volatility:
        Annualized volatility in percent (>= 0).
    domestic_rate:
        Domestic (discounting) rate in percent.
    foreign_rate:
        Foreign rate in percent.
    storage_cost:
        Commodity storage cost in percent per year. Adds to the carry.
    convenience_yield:
        Commodity convenience yield in percent per year. Reduces the carry.
    valuation_date, maturity_date:
        Dates used to derive ``time_to_maturity``.
    day_count_convention:
        Day-count basis for the year fraction. Default ACT/365.25.
    time_to_maturity_override:
        When set, replaces the date-derived time to maturity. Used for
        bump-and-reprice in time without moving dates.
    """

    spot: float
    volatility: float
    domestic_rate: float
    valuation_date: dt.datetime
    maturity_date: dt.datetime
    foreign_rate: float = 0.0
    storage_cost: float = 0.0
    convenience_yield: float = 0.0
    day_count_convention: DayCountConvention = DayCountConvention.ACT_365_25
    time_to_maturity_override: float | None = None

    def __post_init__(self) -> None:
        for name in _NUMERIC_FIELDS:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValidationError(f"{name} must be numeric, got {type(value).__name__}")
            if not math.isfinite(value):
                raise ValidationError(f"{name} must be finite, got {value}")
            object.__setattr__(self, name, float(value))
        if self.spot <= 0:
            raise ValidationError(f"spot must be positive, got {self.spot}")
        if self.volatility < 0:
            raise ValidationError(f"volatility must be >= 0, got {self.volatility}")
        for name in ("valuation_date", "maturity_date"):
            value = getattr(self, name)
            if not isinstance(value, (dt.datetime, dt.date)):
                raise ValidationError(f"{name} must be a datetime, got {type(value).__name__}")
        if not isinstance(self.day_count_convention, DayCountConvention):
            raise ConfigurationError(
                "day_count_convention must be a DayCountConvention enum, "
                f"got {type(self.day_count_convention).__name__}"
            )
        if self.time_to_maturity_override is not None:
            t = float(self.time_to_maturity_override)
            if not math.isfinite(t):
                raise ValidationError("time_to_maturity_override must be finite")
            object.__setattr__(self, "time_to_maturity_override", max(t, 0.0))

    @property
    def sigma(self) -> float:
        return self.volatility / 100.0

    @property
    def r(self) -> float:
        return self.domestic_rate / 100.0

    @property
    def q(self) -> float:
        return self.foreign_rate / 100.0

    @property
    def b(self) -> float:
        """Cost of carry as a decimal."""
        return self.r - self.q + (self.storage_cost - self.convenience_yield) / 100.0

    @property
    def time_to_maturity(self) -> float:
        if self.time_to_maturity_override is not None:
            return self.time_to_maturity_override
        return time_to_maturity(self.valuation_date, self.maturity_date, self.day_count_convention)

    def replace(self, **kwargs) -> MarketSnapshot:
        """Return a copy with the given fields replaced (validated again)."""
        return replace(self, **kwargs)

    def with_volatility(self, volatility: float | None) -> MarketSnapshot:
        """Copy with a leg-level volatility override, or self when None."""
        if volatility is None or volatility == self.volatility:
            return self
        return self.replace(volatility=volatility)
