"""Helper functions for time conventions, forwards and random numbers."""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from collections.abc import Iterator
import time
import numpy as np

from .enums import DayCountConvention
from .exceptions import ValidationError

__all__ = [
    "log_timing",
    "calculate_year_fraction",
    "time_to_maturity",
    "forward_price",
    "discount_factor",
    "sn_random_numbers",
]

SECONDS_IN_DAY = 86400
DAYS_IN_YEAR = 365.0


@contextmanager
def log_timing(logger, label: str, enabled: bool) -> Iterator[None]:
    """Log timing for a code block when enabled is True."""
    if not enabled:
        yield
        return
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed = time.perf_counter() - start
        logger.debug("Timing %s: %.6fs", label, elapsed)


def _day_count_30_360_us(start_date: datetime, end_date: datetime) -> float:
    """30/360 (US) day-count fraction between two dates."""
    y1, m1, d1 = start_date.year, start_date.month, start_date.day
    y2, m2, d2 = end_date.year, end_date.month, end_date.day

    if d1 == 31:
        d1 = 30
    if d2 == 31 and d1 in (30, 31):
        d2 = 30

    return (360 * (y2 - y1) + 30 * (m2 - m1) + (d2 - d1)) / 360.0


def calculate_year_fraction(
    start_date,
    end_date,
    day_count_convention: DayCountConvention = DayCountConvention.ACT_365_25,
) -> float:
    """Calculate year fraction between two dates.

    Parameters
    ==========
    start_date: datetime
        starting date
    end_date: datetime
        ending date
    day_count_convention: DayCountConvention, default DayCountConvention.ACT_365_25
        Day-count basis. Supported:
        - DayCountConvention.ACT_365_25
        - DayCountConvention.ACT_365F
        - DayCountConvention.ACT_360
        - DayCountConvention.THIRTY_360_US

    Returns
    =======
    year_fraction: float
        year fraction between start_date and end_date (negative when
        end_date precedes start_date)

    Examples
    ========
    >>> from datetime import datetime
    >>> start = datetime(2025, 1, 1)
    >>> end = datetime(2026, 1, 1)
    >>> calculate_year_fraction(start, end)  # doctest: +SKIP
    0.99931...
    """
    if day_count_convention is DayCountConvention.THIRTY_360_US:
        return _day_count_30_360_us(start_date, end_date)
    if day_count_convention is DayCountConvention.ACT_360:
        denom = 360.0
    elif day_count_convention is DayCountConvention.ACT_365_25:
        denom = 365.25
    elif day_count_convention is DayCountConvention.ACT_365F:
        denom = 365.0
    else:
        raise ValidationError(f"Unsupported day_count_convention: {day_count_convention}")

    delta_days = (end_date - start_date).total_seconds() / SECONDS_IN_DAY
    year_fraction = delta_days / denom
    return year_fraction


def time_to_maturity(
    valuation_date,
    maturity_date,
    day_count_convention: DayCountConvention = DayCountConvention.ACT_365_25,
) -> float:
    """Year fraction from valuation to maturity, floored at zero.

    Matured instruments report 0.0 so pricers fall through to intrinsic value.
    """
    return max(calculate_year_fraction(valuation_date, maturity_date, day_count_convention), 0.0)


def forward_price(*, spot: float, cost_of_carry: float, time_to_maturity: float) -> float:
    """Forward price F = S * exp(b * t) under a continuous cost of carry.

    Parameters
    ==========
    spot:
        Current spot price.
    cost_of_carry:
        b = r_domestic - r_foreign, as a decimal.
    time_to_maturity:
        Year fraction to delivery.
    """
    return float(spot * np.exp(cost_of_carry * time_to_maturity))


def discount_factor(rate: float, t: float) -> float:
    """Continuously compounded discount factor exp(-r t)."""
    return float(np.exp(-rate * t))


def sn_random_numbers(
    shape: tuple[int, ...],
    *,
    antithetic: bool = True,
    moment_matching: bool = False,
    random_seed: int | None = None,
    rng: np.random.Generator | None = None,
) -> np.ndarray:
    """Draw standard normal random numbers.

    Parameters
    ==========
    shape:
        Output shape; the last axis indexes paths.
    antithetic:
        When True, the second half of the paths mirrors the first half.
        An odd path count draws one extra normal on the first half.
    moment_matching:
        When True, rescale the draws to sample mean 0 and sample std 1.
    random_seed:
        Seed for a fresh generator. Ignored when ``rng`` is given.
    rng:
        Existing generator to draw from.

    Returns
    =======
    ran: np.ndarray
        Array of the requested shape.
    """
    if rng is None:
        rng = np.random.default_rng(random_seed)
    num_paths = shape[-1]
    if antithetic and num_paths > 1:
        half = (num_paths + 1) // 2
        base = rng.standard_normal((*shape[:-1], half))
        ran = np.concatenate((base, -base), axis=-1)[..., :num_paths]
    else:
        ran = rng.standard_normal(shape)
    if moment_matching:
        ran = ran - np.mean(ran)
        std = np.std(ran)
        if std > 0:
            ran = ran / std
    return ran
