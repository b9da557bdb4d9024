"""Implied volatility solver for European vanilla legs."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Callable

import numpy as np
from scipy import optimize

from ..enums import GreekCalculationMethod, ImpliedVolMethod, InstrumentFamily, OptionType
from ..exceptions import (
    ConfigurationError,
    ConvergenceError,
    UnsupportedFeatureError,
    ValidationError,
)
from ..market_environment import MarketSnapshot
from ..utils import log_timing
from .core import Leg, LegValuation

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ImpliedVolResult:
    """Result container for implied volatility calculation.

    ``implied_vol`` is in percent, like ``MarketSnapshot.volatility``.
    """

    implied_vol: float
    iterations: int
    converged: bool


def _price_bounds(valuation: LegValuation) -> tuple[float, float]:
    """No-arbitrage ``(lower, upper)`` bounds for a European vanilla price."""
    market = valuation.market
    t = market.time_to_maturity
    if t <= 0:
        raise ValidationError("Implied volatility needs a positive time to maturity")
    spot_pv = market.spot * np.exp((market.b - market.r) * t)
    strike_pv = valuation.strike * np.exp(-market.r * t)
    if valuation.option_type is OptionType.CALL:
        return max(0.0, spot_pv - strike_pv), spot_pv
    return max(0.0, strike_pv - spot_pv), strike_pv


def _bracket_volatility(
    *,
    f: Callable[[float], float],
    low: float,
    high: float,
    max_expansions: int = 6,
) -> tuple[float, float, float, float]:
    """Expand volatility interval until target residual is bracketed."""
    f_low = f(low)
    f_high = f(high)

    if f_low > 0:
        for _ in range(max_expansions):
            low = max(low / 2.0, 1.0e-8)
            f_low = f(low)
            if f_low <= 0:
                break

    if f_high < 0:
        for _ in range(max_expansions):
            high *= 2.0
            f_high = f(high)
            if f_high >= 0:
                break

    return low, high, f_low, f_high


def _newton_raphson(
    *,
    f: Callable[[float], float],
    vega: Callable[[float], float],
    low: float,
    high: float,
    initial: float,
    tol: float,
    max_iter: int,
) -> tuple[float, int, bool]:
    """Safeguarded Newton-Raphson; steps leaving the bracket fall back to its midpoint."""
    vol = float(initial)
    iterations = 0

    for i in range(max_iter):
        iterations = i + 1
        diff = f(vol)
        if abs(diff) <= tol:
            return vol, iterations, True

        slope = vega(vol)
        if slope <= 0 or not np.isfinite(slope):
            break

        candidate = vol - diff / slope
        if not np.isfinite(candidate) or candidate <= low or candidate >= high:
            candidate = 0.5 * (low + high)

        if diff > 0:
            high = min(high, vol)
        else:
            low = max(low, vol)

        if abs(high - low) <= tol:
            return candidate, iterations, True

        vol = candidate

    return vol, iterations, False


def implied_volatility(
    target_price: float,
    leg: Leg,
    market: MarketSnapshot,
    method: ImpliedVolMethod = ImpliedVolMethod.NEWTON_RAPHSON,
    *,
    initial_vol: float = 30.0,
    vol_bounds: tuple[float, float] = (1.0, 500.0),
    tol: float = 1.0e-8,
    max_iter: int = 100,
    log_timings: bool = False,
) -> ImpliedVolResult:
    """Solve for the Black-Scholes volatility that reproduces a vanilla premium.

    Parameters
    ----------
    target_price
        Observed premium for one unit of notional.
    leg
        Vanilla CALL or PUT leg; its strike resolves against ``market.spot``.
    market
        Market inputs; its volatility is ignored.
    method
        NEWTON_RAPHSON (falls back to Brent's method when it stalls) or BRENTQ.
    initial_vol
        Starting guess in percent.
    vol_bounds
        Search interval in percent. It is widened when it does not bracket
        the target.
    tol
        Absolute tolerance on the premium residual.
    max_iter
        Maximum number of iterations for iterative solvers.
    log_timings
        When ``True``, emit timing logs for the solver section.

    Returns
    -------
    ImpliedVolResult

    Raises
    ------
    ConvergenceError
        If the target premium cannot be bracketed.
    """
    if not isinstance(method, ImpliedVolMethod):
        raise ConfigurationError(
            f"method must be ImpliedVolMethod enum, got {type(method).__name__}"
        )
    if not isinstance(leg, Leg):
        raise ConfigurationError(f"leg must be a Leg, got {type(leg).__name__}")
    if leg.kind.family is not InstrumentFamily.VANILLA:
        raise UnsupportedFeatureError("Implied volatility is only supported for vanilla CALL/PUT.")
    if not np.isfinite(target_price):
        raise ValidationError("target_price must be finite")
    if target_price < 0:
        raise ValidationError("target_price must be non-negative")

    low, high = (bound / 100.0 for bound in vol_bounds)
    if low <= 0 or low >= high:
        raise ValidationError("vol_bounds must be positive and satisfy low < high")

    base = LegValuation(leg.replace(volatility=None), market)
    min_price, max_price = _price_bounds(base)
    if target_price < min_price - tol or target_price > max_price + tol:
        raise ValidationError("target_price is outside no-arbitrage bounds for the provided inputs")

    def valuation_at(vol: float) -> LegValuation:
        return LegValuation(base.resolved, market.replace(volatility=vol * 100.0))

    def f(vol: float) -> float:
        return valuation_at(vol).present_value() - target_price

    def vega_at(vol: float) -> float:
        return valuation_at(vol).greeks(GreekCalculationMethod.ANALYTICAL).vega

    low, high, f_low, f_high = _bracket_volatility(f=f, low=low, high=high)
    if f_low > 0 or f_high < 0:
        raise ConvergenceError("Premium not bracketed by vol_bounds; adjust bounds.")

    initial = min(max(initial_vol / 100.0, low), high)

    with log_timing(logger, "Implied vol solver", log_timings):
        if method is ImpliedVolMethod.NEWTON_RAPHSON:
            vol, iterations, converged = _newton_raphson(
                f=f,
                vega=vega_at,
                low=low,
                high=high,
                initial=initial,
                tol=tol,
                max_iter=max_iter,
            )
        else:
            converged = False
            iterations = 0
        if not converged:
            vol, info = optimize.brentq(
                f, low, high, xtol=tol, maxiter=max_iter, full_output=True, disp=False
            )
            iterations += info.iterations
            converged = bool(info.converged)

    logger.debug(
        "Implied vol method=%s converged=%s iterations=%d implied_vol=%.6g",
        method.value,
        converged,
        iterations,
        vol,
    )
    return ImpliedVolResult(
        implied_vol=float(vol) * 100.0, iterations=iterations, converged=converged
    )
