"""Zero-cost strategy construction by strike bisection.

A zero-cost structure pairs a bought option with a sold one whose premiums
net to zero. With one leg's strike fixed, the other leg's strike is found by
bisection, relying on call prices decreasing and put prices increasing in the
strike.
"""

from __future__ import annotations

from dataclasses import dataclass, replace as dc_replace
import logging
import numpy as np

from ..enums import InstrumentKind, OptionType, PricingMethod, StrikeMode
from ..exceptions import ConfigurationError, NumericalError, ValidationError
from ..market_environment import MarketSnapshot
from ..valuation.core import Leg, LegValuation
from ..valuation.params import MonteCarloParams

logger = logging.getLogger(__name__)

__all__ = [
    "EquilibriumResult",
    "ZeroCostStrategy",
    "find_equilibrium_strike",
    "zero_cost_collar_put_fixed",
    "zero_cost_collar_call_fixed",
    "participating_forward",
    "zero_cost_risk_reversal",
    "zero_cost_call_spread",
    "zero_cost_put_spread",
]


@dataclass(frozen=True, slots=True)
class EquilibriumResult:
    """Result container for the equilibrium strike search.

    ``converged`` is False when the iteration cap was hit or the target
    premium was not bracketed by the search range; the remaining fields then
    hold the best-effort last midpoint.
    """

    strike_pct: float
    strike: float
    price: float
    target_price: float
    iterations: int
    converged: bool


@dataclass(frozen=True, slots=True)
class ZeroCostStrategy:
    """Legs of a zero-cost structure with the solve that produced them."""

    legs: tuple[Leg, ...]
    equilibrium: EquilibriumResult | None = None


def _option_kind(option_type: OptionType) -> InstrumentKind:
    if not isinstance(option_type, OptionType):
        raise ConfigurationError(
            f"option type must be OptionType enum, got {type(option_type).__name__}"
        )
    return InstrumentKind.CALL if option_type is OptionType.CALL else InstrumentKind.PUT


def _fixed_seed(method: PricingMethod, params: MonteCarloParams | None) -> MonteCarloParams | None:
    """Pin the Monte Carlo seed so repricing across strikes stays monotone."""
    if method is not PricingMethod.MONTE_CARLO:
        return params
    params = MonteCarloParams() if params is None else params
    if params.random_seed is None:
        seed = int(np.random.default_rng().integers(0, 2**31 - 1))
        params = dc_replace(params, random_seed=seed)
    return params


def find_equilibrium_strike(
    target_type: OptionType,
    fixed_type: OptionType,
    fixed_strike_pct: float,
    market: MarketSnapshot,
    method: PricingMethod = PricingMethod.ANALYTICAL,
    params: MonteCarloParams | None = None,
    *,
    min_pct: float = 50.0,
    max_pct: float = 150.0,
    tolerance: float = 0.001,
    max_iter: int = 200,
) -> EquilibriumResult:
    """Find the strike of ``target_type`` whose premium equals the fixed leg's.

    Parameters
    ----------
    target_type
        Option type of the leg whose strike is solved for.
    fixed_type
        Option type of the fixed leg.
    fixed_strike_pct
        Strike of the fixed leg in percent of spot.
    market
        Market snapshot both legs are priced on.
    method
        ANALYTICAL (Black-Scholes) or MONTE_CARLO.
    params
        Monte Carlo settings; an unset seed is pinned for the whole search.
    min_pct, max_pct
        Search range for the solved strike, percent of spot.
    tolerance
        Premium tolerance and minimum bracket width, in spot units.
    max_iter
        Hard cap on bisection steps.

    Returns
    -------
    EquilibriumResult
    """
    if min_pct <= 0 or max_pct <= min_pct:
        raise ValidationError(f"Need 0 < min_pct < max_pct, got [{min_pct}, {max_pct}]")
    if tolerance <= 0:
        raise ValidationError(f"tolerance must be positive, got {tolerance}")
    if max_iter < 1:
        raise ValidationError(f"max_iter must be >= 1, got {max_iter}")

    target_kind = _option_kind(target_type)
    fixed_kind = _option_kind(fixed_type)
    params = _fixed_seed(method, params)
    spot = market.spot

    def premium(kind: InstrumentKind, strike: float) -> float:
        leg = Leg(kind=kind, strike=strike, strike_mode=StrikeMode.ABSOLUTE)
        return LegValuation(leg, market, method=method, params=params).present_value()

    target_price = premium(fixed_kind, fixed_strike_pct / 100.0 * spot)

    low = min_pct / 100.0 * spot
    high = max_pct / 100.0 * spot
    # Call premiums fall with strike, put premiums rise
    price_low = premium(target_kind, low)
    price_high = premium(target_kind, high)
    floor_price = min(price_low, price_high) - tolerance
    cap_price = max(price_low, price_high) + tolerance
    bracketed = floor_price <= target_price <= cap_price
    if not bracketed:
        logger.warning(
            "Equilibrium target %.6g not bracketed by %s premiums [%.6g, %.6g] over "
            "strikes [%.6g, %.6g]",
            target_price,
            target_type.value,
            price_low,
            price_high,
            low,
            high,
        )

    mid = price = float("nan")
    converged = False
    iterations = 0
    for i in range(max_iter):
        iterations = i + 1
        mid = 0.5 * (low + high)
        price = premium(target_kind, mid)
        if abs(price - target_price) < tolerance:
            converged = True
            break
        if price > target_price:
            if target_type is OptionType.CALL:
                low = mid
            else:
                high = mid
        else:
            if target_type is OptionType.CALL:
                high = mid
            else:
                low = mid
        if high - low < tolerance:
            converged = True
            break

    converged = converged and bracketed
    logger.debug(
        "Equilibrium %s vs %s@%.4g%% strike=%.6g price=%.6g target=%.6g "
        "iterations=%d converged=%s",
        target_type.value,
        fixed_type.value,
        fixed_strike_pct,
        mid,
        price,
        target_price,
        iterations,
        converged,
    )
    if not converged:
        logger.warning(
            "Equilibrium strike search did not converge after %d iterations: "
            "strike=%.6g price=%.6g target=%.6g",
            iterations,
            mid,
            price,
            target_price,
        )

    return EquilibriumResult(
        strike_pct=mid / spot * 100.0,
        strike=mid,
        price=price,
        target_price=target_price,
        iterations=iterations,
        converged=converged,
    )


def zero_cost_collar_put_fixed(
    put_strike_pct: float,
    market: MarketSnapshot,
    method: PricingMethod = PricingMethod.ANALYTICAL,
    params: MonteCarloParams | None = None,
    *,
    put_quantity: float = 100.0,
    call_quantity: float = 100.0,
    **solver_kwargs,
) -> ZeroCostStrategy:
    """Bought put at a fixed strike financed by a sold call at the equilibrium strike.

    Protects against a fall in the underlying while giving up gains above the
    call strike.
    """
    result = find_equilibrium_strike(
        OptionType.CALL, OptionType.PUT, put_strike_pct, market, method, params, **solver_kwargs
    )
    put_leg = Leg(
        kind=InstrumentKind.PUT,
        strike=put_strike_pct,
        volatility=market.volatility,
        quantity=put_quantity,
    )
    call_leg = Leg(
        kind=InstrumentKind.CALL,
        strike=result.strike_pct,
        volatility=market.volatility,
        quantity=-call_quantity,
    )
    return ZeroCostStrategy(legs=(put_leg, call_leg), equilibrium=result)


def zero_cost_collar_call_fixed(
    call_strike_pct: float,
    market: MarketSnapshot,
    method: PricingMethod = PricingMethod.ANALYTICAL,
    params: MonteCarloParams | None = None,
    *,
    put_quantity: float = 100.0,
    call_quantity: float = 100.0,
    **solver_kwargs,
) -> ZeroCostStrategy:
    """Sold call at a fixed strike paying for a bought put at the equilibrium strike.

    Used when there is a known cap on the price at which the underlying will
    be bought.
    """
    result = find_equilibrium_strike(
        OptionType.PUT, OptionType.CALL, call_strike_pct, market, method, params, **solver_kwargs
    )
    call_leg = Leg(
        kind=InstrumentKind.CALL,
        strike=call_strike_pct,
        volatility=market.volatility,
        quantity=-call_quantity,
    )
    put_leg = Leg(
        kind=InstrumentKind.PUT,
        strike=result.strike_pct,
        volatility=market.volatility,
        quantity=put_quantity,
    )
    return ZeroCostStrategy(legs=(call_leg, put_leg), equilibrium=result)


def participating_forward(market: MarketSnapshot, coverage_pct: float = 50.0) -> ZeroCostStrategy:
    """Forward at spot on part of the exposure, the rest left open."""
    if not 0 < coverage_pct <= 100:
        raise ValidationError(f"coverage_pct must be in (0, 100], got {coverage_pct}")
    forward_leg = Leg(
        kind=InstrumentKind.FORWARD,
        strike=market.spot,
        strike_mode=StrikeMode.ABSOLUTE,
        volatility=0.0,
        quantity=coverage_pct,
    )
    return ZeroCostStrategy(legs=(forward_leg,))


def zero_cost_risk_reversal(
    put_strike_pct: float,
    market: MarketSnapshot,
    method: PricingMethod = PricingMethod.ANALYTICAL,
    params: MonteCarloParams | None = None,
    *,
    put_quantity: float = 100.0,
    call_quantity: float = 100.0,
    **solver_kwargs,
) -> ZeroCostStrategy:
    """Bought put and sold call with the call strike neutralizing the premium.

    Same legs as :func:`zero_cost_collar_put_fixed`, offered under the name
    exporters usually know it by.
    """
    return zero_cost_collar_put_fixed(
        put_strike_pct,
        market,
        method,
        params,
        put_quantity=put_quantity,
        call_quantity=call_quantity,
        **solver_kwargs,
    )


def _premium_ratio_spread(
    kind: InstrumentKind,
    bought_strike_pct: float,
    sold_strike_pct: float,
    market: MarketSnapshot,
    method: PricingMethod,
    params: MonteCarloParams | None,
    quantity: float,
) -> ZeroCostStrategy:
    """Bought option financed by selling enough of a cheaper one at another strike."""
    params = _fixed_seed(method, params)

    def premium(strike_pct: float) -> float:
        leg = Leg(kind=kind, strike=strike_pct)
        return LegValuation(leg, market, method=method, params=params).present_value()

    bought_premium = premium(bought_strike_pct)
    sold_premium = premium(sold_strike_pct)
    if sold_premium <= 0:
        raise NumericalError(
            f"Sold {kind.value} at {sold_strike_pct}% is worthless; "
            "the premium ratio is undefined"
        )
    ratio = bought_premium / sold_premium
    logger.debug(
        "Zero-cost %s spread bought=%.6g sold=%.6g ratio=%.6g",
        kind.value,
        bought_premium,
        sold_premium,
        ratio,
    )
    bought = Leg(
        kind=kind, strike=bought_strike_pct, volatility=market.volatility, quantity=quantity
    )
    sold = Leg(
        kind=kind,
        strike=sold_strike_pct,
        volatility=market.volatility,
        quantity=-quantity * ratio,
    )
    return ZeroCostStrategy(legs=(bought, sold))


def zero_cost_call_spread(
    lower_strike_pct: float,
    upper_strike_pct: float,
    market: MarketSnapshot,
    method: PricingMethod = PricingMethod.ANALYTICAL,
    params: MonteCarloParams | None = None,
    *,
    quantity: float = 100.0,
) -> ZeroCostStrategy:
    """Bought call at the lower strike, sold calls at the upper strike.

    Import hedge. The sold quantity is scaled by the premium ratio so the
    structure costs nothing upfront.
    """
    if not lower_strike_pct < upper_strike_pct:
        raise ValidationError(
            f"Spread strikes must satisfy lower < upper, got {lower_strike_pct}, {upper_strike_pct}"
        )
    return _premium_ratio_spread(
        InstrumentKind.CALL, lower_strike_pct, upper_strike_pct, market, method, params, quantity
    )


def zero_cost_put_spread(
    upper_strike_pct: float,
    lower_strike_pct: float,
    market: MarketSnapshot,
    method: PricingMethod = PricingMethod.ANALYTICAL,
    params: MonteCarloParams | None = None,
    *,
    quantity: float = 100.0,
) -> ZeroCostStrategy:
    """Bought put at the upper strike, sold puts at the lower strike.

    Export hedge, the mirror image of :func:`zero_cost_call_spread`.
    """
    if not lower_strike_pct < upper_strike_pct:
        raise ValidationError(
            f"Spread strikes must satisfy lower < upper, got {lower_strike_pct}, {upper_strike_pct}"
        )
    return _premium_ratio_spread(
        InstrumentKind.PUT, upper_strike_pct, lower_strike_pct, market, method, params, quantity
    )
