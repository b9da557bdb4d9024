"""Strategy-level aggregation of leg payoffs and premiums.

Payoff figures here are for charting: barrier and digital legs use a static
test of the hypothetical spot against their levels instead of a path, so
they can differ from the path-dependent prices produced by the valuation
engine.
"""

from __future__ import annotations

from collections.abc import Sequence
import logging
import numpy as np
import pandas as pd

from ..enums import InstrumentFamily, PricingMethod
from ..exceptions import ValidationError
from ..market_environment import MarketSnapshot
from ..valuation.barrier import is_knocked, outside_corridor
from ..valuation.bsm import vanilla_payoff
from ..valuation.core import Leg, LegValuation, ResolvedLeg
from ..valuation.digital import digital_event_at_spot
from ..valuation.params import MonteCarloParams

logger = logging.getLogger(__name__)

__all__ = ["leg_intrinsic_value", "payoff_at_price", "payoff_curve", "strategy_premium"]


def leg_intrinsic_value(leg: ResolvedLeg, hypothetical_spot: float, original_spot: float) -> float:
    """Payoff of one unit of a resolved leg if spot settled at ``hypothetical_spot``.

    Parameters
    ==========
    leg: ResolvedLeg
        Leg with absolute levels.
    hypothetical_spot: float
        Terminal spot to evaluate at.
    original_spot: float
        Spot the leg was struck against; orients single touch barriers.
    """
    kind = leg.kind
    family = kind.family
    if family is InstrumentFamily.VANILLA:
        return float(vanilla_payoff(kind.option_type, leg.strike, hypothetical_spot))

    if family in (InstrumentFamily.FORWARD, InstrumentFamily.SWAP):
        return hypothetical_spot - leg.strike

    if family is InstrumentFamily.BARRIER:
        if kind.is_double:
            breached = outside_corridor(hypothetical_spot, leg.lower_barrier, leg.upper_barrier)
        else:
            breached = is_knocked(kind.barrier_direction, hypothetical_spot, leg.barrier)
        alive = breached if kind.is_knock_in else not breached
        if not alive:
            return 0.0
        return float(vanilla_payoff(kind.option_type, leg.strike, hypothetical_spot))

    pays = digital_event_at_spot(
        kind,
        hypothetical_spot,
        reference_spot=original_spot,
        barrier=leg.barrier,
        lower_barrier=leg.lower_barrier,
        upper_barrier=leg.upper_barrier,
    )
    return leg.payout if pays else 0.0


def payoff_at_price(legs: Sequence[Leg], hypothetical_spot: float, original_spot: float) -> float:
    """Strategy payoff at a hypothetical spot.

    Sum over legs of (quantity / 100) x intrinsic payoff, with percent
    strikes and barriers resolved against ``original_spot``.
    """
    if original_spot <= 0:
        raise ValidationError(f"original_spot must be positive, got {original_spot}")
    total = 0.0
    for leg in legs:
        resolved = leg.resolve(original_spot)
        total += resolved.quantity_factor * leg_intrinsic_value(
            resolved, hypothetical_spot, original_spot
        )
    return total


def payoff_curve(
    legs: Sequence[Leg],
    spot: float,
    lower: float = 0.7,
    upper: float = 1.3,
    num_points: int = 101,
) -> pd.DataFrame:
    """Strategy payoff over a grid of hypothetical spots.

    Parameters
    ==========
    legs:
        Strategy legs.
    spot:
        Current spot; the grid spans ``[lower * spot, upper * spot]``.
    lower, upper:
        Grid bounds as multiples of spot.
    num_points:
        Number of grid points.

    Returns
    =======
    curve: pd.DataFrame
        Columns ``spot``, ``payoff`` and one ``leg_<i>_<kind>`` column per
        leg holding that leg's quantity-weighted payoff.
    """
    if spot <= 0:
        raise ValidationError(f"spot must be positive, got {spot}")
    if not 0 <= lower < upper:
        raise ValidationError(f"Need 0 <= lower < upper, got [{lower}, {upper}]")
    if num_points < 2:
        raise ValidationError(f"num_points must be >= 2, got {num_points}")

    grid = np.linspace(lower * spot, upper * spot, num_points)
    columns: dict[str, np.ndarray] = {"spot": grid}
    total = np.zeros(num_points)
    for i, leg in enumerate(legs):
        resolved = leg.resolve(spot)
        values = np.array(
            [resolved.quantity_factor * leg_intrinsic_value(resolved, s, spot) for s in grid]
        )
        columns[f"leg_{i}_{leg.kind.value}"] = values
        total += values
    columns["payoff"] = total
    frame = pd.DataFrame(columns)
    return frame[["spot", "payoff", *[c for c in frame.columns if c.startswith("leg_")]]]


def strategy_premium(
    legs: Sequence[Leg],
    market: MarketSnapshot,
    method: PricingMethod = PricingMethod.ANALYTICAL,
    params: MonteCarloParams | None = None,
) -> float:
    """Net premium of a strategy: sum of (quantity / 100) x leg price.

    Bought legs add premium, sold legs subtract it, so a zero-cost structure
    returns (approximately) zero. Forward and swap legs carry no premium.
    """
    total = 0.0
    for leg in legs:
        if leg.kind.family in (InstrumentFamily.FORWARD, InstrumentFamily.SWAP):
            continue
        valuation = LegValuation(leg, market, method=method, params=params)
        total += valuation.resolved.quantity_factor * valuation.present_value()
    logger.debug("Strategy premium legs=%d premium=%.6g", len(legs), total)
    return total
