"""Multi-leg hedging strategies.

Builders for zero-cost structures and strategy-level payoff and premium
aggregation. Single-leg pricing lives in :mod:`hedging_analytics.valuation`.
"""

from .zero_cost import (
    EquilibriumResult,
    ZeroCostStrategy,
    find_equilibrium_strike,
    participating_forward,
    zero_cost_call_spread,
    zero_cost_collar_call_fixed,
    zero_cost_collar_put_fixed,
    zero_cost_put_spread,
    zero_cost_risk_reversal,
)
from .evaluator import leg_intrinsic_value, payoff_at_price, payoff_curve, strategy_premium

__all__ = [
    "EquilibriumResult",
    "ZeroCostStrategy",
    "find_equilibrium_strike",
    "participating_forward",
    "zero_cost_collar_call_fixed",
    "zero_cost_collar_put_fixed",
    "zero_cost_risk_reversal",
    "zero_cost_call_spread",
    "zero_cost_put_spread",
    "leg_intrinsic_value",
    "payoff_at_price",
    "payoff_curve",
    "strategy_premium",
]
