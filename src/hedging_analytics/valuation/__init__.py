"""Leg valuation and pricing engines.

This module provides a unified interface for pricing the legs of a hedging
strategy: European vanillas, single and double barriers, digitals, forwards
and swaps, in closed form or by Monte Carlo simulation.

Public API
----------
Core classes:
    Leg: Strategy leg specification (percent or absolute levels)
    LegValuation: Main dispatcher for leg pricing and Greeks
    PricingRequest / PricingResult: Request/response value objects
    price_leg: One-call pricing surface

Parameter classes:
    MonteCarloParams: Configuration for Monte Carlo pricing
    GreekBumps: Finite-difference steps for numerical Greeks

Solvers:
    implied_volatility: Black-Scholes volatility implied by a vanilla premium
"""

from .core import (
    Leg,
    LegValuation,
    PricingRequest,
    PricingResult,
    ResolvedLeg,
    price_leg,
    price_request,
)
from .params import GreekBumps, MonteCarloParams
from .greeks import Greeks, numerical_greeks
from .bsm import black_scholes_price, vanilla_payoff
from .barrier import (
    barrier_option_analytical,
    barrier_option_monte_carlo,
    double_barrier_option_analytical,
)
from .digital import digital_event, digital_event_at_spot
from .linear import swap_price
from .implied_volatility import ImpliedVolResult, implied_volatility

__all__ = [
    # Core valuation classes
    "Leg",
    "LegValuation",
    "PricingRequest",
    "PricingResult",
    "ResolvedLeg",
    "price_leg",
    "price_request",
    # Parameter classes
    "MonteCarloParams",
    "GreekBumps",
    # Greeks
    "Greeks",
    "numerical_greeks",
    # Vanilla
    "black_scholes_price",
    "vanilla_payoff",
    # Barrier options
    "barrier_option_analytical",
    "barrier_option_monte_carlo",
    "double_barrier_option_analytical",
    # Digitals and linear instruments
    "digital_event",
    "digital_event_at_spot",
    "swap_price",
    # Implied volatility
    "ImpliedVolResult",
    "implied_volatility",
]
