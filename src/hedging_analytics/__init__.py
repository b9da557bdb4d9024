from .enums import (
    DayCountConvention,
    GreekCalculationMethod,
    ImpliedVolMethod,
    InstrumentKind,
    OptionType,
    PricingMethod,
    StrikeMode,
)
from .market_environment import MarketSnapshot
from .valuation import (
    GreekBumps,
    Greeks,
    ImpliedVolResult,
    Leg,
    LegValuation,
    MonteCarloParams,
    PricingRequest,
    PricingResult,
    implied_volatility,
    price_leg,
    price_request,
)
from .strategies import (
    find_equilibrium_strike,
    payoff_at_price,
    payoff_curve,
    strategy_premium,
)


__all__ = [
    "DayCountConvention",
    "GreekCalculationMethod",
    "ImpliedVolMethod",
    "InstrumentKind",
    "OptionType",
    "PricingMethod",
    "StrikeMode",
    "MarketSnapshot",
    "GreekBumps",
    "Greeks",
    "ImpliedVolResult",
    "Leg",
    "LegValuation",
    "MonteCarloParams",
    "PricingRequest",
    "PricingResult",
    "price_leg",
    "price_request",
    "implied_volatility",
    "find_equilibrium_strike",
    "payoff_at_price",
    "payoff_curve",
    "strategy_premium",
]
