import datetime as dt

from hedging_analytics.market_environment import MarketSnapshot

PRICING_DATE = dt.datetime(2025, 1, 1)
MATURITY = dt.datetime(2026, 1, 1)


def make_market(
    spot: float = 100.0,
    volatility: float = 20.0,
    domestic_rate: float = 5.0,
    foreign_rate: float = 0.0,
    t: float | None = 1.0,
) -> MarketSnapshot:
    """Market snapshot in percent quotes; ``t`` pins the time to maturity in years."""
    return MarketSnapshot(
        spot=spot,
        volatility=volatility,
        domestic_rate=domestic_rate,
        foreign_rate=foreign_rate,
        valuation_date=PRICING_DATE,
        maturity_date=MATURITY,
        time_to_maturity_override=t,
    )
