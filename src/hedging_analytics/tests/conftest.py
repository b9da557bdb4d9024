"""Shared pytest fixtures for hedging_analytics tests."""

import pytest

from hedging_analytics.market_environment import MarketSnapshot
from hedging_analytics.valuation import MonteCarloParams

from hedging_analytics.tests.helpers import MATURITY, PRICING_DATE, make_market


# ---------------------------------------------------------------------------
# Market snapshots
# ---------------------------------------------------------------------------


@pytest.fixture()
def market() -> MarketSnapshot:
    """S=100, vol 20%, r 5%, no foreign rate, exactly one year to maturity."""
    return make_market()


@pytest.fixture()
def dated_market() -> MarketSnapshot:
    """Same inputs as ``market`` with time to maturity taken from the dates."""
    return MarketSnapshot(
        spot=100.0,
        volatility=20.0,
        domestic_rate=5.0,
        valuation_date=PRICING_DATE,
        maturity_date=MATURITY,
    )


# ---------------------------------------------------------------------------
# Monte Carlo settings
# ---------------------------------------------------------------------------


@pytest.fixture()
def mc_params() -> MonteCarloParams:
    return MonteCarloParams(num_paths=50_000, random_seed=42)
