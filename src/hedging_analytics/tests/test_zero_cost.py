"""Tests for the equilibrium strike solver and zero-cost builders."""

import logging

import numpy as np
import pytest

from hedging_analytics.enums import InstrumentKind, OptionType, PricingMethod
from hedging_analytics.exceptions import ConfigurationError, NumericalError, ValidationError
from hedging_analytics.strategies import (
    find_equilibrium_strike,
    participating_forward,
    strategy_premium,
    zero_cost_call_spread,
    zero_cost_collar_call_fixed,
    zero_cost_collar_put_fixed,
    zero_cost_put_spread,
    zero_cost_risk_reversal,
)
from hedging_analytics.tests.helpers import make_market
from hedging_analytics.valuation import Leg, LegValuation, MonteCarloParams


class TestFindEquilibriumStrike:
    """Bisection on the strike of one leg to match the other leg's premium."""

    def setup_method(self):
        self.market = make_market(spot=100.0, volatility=20.0, domestic_rate=5.0)

    def test_call_matches_put_premium(self):
        result = find_equilibrium_strike(OptionType.CALL, OptionType.PUT, 90.0, self.market)
        assert result.converged
        assert result.strike > 100.0
        put = LegValuation(Leg(kind=InstrumentKind.PUT, strike=90.0), self.market).present_value()
        assert np.isclose(result.target_price, put)
        call = LegValuation(
            Leg(kind=InstrumentKind.CALL, strike=result.strike_pct), self.market
        ).present_value()
        assert abs(call - put) < 0.01

    def test_put_matches_call_premium(self):
        result = find_equilibrium_strike(OptionType.PUT, OptionType.CALL, 115.0, self.market)
        assert result.converged
        assert result.strike < 100.0
        assert abs(result.price - result.target_price) < 0.01

    def test_same_type_recovers_fixed_strike(self):
        result = find_equilibrium_strike(OptionType.CALL, OptionType.CALL, 105.0, self.market)
        assert result.converged
        assert np.isclose(result.strike_pct, 105.0, atol=0.05)

    def test_not_bracketed_reports_not_converged(self, caplog):
        with caplog.at_level(logging.WARNING, logger="hedging_analytics.strategies.zero_cost"):
            result = find_equilibrium_strike(
                OptionType.CALL, OptionType.PUT, 200.0, self.market
            )
        assert not result.converged
        assert "not bracketed" in caplog.text

    def test_iteration_cap(self):
        result = find_equilibrium_strike(
            OptionType.CALL, OptionType.PUT, 90.0, self.market, tolerance=1e-12, max_iter=5
        )
        assert result.iterations == 5
        assert not result.converged

    def test_monte_carlo_solver(self):
        params = MonteCarloParams(num_paths=20_000, random_seed=17)
        result = find_equilibrium_strike(
            OptionType.CALL,
            OptionType.PUT,
            90.0,
            self.market,
            method=PricingMethod.MONTE_CARLO,
            params=params,
        )
        closed = find_equilibrium_strike(OptionType.CALL, OptionType.PUT, 90.0, self.market)
        assert result.converged
        assert np.isclose(result.strike, closed.strike, atol=1.5)

    def test_invalid_search_range(self):
        with pytest.raises(ValidationError):
            find_equilibrium_strike(
                OptionType.CALL, OptionType.PUT, 90.0, self.market, min_pct=150.0, max_pct=50.0
            )

    def test_option_type_must_be_enum(self):
        with pytest.raises(ConfigurationError):
            find_equilibrium_strike("call", OptionType.PUT, 90.0, self.market)


class TestZeroCostBuilders:
    def setup_method(self):
        self.market = make_market(spot=100.0, volatility=20.0, domestic_rate=5.0)

    def test_collar_put_fixed_nets_to_zero(self):
        strategy = zero_cost_collar_put_fixed(90.0, self.market)
        put_leg, call_leg = strategy.legs
        assert put_leg.kind is InstrumentKind.PUT
        assert put_leg.quantity == 100.0
        assert call_leg.kind is InstrumentKind.CALL
        assert call_leg.quantity == -100.0
        assert strategy.equilibrium.converged
        assert abs(strategy_premium(strategy.legs, self.market)) < 0.01

    def test_collar_call_fixed_nets_to_zero(self):
        strategy = zero_cost_collar_call_fixed(120.0, self.market)
        call_leg, put_leg = strategy.legs
        assert call_leg.strike == 120.0
        assert put_leg.strike < 100.0
        assert abs(strategy_premium(strategy.legs, self.market)) < 0.01

    def test_solver_kwargs_forwarded(self):
        strategy = zero_cost_collar_put_fixed(90.0, self.market, max_iter=3, tolerance=1e-12)
        assert strategy.equilibrium.iterations == 3

    def test_participating_forward(self):
        strategy = participating_forward(self.market, coverage_pct=50.0)
        (leg,) = strategy.legs
        assert leg.kind is InstrumentKind.FORWARD
        assert leg.strike == 100.0
        assert leg.quantity == 50.0
        assert strategy.equilibrium is None

    def test_participating_forward_invalid_coverage(self):
        with pytest.raises(ValidationError):
            participating_forward(self.market, coverage_pct=0.0)


class TestPremiumRatioSpreads:
    def setup_method(self):
        self.market = make_market(spot=100.0, volatility=20.0, domestic_rate=5.0)

    def test_call_spread_nets_to_zero(self):
        strategy = zero_cost_call_spread(100.0, 110.0, self.market)
        bought, sold = strategy.legs
        assert bought.kind is InstrumentKind.CALL and sold.kind is InstrumentKind.CALL
        assert bought.strike == 100.0 and bought.quantity == 100.0
        assert sold.strike == 110.0
        # the upper call is cheaper, so more of it is sold
        assert sold.quantity < -100.0
        assert strategy.equilibrium is None
        assert abs(strategy_premium(strategy.legs, self.market)) < 1e-8

    def test_put_spread_nets_to_zero(self):
        strategy = zero_cost_put_spread(100.0, 90.0, self.market, quantity=50.0)
        bought, sold = strategy.legs
        assert bought.kind is InstrumentKind.PUT and bought.strike == 100.0
        assert bought.quantity == 50.0
        assert sold.strike == 90.0
        assert sold.quantity < -50.0
        assert abs(strategy_premium(strategy.legs, self.market)) < 1e-8

    def test_sold_quantity_is_premium_ratio(self):
        strategy = zero_cost_call_spread(95.0, 105.0, self.market)
        low = LegValuation(Leg(kind=InstrumentKind.CALL, strike=95.0), self.market).present_value()
        high = LegValuation(
            Leg(kind=InstrumentKind.CALL, strike=105.0), self.market
        ).present_value()
        assert np.isclose(strategy.legs[1].quantity, -100.0 * low / high)

    @pytest.mark.parametrize("builder", [zero_cost_call_spread, zero_cost_put_spread])
    def test_inverted_strikes_rejected(self, builder):
        with pytest.raises(ValidationError, match="lower < upper"):
            if builder is zero_cost_call_spread:
                builder(110.0, 100.0, self.market)
            else:
                builder(90.0, 100.0, self.market)

    def test_worthless_sold_leg(self):
        market = make_market(volatility=1.0)
        with pytest.raises(NumericalError, match="worthless"):
            zero_cost_call_spread(100.0, 400.0, market)

    def test_risk_reversal_matches_put_fixed_collar(self):
        reversal = zero_cost_risk_reversal(90.0, self.market)
        collar = zero_cost_collar_put_fixed(90.0, self.market)
        assert reversal.legs == collar.legs
        assert reversal.equilibrium.converged
