"""Tests for analytical and numerical Greeks."""

import numpy as np
import pytest

from hedging_analytics.enums import GreekCalculationMethod, InstrumentKind, PricingMethod
from hedging_analytics.exceptions import UnsupportedFeatureError
from hedging_analytics.tests.helpers import make_market
from hedging_analytics.valuation import (
    GreekBumps,
    Greeks,
    Leg,
    LegValuation,
    MonteCarloParams,
    numerical_greeks,
    price_leg,
)

ANALYTICAL = GreekCalculationMethod.ANALYTICAL
NUMERICAL = GreekCalculationMethod.NUMERICAL


class TestVanillaGreeks:
    """Closed-form Greeks against bump-and-reprice on the same pricer."""

    def setup_method(self):
        self.market = make_market(spot=100.0, volatility=20.0, domestic_rate=5.0, foreign_rate=2.0)

    @pytest.mark.parametrize("kind", [InstrumentKind.CALL, InstrumentKind.PUT])
    @pytest.mark.parametrize("strike", [90.0, 100.0, 110.0])
    def test_analytical_matches_numerical(self, kind, strike):
        valuation = LegValuation(Leg(kind=kind, strike=strike), self.market)
        analytical = valuation.greeks(ANALYTICAL)
        numerical = valuation.greeks(NUMERICAL)
        assert np.isclose(analytical.delta, numerical.delta, rtol=1e-3, atol=1e-4)
        assert np.isclose(analytical.gamma, numerical.gamma, rtol=1e-2)
        assert np.isclose(analytical.vega, numerical.vega, rtol=1e-2)
        assert np.isclose(analytical.rho, numerical.rho, rtol=1e-3)
        assert np.isclose(analytical.theta, numerical.theta, rtol=2e-2, atol=1e-2)

    def test_atm_call_values(self, market):
        valuation = LegValuation(Leg(kind=InstrumentKind.CALL, strike=100.0), market)
        greeks = valuation.greeks(ANALYTICAL)
        assert np.isclose(greeks.delta, 0.6368, atol=1e-3)
        assert np.isclose(greeks.gamma, 0.01876, atol=1e-4)
        assert np.isclose(greeks.vega, 37.52, atol=0.05)
        assert greeks.theta < 0

    def test_call_delta_minus_put_delta(self):
        """Delta(call) - Delta(put) = e^{-r_f T}."""
        call = LegValuation(Leg(kind=InstrumentKind.CALL, strike=105.0), self.market)
        put = LegValuation(Leg(kind=InstrumentKind.PUT, strike=105.0), self.market)
        diff = call.greeks(ANALYTICAL).delta - put.greeks(ANALYTICAL).delta
        assert np.isclose(diff, np.exp(-0.02))

    def test_expired_option_greeks(self):
        market = make_market(spot=110.0, t=0.0)
        valuation = LegValuation(Leg(kind=InstrumentKind.CALL, strike=90.0), market)
        analytical = valuation.greeks(ANALYTICAL)
        assert analytical.delta == 1.0
        assert analytical.gamma == 0.0
        assert analytical.theta == 0.0
        assert valuation.greeks(NUMERICAL).theta == 0.0

    def test_price_leg_attaches_greeks(self):
        result = price_leg(
            Leg(kind=InstrumentKind.PUT, strike=100.0, quantity=-50.0),
            self.market,
            compute_greeks=True,
        )
        assert result.greeks is not None
        assert result.greeks.delta < 0
        assert np.isclose(result.position_greeks.delta, -0.5 * result.greeks.delta)
        assert np.isclose(result.position_price, -0.5 * result.price)


class TestFixedGreeks:
    def test_forward_greeks(self, market):
        valuation = LegValuation(Leg(kind=InstrumentKind.FORWARD, strike=100.0), market)
        assert valuation.greeks() == Greeks(delta=1.0)

    def test_swap_greeks_are_zero(self, market):
        valuation = LegValuation(Leg(kind=InstrumentKind.SWAP, strike=100.0), market)
        assert valuation.greeks(ANALYTICAL) == Greeks()


class TestNumericalGreeks:
    def test_analytical_unsupported_for_barrier(self, market):
        leg = Leg(kind=InstrumentKind.CALL_KNOCKOUT, strike=100.0, barrier=120.0)
        with pytest.raises(UnsupportedFeatureError):
            LegValuation(leg, market).greeks(ANALYTICAL)

    def test_analytical_unsupported_for_monte_carlo_vanilla(self):
        valuation = LegValuation(
            Leg(kind=InstrumentKind.CALL, strike=100.0),
            make_market(),
            method=PricingMethod.MONTE_CARLO,
            params=MonteCarloParams(num_paths=1_000, random_seed=1),
        )
        with pytest.raises(UnsupportedFeatureError):
            valuation.greeks(ANALYTICAL)

    def test_barrier_knock_out_call_delta_below_vanilla(self, market):
        barrier = LegValuation(
            Leg(kind=InstrumentKind.CALL_KNOCKOUT, strike=100.0, barrier=130.0), market
        ).greeks()
        vanilla = LegValuation(Leg(kind=InstrumentKind.CALL, strike=100.0), market).greeks()
        assert barrier.delta < vanilla.delta

    def test_monte_carlo_greeks_use_common_random_numbers(self, market):
        valuation = LegValuation(
            Leg(kind=InstrumentKind.CALL, strike=100.0),
            market,
            method=PricingMethod.MONTE_CARLO,
            params=MonteCarloParams(num_paths=50_000),
        )
        greeks = valuation.greeks(NUMERICAL)
        assert np.isclose(greeks.delta, 0.6368, atol=0.02)
        assert np.isclose(greeks.vega, 37.52, rtol=0.05)

    def test_double_no_touch_vega_negative(self):
        leg = Leg(
            kind=InstrumentKind.DOUBLE_NO_TOUCH,
            strike=0.0,
            barrier=90.0,
            second_barrier=110.0,
            rebate=1.0,
        )
        valuation = LegValuation(
            leg,
            make_market(t=0.25),
            method=PricingMethod.MONTE_CARLO,
            params=MonteCarloParams(num_paths=20_000, random_seed=3),
        )
        greeks = valuation.greeks(NUMERICAL, GreekBumps(vol=0.02))
        assert greeks.vega < 0

    def test_numerical_greeks_on_plain_function(self):
        """A price linear in spot has delta equal to the slope and no gamma."""
        greeks = numerical_greeks(lambda m: 2.0 * m.spot, make_market())
        assert np.isclose(greeks.delta, 2.0)
        assert np.isclose(greeks.gamma, 0.0, atol=1e-8)
        assert greeks.vega == 0.0
        assert greeks.rho == 0.0

    def test_vol_bump_floored_at_zero(self):
        market = make_market(volatility=0.5)
        greeks = numerical_greeks(lambda m: m.sigma, market, GreekBumps(vol=0.01))
        assert np.isclose(greeks.vega, 1.0)

    def test_invalid_bumps(self):
        with pytest.raises(ValueError, match="spot_rel"):
            GreekBumps(spot_rel=0.0)

    def test_greeks_scaled_and_added(self):
        a = Greeks(delta=0.5, gamma=0.1, theta=-1.0, vega=2.0, rho=3.0)
        total = a.scaled(2.0) + Greeks(delta=1.0)
        assert total == Greeks(delta=2.0, gamma=0.2, theta=-2.0, vega=4.0, rho=6.0)
