import numpy as np
import pytest

from hedging_analytics.exceptions import ValidationError
from hedging_analytics.stochastic_processes import (
    GBMParams,
    GeometricBrownianMotion,
    PathSimulation,
    SimulationConfig,
)
from hedging_analytics.utils import sn_random_numbers


class TestPathSimulation:
    """Tests for the abstract PathSimulation class"""

    def test_cannot_instantiate_abstract_class(self):
        params = GBMParams(initial_value=100.0, volatility=0.2, cost_of_carry=0.05)
        with pytest.raises(TypeError):
            PathSimulation(params, SimulationConfig(num_paths=10))

    def test_invalid_config(self):
        with pytest.raises(ValidationError):
            SimulationConfig(num_paths=0)
        with pytest.raises(ValidationError):
            SimulationConfig(num_paths=10, num_steps=0)


class TestGeometricBrownianMotion:
    """Tests for the GeometricBrownianMotion class"""

    def setup_method(self):
        self.params = GBMParams(initial_value=36.0, volatility=0.2, cost_of_carry=0.05)

    def _gbm(self, num_paths=50_000, num_steps=1, seed=1000):
        return GeometricBrownianMotion(
            self.params,
            SimulationConfig(num_paths=num_paths, num_steps=num_steps, random_seed=seed),
        )

    def test_terminal_reproducibility_with_seed(self):
        first = self._gbm().simulate_terminal(1.0)
        second = self._gbm().simulate_terminal(1.0)
        np.testing.assert_array_equal(first, second)

    def test_terminal_mean_is_forward(self):
        terminal = self._gbm(num_paths=200_000).simulate_terminal(1.0)
        assert np.isclose(terminal.mean(), 36.0 * np.exp(0.05), rtol=5e-3)
        assert np.all(terminal > 0)

    def test_terminal_log_variance(self):
        terminal = self._gbm(num_paths=200_000).simulate_terminal(2.0)
        assert np.isclose(np.var(np.log(terminal)), 0.2**2 * 2.0, rtol=0.02)

    def test_extrema_bracket_terminal_and_initial(self):
        extrema = self._gbm(num_paths=5_000, num_steps=50).simulate_extrema(0.5)
        assert extrema.terminal.shape == (5_000,)
        assert np.all(extrema.running_min <= extrema.terminal)
        assert np.all(extrema.terminal <= extrema.running_max)
        assert np.all(extrema.running_min <= 36.0)
        assert np.all(extrema.running_max >= 36.0)

    def test_extrema_terminal_mean_is_forward(self):
        extrema = self._gbm(num_paths=100_000, num_steps=20).simulate_extrema(1.0)
        assert np.isclose(extrema.terminal.mean(), 36.0 * np.exp(0.05), rtol=5e-3)

    def test_extrema_reproducibility_with_seed(self):
        first = self._gbm(num_paths=1_000, num_steps=10).simulate_extrema(1.0)
        second = self._gbm(num_paths=1_000, num_steps=10).simulate_extrema(1.0)
        np.testing.assert_array_equal(first.running_max, second.running_max)

    def test_zero_volatility_is_deterministic(self):
        gbm = GeometricBrownianMotion(
            GBMParams(initial_value=100.0, volatility=0.0, cost_of_carry=0.05),
            SimulationConfig(num_paths=10, num_steps=5, random_seed=1),
        )
        extrema = gbm.simulate_extrema(1.0)
        np.testing.assert_allclose(extrema.terminal, 100.0 * np.exp(0.05))
        np.testing.assert_allclose(extrema.running_min, 100.0)


class TestRandomNumbers:
    def test_antithetic_pairs(self):
        ran = sn_random_numbers((10,), random_seed=3)
        np.testing.assert_allclose(ran[:5], -ran[5:])

    def test_odd_path_count(self):
        ran = sn_random_numbers((7,), random_seed=3)
        assert ran.shape == (7,)

    def test_moment_matching(self):
        ran = sn_random_numbers((1_000,), antithetic=False, moment_matching=True, random_seed=3)
        assert np.isclose(ran.mean(), 0.0, atol=1e-12)
        assert np.isclose(ran.std(), 1.0)

    def test_moment_matched_terminal_log_mean_is_exact(self):
        gbm = GeometricBrownianMotion(
            GBMParams(initial_value=36.0, volatility=0.2, cost_of_carry=0.05),
            SimulationConfig(
                num_paths=2_000, antithetic=False, moment_matching=True, random_seed=9
            ),
        )
        log_returns = np.log(gbm.simulate_terminal(1.0) / 36.0)
        assert np.isclose(log_returns.mean(), 0.05 - 0.5 * 0.2**2, atol=1e-12)
        assert np.isclose(log_returns.std(), 0.2)
