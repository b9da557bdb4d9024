"""Monte Carlo Simulation option valuation implementations."""

from __future__ import annotations
from typing import TYPE_CHECKING
import logging
import numpy as np

from ..utils import discount_factor, log_timing
from ..stochastic_processes import GBMParams, GeometricBrownianMotion, SimulationConfig
from ..exceptions import ConfigurationError
from .bsm import vanilla_payoff
from .params import MonteCarloParams

if TYPE_CHECKING:
    from ..market_environment import MarketSnapshot
    from .core import LegValuation


logger = logging.getLogger(__name__)


def _std_error(pv_pathwise: np.ndarray) -> float:
    n_paths = pv_pathwise.size
    if n_paths < 2:
        return 0.0
    return float(np.std(pv_pathwise, ddof=1) / np.sqrt(n_paths))


def _warn_if_high_std_error(
    *,
    pv_pathwise: np.ndarray,
    pv_mean: float,
    params: MonteCarloParams,
    label: str,
) -> None:
    """Emit a warning log if MC standard error is high relative to the PV estimate."""
    n_paths = pv_pathwise.size
    std_error = _std_error(pv_pathwise)
    scale = max(abs(pv_mean), 1.0e-12)
    ratio = std_error / scale
    logger.debug(
        "MC %s std_error=%.6g ratio=%.6g paths=%d",
        label,
        std_error,
        ratio,
        n_paths,
    )
    if params.std_error_warn_ratio is None or n_paths < 2:
        return
    if ratio > params.std_error_warn_ratio:
        logger.warning(
            "MC %s standard error high: std_error=%.6g ratio=%.6g (>%.3g) paths=%d",
            label,
            std_error,
            ratio,
            params.std_error_warn_ratio,
            n_paths,
        )


def build_path_simulation(
    market: MarketSnapshot,
    params: MonteCarloParams,
    num_steps: int = 1,
) -> GeometricBrownianMotion:
    """GBM simulator under the risk-neutral measure with drift b for a market snapshot."""
    return GeometricBrownianMotion(
        GBMParams(
            initial_value=market.spot,
            volatility=market.sigma,
            cost_of_carry=market.b,
        ),
        SimulationConfig(
            num_paths=params.num_paths,
            num_steps=num_steps,
            antithetic=params.antithetic,
            moment_matching=params.moment_matching,
            random_seed=params.random_seed,
        ),
    )


class _MCValuationBase:
    """Shared plumbing for Monte Carlo valuations: params, discounting, std error."""

    label = "MC"

    def __init__(self, parent: LegValuation) -> None:
        self.parent = parent
        if not isinstance(parent.params, MonteCarloParams):
            raise ConfigurationError(
                "Monte Carlo valuation requires MonteCarloParams on LegValuation"
            )
        self.mc_params: MonteCarloParams = parent.params
        self.std_error: float | None = None

    def solve(self) -> np.ndarray:
        """Undiscounted payoff vector (one value per path)."""
        raise NotImplementedError("Subclasses must implement solve method")

    def discount_horizon(self) -> float:
        return self.parent.market.time_to_maturity

    def present_value_pathwise(self) -> np.ndarray:
        """Return discounted present values for each path."""
        payoff_vector = self.solve()
        df = discount_factor(self.parent.market.r, self.discount_horizon())
        return df * payoff_vector

    def present_value(self) -> float:
        """Return the scalar present value and record its standard error."""
        with log_timing(logger, f"MC {self.label} present_value", self.mc_params.log_timings):
            pv_pathwise = self.present_value_pathwise()
            pv = float(np.mean(pv_pathwise))
        self.std_error = _std_error(pv_pathwise)
        _warn_if_high_std_error(
            pv_pathwise=pv_pathwise,
            pv_mean=pv,
            params=self.mc_params,
            label=self.label,
        )
        return pv


class _MCVanillaValuation(_MCValuationBase):
    """Implementation of European vanilla valuation using Monte Carlo.

    Terminal values are drawn in a single exact log-normal step, so no time
    discretization error is introduced.
    """

    label = "European"
    method_label = "Monte Carlo (Vanilla)"

    def solve(self) -> np.ndarray:
        market = self.parent.market
        t = market.time_to_maturity
        if t <= 0:
            spot = np.full(self.mc_params.num_paths, market.spot)
            return vanilla_payoff(self.parent.option_type, self.parent.strike, spot)
        simulation = build_path_simulation(market, self.mc_params)
        terminal = simulation.simulate_terminal(t)
        logger.debug("MC European paths=%d time_steps=%d", terminal.size, 1)
        return vanilla_payoff(self.parent.option_type, self.parent.strike, terminal)
