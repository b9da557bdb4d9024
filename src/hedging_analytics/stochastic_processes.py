"Path simulation for the geometric Brownian motion underlying"

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
import logging
import numpy as np

from .exceptions import ValidationError
from .utils import sn_random_numbers

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SimulationConfig:
    """Path count, step count and random state for one simulation run."""

    num_paths: int
    num_steps: int = 1
    antithetic: bool = True
    moment_matching: bool = False
    random_seed: int | None = None

    def __post_init__(self) -> None:
        if self.num_paths < 1:
            raise ValidationError(f"num_paths must be >= 1, got {self.num_paths}")
        if self.num_steps < 1:
            raise ValidationError(f"num_steps must be >= 1, got {self.num_steps}")


@dataclass(frozen=True, slots=True, kw_only=True)
class GBMParams:
    initial_value: float
    volatility: float  # decimal
    cost_of_carry: float  # b = r - q, decimal


@dataclass(frozen=True, slots=True)
class PathExtrema:
    """Terminal values with running minimum and maximum per path.

    The running extrema include the initial value.
    """

    terminal: np.ndarray
    running_min: np.ndarray
    running_max: np.ndarray


class PathSimulation(ABC):
    """Providing base methods for simulation classes.

    Attributes
    ==========
    process_params: GBMParams
        Model-specific parameters for the stochastic process.
    sim: SimulationConfig
        Simulation configuration (paths, steps, seed).

    Methods
    =======
    simulate_terminal:
        returns terminal values for a horizon
    simulate_extrema:
        returns terminal values with running min/max for a horizon
    """

    def __init__(self, process_params: GBMParams, sim: SimulationConfig):
        self.initial_value = float(process_params.initial_value)
        self.volatility = float(process_params.volatility)
        self.cost_of_carry = float(process_params.cost_of_carry)

        self.num_paths = sim.num_paths
        self.num_steps = sim.num_steps
        self.antithetic = sim.antithetic
        self.moment_matching = sim.moment_matching
        self.random_seed = sim.random_seed

    @abstractmethod
    def simulate_terminal(self, horizon: float) -> np.ndarray:
        raise NotImplementedError("Subclasses must implement simulate_terminal method")

    @abstractmethod
    def simulate_extrema(self, horizon: float) -> PathExtrema:
        raise NotImplementedError("Subclasses must implement simulate_extrema method")


class GeometricBrownianMotion(PathSimulation):
    """Class to generate simulated values based on
    the Black-Scholes-Merton geometric Brownian motion model.

    dS_t = b * S_t * dt + sigma * S_t * dW_t
    """

    def simulate_terminal(self, horizon: float) -> np.ndarray:
        """Draw S_T in one exact log-normal step.

        Parameters
        ==========
        horizon: float
            year fraction to simulate over

        Returns
        =======
        terminal: np.ndarray, shape (num_paths,)
        """
        ran = sn_random_numbers(
            (self.num_paths,),
            antithetic=self.antithetic,
            moment_matching=self.moment_matching,
            random_seed=self.random_seed,
        )
        drift = (self.cost_of_carry - 0.5 * self.volatility**2) * horizon
        diffusion = self.volatility * np.sqrt(horizon) * ran
        return self.initial_value * np.exp(drift + diffusion)

    def simulate_extrema(self, horizon: float) -> PathExtrema:
        """Simulate step by step, keeping only current value and running extrema.

        Memory stays O(num_paths) regardless of ``num_steps``.

        Parameters
        ==========
        horizon: float
            year fraction to simulate over

        Returns
        =======
        extrema: PathExtrema
        """
        num_steps = self.num_steps
        delta_t = horizon / num_steps
        rng = np.random.default_rng(self.random_seed)

        current = np.full(self.num_paths, self.initial_value, dtype=float)
        running_min = current.copy()
        running_max = current.copy()

        drift = (self.cost_of_carry - 0.5 * self.volatility**2) * delta_t
        vol_step = self.volatility * np.sqrt(delta_t)
        logger.debug(
            "GBM extrema simulation paths=%d steps=%d dt=%.6f",
            self.num_paths,
            num_steps,
            delta_t,
        )
        for _ in range(num_steps):
            ran = sn_random_numbers(
                (self.num_paths,),
                antithetic=self.antithetic,
                moment_matching=self.moment_matching,
                rng=rng,
            )
            current *= np.exp(drift + vol_step * ran)
            np.minimum(running_min, current, out=running_min)
            np.maximum(running_max, current, out=running_max)

        return PathExtrema(terminal=current, running_min=running_min, running_max=running_max)
