"""Parameter classes for method-specific valuation configuration.

Monte Carlo pricers read simulation settings from :class:`MonteCarloParams`;
the Greeks engine reads its finite-difference steps from :class:`GreekBumps`.
"""

from dataclasses import dataclass
import math


@dataclass(frozen=True, slots=True)
class MonteCarloParams:
    """Parameters for Monte Carlo option valuation.

    Attributes
    ==========
    num_paths:
        Number of simulated paths. Default: 10_000.
    num_steps:
        Monitoring steps for path-dependent legs (barriers, touches).
        If None, uses max(252 * t, 50).
    random_seed:
        Random seed for reproducibility. If None, uses random state.
    antithetic:
        Mirror each normal draw to reduce variance. Default: True.
    moment_matching:
        Rescale each batch of normal draws to sample mean 0 and std 1.
        Default: False.
    std_error_warn_ratio:
        If set, log a warning when std_error / |price| exceeds this ratio.
    log_timings:
        Log wall-clock time of each simulation at DEBUG level.
    """

    num_paths: int = 10_000
    num_steps: int | None = None
    random_seed: int | None = None
    antithetic: bool = True
    moment_matching: bool = False
    std_error_warn_ratio: float | None = None
    log_timings: bool = False

    def __post_init__(self):
        if self.num_paths < 1:
            raise ValueError(f"num_paths must be >= 1, got {self.num_paths}")
        if self.num_steps is not None and self.num_steps < 1:
            raise ValueError(f"num_steps must be >= 1, got {self.num_steps}")
        if self.std_error_warn_ratio is not None and self.std_error_warn_ratio <= 0:
            raise ValueError(
                f"std_error_warn_ratio must be positive, got {self.std_error_warn_ratio}"
            )

    def steps_for(self, time_to_maturity: float) -> int:
        """Monitoring steps for a horizon: explicit num_steps or max(252 * t, 50)."""
        if self.num_steps is not None:
            return self.num_steps
        return max(int(math.ceil(252 * time_to_maturity)), 50)


@dataclass(frozen=True, slots=True)
class GreekBumps:
    """Finite-difference bump sizes for numerical Greeks.

    Attributes
    ==========
    spot_rel:
        Spot bump as a fraction of spot. Default: 0.01 (1%).
    time:
        Time bump in years. Default: 1/365 (one day).
    vol:
        Absolute volatility bump (decimal). Default: 0.01.
    rate:
        Absolute domestic rate bump (decimal). Default: 0.0001.
    """

    spot_rel: float = 0.01
    time: float = 1.0 / 365.0
    vol: float = 0.01
    rate: float = 0.0001

    def __post_init__(self):
        for name in ("spot_rel", "time", "vol", "rate"):
            value = getattr(self, name)
            if value <= 0:
                raise ValueError(f"{name} must be positive, got {value}")
