"""Barrier option valuation.

Barrier options are path-dependent options where the payoff depends on whether
the underlying asset price crosses a barrier level during the option's lifetime.

Supports:
- Analytical pricing of single barriers (Reiner-Rubinstein, Haug's A-D terms)
- Analytical pricing of double barriers (Ikeda-Kunitomo reflection series)
- Monte Carlo pricing with discrete monitoring on a fixed step grid

Rebates are not paid, so knock-in + knock-out = vanilla holds exactly.
"""

from __future__ import annotations
from typing import TYPE_CHECKING, NamedTuple
import logging
import numpy as np
from scipy.stats import norm

from ..enums import BarrierDirection, OptionType
from .bsm import MIN_TOTAL_VOL, black_scholes_price, vanilla_payoff
from .monte_carlo import _MCValuationBase, build_path_simulation

if TYPE_CHECKING:
    from ..stochastic_processes import PathExtrema
    from .core import LegValuation

logger = logging.getLogger(__name__)

# Reflection terms taken on each side of n = 0 in the double barrier series
DOUBLE_BARRIER_SERIES_TERMS = 10


def is_knocked(direction: BarrierDirection, spot: float, barrier: float) -> bool:
    """True when spot sits on or beyond a single barrier in its knock direction."""
    if direction is BarrierDirection.UP:
        return spot >= barrier
    return spot <= barrier


def outside_corridor(spot: float, lower: float, upper: float) -> bool:
    """True when spot is on or outside either barrier of a double barrier."""
    return spot <= lower or spot >= upper


def _scaled_cdf(log_scale, x):
    """``exp(log_scale) * N(x)`` evaluated in log space.

    The reflection factors (H/S)**(2 mu) explode at low volatility while the
    matching normal probabilities vanish; their product stays bounded.
    """
    with np.errstate(over="ignore"):
        return np.exp(log_scale + norm.logcdf(x))


def _log_norm_interval(upper, lower):
    """``log(N(upper) - N(lower))`` for ``upper >= lower``, -inf for an empty interval.

    Both tails are handled: intervals on the positive side are mirrored so the
    difference is taken between small probabilities.
    """
    upper = np.asarray(upper, dtype=float)
    lower = np.asarray(lower, dtype=float)
    mirror = lower > 0
    hi = np.where(mirror, -lower, upper)
    lo = np.where(mirror, -upper, lower)
    log_hi = norm.logcdf(hi)
    log_lo = norm.logcdf(lo)
    with np.errstate(divide="ignore", invalid="ignore"):
        out = log_hi + np.log1p(-np.exp(log_lo - log_hi))
    return np.where(np.isfinite(log_hi), out, -np.inf)


class _BarrierTerms(NamedTuple):
    A: float
    B: float
    C: float
    D: float


def _barrier_terms(
    *,
    phi: int,
    eta: int,
    spot: float,
    strike: float,
    barrier: float,
    time_to_maturity: float,
    rate: float,
    cost_of_carry: float,
    volatility: float,
) -> _BarrierTerms:
    """Haug's A, B, C, D building blocks for standard barrier options.

    ``phi`` is +1 for calls and -1 for puts; ``eta`` is +1 for down
    barriers and -1 for up barriers.
    """
    S, X, H, T = spot, strike, barrier, time_to_maturity
    r, b, sigma = rate, cost_of_carry, volatility

    sigma_sqrt_t = sigma * np.sqrt(T)
    mu = (b - 0.5 * sigma**2) / sigma**2
    drift_term = (1 + mu) * sigma_sqrt_t

    x1 = np.log(S / X) / sigma_sqrt_t + drift_term
    x2 = np.log(S / H) / sigma_sqrt_t + drift_term
    y1 = np.log(H**2 / (S * X)) / sigma_sqrt_t + drift_term
    y2 = np.log(H / S) / sigma_sqrt_t + drift_term

    df_carry = np.exp((b - r) * T)
    df_r = np.exp(-r * T)
    # Logs of (H/S)^(2(mu+1)) and (H/S)^(2mu)
    log_ratio_up = 2 * (mu + 1) * np.log(H / S)
    log_ratio = 2 * mu * np.log(H / S)

    A = phi * S * df_carry * norm.cdf(phi * x1) - phi * X * df_r * norm.cdf(
        phi * x1 - phi * sigma_sqrt_t
    )
    B = phi * S * df_carry * norm.cdf(phi * x2) - phi * X * df_r * norm.cdf(
        phi * x2 - phi * sigma_sqrt_t
    )
    C = phi * S * df_carry * _scaled_cdf(log_ratio_up, eta * y1) - phi * X * df_r * _scaled_cdf(
        log_ratio, eta * y1 - eta * sigma_sqrt_t
    )
    D = phi * S * df_carry * _scaled_cdf(log_ratio_up, eta * y2) - phi * X * df_r * _scaled_cdf(
        log_ratio, eta * y2 - eta * sigma_sqrt_t
    )
    return _BarrierTerms(float(A), float(B), float(C), float(D))


def barrier_option_analytical(
    option_type: OptionType,
    direction: BarrierDirection,
    knock_in: bool,
    *,
    spot: float,
    strike: float,
    barrier: float,
    time_to_maturity: float,
    rate: float,
    cost_of_carry: float,
    volatility: float,
) -> float:
    """Calculate single barrier option price using Reiner-Rubinstein formulas.

    Valid for continuous monitoring, zero rebate.

    Parameters
    ----------
    option_type : OptionType
        OptionType.CALL or OptionType.PUT
    direction : BarrierDirection
        UP (knocks when spot rises to the barrier) or DOWN
    knock_in : bool
        True for knock-in, False for knock-out
    spot : float
        Current spot price
    strike : float
        Strike price
    barrier : float
        Barrier level
    time_to_maturity : float
        Time to maturity in years
    rate : float
        Domestic (discounting) rate
    cost_of_carry : float
        b = r_domestic - r_foreign
    volatility : float
        Volatility (annualized)

    Returns
    -------
    float
        Barrier option price

    References
    ----------
    Rubinstein, M., & Reiner, E. (1991). Breaking down the barriers.
    Risk, 4(8), 28-35.
    Haug, E. G. (2007). The Complete Guide to Option Pricing Formulas, 2nd ed.
    """
    vanilla = black_scholes_price(
        option_type,
        spot=spot,
        strike=strike,
        time_to_maturity=time_to_maturity,
        rate=rate,
        cost_of_carry=cost_of_carry,
        volatility=volatility,
    )
    if is_knocked(direction, spot, barrier):
        return vanilla if knock_in else 0.0

    # Without diffusion the path runs monotonically from spot to the forward
    forward = spot * np.exp(cost_of_carry * max(time_to_maturity, 0.0))
    forward_path_value = vanilla if is_knocked(direction, forward, barrier) == knock_in else 0.0
    if time_to_maturity <= 0 or volatility * np.sqrt(time_to_maturity) < MIN_TOTAL_VOL:
        return forward_path_value

    phi = 1 if option_type is OptionType.CALL else -1
    eta = 1 if direction is BarrierDirection.DOWN else -1
    A, B, C, D = _barrier_terms(
        phi=phi,
        eta=eta,
        spot=spot,
        strike=strike,
        barrier=barrier,
        time_to_maturity=time_to_maturity,
        rate=rate,
        cost_of_carry=cost_of_carry,
        volatility=volatility,
    )
    strike_above = strike > barrier
    call = option_type is OptionType.CALL
    down = direction is BarrierDirection.DOWN

    if knock_in:
        if call and down:
            price = C if strike_above else A - B + D
        elif call:
            price = A if strike_above else B - C + D
        elif down:
            price = B - C + D if strike_above else A
        else:
            price = A - B + D if strike_above else C
    else:
        if call and down:
            price = A - C if strike_above else B - D
        elif call:
            price = 0.0 if strike_above else A - B + C - D
        elif down:
            price = A - B + C - D if strike_above else 0.0
        else:
            price = B - D if strike_above else A - C

    price = float(price)
    if not np.isfinite(price):
        logger.debug(
            "Barrier closed form not finite at sigma=%.6g t=%.6g; using the forward path",
            volatility,
            time_to_maturity,
        )
        return forward_path_value
    return max(price, 0.0)


def double_barrier_option_analytical(
    option_type: OptionType,
    knock_in: bool,
    *,
    spot: float,
    strike: float,
    lower_barrier: float,
    upper_barrier: float,
    time_to_maturity: float,
    rate: float,
    cost_of_carry: float,
    volatility: float,
    num_terms: int = DOUBLE_BARRIER_SERIES_TERMS,
) -> float:
    """Double barrier option price with flat barriers (Ikeda-Kunitomo).

    The knock-out value integrates the vanilla payoff against the reflected
    density of paths that never leave (L, U); the series runs over
    ``n = -num_terms .. num_terms``. Knock-in is vanilla minus knock-out.

    Parameters
    ----------
    lower_barrier, upper_barrier : float
        Barrier levels; the order does not matter.
    num_terms : int, default 10
        Reflection terms on each side of n = 0.

    References
    ----------
    Ikeda, M., & Kunitomo, N. (1992). Pricing options with curved boundaries.
    Mathematical Finance, 2(4), 275-298.
    """
    L = min(lower_barrier, upper_barrier)
    U = max(lower_barrier, upper_barrier)
    S, X, T = spot, strike, time_to_maturity
    r, b, sigma = rate, cost_of_carry, volatility

    vanilla = black_scholes_price(
        option_type,
        spot=S,
        strike=X,
        time_to_maturity=T,
        rate=r,
        cost_of_carry=b,
        volatility=sigma,
    )
    if outside_corridor(S, L, U):
        return vanilla if knock_in else 0.0

    # Without diffusion the path runs monotonically from spot to the forward
    forward = S * np.exp(b * max(T, 0.0))
    forward_path_value = vanilla if outside_corridor(forward, L, U) == knock_in else 0.0
    if T <= 0 or sigma * np.sqrt(T) < MIN_TOTAL_VOL:
        return forward_path_value

    # Integration limits for S_T inside the corridor where the payoff is positive
    if option_type is OptionType.CALL:
        low, high = max(X, L), U
    else:
        low, high = L, min(X, U)

    if low >= high:
        knock_out = 0.0
    else:
        sigma_sqrt_t = sigma * np.sqrt(T)
        n = np.arange(-num_terms, num_terms + 1, dtype=float)
        log_ul = np.log(U / L)
        carry_term = (b + 0.5 * sigma**2) * T

        d1 = (np.log(S / low) + 2 * n * log_ul + carry_term) / sigma_sqrt_t
        d2 = (np.log(S / high) + 2 * n * log_ul + carry_term) / sigma_sqrt_t
        d3 = (np.log(L**2 / (low * S)) - 2 * n * log_ul + carry_term) / sigma_sqrt_t
        d4 = (np.log(L**2 / (high * S)) - 2 * n * log_ul + carry_term) / sigma_sqrt_t

        mu1 = 2 * b / sigma**2 + 1
        mu3 = mu1
        log_reflect = np.log(L / S) - n * log_ul

        # Each term is (scale factor) * (N(upper) - N(lower)); the factors
        # overflow at low volatility exactly where the probabilities vanish
        with np.errstate(over="ignore"):
            sum1 = np.sum(
                np.exp(n * log_ul * mu1 + _log_norm_interval(d1, d2))
                - np.exp(log_reflect * mu3 + _log_norm_interval(d3, d4))
            )
            sum2 = np.sum(
                np.exp(
                    n * log_ul * (mu1 - 2)
                    + _log_norm_interval(d1 - sigma_sqrt_t, d2 - sigma_sqrt_t)
                )
                - np.exp(
                    log_reflect * (mu3 - 2)
                    + _log_norm_interval(d3 - sigma_sqrt_t, d4 - sigma_sqrt_t)
                )
            )

        df_carry = np.exp((b - r) * T)
        df_r = np.exp(-r * T)
        if option_type is OptionType.CALL:
            knock_out = S * df_carry * sum1 - X * df_r * sum2
        else:
            knock_out = X * df_r * sum2 - S * df_carry * sum1
        knock_out = float(knock_out)
        if not np.isfinite(knock_out):
            logger.debug(
                "Double barrier series not finite at sigma=%.6g t=%.6g; using the forward path",
                sigma,
                T,
            )
            return forward_path_value
        knock_out = min(max(knock_out, 0.0), vanilla)

    if knock_in:
        return max(vanilla - knock_out, 0.0)
    return knock_out


def barrier_hit_mask(
    extrema: PathExtrema,
    *,
    direction: BarrierDirection | None = None,
    barrier: float | None = None,
    lower_barrier: float | None = None,
    upper_barrier: float | None = None,
) -> np.ndarray:
    """Boolean mask of paths that touched the barrier(s) at any monitoring step.

    Pass ``direction`` and ``barrier`` for a single barrier, or
    ``lower_barrier`` and ``upper_barrier`` for a double barrier (hit when
    either side is touched).
    """
    if lower_barrier is not None and upper_barrier is not None:
        return (extrema.running_min <= lower_barrier) | (extrema.running_max >= upper_barrier)
    if direction is BarrierDirection.UP:
        return extrema.running_max >= barrier
    return extrema.running_min <= barrier


def barrier_option_monte_carlo(
    extrema: PathExtrema,
    option_type: OptionType,
    strike: float,
    knock_in: bool,
    *,
    direction: BarrierDirection | None = None,
    barrier: float | None = None,
    lower_barrier: float | None = None,
    upper_barrier: float | None = None,
) -> np.ndarray:
    """Undiscounted barrier payoff per path from simulated extrema.

    Parameters
    ----------
    extrema : PathExtrema
        Terminal values and running min/max per path
    option_type : OptionType
        OptionType.CALL or OptionType.PUT
    strike : float
        Strike price
    knock_in : bool
        Knock-in pays only on hit paths, knock-out only on untouched ones

    Returns
    -------
    np.ndarray
        Payoff per path
    """
    hit = barrier_hit_mask(
        extrema,
        direction=direction,
        barrier=barrier,
        lower_barrier=lower_barrier,
        upper_barrier=upper_barrier,
    )
    intrinsic = vanilla_payoff(option_type, strike, extrema.terminal)
    if knock_in:
        return np.where(hit, intrinsic, 0.0)
    return np.where(~hit, intrinsic, 0.0)


class _AnalyticalBarrierValuation:
    """Closed-form single and double barrier valuation."""

    method_label = "Barrier Option (Closed Form)"

    def __init__(self, parent: LegValuation) -> None:
        self.parent = parent

    def present_value(self) -> float:
        market = self.parent.market
        leg = self.parent.resolved
        kind = leg.kind
        common = dict(
            spot=market.spot,
            strike=leg.strike,
            time_to_maturity=market.time_to_maturity,
            rate=market.r,
            cost_of_carry=market.b,
            volatility=market.sigma,
        )
        if kind.is_double:
            return double_barrier_option_analytical(
                kind.option_type,
                kind.is_knock_in,
                lower_barrier=leg.lower_barrier,
                upper_barrier=leg.upper_barrier,
                **common,
            )
        return barrier_option_analytical(
            kind.option_type,
            kind.barrier_direction,
            kind.is_knock_in,
            barrier=leg.barrier,
            **common,
        )


class _MCBarrierValuation(_MCValuationBase):
    """Monte Carlo barrier valuation with step-wise monitoring of running extrema.

    Discrete monitoring misses crossings between steps, so knock-out values
    are biased upward relative to continuous monitoring; finer steps shrink
    the bias.
    """

    label = "Barrier"
    method_label = "Barrier Option (Monte Carlo)"

    def _barrier_kwargs(self) -> dict:
        leg = self.parent.resolved
        if leg.kind.is_double:
            return {"lower_barrier": leg.lower_barrier, "upper_barrier": leg.upper_barrier}
        return {"direction": leg.kind.barrier_direction, "barrier": leg.barrier}

    def _already_knocked(self) -> bool:
        leg = self.parent.resolved
        spot = self.parent.market.spot
        if leg.kind.is_double:
            return outside_corridor(spot, leg.lower_barrier, leg.upper_barrier)
        return is_knocked(leg.kind.barrier_direction, spot, leg.barrier)

    def solve(self) -> np.ndarray:
        market = self.parent.market
        leg = self.parent.resolved
        kind = leg.kind
        num_paths = self.mc_params.num_paths

        if kind.is_knock_out and self._already_knocked():
            logger.debug("Barrier already breached at spot=%.6g, knock-out worth 0", market.spot)
            return np.zeros(num_paths)

        t = market.time_to_maturity
        if t <= 0:
            knocked = self._already_knocked()
            alive = knocked if kind.is_knock_in else not knocked
            intrinsic = float(vanilla_payoff(kind.option_type, leg.strike, market.spot))
            return np.full(num_paths, intrinsic if alive else 0.0)

        num_steps = self.mc_params.steps_for(t)
        logger.debug(
            "MC barrier paths=%d steps=%d (discrete monitoring, dt=%.6f; "
            "knock-outs biased high vs continuous barrier)",
            num_paths,
            num_steps,
            t / num_steps,
        )
        simulation = build_path_simulation(market, self.mc_params, num_steps=num_steps)
        extrema = simulation.simulate_extrema(t)
        return barrier_option_monte_carlo(
            extrema,
            kind.option_type,
            leg.strike,
            kind.is_knock_in,
            **self._barrier_kwargs(),
        )
