"""Finite-difference Greeks over an arbitrary pricing function."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
import logging

from ..market_environment import MarketSnapshot
from .params import GreekBumps

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Greeks:
    """Price sensitivities of a single leg.

    Attributes
    ==========
    delta:
        dP/dS
    gamma:
        d2P/dS2
    theta:
        Value change per year of calendar time (negative for a long vanilla).
    vega:
        dP/dsigma per 1.0 of volatility.
    rho:
        dP/dr per 1.0 of domestic rate.
    """

    delta: float = 0.0
    gamma: float = 0.0
    theta: float = 0.0
    vega: float = 0.0
    rho: float = 0.0

    def scaled(self, factor: float) -> Greeks:
        """Greeks for ``factor`` units of the leg (e.g. quantity / 100)."""
        return Greeks(
            delta=self.delta * factor,
            gamma=self.gamma * factor,
            theta=self.theta * factor,
            vega=self.vega * factor,
            rho=self.rho * factor,
        )

    def __add__(self, other: Greeks) -> Greeks:
        return Greeks(
            delta=self.delta + other.delta,
            gamma=self.gamma + other.gamma,
            theta=self.theta + other.theta,
            vega=self.vega + other.vega,
            rho=self.rho + other.rho,
        )


FORWARD_GREEKS = Greeks(delta=1.0)
SWAP_GREEKS = Greeks()


def numerical_greeks(
    price_fn: Callable[[MarketSnapshot], float],
    market: MarketSnapshot,
    bumps: GreekBumps | None = None,
) -> Greeks:
    """Central-difference Greeks by bump-and-reprice.

    Parameters
    ==========
    price_fn:
        Pricer treated as a black box. Monte Carlo pricers must use a fixed
        seed so every bumped revaluation sees the same random numbers.
    market:
        Base market snapshot.
    bumps:
        Finite-difference steps. Defaults to ``GreekBumps()``.

    Returns
    =======
    greeks: Greeks

    Notes
    =====
    - delta = (P(S+dS) - P(S-dS)) / (2 dS), gamma = (P(S+dS) - 2P(S) + P(S-dS)) / dS^2
    - theta = (P(t-dt) - P(t)) / dt with dt capped at the remaining time; 0 at expiry
    - vega and rho are central differences on sigma and the domestic rate
    """
    bumps = GreekBumps() if bumps is None else bumps
    t = market.time_to_maturity
    base_market = market.replace(time_to_maturity_override=t)
    base = price_fn(base_market)

    spot = market.spot
    d_spot = spot * bumps.spot_rel
    up = price_fn(base_market.replace(spot=spot + d_spot))
    down = price_fn(base_market.replace(spot=spot - d_spot))
    delta = (up - down) / (2 * d_spot)
    gamma = (up - 2 * base + down) / d_spot**2

    d_time = min(bumps.time, t)
    if d_time > 0:
        shorter = price_fn(base_market.replace(time_to_maturity_override=t - d_time))
        theta = (shorter - base) / d_time
    else:
        theta = 0.0

    # Market quotes volatility and rates in percent
    sigma = market.sigma
    sigma_up = sigma + bumps.vol
    sigma_down = max(sigma - bumps.vol, 0.0)
    vol_up = price_fn(base_market.replace(volatility=sigma_up * 100.0))
    vol_down = price_fn(base_market.replace(volatility=sigma_down * 100.0))
    vega = (vol_up - vol_down) / (sigma_up - sigma_down)

    rate = market.r
    rate_up = price_fn(base_market.replace(domestic_rate=(rate + bumps.rate) * 100.0))
    rate_down = price_fn(base_market.replace(domestic_rate=(rate - bumps.rate) * 100.0))
    rho = (rate_up - rate_down) / (2 * bumps.rate)

    logger.debug(
        "Numerical greeks base=%.6g dS=%.6g dt=%.6g delta=%.6g gamma=%.6g theta=%.6g "
        "vega=%.6g rho=%.6g",
        base,
        d_spot,
        d_time,
        delta,
        gamma,
        theta,
        vega,
        rho,
    )
    return Greeks(delta=delta, gamma=gamma, theta=theta, vega=vega, rho=rho)
