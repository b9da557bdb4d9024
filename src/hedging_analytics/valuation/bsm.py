"""Black-Scholes option valuation with a continuous cost of carry.

With cost of carry ``b = r_d - r_f`` this is the Garman-Kohlhagen model, and
equivalently Black-76 on the forward ``F = S * exp(b * t)``.
"""

from __future__ import annotations
from typing import TYPE_CHECKING, NamedTuple
import numpy as np
from scipy.stats import norm
from ..enums import OptionType

if TYPE_CHECKING:
    from .core import LegValuation

# Below this total volatility the price collapses to discounted forward intrinsic
MIN_TOTAL_VOL = 1e-12


def vanilla_payoff(option_type: OptionType, strike: float, spot):
    """Vanilla payoff, vectorized over spot."""
    if option_type is OptionType.CALL:
        return np.maximum(spot - strike, 0.0)
    return np.maximum(strike - spot, 0.0)


def _calculate_d_values(
    spot: float,
    strike: float,
    time_to_maturity: float,
    volatility: float,
    cost_of_carry: float,
) -> tuple[float, float]:
    """Calculate d1 and d2.

    Returns ``(+inf, +inf)``, ``(-inf, -inf)`` or ``(0, 0)`` in the
    deterministic limit, depending on where the forward sits against the strike.
    """
    forward = spot * np.exp(cost_of_carry * time_to_maturity)
    denominator = volatility * np.sqrt(time_to_maturity)

    if denominator < MIN_TOTAL_VOL:
        if forward > strike:
            return np.inf, np.inf
        elif forward < strike:
            return -np.inf, -np.inf
        else:
            return 0.0, 0.0

    numerator = np.log(forward / strike) + 0.5 * volatility**2 * time_to_maturity
    d1 = numerator / denominator
    d2 = d1 - denominator
    return float(d1), float(d2)


def black_scholes_price(
    option_type: OptionType,
    *,
    spot: float,
    strike: float,
    time_to_maturity: float,
    rate: float,
    cost_of_carry: float,
    volatility: float,
) -> float:
    """European vanilla price under Black-Scholes with cost of carry.

    Parameters
    ==========
    option_type: OptionType
        CALL or PUT
    spot: float
        current spot price
    strike: float
        strike price
    time_to_maturity: float
        year fraction to expiry
    rate: float
        domestic (discounting) rate, decimal
    cost_of_carry: float
        b = r_domestic - r_foreign, decimal
    volatility: float
        annualized volatility, decimal

    Returns
    =======
    price: float
        option value, floored at zero. For ``time_to_maturity <= 0`` this is
        the intrinsic value; for vanishing total volatility it is the
        discounted intrinsic value of the forward.
    """
    if time_to_maturity <= 0:
        return float(vanilla_payoff(option_type, strike, spot))

    df_r = np.exp(-rate * time_to_maturity)
    df_carry = np.exp((cost_of_carry - rate) * time_to_maturity)

    if volatility * np.sqrt(time_to_maturity) < MIN_TOTAL_VOL:
        forward = spot * np.exp(cost_of_carry * time_to_maturity)
        return float(df_r * vanilla_payoff(option_type, strike, forward))

    d1, d2 = _calculate_d_values(spot, strike, time_to_maturity, volatility, cost_of_carry)
    if option_type is OptionType.CALL:
        value = spot * df_carry * norm.cdf(d1) - strike * df_r * norm.cdf(d2)
    else:
        value = strike * df_r * norm.cdf(-d2) - spot * df_carry * norm.cdf(-d1)
    return max(float(value), 0.0)


class _BSMInputs(NamedTuple):
    """Pre-computed inputs shared across all BSM Greek calculations."""

    spot: float
    strike: float
    volatility: float
    time_to_maturity: float
    rate: float
    cost_of_carry: float
    df_r: float
    df_carry: float
    d1: float
    d2: float


class _BSMVanillaValuation:
    """Black-Scholes European vanilla valuation with analytical Greeks.

    Greek units follow the finite-difference engine: theta per year of
    calendar time, vega per 1.0 of volatility, rho per 1.0 of domestic rate.
    """

    method_label = "Garman-Kohlhagen (Closed Form)"

    def __init__(self, parent: LegValuation) -> None:
        self.parent = parent

    def _bsm_inputs(self) -> _BSMInputs:
        market = self.parent.market
        t = market.time_to_maturity
        d1, d2 = (0.0, 0.0)
        if t > 0:
            d1, d2 = _calculate_d_values(market.spot, self.parent.strike, t, market.sigma, market.b)
        return _BSMInputs(
            spot=market.spot,
            strike=self.parent.strike,
            volatility=market.sigma,
            time_to_maturity=t,
            rate=market.r,
            cost_of_carry=market.b,
            df_r=float(np.exp(-market.r * t)),
            df_carry=float(np.exp((market.b - market.r) * t)),
            d1=d1,
            d2=d2,
        )

    def present_value(self) -> float:
        market = self.parent.market
        return black_scholes_price(
            self.parent.option_type,
            spot=market.spot,
            strike=self.parent.strike,
            time_to_maturity=market.time_to_maturity,
            rate=market.r,
            cost_of_carry=market.b,
            volatility=market.sigma,
        )

    def _degenerate(self, inp: _BSMInputs) -> bool:
        if inp.time_to_maturity <= 0:
            return True
        return inp.volatility * np.sqrt(inp.time_to_maturity) < MIN_TOTAL_VOL

    def delta(self) -> float:
        """delta = e^{(b-r)T} N(d1) for calls, e^{(b-r)T} (N(d1) - 1) for puts."""
        inp = self._bsm_inputs()
        if inp.time_to_maturity <= 0:
            in_the_money = vanilla_payoff(self.parent.option_type, inp.strike, inp.spot) > 0
            if not in_the_money:
                return 0.0
            return 1.0 if self.parent.option_type is OptionType.CALL else -1.0

        if self.parent.option_type is OptionType.CALL:
            return inp.df_carry * norm.cdf(inp.d1)
        return inp.df_carry * (norm.cdf(inp.d1) - 1)

    def gamma(self) -> float:
        inp = self._bsm_inputs()
        if self._degenerate(inp):
            return 0.0
        return (
            inp.df_carry
            * norm.pdf(inp.d1)
            / (inp.spot * inp.volatility * np.sqrt(inp.time_to_maturity))
        )

    def vega(self) -> float:
        """vega = S e^{(b-r)T} N'(d1) sqrt(T), per 1.0 of volatility."""
        inp = self._bsm_inputs()
        if self._degenerate(inp):
            return 0.0
        return inp.spot * inp.df_carry * norm.pdf(inp.d1) * np.sqrt(inp.time_to_maturity)

    def theta(self) -> float:
        """Calendar-time decay per year.

        For call:
            theta = -(S e^{(b-r)T} N'(d1) sigma) / (2 sqrt(T))
                    - (b - r) S e^{(b-r)T} N(d1)
                    - r K e^{-rT} N(d2)

        For put:
            theta = -(S e^{(b-r)T} N'(d1) sigma) / (2 sqrt(T))
                    + (b - r) S e^{(b-r)T} N(-d1)
                    + r K e^{-rT} N(-d2)
        """
        inp = self._bsm_inputs()
        if self._degenerate(inp):
            return 0.0

        term1 = -(
            inp.spot
            * inp.df_carry
            * norm.pdf(inp.d1)
            * inp.volatility
            / (2 * np.sqrt(inp.time_to_maturity))
        )
        carry = inp.cost_of_carry - inp.rate
        if self.parent.option_type is OptionType.CALL:
            term2 = -carry * inp.spot * inp.df_carry * norm.cdf(inp.d1)
            term3 = -inp.rate * inp.strike * inp.df_r * norm.cdf(inp.d2)
        else:
            term2 = carry * inp.spot * inp.df_carry * norm.cdf(-inp.d1)
            term3 = inp.rate * inp.strike * inp.df_r * norm.cdf(-inp.d2)
        return term1 + term2 + term3

    def rho(self) -> float:
        """Sensitivity to the domestic rate with the foreign rate held fixed, per 1.0."""
        inp = self._bsm_inputs()
        if self._degenerate(inp):
            return 0.0
        if self.parent.option_type is OptionType.CALL:
            return inp.strike * inp.time_to_maturity * inp.df_r * norm.cdf(inp.d2)
        return -inp.strike * inp.time_to_maturity * inp.df_r * norm.cdf(-inp.d2)
