"""Forward and swap pricing.

Both instruments are linear in spot, so their reported price is a forward
level rather than an option premium, and their Greeks are fixed.
"""

from __future__ import annotations
from collections.abc import Sequence
from typing import TYPE_CHECKING
import numpy as np

from ..exceptions import ValidationError
from ..utils import forward_price

if TYPE_CHECKING:
    from .core import LegValuation


def swap_price(forwards: Sequence[float], times: Sequence[float], rate: float) -> float:
    """Fixed swap rate that equates discounted fixed and floating legs.

    Parameters
    ==========
    forwards:
        Forward prices for each settlement date.
    times:
        Year fractions of the settlement dates.
    rate:
        Domestic discount rate (decimal).

    Returns
    =======
    swap_rate: float
        Discount-factor weighted average of ``forwards``.
    """
    forwards_arr = np.asarray(forwards, dtype=float)
    times_arr = np.asarray(times, dtype=float)
    if forwards_arr.size == 0:
        raise ValidationError("swap_price requires at least one forward")
    if forwards_arr.shape != times_arr.shape:
        raise ValidationError(
            f"forwards and times must have the same length, got {forwards_arr.size} "
            f"and {times_arr.size}"
        )
    discount_factors = np.exp(-rate * np.maximum(times_arr, 0.0))
    return float(np.dot(forwards_arr, discount_factors) / np.sum(discount_factors))


class _ForwardValuation:
    """Forward priced at F = S * exp(b * t)."""

    method_label = "Forward Pricing"

    def __init__(self, parent: LegValuation) -> None:
        self.parent = parent

    def present_value(self) -> float:
        market = self.parent.market
        return forward_price(
            spot=market.spot,
            cost_of_carry=market.b,
            time_to_maturity=market.time_to_maturity,
        )


class _SwapValuation:
    """Single-period swap: the swap rate on one forward settling at maturity."""

    method_label = "Swap Pricing"

    def __init__(self, parent: LegValuation) -> None:
        self.parent = parent

    def present_value(self) -> float:
        market = self.parent.market
        t = market.time_to_maturity
        forward = forward_price(spot=market.spot, cost_of_carry=market.b, time_to_maturity=t)
        return swap_price([forward], [t], market.r)
