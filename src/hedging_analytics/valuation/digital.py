"""Digital (binary) and touch option valuation by Monte Carlo.

Each digital kind pays a fixed fraction of notional (``rebate / 100``) when
its event holds:

- one-touch / no-touch: single barrier touched / never touched
- double-touch / double-no-touch: either barrier touched / neither touched
- range-binary / outside-binary: terminal spot inside / outside [L, U]
"""

from __future__ import annotations
from typing import TYPE_CHECKING
import logging
import numpy as np

from ..enums import BarrierDirection, InstrumentKind
from ..exceptions import UnsupportedFeatureError
from ..stochastic_processes import PathExtrema
from .monte_carlo import _MCValuationBase, build_path_simulation

if TYPE_CHECKING:
    from .core import LegValuation

logger = logging.getLogger(__name__)


def touch_direction(barrier: float, spot: float) -> BarrierDirection:
    """Direction a single touch barrier is approached from: UP when barrier >= spot."""
    return BarrierDirection.UP if barrier >= spot else BarrierDirection.DOWN


def digital_event(
    kind: InstrumentKind,
    extrema: PathExtrema,
    *,
    spot: float,
    barrier: float | None = None,
    lower_barrier: float | None = None,
    upper_barrier: float | None = None,
) -> np.ndarray:
    """Boolean mask of paths on which the digital pays.

    Parameters
    ==========
    kind: InstrumentKind
        one of the digital kinds
    extrema: PathExtrema
        simulated terminal values and running min/max
    spot: float
        initial spot, used to orient single touch barriers
    barrier: float, optional
        single barrier (one-touch, no-touch)
    lower_barrier, upper_barrier: float, optional
        corridor for the double and range kinds
    """
    if kind in (InstrumentKind.ONE_TOUCH, InstrumentKind.NO_TOUCH):
        if touch_direction(barrier, spot) is BarrierDirection.UP:
            touched = extrema.running_max >= barrier
        else:
            touched = extrema.running_min <= barrier
        return touched if kind is InstrumentKind.ONE_TOUCH else ~touched

    if kind in (InstrumentKind.DOUBLE_TOUCH, InstrumentKind.DOUBLE_NO_TOUCH):
        touched = (extrema.running_min <= lower_barrier) | (extrema.running_max >= upper_barrier)
        return touched if kind is InstrumentKind.DOUBLE_TOUCH else ~touched

    if kind in (InstrumentKind.RANGE_BINARY, InstrumentKind.OUTSIDE_BINARY):
        inside = (extrema.terminal >= lower_barrier) & (extrema.terminal <= upper_barrier)
        return inside if kind is InstrumentKind.RANGE_BINARY else ~inside

    raise UnsupportedFeatureError(f"{kind.value} is not a digital kind")


def digital_event_at_spot(
    kind: InstrumentKind,
    hypothetical_spot: float,
    *,
    reference_spot: float,
    barrier: float | None = None,
    lower_barrier: float | None = None,
    upper_barrier: float | None = None,
) -> bool:
    """Static event test at a single spot level (no path)."""
    level = np.array([float(hypothetical_spot)])
    extrema = PathExtrema(terminal=level, running_min=level, running_max=level)
    return bool(
        digital_event(
            kind,
            extrema,
            spot=reference_spot,
            barrier=barrier,
            lower_barrier=lower_barrier,
            upper_barrier=upper_barrier,
        )[0]
    )


class _MCDigitalValuation(_MCValuationBase):
    """Monte Carlo digital valuation: discounted payout times event frequency."""

    label = "Digital"
    method_label = "Digital Option (Monte Carlo)"

    def discount_horizon(self) -> float:
        leg = self.parent.resolved
        if leg.kind is InstrumentKind.ONE_TOUCH and leg.time_to_payoff is not None:
            return leg.time_to_payoff
        return self.parent.market.time_to_maturity

    def solve(self) -> np.ndarray:
        market = self.parent.market
        leg = self.parent.resolved
        num_paths = self.mc_params.num_paths
        barriers = dict(
            barrier=leg.barrier,
            lower_barrier=leg.lower_barrier,
            upper_barrier=leg.upper_barrier,
        )

        t = market.time_to_maturity
        if t <= 0:
            pays = digital_event_at_spot(
                leg.kind, market.spot, reference_spot=market.spot, **barriers
            )
            return np.full(num_paths, leg.payout if pays else 0.0)

        num_steps = self.mc_params.steps_for(t)
        logger.debug(
            "MC digital kind=%s paths=%d steps=%d payout=%.6g",
            leg.kind.value,
            num_paths,
            num_steps,
            leg.payout,
        )
        simulation = build_path_simulation(market, self.mc_params, num_steps=num_steps)
        extrema = simulation.simulate_extrema(t)
        event = digital_event(leg.kind, extrema, spot=market.spot, **barriers)
        return leg.payout * event.astype(float)
