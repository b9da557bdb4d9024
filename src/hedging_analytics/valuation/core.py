from dataclasses import dataclass, replace as dc_replace
import logging
import math
import numpy as np
from ..exceptions import (
    ConfigurationError,
    NumericalError,
    UnsupportedFeatureError,
    ValidationError,
)
from ..enums import (
    InstrumentFamily,
    InstrumentKind,
    OptionType,
    PricingMethod,
    GreekCalculationMethod,
    StrikeMode,
)
from ..market_environment import MarketSnapshot
from .bsm import _BSMVanillaValuation
from .monte_carlo import _MCVanillaValuation
from .barrier import _AnalyticalBarrierValuation, _MCBarrierValuation
from .digital import _MCDigitalValuation
from .linear import _ForwardValuation, _SwapValuation
from .greeks import FORWARD_GREEKS, SWAP_GREEKS, Greeks, numerical_greeks
from .params import GreekBumps, MonteCarloParams

logger = logging.getLogger(__name__)

# ── Implementation registry ─────────────────────────────────────────
# Maps (InstrumentFamily, PricingMethod) → implementation class.
# Digital legs are always simulated; forwards and swaps are always analytical.
_PRICER_REGISTRY: dict[tuple[InstrumentFamily, PricingMethod], type] = {
    (InstrumentFamily.VANILLA, PricingMethod.ANALYTICAL): _BSMVanillaValuation,
    (InstrumentFamily.VANILLA, PricingMethod.MONTE_CARLO): _MCVanillaValuation,
    (InstrumentFamily.BARRIER, PricingMethod.ANALYTICAL): _AnalyticalBarrierValuation,
    (InstrumentFamily.BARRIER, PricingMethod.MONTE_CARLO): _MCBarrierValuation,
    (InstrumentFamily.DIGITAL, PricingMethod.ANALYTICAL): _MCDigitalValuation,
    (InstrumentFamily.DIGITAL, PricingMethod.MONTE_CARLO): _MCDigitalValuation,
    (InstrumentFamily.FORWARD, PricingMethod.ANALYTICAL): _ForwardValuation,
    (InstrumentFamily.FORWARD, PricingMethod.MONTE_CARLO): _ForwardValuation,
    (InstrumentFamily.SWAP, PricingMethod.ANALYTICAL): _SwapValuation,
    (InstrumentFamily.SWAP, PricingMethod.MONTE_CARLO): _SwapValuation,
}

_SIMULATED = (_MCVanillaValuation, _MCBarrierValuation, _MCDigitalValuation)


def _coerce_optional(name: str, value, *, allow_zero: bool = True) -> float | None:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ConfigurationError(f"Leg.{name} must be numeric, got bool")
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Leg.{name} must be numeric") from exc
    if not math.isfinite(number):
        raise ValidationError(f"Leg.{name} must be finite")
    if number < 0 or (number == 0 and not allow_zero):
        bound = ">= 0" if allow_zero else "> 0"
        raise ValidationError(f"Leg.{name} must be {bound}, got {number}")
    return number


@dataclass(frozen=True, slots=True)
class ResolvedLeg:
    """A leg with every level expressed in absolute price units.

    ``lower_barrier`` and ``upper_barrier`` are only set for double kinds and
    are always ordered. ``payout`` is the digital payout as a fraction of
    notional (``rebate / 100``).
    """

    kind: InstrumentKind
    strike: float
    quantity: float
    volatility: float | None = None
    barrier: float | None = None
    second_barrier: float | None = None
    lower_barrier: float | None = None
    upper_barrier: float | None = None
    payout: float = 0.0
    time_to_payoff: float | None = None

    @property
    def quantity_factor(self) -> float:
        """Signed quantity as a fraction of notional (100% -> 1.0)."""
        return self.quantity / 100.0


@dataclass(frozen=True, slots=True)
class Leg:
    """One component of a hedging strategy.

    Attributes
    ==========
    kind: InstrumentKind
        Instrument type.
    strike: float
        Strike, in percent of spot or absolute depending on ``strike_mode``.
    strike_mode: StrikeMode
        PERCENT (default) or ABSOLUTE.
    quantity: float
        Signed quantity in percent of notional; positive buys, negative sells.
    volatility: float | None
        Leg-specific volatility in percent; None uses the market volatility.
    barrier, second_barrier: float | None
        Barrier levels. Double kinds need both, in any order.
    barrier_mode: StrikeMode
        Units of the barrier levels.
    rebate: float
        Digital payout in percent of notional.
    time_to_payoff: float | None
        Payment delay in years for one-touch legs.
    """

    kind: InstrumentKind
    strike: float
    strike_mode: StrikeMode = StrikeMode.PERCENT
    quantity: float = 100.0
    volatility: float | None = None
    barrier: float | None = None
    second_barrier: float | None = None
    barrier_mode: StrikeMode = StrikeMode.PERCENT
    rebate: float = 0.0
    time_to_payoff: float | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.kind, InstrumentKind):
            raise ConfigurationError(
                f"kind must be InstrumentKind enum, got {type(self.kind).__name__}"
            )
        for name in ("strike_mode", "barrier_mode"):
            if not isinstance(getattr(self, name), StrikeMode):
                raise ConfigurationError(
                    f"{name} must be StrikeMode enum, got {type(getattr(self, name)).__name__}"
                )

        needs_positive_strike = self.kind.family in (
            InstrumentFamily.VANILLA,
            InstrumentFamily.BARRIER,
        )
        object.__setattr__(
            self,
            "strike",
            _coerce_optional("strike", self.strike, allow_zero=not needs_positive_strike),
        )
        if self.strike is None:
            raise ValidationError("Leg.strike must be provided")

        if isinstance(self.quantity, bool):
            raise ConfigurationError("Leg.quantity must be numeric, got bool")
        try:
            quantity = float(self.quantity)
        except (TypeError, ValueError) as exc:
            raise ConfigurationError("Leg.quantity must be numeric") from exc
        if not math.isfinite(quantity):
            raise ValidationError("Leg.quantity must be finite")
        object.__setattr__(self, "quantity", quantity)

        object.__setattr__(self, "volatility", _coerce_optional("volatility", self.volatility))
        object.__setattr__(self, "rebate", _coerce_optional("rebate", self.rebate))
        object.__setattr__(
            self, "time_to_payoff", _coerce_optional("time_to_payoff", self.time_to_payoff)
        )
        object.__setattr__(
            self, "barrier", _coerce_optional("barrier", self.barrier, allow_zero=False)
        )
        object.__setattr__(
            self,
            "second_barrier",
            _coerce_optional("second_barrier", self.second_barrier, allow_zero=False),
        )

        if self.kind.needs_barrier and self.barrier is None:
            raise ValidationError(f"{self.kind.value} requires a barrier")
        if self.kind.is_double and self.second_barrier is None:
            raise ValidationError(f"{self.kind.value} requires a second_barrier")

    def _absolute(self, value: float | None, mode: StrikeMode, spot: float) -> float | None:
        if value is None:
            return None
        if mode is StrikeMode.PERCENT:
            return value / 100.0 * spot
        return value

    def resolve(self, spot: float) -> ResolvedLeg:
        """Convert percent levels to absolute levels against ``spot``.

        Barriers are rescaled first and only then ordered into lower/upper.
        """
        if spot <= 0:
            raise ValidationError(f"spot must be positive, got {spot}")
        barrier = self._absolute(self.barrier, self.barrier_mode, spot)
        second = self._absolute(self.second_barrier, self.barrier_mode, spot)
        lower = upper = None
        if self.kind.is_double:
            lower, upper = min(barrier, second), max(barrier, second)
        return ResolvedLeg(
            kind=self.kind,
            strike=self._absolute(self.strike, self.strike_mode, spot),
            quantity=self.quantity,
            volatility=self.volatility,
            barrier=barrier,
            second_barrier=second if self.kind.is_double else None,
            lower_barrier=lower,
            upper_barrier=upper,
            payout=self.rebate / 100.0,
            time_to_payoff=self.time_to_payoff,
        )

    def replace(self, **kwargs: object) -> "Leg":
        """Return a copy with the given fields replaced (validated again)."""
        return dc_replace(self, **kwargs)


@dataclass(frozen=True, slots=True)
class PricingRequest:
    """A leg, a market snapshot and the model selection to price them with."""

    leg: Leg
    market: MarketSnapshot
    method: PricingMethod = PricingMethod.ANALYTICAL
    params: MonteCarloParams | None = None
    compute_greeks: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.leg, Leg):
            raise ConfigurationError(f"leg must be a Leg, got {type(self.leg).__name__}")
        if not isinstance(self.market, MarketSnapshot):
            raise ConfigurationError(
                f"market must be a MarketSnapshot, got {type(self.market).__name__}"
            )
        if not isinstance(self.method, PricingMethod):
            raise ConfigurationError(
                f"method must be PricingMethod enum, got {type(self.method).__name__}"
            )
        if self.params is not None and not isinstance(self.params, MonteCarloParams):
            raise ConfigurationError(
                f"params must be MonteCarloParams, got {type(self.params).__name__}"
            )


@dataclass(frozen=True, slots=True)
class PricingResult:
    """Per-unit price of a leg with the method that produced it.

    ``price`` and ``greeks`` are for one unit of notional (quantity 100%).
    ``position_price`` and ``position_greeks`` apply the signed leg quantity.
    """

    price: float
    method: str
    greeks: Greeks | None = None
    std_error: float | None = None
    quantity: float = 100.0

    @property
    def position_price(self) -> float:
        return self.price * self.quantity / 100.0

    @property
    def position_greeks(self) -> Greeks | None:
        if self.greeks is None:
            return None
        return self.greeks.scaled(self.quantity / 100.0)


class LegValuation:
    """Single-leg valuation dispatcher.

    Routes to the pricing implementation registered for the leg's instrument
    family and the requested PricingMethod.

    Attributes
    ==========
    resolved: ResolvedLeg
        Leg with absolute strike and barriers.
    market: MarketSnapshot
        Market used for pricing (leg volatility override applied).
    method: PricingMethod
        Requested model selection.
    params: MonteCarloParams | None
        Simulation settings for Monte Carlo implementations.

    Methods
    =======
    present_value:
        Returns the price of one unit of the leg, floored at 0.
    greeks:
        Returns numerical (any leg) or analytical (BSM vanilla only) Greeks.
    """

    def __init__(
        self,
        leg: Leg | ResolvedLeg,
        market: MarketSnapshot,
        method: PricingMethod = PricingMethod.ANALYTICAL,
        params: MonteCarloParams | None = None,
    ) -> None:
        if not isinstance(market, MarketSnapshot):
            raise ConfigurationError(
                f"market must be a MarketSnapshot, got {type(market).__name__}"
            )
        if not isinstance(method, PricingMethod):
            raise ConfigurationError(
                f"method must be PricingMethod enum, got {type(method).__name__}"
            )
        if isinstance(leg, Leg):
            leg = leg.resolve(market.spot)
        elif not isinstance(leg, ResolvedLeg):
            raise ConfigurationError(f"leg must be a Leg, got {type(leg).__name__}")

        self.resolved = leg
        self.kind = leg.kind
        self.option_type: OptionType | None = leg.kind.option_type
        self.strike = leg.strike
        self.market = market.with_volatility(leg.volatility)
        self.method = method

        impl_cls = _PRICER_REGISTRY.get((leg.kind.family, method))
        if impl_cls is None:
            raise UnsupportedFeatureError(
                f"{leg.kind.value} does not support {method.name} pricing."
            )
        if params is None and issubclass(impl_cls, _SIMULATED):
            params = MonteCarloParams()
        if params is not None and not isinstance(params, MonteCarloParams):
            raise ConfigurationError(
                f"params must be MonteCarloParams, got {type(params).__name__}"
            )
        self.params = params
        self._impl = impl_cls(self)
        self.method_label: str = impl_cls.method_label

    @property
    def simulated(self) -> bool:
        return isinstance(self._impl, _SIMULATED)

    @property
    def std_error(self) -> float | None:
        """Standard error of the last Monte Carlo estimate, None for closed forms."""
        return getattr(self._impl, "std_error", None)

    def present_value(self) -> float:
        """Price of one unit of notional, floored at 0."""
        raw = float(self._impl.present_value())
        if not math.isfinite(raw):
            raise NumericalError(
                f"{self.kind.value} priced to a non-finite value ({raw}) with {self.method_label}"
            )
        pv = max(raw, 0.0)
        logger.debug(
            "Priced %s method=%s t=%.6f pv=%.6g",
            self.kind.value,
            self.method_label,
            self.market.time_to_maturity,
            pv,
        )
        return pv

    def _build_valuation(self, market: MarketSnapshot, params: MonteCarloParams | None):
        """Sibling valuation on a bumped market; the vol override is already applied."""
        return LegValuation(
            dc_replace(self.resolved, volatility=None),
            market,
            method=self.method,
            params=params,
        )

    def greeks(
        self,
        greek_calc_method: GreekCalculationMethod = GreekCalculationMethod.NUMERICAL,
        bumps: GreekBumps | None = None,
    ) -> Greeks:
        """Greeks for one unit of notional.

        Parameters
        ==========
        greek_calc_method: GreekCalculationMethod
            NUMERICAL (default) bumps and reprices through this same pricer.
            ANALYTICAL is only available for vanilla legs priced in closed form.
        bumps: GreekBumps, optional
            Finite-difference steps for NUMERICAL.

        Returns
        =======
        Greeks
        """
        if not isinstance(greek_calc_method, GreekCalculationMethod):
            raise ConfigurationError(
                "greek_calc_method must be GreekCalculationMethod enum, "
                f"got {type(greek_calc_method).__name__}"
            )
        family = self.kind.family
        if family is InstrumentFamily.FORWARD:
            return FORWARD_GREEKS
        if family is InstrumentFamily.SWAP:
            return SWAP_GREEKS

        if greek_calc_method is GreekCalculationMethod.ANALYTICAL:
            if not isinstance(self._impl, _BSMVanillaValuation):
                raise UnsupportedFeatureError(
                    "Analytical greeks are only available for vanilla legs priced with "
                    "PricingMethod.ANALYTICAL. Use GreekCalculationMethod.NUMERICAL."
                )
            return Greeks(
                delta=float(self._impl.delta()),
                gamma=float(self._impl.gamma()),
                theta=float(self._impl.theta()),
                vega=float(self._impl.vega()),
                rho=float(self._impl.rho()),
            )

        params = self.params
        if self.simulated and params.random_seed is None:
            # Common random numbers across bumps need one fixed seed
            seed = int(np.random.default_rng().integers(0, 2**31 - 1))
            params = dc_replace(params, random_seed=seed)
            logger.debug("Greeks for %s use seed=%d for all bumps", self.kind.value, seed)

        def price_fn(market: MarketSnapshot) -> float:
            return self._build_valuation(market, params).present_value()

        return numerical_greeks(price_fn, self.market, bumps)


def price_leg(
    leg: Leg,
    market: MarketSnapshot,
    method: PricingMethod = PricingMethod.ANALYTICAL,
    params: MonteCarloParams | None = None,
    compute_greeks: bool = False,
    greek_calc_method: GreekCalculationMethod = GreekCalculationMethod.NUMERICAL,
    bumps: GreekBumps | None = None,
) -> PricingResult:
    """Price one leg and optionally its Greeks.

    Parameters
    ==========
    leg: Leg
        Leg to price; percent strikes and barriers resolve against market spot.
    market: MarketSnapshot
        Market inputs.
    method: PricingMethod
        ANALYTICAL (Black-Scholes / closed-form barriers) or MONTE_CARLO.
    params: MonteCarloParams, optional
        Path count, steps and seed for simulated legs.
    compute_greeks: bool
        Attach Greeks to the result.

    Returns
    =======
    PricingResult
    """
    valuation = LegValuation(leg, market, method=method, params=params)
    price = valuation.present_value()
    greeks = valuation.greeks(greek_calc_method, bumps) if compute_greeks else None
    return PricingResult(
        price=price,
        method=valuation.method_label,
        greeks=greeks,
        std_error=valuation.std_error,
        quantity=valuation.resolved.quantity,
    )


def price_request(request: PricingRequest) -> PricingResult:
    """Price a :class:`PricingRequest`."""
    return price_leg(
        request.leg,
        request.market,
        method=request.method,
        params=request.params,
        compute_greeks=request.compute_greeks,
    )
