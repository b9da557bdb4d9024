"""Enums for leg specification and pricing."""

from enum import Enum

__all__ = [
    "OptionType",
    "InstrumentFamily",
    "InstrumentKind",
    "BarrierDirection",
    "StrikeMode",
    "PricingMethod",
    "GreekCalculationMethod",
    "DayCountConvention",
]


class OptionType(Enum):
    CALL = "call"
    PUT = "put"


class InstrumentFamily(Enum):
    VANILLA = "vanilla"
    FORWARD = "forward"
    SWAP = "swap"
    BARRIER = "barrier"
    DIGITAL = "digital"


class BarrierDirection(Enum):
    UP = "up"
    DOWN = "down"


class InstrumentKind(Enum):
    """Closed set of instruments a strategy leg can hold.

    Values match the identifiers used by strategy builders
    (e.g. ``"call-reverse-knockout"``).
    """

    CALL = "call"
    PUT = "put"
    FORWARD = "forward"
    SWAP = "swap"

    CALL_KNOCKOUT = "call-knockout"
    CALL_REVERSE_KNOCKOUT = "call-reverse-knockout"
    CALL_DOUBLE_KNOCKOUT = "call-double-knockout"
    PUT_KNOCKOUT = "put-knockout"
    PUT_REVERSE_KNOCKOUT = "put-reverse-knockout"
    PUT_DOUBLE_KNOCKOUT = "put-double-knockout"
    CALL_KNOCKIN = "call-knockin"
    CALL_REVERSE_KNOCKIN = "call-reverse-knockin"
    CALL_DOUBLE_KNOCKIN = "call-double-knockin"
    PUT_KNOCKIN = "put-knockin"
    PUT_REVERSE_KNOCKIN = "put-reverse-knockin"
    PUT_DOUBLE_KNOCKIN = "put-double-knockin"

    ONE_TOUCH = "one-touch"
    NO_TOUCH = "no-touch"
    DOUBLE_TOUCH = "double-touch"
    DOUBLE_NO_TOUCH = "double-no-touch"
    RANGE_BINARY = "range-binary"
    OUTSIDE_BINARY = "outside-binary"

    @property
    def family(self) -> InstrumentFamily:
        return _FAMILY[self]

    @property
    def option_type(self) -> OptionType | None:
        """CALL/PUT for vanilla and barrier kinds, None otherwise."""
        return _OPTION_TYPE.get(self)

    @property
    def is_double(self) -> bool:
        """True when the kind needs both ``barrier`` and ``second_barrier``."""
        return self in _DOUBLE_KINDS

    @property
    def is_reverse(self) -> bool:
        return self in _REVERSE_KINDS

    @property
    def is_knock_in(self) -> bool:
        return self in _KNOCK_IN_KINDS

    @property
    def is_knock_out(self) -> bool:
        return self.family is InstrumentFamily.BARRIER and not self.is_knock_in

    @property
    def barrier_direction(self) -> BarrierDirection | None:
        """Knock direction of a single-barrier kind.

        A normal call knocks on an up-move and a normal put on a down-move;
        reverse kinds invert the direction. Double and non-barrier kinds
        return None.
        """
        if self.family is not InstrumentFamily.BARRIER or self.is_double:
            return None
        up = self.option_type is OptionType.CALL
        if self.is_reverse:
            up = not up
        return BarrierDirection.UP if up else BarrierDirection.DOWN

    @property
    def vanilla_kind(self) -> "InstrumentKind | None":
        """Underlying vanilla kind for barrier legs (CALL or PUT)."""
        option_type = self.option_type
        if option_type is None:
            return None
        return InstrumentKind.CALL if option_type is OptionType.CALL else InstrumentKind.PUT

    @property
    def needs_barrier(self) -> bool:
        return self.family in (InstrumentFamily.BARRIER, InstrumentFamily.DIGITAL)


_K = InstrumentKind

_FAMILY: dict[InstrumentKind, InstrumentFamily] = {
    _K.CALL: InstrumentFamily.VANILLA,
    _K.PUT: InstrumentFamily.VANILLA,
    _K.FORWARD: InstrumentFamily.FORWARD,
    _K.SWAP: InstrumentFamily.SWAP,
    _K.CALL_KNOCKOUT: InstrumentFamily.BARRIER,
    _K.CALL_REVERSE_KNOCKOUT: InstrumentFamily.BARRIER,
    _K.CALL_DOUBLE_KNOCKOUT: InstrumentFamily.BARRIER,
    _K.PUT_KNOCKOUT: InstrumentFamily.BARRIER,
    _K.PUT_REVERSE_KNOCKOUT: InstrumentFamily.BARRIER,
    _K.PUT_DOUBLE_KNOCKOUT: InstrumentFamily.BARRIER,
    _K.CALL_KNOCKIN: InstrumentFamily.BARRIER,
    _K.CALL_REVERSE_KNOCKIN: InstrumentFamily.BARRIER,
    _K.CALL_DOUBLE_KNOCKIN: InstrumentFamily.BARRIER,
    _K.PUT_KNOCKIN: InstrumentFamily.BARRIER,
    _K.PUT_REVERSE_KNOCKIN: InstrumentFamily.BARRIER,
    _K.PUT_DOUBLE_KNOCKIN: InstrumentFamily.BARRIER,
    _K.ONE_TOUCH: InstrumentFamily.DIGITAL,
    _K.NO_TOUCH: InstrumentFamily.DIGITAL,
    _K.DOUBLE_TOUCH: InstrumentFamily.DIGITAL,
    _K.DOUBLE_NO_TOUCH: InstrumentFamily.DIGITAL,
    _K.RANGE_BINARY: InstrumentFamily.DIGITAL,
    _K.OUTSIDE_BINARY: InstrumentFamily.DIGITAL,
}

_OPTION_TYPE: dict[InstrumentKind, OptionType] = {
    _K.CALL: OptionType.CALL,
    _K.PUT: OptionType.PUT,
    _K.CALL_KNOCKOUT: OptionType.CALL,
    _K.CALL_REVERSE_KNOCKOUT: OptionType.CALL,
    _K.CALL_DOUBLE_KNOCKOUT: OptionType.CALL,
    _K.CALL_KNOCKIN: OptionType.CALL,
    _K.CALL_REVERSE_KNOCKIN: OptionType.CALL,
    _K.CALL_DOUBLE_KNOCKIN: OptionType.CALL,
    _K.PUT_KNOCKOUT: OptionType.PUT,
    _K.PUT_REVERSE_KNOCKOUT: OptionType.PUT,
    _K.PUT_DOUBLE_KNOCKOUT: OptionType.PUT,
    _K.PUT_KNOCKIN: OptionType.PUT,
    _K.PUT_REVERSE_KNOCKIN: OptionType.PUT,
    _K.PUT_DOUBLE_KNOCKIN: OptionType.PUT,
}

_DOUBLE_KINDS = frozenset(
    {
        _K.CALL_DOUBLE_KNOCKOUT,
        _K.PUT_DOUBLE_KNOCKOUT,
        _K.CALL_DOUBLE_KNOCKIN,
        _K.PUT_DOUBLE_KNOCKIN,
        _K.DOUBLE_TOUCH,
        _K.DOUBLE_NO_TOUCH,
        _K.RANGE_BINARY,
        _K.OUTSIDE_BINARY,
    }
)

_REVERSE_KINDS = frozenset(
    {
        _K.CALL_REVERSE_KNOCKOUT,
        _K.PUT_REVERSE_KNOCKOUT,
        _K.CALL_REVERSE_KNOCKIN,
        _K.PUT_REVERSE_KNOCKIN,
    }
)

_KNOCK_IN_KINDS = frozenset(
    {
        _K.CALL_KNOCKIN,
        _K.CALL_REVERSE_KNOCKIN,
        _K.CALL_DOUBLE_KNOCKIN,
        _K.PUT_KNOCKIN,
        _K.PUT_REVERSE_KNOCKIN,
        _K.PUT_DOUBLE_KNOCKIN,
    }
)


class StrikeMode(Enum):
    PERCENT = "percent"
    ABSOLUTE = "absolute"


class PricingMethod(Enum):
    """Model selection for a pricing request.

    ANALYTICAL selects Black-Scholes for vanillas and the closed-form
    barrier formulas; MONTE_CARLO selects path simulation. Digital legs are
    always simulated; forwards and swaps are always analytical.
    """

    ANALYTICAL = "analytical"
    MONTE_CARLO = "monte_carlo"


class GreekCalculationMethod(Enum):
    ANALYTICAL = "analytical"
    NUMERICAL = "numerical"


class ImpliedVolMethod(Enum):
    NEWTON_RAPHSON = "newton_raphson"
    BRENTQ = "brentq"


class DayCountConvention(Enum):
    ACT_360 = "ACT/360"
    ACT_365F = "ACT/365F"
    ACT_365_25 = "ACT/365.25"
    THIRTY_360_US = "30/360 US"
