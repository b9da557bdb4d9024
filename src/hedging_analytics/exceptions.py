"""Custom exception hierarchy for the hedging_analytics library.

All library-specific exceptions inherit from :class:`HedgingAnalyticsError`,
enabling callers to catch *any* library error with a single ``except`` clause::

    try:
        result = price_leg(leg, market)
    except HedgingAnalyticsError as exc:
        log.error("Library error: %s", exc)

Domain degeneracies (expired legs, zero volatility, spot already through a
barrier) are not errors: pricers return a defined number for them.
"""

from __future__ import annotations


class HedgingAnalyticsError(Exception):
    """Base exception for all library errors."""


# ── Input validation ────────────────────────────────────────────────


class ValidationError(HedgingAnalyticsError):
    """Invalid input values (out-of-range, non-finite, missing barriers, etc.)."""


class ConfigurationError(HedgingAnalyticsError):
    """Wrong types passed to a public API (e.g. raw str instead of enum)."""


# ── Feature support ─────────────────────────────────────────────────


class UnsupportedFeatureError(HedgingAnalyticsError):
    """Requested feature combination is not supported."""


# ── Numerical issues ────────────────────────────────────────────────


class NumericalError(HedgingAnalyticsError):
    """Base for errors arising from numerical computation."""


class ConvergenceError(NumericalError):
    """An iterative solver could not be set up to converge.

    Raised by the implied volatility solver when the target premium is not
    bracketed by the volatility search interval.
    """
