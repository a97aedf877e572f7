"""Error taxonomy for the FX option pricers.

Every error is fatal to the single valuation that raised it; nothing is
retried.  Numerical degeneracies (zero expiry, zero volatility) are *not*
mapped to these types and surface as ``inf`` / ``nan`` instead.
"""

from __future__ import annotations

__all__ = [
    "FxPricingError",
    "InvalidArgument",
    "UnsupportedMarketDataShape",
]


class FxPricingError(Exception):
    """Base class for errors raised by ``fxoptpricer``."""


class InvalidArgument(FxPricingError, ValueError):
    """Missing contract or snapshot, malformed contract fields, or a
    currency pair the snapshot cannot price."""


class UnsupportedMarketDataShape(FxPricingError):
    """The snapshot cannot supply data in the form a calculation needs,
    e.g. zero rates from a provider that only exposes discount factors."""
