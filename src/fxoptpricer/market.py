"""Market snapshot: discount curves, FX spot rates and one volatility surface.

Pricers depend only on the ``MarketSnapshot`` protocol.  ``FxMarket`` is a
small immutable in-memory implementation; its ``with_*`` methods return new
snapshots and leave the original untouched, which is how bump-and-reprice
tests build shifted markets.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Protocol, Union, runtime_checkable

import numpy as np

from .curves import DiscountFactorCurve, ZeroRateCurve
from .exceptions import InvalidArgument
from .volatility import FlatVolatility, VolatilityGrid

__all__ = [
    "MarketSnapshot",
    "ZeroRateSource",
    "FxRates",
    "FxMarket",
    "check_compatible",
]

Curve = Union[ZeroRateCurve, DiscountFactorCurve]
Surface = Union[FlatVolatility, VolatilityGrid]


class MarketSnapshot(Protocol):
    """What every pricer reads from the market."""

    @property
    def currency_pair(self) -> tuple[str, str]:
        """Pair the volatility surface is quoted on."""
        ...

    def check_currencies(self, ccy1: str, ccy2: str) -> bool: ...

    def discount_factor(self, currency: str, time: float) -> float: ...

    def spot_rate(self, ccy_a: str, ccy_b: str) -> float: ...

    def volatility(self, ccy_a: str, ccy_b: str, expiry: float, strike: float,
                   forward: float) -> float: ...

    def volatility_with_node_sensitivities(
        self, ccy_a: str, ccy_b: str, expiry: float, strike: float, forward: float
    ) -> tuple[float, np.ndarray]: ...

    def volatility_nodes(self) -> tuple[np.ndarray, np.ndarray]: ...

    def curve_name(self, currency: str) -> str: ...


@runtime_checkable
class ZeroRateSource(Protocol):
    """Snapshots that can also answer continuously-compounded zero rates."""

    def zero_rate(self, currency: str, time: float) -> float: ...


# ---------------------------------------------------------------------------
# Spot rates
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class FxRates:
    """Spot rates keyed by ``(ccy_a, ccy_b)`` = units of ccy_b per ccy_a.

    The inverse direction is always derived, so ``rate(A, B) == 1 / rate(B, A)``.
    """
    rates: Mapping[tuple[str, str], float] = field(default_factory=dict)

    def __post_init__(self):
        clean: dict[tuple[str, str], float] = {}
        for (a, b), value in dict(self.rates).items():
            if not value > 0:
                raise InvalidArgument(f"FX rate {a}/{b} must be positive, got {value}")
            if (b, a) in clean:
                raise InvalidArgument(f"FX rate {a}/{b} given in both directions")
            clean[(a, b)] = float(value)
        object.__setattr__(self, "rates", clean)

    def rate(self, ccy_a: str, ccy_b: str) -> float:
        if ccy_a == ccy_b:
            return 1.0
        if (ccy_a, ccy_b) in self.rates:
            return self.rates[(ccy_a, ccy_b)]
        if (ccy_b, ccy_a) in self.rates:
            return 1.0 / self.rates[(ccy_b, ccy_a)]
        raise InvalidArgument(f"No FX rate for {ccy_a}/{ccy_b}")

    def with_rate(self, ccy_a: str, ccy_b: str, value: float) -> FxRates:
        new = {k: v for k, v in self.rates.items() if k not in ((ccy_a, ccy_b), (ccy_b, ccy_a))}
        new[(ccy_a, ccy_b)] = value
        return FxRates(new)


# ---------------------------------------------------------------------------
# In-memory snapshot
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class FxMarket:
    """Immutable snapshot implementing ``MarketSnapshot`` and ``ZeroRateSource``.

    Parameters
    ----------
    curves : Mapping[str, Curve]
        Discount curve per currency.
    fx : FxRates
        Spot rates.
    surface : FlatVolatility | VolatilityGrid
        Volatility surface quoted on ``pair``.
    pair : tuple[str, str]
        ``(ccy1, ccy2)`` orientation of the surface strikes.
    """
    curves: Mapping[str, Curve]
    fx: FxRates
    surface: Surface
    pair: tuple[str, str]

    def __post_init__(self):
        object.__setattr__(self, "curves", dict(self.curves))
        object.__setattr__(self, "pair", tuple(self.pair))
        if len(self.pair) != 2 or self.pair[0] == self.pair[1]:
            raise InvalidArgument(f"pair must be two distinct currencies, got {self.pair}")

    # --- protocol ----------------------------------------------------------
    @property
    def currency_pair(self) -> tuple[str, str]:
        return self.pair

    def check_currencies(self, ccy1: str, ccy2: str) -> bool:
        return (ccy1, ccy2) in (self.pair, self.pair[::-1])

    def _curve(self, currency: str) -> Curve:
        try:
            return self.curves[currency]
        except KeyError:
            raise InvalidArgument(f"No discount curve for {currency}") from None

    def discount_factor(self, currency: str, time: float) -> float:
        return self._curve(currency).discount_factor(time)

    def zero_rate(self, currency: str, time: float) -> float:
        return self._curve(currency).zero_rate(time)

    def curve_name(self, currency: str) -> str:
        return self._curve(currency).name

    def spot_rate(self, ccy_a: str, ccy_b: str) -> float:
        return self.fx.rate(ccy_a, ccy_b)

    def volatility_with_node_sensitivities(
        self, ccy_a: str, ccy_b: str, expiry: float, strike: float, forward: float
    ) -> tuple[float, np.ndarray]:
        """Volatility and node weights; reversed pairs look up ``1/strike``."""
        if (ccy_a, ccy_b) == self.pair:
            return self.surface.volatility_and_weights(expiry, strike, forward)
        if (ccy_b, ccy_a) == self.pair:
            return self.surface.volatility_and_weights(expiry, 1.0 / strike, 1.0 / forward)
        raise InvalidArgument(
            f"Volatility surface is for {self.pair[0]}/{self.pair[1]}, not {ccy_a}/{ccy_b}"
        )

    def volatility(self, ccy_a: str, ccy_b: str, expiry: float, strike: float,
                   forward: float) -> float:
        return self.volatility_with_node_sensitivities(ccy_a, ccy_b, expiry, strike, forward)[0]

    def volatility_nodes(self) -> tuple[np.ndarray, np.ndarray]:
        return self.surface.expiries, self.surface.strikes

    # --- copy-on-write updates ---------------------------------------------
    def with_fx_rate(self, ccy_a: str, ccy_b: str, value: float) -> FxMarket:
        return FxMarket(self.curves, self.fx.with_rate(ccy_a, ccy_b, value), self.surface, self.pair)

    def with_curve(self, currency: str, curve: Curve) -> FxMarket:
        curves = dict(self.curves)
        curves[currency] = curve
        return FxMarket(curves, self.fx, self.surface, self.pair)

    def with_volatility(self, surface: Surface) -> FxMarket:
        return FxMarket(self.curves, self.fx, surface, self.pair)


def check_compatible(market: MarketSnapshot | None, ccy1: str, ccy2: str) -> None:
    """Raise ``InvalidArgument`` unless ``market`` can value a ccy1/ccy2 option."""
    if market is None:
        raise InvalidArgument("A market snapshot is required")
    if not market.check_currencies(ccy1, ccy2):
        a, b = market.currency_pair
        raise InvalidArgument(f"Option pair {ccy1}/{ccy2} does not match market pair {a}/{b}")
