"""Result shapes returned by the pricers.

All records are immutable and created fresh per valuation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Mapping

import numpy as np

if TYPE_CHECKING:
    from .market import MarketSnapshot

# Quote direction of a spot sensitivity
DIRECT     = "direct"
RECIPROCAL = "reciprocal"

# Underlying the sensitivity is taken against
SPOT    = "spot"
FORWARD = "forward"

# How a Greek was obtained
ADJOINT           = "adjoint"
CLOSED_FORM       = "closed-form"
FINITE_DIFFERENCE = "finite-difference"

__all__ = [
    "DIRECT", "RECIPROCAL", "SPOT", "FORWARD",
    "ADJOINT", "CLOSED_FORM", "FINITE_DIFFERENCE",
    "CurrencyAmount", "CurrencyExposure", "Greek",
    "CurvePoint", "CurveSensitivity", "VolatilityNodeSensitivity",
    "PricingResult",
]


@dataclass(frozen=True)
class CurrencyAmount:
    currency: str
    amount: float

    def __neg__(self) -> CurrencyAmount:
        return CurrencyAmount(self.currency, -self.amount)


@dataclass(frozen=True)
class CurrencyExposure:
    """Amounts held in each currency of the pair.

    Converted at spot and summed, they reproduce the present value.
    """
    amounts: tuple[CurrencyAmount, ...]

    @classmethod
    def of(cls, *amounts: CurrencyAmount) -> CurrencyExposure:
        merged: dict[str, float] = {}
        for a in amounts:
            merged[a.currency] = merged.get(a.currency, 0.0) + a.amount
        return cls(tuple(CurrencyAmount(c, v) for c, v in merged.items()))

    def amount(self, currency: str) -> float:
        for a in self.amounts:
            if a.currency == currency:
                return a.amount
        return 0.0

    @property
    def currencies(self) -> tuple[str, ...]:
        return tuple(a.currency for a in self.amounts)

    def converted(self, currency: str, market: MarketSnapshot) -> float:
        """Total value in ``currency`` at the snapshot's spot rates."""
        return float(sum(a.amount * market.spot_rate(a.currency, currency) for a in self.amounts))


@dataclass(frozen=True)
class Greek:
    """A scalar sensitivity tagged with the convention that produced it.

    ``currency`` is ``None`` for relative (per-unit-notional) Greeks.
    """
    name: str
    value: float
    quote: str = DIRECT
    measure: str = SPOT
    method: str = ADJOINT
    currency: str | None = None

    def __float__(self) -> float:
        return float(self.value)


@dataclass(frozen=True)
class CurvePoint:
    curve_name: str
    time: float
    sensitivity: float


@dataclass(frozen=True)
class CurveSensitivity:
    """Present-value sensitivities to zero rates, one point per curve and time."""
    currency: str
    points: tuple[CurvePoint, ...]

    def total(self, curve_name: str) -> float:
        return float(sum(p.sensitivity for p in self.points if p.curve_name == curve_name))

    def as_dict(self) -> dict[str, list[tuple[float, float]]]:
        out: dict[str, list[tuple[float, float]]] = {}
        for p in self.points:
            out.setdefault(p.curve_name, []).append((p.time, p.sensitivity))
        return out


@dataclass(frozen=True)
class VolatilityNodeSensitivity:
    """Vega distributed on the (expiry, strike) nodes of the volatility grid.

    Parameters
    ----------
    ccy1, ccy2 : str
        Currency pair of the option.
    currency : str
        Currency the vega amounts are expressed in.
    expiries, strikes : np.ndarray
        Grid axes.
    vega : np.ndarray, shape (n_expiries, n_strikes)
        Node sensitivities.
    point : tuple[float, float]
        ``(expiry, strike)`` point the option looked up.
    """
    ccy1: str
    ccy2: str
    currency: str
    expiries: np.ndarray
    strikes: np.ndarray
    vega: np.ndarray
    point: tuple[float, float] = (0.0, 0.0)

    def total(self) -> float:
        return float(np.sum(self.vega))


@dataclass(frozen=True)
class PricingResult:
    """Everything the engine computes for one contract."""
    present_value: CurrencyAmount
    currency_exposure: CurrencyExposure | None = None
    greeks: Mapping[str, Greek] = field(default_factory=dict)
    curve_sensitivity: CurveSensitivity | None = None
    volatility_sensitivity: VolatilityNodeSensitivity | None = None
    has_closed_form_gamma: bool = True

    def greek(self, name: str) -> float:
        return float(self.greeks[name].value)
