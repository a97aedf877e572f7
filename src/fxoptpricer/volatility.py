# volatility.py
# Implied-volatility surfaces for one currency pair.
#
# Surfaces are quoted in the pair's own direction (ccy2 per ccy1 strikes).
# Each lookup can also return the interpolation weights of every grid node,
# which is what the vega bucketer multiplies the point vega by.

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .curves import linear_weights
from .exceptions import InvalidArgument

__all__ = ["FlatVolatility", "VolatilityGrid"]

@dataclass(frozen=True)
class FlatVolatility:
    """Single volatility for every expiry and strike (a 1×1 grid)."""
    vol: float

    def __post_init__(self):
        if not self.vol >= 0:
            raise InvalidArgument(f"vol must be non-negative, got {self.vol}")

    @property
    def expiries(self) -> np.ndarray:
        return np.array([0.0])

    @property
    def strikes(self) -> np.ndarray:
        return np.array([0.0])

    def volatility(self, expiry: float, strike: float, forward: float | None = None) -> float:
        return float(self.vol)

    def volatility_and_weights(
        self, expiry: float, strike: float, forward: float | None = None
    ) -> tuple[float, np.ndarray]:
        return float(self.vol), np.ones((1, 1))

    def shifted(self, shift: float) -> FlatVolatility:
        return FlatVolatility(self.vol + shift)


@dataclass(frozen=True)
class VolatilityGrid:
    """Volatility grid over (expiry, strike), bilinear with flat extrapolation.

    Parameters
    ----------
    expiries : array, shape (n_exp,)
        Strictly increasing expiries in years.
    strikes : array, shape (n_strike,)
        Strictly increasing absolute strikes.
    vols : array, shape (n_exp, n_strike)
        Black volatilities at the nodes.
    """
    expiries: np.ndarray
    strikes: np.ndarray
    vols: np.ndarray

    def __post_init__(self):
        e = np.asarray(self.expiries, dtype=float)
        k = np.asarray(self.strikes, dtype=float)
        v = np.asarray(self.vols, dtype=float)
        if e.ndim != 1 or k.ndim != 1 or e.size == 0 or k.size == 0:
            raise InvalidArgument("expiries and strikes must be non-empty 1-D arrays")
        if np.any(np.diff(e) <= 0) or np.any(np.diff(k) <= 0):
            raise InvalidArgument("grid axes must be strictly increasing")
        if v.shape != (e.size, k.size):
            raise InvalidArgument(
                f"vols must have shape {(e.size, k.size)}, got {v.shape}"
            )
        if np.any(v < 0):
            raise InvalidArgument("volatilities must be non-negative")
        object.__setattr__(self, "expiries", e)
        object.__setattr__(self, "strikes", k)
        object.__setattr__(self, "vols", v)

    def volatility_and_weights(
        self, expiry: float, strike: float, forward: float | None = None
    ) -> tuple[float, np.ndarray]:
        weights = np.outer(linear_weights(expiry, self.expiries),
                           linear_weights(strike, self.strikes))
        return float(np.sum(weights * self.vols)), weights

    def volatility(self, expiry: float, strike: float, forward: float | None = None) -> float:
        return self.volatility_and_weights(expiry, strike, forward)[0]

    def shifted(self, shift: float, node: tuple[int, int] | None = None) -> VolatilityGrid:
        """Parallel shift, or shift of one ``(i_expiry, j_strike)`` node."""
        vols = self.vols.copy()
        if node is None:
            vols += shift
        else:
            vols[node] += shift
        return VolatilityGrid(self.expiries, self.strikes, vols)
