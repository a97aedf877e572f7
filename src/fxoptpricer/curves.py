"""Discount curves consumed through the market snapshot.

Times are year fractions from the valuation date.  ``ZeroRateCurve`` stores
continuously-compounded zero rates and interpolates linearly in rate;
``DiscountFactorCurve`` stores discount factors only (log-linear), which is
the provider shape that cannot answer zero-rate queries.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

import numpy as np

from .exceptions import InvalidArgument, UnsupportedMarketDataShape

__all__ = ["ZeroRateCurve", "DiscountFactorCurve", "linear_weights"]


def linear_weights(x: float, nodes: np.ndarray) -> np.ndarray:
    """1-D linear interpolation weights on ``nodes`` with flat extrapolation."""
    w = np.zeros(nodes.size)
    if x <= nodes[0]:
        w[0] = 1.0
    elif x >= nodes[-1]:
        w[-1] = 1.0
    else:
        i = int(np.searchsorted(nodes, x, side="right")) - 1
        frac = (x - nodes[i]) / (nodes[i + 1] - nodes[i])
        w[i] = 1.0 - frac
        w[i + 1] = frac
    return w


def _check_pillars(times: np.ndarray, values: np.ndarray, label: str) -> None:
    if times.ndim != 1 or times.size == 0:
        raise InvalidArgument(f"{label}: at least one pillar is required")
    if times.shape != values.shape:
        raise InvalidArgument(f"{label}: pillars and values must have the same length")
    if np.any(np.diff(times) <= 0):
        raise InvalidArgument(f"{label}: pillars must be strictly increasing")


@dataclass(frozen=True)
class ZeroRateCurve:
    """Zero-rate curve, linear in rate with flat extrapolation.

    Parameters
    ----------
    name : str
        Identifier used to label curve sensitivities.
    times : array-like
        Strictly increasing pillar times.
    rates : array-like
        Continuously-compounded zero rates at the pillars.
    """
    name: str
    times: np.ndarray
    rates: np.ndarray

    def __post_init__(self):
        object.__setattr__(self, "times", np.asarray(self.times, dtype=float))
        object.__setattr__(self, "rates", np.asarray(self.rates, dtype=float))
        _check_pillars(self.times, self.rates, self.name)

    @classmethod
    def flat(cls, name: str, rate: float) -> ZeroRateCurve:
        return cls(name, np.array([1.0]), np.array([rate]))

    def zero_rate(self, t: float) -> float:
        return float(np.interp(t, self.times, self.rates))

    def discount_factor(self, t: float) -> float:
        return float(np.exp(-self.zero_rate(t) * t))

    def node_weights(self, t: float) -> np.ndarray:
        """Weights ``w`` with ``zero_rate(t) == w @ rates``."""
        return linear_weights(t, self.times)

    def bumped(self, shift: float, node: int | None = None) -> ZeroRateCurve:
        """Parallel shift, or shift of a single pillar when ``node`` is given."""
        rates = self.rates.copy()
        if node is None:
            rates += shift
        else:
            rates[node] += shift
        return replace(self, rates=rates)


@dataclass(frozen=True)
class DiscountFactorCurve:
    """Discount factors at pillars, interpolated log-linearly.

    Zero-rate queries raise ``UnsupportedMarketDataShape``.
    """
    name: str
    times: np.ndarray
    discount_factors: np.ndarray

    def __post_init__(self):
        object.__setattr__(self, "times", np.asarray(self.times, dtype=float))
        object.__setattr__(self, "discount_factors", np.asarray(self.discount_factors, dtype=float))
        _check_pillars(self.times, self.discount_factors, self.name)
        if np.any(self.discount_factors <= 0):
            raise InvalidArgument(f"{self.name}: discount factors must be positive")

    def discount_factor(self, t: float) -> float:
        # log-linear between pillars, anchored at df(0) = 1
        times = np.concatenate(([0.0], self.times)) if self.times[0] > 0 else self.times
        log_dfs = np.log(self.discount_factors)
        if self.times[0] > 0:
            log_dfs = np.concatenate(([0.0], log_dfs))
        if t > times[-1]:
            # flat zero rate beyond the last pillar
            slope = log_dfs[-1] / times[-1]
            return float(np.exp(slope * t))
        return float(np.exp(np.interp(t, times, log_dfs)))

    def zero_rate(self, t: float) -> float:
        raise UnsupportedMarketDataShape(
            f"Curve {self.name!r} only provides discount factors, not zero rates"
        )
