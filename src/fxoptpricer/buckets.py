"""Distribution of point sensitivities onto curve and surface nodes."""

from __future__ import annotations

import numpy as np

from .exceptions import UnsupportedMarketDataShape
from .market import MarketSnapshot
from .results import CurvePoint, CurveSensitivity, VolatilityNodeSensitivity

__all__ = [
    "rate_sensitivity",
    "curve_sensitivity",
    "curve_node_sensitivity",
    "volatility_point",
    "volatility_node_sensitivity",
]


def rate_sensitivity(df_bar: float, discount_factor: float, time: float) -> float:
    """Convert ``dV/d df`` into ``dV/d r`` for ``df = exp(-r t)``."""
    return -time * discount_factor * df_bar


def curve_sensitivity(market: MarketSnapshot, currency: str, time: float,
                      rate_bars: dict[str, float]) -> CurveSensitivity:
    """Label per-currency zero-rate sensitivities with curve names.

    Parameters
    ----------
    currency : str
        Currency the sensitivities are expressed in.
    time : float
        Payment time the rates refer to.
    rate_bars : dict
        ``{curve currency: dV/dr}``.
    """
    points = tuple(
        CurvePoint(market.curve_name(ccy), float(time), float(bar))
        for ccy, bar in rate_bars.items()
    )
    return CurveSensitivity(currency, points)


def curve_node_sensitivity(curve, sensitivity: CurveSensitivity) -> np.ndarray:
    """Project point sensitivities on ``curve``'s pillars.

    With ``r(t) = w(t) @ rates`` the pillar sensitivities are the point
    sensitivities times the interpolation weights.
    """
    if not hasattr(curve, "node_weights"):
        raise UnsupportedMarketDataShape(
            f"Curve {curve.name!r} has no zero-rate pillars to bucket on"
        )
    out = np.zeros(len(curve.times))
    for p in sensitivity.points:
        if p.curve_name == curve.name:
            out += p.sensitivity * curve.node_weights(p.time)
    return out


def volatility_point(market: MarketSnapshot, ccy1: str, expiry: float,
                     strike: float) -> tuple[float, float]:
    """``(expiry, strike)`` in the surface's orientation."""
    if ccy1 == market.currency_pair[0]:
        return float(expiry), float(strike)
    return float(expiry), 1.0 / strike


def volatility_node_sensitivity(market: MarketSnapshot, ccy1: str, ccy2: str,
                                currency: str, expiry: float, strike: float,
                                forward: float, point_vega: float) -> VolatilityNodeSensitivity:
    """Spread ``point_vega`` on the surface nodes by interpolation weight."""
    _, weights = market.volatility_with_node_sensitivities(ccy1, ccy2, expiry, strike, forward)
    expiries, strikes = market.volatility_nodes()
    return VolatilityNodeSensitivity(
        ccy1=ccy1,
        ccy2=ccy2,
        currency=currency,
        expiries=np.asarray(expiries, dtype=float),
        strikes=np.asarray(strikes, dtype=float),
        vega=point_vega * np.asarray(weights, dtype=float),
        point=volatility_point(market, ccy1, expiry, strike),
    )
