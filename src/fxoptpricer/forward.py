"""Forward FX rate and zero rates derived from discount factors.

Every pricer starts here.  Nothing is guarded: a zero payment time gives
``inf``/``nan`` rates straight from numpy.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from .exceptions import UnsupportedMarketDataShape
from .market import MarketSnapshot, ZeroRateSource

logger = logging.getLogger(__name__)

__all__ = [
    "zero_rate",
    "forward_rate",
    "ForwardData",
    "derive_forward",
    "curve_zero_rates",
]


def zero_rate(discount_factor, t):
    """Continuously-compounded zero rate ``-ln(df) / t``."""
    return -np.log(np.asarray(discount_factor, dtype=float)) / np.asarray(t, dtype=float)


def forward_rate(spot, df_foreign, df_domestic):
    """Forward ``spot * df_foreign / df_domestic`` (ccy2 per ccy1)."""
    return np.asarray(spot, dtype=float) * df_foreign / df_domestic


@dataclass(frozen=True)
class ForwardData:
    """Spot, discount factors and the quantities derived from them.

    Parameters
    ----------
    spot : float
        ccy2 per ccy1.
    df_foreign, df_domestic : float
        Discount factors of ccy1 and ccy2 at ``payment_time``.
    payment_time : float
        Year fraction the discount factors refer to.
    """
    spot: float
    df_foreign: float
    df_domestic: float
    payment_time: float

    @property
    def forward(self) -> float:
        return float(forward_rate(self.spot, self.df_foreign, self.df_domestic))

    @property
    def domestic_rate(self) -> float:
        return float(zero_rate(self.df_domestic, self.payment_time))

    @property
    def foreign_rate(self) -> float:
        return float(zero_rate(self.df_foreign, self.payment_time))

    @property
    def cost_of_carry(self) -> float:
        """``b = r_domestic - r_foreign``."""
        return self.domestic_rate - self.foreign_rate


def derive_forward(market: MarketSnapshot, foreign: str, domestic: str,
                   payment_time: float) -> ForwardData:
    data = ForwardData(
        spot=market.spot_rate(foreign, domestic),
        df_foreign=market.discount_factor(foreign, payment_time),
        df_domestic=market.discount_factor(domestic, payment_time),
        payment_time=payment_time,
    )
    logger.debug("%s/%s t=%.6f spot=%.8f dfF=%.10f dfD=%.10f forward=%.8f",
                 foreign, domestic, payment_time, data.spot, data.df_foreign,
                 data.df_domestic, data.forward)
    return data


def curve_zero_rates(market: MarketSnapshot, foreign: str, domestic: str,
                     time: float) -> tuple[float, float]:
    """``(r_domestic, r_foreign)`` read from the snapshot's zero-rate curves.

    Raises
    ------
    UnsupportedMarketDataShape
        If the snapshot, or one of its curves, only exposes discount factors.
    """
    if not isinstance(market, ZeroRateSource):
        raise UnsupportedMarketDataShape(
            f"{type(market).__name__} does not provide zero rates"
        )
    return market.zero_rate(domestic, time), market.zero_rate(foreign, time)
