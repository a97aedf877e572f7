"""Single-barrier FX options.

Price and first-order adjoint ``[price, dS, dr, db, dsigma]`` come from the
closed form in ``black_barrier``; ``r`` is the ccy2 zero rate and ``b`` the
cost of carry at the payment time, so the rate sensitivities are
reassembled as::

    dV/dr_domestic = dV/dr + dV/db
    dV/dr_foreign  = -dV/db

Gamma, vanna, vomma and the cross spot/vol term are central differences of
the first-order adjoint; theta is a central difference in expiry.  The bump
sizes come from ``ShiftConfig``.
"""

from __future__ import annotations

import logging
from typing import NamedTuple

import numpy as np

from . import buckets
from .black_barrier import barrier_price_adjoint
from .config import DEFAULT_SHIFTS, ShiftConfig
from .core import BarrierOption, VanillaOption
from .exceptions import InvalidArgument
from .exposure import currency_exposure as _currency_exposure
from .exposure import quoted_delta, quoted_gamma, quoted_vanna
from .forward import ForwardData, derive_forward
from .market import MarketSnapshot, check_compatible
from .results import (
    ADJOINT, DIRECT, FINITE_DIFFERENCE, FORWARD, RECIPROCAL, SPOT,
    CurrencyAmount, CurrencyExposure, CurveSensitivity, Greek,
    VolatilityNodeSensitivity,
)
from .risk import central_difference

logger = logging.getLogger(__name__)

HAS_CLOSED_FORM_GAMMA = False
HAS_CLOSED_FORM_THETA = False
BUMPED_GREEKS = frozenset({"gamma", "theta", "vanna", "vomma", "d_delta_d_vol"})

__all__ = [
    "HAS_CLOSED_FORM_GAMMA", "HAS_CLOSED_FORM_THETA", "BUMPED_GREEKS",
    "price", "currency_exposure",
    "delta", "gamma", "vega", "theta", "vanna", "vomma", "d_delta_d_vol",
    "forward_gamma", "forward_vega",
    "curve_sensitivity", "volatility_sensitivity", "volatility_node_sensitivity",
    "implied_volatility",
]

# adjoint layout of barrier_price_adjoint
_PRICE, _D_SPOT, _D_RATE, _D_CARRY, _D_VOL = range(5)


class _Valuation(NamedTuple):
    option: BarrierOption
    fwd: ForwardData
    rate: float
    carry: float
    vol: float
    adjoint: np.ndarray     # per unit notional, unsigned

    @property
    def underlying(self) -> VanillaOption:
        return self.option.underlying

    @property
    def scale(self) -> float:
        return self.underlying.amount * self.underlying.sign

    def model(self, spot=None, expiry=None, vol=None) -> np.ndarray:
        """Re-run the closed form with one input replaced."""
        u, bar = self.underlying, self.option.barrier
        return barrier_price_adjoint(
            self.fwd.spot if spot is None else spot,
            u.strike,
            bar.level,
            u.expiry if expiry is None else expiry,
            self.rate, self.carry,
            self.vol if vol is None else vol,
            u.is_call,
            bar.barrier_type,
            self.option.rebate / u.amount,
        )


def _validate(option, market: MarketSnapshot) -> BarrierOption:
    if option is None:
        raise InvalidArgument("An option is required")
    if not isinstance(option, BarrierOption):
        raise InvalidArgument(f"Expected a BarrierOption, got {type(option).__name__}")
    u = option.underlying
    check_compatible(market, u.ccy1, u.ccy2)
    return option


def _value(option: BarrierOption, market: MarketSnapshot) -> _Valuation:
    o = _validate(option, market)
    u = o.underlying
    fwd = derive_forward(market, u.ccy1, u.ccy2, u.payment_time)
    vol = market.volatility(u.ccy1, u.ccy2, u.expiry, u.strike, fwd.forward)
    rate, carry = fwd.domestic_rate, fwd.cost_of_carry
    v = _Valuation(o, fwd, rate, carry, vol, np.empty(0))
    v = v._replace(adjoint=v.model())
    logger.debug("barrier %s%s K=%s H=%s %s T=%s r=%.6f b=%.6f vol=%.6f",
                 u.ccy1, u.ccy2, u.strike, o.barrier.level, o.barrier.barrier_type,
                 u.expiry, rate, carry, vol)
    return v


def _quote(direct_quote: bool) -> str:
    return DIRECT if direct_quote else RECIPROCAL


def _spot_gamma(v: _Valuation, config: ShiftConfig) -> float:
    """Signed relative gamma: central difference of the adjoint delta."""
    return central_difference(lambda s: v.model(spot=s)[_D_SPOT], v.fwd.spot,
                              config.gamma_shift) * v.underlying.sign


# ---------------------------------------------------------------------------
# Price and exposure
# ---------------------------------------------------------------------------
def price(option: BarrierOption, market: MarketSnapshot) -> CurrencyAmount:
    v = _value(option, market)
    return CurrencyAmount(v.underlying.ccy2, float(v.adjoint[_PRICE] * v.scale))


def currency_exposure(option: BarrierOption, market: MarketSnapshot) -> CurrencyExposure:
    v = _value(option, market)
    u = v.underlying
    return _currency_exposure(float(v.adjoint[_D_SPOT] * v.scale), v.fwd.spot,
                              float(v.adjoint[_PRICE] * v.scale), u.ccy1, u.ccy2)


# ---------------------------------------------------------------------------
# Greeks
# ---------------------------------------------------------------------------
def delta(option: BarrierOption, market: MarketSnapshot, direct_quote: bool = True) -> Greek:
    v = _value(option, market)
    d = float(v.adjoint[_D_SPOT] * v.underlying.sign)
    return Greek("delta", quoted_delta(d, v.fwd.spot, direct_quote), _quote(direct_quote),
                 SPOT, ADJOINT)


def gamma(option: BarrierOption, market: MarketSnapshot, direct_quote: bool = True,
          *, config: ShiftConfig = DEFAULT_SHIFTS) -> Greek:
    """``(delta(S(1+h)) - delta(S(1-h))) / (2 h S)``."""
    v = _value(option, market)
    d = float(v.adjoint[_D_SPOT] * v.underlying.sign)
    value = quoted_gamma(_spot_gamma(v, config), d, v.fwd.spot, direct_quote)
    return Greek("gamma", value, _quote(direct_quote), SPOT, FINITE_DIFFERENCE)


def vega(option: BarrierOption, market: MarketSnapshot, direct_quote: bool = True) -> Greek:
    v = _value(option, market)
    return Greek("vega", float(v.adjoint[_D_VOL] * v.scale), _quote(direct_quote), SPOT,
                 ADJOINT, v.underlying.ccy2)


def theta(option: BarrierOption, market: MarketSnapshot, direct_quote: bool = True,
          *, config: ShiftConfig = DEFAULT_SHIFTS) -> Greek:
    """``-(V(T + h) - V(T - h)) / (2 h)`` per year."""
    v = _value(option, market)
    slope = central_difference(lambda t: v.model(expiry=t)[_PRICE], v.underlying.expiry,
                               config.theta_shift, relative=False)
    return Greek("theta", float(-slope * v.scale), _quote(direct_quote), SPOT,
                 FINITE_DIFFERENCE, v.underlying.ccy2)


def vanna(option: BarrierOption, market: MarketSnapshot, direct_quote: bool = True,
          *, config: ShiftConfig = DEFAULT_SHIFTS) -> Greek:
    """Vega bumped in spot."""
    v = _value(option, market)
    spot_vanna = central_difference(lambda s: v.model(spot=s)[_D_VOL], v.fwd.spot,
                                    config.vanna_shift) * v.scale
    return Greek("vanna", quoted_vanna(float(spot_vanna), v.fwd.spot, direct_quote),
                 _quote(direct_quote), SPOT, FINITE_DIFFERENCE, v.underlying.ccy2)


def d_delta_d_vol(option: BarrierOption, market: MarketSnapshot, direct_quote: bool = True,
                  *, config: ShiftConfig = DEFAULT_SHIFTS) -> Greek:
    """Relative delta bumped in volatility."""
    v = _value(option, market)
    value = central_difference(lambda s: v.model(vol=s)[_D_SPOT], v.vol,
                               config.vanna_shift) * v.underlying.sign
    return Greek("d_delta_d_vol", quoted_delta(float(value), v.fwd.spot, direct_quote),
                 _quote(direct_quote), SPOT, FINITE_DIFFERENCE)


def vomma(option: BarrierOption, market: MarketSnapshot, direct_quote: bool = True,
          *, config: ShiftConfig = DEFAULT_SHIFTS) -> Greek:
    v = _value(option, market)
    value = central_difference(lambda s: v.model(vol=s)[_D_VOL], v.vol,
                               config.vomma_shift) * v.scale
    return Greek("vomma", float(value), _quote(direct_quote), SPOT, FINITE_DIFFERENCE,
                 v.underlying.ccy2)


def forward_gamma(option: BarrierOption, market: MarketSnapshot,
                  *, config: ShiftConfig = DEFAULT_SHIFTS) -> Greek:
    """Unsigned gamma against the forward, ``spot gamma * dfD / dfF**2``."""
    v = _value(option, market)
    f = v.fwd
    value = _spot_gamma(v, config) * v.underlying.sign * f.df_domestic / f.df_foreign ** 2
    return Greek("forward_gamma", float(value), DIRECT, FORWARD, FINITE_DIFFERENCE)


def forward_vega(option: BarrierOption, market: MarketSnapshot) -> Greek:
    """Unsigned undiscounted vega per unit notional."""
    v = _value(option, market)
    return Greek("forward_vega", float(v.adjoint[_D_VOL] / v.fwd.df_domestic), DIRECT,
                 FORWARD, ADJOINT)


# ---------------------------------------------------------------------------
# Bucketed sensitivities
# ---------------------------------------------------------------------------
def curve_sensitivity(option: BarrierOption, market: MarketSnapshot) -> CurveSensitivity:
    v = _value(option, market)
    u = v.underlying
    d_rate, d_carry = v.adjoint[_D_RATE], v.adjoint[_D_CARRY]
    # b = r_domestic - r_foreign
    return buckets.curve_sensitivity(market, u.ccy2, u.payment_time, {
        u.ccy2: float((d_rate + d_carry) * v.scale),
        u.ccy1: float(-d_carry * v.scale),
    })


def volatility_sensitivity(option: BarrierOption,
                           market: MarketSnapshot) -> VolatilityNodeSensitivity:
    v = _value(option, market)
    u = v.underlying
    expiry, strike = buckets.volatility_point(market, u.ccy1, u.expiry, u.strike)
    point_vega = float(v.adjoint[_D_VOL] * v.scale)
    return VolatilityNodeSensitivity(u.ccy1, u.ccy2, u.ccy2, np.array([expiry]),
                                     np.array([strike]), np.array([[point_vega]]),
                                     (expiry, strike))


def volatility_node_sensitivity(option: BarrierOption,
                                market: MarketSnapshot) -> VolatilityNodeSensitivity:
    v = _value(option, market)
    u = v.underlying
    return buckets.volatility_node_sensitivity(market, u.ccy1, u.ccy2, u.ccy2, u.expiry,
                                               u.strike, v.fwd.forward,
                                               float(v.adjoint[_D_VOL] * v.scale))


def implied_volatility(option: BarrierOption, market: MarketSnapshot) -> float:
    return _value(option, market).vol
