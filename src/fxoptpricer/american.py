"""American FX vanilla options (Bjerksund-Stensland 2002).

The model works in ``(S, K, T, r, b, sigma)`` with ``r`` the ccy2 zero rate
and ``b = r_domestic - r_foreign`` the cost of carry, both read off the
discount factors at the payment time.  Its adjoint gives price, spot delta,
spot gamma, ``dV/dr``, ``dV/db`` and vega in one pass.

Because the model sees ``b`` rather than the two rates, the rate
sensitivities are reassembled with the chain rule::

    dV/dr_domestic = dV/dr + dV/db
    dV/dr_foreign  = -dV/db

Theta, vanna and vomma have no closed form and use finite differences.
"""

from __future__ import annotations

import logging
from typing import NamedTuple

import numpy as np

from . import buckets
from .bjerksund_stensland import bjerksund_stensland_adjoint
from .config import DEFAULT_SHIFTS, ShiftConfig
from .core import AmericanOption, VanillaOption
from .exceptions import InvalidArgument
from .exposure import currency_exposure as _currency_exposure
from .exposure import quoted_delta, quoted_gamma, quoted_vanna, relative_to_spot
from .forward import ForwardData, derive_forward
from .market import MarketSnapshot, check_compatible
from .results import (
    ADJOINT, DIRECT, FINITE_DIFFERENCE, RECIPROCAL, SPOT,
    CurrencyAmount, CurrencyExposure, CurveSensitivity, Greek,
    VolatilityNodeSensitivity,
)
from .risk import central_difference, one_sided_difference

logger = logging.getLogger(__name__)

HAS_CLOSED_FORM_GAMMA = True
HAS_CLOSED_FORM_THETA = False
BUMPED_GREEKS = frozenset({"theta", "vanna", "vomma"})

__all__ = [
    "HAS_CLOSED_FORM_GAMMA", "HAS_CLOSED_FORM_THETA", "BUMPED_GREEKS",
    "price", "currency_exposure",
    "delta", "gamma", "vega", "theta", "vanna", "vomma",
    "curve_sensitivity", "volatility_sensitivity", "volatility_node_sensitivity",
    "implied_volatility", "delta_spot_relative", "gamma_spot_relative",
]

# adjoint layout of bjerksund_stensland_adjoint
_PRICE, _D_SPOT, _D_SPOT_SPOT, _D_RATE, _D_CARRY, _D_VOL = range(6)


class _Valuation(NamedTuple):
    option: VanillaOption
    fwd: ForwardData
    rate: float
    carry: float
    vol: float
    adjoint: np.ndarray     # per unit notional, unsigned

    @property
    def scale(self) -> float:
        return self.option.amount * self.option.sign

    def model(self, spot=None, expiry=None, vol=None) -> np.ndarray:
        """Re-run the model with one input replaced."""
        o = self.option
        return bjerksund_stensland_adjoint(
            self.fwd.spot if spot is None else spot,
            o.strike,
            o.expiry if expiry is None else expiry,
            self.rate, self.carry,
            self.vol if vol is None else vol,
            o.is_call,
        )


def _validate(option, market: MarketSnapshot) -> VanillaOption:
    if option is None:
        raise InvalidArgument("An option is required")
    if not isinstance(option, AmericanOption):
        raise InvalidArgument(f"Expected an AmericanOption, got {type(option).__name__}")
    u = option.underlying
    check_compatible(market, u.ccy1, u.ccy2)
    return u


def _value(option: AmericanOption, market: MarketSnapshot) -> _Valuation:
    o = _validate(option, market)
    fwd = derive_forward(market, o.ccy1, o.ccy2, o.payment_time)
    vol = market.volatility(o.ccy1, o.ccy2, o.expiry, o.strike, fwd.forward)
    rate, carry = fwd.domestic_rate, fwd.cost_of_carry
    adjoint = bjerksund_stensland_adjoint(fwd.spot, o.strike, o.expiry, rate, carry, vol, o.is_call)
    logger.debug("american %s%s K=%s T=%s r=%.6f b=%.6f vol=%.6f",
                 o.ccy1, o.ccy2, o.strike, o.expiry, rate, carry, vol)
    return _Valuation(o, fwd, rate, carry, vol, adjoint)


def _quote(direct_quote: bool) -> str:
    return DIRECT if direct_quote else RECIPROCAL


def _pv(v: _Valuation) -> float:
    return float(v.adjoint[_PRICE] * v.scale)


# ---------------------------------------------------------------------------
# Price and exposure
# ---------------------------------------------------------------------------
def price(option: AmericanOption, market: MarketSnapshot) -> CurrencyAmount:
    v = _value(option, market)
    return CurrencyAmount(v.option.ccy2, _pv(v))


def currency_exposure(option: AmericanOption, market: MarketSnapshot) -> CurrencyExposure:
    v = _value(option, market)
    o = v.option
    return _currency_exposure(float(v.adjoint[_D_SPOT] * v.scale), v.fwd.spot, _pv(v),
                              o.ccy1, o.ccy2)


# ---------------------------------------------------------------------------
# Greeks
# ---------------------------------------------------------------------------
def delta(option: AmericanOption, market: MarketSnapshot, direct_quote: bool = True) -> Greek:
    v = _value(option, market)
    d = float(v.adjoint[_D_SPOT] * v.option.sign)
    return Greek("delta", quoted_delta(d, v.fwd.spot, direct_quote), _quote(direct_quote),
                 SPOT, ADJOINT)


def gamma(option: AmericanOption, market: MarketSnapshot, direct_quote: bool = True) -> Greek:
    v = _value(option, market)
    sign = v.option.sign
    g = quoted_gamma(float(v.adjoint[_D_SPOT_SPOT] * sign), float(v.adjoint[_D_SPOT] * sign),
                     v.fwd.spot, direct_quote)
    return Greek("gamma", g, _quote(direct_quote), SPOT, ADJOINT)


def vega(option: AmericanOption, market: MarketSnapshot, direct_quote: bool = True) -> Greek:
    v = _value(option, market)
    return Greek("vega", float(v.adjoint[_D_VOL] * v.scale), _quote(direct_quote), SPOT,
                 ADJOINT, v.option.ccy2)


def theta(option: AmericanOption, market: MarketSnapshot, direct_quote: bool = True,
          *, config: ShiftConfig = DEFAULT_SHIFTS) -> Greek:
    """One-sided theta per year: ``-(V(T + h) - V(T)) / h``."""
    v = _value(option, market)
    slope = one_sided_difference(lambda t: v.model(expiry=t)[_PRICE], v.option.expiry,
                                 config.american_theta_shift)
    return Greek("theta", float(-slope * v.scale), _quote(direct_quote), SPOT,
                 FINITE_DIFFERENCE, v.option.ccy2)


def vanna(option: AmericanOption, market: MarketSnapshot, direct_quote: bool = True,
          *, config: ShiftConfig = DEFAULT_SHIFTS) -> Greek:
    """Central difference of the adjoint vega in spot."""
    v = _value(option, market)
    spot_vanna = central_difference(lambda s: v.model(spot=s)[_D_VOL], v.fwd.spot,
                                    config.vanna_shift) * v.scale
    return Greek("vanna", quoted_vanna(float(spot_vanna), v.fwd.spot, direct_quote),
                 _quote(direct_quote), SPOT, FINITE_DIFFERENCE, v.option.ccy2)


def vomma(option: AmericanOption, market: MarketSnapshot, direct_quote: bool = True,
          *, config: ShiftConfig = DEFAULT_SHIFTS) -> Greek:
    """Central difference of the adjoint vega in volatility."""
    v = _value(option, market)
    value = central_difference(lambda s: v.model(vol=s)[_D_VOL], v.vol,
                               config.vomma_shift) * v.scale
    return Greek("vomma", float(value), _quote(direct_quote), SPOT, FINITE_DIFFERENCE,
                 v.option.ccy2)


# ---------------------------------------------------------------------------
# Bucketed sensitivities
# ---------------------------------------------------------------------------
def curve_sensitivity(option: AmericanOption, market: MarketSnapshot) -> CurveSensitivity:
    v = _value(option, market)
    o = v.option
    d_rate, d_carry = v.adjoint[_D_RATE], v.adjoint[_D_CARRY]
    # b = r_domestic - r_foreign
    domestic_bar = d_rate + d_carry
    foreign_bar = -d_carry
    return buckets.curve_sensitivity(market, o.ccy2, o.payment_time, {
        o.ccy2: float(domestic_bar * v.scale),
        o.ccy1: float(foreign_bar * v.scale),
    })


def volatility_sensitivity(option: AmericanOption,
                           market: MarketSnapshot) -> VolatilityNodeSensitivity:
    v = _value(option, market)
    o = v.option
    expiry, strike = buckets.volatility_point(market, o.ccy1, o.expiry, o.strike)
    point_vega = float(v.adjoint[_D_VOL] * v.scale)
    return VolatilityNodeSensitivity(o.ccy1, o.ccy2, o.ccy2, np.array([expiry]),
                                     np.array([strike]), np.array([[point_vega]]),
                                     (expiry, strike))


def volatility_node_sensitivity(option: AmericanOption,
                                market: MarketSnapshot) -> VolatilityNodeSensitivity:
    v = _value(option, market)
    o = v.option
    return buckets.volatility_node_sensitivity(market, o.ccy1, o.ccy2, o.ccy2, o.expiry,
                                               o.strike, v.fwd.forward,
                                               float(v.adjoint[_D_VOL] * v.scale))


def implied_volatility(option: AmericanOption, market: MarketSnapshot) -> float:
    return _value(option, market).vol


def delta_spot_relative(option: AmericanOption, market: MarketSnapshot,
                        direct_quote: bool = True) -> Greek:
    d = delta(option, market, direct_quote).value
    spot = market.spot_rate(option.underlying.ccy1, option.underlying.ccy2)
    return Greek("delta_spot_relative", relative_to_spot(d, spot, direct_quote),
                 _quote(direct_quote), SPOT, ADJOINT)


def gamma_spot_relative(option: AmericanOption, market: MarketSnapshot,
                        direct_quote: bool = True) -> Greek:
    g = gamma(option, market, direct_quote).value
    spot = market.spot_rate(option.underlying.ccy1, option.underlying.ccy2)
    return Greek("gamma_spot_relative", relative_to_spot(g, spot, direct_quote),
                 _quote(direct_quote), SPOT, ADJOINT)
