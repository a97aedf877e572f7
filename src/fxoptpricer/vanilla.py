"""European FX vanilla options (Garman-Kohlhagen in Black forward form).

Price and first-order Greeks come from one evaluation of the Black price
adjoint ``[price, dP/dF, dP/dsigma]``; the second-order Greeks follow from
the closed-form Black relations.  Prices are in ccy2.
"""

from __future__ import annotations

import logging
from typing import NamedTuple

import numpy as np

from . import buckets
from .black import (
    black_price_adjoint,
    forward_delta as _forward_delta,
    forward_driftless_theta as _forward_driftless_theta,
    forward_gamma as _forward_gamma,
    forward_vanna,
    forward_vega as _forward_vega,
    forward_vomma,
)
from .core import VanillaOption
from .exceptions import InvalidArgument
from .exposure import currency_exposure as _currency_exposure
from .exposure import quoted_delta, quoted_gamma, quoted_vanna, relative_to_spot
from .forward import ForwardData, derive_forward
from .market import MarketSnapshot, check_compatible
from .results import (
    ADJOINT, CLOSED_FORM, DIRECT, FORWARD, RECIPROCAL, SPOT,
    CurrencyAmount, CurrencyExposure, CurveSensitivity, Greek,
    VolatilityNodeSensitivity,
)

logger = logging.getLogger(__name__)

HAS_CLOSED_FORM_GAMMA = True
HAS_CLOSED_FORM_THETA = True
BUMPED_GREEKS: frozenset[str] = frozenset()

__all__ = [
    "HAS_CLOSED_FORM_GAMMA", "HAS_CLOSED_FORM_THETA", "BUMPED_GREEKS",
    "price", "currency_exposure",
    "delta", "gamma", "vega", "theta", "vanna", "vomma",
    "curve_sensitivity", "volatility_sensitivity", "volatility_node_sensitivity",
    "implied_volatility",
    "forward_delta", "spot_delta", "forward_gamma", "spot_gamma",
    "forward_vega", "forward_driftless_theta",
    "delta_spot_relative", "gamma_spot_relative",
]


class _Valuation(NamedTuple):
    option: VanillaOption
    fwd: ForwardData
    vol: float
    adjoint: np.ndarray     # undiscounted [price, dP/dF, dP/dsigma] per unit notional

    @property
    def scale(self) -> float:
        return self.option.amount * self.option.sign


def _validate(option, market: MarketSnapshot) -> VanillaOption:
    if option is None:
        raise InvalidArgument("An option is required")
    if not isinstance(option, VanillaOption):
        raise InvalidArgument(f"Expected a VanillaOption, got {type(option).__name__}")
    check_compatible(market, option.ccy1, option.ccy2)
    return option


def _value(option: VanillaOption, market: MarketSnapshot) -> _Valuation:
    o = _validate(option, market)
    fwd = derive_forward(market, o.ccy1, o.ccy2, o.payment_time)
    vol = market.volatility(o.ccy1, o.ccy2, o.expiry, o.strike, fwd.forward)
    adjoint = black_price_adjoint(fwd.forward, o.strike, o.expiry, vol, o.is_call)
    logger.debug("vanilla %s%s K=%s T=%s vol=%.6f forward=%.8f",
                 o.ccy1, o.ccy2, o.strike, o.expiry, vol, fwd.forward)
    return _Valuation(o, fwd, vol, adjoint)


def _spot_delta(v: _Valuation) -> float:
    """Signed dV/dS per unit notional: ``dP/dF * dfF``."""
    return float(v.adjoint[1] * v.fwd.df_foreign * v.option.sign)


def _spot_gamma(v: _Valuation) -> float:
    o, f = v.option, v.fwd
    g = _forward_gamma(f.forward, o.strike, o.expiry, v.vol)
    return float(g * f.df_foreign ** 2 / f.df_domestic * o.sign)


def _quote(direct_quote: bool) -> str:
    return DIRECT if direct_quote else RECIPROCAL


# ---------------------------------------------------------------------------
# Price and exposure
# ---------------------------------------------------------------------------
def price(option: VanillaOption, market: MarketSnapshot) -> CurrencyAmount:
    v = _value(option, market)
    pv = float(v.adjoint[0] * v.fwd.df_domestic * v.scale)
    return CurrencyAmount(v.option.ccy2, pv)


def currency_exposure(option: VanillaOption, market: MarketSnapshot) -> CurrencyExposure:
    v = _value(option, market)
    pv = float(v.adjoint[0] * v.fwd.df_domestic * v.scale)
    return _currency_exposure(_spot_delta(v) * v.option.amount, v.fwd.spot, pv,
                              v.option.ccy1, v.option.ccy2)


# ---------------------------------------------------------------------------
# Greeks
# ---------------------------------------------------------------------------
def delta(option: VanillaOption, market: MarketSnapshot, direct_quote: bool = True) -> Greek:
    """Relative spot delta, signed by direction."""
    v = _value(option, market)
    value = quoted_delta(_spot_delta(v), v.fwd.spot, direct_quote)
    return Greek("delta", value, _quote(direct_quote), SPOT, ADJOINT)


def gamma(option: VanillaOption, market: MarketSnapshot, direct_quote: bool = True) -> Greek:
    """Relative spot gamma, ``forward gamma * dfF**2 / dfD``."""
    v = _value(option, market)
    value = quoted_gamma(_spot_gamma(v), _spot_delta(v), v.fwd.spot, direct_quote)
    return Greek("gamma", value, _quote(direct_quote), SPOT, ADJOINT)


def vega(option: VanillaOption, market: MarketSnapshot, direct_quote: bool = True) -> Greek:
    """Present-value vega in ccy2.  Independent of the quote direction."""
    v = _value(option, market)
    value = float(v.adjoint[2] * v.fwd.df_domestic * v.scale)
    return Greek("vega", value, _quote(direct_quote), SPOT, ADJOINT, v.option.ccy2)


def theta(option: VanillaOption, market: MarketSnapshot, direct_quote: bool = True) -> Greek:
    """Driftless theta per year (no rate dependence), in ccy2."""
    v = _value(option, market)
    o = v.option
    value = float(_forward_driftless_theta(v.fwd.forward, o.strike, o.expiry, v.vol) * v.scale)
    return Greek("theta", value, _quote(direct_quote), FORWARD, CLOSED_FORM, o.ccy2)


def vanna(option: VanillaOption, market: MarketSnapshot, direct_quote: bool = True) -> Greek:
    """``d2V / dS dsigma = -dfF n(d1) d2 / sigma`` in ccy2."""
    v = _value(option, market)
    o = v.option
    spot_vanna = float(forward_vanna(v.fwd.forward, o.strike, o.expiry, v.vol)
                       * v.fwd.df_foreign * v.scale)
    value = quoted_vanna(spot_vanna, v.fwd.spot, direct_quote)
    return Greek("vanna", value, _quote(direct_quote), SPOT, CLOSED_FORM, o.ccy2)


def vomma(option: VanillaOption, market: MarketSnapshot, direct_quote: bool = True) -> Greek:
    v = _value(option, market)
    o = v.option
    value = float(forward_vomma(v.fwd.forward, o.strike, o.expiry, v.vol)
                  * v.fwd.df_domestic * v.scale)
    return Greek("vomma", value, _quote(direct_quote), SPOT, CLOSED_FORM, o.ccy2)


# ---------------------------------------------------------------------------
# Bucketed sensitivities
# ---------------------------------------------------------------------------
def curve_sensitivity(option: VanillaOption, market: MarketSnapshot) -> CurveSensitivity:
    """Sensitivity to the ccy1 and ccy2 zero rates at the payment time.

    Backward sweep of ``pv = dfD * P(S dfF / dfD)``::

        forward_bar = dfD * dP/dF
        dfF_bar = S / dfD * forward_bar
        dfD_bar = -S dfF / dfD**2 * forward_bar + P
        r_bar = -t * df * df_bar
    """
    v = _value(option, market)
    o, f = v.option, v.fwd
    forward_bar = v.adjoint[1] * f.df_domestic
    df_foreign_bar = f.spot / f.df_domestic * forward_bar
    df_domestic_bar = -f.spot * f.df_foreign / f.df_domestic ** 2 * forward_bar + v.adjoint[0]
    t = o.payment_time
    return buckets.curve_sensitivity(market, o.ccy2, t, {
        o.ccy2: buckets.rate_sensitivity(df_domestic_bar, f.df_domestic, t) * v.scale,
        o.ccy1: buckets.rate_sensitivity(df_foreign_bar, f.df_foreign, t) * v.scale,
    })


def volatility_sensitivity(option: VanillaOption, market: MarketSnapshot) -> VolatilityNodeSensitivity:
    """Vega at the single ``(expiry, strike)`` point looked up on the surface."""
    v = _value(option, market)
    o = v.option
    expiry, strike = buckets.volatility_point(market, o.ccy1, o.expiry, o.strike)
    point_vega = float(v.adjoint[2] * v.fwd.df_domestic * v.scale)
    return VolatilityNodeSensitivity(o.ccy1, o.ccy2, o.ccy2, np.array([expiry]),
                                     np.array([strike]), np.array([[point_vega]]),
                                     (expiry, strike))


def volatility_node_sensitivity(option: VanillaOption,
                                market: MarketSnapshot) -> VolatilityNodeSensitivity:
    v = _value(option, market)
    o = v.option
    point_vega = float(v.adjoint[2] * v.fwd.df_domestic * v.scale)
    return buckets.volatility_node_sensitivity(market, o.ccy1, o.ccy2, o.ccy2, o.expiry,
                                               o.strike, v.fwd.forward, point_vega)


def implied_volatility(option: VanillaOption, market: MarketSnapshot) -> float:
    return _value(option, market).vol


# ---------------------------------------------------------------------------
# Theoretical (unsigned, per unit notional) Greeks
# ---------------------------------------------------------------------------
def forward_delta(option: VanillaOption, market: MarketSnapshot) -> Greek:
    v = _value(option, market)
    o = v.option
    value = float(_forward_delta(v.fwd.forward, o.strike, o.expiry, v.vol, o.is_call))
    return Greek("forward_delta", value, DIRECT, FORWARD, CLOSED_FORM)


def spot_delta(option: VanillaOption, market: MarketSnapshot) -> Greek:
    v = _value(option, market)
    return Greek("spot_delta", float(v.adjoint[1] * v.fwd.df_foreign), DIRECT, SPOT, CLOSED_FORM)


def forward_gamma(option: VanillaOption, market: MarketSnapshot) -> Greek:
    v = _value(option, market)
    o = v.option
    value = float(_forward_gamma(v.fwd.forward, o.strike, o.expiry, v.vol))
    return Greek("forward_gamma", value, DIRECT, FORWARD, CLOSED_FORM)


def spot_gamma(option: VanillaOption, market: MarketSnapshot) -> Greek:
    v = _value(option, market)
    return Greek("spot_gamma", _spot_gamma(v) * v.option.sign, DIRECT, SPOT, CLOSED_FORM)


def forward_vega(option: VanillaOption, market: MarketSnapshot) -> Greek:
    v = _value(option, market)
    o = v.option
    value = float(_forward_vega(v.fwd.forward, o.strike, o.expiry, v.vol))
    return Greek("forward_vega", value, DIRECT, FORWARD, CLOSED_FORM)


def forward_driftless_theta(option: VanillaOption, market: MarketSnapshot) -> Greek:
    v = _value(option, market)
    o = v.option
    value = float(_forward_driftless_theta(v.fwd.forward, o.strike, o.expiry, v.vol))
    return Greek("forward_driftless_theta", value, DIRECT, FORWARD, CLOSED_FORM)


# ---------------------------------------------------------------------------
# Spot-relative Greeks
# ---------------------------------------------------------------------------
def delta_spot_relative(option: VanillaOption, market: MarketSnapshot,
                        direct_quote: bool = True) -> Greek:
    """Quoted delta scaled by spot (direct) or divided by it (reciprocal)."""
    v = _value(option, market)
    d = quoted_delta(_spot_delta(v), v.fwd.spot, direct_quote)
    return Greek("delta_spot_relative", relative_to_spot(d, v.fwd.spot, direct_quote),
                 _quote(direct_quote), SPOT, ADJOINT)


def gamma_spot_relative(option: VanillaOption, market: MarketSnapshot,
                        direct_quote: bool = True) -> Greek:
    v = _value(option, market)
    g = quoted_gamma(_spot_gamma(v), _spot_delta(v), v.fwd.spot, direct_quote)
    return Greek("gamma_spot_relative", relative_to_spot(g, v.fwd.spot, direct_quote),
                 _quote(direct_quote), SPOT, ADJOINT)
