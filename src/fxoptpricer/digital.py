"""Cash-or-nothing FX digital options with pay-leg selection.

A digital paying in ccy2 is priced as is.  One paying in ccy1 is priced from
ccy1's side of the market: the pair is swapped, the strike replaced by its
reciprocal and the call flag complemented, so that both legs describe the
same event "ccy1 finishes above the strike".  In what follows "foreign" and
"domestic" refer to that pay-leg perspective; the present value is in the
domestic (pay) currency.

    pv = payout * dfD * N(w d),   d = ln(F/K) / (sigma sqrt(T)) - sigma sqrt(T) / 2

Delta, gamma, vega, theta, vanna and vomma are closed forms written in
zero rates, so they need a snapshot whose curves expose zero rates.
"""

from __future__ import annotations

import logging
from typing import NamedTuple

import numpy as np
from scipy.stats import norm

from . import buckets
from .black import cash_or_nothing_greeks, digital_d
from .core import DigitalOption
from .exceptions import InvalidArgument
from .exposure import currency_exposure as _currency_exposure
from .exposure import quoted_delta, quoted_gamma, quoted_vanna
from .forward import ForwardData, curve_zero_rates, derive_forward
from .market import MarketSnapshot, check_compatible
from .results import (
    CLOSED_FORM, DIRECT, RECIPROCAL, SPOT,
    CurrencyAmount, CurrencyExposure, CurveSensitivity, Greek,
    VolatilityNodeSensitivity,
)

_N = norm.cdf
_n = norm.pdf

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
]


class _Leg(NamedTuple):
    foreign: str
    domestic: str
    strike: float
    is_call: bool


class _Valuation(NamedTuple):
    option: DigitalOption
    leg: _Leg
    fwd: ForwardData
    vol: float
    d: float

    @property
    def omega(self) -> float:
        return 1.0 if self.leg.is_call else -1.0

    @property
    def scale(self) -> float:
        return self.option.payout * self.option.underlying.sign

    @property
    def pv(self) -> float:
        return float(self.scale * self.fwd.df_domestic * _N(self.omega * self.d))

    @property
    def d_price_d_d(self) -> float:
        """``dpv / dd``."""
        return float(self.scale * self.fwd.df_domestic * _n(self.d) * self.omega)


def _validate(option, market: MarketSnapshot) -> DigitalOption:
    if option is None:
        raise InvalidArgument("An option is required")
    if not isinstance(option, DigitalOption):
        raise InvalidArgument(f"Expected a DigitalOption, got {type(option).__name__}")
    u = option.underlying
    check_compatible(market, u.ccy1, u.ccy2)
    return option


def _leg(option: DigitalOption) -> _Leg:
    u = option.underlying
    if option.pay_domestic:
        return _Leg(u.ccy1, u.ccy2, u.strike, u.is_call)
    return _Leg(u.ccy2, u.ccy1, 1.0 / u.strike, not u.is_call)


def _value(option: DigitalOption, market: MarketSnapshot) -> _Valuation:
    o = _validate(option, market)
    leg = _leg(o)
    u = o.underlying
    fwd = derive_forward(market, leg.foreign, leg.domestic, u.payment_time)
    vol = market.volatility(leg.foreign, leg.domestic, u.expiry, leg.strike, fwd.forward)
    d = float(digital_d(fwd.forward, leg.strike, u.expiry, vol))
    logger.debug("digital %s%s paid in %s K=%s T=%s vol=%.6f forward=%.8f",
                 u.ccy1, u.ccy2, leg.domestic, u.strike, u.expiry, vol, fwd.forward)
    return _Valuation(o, leg, fwd, vol, d)


def _greeks(v: _Valuation, market: MarketSnapshot) -> dict[str, float]:
    """Closed-form Greeks per unit payout; needs zero rates."""
    u = v.option.underlying
    r_domestic, r_foreign = curve_zero_rates(market, v.leg.foreign, v.leg.domestic,
                                             u.payment_time)
    g = cash_or_nothing_greeks(v.fwd.spot, v.leg.strike, u.expiry, u.payment_time, v.vol,
                               r_domestic, r_foreign, v.leg.is_call)
    return {k: float(x) for k, x in g.items()}


def _quote(direct_quote: bool) -> str:
    return DIRECT if direct_quote else RECIPROCAL


# ---------------------------------------------------------------------------
# Price and exposure
# ---------------------------------------------------------------------------
def price(option: DigitalOption, market: MarketSnapshot) -> CurrencyAmount:
    v = _value(option, market)
    return CurrencyAmount(v.leg.domestic, v.pv)


def currency_exposure(option: DigitalOption, market: MarketSnapshot) -> CurrencyExposure:
    """Exposure from the discount-factor form of the delta (no zero rates needed)."""
    v = _value(option, market)
    u = option.underlying
    delta_amount = v.d_price_d_d / (v.fwd.spot * v.vol * np.sqrt(u.expiry))
    return _currency_exposure(float(delta_amount), v.fwd.spot, v.pv,
                              v.leg.foreign, v.leg.domestic)


# ---------------------------------------------------------------------------
# Greeks
# ---------------------------------------------------------------------------
def delta(option: DigitalOption, market: MarketSnapshot, direct_quote: bool = True) -> Greek:
    """Delta per unit payout against the pay-leg spot."""
    v = _value(option, market)
    d = _greeks(v, market)["delta"] * option.underlying.sign
    return Greek("delta", quoted_delta(d, v.fwd.spot, direct_quote), _quote(direct_quote),
                 SPOT, CLOSED_FORM)


def gamma(option: DigitalOption, market: MarketSnapshot, direct_quote: bool = True) -> Greek:
    v = _value(option, market)
    g = _greeks(v, market)
    sign = option.underlying.sign
    value = quoted_gamma(g["gamma"] * sign, g["delta"] * sign, v.fwd.spot, direct_quote)
    return Greek("gamma", value, _quote(direct_quote), SPOT, CLOSED_FORM)


def vega(option: DigitalOption, market: MarketSnapshot, direct_quote: bool = True) -> Greek:
    v = _value(option, market)
    return Greek("vega", _greeks(v, market)["vega"] * v.scale, _quote(direct_quote), SPOT,
                 CLOSED_FORM, v.leg.domestic)


def theta(option: DigitalOption, market: MarketSnapshot, direct_quote: bool = True) -> Greek:
    """Per-year theta with expiry and payment moving together."""
    v = _value(option, market)
    return Greek("theta", _greeks(v, market)["theta"] * v.scale, _quote(direct_quote), SPOT,
                 CLOSED_FORM, v.leg.domestic)


def vanna(option: DigitalOption, market: MarketSnapshot, direct_quote: bool = True) -> Greek:
    v = _value(option, market)
    value = quoted_vanna(_greeks(v, market)["vanna"] * v.scale, v.fwd.spot, direct_quote)
    return Greek("vanna", value, _quote(direct_quote), SPOT, CLOSED_FORM, v.leg.domestic)


def vomma(option: DigitalOption, market: MarketSnapshot, direct_quote: bool = True) -> Greek:
    v = _value(option, market)
    return Greek("vomma", _greeks(v, market)["vomma"] * v.scale, _quote(direct_quote), SPOT,
                 CLOSED_FORM, v.leg.domestic)


# ---------------------------------------------------------------------------
# Bucketed sensitivities
# ---------------------------------------------------------------------------
def _point_vega(v: _Valuation) -> float:
    u = v.option.underlying
    sqrt_t = np.sqrt(u.expiry)
    d_d_d_vol = sqrt_t * (-np.log(v.fwd.forward / v.leg.strike) / (v.vol * sqrt_t) ** 2 - 0.5)
    return float(v.d_price_d_d * d_d_d_vol)


def curve_sensitivity(option: DigitalOption, market: MarketSnapshot) -> CurveSensitivity:
    """Backward sweep of ``pv = payout dfD N(w d(F))`` with ``F = S dfF / dfD``."""
    v = _value(option, market)
    u, f = option.underlying, v.fwd
    forward_bar = v.d_price_d_d / (f.forward * v.vol * np.sqrt(u.expiry))
    df_foreign_bar = f.spot / f.df_domestic * forward_bar
    df_domestic_bar = (-f.spot * f.df_foreign / f.df_domestic ** 2 * forward_bar
                       + v.pv / f.df_domestic)
    t = u.payment_time
    return buckets.curve_sensitivity(market, v.leg.domestic, t, {
        v.leg.domestic: buckets.rate_sensitivity(df_domestic_bar, f.df_domestic, t),
        v.leg.foreign: buckets.rate_sensitivity(df_foreign_bar, f.df_foreign, t),
    })


def volatility_sensitivity(option: DigitalOption,
                           market: MarketSnapshot) -> VolatilityNodeSensitivity:
    v = _value(option, market)
    u = option.underlying
    expiry, strike = buckets.volatility_point(market, u.ccy1, u.expiry, u.strike)
    return VolatilityNodeSensitivity(u.ccy1, u.ccy2, v.leg.domestic, np.array([expiry]),
                                     np.array([strike]), np.array([[_point_vega(v)]]),
                                     (expiry, strike))


def volatility_node_sensitivity(option: DigitalOption,
                                market: MarketSnapshot) -> VolatilityNodeSensitivity:
    v = _value(option, market)
    u = option.underlying
    # weights are looked up in the contract's own orientation
    forward = market.spot_rate(u.ccy1, u.ccy2) * (
        market.discount_factor(u.ccy1, u.payment_time)
        / market.discount_factor(u.ccy2, u.payment_time))
    return buckets.volatility_node_sensitivity(market, u.ccy1, u.ccy2, v.leg.domestic,
                                               u.expiry, u.strike, forward, _point_vega(v))


def implied_volatility(option: DigitalOption, market: MarketSnapshot) -> float:
    return _value(option, market).vol
