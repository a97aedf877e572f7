# black.py
# Vectorised Black (forward-measure) formulas for FX options.
# All public functions accept scalars *or* NumPy arrays and broadcast.
#
# Forward functions are undiscounted and per unit of ccy1 notional; callers
# multiply by the domestic discount factor.  ``is_call`` may be a bool or a
# boolean array.

from __future__ import annotations

import numpy as np
from scipy.stats import norm

_N = norm.cdf   # vectorised standard-normal CDF
_n = norm.pdf   # vectorised standard-normal PDF

__all__ = [
    "black_price",
    "black_price_adjoint",
    "forward_delta",
    "forward_gamma",
    "forward_vega",
    "forward_driftless_theta",
    "forward_vanna",
    "forward_vomma",
    "digital_d",
    "cash_or_nothing_price",
    "cash_or_nothing_greeks",
]


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------
def _d1_d2(F, K, T, sigma):
    """Compute d1, d2 arrays.  All inputs broadcast."""
    F, K, T, sigma = (np.asarray(x, dtype=float) for x in (F, K, T, sigma))
    sig_sqrt_T = sigma * np.sqrt(T)
    d1 = np.log(F / K) / sig_sqrt_T + 0.5 * sig_sqrt_T
    d2 = d1 - sig_sqrt_T
    return d1, d2


def _omega(is_call) -> np.ndarray:
    """+1 for calls, -1 for puts."""
    return np.where(np.asarray(is_call, dtype=bool), 1.0, -1.0)


# ---------------------------------------------------------------------------
# Vanilla
# ---------------------------------------------------------------------------
def black_price(F, K, T, sigma, is_call, df=1.0) -> np.ndarray:
    """Black price ``df * w * (F N(w d1) - K N(w d2))``.

    A zero volatility gives the discounted intrinsic value.
    """
    F, K, T, sigma, df = (np.asarray(x, dtype=float) for x in (F, K, T, sigma, df))
    w = _omega(is_call)
    intrinsic = df * np.maximum(w * (F - K), 0.0)
    with np.errstate(divide="ignore", invalid="ignore"):
        d1, d2 = _d1_d2(F, K, T, sigma)
        px = df * w * (F * _N(w * d1) - K * _N(w * d2))
    return np.where(sigma * np.sqrt(T) > 0, px, intrinsic)


def black_price_adjoint(F, K, T, sigma, is_call, df=1.0) -> np.ndarray:
    """Price and its first derivatives in one pass.

    Returns
    -------
    np.ndarray, shape (3, ...)
        ``[price, d price / d F, d price / d sigma]``.
    """
    F, K, T, sigma, df = (np.asarray(x, dtype=float) for x in (F, K, T, sigma, df))
    w = _omega(is_call)
    sqrt_T = np.sqrt(T)
    d1, d2 = _d1_d2(F, K, T, sigma)
    n1 = _N(w * d1)
    n2 = _N(w * d2)
    price = df * w * (F * n1 - K * n2)
    # reverse sweep: price_bar = 1, the d1/d2 terms cancel (F n(d1) = K n(d2))
    dF = df * w * n1
    dsigma = df * F * _n(d1) * sqrt_T
    return np.stack(np.broadcast_arrays(price, dF, dsigma))


def forward_delta(F, K, T, sigma, is_call) -> np.ndarray:
    d1, _ = _d1_d2(F, K, T, sigma)
    w = _omega(is_call)
    return w * _N(w * d1)


def forward_gamma(F, K, T, sigma) -> np.ndarray:
    """``n(d1) / (F sigma sqrt(T))``, equal to ``vega / (F^2 sigma T)``."""
    F, T, sigma = (np.asarray(x, dtype=float) for x in (F, T, sigma))
    d1, _ = _d1_d2(F, K, T, sigma)
    return _n(d1) / (F * sigma * np.sqrt(T))


def forward_vega(F, K, T, sigma) -> np.ndarray:
    F, T = np.asarray(F, dtype=float), np.asarray(T, dtype=float)
    d1, _ = _d1_d2(F, K, T, sigma)
    return F * _n(d1) * np.sqrt(T)


def forward_driftless_theta(F, K, T, sigma) -> np.ndarray:
    """Time decay with zero rates, ``-F n(d1) sigma / (2 sqrt(T))``."""
    F, T, sigma = (np.asarray(x, dtype=float) for x in (F, T, sigma))
    d1, _ = _d1_d2(F, K, T, sigma)
    return -F * _n(d1) * sigma / (2.0 * np.sqrt(T))


def forward_vanna(F, K, T, sigma) -> np.ndarray:
    """``d^2 price / dF d sigma = -n(d1) d2 / sigma`` (same for calls and puts)."""
    d1, d2 = _d1_d2(F, K, T, sigma)
    return -_n(d1) * d2 / np.asarray(sigma, dtype=float)


def forward_vomma(F, K, T, sigma) -> np.ndarray:
    """``d^2 price / d sigma^2 = vega * d1 * d2 / sigma``."""
    d1, d2 = _d1_d2(F, K, T, sigma)
    return forward_vega(F, K, T, sigma) * d1 * d2 / np.asarray(sigma, dtype=float)


# ---------------------------------------------------------------------------
# Cash-or-nothing digital (per unit payout)
# ---------------------------------------------------------------------------
def digital_d(F, K, T, sigma) -> np.ndarray:
    """``ln(F/K) / (sigma sqrt(T)) - sigma sqrt(T) / 2``."""
    _, d2 = _d1_d2(F, K, T, sigma)
    return d2


def cash_or_nothing_price(F, K, T, sigma, is_call, df=1.0) -> np.ndarray:
    w = _omega(is_call)
    return np.asarray(df, dtype=float) * _N(w * digital_d(F, K, T, sigma))


def cash_or_nothing_greeks(S, K, expiry, payment_time, sigma, r_domestic, r_foreign,
                           is_call) -> dict[str, np.ndarray]:
    """Closed-form Greeks of ``exp(-r_d t_p) N(w d)`` per unit payout.

    The forward is ``S exp((r_d - r_f) t_p)`` and the variance runs to
    ``expiry``.  Theta moves expiry and payment time together.

    Returns dict with keys: price, delta, gamma, vega, theta, vanna, vomma.
    """
    S, K, T, tp, sigma, rd, rf = (
        np.asarray(x, dtype=float)
        for x in (S, K, expiry, payment_time, sigma, r_domestic, r_foreign)
    )
    w = _omega(is_call)
    D = np.exp(-rd * tp)
    F = S * np.exp((rd - rf) * tp)
    sqrt_T = np.sqrt(T)
    sig_sqrt_T = sigma * sqrt_T
    d = digital_d(F, K, T, sigma)
    d1 = d + sig_sqrt_T
    dn = D * w * _n(d)

    price = D * _N(w * d)
    delta = dn / (S * sig_sqrt_T)
    gamma = -dn * d1 / (S * S * sigma * sigma * T)
    vega  = -dn * d1 / sigma
    vanna = dn * (d1 * d - 1.0) / (S * sigma * sig_sqrt_T)
    vomma = -dn * (d1 * d1 * d - d1 - d) / (sigma * sigma)
    theta = rd * price - dn * (rd - rf) / sig_sqrt_T + dn * d1 / (2.0 * T)

    return {"price": price, "delta": delta, "gamma": gamma, "vega": vega,
            "theta": theta, "vanna": vanna, "vomma": vomma}
