"""Bjerksund-Stensland (2002) American option approximation with adjoints.

The model is parameterised by spot ``S``, strike ``K``, time to expiry
``T``, risk-free rate ``r``, cost of carry ``b`` and volatility ``sigma``.
For an FX option ``r`` is the domestic rate and ``b = r_domestic -
r_foreign``.

The call price is a sum of ``phi`` (one-dimensional) and ``psi``
(bivariate) terms built on two flat exercise boundaries ``I1`` (for
``t1 = (sqrt(5) - 1) T / 2``) and ``I2`` (for ``T``)::

    C = a2 S^B - a2 phi(B, I2, I2) + phi(1, I2, I2) - phi(1, I1, I2)
        - K phi(0, I2, I2) + K phi(0, I1, I2) + a1 phi(B, I1, I2)
        - a1 psi(B, I1) + psi(1, I1) - psi(1, K) - K psi(0, I1) + K psi(0, K)

Puts use the put-call transformation ``P(S, K, r, b) = C(K, S, r - b, -b)``.
When ``b >= r`` early exercise of a call is never optimal and the European
(generalised Black-Scholes) value is returned.

Every ``phi``/``psi`` component has the same shape::

    G = exp(lambda tau + p . ell) * Psi(z),   z_k = -(a_k . ell + s_k mu tau_k) / (sigma sqrt(tau_k))

with ``ell = (ln S, ln K, ln I1, ln I2)``, ``Psi`` either ``N`` or the
bivariate ``M``, and powers ``p`` linear in ``gamma`` and ``kappa``.  A
single evaluator returns ``G`` with its derivatives, which are then chained
through the exercise boundary (carried as tangents in ``(r, b, sigma)``).

References
----------
Bjerksund, P. and Stensland, G. (2002). Closed form valuation of American
options.  Formulas as in Haug, E.G., *The Complete Guide to Option Pricing
Formulas*, 2nd ed., section 1.4.
"""

from __future__ import annotations

from typing import NamedTuple

import numpy as np
from scipy.stats import norm

from .bivariate import bivariate_partials
from .black import black_price_adjoint, forward_gamma

_N = norm.cdf
_n = norm.pdf

__all__ = [
    "bjerksund_stensland_price",
    "bjerksund_stensland_adjoint",
]

# adjoint layout
PRICE, D_SPOT, D_SPOT_SPOT, D_RATE, D_CARRY, D_VOL = range(6)

_T1_FRACTION = 0.5 * (np.sqrt(5.0) - 1.0)

# indices into ell = (ln S, ln K, ln I1, ln I2)
_S, _K, _I1, _I2 = range(4)
_E = np.eye(4)
_ZERO = np.zeros(4)


# ---------------------------------------------------------------------------
# Exercise boundary (values and tangents in (r, b, sigma))
# ---------------------------------------------------------------------------
class _Boundary(NamedTuple):
    t1: float
    beta: float
    I1: float
    I2: float
    alpha1: float
    alpha2: float
    d_beta: np.ndarray
    d_I1: np.ndarray
    d_I2: np.ndarray
    d_alpha1: np.ndarray
    d_alpha2: np.ndarray


def _exercise_boundary(K, T, r, b, sigma) -> _Boundary:
    s2 = sigma * sigma
    u = b / s2 - 0.5
    w = np.sqrt(u * u + 2.0 * r / s2)
    beta = w - u
    d_beta = np.array([
        1.0 / (w * s2),
        (u / w - 1.0) / s2,
        2.0 / (sigma * s2) * (b - (b * u + r) / w),
    ])

    b_inf = beta * K / (beta - 1.0)
    d_b_inf = -K / (beta - 1.0) ** 2 * d_beta
    if b > 0.0:
        b_zero = r * K / (r - b)
        d_b_zero = np.array([-b * K, r * K, 0.0]) / (r - b) ** 2
    else:
        b_zero = K
        d_b_zero = np.zeros(3)

    denom = (b_inf - b_zero) * b_zero
    d_denom = b_zero * d_b_inf + (b_inf - 2.0 * b_zero) * d_b_zero

    t1 = _T1_FRACTION * T
    levels = []
    for t in (t1, T):
        h = -(b * t + 2.0 * sigma * np.sqrt(t)) * K * K / denom
        d_h = -K * K / denom * np.array([0.0, t, 2.0 * np.sqrt(t)]) - h / denom * d_denom
        e = np.exp(h)
        level = b_zero + (b_inf - b_zero) * (1.0 - e)
        d_level = e * d_b_zero + (1.0 - e) * d_b_inf - (b_inf - b_zero) * e * d_h
        alpha = (level - K) * level ** (-beta)
        d_alpha = ((level ** (-beta) - beta * (level - K) * level ** (-beta - 1.0)) * d_level
                   - np.log(level) * alpha * d_beta)
        levels.append((level, alpha, d_level, d_alpha))

    (I1, alpha1, d_I1, d_alpha1), (I2, alpha2, d_I2, d_alpha2) = levels
    return _Boundary(t1, beta, I1, I2, alpha1, alpha2, d_beta, d_I1, d_I2, d_alpha1, d_alpha2)


# ---------------------------------------------------------------------------
# phi / psi components
# ---------------------------------------------------------------------------
def _phi(H: int, I: int, t1: float) -> list:
    """Components of ``phi(S, t1, gamma, H, I)`` as (sign, tau, p_gamma, p_kappa, args, rho)."""
    eS, eH, eI = _E[_S], _E[H], _E[I]
    return [
        (+1.0, t1, eS, _ZERO, [(eS - eH, 1.0, t1)], None),
        (-1.0, t1, eS, eI - eS, [(2.0 * eI - eS - eH, 1.0, t1)], None),
    ]


def _psi(H: int, t1: float, T: float) -> list:
    """Components of ``psi(S, T, gamma, H, I2, I1, t1)``."""
    eS, eH, e1, e2 = _E[_S], _E[H], _E[_I1], _E[_I2]
    rho = np.sqrt(t1 / T)
    return [
        (+1.0, T, eS, _ZERO,
         [(eS - e1, 1.0, t1), (eS - eH, 1.0, T)], rho),
        (-1.0, T, eS, e2 - eS,
         [(2.0 * e2 - eS - e1, 1.0, t1), (2.0 * e2 - eS - eH, 1.0, T)], rho),
        (-1.0, T, eS, e1 - eS,
         [(eS - e1, -1.0, t1), (2.0 * e1 - eS - eH, 1.0, T)], -rho),
        (+1.0, T, eS, e1 - e2,
         [(2.0 * e2 - eS - e1, -1.0, t1), (eS + 2.0 * e1 - eH - 2.0 * e2, 1.0, T)], -rho),
    ]


def _component(ell, tau_rate, p_gamma, p_kappa, args, rho, gamma, r, b, sigma) -> dict:
    """Evaluate one ``G`` and its derivatives.

    Returns dict with keys: value, ell (gradient in ell), ss (second
    derivative in ln S), gamma, r, b, sigma.  Parameter derivatives hold
    the boundary levels fixed.
    """
    s2 = sigma * sigma
    lam = -r + gamma * b + 0.5 * gamma * (gamma - 1.0) * s2
    mu = b + (gamma - 0.5) * s2
    kappa = 2.0 * b / s2 + 2.0 * gamma - 1.0
    p = gamma * p_gamma + kappa * p_kappa
    pref = np.exp(lam * tau_rate + p @ ell)

    a = np.array([arg[0] for arg in args])
    sgn = np.array([arg[1] for arg in args])
    tau = np.array([arg[2] for arg in args])
    v = sigma * np.sqrt(tau)
    z = -(a @ ell + sgn * mu * tau) / v

    if rho is None:
        psi = float(_N(z[0]))
        grad = np.array([_n(z[0])])
        hess = np.array([[-z[0] * _n(z[0])]])
    else:
        m = bivariate_partials(z[0], z[1], rho)
        psi = float(m["m"])
        grad = np.array([float(m["mx"]), float(m["my"])])
        hess = np.array([[float(m["mxx"]), float(m["mxy"])],
                         [float(m["mxy"]), float(m["myy"])]])

    value = pref * psi
    dz_dell = -a / v[:, None]
    d_ell = value * p + pref * (grad @ dz_dell)
    c = dz_dell[:, _S]
    d_ss = p[_S] ** 2 * value + 2.0 * p[_S] * pref * (grad @ c) + pref * (c @ hess @ c)

    # reverse sweep through lambda, mu, kappa and v = sigma sqrt(tau)
    lam_bar = tau_rate * value
    mu_bar = pref * (grad @ (-sgn * tau / v))
    v_bar = pref * grad * (-z / v)
    kappa_bar = value * (p_kappa @ ell)
    return {
        "value": value,
        "ell": d_ell,
        "ss": d_ss,
        "r": -lam_bar,
        "b": gamma * lam_bar + mu_bar + 2.0 * kappa_bar / s2,
        "sigma": (gamma * (gamma - 1.0) * sigma * lam_bar
                  + 2.0 * (gamma - 0.5) * sigma * mu_bar
                  - 4.0 * b * kappa_bar / (s2 * sigma)
                  + v_bar @ np.sqrt(tau)),
        "gamma": (value * (p_gamma @ ell)
                  + (b + (gamma - 0.5) * s2) * lam_bar
                  + s2 * mu_bar
                  + 2.0 * kappa_bar),
    }


# ---------------------------------------------------------------------------
# Call
# ---------------------------------------------------------------------------
def _european_call_adjoint(S, K, T, r, b, sigma) -> np.ndarray:
    carry = np.exp(b * T)
    df = np.exp(-r * T)
    price, d_fwd, d_vol = black_price_adjoint(S * carry, K, T, sigma, True, df)
    return np.array([
        price,
        d_fwd * carry,
        df * forward_gamma(S * carry, K, T, sigma) * carry * carry,
        -T * price,
        d_fwd * S * T * carry,
        d_vol,
    ], dtype=float)


def _american_call_adjoint(S, K, T, r, b, sigma) -> np.ndarray:
    if b >= r:
        return _european_call_adjoint(S, K, T, r, b, sigma)

    bd = _exercise_boundary(K, T, r, b, sigma)
    if S >= bd.I2:
        return np.array([S - K, 1.0, 0.0, 0.0, 0.0, 0.0])

    t1, beta = bd.t1, bd.beta
    ell = np.log([S, K, bd.I1, bd.I2])

    # (coefficient, alpha index or None, gamma, gamma is beta, components)
    terms = [
        (-1.0, 2, beta, True, _phi(_I2, _I2, t1)),
        (+1.0, None, 1.0, False, _phi(_I2, _I2, t1)),
        (-1.0, None, 1.0, False, _phi(_I1, _I2, t1)),
        (-K, None, 0.0, False, _phi(_I2, _I2, t1)),
        (+K, None, 0.0, False, _phi(_I1, _I2, t1)),
        (+1.0, 1, beta, True, _phi(_I1, _I2, t1)),
        (-1.0, 1, beta, True, _psi(_I1, t1, T)),
        (+1.0, None, 1.0, False, _psi(_I1, t1, T)),
        (-1.0, None, 1.0, False, _psi(_K, t1, T)),
        (-K, None, 0.0, False, _psi(_I1, t1, T)),
        (+K, None, 0.0, False, _psi(_K, t1, T)),
    ]

    # leading term a2 S^beta
    lead = bd.alpha2 * S ** beta
    price = lead
    d_ell = np.array([beta * lead, 0.0, 0.0, 0.0])
    d_ss = beta * beta * lead
    d_direct = np.zeros(3)
    d_beta = np.log(S) * lead
    d_alpha = {1: 0.0, 2: S ** beta}

    for scale, alpha_index, gamma, is_beta, components in terms:
        coef = scale * (bd.alpha1 if alpha_index == 1 else bd.alpha2 if alpha_index == 2 else 1.0)
        for sign, tau_rate, p_gamma, p_kappa, args, rho in components:
            g = _component(ell, tau_rate, p_gamma, p_kappa, args, rho, gamma, r, b, sigma)
            w = coef * sign
            price += w * g["value"]
            d_ell += w * g["ell"]
            d_ss += w * g["ss"]
            d_direct += w * np.array([g["r"], g["b"], g["sigma"]])
            if is_beta:
                d_beta += w * g["gamma"]
            if alpha_index is not None:
                d_alpha[alpha_index] += scale * sign * g["value"]

    d_I1 = d_ell[_I1] / bd.I1
    d_I2 = d_ell[_I2] / bd.I2
    d_params = (d_direct
                + d_beta * bd.d_beta
                + d_I1 * bd.d_I1 + d_I2 * bd.d_I2
                + d_alpha[1] * bd.d_alpha1 + d_alpha[2] * bd.d_alpha2)

    return np.array([
        price,
        d_ell[_S] / S,
        (d_ss - d_ell[_S]) / (S * S),
        d_params[0],
        d_params[1],
        d_params[2],
    ])


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def bjerksund_stensland_adjoint(S, K, T, r, b, sigma, is_call) -> np.ndarray:
    """Price and first derivatives (plus spot gamma) in one pass.

    Parameters
    ----------
    S, K : float
        Spot and strike.
    T : float
        Time to expiry in years.
    r : float
        Risk-free (domestic) rate.
    b : float
        Cost of carry.
    sigma : float
        Volatility.
    is_call : bool
        Call or put.

    Returns
    -------
    np.ndarray, shape (6,)
        ``[price, dS, dSS, dr, db, dsigma]`` per unit notional.
    """
    S, K, T, r, b, sigma = (float(x) for x in (S, K, T, r, b, sigma))
    if is_call:
        return _american_call_adjoint(S, K, T, r, b, sigma)

    # P(S, K, r, b) = C(K, S, r - b, -b); C is homogeneous of degree one in (S, K)
    c = _american_call_adjoint(K, S, T, r - b, -b, sigma)
    return np.array([
        c[PRICE],
        (c[PRICE] - K * c[D_SPOT]) / S,
        K * K * c[D_SPOT_SPOT] / (S * S),
        c[D_RATE],
        -c[D_RATE] - c[D_CARRY],
        c[D_VOL],
    ])


def bjerksund_stensland_price(S, K, T, r, b, sigma, is_call) -> float:
    return float(bjerksund_stensland_adjoint(S, K, T, r, b, sigma, is_call)[PRICE])
