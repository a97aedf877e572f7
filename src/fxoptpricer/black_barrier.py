"""Single-barrier options under Black-Scholes with cost of carry.

Reiner-Rubinstein closed form (Haug, *The Complete Guide to Option Pricing
Formulas*, section 4.17.1).  The price is a signed sum of the six blocks
``A``..``F``; which blocks enter depends on the barrier type, call/put and
whether the strike is above or below the barrier.  ``E`` is a rebate paid
at expiry when a knock-in never activates and ``F`` a rebate paid when a
knock-out is hit.

Each block is made of pieces with the common shape::

    coef * X * (H/S)^q * N(eps * (L / (sigma sqrt(T)) + m sigma sqrt(T)))

where ``X`` is ``S exp((b - r) T)``, ``exp(-r T)`` or one, ``L`` is a
combination of ``ln S``, ``ln K`` and ``ln H``, and both ``q`` and ``m``
are linear in ``mu = b / sigma^2 - 1/2`` and ``lambda = sqrt(mu^2 + 2 r /
sigma^2)``.  This lets one routine differentiate every piece; the adjoint
``[price, dS, dr, db, dsigma]`` comes out of a single pass.
"""

from __future__ import annotations

from typing import NamedTuple

import numpy as np
from scipy.stats import norm

from .core import DOWN_AND_IN, DOWN_AND_OUT, UP_AND_IN, UP_AND_OUT
from .black import black_price_adjoint

_N = norm.cdf
_n = norm.pdf

__all__ = ["barrier_price", "barrier_price_adjoint", "is_breached"]

# adjoint layout
PRICE, D_SPOT, D_RATE, D_CARRY, D_VOL = range(5)

_CARRY, _RATE, _NONE = "carry", "rate", "none"


class _Piece(NamedTuple):
    coef: float
    discount: str
    power: tuple       # (q0, q_mu, q_lambda) on ln(H/S)
    log_coef: tuple    # coefficients of (ln S, ln K, ln H)
    drift: tuple       # (m0, m_mu, m_lambda) multiplying sigma sqrt(T)
    eps: float


def _blocks(K: float, phi: float, eta: float, rebate: float) -> dict[str, list[_Piece]]:
    s_k = (1.0, -1.0, 0.0)      # ln(S/K)
    s_h = (1.0, 0.0, -1.0)      # ln(S/H)
    hh_sk = (-1.0, -1.0, 2.0)   # ln(H^2/(S K))
    h_s = (-1.0, 0.0, 1.0)      # ln(H/S)
    none = (0.0, 0.0, 0.0)
    return {
        "A": [_Piece(phi, _CARRY, none, s_k, (1.0, 1.0, 0.0), phi),
              _Piece(-phi * K, _RATE, none, s_k, (0.0, 1.0, 0.0), phi)],
        "B": [_Piece(phi, _CARRY, none, s_h, (1.0, 1.0, 0.0), phi),
              _Piece(-phi * K, _RATE, none, s_h, (0.0, 1.0, 0.0), phi)],
        "C": [_Piece(phi, _CARRY, (2.0, 2.0, 0.0), hh_sk, (1.0, 1.0, 0.0), eta),
              _Piece(-phi * K, _RATE, (0.0, 2.0, 0.0), hh_sk, (0.0, 1.0, 0.0), eta)],
        "D": [_Piece(phi, _CARRY, (2.0, 2.0, 0.0), h_s, (1.0, 1.0, 0.0), eta),
              _Piece(-phi * K, _RATE, (0.0, 2.0, 0.0), h_s, (0.0, 1.0, 0.0), eta)],
        "E": [_Piece(rebate, _RATE, none, s_h, (0.0, 1.0, 0.0), eta),
              _Piece(-rebate, _RATE, (0.0, 2.0, 0.0), h_s, (0.0, 1.0, 0.0), eta)],
        "F": [_Piece(rebate, _NONE, (0.0, 1.0, 1.0), h_s, (0.0, 0.0, 1.0), eta),
              _Piece(rebate, _NONE, (0.0, 1.0, -1.0), h_s, (0.0, 0.0, -1.0), eta)],
    }


# (barrier type, is call, strike above barrier) -> signed blocks
_COMBINATIONS = {
    (DOWN_AND_IN, True, True): "+C +E",
    (DOWN_AND_IN, True, False): "+A -B +D +E",
    (UP_AND_IN, True, True): "+A +E",
    (UP_AND_IN, True, False): "+B -C +D +E",
    (DOWN_AND_IN, False, True): "+B -C +D +E",
    (DOWN_AND_IN, False, False): "+A +E",
    (UP_AND_IN, False, True): "+A -B +D +E",
    (UP_AND_IN, False, False): "+C +E",
    (DOWN_AND_OUT, True, True): "+A -C +F",
    (DOWN_AND_OUT, True, False): "+B -D +F",
    (UP_AND_OUT, True, True): "+F",
    (UP_AND_OUT, True, False): "+A -B +C -D +F",
    (DOWN_AND_OUT, False, True): "+A -B +C -D +F",
    (DOWN_AND_OUT, False, False): "+F",
    (UP_AND_OUT, False, True): "+B -D +F",
    (UP_AND_OUT, False, False): "+A -C +F",
}


def is_breached(S: float, H: float, barrier_type: str) -> bool:
    """Whether spot is already at or beyond the barrier."""
    if barrier_type in (DOWN_AND_IN, DOWN_AND_OUT):
        return S <= H
    return S >= H


def _vanilla_adjoint(S, K, T, r, b, sigma, is_call) -> np.ndarray:
    carry = np.exp(b * T)
    price, d_fwd, d_vol = black_price_adjoint(S * carry, K, T, sigma, is_call, np.exp(-r * T))
    return np.array([price, d_fwd * carry, -T * price, d_fwd * S * T * carry, d_vol], dtype=float)


def barrier_price_adjoint(S, K, H, T, r, b, sigma, is_call, barrier_type,
                          rebate=0.0) -> np.ndarray:
    """Barrier price and first-order adjoint per unit notional.

    Parameters
    ----------
    S, K, H : float
        Spot, strike and barrier level.
    T : float
        Time to expiry in years.
    r, b : float
        Risk-free (domestic) rate and cost of carry.
    sigma : float
        Volatility.
    is_call : bool
        Call or put.
    barrier_type : str
        ``"down-and-in"``, ``"down-and-out"``, ``"up-and-in"`` or ``"up-and-out"``.
    rebate : float
        Rebate per unit notional.

    Returns
    -------
    np.ndarray, shape (5,)
        ``[price, dS, dr, db, dsigma]``.
    """
    S, K, H, T, r, b, sigma, rebate = (float(x) for x in (S, K, H, T, r, b, sigma, rebate))
    knock_in = barrier_type in (DOWN_AND_IN, UP_AND_IN)
    if is_breached(S, H, barrier_type):
        if knock_in:
            return _vanilla_adjoint(S, K, T, r, b, sigma, is_call)
        return np.array([rebate, 0.0, 0.0, 0.0, 0.0])

    phi = 1.0 if is_call else -1.0
    eta = 1.0 if barrier_type in (DOWN_AND_IN, DOWN_AND_OUT) else -1.0
    s2 = sigma * sigma
    sqrt_T = np.sqrt(T)
    v = sigma * sqrt_T
    mu = b / s2 - 0.5
    lam = np.sqrt(mu * mu + 2.0 * r / s2)
    ell = np.log([S, K, H])
    ln_hs = ell[2] - ell[0]
    factors = {_CARRY: S * np.exp((b - r) * T), _RATE: np.exp(-r * T), _NONE: 1.0}

    blocks = _blocks(K, phi, eta, rebate)
    price = d_lnS = r_bar = b_bar = mu_bar = lam_bar = v_bar = 0.0
    for token in _COMBINATIONS[(barrier_type, bool(is_call), K >= H)].split():
        block_sign = 1.0 if token[0] == "+" else -1.0
        for p in blocks[token[1]]:
            q = p.power[0] + p.power[1] * mu + p.power[2] * lam
            m = p.drift[0] + p.drift[1] * mu + p.drift[2] * lam
            L = float(np.dot(p.log_coef, ell))
            w = p.eps * (L / v + m * v)
            base = block_sign * p.coef * factors[p.discount] * np.exp(q * ln_hs)
            value = base * _N(w)
            dens = base * _n(w) * p.eps

            price += value
            d_lnS += -q * value + dens * p.log_coef[0] / v
            mu_bar += value * ln_hs * p.power[1] + dens * v * p.drift[1]
            lam_bar += value * ln_hs * p.power[2] + dens * v * p.drift[2]
            v_bar += dens * (m - L / (v * v))
            if p.discount != _NONE:
                r_bar -= T * value
            if p.discount == _CARRY:
                d_lnS += value
                b_bar += T * value

    # lambda depends on mu, r and sigma; mu on b and sigma
    mu_total = mu_bar + lam_bar * mu / lam
    return np.array([
        price,
        d_lnS / S,
        r_bar + lam_bar / (lam * s2),
        b_bar + mu_total / s2,
        v_bar * sqrt_T - 2.0 * b * mu_total / (s2 * sigma) - 2.0 * r * lam_bar / (lam * s2 * sigma),
    ])


def barrier_price(S, K, H, T, r, b, sigma, is_call, barrier_type, rebate=0.0) -> float:
    return float(barrier_price_adjoint(S, K, H, T, r, b, sigma, is_call, barrier_type, rebate)[PRICE])
