# bivariate.py
# Standard bivariate normal CDF M(x, y; rho) and its partial derivatives.
#
# M is evaluated through Owen's T function:
#   M(h, k; rho) = [N(h) + N(k)] / 2 - T(h, a_h) - T(k, a_k) - delta / 2
# with a_h = (k - rho h) / (h sqrt(1 - rho^2)), a_k symmetric, and delta = 1
# when h and k lie on opposite sides of zero (or one is zero and h + k < 0).
# |rho| must be strictly below one.

from __future__ import annotations

import numpy as np
from scipy.special import owens_t
from scipy.stats import norm

_N = norm.cdf
_n = norm.pdf

__all__ = ["bivariate_cdf", "bivariate_partials"]


def _owens_t_term(h, k, rho, s):
    """``T(h, (k - rho h) / (h s))`` with the ``h == 0`` limit ``sign(k) / 4``."""
    with np.errstate(divide="ignore", invalid="ignore"):
        a = (k - rho * h) / (h * s)
        t = owens_t(h, np.where(h == 0.0, 0.0, a))
    return np.where(h == 0.0, 0.25 * np.sign(k - rho * h), t)


def bivariate_cdf(x, y, rho) -> np.ndarray:
    """``P(X <= x, Y <= y)`` for standard normals with correlation ``rho``."""
    h, k, rho = np.broadcast_arrays(*(np.asarray(v, dtype=float) for v in (x, y, rho)))
    s = np.sqrt(1.0 - rho * rho)
    opposite = (h * k < 0) | ((h * k == 0) & (h + k < 0))
    m = (0.5 * _N(h) + 0.5 * _N(k)
         - _owens_t_term(h, k, rho, s) - _owens_t_term(k, h, rho, s)
         - 0.5 * opposite)
    both_zero = (h == 0.0) & (k == 0.0)
    m = np.where(both_zero, 0.25 + np.arcsin(rho) / (2.0 * np.pi), m)
    return np.clip(m, 0.0, 1.0)


def bivariate_partials(x, y, rho) -> dict[str, np.ndarray]:
    """M and its first and second partials in ``x`` and ``y``.

    Returns dict with keys: m, mx, my, mxx, myy, mxy.
    """
    x, y, rho = np.broadcast_arrays(*(np.asarray(v, dtype=float) for v in (x, y, rho)))
    s = np.sqrt(1.0 - rho * rho)
    u = (y - rho * x) / s
    v = (x - rho * y) / s
    nx, ny = _n(x), _n(y)
    Nu, Nv = _N(u), _N(v)
    density = nx * _n(u) / s     # bivariate density, symmetric in (x, y)
    return {
        "m": bivariate_cdf(x, y, rho),
        "mx": nx * Nu,
        "my": ny * Nv,
        "mxx": -x * nx * Nu - rho * density,
        "myy": -y * ny * Nv - rho * density,
        "mxy": density,
    }
