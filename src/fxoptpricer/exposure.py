"""Quote-direction transforms and two-currency exposures.

A spot sensitivity can be expressed against the quoted rate ``S`` (ccy2 per
ccy1, "direct") or against its inverse ``1/S`` ("reciprocal")::

    delta_reciprocal = -delta_direct * S**2
    gamma_reciprocal = (gamma_direct * S + 2 * delta_direct) * S**3

Every pricer goes through these helpers so the signs stay consistent.
"""

from __future__ import annotations

from .results import CurrencyAmount, CurrencyExposure

__all__ = [
    "reciprocal_delta",
    "reciprocal_gamma",
    "reciprocal_vanna",
    "quoted_delta",
    "quoted_gamma",
    "quoted_vanna",
    "relative_to_spot",
    "currency_exposure",
]


def reciprocal_delta(delta: float, spot: float) -> float:
    return -delta * spot * spot


def reciprocal_gamma(gamma: float, delta: float, spot: float) -> float:
    return (gamma * spot + 2.0 * delta) * spot ** 3


def reciprocal_vanna(vanna: float, spot: float) -> float:
    return -vanna * spot * spot


def quoted_delta(delta: float, spot: float, direct_quote: bool = True) -> float:
    return delta if direct_quote else reciprocal_delta(delta, spot)


def quoted_gamma(gamma: float, delta: float, spot: float, direct_quote: bool = True) -> float:
    """``gamma`` in the requested direction; ``delta`` must be the direct one."""
    return gamma if direct_quote else reciprocal_gamma(gamma, delta, spot)


def quoted_vanna(vanna: float, spot: float, direct_quote: bool = True) -> float:
    return vanna if direct_quote else reciprocal_vanna(vanna, spot)


def relative_to_spot(value: float, spot: float, direct_quote: bool = True) -> float:
    """Scale a quoted sensitivity by the spot level of the same direction."""
    return value * spot if direct_quote else value / spot


def currency_exposure(delta_amount: float, spot: float, present_value: float,
                      foreign: str, domestic: str) -> CurrencyExposure:
    """Split ``present_value`` (in ``domestic``) into per-currency holdings.

    ``delta_amount`` is the signed spot delta times the notional, i.e. the
    amount of ``foreign`` the position behaves like.  The domestic leg is
    the remainder, so ``foreign * spot + domestic == present_value``.
    """
    return CurrencyExposure.of(
        CurrencyAmount(foreign, delta_amount),
        CurrencyAmount(domestic, present_value - delta_amount * spot),
    )
