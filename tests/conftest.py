"""Shared market fixtures.

Every market is EUR/USD (ccy1 = EUR, ccy2 = USD) with flat zero-rate curves
unless stated otherwise.
"""

import numpy as np
import pytest

from fxoptpricer import (
    DiscountFactorCurve, FlatVolatility, FxMarket, FxRates, VolatilityGrid, ZeroRateCurve,
)

SPOT = 1.20


def make_market(spot=SPOT, r_usd=0.0, r_eur=0.0, vol=0.10, surface=None):
    return FxMarket(
        curves={
            "USD": ZeroRateCurve.flat("USD-OIS", r_usd),
            "EUR": ZeroRateCurve.flat("EUR-ESTR", r_eur),
        },
        fx=FxRates({("EUR", "USD"): spot}),
        surface=FlatVolatility(vol) if surface is None else surface,
        pair=("EUR", "USD"),
    )


@pytest.fixture
def zero_rate_market():
    """Scenario market: spot 1.2, both discount factors 1, vol 10%."""
    return make_market()


@pytest.fixture
def market():
    """USD 5%, EUR 2%, vol 12%."""
    return make_market(r_usd=0.05, r_eur=0.02, vol=0.12)


@pytest.fixture
def market_factory():
    return make_market


@pytest.fixture
def grid_market():
    surface = VolatilityGrid(
        expiries=[0.25, 0.5, 1.0, 2.0],
        strikes=[1.0, 1.1, 1.2, 1.3, 1.4],
        vols=np.array([
            [0.14, 0.12, 0.11, 0.12, 0.14],
            [0.13, 0.115, 0.105, 0.115, 0.13],
            [0.125, 0.11, 0.10, 0.11, 0.125],
            [0.12, 0.105, 0.095, 0.105, 0.12],
        ]),
    )
    return FxMarket(
        curves={
            "USD": ZeroRateCurve("USD-OIS", [0.5, 1.0, 2.0], [0.045, 0.05, 0.052]),
            "EUR": ZeroRateCurve("EUR-ESTR", [0.5, 1.0, 2.0], [0.018, 0.02, 0.021]),
        },
        fx=FxRates({("EUR", "USD"): SPOT}),
        surface=surface,
        pair=("EUR", "USD"),
    )


@pytest.fixture
def df_only_market():
    """Curves that expose discount factors but no zero rates."""
    return FxMarket(
        curves={
            "USD": DiscountFactorCurve("USD-DF", [1.0, 2.0], [np.exp(-0.05), np.exp(-0.10)]),
            "EUR": DiscountFactorCurve("EUR-DF", [1.0, 2.0], [np.exp(-0.02), np.exp(-0.04)]),
        },
        fx=FxRates({("EUR", "USD"): SPOT}),
        surface=FlatVolatility(0.12),
        pair=("EUR", "USD"),
    )
