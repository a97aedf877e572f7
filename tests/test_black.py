"""Tests for the vectorised Black and cash-or-nothing formulas."""

import numpy as np
import pytest

from fxoptpricer.black import (
    black_price, black_price_adjoint, forward_delta, forward_gamma, forward_vega,
    forward_driftless_theta, forward_vanna, forward_vomma,
    digital_d, cash_or_nothing_price, cash_or_nothing_greeks,
)
from fxoptpricer.risk import central_difference, second_difference

F, K, T, SIGMA = 1.23, 1.20, 0.8, 0.11


# ---------------------------------------------------------------------------
# Vectorisation
# ---------------------------------------------------------------------------
class TestVectorised:
    def test_array_of_strikes(self):
        strikes = np.linspace(1.0, 1.4, 40)
        calls = black_price(F, strikes, T, SIGMA, True)
        assert calls.shape == (40,)
        assert np.all(np.diff(calls) < 0)

    def test_mixed_call_flags(self):
        prices = black_price(F, K, T, SIGMA, np.array([True, False]), df=0.97)
        assert prices[0] - prices[1] == pytest.approx(0.97 * (F - K))

    def test_adjoint_shape(self):
        adj = black_price_adjoint(np.array([1.1, 1.2, 1.3]), K, T, SIGMA, True)
        assert adj.shape == (3, 3)
        np.testing.assert_allclose(adj[0], black_price(np.array([1.1, 1.2, 1.3]), K, T, SIGMA, True))


# ---------------------------------------------------------------------------
# Analytic vs numerical derivatives
# ---------------------------------------------------------------------------
class TestForwardGreeks:
    @pytest.mark.parametrize("is_call", [True, False])
    def test_adjoint(self, is_call):
        price, d_fwd, d_vol = black_price_adjoint(F, K, T, SIGMA, is_call, df=0.95)
        p = lambda f=F, s=SIGMA: float(black_price(f, K, T, s, is_call, df=0.95))
        assert d_fwd == pytest.approx(central_difference(p, F, 1e-5), rel=1e-7)
        assert d_vol == pytest.approx(central_difference(lambda s: p(s=s), SIGMA, 1e-5), rel=1e-7)
        assert d_fwd == pytest.approx(0.95 * forward_delta(F, K, T, SIGMA, is_call))
        assert d_vol == pytest.approx(0.95 * forward_vega(F, K, T, SIGMA))

    def test_gamma(self):
        p = lambda f: float(black_price(f, K, T, SIGMA, True))
        assert float(forward_gamma(F, K, T, SIGMA)) == pytest.approx(second_difference(p, F, 1e-4), rel=1e-5)

    def test_driftless_theta(self):
        p = lambda t: float(black_price(F, K, t, SIGMA, False))
        assert float(forward_driftless_theta(F, K, T, SIGMA)) == \
            pytest.approx(-central_difference(p, T, 1e-5), rel=1e-7)

    def test_vanna_vomma(self):
        vega = lambda f=F, s=SIGMA: float(forward_vega(f, K, T, s))
        assert float(forward_vanna(F, K, T, SIGMA)) == pytest.approx(central_difference(vega, F, 1e-5), rel=1e-6)
        assert float(forward_vomma(F, K, T, SIGMA)) == \
            pytest.approx(central_difference(lambda s: vega(s=s), SIGMA, 1e-5), rel=1e-6)


# ---------------------------------------------------------------------------
# Cash-or-nothing
# ---------------------------------------------------------------------------
class TestCashOrNothing:
    S, RD, RF = 1.20, 0.05, 0.02

    def _price(self, S=None, sigma=SIGMA, t=T, is_call=True):
        S = self.S if S is None else S
        fwd = S * np.exp((self.RD - self.RF) * t)
        return float(cash_or_nothing_price(fwd, K, t, sigma, is_call, df=np.exp(-self.RD * t)))

    def test_price_matches_greeks_dict(self):
        g = cash_or_nothing_greeks(self.S, K, T, T, SIGMA, self.RD, self.RF, True)
        assert float(g["price"]) == pytest.approx(self._price())

    def test_call_plus_put(self):
        total = self._price(is_call=True) + self._price(is_call=False)
        assert total == pytest.approx(np.exp(-self.RD * T))

    @pytest.mark.parametrize("is_call", [True, False])
    def test_greeks_match_finite_differences(self, is_call):
        g = cash_or_nothing_greeks(self.S, K, T, T, SIGMA, self.RD, self.RF, is_call)
        spot = lambda s: self._price(S=s, is_call=is_call)
        vol = lambda v: self._price(sigma=v, is_call=is_call)
        assert float(g["delta"]) == pytest.approx(central_difference(spot, self.S, 1e-5), rel=1e-6)
        assert float(g["gamma"]) == pytest.approx(second_difference(spot, self.S, 1e-4), rel=1e-4)
        assert float(g["vega"]) == pytest.approx(central_difference(vol, SIGMA, 1e-5), rel=1e-6)
        theta = -central_difference(lambda t: self._price(t=t, is_call=is_call), T, 1e-5)
        assert float(g["theta"]) == pytest.approx(theta, rel=1e-6)

    def test_digital_d_is_d2(self):
        d = float(digital_d(F, K, T, SIGMA))
        assert d == pytest.approx(np.log(F / K) / (SIGMA * np.sqrt(T)) - 0.5 * SIGMA * np.sqrt(T))
