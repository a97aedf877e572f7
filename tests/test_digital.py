"""Tests for cash-or-nothing digitals.

Validation strategies:
- Static replication: call + put, vanilla + digitals = asset-or-nothing
- Closed-form Greeks vs. bump-and-reprice, for both pay legs
- Discount-factor-only curves: price works, Greeks raise
"""

import math

import pytest

from fxoptpricer import (
    digital, vanilla, CALL, PUT, DigitalOption, FlatVolatility, UnsupportedMarketDataShape,
    VanillaOption,
)
from fxoptpricer.results import CLOSED_FORM, RECIPROCAL

NOTIONAL = 1_000_000.0


def _digital(strike=1.22, kind=CALL, pay_domestic=True, expiry=1.0, is_long=True):
    u = VanillaOption("EUR", "USD", NOTIONAL, strike, expiry, expiry, kind, is_long)
    return DigitalOption(u, pay_domestic)


def _spot_bump(option, market, factor):
    """Reprice with the pay-leg spot scaled by ``factor``."""
    if option.pay_domestic:
        return digital.price(option, market.with_fx_rate("EUR", "USD", 1.2 * factor)).amount
    return digital.price(option, market.with_fx_rate("USD", "EUR", factor / 1.2)).amount


# ---------------------------------------------------------------------------
# Replication
# ---------------------------------------------------------------------------
class TestReplication:
    @pytest.mark.parametrize("pay_domestic", [True, False])
    def test_call_plus_put_is_discounted_payout(self, market, pay_domestic):
        call = _digital(kind=CALL, pay_domestic=pay_domestic)
        put = _digital(kind=PUT, pay_domestic=pay_domestic)
        pv = digital.price(call, market).amount + digital.price(put, market).amount
        df = math.exp(-0.05) if pay_domestic else math.exp(-0.02)
        assert pv == pytest.approx(call.payout * df, rel=1e-12)

    def test_pay_currency(self, market):
        assert digital.price(_digital(pay_domestic=True), market).currency == "USD"
        assert digital.price(_digital(pay_domestic=False), market).currency == "EUR"

    @pytest.mark.parametrize("strike", [1.10, 1.22, 1.35])
    def test_vanilla_plus_cash_digital_is_asset_digital(self, market, strike):
        # S dfF N(d1) = call + K dfD N(d2)
        u = VanillaOption("EUR", "USD", NOTIONAL, strike, 1.0, 1.0, CALL)
        call = vanilla.price(u, market).amount
        cash = digital.price(DigitalOption(u, True), market).amount
        asset = digital.price(DigitalOption(u, False), market).amount * 1.2
        assert call + cash == pytest.approx(asset, rel=1e-10)

    def test_short_flips_sign(self, market):
        long_pv = digital.price(_digital(), market).amount
        assert digital.price(_digital(is_long=False), market).amount == pytest.approx(-long_pv)


# ---------------------------------------------------------------------------
# Greeks
# ---------------------------------------------------------------------------
class TestGreeks:
    @pytest.mark.parametrize("pay_domestic", [True, False])
    @pytest.mark.parametrize("kind", [CALL, PUT])
    def test_delta_matches_central_difference(self, market, pay_domestic, kind):
        opt = _digital(kind=kind, pay_domestic=pay_domestic)
        spot = 1.2 if pay_domestic else 1 / 1.2
        h = 1e-4
        fd = (_spot_bump(opt, market, 1 + h) - _spot_bump(opt, market, 1 - h)) / (2 * h * spot)
        d = digital.delta(opt, market)
        assert d.value == pytest.approx(fd / opt.payout, rel=1e-6)
        assert d.method == CLOSED_FORM

    def test_gamma_matches_delta_difference(self, market):
        opt = _digital(1.25)
        h = 1e-4
        up = digital.delta(opt, market.with_fx_rate("EUR", "USD", 1.2 * (1 + h))).value
        dn = digital.delta(opt, market.with_fx_rate("EUR", "USD", 1.2 * (1 - h))).value
        assert digital.gamma(opt, market).value == pytest.approx((up - dn) / (2 * h * 1.2), rel=1e-5)

    @pytest.mark.parametrize("pay_domestic", [True, False])
    def test_vega_matches_vol_bump(self, market, pay_domestic):
        opt = _digital(1.25, pay_domestic=pay_domestic)
        h = 1e-5
        up = digital.price(opt, market.with_volatility(FlatVolatility(0.12 + h))).amount
        dn = digital.price(opt, market.with_volatility(FlatVolatility(0.12 - h))).amount
        assert digital.vega(opt, market).value == pytest.approx((up - dn) / (2 * h), rel=1e-6)

    def test_vanna_and_vomma_match_vega_bumps(self, market):
        opt = _digital(1.18)
        h = 1e-5
        up = digital.vega(opt, market.with_fx_rate("EUR", "USD", 1.2 * (1 + h))).value
        dn = digital.vega(opt, market.with_fx_rate("EUR", "USD", 1.2 * (1 - h))).value
        assert digital.vanna(opt, market).value == pytest.approx((up - dn) / (2 * h * 1.2), rel=1e-4)
        up = digital.vega(opt, market.with_volatility(FlatVolatility(0.12 + h))).value
        dn = digital.vega(opt, market.with_volatility(FlatVolatility(0.12 - h))).value
        assert digital.vomma(opt, market).value == pytest.approx((up - dn) / (2 * h), rel=1e-4)

    def test_theta_moves_expiry_and_payment(self, market):
        h = 1e-5
        up = digital.price(_digital(expiry=1.0 + h), market).amount
        dn = digital.price(_digital(expiry=1.0 - h), market).amount
        assert digital.theta(_digital(), market).value == pytest.approx(-(up - dn) / (2 * h), rel=1e-6)

    @pytest.mark.parametrize("kind", [CALL, PUT])
    def test_reciprocal_delta(self, market, kind):
        opt = _digital(kind=kind)
        d = digital.delta(opt, market).value
        rd = digital.delta(opt, market, direct_quote=False)
        assert rd.value == pytest.approx(-d * 1.44)
        assert rd.quote == RECIPROCAL

    @pytest.mark.parametrize("kind", [CALL, PUT])
    @pytest.mark.parametrize("pay_domestic", [True, False])
    @pytest.mark.parametrize("is_long", [True, False])
    def test_reciprocal_gamma(self, market, kind, pay_domestic, is_long):
        opt = _digital(1.18, kind, pay_domestic, is_long=is_long)
        spot = 1.2 if pay_domestic else 1 / 1.2
        d = digital.delta(opt, market).value
        g = digital.gamma(opt, market).value
        rg = digital.gamma(opt, market, direct_quote=False)
        assert rg.value == pytest.approx((g * spot + 2 * d) * spot ** 3, rel=1e-10)
        assert rg.quote == RECIPROCAL


# ---------------------------------------------------------------------------
# Exposure, buckets, market data shape
# ---------------------------------------------------------------------------
class TestRisk:
    @pytest.mark.parametrize("pay_domestic", [True, False])
    def test_exposure_reproduces_price(self, market, pay_domestic):
        opt = _digital(pay_domestic=pay_domestic, is_long=False)
        pv = digital.price(opt, market)
        exp = digital.currency_exposure(opt, market)
        assert exp.converted(pv.currency, market) == pytest.approx(pv.amount, rel=1e-12)

    @pytest.mark.parametrize("pay_domestic", [True, False])
    def test_curve_sensitivity_matches_curve_bumps(self, market, pay_domestic):
        opt = _digital(pay_domestic=pay_domestic)
        sens = digital.curve_sensitivity(opt, market)
        h = 1e-6
        for ccy in ("USD", "EUR"):
            curve = market.curves[ccy]
            up = digital.price(opt, market.with_curve(ccy, curve.bumped(h))).amount
            dn = digital.price(opt, market.with_curve(ccy, curve.bumped(-h))).amount
            assert sens.total(curve.name) == pytest.approx((up - dn) / (2 * h), rel=1e-5)

    def test_point_vega_matches_vega(self, market):
        opt = _digital(1.25)
        point = digital.volatility_sensitivity(opt, market)
        assert point.total() == pytest.approx(digital.vega(opt, market).value, rel=1e-10)
        assert point.point == (1.0, 1.25)

    def test_node_vega_sums_to_point_vega(self, grid_market):
        opt = _digital(1.23, pay_domestic=False, expiry=0.75)
        nodes = digital.volatility_node_sensitivity(opt, grid_market)
        assert nodes.total() == pytest.approx(digital.vega(opt, grid_market).value, rel=1e-10)
        assert nodes.currency == "EUR"

    def test_discount_factor_curves(self, df_only_market):
        opt = _digital()
        pv = digital.price(opt, df_only_market).amount
        assert pv > 0
        exp = digital.currency_exposure(opt, df_only_market)
        assert exp.converted("USD", df_only_market) == pytest.approx(pv, rel=1e-12)
        assert digital.curve_sensitivity(opt, df_only_market).currency == "USD"
        for greek in (digital.delta, digital.gamma, digital.vega, digital.theta,
                      digital.vanna, digital.vomma):
            with pytest.raises(UnsupportedMarketDataShape):
                greek(opt, df_only_market)

    def test_discount_factor_curves_match_zero_rate_curves(self, df_only_market, market):
        opt = _digital()
        assert digital.price(opt, df_only_market).amount == \
            pytest.approx(digital.price(opt, market).amount, rel=1e-12)
