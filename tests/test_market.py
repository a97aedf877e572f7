"""Tests for market data, the snapshot and shift configuration."""

import pickle

import numpy as np
import pytest

from fxoptpricer import (
    vanilla, CALL, DiscountFactorCurve, FlatVolatility, FxRates, InvalidArgument, ShiftConfig,
    UnsupportedMarketDataShape, VanillaOption, VolatilityGrid, ZeroRateCurve,
)
from fxoptpricer.buckets import curve_node_sensitivity
from fxoptpricer.market import check_compatible


# ---------------------------------------------------------------------------
# Spot rates
# ---------------------------------------------------------------------------
class TestFxRates:
    def test_inverse_is_derived(self):
        fx = FxRates({("EUR", "USD"): 1.25})
        assert fx.rate("EUR", "USD") == 1.25
        assert fx.rate("USD", "EUR") == pytest.approx(0.8)
        assert fx.rate("USD", "USD") == 1.0

    def test_missing_pair(self):
        with pytest.raises(InvalidArgument):
            FxRates({("EUR", "USD"): 1.25}).rate("GBP", "USD")

    @pytest.mark.parametrize("rates", [
        {("EUR", "USD"): 0.0},
        {("EUR", "USD"): -1.2},
        {("EUR", "USD"): 1.2, ("USD", "EUR"): 0.8},
    ])
    def test_rejects_bad_rates(self, rates):
        with pytest.raises(InvalidArgument):
            FxRates(rates)

    def test_with_rate_replaces_either_direction(self):
        fx = FxRates({("EUR", "USD"): 1.25}).with_rate("USD", "EUR", 0.5)
        assert fx.rate("EUR", "USD") == pytest.approx(2.0)
        assert len(fx.rates) == 1


# ---------------------------------------------------------------------------
# Curves
# ---------------------------------------------------------------------------
class TestCurves:
    def test_zero_rate_interpolation(self):
        c = ZeroRateCurve("USD-OIS", [1.0, 2.0], [0.04, 0.06])
        assert c.zero_rate(1.5) == pytest.approx(0.05)
        assert c.zero_rate(0.1) == pytest.approx(0.04)
        assert c.zero_rate(5.0) == pytest.approx(0.06)
        assert c.discount_factor(1.5) == pytest.approx(np.exp(-0.075))
        np.testing.assert_allclose(c.node_weights(1.25), [0.75, 0.25])

    def test_bumped_node(self):
        c = ZeroRateCurve("USD-OIS", [1.0, 2.0], [0.04, 0.06]).bumped(0.01, node=1)
        np.testing.assert_allclose(c.rates, [0.04, 0.07])

    def test_discount_factor_curve(self):
        c = DiscountFactorCurve("USD-DF", [1.0, 2.0], [np.exp(-0.04), np.exp(-0.10)])
        assert c.discount_factor(1.0) == pytest.approx(np.exp(-0.04))
        assert c.discount_factor(0.5) == pytest.approx(np.exp(-0.02))
        assert c.discount_factor(1.5) == pytest.approx(np.exp(-0.07))
        assert c.discount_factor(4.0) == pytest.approx(np.exp(-0.20))
        with pytest.raises(UnsupportedMarketDataShape):
            c.zero_rate(1.0)

    @pytest.mark.parametrize("times,values", [([], []), ([1.0, 1.0], [0.1, 0.1]), ([1.0], [0.1, 0.2])])
    def test_rejects_bad_pillars(self, times, values):
        with pytest.raises(InvalidArgument):
            ZeroRateCurve("X", times, values)

    def test_rejects_non_positive_discount_factor(self):
        with pytest.raises(InvalidArgument):
            DiscountFactorCurve("X", [1.0], [0.0])


# ---------------------------------------------------------------------------
# Volatility
# ---------------------------------------------------------------------------
class TestVolatility:
    def test_grid_bilinear(self, grid_market):
        surface = grid_market.surface
        assert surface.volatility(0.75, 1.25) == pytest.approx(0.5 * (0.11 + 0.105))
        vol, w = surface.volatility_and_weights(0.75, 1.25)
        assert w.sum() == pytest.approx(1.0)
        assert vol == pytest.approx(float(np.sum(w * surface.vols)))

    def test_flat_extrapolation(self, grid_market):
        assert grid_market.surface.volatility(5.0, 0.5) == pytest.approx(0.12)

    def test_reversed_pair_inverts_strike(self, grid_market):
        direct = grid_market.volatility("EUR", "USD", 0.75, 1.25, 1.22)
        reversed_ = grid_market.volatility("USD", "EUR", 0.75, 1 / 1.25, 1 / 1.22)
        assert reversed_ == pytest.approx(direct)

    def test_unknown_pair(self, grid_market):
        with pytest.raises(InvalidArgument):
            grid_market.volatility("GBP", "USD", 1.0, 1.3, 1.3)

    def test_rejects_bad_grid(self):
        with pytest.raises(InvalidArgument):
            VolatilityGrid([0.5, 1.0], [1.0, 1.1, 1.2], np.full((3, 2), 0.1))
        with pytest.raises(InvalidArgument):
            FlatVolatility(-0.1)


# ---------------------------------------------------------------------------
# Snapshot
# ---------------------------------------------------------------------------
class TestSnapshot:
    def test_copy_on_write(self, market):
        bumped = market.with_fx_rate("EUR", "USD", 1.3).with_volatility(FlatVolatility(0.2))
        assert market.spot_rate("EUR", "USD") == 1.2
        assert market.volatility("EUR", "USD", 1.0, 1.2, 1.2) == 0.12
        assert bumped.spot_rate("EUR", "USD") == 1.3
        curve = market.curves["USD"]
        market.with_curve("USD", curve.bumped(0.01))
        assert market.curves["USD"] is curve

    def test_missing_curve(self, market):
        with pytest.raises(InvalidArgument):
            market.discount_factor("GBP", 1.0)

    def test_check_compatible(self, market):
        check_compatible(market, "EUR", "USD")
        check_compatible(market, "USD", "EUR")
        with pytest.raises(InvalidArgument):
            check_compatible(market, "GBP", "USD")
        with pytest.raises(InvalidArgument):
            check_compatible(None, "EUR", "USD")

    def test_picklable(self, grid_market):
        clone = pickle.loads(pickle.dumps(grid_market))
        assert clone.spot_rate("EUR", "USD") == grid_market.spot_rate("EUR", "USD")
        assert clone.volatility("EUR", "USD", 0.75, 1.25, 1.2) == \
            grid_market.volatility("EUR", "USD", 0.75, 1.25, 1.2)


# ---------------------------------------------------------------------------
# Node bucketing
# ---------------------------------------------------------------------------
class TestCurveNodes:
    def test_nodes_match_pillar_bumps(self, grid_market):
        opt = VanillaOption("EUR", "USD", 1_000_000.0, 1.22, 1.5, 1.5, CALL)
        sens = vanilla.curve_sensitivity(opt, grid_market)
        h = 1e-6
        for ccy in ("USD", "EUR"):
            curve = grid_market.curves[ccy]
            nodes = curve_node_sensitivity(curve, sens)
            assert nodes.sum() == pytest.approx(sens.total(curve.name))
            for j in range(len(curve.times)):
                up = vanilla.price(opt, grid_market.with_curve(ccy, curve.bumped(h, node=j))).amount
                dn = vanilla.price(opt, grid_market.with_curve(ccy, curve.bumped(-h, node=j))).amount
                assert nodes[j] == pytest.approx((up - dn) / (2 * h), rel=1e-5, abs=1e-6)

    def test_discount_factor_curve_has_no_nodes(self, df_only_market):
        opt = VanillaOption("EUR", "USD", 1_000_000.0, 1.22, 1.0, 1.0, CALL)
        sens = vanilla.curve_sensitivity(opt, df_only_market)
        with pytest.raises(UnsupportedMarketDataShape):
            curve_node_sensitivity(df_only_market.curves["USD"], sens)


# ---------------------------------------------------------------------------
# Shift configuration
# ---------------------------------------------------------------------------
class TestShiftConfig:
    def test_defaults(self):
        cfg = ShiftConfig()
        assert cfg.gamma_shift == 1e-5
        assert cfg.theta_shift == pytest.approx(1 / (365 * 24))
        assert cfg.american_theta_shift == pytest.approx(1 / 365)

    @pytest.mark.parametrize("value", [0.0, -1e-5, float("nan"), float("inf"), True, "1e-5"])
    def test_rejects_bad_shifts(self, value):
        with pytest.raises(InvalidArgument):
            ShiftConfig(gamma_shift=value)

    def test_from_mapping(self):
        cfg = ShiftConfig.from_mapping({"vomma_shift": "2e-5"})
        assert cfg.vomma_shift == 2e-5
        assert cfg.gamma_shift == 1e-5
        with pytest.raises(InvalidArgument):
            ShiftConfig.from_mapping({"delta_shift": 1e-4})

    def test_scaled(self):
        cfg = ShiftConfig().scaled(0.5)
        assert cfg.gamma_shift == pytest.approx(5e-6)
        assert cfg.theta_shift == pytest.approx(0.5 / (365 * 24))
