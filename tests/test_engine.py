"""Tests for contract dispatch and batch valuation."""

import pytest

from fxoptpricer import (
    american, barrier, digital, vanilla,
    AmericanOption, Barrier, BarrierOption, CALL, DigitalOption, InvalidArgument, PUT,
    ShiftConfig, VanillaOption, DOWN_AND_OUT,
    has_closed_form_gamma, present_value, pricer_for, value, value_book,
)
from fxoptpricer.engine import GREEK_NAMES
from fxoptpricer.results import FINITE_DIFFERENCE, RECIPROCAL

NOTIONAL = 1_000_000.0


def _vanilla(strike=1.22, kind=CALL, ccy1="EUR", ccy2="USD"):
    return VanillaOption(ccy1, ccy2, NOTIONAL, strike, 1.0, 1.0, kind)


def _book():
    return [
        _vanilla(),
        AmericanOption(_vanilla(1.25, PUT)),
        DigitalOption(_vanilla(), pay_domestic=False),
        BarrierOption(_vanilla(1.20), Barrier(1.10, DOWN_AND_OUT)),
    ]


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------
class TestDispatch:
    def test_pricer_for_each_family(self):
        book = _book()
        assert [pricer_for(c) for c in book] == [vanilla, american, digital, barrier]

    def test_closed_form_gamma_flag(self):
        assert [has_closed_form_gamma(c) for c in _book()] == [True, True, True, False]

    @pytest.mark.parametrize("contract", [None, "EURUSD 1.2 call", 42])
    def test_rejects_unknown_contracts(self, contract, market):
        with pytest.raises(InvalidArgument):
            present_value(contract, market)

    def test_rejects_pair_mismatch(self, market):
        with pytest.raises(InvalidArgument):
            present_value(_vanilla(ccy1="GBP"), market)

    def test_rejects_missing_market(self):
        with pytest.raises(InvalidArgument):
            present_value(_vanilla(), None)

    @pytest.mark.parametrize("contract", _book())
    def test_present_value_matches_pricer(self, contract, market):
        assert present_value(contract, market) == pricer_for(contract).price(contract, market)


# ---------------------------------------------------------------------------
# Single valuation
# ---------------------------------------------------------------------------
class TestValue:
    @pytest.mark.parametrize("contract", _book())
    def test_result_contents(self, contract, market):
        res = value(contract, market)
        assert set(res.greeks) == set(GREEK_NAMES)
        pv = res.present_value
        assert res.currency_exposure.converted(pv.currency, market) == pytest.approx(pv.amount, rel=1e-10)
        assert res.has_closed_form_gamma == has_closed_form_gamma(contract)
        assert res.curve_sensitivity.currency == pv.currency
        assert res.volatility_sensitivity.total() == pytest.approx(res.greek("vega"), rel=1e-10)

    def test_reciprocal_quote_is_forwarded(self, market):
        res = value(_vanilla(), market, direct_quote=False)
        assert res.greeks["delta"].quote == RECIPROCAL
        assert res.greek("delta") == pytest.approx(vanilla.delta(_vanilla(), market, False).value)

    def test_config_reaches_bumped_greeks(self, market):
        opt = _book()[3]
        cfg = ShiftConfig(gamma_shift=1e-3)
        res = value(opt, market, config=cfg)
        assert res.greeks["gamma"].method == FINITE_DIFFERENCE
        assert res.greek("gamma") == barrier.gamma(opt, market, config=cfg).value
        assert res.greek("theta") == barrier.theta(opt, market).value


# ---------------------------------------------------------------------------
# Batch valuation
# ---------------------------------------------------------------------------
class TestValueBook:
    def _failing_book(self):
        book = _book()
        book.insert(2, _vanilla(ccy1="GBP"))
        return book

    def test_serial_isolates_failures(self, market):
        book = value_book(self._failing_book(), market)
        assert book.n_ok == 4
        assert book.results[2] is None
        assert len(book.failures) == 1
        failure = book.failures[0]
        assert failure.index == 2
        assert failure.error_type == "InvalidArgument"
        assert "GBP" in failure.message

    @pytest.mark.parametrize("executor", ["thread", "process"])
    def test_pool_matches_serial(self, market, executor):
        contracts = self._failing_book()
        serial = value_book(contracts, market)
        pooled = value_book(contracts, market, n_workers=2, executor=executor)
        assert [f.index for f in pooled.failures] == [2]
        for a, b in zip(serial.results, pooled.results):
            if a is None:
                assert b is None
                continue
            assert b.present_value == a.present_value
            for name in GREEK_NAMES:
                assert b.greek(name) == pytest.approx(a.greek(name), rel=1e-12)

    def test_unsupported_market_shape_is_recorded(self, df_only_market):
        book = value_book(_book(), df_only_market)
        assert [f.index for f in book.failures] == [2]
        assert book.failures[0].error_type == "UnsupportedMarketDataShape"
        assert book.n_ok == 3

    def test_empty_book(self, market):
        book = value_book([], market)
        assert book.results == ()
        assert book.n_ok == 0

    def test_rejects_unknown_executor(self, market):
        with pytest.raises(InvalidArgument):
            value_book(_book(), market, n_workers=2, executor="cluster")
