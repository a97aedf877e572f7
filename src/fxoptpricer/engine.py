"""Dispatch over the contract union and batch valuation.

Each contract family has one pricer module; the engine only selects it and
assembles a ``PricingResult``.  Valuations share nothing, so a book is
valued one contract per task on a thread or process pool.
"""

from __future__ import annotations

import logging
from concurrent.futures import ProcessPoolExecutor, ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from types import ModuleType
from typing import Sequence

from . import american, barrier, digital, vanilla
from .config import DEFAULT_SHIFTS, ShiftConfig
from .core import AmericanOption, BarrierOption, DigitalOption, OptionContract, VanillaOption
from .exceptions import FxPricingError, InvalidArgument
from .market import MarketSnapshot
from .results import CurrencyAmount, PricingResult

logger = logging.getLogger(__name__)

__all__ = [
    "GREEK_NAMES",
    "pricer_for",
    "has_closed_form_gamma",
    "present_value",
    "value",
    "BookFailure",
    "BookResult",
    "value_book",
]

GREEK_NAMES = ("delta", "gamma", "vega", "theta", "vanna", "vomma")

_PRICERS: dict[type, ModuleType] = {
    VanillaOption: vanilla,
    AmericanOption: american,
    DigitalOption: digital,
    BarrierOption: barrier,
}


def pricer_for(contract: OptionContract) -> ModuleType:
    """Pricer module for the contract's family."""
    if contract is None:
        raise InvalidArgument("An option is required")
    try:
        return _PRICERS[type(contract)]
    except KeyError:
        raise InvalidArgument(f"Unsupported contract type {type(contract).__name__}") from None


def has_closed_form_gamma(contract: OptionContract) -> bool:
    """``False`` when gamma comes from finite differences."""
    return pricer_for(contract).HAS_CLOSED_FORM_GAMMA


def present_value(contract: OptionContract, market: MarketSnapshot) -> CurrencyAmount:
    return pricer_for(contract).price(contract, market)


def value(
    contract: OptionContract,
    market: MarketSnapshot,
    *,
    direct_quote: bool = True,
    config: ShiftConfig = DEFAULT_SHIFTS,
) -> PricingResult:
    """Price, exposure, Greeks and bucketed sensitivities of one contract."""
    pricer = pricer_for(contract)
    greeks = {}
    for name in GREEK_NAMES:
        kwargs = {"config": config} if name in pricer.BUMPED_GREEKS else {}
        greeks[name] = getattr(pricer, name)(contract, market, direct_quote, **kwargs)
    return PricingResult(
        present_value=pricer.price(contract, market),
        currency_exposure=pricer.currency_exposure(contract, market),
        greeks=greeks,
        curve_sensitivity=pricer.curve_sensitivity(contract, market),
        volatility_sensitivity=pricer.volatility_node_sensitivity(contract, market),
        has_closed_form_gamma=pricer.HAS_CLOSED_FORM_GAMMA,
    )


# ---------------------------------------------------------------------------
# Batch valuation
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class BookFailure:
    index: int
    error_type: str
    message: str


@dataclass(frozen=True)
class BookResult:
    """``results[i]`` is ``None`` exactly when contract ``i`` failed."""
    results: tuple[PricingResult | None, ...]
    failures: tuple[BookFailure, ...]

    @property
    def n_ok(self) -> int:
        return sum(r is not None for r in self.results)


def _value_one(index, contract, market, direct_quote, config):
    """Top-level so it can be pickled to worker processes."""
    try:
        return index, value(contract, market, direct_quote=direct_quote, config=config), None
    except (FxPricingError, ArithmeticError) as exc:
        return index, None, BookFailure(index, type(exc).__name__, str(exc))


def value_book(
    contracts: Sequence[OptionContract],
    market: MarketSnapshot,
    *,
    n_workers: int = 1,
    executor: str = "process",
    direct_quote: bool = True,
    config: ShiftConfig = DEFAULT_SHIFTS,
) -> BookResult:
    """Value every contract; a failing contract is recorded and skipped.

    Parameters
    ----------
    contracts : sequence
        Contracts to value.
    market : MarketSnapshot
        Shared, read-only snapshot (must be picklable for ``"process"``).
    n_workers : int
        ``<= 1`` runs serially in the calling thread.
    executor : str
        ``"process"`` or ``"thread"``.
    """
    if executor not in ("process", "thread"):
        raise InvalidArgument(f"executor must be 'process' or 'thread', got {executor!r}")
    contracts = list(contracts)
    logger.info("valuing %d contracts with %d worker(s)", len(contracts), max(n_workers, 1))

    outcomes = []
    if n_workers <= 1:
        for i, c in enumerate(contracts):
            outcomes.append(_value_one(i, c, market, direct_quote, config))
    else:
        pool_cls = ProcessPoolExecutor if executor == "process" else ThreadPoolExecutor
        with pool_cls(max_workers=n_workers) as ex:
            futs = [ex.submit(_value_one, i, c, market, direct_quote, config)
                    for i, c in enumerate(contracts)]
            for f in as_completed(futs):
                outcomes.append(f.result())

    results: list[PricingResult | None] = [None] * len(contracts)
    failures = []
    for index, result, failure in sorted(outcomes, key=lambda o: o[0]):
        results[index] = result
        if failure is not None:
            logger.warning("contract %d failed: %s: %s", index, failure.error_type,
                           failure.message)
            failures.append(failure)

    logger.info("valued %d of %d contracts", len(contracts) - len(failures), len(contracts))
    return BookResult(tuple(results), tuple(failures))
