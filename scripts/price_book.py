#!/usr/bin/env python3
"""Production script: value a book of FX options against one market file.

Usage
-----
    python scripts/price_book.py --book book.csv --market market.json --output risk.csv
    python scripts/price_book.py --book book.csv --market market.json --output risk.json \
        --workers 4 --reciprocal --log-level DEBUG

Book CSV format
---------------
    id,family,ccy1,ccy2,notional,strike,expiry,payment_time,kind,side
    1,vanilla,EUR,USD,1000000,1.20,1.0,1.0,call,long
    2,american,EUR,USD,500000,1.15,0.5,0.5,put,short

Family-specific columns: ``pay_leg`` (digital: domestic/foreign) and
``barrier``, ``barrier_type``, ``rebate`` (barrier).

Market JSON format
------------------
    {
      "pair": ["EUR", "USD"],
      "spot": [["EUR", "USD", 1.20]],
      "curves": {
        "USD": {"name": "USD-OIS", "times": [0.5, 1, 2], "rates": [0.05, 0.05, 0.05]},
        "EUR": {"name": "EUR-ESTR", "times": [1, 2], "discount_factors": [0.97, 0.94]}
      },
      "volatility": {"expiries": [0.5, 1], "strikes": [1.1, 1.2, 1.3],
                     "vols": [[0.11, 0.10, 0.11], [0.12, 0.11, 0.12]]},
      "shifts": {"gamma_shift": 1e-5}
    }

``"volatility": {"flat": 0.10}`` gives a flat surface.

Output
------
    CSV or JSON with columns: id, family, pv, currency, delta, gamma, vega,
    theta, vanna, vomma, gamma_method, error
"""

from __future__ import annotations
import argparse
import csv
import json
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from fxoptpricer import (
    AmericanOption, Barrier, BarrierOption, DigitalOption, VanillaOption,
    DiscountFactorCurve, FlatVolatility, FxMarket, FxRates, ShiftConfig,
    VolatilityGrid, ZeroRateCurve, value_book,
)
from fxoptpricer.engine import GREEK_NAMES

logger = logging.getLogger("price_book")


def _curve(entry: dict, currency: str):
    name = entry.get("name", currency)
    if "rates" in entry:
        return ZeroRateCurve(name, entry["times"], entry["rates"])
    return DiscountFactorCurve(name, entry["times"], entry["discount_factors"])


def load_market(path: str) -> tuple[FxMarket, ShiftConfig]:
    with open(path) as f:
        data = json.load(f)
    vol = data["volatility"]
    if "flat" in vol:
        surface = FlatVolatility(float(vol["flat"]))
    else:
        surface = VolatilityGrid(vol["expiries"], vol["strikes"], vol["vols"])
    market = FxMarket(
        curves={ccy: _curve(entry, ccy) for ccy, entry in data["curves"].items()},
        fx=FxRates({(a, b): float(rate) for a, b, rate in data["spot"]}),
        surface=surface,
        pair=tuple(data["pair"]),
    )
    return market, ShiftConfig.from_mapping(data.get("shifts", {}))


def parse_row(row: dict):
    """Build one contract from a book row."""
    family = row.get("family", "vanilla").strip().lower()
    vanilla = VanillaOption(
        ccy1=row["ccy1"].strip(),
        ccy2=row["ccy2"].strip(),
        notional=float(row["notional"]),
        strike=float(row["strike"]),
        expiry=float(row["expiry"]),
        payment_time=float(row.get("payment_time") or row["expiry"]),
        kind=row.get("kind", "call").strip().lower(),
        is_long=row.get("side", "long").strip().lower() != "short",
    )
    if family == "vanilla":
        return vanilla
    if family == "american":
        return AmericanOption(vanilla)
    if family == "digital":
        return DigitalOption(vanilla, pay_domestic=row.get("pay_leg", "domestic").strip().lower() != "foreign")
    if family == "barrier":
        barrier = Barrier(float(row["barrier"]), row["barrier_type"].strip().lower())
        return BarrierOption(vanilla, barrier, float(row.get("rebate") or 0.0))
    raise ValueError(f"Unknown family: {family!r}")


def main():
    parser = argparse.ArgumentParser(description="Value a book of FX options.")
    parser.add_argument("--book", required=True, help="Path to book CSV")
    parser.add_argument("--market", required=True, help="Path to market JSON")
    parser.add_argument("--output", required=True, help="Output path (.csv or .json)")
    parser.add_argument("--workers", type=int, default=1, help="Worker processes (1 = serial)")
    parser.add_argument("--reciprocal", action="store_true",
                        help="Report spot Greeks against the reciprocal quote")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    args = parser.parse_args()

    logging.basicConfig(level=args.log_level,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    market, shifts = load_market(args.market)
    with open(args.book, newline="") as f:
        rows = list(csv.DictReader(f))

    # rows that do not even parse are reported without being valued
    results = [{"id": row.get("id", ""), "family": row.get("family", "vanilla")} for row in rows]
    contracts, positions = [], []
    for i, row in enumerate(rows):
        try:
            contracts.append(parse_row(row))
            positions.append(i)
        except (KeyError, ValueError) as e:
            logger.warning("row %d (id=%s): %s", i, row.get("id", "?"), e)
            results[i]["error"] = str(e)

    book = value_book(contracts, market, n_workers=args.workers,
                      direct_quote=not args.reciprocal, config=shifts)

    for failure in book.failures:
        results[positions[failure.index]]["error"] = f"{failure.error_type}: {failure.message}"
    for pos, res in zip(positions, book.results):
        if res is None:
            continue
        out = results[pos]
        out["pv"] = res.present_value.amount
        out["currency"] = res.present_value.currency
        for key in GREEK_NAMES:
            out[key] = res.greek(key)
        out["gamma_method"] = res.greeks["gamma"].method

    output_path = Path(args.output)
    if output_path.suffix == ".json":
        with open(output_path, "w") as f:
            json.dump(results, f, indent=2, default=str)
    else:
        fieldnames = ["id", "family", "pv", "currency", *GREEK_NAMES, "gamma_method", "error"]
        with open(output_path, "w", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=fieldnames, extrasaction="ignore")
            writer.writeheader()
            writer.writerows(results)

    priced = sum(1 for r in results if "pv" in r)
    logger.info("results written to %s (priced: %d | failed: %d)",
                args.output, priced, len(results) - priced)


if __name__ == "__main__":
    main()
