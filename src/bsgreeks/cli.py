"""Command line interface: ``bsgreeks price`` and ``bsgreeks book``.

Book input CSV format::

    id,spot,strike,ttm,vol,rate,div
    1,100,100,1.0,0.20,0.05,0.0
    2,100,110,0.5,0.25,0.03,0.02

The ``div`` column is optional (default 0).
"""

from __future__ import annotations

import argparse
import csv
import json
import logging
import sys
from pathlib import Path

from .errors import InvalidInputError, PricingError
from .model import build_model

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def add_common(parser: argparse.ArgumentParser):
    parser.add_argument("--spot", type=float, required=True)
    parser.add_argument("--strike", type=float, required=True)
    parser.add_argument("--ttm", type=float, required=True, help="years")
    parser.add_argument("--vol", type=float, required=True)
    parser.add_argument("--rate", type=float, required=True, help="cont. risk-free")
    parser.add_argument("--div", type=float, default=0.0, help="cont. dividend yield")


def cmd_price(args) -> int:
    try:
        model = build_model(args.spot, args.strike, args.ttm, args.vol, args.rate, args.div)
    except PricingError as e:
        print(f"error: {e.message}", file=sys.stderr)
        return 2
    out = model.greeks()
    if args.json:
        print(json.dumps(out, indent=2))
    else:
        for name, value in out.items():
            print(f"{name:<10}  {value:.10f}")
    return 0


def _column(row: dict, name: str, default: str | None = None) -> str:
    value = row.get(name)
    if value is None or not value.strip():
        if default is not None:
            return default
        raise InvalidInputError(name, value, "present in the input row")
    return value.strip()


def _price_row(row: dict) -> dict:
    """Price a single book row and return result dict."""
    model = build_model(
        spot_price=_column(row, "spot"),
        strike=_column(row, "strike"),
        time_to_maturity=_column(row, "ttm"),
        volatility=_column(row, "vol"),
        risk_free_rate=_column(row, "rate"),
        dividend_yield=_column(row, "div", "0"),
    )
    return {"id": row.get("id", ""), **model.greeks()}


def cmd_book(args) -> int:
    try:
        with open(args.input, newline="") as f:
            rows = list(csv.DictReader(f))
    except OSError as e:
        print(f"error: cannot read {args.input}: {e.strerror or e}", file=sys.stderr)
        return 2

    logger.info("pricing %d rows from %s", len(rows), args.input)

    results = []
    for i, row in enumerate(rows):
        try:
            results.append(_price_row(row))
        except PricingError as e:
            logger.warning("row %d (id=%s): %s", i, row.get("id", "?"), e.message)
            err = e.to_dict()
            results.append({
                "id": row.get("id", ""),
                "error_type": err["error_type"],
                "message": err["message"],
            })

    output_path = Path(args.output)
    if output_path.suffix == ".json":
        with open(output_path, "w") as f:
            json.dump(results, f, indent=2)
    else:
        fieldnames = []
        for r in results:
            for k in r:
                if k not in fieldnames:
                    fieldnames.append(k)
        with open(output_path, "w", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=fieldnames)
            writer.writeheader()
            writer.writerows(results)

    failed = sum(1 for r in results if "error_type" in r)
    logger.info("priced %d, failed %d, written to %s",
                len(results) - failed, failed, output_path)
    return 1 if failed else 0


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(
        prog="bsgreeks", description="Black-Scholes price and Greeks"
    )
    p.add_argument("--log-level", default="WARNING", choices=LOG_LEVELS)
    sub = p.add_subparsers(dest="cmd", required=True)

    p_price = sub.add_parser("price", help="price and Greeks for one option")
    add_common(p_price)
    p_price.add_argument("--json", action="store_true", help="emit JSON")
    p_price.set_defaults(func=cmd_price)

    p_book = sub.add_parser("book", help="batch-price a CSV book")
    p_book.add_argument("--input", required=True, help="path to book CSV")
    p_book.add_argument("--output", required=True, help="output path (.csv or .json)")
    p_book.set_defaults(func=cmd_book)

    args = p.parse_args(argv)
    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
