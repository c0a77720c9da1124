from __future__ import annotations

import argparse
import logging
import sys
from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Sequence

from config import config
from domain.currency_converter import CurrencyConverter
from domain.ledger import LedgerError
from domain.pricing import CurrencyConverterProtocol
from importers.ledger_records import load_currencies, load_prices
from utils.formatting import format_amount

logger = logging.getLogger(__name__)


def build_converter(currencies_csv: Path, prices_csv: Path) -> CurrencyConverter:
    currencies = load_currencies(currencies_csv)
    prices = load_prices(prices_csv)
    return CurrencyConverter(currencies, prices)


def run(converter: CurrencyConverterProtocol, *, on: date, amount: Decimal, symbol: str) -> str:
    converted = converter.convert(on, amount, symbol)
    logger.info("Converted %s %s on %s -> %s", amount, symbol, on.isoformat(), converted)
    return format_amount(converted)


def _parse_amount(raw: str) -> Decimal:
    try:
        return Decimal(raw)
    except InvalidOperation as err:
        raise argparse.ArgumentTypeError(f"invalid amount: {raw!r}") from err


def main(argv: Sequence[str] | None = None) -> int:
    settings = config()
    parser = argparse.ArgumentParser(description="Convert a ledger amount into the ledger currency.")
    parser.add_argument("--date", type=date.fromisoformat, required=True, help="Conversion date (YYYY-MM-DD)")
    parser.add_argument("--amount", type=_parse_amount, required=True)
    parser.add_argument("--symbol", required=True)
    parser.add_argument("--currencies", type=Path, default=settings.currencies_csv)
    parser.add_argument("--prices", type=Path, default=settings.prices_csv)
    args = parser.parse_args(argv)

    logging.basicConfig(level=settings.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s %(message)s")

    try:
        converter = build_converter(args.currencies, args.prices)
        print(run(converter, on=args.date, amount=args.amount, symbol=args.symbol))
    except (LedgerError, ArithmeticError) as err:
        print(f"Error: {err}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
