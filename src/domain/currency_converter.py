from __future__ import annotations

import datetime as dt
import logging
from decimal import ROUND_HALF_EVEN, Decimal, localcontext
from types import MappingProxyType
from typing import Iterable, Mapping

from .ledger import (
    ConversionOperator,
    ConversionRule,
    CurrencyCode,
    CurrencyDefinition,
    InstrumentKey,
    LedgerError,
    PriceObservation,
)
from .price_index import PriceSeries, build_price_index
from .rule_parser import parse_rule

logger = logging.getLogger(__name__)

AMOUNT_QUANTUM = Decimal("0.0001")


class MissingRuleError(LedgerError):
    def __init__(self, symbol: str) -> None:
        self.symbol = symbol
        super().__init__(f"Can't find currency conversion rules for '{symbol}'.")


class MissingPriceSeriesError(LedgerError):
    def __init__(self, *, instrument_key: str, symbol: str) -> None:
        self.instrument_key = instrument_key
        self.symbol = symbol
        super().__init__(f"Can't find price list '{instrument_key}' for '{symbol}' conversion.")


class DuplicateCurrencyError(LedgerError):
    def __init__(self, code: str) -> None:
        self.code = code
        super().__init__(f"Currency '{code}' is defined more than once.")


class CurrencyConverter:
    """Point-in-time currency conversion over a fixed set of ledger records.

    Rules and price series are built once in the constructor and never change
    afterwards, so ``convert`` can be called from several threads at once. When
    the records change, build a new converter.
    """

    def __init__(
        self,
        currencies: Iterable[CurrencyDefinition],
        prices: Iterable[PriceObservation],
    ) -> None:
        self._rules = self._compile_rules(currencies)
        self._price_index = build_price_index(prices)
        logger.info(
            "Currency converter ready: %d currencies, %d price series",
            len(self._rules),
            len(self._price_index),
        )

    @property
    def symbols(self) -> frozenset[str]:
        return frozenset(self._rules)

    @property
    def price_index(self) -> Mapping[InstrumentKey, PriceSeries]:
        return self._price_index

    def rule_for(self, symbol: str) -> ConversionRule:
        rule = self._rules.get(CurrencyCode(symbol))
        if rule is None:
            raise MissingRuleError(symbol)
        return rule

    def convert(self, date: dt.date, amount: Decimal, symbol: str) -> Decimal:
        """Convert ``amount`` of ``symbol`` using the prices known on ``date``.

        Each rule step multiplies or divides by the last price observed at or
        before ``date``. The result is rounded half-to-even to four decimal
        places. A zero price in a divide step raises the ``decimal`` module's
        ``ArithmeticError``.
        """
        if isinstance(date, dt.datetime):
            date = date.date()

        result = Decimal(amount)
        for step in self.rule_for(symbol):
            series = self._price_index.get(step.instrument_key)
            if series is None:
                raise MissingPriceSeriesError(instrument_key=step.instrument_key, symbol=symbol)

            price = series.price_at(date)
            if step.operator == ConversionOperator.MULTIPLY:
                result *= price
            else:
                result /= price

        return round_amount(result)

    @staticmethod
    def _compile_rules(currencies: Iterable[CurrencyDefinition]) -> Mapping[CurrencyCode, ConversionRule]:
        rules: dict[CurrencyCode, ConversionRule] = {}
        for currency in currencies:
            if not currency.code:
                continue
            code = CurrencyCode(currency.code)
            if code in rules:
                raise DuplicateCurrencyError(code)
            rules[code] = parse_rule(currency.raw_rule or "")
        return MappingProxyType(rules)


def round_amount(value: Decimal) -> Decimal:
    """Round half-to-even to four decimal places, whatever the magnitude of ``value``."""
    with localcontext() as ctx:
        # quantize needs room for every integer digit plus the four decimals.
        ctx.prec = max(ctx.prec, value.adjusted() + 5)
        return value.quantize(AMOUNT_QUANTUM, rounding=ROUND_HALF_EVEN)


__all__ = [
    "AMOUNT_QUANTUM",
    "CurrencyConverter",
    "DuplicateCurrencyError",
    "MissingPriceSeriesError",
    "MissingRuleError",
    "round_amount",
]
