from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from decimal import Decimal
from enum import StrEnum
from typing import NewType

from pydantic import BaseModel, ConfigDict, field_validator

CurrencyCode = NewType("CurrencyCode", str)
InstrumentKey = NewType("InstrumentKey", str)

# Characters that terminate a symbol, currency or provider name in a rule.
NAME_DELIMITERS = frozenset("(),/:")


class LedgerError(Exception):
    """Base class for conversion failures raised by the domain."""


class ConversionOperator(StrEnum):
    MULTIPLY = "*"
    DIVIDE = "/"


@dataclass(frozen=True)
class ConversionStep:
    operator: ConversionOperator
    instrument_key: InstrumentKey


ConversionRule = tuple[ConversionStep, ...]


class CurrencyDefinition(BaseModel):
    """A tracked currency and the rule converting it to the ledger currency.

    A missing rule behaves like the empty rule, i.e. identity conversion.
    """

    model_config = ConfigDict(frozen=True)

    code: str | None = None
    raw_rule: str | None = None

    @field_validator("code")
    @classmethod
    def _validate_code(cls, value: str | None) -> str | None:
        if value and any(char in NAME_DELIMITERS for char in value):
            raise ValueError(f"currency code must not contain any of {''.join(sorted(NAME_DELIMITERS))!r}")
        return value


class PriceObservation(BaseModel):
    """A single price point as loaded from the ledger's price sheet.

    Every field is optional because source rows are often partially filled.
    Only complete observations take part in conversions.
    """

    model_config = ConfigDict(frozen=True)

    symbol: str | None = None
    currency: str | None = None
    provider: str | None = None
    date: dt.date | None = None
    price: Decimal | None = None

    @field_validator("symbol", "currency", "provider", "date", "price", mode="before")
    @classmethod
    def _blank_to_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def is_complete(self) -> bool:
        return bool(self.symbol) and bool(self.currency) and self.date is not None and self.price is not None

    @property
    def instrument_key(self) -> InstrumentKey:
        return instrument_key(self.symbol or "", self.currency or "", self.provider)


def instrument_key(symbol: str, currency: str, provider: str | None = None) -> InstrumentKey:
    return InstrumentKey(f"{symbol}/{currency}:{provider or ''}".rstrip(":"))


__all__ = [
    "ConversionOperator",
    "ConversionRule",
    "ConversionStep",
    "CurrencyCode",
    "CurrencyDefinition",
    "InstrumentKey",
    "LedgerError",
    "NAME_DELIMITERS",
    "PriceObservation",
    "instrument_key",
]
