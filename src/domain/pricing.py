from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Protocol


class CurrencyConverterProtocol(Protocol):
    """Converts an amount of ``symbol`` into the ledger currency as of ``date``."""

    def convert(self, date: dt.date, amount: Decimal, symbol: str) -> Decimal: ...
