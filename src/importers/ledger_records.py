"""CSV loaders for the ledger's currency and price sheets.

Currencies: ``code,rule``.
Prices: ``date,symbol,currency,provider,price`` with ISO dates; blank cells
are read as missing values and such rows are later ignored by the converter.
"""

from __future__ import annotations

import logging
from csv import DictReader
from pathlib import Path
from typing import Any, Iterable, TypeVar

from pydantic import BaseModel, ValidationError

from domain.ledger import CurrencyDefinition, LedgerError, PriceObservation

logger = logging.getLogger(__name__)

CURRENCY_COLUMNS = frozenset({"code", "rule"})
PRICE_COLUMNS = frozenset({"date", "symbol", "currency", "price"})

_Record = TypeVar("_Record", bound=BaseModel)


class LedgerRecordError(LedgerError):
    def __init__(self, message: str, *, path: Path, line: int | None = None) -> None:
        self.path = path
        self.line = line
        location = f"{path}:{line}" if line is not None else str(path)
        super().__init__(f"{location}: {message}")


def load_currencies(csv_path: Path) -> list[CurrencyDefinition]:
    rows = [
        (line, {"code": row.get("code"), "raw_rule": row.get("rule")})
        for line, row in _read_rows(csv_path, CURRENCY_COLUMNS)
    ]
    return _validate_rows(csv_path, rows, CurrencyDefinition)


def load_prices(csv_path: Path) -> list[PriceObservation]:
    rows = _read_rows(csv_path, PRICE_COLUMNS)
    return _validate_rows(csv_path, rows, PriceObservation)


def _validate_rows(
    csv_path: Path,
    rows: Iterable[tuple[int, dict[str, Any]]],
    model: type[_Record],
) -> list[_Record]:
    records: list[_Record] = []
    for line, row in rows:
        try:
            records.append(model.model_validate(row))
        except ValidationError as err:
            raise LedgerRecordError(f"invalid {model.__name__}: {err}", path=csv_path, line=line) from err
    return records


def _read_rows(csv_path: Path, required: frozenset[str]) -> list[tuple[int, dict[str, Any]]]:
    with csv_path.open(mode="r", encoding="utf-8", newline="") as handle:
        reader = DictReader(handle)
        if reader.fieldnames is None:
            raise LedgerRecordError("file is empty or missing headers", path=csv_path)

        missing = required - {name.strip() for name in reader.fieldnames}
        if missing:
            raise LedgerRecordError(f"missing required columns: {', '.join(sorted(missing))}", path=csv_path)

        rows: list[tuple[int, dict[str, Any]]] = []
        for row in reader:
            cleaned = {
                key.strip(): value.strip() if isinstance(value, str) else value for key, value in row.items() if key
            }
            rows.append((reader.line_num, cleaned))

    logger.info("Loaded %d rows from %s", len(rows), csv_path)
    return rows


__all__ = ["LedgerRecordError", "load_currencies", "load_prices"]
