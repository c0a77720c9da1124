from __future__ import annotations

import datetime as dt
import logging
from bisect import bisect_right
from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal
from types import MappingProxyType
from typing import Iterable, Mapping

from .ledger import InstrumentKey, LedgerError, PriceObservation

logger = logging.getLogger(__name__)


class DateOutOfRangeError(LedgerError):
    def __init__(self, *, instrument_key: str, date: dt.date, first_date: dt.date) -> None:
        self.instrument_key = instrument_key
        self.date = date
        self.first_date = first_date
        super().__init__(
            f"Can't find '{instrument_key}' price on {date.isoformat()}; "
            f"series starts on {first_date.isoformat()}"
        )


@dataclass(frozen=True)
class PriceSeries:
    """Prices of one instrument, ascending by date.

    Dates may repeat; repeated dates keep the order in which they were loaded.
    """

    instrument_key: InstrumentKey
    dates: tuple[dt.date, ...]
    prices: tuple[Decimal, ...]

    def __post_init__(self) -> None:
        if not self.dates:
            raise ValueError("PriceSeries must have at least one entry")
        if len(self.dates) != len(self.prices):
            raise ValueError("PriceSeries dates and prices must have the same length")

    @property
    def first_date(self) -> dt.date:
        return self.dates[0]

    @property
    def last_date(self) -> dt.date:
        return self.dates[-1]

    def price_at(self, date: dt.date) -> Decimal:
        """Return the last known price at or before ``date``.

        Prices are never interpolated. When several entries share the matching
        date, the one loaded last wins.
        """
        idx = bisect_right(self.dates, date)
        if idx == 0:
            raise DateOutOfRangeError(instrument_key=self.instrument_key, date=date, first_date=self.first_date)
        return self.prices[idx - 1]

    def __len__(self) -> int:
        return len(self.dates)


def build_price_index(observations: Iterable[PriceObservation]) -> Mapping[InstrumentKey, PriceSeries]:
    groups: dict[InstrumentKey, list[tuple[dt.date, Decimal]]] = defaultdict(list)
    dropped = 0
    for observation in observations:
        if not observation.is_complete:
            dropped += 1
            continue
        groups[observation.instrument_key].append((observation.date, observation.price))  # type: ignore[arg-type]

    if dropped:
        logger.debug("Skipping %d incomplete price observations", dropped)

    index: dict[InstrumentKey, PriceSeries] = {}
    for key, group in groups.items():
        # sorted() is stable, so same-day observations keep their input order.
        ordered = sorted(group, key=lambda entry: entry[0])
        index[key] = PriceSeries(
            instrument_key=key,
            dates=tuple(entry[0] for entry in ordered),
            prices=tuple(entry[1] for entry in ordered),
        )

    logger.debug("Indexed %d price series", len(index))
    return MappingProxyType(index)


__all__ = ["DateOutOfRangeError", "PriceSeries", "build_price_index"]
