"""Domain models and conversion logic for the ledger.

Rules, price series and the converter are plain in-memory structures built
from already-loaded records; loading them is left to ``importers``.
"""

__all__ = [
    "currency_converter",
    "ledger",
    "price_index",
    "pricing",
    "rule_parser",
]
