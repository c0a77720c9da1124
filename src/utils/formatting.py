from __future__ import annotations

from decimal import Decimal


def format_amount(value: Decimal, places: int = 4) -> str:
    # Fixed-point output; str(Decimal) switches to exponents for small values.
    quantized = value.quantize(Decimal(1).scaleb(-places))
    return f"{quantized:.{places}f}"
