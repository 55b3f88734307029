"""Unit and Format Normalizers
===========================

Pure conversions for on-chain values: hex quantities, wei amounts, percentage
fields and block timestamps. No I/O.

Wei amounts go through ``int`` and an 80-digit ``Decimal`` context, so values
up to 2**256 convert without the float precision loss that starts at 2**53.
"""

from decimal import Decimal, ROUND_HALF_UP, localcontext
from typing import Iterable, Union

__all__ = [
    "WEI_DECIMALS",
    "hex_to_int",
    "wei_to_token",
    "wei_to_whole_tokens",
    "wei_to_gwei",
    "clamp_percentage",
    "parse_percentage",
    "block_time_span",
    "round_to",
]

WEI_DECIMALS = 18

# 2**256 has 78 digits
_WEI_PRECISION = 80

Quantity = Union[str, int]


def hex_to_int(value: Quantity) -> int:
    """Parse a JSON-RPC quantity.

    Accepts ``0x``-prefixed hex strings, plain decimal strings and ints.

    Raises:
        ValueError: If the value is empty, negative or not a number
    """
    if isinstance(value, bool):
        raise ValueError(f"Not a quantity: {value!r}")
    if isinstance(value, int):
        number = value
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValueError("Empty quantity")
        if text.lower().startswith("0x"):
            number = int(text, 16) if len(text) > 2 else 0
        else:
            number = int(text, 10)
    else:
        raise ValueError(f"Not a quantity: {value!r}")

    if number < 0:
        raise ValueError(f"Negative quantity: {value!r}")
    return number


def wei_to_token(value: Quantity, decimals: int = WEI_DECIMALS) -> Decimal:
    """Convert a wei amount to token units, exactly.

    >>> wei_to_token("0xDE0B6B3A7640000")
    Decimal('1')
    """
    raw = hex_to_int(value)
    with localcontext() as ctx:
        ctx.prec = _WEI_PRECISION
        amount = Decimal(raw) / (Decimal(10) ** decimals)
    return amount


def wei_to_whole_tokens(value: Quantity, decimals: int = WEI_DECIMALS) -> int:
    """Floor-divide a wei amount down to whole tokens."""
    return hex_to_int(value) // (10 ** decimals)


def wei_to_gwei(value: Quantity) -> float:
    return float(Decimal(hex_to_int(value)) / Decimal(10 ** 9))


def clamp_percentage(value: float) -> float:
    return min(max(value, 0.0), 100.0)


def parse_percentage(value: Quantity) -> float:
    """Parse a percentage that may arrive hex-encoded (``"0x32"`` is 50).

    The result is clamped to 0..100.
    """
    if isinstance(value, str) and not value.strip().lower().startswith("0x"):
        percentage = float(value)
    else:
        percentage = float(hex_to_int(value))
    return clamp_percentage(percentage)


def block_time_span(timestamps: Iterable[Quantity]) -> int:
    """Seconds between the oldest and newest timestamp; 0 for fewer than two."""
    values = [hex_to_int(ts) for ts in timestamps]
    if len(values) < 2:
        return 0
    return max(values) - min(values)


def round_to(value: Union[float, Decimal, int], places: int = 0) -> float:
    """Round half-up (``round()`` rounds half to even)."""
    quantum = Decimal(1).scaleb(-places)
    rounded = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    return float(rounded)
