"""Numeric coercion helpers.

Upstream sources report prices, supplies and market caps as numbers,
decimal strings, or not at all. All coercion goes through
``parse_decimal_or_zero``: 0 is the "unknown" sentinel, never an error.
"""

import math
from decimal import Decimal, InvalidOperation
from typing import Any


def parse_decimal_or_zero(value: Any) -> float:
    """
    Coerce a number or decimal string to a finite float.

    Args:
        value: int, float, Decimal, numeric string, or anything else

    Returns:
        The float value, or 0.0 when the input is missing, unparseable,
        NaN or infinite
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float, Decimal)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip().replace(",", "")
        if not text:
            return 0.0
        try:
            number = float(text)
        except ValueError:
            return 0.0
    else:
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def parse_non_negative(value: Any) -> float:
    """Like ``parse_decimal_or_zero`` but clamps negatives to 0."""
    return max(parse_decimal_or_zero(value), 0.0)


def parse_raw_amount(value: Any) -> int:
    """Parse an integer smallest-unit amount; 0 when unparseable."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    try:
        return int(Decimal(str(value).strip()))
    except (InvalidOperation, ValueError):
        return 0


def format_units(raw: int, decimals: int) -> str:
    """
    Render a smallest-unit integer as a human-readable decimal string.

    Formula: raw / 10**decimals, without float rounding. Trailing zeros
    are dropped ("1.5", "100", "0.000001").
    """
    if decimals <= 0:
        return str(raw)
    negative = raw < 0
    digits = str(abs(raw)).rjust(decimals + 1, "0")
    whole, fraction = digits[:-decimals], digits[-decimals:].rstrip("0")
    text = f"{whole}.{fraction}" if fraction else whole
    return f"-{text}" if negative else text


def finite_or_zero(value: float) -> float:
    """Replace NaN and infinities with 0."""
    if math.isnan(value) or math.isinf(value):
        return 0.0
    return value


def parse_decimals(value: Any, default: int = 18) -> int:
    """Token decimals; ``default`` when missing or unparseable."""
    if value is None or isinstance(value, bool):
        return default
    try:
        parsed = int(str(value).strip())
    except ValueError:
        return default
    return parsed if parsed >= 0 else default
