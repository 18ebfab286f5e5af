"""Number parsing utilities for raw field values."""

import math
import re
from typing import Any, Optional

# Optional sign, digits with optional fraction (or a bare fraction), optional exponent
_RE_LEADING_FLOAT = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def parse_leading_float(value: Any) -> Optional[float]:
    """Parse the numeric prefix of a value.

    Mirrors how browsers read numbers out of form inputs:
    - Numbers pass through: 3 -> 3.0, 2.5 -> 2.5
    - Leading whitespace is ignored: "  4" -> 4.0
    - Trailing text is dropped: "12px" -> 12.0, "3.5 kg" -> 3.5
    - Booleans and text without a numeric prefix are not numbers

    Args:
        value: The value to parse (string, int, float, bool, or None)

    Returns:
        Parsed float, or None if the value has no numeric prefix or is NaN
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        number = float(value)
        return None if math.isnan(number) else number

    if not isinstance(value, str):
        return None

    m = _RE_LEADING_FLOAT.match(value.lstrip())
    if not m:
        return None

    try:
        return float(m.group(0))
    except ValueError:
        return None


def format_number(number: float) -> str:
    """Render a float as expression text.

    Integral values are written without a fractional part so that
    ``3.0`` substitutes as ``3``. Very large or small magnitudes keep
    Python's exponent notation.
    """
    if math.isfinite(number) and number.is_integer() and abs(number) < 1e16:
        return str(int(number))
    return repr(number)
