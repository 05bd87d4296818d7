"""
Range normalization of converted setup values for bar display.
"""

import math
import re
from typing import Any, Optional

from .metadata import get_param_range

_NUMBER = re.compile(r"[-+]?(?:\d+(?:\.\d+)?|\.\d+)")


def format_value(value: Any) -> str:
    """
    Format a converted value for display.

    Integers are shown as-is, other numbers with up to 4 decimals and no
    trailing zeros, booleans as Yes/No. Missing or structured values
    render as "-".
    """
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            return "-"
        if value.is_integer():
            return str(int(value))
        text = f"{value:.4f}".rstrip("0").rstrip(".")
        return "0" if text in ("-0", "") else text
    if isinstance(value, str):
        return value
    return "-"


def parse_numeric_value(value: str) -> Optional[float]:
    """
    Extract the first number from a display string.

    Commas are read as decimal separators, so "1,5 mm" parses as 1.5.

    Returns:
        The parsed number, or None if the string holds no number.
    """
    if not isinstance(value, str):
        return None
    match = _NUMBER.search(value.replace(",", "."))
    if not match:
        return None
    try:
        parsed = float(match.group(0))
    except ValueError:
        return None
    return parsed if math.isfinite(parsed) else None


def normalize_to_percent(label: str, display_value: str) -> Optional[float]:
    """
    Position a display value inside its parameter range.

    Args:
        label: Parameter label (e.g., "PSI").
        display_value: Formatted value, possibly with units (e.g., "27.5 psi").

    Returns:
        Percentage clamped to [0, 100], or None when no usable range or
        number is found.
    """
    if not isinstance(display_value, str):
        return None

    param_range = get_param_range(label, display_value)
    if param_range is None or param_range.max <= param_range.min:
        return None

    numeric = parse_numeric_value(display_value)
    if numeric is None:
        return None

    percent = (numeric - param_range.min) / (param_range.max - param_range.min) * 100
    return max(0.0, min(100.0, percent))
