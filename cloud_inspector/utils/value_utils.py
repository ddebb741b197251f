"""
Helpers for the dynamic values held in ``Resource.properties``.

Property values are plain JSON-like Python values: None, bool, int, float,
str, lists and string-keyed dicts (sources occasionally add datetimes).
These helpers do the pattern matching over those shapes so the filter and
drift engines never rely on reference identity or ``repr`` quirks.
"""

import json
import math
import re
from collections.abc import Mapping
from datetime import date, datetime
from typing import Any, Optional

# Sentinel for "path does not resolve", distinct from an explicit None value
MISSING = object()

# Plain decimal/scientific notation; rejects "1_000" which float() would accept
_FLOAT_PATTERN = re.compile(
    r"^[+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|inf|infinity|nan)$",
    re.IGNORECASE,
)


def is_number(value: Any) -> bool:
    """True for int and float values; bools are not numbers here."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def to_float(value: Any) -> Optional[float]:
    """
    Coerce a value to float for numeric comparison.

    Numbers convert directly and numeric strings are parsed. Everything
    else (bools, mappings, sequences, non-numeric strings) returns None.
    """
    if is_number(value):
        return float(value)
    if isinstance(value, str) and _FLOAT_PATTERN.match(value):
        return float(value)
    return None


def render_value(value: Any) -> str:
    """
    Render a dynamic value as a string for text comparisons.

    Integral floats render without a fractional part so that 15 and 15.0
    compare equal; bools render lowercase; containers render as compact JSON.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer() and abs(value) < 1e15:
            return str(int(value))
        return repr(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (Mapping, list, tuple)):
        return json.dumps(value, default=str, separators=(",", ":"))
    return str(value)


def resolve_path(properties: Mapping, path: str) -> Any:
    """
    Walk a dotted path through nested mappings.

    Each segment indexes one mapping level. A missing key or a non-mapping
    intermediate value returns MISSING.

    Args:
        properties: Root mapping (usually ``Resource.properties``)
        path: Dotted path such as ``"network.vpc_id"``

    Returns:
        The value at the path, or MISSING
    """
    current: Any = properties
    for segment in path.split("."):
        if not isinstance(current, Mapping) or segment not in current:
            return MISSING
        current = current[segment]
    return current


def deep_equal(left: Any, right: Any) -> bool:
    """
    Structural equality for dynamic values.

    Mappings compare by key set and per-key value regardless of order;
    sequences compare element-wise in order; bools never equal numbers;
    ints equal floats of the same value; NaN equals NaN.
    """
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right

    if is_number(left) or is_number(right):
        if not (is_number(left) and is_number(right)):
            return False
        if isinstance(left, float) and isinstance(right, float) and math.isnan(left):
            return math.isnan(right)
        return left == right

    if isinstance(left, Mapping) or isinstance(right, Mapping):
        if not (isinstance(left, Mapping) and isinstance(right, Mapping)):
            return False
        if left.keys() != right.keys():
            return False
        return all(deep_equal(left[key], right[key]) for key in left)

    if isinstance(left, (list, tuple)) or isinstance(right, (list, tuple)):
        if not (isinstance(left, (list, tuple)) and isinstance(right, (list, tuple))):
            return False
        if len(left) != len(right):
            return False
        return all(deep_equal(a, b) for a, b in zip(left, right))

    if type(left) is not type(right) and not (
        isinstance(left, str) and isinstance(right, str)
    ):
        return False

    return left == right
