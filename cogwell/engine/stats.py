"""Statistics primitives shared by every game calculator.

Every function here is total: empty, single-element and all-non-finite
inputs have a defined result, so no scoring path can raise on arithmetic.
Non-numeric items (None, bools, strings) are ignored rather than coerced.

Tier 1 leaf — imports only stdlib.
"""

import math
from collections.abc import Iterable


def _finite(values: Iterable[object]) -> list[float]:
    """Returns the finite numeric subset of values as floats."""
    out: list[float] = []
    for value in values:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            continue
        if math.isfinite(value):
            out.append(float(value))
    return out


def clamp(value: float, lo: float, hi: float) -> float:
    """Limits value to the closed interval [lo, hi]."""
    return min(hi, max(lo, value))


def percent(part: float, total: float) -> float:
    """Returns part as a percentage of total, 0 when total is not positive."""
    if total <= 0:
        return 0.0
    return part / total * 100


def median(values: Iterable[object]) -> float:
    """Median of the finite values, 0 when there are none."""
    data = sorted(_finite(values))
    if not data:
        return 0.0
    mid = len(data) // 2
    if len(data) % 2 == 0:
        lo, hi = data[mid - 1], data[mid]
        return lo + (hi - lo) / 2
    return data[mid]


def average(values: Iterable[object]) -> float:
    """Arithmetic mean of the finite values, 0 when there are none."""
    data = _finite(values)
    if not data:
        return 0.0
    total = sum(data)
    if math.isfinite(total):
        return total / len(data)
    # Overflowed; scale first.
    return sum(value / len(data) for value in data)


def average_or_none(values: Iterable[object]) -> float | None:
    """Mean of the finite values, or None when there are none.

    Used where absence is a signal (e.g. a baseline window in which no
    session ran the delayed memory phase).
    """
    data = _finite(values)
    if not data:
        return None
    return average(data)


def round_score(value: float) -> float:
    """Rounds a score to two decimals for storage and display."""
    return round(value, 2)
