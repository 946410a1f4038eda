"""Trend classifier — short-window relative change of a score series.

Not a regression slope: the latest value is compared with the mean of the
points just before it. Robust on the two- and three-point series a new user
produces.
"""

from collections.abc import Sequence

from cogwell.engine.stats import average
from cogwell.schemas import TrendDirection


def classify_trend(
    values: Sequence[float], window: int = 3, threshold: float = 0.05
) -> TrendDirection:
    """Classifies the direction of a chronological score series.

    Args:
        values: Scores oldest first, ending with the newly computed one.
        window: How many trailing values to consider (latest included).
        threshold: Relative change that counts as movement (0.05 = 5%).

    Returns:
        "up", "down" or "flat". Flat when fewer than two values exist or
        the reference mean is zero.
    """
    recent = list(values)[-window:]
    if len(recent) < 2:
        return "flat"

    latest = recent[-1]
    reference = average(recent[:-1])
    if not reference:
        return "flat"

    delta = (latest - reference) / reference
    if delta >= threshold:
        return "up"
    if delta <= -threshold:
        return "down"
    return "flat"
