"""Baseline deriver — rolling personal baselines from prior sessions' metrics.

"Normal" is defined per user and per game: the average of the most recent
window of already-scored sessions. Inputs are prior metrics records in
chronological order (oldest first), never raw trials.

A first-ever session has no baseline at all (None). Until the window is
full the baseline is "building": its averages are still reported, but the
calculators treat it permissively when classifying the traffic light.

Tier 2 module: imports from cogwell.engine.stats and cogwell.schemas.
"""

from collections.abc import Sequence

from cogwell.engine.stats import average, average_or_none
from cogwell.schemas import (
    BaselineStatus,
    MemoryBaseline,
    MemoryMetrics,
    NamingBaseline,
    NamingMetrics,
    StroopBaseline,
    StroopMetrics,
)


def _status(window_len: int, window: int) -> BaselineStatus:
    return "ready" if window_len >= window else "building"


def derive_stroop_baseline(
    history: Sequence[StroopMetrics], window: int
) -> StroopBaseline | None:
    """Averages accuracy and the three median RTs over the last window sessions.

    Args:
        history: Prior Stroop metrics, oldest first.
        window: Number of most recent sessions that make a full baseline.

    Returns:
        The baseline snapshot, or None when there is no history.
    """
    if not history:
        return None
    recent = list(history)[-window:]
    return StroopBaseline(
        accuracy_pct=average(m.accuracy_pct for m in recent),
        median_rt_ms=average(m.median_rt_ms for m in recent),
        median_rt_congruent_ms=average(m.median_rt_congruent_ms for m in recent),
        median_rt_incongruent_ms=average(m.median_rt_incongruent_ms for m in recent),
        session_count=len(recent),
        status=_status(len(recent), window),
    )


def derive_memory_baseline(
    history: Sequence[MemoryMetrics], window: int
) -> MemoryBaseline | None:
    """Averages recall percentages over the last window sessions.

    Delayed recall and forgetting rate are averaged only over sessions that
    ran the delayed phase; both stay None if none in the window did.
    """
    if not history:
        return None
    recent = list(history)[-window:]
    return MemoryBaseline(
        immediate_pct=average(m.immediate_recall_pct for m in recent),
        delayed_pct=average_or_none(m.delayed_recall_pct for m in recent),
        forgetting_rate_pct=average_or_none(m.forgetting_rate_pct for m in recent),
        session_count=len(recent),
        status=_status(len(recent), window),
    )


def derive_naming_baseline(
    history: Sequence[NamingMetrics], window: int
) -> NamingBaseline | None:
    if not history:
        return None
    recent = list(history)[-window:]
    return NamingBaseline(
        accuracy_pct=average(m.accuracy_pct for m in recent),
        median_rt_ms=average(m.median_rt_ms for m in recent),
        session_count=len(recent),
        status=_status(len(recent), window),
    )
