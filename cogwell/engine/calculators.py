"""Per-game metrics calculators — the scoring core.

Three calculators share one capability interface (MetricsCalculator):
normalize raw client JSON, derive a baseline from prior metrics, and compute
a metrics record from the normalized payload plus that baseline. The set is
closed and keyed by game_key in CALCULATORS; adding a fourth game is one new
subclass and one registry entry, with no edits elsewhere.

Scoring vocabulary shared by all games:
- Relative scores compare the current session with the personal baseline,
  x100, clamped to [score_floor, score_ceiling]. No baseline (first-ever
  session) scores a neutral 100.
- The traffic light is only judged against a *ready* baseline. While the
  baseline is building (or absent) every session is yellow, however good.
- trend is left "flat" here; the orchestrator fills it in from history.

Response times of 0 or None are excluded from medians — a zero RT is a
missing measurement, not an instant answer.

Tier 2 module: imports from cogwell.engine.* (Tier 1-2), cogwell.tuning
(Tier 1) and cogwell.schemas (Tier 1).
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import Any, ClassVar

from cogwell.engine.baseline import (
    derive_memory_baseline,
    derive_naming_baseline,
    derive_stroop_baseline,
)
from cogwell.engine.normalize import (
    SubmissionError,
    normalize_memory,
    normalize_naming,
    normalize_stroop,
)
from cogwell.engine.stats import clamp, median, percent, round_score
from cogwell.schemas import (
    MemoryBaseline,
    MemoryMetrics,
    MemoryPayload,
    MemorySession,
    NamingBaseline,
    NamingMetrics,
    NamingPayload,
    NamingSession,
    StroopBaseline,
    StroopMetrics,
    StroopPayload,
    StroopSession,
    TrafficLight,
)
from cogwell.tuning import DEFAULT_SCORING, ScoringConfig


# ---------------------------------------------------------------------------
# Capability interface
# ---------------------------------------------------------------------------


class MetricsCalculator(ABC):
    """Scoring capability for one game.

    Subclasses set game_key and session_model, and implement the three
    operations below. Instances are stateless apart from the injected
    ScoringConfig and are safe to share.
    """

    game_key: ClassVar[str]
    session_model: ClassVar[type]

    def __init__(self, config: ScoringConfig = DEFAULT_SCORING) -> None:
        self.config = config

    @abstractmethod
    def normalize(self, raw: Mapping[str, Any]) -> Any:
        """Turns raw client JSON into the game's payload model.

        Raises:
            SubmissionError: If the game's mandatory data is missing.
        """
        ...

    @abstractmethod
    def derive_baseline(self, history: Sequence[Any]) -> Any:
        """Derives the baseline from prior metrics (oldest first), or None."""
        ...

    @abstractmethod
    def compute_metrics(self, payload: Any, baseline: Any) -> Any:
        """Scores one session's payload against the (possibly None) baseline."""
        ...

    def relative_score(self, current: float, reference: float | None) -> float:
        """current / reference x100, clamped; 100 when there is no usable reference."""
        if reference is None or reference <= 0:
            return 100.0
        return clamp(
            current / reference * 100,
            self.config.score_floor,
            self.config.score_ceiling,
        )


def _speed_inputs(current_rt: float, baseline_rt: float | None) -> tuple[float, float | None]:
    """Maps RTs onto relative_score's (current, reference) for a faster-is-better ratio.

    Speed is baseline / current. Passing (baseline, current) to
    relative_score gives that ratio; an unmeasured current RT (0) is
    treated as equal to the baseline.
    """
    if baseline_rt is None or baseline_rt <= 0:
        return 0.0, None
    return baseline_rt, current_rt or baseline_rt


def _response_times(trials: Sequence[Any]) -> list[float]:
    return [t.response_time_ms for t in trials if t.response_time_ms]


# ---------------------------------------------------------------------------
# Stroop
# ---------------------------------------------------------------------------


class StroopCalculator(MetricsCalculator):
    """Colour-word interference: accuracy 60%, speed 40%."""

    game_key = "stroop"
    session_model = StroopSession

    def normalize(self, raw: Mapping[str, Any]) -> StroopPayload:
        return normalize_stroop(raw)

    def derive_baseline(self, history: Sequence[StroopMetrics]) -> StroopBaseline | None:
        return derive_stroop_baseline(history, self.config.baseline_window)

    def compute_metrics(
        self, payload: StroopPayload, baseline: StroopBaseline | None
    ) -> StroopMetrics:
        trials = payload.trials
        correct = sum(1 for t in trials if t.is_correct)
        accuracy_pct = percent(correct, len(trials))

        median_rt = median(_response_times(trials))
        congruent = _response_times([t for t in trials if t.is_congruent])
        incongruent = _response_times([t for t in trials if not t.is_congruent])
        median_congruent = median(congruent) if congruent else median_rt
        median_incongruent = median(incongruent) if incongruent else median_rt

        if baseline is not None:
            accuracy_score = self.relative_score(accuracy_pct, baseline.accuracy_pct)
            speed_score = self.relative_score(
                *_speed_inputs(median_rt, baseline.median_rt_ms)
            )
        else:
            accuracy_score = speed_score = 100.0

        composite = round_score(
            self.config.stroop_accuracy_weight * accuracy_score
            + self.config.stroop_speed_weight * speed_score
        )

        return StroopMetrics(
            trial_count=len(trials),
            correct_count=correct,
            accuracy_pct=accuracy_pct,
            median_rt_ms=median_rt,
            median_rt_congruent_ms=median_congruent,
            median_rt_incongruent_ms=median_incongruent,
            interference_ms=median_incongruent - median_congruent,
            accuracy_score=accuracy_score,
            speed_score=speed_score,
            composite_score=composite,
            traffic_light=self._traffic_light(accuracy_pct, median_rt, composite, baseline),
            baseline_status=baseline.status if baseline else "building",
            baseline_accuracy_pct=baseline.accuracy_pct if baseline else None,
            baseline_median_rt_ms=baseline.median_rt_ms if baseline else None,
        )

    def _traffic_light(
        self,
        accuracy_pct: float,
        median_rt: float,
        composite: float,
        baseline: StroopBaseline | None,
    ) -> TrafficLight:
        if baseline is None or baseline.status != "ready":
            return "yellow"

        accuracy_ratio = (
            accuracy_pct / baseline.accuracy_pct if baseline.accuracy_pct > 0 else 1.0
        )
        speed_ratio = (
            baseline.median_rt_ms / (median_rt or baseline.median_rt_ms)
            if baseline.median_rt_ms > 0
            else 1.0
        )

        if (
            accuracy_ratio >= self.config.green_ratio
            and speed_ratio >= self.config.green_ratio
            and composite >= self.config.green_score
        ):
            return "green"
        red = self.config.red_ratio
        if accuracy_ratio < red or speed_ratio < red:
            return "red"
        return "yellow"


# ---------------------------------------------------------------------------
# Memory
# ---------------------------------------------------------------------------


class MemoryCalculator(MetricsCalculator):
    """Word-list recall: immediate and delayed recall, equally weighted."""

    game_key = "memory"
    session_model = MemorySession

    def normalize(self, raw: Mapping[str, Any]) -> MemoryPayload:
        return normalize_memory(raw)

    def derive_baseline(self, history: Sequence[MemoryMetrics]) -> MemoryBaseline | None:
        return derive_memory_baseline(history, self.config.baseline_window)

    def compute_metrics(
        self, payload: MemoryPayload, baseline: MemoryBaseline | None
    ) -> MemoryMetrics:
        list_length = len(payload.word_list)
        immediate = next((a for a in payload.attempts if a.phase == "immediate"), None)
        delayed = next((a for a in payload.attempts if a.phase == "delayed"), None)

        immediate_pct = percent(immediate.recalled_count if immediate else 0, list_length)
        delayed_pct = percent(delayed.recalled_count, list_length) if delayed else None
        forgetting = max(0.0, immediate_pct - delayed_pct) if delayed_pct is not None else None

        if baseline is not None:
            # Sessions that skipped the delayed phase are scored on immediate
            # recall; a baseline without delayed data compares the session
            # with itself.
            delayed_current = delayed_pct if delayed_pct is not None else immediate_pct
            delayed_reference = (
                baseline.delayed_pct if baseline.delayed_pct is not None else delayed_current
            )
            immediate_score = self.relative_score(immediate_pct, baseline.immediate_pct)
            delayed_score = self.relative_score(delayed_current, delayed_reference)
        else:
            immediate_score = delayed_score = 100.0

        memory_score = round_score(0.5 * immediate_score + 0.5 * delayed_score)
        ready = baseline is not None and baseline.status == "ready"

        forgetting_flag = (
            ready
            and baseline.forgetting_rate_pct is not None
            and forgetting is not None
            and forgetting - baseline.forgetting_rate_pct > self.config.forgetting_flag_threshold
        )

        if not ready:
            light: TrafficLight = "yellow"
        elif memory_score >= self.config.green_score:
            light = "green"
        elif memory_score >= self.config.memory_yellow_score:
            light = "yellow"
        else:
            light = "red"

        return MemoryMetrics(
            list_length=list_length,
            immediate_recall_pct=immediate_pct,
            delayed_recall_pct=delayed_pct,
            forgetting_rate_pct=forgetting,
            immediate_score=immediate_score,
            delayed_score=delayed_score,
            memory_score=memory_score,
            forgetting_flag=bool(forgetting_flag),
            traffic_light=light,
            baseline_status=baseline.status if baseline else "building",
            baseline_immediate_pct=baseline.immediate_pct if baseline else None,
            baseline_delayed_pct=baseline.delayed_pct if baseline else None,
            baseline_forgetting_rate_pct=baseline.forgetting_rate_pct if baseline else None,
        )


# ---------------------------------------------------------------------------
# Naming
# ---------------------------------------------------------------------------


class NamingCalculator(MetricsCalculator):
    """Picture naming: accuracy 70%, speed 30% — correctness over speed."""

    game_key = "naming"
    session_model = NamingSession

    def normalize(self, raw: Mapping[str, Any]) -> NamingPayload:
        return normalize_naming(raw)

    def derive_baseline(self, history: Sequence[NamingMetrics]) -> NamingBaseline | None:
        return derive_naming_baseline(history, self.config.baseline_window)

    def compute_metrics(
        self, payload: NamingPayload, baseline: NamingBaseline | None
    ) -> NamingMetrics:
        trials = payload.trials
        correct = sum(1 for t in trials if t.is_correct)
        accuracy_pct = percent(correct, len(trials))
        median_rt = median(_response_times(trials))

        if baseline is not None:
            accuracy_score = self.relative_score(accuracy_pct, baseline.accuracy_pct)
            speed_score = self.relative_score(
                *_speed_inputs(median_rt, baseline.median_rt_ms)
            )
        else:
            accuracy_score = speed_score = 100.0

        naming_score = round_score(
            self.config.naming_accuracy_weight * accuracy_score
            + self.config.naming_speed_weight * speed_score
        )

        if baseline is None or baseline.status != "ready":
            light: TrafficLight = "yellow"
        elif min(accuracy_score, speed_score) >= self.config.green_score:
            light = "green"
        elif accuracy_score >= self.config.naming_yellow_accuracy:
            light = "yellow"
        else:
            light = "red"

        return NamingMetrics(
            trial_count=len(trials),
            correct_count=correct,
            hints_used=sum(1 for t in trials if t.used_hint),
            accuracy_pct=accuracy_pct,
            median_rt_ms=median_rt,
            accuracy_score=accuracy_score,
            speed_score=speed_score,
            naming_score=naming_score,
            traffic_light=light,
            baseline_status=baseline.status if baseline else "building",
            baseline_accuracy_pct=baseline.accuracy_pct if baseline else None,
            baseline_median_rt_ms=baseline.median_rt_ms if baseline else None,
        )


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

CALCULATORS: dict[str, type[MetricsCalculator]] = {
    StroopCalculator.game_key: StroopCalculator,
    MemoryCalculator.game_key: MemoryCalculator,
    NamingCalculator.game_key: NamingCalculator,
}


def get_calculator(
    game_key: str, config: ScoringConfig = DEFAULT_SCORING
) -> MetricsCalculator:
    """Resolves a game key to its calculator.

    Args:
        game_key: One of the keys in CALCULATORS.
        config: Tuning injected into the calculator.

    Returns:
        A calculator instance bound to config.

    Raises:
        SubmissionError: UNSUPPORTED_GAME for any other key.
    """
    calculator_cls = CALCULATORS.get(game_key)
    if calculator_cls is None:
        valid = ", ".join(sorted(CALCULATORS))
        raise SubmissionError(
            "UNSUPPORTED_GAME",
            f"Unsupported game key: {game_key!r}. Valid options: {valid}",
        )
    return calculator_cls(config)
