"""Tests for cogwell.engine.calculators — per-game scoring and traffic lights."""

import math

import pytest

from cogwell.engine.calculators import (
    CALCULATORS,
    MemoryCalculator,
    MetricsCalculator,
    NamingCalculator,
    StroopCalculator,
    get_calculator,
)
from cogwell.engine.normalize import SubmissionError
from cogwell.schemas import (
    MemoryBaseline,
    MemorySession,
    NamingBaseline,
    StroopBaseline,
    StroopSession,
)
from cogwell.tests.conftest import build_memory_body, build_naming_body, build_stroop_body
from cogwell.tuning import ScoringConfig


def _stroop_baseline(accuracy: float = 100, rt: float = 500, status: str = "ready") -> StroopBaseline:
    return StroopBaseline(
        accuracy_pct=accuracy, median_rt_ms=rt, median_rt_congruent_ms=rt,
        median_rt_incongruent_ms=rt, session_count=3, status=status,
    )


def _memory_baseline(
    immediate: float = 100,
    delayed: float | None = 100,
    forgetting: float | None = 0,
    status: str = "ready",
) -> MemoryBaseline:
    return MemoryBaseline(
        immediate_pct=immediate, delayed_pct=delayed, forgetting_rate_pct=forgetting,
        session_count=3, status=status,
    )


def _naming_baseline(accuracy: float = 100, rt: float = 1200, status: str = "ready") -> NamingBaseline:
    return NamingBaseline(accuracy_pct=accuracy, median_rt_ms=rt, session_count=3, status=status)


# ---------------------------------------------------------------------------
# Registry and shared behaviour
# ---------------------------------------------------------------------------


class TestRegistry:
    def test_closed_set_of_games(self) -> None:
        assert set(CALCULATORS) == {"stroop", "memory", "naming"}

    def test_get_calculator_binds_config(self) -> None:
        config = ScoringConfig(baseline_window=5)
        calculator = get_calculator("memory", config)
        assert isinstance(calculator, MemoryCalculator)
        assert calculator.config is config

    def test_session_models(self) -> None:
        assert StroopCalculator.session_model is StroopSession
        assert MemoryCalculator.session_model is MemorySession

    def test_unsupported_game_lists_valid_options(self) -> None:
        with pytest.raises(SubmissionError) as exc_info:
            get_calculator("sudoku")
        assert exc_info.value.code == "UNSUPPORTED_GAME"
        assert "memory, naming, stroop" in exc_info.value.message

    def test_interface_is_abstract(self) -> None:
        with pytest.raises(TypeError):
            MetricsCalculator()  # type: ignore[abstract]


class TestRelativeScore:
    @pytest.mark.parametrize(
        "current, reference, expected",
        [(80, 100, 80), (50, 100, 60), (200, 100, 130), (80, None, 100), (80, 0, 100)],
    )
    def test_clamped_ratio(self, current, reference, expected) -> None:
        assert StroopCalculator().relative_score(current, reference) == expected

    def test_clamp_bounds_follow_config(self) -> None:
        calculator = StroopCalculator(ScoringConfig(score_ceiling=150))
        assert calculator.relative_score(200, 100) == 150


# ---------------------------------------------------------------------------
# Stroop
# ---------------------------------------------------------------------------


class TestStroopCalculator:
    def _score(self, body, baseline=None, config=None):
        calculator = StroopCalculator(config or ScoringConfig())
        return calculator.compute_metrics(calculator.normalize(body), baseline)

    def test_first_session_is_neutral_and_yellow(self) -> None:
        metrics = self._score(build_stroop_body(total=10, correct=8))
        assert metrics.accuracy_pct == 80
        assert metrics.accuracy_score == 100
        assert metrics.speed_score == 100
        assert metrics.composite_score == 100
        assert metrics.traffic_light == "yellow"
        assert metrics.baseline_status == "building"
        assert metrics.baseline_accuracy_pct is None
        assert metrics.trend == "flat"

    def test_improvement_over_ready_baseline_is_green(self) -> None:
        metrics = self._score(
            build_stroop_body(total=10, rt_ms=500), _stroop_baseline(accuracy=80, rt=600)
        )
        assert metrics.accuracy_score == 125
        assert metrics.speed_score == pytest.approx(120)
        assert metrics.composite_score == 123.0
        assert metrics.traffic_light == "green"
        assert metrics.baseline_accuracy_pct == 80
        assert metrics.baseline_median_rt_ms == 600

    def test_accuracy_score_clamped_at_ceiling(self) -> None:
        metrics = self._score(build_stroop_body(), _stroop_baseline(accuracy=50))
        assert metrics.accuracy_score == 130
        assert metrics.composite_score == 118.0

    def test_accuracy_drop_is_red(self) -> None:
        metrics = self._score(build_stroop_body(total=10, correct=7), _stroop_baseline())
        assert metrics.accuracy_score == 70
        assert metrics.composite_score == 82.0
        assert metrics.traffic_light == "red"

    def test_absurd_response_times_leave_scores_finite(self) -> None:
        metrics = self._score(build_stroop_body(total=4, rt_ms=1e308), _stroop_baseline())
        values = [
            metrics.median_rt_ms, metrics.median_rt_congruent_ms,
            metrics.median_rt_incongruent_ms, metrics.interference_ms,
            metrics.speed_score, metrics.composite_score,
        ]
        assert all(math.isfinite(value) for value in values)
        assert metrics.median_rt_ms == 0

    def test_slowdown_is_red(self) -> None:
        metrics = self._score(build_stroop_body(rt_ms=700), _stroop_baseline(rt=500))
        assert metrics.traffic_light == "red"

    def test_small_dip_is_yellow(self) -> None:
        metrics = self._score(build_stroop_body(total=10, correct=9), _stroop_baseline())
        assert metrics.composite_score == 94.0
        assert metrics.traffic_light == "yellow"

    def test_traffic_light_thresholds_follow_config(self) -> None:
        config = ScoringConfig(green_ratio=0.9, green_score=90.0)
        metrics = self._score(
            build_stroop_body(total=10, correct=9), _stroop_baseline(), config=config
        )
        assert metrics.composite_score == 94.0
        assert metrics.traffic_light == "green"

    def test_building_baseline_is_always_yellow(self) -> None:
        metrics = self._score(
            build_stroop_body(), _stroop_baseline(accuracy=50, status="building")
        )
        assert metrics.composite_score == 118.0
        assert metrics.traffic_light == "yellow"
        assert metrics.baseline_status == "building"

    def test_interference_from_congruency_split(self) -> None:
        body = {
            "trials": [
                {"isCorrect": True, "isCongruent": True, "responseTimeMs": 400},
                {"isCorrect": True, "isCongruent": True, "responseTimeMs": 420},
                {"isCorrect": True, "isCongruent": False, "responseTimeMs": 600},
                {"isCorrect": True, "isCongruent": False, "responseTimeMs": 640},
            ]
        }
        metrics = self._score(body)
        assert metrics.median_rt_ms == 510
        assert metrics.median_rt_congruent_ms == 410
        assert metrics.median_rt_incongruent_ms == 620
        assert metrics.interference_ms == 210

    def test_missing_congruency_class_falls_back_to_overall_median(self) -> None:
        metrics = self._score(build_stroop_body(congruent_every=1))
        assert metrics.median_rt_incongruent_ms == metrics.median_rt_ms
        assert metrics.interference_ms == 0

    def test_zero_response_times_are_not_measurements(self) -> None:
        metrics = self._score(build_stroop_body(rt_ms=0), _stroop_baseline(rt=500))
        assert metrics.median_rt_ms == 0
        assert metrics.speed_score == 100

    def test_custom_blend_weights(self) -> None:
        config = ScoringConfig(stroop_accuracy_weight=1.0, stroop_speed_weight=0.0)
        metrics = self._score(
            build_stroop_body(rt_ms=400), _stroop_baseline(rt=500), config=config
        )
        assert metrics.composite_score == 100.0


# ---------------------------------------------------------------------------
# Memory
# ---------------------------------------------------------------------------

WORDS = ["apple", "river", "chair", "lamp", "cloud"]


class TestMemoryCalculator:
    def _score(self, body, baseline=None):
        calculator = MemoryCalculator()
        return calculator.compute_metrics(calculator.normalize(body), baseline)

    def test_first_session(self) -> None:
        metrics = self._score(build_memory_body())
        assert metrics.list_length == 5
        assert metrics.immediate_recall_pct == 100
        assert metrics.delayed_recall_pct is None
        assert metrics.forgetting_rate_pct is None
        assert metrics.memory_score == 100
        assert metrics.forgetting_flag is False
        assert metrics.traffic_light == "yellow"

    def test_forgetting_spike_raises_flag(self) -> None:
        body = build_memory_body(
            immediate=["apple", "river", "chair", "lamp", "x"],
            delayed=["apple", "river"],
        )
        metrics = self._score(body, _memory_baseline(immediate=80, delayed=60, forgetting=10))
        assert metrics.immediate_recall_pct == 80
        assert metrics.delayed_recall_pct == 40
        assert metrics.forgetting_rate_pct == 40
        assert metrics.immediate_score == 100
        assert metrics.delayed_score == pytest.approx(66.667, abs=0.001)
        assert metrics.memory_score == 83.33
        assert metrics.traffic_light == "yellow"
        assert metrics.forgetting_flag is True

    def test_no_flag_while_baseline_building(self) -> None:
        body = build_memory_body(delayed=[])
        metrics = self._score(
            body, _memory_baseline(forgetting=0, status="building")
        )
        assert metrics.forgetting_rate_pct == 100
        assert metrics.forgetting_flag is False
        assert metrics.traffic_light == "yellow"

    def test_no_flag_without_baseline_forgetting_rate(self) -> None:
        body = build_memory_body(delayed=[])
        metrics = self._score(body, _memory_baseline(delayed=None, forgetting=None))
        assert metrics.forgetting_flag is False

    def test_forgetting_never_negative(self) -> None:
        body = build_memory_body(immediate=["apple"], delayed=WORDS)
        metrics = self._score(body)
        assert metrics.forgetting_rate_pct == 0

    def test_skipped_delayed_phase_uses_immediate_recall(self) -> None:
        body = build_memory_body(immediate=["apple", "river", "chair", "x", "y"])
        metrics = self._score(body, _memory_baseline(immediate=60, delayed=60))
        assert metrics.immediate_score == 100
        assert metrics.delayed_score == 100
        assert metrics.memory_score == 100
        assert metrics.traffic_light == "green"

    def test_baseline_without_delayed_data_compares_with_itself(self) -> None:
        body = build_memory_body(delayed=["apple", "river"])
        metrics = self._score(body, _memory_baseline(delayed=None, forgetting=None))
        assert metrics.delayed_score == 100

    def test_large_decline_is_red(self) -> None:
        body = build_memory_body(
            immediate=["apple", "river", "chair", "x", "y"],
            delayed=["apple", "river", "chair"],
        )
        metrics = self._score(body, _memory_baseline())
        assert metrics.memory_score == 60
        assert metrics.traffic_light == "red"

    def test_stable_recall_is_green(self) -> None:
        metrics = self._score(build_memory_body(delayed=WORDS), _memory_baseline())
        assert metrics.memory_score == 100
        assert metrics.traffic_light == "green"
        assert metrics.baseline_immediate_pct == 100


# ---------------------------------------------------------------------------
# Naming
# ---------------------------------------------------------------------------


class TestNamingCalculator:
    def _score(self, body, baseline=None, config=None):
        calculator = NamingCalculator(config or ScoringConfig())
        return calculator.compute_metrics(calculator.normalize(body), baseline)

    def test_first_session(self) -> None:
        metrics = self._score(build_naming_body(hints=3))
        assert metrics.naming_score == 100
        assert metrics.hints_used == 3
        assert metrics.traffic_light == "yellow"

    def test_accuracy_dip_is_yellow(self) -> None:
        metrics = self._score(build_naming_body(total=10, correct=8), _naming_baseline())
        assert metrics.accuracy_score == 80
        assert metrics.speed_score == 100
        assert metrics.naming_score == 86.0
        assert metrics.traffic_light == "yellow"

    def test_yellow_accuracy_floor_follows_config(self) -> None:
        config = ScoringConfig(naming_yellow_accuracy=85.0)
        metrics = self._score(
            build_naming_body(total=10, correct=8), _naming_baseline(), config=config
        )
        assert metrics.accuracy_score == 80
        assert metrics.traffic_light == "red"

    def test_accuracy_drop_is_red(self) -> None:
        metrics = self._score(build_naming_body(total=10, correct=7), _naming_baseline())
        assert metrics.naming_score == 79.0
        assert metrics.traffic_light == "red"

    def test_stable_is_green(self) -> None:
        metrics = self._score(build_naming_body(), _naming_baseline())
        assert metrics.naming_score == 100
        assert metrics.traffic_light == "green"

    def test_slow_but_accurate_is_yellow(self) -> None:
        metrics = self._score(build_naming_body(rt_ms=1500), _naming_baseline(rt=1200))
        assert metrics.speed_score == 80
        assert metrics.traffic_light == "yellow"
