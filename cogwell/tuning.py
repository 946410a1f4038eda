"""Scoring configuration — single source of truth for weights and windows.

Every number the scoring engine tunes on lives here: how many sessions make
a baseline, how far back the trend looks, how the three games are blended
into the composite index. The engine never reads module globals for these —
a ScoringConfig instance is injected into the ingestor and the rollup
builder at construction, so tests can run alternate tunings side by side.

Tier 1 leaf — imports only stdlib. Settings-driven overrides are applied by
scoring_config_from_settings(), which takes the Settings object as a plain
argument to keep this module free of project imports.

To retune: change a default below (affects every user) or set the matching
environment variable for the knobs Settings exposes.
"""

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Mapping

# ---------------------------------------------------------------------------
# Game weights for the cross-game composite index
# ---------------------------------------------------------------------------

GAME_WEIGHTS: Mapping[str, float] = MappingProxyType({
    "stroop": 0.4,
    "memory": 0.4,
    "naming": 0.2,
})


@dataclass(frozen=True)
class ScoringConfig:
    """Immutable tuning for the cognitive scoring engine.

    Defaults reproduce the production tuning. Construct a variant with
    dataclasses.replace() or keyword overrides — instances are never mutated.
    """

    # Composite index
    game_weights: Mapping[str, float] = field(default_factory=lambda: GAME_WEIGHTS)

    # Baseline
    baseline_window: int = 3

    # Trend
    trend_window: int = 3
    trend_threshold: float = 0.05

    # Relative scores (current vs. personal baseline, x100)
    score_floor: float = 60.0
    score_ceiling: float = 130.0

    # Per-game blends
    stroop_accuracy_weight: float = 0.6
    stroop_speed_weight: float = 0.4
    naming_accuracy_weight: float = 0.7
    naming_speed_weight: float = 0.3

    # Traffic lights (only once the baseline is ready)
    green_ratio: float = 0.95
    red_ratio: float = 0.8
    green_score: float = 95.0
    memory_yellow_score: float = 75.0
    naming_yellow_accuracy: float = 80.0

    # Memory early-warning: forgetting increase in percentage points
    forgetting_flag_threshold: float = 20.0

    # Rollup
    session_history_limit: int = 10
    moving_average_window: int = 7
    display_history_limit: int = 10
    composite_history_limit: int = 25

    # Session phase boundaries (inclusive upper session numbers)
    learning_sessions: int = 2
    baseline_sessions: int = 5


DEFAULT_SCORING = ScoringConfig()


def scoring_config_from_settings(settings: Any) -> ScoringConfig:
    """Builds the injected ScoringConfig from application settings.

    Only the knobs exposed through environment variables are overridden;
    everything else keeps its default.

    Args:
        settings: The application Settings instance.

    Returns:
        A ScoringConfig carrying the settings' windows and history limits.
    """
    return replace(
        DEFAULT_SCORING,
        baseline_window=settings.baseline_window,
        trend_window=settings.trend_window,
        session_history_limit=settings.session_history_limit,
        composite_history_limit=settings.composite_history_limit,
    )
