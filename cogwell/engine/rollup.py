"""User rollup aggregator — the per-user summary the tracker screens read.

build_rollup() is a pure function of the session history handed to it:
the same history and updated_at always produce an identical rollup. The
orchestrator fetches history, calls it, and replaces the stored rollup
wholesale — there is no incremental patching, so no field can go stale.

summarize_context() aggregates the optional mood/sleep context of recent
sessions for the read path. It is not part of the rollup document.

Tier 2 module: imports from cogwell.engine.stats, cogwell.tuning and
cogwell.schemas.
"""

from collections.abc import Mapping, Sequence
from datetime import datetime

from cogwell.engine.stats import average, average_or_none, round_score
from cogwell.schemas import (
    GAME_KEYS,
    CompositeHistoryPoint,
    ContextSummary,
    GameSummary,
    HistoryPoint,
    UserMetricsRollup,
)
from cogwell.tuning import ScoringConfig


def green_streak(sessions: Sequence) -> int:
    """Counts consecutive green sessions from the newest backwards.

    Args:
        sessions: Sessions of one game, newest first.
    """
    streak = 0
    for session in sessions:
        if session.metrics.traffic_light != "green":
            break
        streak += 1
    return streak


def summarize_game(game_key: str, sessions: Sequence, config: ScoringConfig) -> GameSummary:
    """Builds the per-game summary from sessions ordered newest first."""
    latest = sessions[0]
    scores = [s.metrics.score for s in sessions]
    history = [
        HistoryPoint(
            completed_at=s.completed_at,
            score=s.metrics.score,
            traffic_light=s.metrics.traffic_light,
        )
        for s in reversed(sessions[: config.display_history_limit])
    ]
    return GameSummary(
        game_key=game_key,
        latest_score=latest.metrics.score,
        traffic_light=latest.metrics.traffic_light,
        trend=latest.metrics.trend,
        moving_average=round_score(average(scores[: config.moving_average_window])),
        green_streak=green_streak(sessions),
        session_count=len(sessions),
        last_played_at=latest.completed_at,
        history=history,
    )


def composite_index(
    latest_scores: Mapping[str, float], weights: Mapping[str, float]
) -> float | None:
    """Weighted mean of each game's latest score over the games present.

    Weights are renormalized by the games that actually have a score, so a
    user who has only played one game gets that game's score undiluted.
    Returns None when no game has a score.
    """
    weighted = 0.0
    total_weight = 0.0
    for game_key, score in latest_scores.items():
        weight = weights.get(game_key, 0.0)
        weighted += score * weight
        total_weight += weight
    if not total_weight:
        return None
    return round_score(weighted / total_weight)


def build_rollup(
    user_id: str,
    sessions_by_game: Mapping[str, Sequence],
    recent_sessions: Sequence,
    config: ScoringConfig,
    updated_at: datetime,
) -> UserMetricsRollup:
    """Recomputes a user's rollup from capped session history.

    Args:
        user_id: The user the rollup belongs to.
        sessions_by_game: Per game key, that game's most recent sessions,
            newest first (capped at session_history_limit by the caller).
        recent_sessions: The most recent sessions across all games, newest
            first (capped at composite_history_limit by the caller).
        config: Scoring configuration (weights, windows, limits).
        updated_at: Timestamp stamped on the rollup.

    Returns:
        A complete UserMetricsRollup ready to replace the stored one.
    """
    per_game: dict[str, GameSummary] = {}
    for game_key in GAME_KEYS:
        sessions = list(sessions_by_game.get(game_key, ()))[: config.session_history_limit]
        if not sessions:
            continue
        per_game[game_key] = summarize_game(game_key, sessions, config)

    index = composite_index(
        {key: summary.latest_score for key, summary in per_game.items()},
        config.game_weights,
    )

    composite_history = [
        CompositeHistoryPoint(
            game_key=s.game_key,
            completed_at=s.completed_at,
            score=s.metrics.score,
            traffic_light=s.metrics.traffic_light,
        )
        for s in reversed(list(recent_sessions)[: config.composite_history_limit])
    ]

    return UserMetricsRollup(
        user_id=user_id,
        composite_index=index,
        per_game=per_game,
        composite_history=composite_history,
        updated_at=updated_at,
    )


def summarize_context(sessions: Sequence) -> ContextSummary:
    """Aggregates mood, sleep and medication-change context.

    Sessions without a context block count towards sessions_considered
    only; unanswered scales are left out of the averages.
    """
    contexts = [s.context for s in sessions if s.context is not None]
    mood = average_or_none(c.mood_level for c in contexts)
    sleep = average_or_none(c.sleep_quality for c in contexts)
    return ContextSummary(
        sessions_considered=len(sessions),
        sessions_with_context=len(contexts),
        average_mood=round_score(mood) if mood is not None else None,
        average_sleep=round_score(sleep) if sleep is not None else None,
        meds_changed_count=sum(1 for c in contexts if c.meds_changed),
    )
