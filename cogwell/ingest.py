"""Session ingestion orchestrator — wires normalize → baseline → score → trend
→ persist → rollup for one submission.

The engine modules under cogwell.engine are pure synchronous transforms; this
is the only place that awaits the persistence hooks. One submission runs
strictly in sequence:

    1. validate user id and game key, normalize the payload
       (a SubmissionError here means nothing is read or written)
    2. read the user's prior sessions for the game (already committed)
    3. derive the baseline, compute metrics, classify the trend
    4. write the frozen session (with its baseline snapshot)
    5. recompute the user's rollup from stored history and replace it

Steps 4 and 5 are one unit: if the rollup cannot be written, the session is
deleted again and IngestionError is raised, so a stored session never sits
behind a stale composite.

Concurrency: submissions for the same user are serialized in-process with a
per-user asyncio.Lock, so two requests cannot read the same prior snapshot
and compute the same session_number. Across processes the repository's
unique (user, game, session_number) constraint is the backstop — the loser
gets DuplicateSessionError and may retry.

Tier 3 orchestration module: imports from cogwell.engine.* (Tier 1-2),
cogwell.hooks.interfaces (Tier 1), cogwell.tuning and cogwell.schemas.
"""

import asyncio
import logging
import re
import weakref
from collections.abc import Callable, Mapping
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from cogwell.engine.calculators import get_calculator
from cogwell.engine.normalize import SubmissionError, normalize_context, session_timestamps
from cogwell.engine.rollup import build_rollup
from cogwell.engine.trend import classify_trend
from cogwell.hooks.interfaces import DuplicateSessionError, RollupStore, SessionRepository
from cogwell.schemas import GAME_KEYS, SessionPhase, SubmissionResult, UserMetricsRollup
from cogwell.tuning import DEFAULT_SCORING, ScoringConfig

logger = logging.getLogger("cogwell.ingest")

_USER_ID_PATTERN = re.compile(r"^[A-Za-z0-9_.:@-]{1,128}$")


class IngestionError(Exception):
    """A submission that passed validation but could not be persisted.

    The session write and the rollup write are rolled back together, so the
    caller can safely retry the whole submission.
    """


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def validate_user_id(user_id: str) -> None:
    """Rejects empty or malformed user identifiers.

    Raises:
        SubmissionError: INVALID_USER.
    """
    if not isinstance(user_id, str) or not _USER_ID_PATTERN.match(user_id):
        raise SubmissionError("INVALID_USER", "Malformed user identifier.")


def derive_phase(session_number: int, config: ScoringConfig = DEFAULT_SCORING) -> SessionPhase:
    """Maps a session number onto its (informational) protocol phase."""
    if session_number <= config.learning_sessions:
        return "learning"
    if session_number <= config.baseline_sessions:
        return "baseline"
    return "production"


class SessionIngestor:
    """Scores and stores session submissions, then refreshes the user rollup.

    Args:
        sessions: Append-only session storage.
        rollups: Per-user rollup storage.
        config: Scoring configuration injected into every calculator and
            the rollup builder.
        clock: Returns "now"; used for fallback timestamps and the rollup's
            updated_at. Defaults to UTC wall-clock time.
    """

    def __init__(
        self,
        sessions: SessionRepository,
        rollups: RollupStore,
        config: ScoringConfig = DEFAULT_SCORING,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._sessions = sessions
        self._rollups = rollups
        self._config = config
        self._clock = clock or _utc_now
        # Entries vanish once no submission holds or awaits the lock.
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    @property
    def config(self) -> ScoringConfig:
        return self._config

    def _lock_for(self, user_id: str) -> asyncio.Lock:
        lock = self._locks.get(user_id)
        if lock is None:
            lock = self._locks[user_id] = asyncio.Lock()
        return lock

    async def submit(
        self, user_id: str, game_key: str, raw: Mapping[str, Any]
    ) -> SubmissionResult:
        """Scores one session submission and persists it with a fresh rollup.

        Args:
            user_id: The submitting user.
            game_key: "stroop", "memory" or "naming".
            raw: The client's JSON body.

        Returns:
            The stored session and the recomputed rollup.

        Raises:
            SubmissionError: Validation failure; nothing was written.
            DuplicateSessionError: Another writer took this session number.
            IngestionError: Persistence failed; nothing was kept.
        """
        validate_user_id(user_id)
        calculator = get_calculator(game_key, self._config)
        if not isinstance(raw, Mapping):
            raise SubmissionError("INVALID_PAYLOAD", "Submission body must be a JSON object.")
        payload = calculator.normalize(raw)

        now = self._clock()
        context = normalize_context(raw.get("context"))
        started_at, completed_at = session_timestamps(raw, now)

        async with self._lock_for(user_id):
            history_limit = max(
                self._config.session_history_limit,
                self._config.baseline_window,
                self._config.trend_window,
            )
            prior = await self._sessions.list_sessions(user_id, game_key, history_limit)
            prior_count = await self._sessions.count_sessions(user_id, game_key)
            chronological = list(reversed(prior))

            baseline = calculator.derive_baseline([s.metrics for s in chronological])
            metrics = calculator.compute_metrics(payload, baseline)
            trend = classify_trend(
                [s.metrics.score for s in chronological] + [metrics.score],
                window=self._config.trend_window,
                threshold=self._config.trend_threshold,
            )
            metrics = metrics.model_copy(update={"trend": trend})

            session_number = prior_count + 1
            session = calculator.session_model(
                id=str(uuid4()),
                user_id=user_id,
                session_number=session_number,
                phase=derive_phase(session_number, self._config),
                context=context,
                started_at=started_at,
                completed_at=completed_at,
                created_at=now,
                payload=payload,
                metrics=metrics,
                baseline_snapshot=baseline,
            )

            try:
                await self._sessions.save_session(session)
            except DuplicateSessionError:
                logger.warning(
                    "Session number conflict: user=%s game=%s number=%d",
                    user_id, game_key, session_number,
                )
                raise
            except Exception as exc:
                logger.exception("Session write failed: user=%s game=%s", user_id, game_key)
                raise IngestionError("Failed to store the session.") from exc

            try:
                rollup = await self._rebuild_rollup(user_id, now)
            except Exception as exc:
                logger.exception(
                    "Rollup recompute failed, rolling back session %s", session.id
                )
                await self._rollback(session.id)
                raise IngestionError("Failed to update the metrics rollup.") from exc

        logger.info(
            "Session scored: user=%s game=%s number=%d score=%.2f light=%s trend=%s baseline=%s",
            user_id,
            game_key,
            session_number,
            metrics.score,
            metrics.traffic_light,
            trend,
            metrics.baseline_status,
            extra={
                "user_id": user_id,
                "game_key": game_key,
                "session_number": session_number,
                "score": metrics.score,
                "traffic_light": metrics.traffic_light,
            },
        )
        return SubmissionResult(session=session, rollup=rollup)

    async def recompute_rollup(self, user_id: str) -> UserMetricsRollup:
        """Rebuilds and replaces a user's rollup from stored history.

        Raises:
            SubmissionError: INVALID_USER for a malformed user id.
        """
        validate_user_id(user_id)
        async with self._lock_for(user_id):
            return await self._rebuild_rollup(user_id, self._clock())

    async def _rebuild_rollup(self, user_id: str, now: datetime) -> UserMetricsRollup:
        sessions_by_game = {
            game_key: await self._sessions.list_sessions(
                user_id, game_key, self._config.session_history_limit
            )
            for game_key in GAME_KEYS
        }
        recent = await self._sessions.list_recent_sessions(
            user_id, self._config.composite_history_limit
        )
        rollup = build_rollup(user_id, sessions_by_game, recent, self._config, now)
        await self._rollups.save_rollup(rollup)
        return rollup

    async def _rollback(self, session_id: str) -> None:
        try:
            await self._sessions.delete_session(session_id)
        except Exception:
            logger.exception("Rollback of session %s failed", session_id)
