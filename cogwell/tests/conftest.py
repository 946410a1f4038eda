"""Shared test fixtures for the scoring engine, hooks and API.

Factory-pattern fixtures that return callables accepting **overrides, plus
plain builder functions importable by test modules that need them outside a
fixture (e.g. inside parametrize tables).

Client bodies are built in the mobile client's camelCase shape, which is
what production traffic looks like.

Fixtures:
    stroop_body / memory_body / naming_body: Factories for raw submissions
    make_session: Factory for stored sessions with a chosen score and light
    repository / rollup_store: Fresh in-memory hooks
    ingestor: SessionIngestor over the fresh hooks with a fixed clock
"""

from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import uuid4

import pytest

from cogwell.hooks.database import InMemorySessionRepository
from cogwell.hooks.rollups import InMemoryRollupStore
from cogwell.ingest import SessionIngestor
from cogwell.schemas import (
    MemoryListItem,
    MemoryMetrics,
    MemoryPayload,
    MemorySession,
    NamingMetrics,
    NamingPayload,
    NamingSession,
    SessionContext,
    StroopMetrics,
    StroopPayload,
    StroopSession,
)

FIXED_NOW = datetime(2026, 1, 15, 9, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Raw client bodies
# ---------------------------------------------------------------------------


def build_stroop_body(
    total: int = 10,
    correct: int | None = None,
    rt_ms: float | None = 500,
    congruent_every: int = 2,
    **overrides: Any,
) -> dict[str, Any]:
    """A Stroop submission: the first `correct` trials are correct.

    Every `congruent_every`-th trial (starting at 0) is congruent.
    """
    correct = total if correct is None else correct
    trials = []
    for i in range(total):
        congruent = i % congruent_every == 0
        trials.append({
            "id": f"t{i}",
            "word": "RED",
            "inkColor": "red" if congruent else "blue",
            "correctColor": "red" if congruent else "blue",
            "presentedAt": 1_768_467_600_000 + i * 2000,
            "respondedAt": 1_768_467_600_500 + i * 2000,
            "responseTimeMs": rt_ms,
            "selectedColor": "red",
            "isCorrect": i < correct,
            "isCongruent": congruent,
        })
    body: dict[str, Any] = {
        "trials": trials,
        "settings": {"trialCount": total, "congruencyRatio": 0.5},
        "startedAt": 1_768_467_600_000,
        "completedAt": 1_768_467_640_000,
    }
    body.update(overrides)
    return body


def build_memory_body(
    targets: list[str] | None = None,
    immediate: list[str] | None = None,
    delayed: list[str] | None = None,
    **overrides: Any,
) -> dict[str, Any]:
    """A memory submission. delayed=None omits the delayed attempt."""
    targets = targets if targets is not None else ["apple", "river", "chair", "lamp", "cloud"]
    immediate = immediate if immediate is not None else list(targets)
    attempts = [{"phase": "immediate", "responses": immediate, "responseTimeMs": 8000}]
    if delayed is not None:
        attempts.append({"phase": "delayed", "responses": delayed, "responseTimeMs": 9000})
    body: dict[str, Any] = {
        "list": [{"id": f"w{i}", "label": word} for i, word in enumerate(targets)],
        "attempts": attempts,
        "encodingDurationMs": 15000,
    }
    body.update(overrides)
    return body


def build_naming_body(
    total: int = 10,
    correct: int | None = None,
    rt_ms: float | None = 1200,
    hints: int = 0,
    **overrides: Any,
) -> dict[str, Any]:
    correct = total if correct is None else correct
    trials = [
        {
            "promptId": f"p{i}",
            "promptLabel": f"object-{i}",
            "displayedAt": 1_768_467_600_000 + i * 3000,
            "submittedAt": 1_768_467_601_200 + i * 3000,
            "responseTimeMs": rt_ms,
            "answerProvided": f"object-{i}" if i < correct else "dunno",
            "isCorrect": i < correct,
            "usedHint": i < hints,
        }
        for i in range(total)
    ]
    body: dict[str, Any] = {"trials": trials, "settings": {"allowHints": True}}
    body.update(overrides)
    return body


@pytest.fixture
def stroop_body():
    """Returns build_stroop_body as a factory."""
    return build_stroop_body


@pytest.fixture
def memory_body():
    return build_memory_body


@pytest.fixture
def naming_body():
    return build_naming_body


# ---------------------------------------------------------------------------
# Stored sessions with chosen outcomes (for rollup tests)
# ---------------------------------------------------------------------------


def build_session(
    game_key: str = "stroop",
    score: float = 100.0,
    traffic_light: str = "yellow",
    trend: str = "flat",
    session_number: int = 1,
    user_id: str = "user-1",
    completed_at: datetime | None = None,
    context: SessionContext | None = None,
):
    """Builds a stored session whose headline score is `score`."""
    completed_at = completed_at or FIXED_NOW
    common = {
        "id": str(uuid4()),
        "user_id": user_id,
        "session_number": session_number,
        "phase": "learning",
        "context": context,
        "started_at": completed_at - timedelta(minutes=2),
        "completed_at": completed_at,
        "created_at": completed_at,
    }
    if game_key == "stroop":
        return StroopSession(
            **common,
            payload=StroopPayload(trials=[]),
            metrics=StroopMetrics(
                trial_count=10, correct_count=10, accuracy_pct=100.0,
                median_rt_ms=500.0, median_rt_congruent_ms=500.0,
                median_rt_incongruent_ms=500.0, interference_ms=0.0,
                accuracy_score=score, speed_score=score, composite_score=score,
                traffic_light=traffic_light, baseline_status="ready", trend=trend,
            ),
        )
    if game_key == "memory":
        return MemorySession(
            **common,
            payload=MemoryPayload(
                word_list=[MemoryListItem(id="w0", label="apple")], attempts=[]
            ),
            metrics=MemoryMetrics(
                list_length=1, immediate_recall_pct=100.0,
                immediate_score=score, delayed_score=score, memory_score=score,
                traffic_light=traffic_light, baseline_status="ready", trend=trend,
            ),
        )
    return NamingSession(
        **common,
        payload=NamingPayload(trials=[]),
        metrics=NamingMetrics(
            trial_count=10, correct_count=10, accuracy_pct=100.0, median_rt_ms=1200.0,
            accuracy_score=score, speed_score=score, naming_score=score,
            traffic_light=traffic_light, baseline_status="ready", trend=trend,
        ),
    )


@pytest.fixture
def make_session():
    """Returns a factory for stored sessions. Override any build_session arg."""

    def _make(**overrides):
        return build_session(**overrides)

    return _make


# ---------------------------------------------------------------------------
# Hooks and orchestrator
# ---------------------------------------------------------------------------


@pytest.fixture
def repository() -> InMemorySessionRepository:
    return InMemorySessionRepository()


@pytest.fixture
def rollup_store() -> InMemoryRollupStore:
    return InMemoryRollupStore()


@pytest.fixture
def ingestor(repository, rollup_store) -> SessionIngestor:
    """SessionIngestor over fresh in-memory hooks, clock pinned to FIXED_NOW."""
    return SessionIngestor(repository, rollup_store, clock=lambda: FIXED_NOW)
