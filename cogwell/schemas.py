"""Core data models — shared Pydantic types for the Cogwell scoring service.

Every normalized trial, baseline snapshot, metrics record, stored session
and rollup flows through these types. They are the shared vocabulary that
lets the engine, the persistence hooks and the API talk without ambiguity.

This is a Tier 1 leaf module: it imports only from pydantic and the stdlib.
No project imports allowed — everything else imports from here.

Serialization: model_dump(mode="json") is the wire format. Nullable fields
are always emitted as explicit null so clients can tell "not computed yet"
from zero.

Usage:
    from cogwell.schemas import GameSession, StroopMetrics, UserMetricsRollup
"""

from datetime import datetime, timezone
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

GameKey = Literal["stroop", "memory", "naming"]
TrafficLight = Literal["green", "yellow", "red"]
TrendDirection = Literal["up", "down", "flat"]
BaselineStatus = Literal["building", "ready"]
SessionPhase = Literal["learning", "baseline", "production"]

GAME_KEYS: tuple[str, ...] = ("stroop", "memory", "naming")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------


class User(BaseModel):
    """Identity model returned by the auth layer.

    Frozen — users are identity objects, no mutation after creation.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str


# ---------------------------------------------------------------------------
# Subjective daily context
# ---------------------------------------------------------------------------


class SessionContext(BaseModel):
    """Optional self-report captured before a game (1-5 scales).

    None on mood_level / sleep_quality means "no signal" and is excluded
    from averages downstream.
    """

    model_config = ConfigDict(frozen=True)

    mood_level: float | None = None
    sleep_quality: float | None = None
    meds_changed: bool = False
    notes: str = ""


# ---------------------------------------------------------------------------
# Normalized trial records
# ---------------------------------------------------------------------------


class StroopTrial(BaseModel):
    """One Stroop colour-word trial."""

    model_config = ConfigDict(frozen=True)

    id: str = ""
    word: str = ""
    ink_color: str = ""
    correct_color: str = ""
    presented_at: datetime | None = None
    responded_at: datetime | None = None
    response_time_ms: float | None = None
    selected_color: str = ""
    is_correct: bool = False
    is_congruent: bool = False


class MemoryListItem(BaseModel):
    """One target word in a memory list."""

    model_config = ConfigDict(frozen=True)

    id: str
    label: str


class MemoryAttempt(BaseModel):
    """One recall attempt (immediate or delayed) against the target list.

    recalled_count is computed during normalization by ordered positional
    matching — never trusted from the client.
    """

    model_config = ConfigDict(frozen=True)

    phase: Literal["immediate", "delayed"] = "immediate"
    responses: list[str] = Field(default_factory=list)
    correct_prompts: list[str] = Field(default_factory=list)
    recalled_count: int = 0
    response_time_ms: float | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None


class NamingTrial(BaseModel):
    """One picture-naming trial."""

    model_config = ConfigDict(frozen=True)

    prompt_id: str = ""
    prompt_label: str = ""
    displayed_at: datetime | None = None
    submitted_at: datetime | None = None
    response_time_ms: float | None = None
    answer_provided: str = ""
    is_correct: bool = False
    used_hint: bool = False


# ---------------------------------------------------------------------------
# Game payloads (the game-specific part of a session)
# ---------------------------------------------------------------------------


class StroopPayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    trials: list[StroopTrial]
    settings: dict[str, Any] | None = None
    practice: bool = False


class MemoryPayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    word_list: list[MemoryListItem]
    attempts: list[MemoryAttempt]
    encoding_duration_ms: float | None = None


class NamingPayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    trials: list[NamingTrial]
    settings: dict[str, Any] | None = None


# ---------------------------------------------------------------------------
# Baseline snapshots
# ---------------------------------------------------------------------------


class StroopBaseline(BaseModel):
    """Rolling personal Stroop baseline at the time a session was scored."""

    model_config = ConfigDict(frozen=True)

    accuracy_pct: float
    median_rt_ms: float
    median_rt_congruent_ms: float
    median_rt_incongruent_ms: float
    session_count: int
    status: BaselineStatus


class MemoryBaseline(BaseModel):
    """Rolling personal memory baseline.

    delayed_pct and forgetting_rate_pct are None when no session in the
    window ran the delayed phase.
    """

    model_config = ConfigDict(frozen=True)

    immediate_pct: float
    delayed_pct: float | None = None
    forgetting_rate_pct: float | None = None
    session_count: int
    status: BaselineStatus


class NamingBaseline(BaseModel):
    model_config = ConfigDict(frozen=True)

    accuracy_pct: float
    median_rt_ms: float
    session_count: int
    status: BaselineStatus


# ---------------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------------


class StroopMetrics(BaseModel):
    """Scored Stroop session. composite_score is the game's headline score."""

    model_config = ConfigDict(frozen=True)

    trial_count: int
    correct_count: int
    accuracy_pct: float
    median_rt_ms: float
    median_rt_congruent_ms: float
    median_rt_incongruent_ms: float
    interference_ms: float
    accuracy_score: float
    speed_score: float
    composite_score: float
    traffic_light: TrafficLight
    baseline_status: BaselineStatus
    baseline_accuracy_pct: float | None = None
    baseline_median_rt_ms: float | None = None
    trend: TrendDirection = "flat"

    @property
    def score(self) -> float:
        return self.composite_score


class MemoryMetrics(BaseModel):
    """Scored memory session. memory_score is the game's headline score.

    forgetting_flag is an early-warning signal raised independently of the
    traffic light.
    """

    model_config = ConfigDict(frozen=True)

    list_length: int
    immediate_recall_pct: float
    delayed_recall_pct: float | None = None
    forgetting_rate_pct: float | None = None
    immediate_score: float
    delayed_score: float
    memory_score: float
    forgetting_flag: bool = False
    traffic_light: TrafficLight
    baseline_status: BaselineStatus
    baseline_immediate_pct: float | None = None
    baseline_delayed_pct: float | None = None
    baseline_forgetting_rate_pct: float | None = None
    trend: TrendDirection = "flat"

    @property
    def score(self) -> float:
        return self.memory_score


class NamingMetrics(BaseModel):
    """Scored naming session. naming_score is the game's headline score."""

    model_config = ConfigDict(frozen=True)

    trial_count: int
    correct_count: int
    hints_used: int = 0
    accuracy_pct: float
    median_rt_ms: float
    accuracy_score: float
    speed_score: float
    naming_score: float
    traffic_light: TrafficLight
    baseline_status: BaselineStatus
    baseline_accuracy_pct: float | None = None
    baseline_median_rt_ms: float | None = None
    trend: TrendDirection = "flat"

    @property
    def score(self) -> float:
        return self.naming_score


GameMetrics = Union[StroopMetrics, MemoryMetrics, NamingMetrics]


# ---------------------------------------------------------------------------
# Stored sessions (append-only)
# ---------------------------------------------------------------------------


class _SessionBase(BaseModel):
    """Fields shared by every completed play-through.

    Frozen: a written session — and the baseline snapshot it carries — is
    an audit record of "what normal looked like then". It is never patched.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    user_id: str
    session_number: int = Field(ge=1)
    phase: SessionPhase
    context: SessionContext | None = None
    started_at: datetime
    completed_at: datetime
    created_at: datetime = Field(default_factory=_utc_now)


class StroopSession(_SessionBase):
    game_key: Literal["stroop"] = "stroop"
    payload: StroopPayload
    metrics: StroopMetrics
    baseline_snapshot: StroopBaseline | None = None


class MemorySession(_SessionBase):
    game_key: Literal["memory"] = "memory"
    payload: MemoryPayload
    metrics: MemoryMetrics
    baseline_snapshot: MemoryBaseline | None = None


class NamingSession(_SessionBase):
    game_key: Literal["naming"] = "naming"
    payload: NamingPayload
    metrics: NamingMetrics
    baseline_snapshot: NamingBaseline | None = None


GameSession = Annotated[
    Union[StroopSession, MemorySession, NamingSession],
    Field(discriminator="game_key"),
]
"""Closed tagged union of stored sessions, discriminated by game_key.

Use this annotation anywhere a session of any game is accepted.
"""


# ---------------------------------------------------------------------------
# Rollup
# ---------------------------------------------------------------------------


class HistoryPoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    completed_at: datetime
    score: float
    traffic_light: TrafficLight


class CompositeHistoryPoint(BaseModel):
    """One session in the interleaved cross-game series."""

    model_config = ConfigDict(frozen=True)

    game_key: GameKey
    completed_at: datetime
    score: float
    traffic_light: TrafficLight


class GameSummary(BaseModel):
    """Per-game slice of the rollup, built from the latest sessions."""

    model_config = ConfigDict(frozen=True)

    game_key: GameKey
    latest_score: float
    traffic_light: TrafficLight
    trend: TrendDirection
    moving_average: float
    green_streak: int
    session_count: int
    last_played_at: datetime
    history: list[HistoryPoint] = Field(default_factory=list)


class UserMetricsRollup(BaseModel):
    """The latest aggregate view for one user — replaced, never patched.

    composite_index is None only when the user has no sessions at all.
    """

    model_config = ConfigDict(frozen=True)

    user_id: str
    composite_index: float | None = None
    per_game: dict[GameKey, GameSummary] = Field(default_factory=dict)
    composite_history: list[CompositeHistoryPoint] = Field(default_factory=list)
    updated_at: datetime = Field(default_factory=_utc_now)


class ContextSummary(BaseModel):
    """Mood/sleep context aggregated from recent sessions (read path only)."""

    model_config = ConfigDict(frozen=True)

    sessions_considered: int = 0
    sessions_with_context: int = 0
    average_mood: float | None = None
    average_sleep: float | None = None
    meds_changed_count: int = 0


class SubmissionResult(BaseModel):
    """What the ingestor hands back after a successful submission."""

    model_config = ConfigDict(frozen=True)

    session: GameSession
    rollup: UserMetricsRollup


# ---------------------------------------------------------------------------
# API envelope
# ---------------------------------------------------------------------------


class ApiError(BaseModel):
    """Error detail inside ApiResponse.error.

    code is an uppercase string like "UNSUPPORTED_GAME", "MISSING_TRIALS",
    "SESSION_CONFLICT". Not an enum — error codes grow with the games.
    """

    model_config = ConfigDict(frozen=True)

    code: str
    message: str


class ApiResponse(BaseModel):
    """Universal response envelope — every API endpoint returns this shape."""

    model_config = ConfigDict(frozen=True)

    ok: bool
    data: Any | None = None
    error: ApiError | None = None
