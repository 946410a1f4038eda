"""Trial normalizer — raw client JSON into canonical, typed game payloads.

Each game has one entry point (normalize_stroop, normalize_memory,
normalize_naming) that returns the game's payload model. Optional fields
never fail the request: they fall back through the parse-or-default helpers
in cogwell.engine.coerce. The only thing that raises is missing mandatory
data — an empty trial list is a client error, not a zero score.

Keys are read in snake_case or the mobile client's camelCase.

Tier 2 module: imports from cogwell.engine.coerce (Tier 1) and
cogwell.schemas (Tier 1).
"""

import logging
from collections.abc import Mapping
from datetime import datetime
from typing import Any

from cogwell.engine.coerce import (
    pick,
    to_bool,
    to_duration_ms,
    to_finite,
    to_mapping,
    to_str,
    to_str_list,
    to_timestamp,
)
from cogwell.schemas import (
    MemoryAttempt,
    MemoryListItem,
    MemoryPayload,
    NamingPayload,
    NamingTrial,
    SessionContext,
    StroopPayload,
    StroopTrial,
)

logger = logging.getLogger("cogwell.engine.normalize")


class SubmissionError(ValueError):
    """A session submission the engine refuses to score.

    Raised before any scoring happens, so nothing is ever written for a
    rejected request.

    Attributes:
        code: Uppercase error code surfaced in ApiError.code, one of
            "UNSUPPORTED_GAME", "INVALID_USER", "MISSING_TRIALS",
            "MISSING_ATTEMPTS", "MISSING_LIST", "INVALID_PAYLOAD".
        message: Human-readable description.
    """

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def _records(raw: Mapping[str, Any], key: str, code: str) -> list[Mapping[str, Any]]:
    """Returns the JSON objects under raw[key], raising if there are none.

    Array entries that are not objects are skipped: they carry no fields to
    normalize, and counting them as failed trials would invent data.
    """
    value = raw.get(key)
    if not isinstance(value, list):
        raise SubmissionError(code, f"'{key}' must be a non-empty list.")
    records = [item for item in value if isinstance(item, Mapping)]
    skipped = len(value) - len(records)
    if skipped:
        logger.debug("Skipped %d non-object entries in '%s'", skipped, key)
    if not records:
        raise SubmissionError(code, f"'{key}' must be a non-empty list.")
    return records


def normalize_context(raw: Any) -> SessionContext | None:
    """Normalizes the optional daily context block.

    Returns None when the client sent no context object at all — absence is
    kept distinct from a context whose scales are unanswered.
    """
    data = to_mapping(raw)
    if data is None:
        return None
    return SessionContext(
        mood_level=to_finite(pick(data, "mood_level", "moodLevel")),
        sleep_quality=to_finite(pick(data, "sleep_quality", "sleepQuality")),
        meds_changed=to_bool(pick(data, "meds_changed", "medsChanged")),
        notes=to_str(data.get("notes")),
    )


def session_timestamps(raw: Mapping[str, Any], now: datetime) -> tuple[datetime, datetime]:
    """Reads started_at/completed_at, falling back to now when unusable."""
    started_at = to_timestamp(pick(raw, "started_at", "startedAt"), now)
    completed_at = to_timestamp(pick(raw, "completed_at", "completedAt"), now)
    return started_at, completed_at


# ---------------------------------------------------------------------------
# Stroop
# ---------------------------------------------------------------------------


def normalize_stroop_trial(raw: Mapping[str, Any]) -> StroopTrial:
    """Canonical Stroop trial; every field coerced, nothing raises."""
    return StroopTrial(
        id=to_str(raw.get("id")),
        word=to_str(raw.get("word")),
        ink_color=to_str(pick(raw, "ink_color", "inkColor")),
        correct_color=to_str(pick(raw, "correct_color", "correctColor")),
        presented_at=to_timestamp(pick(raw, "presented_at", "presentedAt")),
        responded_at=to_timestamp(pick(raw, "responded_at", "respondedAt")),
        response_time_ms=to_duration_ms(pick(raw, "response_time_ms", "responseTimeMs")),
        selected_color=to_str(pick(raw, "selected_color", "selectedColor")),
        is_correct=to_bool(pick(raw, "is_correct", "isCorrect")),
        is_congruent=to_bool(pick(raw, "is_congruent", "isCongruent")),
    )


def normalize_stroop(raw: Mapping[str, Any]) -> StroopPayload:
    """Normalizes a Stroop submission.

    Raises:
        SubmissionError: MISSING_TRIALS when there are no trial objects.
    """
    trials = [
        normalize_stroop_trial(item)
        for item in _records(raw, "trials", "MISSING_TRIALS")
    ]
    return StroopPayload(
        trials=trials,
        settings=to_mapping(raw.get("settings")),
        practice=to_bool(raw.get("practice")),
    )


# ---------------------------------------------------------------------------
# Memory
# ---------------------------------------------------------------------------


def count_ordered_matches(responses: list[str], targets: list[str]) -> int:
    """Counts responses equal to the target at the same position.

    Order matters: recalling [A, C, B] against [A, B, C] scores 1, not 3.
    Comparison ignores case and surrounding whitespace. A blank target
    never matches, so empty answers to an empty slot earn nothing.
    """
    count = 0
    for response, target in zip(responses, targets):
        expected = target.strip().casefold()
        if expected and response.strip().casefold() == expected:
            count += 1
    return count


def normalize_list_item(raw: Any, index: int) -> MemoryListItem:
    """Accepts either a bare word or an {id, label} object."""
    if isinstance(raw, Mapping):
        label = to_str(raw.get("label"))
        return MemoryListItem(id=to_str(raw.get("id")) or f"item-{index}", label=label)
    return MemoryListItem(id=f"item-{index}", label=to_str(raw))


def normalize_memory_attempt(raw: Mapping[str, Any], targets: list[str]) -> MemoryAttempt:
    """Canonical recall attempt with a server-computed recalled_count."""
    phase = "delayed" if raw.get("phase") == "delayed" else "immediate"
    responses = to_str_list(raw.get("responses"))
    return MemoryAttempt(
        phase=phase,
        responses=responses,
        correct_prompts=list(targets),
        recalled_count=count_ordered_matches(responses, targets),
        response_time_ms=to_duration_ms(pick(raw, "response_time_ms", "responseTimeMs")),
        started_at=to_timestamp(pick(raw, "started_at", "startedAt")),
        completed_at=to_timestamp(pick(raw, "completed_at", "completedAt")),
    )


def normalize_memory(raw: Mapping[str, Any]) -> MemoryPayload:
    """Normalizes a memory submission (target list + recall attempts).

    Raises:
        SubmissionError: MISSING_LIST for an empty target list,
            MISSING_ATTEMPTS when there are no attempt objects.
    """
    raw_list = raw.get("list", raw.get("word_list"))
    if not isinstance(raw_list, list) or not raw_list:
        raise SubmissionError("MISSING_LIST", "'list' must be a non-empty list.")
    word_list = [normalize_list_item(item, i) for i, item in enumerate(raw_list)]
    targets = [item.label for item in word_list]

    attempts = [
        normalize_memory_attempt(item, targets)
        for item in _records(raw, "attempts", "MISSING_ATTEMPTS")
    ]
    return MemoryPayload(
        word_list=word_list,
        attempts=attempts,
        encoding_duration_ms=to_duration_ms(
            pick(raw, "encoding_duration_ms", "encodingDurationMs")
        ),
    )


# ---------------------------------------------------------------------------
# Naming
# ---------------------------------------------------------------------------


def normalize_naming_trial(raw: Mapping[str, Any]) -> NamingTrial:
    return NamingTrial(
        prompt_id=to_str(pick(raw, "prompt_id", "promptId")),
        prompt_label=to_str(pick(raw, "prompt_label", "promptLabel")),
        displayed_at=to_timestamp(pick(raw, "displayed_at", "displayedAt")),
        submitted_at=to_timestamp(pick(raw, "submitted_at", "submittedAt")),
        response_time_ms=to_duration_ms(pick(raw, "response_time_ms", "responseTimeMs")),
        answer_provided=to_str(pick(raw, "answer_provided", "answerProvided")),
        is_correct=to_bool(pick(raw, "is_correct", "isCorrect")),
        used_hint=to_bool(pick(raw, "used_hint", "usedHint")),
    )


def normalize_naming(raw: Mapping[str, Any]) -> NamingPayload:
    """Normalizes a naming submission.

    Raises:
        SubmissionError: MISSING_TRIALS when there are no trial objects.
    """
    trials = [
        normalize_naming_trial(item)
        for item in _records(raw, "trials", "MISSING_TRIALS")
    ]
    return NamingPayload(trials=trials, settings=to_mapping(raw.get("settings")))
