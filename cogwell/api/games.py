"""Game API routes — session submission, history, latest metrics, rollup.

Five endpoints that form the tracker screens' window into the scoring engine:
- Submission: score and store one completed game session
- History: a game's recent sessions, newest first
- Latest metrics: the newest metrics record per game
- Rollup: the composite index and per-game summary, plus a context summary
- Recompute: rebuild the rollup from stored history

All responses use the ApiResponse envelope. Auth is enforced on every
endpoint via the get_current_user dependency; users only ever see their own
data.

Tier 3 orchestration module: imports from deps, ingest, engine.rollup,
hooks.interfaces and schemas.
"""

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Query

from cogwell.api.deps import (
    get_current_user,
    get_ingestor,
    get_rollup_store,
    get_session_repository,
)
from cogwell.engine.normalize import SubmissionError
from cogwell.engine.rollup import summarize_context
from cogwell.hooks.interfaces import DuplicateSessionError, RollupStore, SessionRepository
from cogwell.ingest import IngestionError, SessionIngestor
from cogwell.schemas import GAME_KEYS, ApiError, ApiResponse, User, UserMetricsRollup

router = APIRouter()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _api_error(status_code: int, code: str, message: str) -> HTTPException:
    """Builds an HTTPException carrying an ApiResponse error envelope."""
    return HTTPException(
        status_code=status_code,
        detail=ApiResponse(
            ok=False,
            error=ApiError(code=code, message=message),
        ).model_dump(),
    )


def _require_game_key(game_key: str) -> None:
    """Raises 400 UNSUPPORTED_GAME for keys outside the known games."""
    if game_key not in GAME_KEYS:
        raise _api_error(
            400,
            "UNSUPPORTED_GAME",
            f"Unsupported game key: {game_key!r}. Valid options: {', '.join(GAME_KEYS)}",
        )


# ---------------------------------------------------------------------------
# Submission
# ---------------------------------------------------------------------------


@router.post("/{game_key}/sessions")
async def submit_session(
    game_key: str,
    body: dict[str, Any] = Body(...),
    user: User = Depends(get_current_user),
    ingestor: SessionIngestor = Depends(get_ingestor),
) -> dict:
    """Scores and stores one completed session.

    The body is the client's raw JSON (snake_case or camelCase keys).
    Optional fields are normalized leniently; missing trials, attempts
    or list are rejected with 400 before anything is written.
    """
    try:
        result = await ingestor.submit(user.id, game_key, body)
    except SubmissionError as exc:
        raise _api_error(400, exc.code, exc.message) from None
    except DuplicateSessionError:
        raise _api_error(
            409,
            "SESSION_CONFLICT",
            "Another submission for this game was saved first. Please retry.",
        ) from None
    except IngestionError:
        raise _api_error(500, "PERSISTENCE_ERROR", "Failed to save the session.") from None

    return ApiResponse(
        ok=True,
        data={
            "session": result.session.model_dump(mode="json"),
            "rollup": result.rollup.model_dump(mode="json"),
        },
    ).model_dump()


# ---------------------------------------------------------------------------
# Read paths
# ---------------------------------------------------------------------------


@router.get("/metrics/latest")
async def latest_metrics(
    user: User = Depends(get_current_user),
    repository: SessionRepository = Depends(get_session_repository),
) -> dict:
    """Returns the newest metrics record for each game (null if unplayed)."""
    data: dict[str, Any] = {}
    for game_key in GAME_KEYS:
        sessions = await repository.list_sessions(user.id, game_key, 1)
        data[game_key] = sessions[0].metrics.model_dump(mode="json") if sessions else None
    return ApiResponse(ok=True, data=data).model_dump()


@router.get("/rollup")
async def get_rollup(
    user: User = Depends(get_current_user),
    repository: SessionRepository = Depends(get_session_repository),
    rollups: RollupStore = Depends(get_rollup_store),
    ingestor: SessionIngestor = Depends(get_ingestor),
) -> dict:
    """Returns the stored rollup plus a mood/sleep context summary.

    A user who has never played gets an empty rollup (composite_index null).
    """
    rollup = await rollups.get_rollup(user.id)
    if rollup is None:
        rollup = UserMetricsRollup(user_id=user.id)

    recent = await repository.list_recent_sessions(
        user.id, ingestor.config.composite_history_limit
    )
    return ApiResponse(
        ok=True,
        data={
            "rollup": rollup.model_dump(mode="json"),
            "context_summary": summarize_context(recent).model_dump(mode="json"),
        },
    ).model_dump()


@router.post("/rollup/recompute")
async def recompute_rollup(
    user: User = Depends(get_current_user),
    ingestor: SessionIngestor = Depends(get_ingestor),
) -> dict:
    """Rebuilds the rollup from stored history and replaces the stored copy."""
    try:
        rollup = await ingestor.recompute_rollup(user.id)
    except SubmissionError as exc:
        raise _api_error(400, exc.code, exc.message) from None
    return ApiResponse(ok=True, data=rollup.model_dump(mode="json")).model_dump()


@router.get("/{game_key}/sessions")
async def list_sessions(
    game_key: str,
    limit: int = Query(default=10, ge=1, le=50),
    user: User = Depends(get_current_user),
    repository: SessionRepository = Depends(get_session_repository),
) -> dict:
    """Lists the user's sessions for one game, newest first."""
    _require_game_key(game_key)
    sessions = await repository.list_sessions(user.id, game_key, limit)
    return ApiResponse(
        ok=True,
        data=[s.model_dump(mode="json") for s in sessions],
    ).model_dump()
