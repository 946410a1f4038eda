"""Shared FastAPI dependencies — auth, persistence and scoring engine injection.

Module-level singletons for each service stub. Route handlers access them
via FastAPI's Depends() system — never by importing stubs directly. When the
team swaps a stub for a real implementation, they change the class here and
every downstream handler picks it up automatically.

TEAM: To wire your real services, replace the stub class on the right side
of each singleton assignment below. The get_* functions and all route
handlers stay unchanged.

Usage:
    from cogwell.api.deps import get_current_user, get_ingestor

    @router.post("/something")
    async def do_thing(
        user: User = Depends(get_current_user),
        ingestor: SessionIngestor = Depends(get_ingestor),
    ): ...
"""

import logging

from fastapi import Depends, Header, HTTPException

from cogwell.config import Settings
from cogwell.hooks.auth import FakeAuthService
from cogwell.hooks.database import InMemorySessionRepository
from cogwell.hooks.interfaces import AuthService, RollupStore, SessionRepository
from cogwell.hooks.rollups import InMemoryRollupStore
from cogwell.ingest import SessionIngestor
from cogwell.schemas import ApiError, ApiResponse, User
from cogwell.tuning import scoring_config_from_settings

logger = logging.getLogger("cogwell")

# ---------------------------------------------------------------------------
# Service singletons (the swap point)
# ---------------------------------------------------------------------------

# TEAM: Replace with your real implementations here.
_auth_service: AuthService = FakeAuthService()
_session_repository: SessionRepository = InMemorySessionRepository()
_rollup_store: RollupStore = InMemoryRollupStore()

# Scoring singleton, set by init_scoring_engine() in main.py at startup
_ingestor: SessionIngestor | None = None


def init_scoring_engine(settings: Settings) -> SessionIngestor:
    """Builds the ingestor with settings-derived tuning and installs it.

    Args:
        settings: The application Settings instance.

    Returns:
        The installed SessionIngestor.
    """
    global _ingestor
    config = scoring_config_from_settings(settings)
    _ingestor = SessionIngestor(_session_repository, _rollup_store, config)
    logger.info(
        "Scoring engine initialized: baseline_window=%d trend_window=%d",
        config.baseline_window,
        config.trend_window,
    )
    return _ingestor


# ---------------------------------------------------------------------------
# Dependency providers
# ---------------------------------------------------------------------------


def _http_error(status_code: int, code: str, message: str) -> HTTPException:
    """HTTPException whose detail is already an ApiResponse envelope."""
    envelope = ApiResponse(ok=False, error=ApiError(code=code, message=message))
    return HTTPException(status_code=status_code, detail=envelope.model_dump())


def get_auth_service() -> AuthService:
    return _auth_service


def get_session_repository() -> SessionRepository:
    return _session_repository


def get_rollup_store() -> RollupStore:
    return _rollup_store


def get_ingestor() -> SessionIngestor:
    """The installed SessionIngestor; 503 until init_scoring_engine() has run."""
    if _ingestor is None:
        raise _http_error(
            503,
            "SERVICE_UNAVAILABLE",
            "Scoring engine is not yet available. Server is starting up.",
        )
    return _ingestor


# ---------------------------------------------------------------------------
# Auth dependency used by route handlers
# ---------------------------------------------------------------------------


async def get_current_user(
    authorization: str | None = Header(default=None),
    auth_service: AuthService = Depends(get_auth_service),
) -> User:
    """Resolves the caller from an ``Authorization: Bearer <token>`` header.

    Every games endpoint depends on this; user ids in request bodies are
    never trusted.

    Raises:
        HTTPException: 401 UNAUTHORIZED for a missing header, a non-Bearer
            scheme, an empty token, or a token the auth service rejects.
    """
    if not authorization:
        raise _http_error(401, "UNAUTHORIZED", "Missing authorization header.")

    scheme, _, token = authorization.partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise _http_error(401, "UNAUTHORIZED", "Invalid authorization header format.")

    user = await auth_service.validate_token(token)
    if user is None:
        raise _http_error(401, "UNAUTHORIZED", "Invalid or expired token.")
    return user
