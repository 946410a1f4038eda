"""FastAPI application — entry point for the Cogwell scoring API.

create_app() assembles:
- the /api/v1 router (health + games)
- CORS for the mobile client's dev origins (from settings)
- a raw-ASGI access logger that never reads request or response bodies
- exception handlers that turn every failure into the ApiResponse envelope
- the scoring engine singleton in cogwell.api.deps

Run with: uvicorn cogwell.main:app --reload
"""

from __future__ import annotations

import logging
import time
from typing import Any

from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from cogwell.config import Settings, get_settings
from cogwell.schemas import ApiError, ApiResponse

logger = logging.getLogger("cogwell")


def _envelope(status_code: int, code: str, message: str) -> JSONResponse:
    """JSON error response in the ApiResponse shape."""
    return JSONResponse(
        status_code=status_code,
        content=ApiResponse(ok=False, error=ApiError(code=code, message=message)).model_dump(),
    )


# ---------------------------------------------------------------------------
# Access log (raw ASGI)
# ---------------------------------------------------------------------------


class RequestLoggingMiddleware:
    """One log line per HTTP request: method, path, status, duration.

    Session bodies carry mood, sleep and medication self-reports, so bodies,
    query strings and headers are never logged.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        started = time.monotonic()
        status = 0

        async def capture_status(message: Message) -> None:
            nonlocal status
            if message["type"] == "http.response.start":
                status = message.get("status", 0)
            await send(message)

        try:
            await self.app(scope, receive, capture_status)
        except Exception:
            # The outer error middleware answers with a 500 after we return.
            status = status or 500
            raise
        finally:
            elapsed_ms = (time.monotonic() - started) * 1000
            method = scope.get("method", "?")
            path = scope.get("path", "?")
            logger.log(
                logging.WARNING if status >= 500 else logging.INFO,
                "%s %s %d %.1fms",
                method,
                path,
                status,
                elapsed_ms,
                extra={"method": method, "path": path, "status": status},
            )


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------


async def _handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Passes route-built envelopes through; wraps bare HTTP errors."""
    if isinstance(exc.detail, dict) and "ok" in exc.detail:
        return JSONResponse(status_code=exc.status_code, content=exc.detail)
    return _envelope(exc.status_code, "HTTP_ERROR", str(exc.detail))


async def _handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Reports the first failing field as "loc -> path: message"."""
    errors = exc.errors()
    if not errors:
        return _envelope(422, "VALIDATION_ERROR", "Request validation failed.")

    first = errors[0]
    loc = " -> ".join(str(part) for part in first.get("loc", []))
    msg = first.get("msg", "Validation error")
    return _envelope(422, "VALIDATION_ERROR", f"{loc}: {msg}" if loc else msg)


async def _handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    """Logs the traceback server-side; the client gets a generic 500."""
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _envelope(500, "INTERNAL_ERROR", "An unexpected error occurred.")


# ---------------------------------------------------------------------------
# App creation
# ---------------------------------------------------------------------------


def create_app(settings: Settings | None = None) -> FastAPI:
    """Creates and configures the FastAPI application.

    Args:
        settings: Explicit settings (tests); defaults to get_settings().
    """
    settings = settings or get_settings()
    logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))

    application = FastAPI(
        title="Cogwell",
        description="Cognitive-assessment scoring and rollup service",
        version="0.1.0",
    )

    # Last added runs first: CORS wraps the access log so preflights are answered early.
    application.add_middleware(RequestLoggingMiddleware)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.add_exception_handler(StarletteHTTPException, _handle_http_error)
    application.add_exception_handler(RequestValidationError, _handle_validation_error)
    application.add_exception_handler(Exception, _handle_unexpected_error)

    application.include_router(_build_v1_router())

    from cogwell.api import deps

    deps.init_scoring_engine(settings)
    logger.info("Cogwell started: env=%s", settings.app_env)
    return application


def _build_v1_router() -> APIRouter:
    from cogwell.api.games import router as games_router

    v1 = APIRouter(prefix="/api/v1")

    @v1.get("/health")
    async def health() -> dict[str, Any]:
        return ApiResponse(ok=True, data={"status": "healthy"}).model_dump()

    v1.include_router(games_router, prefix="/games", tags=["games"])
    return v1


app = create_app()
