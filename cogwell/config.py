"""App configuration — environment variable loading with typed defaults.

Loads settings from .env file (via python-dotenv) and os.environ.
Real environment variables take precedence over .env file values.

Integer knobs (BASELINE_WINDOW, TREND_WINDOW, ...) must be positive; a bad
value fails at load time with the variable name in the message, rather than
surfacing later as a silent mis-scoring.

Usage:
    from cogwell.config import get_settings
    settings = get_settings()
    print(settings.baseline_window)  # 3
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Only load .env from the project root; don't traverse parent directories.
PROJECT_ROOT = Path(__file__).resolve().parent.parent
_DOTENV_PATH = PROJECT_ROOT / ".env"


@dataclass(frozen=True)
class Settings:
    """Typed configuration for the Cogwell scoring service.

    All fields have sensible defaults for local development.
    """

    # App
    app_env: str
    app_port: int
    log_level: str
    cors_origins: list[str]

    # Scoring
    baseline_window: int
    trend_window: int
    session_history_limit: int
    composite_history_limit: int


def _positive_int(env_var: str, value: str) -> int:
    """Parses a strictly positive integer from an environment value.

    Args:
        env_var: Name of the environment variable (for error messages).
        value: The raw string value.

    Returns:
        The parsed integer.

    Raises:
        ValueError: If the value is not an integer or is not positive.
    """
    try:
        parsed = int(value)
    except ValueError:
        raise ValueError(
            f"Invalid value for {env_var}: {value!r}. Expected a positive integer."
        ) from None
    if parsed <= 0:
        raise ValueError(
            f"Invalid value for {env_var}: {value!r}. Expected a positive integer."
        )
    return parsed


def _split_csv(value: str) -> list[str]:
    """Splits a comma-separated string into a list of stripped, non-empty values."""
    return [item.strip() for item in value.split(",") if item.strip()]


def _load_settings() -> Settings:
    """Loads configuration from .env file and environment variables.

    Returns:
        A fully resolved Settings instance.
    """
    load_dotenv(_DOTENV_PATH)

    return Settings(
        # App
        app_env=os.environ.get("APP_ENV", "development"),
        app_port=int(os.environ.get("APP_PORT", "8000")),
        log_level=os.environ.get("LOG_LEVEL", "info"),
        cors_origins=_split_csv(
            os.environ.get("CORS_ORIGINS", "http://localhost:8081,http://localhost:19006")
        ),
        # Scoring
        baseline_window=_positive_int(
            "BASELINE_WINDOW", os.environ.get("BASELINE_WINDOW", "3")
        ),
        trend_window=_positive_int(
            "TREND_WINDOW", os.environ.get("TREND_WINDOW", "3")
        ),
        session_history_limit=_positive_int(
            "SESSION_HISTORY_LIMIT", os.environ.get("SESSION_HISTORY_LIMIT", "10")
        ),
        composite_history_limit=_positive_int(
            "COMPOSITE_HISTORY_LIMIT", os.environ.get("COMPOSITE_HISTORY_LIMIT", "25")
        ),
    )


_settings: Settings | None = None


def get_settings() -> Settings:
    """Returns the singleton Settings instance. Loads .env on first call."""
    global _settings
    if _settings is None:
        _settings = _load_settings()
    return _settings
