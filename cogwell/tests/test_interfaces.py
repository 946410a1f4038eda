"""Tests for cogwell.hooks.interfaces — ABC contract enforcement.

Verifies that the abstract base classes enforce their contracts:
- Direct instantiation raises TypeError
- Incomplete subclasses raise TypeError at instantiation
- Complete subclasses with all methods implemented instantiate successfully

Behavioral contract tests live in cogwell/tests/contracts/.
"""

import pytest

from cogwell.hooks.interfaces import (
    AuthService,
    DuplicateSessionError,
    RollupStore,
    SessionRepository,
)


class TestAuthService:
    """AuthService ABC — validate_token and get_user."""

    def test_cannot_instantiate_directly(self) -> None:
        with pytest.raises(TypeError):
            AuthService()  # type: ignore[abstract]

    def test_incomplete_subclass_missing_get_user(self) -> None:
        class Partial(AuthService):
            async def validate_token(self, token):
                return None

        with pytest.raises(TypeError):
            Partial()  # type: ignore[abstract]


class TestSessionRepository:
    """SessionRepository ABC — six methods, all required."""

    def test_cannot_instantiate_directly(self) -> None:
        with pytest.raises(TypeError):
            SessionRepository()  # type: ignore[abstract]

    def test_incomplete_subclass_missing_delete(self) -> None:
        class Partial(SessionRepository):
            async def count_sessions(self, user_id, game_key):
                return 0

            async def list_sessions(self, user_id, game_key, limit):
                return []

            async def list_recent_sessions(self, user_id, limit):
                return []

            async def get_session(self, session_id):
                return None

            async def save_session(self, session):
                pass

        with pytest.raises(TypeError):
            Partial()  # type: ignore[abstract]

    def test_complete_subclass_instantiates(self) -> None:
        class Complete(SessionRepository):
            async def count_sessions(self, user_id, game_key):
                return 0

            async def list_sessions(self, user_id, game_key, limit):
                return []

            async def list_recent_sessions(self, user_id, limit):
                return []

            async def get_session(self, session_id):
                return None

            async def save_session(self, session):
                pass

            async def delete_session(self, session_id):
                pass

        assert isinstance(Complete(), SessionRepository)


class TestRollupStore:
    def test_cannot_instantiate_directly(self) -> None:
        with pytest.raises(TypeError):
            RollupStore()  # type: ignore[abstract]

    def test_incomplete_subclass_missing_save(self) -> None:
        class Partial(RollupStore):
            async def get_rollup(self, user_id):
                return None

            async def delete_rollup(self, user_id):
                pass

        with pytest.raises(TypeError):
            Partial()  # type: ignore[abstract]


class TestDuplicateSessionError:
    def test_carries_conflicting_key(self) -> None:
        exc = DuplicateSessionError("user-1", "stroop", 4)
        assert (exc.user_id, exc.game_key, exc.session_number) == ("user-1", "stroop", 4)
        assert "Session 4" in str(exc)
