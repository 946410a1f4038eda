"""Fake auth service — development stub for AuthService.

Accepts any non-empty token and returns a test user. Empty tokens return
None (simulates a missing/invalid Authorization header).

TEAM: Replace this with your real auth provider. Subclass AuthService from
cogwell.hooks.interfaces and implement validate_token and get_user.

Usage:
    from cogwell.hooks.auth import FakeAuthService

    auth = FakeAuthService()                     # default user id
    auth = FakeAuthService(user_id="user-42")    # fixed user id
"""

from cogwell.hooks.interfaces import AuthService
from cogwell.schemas import User

_DEFAULT_USER_ID = "fake-user-1"
_DEFAULT_NAME = "Test User"


class FakeAuthService(AuthService):
    """STUB — returns a test user for any non-empty token.

    Does not perform real authentication. Every valid token resolves to the
    same user, configured at construction time.
    """

    def __init__(self, user_id: str = _DEFAULT_USER_ID) -> None:
        self._user_id = user_id

    async def validate_token(self, token: str) -> User | None:
        """Returns the test user for any non-empty token, None otherwise."""
        if not token:
            return None
        return User(id=self._user_id, name=_DEFAULT_NAME)

    async def get_user(self, user_id: str) -> User | None:
        """Returns a test user with the given ID, None for an empty ID."""
        if not user_id:
            return None
        return User(id=user_id, name=_DEFAULT_NAME)
