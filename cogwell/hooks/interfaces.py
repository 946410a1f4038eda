"""Hook interfaces — abstract base classes for all swappable services.

These ABCs define the contracts between the scoring engine's orchestrator
and the infrastructure layer. Each one has an in-memory stub that lets the
service run end-to-end without real infrastructure, and a production
implementation that the team wires in when ready.

Tier 1 leaf module: imports only from abc (stdlib) and cogwell.schemas
(also Tier 1). No engine code, no orchestration.

TEAM: To implement a real service, subclass the relevant ABC and implement
every abstract method. Python will raise TypeError at instantiation if
any method is missing — you'll know immediately what's left to do.

Usage:
    from cogwell.hooks.interfaces import AuthService, SessionRepository
    from cogwell.hooks.interfaces import RollupStore
"""

from abc import ABC, abstractmethod

from cogwell.schemas import GameSession, User, UserMetricsRollup


class DuplicateSessionError(Exception):
    """A session with the same (user_id, game_key, session_number) exists.

    Raised by SessionRepository.save_session. This is the persistence
    layer's uniqueness guarantee: two concurrent submissions that computed
    the same session_number cannot both be written.
    """

    def __init__(self, user_id: str, game_key: str, session_number: int) -> None:
        super().__init__(
            f"Session {session_number} already exists for user {user_id!r} "
            f"and game {game_key!r}."
        )
        self.user_id = user_id
        self.game_key = game_key
        self.session_number = session_number


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class AuthService(ABC):
    """Validates auth tokens and resolves users.

    The auth provider (JWT, session cookie — team's choice) lives behind
    this interface. The scoring service never touches tokens directly; it
    asks the AuthService and gets a User back.

    TEAM: Replace the stub (FakeAuthService) with your auth provider.
    """

    @abstractmethod
    async def validate_token(self, token: str) -> User | None:
        """Validates an auth token and returns the associated user.

        Args:
            token: Auth token from the request.

        Returns:
            The User if the token is valid and not expired, None otherwise.
        """
        ...

    @abstractmethod
    async def get_user(self, user_id: str) -> User | None:
        """Looks up a user by their ID.

        Args:
            user_id: The opaque user identifier.

        Returns:
            The User if found, None if the user doesn't exist.
        """
        ...


# ---------------------------------------------------------------------------
# Game sessions (append-only history)
# ---------------------------------------------------------------------------


class SessionRepository(ABC):
    """Append-only storage for scored game sessions.

    Sessions are written once and never updated — each carries the baseline
    snapshot it was scored against, which must stay exactly as written.

    Ordering: per-game listings are newest first by session_number;
    cross-game listings are newest first by completed_at, ties broken by
    write order (later write first).

    TEAM: Replace the stub (InMemorySessionRepository) with your database.
    A unique index on (user_id, game_key, session_number) gives you the
    DuplicateSessionError guarantee.
    """

    @abstractmethod
    async def count_sessions(self, user_id: str, game_key: str) -> int:
        """Returns how many sessions the user has for one game."""
        ...

    @abstractmethod
    async def list_sessions(
        self, user_id: str, game_key: str, limit: int
    ) -> list[GameSession]:
        """Returns up to limit sessions for one game, newest first.

        Args:
            user_id: The user identifier.
            game_key: The game to list.
            limit: Maximum number of sessions returned.

        Returns:
            Sessions ordered by session_number descending. Empty list if
            the user has never played the game.
        """
        ...

    @abstractmethod
    async def list_recent_sessions(self, user_id: str, limit: int) -> list[GameSession]:
        """Returns up to limit sessions across all games, newest first."""
        ...

    @abstractmethod
    async def get_session(self, session_id: str) -> GameSession | None:
        """Retrieves a session by id, None if it doesn't exist."""
        ...

    @abstractmethod
    async def save_session(self, session: GameSession) -> None:
        """Writes a new session.

        Args:
            session: The session to store.

        Raises:
            DuplicateSessionError: If (user_id, game_key, session_number)
                is already taken.
        """
        ...

    @abstractmethod
    async def delete_session(self, session_id: str) -> None:
        """Deletes a session. No-op if not found.

        Used to roll back a submission whose rollup could not be written.
        """
        ...


# ---------------------------------------------------------------------------
# Rollups (one document per user, full replace)
# ---------------------------------------------------------------------------


class RollupStore(ABC):
    """One UserMetricsRollup per user, replaced on every write.

    TEAM: Replace the stub (InMemoryRollupStore) with your document store
    or table. save_rollup must be an upsert that replaces every field —
    never a merge.
    """

    @abstractmethod
    async def get_rollup(self, user_id: str) -> UserMetricsRollup | None:
        """Returns the user's stored rollup, None if never computed."""
        ...

    @abstractmethod
    async def save_rollup(self, rollup: UserMetricsRollup) -> None:
        """Creates or fully replaces the rollup for rollup.user_id."""
        ...

    @abstractmethod
    async def delete_rollup(self, user_id: str) -> None:
        """Deletes the user's rollup. No-op if not found."""
        ...
