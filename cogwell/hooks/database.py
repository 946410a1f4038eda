"""In-memory session repository — development stub for SessionRepository.

Python dict-backed, append-only storage for scored sessions. Data lives only
in memory and is lost on restart. The (user_id, game_key, session_number)
uniqueness guarantee is enforced on write, exactly like a unique index.

TEAM: Replace this with your real database. Subclass SessionRepository from
cogwell.hooks.interfaces and implement all six abstract methods.

Usage:
    from cogwell.hooks.database import InMemorySessionRepository

    repo = InMemorySessionRepository()
    await repo.save_session(session)
    await repo.list_sessions("user-1", "stroop", limit=10)
"""

from itertools import count

from cogwell.hooks.interfaces import DuplicateSessionError, SessionRepository
from cogwell.schemas import GameSession


class InMemorySessionRepository(SessionRepository):
    """STUB — dict-backed session storage, loses data on restart.

    Sessions are keyed by id. A secondary key set tracks
    (user_id, game_key, session_number) for the uniqueness check. A write
    sequence number breaks completed_at ties in cross-game listings.
    """

    def __init__(self) -> None:
        """Initialises empty in-memory stores."""
        self._sessions: dict[str, GameSession] = {}
        self._numbers: dict[tuple[str, str, int], str] = {}
        self._write_seq: dict[str, int] = {}
        self._seq = count()

    async def count_sessions(self, user_id: str, game_key: str) -> int:
        return sum(
            1
            for s in self._sessions.values()
            if s.user_id == user_id and s.game_key == game_key
        )

    async def list_sessions(
        self, user_id: str, game_key: str, limit: int
    ) -> list[GameSession]:
        """Returns the user's sessions for one game, newest first."""
        matches = [
            s
            for s in self._sessions.values()
            if s.user_id == user_id and s.game_key == game_key
        ]
        matches.sort(key=lambda s: s.session_number, reverse=True)
        return matches[:limit]

    async def list_recent_sessions(self, user_id: str, limit: int) -> list[GameSession]:
        """Returns the user's sessions across all games, newest first."""
        matches = [s for s in self._sessions.values() if s.user_id == user_id]
        matches.sort(key=lambda s: (s.completed_at, self._write_seq[s.id]), reverse=True)
        return matches[:limit]

    async def get_session(self, session_id: str) -> GameSession | None:
        return self._sessions.get(session_id)

    async def save_session(self, session: GameSession) -> None:
        """Stores a new session.

        Raises:
            DuplicateSessionError: If the session number is already taken
                for this user and game.
        """
        key = (session.user_id, session.game_key, session.session_number)
        if key in self._numbers:
            raise DuplicateSessionError(*key)
        self._numbers[key] = session.id
        self._sessions[session.id] = session
        self._write_seq[session.id] = next(self._seq)

    async def delete_session(self, session_id: str) -> None:
        """Deletes a session. No-op if not found (idempotent)."""
        session = self._sessions.pop(session_id, None)
        if session is None:
            return
        self._numbers.pop((session.user_id, session.game_key, session.session_number), None)
        self._write_seq.pop(session_id, None)
