"""Fixtures for contract tests — one parameterized fixture per hook interface.

Each fixture yields a fresh implementation instance. Today there's only the
stub ("stub" param). When the team adds a real implementation (e.g. Postgres
or a document store), they add a second param value and an elif branch.

TEAM: To test your implementation against the contracts:
    1. Add your param string (e.g., "postgres") to the params list.
    2. Add an elif branch that yields your implementation instance.
    3. Run: python -m pytest cogwell/tests/contracts/ -v
    All tests should pass. If any fail, your implementation doesn't satisfy
    the contract — read the failing test's docstring for what's expected.

Uses @pytest_asyncio.fixture (not @pytest.fixture) for async fixture support
in strict mode.
"""

import pytest_asyncio

from cogwell.hooks.auth import FakeAuthService
from cogwell.hooks.database import InMemorySessionRepository
from cogwell.hooks.rollups import InMemoryRollupStore


@pytest_asyncio.fixture(params=["stub"])
async def auth_service(request):
    """Yields an AuthService implementation.

    TEAM: Add your auth provider here:
        @pytest_asyncio.fixture(params=["stub", "oauth"])
        async def auth_service(request):
            if request.param == "stub":
                yield FakeAuthService()
            elif request.param == "oauth":
                yield YourOAuthService(test_config)
    """
    if request.param == "stub":
        yield FakeAuthService()


@pytest_asyncio.fixture(params=["stub"])
async def session_repository(request):
    """Yields a SessionRepository implementation.

    TEAM: Add your database here. The repository must start empty and
    enforce the (user_id, game_key, session_number) unique constraint:
        @pytest_asyncio.fixture(params=["stub", "postgres"])
        async def session_repository(request):
            if request.param == "stub":
                yield InMemorySessionRepository()
            elif request.param == "postgres":
                repo = YourPostgresRepository(test_dsn)
                yield repo
                await repo.truncate()  # if needed
    """
    if request.param == "stub":
        yield InMemorySessionRepository()


@pytest_asyncio.fixture(params=["stub"])
async def rollup_store(request):
    """Yields a RollupStore implementation.

    TEAM: Add your document store here.
    """
    if request.param == "stub":
        yield InMemoryRollupStore()
