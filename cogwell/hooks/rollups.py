"""In-memory rollup store — development stub for RollupStore.

One rollup per user id, replaced wholesale on every save. Loses data on
restart.

TEAM: Replace this with your document store. Subclass RollupStore from
cogwell.hooks.interfaces; save_rollup must replace, never merge.
"""

from cogwell.hooks.interfaces import RollupStore
from cogwell.schemas import UserMetricsRollup


class InMemoryRollupStore(RollupStore):
    """STUB — dict-backed rollup storage keyed by user_id."""

    def __init__(self) -> None:
        self._rollups: dict[str, UserMetricsRollup] = {}

    async def get_rollup(self, user_id: str) -> UserMetricsRollup | None:
        return self._rollups.get(user_id)

    async def save_rollup(self, rollup: UserMetricsRollup) -> None:
        self._rollups[rollup.user_id] = rollup

    async def delete_rollup(self, user_id: str) -> None:
        self._rollups.pop(user_id, None)
