"""
In-memory implementations of the scheduling storage ports.

Used by the CLI, which works on file snapshots, and as a test double.
"""

import logging

from spacedeck.domain.scheduling.models import SchedulingPolicy, SchedulingState
from spacedeck.domain.scheduling.ports import PolicyRepository, SchedulingStateRepository

logger = logging.getLogger(__name__)


class InMemoryPolicyRepository(PolicyRepository):
    def __init__(self, policies: dict[str, SchedulingPolicy] | None = None):
        self.policies: dict[str, SchedulingPolicy] = dict(policies or {})

    async def get_policy(self, user_id: str) -> SchedulingPolicy | None:
        return self.policies.get(user_id)

    async def upsert_policy(self, user_id: str, policy: SchedulingPolicy) -> None:
        self.policies[user_id] = policy

    async def delete_policy(self, user_id: str) -> None:
        self.policies.pop(user_id, None)


class InMemoryStateRepository(SchedulingStateRepository):
    """
    Collects committed states keyed by item id.

    Last write wins, matching how a storage layer without
    compare-and-swap behaves.
    """

    def __init__(self):
        self.states: dict[str, SchedulingState] = {}

    async def save_state(self, item_id: str, state: SchedulingState) -> None:
        if item_id in self.states:
            logger.debug(f"Overwriting stored state for {item_id}")
        self.states[item_id] = state
