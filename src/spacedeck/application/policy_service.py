"""
Scheduling policy service, the application layer orchestrator for policies.

Resolves a user's active policy (override or baseline), and upserts or
resets the override through the PolicyRepository port.
"""

import logging

from spacedeck.domain.scheduling.models import SchedulingPolicy
from spacedeck.domain.scheduling.ports import PolicyRepository

logger = logging.getLogger(__name__)


class PolicyService:
    """
    Application service for the per-user scheduling policy.

    Depends on the PolicyRepository abstraction, not a concrete store.
    """

    def __init__(
        self,
        policy_repo: PolicyRepository,
        baseline: SchedulingPolicy | None = None,
    ):
        """
        Args:
            policy_repo: The repository (port) holding user overrides.
            baseline: Policy applied when a user has no override;
                uses the hard-coded defaults if not provided.
        """
        self._repo = policy_repo
        self._baseline = baseline or SchedulingPolicy.baseline()

    @property
    def baseline(self) -> SchedulingPolicy:
        return self._baseline

    async def get_policy(self, user_id: str) -> SchedulingPolicy:
        """Return the user's override, or the baseline when none is stored."""
        policy = await self._repo.get_policy(user_id)
        if policy is None:
            logger.debug(f"No policy override for {user_id}, using baseline")
            return self._baseline
        return policy

    async def save_policy(self, user_id: str, policy: SchedulingPolicy) -> SchedulingPolicy:
        """
        Replace the user's override.

        The policy is validated on construction, so an invalid one never
        reaches storage.
        """
        await self._repo.upsert_policy(user_id, policy)
        logger.info(f"Saved scheduling policy for {user_id}")
        return policy

    async def reset_policy(self, user_id: str) -> SchedulingPolicy:
        """Drop the user's override and return the baseline now in effect."""
        await self._repo.delete_policy(user_id)
        logger.info(f"Reset scheduling policy for {user_id} to baseline")
        return self._baseline
