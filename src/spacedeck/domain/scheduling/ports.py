"""
Ports (interfaces) for scheduling storage.

These define the contract that storage adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod

from .models import SchedulingPolicy, SchedulingState


class PolicyRepository(ABC):
    """
    Port for reading and writing per-user scheduling policy overrides.
    """

    @abstractmethod
    async def get_policy(self, user_id: str) -> SchedulingPolicy | None:
        """
        Fetch the user's policy override.

        Returns:
            The stored policy, or None if the user has no override.
        """
        pass

    @abstractmethod
    async def upsert_policy(self, user_id: str, policy: SchedulingPolicy) -> None:
        pass

    @abstractmethod
    async def delete_policy(self, user_id: str) -> None:
        """Remove the user's override so the baseline applies again."""
        pass


class SchedulingStateRepository(ABC):
    """
    Port for persisting the state produced by a commit.

    Implementations may raise on conflict or connectivity failure; the
    error is surfaced to the caller unchanged.
    """

    @abstractmethod
    async def save_state(self, item_id: str, state: SchedulingState) -> None:
        pass
