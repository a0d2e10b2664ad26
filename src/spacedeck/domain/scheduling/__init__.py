# Domain Scheduling Package
from .models import ReviewItem, Rating, SchedulingPolicy, SchedulingState
from .ports import PolicyRepository, SchedulingStateRepository

__all__ = [
    "Rating",
    "ReviewItem",
    "SchedulingPolicy",
    "SchedulingState",
    "PolicyRepository",
    "SchedulingStateRepository",
]
