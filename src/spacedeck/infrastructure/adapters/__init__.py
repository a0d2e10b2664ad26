# Storage Adapters Package
from .memory import InMemoryPolicyRepository, InMemoryStateRepository

__all__ = ["InMemoryPolicyRepository", "InMemoryStateRepository"]
