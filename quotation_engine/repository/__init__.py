"""
Storage adapters implementing the repository contract.
"""

from .base import Repository, Subscription
from .memory_repository import InMemoryRepository
from .dynamodb_repository import DynamoDBRepository

__all__ = ["Repository", "Subscription", "InMemoryRepository", "DynamoDBRepository"]
