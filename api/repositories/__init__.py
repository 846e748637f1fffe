"""Repository layer for key-value store operations.

Repositories own key naming, expirations and (de)serialization, keeping
services free of storage details. Each is constructed with a KeyValueStore,
so tests can pass a MemoryStore and production a RedisStore.
"""

from repositories.access_repository import AccessRepository
from repositories.progress_log_repository import ProgressLogRepository
from repositories.tip_repository import TipRepository
from repositories.user_repository import UserRepository

__all__ = [
    "AccessRepository",
    "ProgressLogRepository",
    "TipRepository",
    "UserRepository",
]
