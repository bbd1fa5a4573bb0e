"""Database clients the accumulator writes through.

The Firestore client lives in ``largebatch.clients.firestore`` and is imported
from there so the in-memory client stays usable without Google credentials.
"""

from largebatch.clients._base import BaseDatabaseClient, BaseWriteBatch
from largebatch.clients.memory import InMemoryDatabaseClient, InMemoryWriteBatch

__all__ = [
    "BaseDatabaseClient",
    "BaseWriteBatch",
    "InMemoryDatabaseClient",
    "InMemoryWriteBatch",
]
