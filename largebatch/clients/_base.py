"""Base database client classes.

The accumulator depends only on these interfaces. Connection handling, auth,
retries and the wire protocol all live behind a concrete client.
"""

from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional

from largebatch.schemas import FieldUpdates, Precondition, SetOptions


class BaseWriteBatch(ABC):
    """Atomic container of staged writes.

    Staging methods only record the write; nothing touches the database until
    commit(), which applies every staged write or none of them.
    """

    @abstractmethod
    def create(self, document_ref: Any, data: Mapping[str, Any]) -> None:
        """Stage creation of a document that must not already exist."""
        pass

    @abstractmethod
    def set(
        self,
        document_ref: Any,
        data: Mapping[str, Any],
        options: Optional[SetOptions] = None,
    ) -> None:
        """Stage a full replacement, or a merge when options ask for one."""
        pass

    @abstractmethod
    def update(
        self,
        document_ref: Any,
        data: Mapping[str, Any],
        precondition: Optional[Precondition] = None,
    ) -> None:
        """Stage a field-merge update of an existing document."""
        pass

    @abstractmethod
    def update_field(self, document_ref: Any, updates: FieldUpdates) -> None:
        """Stage a field-path/value update of an existing document."""
        pass

    @abstractmethod
    def delete(self, document_ref: Any, precondition: Optional[Precondition] = None) -> None:
        """Stage deletion of a document."""
        pass

    @abstractmethod
    async def commit(self) -> Any:
        """Apply all staged writes atomically.

        Returns:
            Client-specific commit result (e.g. write results)
        """
        pass


class BaseDatabaseClient(ABC):
    """Database client that hands out write batches."""

    @abstractmethod
    def batch(self) -> BaseWriteBatch:
        """Allocate a new, empty write batch."""
        pass
