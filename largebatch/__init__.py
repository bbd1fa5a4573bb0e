"""largebatch - stage an unbounded number of document writes over size-limited batches."""

from largebatch.accumulator import BatchAccumulator
from largebatch.clients import (
    BaseDatabaseClient,
    BaseWriteBatch,
    InMemoryDatabaseClient,
    InMemoryWriteBatch,
)
from largebatch.core.exceptions import (
    AccumulatorFailedError,
    BatchSequenceEmptyError,
    CommitInProgressError,
    InvalidCommitUnitError,
    InvalidFieldUpdateError,
    LargeBatchException,
    WriteRejectedError,
)
from largebatch.schemas import CommitSummary, FieldUpdates, Precondition, SetOptions

__all__ = [
    "BatchAccumulator",
    "BaseDatabaseClient",
    "BaseWriteBatch",
    "InMemoryDatabaseClient",
    "InMemoryWriteBatch",
    "CommitSummary",
    "FieldUpdates",
    "Precondition",
    "SetOptions",
    "LargeBatchException",
    "AccumulatorFailedError",
    "BatchSequenceEmptyError",
    "CommitInProgressError",
    "InvalidCommitUnitError",
    "InvalidFieldUpdateError",
    "WriteRejectedError",
]
