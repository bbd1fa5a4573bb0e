"""Exceptions raised by largebatch.

All library exceptions inherit from LargeBatchException. Errors raised by the
underlying database client during commit are never wrapped; they reach the
caller unchanged.
"""


class LargeBatchException(Exception):
    """Base exception for largebatch."""

    pass


class BatchSequenceEmptyError(LargeBatchException):
    """Raised when a staging call finds no batch to write into.

    The batch list is only emptied by a successful commit, which also zeroes
    the operation counter. An empty list with a non-zero counter means the
    accumulator state was corrupted and staging cannot continue safely.
    """

    pass


class InvalidFieldUpdateError(LargeBatchException, ValueError):
    """Raised when variadic field/value arguments cannot be paired.

    Examples:
    - A trailing argument that is not a Precondition
    - A Precondition followed by more arguments
    - A field path that is empty or not a string / sequence of strings
    - The same field path given twice, in any spelling
    """

    pass


class InvalidCommitUnitError(LargeBatchException, ValueError):
    """Raised when commit_unit is not a positive integer."""

    def __init__(self, commit_unit: object):
        """Initialize invalid commit unit error.

        Args:
            commit_unit: The rejected value
        """
        self.commit_unit = commit_unit
        super().__init__(f"commit_unit must be a positive integer, got {commit_unit!r}")


class AccumulatorFailedError(LargeBatchException):
    """Raised when an accumulator is used again after a failed commit.

    Some batches may already be applied in the database while others are not,
    and the accumulator cannot tell them apart. Discard it and start over.
    """

    pass


class WriteRejectedError(LargeBatchException):
    """Raised by the in-memory client when a staged write cannot be applied.

    Examples:
    - create() on a document that already exists
    - update() on a document that does not exist
    - A precondition that does not hold at commit time
    """

    def __init__(self, reason: str, path: str):
        """Initialize write rejected error.

        Args:
            reason: Human-readable reason for the rejection
            path: Path of the document the write targeted
        """
        self.reason = reason
        self.path = path
        super().__init__(f"Write to '{path}' rejected: {reason}")


class CommitInProgressError(LargeBatchException):
    """Raised when staging or committing while commit() is still awaiting.

    A write staged mid-commit would land in a batch that is already being
    committed, or outside the set being committed, and be dropped on reset.
    """

    pass
