"""BatchAccumulator - unbounded write staging over size-limited database batches.

The database caps how many writes one atomic batch may hold. The accumulator
hides that cap: callers stage any number of writes through one handle, and the
writes are spread across as many underlying batches as needed. ``commit()``
then flushes every batch, optionally in sequential groups of concurrent
commits.

Staging is synchronous and unguarded. Callers staging from several tasks must
serialize access themselves (e.g. with an ``asyncio.Lock``). Staging while
``commit()`` is awaiting raises CommitInProgressError, since such a write would
land outside the batches being committed and be lost on reset.
"""

import asyncio
import time
from typing import Any, Callable, List, Mapping, Optional
from uuid import uuid4

from largebatch.async_helpers import chunked, gather_in_groups
from largebatch.clients._base import BaseDatabaseClient, BaseWriteBatch
from largebatch.core.config import FIRESTORE_MAX_BATCH_OPERATIONS, settings
from largebatch.core.exceptions import (
    AccumulatorFailedError,
    BatchSequenceEmptyError,
    CommitInProgressError,
    InvalidCommitUnitError,
)
from largebatch.core.logging import ContextualLogger, get_logger
from largebatch.schemas import CommitSummary, FieldUpdates, Precondition, SetOptions


class BatchAccumulator:
    """Stages writes across as many database batches as the operation count needs.

    Lifecycle:
    1. Created with one empty batch from the client
    2. Every staging call lands in the last batch; once that batch holds
       ``batch_capacity`` operations the next call opens a new one
    3. ``commit()`` commits every batch, then resets to an empty batch list
       and a zero counter so the accumulator can be reused
    4. If a commit fails, nothing is reset and the accumulator refuses any
       further use

    Example:
        >>> accumulator = BatchAccumulator(client)
        >>> for ref, data in rows:
        ...     accumulator.set(ref, data)
        >>> await accumulator.commit(commit_unit=10)
    """

    def __init__(
        self,
        client: BaseDatabaseClient,
        batch_capacity: Optional[int] = None,
        default_commit_unit: Optional[int] = None,
        logger: Optional[ContextualLogger] = None,
    ):
        """Initialize the accumulator.

        Args:
            client: Database client that hands out write batches
            batch_capacity: Max operations per batch (default: settings.BATCH_CAPACITY)
            default_commit_unit: Batches per commit group when commit() gets none
                (default: settings.DEFAULT_COMMIT_UNIT, None = all at once)
            logger: Contextual logger (default: the ``largebatch.accumulator`` logger)
        """
        capacity = batch_capacity if batch_capacity is not None else settings.BATCH_CAPACITY
        if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity <= 0:
            raise ValueError(f"batch_capacity must be a positive integer, got {capacity!r}")
        if capacity > FIRESTORE_MAX_BATCH_OPERATIONS:
            raise ValueError(
                f"batch_capacity {capacity} exceeds the database limit of "
                f"{FIRESTORE_MAX_BATCH_OPERATIONS} operations per batch"
            )
        if default_commit_unit is None:
            default_commit_unit = settings.DEFAULT_COMMIT_UNIT
        if default_commit_unit is not None:
            _validate_commit_unit(default_commit_unit)

        self._client = client
        self._batch_capacity = capacity
        self._default_commit_unit = default_commit_unit
        self._logger = (logger or get_logger("accumulator")).with_context(
            accumulator=uuid4().hex[:8]
        )

        self._batches: List[BaseWriteBatch] = [client.batch()]
        self._operation_count = 0
        self._pending_operations = 0
        self._failure: Optional[BaseException] = None
        self._failed = False
        self._committing = False

    # ------------------------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------------------------

    @property
    def batch_capacity(self) -> int:
        """Max operations staged into one batch."""
        return self._batch_capacity

    @property
    def batch_count(self) -> int:
        """Number of batches currently held."""
        return len(self._batches)

    @property
    def batches(self) -> List[BaseWriteBatch]:
        """Copy of the batch list, in staging order."""
        return list(self._batches)

    @property
    def operation_count(self) -> int:
        """Operations staged into the current (last) batch."""
        return self._operation_count

    @property
    def pending_operations(self) -> int:
        """Operations staged since construction or the last successful commit."""
        return self._pending_operations

    @property
    def failed(self) -> bool:
        """Whether a commit failed; a failed accumulator must be discarded."""
        return self._failed

    # ------------------------------------------------------------------------------------
    # Staging
    # ------------------------------------------------------------------------------------

    def create(self, document_ref: Any, data: Mapping[str, Any]) -> None:
        """Stage creation of a document.

        The commit fails (in the client) if the document already exists.
        """
        self._stage(lambda batch: batch.create(document_ref, data))

    def set(
        self,
        document_ref: Any,
        data: Mapping[str, Any],
        options: Optional[SetOptions] = None,
    ) -> None:
        """Stage a full replacement of a document, or a merge if options say so."""
        if options is not None:
            self._stage(lambda batch: batch.set(document_ref, data, options))
        else:
            self._stage(lambda batch: batch.set(document_ref, data))

    def update(
        self,
        document_ref: Any,
        data: Mapping[str, Any],
        precondition: Optional[Precondition] = None,
    ) -> None:
        """Stage a field-merge update of an existing document."""
        if precondition is not None:
            self._stage(lambda batch: batch.update(document_ref, data, precondition))
        else:
            self._stage(lambda batch: batch.update(document_ref, data))

    def update_field(self, document_ref: Any, field: Any, value: Any, *more: Any) -> None:
        """Stage a field-path/value update.

        Args:
            document_ref: Target document
            field: First field path
            value: Value for the first field
            *more: Further field/value pairs, optionally ending with a Precondition

        Raises:
            InvalidFieldUpdateError: If the arguments cannot be paired or a
                field path repeats. Raised before the operation is counted.
        """
        updates = FieldUpdates.from_args(field, value, *more)
        self._stage(lambda batch: batch.update_field(document_ref, updates))

    def delete(self, document_ref: Any, precondition: Optional[Precondition] = None) -> None:
        """Stage deletion of a document."""
        if precondition is not None:
            self._stage(lambda batch: batch.delete(document_ref, precondition))
        else:
            self._stage(lambda batch: batch.delete(document_ref))

    def _stage(self, write: Callable[[BaseWriteBatch], None]) -> None:
        """Apply one write to the current batch, opening a new batch if needed.

        Counters move and a newly opened batch joins the list only after the
        batch accepted the write. A write the client rejects leaves no trace.
        """
        self._ensure_usable()
        if self._committing:
            raise CommitInProgressError(
                "Cannot stage writes while commit() is running; they would not be committed"
            )

        if not self._batches:
            if self._operation_count != 0:
                raise BatchSequenceEmptyError(
                    f"No batch available but {self._operation_count} operations are "
                    f"counted against the current batch"
                )
            # Reset state after a successful commit
            batch, opened = self._client.batch(), True
        elif self._operation_count >= self._batch_capacity:
            batch, opened = self._client.batch(), True
        else:
            batch, opened = self._batches[-1], False

        write(batch)

        if opened:
            self._batches.append(batch)
            self._operation_count = 0
            if len(self._batches) > 1:
                self._logger.debug(
                    f"Batch capacity {self._batch_capacity} reached, "
                    f"opened batch #{len(self._batches)}"
                )

        self._operation_count += 1
        self._pending_operations += 1

    def _ensure_usable(self) -> None:
        if self._failed:
            raise AccumulatorFailedError(
                "A previous commit failed; some batches may already be applied. "
                "Discard this accumulator."
            ) from self._failure

    # ------------------------------------------------------------------------------------
    # Commit
    # ------------------------------------------------------------------------------------

    async def commit(self, commit_unit: Optional[int] = None) -> CommitSummary:
        """Commit every staged batch.

        Without a commit unit all batches are committed concurrently as one
        group. With one, batches are split into consecutive groups of at most
        ``commit_unit``; each group commits concurrently and groups run one
        after another.

        State is reset only after every group succeeds. On failure the
        client's exception propagates unchanged, batches already committed
        stay committed, and the accumulator is marked failed.

        Args:
            commit_unit: Max batches committed concurrently per group

        Returns:
            CommitSummary describing what was committed

        Raises:
            InvalidCommitUnitError: If commit_unit is not a positive integer
            AccumulatorFailedError: If a previous commit failed
            CommitInProgressError: If another commit() is still running
        """
        self._ensure_usable()
        if self._committing:
            raise CommitInProgressError("commit() is already running on this accumulator")
        if commit_unit is None:
            commit_unit = self._default_commit_unit
        if commit_unit is not None:
            _validate_commit_unit(commit_unit)

        batches = list(self._batches)
        groups = chunked(batches, commit_unit)
        group_sizes = [len(group) for group in groups]
        completed_groups = 0

        def on_group_done(index: int, _results: List[Any]) -> None:
            nonlocal completed_groups
            completed_groups = index + 1
            self._logger.debug(
                f"Committed group {index + 1}/{len(groups)} ({group_sizes[index]} batches)"
            )

        self._logger.debug(
            f"Committing {len(batches)} batches ({self._pending_operations} operations) "
            f"in {len(groups)} groups"
        )
        start = time.time()

        self._committing = True
        try:
            results = await gather_in_groups(
                [[batch.commit for batch in group] for group in groups],
                on_group_done=on_group_done,
            )
        except asyncio.CancelledError:
            self._failed = True
            self._logger.warning(
                f"Commit cancelled after {completed_groups}/{len(groups)} groups; "
                f"accumulator is no longer usable"
            )
            raise
        except Exception as e:
            self._failed = True
            self._failure = e
            self._logger.error(
                f"Commit failed in group {completed_groups + 1}/{len(groups)} after "
                f"{completed_groups} groups committed: {e}"
            )
            raise
        finally:
            self._committing = False

        duration = time.time() - start
        summary = CommitSummary(
            batch_count=len(batches),
            group_count=len(groups),
            group_sizes=group_sizes,
            operation_count=self._pending_operations,
            duration_seconds=duration,
            results=results,
        )

        self._batches = []
        self._operation_count = 0
        self._pending_operations = 0

        self._logger.info(
            f"Committed {summary.operation_count} operations in {summary.batch_count} batches "
            f"({summary.group_count} groups) in {duration:.2f}s"
        )
        return summary


def _validate_commit_unit(commit_unit: Any) -> None:
    if isinstance(commit_unit, bool) or not isinstance(commit_unit, int) or commit_unit <= 0:
        raise InvalidCommitUnitError(commit_unit)
