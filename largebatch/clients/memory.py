"""In-memory database client.

Dict-backed document store with Firestore-like write semantics. Used by the
test suite and for local development without a database.
"""

import asyncio
import copy
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from largebatch.clients._base import BaseDatabaseClient, BaseWriteBatch
from largebatch.core.exceptions import WriteRejectedError
from largebatch.schemas import FieldUpdates, Precondition, SetOptions


class StoredDocument:
    """A document as held by the in-memory store."""

    def __init__(self, data: Dict[str, Any], update_time: datetime):
        """Initialize stored document."""
        self.data = data
        self.update_time = update_time


def document_path(document_ref: Any) -> str:
    """Resolve a document reference (path string or object with ``.path``)."""
    if isinstance(document_ref, str):
        return document_ref
    path = getattr(document_ref, "path", None)
    if not isinstance(path, str):
        raise TypeError(f"Cannot resolve document path from {type(document_ref).__name__}")
    return path


def _split_field_path(path: Any) -> List[str]:
    if isinstance(path, str):
        return path.split(".")
    if isinstance(path, (tuple, list)):
        return list(path)
    # firestore_v1.field_path.FieldPath and friends
    return list(path.parts)


def _set_nested(data: Dict[str, Any], parts: List[str], value: Any) -> None:
    target = data
    for part in parts[:-1]:
        child = target.get(part)
        if not isinstance(child, dict):
            child = {}
            target[part] = child
        target = child
    target[parts[-1]] = copy.deepcopy(value)


def _get_nested(data: Mapping[str, Any], parts: List[str]) -> Tuple[bool, Any]:
    target: Any = data
    for part in parts:
        if not isinstance(target, Mapping) or part not in target:
            return False, None
        target = target[part]
    return True, target


def _deep_merge(base: Dict[str, Any], incoming: Mapping[str, Any]) -> None:
    for key, value in incoming.items():
        if isinstance(value, Mapping) and isinstance(base.get(key), dict):
            _deep_merge(base[key], value)
        else:
            base[key] = copy.deepcopy(value)


# A staged write: (kind, path, apply function)
_Write = Tuple[str, str, Callable[[Dict[str, StoredDocument], datetime], None]]


class InMemoryWriteBatch(BaseWriteBatch):
    """Write batch that applies its writes to an InMemoryDatabaseClient on commit."""

    def __init__(self, client: "InMemoryDatabaseClient"):
        """Initialize write batch.

        Args:
            client: Store the batch commits into
        """
        self._client = client
        self._writes: List[_Write] = []
        self.committed = False

    def __len__(self) -> int:
        """Number of staged writes."""
        return len(self._writes)

    @property
    def operations(self) -> List[Tuple[str, str]]:
        """Staged writes as (kind, path) pairs, in staging order."""
        return [(kind, path) for kind, path, _ in self._writes]

    def create(self, document_ref: Any, data: Mapping[str, Any]) -> None:
        """Stage creation of a document that must not already exist."""
        path = document_path(document_ref)
        payload = copy.deepcopy(dict(data))

        def apply(docs: Dict[str, StoredDocument], now: datetime) -> None:
            if path in docs:
                raise WriteRejectedError("document already exists", path)
            docs[path] = StoredDocument(payload, now)

        self._writes.append(("create", path, apply))

    def set(
        self,
        document_ref: Any,
        data: Mapping[str, Any],
        options: Optional[SetOptions] = None,
    ) -> None:
        """Stage a replacement, or a merge when options ask for one."""
        path = document_path(document_ref)
        payload = copy.deepcopy(dict(data))
        merge = options.merge if options is not None else False

        def apply(docs: Dict[str, StoredDocument], now: datetime) -> None:
            existing = docs.get(path)
            if not merge or existing is None:
                if isinstance(merge, list):
                    merged: Dict[str, Any] = {}
                    for field in merge:
                        found, value = _get_nested(payload, _split_field_path(field))
                        if found:
                            _set_nested(merged, _split_field_path(field), value)
                    docs[path] = StoredDocument(merged, now)
                else:
                    docs[path] = StoredDocument(payload, now)
                return

            data_copy = copy.deepcopy(existing.data)
            if merge is True:
                _deep_merge(data_copy, payload)
            else:
                for field in merge:
                    parts = _split_field_path(field)
                    found, value = _get_nested(payload, parts)
                    if not found:
                        raise WriteRejectedError(f"merge field '{field}' missing from data", path)
                    _set_nested(data_copy, parts, value)
            docs[path] = StoredDocument(data_copy, now)

        self._writes.append(("set", path, apply))

    def update(
        self,
        document_ref: Any,
        data: Mapping[str, Any],
        precondition: Optional[Precondition] = None,
    ) -> None:
        """Stage a field-merge update; keys are dotted field paths."""
        updates = FieldUpdates(
            pairs=tuple((key, value) for key, value in data.items()),
            precondition=precondition,
        )
        self._stage_update("update", document_ref, updates)

    def update_field(self, document_ref: Any, updates: FieldUpdates) -> None:
        """Stage a field-path/value update."""
        self._stage_update("update_field", document_ref, updates)

    def _stage_update(self, kind: str, document_ref: Any, updates: FieldUpdates) -> None:
        path = document_path(document_ref)
        pairs = [(_split_field_path(field), copy.deepcopy(value)) for field, value in updates.pairs]
        precondition = updates.precondition

        def apply(docs: Dict[str, StoredDocument], now: datetime) -> None:
            existing = docs.get(path)
            if existing is None:
                raise WriteRejectedError("document does not exist", path)
            _check_precondition(precondition, existing, path)
            data_copy = copy.deepcopy(existing.data)
            for parts, value in pairs:
                _set_nested(data_copy, parts, value)
            docs[path] = StoredDocument(data_copy, now)

        self._writes.append((kind, path, apply))

    def delete(self, document_ref: Any, precondition: Optional[Precondition] = None) -> None:
        """Stage deletion of a document."""
        path = document_path(document_ref)

        def apply(docs: Dict[str, StoredDocument], now: datetime) -> None:
            _check_precondition(precondition, docs.get(path), path)
            docs.pop(path, None)

        self._writes.append(("delete", path, apply))

    async def commit(self) -> List[datetime]:
        """Apply all staged writes atomically.

        Returns:
            The commit time once per staged write

        Raises:
            WriteRejectedError: If any write cannot be applied (nothing is applied)
        """
        return await self._client._apply(self)


def _check_precondition(
    precondition: Optional[Precondition], existing: Optional[StoredDocument], path: str
) -> None:
    if precondition is None:
        return
    if precondition.exists is not None and precondition.exists != (existing is not None):
        expected = "exist" if precondition.exists else "not exist"
        raise WriteRejectedError(f"precondition failed: document must {expected}", path)
    if precondition.last_update_time is not None:
        if existing is None or existing.update_time != precondition.last_update_time:
            raise WriteRejectedError("precondition failed: last_update_time mismatch", path)


class InMemoryDatabaseClient(BaseDatabaseClient):
    """Dict-backed document store.

    Tracks how many batch commits are in flight at once so callers can observe
    commit concurrency.
    """

    def __init__(self, commit_delay: float = 0.0):
        """Initialize in-memory client.

        Args:
            commit_delay: Seconds each commit sleeps before applying its writes
        """
        self.documents: Dict[str, StoredDocument] = {}
        self.batches: List[InMemoryWriteBatch] = []
        self.commit_log: List[InMemoryWriteBatch] = []
        self.commit_delay = commit_delay
        self.in_flight = 0
        self.max_in_flight = 0
        self._last_commit_time: Optional[datetime] = None

    def batch(self) -> InMemoryWriteBatch:
        """Allocate a new, empty write batch."""
        batch = InMemoryWriteBatch(self)
        self.batches.append(batch)
        return batch

    def get(self, document_ref: Any) -> Optional[Dict[str, Any]]:
        """Return a copy of a document's data, or None if it does not exist."""
        stored = self.documents.get(document_path(document_ref))
        return copy.deepcopy(stored.data) if stored else None

    def update_time(self, document_ref: Any) -> Optional[datetime]:
        """Return a document's last update time, or None if it does not exist."""
        stored = self.documents.get(document_path(document_ref))
        return stored.update_time if stored else None

    def _next_commit_time(self) -> datetime:
        # Strictly increasing so last_update_time preconditions can tell commits apart
        now = datetime.now(timezone.utc)
        if self._last_commit_time is not None and now <= self._last_commit_time:
            now = self._last_commit_time + timedelta(microseconds=1)
        self._last_commit_time = now
        return now

    async def _apply(self, batch: InMemoryWriteBatch) -> List[datetime]:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            # Yield so sibling commits in the same group overlap
            await asyncio.sleep(self.commit_delay)

            now = self._next_commit_time()
            staged = dict(self.documents)
            for _, _, apply in batch._writes:
                apply(staged, now)

            self.documents = staged
            batch.committed = True
            self.commit_log.append(batch)
            return [now] * len(batch)
        finally:
            self.in_flight -= 1
