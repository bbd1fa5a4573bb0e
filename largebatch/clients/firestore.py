"""Firestore database client.

Adapter over ``google.cloud.firestore.AsyncClient``. Each ``FirestoreWriteBatch``
wraps one ``AsyncWriteBatch``; Firestore enforces the per-batch operation
limit and all-or-nothing commit.
"""

from typing import Any, Dict, List, Mapping, Optional

from google.cloud import firestore
from google.cloud.firestore_v1.field_path import FieldPath

from largebatch.clients._base import BaseDatabaseClient, BaseWriteBatch
from largebatch.core.config import Settings
from largebatch.core.config import settings as default_settings
from largebatch.schemas import FieldUpdates, Precondition, SetOptions


class FirestoreWriteBatch(BaseWriteBatch):
    """Write batch backed by a Firestore ``AsyncWriteBatch``."""

    def __init__(self, client: "FirestoreDatabaseClient", batch: Any):
        """Initialize write batch.

        Args:
            client: Owning client (used to resolve refs and build write options)
            batch: The wrapped ``AsyncWriteBatch``
        """
        self._client = client
        self._batch = batch

    def create(self, document_ref: Any, data: Mapping[str, Any]) -> None:
        """Stage creation of a document that must not already exist."""
        self._batch.create(self._client.document(document_ref), data)

    def set(
        self,
        document_ref: Any,
        data: Mapping[str, Any],
        options: Optional[SetOptions] = None,
    ) -> None:
        """Stage a replacement, or a merge when options ask for one."""
        reference = self._client.document(document_ref)
        if options is not None:
            self._batch.set(reference, data, merge=options.merge)
        else:
            self._batch.set(reference, data)

    def update(
        self,
        document_ref: Any,
        data: Mapping[str, Any],
        precondition: Optional[Precondition] = None,
    ) -> None:
        """Stage a field-merge update of an existing document."""
        reference = self._client.document(document_ref)
        if precondition is not None:
            self._batch.update(reference, data, option=self._client.write_option(precondition))
        else:
            self._batch.update(reference, data)

    def update_field(self, document_ref: Any, updates: FieldUpdates) -> None:
        """Stage a field-path/value update.

        The Python client takes a ``{field_path: value}`` mapping, so tuple and
        ``FieldPath`` paths are rendered to their escaped string form.
        """
        field_updates: Dict[str, Any] = {
            _render_field_path(field): value for field, value in updates.pairs
        }
        self.update(document_ref, field_updates, updates.precondition)

    def delete(self, document_ref: Any, precondition: Optional[Precondition] = None) -> None:
        """Stage deletion of a document."""
        reference = self._client.document(document_ref)
        if precondition is not None:
            self._batch.delete(reference, option=self._client.write_option(precondition))
        else:
            self._batch.delete(reference)

    async def commit(self) -> List[Any]:
        """Commit the wrapped batch.

        Returns:
            Firestore ``WriteResult`` objects, one per staged write
        """
        return await self._batch.commit()


def _render_field_path(field: Any) -> str:
    if isinstance(field, str):
        return field
    if isinstance(field, (tuple, list)):
        return FieldPath(*field).to_api_repr()
    return field.to_api_repr()


class FirestoreDatabaseClient(BaseDatabaseClient):
    """Database client handing out Firestore write batches."""

    def __init__(self, client: Any):
        """Initialize Firestore client adapter.

        Args:
            client: A ``google.cloud.firestore.AsyncClient`` (or compatible)
        """
        self._client = client

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "FirestoreDatabaseClient":
        """Create an ``AsyncClient`` from FIRESTORE_* settings.

        Credentials are resolved by the Google client library (ADC).
        """
        settings = settings or default_settings
        kwargs: Dict[str, Any] = {}
        if settings.FIRESTORE_PROJECT:
            kwargs["project"] = settings.FIRESTORE_PROJECT
        if settings.FIRESTORE_DATABASE:
            kwargs["database"] = settings.FIRESTORE_DATABASE
        return cls(firestore.AsyncClient(**kwargs))

    @property
    def client(self) -> Any:
        """The wrapped Firestore client."""
        return self._client

    def batch(self) -> FirestoreWriteBatch:
        """Allocate a new, empty write batch."""
        return FirestoreWriteBatch(self, self._client.batch())

    def document(self, document_ref: Any) -> Any:
        """Resolve a path string to a document reference; pass references through."""
        if isinstance(document_ref, str):
            return self._client.document(document_ref)
        return document_ref

    def write_option(self, precondition: Precondition) -> Any:
        """Translate a Precondition into a Firestore write option."""
        if precondition.exists is not None:
            return self._client.write_option(exists=precondition.exists)
        return self._client.write_option(last_update_time=precondition.last_update_time)
