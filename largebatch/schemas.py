"""Value types passed through the accumulator to the database client."""

from datetime import datetime
from typing import Any, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from largebatch.core.exceptions import InvalidFieldUpdateError


class SetOptions(BaseModel):
    """Options for a set() write.

    Attributes:
        merge: True to merge the data into the existing document, or a list of
            field paths to merge. False (the default) replaces the document.
    """

    model_config = ConfigDict(frozen=True)

    merge: Union[bool, List[str]] = Field(False, description="Merge instead of replace")


class Precondition(BaseModel):
    """Precondition a document must satisfy for a write to apply.

    Exactly one of ``exists`` and ``last_update_time`` must be set.
    """

    model_config = ConfigDict(frozen=True)

    exists: Optional[bool] = Field(None, description="Document must (not) exist")
    last_update_time: Optional[datetime] = Field(
        None, description="Document must have been last updated at exactly this time"
    )

    @model_validator(mode="after")
    def validate_single_condition(self):
        """Ensure exactly one condition is set."""
        if (self.exists is None) == (self.last_update_time is None):
            raise ValueError("Precondition requires exactly one of exists or last_update_time")
        return self


class FieldUpdates(BaseModel):
    """Field-path/value pairs of an update, optionally guarded by a precondition.

    Built from the variadic ``update_field(ref, field, value, *rest)`` form:
    arguments after the first pair alternate field path and value, and an odd
    final argument must be a Precondition.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    pairs: Tuple[Tuple[Any, Any], ...]
    precondition: Optional[Precondition] = None

    @classmethod
    def from_args(cls, field: Any, value: Any, *rest: Any) -> "FieldUpdates":
        """Parse variadic update arguments.

        Args:
            field: First field path (string, tuple of segments or client FieldPath)
            value: Value for the first field
            *rest: More field/value pairs, optionally followed by a Precondition

        Returns:
            FieldUpdates with the pairs in argument order

        Raises:
            InvalidFieldUpdateError: If the arguments cannot be paired, or the same
                field path appears more than once
        """
        args = (field, value) + rest
        precondition = None
        if len(args) % 2 == 1:
            precondition = args[-1]
            args = args[:-1]
            if not isinstance(precondition, Precondition):
                raise InvalidFieldUpdateError(
                    f"Expected a Precondition as the final argument, "
                    f"got {type(precondition).__name__}"
                )

        pairs = []
        seen = set()
        for i in range(0, len(args), 2):
            path, path_value = args[i], args[i + 1]
            _validate_field_path(path)
            key = _field_path_key(path)
            if key in seen:
                raise InvalidFieldUpdateError(f"Field path {path!r} given more than once")
            seen.add(key)
            pairs.append((path, path_value))

        return cls(pairs=tuple(pairs), precondition=precondition)

    @property
    def fields(self) -> List[Any]:
        """Field paths in argument order."""
        return [path for path, _ in self.pairs]


def _validate_field_path(path: Any) -> None:
    if isinstance(path, Precondition):
        raise InvalidFieldUpdateError("A Precondition may only appear as the final argument")
    if isinstance(path, str):
        if not path:
            raise InvalidFieldUpdateError("Field path must not be empty")
        return
    if isinstance(path, (tuple, list)):
        if not path or not all(isinstance(part, str) and part for part in path):
            raise InvalidFieldUpdateError(f"Invalid field path segments: {path!r}")
        return
    # Client-native field path objects (e.g. firestore_v1.field_path.FieldPath) pass through
    if not hasattr(path, "to_api_repr"):
        raise InvalidFieldUpdateError(f"Unsupported field path type: {type(path).__name__}")


def _field_path_key(path: Any) -> Tuple[str, ...]:
    """Normalize a field path to its segments so equivalent spellings compare equal."""
    if isinstance(path, str):
        return tuple(path.split("."))
    if isinstance(path, (tuple, list)):
        return tuple(path)
    parts = getattr(path, "parts", None)
    if parts is not None:
        return tuple(parts)
    return (path.to_api_repr(),)


class CommitSummary(BaseModel):
    """Outcome of a successful BatchAccumulator.commit()."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    batch_count: int = Field(..., description="Batches committed")
    group_count: int = Field(..., description="Sequential commit groups")
    group_sizes: List[int] = Field(default_factory=list, description="Batches per group")
    operation_count: int = Field(..., description="Operations staged across all batches")
    duration_seconds: float = Field(..., description="Wall time spent committing")
    results: List[Any] = Field(
        default_factory=list, description="Return values of each batch commit, in order"
    )
