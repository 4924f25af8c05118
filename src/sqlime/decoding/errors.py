"""Decoding failures, each attributed to the field path that caused it."""

from collections.abc import Sequence
from typing import Any

from sqlime.db.errors import SqlimeError
from sqlime.decoding.kinds import FieldKind


def format_path(path: Sequence[str]) -> str:
    """Join a field path for display, e.g. ``owner.age``."""
    return ".".join(path) if path else "<root>"


class DecodingError(SqlimeError):
    """A row could not be decoded into the requested type.

    ``path`` lists the field names from the decode root to the failing field.
    Errors compare and hash by type and details.
    """

    def __init__(self, path: Sequence[str], detail: str, *extra: Any) -> None:
        """Initialize with the failing field path and a human-readable detail."""
        self._path = tuple(path)
        self._detail = detail
        self._extra = extra
        super().__init__(f"{format_path(self._path)}: {detail}")

    @property
    def path(self) -> tuple[str, ...]:
        """Field names from the decode root to the failing field."""
        return self._path

    @property
    def detail(self) -> str:
        return self._detail

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DecodingError):
            return NotImplemented
        return type(self) is type(other) and (self._path, self._detail, self._extra) == (
            other._path,
            other._detail,
            other._extra,
        )

    def __hash__(self) -> int:
        return hash((type(self), self._path, self._detail, self._extra))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(path={self._path!r}, detail={self._detail!r})"


class FieldMissingError(DecodingError):
    """A required field has no column, or its column is NULL where a value is needed."""

    def __init__(self, path: Sequence[str], kind: FieldKind | None = None) -> None:
        """Initialize with the missing field's path and the kind that was expected."""
        expected = f" {kind.value}" if kind is not None else ""
        super().__init__(path, f"no{expected} value found", kind)
        self.kind = kind


class NumericOverflowError(DecodingError):
    """A number does not fit exactly in the field's declared width or precision."""

    def __init__(self, path: Sequence[str], value: int | float, kind: FieldKind) -> None:
        """Initialize with the raw value read and the kind it had to fit."""
        super().__init__(path, f"number <{value}> does not fit in {kind.value}", value, kind)
        self.value = value
        self.kind = kind


class UnsupportedShapeError(DecodingError):
    """The target is container-shaped (list, tuple, mapping): rows hold flat columns."""

    def __init__(self, path: Sequence[str], shape: str) -> None:
        """Initialize with a description of the unsupported shape."""
        super().__init__(path, f"unsupported shape: {shape}", shape)
        self.shape = shape


class InvalidDecodeTargetError(DecodingError):
    """The target cannot be decoded at all: no column name, or no mapping for the type."""

    def __init__(self, path: Sequence[str], reason: str) -> None:
        """Initialize with the reason the target is unusable."""
        super().__init__(path, reason)
        self.reason = reason


class InvalidValueError(DecodingError):
    """A column value could not be converted to the field's type."""

    def __init__(self, path: Sequence[str], value: Any, reason: str) -> None:
        """Initialize with the offending value and why it was rejected."""
        super().__init__(path, f"invalid value {value!r}: {reason}", reason)
        self.value = value
        self.reason = reason
