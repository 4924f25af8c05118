"""Row snapshots with typed, engine-compatible cell access.

The typed accessors convert between storage classes the way the engine's
``sqlite3_column_*`` functions do: numbers render as text, text yields its
leading numeric prefix, NULL reads as 0 / 0.0 for numeric accessors.
"""

import math
import re
from collections.abc import Iterator, Sequence
from typing import Any

from sqlime.db.params import INT64_MAX, INT64_MIN, SQLParameter
from sqlime.db.schema import ColumnIndex

_INTEGER_PREFIX = re.compile(r"\s*([+-]?\d+)")
_REAL_PREFIX = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def column_text(value: SQLParameter) -> str | None:
    """Render a cell as text; NULL stays None.

    Blobs are read as UTF-8. Bytes that are not valid UTF-8 come back as
    U+FFFD, so the text can differ from what is stored; read such cells with
    ``column_blob`` to get the raw bytes.
    """
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    if isinstance(value, float):
        return _real_text(value)
    return str(value)


def column_int64(value: SQLParameter) -> int:
    """Read a cell as a 64-bit integer; NULL and non-numeric text read as 0."""
    if value is None:
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return _real_to_int64(value)
    match = _INTEGER_PREFIX.match(column_text(value) or "")
    if match is None:
        return 0
    return min(INT64_MAX, max(INT64_MIN, int(match.group(1))))


def column_double(value: SQLParameter) -> float:
    """Read a cell as a 64-bit float; NULL and non-numeric text read as 0.0."""
    if value is None:
        return 0.0
    if isinstance(value, float):
        return value
    if isinstance(value, int):
        return float(value)
    match = _REAL_PREFIX.match(column_text(value) or "")
    if match is None:
        return 0.0
    return float(match.group(1))


def column_blob(value: SQLParameter) -> bytes | None:
    """Read a cell as bytes; text is UTF-8 encoded, NULL stays None."""
    if value is None:
        return None
    if isinstance(value, bytes):
        return value
    return (column_text(value) or "").encode("utf-8")


def _real_text(value: float) -> str:
    if math.isinf(value):
        return "Inf" if value > 0 else "-Inf"
    mantissa, sep, exponent = f"{value:.15g}".partition("e")
    if "." not in mantissa:
        mantissa += ".0"
    return mantissa + sep + exponent


def _real_to_int64(value: float) -> int:
    if math.isnan(value):
        return 0
    if value <= INT64_MIN:
        return INT64_MIN
    if value >= INT64_MAX:
        return INT64_MAX
    return int(value)


class Row:
    """A read-only snapshot of one row produced by a statement step.

    Cells are addressed by 0-based index or by column name, resolved through
    the statement's ``ColumnIndex``. By-name accessors return None for a name
    that matches no column, except ``is_null_for`` which reports such a name
    as NULL.
    """

    __slots__ = ("_columns", "_values")

    def __init__(self, values: Sequence[SQLParameter], columns: ColumnIndex) -> None:
        """Snapshot ``values`` for the columns described by ``columns``."""
        self._values = tuple(values)
        self._columns = columns

    @property
    def columns(self) -> ColumnIndex:
        """The owning statement's column index."""
        return self._columns

    @property
    def values(self) -> tuple[SQLParameter, ...]:
        """Raw cell values in column order."""
        return self._values

    def index_of(self, name: str) -> int | None:
        """Return the column position for ``name``, or None."""
        return self._columns.index_of(name)

    def _cell(self, index: int) -> SQLParameter:
        if index < 0:
            raise IndexError(f"column index {index} out of range")
        return self._values[index]

    # -- by index --

    def string(self, index: int) -> str | None:
        """Text of the cell, or None for NULL.

        Invalid UTF-8 in a blob cell is replaced with U+FFFD; use ``blob()``
        for the stored bytes.
        """
        return column_text(self._cell(index))

    def int64(self, index: int) -> int:
        """Integer value of the cell; NULL reads as 0."""
        return column_int64(self._cell(index))

    def double(self, index: int) -> float:
        """Float value of the cell; NULL reads as 0.0."""
        return column_double(self._cell(index))

    def blob(self, index: int) -> bytes | None:
        """Bytes of the cell, or None for NULL."""
        return column_blob(self._cell(index))

    def is_null(self, index: int) -> bool:
        """Whether the cell is SQL NULL."""
        return self._cell(index) is None

    # -- by name --

    def string_for(self, name: str) -> str | None:
        index = self._columns.index_of(name)
        return None if index is None else self.string(index)

    def int64_for(self, name: str) -> int | None:
        index = self._columns.index_of(name)
        return None if index is None else self.int64(index)

    def double_for(self, name: str) -> float | None:
        index = self._columns.index_of(name)
        return None if index is None else self.double(index)

    def blob_for(self, name: str) -> bytes | None:
        index = self._columns.index_of(name)
        return None if index is None else self.blob(index)

    def is_null_for(self, name: str) -> bool:
        """Whether the named cell is NULL. Unknown names count as NULL."""
        index = self._columns.index_of(name)
        return True if index is None else self.is_null(index)

    # -- mapping-style access --

    def keys(self) -> tuple[str, ...]:
        """Column names in declaration order."""
        return self._columns.names

    def as_dict(self) -> dict[str, SQLParameter]:
        """Column name to raw value; duplicate names keep the last column."""
        return dict(zip(self._columns.names, self._values, strict=False))

    def __getitem__(self, key: str | int) -> Any:
        if isinstance(key, str):
            index = self._columns.index_of(key)
            if index is None:
                raise KeyError(key)
            return self._values[index]
        return self._cell(key)

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[SQLParameter]:
        return iter(self._values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Row):
            return NotImplemented
        return self._values == other._values and self._columns.names == other._columns.names

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Row({self.as_dict()!r})"
