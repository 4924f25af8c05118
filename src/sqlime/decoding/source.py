"""Column source protocol: what the decoder needs from a fetched row.

``sqlime.db.row.Row`` implements it; tests and other row producers can
provide their own implementation without touching the engine.
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class ColumnSource(Protocol):
    """Typed, engine-compatible access to the cells of one row."""

    def index_of(self, name: str) -> int | None:
        """Return the 0-based position of the named column, or None."""
        ...

    def is_null(self, index: int) -> bool:
        """Whether the cell is SQL NULL."""
        ...

    def int64(self, index: int) -> int:
        """Cell as a 64-bit integer; NULL reads as 0."""
        ...

    def double(self, index: int) -> float:
        """Cell as a double; NULL reads as 0.0."""
        ...

    def string(self, index: int) -> str | None:
        """Cell as text, or None for NULL."""
        ...

    def blob(self, index: int) -> bytes | None:
        """Cell as bytes, or None for NULL."""
        ...
