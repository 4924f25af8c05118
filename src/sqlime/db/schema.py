"""Statement introspection: column positions and parameter counts.

Statements are prepared without being run (``apsw.ext.query_info`` aborts
execution from the exec tracer), so introspection never has side effects.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

import apsw
import apsw.ext

from sqlime.db.errors import CallerMisuseError, EngineError

logger = logging.getLogger(__name__)


class ColumnIndex(Mapping[str, int]):
    """Immutable map from column name to its 0-based position.

    Built once per prepared statement. When the engine reports the same name
    for several columns (an ambiguous join, a repeated expression) the last
    position wins; earlier columns stay reachable by index only.
    """

    __slots__ = ("_names", "_positions")

    def __init__(self, names: Iterable[str]) -> None:
        """Index the column names in declaration order."""
        self._names = tuple(names)
        positions: dict[str, int] = {}
        for index, name in enumerate(self._names):
            positions[name] = index
        self._positions = MappingProxyType(positions)

    @property
    def names(self) -> tuple[str, ...]:
        """Every column name in declaration order, duplicates included."""
        return self._names

    def index_of(self, name: str) -> int | None:
        """Return the position of ``name``, or None if no column has that name."""
        return self._positions.get(name)

    def __getitem__(self, name: str) -> int:
        return self._positions[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._positions)

    def __len__(self) -> int:
        return len(self._positions)

    def __repr__(self) -> str:
        return f"ColumnIndex({list(self._names)!r})"


@dataclass(frozen=True)
class StatementInfo:
    """What the engine reports about a prepared (not yet run) statement."""

    sql: str
    columns: ColumnIndex
    parameter_count: int
    is_readonly: bool
    remaining_sql: str | None = None


def introspect(handle: apsw.Connection, sql: str) -> StatementInfo:
    """Prepare the first statement in ``sql`` and describe it.

    Only the first statement is compiled; any trailing text is returned in
    ``remaining_sql`` and never run.
    """
    text = sql.strip()
    if not text:
        raise CallerMisuseError("SQL text contains no statement")
    try:
        details = apsw.ext.query_info(handle, text)
    except apsw.Error as exc:
        raise EngineError.from_exception(exc) from exc
    if not details.has_vdbe:
        # comments and bare semicolons compile to no program
        raise CallerMisuseError("SQL text contains no statement")

    columns = ColumnIndex(name for name, _decltype in details.description)
    if len(columns) != len(columns.names):
        logger.debug("Duplicate column names in %r resolve to the last position", text)
    return StatementInfo(
        sql=details.first_query,
        columns=columns,
        parameter_count=details.bindings_count,
        is_readonly=bool(details.is_readonly),
        remaining_sql=details.query_remaining,
    )


def expanded_sql(handle: apsw.Connection, sql: str, bindings: Sequence[Any]) -> str:
    """Return ``sql`` with ``bindings`` substituted in, for debugging output."""
    try:
        details = apsw.ext.query_info(handle, sql, tuple(bindings), expanded_sql=True)
    except apsw.Error as exc:
        raise EngineError.from_exception(exc) from exc
    return details.expanded_sql or ""
