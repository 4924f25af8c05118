"""Prepared statements: binding, stepping and decoding rows.

A statement moves through four states::

    READY --step--> HAS_ROW --step--> ... --step--> DONE
      ^                |                             |
      +------reset-----+-----------------------------+
    READY/HAS_ROW --step (engine error)--> FAILED --reset--> READY

Stepping a statement that is DONE or FAILED is a caller error; ``reset()``
replays it with the bindings it already has.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from enum import StrEnum
from typing import TYPE_CHECKING, Any

import apsw

from sqlime.db.errors import EngineError, StatementClosedError, StatementStateError
from sqlime.db.params import ParameterBindings, SQLParameter
from sqlime.db.row import Row
from sqlime.db.schema import ColumnIndex, expanded_sql, introspect
from sqlime.decoding.decoder import StatementDecoder, default_decoder

if TYPE_CHECKING:
    from sqlime.db.connection import Connection

logger = logging.getLogger(__name__)


class StatementState(StrEnum):
    """Where a statement is in its step cycle."""

    READY = "ready"
    HAS_ROW = "has_row"
    DONE = "done"
    FAILED = "failed"


class Statement:
    """One compiled SQL statement owned by a ``Connection``.

    Create with ``Connection.prepare()``. Only the first statement of the SQL
    text is compiled. The column index is computed once, here, and never
    changes; ``row`` holds a snapshot of the row produced by the latest step.
    """

    def __init__(self, connection: Connection, sql: str) -> None:
        """Compile ``sql`` against ``connection`` without running it."""
        self._connection = connection
        self._info = introspect(connection.handle, sql)
        self._bindings = ParameterBindings(self._info.parameter_count)
        self._cursor: apsw.Cursor | None = None
        self._state = StatementState.READY
        self._row: Row | None = None
        self._closed = False

    # -- introspection --

    @property
    def sql(self) -> str:
        """The statement's SQL text as compiled."""
        return self._info.sql

    @property
    def expanded_sql(self) -> str:
        """The SQL text with the current bindings substituted in."""
        self._check_open()
        return expanded_sql(self._connection.handle, self.sql, self._bindings.values)

    @property
    def columns(self) -> ColumnIndex:
        return self._info.columns

    @property
    def column_count(self) -> int:
        return len(self._info.columns.names)

    @property
    def column_names(self) -> tuple[str, ...]:
        return self._info.columns.names

    @property
    def parameter_count(self) -> int:
        return self._info.parameter_count

    @property
    def bindings(self) -> tuple[SQLParameter, ...]:
        """Values currently bound, in parameter order."""
        return self._bindings.values

    @property
    def is_readonly(self) -> bool:
        """Whether the statement makes no direct changes to the database."""
        return self._info.is_readonly

    @property
    def state(self) -> StatementState:
        return self._state

    @property
    def row(self) -> Row | None:
        """Snapshot of the current row, or None unless the state is HAS_ROW."""
        return self._row

    @property
    def closed(self) -> bool:
        return self._closed

    # -- binding --

    def bind(self, parameters: Iterable[Any]) -> Statement:
        """Bind ``parameters`` positionally, starting at parameter 1.

        Values are copied. Binding stops at the first failure; parameters
        bound before it keep their new values. Returns the statement so calls
        can be chained.
        """
        self._check_open()
        if self._state is not StatementState.READY:
            raise EngineError.from_code(
                apsw.SQLITE_MISUSE, f"bind on a busy prepared statement: [{self.sql}]"
            )
        self._bindings.bind(parameters)
        return self

    def clear(self) -> None:
        """Set every parameter back to NULL. Does not reset the statement."""
        self._check_open()
        self._bindings.clear()

    # -- stepping --

    def step(self) -> bool:
        """Advance to the next row.

        Returns True when a row is available in ``row`` and False once the
        statement has run to completion. Engine failures raise
        ``EngineError`` and leave the statement FAILED.
        """
        self._check_open()
        if self._state in (StatementState.DONE, StatementState.FAILED):
            raise StatementStateError("step", self._state)
        try:
            if self._cursor is None:
                self._cursor = self._connection.handle.cursor()
                self._cursor.execute(self._info.sql, self._bindings.values)
            values = next(self._cursor)
        except StopIteration:
            self._row = None
            self._state = StatementState.DONE
            return False
        except apsw.Error as exc:
            self._row = None
            self._state = StatementState.FAILED
            raise EngineError.from_exception(exc) from exc
        self._row = Row(values, self._info.columns)
        self._state = StatementState.HAS_ROW
        return True

    def evaluate(self) -> None:
        """Run a statement that produces no rows.

        A statement that yields a row raises ``EngineError`` with code 100
        (``SQLITE_ROW``); the row stays available in ``row``.
        """
        if self.step():
            raise EngineError.from_code(apsw.SQLITE_ROW)

    def reset(self) -> None:
        """Return to READY so the statement can run again. Bindings are kept."""
        self._check_open()
        self._release_cursor()
        self._row = None
        self._state = StatementState.READY

    def __iter__(self) -> Statement:
        return self

    def __next__(self) -> Row:
        if self._state is StatementState.DONE:
            raise StopIteration
        row = self._row if self.step() else None
        if row is None:
            raise StopIteration
        return row

    # -- decoding --

    def decode(
        self, target: Any, *, key: str | None = None, decoder: StatementDecoder | None = None
    ) -> Any:
        """Decode the current row into ``target``.

        Structured targets (dataclasses, pydantic models) read one column per
        field; single values such as ``int`` need ``key`` to name the column.
        """
        self._check_open()
        if self._state is not StatementState.HAS_ROW or self._row is None:
            raise StatementStateError("decode", self._state)
        return (decoder or default_decoder).decode(target, self._row, key=key)

    def decode_all(
        self, target: Any, *, key: str | None = None, decoder: StatementDecoder | None = None
    ) -> list[Any]:
        """Step to completion, decoding every remaining row into ``target``."""
        results = []
        while self.step():
            results.append(self.decode(target, key=key, decoder=decoder))
        return results

    # -- lifecycle --

    def close(self) -> None:
        """Finalize the statement. Calling it again has no effect."""
        if self._closed:
            return
        self._release_cursor()
        self._row = None
        self._closed = True
        self._connection._forget(self)
        logger.debug("Finalized statement: %s", self._info.sql)

    def _release_cursor(self) -> None:
        if self._cursor is not None:
            cursor, self._cursor = self._cursor, None
            cursor.close(force=True)

    def _check_open(self) -> None:
        if self._closed:
            raise StatementClosedError(f"statement is finalized: {self._info.sql}")

    def __enter__(self) -> Statement:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"Statement(sql={self._info.sql!r}, state={self._state.value!r})"
