"""Database connections: open, execute, prepare, close."""

from __future__ import annotations

import logging
import weakref
from collections.abc import Callable, Iterable
from enum import IntFlag
from functools import reduce
from operator import or_
from pathlib import Path

import apsw

from sqlime.config import get_busy_timeout_ms, get_open_flag_names, get_statement_cache_size
from sqlime.db.errors import ConnectionClosedError, EngineError
from sqlime.db.row import column_text
from sqlime.db.statement import Statement

logger = logging.getLogger(__name__)

RowCallback = Callable[[dict[str, str]], object]


class OpenFlag(IntFlag):
    """Flags accepted when opening a database; values are the engine's own."""

    READONLY = apsw.SQLITE_OPEN_READONLY
    READWRITE = apsw.SQLITE_OPEN_READWRITE
    CREATE = apsw.SQLITE_OPEN_CREATE
    URI = apsw.SQLITE_OPEN_URI
    MEMORY = apsw.SQLITE_OPEN_MEMORY
    NO_MUTEX = apsw.SQLITE_OPEN_NOMUTEX
    FULL_MUTEX = apsw.SQLITE_OPEN_FULLMUTEX
    SHARED_CACHE = apsw.SQLITE_OPEN_SHAREDCACHE
    PRIVATE_CACHE = apsw.SQLITE_OPEN_PRIVATECACHE


def parse_open_flags(names: Iterable[str]) -> OpenFlag:
    """Combine flag names such as ``"readwrite"`` or ``"no_mutex"`` into an ``OpenFlag``."""
    flags = []
    for name in names:
        key = name.strip().upper().replace("-", "_")
        try:
            flags.append(OpenFlag[key])
        except KeyError:
            raise ValueError(f"unknown open flag: {name!r}") from None
    return reduce(or_, flags, OpenFlag(0))


def default_open_flags() -> OpenFlag:
    """Open flags used when none are given, from SQLIME_OPEN_FLAGS."""
    return parse_open_flags(get_open_flag_names())


class Connection:
    """An open database.

    Owns exactly one engine handle. Use ``Connection.open()`` (or
    ``open_database()``) to create one and ``close()`` (or a ``with`` block)
    to release it. Every operation other than ``close()`` fails with
    ``ConnectionClosedError`` once the connection is closed.
    """

    def __init__(self, handle: apsw.Connection) -> None:
        """Wrap an already open engine handle. Prefer ``Connection.open()``."""
        self._handle: apsw.Connection | None = handle
        self._statements: weakref.WeakSet[Statement] = weakref.WeakSet()

    @classmethod
    def open(cls, path: str | Path, flags: OpenFlag | int | None = None) -> Connection:
        """Open the database at ``path``.

        ``":memory:"`` and ``""`` open private in-memory and temporary
        databases. ``flags`` defaults to the configured open flags
        (READWRITE | CREATE). Invalid flag combinations are rejected by the
        engine, e.g. neither READONLY nor READWRITE fails with code 21.
        """
        if flags is None:
            flags = default_open_flags()
        filename = str(path)
        try:
            handle = apsw.Connection(
                filename, flags=int(flags), statementcachesize=get_statement_cache_size()
            )
        except apsw.Error as exc:
            raise EngineError.from_exception(exc) from exc

        timeout = get_busy_timeout_ms()
        if timeout:
            handle.set_busy_timeout(timeout)
        logger.debug("Opened database %r (flags=%s)", filename, OpenFlag(int(flags)))
        return cls(handle)

    @property
    def handle(self) -> apsw.Connection:
        """The engine handle, for operations this class does not wrap."""
        if self._handle is None:
            raise ConnectionClosedError("connection is closed")
        return self._handle

    @property
    def closed(self) -> bool:
        return self._handle is None

    @property
    def path(self) -> str:
        """Absolute path of the main database file; ``""`` for in-memory databases."""
        return self.handle.db_filename("main") or ""

    @property
    def is_readonly(self) -> bool:
        """Whether the main database was opened read-only."""
        return self.handle.readonly("main")

    def execute(self, sql: str, on_row: RowCallback | None = None, null_text: str = "") -> None:
        """Run every statement in ``sql``, without bindings.

        With ``on_row``, each result row is passed to it as a dict of column
        name to text, in row order; NULL cells arrive as ``null_text``. An
        exception raised by ``on_row`` stops execution and propagates.
        """
        cursor = self.handle.cursor()
        try:
            cursor.execute(sql)
            for values in cursor:
                if on_row is None:
                    continue
                names = [column[0] for column in cursor.get_description()]
                row: dict[str, str] = {}
                for name, value in zip(names, values, strict=False):
                    text = column_text(value)
                    row[name] = null_text if text is None else text
                on_row(row)
        except apsw.Error as exc:
            raise EngineError.from_exception(exc) from exc
        finally:
            cursor.close(force=True)

    def prepare(self, sql: str) -> Statement:
        """Compile the first statement in ``sql``. Close it when done."""
        statement = Statement(self, sql)
        self._statements.add(statement)
        logger.debug("Prepared statement: %s", statement.sql)
        return statement

    def _forget(self, statement: Statement) -> None:
        self._statements.discard(statement)

    def close(self) -> None:
        """Finalize open statements and close the handle. Safe to call repeatedly."""
        if self._handle is None:
            return
        for statement in list(self._statements):
            statement.close()
        handle, self._handle = self._handle, None
        try:
            handle.close()
        except apsw.Error as exc:
            raise EngineError.from_exception(exc) from exc
        logger.debug("Closed database")

    def __enter__(self) -> Connection:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        if self._handle is None:
            return "Connection(closed)"
        return f"Connection(path={self.path!r})"


def open_database(path: str | Path = ":memory:", flags: OpenFlag | int | None = None) -> Connection:
    """Open a database; shorthand for ``Connection.open()``."""
    return Connection.open(path, flags)
