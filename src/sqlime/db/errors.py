"""Error taxonomy and translation of engine result codes.

Three families share the ``SqlimeError`` base:

- ``EngineError``: anything the SQL engine reported (open, bind, step, reset).
- ``DecodingError`` (see ``sqlime.decoding.errors``): a row could not be
  materialized into the requested type.
- ``CallerMisuseError``: an operation was invoked in a state that forbids it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import apsw
import apsw.ext

if TYPE_CHECKING:
    from enum import Enum

# Text of sqlite3_errstr() for each primary result code. Codes the engine has
# no message for fall through to "unknown error".
_ERROR_STRINGS: dict[int, str] = {
    apsw.SQLITE_OK: "not an error",
    apsw.SQLITE_ERROR: "SQL logic error",
    apsw.SQLITE_PERM: "access permission denied",
    apsw.SQLITE_ABORT: "query aborted",
    apsw.SQLITE_BUSY: "database is locked",
    apsw.SQLITE_LOCKED: "database table is locked",
    apsw.SQLITE_NOMEM: "out of memory",
    apsw.SQLITE_READONLY: "attempt to write a readonly database",
    apsw.SQLITE_INTERRUPT: "interrupted",
    apsw.SQLITE_IOERR: "disk I/O error",
    apsw.SQLITE_CORRUPT: "database disk image is malformed",
    apsw.SQLITE_NOTFOUND: "unknown operation",
    apsw.SQLITE_FULL: "database or disk is full",
    apsw.SQLITE_CANTOPEN: "unable to open database file",
    apsw.SQLITE_PROTOCOL: "locking protocol",
    apsw.SQLITE_SCHEMA: "database schema has changed",
    apsw.SQLITE_TOOBIG: "string or blob too big",
    apsw.SQLITE_CONSTRAINT: "constraint failed",
    apsw.SQLITE_MISMATCH: "datatype mismatch",
    apsw.SQLITE_MISUSE: "bad parameter or other API misuse",
    apsw.SQLITE_AUTH: "authorization denied",
    apsw.SQLITE_RANGE: "column index out of range",
    apsw.SQLITE_NOTADB: "file is not a database",
    apsw.SQLITE_NOTICE: "notification message",
    apsw.SQLITE_WARNING: "warning message",
}


def error_string(code: int) -> str:
    """Return the engine's short, stable description of a result code."""
    if code == apsw.SQLITE_ABORT_ROLLBACK:
        return "abort due to ROLLBACK"
    if code == apsw.SQLITE_ROW:
        return "another row available"
    if code == apsw.SQLITE_DONE:
        return "no more rows available"
    return _ERROR_STRINGS.get(code & 0xFF, "unknown error")


class SqlimeError(Exception):
    """Base class for every error raised by sqlime."""


class EngineError(SqlimeError):
    """A failure reported by the SQL engine.

    Carries the primary result code, the engine's short message for that code
    and the detailed reason captured from the engine at the moment of failure.
    Instances compare and hash by ``(code, message, reason)`` so tests can
    assert on them exactly.
    """

    def __init__(
        self, code: int, message: str, reason: str, *, extended_code: int | None = None
    ) -> None:
        """Initialize with the result code and both descriptions."""
        super().__init__(code, message, reason)
        self._code = code
        self._message = message
        self._reason = reason
        self._extended_code = extended_code if extended_code is not None else code

    @property
    def code(self) -> int:
        """Primary result code (``SQLITE_MISUSE`` is 21, and so on)."""
        return self._code

    @property
    def message(self) -> str:
        """Short error description for the code."""
        return self._message

    @property
    def reason(self) -> str:
        """A complete sentence (or more) describing why the operation failed."""
        return self._reason

    @property
    def extended_code(self) -> int:
        """Extended result code, or the primary code when none was reported."""
        return self._extended_code

    @property
    def name(self) -> str:
        """Symbolic name of the result code, e.g. ``SQLITE_CANTOPEN``."""
        return apsw.ext.result_string(self._code)

    @classmethod
    def from_code(cls, code: int, reason: str | None = None) -> EngineError:
        """Build an error for a result code, defaulting the reason to the short message."""
        message = error_string(code)
        return cls(code, message, reason if reason is not None else message)

    @classmethod
    def from_exception(cls, exc: apsw.Error) -> EngineError:
        """Translate an apsw exception into an ``EngineError``.

        apsw's own misuse errors (closed cursors, bad bindings, threading
        violations) carry no result code and are reported as ``SQLITE_MISUSE``.
        """
        code = getattr(exc, "result", None)
        if not isinstance(code, int) or code < 0:
            code = apsw.SQLITE_MISUSE
        extended = getattr(exc, "extendedresult", None)
        return cls(
            code,
            error_string(code),
            _exception_reason(exc),
            extended_code=extended if isinstance(extended, int) and extended >= 0 else None,
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EngineError):
            return NotImplemented
        return (self._code, self._message, self._reason) == (
            other._code,
            other._message,
            other._reason,
        )

    def __hash__(self) -> int:
        return hash((EngineError, self._code, self._message, self._reason))

    def __str__(self) -> str:
        return f"{self._message} ({self.name}): {self._reason}"

    def __repr__(self) -> str:
        return (
            f"EngineError(code={self._code!r}, message={self._message!r}, "
            f"reason={self._reason!r})"
        )


def _exception_reason(exc: apsw.Error) -> str:
    """Extract the engine's diagnostic text from an apsw exception."""
    text = str(exc.args[0]) if exc.args else ""
    # apsw prefixes the message with the exception class name
    prefix = f"{type(exc).__name__}: "
    if text.startswith(prefix):
        text = text[len(prefix) :]
    return text


class CallerMisuseError(SqlimeError):
    """An operation was invoked in a state that does not allow it."""


class ConnectionClosedError(CallerMisuseError):
    """The connection was used after ``close()``."""


class StatementClosedError(CallerMisuseError):
    """The statement was used after it was finalized."""


class StatementStateError(CallerMisuseError):
    """A statement operation was attempted from the wrong lifecycle state."""

    def __init__(self, operation: str, state: Enum) -> None:
        """Initialize with the attempted operation and the statement's state."""
        super().__init__(f"cannot {operation} a statement in state {state.value!r}")
        self.operation = operation
        self.state = state
