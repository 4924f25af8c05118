"""Connections, prepared statements and engine error translation."""

from sqlime.db.connection import Connection, OpenFlag, open_database, parse_open_flags
from sqlime.db.errors import (
    CallerMisuseError,
    ConnectionClosedError,
    EngineError,
    SqlimeError,
    StatementClosedError,
    StatementStateError,
    error_string,
)
from sqlime.db.params import ParameterBindings, SQLParameter, encode_parameter
from sqlime.db.row import Row
from sqlime.db.schema import ColumnIndex, StatementInfo, introspect
from sqlime.db.statement import Statement, StatementState

__all__ = [
    "CallerMisuseError",
    "ColumnIndex",
    "Connection",
    "ConnectionClosedError",
    "EngineError",
    "OpenFlag",
    "ParameterBindings",
    "Row",
    "SQLParameter",
    "SqlimeError",
    "Statement",
    "StatementClosedError",
    "StatementInfo",
    "StatementState",
    "StatementStateError",
    "encode_parameter",
    "error_string",
    "introspect",
    "open_database",
    "parse_open_flags",
]
