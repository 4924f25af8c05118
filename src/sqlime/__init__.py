"""Typed access to SQLite: open, prepare, bind, step and decode rows into Python types."""

import logging

from sqlime.db import (
    CallerMisuseError,
    ColumnIndex,
    Connection,
    ConnectionClosedError,
    EngineError,
    OpenFlag,
    Row,
    SQLParameter,
    SqlimeError,
    Statement,
    StatementClosedError,
    StatementState,
    StatementStateError,
    open_database,
)
from sqlime.decoding import (
    DecodingContext,
    DecodingError,
    FieldMissingError,
    Float32,
    Float64,
    Int8,
    Int16,
    Int32,
    Int64,
    InvalidDecodeTargetError,
    InvalidValueError,
    NumericOverflowError,
    StatementDecoder,
    UInt8,
    UInt16,
    UInt32,
    UInt64,
    UnsupportedShapeError,
    default_decoder,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    "CallerMisuseError",
    "ColumnIndex",
    "Connection",
    "ConnectionClosedError",
    "DecodingContext",
    "DecodingError",
    "EngineError",
    "FieldMissingError",
    "Float32",
    "Float64",
    "Int8",
    "Int16",
    "Int32",
    "Int64",
    "InvalidDecodeTargetError",
    "InvalidValueError",
    "NumericOverflowError",
    "OpenFlag",
    "Row",
    "SQLParameter",
    "SqlimeError",
    "Statement",
    "StatementClosedError",
    "StatementDecoder",
    "StatementState",
    "StatementStateError",
    "UInt8",
    "UInt16",
    "UInt32",
    "UInt64",
    "UnsupportedShapeError",
    "default_decoder",
    "open_database",
]
