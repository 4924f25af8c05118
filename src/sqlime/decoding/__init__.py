"""Row decoding into dataclasses, pydantic models and single values."""

from sqlime.decoding.decoder import DecodingContext, StatementDecoder, default_decoder
from sqlime.decoding.description import FieldDescription, TypeDescription, describe
from sqlime.decoding.errors import (
    DecodingError,
    FieldMissingError,
    InvalidDecodeTargetError,
    InvalidValueError,
    NumericOverflowError,
    UnsupportedShapeError,
)
from sqlime.decoding.kinds import (
    FieldKind,
    Float32,
    Float64,
    Int8,
    Int16,
    Int32,
    Int64,
    UInt8,
    UInt16,
    UInt32,
    UInt64,
)
from sqlime.decoding.source import ColumnSource

__all__ = [
    "ColumnSource",
    "DecodingContext",
    "DecodingError",
    "FieldDescription",
    "FieldKind",
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
    "StatementDecoder",
    "TypeDescription",
    "UInt8",
    "UInt16",
    "UInt32",
    "UInt64",
    "UnsupportedShapeError",
    "default_decoder",
    "describe",
]
