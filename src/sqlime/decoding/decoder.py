"""Reflection-driven decoding of result rows into structured values.

Rows are flat: every field of a target type, nested types included, reads a
column of the same row by name. A nested field extends the error path but not
the column namespace, so ``Person.owner.age`` reads the ``age`` column and a
failure there is reported at ``owner.age``.
"""

from __future__ import annotations

import math
import struct
from datetime import date, datetime
from typing import Any

from pydantic import ValidationError

from sqlime.decoding.description import (
    FieldDescription,
    TypeDescription,
    ValueShape,
    classify,
    describe,
)
from sqlime.decoding.errors import (
    FieldMissingError,
    InvalidDecodeTargetError,
    InvalidValueError,
    NumericOverflowError,
    UnsupportedShapeError,
)
from sqlime.decoding.kinds import FieldKind
from sqlime.decoding.source import ColumnSource


class DecodingContext:
    """The row being decoded and the field path reached so far.

    One context is created per top-level decode; ``child`` and ``enter``
    return extended copies, so a context is never mutated.
    """

    __slots__ = ("_path", "_source", "_types")

    def __init__(
        self,
        source: ColumnSource,
        path: tuple[str, ...] = (),
        types: tuple[type, ...] = (),
    ) -> None:
        self._source = source
        self._path = path
        self._types = types

    @property
    def source(self) -> ColumnSource:
        return self._source

    @property
    def path(self) -> tuple[str, ...]:
        """Field names from the decode root to the current position."""
        return self._path

    @property
    def key(self) -> str | None:
        """Last path segment: the column a single value is read from."""
        return self._path[-1] if self._path else None

    def child(self, name: str) -> DecodingContext:
        return DecodingContext(self._source, (*self._path, name), self._types)

    def enter(self, target: type) -> DecodingContext:
        """Record that ``target`` is being decoded; refuse self-containing types."""
        if target in self._types:
            raise InvalidDecodeTargetError(
                self._path, f"{target.__name__} contains itself and cannot be read from a flat row"
            )
        return DecodingContext(self._source, self._path, (*self._types, target))

    def contains(self, name: str) -> bool:
        """Whether the row has a column called ``name``."""
        return self._source.index_of(name) is not None

    def decode_nil(self, name: str) -> bool:
        """Whether the named cell is NULL. A column that does not exist counts as NULL."""
        index = self._source.index_of(name)
        return True if index is None else self._source.is_null(index)

    def column_index(self, name: str, kind: FieldKind | None = None) -> int:
        """Position of the named column, or ``FieldMissingError`` at the current path."""
        index = self._source.index_of(name)
        if index is None:
            raise FieldMissingError(self._path, kind)
        return index


class StatementDecoder:
    """Decodes the current row of a statement into an instance of a target type.

    Targets are dataclasses and pydantic models (decoded field by field in
    declaration order) or single values such as ``int``, ``str | None`` or
    ``Int8``, which need the column name passed as ``key``.
    """

    def decode(self, target: Any, source: ColumnSource, *, key: str | None = None) -> Any:
        """Decode ``source`` into ``target``.

        Raises a ``DecodingError`` subclass carrying the failing field path.
        """
        context = DecodingContext(source, (key,) if key is not None else ())
        return self._decode_value(context, key, classify(target))

    # -- dispatch --

    def _decode_value(
        self,
        context: DecodingContext,
        column: str | None,
        shape: ValueShape,
    ) -> Any:
        if shape.kind is FieldKind.UNSUPPORTED:
            raise UnsupportedShapeError(context.path, shape.detail)
        if shape.kind is FieldKind.UNKNOWN:
            raise InvalidDecodeTargetError(context.path, shape.detail)
        if shape.kind is FieldKind.NESTED:
            if shape.optional and not self._has_any_value(context, shape.python_type):
                return None
            return self._decode_structured(context.enter(shape.python_type), shape.python_type)
        if column is None:
            raise InvalidDecodeTargetError(
                context.path, f"a single {shape.kind.value} value needs a column key"
            )
        if shape.optional and context.decode_nil(column):
            return None
        return self._read(context, column, shape)

    def _decode_structured(self, context: DecodingContext, target: type) -> Any:
        description = describe(target)
        values: dict[str, Any] = {}
        for field in description.fields:
            field_context = context.child(field.name)
            if self._is_absent(field_context, field):
                if field.shape.optional and not field.has_default:
                    values[field.init_name] = None
                elif not field.has_default:
                    raise FieldMissingError(field_context.path, field.shape.kind)
                continue
            values[field.init_name] = self._decode_value(field_context, field.column, field.shape)
        return self._instantiate(context, description, values)

    def _is_absent(self, context: DecodingContext, field: FieldDescription) -> bool:
        shape = field.shape
        if shape.kind is FieldKind.NESTED:
            if shape.optional or not field.has_default:
                return False
            return not any(
                context.contains(column) for column in self._leaf_columns(shape.python_type)
            )
        if not shape.is_decodable:
            return False
        return not context.contains(field.column)

    def _instantiate(
        self, context: DecodingContext, description: TypeDescription, values: dict[str, Any]
    ) -> Any:
        try:
            return description.instantiate(values)
        except ValidationError as exc:
            error = exc.errors()[0]
            location = error.get("loc", ())
            names = {field.column: field.name for field in description.fields}
            names.update((field.init_name, field.name) for field in description.fields)
            segment = names.get(location[0], str(location[0])) if location else None
            path = (*context.path, segment) if segment is not None else context.path
            raise InvalidValueError(path, error.get("input"), error.get("msg", str(exc))) from exc

    # -- nested presence --

    def _leaf_columns(self, target: type, seen: tuple[type, ...] = ()) -> list[str]:
        if target in seen:
            return []
        columns = []
        for field in describe(target).fields:
            if field.shape.kind is FieldKind.NESTED:
                columns.extend(self._leaf_columns(field.shape.python_type, (*seen, target)))
            elif field.shape.is_decodable:
                columns.append(field.column)
        return columns

    def _has_any_value(self, context: DecodingContext, target: type) -> bool:
        """Whether any leaf column of ``target`` is present and not NULL."""
        return any(not context.decode_nil(column) for column in self._leaf_columns(target))

    # -- single values --

    def _read(self, context: DecodingContext, column: str, shape: ValueShape) -> Any:
        kind = shape.kind
        index = context.column_index(column, kind)
        source = context.source

        if kind is FieldKind.BOOL:
            return source.int64(index) != 0
        if kind.is_integer:
            return self._read_integer(context, source.int64(index), kind)
        if kind is FieldKind.FLOAT64:
            return source.double(index)
        if kind is FieldKind.FLOAT32:
            return self._exact_float32(context, source.double(index))

        if source.is_null(index):
            raise FieldMissingError(context.path, kind)
        if kind is FieldKind.STRING:
            return source.string(index)
        if kind is FieldKind.BLOB:
            return source.blob(index)
        if kind is FieldKind.ENUM:
            return self._read_enum(context, index, shape)
        if kind in (FieldKind.DATETIME, FieldKind.DATE):
            return self._read_temporal(context, index, kind)
        raise InvalidDecodeTargetError(context.path, f"no reader for {kind.value}")

    def _read_integer(self, context: DecodingContext, value: int, kind: FieldKind) -> int:
        low, high = kind.bounds
        # int64 reads can never leave the signed range, unsigned kinds can still go negative
        if not low <= value <= high:
            raise NumericOverflowError(context.path, value, kind)
        return value

    def _exact_float32(self, context: DecodingContext, value: float) -> float:
        if math.isnan(value):
            raise NumericOverflowError(context.path, value, FieldKind.FLOAT32)
        try:
            (narrowed,) = struct.unpack("f", struct.pack("f", value))
        except OverflowError:
            raise NumericOverflowError(context.path, value, FieldKind.FLOAT32) from None
        if narrowed != value:
            raise NumericOverflowError(context.path, value, FieldKind.FLOAT32)
        return narrowed

    def _read_enum(self, context: DecodingContext, index: int, shape: ValueShape) -> Any:
        source = context.source
        raw: Any = source.string(index) if shape.detail == "text" else source.int64(index)
        try:
            return shape.python_type(raw)
        except ValueError as exc:
            raise InvalidValueError(
                context.path, raw, f"not a member of {shape.python_type.__name__}"
            ) from exc

    def _read_temporal(self, context: DecodingContext, index: int, kind: FieldKind) -> Any:
        text = context.source.string(index) or ""
        parser = datetime if kind is FieldKind.DATETIME else date
        try:
            return parser.fromisoformat(text)
        except ValueError as exc:
            raise InvalidValueError(context.path, text, f"not an ISO-8601 {kind.value}") from exc


default_decoder = StatementDecoder()
