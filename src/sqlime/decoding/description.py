"""Target type descriptions, derived by reflection.

A description lists a structured type's fields in declaration order, each
with the column it reads and its semantic kind. Dataclasses (including
pydantic dataclasses) and pydantic models are supported; nothing has to be
registered by hand.
"""

from __future__ import annotations

import dataclasses
import functools
import types
import typing
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Annotated, Any, get_args, get_origin, get_type_hints

from pydantic import BaseModel

from sqlime.decoding.errors import InvalidDecodeTargetError
from sqlime.decoding.kinds import FieldKind

_SCALAR_KINDS: dict[Any, FieldKind] = {
    bool: FieldKind.BOOL,
    int: FieldKind.INT64,
    float: FieldKind.FLOAT64,
    str: FieldKind.STRING,
    bytes: FieldKind.BLOB,
    datetime: FieldKind.DATETIME,
    date: FieldKind.DATE,
}

_MARKER_BASES: dict[FieldKind, type] = {
    FieldKind.FLOAT32: float,
    FieldKind.FLOAT64: float,
}


@dataclass(frozen=True)
class ValueShape:
    """The decoded kind of one annotation."""

    kind: FieldKind
    python_type: Any = None
    optional: bool = False
    detail: str = ""

    @property
    def is_decodable(self) -> bool:
        return self.kind not in (FieldKind.UNSUPPORTED, FieldKind.UNKNOWN)


@dataclass(frozen=True)
class FieldDescription:
    """One field of a structured type."""

    name: str
    column: str
    init_name: str
    shape: ValueShape
    has_default: bool = False


@dataclass(frozen=True)
class TypeDescription:
    """The fields of a structured type, in declaration order."""

    target: type
    fields: tuple[FieldDescription, ...]

    @property
    def is_model(self) -> bool:
        """Whether the target is a pydantic model (built with ``model_validate``)."""
        return issubclass(self.target, BaseModel)

    def instantiate(self, values: dict[str, Any]) -> Any:
        """Build the target from values keyed by field name."""
        if self.is_model:
            return self.target.model_validate(values, by_name=True)
        return self.target(**values)


def is_structured(annotation: Any) -> bool:
    """Whether ``annotation`` is a keyed type decoded field by field."""
    return isinstance(annotation, type) and (
        dataclasses.is_dataclass(annotation) or issubclass(annotation, BaseModel)
    )


def _strip_optional(annotation: Any) -> tuple[Any, bool]:
    if get_origin(annotation) in (typing.Union, types.UnionType):
        args = get_args(annotation)
        if type(None) in args:
            rest = tuple(arg for arg in args if arg is not type(None))
            if len(rest) == 1:
                return rest[0], True
            return typing.Union[rest], True  # noqa: UP007
    return annotation, False


def _type_name(annotation: Any) -> str:
    return getattr(annotation, "__name__", None) or repr(annotation)


def _enum_shape(enum_type: type[Enum], optional: bool) -> ValueShape:
    values = [member.value for member in enum_type]
    if values and all(isinstance(v, str) for v in values):
        return ValueShape(FieldKind.ENUM, enum_type, optional, "text")
    if values and all(isinstance(v, int) and not isinstance(v, bool) for v in values):
        return ValueShape(FieldKind.ENUM, enum_type, optional, "integer")
    return ValueShape(
        FieldKind.UNKNOWN,
        enum_type,
        optional,
        f"enum {enum_type.__name__} must have only text or only integer values",
    )


def classify(annotation: Any) -> ValueShape:
    """Work out how a value annotated as ``annotation`` is read from a row."""
    annotation, optional = _strip_optional(annotation)

    marker: FieldKind | None = None
    if get_origin(annotation) is Annotated:
        base, *metadata = get_args(annotation)
        markers = [item for item in metadata if isinstance(item, FieldKind)]
        annotation = base
        if markers:
            marker = markers[-1]
        annotation, inner_optional = _strip_optional(annotation)
        optional = optional or inner_optional

    if marker is not None:
        expected = int if marker.is_integer else _MARKER_BASES.get(marker)
        if expected is None or annotation is not expected:
            return ValueShape(
                FieldKind.UNKNOWN,
                annotation,
                optional,
                f"{marker.value} marker cannot annotate {_type_name(annotation)}",
            )
        return ValueShape(marker, annotation, optional)

    kind = _SCALAR_KINDS.get(annotation)
    if kind is not None:
        return ValueShape(kind, annotation, optional)
    if isinstance(annotation, type) and issubclass(annotation, Enum):
        return _enum_shape(annotation, optional)
    if is_structured(annotation):
        return ValueShape(FieldKind.NESTED, annotation, optional)

    origin = get_origin(annotation)
    container = origin if isinstance(origin, type) else annotation
    if isinstance(container, type) and issubclass(container, Iterable):
        return ValueShape(
            FieldKind.UNSUPPORTED, annotation, optional, f"container {_type_name(container)}"
        )
    if origin in (typing.Union, types.UnionType):
        return ValueShape(
            FieldKind.UNKNOWN, annotation, optional, f"union {annotation} has several value types"
        )
    return ValueShape(
        FieldKind.UNKNOWN, annotation, optional, f"no column mapping for {_type_name(annotation)}"
    )


def _resolve_hints(target: type) -> dict[str, Any]:
    try:
        return get_type_hints(target, include_extras=True)
    except NameError as exc:
        raise InvalidDecodeTargetError(
            (), f"cannot resolve annotations of {target.__name__}: {exc}"
        ) from exc


def _dataclass_fields(target: type) -> list[FieldDescription]:
    hints = _resolve_hints(target)
    described = []
    for field in dataclasses.fields(target):
        if not field.init:
            continue
        has_default = (
            field.default is not dataclasses.MISSING
            or field.default_factory is not dataclasses.MISSING
        )
        described.append(
            FieldDescription(
                name=field.name,
                column=field.metadata.get("column", field.name),
                init_name=field.name,
                shape=classify(hints.get(field.name, field.type)),
                has_default=has_default,
            )
        )
    return described


def _model_annotation(info: Any) -> Any:
    # pydantic moves top-level Annotated extras into FieldInfo.metadata
    if info.metadata:
        return Annotated[info.annotation, *info.metadata]
    return info.annotation


def _model_column(name: str, info: Any) -> str:
    # AliasPath and AliasChoices have no single column; fall back to the plain alias
    if isinstance(info.validation_alias, str):
        return info.validation_alias
    return info.alias or name


def _model_fields(target: type[BaseModel]) -> list[FieldDescription]:
    described = []
    for name, info in target.model_fields.items():
        described.append(
            FieldDescription(
                name=name,
                column=_model_column(name, info),
                init_name=name,
                shape=classify(_model_annotation(info)),
                has_default=not info.is_required(),
            )
        )
    return described


@functools.cache
def describe(target: type) -> TypeDescription:
    """Describe a dataclass or pydantic model. Results are cached per type."""
    if not is_structured(target):
        raise InvalidDecodeTargetError(
            (), f"{_type_name(target)} is neither a dataclass nor a pydantic model"
        )
    if dataclasses.is_dataclass(target):
        fields = _dataclass_fields(target)
    else:
        fields = _model_fields(target)
    return TypeDescription(target=target, fields=tuple(fields))
