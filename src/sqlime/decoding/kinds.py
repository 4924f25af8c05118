"""Semantic kinds of decoded fields and the ``Annotated`` markers that select them.

Plain ``int`` decodes as a signed 64-bit integer and plain ``float`` as a
double. Narrower widths are declared with the markers below::

    @dataclass
    class Reading:
        sensor: UInt16
        delta: Int8
        gain: Float32
"""

from enum import StrEnum
from typing import Annotated


class FieldKind(StrEnum):
    """How a field's value is read from its column."""

    BOOL = "bool"
    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    UINT8 = "uint8"
    UINT16 = "uint16"
    UINT32 = "uint32"
    UINT64 = "uint64"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    STRING = "string"
    BLOB = "blob"
    ENUM = "enum"
    DATETIME = "datetime"
    DATE = "date"
    NESTED = "nested"
    # Not decodable: a container shape, or a type with no column mapping.
    UNSUPPORTED = "unsupported"
    UNKNOWN = "unknown"

    @property
    def is_integer(self) -> bool:
        """Whether values of this kind are range-checked integers."""
        return self in _INTEGER_BOUNDS

    @property
    def bounds(self) -> tuple[int, int]:
        """Inclusive (min, max) range for an integer kind."""
        try:
            return _INTEGER_BOUNDS[self]
        except KeyError:
            raise ValueError(f"{self.value} is not an integer kind") from None


_INTEGER_BOUNDS: dict[FieldKind, tuple[int, int]] = {
    FieldKind.INT8: (-(2**7), 2**7 - 1),
    FieldKind.INT16: (-(2**15), 2**15 - 1),
    FieldKind.INT32: (-(2**31), 2**31 - 1),
    FieldKind.INT64: (-(2**63), 2**63 - 1),
    FieldKind.UINT8: (0, 2**8 - 1),
    FieldKind.UINT16: (0, 2**16 - 1),
    FieldKind.UINT32: (0, 2**32 - 1),
    FieldKind.UINT64: (0, 2**64 - 1),
}

# Width markers. Both dataclasses and pydantic ignore the extra metadata.
Int8 = Annotated[int, FieldKind.INT8]
Int16 = Annotated[int, FieldKind.INT16]
Int32 = Annotated[int, FieldKind.INT32]
Int64 = Annotated[int, FieldKind.INT64]
UInt8 = Annotated[int, FieldKind.UINT8]
UInt16 = Annotated[int, FieldKind.UINT16]
UInt32 = Annotated[int, FieldKind.UINT32]
UInt64 = Annotated[int, FieldKind.UINT64]
Float32 = Annotated[float, FieldKind.FLOAT32]
Float64 = Annotated[float, FieldKind.FLOAT64]
